from django.core.management.base import BaseCommand
from django.db import DEFAULT_DB_ALIAS

from storefront.services.catalog.sample_data import seed_sample_catalog


class Command(BaseCommand):
    help = 'Creates the sample categories and products when the catalog is empty'

    def add_arguments(self, parser):
        parser.add_argument(
            '--actor',
            default='system',
            help='Actor id recorded for the sample products.'
        )
        parser.add_argument(
            '--database',
            default=DEFAULT_DB_ALIAS,
            help='Database alias to operate on.'
        )

    def handle(self, *args, **options):
        result = seed_sample_catalog(options['actor'], using=options['database'])
        style = self.style.SUCCESS if result['created'] else self.style.WARNING
        self.stdout.write(style(result['message']))
