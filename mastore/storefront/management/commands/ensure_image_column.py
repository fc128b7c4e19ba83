from django.core.management.base import BaseCommand
from django.db import DEFAULT_DB_ALIAS

from storefront.services.catalog.schema_guard import backfill_missing_images, ensure_image_column


class Command(BaseCommand):
    help = 'Adds products.image (default: placeholder) if missing and backfills empty values'

    def add_arguments(self, parser):
        parser.add_argument(
            '--database',
            default=DEFAULT_DB_ALIAS,
            help='Database alias to operate on.'
        )
        parser.add_argument(
            '--no-backfill',
            action='store_true',
            help='Only check/add the column, leave existing rows as they are.'
        )

    def handle(self, *args, **options):
        using = options['database']
        result = ensure_image_column(using=using)

        if result.added:
            self.stdout.write(self.style.WARNING('products.image was missing and has been added'))
        else:
            self.stdout.write('products.image already present')
        if result.default_asserted:
            self.stdout.write('Default placeholder re-asserted')

        if not options['no_backfill']:
            updated = backfill_missing_images(using=using)
            self.stdout.write(f'Backfilled {updated} products with the placeholder image')

        self.stdout.write(self.style.SUCCESS('Image column OK'))
