from django.core.management import call_command
from django.core.management.base import BaseCommand, CommandError
from django.db import DEFAULT_DB_ALIAS

from storefront.services.catalog.schema_guard import check_schema


class Command(BaseCommand):
    help = 'Full catalog setup: schema check, image column guard, image sync and sample data'

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-seed',
            action='store_true',
            help='Do not create sample data on an empty catalog.'
        )
        parser.add_argument(
            '--database',
            default=DEFAULT_DB_ALIAS,
            help='Database alias to operate on.'
        )

    def handle(self, *args, **options):
        using = options['database']

        self.stdout.write('1. Checking schema...')
        status = check_schema(using=using)
        if status['error']:
            raise CommandError(f"Schema check failed: {status['error']}")
        if status['missing_tables']:
            raise CommandError(
                f"Missing tables: {', '.join(status['missing_tables'])}. Run `migrate` first."
            )

        self.stdout.write('2. Ensuring products.image...')
        call_command('ensure_image_column', database=using, stdout=self.stdout)

        self.stdout.write('3. Synchronizing product images...')
        call_command('verify_product_images', database=using, stdout=self.stdout)

        if options['skip_seed']:
            self.stdout.write('4. Sample data skipped')
        else:
            self.stdout.write('4. Sample data...')
            call_command('seed_catalog', database=using, stdout=self.stdout)

        self.stdout.write(self.style.SUCCESS('Catalog database setup complete'))
