from django.core.management.base import BaseCommand, CommandError
from django.db import DEFAULT_DB_ALIAS

from storefront.services.catalog.consistency import verify_and_repair
from storefront.services.catalog.errors import SchemaMismatch


class Command(BaseCommand):
    help = 'Checks every product image against its gallery and repairs mismatches'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report what would be repaired without writing anything.'
        )
        parser.add_argument(
            '--database',
            default=DEFAULT_DB_ALIAS,
            help='Database alias to operate on.'
        )

    def handle(self, *args, **options):
        try:
            report = verify_and_repair(using=options['database'], dry_run=options['dry_run'])
        except SchemaMismatch as exc:
            raise CommandError(f'{exc.message}') from exc

        verb = 'Would repair' if options['dry_run'] else 'Repaired'
        self.stdout.write(
            f"Scanned {report.scanned} products. {verb} {report.repaired}, "
            f"{report.placeholders} on placeholder."
        )
        if report.failed:
            self.stdout.write(self.style.ERROR(f"Failed: {', '.join(report.failed)}"))
        else:
            self.stdout.write(self.style.SUCCESS('All product images consistent'))
