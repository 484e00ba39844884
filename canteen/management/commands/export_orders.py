"""
Management command to write one day's orders to an Excel workbook
"""
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_date

from canteen.exports import export_day


class Command(BaseCommand):
    help = "Export a day's orders to canteen-orders-YYYY-MM-DD.xlsx"

    def add_arguments(self, parser):
        parser.add_argument('--date', help='Day to export as YYYY-MM-DD (default: today)')
        parser.add_argument('--output-dir', default='.', help='Directory to write the workbook into')

    def handle(self, *args, **options):
        day = timezone.localdate()
        if options['date']:
            day = parse_date(options['date'])
            if day is None:
                raise CommandError(f"Invalid date: {options['date']} (expected YYYY-MM-DD)")

        output_dir = Path(options['output_dir'])
        if not output_dir.is_dir():
            raise CommandError(f'{output_dir} is not a directory')

        filename, content, count = export_day(day)
        target = output_dir / filename
        target.write_bytes(content)

        if count == 0:
            self.stdout.write(self.style.WARNING(f'No orders on {day:%d/%m/%Y}; wrote an empty sheet to {target}'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Exported {count} order(s) to {target}'))
