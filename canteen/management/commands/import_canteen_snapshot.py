"""
Management command to load a JSON export of the mobile app's collections
"""
import json

from django.core.management.base import BaseCommand, CommandError

from canteen.importer import SnapshotError, import_snapshot


class Command(BaseCommand):
    help = 'Import categories, items, users, orders and payments from a JSON snapshot'

    def add_arguments(self, parser):
        parser.add_argument('path', help='Path to the snapshot JSON file')

    def handle(self, *args, **options):
        path = options['path']
        try:
            with open(path, encoding='utf-8') as fh:
                data = json.load(fh)
        except OSError as e:
            raise CommandError(f'Cannot read {path}: {e}')
        except json.JSONDecodeError as e:
            raise CommandError(f'{path} is not valid JSON: {e}')

        try:
            counts = import_snapshot(data)
        except SnapshotError as e:
            raise CommandError(f'Snapshot rejected: {e}')

        for name, count in counts.items():
            self.stdout.write(f'  {name}: {count}')
        self.stdout.write(
            self.style.SUCCESS(f'Imported {sum(counts.values())} record(s) from {path}.')
        )
