from django.core.management.base import BaseCommand

from measurements.services import seed_default_units
from stockroom.infrastructure import build_store


class Command(BaseCommand):
    help = "Seed the default base units into an empty unit registry"

    def add_arguments(self, parser):
        parser.add_argument(
            "--database",
            default="default",
            help="Database alias to seed (default: 'default')",
        )

    def handle(self, *args, **options):
        store = build_store(options["database"])
        try:
            created = seed_default_units(store)
        finally:
            store.close()

        if created:
            self.stdout.write(self.style.SUCCESS(
                f"Seeded base units: {', '.join(unit.name for unit in created)}"
            ))
        else:
            self.stdout.write("Unit registry is not empty; nothing seeded.")
