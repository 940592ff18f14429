from django.core.management.base import BaseCommand, CommandError

from catalog.models import Product
from inventory.services import StockService
from stockroom.infrastructure import build_store


class Command(BaseCommand):
    help = "Compare every product's running stock total against its ledger"

    def add_arguments(self, parser):
        parser.add_argument(
            "--product",
            action="append",
            dest="products",
            help="Only reconcile this product id (repeatable)",
        )
        parser.add_argument(
            "--database",
            default="default",
            help="Database alias to check (default: 'default')",
        )

    def handle(self, *args, **options):
        store = build_store(options["database"])
        service = StockService(store)
        try:
            product_ids = options["products"] or list(
                store.manager(Product).order_by("name").values_list("pk", flat=True)
            )

            drifted = 0
            for product_id in product_ids:
                result = service.reconcile(product_id)
                if not result.ok:
                    raise CommandError(result.message)

                report = result.value
                if report.is_consistent:
                    self.stdout.write(f"{report.product_id}: {report.recorded_quantity} OK")
                else:
                    drifted += 1
                    self.stdout.write(self.style.WARNING(
                        f"{report.product_id}: recorded {report.recorded_quantity}, "
                        f"expected {report.expected_quantity} (off by {report.discrepancy})"
                    ))
        finally:
            store.close()

        if drifted:
            raise CommandError(f"{drifted} of {len(product_ids)} products drifted from their ledger")
        self.stdout.write(self.style.SUCCESS(f"Reconciled {len(product_ids)} products, no drift"))
