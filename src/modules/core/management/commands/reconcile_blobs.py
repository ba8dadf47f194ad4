from __future__ import annotations

from django.core.management.base import BaseCommand

from modules.core.services import BlobRepairService
from shared.infrastructure.storage import get_blob_store


class Command(BaseCommand):
    help = "Retry pending blob repairs left behind by partial product writes."

    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--limit",
            type=int,
            default=100,
            help="Maximum number of pending repairs to process.",
        )

    def handle(self, *args, **options):
        service = BlobRepairService(blob_store=get_blob_store())
        counters = service.reconcile(limit=options["limit"])
        self.stdout.write(
            self.style.SUCCESS(
                "Reconciliation completed: "
                f"resolved={counters['resolved']}, "
                f"pending={counters['pending']}, "
                f"failed={counters['failed']}"
            )
        )
