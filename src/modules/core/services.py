"""Blob reconciliation service.

Records relational/blob disagreements left by partial failures and
retries the storage side later.  Relational state is the source of
truth: reconciliation only ever touches blob objects, never product rows.
"""

from __future__ import annotations

from typing import Dict, Optional

import structlog
from django.conf import settings
from django.db import DatabaseError

from modules.core.models import BlobRepair, RepairOperation, RepairStatus
from shared.domain.storage import BlobStoreError, IBlobStore

logger = structlog.get_logger(__name__)


class BlobRepairService:
    """Application service for ``BlobRepair`` records."""

    def __init__(self, blob_store: IBlobStore) -> None:
        self._blob_store = blob_store

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def record(
        self,
        operation: str,
        key: str,
        product_id: Optional[int],
        product_gtin: str,
        error: str,
        previous_key: Optional[str] = None,
    ) -> Optional[BlobRepair]:
        """Persist a repair record.

        Returns ``None`` when the record itself cannot be written; the
        failure is logged with the full payload so the disagreement is
        still visible to operators.
        """
        log = logger.bind(
            operation=operation,
            key=key,
            product_id=product_id,
            gtin=product_gtin,
        )
        try:
            repair = BlobRepair.objects.create(
                operation=operation,
                key=key,
                previous_key=previous_key,
                product_id=product_id,
                product_gtin=product_gtin,
                error_message=error,
            )
        except DatabaseError as exc:
            log.error("blob_repair.record_failed", error=str(exc), blob_error=error)
            return None
        log.warning("blob_repair.recorded", repair_id=str(repair.id))
        return repair

    def reconcile(self, limit: int = 100) -> Dict[str, int]:
        """Process pending repairs, oldest first.

        Returns counters: ``resolved``, ``pending`` (attempted but still
        open), ``failed`` (gave up).
        """
        from modules.products.models import Product

        max_retries = settings.BLOB_REPAIR_MAX_RETRIES
        counters = {"resolved": 0, "pending": 0, "failed": 0}

        pending = BlobRepair.objects.filter(status=RepairStatus.PENDING).order_by(
            "created_at"
        )[:limit]

        for repair in pending:
            log = logger.bind(
                repair_id=str(repair.id),
                operation=repair.operation,
                key=repair.key,
            )
            try:
                if repair.operation == RepairOperation.DELETE:
                    if Product.objects.filter(image=repair.key).exists():
                        # Key was adopted again; deleting would break a live row.
                        repair.mark_as_resolved()
                        log.info("blob_repair.key_in_use")
                    else:
                        self._blob_store.delete(repair.key)
                        repair.mark_as_resolved()
                        log.info("blob_repair.orphan_deleted")
                    counters["resolved"] += 1
                    continue

                referenced = Product.objects.filter(image=repair.key).exists()
                if not referenced or self._blob_store.exists(repair.key):
                    self._release_previous(repair, log)
                    repair.mark_as_resolved()
                    log.info("blob_repair.missing_object_resolved", referenced=referenced)
                    counters["resolved"] += 1
                    continue

                # Bytes are gone; only a re-upload by the owner can fix this.
                repair.mark_as_failed("Object still missing.", max_retries)
                log.warning("blob_repair.object_still_missing", retry_count=repair.retry_count)
            except BlobStoreError as exc:
                repair.mark_as_failed(str(exc), max_retries)
                log.warning(
                    "blob_repair.attempt_failed",
                    error=str(exc),
                    retry_count=repair.retry_count,
                )

            if repair.status == RepairStatus.FAILED:
                counters["failed"] += 1
            else:
                counters["pending"] += 1

        logger.info("blob_repair.reconciled", **counters)
        return counters

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _release_previous(self, repair: BlobRepair, log) -> None:
        """Delete the image a failed replacement kept alive.

        Raises ``BlobStoreError`` so the repair stays open when the
        delete fails.
        """
        from modules.products.models import Product

        key = repair.previous_key
        if not key or Product.objects.filter(image=key).exists():
            return
        self._blob_store.delete(key)
        log.info("blob_repair.previous_object_deleted", previous_key=key)
