"""Base abstract model and blob reconciliation records.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``BlobRepair``: persisted report of a blob operation that failed after
  the relational transaction had already committed.

Products and users keep integer primary keys of their own; ``BaseModel``
is for bookkeeping tables that are never exposed as catalog identifiers.
"""

from __future__ import annotations

import uuid6
from django.db import models
from django.utils import timezone

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Blob reconciliation
# ---------------------------------------------------------------------------


class RepairOperation(models.TextChoices):
    # A live product row references ``key`` but the upload never landed.
    PUT = "PUT", "Missing object"
    # ``key`` is no longer referenced but the object could not be removed.
    DELETE = "DELETE", "Orphaned object"


class RepairStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    RESOLVED = "RESOLVED", "Resolved"
    FAILED = "FAILED", "Failed"


class BlobRepair(BaseModel):
    """A relational/blob disagreement left behind by a partial failure.

    Written outside the product transaction, after the product change has
    committed.  Reconciliation (``BlobRepairService.reconcile``) reads
    ``PENDING`` rows ordered by ``created_at``:

    1. ``DELETE`` → retry removing the orphaned object.
    2. ``PUT`` → resolved once the object exists again, or once no product
       references ``key`` any more.
    3. On failure → ``mark_as_failed(error)`` increments ``retry_count``.
    """

    operation = models.CharField(max_length=10, choices=RepairOperation.choices)
    key = models.CharField(max_length=255)
    previous_key = models.CharField(max_length=255, null=True, blank=True, default=None)  # noqa: DJ01
    product_id = models.BigIntegerField(null=True, blank=True, default=None)
    product_gtin = models.CharField(max_length=14, blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=RepairStatus.choices,
        default=RepairStatus.PENDING,
    )
    resolved_at = models.DateTimeField(null=True, blank=True, default=None)
    error_message = models.TextField(null=True, blank=True, default=None)  # noqa: DJ01
    retry_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "blob_repairs"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["status", "created_at"],
                name="blob_repair_status_idx",
            ),
            models.Index(fields=["key"], name="blob_repair_key_idx"),
        ]

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def mark_as_resolved(self) -> None:
        """Mark the disagreement as repaired."""
        self.status = RepairStatus.RESOLVED
        self.resolved_at = timezone.now()
        self.save(update_fields=["status", "resolved_at", "updated_at"])

    def mark_as_failed(self, error: str, max_retries: int) -> None:
        """Record a failed repair attempt; give up after ``max_retries``."""
        self.error_message = error
        self.retry_count += 1
        if self.retry_count >= max_retries:
            self.status = RepairStatus.FAILED
        self.save(
            update_fields=[
                "status",
                "error_message",
                "retry_count",
                "updated_at",
            ]
        )

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.operation} {self.key} [{self.status}] (product {self.product_gtin})"
