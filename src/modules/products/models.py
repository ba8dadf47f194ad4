"""Product model with GTIN uniqueness and publication lifecycle.

Business rules implemented:
- GTIN is exactly 14 digits and unique in the system (UNIQUE constraint
  breaks the check-then-insert race).
- ``date_published`` is set if and only if ``subscribers`` is non-empty.
- ``date_inactive`` equal to the Unix epoch clears the field.
- ``image`` holds the blob key only; signed URLs are never persisted.
- ``owner`` is fixed at creation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from django.conf import settings
from django.db import models
from django.utils import timezone

from modules.products.constants import EPOCH, TempUnits
from shared.domain.events import DomainEventMixin


class Product(DomainEventMixin, models.Model):
    """Product aggregate root.

    Rows are created, changed and removed only by ``ProductService`` so
    the owner's Ownership Index and the image blob stay in step with them.
    """

    gtin = models.CharField(max_length=14, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField()
    category = models.CharField(max_length=255, blank=True, default="")
    type = models.CharField(max_length=255, blank=True, default="")
    packaging_type = models.CharField(max_length=255, blank=True, default="")
    temp_units = models.CharField(
        max_length=1,
        choices=TempUnits.choices,
        blank=True,
        default="",
    )
    min_temp = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)
    max_temp = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)
    storage_instructions = models.TextField(blank=True, default="")
    height = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    depth = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    subscribers = models.JSONField(default=list, blank=True)
    image = models.CharField(max_length=255, null=True, blank=True, default=None)  # noqa: DJ01
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owned_products",
    )
    date_added = models.DateTimeField(default=timezone.now, editable=False)
    date_published = models.DateTimeField(null=True, blank=True, default=None)
    date_inactive = models.DateTimeField(null=True, blank=True, default=None)
    date_modified = models.DateTimeField(null=True, blank=True, default=None)

    class Meta:
        db_table = "products"
        ordering = ["date_added", "id"]
        indexes = [
            models.Index(fields=["image"], name="products_image_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(min_temp__isnull=True)
                    | models.Q(max_temp__isnull=True)
                    | models.Q(min_temp__lte=models.F("max_temp"))
                ),
                name="products_temp_range_valid",
            ),
        ]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_published(self) -> bool:
        return self.date_published is not None

    def is_owned_by(self, user_id: int) -> bool:
        return self.owner_id == user_id

    def set_subscribers(self, subscribers: Optional[Iterable[int]], now: datetime) -> None:
        """Replace the subscriber set and keep ``date_published`` in step.

        An empty or missing set unpublishes the product.
        """
        ids: List[int] = []
        for sub in subscribers or []:
            if sub not in ids:
                ids.append(sub)
        self.subscribers = ids
        self.date_published = now if ids else None

    def set_inactive(self, value: Optional[datetime]) -> None:
        """Store ``value`` verbatim; the epoch sentinel (or ``None``) clears it."""
        if value is None or value == EPOCH:
            self.date_inactive = None
        else:
            self.date_inactive = value

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.gtin} - {self.name}"
