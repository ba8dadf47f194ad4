"""Domain events for the Products bounded context.

Published by ``ProductService`` only after the relational transaction
has committed.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class ProductCreated(DomainEvent):
    """Raised when a product is created."""

    gtin: str = ""
    owner_id: int | None = None


@dataclass(frozen=True)
class ProductUpdated(DomainEvent):
    """Raised when a product is updated."""

    gtin: str = ""
    image_replaced: bool = False


@dataclass(frozen=True)
class ProductDeleted(DomainEvent):
    """Raised when a product is deleted."""

    gtin: str = ""
    owner_id: int | None = None


@dataclass(frozen=True)
class ProductImageRepairRequired(DomainEvent):
    """Raised when a blob step failed after commit and a repair was recorded."""

    gtin: str = ""
    operation: str = ""
    key: str = ""
