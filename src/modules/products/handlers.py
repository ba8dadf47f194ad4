"""Event handlers for Products domain events."""

from __future__ import annotations

import structlog

from modules.products.events import (
    ProductCreated,
    ProductDeleted,
    ProductImageRepairRequired,
    ProductUpdated,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class ProductCreatedHandler(IEventHandler[ProductCreated]):
    def handle(self, event: ProductCreated) -> None:
        logger.info(
            "product.event.created",
            product_id=event.aggregate_id,
            gtin=event.gtin,
            owner_id=event.owner_id,
        )


class ProductUpdatedHandler(IEventHandler[ProductUpdated]):
    def handle(self, event: ProductUpdated) -> None:
        logger.info(
            "product.event.updated",
            product_id=event.aggregate_id,
            gtin=event.gtin,
            image_replaced=event.image_replaced,
        )


class ProductDeletedHandler(IEventHandler[ProductDeleted]):
    def handle(self, event: ProductDeleted) -> None:
        logger.info(
            "product.event.deleted",
            product_id=event.aggregate_id,
            gtin=event.gtin,
            owner_id=event.owner_id,
        )


class ProductImageRepairRequiredHandler(IEventHandler[ProductImageRepairRequired]):
    def handle(self, event: ProductImageRepairRequired) -> None:
        logger.warning(
            "product.event.image_repair_required",
            product_id=event.aggregate_id,
            gtin=event.gtin,
            operation=event.operation,
            key=event.key,
        )


product_created_handler = ProductCreatedHandler()
product_updated_handler = ProductUpdatedHandler()
product_deleted_handler = ProductDeletedHandler()
product_image_repair_required_handler = ProductImageRepairRequiredHandler()
