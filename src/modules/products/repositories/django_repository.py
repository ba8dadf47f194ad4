"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: methods return ``None``
instead of raising HTTP-level exceptions; the Service Layer decides
how to translate a missing entity into an API response.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import structlog
from django.db import transaction

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: int) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or non-numeric IDs.
        """
        try:
            return Product.objects.filter(id=int(id)).first()
        except (TypeError, ValueError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"owner_id": 3}
            {"date_published__isnull": False}
        """
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        is_new = entity._state.adding
        entity.save()
        logger.info(
            "product.saved",
            product_id=entity.id,
            gtin=entity.gtin,
            is_new=is_new,
        )
        return entity

    @transaction.atomic
    def delete(self, id: int) -> bool:
        """Hard-delete a product by ID.

        Returns ``True`` if the product was found and deleted,
        ``False`` if no product exists with the given ID.
        """
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.row_deleted", product_id=id)
        return True

    def get_by_gtin(self, gtin: str) -> Optional[Product]:
        return Product.objects.filter(gtin=gtin.strip()).first()

    def get_for_update_by_gtin(self, gtin: str) -> Optional[Product]:
        return Product.objects.select_for_update().filter(gtin=gtin.strip()).first()

    def list_for_owner(self, owner_id: int, ids: Sequence[int]) -> List[Product]:
        by_id = {
            product.id: product
            for product in Product.objects.filter(owner_id=owner_id, id__in=list(ids))
        }
        ordered: List[Product] = []
        for pid in ids:
            product = by_id.pop(pid, None)
            if product is not None:
                ordered.append(product)
        return ordered
