"""Product repository interface.

Extends ``IRepository[Product]`` with the GTIN look-ups used by the
write orchestrator and the owner look-up used by the read path.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional, Sequence

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_by_gtin(self, gtin: str) -> Optional[Product]:
        """Retrieve a product by GTIN."""

    @abstractmethod
    def get_for_update_by_gtin(self, gtin: str) -> Optional[Product]:
        """Retrieve a product by GTIN with a row-level lock (SELECT FOR UPDATE).

        Must be called inside a transaction.  Returns ``None`` if the
        product does not exist.
        """

    @abstractmethod
    def list_for_owner(self, owner_id: int, ids: Sequence[int]) -> List[Product]:
        """Products among ``ids`` owned by ``owner_id``, in ``ids`` order.

        Ids that do not resolve are skipped.
        """
