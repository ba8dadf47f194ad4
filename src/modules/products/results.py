"""Results returned by the product write orchestrator and read path.

A non-empty ``warnings`` list means the relational change committed but
a blob step did not; each warning has a matching ``BlobRepair`` record.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.products.constants import DELETE_MESSAGE

if TYPE_CHECKING:
    from modules.products.models import Product


@dataclass(frozen=True)
class BlobWarning:
    """A blob operation that failed after commit (partial failure)."""

    operation: str
    key: str
    product_id: Optional[int]
    gtin: str
    detail: str

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProductWriteResult:
    product: Product
    warnings: List[BlobWarning] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.warnings)


@dataclass
class ProductDeleteResult:
    product_id: int
    gtin: str
    name: str
    warnings: List[BlobWarning] = field(default_factory=list)

    @property
    def message(self) -> str:
        return DELETE_MESSAGE.format(gtin=self.gtin, name=self.name)


@dataclass(frozen=True)
class SignedProduct:
    """A product paired with a time-limited read URL for its image."""

    product: Product
    image_url: Optional[str]
