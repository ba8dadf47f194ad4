"""Product service layer (Use Cases).

Orchestrates writes that span three independently failing resources:
the ``products`` row, the owner's Ownership Index (``users.products``)
and the image object in the blob store.

Ordering rules:
- Validation and ownership checks run before anything is mutated.
- The product row and the Ownership Index change in one relational
  transaction.  Any database error rolls both back.
- Blob operations run only after that transaction has committed, upload
  before delete.  A blob failure never rolls back the committed change;
  it is returned as a warning and persisted as a ``BlobRepair`` record.
- Domain events are published after commit.
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING, Callable, List, Optional, TypeVar

import structlog
from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from modules.core.models import RepairOperation
from modules.core.services import BlobRepairService
from modules.products.events import (
    ProductCreated,
    ProductDeleted,
    ProductImageRepairRequired,
    ProductUpdated,
)
from modules.products.exceptions import (
    InvalidProductData,
    ProductAccessDenied,
    ProductAlreadyExists,
    ProductNotFound,
    StorageUnavailable,
)
from modules.products.models import Product
from modules.products.results import (
    BlobWarning,
    ProductDeleteResult,
    ProductWriteResult,
    SignedProduct,
)
from modules.users.exceptions import UserNotFound
from shared.domain.storage import BlobStoreError
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from datetime import datetime

    from modules.products.dtos import CreateProductDTO, ImageUploadDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository
    from modules.users.repositories.interfaces import IUserRepository
    from shared.domain.bus import IEventBus
    from shared.domain.storage import IBlobStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ProductService:
    """Application service for Product use-cases.

    Collaborators are injected (DIP).  The service is request-scoped and
    holds no state between calls.
    """

    def __init__(
        self,
        repository: IProductRepository,
        user_repository: IUserRepository,
        blob_store: IBlobStore,
        repair_service: Optional[BlobRepairService] = None,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._repo = repository
        self._users = user_repository
        self._blobs = blob_store
        self._repairs = repair_service or BlobRepairService(blob_store)
        self._bus = event_bus or default_event_bus
        self._max_attempts = max(1, settings.BLOB_MAX_ATTEMPTS)
        self._backoff = settings.BLOB_RETRY_BACKOFF

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_product(
        self,
        owner_id: int,
        dto: CreateProductDTO,
        image: Optional[ImageUploadDTO] = None,
    ) -> ProductWriteResult:
        """Create a product, index it on its owner and upload its image.

        Raises:
            ProductAlreadyExists: if the GTIN is already registered.
            UserNotFound: if the owner does not exist.
            StorageUnavailable: if the relational transaction failed.
        """
        log = logger.bind(gtin=dto.gtin, owner_id=owner_id)

        if self._repo.get_by_gtin(dto.gtin):
            log.warning("product.duplicate_gtin")
            raise ProductAlreadyExists(f"GTIN '{dto.gtin}' already registered.")

        owner = self._users.get_by_id(owner_id)
        if not owner:
            log.warning("product.owner_not_found")
            raise UserNotFound(f"User {owner_id} not found.")

        key = self._new_image_key(image) if image else None
        product = Product(**dto.model_dump(), image=key, owner_id=owner.id)

        try:
            with transaction.atomic(durable=True):
                product = self._repo.save(product)
                if self._users.add_owned_product(owner.id, product.id) is None:
                    raise UserNotFound(f"User {owner_id} not found.")
        except IntegrityError as exc:
            log.warning("product.duplicate_gtin_race", error=str(exc))
            raise ProductAlreadyExists(f"GTIN '{dto.gtin}' already registered.") from exc
        except DatabaseError as exc:
            log.error("product.create_failed", error=str(exc))
            raise StorageUnavailable("Creating product failed, please try again.") from exc

        log = log.bind(product_id=product.id)
        log.info("product.created", image=key)
        product.add_domain_event(
            ProductCreated(aggregate_id=product.id, gtin=product.gtin, owner_id=owner.id)
        )

        warnings: List[BlobWarning] = []
        if image and key:
            warning = self._upload_image(product, key, image)
            if warning:
                warnings.append(warning)

        self._publish(product)
        return ProductWriteResult(product=product, warnings=warnings)

    def update_product(
        self,
        gtin: str,
        caller_id: int,
        dto: UpdateProductDTO,
        image: Optional[ImageUploadDTO] = None,
    ) -> ProductWriteResult:
        """Apply a partial update and optionally replace the image.

        Raises:
            ProductNotFound: if no product has this GTIN.
            ProductAccessDenied: if the caller is not the owner.
            InvalidProductData: if the merged temperature range is inverted.
            StorageUnavailable: if the relational transaction failed.
        """
        log = logger.bind(gtin=gtin, caller_id=caller_id)
        new_key = self._new_image_key(image) if image else None
        old_key: Optional[str] = None

        try:
            with transaction.atomic(durable=True):
                product = self._get_owned_for_update(gtin, caller_id)
                self._apply_patch(product, dto, timezone.now())
                old_key = product.image
                if new_key:
                    product.image = new_key
                product = self._repo.save(product)
        except DatabaseError as exc:
            log.error("product.update_failed", error=str(exc))
            raise StorageUnavailable("Updating product failed, please try again.") from exc

        log = log.bind(product_id=product.id)
        log.info(
            "product.updated",
            fields=sorted(dto.changes()),
            published=product.is_published,
            image_replaced=bool(new_key),
        )
        product.add_domain_event(
            ProductUpdated(
                aggregate_id=product.id,
                gtin=product.gtin,
                image_replaced=bool(new_key),
            )
        )

        warnings: List[BlobWarning] = []
        if image and new_key:
            warning = self._upload_image(product, new_key, image, previous_key=old_key)
            if warning:
                # Old object stays; it is the only copy of the previous image.
                warnings.append(warning)
            elif old_key:
                warning = self._delete_image(product, old_key)
                if warning:
                    warnings.append(warning)

        self._publish(product)
        return ProductWriteResult(product=product, warnings=warnings)

    def delete_product(self, gtin: str, caller_id: int) -> ProductDeleteResult:
        """Delete a product, drop it from the owner's index and remove its image.

        Raises:
            ProductNotFound: if no product has this GTIN.
            ProductAccessDenied: if the caller is not the owner.
            StorageUnavailable: if the relational transaction failed.
        """
        log = logger.bind(gtin=gtin, caller_id=caller_id)

        try:
            with transaction.atomic(durable=True):
                product = self._get_owned_for_update(gtin, caller_id)
                product_id = product.id
                owner_id = product.owner_id
                image_key = product.image
                self._users.remove_owned_product(owner_id, product_id)
                self._repo.delete(product_id)
        except DatabaseError as exc:
            log.error("product.delete_failed", error=str(exc))
            raise StorageUnavailable("Deleting product failed, please try again.") from exc

        log = log.bind(product_id=product_id)
        log.info("product.deleted", image=image_key)
        product.add_domain_event(
            ProductDeleted(aggregate_id=product_id, gtin=gtin, owner_id=owner_id)
        )

        warnings: List[BlobWarning] = []
        if image_key:
            warning = self._delete_image(product, image_key, product_id=product_id)
            if warning:
                warnings.append(warning)

        self._publish(product)
        return ProductDeleteResult(
            product_id=product_id,
            gtin=product.gtin,
            name=product.name,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_product(self, gtin: str) -> Product:
        """Retrieve a single product by GTIN.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_gtin(gtin)
        if not product:
            raise ProductNotFound(f"Product {gtin} not found.")
        logger.info("product.retrieved", gtin=gtin, product_id=product.id)
        return product

    def list_products_by_owner(self, user_id: int) -> List[SignedProduct]:
        """Products in the user's Ownership Index, with signed image URLs.

        Index entries that no longer resolve to a product owned by the
        user are skipped.

        Raises:
            UserNotFound: if the user does not exist.
            ProductNotFound: if the user owns no products.
        """
        log = logger.bind(user_id=user_id)

        user = self._users.get_by_id(user_id)
        if not user:
            raise UserNotFound(f"User {user_id} not found.")

        ids = user.owned_product_ids
        products = self._repo.list_for_owner(user.id, ids)
        if not products:
            raise ProductNotFound(f"Could not find products for user {user_id}.")

        dangling = len(set(ids)) - len(products)
        if dangling:
            log.warning("product.ownership_index_dangling", skipped=dangling)

        ttl = settings.BLOB_SIGNED_URL_TTL
        return [SignedProduct(product=p, image_url=self._sign(p, ttl)) for p in products]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_owned_for_update(self, gtin: str, caller_id: int) -> Product:
        product = self._repo.get_for_update_by_gtin(gtin)
        if not product:
            raise ProductNotFound(f"Product {gtin} not found.")
        if not product.is_owned_by(caller_id):
            logger.warning(
                "product.access_denied",
                gtin=gtin,
                caller_id=caller_id,
                owner_id=product.owner_id,
            )
            raise ProductAccessDenied("You are not allowed to modify this product.")
        return product

    def _apply_patch(self, product: Product, dto: UpdateProductDTO, now: datetime) -> None:
        for field, value in dto.changes().items():
            setattr(product, field, value)

        if (
            product.min_temp is not None
            and product.max_temp is not None
            and product.min_temp > product.max_temp
        ):
            raise InvalidProductData("min_temp must not be greater than max_temp.")

        product.set_subscribers(dto.subscribers, now)
        if "date_inactive" in dto.model_fields_set:
            product.set_inactive(dto.date_inactive)
        product.date_modified = now

    @staticmethod
    def _new_image_key(image: ImageUploadDTO) -> str:
        return f"{uuid.uuid4()}.{image.extension}"

    def _with_retries(self, operation: str, key: str, func: Callable[[], T]) -> T:
        """Run a blob call, retrying ``BlobStoreError`` with linear backoff."""
        attempt = 1
        while True:
            try:
                return func()
            except BlobStoreError as exc:
                if attempt >= self._max_attempts:
                    raise
                logger.warning(
                    "product.blob_retry",
                    operation=operation,
                    key=key,
                    attempt=attempt,
                    error=exc.detail,
                )
                time.sleep(self._backoff * attempt)
                attempt += 1

    def _upload_image(
        self,
        product: Product,
        key: str,
        image: ImageUploadDTO,
        previous_key: Optional[str] = None,
    ) -> Optional[BlobWarning]:
        try:
            self._with_retries(
                RepairOperation.PUT,
                key,
                lambda: self._blobs.put(key, image.content, image.content_type),
            )
        except BlobStoreError as exc:
            return self._report_blob_failure(
                RepairOperation.PUT,
                key,
                product,
                product.id,
                exc,
                previous_key=previous_key,
            )
        logger.info("product.image_uploaded", product_id=product.id, key=key)
        return None

    def _delete_image(
        self,
        product: Product,
        key: str,
        product_id: Optional[int] = None,
    ) -> Optional[BlobWarning]:
        product_id = product.id if product_id is None else product_id
        try:
            self._with_retries(RepairOperation.DELETE, key, lambda: self._blobs.delete(key))
        except BlobStoreError as exc:
            return self._report_blob_failure(
                RepairOperation.DELETE, key, product, product_id, exc
            )
        logger.info("product.image_deleted", product_id=product_id, key=key)
        return None

    def _report_blob_failure(
        self,
        operation: str,
        key: str,
        product: Product,
        product_id: Optional[int],
        exc: BlobStoreError,
        previous_key: Optional[str] = None,
    ) -> BlobWarning:
        logger.error(
            "product.image_upload_failed"
            if operation == RepairOperation.PUT
            else "product.image_delete_failed",
            product_id=product_id,
            gtin=product.gtin,
            key=key,
            error=exc.detail,
        )
        self._repairs.record(
            operation=operation,
            key=key,
            product_id=product_id,
            product_gtin=product.gtin,
            error=str(exc),
            previous_key=previous_key,
        )
        product.add_domain_event(
            ProductImageRepairRequired(
                aggregate_id=product_id,
                gtin=product.gtin,
                operation=str(operation),
                key=key,
            )
        )
        return BlobWarning(
            operation=str(operation),
            key=key,
            product_id=product_id,
            gtin=product.gtin,
            detail=str(exc),
        )

    def _sign(self, product: Product, ttl: int) -> Optional[str]:
        if not product.image:
            return None
        try:
            return self._blobs.signed_read_url(product.image, ttl)
        except BlobStoreError as exc:
            logger.warning(
                "product.image_sign_failed",
                product_id=product.id,
                key=product.image,
                error=exc.detail,
            )
            return None

    def _publish(self, product: Product) -> None:
        self._bus.publish_all(product.domain_events)
        product.clear_domain_events()
