"""Product API views.

Exposes the ``ProductService`` via HTTP using a DRF ViewSet.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.products.dtos import (
    PATCHABLE_FIELDS,
    CreateProductDTO,
    ImageUploadDTO,
    UpdateProductDTO,
)
from modules.products.exceptions import (
    InvalidProductData,
    ProductAccessDenied,
    ProductAlreadyExists,
    ProductNotFound,
    StorageUnavailable,
)
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.results import BlobWarning
from modules.products.serializers import ProductSerializer
from modules.products.services import ProductService
from modules.users.exceptions import UserNotFound
from modules.users.repositories.django_repository import UserDjangoRepository
from shared.infrastructure.storage import get_blob_store

CREATE_FIELDS = ("gtin",) + PATCHABLE_FIELDS
UPDATE_FIELDS = PATCHABLE_FIELDS + ("subscribers", "date_inactive")
# An explicit JSON null on these fields is forwarded and clears the value.
NULLABLE_FIELDS = ("date_inactive",)


def _present(
    data: Any, fields: Iterable[str], nullable: Iterable[str] = ()
) -> Dict[str, Any]:
    """Fields supplied in the request body.

    ``None`` and ``""`` count as absent, except that ``None`` is kept for
    fields listed in ``nullable``.
    """
    values: Dict[str, Any] = {}
    for field in fields:
        if field not in data:
            continue
        if hasattr(data, "getlist") and len(data.getlist(field)) > 1:
            value = data.getlist(field)
        else:
            value = data.get(field)
        if value is None and field in nullable:
            values[field] = None
            continue
        if value is None or value == "":
            continue
        values[field] = value
    return values


def _warnings(warnings: List[BlobWarning]) -> List[Dict[str, Any]]:
    return [w.as_dict() for w in warnings]


def _error(detail: str, code: int) -> Response:
    return Response({"detail": detail}, status=code)


class ProductViewSet(GenericViewSet):
    """ViewSet for Product operations, addressed by GTIN.

    Uses ``ProductService`` with Django repositories and the configured
    blob store (DIP).  Does **not** extend ``ModelViewSet``; all ORM
    access goes through the service/repository layer.
    """

    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    lookup_field = "gtin"
    lookup_value_regex = r"\d+"
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(
            repository=ProductDjangoRepository(),
            user_repository=UserDjangoRepository(),
            blob_store=get_blob_store(),
        )

    # ------------------------------------------------------------------
    # Retrieve
    # ------------------------------------------------------------------

    def retrieve(self, request: Request, gtin: str | None = None) -> Response:
        """GET /api/v1/products/{gtin}/"""
        try:
            product = self._service.get_product(gtin or "")
        except ProductNotFound:
            return _error("Product not found.", status.HTTP_404_NOT_FOUND)
        return Response({"product": ProductSerializer(product).data, "warnings": []})

    @action(detail=False, methods=["get"], url_path=r"user/(?P<user_id>\d+)")
    def by_owner(self, request: Request, user_id: str | None = None) -> Response:
        """GET /api/v1/products/user/{user_id}/

        Returns a JSON array; ``image`` holds a time-limited signed URL.
        """
        try:
            signed = self._service.list_products_by_owner(int(user_id or 0))
        except (UserNotFound, ProductNotFound):
            return _error(
                "Could not find products for the provided user id.",
                status.HTTP_404_NOT_FOUND,
            )
        image_urls = {item.product.id: item.image_url for item in signed}
        serializer = ProductSerializer(
            [item.product for item in signed],
            many=True,
            context={"image_urls": image_urls},
        )
        return Response(serializer.data)

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/ (JSON or multipart with optional ``image``)"""
        try:
            dto = CreateProductDTO(**_present(request.data, CREATE_FIELDS))
            image = self._image_from(request)
        except (PydanticValidationError, ValueError) as exc:
            return _error(str(exc), status.HTTP_400_BAD_REQUEST)

        try:
            result = self._service.create_product(request.user.id, dto, image)
        except ProductAlreadyExists as exc:
            return _error(str(exc), status.HTTP_409_CONFLICT)
        except UserNotFound as exc:
            return _error(str(exc), status.HTTP_404_NOT_FOUND)
        except StorageUnavailable as exc:
            return _error(str(exc), status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(
            {
                "product": ProductSerializer(result.product).data,
                "warnings": _warnings(result.warnings),
            },
            status=status.HTTP_201_CREATED,
        )

    def partial_update(self, request: Request, gtin: str | None = None) -> Response:
        """PATCH /api/v1/products/{gtin}/ (JSON or multipart with optional ``image``)"""
        try:
            dto = UpdateProductDTO(
                **_present(request.data, UPDATE_FIELDS, nullable=NULLABLE_FIELDS)
            )
            image = self._image_from(request)
        except (PydanticValidationError, ValueError) as exc:
            return _error(str(exc), status.HTTP_400_BAD_REQUEST)

        try:
            result = self._service.update_product(gtin or "", request.user.id, dto, image)
        except ProductNotFound:
            return _error("Product not found.", status.HTTP_404_NOT_FOUND)
        except ProductAccessDenied as exc:
            return _error(str(exc), status.HTTP_403_FORBIDDEN)
        except InvalidProductData as exc:
            return _error(str(exc), status.HTTP_400_BAD_REQUEST)
        except StorageUnavailable as exc:
            return _error(str(exc), status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(
            {
                "product": ProductSerializer(result.product).data,
                "warnings": _warnings(result.warnings),
            }
        )

    def destroy(self, request: Request, gtin: str | None = None) -> Response:
        """DELETE /api/v1/products/{gtin}/"""
        try:
            result = self._service.delete_product(gtin or "", request.user.id)
        except ProductNotFound:
            return _error("Product not found.", status.HTTP_404_NOT_FOUND)
        except ProductAccessDenied as exc:
            return _error(str(exc), status.HTTP_403_FORBIDDEN)
        except StorageUnavailable as exc:
            return _error(str(exc), status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(
            {
                "message": result.message,
                "product_id": result.product_id,
                "gtin": result.gtin,
                "warnings": _warnings(result.warnings),
            }
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _image_from(request: Request) -> ImageUploadDTO | None:
        upload = request.FILES.get("image")
        if upload is None:
            return None
        return ImageUploadDTO.from_upload(upload)
