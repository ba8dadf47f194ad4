"""Product DRF serializers for API output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from typing import Optional

from drf_spectacular.utils import extend_schema_field
from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Read-only serializer for the Product resource.

    ``image`` renders the stored blob key unless the view passes an
    ``image_urls`` mapping (product id -> signed URL) in the context.
    """

    image = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "gtin",
            "name",
            "description",
            "category",
            "type",
            "packaging_type",
            "temp_units",
            "min_temp",
            "max_temp",
            "storage_instructions",
            "height",
            "width",
            "depth",
            "weight",
            "subscribers",
            "image",
            "owner",
            "date_added",
            "date_published",
            "date_inactive",
            "date_modified",
        ]
        read_only_fields = fields

    @extend_schema_field(serializers.CharField(allow_null=True))
    def get_image(self, obj: Product) -> Optional[str]:
        image_urls = self.context.get("image_urls")
        if image_urls is None:
            return obj.image
        return image_urls.get(obj.id)
