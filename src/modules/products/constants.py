"""Product domain constants."""

from datetime import datetime, timezone

from django.db import models

GTIN_LENGTH = 14
DESCRIPTION_MIN_LENGTH = 10

# Content type -> key extension (the MIME subtype).
ALLOWED_IMAGE_TYPES: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
    "image/webp": "webp",
}
MAX_IMAGE_BYTES = 5 * 1024 * 1024

# ``date_inactive`` sent as the Unix epoch means "clear it".
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DELETE_MESSAGE = "Product {gtin} {name} has been deleted"


class TempUnits(models.TextChoices):
    CELSIUS = "C", "Celsius"
    FAHRENHEIT = "F", "Fahrenheit"
