import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("gtin", models.CharField(max_length=14, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField()),
                ("category", models.CharField(blank=True, default="", max_length=255)),
                ("type", models.CharField(blank=True, default="", max_length=255)),
                (
                    "packaging_type",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                (
                    "temp_units",
                    models.CharField(
                        blank=True,
                        choices=[("C", "Celsius"), ("F", "Fahrenheit")],
                        default="",
                        max_length=1,
                    ),
                ),
                (
                    "min_temp",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=7, null=True),
                ),
                (
                    "max_temp",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=7, null=True),
                ),
                ("storage_instructions", models.TextField(blank=True, default="")),
                (
                    "height",
                    models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True),
                ),
                (
                    "width",
                    models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True),
                ),
                (
                    "depth",
                    models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True),
                ),
                (
                    "weight",
                    models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True),
                ),
                ("subscribers", models.JSONField(blank=True, default=list)),
                (
                    "image",
                    models.CharField(blank=True, default=None, max_length=255, null=True),
                ),
                (
                    "date_added",
                    models.DateTimeField(default=django.utils.timezone.now, editable=False),
                ),
                (
                    "date_published",
                    models.DateTimeField(blank=True, default=None, null=True),
                ),
                (
                    "date_inactive",
                    models.DateTimeField(blank=True, default=None, null=True),
                ),
                (
                    "date_modified",
                    models.DateTimeField(blank=True, default=None, null=True),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="owned_products",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "products",
                "ordering": ["date_added", "id"],
                "indexes": [
                    models.Index(fields=["image"], name="products_image_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(min_temp__isnull=True)
                            | models.Q(max_temp__isnull=True)
                            | models.Q(min_temp__lte=models.F("max_temp"))
                        ),
                        name="products_temp_range_valid",
                    ),
                ],
            },
        ),
    ]
