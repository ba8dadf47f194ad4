import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="BlobRepair",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "operation",
                    models.CharField(
                        choices=[("PUT", "Missing object"), ("DELETE", "Orphaned object")],
                        max_length=10,
                    ),
                ),
                ("key", models.CharField(max_length=255)),
                (
                    "previous_key",
                    models.CharField(blank=True, default=None, max_length=255, null=True),
                ),
                (
                    "product_id",
                    models.BigIntegerField(blank=True, default=None, null=True),
                ),
                ("product_gtin", models.CharField(blank=True, default="", max_length=14)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("RESOLVED", "Resolved"),
                            ("FAILED", "Failed"),
                        ],
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                (
                    "resolved_at",
                    models.DateTimeField(blank=True, default=None, null=True),
                ),
                (
                    "error_message",
                    models.TextField(blank=True, default=None, null=True),
                ),
                ("retry_count", models.PositiveIntegerField(default=0)),
            ],
            options={
                "db_table": "blob_repairs",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="blob_repair_status_idx",
                    ),
                    models.Index(fields=["key"], name="blob_repair_key_idx"),
                ],
            },
        ),
    ]
