"""Unit tests for BlobRepairService.

Covers:
- record: persists a PENDING repair.
- reconcile: orphan deletion, missing-object resolution, retries and
  give-up, key re-use protection.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.db import OperationalError

from modules.core.models import BlobRepair, RepairOperation, RepairStatus
from modules.core.services import BlobRepairService
from modules.products.models import Product
from shared.infrastructure.storage import InMemoryBlobStore

pytestmark = pytest.mark.unit


@pytest.fixture()
def store():
    return InMemoryBlobStore(bucket="unit")


@pytest.fixture()
def service(store):
    return BlobRepairService(blob_store=store)


def _make_product(owner, image):
    product = Product(
        gtin="00012345678905",
        name="Frozen Peas",
        description="Garden peas, flash frozen.",
        image=image,
        owner=owner,
    )
    product.save()
    return product


class TestRecord:
    def test_persists_pending_repair(self, service):
        repair = service.record(
            operation=RepairOperation.PUT,
            key="new.png",
            product_id=42,
            product_gtin="00012345678905",
            error="simulated outage",
            previous_key="old.png",
        )
        assert repair is not None
        stored = BlobRepair.objects.get(id=repair.id)
        assert stored.status == RepairStatus.PENDING
        assert stored.previous_key == "old.png"
        assert stored.error_message == "simulated outage"

    def test_database_failure_returns_none(self, service):
        with patch.object(
            BlobRepair.objects, "create", side_effect=OperationalError("locked")
        ):
            assert (
                service.record(
                    operation=RepairOperation.DELETE,
                    key="old.png",
                    product_id=42,
                    product_gtin="00012345678905",
                    error="simulated outage",
                )
                is None
            )


class TestReconcile:
    def test_orphan_is_deleted(self, service, store):
        store.put("orphan.png", b"img", "image/png")
        repair = service.record(RepairOperation.DELETE, "orphan.png", 42, "00012345678905", "x")

        counters = service.reconcile()

        assert counters == {"resolved": 1, "pending": 0, "failed": 0}
        assert not store.exists("orphan.png")
        repair.refresh_from_db()
        assert repair.status == RepairStatus.RESOLVED

    def test_orphan_key_in_use_is_not_deleted(self, service, store, user):
        store.put("live.png", b"img", "image/png")
        _make_product(user, "live.png")
        service.record(RepairOperation.DELETE, "live.png", 1, "00012345678905", "x")

        service.reconcile()

        assert store.exists("live.png")

    def test_missing_object_resolved_once_uploaded(self, service, store, user):
        _make_product(user, "new.png")
        service.record(RepairOperation.PUT, "new.png", 1, "00012345678905", "x")
        store.put("new.png", b"img", "image/png")

        assert service.reconcile()["resolved"] == 1

    def test_missing_object_resolved_when_no_longer_referenced(self, service):
        service.record(RepairOperation.PUT, "gone.png", 1, "00012345678905", "x")

        assert service.reconcile()["resolved"] == 1

    def test_missing_object_gives_up_after_max_retries(self, service, user, settings):
        settings.BLOB_REPAIR_MAX_RETRIES = 2
        _make_product(user, "new.png")
        repair = service.record(RepairOperation.PUT, "new.png", 1, "00012345678905", "x")

        assert service.reconcile() == {"resolved": 0, "pending": 1, "failed": 0}
        assert service.reconcile() == {"resolved": 0, "pending": 0, "failed": 1}

        repair.refresh_from_db()
        assert repair.status == RepairStatus.FAILED
        assert repair.retry_count == 2

    def test_blob_error_counts_as_attempt(self, flaky_blob_store):
        flaky = flaky_blob_store(fail_on={"delete"})
        service = BlobRepairService(blob_store=flaky)
        repair = service.record(RepairOperation.DELETE, "orphan.png", 1, "00012345678905", "x")

        assert service.reconcile()["pending"] == 1

        repair.refresh_from_db()
        assert repair.retry_count == 1
        assert "simulated outage" in repair.error_message

    def test_respects_limit(self, service):
        for i in range(3):
            service.record(RepairOperation.PUT, f"gone-{i}.png", i, "00012345678905", "x")

        assert service.reconcile(limit=2)["resolved"] == 2
        assert BlobRepair.objects.filter(status=RepairStatus.PENDING).count() == 1


class TestReconcileReplacedImage:
    def test_previous_object_deleted_when_new_key_lands(self, service, store, user):
        store.put("old.png", b"old", "image/png")
        store.put("new.png", b"new", "image/png")
        _make_product(user, "new.png")
        repair = service.record(
            RepairOperation.PUT, "new.png", 1, "00012345678905", "x", previous_key="old.png"
        )

        assert service.reconcile()["resolved"] == 1

        assert not store.exists("old.png")
        assert store.exists("new.png")
        repair.refresh_from_db()
        assert repair.status == RepairStatus.RESOLVED

    def test_previous_object_deleted_when_key_superseded(self, service, store):
        store.put("old.png", b"old", "image/png")
        service.record(
            RepairOperation.PUT, "lost.png", 1, "00012345678905", "x", previous_key="old.png"
        )

        assert service.reconcile()["resolved"] == 1
        assert store.keys() == []

    def test_previous_object_kept_while_referenced(self, service, store, user):
        store.put("old.png", b"old", "image/png")
        _make_product(user, "old.png")
        service.record(
            RepairOperation.PUT, "lost.png", 1, "00012345678905", "x", previous_key="old.png"
        )

        assert service.reconcile()["resolved"] == 1
        assert store.exists("old.png")

    def test_previous_object_stays_while_new_key_missing(self, service, store, user):
        store.put("old.png", b"old", "image/png")
        _make_product(user, "new.png")
        service.record(
            RepairOperation.PUT, "new.png", 1, "00012345678905", "x", previous_key="old.png"
        )

        assert service.reconcile()["pending"] == 1
        assert store.exists("old.png")

    def test_failed_previous_delete_keeps_repair_open(self, flaky_blob_store):
        flaky = flaky_blob_store(fail_on={"delete"})
        flaky.put("old.png", b"old", "image/png")
        service = BlobRepairService(blob_store=flaky)
        repair = service.record(
            RepairOperation.PUT, "lost.png", 1, "00012345678905", "x", previous_key="old.png"
        )

        assert service.reconcile() == {"resolved": 0, "pending": 1, "failed": 0}

        assert flaky.exists("old.png")
        repair.refresh_from_db()
        assert repair.status == RepairStatus.PENDING
        assert repair.retry_count == 1
