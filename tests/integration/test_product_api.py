"""Integration tests for Product API endpoints.

Covers:
- Create / retrieve / partial update / delete via /api/v1/products/.
- Owner listing with signed image URLs via /api/v1/products/user/{id}/.
- Ownership Index maintenance on create and delete.
- Domain exception mapping (400, 403, 404, 409).
- Authentication enforcement (401 without token).
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from freezegun import freeze_time

from modules.products.models import Product

pytestmark = pytest.mark.integration

GTIN = "00012345678905"
PRODUCTS_URL = "/api/v1/products/"


def _payload(**overrides) -> dict:
    data = {
        "gtin": GTIN,
        "name": "Frozen Peas",
        "description": "Garden peas, flash frozen.",
        "category": "Frozen",
        "temp_units": "C",
        "min_temp": "-25",
        "max_temp": "-18",
    }
    data.update(overrides)
    return data


def _png(name="peas.png", content=b"\x89PNG\r\n\x1a\nfake") -> SimpleUploadedFile:
    return SimpleUploadedFile(name, content, content_type="image/png")


@pytest.fixture()
def created(auth_client):
    """A product created through the API (no image)."""
    response = auth_client.post(PRODUCTS_URL, _payload(), format="json")
    assert response.status_code == 201
    return response.data["product"]


# ===========================================================================
# Authentication
# ===========================================================================


class TestProductAPIAuth:
    @pytest.mark.parametrize(
        "method, url",
        [
            ("get", f"{PRODUCTS_URL}{GTIN}/"),
            ("get", f"{PRODUCTS_URL}user/1/"),
            ("post", PRODUCTS_URL),
            ("patch", f"{PRODUCTS_URL}{GTIN}/"),
            ("delete", f"{PRODUCTS_URL}{GTIN}/"),
        ],
    )
    def test_unauthenticated_returns_401(self, api_client, method, url):
        response = getattr(api_client, method)(url)
        assert response.status_code == 401


# ===========================================================================
# CREATE
# ===========================================================================


class TestProductCreate:
    @freeze_time("2026-05-04 10:30:00")
    def test_create_without_image(self, auth_client, user):
        response = auth_client.post(PRODUCTS_URL, _payload(), format="json")

        assert response.status_code == 201
        product = response.data["product"]
        assert response.data["warnings"] == []
        assert product["gtin"] == GTIN
        assert product["image"] is None
        assert product["owner"] == user.id
        assert product["subscribers"] == []
        assert product["date_added"] == "2026-05-04T10:30:00Z"
        assert product["date_published"] is None
        assert product["date_inactive"] is None
        assert product["date_modified"] is None

        user.refresh_from_db()
        assert user.products == [product["id"]]

    def test_create_multipart_with_image(self, auth_client, blob_store):
        response = auth_client.post(
            PRODUCTS_URL, {**_payload(), "image": _png()}, format="multipart"
        )

        assert response.status_code == 201
        key = response.data["product"]["image"]
        assert key.endswith(".png")
        assert blob_store.get(key)[1] == "image/png"

    def test_duplicate_gtin_returns_409(self, auth_client, created, user, blob_store):
        response = auth_client.post(
            PRODUCTS_URL, {**_payload(name="Copy"), "image": _png()}, format="multipart"
        )

        assert response.status_code == 409
        assert Product.objects.filter(gtin=GTIN).count() == 1
        user.refresh_from_db()
        assert user.products == [created["id"]]
        assert blob_store.keys() == []

    @pytest.mark.parametrize(
        "overrides",
        [
            {"gtin": "123"},
            {"gtin": "0001234567890X"},
            {"name": ""},
            {"description": "short"},
            {"temp_units": "K"},
            {"min_temp": "5", "max_temp": "-5"},
        ],
    )
    def test_invalid_payload_returns_400(self, auth_client, overrides):
        response = auth_client.post(PRODUCTS_URL, _payload(**overrides), format="json")

        assert response.status_code == 400
        assert not Product.objects.exists()

    def test_unsupported_image_type_returns_400(self, auth_client, blob_store):
        pdf = SimpleUploadedFile("datasheet.pdf", b"%PDF-1.4", content_type="application/pdf")
        response = auth_client.post(
            PRODUCTS_URL, {**_payload(), "image": pdf}, format="multipart"
        )

        assert response.status_code == 400
        assert not Product.objects.exists()
        assert blob_store.keys() == []


# ===========================================================================
# RETRIEVE
# ===========================================================================


class TestProductRetrieve:
    def test_retrieve_by_gtin(self, auth_client, created):
        response = auth_client.get(f"{PRODUCTS_URL}{GTIN}/")

        assert response.status_code == 200
        assert response.data["product"]["id"] == created["id"]
        assert response.data["warnings"] == []

    def test_retrieve_returns_stored_key(self, auth_client, blob_store):
        created = auth_client.post(
            PRODUCTS_URL, {**_payload(), "image": _png()}, format="multipart"
        ).data["product"]

        response = auth_client.get(f"{PRODUCTS_URL}{GTIN}/")

        assert response.data["product"]["image"] == created["image"]

    def test_retrieve_not_found(self, auth_client):
        response = auth_client.get(f"{PRODUCTS_URL}00000000000000/")
        assert response.status_code == 404

    def test_any_authenticated_user_can_read(self, other_client, created):
        assert other_client.get(f"{PRODUCTS_URL}{GTIN}/").status_code == 200


# ===========================================================================
# LIST BY OWNER
# ===========================================================================


class TestProductsByOwner:
    def test_lists_products_in_index_order_with_signed_urls(
        self, auth_client, user, settings
    ):
        settings.BLOB_SIGNED_URL_TTL = 3600
        first = auth_client.post(
            PRODUCTS_URL, {**_payload(), "image": _png()}, format="multipart"
        ).data["product"]
        second = auth_client.post(
            PRODUCTS_URL, _payload(gtin="00012345678912", name="Yogurt"), format="json"
        ).data["product"]

        response = auth_client.get(f"{PRODUCTS_URL}user/{user.id}/")

        assert response.status_code == 200
        assert [p["id"] for p in response.data] == [first["id"], second["id"]]
        assert response.data[0]["image"] == (
            f"memory://test-product-images/{first['image']}?expires=3600"
        )
        assert response.data[1]["image"] is None

    def test_signed_url_is_not_persisted(self, auth_client, user):
        created = auth_client.post(
            PRODUCTS_URL, {**_payload(), "image": _png()}, format="multipart"
        ).data["product"]

        auth_client.get(f"{PRODUCTS_URL}user/{user.id}/")

        assert Product.objects.get(gtin=GTIN).image == created["image"]

    def test_unknown_user_returns_404(self, auth_client):
        assert auth_client.get(f"{PRODUCTS_URL}user/999999/").status_code == 404

    def test_user_without_products_returns_404(self, auth_client, other_user):
        response = auth_client.get(f"{PRODUCTS_URL}user/{other_user.id}/")
        assert response.status_code == 404

    def test_dangling_index_entry_is_skipped(self, auth_client, user, created):
        user.refresh_from_db()
        user.products = [999999] + user.products
        user.save(update_fields=["products"])

        response = auth_client.get(f"{PRODUCTS_URL}user/{user.id}/")

        assert response.status_code == 200
        assert [p["id"] for p in response.data] == [created["id"]]


# ===========================================================================
# PARTIAL UPDATE
# ===========================================================================


class TestProductUpdate:
    def test_partial_update_keeps_absent_fields(self, auth_client, created):
        response = auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/",
            {"name": "Frozen Peas XL", "height": 0},
            format="json",
        )

        assert response.status_code == 200
        product = response.data["product"]
        assert product["name"] == "Frozen Peas XL"
        assert Decimal(product["height"]) == Decimal("0")
        assert product["category"] == "Frozen"
        assert product["date_modified"] is not None

    def test_empty_string_means_absent(self, auth_client, created):
        response = auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/", {"name": "", "category": ""}, format="json"
        )

        assert response.status_code == 200
        assert response.data["product"]["name"] == "Frozen Peas"
        assert response.data["product"]["category"] == "Frozen"

    def test_multipart_csv_subscribers(self, auth_client, created):
        response = auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/", {"subscribers": "4,5"}, format="multipart"
        )

        assert response.status_code == 200
        assert response.data["product"]["subscribers"] == [4, 5]
        assert response.data["product"]["date_published"] is not None

    def test_date_inactive_epoch_clears(self, auth_client, created):
        auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/",
            {"date_inactive": "2027-01-31T00:00:00Z"},
            format="json",
        )
        response = auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/",
            {"date_inactive": "1970-01-01T00:00:00.000Z"},
            format="json",
        )

        assert response.data["product"]["date_inactive"] is None

    def test_date_inactive_null_clears(self, auth_client, created):
        auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/",
            {"date_inactive": "2030-01-01T00:00:00Z"},
            format="json",
        )
        response = auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/", {"date_inactive": None}, format="json"
        )

        assert response.status_code == 200
        assert response.data["product"]["date_inactive"] is None

    def test_date_inactive_absent_is_unchanged(self, auth_client, created):
        auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/",
            {"date_inactive": "2030-01-01T00:00:00Z"},
            format="json",
        )
        response = auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/", {"name": "Renamed Peas"}, format="json"
        )

        assert response.data["product"]["date_inactive"] == "2030-01-01T00:00:00Z"

    def test_date_inactive_stored_verbatim(self, auth_client, created):
        response = auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/",
            {"date_inactive": "2027-01-31T00:00:00Z"},
            format="json",
        )

        assert response.data["product"]["date_inactive"] == "2027-01-31T00:00:00Z"

    def test_image_replacement(self, auth_client, blob_store):
        old_key = auth_client.post(
            PRODUCTS_URL, {**_payload(), "image": _png()}, format="multipart"
        ).data["product"]["image"]

        response = auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/",
            {"image": _png("new.png", b"\x89PNG-new")},
            format="multipart",
        )

        new_key = response.data["product"]["image"]
        assert new_key != old_key
        assert blob_store.keys() == [new_key]
        assert blob_store.get(new_key)[0] == b"\x89PNG-new"

    def test_non_owner_returns_403(self, other_client, created):
        response = other_client.patch(
            f"{PRODUCTS_URL}{GTIN}/", {"name": "Hijacked"}, format="json"
        )

        assert response.status_code == 403
        assert Product.objects.get(gtin=GTIN).name == "Frozen Peas"

    def test_not_found(self, auth_client):
        response = auth_client.patch(
            f"{PRODUCTS_URL}00000000000000/", {"name": "Ghost"}, format="json"
        )
        assert response.status_code == 404

    def test_invalid_description_returns_400(self, auth_client, created):
        response = auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/", {"description": "short"}, format="json"
        )
        assert response.status_code == 400

    def test_merged_temp_range_returns_400(self, auth_client, created):
        response = auth_client.patch(
            f"{PRODUCTS_URL}{GTIN}/", {"min_temp": "0"}, format="json"
        )

        assert response.status_code == 400
        assert Product.objects.get(gtin=GTIN).min_temp == Decimal("-25")


# ===========================================================================
# DELETE
# ===========================================================================


class TestProductDelete:
    def test_delete_removes_row_index_entry_and_image(self, auth_client, user, blob_store):
        created = auth_client.post(
            PRODUCTS_URL, {**_payload(), "image": _png()}, format="multipart"
        ).data["product"]

        response = auth_client.delete(f"{PRODUCTS_URL}{GTIN}/")

        assert response.status_code == 200
        assert response.data["message"] == (
            f"Product {GTIN} Frozen Peas has been deleted"
        )
        assert response.data["product_id"] == created["id"]
        assert response.data["warnings"] == []
        assert not Product.objects.filter(gtin=GTIN).exists()
        user.refresh_from_db()
        assert user.products == []
        assert blob_store.keys() == []

    def test_non_owner_returns_403_and_changes_nothing(
        self, other_client, created, user
    ):
        response = other_client.delete(f"{PRODUCTS_URL}{GTIN}/")

        assert response.status_code == 403
        assert Product.objects.filter(gtin=GTIN).exists()
        user.refresh_from_db()
        assert user.products == [created["id"]]

    def test_not_found(self, auth_client):
        assert auth_client.delete(f"{PRODUCTS_URL}00000000000000/").status_code == 404

    def test_gtin_can_be_reused_after_delete(self, auth_client, created, user):
        auth_client.delete(f"{PRODUCTS_URL}{GTIN}/")

        response = auth_client.post(PRODUCTS_URL, _payload(), format="json")

        assert response.status_code == 201
        user.refresh_from_db()
        assert user.products == [response.data["product"]["id"]]
