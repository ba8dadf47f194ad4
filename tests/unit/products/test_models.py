"""Unit tests for the Product model.

Covers:
- Field defaults at creation (lifecycle dates, image, subscribers).
- GTIN uniqueness at the database level.
- Temperature range check constraint.
- set_subscribers / set_inactive lifecycle helpers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction
from freezegun import freeze_time

from modules.products.constants import EPOCH
from modules.products.models import Product

pytestmark = pytest.mark.unit

NOW = datetime(2026, 5, 4, 10, 30, tzinfo=timezone.utc)


def _make_product(owner, **overrides) -> Product:
    defaults = {
        "gtin": "00012345678905",
        "name": "Frozen Peas",
        "description": "Garden peas, flash frozen.",
        "owner": owner,
    }
    defaults.update(overrides)
    product = Product(**defaults)
    product.save()
    return product


class TestProductDefaults:
    @freeze_time("2026-05-04 10:30:00")
    def test_lifecycle_dates_at_creation(self, user):
        product = _make_product(user)
        assert product.date_added == NOW
        assert product.date_published is None
        assert product.date_inactive is None
        assert product.date_modified is None

    def test_image_and_subscribers_empty(self, user):
        product = _make_product(user)
        product.refresh_from_db()
        assert product.image is None
        assert product.subscribers == []
        assert product.is_published is False

    def test_str(self, user):
        assert str(_make_product(user)) == "00012345678905 - Frozen Peas"

    def test_is_owned_by(self, user, other_user):
        product = _make_product(user)
        assert product.is_owned_by(user.id)
        assert not product.is_owned_by(other_user.id)


class TestProductConstraints:
    def test_gtin_unique(self, user):
        _make_product(user)
        with pytest.raises(IntegrityError), transaction.atomic():
            _make_product(user, name="Copy")

    def test_inverted_temp_range_rejected_by_database(self, user):
        with pytest.raises(IntegrityError), transaction.atomic():
            _make_product(user, min_temp=Decimal("5"), max_temp=Decimal("-5"))

    def test_open_temp_range_allowed(self, user):
        product = _make_product(user, min_temp=Decimal("-18"))
        assert product.max_temp is None


class TestSetSubscribers:
    def test_non_empty_publishes(self):
        product = Product()
        product.set_subscribers([1, 2], NOW)
        assert product.subscribers == [1, 2]
        assert product.date_published == NOW

    def test_duplicates_removed_in_order(self):
        product = Product()
        product.set_subscribers([3, 1, 3, 2, 1], NOW)
        assert product.subscribers == [3, 1, 2]

    @pytest.mark.parametrize("subscribers", [[], None])
    def test_empty_or_none_unpublishes(self, subscribers):
        product = Product(subscribers=[1], date_published=NOW)
        product.set_subscribers(subscribers, NOW)
        assert product.subscribers == []
        assert product.date_published is None


class TestSetInactive:
    def test_epoch_clears(self):
        product = Product(date_inactive=NOW)
        product.set_inactive(EPOCH)
        assert product.date_inactive is None

    def test_none_clears(self):
        product = Product(date_inactive=NOW)
        product.set_inactive(None)
        assert product.date_inactive is None

    def test_other_value_stored_verbatim(self):
        product = Product()
        value = datetime(2027, 1, 1, tzinfo=timezone.utc)
        product.set_inactive(value)
        assert product.date_inactive == value
