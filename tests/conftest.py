import pytest

from rest_framework.test import APIClient

from shared.domain.storage import BlobStoreError
from shared.infrastructure.storage import InMemoryBlobStore, get_blob_store


class FlakyBlobStore(InMemoryBlobStore):
    """In-memory store whose operations fail on demand.

    ``fail_on`` names operations (``put``, ``delete``, ``sign``) that
    always raise; ``failures`` holds how many times each remaining
    operation should fail before succeeding.
    """

    def __init__(self, fail_on=(), failures=None) -> None:
        super().__init__(bucket="flaky")
        self.fail_on = set(fail_on)
        self.failures = dict(failures or {})
        self.calls: list[tuple[str, str]] = []

    def _maybe_fail(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if operation in self.fail_on:
            raise BlobStoreError(operation, key, "simulated outage")
        if self.failures.get(operation, 0) > 0:
            self.failures[operation] -= 1
            raise BlobStoreError(operation, key, "simulated hiccup")

    def put(self, key, data, content_type) -> None:
        self._maybe_fail("put", key)
        super().put(key, data, content_type)

    def delete(self, key) -> None:
        self._maybe_fail("delete", key)
        super().delete(key)

    def signed_read_url(self, key, ttl) -> str:
        self._maybe_fail("sign", key)
        return super().signed_read_url(key, ttl)


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def blob_store():
    """The process-wide in-memory blob store, emptied for each test."""
    store = get_blob_store()
    store.clear()
    yield store
    store.clear()


@pytest.fixture()
def flaky_blob_store():
    return FlakyBlobStore


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def user():
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(
        email="owner@example.com",
        password="owner-pass-123",
        name="Olivia Owner",
        company="Cold Chain Foods",
    )


@pytest.fixture()
def other_user():
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(
        email="intruder@example.com",
        password="intruder-pass-123",
        name="Ivan Intruder",
    )


@pytest.fixture()
def auth_client(user):
    """APIClient force-authenticated as ``user``."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def other_client(other_user):
    """APIClient force-authenticated as ``other_user``."""
    client = APIClient()
    client.force_authenticate(user=other_user)
    return client
