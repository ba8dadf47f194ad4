"""Unit tests for UserDjangoRepository, including Ownership Index maintenance."""

from __future__ import annotations

import pytest

from modules.users.models import User
from modules.users.repositories.django_repository import UserDjangoRepository
from modules.users.repositories.interfaces import IUserRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return UserDjangoRepository()


class TestCrud:
    def test_is_instance_of_interface(self, repo):
        assert isinstance(repo, IUserRepository)

    def test_get_by_id(self, repo, user):
        assert repo.get_by_id(user.id) == user
        assert repo.get_by_id(str(user.id)) == user

    @pytest.mark.parametrize("bad_id", [999999, "abc", None])
    def test_get_by_id_missing_or_invalid(self, repo, bad_id):
        assert repo.get_by_id(bad_id) is None

    def test_get_by_email_case_insensitive(self, repo, user):
        assert repo.get_by_email("OWNER@example.com") == user

    def test_create_user(self, repo):
        user = repo.create_user(
            email="new@example.com", password="secret1", name="New", company="ACME"
        )
        assert user.id is not None
        assert user.check_password("secret1")

    def test_list_with_filters(self, repo, user, other_user):
        assert repo.list({"company__icontains": "cold"}) == [user]
        assert len(repo.list()) == 2

    def test_delete(self, repo, user):
        assert repo.delete(user.id) is True
        assert repo.delete(user.id) is False


class TestOwnershipIndex:
    def test_add_owned_product_persists(self, repo, user):
        repo.add_owned_product(user.id, 10)
        repo.add_owned_product(user.id, 11)
        repo.add_owned_product(user.id, 10)

        user.refresh_from_db()
        assert user.products == [10, 11]

    def test_remove_owned_product_persists(self, repo, user):
        User.objects.filter(id=user.id).update(products=[10, 11, 12])

        repo.remove_owned_product(user.id, 11)

        user.refresh_from_db()
        assert user.products == [10, 12]

    def test_remove_missing_entry_leaves_index(self, repo, user):
        User.objects.filter(id=user.id).update(products=[10])

        assert repo.remove_owned_product(user.id, 99) is not None

        user.refresh_from_db()
        assert user.products == [10]

    def test_unknown_user_returns_none(self, repo):
        assert repo.add_owned_product(999999, 1) is None
        assert repo.remove_owned_product(999999, 1) is None
