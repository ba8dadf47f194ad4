"""User repository interface.

Extends ``IRepository[User]`` with the email look-up used for unique
registration and with the Ownership Index mutations used by the product
service.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.users.models import User


class IUserRepository(IRepository["User"]):
    """Repository contract for the User aggregate."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email address."""

    @abstractmethod
    def create_user(
        self, email: str, password: str, name: str, company: str = ""
    ) -> User:
        """Create a user with a hashed password."""

    @abstractmethod
    def get_for_update(self, id: int) -> Optional[User]:
        """Retrieve a user with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def add_owned_product(self, user_id: int, product_id: int) -> Optional[User]:
        """Append a product id to the user's Ownership Index.

        Must run inside the caller's transaction.  Returns ``None`` when the
        user does not exist.
        """

    @abstractmethod
    def remove_owned_product(self, user_id: int, product_id: int) -> Optional[User]:
        """Remove a product id from the user's Ownership Index by value.

        Must run inside the caller's transaction.  Returns ``None`` when the
        user does not exist.
        """
