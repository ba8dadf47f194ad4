"""Django ORM implementation of the User repository.

Satisfies ``IUserRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: methods return ``None``
instead of raising HTTP-level exceptions; the Service Layer decides
how to translate a missing entity into an API response.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.users.models import User
from modules.users.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    """Concrete User repository backed by Django ORM."""

    def get_by_id(self, id: int) -> Optional[User]:
        """Retrieve a user by primary key.

        Returns ``None`` for non-existent or non-numeric IDs.
        """
        try:
            return User.objects.filter(id=int(id)).first()
        except (TypeError, ValueError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[User]:
        """List users with optional Django ORM look-ups.

        Examples of valid filters::

            {"company__icontains": "acme"}
            {"is_active": True}
        """
        queryset = User.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: User) -> User:
        """Persist (create or update) a user."""
        is_new = entity._state.adding
        entity.save()
        logger.info("user.saved", user_id=entity.id, is_new=is_new)
        return entity

    @transaction.atomic
    def delete(self, id: int) -> bool:
        """Hard-delete a user by ID."""
        user = self.get_by_id(id)
        if not user:
            return False
        user.delete()
        logger.info("user.deleted", user_id=id)
        return True

    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email address (case-insensitive)."""
        return User.objects.filter(email__iexact=email.strip()).first()

    @transaction.atomic
    def create_user(
        self, email: str, password: str, name: str, company: str = ""
    ) -> User:
        user = User.objects.create_user(
            email=email,
            password=password,
            name=name,
            company=company,
        )
        logger.info("user.saved", user_id=user.id, is_new=True)
        return user

    def get_for_update(self, id: int) -> Optional[User]:
        try:
            return User.objects.select_for_update().filter(id=int(id)).first()
        except (TypeError, ValueError):
            return None

    # ------------------------------------------------------------------
    # Ownership Index
    # ------------------------------------------------------------------

    def add_owned_product(self, user_id: int, product_id: int) -> Optional[User]:
        user = self.get_for_update(user_id)
        if not user:
            return None
        if user.add_owned_product(product_id):
            user.save(update_fields=["products"])
            logger.info(
                "user.ownership_index_appended",
                user_id=user_id,
                product_id=product_id,
                size=len(user.products),
            )
        return user

    def remove_owned_product(self, user_id: int, product_id: int) -> Optional[User]:
        user = self.get_for_update(user_id)
        if not user:
            return None
        if user.remove_owned_product(product_id):
            user.save(update_fields=["products"])
            logger.info(
                "user.ownership_index_removed",
                user_id=user_id,
                product_id=product_id,
                size=len(user.products),
            )
        else:
            logger.warning(
                "user.ownership_index_entry_missing",
                user_id=user_id,
                product_id=product_id,
            )
        return user
