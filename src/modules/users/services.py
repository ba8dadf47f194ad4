"""User service layer (Use Cases).

Registration and look-ups for catalog users.  The Ownership Index is
not touched here; it belongs to the product service's transactions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import IntegrityError, transaction

from modules.users.exceptions import UserAlreadyExists, UserNotFound

if TYPE_CHECKING:
    from modules.users.dtos import SignupDTO
    from modules.users.models import User
    from modules.users.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserService:
    """Application service for User use-cases.

    Receives an ``IUserRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IUserRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def signup(self, dto: SignupDTO) -> User:
        """Register a new user.

        Raises:
            UserAlreadyExists: if the email is already registered.
        """
        log = logger.bind(email=dto.email)

        if self._repo.get_by_email(dto.email):
            log.warning("user.duplicate_email")
            raise UserAlreadyExists("User with that email already exists.")

        try:
            with transaction.atomic():
                user = self._repo.create_user(
                    email=dto.email,
                    password=dto.password,
                    name=dto.name,
                    company=dto.company,
                )
        except IntegrityError as exc:
            log.warning("user.duplicate_email_race")
            raise UserAlreadyExists("User with that email already exists.") from exc

        log.info("user.signed_up", user_id=user.id)
        return user

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_users(self, filters: Optional[Dict[str, Any]] = None) -> List[User]:
        """Return a list of users, optionally filtered."""
        return self._repo.list(filters)

    def get_user(self, id: int) -> User:
        """Retrieve a single user by ID.

        Raises:
            UserNotFound: if the user does not exist.
        """
        user = self._repo.get_by_id(id)
        if not user:
            raise UserNotFound(f"User {id} not found.")
        return user
