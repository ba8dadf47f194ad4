"""User model carrying the Ownership Index.

Business rules implemented:
- Email is unique and is the login identifier (``USERNAME_FIELD``).
- ``products`` is the Ownership Index: the ids of the products this user
  owns, as a JSON array.  It is mutated only by the product service, inside
  the same transaction as the product row it refers to.
- Removal from the index is by value, never by position.
"""

from __future__ import annotations

from typing import List

import structlog
from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.db import models
from django.utils import timezone

logger = structlog.get_logger(__name__)


class UserManager(BaseUserManager):
    """Manager creating users keyed by normalised email."""

    def create_user(self, email: str, password: str | None = None, **extra_fields) -> User:
        if not email:
            raise ValueError("Users must have an email address.")
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user


class User(AbstractBaseUser):
    """Catalog user (the Django ``AUTH_USER_MODEL``)."""

    email = models.EmailField(max_length=254, unique=True)
    name = models.CharField(max_length=255)
    company = models.CharField(max_length=255, blank=True, default="")
    created = models.DateTimeField(default=timezone.now, editable=False)
    products = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    class Meta:
        db_table = "users"
        ordering = ["-created"]

    # ------------------------------------------------------------------
    # Ownership Index
    # ------------------------------------------------------------------

    @property
    def owned_product_ids(self) -> List[int]:
        """Index entries as integers, in insertion order."""
        return [int(pid) for pid in (self.products or [])]

    def add_owned_product(self, product_id: int) -> bool:
        """Append ``product_id`` to the index; ``False`` if already present."""
        ids = self.owned_product_ids
        if product_id in ids:
            return False
        ids.append(product_id)
        self.products = ids
        return True

    def remove_owned_product(self, product_id: int) -> bool:
        """Drop every occurrence of ``product_id``; ``False`` if absent."""
        ids = self.owned_product_ids
        remaining = [pid for pid in ids if pid != product_id]
        if len(remaining) == len(ids):
            return False
        self.products = remaining
        return True

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"
