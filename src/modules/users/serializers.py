"""User DRF serializers for API output.

Credentials (``password``, ``last_login``) are never rendered.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.users.models import User


class UserSerializer(serializers.ModelSerializer):
    """Read-only serializer for the User resource."""

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "company",
            "created",
            "products",
        ]
        read_only_fields = fields
