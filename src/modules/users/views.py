"""User API views.

Exposes the ``UserService`` via HTTP.  Signup is public and returns a
SimpleJWT token pair; everything else requires a valid bearer token.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework.mixins import ListModelMixin
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet
from rest_framework_simplejwt.tokens import RefreshToken

from modules.users.dtos import SignupDTO
from modules.users.exceptions import UserAlreadyExists, UserNotFound
from modules.users.filters import UserFilter
from modules.users.models import User
from modules.users.repositories.django_repository import UserDjangoRepository
from modules.users.serializers import UserSerializer
from modules.users.services import UserService


class UserViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for listing, retrieving and registering users.

    All ORM access goes through the service/repository layer.
    """

    filterset_class = UserFilter
    ordering_fields = ["created", "name", "email"]
    ordering = ["-created", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    queryset = User.objects.all()
    serializer_class = UserSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = UserService(repository=UserDjangoRepository())

    def get_queryset(self):
        return User.objects.all()

    def get_throttles(self):
        if self.action == "signup":
            self.throttle_scope = "signup"
        return super().get_throttles()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/users/{pk}/"""
        try:
            user = self._service.get_user(pk)
        except UserNotFound:
            return Response(
                {"detail": "User not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(UserSerializer(user).data)

    @action(
        detail=False,
        methods=["post"],
        url_path="signup",
        permission_classes=[AllowAny],
        authentication_classes=[],
    )
    def signup(self, request: Request) -> Response:
        """POST /api/v1/users/signup/"""
        data = request.data

        try:
            dto = SignupDTO(
                name=data.get("name", ""),
                email=data.get("email", ""),
                password=data.get("password", ""),
                company=data.get("company", "") or "",
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            user = self._service.signup(dto)
        except UserAlreadyExists as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )

        refresh = RefreshToken.for_user(user)
        return Response(
            {
                "message": "Signup successful!",
                "user": UserSerializer(user).data,
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            },
            status=status.HTTP_201_CREATED,
        )
