from __future__ import annotations

from decimal import Decimal

from django.core.management.base import BaseCommand

from modules.products.dtos import CreateProductDTO, UpdateProductDTO
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService
from modules.users.models import User
from modules.users.repositories.django_repository import UserDjangoRepository
from shared.infrastructure.storage import get_blob_store

SEED_USERS = [
    ("Ana Souza", "ana@example.com", "Cold Chain Foods"),
    ("Bruno Lima", "bruno@example.com", "Lima Packaging"),
]

SEED_PRODUCTS = [
    # (owner email, gtin, name, description, category, temp range)
    (
        "ana@example.com",
        "00012345678905",
        "Frozen Peas 1kg",
        "Garden peas, flash frozen within hours of harvest.",
        "Frozen",
        (Decimal("-25.00"), Decimal("-18.00")),
    ),
    (
        "ana@example.com",
        "00012345678912",
        "Greek Yogurt 500g",
        "Strained whole-milk yogurt in a recyclable tub.",
        "Dairy",
        (Decimal("1.00"), Decimal("5.00")),
    ),
    (
        "bruno@example.com",
        "00098765432109",
        "Corrugated Box M",
        "Double-wall shipping box, 40x30x30 cm.",
        "Packaging",
        (None, None),
    ),
]


class Command(BaseCommand):
    help = "Seed database with catalog users and products for development."

    def handle(self, *args, **options):
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        products_created = self._seed_products()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"products={products_created}"
            )
        )

    def _seed_users(self) -> int:
        created = 0
        for name, email, company in SEED_USERS:
            if not User.objects.filter(email=email).exists():
                User.objects.create_user(
                    email=email, password="catalog123", name=name, company=company
                )
                created += 1
        return created

    def _seed_products(self) -> int:
        self.stdout.write("Creating products...")
        products = ProductDjangoRepository()
        service = ProductService(
            repository=products,
            user_repository=UserDjangoRepository(),
            blob_store=get_blob_store(),
        )
        created = 0
        for email, gtin, name, description, category, (low, high) in SEED_PRODUCTS:
            if products.get_by_gtin(gtin):
                continue
            owner = User.objects.get(email=email)
            dto = CreateProductDTO(
                gtin=gtin,
                name=name,
                description=description,
                category=category,
                temp_units="C" if low is not None else "",
                min_temp=low,
                max_temp=high,
            )
            service.create_product(owner.id, dto)
            created += 1

        # One published product so listings show both states.
        first = SEED_PRODUCTS[0]
        owner = User.objects.get(email=first[0])
        service.update_product(first[1], owner.id, UpdateProductDTO(subscribers=[owner.id]))
        return created
