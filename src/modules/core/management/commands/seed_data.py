from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.accounts.models import UserRole
from modules.orders.constants import DeliveryMethod, OrderStatus, PaymentMethod
from modules.orders.dtos import (
    ContactInfoDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    ShippingInfoDTO,
)
from modules.orders.exceptions import InsufficientStock
from modules.orders.notifications import IOrderNotifier
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product, ProductImage
from modules.products.repositories.django_repository import ProductDjangoRepository

# Paths walked by seeded orders after creation.
STATUS_PATHS = [
    [],
    [OrderStatus.PAID],
    [OrderStatus.PAID, OrderStatus.PROCESSING],
    [OrderStatus.PAID, OrderStatus.PROCESSING, OrderStatus.SHIPPED],
    [OrderStatus.PAID, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED],
    [OrderStatus.CANCELLED],
]

REGIONS = ["Sindh", "Punjab", "Balochistan", "Khyber Pakhtunkhwa", "Gilgit-Baltistan"]


class _NoopNotifier(IOrderNotifier):
    """Seeding must not send e-mails."""

    def order_confirmation(self, order) -> None:
        pass

    def order_status_changed(self, order) -> None:
        pass


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=30)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        products = self._seed_products()
        orders_created = self._seed_orders(users, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> list:
        User = get_user_model()
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser(
                "admin",
                email="admin@nutriwell.pk",
                password="admin123",
                role=UserRole.ADMIN,
            )
        customers = []
        for username, first_name in [("sara", "Sara"), ("ali", "Ali"), ("hina", "Hina")]:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username,
                    email=f"{username}@nutriwell.pk",
                    password=f"{username}123",
                    first_name=first_name,
                    role=UserRole.CUSTOMER,
                )
            customers.append(user)
        return customers

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("Whey Protein 2lb", "Optimum", Decimal("8500.00")),
            ("Creatine Monohydrate", "MuscleTech", Decimal("4200.00")),
            ("Multivitamin 60 tabs", "Centrum", Decimal("2100.00")),
            ("Omega-3 Fish Oil", "Nature Made", Decimal("2600.00")),
            ("Vitamin D3 5000 IU", "NOW Foods", Decimal("1800.00")),
            ("Peanut Butter 1kg", "Dr. Nuts", Decimal("1250.00")),
            ("Oats 2kg", "Quaker", Decimal("1100.00")),
            ("Green Tea 100 bags", "Lipton", Decimal("650.00")),
            ("BCAA 30 servings", "Scivation", Decimal("5400.00")),
            ("Magnesium Glycinate", "Doctor's Best", Decimal("2900.00")),
        ]
        for index, (name, brand, price) in enumerate(catalog, start=1):
            product, created = Product.objects.get_or_create(
                name=name,
                defaults={
                    "brand": brand,
                    "description": f"{name} by {brand}.",
                    "price": price,
                    "quantity": random.randint(20, 200),
                    "is_active": True,
                },
            )
            if created:
                ProductImage.objects.create(
                    product=product,
                    url=f"https://cdn.nutriwell.pk/products/{index}.jpg",
                    alt_text=name,
                    is_primary=True,
                )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, customers: list, products: list[Product], count: int) -> int:
        """Place orders through ``OrderService`` so stock stays consistent."""
        self.stdout.write("Creating orders...")
        if not customers or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no users/products)."))
            return 0

        service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            notifier=_NoopNotifier(),
        )
        created = 0
        for _ in range(count):
            user = random.choice(customers)
            picked = random.sample(products, k=random.randint(1, 3))
            delivery = random.choice([DeliveryMethod.DELIVERY, DeliveryMethod.STORE_PICKUP])
            dto = CreateOrderDTO(
                user_id=user.id,
                items=[
                    CreateOrderItemDTO(product_id=p.id, quantity=random.randint(1, 3))
                    for p in picked
                ],
                contact_info=ContactInfoDTO(
                    first_name=user.first_name,
                    last_name="",
                    phone="+923001234567",
                    email=user.email,
                ),
                delivery_method=delivery,
                shipping_info=(
                    ShippingInfoDTO(
                        country="Pakistan",
                        region=random.choice(REGIONS),
                        address="House 12, Street 4",
                    )
                    if delivery == DeliveryMethod.DELIVERY
                    else None
                ),
                payment_method=random.choice(list(PaymentMethod)),
            )
            try:
                order = service.create_order(dto)
            except InsufficientStock:
                continue

            for new_status in random.choice(STATUS_PATHS):
                service.update_status(order.id, new_status)
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
