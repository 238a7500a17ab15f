from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal
from typing import Iterable

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from modules.customers.models import Customer
from modules.orders.constants import DeliveryOption, DeliveryStatus, OrderStatus
from modules.orders.models import Order, OrderItem
from modules.payments.constants import PaymentMethod, PaymentStatus
from modules.payments.models import Payment
from modules.products.models import Product, ProductStatus

DRIVERS = [
    ("ali", "Ali", "Hassan"),
    ("omar", "Omar", "Saleh"),
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders",
            type=int,
            default=40,
            help="Number of orders to create (default: 40).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        customers = self._seed_customers()
        products = self._seed_products()
        orders_created, payments_created = self._seed_orders(
            customers, products, options["orders"]
        )

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"customers={len(customers)}, "
                f"products={len(products)}, "
                f"orders={orders_created}, "
                f"payments={payments_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="manager").exists():
            User.objects.create_user("manager", password="manager123", is_staff=True)
            created += 1

        delivery_group, _ = Group.objects.get_or_create(name="delivery")
        for username, first_name, last_name in DRIVERS:
            if User.objects.filter(username=username).exists():
                continue
            user = User.objects.create_user(
                username,
                password=f"{username}123",
                first_name=first_name,
                last_name=last_name,
            )
            user.groups.add(delivery_group)
            created += 1
        return created

    def _seed_customers(self) -> list[Customer]:
        self.stdout.write("Creating customers...")
        customers: list[Customer] = []
        seed_customers = [
            ("Ahmed Al-Harbi", "+966 50 123 4567", "King Fahd Rd, Riyadh"),
            ("Sara Al-Qahtani", "+966 55 234 5678", "Olaya St, Riyadh"),
            ("Khalid Al-Otaibi", "+966 54 345 6789", "Tahlia St, Jeddah"),
            ("Noura Al-Shehri", "+966 56 456 7890", "Prince Sultan Rd, Jeddah"),
            ("Fahad Al-Dosari", "+966 53 567 8901", "Corniche Rd, Dammam"),
            ("Layla Al-Mutairi", "+966 59 678 9012", "Al Malaz, Riyadh"),
            ("Yousef Al-Zahrani", "+966 58 789 0123", "Al Rawdah, Jeddah"),
            ("Maha Al-Ghamdi", "+966 57 890 1234", "Al Khobar Corniche"),
        ]
        for name, phone, address in seed_customers:
            customer, _ = Customer.objects.get_or_create(
                name=name,
                defaults={"phone": phone, "address": address, "is_active": True},
            )
            customers.append(customer)
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("شاورما دجاج", "Chicken Shawarma", Decimal("18.00")),
            ("شاورما لحم", "Beef Shawarma", Decimal("22.00")),
            ("كبسة دجاج", "Chicken Kabsa", Decimal("35.00")),
            ("مندي لحم", "Lamb Mandi", Decimal("55.00")),
            ("فلافل", "Falafel Plate", Decimal("12.00")),
            ("حمص", "Hummus", Decimal("10.00")),
            ("عصير برتقال", "Orange Juice", Decimal("9.50")),
            ("كنافة", "Kunafa", Decimal("25.00")),
        ]
        for name, name_en, price in catalog:
            product, _ = Product.objects.get_or_create(
                name_en=name_en,
                defaults={
                    "name": name,
                    "price": price,
                    "status": ProductStatus.ACTIVE,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(
        self,
        customers: Iterable[Customer],
        products: list[Product],
        count: int,
    ) -> tuple[int, int]:
        self.stdout.write("Creating orders...")
        customers_list = list(customers)
        if not customers_list or not products:
            self.stdout.write(
                self.style.WARNING("Skipping orders (no customers/products).")
            )
            return 0, 0

        orders_created = 0
        payments_created = 0
        now = timezone.now()
        stages = ["unclaimed", "delivering", "delivered", "pickup"]
        weights = [0.35, 0.2, 0.3, 0.15]

        for i in range(count):
            customer = random.choice(customers_list)
            stage = random.choices(stages, weights=weights, k=1)[0]
            order, created = Order.objects.get_or_create(
                notes=f"Seed order {i + 1}",
                defaults={
                    "customer": customer,
                    "delivery_option": (
                        DeliveryOption.PICKUP
                        if stage == "pickup"
                        else DeliveryOption.DELIVERY
                    ),
                    "delivery_address": customer.address,
                    "customer_phone": customer.phone,
                },
            )
            if not created:
                continue

            total = Decimal("0.00")
            for product in random.sample(products, k=random.randint(1, 4)):
                item = OrderItem.objects.create(
                    order=order,
                    product=product,
                    quantity=random.randint(1, 3),
                    unit_price=product.price,
                )
                total += item.subtotal

            created_at = now - timedelta(hours=random.randint(0, 24 * 14))
            fields = {"total": total, "created_at": created_at}
            if stage in ("delivering", "delivered"):
                driver = random.choice(DRIVERS)
                fields.update(
                    assigned_driver=f"{driver[1]} {driver[2]}",
                    delivery_status=DeliveryStatus.DELIVERING,
                    delivery_start_time=created_at + timedelta(minutes=15),
                )
            if stage == "delivered":
                end = fields["delivery_start_time"] + timedelta(
                    minutes=random.randint(10, 70)
                )
                payment = Payment.objects.create(
                    order=order,
                    amount=total,
                    collected_by=fields["assigned_driver"],
                    method=PaymentMethod.CASH,
                    status=PaymentStatus.COMPLETED,
                    collected_at=end,
                    paid_at=end,
                    customer_name=customer.name,
                    order_total=total,
                )
                payments_created += 1
                fields.update(
                    status=OrderStatus.DELIVERED,
                    delivery_status=DeliveryStatus.DELIVERED,
                    delivery_end_time=end,
                    is_delivered=True,
                    is_paid=True,
                    paid_at=end,
                    payment_id=payment.pk,
                )
            Order.objects.filter(pk=order.pk).update(**fields)
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created, payments_created
