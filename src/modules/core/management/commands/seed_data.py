from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from modules.accounts.constants import Role
from modules.catalog.models import Category, Product
from modules.delivery.models import DeliveryRegion, DeliverySubregion

SEED_USERS = [
    # email, name, password, role, phone
    ("admin@romana-natural-products.org", "Romana Foods Admin", "admin123", Role.ADMIN, "+255767266355"),
    ("customer@example.com", "Demo Customer", "password", Role.CUSTOMER, "+255123456789"),
    ("delivery@example.com", "Demo Rider", "delivery123", Role.DELIVERY, "+255700000001"),
]

SEED_CATEGORIES = [
    ("Organic Juices", "organic-juices", "Fresh-pressed organic juices packed with vitamins and minerals"),
    ("Health Foods", "health-foods", "Nutritious organic foods for a healthy lifestyle"),
    ("Bakery", "bakery", "Fresh baked goods made with organic ingredients"),
    ("General Goods", "general-goods", "Everyday organic products for your home"),
]

SEED_PRODUCTS = [
    # name, category slug, price, inventory, featured, weight, unit
    ("Premium Orange Juice", "organic-juices", "8500", 50, True, "0.5", "bottle (500ml)"),
    ("Mixed Fruit Juice", "organic-juices", "9500", 30, True, "0.5", "bottle (500ml)"),
    ("Organic Energy Blend", "health-foods", "15000", 25, True, "0.25", "pack (250g)"),
    ("Antioxidant Superfood Mix", "health-foods", "18000", 20, False, "0.3", "pack (300g)"),
    ("Tropical Fruit Smoothie", "organic-juices", "7500", 35, False, "0.4", "bottle (400ml)"),
    ("Wellness Support Pack", "health-foods", "22000", 8, False, "0.5", "pack"),
]

SEED_REGIONS = {
    "Dar es Salaam": [
        ("Ilala District", 2000),
        ("Kinondoni District", 2500),
        ("Temeke District", 3000),
        ("Ubungo District", 2500),
        ("Kigamboni District", 4000),
    ],
    "Arusha": [
        ("Arusha City Center", 3000),
        ("Tengeru", 4000),
        ("Usa River", 5000),
        ("Njiro", 3500),
        ("Kijenge", 3500),
    ],
    "Mwanza": [
        ("Nyamagana District", 4000),
        ("Ilemela District", 4500),
        ("Buzuruga", 5000),
        ("Pamba", 5500),
    ],
    "Dodoma": [("Dodoma Urban", 3500), ("Chamwino", 4500), ("Bahi", 6000)],
    "Mbeya": [("Mbeya City", 4000), ("Iyunga", 5000), ("Ruanda", 5500)],
    "Tanga": [("Tanga City", 3500), ("Muheza", 4500), ("Pangani", 5000)],
    "Morogoro": [("Morogoro Municipal", 3500), ("Kilosa", 5000), ("Mvomero", 4500)],
}


class Command(BaseCommand):
    help = "Seed database with development users, catalog and delivery regions."

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        categories = self._seed_categories()
        products_created = self._seed_products(categories)
        subregions_created = self._seed_regions()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"categories={len(categories)}, "
                f"products={products_created}, "
                f"subregions={subregions_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        for email, name, password, role, phone in SEED_USERS:
            if User.objects.filter(email=email).exists():
                continue
            first_name, _, last_name = name.partition(" ")
            user = User(
                username=email,
                email=email,
                first_name=first_name,
                last_name=last_name,
                role=role,
                phone=phone,
                is_staff=role == Role.ADMIN,
            )
            user.set_password(password)
            user.save()
            created += 1
        return created

    def _seed_categories(self) -> dict[str, Category]:
        self.stdout.write("Creating categories...")
        categories: dict[str, Category] = {}
        for sort_order, (name, slug, description) in enumerate(SEED_CATEGORIES, start=1):
            category, _ = Category.objects.get_or_create(
                slug=slug,
                defaults={
                    "name": name,
                    "description": description,
                    "sort_order": sort_order,
                },
            )
            categories[slug] = category
        self.stdout.write(self.style.SUCCESS("Creating categories... Done!"))
        return categories

    def _seed_products(self, categories: dict[str, Category]) -> int:
        self.stdout.write("Creating products...")
        created = 0
        for name, category_slug, price, inventory, featured, weight, unit in SEED_PRODUCTS:
            _, was_created = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": name,
                    "price": Decimal(price),
                    "category": categories[category_slug],
                    "inventory": inventory,
                    "is_featured": featured,
                    "weight": Decimal(weight),
                    "unit": unit,
                },
            )
            created += int(was_created)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return created

    def _seed_regions(self) -> int:
        self.stdout.write("Creating delivery regions...")
        created = 0
        for sort_order, (region_name, subregions) in enumerate(SEED_REGIONS.items()):
            region, _ = DeliveryRegion.objects.get_or_create(
                name=region_name, defaults={"sort_order": sort_order}
            )
            for index, (name, fee) in enumerate(subregions):
                _, was_created = DeliverySubregion.objects.get_or_create(
                    region=region,
                    name=name,
                    defaults={"delivery_fee": Decimal(fee), "sort_order": index},
                )
                created += int(was_created)
        self.stdout.write(self.style.SUCCESS("Creating delivery regions... Done!"))
        return created
