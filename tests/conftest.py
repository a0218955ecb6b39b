from datetime import datetime, timezone

import pytest

from catalog_search.models import MenuItem, Office, Product, Service, Shop
from catalog_search.snapshot import CatalogSnapshot
from catalog_search.storage import StaticSnapshotProvider


def make_shop(shop_id: str, number: int, name: str, **fields) -> Shop:
    return Shop(
        id=shop_id,
        reference_id=f"SHP-MAN-{number:03d}",
        name=name,
        district=fields.pop("district", "Mandsaur"),
        **fields,
    )


def make_product(product_id: str, number: int, name: str, **fields) -> Product:
    return Product(
        id=product_id,
        reference_id=f"PRD-MAN-{number:03d}",
        name=name,
        district=fields.pop("district", "Mandsaur"),
        **fields,
    )


def make_service(service_id: str, number: int, name: str, **fields) -> Service:
    return Service(
        id=service_id,
        reference_id=f"SRV-MAN-{number:03d}",
        name=name,
        district=fields.pop("district", "Mandsaur"),
        **fields,
    )


@pytest.fixture
def catalog_entities():
    return [
        make_shop(
            "s1",
            1,
            "Rice Palace",
            category="Grocery",
            tags=("grains", "wholesale"),
            address="Station Road, Mandsaur",
            owner_name="Ramesh Patel",
            location={"lat": 24.0734, "lng": 75.0679},
            rating=4.5,
        ),
        make_shop(
            "s2",
            2,
            "Sharma General Store",
            category="Grocery",
            tags=("daily needs",),
            address="Gandhi Chowk, Mandsaur",
            location={"lat": 24.0900, "lng": 75.0800},
            rating=4.1,
        ),
        make_product(
            "p1",
            1,
            "Basmati Rice Premium",
            localized_name="बासमती चावल",
            category="Grains",
            brand="India Gate",
            shop_id="s1",
            price=120,
            stock=10,
            rating=4.7,
            created_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
        ),
        make_product(
            "p2",
            2,
            "Toor Dal",
            localized_name="तूर दाल",
            category="Pulses",
            brand="Tata Sampann",
            shop_id="s2",
            price=150,
            stock=5,
            rating=4.0,
            created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        ),
        make_product(
            "p3",
            3,
            "Brown Rice",
            category="Grains",
            shop_id="s2",
            price=90,
            stock=0,
        ),
        MenuItem(
            id="m1",
            reference_id="MNU-MAN-001",
            name="Veg Biryani",
            category="Main Course",
            description="Fragrant basmati rice with vegetables",
            district="Mandsaur",
            shop_id="s1",
            price=180,
            is_veg=True,
        ),
        make_service(
            "sv1",
            1,
            "Haircut",
            category="Salon",
            highlights=("home visit",),
            price_range={"min": 100, "max": 300},
            location={"lat": 24.1000, "lng": 75.1000},
        ),
        Office(
            id="o1",
            reference_id="OFF-MAN-001",
            name="Municipal Office",
            category="Government",
            services=("birth certificate", "water connection"),
            address="Gandhi Chowk, Mandsaur",
            district="Mandsaur",
        ),
    ]


@pytest.fixture
def snapshot(catalog_entities) -> CatalogSnapshot:
    return CatalogSnapshot.build(catalog_entities, version="test-v1")


@pytest.fixture
def provider(snapshot) -> StaticSnapshotProvider:
    return StaticSnapshotProvider(snapshot)
