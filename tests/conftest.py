"""Shared fixtures for the storefront tests."""

import os

# Keep the module-level app in storefront.main from seeding a large catalog
os.environ.setdefault("SEED_PRODUCTS", "0")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from storefront.catalog.schemas import ProductRecord
from storefront.catalog.store import CatalogStore
from storefront.config import Settings
from storefront.main import create_app

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_product(product_id, name, description="", **fields):
    """Build a ``ProductRecord`` with sensible defaults for tests."""
    data = {
        "id": str(product_id),
        "name": name,
        "description": description,
        "price": 10.0,
        "category": "Misc",
        "brand": "",
        "stock": 0,
        "rating": 0.0,
        "tags": [],
        "created_at": BASE_TIME + timedelta(minutes=int(product_id) if str(product_id).isdigit() else 0),
        "cost_price": 7.0,
        "supplier": "Acme Wholesale",
        "internal_notes": "secret margin",
        "admin_only": False,
    }
    data.update(fields)
    return ProductRecord(**data)


@pytest.fixture
def sample_products():
    return [
        make_product(1, "Red Shoes", "Comfortable running shoes", price=100.0,
                     category="Clothing", brand="BrandA", stock=5),
        make_product(2, "Red Hat", "Warm winter hat", price=200.0,
                     category="Clothing", brand="BrandB", stock=3),
        make_product(3, "Blue Kettle", "Electric kettle for the kitchen", price=150.0,
                     category="Home", brand="BrandA", stock=5),
        make_product(4, "Desk Lamp", "LED lamp with dimmer", price=75.0,
                     category="Home", brand="BrandC", stock=1),
        make_product(5, "Novel", "A gripping mystery novel", price=300.0,
                     category="Books", brand="BrandD", stock=9),
    ]


@pytest.fixture
def catalog(sample_products):
    return CatalogStore(sample_products)


@pytest.fixture
def settings():
    return Settings(
        jwt_secret="test-secret",
        seed_products=0,
        cache_ttl_seconds=60,
        log_level="WARNING",
    )


@pytest.fixture
def app(settings, catalog):
    return create_app(settings=settings, catalog=catalog)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def _login(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return _login(client, "admin@example.com", "admin123")


@pytest.fixture
def user_headers(client):
    return _login(client, "user@example.com", "user123")
