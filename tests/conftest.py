import uuid

import mongomock
import pytest
from fastapi.testclient import TestClient

import addresses
import catalog
import config
import database
from main import app
from payloads import AddressRequest, CategoryRequest, ProductRequest
from security import create_token
from seed import init_data


@pytest.fixture
def db(monkeypatch, tmp_path):
    test_db = mongomock.MongoClient()[f"test_{uuid.uuid4().hex}"]
    monkeypatch.setattr(database, "db", test_db)
    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(config, "IMAGE_DIR", str(tmp_path / "images"))
    return test_db


@pytest.fixture
def seeded_db(db):
    init_data(db)
    return db


@pytest.fixture
def client(db):
    # startup seeds roles and demo users into the patched database
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin(seeded_db):
    return seeded_db["user"].find_one({"username": "admin"})


@pytest.fixture
def shopper(seeded_db):
    return seeded_db["user"].find_one({"username": "user1"})


def bearer(username, roles):
    return {"Authorization": f"Bearer {create_token(username, roles)}"}


@pytest.fixture
def admin_headers(client):
    return bearer("admin", ["ROLE_USER", "ROLE_SELLER", "ROLE_ADMIN"])


@pytest.fixture
def user_headers(client):
    return bearer("user1", ["ROLE_USER"])


@pytest.fixture
def category(seeded_db):
    return catalog.create_category(seeded_db, CategoryRequest(category_name="Electronics"))


@pytest.fixture
def laptop(seeded_db, category, admin):
    return catalog.add_product(
        seeded_db, category.category_id,
        ProductRequest(product_name="Laptop Pro", description="A fast laptop", quantity=10,
                       price=1000.0, discount=10.0),
        admin,
    )


@pytest.fixture
def phone(seeded_db, category, admin):
    return catalog.add_product(
        seeded_db, category.category_id,
        ProductRequest(product_name="Phone Max", description="A large phone", quantity=3,
                       price=500.0, discount=20.0),
        admin,
    )


@pytest.fixture
def address(seeded_db, shopper):
    return addresses.create_address(
        seeded_db,
        AddressRequest(country="India", city="Pune", street="MG Road", pin_code="411001",
                       building_name="Sky Towers", state="MH"),
        shopper,
    )
