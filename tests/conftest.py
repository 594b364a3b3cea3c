import mongomock
import pytest
from bson import ObjectId
from bson.errors import InvalidId
from fastapi.testclient import TestClient
from mongomock import aggregate

from auth import create_token
from database import ORDERS, PLANTS, USERS, get_database
from main import app


@pytest.fixture(autouse=True)
def object_id_conversion(monkeypatch):
    """mongomock lists $convert but cannot convert to objectId; the plant join needs it."""
    original = aggregate._Parser._handle_type_convertion_operator

    def handle(self, operator, values):
        if operator == "$convert" and values.get("to") == "objectId":
            try:
                value = self.parse(values["input"])
            except KeyError:
                value = None
            if value is None:
                return values.get("onNull")
            try:
                return ObjectId(value)
            except (InvalidId, TypeError):
                return values.get("onError")
        return original(self, operator, values)

    monkeypatch.setattr(aggregate._Parser, "_handle_type_convertion_operator", handle)


@pytest.fixture
def database():
    return mongomock.MongoClient().plantbay


@pytest.fixture
def client(database):
    app.dependency_overrides[get_database] = lambda: database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def add_account(database):
    def add(email, role="customer", **fields):
        database[USERS].insert_one({"email": email, "role": role, **fields})
        return email
    return add


@pytest.fixture
def login(client):
    def sign_in(email):
        client.cookies.set("token", create_token({"email": email}))
        return client
    return sign_in


@pytest.fixture
def add_plant(database):
    def add(**fields):
        doc = {
            "name": "Monstera",
            "category": "Indoor",
            "price": 25.0,
            "quantity": 10,
            "image": "https://img.example.com/monstera.jpg",
            "seller": {"email": "seller@example.com", "name": "Sam"},
        }
        doc.update(fields)
        return database[PLANTS].insert_one(doc).inserted_id
    return add


@pytest.fixture
def add_order(database):
    def add(plant_id, buyer="buyer@example.com", seller="seller@example.com", status="Pending", quantity=2):
        doc = {
            "userInfo": {"email": buyer, "name": "Bea"},
            "plantInfo": {"plantId": str(plant_id), "totalQuantity": quantity, "price": 50.0},
            "seller": seller,
            "status": status,
        }
        return database[ORDERS].insert_one(doc).inserted_id
    return add
