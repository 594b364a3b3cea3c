import pytest
from pymongo.errors import DuplicateKeyError

from database import USERS
from repositories import AccountRepository, CatalogRepository, OrderRepository, enriched_orders_pipeline
from schemas import AccountProfile, Order
from services import AccountService, CatalogService, OrderDelivered, OrderNotFound, OrderService


class RacingAccountRepository(AccountRepository):
    """Misses the existing account on the first lookup, as a concurrent registration would."""

    def __init__(self, database):
        super().__init__(database)
        self.lookups = 0

    def find_by_email(self, email):
        self.lookups += 1
        if self.lookups == 1:
            return None
        return super().find_by_email(email)


def test_email_index_is_unique(database):
    accounts = AccountRepository(database)
    accounts.ensure_indexes()
    accounts.insert({"email": "bea@example.com", "role": "customer"})
    with pytest.raises(DuplicateKeyError):
        accounts.insert({"email": "bea@example.com", "role": "customer"})


def test_upsert_race_returns_existing_account(database):
    accounts = RacingAccountRepository(database)
    accounts.ensure_indexes()
    database[USERS].insert_one({"email": "bea@example.com", "role": "seller"})

    result = AccountService(accounts).upsert_account("bea@example.com", AccountProfile(name="Bea"))
    assert result["status"] == "exists"
    assert result["user"]["role"] == "seller"
    assert database[USERS].count_documents({}) == 1


def test_adjust_quantity_is_inverse(database, add_plant):
    pid = add_plant(quantity=6)
    catalog = CatalogService(CatalogRepository(database))
    catalog.adjust_quantity(pid, 5, "increase")
    assert catalog.get_item(pid)["quantity"] == 11
    catalog.adjust_quantity(pid, 5, "decrease")
    assert catalog.get_item(pid)["quantity"] == 6


def test_place_order_leaves_stock_alone(database, add_plant):
    pid = add_plant(quantity=10)
    orders = OrderService(OrderRepository(database))
    order = Order(
        userInfo={"email": "bea@example.com"},
        plantInfo={"plantId": str(pid), "totalQuantity": 4},
        seller="seller@example.com",
    )
    oid = orders.place_order(order)
    assert oid
    assert CatalogRepository(database).find_by_id(pid)["quantity"] == 10


def test_delete_order_errors(database, add_plant, add_order):
    orders = OrderService(OrderRepository(database))
    delivered = add_order(add_plant(), status="Delivered")
    with pytest.raises(OrderDelivered):
        orders.delete_order(delivered)

    orders.orders.delete(delivered)
    with pytest.raises(OrderNotFound):
        orders.delete_order(delivered)


def test_enriched_pipeline_shape():
    pipeline = enriched_orders_pipeline({"seller": "sam@example.com"}, {"name": "$plantDoc.name"})
    assert pipeline[0] == {"$match": {"seller": "sam@example.com"}}
    assert {"$unwind": "$plantDoc"} in pipeline
    assert pipeline[-1] == {"$project": {"plantDoc": 0}}


def test_seller_listing_drops_orders_for_deleted_plants(database, add_plant, add_order):
    kept = add_plant(name="Monstera")
    gone = add_plant(name="Fern")
    add_order(kept, seller="sam@example.com")
    add_order(gone, seller="sam@example.com")
    CatalogRepository(database).delete(gone)

    orders = OrderService(OrderRepository(database)).list_orders_for_seller("sam@example.com")
    assert [o["name"] for o in orders] == ["Monstera"]


def test_listing_drops_orders_with_malformed_plant_id(database, add_plant, add_order):
    add_order(add_plant(name="Monstera"))
    add_order("not-a-plant")

    orders = OrderService(OrderRepository(database)).list_orders_for_customer("buyer@example.com")
    assert [o["name"] for o in orders] == ["Monstera"]
