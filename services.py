import logging
from typing import List

from bson import ObjectId
from fastapi import Depends
from pymongo.errors import DuplicateKeyError

from repositories import (
    AccountRepository,
    CatalogRepository,
    OrderRepository,
    get_account_repository,
    get_catalog_repository,
    get_order_repository,
)
from schemas import DELIVERED, Account, AccountProfile, Order, Plant

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    pass


class AccountNotFound(ServiceError):
    pass


class PlantNotFound(ServiceError):
    pass


class OrderNotFound(ServiceError):
    pass


class OrderDelivered(ServiceError):
    pass


# -----------------------------
# Accounts
# -----------------------------

class AccountService:
    def __init__(self, accounts: AccountRepository):
        self.accounts = accounts

    def upsert_account(self, email: str, profile: AccountProfile) -> dict:
        """Register ``email`` unless it already exists.

        Returns ``{"status": "exists", "user": <doc>}`` with the stored
        document untouched, or ``{"acknowledged": True, "insertedId": <id>}``.
        """
        existing = self.accounts.find_by_email(email)
        if existing:
            return {"status": "exists", "user": existing}
        fields = {k: v for k, v in profile.model_dump().items() if k not in ("email", "role", "status")}
        account = Account(**fields, email=email, role="customer")
        try:
            uid = self.accounts.insert(account.model_dump(exclude_none=True))
        except DuplicateKeyError:
            # Lost the race against a concurrent registration
            return {"status": "exists", "user": self.accounts.find_by_email(email)}
        logger.info("Registered account %s", email)
        return {"acknowledged": True, "insertedId": uid}

    def list_accounts_except(self, email: str) -> List[dict]:
        return self.accounts.list_except(email)

    def set_role(self, email: str, role: str) -> dict:
        logger.info("Setting role of %s to %s", email, role)
        return self.accounts.set_fields(email, {"role": role, "status": "Verified"})

    def request_role_change(self, email: str) -> dict:
        account = self.accounts.find_by_email(email)
        if not account or account.get("status") == "Requested":
            raise AccountNotFound(email)
        return self.accounts.set_fields(email, {"status": "Requested"})

    def get_role(self, email: str) -> str:
        account = self.accounts.find_by_email(email)
        if not account:
            raise AccountNotFound(email)
        return account.get("role")


# -----------------------------
# Catalog
# -----------------------------

class CatalogService:
    def __init__(self, plants: CatalogRepository):
        self.plants = plants

    def create_item(self, plant: Plant) -> str:
        return self.plants.insert(plant.model_dump(exclude_none=True))

    def list_items(self) -> List[dict]:
        return self.plants.list_all()

    def get_item(self, plant_id: ObjectId) -> dict:
        plant = self.plants.find_by_id(plant_id)
        if not plant:
            raise PlantNotFound(str(plant_id))
        return plant

    def delete_item(self, plant_id: ObjectId) -> dict:
        return self.plants.delete(plant_id)

    def list_items_for_seller(self, email: str) -> List[dict]:
        return self.plants.list_by_seller(email)

    def adjust_quantity(self, plant_id: ObjectId, amount: int, direction: str) -> dict:
        inc_value = amount if direction == "increase" else -amount
        logger.info("Adjusting quantity of plant %s by %d", plant_id, inc_value)
        return self.plants.increment_quantity(plant_id, inc_value)


# -----------------------------
# Orders
# -----------------------------

class OrderService:
    """Order placement, listing and status handling.

    Placing an order never touches stock: clients follow it with a call to
    ``CatalogService.adjust_quantity``. The two writes are independent, so
    an order can exist without its stock having been decremented.
    """

    def __init__(self, orders: OrderRepository):
        self.orders = orders

    def place_order(self, order: Order) -> str:
        oid = self.orders.insert(order.model_dump(exclude_none=True))
        logger.info("Order %s placed by %s", oid, order.userInfo.email)
        return oid

    def list_orders_for_customer(self, email: str) -> List[dict]:
        return self.orders.list_for_customer(email)

    def list_orders_for_seller(self, email: str) -> List[dict]:
        return self.orders.list_for_seller(email)

    def update_order_status(self, order_id: ObjectId, status: str) -> dict:
        return self.orders.set_status(order_id, status)

    def delete_order(self, order_id: ObjectId) -> dict:
        order = self.orders.find_by_id(order_id)
        if not order:
            raise OrderNotFound(str(order_id))
        if order.get("status") == DELIVERED:
            raise OrderDelivered(str(order_id))
        return self.orders.delete(order_id)


def get_account_service(accounts: AccountRepository = Depends(get_account_repository)) -> AccountService:
    return AccountService(accounts)


def get_catalog_service(plants: CatalogRepository = Depends(get_catalog_repository)) -> CatalogService:
    return CatalogService(plants)


def get_order_service(orders: OrderRepository = Depends(get_order_repository)) -> OrderService:
    return OrderService(orders)
