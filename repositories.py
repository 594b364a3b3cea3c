"""
Repositories

Each repository owns one MongoDB collection handle and is the only code
that talks to it. Write operations return plain dicts shaped like the
driver's result objects so routes can hand them straight back to clients.
"""

from typing import List, Optional

from bson import ObjectId
from fastapi import Depends
from pymongo.database import Database
from pymongo.results import DeleteResult, UpdateResult

from database import ORDERS, PLANTS, USERS, create_document, get_database, get_documents


def update_result(result: UpdateResult) -> dict:
    return {
        "acknowledged": result.acknowledged,
        "matchedCount": result.matched_count,
        "modifiedCount": result.modified_count,
    }


def delete_result(result: DeleteResult) -> dict:
    return {"acknowledged": result.acknowledged, "deletedCount": result.deleted_count}


class AccountRepository:
    def __init__(self, database: Database):
        self._database = database
        self._collection = database[USERS]

    def ensure_indexes(self) -> None:
        self._collection.create_index("email", unique=True)

    def find_by_email(self, email: str) -> Optional[dict]:
        return self._collection.find_one({"email": email})

    def insert(self, account: dict) -> str:
        return create_document(self._database, USERS, account)

    def list_except(self, email: str) -> List[dict]:
        return get_documents(self._database, USERS, {"email": {"$ne": email}})

    def set_fields(self, email: str, fields: dict) -> dict:
        return update_result(self._collection.update_one({"email": email}, {"$set": fields}))


class CatalogRepository:
    def __init__(self, database: Database):
        self._database = database
        self._collection = database[PLANTS]

    def insert(self, plant: dict) -> str:
        return create_document(self._database, PLANTS, plant)

    def list_all(self) -> List[dict]:
        return get_documents(self._database, PLANTS)

    def list_by_seller(self, email: str) -> List[dict]:
        return get_documents(self._database, PLANTS, {"seller.email": email})

    def find_by_id(self, plant_id: ObjectId) -> Optional[dict]:
        return self._collection.find_one({"_id": plant_id})

    def delete(self, plant_id: ObjectId) -> dict:
        return delete_result(self._collection.delete_one({"_id": plant_id}))

    def increment_quantity(self, plant_id: ObjectId, amount: int) -> dict:
        # $inc is atomic per document; no floor at zero is applied
        return update_result(self._collection.update_one({"_id": plant_id}, {"$inc": {"quantity": amount}}))


def enriched_orders_pipeline(match: dict, fields: dict) -> List[dict]:
    """Join each matched order with its plant.

    Orders whose plantInfo.plantId resolves to no plant, or is not a valid
    ObjectId at all, are dropped by the $unwind stage. ``fields`` is merged into every surviving order before
    the joined plant document is projected away.
    """
    return [
        {"$match": match},
        {"$addFields": {"plantId": {"$convert": {
            "input": "$plantInfo.plantId",
            "to": "objectId",
            "onError": None,
            "onNull": None,
        }}}},
        {"$lookup": {
            "from": PLANTS,
            "localField": "plantId",
            "foreignField": "_id",
            "as": "plantDoc",
        }},
        {"$unwind": "$plantDoc"},
        {"$addFields": fields},
        {"$project": {"plantDoc": 0}},
    ]


CUSTOMER_ORDER_FIELDS = {
    "image": "$plantDoc.image",
    "name": "$plantDoc.name",
    "category": "$plantDoc.category",
    "price": "$plantDoc.price",
    "quantity": "$plantInfo.totalQuantity",
}

SELLER_ORDER_FIELDS = {
    "name": "$plantDoc.name",
}


class OrderRepository:
    def __init__(self, database: Database):
        self._database = database
        self._collection = database[ORDERS]

    def insert(self, order: dict) -> str:
        return create_document(self._database, ORDERS, order)

    def find_by_id(self, order_id: ObjectId) -> Optional[dict]:
        return self._collection.find_one({"_id": order_id})

    def list_for_customer(self, email: str) -> List[dict]:
        pipeline = enriched_orders_pipeline({"userInfo.email": email}, CUSTOMER_ORDER_FIELDS)
        return list(self._collection.aggregate(pipeline))

    def list_for_seller(self, email: str) -> List[dict]:
        pipeline = enriched_orders_pipeline({"seller": email}, SELLER_ORDER_FIELDS)
        return list(self._collection.aggregate(pipeline))

    def set_status(self, order_id: ObjectId, status: str) -> dict:
        return update_result(self._collection.update_one({"_id": order_id}, {"$set": {"status": status}}))

    def delete(self, order_id: ObjectId) -> dict:
        return delete_result(self._collection.delete_one({"_id": order_id}))


def get_account_repository(database: Database = Depends(get_database)) -> AccountRepository:
    return AccountRepository(database)


def get_catalog_repository(database: Database = Depends(get_database)) -> CatalogRepository:
    return CatalogRepository(database)


def get_order_repository(database: Database = Depends(get_database)) -> OrderRepository:
    return OrderRepository(database)
