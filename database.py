"""
Database helpers

MongoDB connection and small generic helpers shared by the repositories.
The connection is configured from the environment:
- DATABASE_URL  -> MongoDB connection string
- DATABASE_NAME -> database holding the users, plants and orders collections
"""

import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from dotenv import load_dotenv
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

load_dotenv()

USERS = "users"
PLANTS = "plants"
ORDERS = "orders"

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

_client: Optional[MongoClient] = None
db: Optional[Database] = None

if DATABASE_URL and DATABASE_NAME:
    _client = MongoClient(DATABASE_URL)
    db = _client[DATABASE_NAME]


def get_database() -> Database:
    if db is None:
        raise HTTPException(status_code=500, detail="Database not available")
    return db


def create_document(database: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document stamped with created_at/updated_at and return its id as a string."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    now = datetime.now(timezone.utc)
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = database[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(database: Database, collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None) -> List[dict]:
    cursor = database[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def parse_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid id")


# Utility to convert Mongo ObjectIds to strings

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return doc
    out: Dict[str, Any] = {}
    for key, value in doc.items():
        if isinstance(value, ObjectId):
            out[key] = str(value)
        elif isinstance(value, dict):
            out[key] = serialize_doc(value)
        else:
            out[key] = value
    return out
