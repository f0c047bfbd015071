"""
MongoDB access helpers.

`db` stays None until DATABASE_URL is configured; routes resolve it through
`get_db()` so tests can swap in another database object.
"""
import math
from datetime import datetime, timezone
from typing import Any, Optional, Union

from bson import ObjectId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

import config
from errors import ValidationError

client: Optional[MongoClient] = None
db: Optional[Database] = None

if config.DATABASE_URL:
    client = MongoClient(config.DATABASE_URL)
    db = client[config.DATABASE_NAME]


def get_db() -> Database:
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except Exception:
        raise ValidationError(f"Invalid id: {id_str}")


def create_document(database: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document, stamping created_at/updated_at, and return its id."""
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    stamp = now()
    doc.setdefault("created_at", stamp)
    doc["updated_at"] = stamp
    res = database[collection_name].insert_one(doc)
    return str(res.inserted_id)


def sort_field(collection_name: str, sort_by: str) -> str:
    if sort_by in ("id", "_id", f"{collection_name}_id"):
        return "_id"
    return sort_by


def paginate(database: Database, collection_name: str, query: dict, page_number: int, page_size: int,
             sort_by: str, sort_order: str) -> dict[str, Any]:
    """Run one page of a sorted query and wrap it in the page envelope."""
    if page_number < 0:
        raise ValidationError("pageNumber must be greater than or equal to 0")
    if page_size <= 0:
        raise ValidationError("pageSize must be greater than 0")

    direction = ASCENDING if sort_order.lower() == "asc" else DESCENDING
    total = database[collection_name].count_documents(query)
    cursor = (
        database[collection_name]
        .find(query)
        .sort(sort_field(collection_name, sort_by), direction)
        .skip(page_number * page_size)
        .limit(page_size)
    )
    total_pages = math.ceil(total / page_size) if total else 0
    return {
        "content": list(cursor),
        "page_number": page_number,
        "page_size": page_size,
        "total_elements": total,
        "total_pages": total_pages,
        "last_page": page_number + 1 >= total_pages,
    }


def ensure_indexes(database: Database) -> None:
    database["role"].create_index("role_name", unique=True)
    database["user"].create_index("username", unique=True)
    database["user"].create_index("email", unique=True)
    database["category"].create_index("category_name", unique=True)
    database["product"].create_index("product_name", unique=True)
    database["product"].create_index("category_id")
    database["cart"].create_index("user_id", unique=True)
    database["cart"].create_index("items.product_id")
    database["address"].create_index("user_id")
    database["price_history"].create_index("product_id")
