"""
Append-only log of product price changes.
"""
from datetime import datetime
from typing import List, Optional

from pymongo import DESCENDING
from pymongo.database import Database

from database import create_document, now, to_object_id
from errors import NotFoundError
from payloads import PriceHistoryDTO
from schemas import PriceHistory


def record(db: Database, product_id: str, old_price: float, new_price: float, changed_by: str,
           changed_at: Optional[datetime] = None) -> str:
    entry = PriceHistory(
        product_id=product_id,
        old_price=old_price,
        new_price=new_price,
        changed_at=changed_at or now(),
        changed_by=changed_by,
    )
    return create_document(db, "price_history", entry)


def history_for_product(db: Database, product_id: str) -> List[PriceHistoryDTO]:
    product = db["product"].find_one({"_id": to_object_id(product_id)})
    if not product:
        raise NotFoundError.for_field("Product", "productId", product_id)

    usernames = {}
    entries = []
    cursor = db["price_history"].find({"product_id": product_id}).sort(
        [("changed_at", DESCENDING), ("_id", DESCENDING)]
    )
    for h in cursor:
        editor = h["changed_by"]
        if editor not in usernames:
            user = db["user"].find_one({"_id": to_object_id(editor)})
            usernames[editor] = user["username"] if user else None
        entries.append(PriceHistoryDTO(
            id=str(h["_id"]),
            old_price=h["old_price"],
            new_price=h["new_price"],
            changed_at=h["changed_at"],
            changed_by_username=usernames[editor],
            product_id=product_id,
            product_name=product["product_name"],
        ))
    return entries
