"""
Per-user shopping carts. Line items live embedded in the cart document and
the cart's total_price is always recomputed from them.
"""
import logging
from typing import List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, now, to_object_id
from errors import BusinessRuleError, ConflictError, NotFoundError, ValidationError
from payloads import CartDTO, ProductDTO
from schemas import Cart, CartItem

logger = logging.getLogger(__name__)


def cart_total(items: List[dict]) -> float:
    return sum(item["quantity"] * item["product_price"] for item in items)


def save_items(db: Database, cart_id, items: List[dict]) -> None:
    db["cart"].update_one(
        {"_id": cart_id},
        {"$set": {"items": items, "total_price": cart_total(items), "updated_at": now()}},
    )


def find_user_cart(db: Database, user_id: str) -> Optional[dict]:
    return db["cart"].find_one({"user_id": user_id})


def get_or_create_cart(db: Database, user_id: str) -> dict:
    cart = find_user_cart(db, user_id)
    if cart:
        return cart
    cart_id = create_document(db, "cart", Cart(user_id=user_id))
    return db["cart"].find_one({"_id": ObjectId(cart_id)})


def to_cart_dto(db: Database, cart: dict) -> CartDTO:
    """Cart view; each product's `quantity` is the quantity held in the cart."""
    products = []
    for item in cart.get("items", []):
        product = db["product"].find_one({"_id": to_object_id(item["product_id"])})
        if product:
            products.append(ProductDTO.from_doc(product, quantity=item["quantity"]))
    return CartDTO(cart_id=str(cart["_id"]), total_price=cart.get("total_price", 0.0), products=products)


def check_availability(product: dict, quantity: int) -> None:
    stock = product.get("quantity", 0)
    if stock == 0:
        raise BusinessRuleError(f"{product['product_name']} is not available")
    if stock < quantity:
        raise BusinessRuleError(
            f"Please, make an order of the {product['product_name']} "
            f"less than or equal to the quantity {stock}."
        )


def load_product(db: Database, product_id: str) -> dict:
    product = db["product"].find_one({"_id": to_object_id(product_id)})
    if not product:
        raise NotFoundError.for_field("Product", "productId", product_id)
    return product


def add_product(db: Database, user: dict, product_id: str, quantity: int) -> CartDTO:
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0")
    product = load_product(db, product_id)
    cart = get_or_create_cart(db, str(user["_id"]))

    items = cart.get("items", [])
    if any(item["product_id"] == product_id for item in items):
        raise ConflictError(f"Product {product['product_name']} already exists in the cart")

    check_availability(product, quantity)

    item = CartItem(
        item_id=str(ObjectId()),
        product_id=product_id,
        quantity=quantity,
        discount=product.get("discount", 0.0),
        product_price=product["special_price"],
    )
    items.append(item.model_dump())
    save_items(db, cart["_id"], items)
    return to_cart_dto(db, db["cart"].find_one({"_id": cart["_id"]}))


def list_carts(db: Database) -> List[CartDTO]:
    carts = list(db["cart"].find({}))
    if not carts:
        raise NotFoundError("No cart exists")
    return [to_cart_dto(db, cart) for cart in carts]


def user_cart(db: Database, user: dict) -> CartDTO:
    cart = find_user_cart(db, str(user["_id"]))
    if not cart:
        raise NotFoundError.for_field("Cart", "email", user["email"])
    return to_cart_dto(db, cart)


def update_quantity(db: Database, user: dict, product_id: str, delta: int) -> CartDTO:
    """Apply a signed quantity change; a resulting quantity of zero or less drops the item."""
    if delta == 0:
        raise ValidationError("Quantity change cannot be 0")
    cart = find_user_cart(db, str(user["_id"]))
    if not cart:
        raise NotFoundError.for_field("Cart", "email", user["email"])
    product = load_product(db, product_id)

    items = cart.get("items", [])
    item = next((i for i in items if i["product_id"] == product_id), None)
    if item is None:
        raise NotFoundError(f"Product {product['product_name']} not available in the cart!!!")

    new_quantity = item["quantity"] + delta
    if new_quantity <= 0:
        items.remove(item)
    else:
        if delta > 0:
            check_availability(product, new_quantity)
        item["quantity"] = new_quantity
        item["product_price"] = product["special_price"]
        item["discount"] = product.get("discount", 0.0)

    save_items(db, cart["_id"], items)
    return to_cart_dto(db, db["cart"].find_one({"_id": cart["_id"]}))


def remove_product(db: Database, user: dict, cart_id: str, product_id: str) -> str:
    cart = db["cart"].find_one({"_id": to_object_id(cart_id), "user_id": str(user["_id"])})
    if not cart:
        raise NotFoundError.for_field("Cart", "cartId", cart_id)

    items = cart.get("items", [])
    remaining = [i for i in items if i["product_id"] != product_id]
    if len(remaining) == len(items):
        raise NotFoundError.for_field("CartItem", "productId", product_id)

    save_items(db, cart["_id"], remaining)
    product = db["product"].find_one({"_id": to_object_id(product_id)})
    name = product["product_name"] if product else product_id
    return f"Product {name} removed from the cart !!!"


def claim_items(db: Database, cart_id) -> Optional[dict]:
    """Empty a non-empty cart in one step and return it as it was, or None if it held nothing."""
    return db["cart"].find_one_and_update(
        {"_id": cart_id, "items": {"$ne": []}},
        {"$set": {"items": [], "total_price": 0, "updated_at": now()}},
        return_document=ReturnDocument.BEFORE,
    )


def restore_items(db: Database, cart_id, items: List[dict]) -> None:
    """Put claimed items back, keeping any line added to the cart since the claim."""
    cart = db["cart"].find_one({"_id": cart_id})
    current = cart.get("items", []) if cart else []
    present = {item["product_id"] for item in current}
    save_items(db, cart_id, [item for item in items if item["product_id"] not in present] + current)


def refresh_product_in_carts(db: Database, product: dict) -> int:
    """Copy a product's current price and discount into every cart line holding it."""
    product_id = str(product["_id"])
    touched = 0
    for cart in db["cart"].find({"items.product_id": product_id}):
        items = cart["items"]
        for item in items:
            if item["product_id"] == product_id:
                item["product_price"] = product["special_price"]
                item["discount"] = product.get("discount", 0.0)
        save_items(db, cart["_id"], items)
        touched += 1
    if touched:
        logger.info("Refreshed pricing of product %s in %d cart(s)", product_id, touched)
    return touched


def remove_product_from_carts(db: Database, product_id: str) -> int:
    touched = 0
    for cart in db["cart"].find({"items.product_id": product_id}):
        save_items(db, cart["_id"], [i for i in cart["items"] if i["product_id"] != product_id])
        touched += 1
    return touched
