"""
Order placement: turns the caller's cart into an order.

The cart's items are claimed first with a single conditional update, so only
one checkout can turn a given set of items into an order. The rest of the
checkout is a single unit of work. Each write registers an undo
step; if any later step raises, the undo steps run newest first and the
error propagates to the caller. Stock is taken with a conditional update so
concurrent checkouts cannot push a product below zero.
"""
import logging
from typing import Callable, List

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

import carts
from database import create_document, now, to_object_id
from errors import BusinessRuleError, NotFoundError
from payloads import OrderDTO, OrderItemDTO, OrderRequest, PaymentDTO, ProductDTO
from schemas import Order, OrderItem, Payment

logger = logging.getLogger(__name__)

ORDER_ACCEPTED = "Order Accepted !"


class UnitOfWork:
    def __init__(self):
        self._undo: List[Callable[[], object]] = []

    def on_rollback(self, action: Callable[[], object]) -> None:
        self._undo.append(action)

    def rollback(self) -> None:
        while self._undo:
            action = self._undo.pop()
            try:
                action()
            except Exception:
                logger.exception("Rollback step failed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            logger.warning("Checkout failed, rolling back: %s", exc)
            self.rollback()
        return False


def take_stock(db: Database, uow: UnitOfWork, product_id: str, quantity: int) -> dict:
    """Decrement stock by `quantity` if enough is left and return the updated product."""
    oid = to_object_id(product_id)
    product = db["product"].find_one_and_update(
        {"_id": oid, "quantity": {"$gte": quantity}},
        {"$inc": {"quantity": -quantity}, "$set": {"updated_at": now()}},
        return_document=ReturnDocument.AFTER,
    )
    if product is None:
        current = db["product"].find_one({"_id": oid})
        if current is None:
            raise NotFoundError.for_field("Product", "productId", product_id)
        raise BusinessRuleError(
            f"Not enough stock of {current['product_name']}: requested {quantity}, "
            f"available {current.get('quantity', 0)}."
        )
    uow.on_rollback(lambda: db["product"].update_one({"_id": oid}, {"$inc": {"quantity": quantity}}))
    return product


def place_order(db: Database, email: str, payment_method: str, request: OrderRequest) -> OrderDTO:
    user = db["user"].find_one({"email": email})
    cart = carts.find_user_cart(db, str(user["_id"])) if user else None
    if cart is None:
        raise NotFoundError.for_field("Cart", "email", email)

    address = db["address"].find_one({"_id": to_object_id(request.address_id)})
    if address is None:
        raise NotFoundError.for_field("Address", "addressId", request.address_id)

    # the claim empties the cart, so a second checkout of the same cart finds nothing to order
    claimed = carts.claim_items(db, cart["_id"])
    if claimed is None:
        raise BusinessRuleError("Cart is empty")
    cart_items = claimed["items"]

    with UnitOfWork() as uow:
        uow.on_rollback(lambda: carts.restore_items(db, cart["_id"], cart_items))
        remaining = {}
        for item in cart_items:
            remaining[item["product_id"]] = take_stock(db, uow, item["product_id"], item["quantity"])

        order_items = [
            OrderItem(
                order_item_id=str(ObjectId()),
                product_id=item["product_id"],
                quantity=item["quantity"],
                discount=item.get("discount", 0.0),
                ordered_product_price=item["product_price"],
            )
            for item in cart_items
        ]
        order = Order(
            email=email,
            order_date=now(),
            total_amount=carts.cart_total(cart_items),
            order_status=ORDER_ACCEPTED,
            address_id=request.address_id,
            items=order_items,
        )
        order_id = create_document(db, "order", order)
        uow.on_rollback(lambda: db["order"].delete_one({"_id": ObjectId(order_id)}))

        payment = Payment(
            order_id=order_id,
            payment_method=payment_method,
            pg_name=request.pg_name,
            pg_payment_id=request.pg_payment_id,
            pg_status=request.pg_status,
            pg_response_message=request.pg_response_message,
        )
        payment_id = create_document(db, "payment", payment)
        uow.on_rollback(lambda: db["payment"].delete_one({"_id": ObjectId(payment_id)}))
        db["order"].update_one({"_id": ObjectId(order_id)}, {"$set": {"payment_id": payment_id}})

    logger.info("Order %s placed by %s for %s", order_id, email, order.total_amount)

    # product views in the order summary report stock left after this order
    items_dto = [
        OrderItemDTO(
            order_item_id=oi.order_item_id,
            product=ProductDTO.from_doc(remaining[oi.product_id]),
            quantity=oi.quantity,
            discount=oi.discount,
            ordered_product_price=oi.ordered_product_price,
        )
        for oi in order_items
    ]
    payment_doc = db["payment"].find_one({"_id": ObjectId(payment_id)})
    return OrderDTO(
        order_id=order_id,
        email=email,
        order_items=items_dto,
        order_date=order.order_date.date(),
        payment=PaymentDTO.from_doc(payment_doc),
        total_amount=order.total_amount,
        order_status=order.order_status,
        address_id=request.address_id,
    )
