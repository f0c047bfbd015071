"""
Request bodies and response views exchanged over HTTP, plus the mapping from
stored documents to those views.
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    message: str


# ---------------------- Catalog ----------------------
class CategoryRequest(BaseModel):
    category_name: Optional[str] = None


class CategoryDTO(BaseModel):
    category_id: str
    category_name: str

    @classmethod
    def from_doc(cls, doc: dict) -> "CategoryDTO":
        return cls(category_id=str(doc["_id"]), category_name=doc["category_name"])


class CategoryPage(BaseModel):
    content: List[CategoryDTO]
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int
    last_page: bool


class ProductRequest(BaseModel):
    product_name: Optional[str] = None
    description: Optional[str] = None
    quantity: int = 0
    price: float = 0.0
    discount: float = 0.0


class ProductDTO(BaseModel):
    """Product view. `quantity` is stock by default; cart and order views overwrite it."""
    product_id: str
    product_name: str
    image: Optional[str] = None
    description: Optional[str] = None
    quantity: int
    price: float
    discount: float
    special_price: float
    category_id: Optional[str] = None

    @classmethod
    def from_doc(cls, doc: dict, quantity: Optional[int] = None) -> "ProductDTO":
        return cls(
            product_id=str(doc["_id"]),
            product_name=doc["product_name"],
            image=doc.get("image"),
            description=doc.get("description"),
            quantity=doc.get("quantity", 0) if quantity is None else quantity,
            price=doc["price"],
            discount=doc.get("discount", 0.0),
            special_price=doc["special_price"],
            category_id=doc.get("category_id"),
        )


class ProductPage(BaseModel):
    content: List[ProductDTO]
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int
    last_page: bool


class PriceHistoryDTO(BaseModel):
    id: str
    old_price: float
    new_price: float
    changed_at: datetime
    changed_by_username: Optional[str] = None
    product_id: str
    product_name: Optional[str] = None


# ---------------------- Cart ----------------------
class CartDTO(BaseModel):
    cart_id: str
    total_price: float
    products: List[ProductDTO] = Field(default_factory=list)


# ---------------------- Orders ----------------------
class OrderRequest(BaseModel):
    address_id: str
    pg_name: Optional[str] = None
    pg_payment_id: Optional[str] = None
    pg_status: Optional[str] = None
    pg_response_message: Optional[str] = None


class PaymentDTO(BaseModel):
    payment_id: str
    payment_method: str
    pg_name: Optional[str] = None
    pg_payment_id: Optional[str] = None
    pg_status: Optional[str] = None
    pg_response_message: Optional[str] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "PaymentDTO":
        return cls(
            payment_id=str(doc["_id"]),
            payment_method=doc["payment_method"],
            pg_name=doc.get("pg_name"),
            pg_payment_id=doc.get("pg_payment_id"),
            pg_status=doc.get("pg_status"),
            pg_response_message=doc.get("pg_response_message"),
        )


class OrderItemDTO(BaseModel):
    order_item_id: str
    product: ProductDTO
    quantity: int
    discount: float
    ordered_product_price: float


class OrderDTO(BaseModel):
    order_id: str
    email: str
    order_items: List[OrderItemDTO] = Field(default_factory=list)
    order_date: date
    payment: PaymentDTO
    total_amount: float
    order_status: str
    address_id: str


# ---------------------- Addresses ----------------------
class AddressRequest(BaseModel):
    country: Optional[str] = None
    city: Optional[str] = None
    street: Optional[str] = None
    pin_code: Optional[str] = None
    building_name: Optional[str] = None
    state: Optional[str] = None


class AddressDTO(BaseModel):
    address_id: str
    country: str
    city: str
    street: str
    pin_code: str
    building_name: str
    state: str

    @classmethod
    def from_doc(cls, doc: dict) -> "AddressDTO":
        return cls(
            address_id=str(doc["_id"]),
            country=doc["country"],
            city=doc["city"],
            street=doc["street"],
            pin_code=doc["pin_code"],
            building_name=doc["building_name"],
            state=doc["state"],
        )


# ---------------------- Auth ----------------------
class LoginRequest(BaseModel):
    username: str
    password: str


class SignupRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[List[str]] = None


class UserInfoResponse(BaseModel):
    id: str
    username: str
    roles: List[str]
    jwt_token: Optional[str] = None
