"""
Database Schemas for the E-commerce backend

Each Pydantic model represents a collection in MongoDB. The collection name is the
snake_case of the class name (e.g. PriceHistory -> "price_history").
References between documents are stored as id strings.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AppRole(str, Enum):
    USER = "ROLE_USER"
    SELLER = "ROLE_SELLER"
    ADMIN = "ROLE_ADMIN"


class Role(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    role_name: AppRole = Field(..., description="One of the fixed application roles")


class User(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    username: str = Field(..., description="Unique login name")
    email: str = Field(..., description="Unique email address")
    password: str = Field(..., description="BCrypt password hash")
    roles: List[AppRole] = Field(default_factory=list, description="Granted roles")


class Address(BaseModel):
    country: str
    city: str
    street: str
    pin_code: str
    building_name: str
    state: str
    user_id: str = Field(..., description="Owning user id")


class Category(BaseModel):
    category_name: str = Field(..., description="Unique category name")


class Product(BaseModel):
    product_name: str = Field(..., description="Unique product name")
    description: str = Field(..., description="Product description")
    quantity: int = Field(0, ge=0, description="Units in stock")
    price: float = Field(..., ge=0, description="List price")
    discount: float = Field(0, ge=0, le=100, description="Discount percentage")
    special_price: float = Field(..., description="Price after discount")
    image: str = Field(..., description="Stored image file name")
    category_id: str = Field(..., description="Category id")
    seller_id: Optional[str] = Field(None, description="Owning user id")


class CartItem(BaseModel):
    item_id: str
    product_id: str
    quantity: int = Field(..., gt=0)
    discount: float = Field(0, description="Discount snapshot")
    product_price: float = Field(..., description="Special price snapshot")


class Cart(BaseModel):
    user_id: str = Field(..., description="Owner user id (one cart per user)")
    total_price: float = Field(0.0, description="Sum of quantity x product_price over items")
    items: List[CartItem] = Field(default_factory=list)


class OrderItem(BaseModel):
    order_item_id: str
    product_id: str
    quantity: int
    discount: float
    ordered_product_price: float


class Order(BaseModel):
    email: str
    order_date: datetime
    total_amount: float
    order_status: str
    address_id: str
    payment_id: Optional[str] = None
    items: List[OrderItem] = Field(default_factory=list)


class Payment(BaseModel):
    order_id: str
    payment_method: str
    pg_name: Optional[str] = None
    pg_payment_id: Optional[str] = None
    pg_status: Optional[str] = None
    pg_response_message: Optional[str] = None


class PriceHistory(BaseModel):
    product_id: str
    old_price: float
    new_price: float
    changed_at: datetime
    changed_by: str = Field(..., description="User id of the editor")
