"""
Category and product management.

Every product write recomputes `special_price`. A product update that changes
the price is logged to price history and pushed into open carts.
"""
import logging
import re
from typing import Optional

from bson import ObjectId
from fastapi import UploadFile
from pymongo.database import Database

import carts
import config
import files
import price_history
from database import create_document, now, paginate, to_object_id
from errors import DuplicateError, NotFoundError, ValidationError
from payloads import CategoryDTO, CategoryPage, CategoryRequest, ProductDTO, ProductPage, ProductRequest
from schemas import Category, Product

logger = logging.getLogger(__name__)


def special_price(price: float, discount: float) -> float:
    return price - price * discount / 100


def require_text(value: Optional[str], label: str, min_length: int = 5) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{label} cannot be empty !")
    if len(value.strip()) < min_length:
        raise ValidationError(f"{label} must be at least {min_length} characters long !")
    return value.strip()


# ---------------------- Categories ----------------------

def get_category(db: Database, category_id: str) -> dict:
    category = db["category"].find_one({"_id": to_object_id(category_id)})
    if not category:
        raise NotFoundError.for_field("Category", "categoryId", category_id)
    return category


def list_categories(db: Database, page_number: int, page_size: int, sort_by: str, sort_order: str) -> CategoryPage:
    page = paginate(db, "category", {}, page_number, page_size, sort_by, sort_order)
    if not page["content"]:
        raise NotFoundError("No categories available.")
    page["content"] = [CategoryDTO.from_doc(c) for c in page["content"]]
    return CategoryPage(**page)


def create_category(db: Database, request: CategoryRequest) -> CategoryDTO:
    name = require_text(request.category_name, "Category name")
    if db["category"].find_one({"category_name": name}):
        raise DuplicateError(f"Category with the name {name} already exists !!!")
    category_id = create_document(db, "category", Category(category_name=name))
    return CategoryDTO(category_id=category_id, category_name=name)


def update_category(db: Database, category_id: str, request: CategoryRequest) -> CategoryDTO:
    name = require_text(request.category_name, "Category name")
    category = get_category(db, category_id)
    clash = db["category"].find_one({"category_name": name, "_id": {"$ne": category["_id"]}})
    if clash:
        raise DuplicateError(f"Category with the name {name} already exists !!!")
    db["category"].update_one({"_id": category["_id"]}, {"$set": {"category_name": name, "updated_at": now()}})
    return CategoryDTO(category_id=category_id, category_name=name)


def delete_category(db: Database, category_id: str) -> CategoryDTO:
    category = get_category(db, category_id)
    db["category"].delete_one({"_id": category["_id"]})
    return CategoryDTO.from_doc(category)


# ---------------------- Products ----------------------

def get_product(db: Database, product_id: str) -> dict:
    product = db["product"].find_one({"_id": to_object_id(product_id)})
    if not product:
        raise NotFoundError.for_field("Product", "productId", product_id)
    return product


def validate_product(request: ProductRequest) -> tuple:
    name = require_text(request.product_name, "Product name")
    description = require_text(request.description, "Product description")
    if request.price < 0:
        raise ValidationError("Product price cannot be negative !")
    if not 0 <= request.discount <= 100:
        raise ValidationError("Product discount must be between 0 and 100 !")
    if request.quantity < 0:
        raise ValidationError("Product quantity cannot be negative !")
    return name, description


def product_page(db: Database, query: dict, page_number: int, page_size: int, sort_by: str, sort_order: str,
                 empty_message: str) -> ProductPage:
    page = paginate(db, "product", query, page_number, page_size, sort_by, sort_order)
    if not page["content"]:
        raise NotFoundError(empty_message)
    page["content"] = [ProductDTO.from_doc(p) for p in page["content"]]
    return ProductPage(**page)


def keyword_filter(keyword: str) -> dict:
    return {"product_name": {"$regex": re.escape(keyword.strip()), "$options": "i"}}


def add_product(db: Database, category_id: str, request: ProductRequest, seller: dict) -> ProductDTO:
    category = get_category(db, category_id)
    name, description = validate_product(request)
    if db["product"].find_one({"product_name": name}):
        raise DuplicateError(f"Product with the name {name} already exists !")

    product = Product(
        product_name=name,
        description=description,
        quantity=request.quantity,
        price=request.price,
        discount=request.discount,
        special_price=special_price(request.price, request.discount),
        image=config.DEFAULT_IMAGE,
        category_id=str(category["_id"]),
        seller_id=str(seller["_id"]),
    )
    product_id = create_document(db, "product", product)
    return ProductDTO.from_doc(db["product"].find_one({"_id": ObjectId(product_id)}))


def list_products(db: Database, page_number: int, page_size: int, sort_by: str, sort_order: str,
                  keyword: Optional[str] = None, category: Optional[str] = None) -> ProductPage:
    query = {}
    if keyword and keyword.strip():
        query.update(keyword_filter(keyword))
    if category and category.strip():
        match = db["category"].find_one(
            {"category_name": {"$regex": f"^{re.escape(category.strip())}$", "$options": "i"}}
        )
        if not match:
            raise NotFoundError.for_field("Category", "categoryName", category)
        query["category_id"] = str(match["_id"])
    return product_page(db, query, page_number, page_size, sort_by, sort_order, "No products available !")


def products_by_category(db: Database, category_id: str, page_number: int, page_size: int, sort_by: str,
                         sort_order: str) -> ProductPage:
    category = get_category(db, category_id)
    return product_page(
        db, {"category_id": str(category["_id"])}, page_number, page_size, sort_by, sort_order,
        f"No products available with category {category['category_name']} !",
    )


def search_by_keyword(db: Database, keyword: str, page_number: int, page_size: int, sort_by: str,
                      sort_order: str) -> ProductPage:
    if keyword is None or not keyword.strip():
        raise ValidationError("keyword cannot be empty !")
    return product_page(
        db, keyword_filter(keyword), page_number, page_size, sort_by, sort_order,
        f"No products available with keyword {keyword} !",
    )


def update_product(db: Database, product_id: str, request: ProductRequest, editor: dict) -> ProductDTO:
    product = get_product(db, product_id)
    name, description = validate_product(request)
    clash = db["product"].find_one({"product_name": name, "_id": {"$ne": product["_id"]}})
    if clash:
        raise DuplicateError(f"Product with the name {name} already exists !")

    old_price = product["price"]
    changes = {
        "product_name": name,
        "description": description,
        "quantity": request.quantity,
        "price": request.price,
        "discount": request.discount,
        "special_price": special_price(request.price, request.discount),
        "updated_at": now(),
    }
    db["product"].update_one({"_id": product["_id"]}, {"$set": changes})
    product.update(changes)

    if old_price != request.price:
        price_history.record(db, product_id, old_price, request.price, str(editor["_id"]))
        logger.info("Price of product %s changed from %s to %s by %s",
                    product_id, old_price, request.price, editor["username"])
    carts.refresh_product_in_carts(db, product)
    return ProductDTO.from_doc(product)


def delete_product(db: Database, product_id: str) -> ProductDTO:
    product = get_product(db, product_id)
    carts.remove_product_from_carts(db, product_id)
    db["product"].delete_one({"_id": product["_id"]})
    files.delete_image(config.IMAGE_DIR, product.get("image"))
    return ProductDTO.from_doc(product)


def update_product_image(db: Database, product_id: str, image: UploadFile) -> ProductDTO:
    product = get_product(db, product_id)
    file_name = files.upload_image(config.IMAGE_DIR, image)
    db["product"].update_one({"_id": product["_id"]}, {"$set": {"image": file_name, "updated_at": now()}})
    files.delete_image(config.IMAGE_DIR, product.get("image"))
    product["image"] = file_name
    return ProductDTO.from_doc(product)
