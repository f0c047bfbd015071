import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Query, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymongo.database import Database

import addresses
import auth
import carts
import catalog
import config
import database
import orders
import price_history
from database import get_db
from errors import register_exception_handlers
from payloads import (
    AddressDTO, AddressRequest, CartDTO, CategoryDTO, CategoryPage, CategoryRequest, LoginRequest,
    MessageResponse, OrderDTO, OrderRequest, PriceHistoryDTO, ProductDTO, ProductPage, ProductRequest,
    SignupRequest, UserInfoResponse,
)
from security import cookie_settings, require_admin, require_user
from seed import init_data

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is None:
        logger.warning("DATABASE_URL not set, skipping data bootstrap")
    else:
        init_data(database.db)
    yield


app = FastAPI(title="E-commerce API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.mount("/images", StaticFiles(directory=config.IMAGE_DIR, check_dir=False), name="images")


# ---------------------- Health ----------------------
@app.get("/")
def root():
    return {"name": "E-commerce API", "status": "ok"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": config.DATABASE_NAME,
        "collections": []
    }
    try:
        if database.db is None:
            response["database"] = "❌ Not Connected"
        else:
            response["database"] = "✅ Connected"
            response["collections"] = database.db.list_collection_names()
    except Exception as e:
        response["database"] = f"⚠️ Error: {str(e)[:120]}"
    return response


# ---------------------- Auth ----------------------
@app.post("/api/auth/signin", response_model=UserInfoResponse)
def signin(body: LoginRequest, response: Response, db: Database = Depends(get_db)):
    info = auth.authenticate(db, body)
    response.set_cookie(value=info.jwt_token, max_age=config.JWT_EXPIRATION_MINUTES * 60, **cookie_settings())
    return info


@app.post("/api/auth/signup", response_model=MessageResponse)
def signup(body: SignupRequest, db: Database = Depends(get_db)):
    auth.register_user(db, body)
    return MessageResponse(message="User registered successfully!")


@app.post("/api/auth/signout", response_model=MessageResponse)
def signout(response: Response):
    response.delete_cookie(config.JWT_COOKIE_NAME, path="/api")
    return MessageResponse(message="You've been signed out!")


@app.get("/api/auth/user", response_model=UserInfoResponse)
def current_user(user=Depends(require_user)):
    return auth.user_info(user)


@app.get("/api/auth/username")
def current_username(user=Depends(require_user)):
    return user["username"]


# ---------------------- Categories ----------------------
@app.get("/api/public/categories", response_model=CategoryPage)
def list_categories(
    page_number: int = Query(default=config.PAGE_NUMBER, alias="pageNumber"),
    page_size: int = Query(default=config.PAGE_SIZE, alias="pageSize"),
    sort_by: str = Query(default=config.SORT_BY, alias="sortBy"),
    sort_order: str = Query(default=config.SORT_ORDER, alias="sortOrder"),
    db: Database = Depends(get_db),
):
    return catalog.list_categories(db, page_number, page_size, sort_by, sort_order)


@app.post("/api/admin/categories", response_model=CategoryDTO, status_code=201)
def create_category(body: CategoryRequest, admin=Depends(require_admin), db: Database = Depends(get_db)):
    return catalog.create_category(db, body)


@app.put("/api/admin/categories/{category_id}", response_model=CategoryDTO)
def update_category(category_id: str, body: CategoryRequest, admin=Depends(require_admin),
                    db: Database = Depends(get_db)):
    return catalog.update_category(db, category_id, body)


@app.delete("/api/admin/categories/{category_id}", response_model=CategoryDTO)
def delete_category(category_id: str, admin=Depends(require_admin), db: Database = Depends(get_db)):
    return catalog.delete_category(db, category_id)


# ---------------------- Products ----------------------
@app.post("/api/admin/categories/{category_id}/product", response_model=ProductDTO, status_code=201)
def add_product(category_id: str, body: ProductRequest, admin=Depends(require_admin),
                db: Database = Depends(get_db)):
    return catalog.add_product(db, category_id, body, admin)


@app.get("/api/public/products", response_model=ProductPage)
def list_products(
    keyword: Optional[str] = None,
    category: Optional[str] = None,
    page_number: int = Query(default=config.PAGE_NUMBER, alias="pageNumber"),
    page_size: int = Query(default=config.PAGE_SIZE, alias="pageSize"),
    sort_by: str = Query(default=config.SORT_BY, alias="sortBy"),
    sort_order: str = Query(default=config.SORT_ORDER, alias="sortOrder"),
    db: Database = Depends(get_db),
):
    return catalog.list_products(db, page_number, page_size, sort_by, sort_order, keyword, category)


@app.get("/api/public/categories/{category_id}/products", response_model=ProductPage)
def products_by_category(
    category_id: str,
    page_number: int = Query(default=config.PAGE_NUMBER, alias="pageNumber"),
    page_size: int = Query(default=config.PAGE_SIZE, alias="pageSize"),
    sort_by: str = Query(default=config.SORT_BY, alias="sortBy"),
    sort_order: str = Query(default=config.SORT_ORDER, alias="sortOrder"),
    db: Database = Depends(get_db),
):
    return catalog.products_by_category(db, category_id, page_number, page_size, sort_by, sort_order)


@app.get("/api/public/products/keyword/{keyword}", response_model=ProductPage)
def products_by_keyword(
    keyword: str,
    page_number: int = Query(default=config.PAGE_NUMBER, alias="pageNumber"),
    page_size: int = Query(default=config.PAGE_SIZE, alias="pageSize"),
    sort_by: str = Query(default=config.SORT_BY, alias="sortBy"),
    sort_order: str = Query(default=config.SORT_ORDER, alias="sortOrder"),
    db: Database = Depends(get_db),
):
    return catalog.search_by_keyword(db, keyword, page_number, page_size, sort_by, sort_order)


@app.put("/api/admin/products/{product_id}", response_model=ProductDTO)
def update_product(product_id: str, body: ProductRequest, admin=Depends(require_admin),
                   db: Database = Depends(get_db)):
    return catalog.update_product(db, product_id, body, admin)


@app.delete("/api/admin/products/{product_id}", response_model=ProductDTO)
def delete_product(product_id: str, admin=Depends(require_admin), db: Database = Depends(get_db)):
    return catalog.delete_product(db, product_id)


@app.put("/api/admin/products/{product_id}/image", response_model=ProductDTO)
def update_product_image(product_id: str, image: UploadFile = File(...), admin=Depends(require_admin),
                         db: Database = Depends(get_db)):
    return catalog.update_product_image(db, product_id, image)


@app.get("/api/admin/product/{product_id}/price-history", response_model=List[PriceHistoryDTO])
def get_price_history(product_id: str, admin=Depends(require_admin), db: Database = Depends(get_db)):
    return price_history.history_for_product(db, product_id)


# ---------------------- Carts ----------------------
@app.post("/api/carts/products/{product_id}/quantity/{quantity}", response_model=CartDTO, status_code=201)
def add_to_cart(product_id: str, quantity: int, user=Depends(require_user), db: Database = Depends(get_db)):
    return carts.add_product(db, user, product_id, quantity)


@app.get("/api/carts", response_model=List[CartDTO])
def list_carts(admin=Depends(require_admin), db: Database = Depends(get_db)):
    return carts.list_carts(db)


@app.get("/api/carts/users/cart", response_model=CartDTO)
def get_user_cart(user=Depends(require_user), db: Database = Depends(get_db)):
    return carts.user_cart(db, user)


@app.put("/api/cart/products/{product_id}/quantity/{delta}", response_model=CartDTO)
def update_cart_quantity(product_id: str, delta: int, user=Depends(require_user), db: Database = Depends(get_db)):
    return carts.update_quantity(db, user, product_id, delta)


@app.delete("/api/carts/{cart_id}/product/{product_id}", response_model=MessageResponse)
def remove_from_cart(cart_id: str, product_id: str, user=Depends(require_user), db: Database = Depends(get_db)):
    return MessageResponse(message=carts.remove_product(db, user, cart_id, product_id))


# ---------------------- Orders ----------------------
@app.post("/api/order/users/payments/{payment_method}", response_model=OrderDTO, status_code=201)
def place_order(payment_method: str, body: OrderRequest, user=Depends(require_user),
                db: Database = Depends(get_db)):
    return orders.place_order(db, user["email"], payment_method, body)


# ---------------------- Addresses ----------------------
@app.post("/api/addresses", response_model=AddressDTO, status_code=201)
def create_address(body: AddressRequest, user=Depends(require_user), db: Database = Depends(get_db)):
    return addresses.create_address(db, body, user)


@app.get("/api/addresses", response_model=List[AddressDTO])
def list_addresses(user=Depends(require_user), db: Database = Depends(get_db)):
    return addresses.list_addresses(db)


@app.get("/api/addresses/{address_id}", response_model=AddressDTO)
def get_address(address_id: str, user=Depends(require_user), db: Database = Depends(get_db)):
    return addresses.get_address(db, address_id)


@app.get("/api/users/addresses", response_model=List[AddressDTO])
def get_user_addresses(user=Depends(require_user), db: Database = Depends(get_db)):
    return addresses.user_addresses(db, user)


@app.put("/api/addresses/{address_id}", response_model=AddressDTO)
def update_address(address_id: str, body: AddressRequest, user=Depends(require_user),
                   db: Database = Depends(get_db)):
    return addresses.update_address(db, address_id, body)


@app.delete("/api/addresses/{address_id}", response_model=AddressDTO)
def delete_address(address_id: str, user=Depends(require_user), db: Database = Depends(get_db)):
    return addresses.delete_address(db, address_id)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
