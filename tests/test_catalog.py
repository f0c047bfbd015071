import pytest

import carts
import catalog
import price_history
from errors import DuplicateError, NotFoundError, ValidationError
from payloads import CategoryRequest, ProductRequest


def product_request(**overrides):
    data = dict(product_name="Laptop Pro", description="A fast laptop", quantity=10, price=1000.0, discount=10.0)
    data.update(overrides)
    return ProductRequest(**data)


def test_special_price():
    assert catalog.special_price(1000.0, 10.0) == 900.0
    assert catalog.special_price(80.0, 0) == 80.0
    assert catalog.special_price(50.0, 100) == 0.0


def test_create_category(seeded_db):
    created = catalog.create_category(seeded_db, CategoryRequest(category_name="Electronics"))
    assert created.category_name == "Electronics"
    assert seeded_db["category"].count_documents({}) == 1


@pytest.mark.parametrize("name", [None, "", "   ", "Toys"])
def test_create_category_rejects_short_names(seeded_db, name):
    with pytest.raises(ValidationError):
        catalog.create_category(seeded_db, CategoryRequest(category_name=name))


def test_create_category_rejects_duplicates(seeded_db, category):
    with pytest.raises(DuplicateError):
        catalog.create_category(seeded_db, CategoryRequest(category_name="Electronics"))


def test_update_category_rejects_name_of_another(seeded_db, category):
    other = catalog.create_category(seeded_db, CategoryRequest(category_name="Furniture"))
    with pytest.raises(DuplicateError):
        catalog.update_category(seeded_db, other.category_id, CategoryRequest(category_name="Electronics"))
    renamed = catalog.update_category(seeded_db, other.category_id, CategoryRequest(category_name="Home Furniture"))
    assert renamed.category_name == "Home Furniture"


def test_delete_unknown_category(seeded_db):
    with pytest.raises(NotFoundError):
        catalog.delete_category(seeded_db, "0123456789ab0123456789ab")


def test_list_categories_paginates(seeded_db):
    for name in ["Books", "Garden", "Kitchen"]:
        catalog.create_category(seeded_db, CategoryRequest(category_name=name + " stuff"))
    page = catalog.list_categories(seeded_db, 0, 2, "category_name", "desc")
    assert [c.category_name for c in page.content] == ["Kitchen stuff", "Garden stuff"]
    assert page.total_elements == 3
    assert page.total_pages == 2
    assert page.last_page is False

    last = catalog.list_categories(seeded_db, 1, 2, "category_name", "desc")
    assert [c.category_name for c in last.content] == ["Books stuff"]
    assert last.last_page is True


def test_list_categories_empty(seeded_db):
    with pytest.raises(NotFoundError):
        catalog.list_categories(seeded_db, 0, 10, "id", "asc")


def test_list_categories_rejects_bad_paging(seeded_db, category):
    with pytest.raises(ValidationError):
        catalog.list_categories(seeded_db, -1, 10, "id", "asc")
    with pytest.raises(ValidationError):
        catalog.list_categories(seeded_db, 0, 0, "id", "asc")


def test_add_product_computes_special_price(seeded_db, laptop, admin):
    assert laptop.special_price == 900.0
    stored = seeded_db["product"].find_one({"product_name": "Laptop Pro"})
    assert stored["image"] == "default.png"
    assert stored["seller_id"] == str(admin["_id"])


def test_add_product_validation(seeded_db, category, admin):
    with pytest.raises(ValidationError):
        catalog.add_product(seeded_db, category.category_id, product_request(product_name="TV"), admin)
    with pytest.raises(ValidationError):
        catalog.add_product(seeded_db, category.category_id, product_request(description="  "), admin)
    with pytest.raises(ValidationError):
        catalog.add_product(seeded_db, category.category_id, product_request(discount=120), admin)


def test_add_product_duplicate_name(seeded_db, category, laptop, admin):
    with pytest.raises(DuplicateError):
        catalog.add_product(seeded_db, category.category_id, product_request(), admin)


def test_add_product_unknown_category(seeded_db, admin):
    with pytest.raises(NotFoundError):
        catalog.add_product(seeded_db, "0123456789ab0123456789ab", product_request(), admin)


def test_update_product_records_price_change(seeded_db, laptop, admin):
    updated = catalog.update_product(seeded_db, laptop.product_id, product_request(price=1200.0, discount=25.0), admin)
    assert updated.special_price == 900.0

    history = price_history.history_for_product(seeded_db, laptop.product_id)
    assert len(history) == 1
    assert history[0].old_price == 1000.0
    assert history[0].new_price == 1200.0
    assert history[0].changed_by_username == "admin"
    assert history[0].product_name == "Laptop Pro"


def test_update_product_without_price_change_keeps_history_empty(seeded_db, laptop, admin):
    catalog.update_product(seeded_db, laptop.product_id, product_request(description="Still a fast laptop"), admin)
    catalog.update_product(seeded_db, laptop.product_id, product_request(discount=50.0), admin)
    assert seeded_db["price_history"].count_documents({}) == 0


def test_price_history_newest_first(seeded_db, laptop, admin):
    for price in (1100.0, 1200.0, 1300.0):
        catalog.update_product(seeded_db, laptop.product_id, product_request(price=price), admin)
    history = price_history.history_for_product(seeded_db, laptop.product_id)
    assert [h.new_price for h in history] == [1300.0, 1200.0, 1100.0]


def test_update_product_refreshes_carts(seeded_db, laptop, shopper, admin):
    carts.add_product(seeded_db, shopper, laptop.product_id, 2)
    catalog.update_product(seeded_db, laptop.product_id, product_request(price=2000.0), admin)

    cart = seeded_db["cart"].find_one({"user_id": str(shopper["_id"])})
    assert cart["items"][0]["product_price"] == 1800.0
    assert cart["total_price"] == 3600.0


def test_delete_product_removes_it_from_carts(seeded_db, laptop, phone, shopper):
    carts.add_product(seeded_db, shopper, laptop.product_id, 1)
    carts.add_product(seeded_db, shopper, phone.product_id, 2)

    catalog.delete_product(seeded_db, laptop.product_id)

    cart = seeded_db["cart"].find_one({"user_id": str(shopper["_id"])})
    assert [i["product_id"] for i in cart["items"]] == [phone.product_id]
    assert cart["total_price"] == 800.0
    assert seeded_db["product"].count_documents({"_id": {"$exists": True}}) == 1


def test_delete_unknown_product(seeded_db):
    with pytest.raises(NotFoundError):
        catalog.delete_product(seeded_db, "0123456789ab0123456789ab")


def test_search_by_keyword_is_case_insensitive(seeded_db, laptop, phone):
    page = catalog.search_by_keyword(seeded_db, "LAPTOP", 0, 10, "id", "asc")
    assert [p.product_name for p in page.content] == ["Laptop Pro"]

    with pytest.raises(NotFoundError):
        catalog.search_by_keyword(seeded_db, "tablet", 0, 10, "id", "asc")
    with pytest.raises(ValidationError):
        catalog.search_by_keyword(seeded_db, " ", 0, 10, "id", "asc")


def test_list_products_filters(seeded_db, category, laptop, phone, admin):
    other = catalog.create_category(seeded_db, CategoryRequest(category_name="Furniture"))
    catalog.add_product(seeded_db, other.category_id,
                        product_request(product_name="Oak Table", description="Solid oak table"), admin)

    everything = catalog.list_products(seeded_db, 0, 10, "price", "asc")
    assert everything.total_elements == 3

    electronics = catalog.list_products(seeded_db, 0, 10, "price", "asc", category="electronics")
    assert [p.product_name for p in electronics.content] == ["Phone Max", "Laptop Pro"]

    keyword = catalog.list_products(seeded_db, 0, 10, "id", "asc", keyword="oak", category="Furniture")
    assert [p.product_name for p in keyword.content] == ["Oak Table"]

    with pytest.raises(NotFoundError):
        catalog.list_products(seeded_db, 0, 10, "id", "asc", category="Unknown category")


def test_products_by_category(seeded_db, category, laptop):
    page = catalog.products_by_category(seeded_db, category.category_id, 0, 10, "id", "asc")
    assert page.content[0].product_id == laptop.product_id

    empty = catalog.create_category(seeded_db, CategoryRequest(category_name="Gardening"))
    with pytest.raises(NotFoundError):
        catalog.products_by_category(seeded_db, empty.category_id, 0, 10, "id", "asc")
