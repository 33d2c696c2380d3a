# Overview: Pytest coverage for the product catalog and categories.

"""
Catalog tests: product CRUD, ordering, low stock, spreadsheet import/export
and categories. Every lookup is scoped to the caller's client.
"""

from posx.models import Category, Product


class TestProducts:

    def test_create_product(self, client, headers, make_category):
        drinks = make_category("Drinks")

        resp = client.post(
            "/pos/products",
            json={"name": "Cola", "price": 2.5, "quantity": 12, "categoryId": drinks.id, "barcode": "123"},
            headers=headers,
        )

        assert resp.status_code == 201
        product = resp.get_json()["product"]
        assert product["name"] == "Cola"
        assert product["price"] == 2.5
        assert product["quantity"] == 12
        assert product["startQty"] == 12
        assert product["categoryId"] == drinks.id
        assert product["isOffShelf"] is False

    def test_create_requires_name_and_price(self, client, headers):
        resp = client.post("/pos/products", json={"name": "Cola"}, headers=headers)

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing required fields: price"

    def test_negative_price_rejected(self, client, headers):
        resp = client.post("/pos/products", json={"name": "Cola", "price": -1}, headers=headers)
        assert resp.status_code == 400

    def test_unknown_category_is_not_found(self, client, headers):
        resp = client.post("/pos/products", json={"name": "Cola", "price": 1, "categoryId": 999999}, headers=headers)
        assert resp.status_code == 404

    def test_duplicate_name_in_category(self, client, headers, make_category):
        drinks = make_category("Drinks")
        snacks = make_category("Snacks")
        client.post("/pos/products", json={"name": "Cola", "price": 1, "categoryId": drinks.id}, headers=headers)

        dup = client.post("/pos/products", json={"name": " cola ", "price": 1, "categoryId": drinks.id}, headers=headers)
        other = client.post("/pos/products", json={"name": "Cola", "price": 1, "categoryId": snacks.id}, headers=headers)

        assert dup.status_code == 409
        assert dup.get_json()["code"] == "conflict"
        assert other.status_code == 201

    def test_partial_update_keeps_other_fields(self, client, headers, db_session, make_product):
        product = make_product("Cola", quantity=10, price_cents=200)

        resp = client.put(f"/pos/products/{product.id}", json={"price": 3.25, "remarks": None}, headers=headers)

        assert resp.status_code == 200
        body = resp.get_json()["product"]
        assert body["price"] == 3.25
        assert body["name"] == "Cola"
        assert body["quantity"] == 10
        db_session.refresh(product)
        assert product.price_cents == 325

    def test_update_other_clients_product(self, client, other_headers, make_product):
        product = make_product("Cola")

        resp = client.put(f"/pos/products/{product.id}", json={"price": 1}, headers=other_headers)

        assert resp.status_code == 404

    def test_get_product(self, client, headers, other_headers, make_product):
        product = make_product("Cola")

        assert client.get(f"/pos/products/{product.id}", headers=headers).get_json()["product"]["name"] == "Cola"
        assert client.get(f"/pos/products/{product.id}", headers=other_headers).status_code == 404

    def test_delete_product_without_sales(self, client, headers, db_session, make_product):
        product = make_product("Cola")
        product_id = product.id

        resp = client.delete(f"/pos/products/{product_id}", headers=headers)

        assert resp.status_code == 200
        assert db_session.get(Product, product_id) is None

    def test_delete_product_with_sales_is_refused(self, client, headers, make_product):
        product = make_product("Cola", quantity=5)
        client.post(
            "/pos/sales",
            json={
                "items": [{"productId": product.id, "quantity": 1, "unitPrice": 2.0, "totalPrice": 2.0}],
                "totalAmount": 2.0,
                "paymentMethod": "cash",
            },
            headers=headers,
        )

        resp = client.delete(f"/pos/products/{product.id}", headers=headers)

        assert resp.status_code == 409
        assert "off shelf" in resp.get_json()["error"]

    def test_list_is_client_scoped(self, client, headers, other_shop, make_product):
        make_product("Mine")
        make_product("Theirs", client_id=other_shop.id)

        names = [p["name"] for p in client.get("/pos/products", headers=headers).get_json()["products"]]

        assert names == ["Mine"]

    def test_stick_moves_product_to_top(self, client, headers, make_category, make_product):
        drinks = make_category("Drinks")
        make_product("Apple", category=drinks)
        water = make_product("Water", category=drinks)

        before = client.get(f"/pos/products/category/{drinks.id}", headers=headers).get_json()["products"]
        client.post(f"/pos/products/{water.id}/stick", headers=headers)
        after = client.get(f"/pos/products/category/{drinks.id}", headers=headers).get_json()["products"]

        assert [p["name"] for p in before] == ["Apple", "Water"]
        assert [p["name"] for p in after] == ["Water", "Apple"]
        assert after[0]["sortOrder"] == 1

    def test_toggle_off_shelf(self, client, headers, make_product):
        product = make_product("Cola")

        first = client.post(f"/pos/products/{product.id}/toggle-off-shelf", headers=headers).get_json()
        second = client.post(f"/pos/products/{product.id}/toggle-off-shelf", headers=headers).get_json()

        assert first["product"]["isOffShelf"] is True
        assert second["product"]["isOffShelf"] is False

    def test_low_stock(self, client, headers, make_product):
        make_product("Plenty", quantity=50)
        make_product("Few", quantity=3)
        make_product("None", quantity=0)
        hidden = make_product("Hidden", quantity=1)
        client.post(f"/pos/products/{hidden.id}/toggle-off-shelf", headers=headers)

        default = client.get("/pos/products/low-stock", headers=headers).get_json()["products"]
        tight = client.get("/pos/products/low-stock?threshold=1", headers=headers).get_json()["products"]

        assert [p["name"] for p in default] == ["None", "Few"]
        assert [p["name"] for p in tight] == ["None"]


class TestImportExport:

    def test_import_creates_products_and_categories(self, client, headers, db_session):
        resp = client.post(
            "/pos/products/import",
            json={"products": [
                {"name": "Cola", "price": 2, "quantity": 10, "categoryName": "Drinks"},
                {"name": "Water", "price": "1.5", "categoryName": "drinks"},
                {"name": "Bread", "price": 3},
            ]},
            headers=headers,
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body == {"success": True, "imported": 3, "updated": 0, "errors": []}
        assert db_session.query(Category).count() == 1
        water = db_session.query(Product).filter_by(name="Water").one()
        assert water.price_cents == 150
        assert water.category.name == "Drinks"

    def test_existing_rows_skipped_unless_update(self, client, headers, db_session, make_product):
        product = make_product("Cola", quantity=1, price_cents=100)
        rows = [{"name": "COLA", "price": 2.0, "quantity": 40}]

        skipped = client.post("/pos/products/import", json={"products": rows}, headers=headers).get_json()
        db_session.refresh(product)
        assert skipped["imported"] == 0
        assert skipped["updated"] == 0
        assert len(skipped["errors"]) == 1
        assert product.price_cents == 100

        updated = client.post(
            "/pos/products/import", json={"products": rows, "updateExisting": True}, headers=headers
        ).get_json()
        db_session.refresh(product)
        assert updated["updated"] == 1
        assert product.price_cents == 200
        assert product.quantity == 40

    def test_bad_row_does_not_stop_import(self, client, headers):
        resp = client.post(
            "/pos/products/import",
            json={"products": [{"name": "Cola"}, {"name": "Water", "price": 1}]},
            headers=headers,
        )

        body = resp.get_json()
        assert body["imported"] == 1
        assert len(body["errors"]) == 1
        assert body["errors"][0].startswith("Row skipped (Cola)")

    def test_import_requires_list(self, client, headers):
        resp = client.post("/pos/products/import", json={"products": "Cola"}, headers=headers)
        assert resp.status_code == 400

    def test_export_uses_import_format(self, client, headers, make_category, make_product):
        drinks = make_category("Drinks")
        make_product("Cola", quantity=4, price_cents=250, category=drinks)

        body = client.get("/pos/products/export", headers=headers).get_json()

        assert body["total"] == 1
        row = body["products"][0]
        assert row["name"] == "Cola"
        assert row["price"] == 2.5
        assert row["quantity"] == 4
        assert row["categoryName"] == "Drinks"


class TestCategories:

    def test_create_category_default_color(self, client, headers):
        resp = client.post("/pos/categories", json={"name": "Drinks"}, headers=headers)

        assert resp.status_code == 201
        assert resp.get_json()["category"]["color"] == "#6B7280"

    def test_duplicate_category_name(self, client, headers, other_headers):
        client.post("/pos/categories", json={"name": "Drinks"}, headers=headers)

        assert client.post("/pos/categories", json={"name": "DRINKS"}, headers=headers).status_code == 409
        assert client.post("/pos/categories", json={"name": "Drinks"}, headers=other_headers).status_code == 201

    def test_list_includes_product_counts(self, client, headers, make_category, make_product):
        drinks = make_category("Drinks")
        make_category("Bakery")
        make_product("Cola", category=drinks)
        make_product("Water", category=drinks)

        categories = client.get("/pos/categories", headers=headers).get_json()["categories"]
        flat = client.get("/pos/categories/flat", headers=headers).get_json()["categories"]

        assert [(c["name"], c["productCount"]) for c in categories] == [("Bakery", 0), ("Drinks", 2)]
        assert [c["name"] for c in flat] == ["Bakery", "Drinks"]
        assert "productCount" not in flat[0]

    def test_update_category(self, client, headers, make_category):
        drinks = make_category("Drinks")

        resp = client.put(f"/pos/categories/{drinks.id}", json={"color": "#FF0000"}, headers=headers)

        assert resp.status_code == 200
        assert resp.get_json()["category"] == {
            "id": drinks.id,
            "name": "Drinks",
            "color": "#FF0000",
            "createdAt": resp.get_json()["category"]["createdAt"],
        }

    def test_delete_category_with_products_refused(self, client, headers, make_category, make_product):
        drinks = make_category("Drinks")
        make_product("Cola", category=drinks)

        resp = client.delete(f"/pos/categories/{drinks.id}", headers=headers)

        assert resp.status_code == 400

    def test_delete_empty_category(self, client, headers, other_headers, make_category):
        drinks = make_category("Drinks")

        assert client.delete(f"/pos/categories/{drinks.id}", headers=other_headers).status_code == 404
        assert client.delete(f"/pos/categories/{drinks.id}", headers=headers).status_code == 200
        assert client.get("/pos/categories", headers=headers).get_json()["categories"] == []
