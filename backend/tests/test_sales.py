# Overview: Pytest coverage for checkout (sale creation) behavior.

"""
Sale creation tests.

The sale header, its items, the quantity decrements and the stock movements
are written in one transaction; these tests check the committed outcome and
that a failing line leaves nothing behind.
"""

import pytest

from posx.models import DocumentSequence, Product, Sale, SaleItem, StockMovement


def _sale_payload(*lines, payment="cash", **extra):
    items = [
        {
            "productId": product_id,
            "quantity": qty,
            "unitPrice": price,
            "totalPrice": round(qty * price, 2),
        }
        for product_id, qty, price in lines
    ]
    payload = {
        "items": items,
        "totalAmount": round(sum(i["totalPrice"] for i in items), 2),
        "paymentMethod": payment,
        "printReceipt": True,
    }
    payload.update(extra)
    return payload


class TestCreateSale:

    def test_sale_decrements_stock(self, client, headers, db_session, make_product):
        """Product at 10 units and 2.00; selling 3 leaves 7."""
        product = make_product("Cola", quantity=10, price_cents=200)

        resp = client.post("/pos/sales", json=_sale_payload((product.id, 3, 2.00)), headers=headers)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["success"] is True
        assert body["sale"]["totalAmount"] == 6.00
        assert body["sale"]["id"]
        assert body["sale"]["createdAt"].endswith("Z")
        assert body["sale"]["items"] == [
            {"productId": product.id, "quantity": 3, "unitPrice": 2.0, "totalPrice": 6.0}
        ]

        db_session.refresh(product)
        assert product.quantity == 7

    def test_sale_records_movements(self, client, headers, db_session, make_product):
        a = make_product("A", quantity=5)
        b = make_product("B", quantity=5)

        resp = client.post(
            "/pos/sales",
            json=_sale_payload((a.id, 1, 2.0), (b.id, 2, 2.0)),
            headers=headers,
        )
        assert resp.status_code == 201
        sale_id = resp.get_json()["sale"]["id"]

        movements = db_session.query(StockMovement).order_by(StockMovement.id).all()
        assert [(m.product_id, m.quantity_delta, m.quantity_after, m.reason) for m in movements] == [
            (a.id, -1, 4, "sale"),
            (b.id, -2, 3, "sale"),
        ]
        assert all(m.sale_id == sale_id for m in movements)

    def test_unknown_product_rolls_back_everything(self, client, headers, db_session, make_product):
        """A failing second line leaves no header, no items and no stock change."""
        product = make_product("Cola", quantity=10)

        resp = client.post(
            "/pos/sales",
            json=_sale_payload((product.id, 3, 2.0), (999999, 1, 1.0)),
            headers=headers,
        )

        assert resp.status_code == 404
        body = resp.get_json()
        assert body["code"] == "not_found"
        assert "999999" in body["error"]

        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0
        assert db_session.query(StockMovement).count() == 0
        assert db_session.query(DocumentSequence).count() == 0
        db_session.refresh(product)
        assert product.quantity == 10

    def test_other_clients_product_is_not_found(self, client, headers, other_shop, make_product):
        foreign = make_product("Foreign", quantity=10, client_id=other_shop.id)

        resp = client.post("/pos/sales", json=_sale_payload((foreign.id, 1, 2.0)), headers=headers)

        assert resp.status_code == 404

    def test_oversell_allowed_by_default(self, client, headers, db_session, make_product):
        product = make_product("Scarce", quantity=1)

        resp = client.post("/pos/sales", json=_sale_payload((product.id, 3, 2.0)), headers=headers)

        assert resp.status_code == 201
        db_session.refresh(product)
        assert product.quantity == -2

    def test_oversell_rejected_when_disabled(self, app, client, headers, db_session, make_product, monkeypatch):
        monkeypatch.setitem(app.config, "SALES_ALLOW_NEGATIVE_STOCK", False)
        plenty = make_product("Plenty", quantity=10)
        scarce = make_product("Scarce", quantity=1)

        resp = client.post(
            "/pos/sales",
            json=_sale_payload((plenty.id, 2, 2.0), (scarce.id, 3, 2.0)),
            headers=headers,
        )

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["code"] == "invalid_argument"
        assert body["details"] == {"productId": scarce.id, "available": 1, "requested": 3}
        assert db_session.query(Sale).count() == 0
        db_session.refresh(plenty)
        db_session.refresh(scarce)
        assert plenty.quantity == 10
        assert scarce.quantity == 1

    def test_receipt_numbers_are_sequential_per_client(
        self, client, headers, other_headers, other_shop, make_product
    ):
        mine = make_product("Mine", quantity=50)
        theirs = make_product("Theirs", quantity=50, client_id=other_shop.id)

        numbers = [
            client.post("/pos/sales", json=_sale_payload((mine.id, 1, 2.0)), headers=headers)
            .get_json()["sale"]["receiptNumber"]
            for _ in range(3)
        ]
        other = client.post(
            "/pos/sales", json=_sale_payload((theirs.id, 1, 2.0)), headers=other_headers
        ).get_json()["sale"]["receiptNumber"]

        assert numbers == ["ORD-0001", "ORD-0002", "ORD-0003"]
        assert other == "ORD-0001"

    def test_failed_sale_does_not_consume_receipt_number(self, client, headers, make_product):
        product = make_product("Cola", quantity=10)

        client.post("/pos/sales", json=_sale_payload((999999, 1, 1.0)), headers=headers)
        resp = client.post("/pos/sales", json=_sale_payload((product.id, 1, 2.0)), headers=headers)

        assert resp.get_json()["sale"]["receiptNumber"] == "ORD-0001"

    def test_unknown_payment_label_kept(self, client, headers, db_session, make_product):
        product = make_product("Cola", quantity=10)

        resp = client.post(
            "/pos/sales",
            json=_sale_payload((product.id, 1, 2.0), payment="Alipay"),
            headers=headers,
        )

        assert resp.status_code == 201
        assert resp.get_json()["sale"]["paymentMethod"] == "Alipay"
        sale = db_session.query(Sale).one()
        assert sale.payment_method == "others"
        assert sale.payment_label == "Alipay"

    def test_optional_header_fields(self, client, headers, make_product):
        product = make_product("Cola", quantity=10)

        resp = client.post(
            "/pos/sales",
            json=_sale_payload(
                (product.id, 2, 2.0),
                payment="member",
                promotion=0.5,
                discount=0.25,
                customReduce=0.1,
                customDiscount=10,
                remarks="birthday",
                salesPerson="Ann",
            ),
            headers=headers,
        )

        sale = resp.get_json()["sale"]
        assert sale["paymentMethod"] == "member"
        assert sale["promotion"] == 0.5
        assert sale["discount"] == 0.25
        assert sale["customReduce"] == 0.1
        assert sale["customDiscount"] == 10
        assert sale["remarks"] == "birthday"
        assert sale["salesPerson"] == "Ann"


class TestSaleValidation:

    def test_requires_items(self, client, headers):
        resp = client.post("/pos/sales", json={"items": [], "totalAmount": 0, "paymentMethod": "cash"}, headers=headers)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "invalid_argument"

    def test_rejects_non_positive_quantity(self, client, headers, db_session, make_product):
        product = make_product("Cola", quantity=10)

        resp = client.post("/pos/sales", json=_sale_payload((product.id, 0, 2.0)), headers=headers)

        assert resp.status_code == 400
        assert "items[0]" in resp.get_json()["error"]
        assert db_session.query(Sale).count() == 0

    def test_rejects_fractional_quantity(self, client, headers, make_product):
        product = make_product("Cola", quantity=10)
        payload = _sale_payload((product.id, 1, 2.0))
        payload["items"][0]["quantity"] = 1.5

        resp = client.post("/pos/sales", json=payload, headers=headers)

        assert resp.status_code == 400

    def test_rejects_quantity_above_limit(self, client, headers, db_session, make_product):
        product = make_product("Cola", quantity=10)
        payload = _sale_payload((product.id, 1, 2.0))
        payload["items"][0]["quantity"] = 10**19

        resp = client.post("/pos/sales", json=payload, headers=headers)

        assert resp.status_code == 400
        assert "quantity must be between 1 and 1000000000" in resp.get_json()["error"]
        assert db_session.query(Sale).count() == 0
        assert db_session.get(Product, product.id).quantity == 10

    @pytest.mark.parametrize("total", [1e30, "1e30", "-1e40"])
    def test_rejects_oversized_amount(self, client, headers, db_session, make_product, total):
        product = make_product("Cola", quantity=10)

        resp = client.post(
            "/pos/sales", json=_sale_payload((product.id, 1, 2.0), totalAmount=total), headers=headers
        )

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "totalAmount must be a number"
        assert db_session.query(Sale).count() == 0

        assert resp.status_code == 400

    def test_requires_payment_method(self, client, headers, make_product):
        product = make_product("Cola", quantity=10)
        payload = _sale_payload((product.id, 1, 2.0))
        del payload["paymentMethod"]

        resp = client.post("/pos/sales", json=payload, headers=headers)

        assert resp.status_code == 400
        assert "paymentMethod" in resp.get_json()["error"]

    def test_requires_authentication(self, client, make_product):
        product = make_product("Cola", quantity=10)

        resp = client.post("/pos/sales", json=_sale_payload((product.id, 1, 2.0)))

        assert resp.status_code == 401
        assert resp.get_json()["code"] == "unauthenticated"


class TestSalesSummary:

    def test_summary_reflects_committed_sale(self, client, headers, make_product):
        product = make_product("Cola", quantity=10, price_cents=200)
        client.post("/pos/sales", json=_sale_payload((product.id, 3, 2.0)), headers=headers)

        resp = client.get("/pos/sales/summary", headers=headers)

        assert resp.status_code == 200
        summary = resp.get_json()
        assert summary["totalSales"] >= 6.0
        assert summary["totalTransactions"] == 1
        assert summary["totalQuantity"] == 3
        assert summary["averageTransaction"] == 6.0
        assert summary["paymentMethods"] == [{"method": "cash", "amount": 6.0, "percentage": 100.0}]
        assert summary["topSellingItems"] == [{"name": "Cola", "quantity": 3, "revenue": 6.0}]
        assert len(summary["hourlySales"]) == 1
        assert summary["hourlySales"][0]["transactions"] == 1

    def test_summary_never_double_counts(self, client, headers, make_product):
        """A sale with several lines is one transaction and counted once."""
        a = make_product("A", quantity=10)
        b = make_product("B", quantity=10)
        client.post("/pos/sales", json=_sale_payload((a.id, 1, 2.0), (b.id, 1, 3.0)), headers=headers)

        summary = client.get("/pos/sales/summary", headers=headers).get_json()

        assert summary["totalTransactions"] == 1
        assert summary["totalSales"] == 5.0

    def test_empty_summary_has_default_methods(self, client, headers):
        summary = client.get("/pos/sales/summary", headers=headers).get_json()

        assert summary["totalSales"] == 0.0
        assert summary["averageTransaction"] == 0.0
        assert [m["method"] for m in summary["paymentMethods"]] == ["cash", "member", "others"]

    def test_summary_is_client_scoped(self, client, headers, other_headers, make_product):
        product = make_product("Cola", quantity=10)
        client.post("/pos/sales", json=_sale_payload((product.id, 1, 2.0)), headers=headers)

        summary = client.get("/pos/sales/summary", headers=other_headers).get_json()

        assert summary["totalTransactions"] == 0

    def test_invalid_dates(self, client, headers):
        resp = client.get("/pos/sales/summary?dateFrom=yesterday", headers=headers)
        assert resp.status_code == 400

        resp = client.get("/pos/sales/summary?dateFrom=2024-05-02&dateTo=2024-05-01", headers=headers)
        assert resp.status_code == 400

    def test_get_sale_by_id(self, client, headers, make_product):
        product = make_product("Cola", quantity=10)
        created = client.post(
            "/pos/sales", json=_sale_payload((product.id, 2, 2.0)), headers=headers
        ).get_json()["sale"]

        resp = client.get(f"/pos/sales/{created['id']}", headers=headers)

        assert resp.status_code == 200
        sale = resp.get_json()["sale"]
        assert sale["receiptNumber"] == created["receiptNumber"]
        assert sale["items"] == [
            {"productId": product.id, "quantity": 2, "unitPrice": 2.0, "totalPrice": 4.0}
        ]

    def test_get_sale_is_client_scoped(self, client, headers, other_headers, make_product):
        product = make_product("Cola", quantity=10)
        sale_id = client.post(
            "/pos/sales", json=_sale_payload((product.id, 1, 2.0)), headers=headers
        ).get_json()["sale"]["id"]

        assert client.get(f"/pos/sales/{sale_id}", headers=other_headers).status_code == 404
        assert client.get("/pos/sales/999999", headers=headers).get_json()["error"] == "Sale not found"
