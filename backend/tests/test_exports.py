# Overview: Pytest coverage for emailed report exports.

"""
Export tests run against a recording mail transport (see conftest), so no
SMTP server is contacted. Exporters answer {success, message}.
"""

import smtplib

import pytest

from posx.services import export_service


def _html_part(msg):
    alternative = msg.get_payload()[0]
    for part in alternative.get_payload():
        if part.get_content_type() == "text/html":
            return part.get_payload(decode=True).decode("utf-8")
    raise AssertionError("message has no html part")


@pytest.fixture
def cola(make_category, make_product):
    drinks = make_category("Drinks")
    return make_product("Cola", quantity=50, price_cents=200, category=drinks)


class TestSalesSummaryExport:

    def test_sends_csv_attachment(self, client, headers, sell, cola, mail_outbox):
        sell((cola, 3))

        resp = client.post(
            "/pos/sales/export-email",
            json={"email": "owner@example.com", "dateFrom": None, "employeeFilter": "Ann"},
            headers=headers,
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["message"] == "Sales summary sent to owner@example.com"

        assert len(mail_outbox.messages) == 1
        msg = mail_outbox.messages[0]
        assert msg["To"] == "owner@example.com"
        assert msg["Subject"] == "Sales Summary Report"

        attachment = msg.get_payload()[1]
        assert attachment.get_filename().startswith("sales-summary-")
        assert attachment.get_filename().endswith(".csv")
        csv_text = attachment.get_payload(decode=True).decode("utf-8")
        assert "SUMMARY METRICS" in csv_text
        assert "Total Sales,$6.00" in csv_text
        assert "Employee Filter,Ann" in csv_text
        assert "Cash Income,$6.00,100.00%" in csv_text
        assert "Cola,3,$6.00" in csv_text

    def test_invalid_email(self, client, headers, mail_outbox):
        resp = client.post("/pos/sales/export-email", json={"email": "not-an-address"}, headers=headers)

        assert resp.status_code == 400
        assert resp.get_json() == {"success": False, "message": "Invalid email address format"}
        assert mail_outbox.messages == []

    def test_smtp_failure_reported(self, client, headers, mail_outbox):
        mail_outbox.fail_with = smtplib.SMTPException("connection dropped")

        resp = client.post("/pos/sales/export-email", json={"email": "owner@example.com"}, headers=headers)

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["success"] is False
        assert "connection dropped" in body["message"]

    def test_incomplete_smtp_configuration(self, app, client, headers, mail_outbox, monkeypatch):
        monkeypatch.setitem(app.config, "SMTP_HOST", None)

        resp = client.post("/pos/sales/export-email", json={"email": "owner@example.com"}, headers=headers)

        assert resp.get_json()["message"] == "SMTP configuration not complete. Missing: SMTP_HOST"
        assert mail_outbox.messages == []

    def test_summary_csv_defaults(self):
        summary = {
            "dateFrom": "2024-05-01",
            "dateTo": "2024-05-01",
            "totalSales": 0.0,
            "totalTransactions": 0,
            "totalQuantity": 0,
            "averageTransaction": 0.0,
            "paymentMethods": [{"method": "Alipay", "amount": 0.0, "percentage": 0.0}],
            "topSellingItems": [],
            "hourlySales": [],
        }

        text = export_service.sales_summary_csv(summary)

        assert text.startswith("Sales Summary Report\n")
        assert "Employee Filter,All Employees" in text
        assert "Alipay,$0.00,0.00%" in text


class TestCategorySalesExport:

    def test_single_category(self, client, headers, sell, cola, mail_outbox):
        sell((cola, 2))

        resp = client.post(
            "/pos/export-category-sales-email",
            json={"email": "owner@example.com", "categoryId": cola.category_id},
            headers=headers,
        )

        assert resp.status_code == 200
        msg = mail_outbox.messages[0]
        assert msg["Subject"] == "Drinks Sales Report"
        html = _html_part(msg)
        assert "<th>Product Name</th>" in html
        assert "<td>Cola</td>" in html
        assert "<td><strong>$4.00</strong></td>" in html

    def test_all_categories(self, client, headers, sell, cola, mail_outbox):
        sell((cola, 1))

        resp = client.post("/pos/export-category-sales-email", json={"email": "owner@example.com"}, headers=headers)

        assert resp.status_code == 200
        msg = mail_outbox.messages[0]
        assert msg["Subject"] == "All Categories Sales Report"
        assert "<td>Drinks</td>" in _html_part(msg)

    def test_names_are_escaped(self, client, headers, sell, make_category, make_product, mail_outbox):
        snacks = make_category("<b>Snacks</b>")
        chips = make_product("Chips & Dip", price_cents=300, category=snacks)
        sell((chips, 1))

        client.post(
            "/pos/export-category-sales-email",
            json={"email": "owner@example.com", "categoryId": snacks.id},
            headers=headers,
        )

        html = _html_part(mail_outbox.messages[0])
        assert "&lt;b&gt;Snacks&lt;/b&gt; Sales Report" in html
        assert "Chips &amp; Dip" in html
        assert "<b>Snacks</b>" not in html

    def test_unknown_category(self, client, headers, other_shop, make_category, mail_outbox):
        theirs = make_category("Theirs", client_id=other_shop.id)

        resp = client.post(
            "/pos/export-category-sales-email",
            json={"email": "owner@example.com", "categoryId": theirs.id},
            headers=headers,
        )

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Category not found"
        assert mail_outbox.messages == []

    def test_empty_period(self, client, headers, cola, mail_outbox):
        client.post(
            "/pos/export-category-sales-email",
            json={"email": "owner@example.com", "startDate": "2001-01-01", "endDate": "2001-01-02"},
            headers=headers,
        )

        html = _html_part(mail_outbox.messages[0])
        assert "No sales in this period." in html
        assert "Period: 2001-01-01 to 2001-01-02" in html


class TestSendLogs:

    def test_sends_todays_logs(self, client, headers, sell, cola, mail_outbox):
        sell((cola, 1))
        client.post("/pos/expenses", json={"description": "Ice", "amount": 0.5}, headers=headers)

        resp = client.post("/pos/send-logs", headers=headers)

        assert resp.status_code == 200
        assert "(1 sales, 1 expenses)" in resp.get_json()["message"]
        msg = mail_outbox.messages[0]
        assert msg["To"] == "owner@posx.local"
        assert msg["Subject"].startswith("POS Transaction Logs - ")
        html = _html_part(msg)
        assert "Net Cashflow: $1.50" in html
        assert "<td>ORD-0001</td>" in html

    def test_missing_recipient(self, app, client, headers, mail_outbox, monkeypatch):
        monkeypatch.setitem(app.config, "LOG_REPORT_RECIPIENT", None)

        resp = client.post("/pos/send-logs", headers=headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "LOG_REPORT_RECIPIENT is not configured"
