# Overview: Service-layer operations for report exports by email (CSV and HTML bodies).

"""
Report exports.

Each exporter aggregates through reporting_service, renders
the result (CSV attachment or HTML table) and hands it to email_service.
Exporters return {"success": bool, "message": str}; delivery and parameter
problems are reported in that dict rather than raised.
"""

from __future__ import annotations

import csv
import io
import re
from html import escape

from flask import current_app

from ..extensions import db
from ..models import Category, Expense, PaymentMethod, Sale
from ..money import format_amount, to_cents
from ..time_utils import format_clock_12h, utcnow
from .email_service import Attachment, EmailDeliveryError, send_email
from .reporting_service import (
    ReportError,
    category_items,
    category_sales_report,
    resolve_day_range,
    sales_summary,
)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.match(value.strip()))


def _money(amount) -> str:
    """Decimal report amount -> "$12.34"."""
    return format_amount(to_cents(amount or 0))


def _result(success: bool, message: str) -> dict:
    return {"success": success, "message": message}


def _method_label(method: str) -> str:
    try:
        return PaymentMethod(method).report_label
    except ValueError:
        return method


# =============================================================================
# Sales summary (CSV)
# =============================================================================

def sales_summary_csv(summary: dict, employee_filter: str | None = None) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")

    w.writerow(["Sales Summary Report"])
    w.writerow(["Date Range", f"{summary['dateFrom']} to {summary['dateTo']}"])
    w.writerow(["Employee Filter", employee_filter or "All Employees"])
    w.writerow(["Generated", utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")])
    w.writerow([])

    w.writerow(["SUMMARY METRICS"])
    w.writerow(["Total Sales", _money(summary["totalSales"])])
    w.writerow(["Total Transactions", summary["totalTransactions"]])
    w.writerow(["Total Items Sold", summary["totalQuantity"]])
    w.writerow(["Average Transaction", _money(summary["averageTransaction"])])
    w.writerow([])

    w.writerow(["PAYMENT METHODS"])
    w.writerow(["Method", "Amount", "Percentage"])
    for row in summary["paymentMethods"]:
        w.writerow([_method_label(row["method"]), _money(row["amount"]), f"{row['percentage']:.2f}%"])
    w.writerow([])

    w.writerow(["TOP SELLING ITEMS"])
    w.writerow(["Item", "Quantity", "Revenue"])
    for row in summary["topSellingItems"]:
        w.writerow([row["name"], row["quantity"], _money(row["revenue"])])
    w.writerow([])

    w.writerow(["HOURLY SALES"])
    w.writerow(["Hour", "Sales", "Transactions"])
    for row in summary["hourlySales"]:
        w.writerow([row["hour"], _money(row["sales"]), row["transactions"]])

    return buf.getvalue()


def export_sales_email(
    client_id: int,
    email: str | None,
    date_from: str | None = None,
    date_to: str | None = None,
    employee_filter: str | None = None,
) -> dict:
    if not is_valid_email(email):
        return _result(False, "Invalid email address format")
    email = email.strip()

    try:
        summary = sales_summary(client_id, date_from, date_to)
    except ReportError as e:
        return _result(False, str(e))

    csv_content = sales_summary_csv(summary, employee_filter)
    filename = f"sales-summary-{summary['dateFrom']}-to-{summary['dateTo']}.csv"
    html = (
        "<h2>Sales Summary Report</h2>"
        f"<p>Date range: {escape(summary['dateFrom'])} to {escape(summary['dateTo'])}</p>"
        f"<p>Total sales: {escape(_money(summary['totalSales']))} "
        f"across {summary['totalTransactions']} transactions.</p>"
        f"<p>The full report is attached as {escape(filename)}.</p>"
    )

    try:
        send_email(
            email,
            "Sales Summary Report",
            html,
            text=csv_content,
            attachments=[Attachment(filename, csv_content, "csv")],
        )
    except EmailDeliveryError as e:
        return _result(False, str(e))
    return _result(True, f"Sales summary sent to {email}")


# =============================================================================
# Category sales (HTML)
# =============================================================================

def _table(headers: list[str], rows: list[list], footer: list | None = None) -> str:
    head = "".join(f"<th>{escape(h)}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{escape(str(cell))}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    foot = ""
    if footer:
        foot = "<tfoot><tr>" + "".join(f"<td><strong>{escape(str(c))}</strong></td>" for c in footer) + "</tr></tfoot>"
    return (
        '<table border="1" cellpadding="6" cellspacing="0" style="border-collapse:collapse">'
        f"<thead><tr>{head}</tr></thead><tbody>{body}</tbody>{foot}</table>"
    )


def category_sales_html(title: str, start_label: str, end_label: str, headers, rows, footer) -> str:
    return (
        f"<h2>{escape(title)}</h2>"
        f"<p>Period: {escape(start_label)} to {escape(end_label)}</p>"
        + (_table(headers, rows, footer) if rows else "<p>No sales in this period.</p>")
    )


def export_category_sales_email(
    client_id: int,
    email: str | None,
    start: str | None = None,
    end: str | None = None,
    category_id: int | None = None,
) -> dict:
    if not is_valid_email(email):
        return _result(False, "Invalid email address format")
    email = email.strip()

    start_label = start or utcnow().date().isoformat()
    end_label = end or start_label

    try:
        if category_id:
            category = db.session.query(Category).filter_by(id=category_id, client_id=client_id).first()
            if category is None:
                return _result(False, "Category not found")
            lines = category_items(client_id, category_id, start, end)
            title = f"{category.name} Sales Report"
            headers = ["Product Name", "Date", "Time", "Quantity", "Total Sales"]
            rows = [
                [line["productName"], line["saleDate"][:10], line["saleTime"], line["totalQuantity"],
                 _money(line["totalSales"])]
                for line in lines
            ]
            footer = [
                "Total", "", "",
                sum(line["totalQuantity"] for line in lines),
                _money(sum(line["totalSales"] for line in lines)),
            ]
        else:
            totals = category_sales_report(client_id, start, end)
            title = "All Categories Sales Report"
            headers = ["Category", "Quantity", "Total Sales"]
            rows = [
                [row["categoryName"], row["totalQuantity"], _money(row["totalSales"])]
                for row in totals
            ]
            footer = [
                "Total",
                sum(row["totalQuantity"] for row in totals),
                _money(sum(row["totalSales"] for row in totals)),
            ]
    except ReportError as e:
        return _result(False, str(e))

    html = category_sales_html(title, start_label, end_label, headers, rows, footer)
    try:
        send_email(email, title, html)
    except EmailDeliveryError as e:
        return _result(False, str(e))
    return _result(True, f"{title} sent to {email}")


# =============================================================================
# Daily logs (HTML)
# =============================================================================

def logs_html(day_label: str, sales: list[Sale], expenses: list[Expense]) -> str:
    total_sales = sum(s.total_amount_cents for s in sales)
    total_expenses = sum(e.amount_cents for e in expenses)

    summary = (
        "<ul>"
        f"<li>Total Sales: {escape(format_amount(total_sales))}</li>"
        f"<li>Total Transactions: {len(sales)}</li>"
        f"<li>Total Expenses: {escape(format_amount(total_expenses))}</li>"
        f"<li>Net Cashflow: {escape(format_amount(total_sales - total_expenses))}</li>"
        "</ul>"
    )
    sales_table = _table(
        ["ID", "Time", "Amount", "Payment", "Items", "Salesperson", "Remarks"],
        [
            [
                s.receipt_number or s.id,
                format_clock_12h(s.created_at),
                format_amount(s.total_amount_cents),
                s.payment_display,
                sum(item.quantity for item in s.items),
                s.salesperson_name or "",
                s.remarks or "",
            ]
            for s in sales
        ],
    )
    expenses_table = _table(
        ["ID", "Time", "Description", "Category", "Amount"],
        [
            [
                e.id,
                format_clock_12h(e.created_at),
                e.description,
                e.category or "",
                format_amount(e.amount_cents),
            ]
            for e in expenses
        ],
    )
    return (
        f"<h2>POS Transaction Logs - {escape(day_label)}</h2>"
        f"{summary}<h3>Sales</h3>{sales_table}<h3>Expenses</h3>{expenses_table}"
    )


def send_logs(client_id: int) -> dict:
    """Email today's sales and expenses to LOG_REPORT_RECIPIENT."""
    recipient = current_app.config.get("LOG_REPORT_RECIPIENT")
    if not is_valid_email(recipient):
        return _result(False, "LOG_REPORT_RECIPIENT is not configured")

    first, _, start_dt, end_dt = resolve_day_range(None, None)
    sales = (
        db.session.query(Sale)
        .filter(Sale.client_id == client_id, Sale.created_at >= start_dt, Sale.created_at < end_dt)
        .order_by(Sale.created_at.asc(), Sale.id.asc())
        .all()
    )
    expenses = (
        db.session.query(Expense)
        .filter(Expense.client_id == client_id, Expense.created_at >= start_dt, Expense.created_at < end_dt)
        .order_by(Expense.created_at.asc(), Expense.id.asc())
        .all()
    )

    day_label = first.isoformat()
    subject = f"POS Transaction Logs - {day_label}"
    try:
        send_email(recipient.strip(), subject, logs_html(day_label, sales, expenses))
    except EmailDeliveryError as e:
        return _result(False, str(e))
    return _result(True, f"Logs for {day_label} sent ({len(sales)} sales, {len(expenses)} expenses)")
