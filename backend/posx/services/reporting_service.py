# Overview: Service-layer operations for reporting; read-only aggregations over sales, products and expenses.

from __future__ import annotations

from datetime import date, datetime, timedelta

from flask import current_app
from sqlalchemy import case, extract, func

from posx.extensions import db
from posx.models import (
    Category,
    Expense,
    OpeningBalance,
    PaymentMethod,
    Product,
    Sale,
    SaleItem,
)
from posx.money import from_cents
from posx.time_utils import (
    day_range,
    format_clock_12h,
    hour_label_12h,
    parse_iso_date,
    parse_iso_datetime,
    to_utc_z,
    utcnow,
)

TOP_ITEMS_LIMIT = 5
TOP_SALES_LIMIT = 50
TOP_PRODUCTS_LIMIT = 20


class ReportError(Exception):
    """Raised when report parameters are unusable (400)."""
    pass


# =============================================================================
# Date ranges
# =============================================================================

def today() -> date:
    return utcnow().date()


def resolve_day_range(date_from: str | None, date_to: str | None) -> tuple[date, date, datetime, datetime]:
    """
    Calendar-day range, both ends inclusive; defaults to today (UTC).

    Returns (first_day, last_day, start_dt, end_dt) where [start_dt, end_dt)
    is the half-open datetime window.
    """
    try:
        first = parse_iso_date(date_from) or today()
        last = parse_iso_date(date_to) or first
    except ValueError:
        raise ReportError("Dates must be formatted as YYYY-MM-DD")
    if last < first:
        raise ReportError("dateTo must not be before dateFrom")
    start_dt, end_dt = day_range(first, last)
    return first, last, start_dt, end_dt


def resolve_range(start: str | None, end: str | None) -> tuple[datetime, datetime]:
    """
    Half-open [start, end) window from startDate/endDate.

    A date-only end ("2024-05-01") covers that whole day; a full timestamp
    end is inclusive. Missing values default to today.
    """
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ReportError("startDate and endDate must be ISO-8601 dates")

    if start_dt is None:
        start_dt = datetime.combine(today(), datetime.min.time())
    if end_dt is None:
        end_dt = datetime.combine(start_dt.date() + timedelta(days=1), datetime.min.time())
    elif len(end.strip()) <= 10:
        end_dt += timedelta(days=1)
    else:
        end_dt += timedelta(microseconds=1)

    if end_dt <= start_dt:
        raise ReportError("endDate must not be before startDate")
    return start_dt, end_dt


def _sales_window(client_id: int, start_dt: datetime, end_dt: datetime):
    return (
        Sale.client_id == client_id,
        Sale.created_at >= start_dt,
        Sale.created_at < end_dt,
    )


def _pct(part: int, whole: int) -> float:
    return round(part * 100.0 / whole, 2) if whole else 0.0


# =============================================================================
# Sales summary
# =============================================================================

def sales_summary(client_id: int, date_from: str | None = None, date_to: str | None = None) -> dict:
    """
    Totals for a calendar-day range.

    Every committed sale in the range is counted exactly once.
    """
    first, last, start_dt, end_dt = resolve_day_range(date_from, date_to)
    window = _sales_window(client_id, start_dt, end_dt)

    total_cents, transactions = db.session.query(
        func.coalesce(func.sum(Sale.total_amount_cents), 0),
        func.count(Sale.id),
    ).filter(*window).one()
    total_cents = int(total_cents or 0)
    transactions = int(transactions or 0)

    total_quantity = db.session.query(
        func.coalesce(func.sum(SaleItem.quantity), 0)
    ).join(Sale, SaleItem.sale_id == Sale.id).filter(*window).scalar()

    method_rows = (
        db.session.query(Sale.payment_method, func.sum(Sale.total_amount_cents).label("amount"))
        .filter(*window)
        .group_by(Sale.payment_method)
        .order_by(func.sum(Sale.total_amount_cents).desc())
        .all()
    )
    payment_methods = [
        {
            "method": row.payment_method,
            "amount": from_cents(int(row.amount or 0)),
            "percentage": _pct(int(row.amount or 0), total_cents),
        }
        for row in method_rows
    ]
    if not payment_methods:
        payment_methods = [
            {"method": m.value, "amount": 0.0, "percentage": 0.0}
            for m in (PaymentMethod.CASH, PaymentMethod.MEMBER, PaymentMethod.OTHERS)
        ]

    revenue = func.sum(SaleItem.total_price_cents)
    top_rows = (
        db.session.query(
            Product.name,
            func.sum(SaleItem.quantity).label("quantity"),
            revenue.label("revenue"),
        )
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .filter(*window)
        .group_by(Product.id, Product.name)
        .order_by(revenue.desc())
        .limit(TOP_ITEMS_LIMIT)
        .all()
    )

    hour = extract("hour", Sale.created_at)
    hourly_rows = (
        db.session.query(
            hour.label("hour"),
            func.sum(Sale.total_amount_cents).label("sales"),
            func.count(Sale.id).label("transactions"),
        )
        .filter(*window)
        .group_by(hour)
        .order_by(hour)
        .all()
    )

    return {
        "dateFrom": first.isoformat(),
        "dateTo": last.isoformat(),
        "totalSales": from_cents(total_cents),
        "totalTransactions": transactions,
        "totalQuantity": int(total_quantity or 0),
        "averageTransaction": from_cents(round(total_cents / transactions)) if transactions else 0.0,
        "paymentMethods": payment_methods,
        "topSellingItems": [
            {"name": r.name, "quantity": int(r.quantity or 0), "revenue": from_cents(int(r.revenue or 0))}
            for r in top_rows
        ],
        "hourlySales": [
            {
                "hour": f"{int(r.hour):02d}:00",
                "sales": from_cents(int(r.sales or 0)),
                "transactions": int(r.transactions or 0),
            }
            for r in hourly_rows
        ],
    }


# =============================================================================
# Range reports (startDate / endDate)
# =============================================================================

def hourly_sales(client_id: int, start: str | None, end: str | None) -> list[dict]:
    """Hour-of-day buckets (UTC) with the products sold in each hour."""
    start_dt, end_dt = resolve_range(start, end)
    window = _sales_window(client_id, start_dt, end_dt)
    hour = extract("hour", Sale.created_at)

    buckets = (
        db.session.query(
            hour.label("hour"),
            func.sum(Sale.total_amount_cents).label("total"),
            func.count(Sale.id).label("count"),
        )
        .filter(*window)
        .group_by(hour)
        .order_by(hour)
        .all()
    )

    item_total = func.sum(SaleItem.total_price_cents)
    item_rows = (
        db.session.query(
            hour.label("hour"),
            Product.name.label("name"),
            func.sum(SaleItem.quantity).label("quantity"),
            item_total.label("total"),
        )
        .join(SaleItem, SaleItem.sale_id == Sale.id)
        .join(Product, SaleItem.product_id == Product.id)
        .filter(*window)
        .group_by(hour, Product.name)
        .order_by(hour, item_total.desc())
        .all()
    )
    items_by_hour: dict[int, list[dict]] = {}
    for row in item_rows:
        items_by_hour.setdefault(int(row.hour), []).append({
            "productName": row.name,
            "quantity": int(row.quantity or 0),
            "totalSales": from_cents(int(row.total or 0)),
        })

    return [
        {
            "hour": hour_label_12h(int(b.hour)),
            "hour24": int(b.hour),
            "totalSales": from_cents(int(b.total or 0)),
            "transactionCount": int(b.count or 0),
            "items": items_by_hour.get(int(b.hour), []),
        }
        for b in buckets
    ]


def top_sales(
    client_id: int,
    start: str | None,
    end: str | None,
    *,
    filter_type: str = "all",
    category_id: int | None = None,
) -> list[dict]:
    """Best sellers by revenue; filter_type "category" restricts to category_id."""
    if filter_type not in ("all", "item", "category"):
        raise ReportError("filterType must be all, item or category")
    if filter_type == "category" and not category_id:
        raise ReportError("categoryId is required when filterType is category")

    start_dt, end_dt = resolve_range(start, end)
    revenue = func.sum(SaleItem.total_price_cents)
    query = (
        db.session.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            Category.name.label("category_name"),
            func.sum(SaleItem.quantity).label("quantity"),
            revenue.label("revenue"),
            func.count(func.distinct(Sale.id)).label("transactions"),
        )
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .outerjoin(Category, Product.category_id == Category.id)
        .filter(*_sales_window(client_id, start_dt, end_dt))
    )
    if filter_type == "category":
        query = query.filter(Product.category_id == category_id)

    rows = (
        query.group_by(Product.id, Product.name, Category.name)
        .order_by(revenue.desc())
        .limit(TOP_SALES_LIMIT)
        .all()
    )
    return [
        {
            "productId": r.product_id,
            "productName": r.product_name,
            "categoryName": r.category_name,
            "totalQuantity": int(r.quantity or 0),
            "totalSales": from_cents(int(r.revenue or 0)),
            "transactionCount": int(r.transactions or 0),
        }
        for r in rows
    ]


def _category_totals(client_id: int, start_dt: datetime, end_dt: datetime):
    """Per-category sums over sale lines in the window (categories with sales only)."""
    revenue = func.sum(SaleItem.total_price_cents)
    return (
        db.session.query(
            Category.id.label("category_id"),
            Category.name.label("category_name"),
            func.sum(SaleItem.quantity).label("quantity"),
            revenue.label("revenue"),
            func.count(func.distinct(SaleItem.product_id)).label("item_count"),
        )
        .join(Product, Product.category_id == Category.id)
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .filter(Category.client_id == client_id, *_sales_window(client_id, start_dt, end_dt))
        .group_by(Category.id, Category.name)
        .order_by(revenue.desc())
        .all()
    )


def category_sales_report(client_id: int, start: str | None, end: str | None) -> list[dict]:
    start_dt, end_dt = resolve_range(start, end)
    return [
        {
            "categoryId": r.category_id,
            "categoryName": r.category_name,
            "totalQuantity": int(r.quantity or 0),
            "totalSales": from_cents(int(r.revenue or 0)),
        }
        for r in _category_totals(client_id, start_dt, end_dt)
        if r.quantity
    ]


def category_items(client_id: int, category_id: int, start: str | None, end: str | None) -> list[dict]:
    """Individual sale lines of one category, newest first."""
    start_dt, end_dt = resolve_range(start, end)
    rows = (
        db.session.query(SaleItem, Product.name, Sale.created_at)
        .join(Product, SaleItem.product_id == Product.id)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .filter(Product.category_id == category_id, *_sales_window(client_id, start_dt, end_dt))
        .order_by(Sale.created_at.desc(), SaleItem.id.desc())
        .all()
    )
    return [
        {
            "productId": item.product_id,
            "productName": name,
            "totalQuantity": item.quantity,
            "totalSales": from_cents(item.total_price_cents),
            "saleDate": to_utc_z(created_at),
            "saleTime": format_clock_12h(created_at),
        }
        for item, name, created_at in rows
    ]


def _line_rows(sale: Sale) -> list[dict]:
    return [
        {
            "productId": item.product_id,
            "productName": item.product.name if item.product else None,
            "quantity": item.quantity,
            "unitPrice": from_cents(item.unit_price_cents),
            "totalPrice": from_cents(item.total_price_cents),
        }
        for item in sale.items
    ]


def sales_transactions(client_id: int, start: str | None, end: str | None) -> list[dict]:
    start_dt, end_dt = resolve_range(start, end)
    sales = (
        db.session.query(Sale)
        .filter(*_sales_window(client_id, start_dt, end_dt))
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
    return [
        {
            "id": sale.id,
            "receiptNumber": sale.receipt_number,
            "saleDate": to_utc_z(sale.created_at),
            "saleTime": format_clock_12h(sale.created_at),
            "paymentMethod": sale.payment_display,
            "totalAmount": from_cents(sale.total_amount_cents),
            "items": _line_rows(sale),
        }
        for sale in sales
    ]


def _receipt(sale: Sale) -> dict:
    lines = _line_rows(sale)
    return {
        "id": sale.id,
        "orderNumber": sale.receipt_number,
        "date": sale.created_at.date().isoformat(),
        "time": format_clock_12h(sale.created_at),
        "total": from_cents(sale.total_amount_cents),
        "paymentMethod": sale.payment_display,
        "itemCount": sum(line["quantity"] for line in lines),
        "items": lines,
    }


def search_receipts(client_id: int, *, day: str | None = None, order_number: str | None = None) -> list[dict]:
    """
    Find receipts by order number (receipt number or sale id) or by day.

    With neither given, returns today's receipts newest first.
    """
    query = db.session.query(Sale).filter(Sale.client_id == client_id)

    if order_number:
        order_number = order_number.strip()
        cond = Sale.receipt_number == order_number.upper()
        if order_number.isdigit():
            cond = db.or_(cond, Sale.id == int(order_number))
        sales = query.filter(cond).order_by(Sale.id.desc()).all()
        return [_receipt(s) for s in sales]

    _, _, start_dt, end_dt = resolve_day_range(day, day)
    sales = (
        query.filter(Sale.created_at >= start_dt, Sale.created_at < end_dt)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
    return [_receipt(s) for s in sales]


# =============================================================================
# Client console reports
# =============================================================================

def client_dashboard(client_id: int) -> dict:
    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 5)

    sales_count, revenue = db.session.query(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_amount_cents), 0),
    ).filter(Sale.client_id == client_id).one()

    on_shelf = db.session.query(Product).filter(
        Product.client_id == client_id,
        Product.is_off_shelf.is_(False),
    )
    return {
        "totalSales": int(sales_count or 0),
        "totalRevenue": from_cents(int(revenue or 0)),
        "totalProducts": on_shelf.count(),
        "lowStockItems": on_shelf.filter(Product.quantity <= threshold).count(),
    }


def _method_sum(method: PaymentMethod):
    return func.coalesce(
        func.sum(case((Sale.payment_method == method.value, Sale.total_amount_cents), else_=0)),
        0,
    )


def client_sales_report(client_id: int, start: str | None, end: str | None) -> list[dict]:
    """Per-day totals with a breakdown by payment method, newest day first."""
    start_dt, end_dt = resolve_range(start, end)
    day = func.date(Sale.created_at)
    rows = (
        db.session.query(
            day.label("day"),
            func.count(Sale.id).label("count"),
            func.sum(Sale.total_amount_cents).label("revenue"),
            _method_sum(PaymentMethod.CASH).label("cash"),
            _method_sum(PaymentMethod.MEMBER).label("member"),
            _method_sum(PaymentMethod.QR).label("qr"),
            _method_sum(PaymentMethod.OTHERS).label("others"),
        )
        .filter(*_sales_window(client_id, start_dt, end_dt))
        .group_by(day)
        .order_by(day.desc())
        .all()
    )
    return [
        {
            "date": str(r.day),
            "totalSales": int(r.count or 0),
            "totalRevenue": from_cents(int(r.revenue or 0)),
            "cashSales": from_cents(int(r.cash or 0)),
            "memberSales": from_cents(int(r.member or 0)),
            "qrSales": from_cents(int(r.qr or 0)),
            "otherSales": from_cents(int(r.others or 0)),
        }
        for r in rows
    ]


def client_category_sales(client_id: int, start: str | None, end: str | None) -> list[dict]:
    """Every category of the client, including ones with no sales in the window."""
    start_dt, end_dt = resolve_range(start, end)
    totals = {r.category_id: r for r in _category_totals(client_id, start_dt, end_dt)}

    rows = []
    for category in db.session.query(Category).filter_by(client_id=client_id).all():
        r = totals.get(category.id)
        rows.append({
            "categoryId": category.id,
            "categoryName": category.name,
            "totalQuantity": int(r.quantity or 0) if r else 0,
            "totalRevenue": from_cents(int(r.revenue or 0)) if r else 0.0,
            "itemCount": int(r.item_count or 0) if r else 0,
        })
    rows.sort(key=lambda row: (-row["totalRevenue"], row["categoryName"].lower()))
    return rows


def client_top_products(client_id: int, start: str | None, end: str | None) -> list[dict]:
    start_dt, end_dt = resolve_range(start, end)
    revenue = func.sum(SaleItem.total_price_cents)
    rows = (
        db.session.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            Category.name.label("category_name"),
            Product.quantity.label("stock"),
            func.sum(SaleItem.quantity).label("quantity"),
            revenue.label("revenue"),
        )
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .outerjoin(Category, Product.category_id == Category.id)
        .filter(*_sales_window(client_id, start_dt, end_dt))
        .group_by(Product.id, Product.name, Category.name, Product.quantity)
        .order_by(revenue.desc())
        .limit(TOP_PRODUCTS_LIMIT)
        .all()
    )
    return [
        {
            "productId": r.product_id,
            "productName": r.product_name,
            "categoryName": r.category_name,
            "totalQuantity": int(r.quantity or 0),
            "totalRevenue": from_cents(int(r.revenue or 0)),
            "stockQuantity": r.stock,
        }
        for r in rows
    ]


def client_cashflow(client_id: int, start: str | None, end: str | None) -> dict:
    start_dt, end_dt = resolve_range(start, end)

    cash, member, qr, others = db.session.query(
        _method_sum(PaymentMethod.CASH),
        _method_sum(PaymentMethod.MEMBER),
        _method_sum(PaymentMethod.QR),
        _method_sum(PaymentMethod.OTHERS),
    ).filter(*_sales_window(client_id, start_dt, end_dt)).one()
    cash, member, qr, others = (int(v or 0) for v in (cash, member, qr, others))

    expenses = db.session.query(func.coalesce(func.sum(Expense.amount_cents), 0)).filter(
        Expense.client_id == client_id,
        Expense.created_at >= start_dt,
        Expense.created_at < end_dt,
    ).scalar()
    expenses = int(expenses or 0)

    opening = (
        db.session.query(OpeningBalance.amount_cents)
        .filter(OpeningBalance.client_id == client_id)
        .order_by(OpeningBalance.created_at.desc(), OpeningBalance.id.desc())
        .limit(1)
        .scalar()
    ) or 0

    income = cash + member + qr + others
    return {
        "totalIncome": from_cents(income),
        "totalExpenses": from_cents(expenses),
        "netCashflow": from_cents(income - expenses),
        "openingBalance": from_cents(opening),
        "closingBalance": from_cents(opening + income - expenses),
        "cashSales": from_cents(cash),
        "memberSales": from_cents(member),
        "qrSales": from_cents(qr),
        "otherSales": from_cents(others),
    }
