# Overview: Dashboard statistics, trends and breakdowns computed from in-memory order and inventory lists.

"""
Reporting

Every function here is a pure reduction over the lists the gateway returned.
Nothing is cached and nothing raises on bad data, so the dashboard can
recompute on every read.

REVENUE/PROFIT RULE:
- Only orders in the settled status contribute revenue and profit.
- Customer returns whose claim is not Approved contribute their loss as a
  deduction. Courier returns and approved claims contribute nothing.
- margin = net profit / settled revenue * 100, or 0 without revenue.

Only snapshot fields stored on the order are read, so orders whose product
was deleted still aggregate.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Iterable

from ..records import field, number_field, text_field
from .return_service import loss_is_active


SETTLED_STATUS = "Settled"
RETURNED_STATUS = "Returned"
UNCATEGORIZED = "Uncategorized"

_MONTH_RE = re.compile(r"^\d{4}-\d{2}")


@dataclass
class DashboardStats:
    settled_revenue: float
    gross_settled_profit: float
    active_return_loss: float
    net_profit: float
    margin: float
    order_count: int

    def to_dict(self) -> dict:
        return asdict(self)


def _money(value: float) -> float:
    return round(value, 2)


def order_contribution(
    order: Any,
    *,
    settled_status: str = SETTLED_STATUS,
    returned_status: str = RETURNED_STATUS,
) -> tuple[float, float, float]:
    """(revenue, profit, loss) one order adds to any aggregate."""
    if text_field(order, "status") == settled_status:
        return number_field(order, "settled_amount"), number_field(order, "profit"), 0.0
    if loss_is_active(order, returned_status=returned_status):
        return 0.0, 0.0, number_field(order, "loss_amount")
    return 0.0, 0.0, 0.0


def compute_dashboard_stats(
    orders: Iterable[Any],
    *,
    settled_status: str = SETTLED_STATUS,
    returned_status: str = RETURNED_STATUS,
) -> DashboardStats:
    revenue = profit = loss = 0.0
    count = 0
    for order in orders:
        count += 1
        r, p, l = order_contribution(order, settled_status=settled_status, returned_status=returned_status)
        revenue += r
        profit += p
        loss += l

    net = profit - loss
    margin = (net / revenue * 100.0) if revenue else 0.0

    return DashboardStats(
        settled_revenue=_money(revenue),
        gross_settled_profit=_money(profit),
        active_return_loss=_money(loss),
        net_profit=_money(net),
        margin=round(margin, 2),
        order_count=count,
    )


def _month_of(order: Any) -> str | None:
    value = field(order, "date")
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        value = value.isoformat()
    match = _MONTH_RE.match(str(value).strip())
    return match.group(0) if match else None


def monthly_trend(
    orders: Iterable[Any],
    *,
    settled_status: str = SETTLED_STATUS,
    returned_status: str = RETURNED_STATUS,
) -> list[dict]:
    """
    Revenue and net profit per YYYY-MM, ascending.

    Every dated order opens its month bucket, so months with only pending
    orders show up with zeros.
    """
    buckets: dict[str, dict] = {}
    for order in orders:
        month = _month_of(order)
        if month is None:
            continue
        bucket = buckets.setdefault(month, {"month": month, "revenue": 0.0, "profit": 0.0})
        r, p, l = order_contribution(order, settled_status=settled_status, returned_status=returned_status)
        bucket["revenue"] += r
        bucket["profit"] += p - l

    rows = sorted(buckets.values(), key=lambda row: row["month"])
    for row in rows:
        row["revenue"] = _money(row["revenue"])
        row["profit"] = _money(row["profit"])
    return rows


def monthly_reports(
    orders: Iterable[Any],
    *,
    settled_status: str = SETTLED_STATUS,
    returned_status: str = RETURNED_STATUS,
) -> list[dict]:
    """
    Month-end summary rows: sales, net profit, order count and the product
    with the most settled revenue that month (None without settled orders).
    """
    buckets: dict[str, dict] = {}
    product_sales: dict[str, dict[str, float]] = {}

    for order in orders:
        month = _month_of(order)
        if month is None:
            continue
        bucket = buckets.setdefault(
            month, {"month": month, "sales": 0.0, "profit": 0.0, "order_count": 0, "top_product": None}
        )
        bucket["order_count"] += 1
        r, p, l = order_contribution(order, settled_status=settled_status, returned_status=returned_status)
        bucket["sales"] += r
        bucket["profit"] += p - l

        if text_field(order, "status") == settled_status:
            name = text_field(order, "product_name")
            per_product = product_sales.setdefault(month, {})
            per_product[name] = per_product.get(name, 0.0) + r

    rows = sorted(buckets.values(), key=lambda row: row["month"])
    for row in rows:
        row["sales"] = _money(row["sales"])
        row["profit"] = _money(row["profit"])
        per_product = product_sales.get(row["month"])
        if per_product:
            # max() keeps the first product on ties
            row["top_product"] = max(per_product.items(), key=lambda kv: kv[1])[0]
    return rows


def category_breakdown(
    orders: Iterable[Any],
    *,
    settled_status: str = SETTLED_STATUS,
    returned_status: str = RETURNED_STATUS,
) -> list[dict]:
    """Net profit, revenue and order count per snapshot category, most profitable first."""
    buckets: dict[str, dict] = {}
    for order in orders:
        category = text_field(order, "category").strip() or UNCATEGORIZED
        bucket = buckets.setdefault(
            category, {"category": category, "profit": 0.0, "revenue": 0.0, "order_count": 0}
        )
        bucket["order_count"] += 1
        r, p, l = order_contribution(order, settled_status=settled_status, returned_status=returned_status)
        bucket["revenue"] += r
        bucket["profit"] += p - l

    rows = list(buckets.values())
    for row in rows:
        row["revenue"] = _money(row["revenue"])
        row["profit"] = _money(row["profit"])
    rows.sort(key=lambda row: row["profit"], reverse=True)
    return rows


def status_summary(orders: Iterable[Any], vocabulary: Iterable[str] = ()) -> list[dict]:
    """
    Order count per status, most frequent first.

    Every vocabulary label appears (zero counts included), followed by labels
    found on orders but missing from the vocabulary. Ties keep that order.
    """
    counts: dict[str, int] = {label: 0 for label in vocabulary}
    for order in orders:
        status = text_field(order, "status")
        counts[status] = counts.get(status, 0) + 1

    rows = [{"status": status, "count": count} for status, count in counts.items()]
    rows.sort(key=lambda row: row["count"], reverse=True)
    return rows


def low_stock_items(inventory: Iterable[Any]) -> list[Any]:
    """Items at or below their reorder threshold."""
    return [
        item for item in inventory
        if number_field(item, "stock_level") <= number_field(item, "min_stock_level")
    ]


def inventory_summary(inventory: Iterable[Any]) -> dict:
    items = list(inventory)
    total_units = 0
    stock_value = 0.0
    retail_value = 0.0
    for item in items:
        units = number_field(item, "stock_level")
        total_units += int(units)
        stock_value += units * number_field(item, "unit_cost")
        retail_value += units * number_field(item, "retail_price")

    return {
        "item_count": len(items),
        "total_units": total_units,
        "stock_value": _money(stock_value),
        "retail_value": _money(retail_value),
        "low_stock_count": len(low_stock_items(items)),
    }


def dashboard(
    orders: Iterable[Any],
    inventory: Iterable[Any],
    statuses: Iterable[str] = (),
    *,
    settled_status: str = SETTLED_STATUS,
    returned_status: str = RETURNED_STATUS,
) -> dict:
    orders = list(orders)
    inventory = list(inventory)
    labels = {"settled_status": settled_status, "returned_status": returned_status}

    return {
        "stats": compute_dashboard_stats(orders, **labels).to_dict(),
        "monthly_trend": monthly_trend(orders, **labels),
        "categories": category_breakdown(orders, **labels),
        "statuses": status_summary(orders, statuses),
        "inventory": inventory_summary(inventory),
    }
