"""
Purchase Orders Service Module

Turns unnested purchase-order line items into nested orders.

A warehouse purchase order can be delivered in several drops. Each
(order id, delivery date) pair is treated as an order of its own, keyed
``order_<id>``. When one order id survives with more than one delivery date,
the ``key_collisions`` policy decides what happens:

* ``disambiguate`` (default): every group is kept and each key gets a
  ``_<delivery date>`` suffix.
* ``last_wins``: only the last group is kept under the plain key, which is
  what older consumers of this endpoint received.
"""

import datetime
import logging
import re
from collections import Counter
from typing import Any, Iterable, List, Mapping, Optional

from fastapi.encoders import jsonable_encoder

from ...core.config import ORDER_KEY_PREFIX, PURCHASE_ORDER_KEY_COLLISIONS, SKU_PREFIX
from ...core.exceptions import DataSourceError
from ...core.warehouse import Warehouse
from ...common.rows import decode_rows
from .queries import ALL_PURCHASE_ORDERS, UPCOMING_PURCHASE_ORDER_ITEMS
from .schemas import PurchaseOrder, PurchaseOrderItem, PurchaseOrderRow

logger = logging.getLogger(__name__)

KEY_COLLISION_POLICIES = ("disambiguate", "last_wins")

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def is_iso_date(value: Optional[str]) -> bool:
    """True for a real calendar date written exactly as YYYY-MM-DD."""
    if not value or not _ISO_DATE.fullmatch(value):
        return False
    try:
        datetime.date.fromisoformat(value)
    except ValueError:
        return False
    return True


def build_order(order_id: int, delivery_date: str, rows: List[PurchaseOrderRow]) -> Optional[PurchaseOrder]:
    """
    Builds one order from the rows of a single (order id, delivery date) group.

    Returns ``None`` when the delivery date is missing or not a valid date, or
    when no line item has both a positive quantity and a positive product id.
    """
    if not delivery_date or not rows:
        return None
    if not is_iso_date(delivery_date):
        logger.debug(f"Dropping order {order_id}: invalid delivery date {delivery_date!r}")
        return None

    items = []
    for row in rows:
        if row.quantity > 0 and row.product_id > 0:
            items.append(PurchaseOrderItem(sku=f"{SKU_PREFIX}{row.product_id}", quantity=row.quantity))
        else:
            logger.debug(
                f"Dropping item of order {order_id} ({delivery_date}): "
                f"product_id={row.product_id} quantity={row.quantity}"
            )

    if not items:
        logger.debug(f"Dropping order {order_id} ({delivery_date}): no valid items")
        return None
    return PurchaseOrder(estimated_delivery_date=delivery_date, items=items)


def aggregate_purchase_orders(
    rows: Iterable[PurchaseOrderRow],
    key_collisions: str = PURCHASE_ORDER_KEY_COLLISIONS,
) -> dict[str, PurchaseOrder]:
    if key_collisions not in KEY_COLLISION_POLICIES:
        raise ValueError(f"Unknown key collision policy {key_collisions!r}, expected one of {KEY_COLLISION_POLICIES}")

    # Groups keep the order in which the warehouse delivered their first row.
    groups: dict[tuple[int, str], list[PurchaseOrderRow]] = {}
    for row in rows:
        groups.setdefault((row.order_id, row.delivery_date), []).append(row)

    built = []
    for (order_id, delivery_date), group_rows in groups.items():
        order = build_order(order_id, delivery_date, group_rows)
        if order is not None:
            built.append((order_id, delivery_date, order))

    dates_per_order = Counter(order_id for order_id, _, _ in built)
    for order_id, count in dates_per_order.items():
        if count > 1:
            logger.warning(
                f"Order {order_id} has {count} delivery dates; "
                f"{'keeping only the last' if key_collisions == 'last_wins' else 'keying each by date'}"
            )

    orders: dict[str, PurchaseOrder] = {}
    for order_id, delivery_date, order in built:
        key = f"{ORDER_KEY_PREFIX}{order_id}"
        if dates_per_order[order_id] > 1 and key_collisions == "disambiguate":
            key = f"{key}_{delivery_date}"
        orders[key] = order
    return orders


def _keeps_item(item: Any) -> bool:
    product_id = item.get("product_id") if isinstance(item, Mapping) else None
    return product_id is not None and product_id != 0


def filter_raw_purchase_orders(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """
    Drops line items with product id 0 (or none) from each raw order, then
    drops orders left without items. Other columns are passed through as-is.
    """
    kept = []
    for index, row in enumerate(rows):
        items = row.get("items")
        if items is None:
            continue
        if not isinstance(items, (list, tuple)):
            raise DataSourceError(f"Malformed row {index}: items is not an array", ALL_PURCHASE_ORDERS.name)
        items = [item for item in items if _keeps_item(item)]
        if items:
            kept.append({**row, "items": items})
    return kept


async def list_upcoming_purchase_orders(
    warehouse: Warehouse,
    today: Optional[datetime.date] = None,
) -> dict[str, PurchaseOrder]:
    """Orders delivering on or after ``today`` (defaults to the current date)."""
    today = today or datetime.date.today()
    rows = await warehouse.run(UPCOMING_PURCHASE_ORDER_ITEMS, {"today": today.isoformat()})
    line_items = decode_rows(PurchaseOrderRow, rows, UPCOMING_PURCHASE_ORDER_ITEMS.name)
    orders = aggregate_purchase_orders(line_items)
    logger.info(f"Aggregated {len(line_items)} line items into {len(orders)} purchase orders")
    return orders


async def list_all_purchase_orders(warehouse: Warehouse) -> list[dict[str, Any]]:
    rows = await warehouse.run(ALL_PURCHASE_ORDERS)
    orders = filter_raw_purchase_orders(rows)
    logger.info(f"Returning {len(orders)} of {len(rows)} purchase orders")
    return jsonable_encoder(orders)
