"""
SKU Metrics Service Module

Builds the per-size metrics view for one style or for the whole range.

The warehouse answers seven independent questions: five per-size facts (stock
on hand, stock on order, units sold in the sales window, units sold per month,
open order lines), the product catalog and the product descriptors. They are
fetched concurrently and then reconciled here into one dense record per
(style, size): every size seen by any fact source gets a record, and every
fact it lacks is reported as 0.
"""

import asyncio
import datetime
import logging
from typing import Callable, Iterable, Optional, TypeVar

from ...core.config import OPEN_ORDERS_SINCE, SALES_WINDOW_MONTHS, STYLE_CODE_LENGTH
from ...core.exceptions import DataSourceError, StyleNotFoundError
from ...core.warehouse import Warehouse, WarehouseQuery
from ...common.rows import WarehouseRecord, decode_rows
from .queries import (
    CATALOG_PRODUCTS, INVENTORY_BY_SIZE, OPEN_ORDERS_BY_SIZE, PRODUCT_ATTRIBUTES,
    PURCHASED_BY_SIZE, SOLD_MONTHLY_BY_SIZE, SOLD_TOTAL_BY_SIZE,
)
from .schemas import (
    DESCRIPTOR_FIELDS, MONTH_NAMES, CatalogEntry, InventoryFact, MetricSources,
    MonthlySoldFact, OpenOrderFact, ProductAttributes, PurchasedFact, SizeKey,
    SkuSizeMetric, SoldTotalFact,
)

logger = logging.getLogger(__name__)

FactT = TypeVar("FactT")


def size_key(fact) -> Optional[SizeKey]:
    """The join key of a fact, or ``None`` when it has no style or no size."""
    if not fact.style_code or not fact.size_label:
        return None
    return SizeKey(fact.style_code, fact.size_label)


def sum_by_key(facts: Iterable[FactT], value: Callable[[FactT], int]) -> dict[SizeKey, int]:
    # Two rows can share a key once their sizes are normalized ("385" and "38.5").
    totals: dict[SizeKey, int] = {}
    for fact in facts:
        key = size_key(fact)
        if key is None:
            continue
        totals[key] = totals.get(key, 0) + value(fact)
    return totals


def pivot_monthly_sales(facts: Iterable[MonthlySoldFact]) -> dict[SizeKey, dict[str, int]]:
    """
    Sums monthly sales into twelve calendar-month buckets per key.

    Buckets are by month name only, so January of both years in the sales
    window land in the same ``january`` bucket. Rows with a month name that
    is not a calendar month are logged and skipped.
    """
    pivot: dict[SizeKey, dict[str, int]] = {}
    for fact in facts:
        key = size_key(fact)
        if key is None:
            continue
        month = (fact.month_name or "").strip().lower()
        if month not in MONTH_NAMES:
            logger.warning(f"Skipping monthly sales row for {key} with unknown month {fact.month_name!r}")
            continue
        buckets = pivot.setdefault(key, dict.fromkeys(MONTH_NAMES, 0))
        buckets[month] += fact.monthly_sold
    return pivot


def build_catalog_index(entries: Iterable[CatalogEntry]) -> dict[str, int]:
    index: dict[str, int] = {}
    for entry in entries:
        index.setdefault(entry.sku.strip(), entry.product_id)
    return index


def build_attribute_index(entries: Iterable[ProductAttributes]) -> dict[SizeKey, ProductAttributes]:
    # First row per key wins, like the catalog.
    index: dict[SizeKey, ProductAttributes] = {}
    for entry in entries:
        key = size_key(entry)
        if key is not None:
            index.setdefault(key, entry)
    return index


def _size_sort_key(size_label: str):
    # Numeric sizes first, in numeric order; anything else ("S", "XL") after, alphabetically.
    try:
        return (0, float(size_label), size_label)
    except ValueError:
        return (1, 0.0, size_label)


def reconcile_metrics(sources: MetricSources, style_code: Optional[str] = None) -> list[SkuSizeMetric]:
    """
    Merges the decoded fact sources into one ``SkuSizeMetric`` per size.

    Args:
        sources: The decoded rows of every metrics query.
        style_code: When given, only sizes of this style are returned.

    Returns:
        list[SkuSizeMetric]: One record per distinct (style, size) seen in any
        of the five fact sources, sorted by style and then by size. The
        catalog and the product attributes never add keys; they only fill in
        ``product_id`` and the descriptors, which stay ``None`` when unmatched.
    """
    available = sum_by_key(sources.inventory, lambda f: f.available_count)
    purchased = sum_by_key(sources.purchased, lambda f: f.purchased_count)
    sold_total = sum_by_key(sources.sold_total, lambda f: f.total_sold)
    open_orders = sum_by_key(sources.open_orders, lambda f: f.quantity)
    monthly = pivot_monthly_sales(sources.sold_monthly)
    catalog = build_catalog_index(sources.catalog)
    attributes = build_attribute_index(sources.attributes)

    keys: set[SizeKey] = set()
    for facts in (sources.inventory, sources.purchased, sources.sold_total,
                  sources.sold_monthly, sources.open_orders):
        keys.update(key for key in map(size_key, facts) if key is not None)

    if style_code is not None:
        wanted = style_code.strip()
        keys = {key for key in keys if key.style_code == wanted}

    no_sales = dict.fromkeys(MONTH_NAMES, 0)
    metrics = []
    for key in sorted(keys, key=lambda k: (k.style_code, _size_sort_key(k.size_label))):
        months = monthly.get(key, no_sales)
        descriptors = attributes.get(key)
        metrics.append(SkuSizeMetric(
            sku=key.style_code,
            product_id=catalog.get(f"{key.style_code}{key.size_label}"),
            size=key.size_label,
            available_count=available.get(key, 0),
            purchased_count=purchased.get(key, 0),
            sold_last_24_months=sold_total.get(key, 0),
            open_orders_quantity=open_orders.get(key, 0),
            **{f"sold_{month}": months[month] for month in MONTH_NAMES},
            **(descriptors.model_dump(include=set(DESCRIPTOR_FIELDS)) if descriptors else {}),
        ))
    return metrics


async def _load(warehouse: Warehouse, query: WarehouseQuery, params: dict, model: type[WarehouseRecord]) -> list:
    rows = await warehouse.run(query, params)
    return decode_rows(model, rows, query.name)


async def fetch_metric_sources(warehouse: Warehouse, style_code: Optional[str] = None) -> MetricSources:
    """
    Runs the seven metrics queries concurrently and decodes their rows.

    All queries must succeed. The first failure cancels the queries still in
    flight and is re-raised as the ``DataSourceError`` it was; no partially
    filled ``MetricSources`` is ever returned.
    """
    by_style = {"style_code": style_code}
    windowed = {**by_style, "style_code_length": STYLE_CODE_LENGTH, "window_months": SALES_WINDOW_MONTHS}
    open_orders = {
        **by_style,
        "style_code_length": STYLE_CODE_LENGTH,
        "open_orders_since": datetime.date.fromisoformat(OPEN_ORDERS_SINCE),
    }
    plan = {
        "inventory": (INVENTORY_BY_SIZE, by_style, InventoryFact),
        "purchased": (PURCHASED_BY_SIZE, by_style, PurchasedFact),
        "sold_total": (SOLD_TOTAL_BY_SIZE, windowed, SoldTotalFact),
        "sold_monthly": (SOLD_MONTHLY_BY_SIZE, windowed, MonthlySoldFact),
        "open_orders": (OPEN_ORDERS_BY_SIZE, open_orders, OpenOrderFact),
        "catalog": (CATALOG_PRODUCTS, by_style, CatalogEntry),
        "attributes": (PRODUCT_ATTRIBUTES, by_style, ProductAttributes),
    }

    try:
        async with asyncio.TaskGroup() as group:
            tasks = {
                field: group.create_task(_load(warehouse, query, params, model))
                for field, (query, params, model) in plan.items()
            }
    except BaseExceptionGroup as errors:
        failures = errors.subgroup(DataSourceError)
        if failures is None:
            raise
        first = failures.exceptions[0]
        logger.error(f"Metrics reconciliation aborted: {first}")
        raise first from None

    return MetricSources(**{field: task.result() for field, task in tasks.items()})


async def get_sku_metrics(warehouse: Warehouse) -> list[SkuSizeMetric]:
    sources = await fetch_metric_sources(warehouse)
    metrics = reconcile_metrics(sources)
    logger.info(f"Reconciled {len(metrics)} size records across all styles")
    return metrics


async def get_sku_metrics_for_style(warehouse: Warehouse, style_code: str) -> list[SkuSizeMetric]:
    """Same as ``get_sku_metrics`` for one style; raises ``StyleNotFoundError`` if nothing matched."""
    sources = await fetch_metric_sources(warehouse, style_code=style_code)
    metrics = reconcile_metrics(sources, style_code=style_code)
    if not metrics:
        raise StyleNotFoundError(style_code)
    logger.info(f"Reconciled {len(metrics)} size records for style {style_code}")
    return metrics
