"""Warehouse queries feeding the SKU metrics reconciliation.

Each query returns one fact per (style, size) and nothing more: the union of
keys, the defaulting, the month pivot and the catalog and attribute matches
all happen in ``service.reconcile_metrics``. Every query takes the same
``style_code`` parameter; NULL means all styles.
"""

from ...core.config import AGENT_DATASET, STAGING_DATASET, WAREHOUSE_PROJECT
from ...core.warehouse import WarehouseQuery


def _table(name: str) -> str:
    return f"`{WAREHOUSE_PROJECT}.{STAGING_DATASET}.{name}`"


INVENTORY_BY_SIZE = WarehouseQuery(
    name="inventory_by_size",
    sql=f"""
        WITH latest_inventory_date AS (
          SELECT MAX(date) AS max_date
          FROM {_table("stg_xentral__inventory")}
          WHERE warehouse IS NOT NULL
        )
        SELECT
          v.base_sku AS style_code,
          v.size AS size_label,
          SUM(i.quantity) AS available_count
        FROM {_table("stg_shopify__products_variant")} v
        LEFT JOIN {_table("stg_xentral__products")} p ON v.sku = p.sku
        LEFT JOIN {_table("stg_xentral__inventory")} i ON p.id = i.product_id
        CROSS JOIN latest_inventory_date lid
        WHERE i.warehouse IS NOT NULL
          AND i.date = lid.max_date
          AND (@style_code IS NULL OR v.base_sku = @style_code)
        GROUP BY 1, 2
    """,
)

PURCHASED_BY_SIZE = WarehouseQuery(
    name="purchased_by_size",
    sql=f"""
        SELECT
          pod.base_sku AS style_code,
          pod.size AS size_label,
          SUM(pod.quantity) AS purchased_count
        FROM {_table("stg_xentral__purchase_order_details")} pod
        WHERE CAST(pod.confirmed_delivery_date AS DATE) >= CURRENT_DATE()
          AND (@style_code IS NULL OR pod.base_sku = @style_code)
        GROUP BY 1, 2
    """,
)

SOLD_TOTAL_BY_SIZE = WarehouseQuery(
    name="sold_total_by_size",
    sql=f"""
        SELECT
          v.base_sku AS style_code,
          SUBSTRING(v.sku, @style_code_length + 1) AS size_label,
          SUM(o.item_quantity) AS total_sold
        FROM {_table("stg_shopify__orders_items")} o
        LEFT JOIN {_table("stg_shopify__products_variant")} v ON o.variant_id = v.id
        WHERE EXTRACT(DATE FROM o.created_at) >= DATE_SUB(CURRENT_DATE(), INTERVAL @window_months MONTH)
          AND (@style_code IS NULL OR v.base_sku = @style_code)
        GROUP BY 1, 2
    """,
)

# One row per style, size and calendar month of the window; the pivot to
# twelve month-name buckets is done in Python.
SOLD_MONTHLY_BY_SIZE = WarehouseQuery(
    name="sold_monthly_by_size",
    sql=f"""
        SELECT
          v.base_sku AS style_code,
          SUBSTRING(v.sku, @style_code_length + 1) AS size_label,
          FORMAT_DATE('%Y%m', EXTRACT(DATE FROM o.created_at)) AS year_month,
          FORMAT_DATE('%B', EXTRACT(DATE FROM o.created_at)) AS month_name,
          SUM(o.item_quantity) AS monthly_sold
        FROM {_table("stg_shopify__orders_items")} o
        LEFT JOIN {_table("stg_shopify__products_variant")} v ON o.variant_id = v.id
        WHERE EXTRACT(DATE FROM o.created_at) >= DATE_SUB(CURRENT_DATE(), INTERVAL @window_months MONTH)
          AND (@style_code IS NULL OR v.base_sku = @style_code)
        GROUP BY 1, 2, 3, 4
    """,
)

# Open orders are counted per order line, not by quantity.
OPEN_ORDERS_BY_SIZE = WarehouseQuery(
    name="open_orders_by_size",
    sql=f"""
        SELECT
          SUBSTRING(o.product_sku, 1, @style_code_length) AS style_code,
          SUBSTRING(o.product_sku, @style_code_length + 1) AS size_label,
          COUNT(*) AS quantity
        FROM {_table("stg_xentral__open_orders")} o
        WHERE o.product_sku IS NOT NULL
          AND CAST(o.order_date AS DATE) >= @open_orders_since
          AND (@style_code IS NULL OR SUBSTRING(o.product_sku, 1, @style_code_length) = @style_code)
        GROUP BY 1, 2
    """,
)

CATALOG_PRODUCTS = WarehouseQuery(
    name="catalog_products",
    sql=f"""
        SELECT p.sku AS sku, p.id AS product_id
        FROM {_table("stg_xentral__products")} p
        WHERE p.id IS NOT NULL
          AND p.sku IS NOT NULL
          AND (@style_code IS NULL OR STARTS_WITH(p.sku, @style_code))
    """,
)

# Merchandising descriptors per style and size, maintained in the agent dataset.
PRODUCT_ATTRIBUTES = WarehouseQuery(
    name="product_attributes",
    sql=f"""
        SELECT
          a.sku AS style_code,
          a.size AS size_label,
          a.name,
          a.category,
          a.cluster,
          a.gender,
          a.imageUrl AS image_url,
          a.lead_time,
          a.purchase_price,
          a.class AS product_class,
          a.has_half_sizes,
          a.is_mto,
          a.season
        FROM `{WAREHOUSE_PROJECT}.{AGENT_DATASET}.sku_sizes_metrics` a
        WHERE a.sku IS NOT NULL
          AND (@style_code IS NULL OR a.sku = @style_code)
    """,
)
