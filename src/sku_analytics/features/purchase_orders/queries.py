from ...core.config import AGENT_DATASET, WAREHOUSE_PROJECT
from ...core.warehouse import WarehouseQuery

PURCHASE_ORDERS_TABLE = f"`{WAREHOUSE_PROJECT}.{AGENT_DATASET}.purchase_orders`"

# delivery_date is stored as YYYY-MM-DD text, so @today is bound as a STRING.
UPCOMING_PURCHASE_ORDER_ITEMS = WarehouseQuery(
    name="upcoming_purchase_order_items",
    sql=f"""
        SELECT
          id,
          delivery_date,
          items.product_id,
          items.sku,
          items.size,
          items.quantity
        FROM {PURCHASE_ORDERS_TABLE},
        UNNEST(items) AS items
        WHERE delivery_date >= @today
        ORDER BY delivery_date, id, items.product_id
    """,
)

ALL_PURCHASE_ORDERS = WarehouseQuery(
    name="all_purchase_orders",
    sql=f"SELECT * FROM {PURCHASE_ORDERS_TABLE}",
)
