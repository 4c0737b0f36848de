import os

# Warehouse location. Credentials come from Application Default Credentials.
WAREHOUSE_PROJECT: str = os.getenv("WAREHOUSE_PROJECT", "metal-force-400307")
STAGING_DATASET: str = os.getenv("STAGING_DATASET", "staging")
AGENT_DATASET: str = os.getenv("AGENT_DATASET", "agent")
WAREHOUSE_LOCATION: str | None = os.getenv("WAREHOUSE_LOCATION") or None

# Output shaping
SKU_PREFIX: str = os.getenv("SKU_PREFIX", "ETIQL")
ORDER_KEY_PREFIX: str = os.getenv("ORDER_KEY_PREFIX", "order_")
# "disambiguate" keeps every delivery-date group of an order, "last_wins" keeps the legacy overwrite
PURCHASE_ORDER_KEY_COLLISIONS: str = os.getenv("PURCHASE_ORDER_KEY_COLLISIONS", "disambiguate")

# Metrics query windows
OPEN_ORDERS_SINCE: str = os.getenv("OPEN_ORDERS_SINCE", "2024-09-01")
STYLE_CODE_LENGTH: int = int(os.getenv("STYLE_CODE_LENGTH", "9"))
SALES_WINDOW_MONTHS: int = int(os.getenv("SALES_WINDOW_MONTHS", "24"))

CACHE_MAX_AGE: int = int(os.getenv("CACHE_MAX_AGE", "300"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
