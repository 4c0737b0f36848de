import logging
import sys

from .config import LOG_LEVEL


class NamespaceFilter(logging.Filter):
    def __init__(self, allowed_namespaces=None):
        super().__init__()
        self.allowed_namespaces = allowed_namespaces if allowed_namespaces is not None else []

    def filter(self, record):
        if not self.allowed_namespaces:
            return True # If no namespaces are specified, allow all records
        return any(record.name.startswith(ns) for ns in self.allowed_namespaces)


log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app_logger = logging.getLogger("sku_analytics")
app_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(log_formatter)

# --- Namespace-based Filter (Optional) ---
# To only see the reconciliation and the query layer:
#
# namespace_filter = NamespaceFilter(["sku_analytics.features.sku_metrics", "sku_analytics.core.warehouse"])
# console_handler.addFilter(namespace_filter)
app_logger.addHandler(console_handler)

# Dropped purchase-order groups and items are reported at DEBUG.
# logging.getLogger("sku_analytics.features.purchase_orders").setLevel(logging.DEBUG)

# The BigQuery client is chatty at INFO.
logging.getLogger("google.cloud.bigquery").setLevel(logging.WARNING)
