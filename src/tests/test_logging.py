import logging
import pytest
from unittest.mock import MagicMock

from sku_analytics.core.logging_config import NamespaceFilter, app_logger, console_handler

MANAGED_LOGGERS = [
    "sku_analytics", "sku_analytics.features.sku_metrics", "sku_analytics.features.purchase_orders",
    "sku_analytics.features.sku_metrics.service", "sku_analytics.features.purchase_orders.service",
    "sku_analytics.core.warehouse",
]


@pytest.fixture
def logging_env():
    """
    A pytest fixture to set up and tear down a controlled logging environment for tests.

    The configured handlers and levels are saved before the test and put back
    afterwards, so the rest of the suite keeps the application's logging setup.

    Yields:
        MagicMock: A mock logging handler to inspect calls and logged messages.
    """
    test_handler = MagicMock()
    test_handler.level = logging.NOTSET
    test_handler.filters = []

    def add_filter(filter_obj):
        test_handler.filters.append(filter_obj)
        return filter_obj

    # Apply all filters, then keep the records that pass
    accepted_records = []
    def handle(record):
        for f in test_handler.filters:
            if not f.filter(record):
                return False
        accepted_records.append(record)
        return True

    test_handler.addFilter = MagicMock(side_effect=add_filter)
    test_handler.handle = MagicMock(side_effect=handle)
    test_handler.accepted_records = accepted_records

    saved = {}
    for logger_name in MANAGED_LOGGERS:
        logger = logging.getLogger(logger_name)
        saved[logger_name] = (logger.handlers[:], logger.filters[:], logger.level)
        logger.handlers = []
        logger.filters = []
        logger.setLevel(logging.NOTSET)

    yield test_handler

    for logger_name, (handlers, filters, level) in saved.items():
        logger = logging.getLogger(logger_name)
        logger.handlers = handlers
        logger.filters = filters
        logger.setLevel(level)


def _setup_logger(name, level, handler_to_add):
    """Helper function to configure a logger for testing."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = [handler_to_add]
    logger.propagate = True
    return logger

def get_handled_messages(test_handler: MagicMock) -> list[str]:
    return [f"{r.name}:{r.levelname}:{r.getMessage()}" for r in test_handler.accepted_records]


def test_application_logger_is_configured():
    assert console_handler in app_logger.handlers
    assert console_handler.formatter._fmt == "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"
    assert app_logger.level == logging.INFO

def test_default_level_propagation(logging_env):
    """
    Tests that feature loggers inherit the level of the 'sku_analytics' logger.
    """
    _setup_logger("sku_analytics", logging.INFO, logging_env)

    metrics_logger = logging.getLogger("sku_analytics.features.sku_metrics")
    orders_logger = logging.getLogger("sku_analytics.features.purchase_orders")

    metrics_logger.debug("Metrics debug message")
    metrics_logger.info("Metrics info message")
    orders_logger.warning("Orders warning message")

    handled_messages = get_handled_messages(logging_env)
    assert "sku_analytics.features.sku_metrics:DEBUG:Metrics debug message" not in handled_messages
    assert "sku_analytics.features.sku_metrics:INFO:Metrics info message" in handled_messages
    assert "sku_analytics.features.purchase_orders:WARNING:Orders warning message" in handled_messages

def test_namespace_specific_level(logging_env):
    """
    Tests that the purchase orders namespace can be switched to DEBUG (to see
    dropped groups and items) without changing the rest of the application.
    """
    _setup_logger("sku_analytics", logging.INFO, logging_env)
    _setup_logger("sku_analytics.features.purchase_orders", logging.DEBUG, logging_env)

    orders_logger = logging.getLogger("sku_analytics.features.purchase_orders")
    metrics_logger = logging.getLogger("sku_analytics.features.sku_metrics")

    orders_logger.debug("Dropping order 1")
    metrics_logger.debug("Metrics debug specific")

    handled_messages = get_handled_messages(logging_env)
    assert "sku_analytics.features.purchase_orders:DEBUG:Dropping order 1" in handled_messages
    assert "sku_analytics.features.sku_metrics:DEBUG:Metrics debug specific" not in handled_messages

def test_namespace_filter_allow(logging_env):
    """
    Tests that the NamespaceFilter correctly allows messages from a specified
    namespace while blocking others.
    """
    _setup_logger("sku_analytics", logging.DEBUG, logging_env)
    logging_env.addFilter(NamespaceFilter(allowed_namespaces=["sku_analytics.features.sku_metrics"]))

    logging.getLogger("sku_analytics.features.sku_metrics.service").info("Reconciled 3 size records")
    logging.getLogger("sku_analytics.features.purchase_orders.service").info("Aggregated 2 orders")
    logging.getLogger("sku_analytics.core.warehouse").info("Query returned 5 rows")

    handled_messages = get_handled_messages(logging_env)
    assert "sku_analytics.features.sku_metrics.service:INFO:Reconciled 3 size records" in handled_messages
    assert "sku_analytics.features.purchase_orders.service:INFO:Aggregated 2 orders" not in handled_messages
    assert "sku_analytics.core.warehouse:INFO:Query returned 5 rows" not in handled_messages

def test_namespace_filter_allow_all_if_empty(logging_env):
    _setup_logger("sku_analytics", logging.DEBUG, logging_env)
    logging_env.addFilter(NamespaceFilter(allowed_namespaces=[]))

    logging.getLogger("sku_analytics.features.sku_metrics").info("Metrics message (filter empty)")
    logging.getLogger("sku_analytics.features.purchase_orders").info("Orders message (filter empty)")

    handled_messages = get_handled_messages(logging_env)
    assert "sku_analytics.features.sku_metrics:INFO:Metrics message (filter empty)" in handled_messages
    assert "sku_analytics.features.purchase_orders:INFO:Orders message (filter empty)" in handled_messages
