import json

import pytest
from typer.testing import CliRunner

from sku_analytics.cli import main as cli_main
from sku_analytics.core import logging_config
from sku_analytics.core.exceptions import DataSourceError

runner = CliRunner()


@pytest.fixture
def cli_warehouse(monkeypatch, warehouse):
    monkeypatch.setattr(cli_main.BigQueryWarehouse, "from_config", staticmethod(lambda: warehouse))
    return warehouse


def test_sku_metrics_for_style(cli_warehouse):
    cli_warehouse.rows = {"open_orders_by_size": [{"style_code": "ABC123456", "size_label": "10", "quantity": 7}]}

    result = runner.invoke(cli_main.app, ["sku-metrics", "ABC123456"])

    assert result.exit_code == 0, result.output
    [record] = json.loads(result.stdout)
    assert record["sku"] == "ABC123456"
    assert record["open_orders_quantity"] == 7
    assert cli_warehouse.closed


def test_sku_metrics_unknown_style(cli_warehouse):
    result = runner.invoke(cli_main.app, ["sku-metrics", "NOPE00000"])

    assert result.exit_code == 1
    assert "NOPE00000" in result.output


def test_purchase_orders_with_date(cli_warehouse):
    cli_warehouse.rows = {"upcoming_purchase_order_items": [
        {"id": 4, "delivery_date": "2025-01-10", "product_id": 500, "quantity": 2},
    ]}

    result = runner.invoke(cli_main.app, ["purchase-orders", "--today", "2025-01-01"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {
        "order_4": {"estimated_delivery_date": "2025-01-10", "items": [{"sku": "ETIQL500", "quantity": 2}]},
    }
    assert cli_warehouse.params_for("upcoming_purchase_order_items") == {"today": "2025-01-01"}


def test_all_purchase_orders_warehouse_failure(cli_warehouse):
    cli_warehouse.errors = {"all_purchase_orders": DataSourceError("Access Denied", "all_purchase_orders")}

    result = runner.invoke(cli_main.app, ["all-purchase-orders"])

    assert result.exit_code == 1
    assert "Access Denied" in result.output


def test_logs_move_to_stderr_only_while_a_command_runs(cli_warehouse, monkeypatch):
    streams_during_run = []
    get_sku_metrics = cli_main.metrics_service.get_sku_metrics

    async def recording_get_sku_metrics(warehouse):
        streams_during_run.append(logging_config.console_handler.stream)
        return await get_sku_metrics(warehouse)

    monkeypatch.setattr(cli_main.metrics_service, "get_sku_metrics", recording_get_sku_metrics)
    stream_before = logging_config.console_handler.stream

    result = runner.invoke(cli_main.app, ["sku-metrics"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == []
    assert streams_during_run and streams_during_run[0] is not stream_before
    assert logging_config.console_handler.stream is stream_before
