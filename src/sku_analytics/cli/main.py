import asyncio
import datetime
import json
import logging
import sys
from contextlib import contextmanager
from typing import Optional

import typer
from fastapi.encoders import jsonable_encoder

from ..core import logging_config
from ..core.exceptions import DataSourceError, StyleNotFoundError
from ..core.warehouse import BigQueryWarehouse
from ..features.sku_metrics import service as metrics_service
from ..features.purchase_orders import service as purchase_order_service

logger = logging.getLogger(__name__)

app = typer.Typer(name="sku-analytics", help="Query SKU metrics and purchase orders from the command line.")


# Shared async context manager for the warehouse client
class WarehouseConnection:
    async def __aenter__(self) -> BigQueryWarehouse:
        self.warehouse = BigQueryWarehouse.from_config()
        return self.warehouse

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.warehouse.close()


@contextmanager
def _logs_to_stderr():
    # stdout carries the JSON output
    previous = logging_config.console_handler.setStream(sys.stderr)
    try:
        yield
    finally:
        if previous is not None:
            logging_config.console_handler.setStream(previous)


def _echo_json(data) -> None:
    typer.echo(json.dumps(jsonable_encoder(data), indent=2))


async def _run(fetch):
    with _logs_to_stderr():
        async with WarehouseConnection() as warehouse:
            try:
                return await fetch(warehouse)
            except StyleNotFoundError as e:
                typer.secho(f"Error: no sizes found for style '{e.style_code}'.", fg=typer.colors.RED)
                raise typer.Exit(code=1)
            except DataSourceError as e:
                typer.secho(f"Error querying the data warehouse: {e}", fg=typer.colors.RED)
                raise typer.Exit(code=1)


@app.command("sku-metrics")
def sku_metrics_command(
    style_code: Optional[str] = typer.Argument(None, help="Restrict the output to one style code.")
):
    """Prints the per-size metrics of every style, or of one style."""
    if style_code:
        metrics = asyncio.run(_run(lambda w: metrics_service.get_sku_metrics_for_style(w, style_code)))
    else:
        metrics = asyncio.run(_run(metrics_service.get_sku_metrics))
    _echo_json(metrics)


@app.command("purchase-orders")
def purchase_orders_command(
    today: Optional[datetime.datetime] = typer.Option(
        None, formats=["%Y-%m-%d"], help="Only deliveries on or after this date (default: today)."
    )
):
    """Prints upcoming purchase orders grouped by order and delivery date."""
    since = today.date() if today else None
    orders = asyncio.run(_run(lambda w: purchase_order_service.list_upcoming_purchase_orders(w, today=since)))
    _echo_json(orders)


@app.command("all-purchase-orders")
def all_purchase_orders_command():
    """Prints every purchase order as stored in the warehouse, without zero product lines."""
    orders = asyncio.run(_run(purchase_order_service.list_all_purchase_orders))
    _echo_json(orders)


if __name__ == "__main__":
    app()
