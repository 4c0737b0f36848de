import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .core import logging_config  # noqa: F401  configures the "sku_analytics" logger
from .core.exceptions import DataSourceError, StyleNotFoundError
from .core.warehouse import BigQueryWarehouse
from .features.sku_metrics.router import router as sku_metrics_router
from .features.purchase_orders.router import router as purchase_orders_router

logger = logging.getLogger("sku_analytics.main")  # This logger will inherit from 'sku_analytics'


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Opens the long-lived warehouse client on startup and closes it on shutdown.
    """
    logger.info("Starting application...")
    app.state.warehouse = BigQueryWarehouse.from_config()
    logger.info("BigQuery client has been initialized.")

    yield

    app.state.warehouse.close()
    logger.info("BigQuery client has been closed.")


async def data_source_error_handler(request: Request, exc: DataSourceError) -> JSONResponse:
    logger.error(f"Data source error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Failed to query data warehouse", "details": str(exc)},
    )


async def style_not_found_handler(request: Request, exc: StyleNotFoundError) -> JSONResponse:
    logger.info(f"No sizes found for style {exc.style_code}")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "SKU not found", "style_code": exc.style_code},
    )


app = FastAPI(
    title="SKU Analytics API",
    description="Inventory, sales and purchase-order analytics from the data warehouse.",
    version="0.1.0",
    exception_handlers={
        DataSourceError: data_source_error_handler,
        StyleNotFoundError: style_not_found_handler,
    },
    lifespan=lifespan,
)


@app.get("/")
async def read_root(request: Request):
    """
    Root endpoint for the API.
    """
    client_host = request.client.host if request.client else "unknown client"
    logger.info(f"Root endpoint '/' accessed by {client_host}")
    return {"message": "Server is running"}


app.include_router(sku_metrics_router)
app.include_router(purchase_orders_router)
