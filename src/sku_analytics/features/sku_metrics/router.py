import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, Path, Response

from ...core.warehouse import Warehouse, get_warehouse
from ...common.rows import set_cache_headers
from .schemas import SkuSizeMetric, StyleNotFoundResponse
from . import service as metrics_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/sku-metrics",
    tags=["SKU Metrics"],
)

@router.get("", response_model=List[SkuSizeMetric])
async def list_sku_metrics(
    response: Response,
    warehouse: Annotated[Warehouse, Depends(get_warehouse)],
):
    logger.info("SKU metrics requested")
    metrics = await metrics_service.get_sku_metrics(warehouse)
    set_cache_headers(response)
    return metrics

@router.get(
    "/{style_code}",
    response_model=List[SkuSizeMetric],
    responses={404: {"model": StyleNotFoundResponse, "description": "No size of this style was found"}},
)
async def get_style_sku_metrics(
    response: Response,
    warehouse: Annotated[Warehouse, Depends(get_warehouse)],
    style_code: str = Path(..., min_length=1, description="Style code (base SKU without size)"),
):
    logger.info(f"SKU metrics requested for: {style_code}")
    metrics = await metrics_service.get_sku_metrics_for_style(warehouse, style_code)
    set_cache_headers(response)
    return metrics
