import logging
from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Depends, Response

from ...core.warehouse import Warehouse, get_warehouse
from ...common.rows import set_cache_headers
from .schemas import PurchaseOrder
from . import service as purchase_order_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Purchase Orders"])

@router.get("/purchase-orders", response_model=Dict[str, PurchaseOrder])
async def list_purchase_orders(
    response: Response,
    warehouse: Annotated[Warehouse, Depends(get_warehouse)],
):
    logger.info("Purchase orders requested")
    orders = await purchase_order_service.list_upcoming_purchase_orders(warehouse)
    set_cache_headers(response)
    return orders

@router.get("/all-purchase-orders", response_model=List[Dict[str, Any]])
async def list_all_purchase_orders(
    response: Response,
    warehouse: Annotated[Warehouse, Depends(get_warehouse)],
):
    logger.info("All purchase orders requested")
    orders = await purchase_order_service.list_all_purchase_orders(warehouse)
    set_cache_headers(response)
    return orders
