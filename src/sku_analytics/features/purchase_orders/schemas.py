import datetime
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, Field

from ...common.rows import Count, WarehouseRecord


def _date_text(value: Any) -> str:
    # DATE columns come back as date objects, STRING columns as text; NULL is an empty date.
    if value is None:
        return ""
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        return value.isoformat()
    return str(value).strip()


DeliveryDate = Annotated[str, BeforeValidator(_date_text)]


# One unnested line item of a warehouse purchase order
class PurchaseOrderRow(WarehouseRecord):
    order_id: int = Field(..., alias="id")
    delivery_date: DeliveryDate = ""
    product_id: Count = 0
    sku: Optional[str] = None
    size: Optional[str] = None
    quantity: Count = 0


class PurchaseOrderItem(BaseModel):
    sku: str = Field(..., description="SKU prefix followed by the catalog product id")
    quantity: int = Field(..., gt=0)

class PurchaseOrder(BaseModel):
    estimated_delivery_date: str = Field(..., description="Delivery date (YYYY-MM-DD)")
    items: List[PurchaseOrderItem] = Field(..., min_length=1)
