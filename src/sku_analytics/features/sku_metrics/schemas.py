"""SKU size metrics schemas

Two groups of models live here:

1. Source records, one per warehouse query, decoded from raw rows at the
   boundary (inventory, purchased, total sold, monthly sold, open orders and
   the product catalog), plus the product descriptors per size.
2. ``SkuSizeMetric``, the dense per-size record returned by the API.

JSON keys of ``SkuSizeMetric`` are the ones clients already consume, which is
why two descriptors are aliased (``imageUrl`` and ``class``)."""
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...common.rows import Count, SizeLabel, StyleCode, WarehouseRecord

MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)


class SizeKey(NamedTuple):
    style_code: str
    size_label: str


# Source records
class InventoryFact(WarehouseRecord):
    style_code: StyleCode
    size_label: SizeLabel = None
    available_count: Count = 0

class PurchasedFact(WarehouseRecord):
    style_code: StyleCode
    size_label: SizeLabel = None
    purchased_count: Count = 0

class SoldTotalFact(WarehouseRecord):
    style_code: StyleCode
    size_label: SizeLabel = None
    total_sold: Count = 0

class MonthlySoldFact(WarehouseRecord):
    style_code: StyleCode
    size_label: SizeLabel = None
    month_name: Optional[str] = None
    monthly_sold: Count = 0

class OpenOrderFact(WarehouseRecord):
    style_code: StyleCode
    size_label: SizeLabel = None
    quantity: Count = 0

class CatalogEntry(WarehouseRecord):
    sku: str
    product_id: int

class ProductAttributes(WarehouseRecord):
    style_code: StyleCode
    size_label: SizeLabel = None
    name: Optional[str] = None
    category: Optional[str] = None
    cluster: Optional[str] = None
    gender: Optional[str] = None
    image_url: Optional[str] = None
    lead_time: Optional[int] = None
    purchase_price: Optional[float] = None
    product_class: Optional[str] = None
    has_half_sizes: Optional[bool] = None
    is_mto: Optional[bool] = None
    season: Optional[str] = None


DESCRIPTOR_FIELDS = (
    "name", "category", "cluster", "gender", "image_url", "lead_time",
    "purchase_price", "product_class", "has_half_sizes", "is_mto", "season",
)


class MetricSources(BaseModel):
    """Everything the reconciliation needs, already decoded."""
    inventory: List[InventoryFact] = Field(default_factory=list)
    purchased: List[PurchasedFact] = Field(default_factory=list)
    sold_total: List[SoldTotalFact] = Field(default_factory=list)
    sold_monthly: List[MonthlySoldFact] = Field(default_factory=list)
    open_orders: List[OpenOrderFact] = Field(default_factory=list)
    catalog: List[CatalogEntry] = Field(default_factory=list)
    attributes: List[ProductAttributes] = Field(default_factory=list)


# Response
class SkuSizeMetric(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sku: str = Field(..., description="Style code shared by all sizes")
    name: Optional[str] = None
    category: Optional[str] = None
    cluster: Optional[str] = None
    gender: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    lead_time: Optional[int] = None
    purchase_price: Optional[float] = None
    product_class: Optional[str] = Field(None, alias="class")
    product_id: Optional[int] = Field(None, description="Catalog product id for style + size, if any")
    size: str
    available_count: int = 0
    purchased_count: int = 0
    sold_last_24_months: int = 0
    sold_january: int = 0
    sold_february: int = 0
    sold_march: int = 0
    sold_april: int = 0
    sold_may: int = 0
    sold_june: int = 0
    sold_july: int = 0
    sold_august: int = 0
    sold_september: int = 0
    sold_october: int = 0
    sold_november: int = 0
    sold_december: int = 0
    open_orders_quantity: int = 0
    has_half_sizes: Optional[bool] = None
    is_mto: Optional[bool] = None
    season: Optional[str] = None

class StyleNotFoundResponse(BaseModel):
    error: str
    style_code: str
