from pydantic import BaseModel, Field
from typing import Optional, List, Union
from datetime import datetime

# --- catalog ---
class VariationBase(BaseModel):
    sku: str
    name: str
    price_cents: int = Field(ge=0)
    currency: str = 'ARS'
    stock: int = Field(default=0, ge=0)
    active: bool = True
    sort_order: int = 0
class VariationCreate(VariationBase): pass
class VariationUpdate(BaseModel):
    name: Optional[str] = None
    price_cents: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = None
    active: Optional[bool] = None
    sort_order: Optional[int] = None
class VariationRead(VariationBase):
    id: int
    class Config: from_attributes = True
class StockUpdate(BaseModel):
    # negative consumes, positive restocks
    delta: int

# --- price tiers ---
class PriceTierCreate(BaseModel):
    variation_id: int
    min_quantity: int
    max_quantity: Optional[int] = None
    price_cents: int = Field(ge=0)
    active: bool = True
    sort_order: int = 0
class PriceTierUpdate(BaseModel):
    variation_id: Optional[int] = None
    min_quantity: Optional[int] = None
    max_quantity: Optional[int] = None
    price_cents: Optional[int] = Field(default=None, ge=0)
    active: Optional[bool] = None
    sort_order: Optional[int] = None
class PriceTierRead(BaseModel):
    id: int
    variation_id: int
    min_quantity: int
    max_quantity: Optional[int] = None
    price_cents: int
    active: bool
    sort_order: int
    class Config: from_attributes = True
class PriceQuote(BaseModel):
    variation_id: int
    quantity: int
    unit_price_cents: int
    total_cents: int

# --- cart ---
class CartItemAdd(BaseModel):
    variation_id: int
    quantity: int = Field(ge=1)
class CartItemUpdate(BaseModel):
    quantity: int = Field(ge=0)
class CartItemRead(BaseModel):
    variation_id: int
    title: str
    quantity: int
    unit_price_cents: int
    line_price_cents: int
class CartRead(BaseModel):
    id: str
    items: List[CartItemRead] = []
    total_items: int = 0
    total_price_cents: int = 0

# --- orders / payments ---
class OrderItemRead(BaseModel):
    variation_id: int
    title: str
    quantity: int
    unit_price_cents: int
    class Config: from_attributes = True
class PaymentDetailRead(BaseModel):
    method: str
    status: str
    status_detail: str
    transaction_id: str
    created_at: Optional[datetime] = None
    class Config: from_attributes = True
class OrderRead(BaseModel):
    id: int
    user_id: Optional[str] = None
    status: str
    total_cents: int
    currency: str
    items: List[OrderItemRead] = []
    payment_details: List[PaymentDetailRead] = []
    class Config: from_attributes = True
class CheckoutResponse(BaseModel):
    order_id: int
    status: str
    total_cents: int
    currency: str
    preference_id: Optional[str] = None
    init_point: Optional[str] = None
    sandbox_init_point: Optional[str] = None

class WebhookData(BaseModel):
    id: Union[str, int]
class WebhookNotification(BaseModel):
    id: Optional[Union[str, int]] = None
    type: Optional[str] = None
    action: Optional[str] = None
    live_mode: Optional[bool] = None
    date_created: Optional[str] = None
    api_version: Optional[str] = None
    data: Optional[WebhookData] = None
class WebhookAck(BaseModel):
    received: bool = True
    processed: bool
    reason: Optional[str] = None
    order_id: Optional[int] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
