"""
Pydantic Schemas for Request/Response Validation

Request bodies only check types. Emptiness rules live in the delivery
service so that each entity keeps its own validation behavior (client,
driver and review fields may be empty strings).
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class ClientCreate(BaseModel):
    """Request schema for adding or updating a client."""
    name: str = Field(..., examples=["Jane Doe"])
    address: str = Field(..., examples=["350 Fifth Avenue"])


class ClientUpdate(ClientCreate):
    pass


class FoodItemPayload(BaseModel):
    """Name, description and decimal-text price of a food item."""
    name: str = Field(..., examples=["Pizza Margherita"])
    description: str = Field(..., examples=["Tomato, mozzarella, basil"])
    price: str = Field(..., examples=["14.99"])


class FoodItemCreate(FoodItemPayload):
    """Food item plus the quantity its inventory record starts with."""
    initial_inventory: int = Field(default=0, examples=[25])


class DriverCreate(BaseModel):
    name: str = Field(..., examples=["Sam Rivera"])
    contact: str = Field(..., examples=["555-123-4567"])


class DriverUpdate(DriverCreate):
    pass


class DeliveryAddressCreate(BaseModel):
    client_id: str
    street: str = Field(..., examples=["350 Fifth Avenue"])
    city: str = Field(..., examples=["New York"])
    postal_code: str = Field(..., examples=["10118"])


class DeliveryAddressUpdate(BaseModel):
    street: str
    city: str
    postal_code: str


class InventoryUpdate(BaseModel):
    quantity: int = Field(..., examples=[40])


class OrderCreate(BaseModel):
    """Request schema for placing an order."""
    client_id: str
    items: List[str] = Field(
        default_factory=list,
        description="Food item ids in order; repeat an id to order it twice",
    )


class OrderItemsUpdate(BaseModel):
    items: List[str]


class DriverAssignment(BaseModel):
    driver_id: str


class ReviewCreate(BaseModel):
    order_id: str
    rating: int = Field(..., examples=[5])
    comment: str = Field(..., examples=["Hot and on time"])


class ReviewUpdate(BaseModel):
    rating: int
    comment: str


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class RecordResponse(BaseModel):
    """Fields shared by every stored record."""
    model_config = ConfigDict(from_attributes=True)

    created_date: int
    updated_at: Optional[int] = None


class ClientResponse(RecordResponse):
    id: str
    name: str
    address: str


class FoodItemResponse(RecordResponse):
    id: str
    name: str
    description: str
    price: str
    inventory: Optional[int] = None


class DriverResponse(RecordResponse):
    id: str
    name: str
    contact: str


class DeliveryAddressResponse(RecordResponse):
    id: str
    client_id: str
    street: str
    city: str
    postal_code: str


class InventoryResponse(RecordResponse):
    food_item_id: str
    quantity: int


class OrderResponse(RecordResponse):
    id: str
    client_id: str
    driver_id: Optional[str] = None
    items: List[str]
    total_price: str
    is_delivered: bool


class ReviewResponse(RecordResponse):
    id: str
    order_id: str
    rating: int
    comment: str


class MutationResponse(BaseModel):
    """Response after a successful add, update or delete."""
    success: bool = True
    id: str
    message: str


class PlaceOrderResponse(BaseModel):
    """
    Response for placing an order.

    Always returned with status 200; an unknown client is signalled by
    `msg` and a zero `total_price`.
    """
    msg: str
    total_price: float
    order_id: Optional[str] = None


class InitResponse(BaseModel):
    initialized: bool
    message: str
    client_id: Optional[str] = None


class ExportResponse(BaseModel):
    success: bool
    message: str
    task_id: Optional[str] = None
    record_counts: dict[str, int]


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[Any] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    timestamp: datetime
