"""
FastAPI Application Entry Point

Food Delivery Marketplace API.

Read operations are GET routes; every mutating operation is a POST, PUT or
DELETE route and runs as one serialized transaction in the delivery service.

Endpoints:
    - POST /api/system/init: Seed the default client on an empty system
    - /api/clients, /api/food-items, /api/drivers, /api/orders,
      /api/reviews, /api/inventory, /api/delivery-addresses: CRUD
    - POST /api/orders: Place and price an order
    - PUT /api/orders/{id}/driver: Assign a driver
    - POST /api/exports: Queue a workbook export of every collection
    - GET /health: System health check
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List

import redis
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from app.core.config import get_settings, setup_logging
from app.core.exceptions import FoodDeliveryError
from app.database import engine, init_db
from app.schemas import (
    ClientCreate,
    ClientResponse,
    ClientUpdate,
    DeliveryAddressCreate,
    DeliveryAddressResponse,
    DeliveryAddressUpdate,
    DriverAssignment,
    DriverCreate,
    DriverResponse,
    DriverUpdate,
    ErrorResponse,
    ExportResponse,
    FoodItemCreate,
    FoodItemPayload,
    FoodItemResponse,
    HealthResponse,
    InitResponse,
    InventoryResponse,
    InventoryUpdate,
    MutationResponse,
    OrderCreate,
    OrderItemsUpdate,
    OrderResponse,
    PlaceOrderResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from app.services.delivery import FoodDeliveryService, get_delivery_service
from app.services.exporter import serialize_snapshot
from app.tasks import export_snapshot_to_excel

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

NOT_FOUND = {404: {"model": ErrorResponse}}
INVALID = {400: {"model": ErrorResponse}}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Food delivery marketplace backend: clients, menu and inventory, "
        "order placement and pricing, drivers, delivery addresses and reviews."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check() -> HealthResponse:
    """Verify the database and Redis are reachable."""

    db_status = "healthy"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
        r.ping()
        r.close()
    except Exception as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    overall = "operational" if all(
        s == "healthy" for s in [db_status, redis_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# SYSTEM
# =============================================================================

@app.post(
    "/api/system/init",
    response_model=InitResponse,
    tags=["System"],
    summary="Initialize Food Delivery System",
)
async def init_food_delivery_system(
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> InitResponse:
    """Seed the default client. A no-op once any data exists."""
    result = await service.init_food_delivery_system()
    return InitResponse(
        initialized=result.initialized,
        message=result.message,
        client_id=result.client_id,
    )


# =============================================================================
# CLIENTS
# =============================================================================

@app.get("/api/clients", response_model=List[ClientResponse], responses=NOT_FOUND, tags=["Clients"])
async def get_clients(service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_clients()


@app.get("/api/clients/{client_id}", response_model=ClientResponse, responses=NOT_FOUND, tags=["Clients"])
async def get_client(client_id: str, service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_client(client_id)


@app.post("/api/clients", response_model=MutationResponse, status_code=201, tags=["Clients"])
async def add_client(
    payload: ClientCreate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    client_id = await service.add_client(payload.name, payload.address)
    return MutationResponse(id=client_id, message="Client added")


@app.put("/api/clients/{client_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Clients"])
async def update_client(
    client_id: str,
    payload: ClientUpdate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    await service.update_client(client_id, payload.name, payload.address)
    return MutationResponse(id=client_id, message="Client updated")


@app.delete("/api/clients/{client_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Clients"])
async def delete_client(
    client_id: str,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    message = await service.delete_client(client_id)
    return MutationResponse(id=client_id, message=message)


@app.get(
    "/api/clients/{client_id}/delivery-addresses",
    response_model=List[DeliveryAddressResponse],
    responses=NOT_FOUND,
    tags=["Delivery Addresses"],
)
async def get_delivery_addresses(
    client_id: str,
    service: FoodDeliveryService = Depends(get_delivery_service),
):
    return await service.get_delivery_addresses(client_id)


# =============================================================================
# FOOD ITEMS
# =============================================================================

@app.get("/api/food-items", response_model=List[FoodItemResponse], responses=NOT_FOUND, tags=["Food Items"])
async def get_food_items(service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_food_items()


@app.get("/api/food-items/{food_item_id}", response_model=FoodItemResponse, responses=NOT_FOUND, tags=["Food Items"])
async def get_food_item(food_item_id: str, service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_food_item(food_item_id)


@app.post(
    "/api/food-items",
    response_model=MutationResponse,
    status_code=201,
    responses=INVALID,
    tags=["Food Items"],
    summary="Add Food Item With Inventory",
)
async def add_food_item_with_inventory(
    payload: FoodItemCreate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    """Create the food item and its inventory record together."""
    food_item_id = await service.add_food_item_with_inventory(
        name=payload.name,
        description=payload.description,
        price=payload.price,
        initial_inventory=payload.initial_inventory,
    )
    return MutationResponse(id=food_item_id, message="Food item added")


@app.put(
    "/api/food-items/{food_item_id}",
    response_model=MutationResponse,
    responses={**NOT_FOUND, **INVALID},
    tags=["Food Items"],
)
async def update_food_item(
    food_item_id: str,
    payload: FoodItemPayload,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    await service.update_food_item(
        food_item_id,
        name=payload.name,
        description=payload.description,
        price=payload.price,
    )
    return MutationResponse(id=food_item_id, message="Food item updated")


@app.delete("/api/food-items/{food_item_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Food Items"])
async def delete_food_item(
    food_item_id: str,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    message = await service.delete_food_item(food_item_id)
    return MutationResponse(id=food_item_id, message=message)


# =============================================================================
# INVENTORY
# =============================================================================

@app.get("/api/inventory", response_model=List[InventoryResponse], responses=NOT_FOUND, tags=["Inventory"])
async def get_inventory(service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_inventory()


@app.get("/api/inventory/{food_item_id}", response_model=InventoryResponse, responses=NOT_FOUND, tags=["Inventory"])
async def get_inventory_record(food_item_id: str, service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_inventory_record(food_item_id)


@app.put("/api/inventory/{food_item_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Inventory"])
async def update_inventory(
    food_item_id: str,
    payload: InventoryUpdate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    await service.update_inventory(food_item_id, payload.quantity)
    return MutationResponse(id=food_item_id, message="Inventory updated")


@app.delete("/api/inventory/{food_item_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Inventory"])
async def delete_inventory(
    food_item_id: str,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    message = await service.delete_inventory(food_item_id)
    return MutationResponse(id=food_item_id, message=message)


# =============================================================================
# DRIVERS
# =============================================================================

@app.get("/api/drivers", response_model=List[DriverResponse], responses=NOT_FOUND, tags=["Drivers"])
async def get_drivers(service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_drivers()


@app.get("/api/drivers/{driver_id}", response_model=DriverResponse, responses=NOT_FOUND, tags=["Drivers"])
async def get_driver(driver_id: str, service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_driver(driver_id)


@app.post("/api/drivers", response_model=MutationResponse, status_code=201, tags=["Drivers"])
async def add_driver(
    payload: DriverCreate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    driver_id = await service.add_driver(payload.name, payload.contact)
    return MutationResponse(id=driver_id, message="Driver added")


@app.put("/api/drivers/{driver_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Drivers"])
async def update_driver(
    driver_id: str,
    payload: DriverUpdate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    await service.update_driver(driver_id, payload.name, payload.contact)
    return MutationResponse(id=driver_id, message="Driver updated")


@app.delete("/api/drivers/{driver_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Drivers"])
async def delete_driver(
    driver_id: str,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    message = await service.delete_driver(driver_id)
    return MutationResponse(id=driver_id, message=message)


# =============================================================================
# DELIVERY ADDRESSES
# =============================================================================

@app.get(
    "/api/delivery-addresses/{address_id}",
    response_model=DeliveryAddressResponse,
    responses=NOT_FOUND,
    tags=["Delivery Addresses"],
)
async def get_delivery_address(address_id: str, service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_delivery_address(address_id)


@app.post(
    "/api/delivery-addresses",
    response_model=MutationResponse,
    status_code=201,
    responses=INVALID,
    tags=["Delivery Addresses"],
)
async def add_delivery_address(
    payload: DeliveryAddressCreate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    address_id = await service.add_delivery_address(
        client_id=payload.client_id,
        street=payload.street,
        city=payload.city,
        postal_code=payload.postal_code,
    )
    return MutationResponse(id=address_id, message="Delivery address added")


@app.put(
    "/api/delivery-addresses/{address_id}",
    response_model=MutationResponse,
    responses={**NOT_FOUND, **INVALID},
    tags=["Delivery Addresses"],
)
async def update_delivery_address(
    address_id: str,
    payload: DeliveryAddressUpdate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    await service.update_delivery_address(
        address_id,
        street=payload.street,
        city=payload.city,
        postal_code=payload.postal_code,
    )
    return MutationResponse(id=address_id, message="Delivery address updated")


@app.delete(
    "/api/delivery-addresses/{address_id}",
    response_model=MutationResponse,
    responses=NOT_FOUND,
    tags=["Delivery Addresses"],
)
async def delete_delivery_address(
    address_id: str,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    message = await service.delete_delivery_address(address_id)
    return MutationResponse(id=address_id, message=message)


# =============================================================================
# ORDERS
# =============================================================================

@app.get("/api/orders", response_model=List[OrderResponse], responses=NOT_FOUND, tags=["Orders"])
async def get_orders(service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_orders()


@app.get("/api/orders/{order_id}", response_model=OrderResponse, responses=NOT_FOUND, tags=["Orders"])
async def get_order(order_id: str, service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_order(order_id)


@app.post(
    "/api/orders",
    response_model=PlaceOrderResponse,
    tags=["Orders"],
    summary="Place Order",
)
async def place_order(
    payload: OrderCreate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> PlaceOrderResponse:
    """
    Price the items from current food item prices and store the order.

    Always answers 200. An unknown client comes back as
    `{"msg": "Invalid client ID", "total_price": 0}` with nothing stored.
    """
    result = await service.place_order(payload.client_id, payload.items)
    return PlaceOrderResponse(
        msg=result.msg,
        total_price=float(result.total_price),
        order_id=result.order_id,
    )


@app.put("/api/orders/{order_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Orders"])
async def update_order(
    order_id: str,
    payload: OrderItemsUpdate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    await service.update_order(order_id, payload.items)
    return MutationResponse(id=order_id, message="Order updated")


@app.put("/api/orders/{order_id}/driver", response_model=MutationResponse, responses=NOT_FOUND, tags=["Orders"])
async def assign_driver(
    order_id: str,
    payload: DriverAssignment,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    await service.assign_driver(order_id, payload.driver_id)
    return MutationResponse(id=order_id, message="Driver assigned")


@app.put("/api/orders/{order_id}/delivered", response_model=MutationResponse, responses=NOT_FOUND, tags=["Orders"])
async def mark_order_delivered(
    order_id: str,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    await service.mark_order_delivered(order_id)
    return MutationResponse(id=order_id, message="Order delivered")


@app.delete("/api/orders/{order_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Orders"])
async def delete_order(
    order_id: str,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    message = await service.delete_order(order_id)
    return MutationResponse(id=order_id, message=message)


# =============================================================================
# REVIEWS
# =============================================================================

@app.get("/api/reviews", response_model=List[ReviewResponse], responses=NOT_FOUND, tags=["Reviews"])
async def get_reviews(service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_reviews()


@app.get("/api/reviews/{review_id}", response_model=ReviewResponse, responses=NOT_FOUND, tags=["Reviews"])
async def get_review(review_id: str, service: FoodDeliveryService = Depends(get_delivery_service)):
    return await service.get_review(review_id)


@app.post("/api/reviews", response_model=MutationResponse, status_code=201, tags=["Reviews"])
async def add_review(
    payload: ReviewCreate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    review_id = await service.add_review(payload.order_id, payload.rating, payload.comment)
    return MutationResponse(id=review_id, message="Review added")


@app.put("/api/reviews/{review_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Reviews"])
async def update_review(
    review_id: str,
    payload: ReviewUpdate,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    await service.update_review(review_id, payload.rating, payload.comment)
    return MutationResponse(id=review_id, message="Review updated")


@app.delete("/api/reviews/{review_id}", response_model=MutationResponse, responses=NOT_FOUND, tags=["Reviews"])
async def delete_review(
    review_id: str,
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> MutationResponse:
    message = await service.delete_review(review_id)
    return MutationResponse(id=review_id, message=message)


# =============================================================================
# EXPORTS
# =============================================================================

@app.post(
    "/api/exports",
    response_model=ExportResponse,
    status_code=202,
    tags=["Exports"],
    summary="Queue Snapshot Export",
)
async def export_snapshot(
    service: FoodDeliveryService = Depends(get_delivery_service),
) -> ExportResponse:
    """Read every collection and queue a workbook export on the worker."""
    snapshot = serialize_snapshot(await service.snapshot())
    task = export_snapshot_to_excel.delay(snapshot)

    counts = {name: len(rows) for name, rows in snapshot.items()}
    logger.info(f"Snapshot export queued as task {task.id}: {counts}")

    return ExportResponse(
        success=True,
        message="Snapshot export queued",
        task_id=task.id,
        record_counts=counts,
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(FoodDeliveryError)
async def food_delivery_error_handler(request: Request, exc: FoodDeliveryError) -> JSONResponse:
    """Render domain failures as the standard error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port)
