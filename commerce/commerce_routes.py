"""
Commerce API endpoints. Every route is scoped by the x-store-id header.

Exposed endpoints:
- GET    /api/products                      - List products
- POST   /api/products                      - Create product
- GET    /api/products/{id}                 - Get product
- DELETE /api/products/{id}                 - Soft delete product
- GET    /api/orders                        - List orders
- POST   /api/orders                        - Create order
- GET    /api/orders/stats                  - Order statistics
- GET    /api/orders/by-number/{number}     - Get order by number
- GET    /api/orders/customer/{customer_id} - Orders of one customer
- GET    /api/orders/{id}                   - Get order
- PATCH  /api/orders/{id}/status            - Update order status
- GET    /api/store/config                  - Get store configuration
- POST   /api/store/config                  - Create store configuration
- PUT    /api/store/config                  - Upsert store configuration
- DELETE /api/store/config                  - Delete store configuration
- POST   /api/store/config/validate         - Validate a configuration document
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from commerce.catalog import ProductService
from commerce.orders import OrderService
from commerce.schemas import (
    OrderCreate, OrderFilters, OrderStatusUpdate, ProductCreate,
    ProductFilters, StoreConfigPayload,
)
from commerce.store_config import StoreConfigService
from tenancy.config import TenancyConfig
from tenancy.database import get_db
from tenancy.guard import get_tenancy_config, require_store
from tenancy.translator import Authorized


products_router = APIRouter(prefix="/api/products", tags=["products"])
orders_router = APIRouter(prefix="/api/orders", tags=["orders"])
config_router = APIRouter(prefix="/api/store/config", tags=["store-config"])


def get_product_service(
    db: Session = Depends(get_db),
    config: TenancyConfig = Depends(get_tenancy_config),
) -> ProductService:
    return ProductService(db, config)


def get_order_service(
    db: Session = Depends(get_db),
    config: TenancyConfig = Depends(get_tenancy_config),
) -> OrderService:
    return OrderService(db, config)


def get_store_config_service(
    db: Session = Depends(get_db),
    config: TenancyConfig = Depends(get_tenancy_config),
) -> StoreConfigService:
    return StoreConfigService(db, config)


# ============ Products ============

@products_router.get("")
def list_products(
    filters: ProductFilters = Depends(),
    store: Authorized = Depends(require_store),
    service: ProductService = Depends(get_product_service),
):
    page = service.list_products(store.tenant_id, filters)
    return page.to_dict("products")


@products_router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    store: Authorized = Depends(require_store),
    service: ProductService = Depends(get_product_service),
):
    return service.create_product(store.tenant_id, payload).to_dict()


@products_router.get("/{product_id}")
def get_product(
    product_id: str,
    store: Authorized = Depends(require_store),
    service: ProductService = Depends(get_product_service),
):
    return service.get_product(store.tenant_id, product_id).to_dict()


@products_router.delete("/{product_id}")
def delete_product(
    product_id: str,
    store: Authorized = Depends(require_store),
    service: ProductService = Depends(get_product_service),
):
    product = service.delete_product(store.tenant_id, product_id)
    return {"success": True, "id": product.id}


# ============ Orders ============

@orders_router.get("")
def list_orders(
    filters: OrderFilters = Depends(),
    store: Authorized = Depends(require_store),
    service: OrderService = Depends(get_order_service),
):
    return service.list_orders(store.tenant_id, filters).to_dict("orders")


@orders_router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    store: Authorized = Depends(require_store),
    service: OrderService = Depends(get_order_service),
):
    return service.create_order(store.tenant_id, payload).to_dict()


@orders_router.get("/stats")
def get_order_stats(
    store: Authorized = Depends(require_store),
    service: OrderService = Depends(get_order_service),
):
    return service.get_order_stats(store.tenant_id)


@orders_router.get("/by-number/{order_number}")
def get_order_by_number(
    order_number: str,
    store: Authorized = Depends(require_store),
    service: OrderService = Depends(get_order_service),
):
    return service.get_order_by_number(store.tenant_id, order_number).to_dict()


@orders_router.get("/customer/{customer_id}")
def list_customer_orders(
    customer_id: str,
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    store: Authorized = Depends(require_store),
    service: OrderService = Depends(get_order_service),
):
    page = service.list_orders_by_customer(store.tenant_id, customer_id, limit, offset)
    return page.to_dict("orders")


@orders_router.get("/{order_id}")
def get_order(
    order_id: str,
    store: Authorized = Depends(require_store),
    service: OrderService = Depends(get_order_service),
):
    return service.get_order(store.tenant_id, order_id).to_dict()


@orders_router.patch("/{order_id}/status")
def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    store: Authorized = Depends(require_store),
    service: OrderService = Depends(get_order_service),
):
    return service.update_order_status(store.tenant_id, order_id, payload.status).to_dict()


# ============ Store configuration ============

@config_router.get("")
def get_store_config(
    store: Authorized = Depends(require_store),
    service: StoreConfigService = Depends(get_store_config_service),
):
    return service.get_config(store.tenant_id).to_dict()


@config_router.post("", status_code=status.HTTP_201_CREATED)
def create_store_config(
    payload: StoreConfigPayload,
    store: Authorized = Depends(require_store),
    service: StoreConfigService = Depends(get_store_config_service),
):
    return service.create_config(store.tenant_id, payload).to_dict()


@config_router.put("")
def update_store_config(
    payload: StoreConfigPayload,
    store: Authorized = Depends(require_store),
    service: StoreConfigService = Depends(get_store_config_service),
):
    config = service.update_config(store.tenant_id, payload, store.peer_system_id)
    return config.to_dict()


@config_router.delete("")
def delete_store_config(
    store: Authorized = Depends(require_store),
    service: StoreConfigService = Depends(get_store_config_service),
):
    service.delete_config(store.tenant_id)
    return {"success": True, "message": "Store configuration deleted"}


@config_router.post("/validate")
def validate_store_config(
    document: Dict[str, Any] = Body(...),
    store: Authorized = Depends(require_store),
    service: StoreConfigService = Depends(get_store_config_service),
):
    """Report every problem in a configuration document. Nothing is stored."""
    return service.validate_config(document)
