"""FastAPI REST API for the storefront."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import Settings, load_settings
from .database import Database
from .errors import (
    ConfigError,
    InsufficientStockError,
    InvalidStateError,
    MarketNotFoundError,
    NotFoundError,
    OrderNotFoundError,
    OrderTimeoutError,
    ProductNotFoundError,
    StockConflictError,
    StorefrontError,
    ValidationError,
)
from .models import CreateOrderInput, Order, OrderItemRequest, OrderStatus, Product
from .pricing import with_final_price
from .reports import generate_market_report
from .service import OrderService, ProductService


# --- Pydantic Schemas ---


class MarketSchema(BaseModel):
    id: str
    name: str
    description: str
    admin_id: str
    created_at: str
    updated_at: str


class MarketListResponse(BaseModel):
    markets: list[MarketSchema]
    count: int


class ProductSchema(BaseModel):
    id: str
    market_id: str
    name: str
    description: str
    price: float
    stock: int
    discount: float
    category: str
    image_url: str
    final_price: float  # derived, never stored
    created_at: str
    updated_at: str


class ProductListResponse(BaseModel):
    products: list[ProductSchema]
    count: int


class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    price: float
    stock: int = 0
    discount: float = 0
    description: str = ""
    category: str = "general"
    image_url: str = ""


class ProductUpdateRequest(BaseModel):
    """Partial product edit. Range checks happen in the catalog, not here."""

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    stock: Optional[int] = None
    discount: Optional[float] = None
    category: Optional[str] = None
    image_url: Optional[str] = None


class PriceRequest(BaseModel):
    price: float


class DiscountRequest(BaseModel):
    discount: float


class StockRequest(BaseModel):
    stock: int


class OrderItemRequestSchema(BaseModel):
    product_id: str
    quantity: int


class OrderCreateRequest(BaseModel):
    customer_id: str
    market_id: str
    items: list[OrderItemRequestSchema]


class OrderItemSchema(BaseModel):
    id: str
    order_id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    discount: float
    subtotal: float


class OrderSchema(BaseModel):
    id: str
    customer_id: str
    market_id: str
    items: list[OrderItemSchema]
    total_amount: float
    status: str
    created_at: str
    confirmed_at: Optional[str] = None
    cancelled_at: Optional[str] = None


class OrderListResponse(BaseModel):
    orders: list[OrderSchema]
    count: int


class ProductSalesSchema(BaseModel):
    product_id: str
    product_name: str
    quantity_sold: int
    revenue: float


class MarketReportSchema(BaseModel):
    market_id: str
    total_revenue: float
    total_orders: int
    confirmed_orders: int
    pending_orders: int
    cancelled_orders: int
    total_items_sold: int
    average_order_value: float
    product_sales: list[ProductSalesSchema]


class ErrorResponse(BaseModel):
    detail: str
    error_type: str


# --- Dependencies ---


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings read once from the environment."""
    return load_settings()


@lru_cache(maxsize=1)
def get_database() -> Database:
    """The process database, seeded unless STOREFRONT_SEED=0."""
    if get_settings().seed:
        return Database.seeded()
    return Database()


def get_order_service(
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> OrderService:
    return OrderService(db, settings)


def get_product_service(db: Database = Depends(get_database)) -> ProductService:
    return ProductService(db)


def product_to_schema(product: Product) -> ProductSchema:
    """Convert a stored Product to its customer-facing schema."""
    return ProductSchema(**with_final_price(product).to_dict())


def order_to_schema(order: Order) -> OrderSchema:
    return OrderSchema(**order.to_dict())


def _require_market(db: Database, market_id: str) -> None:
    if not db.markets.exists(market_id):
        raise MarketNotFoundError(market_id)


# --- FastAPI App ---


app = FastAPI(
    title="storefront API",
    description="Catalog, order placement and fulfillment for a multi-market grocery store",
    version=__version__,
)

# CORS for the web storefront during local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:8081",
        "http://localhost:19006",
        "http://127.0.0.1:8081",
        "http://127.0.0.1:19006",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    ProductNotFoundError: 404,
    OrderNotFoundError: 404,
    MarketNotFoundError: 404,
    NotFoundError: 404,
    ValidationError: 400,
    InsufficientStockError: 409,
    InvalidStateError: 409,
    StockConflictError: 409,
    OrderTimeoutError: 504,
    ConfigError: 500,
}


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Map StorefrontError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# --- Endpoints ---


@app.get("/api/health")
def health_check(db: Database = Depends(get_database)):
    """Basic service status."""
    return {
        "status": "ok",
        "market_count": len(db.markets.list_markets()),
        "order_count": len(db.orders.list_orders()),
    }


# --- Market & Catalog Endpoints ---


@app.get("/api/markets", response_model=MarketListResponse)
def list_markets(db: Database = Depends(get_database)):
    markets = db.markets.list_markets()
    return MarketListResponse(
        markets=[MarketSchema(**m.to_dict()) for m in markets],
        count=len(markets),
    )


@app.get("/api/markets/{market_id}/products", response_model=ProductListResponse)
def list_market_products(
    market_id: str,
    q: Optional[str] = Query(default=None, description="Search by name or category"),
    db: Database = Depends(get_database),
    products: ProductService = Depends(get_product_service),
):
    """List a market's products with their final prices."""
    _require_market(db, market_id)
    found = products.search(market_id, q) if q else products.get_products_by_market(market_id)
    return ProductListResponse(
        products=[ProductSchema(**p.to_dict()) for p in found],
        count=len(found),
    )


@app.post("/api/markets/{market_id}/products", response_model=ProductSchema, status_code=201)
def create_product(
    market_id: str,
    request: ProductCreateRequest,
    db: Database = Depends(get_database),
):
    product = db.catalog.create(market_id=market_id, **request.model_dump())
    return product_to_schema(product)


@app.get("/api/products/{product_id}", response_model=ProductSchema)
def get_product(product_id: str, db: Database = Depends(get_database)):
    product = db.catalog.get_by_id(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product_to_schema(product)


@app.patch("/api/products/{product_id}", response_model=ProductSchema)
def update_product(
    product_id: str,
    request: ProductUpdateRequest,
    db: Database = Depends(get_database),
):
    """Edit product fields; only the fields present in the body change."""
    updates = request.model_dump(exclude_none=True)
    if not updates:
        raise ValidationError("No fields to update", field="body")
    product = db.catalog.update(product_id, **updates)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product_to_schema(product)


@app.put("/api/products/{product_id}/price", response_model=ProductSchema)
def set_price(product_id: str, request: PriceRequest, db: Database = Depends(get_database)):
    product = db.catalog.update_price(product_id, request.price)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product_to_schema(product)


@app.put("/api/products/{product_id}/discount", response_model=ProductSchema)
def set_discount(product_id: str, request: DiscountRequest, db: Database = Depends(get_database)):
    product = db.catalog.update_discount(product_id, request.discount)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product_to_schema(product)


@app.put("/api/products/{product_id}/stock", response_model=ProductSchema)
def set_stock(product_id: str, request: StockRequest, db: Database = Depends(get_database)):
    product = db.catalog.update_stock(product_id, request.stock)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product_to_schema(product)


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_database)):
    if not db.catalog.delete(product_id):
        raise ProductNotFoundError(product_id)
    return {"deleted": product_id}


# --- Order Endpoints ---


@app.post("/api/orders", response_model=OrderSchema, status_code=201)
async def create_order(
    request: OrderCreateRequest,
    orders: OrderService = Depends(get_order_service),
):
    """Place an order; stock is reserved immediately and the order starts PENDING."""
    order = await orders.create_order(
        CreateOrderInput(
            customer_id=request.customer_id,
            market_id=request.market_id,
            items=[OrderItemRequest(i.product_id, i.quantity) for i in request.items],
        )
    )
    return order_to_schema(order)


@app.get("/api/orders/{order_id}", response_model=OrderSchema)
def get_order(order_id: str, orders: OrderService = Depends(get_order_service)):
    order = orders.get_order_by_id(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return order_to_schema(order)


@app.post("/api/orders/{order_id}/confirm", response_model=OrderSchema)
def confirm_order(order_id: str, orders: OrderService = Depends(get_order_service)):
    return order_to_schema(orders.confirm_order(order_id))


@app.post("/api/orders/{order_id}/cancel", response_model=OrderSchema)
def cancel_order(order_id: str, orders: OrderService = Depends(get_order_service)):
    return order_to_schema(orders.cancel_order(order_id))


@app.get("/api/markets/{market_id}/orders", response_model=OrderListResponse)
def list_market_orders(
    market_id: str,
    status: Optional[OrderStatus] = Query(default=None, description="Filter by status"),
    db: Database = Depends(get_database),
    orders: OrderService = Depends(get_order_service),
):
    """Orders placed in a market, e.g. ?status=PENDING for the fulfillment queue."""
    _require_market(db, market_id)
    found = orders.get_orders_by_market(market_id)
    if status is not None:
        found = [o for o in found if o.status is status]
    return OrderListResponse(orders=[order_to_schema(o) for o in found], count=len(found))


@app.get("/api/customers/{customer_id}/orders", response_model=OrderListResponse)
def list_customer_orders(customer_id: str, orders: OrderService = Depends(get_order_service)):
    found = orders.get_orders_by_customer(customer_id)
    return OrderListResponse(orders=[order_to_schema(o) for o in found], count=len(found))


# --- Report Endpoints ---


@app.get("/api/markets/{market_id}/report", response_model=MarketReportSchema)
def market_report(market_id: str, db: Database = Depends(get_database)):
    _require_market(db, market_id)
    report = generate_market_report(db.orders.get_by_market(market_id), market_id)
    return MarketReportSchema(**report.to_dict())
