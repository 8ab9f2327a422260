"""FastAPI application for the WhatsApp webhook and the admin API."""

import json
import logging
from datetime import date
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from whatsapp_order_bot.auth.webhook_dependencies import get_verified_body
from whatsapp_order_bot.auth.webhook_verifier import WebhookVerifier
from whatsapp_order_bot.handlers.webhook_handler import WebhookHandler
from whatsapp_order_bot.models.admin_models import (
    CustomerDetail,
    DashboardStats,
    Pagination,
    ProductInput,
    ProductUpdate,
)
from whatsapp_order_bot.models.catalog_models import Product, ProductCategory
from whatsapp_order_bot.models.customer_models import Customer
from whatsapp_order_bot.models.order_models import Order, OrderStatus
from whatsapp_order_bot.repositories.store_repositories import StorageError
from whatsapp_order_bot.services.admin_service import AdminService, UpdateOutcome, UpdateResult

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class WebhookResponse(BaseModel):
    """Acknowledgement for webhook deliveries."""

    status: str
    messages: int


class CustomerList(BaseModel):
    customers: list[Customer]
    pagination: Pagination


class OrderList(BaseModel):
    orders: list[Order]
    pagination: Pagination


class ProductList(BaseModel):
    products: list[Product]
    pagination: Pagination


class CustomerUpdateRequest(BaseModel):
    name: str | None = None
    email: str | None = None


class OrderStatusRequest(BaseModel):
    status: OrderStatus
    notes: str | None = None


class OrderDetailsRequest(BaseModel):
    delivery_info: dict[str, Any] | None = None
    payment_info: dict[str, Any] | None = None
    notes: str | None = None


_OUTCOME_STATUS_CODES = {
    UpdateOutcome.NOT_FOUND: 404,
    UpdateOutcome.INVALID_TRANSITION: 409,
    UpdateOutcome.STORAGE_FAILED: 500,
}


def _unwrap(result: UpdateResult) -> Any:
    """Return the updated entity or raise the matching HTTP error."""
    if result.outcome != UpdateOutcome.UPDATED:
        raise HTTPException(status_code=_OUTCOME_STATUS_CODES[result.outcome], detail=result.error_message)
    return result.entity


def create_app(
    webhook_handler: WebhookHandler,
    admin_service: AdminService,
    webhook_verifier: WebhookVerifier,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        webhook_handler: Handler feeding webhook messages to the conversation
        admin_service: Service backing the admin endpoints
        webhook_verifier: Verifier for webhook handshakes and signatures

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="WhatsApp Order Bot",
        description="WhatsApp ordering webhook and shop admin API",
        version="1.0.0",
    )

    # Store services in app state for access in route handlers
    app.state.webhook_handler = webhook_handler
    app.state.admin_service = admin_service
    app.state.webhook_verifier = webhook_verifier

    @app.exception_handler(StorageError)
    async def storage_error_handler(_request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"Storage failure while serving request: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Storage temporarily unavailable"})

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            Health status indicating service is running
        """
        return HealthResponse(status="healthy")

    # Webhook

    @app.get("/webhook", response_class=PlainTextResponse, tags=["Webhook"])
    async def verify_webhook(
        hub_mode: Annotated[str | None, Query(alias="hub.mode")] = None,
        hub_verify_token: Annotated[str | None, Query(alias="hub.verify_token")] = None,
        hub_challenge: Annotated[str, Query(alias="hub.challenge")] = "",
    ) -> str:
        """Answer the WhatsApp subscription handshake.

        Returns:
            The challenge string when the verify token matches

        Raises:
            HTTPException: 403 if the handshake does not match
        """
        if not app.state.webhook_verifier.verify_handshake(hub_mode, hub_verify_token):
            raise HTTPException(status_code=403, detail="Webhook verification failed")
        logger.info("Webhook subscription verified")
        return hub_challenge

    @app.post("/webhook", response_model=WebhookResponse, tags=["Webhook"])
    async def receive_webhook(body: bytes = Depends(get_verified_body)) -> WebhookResponse:
        """Receive a WhatsApp notification.

        Always answers 200 once the payload is accepted so the platform does
        not redeliver it.

        Returns:
            Acknowledgement with the number of messages handled

        Raises:
            HTTPException: 400 if the body is not JSON
        """
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=400, detail="Body is not valid JSON") from e

        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Body must be a JSON object")

        handled = await app.state.webhook_handler.handle_payload(payload)
        return WebhookResponse(status="ok", messages=handled)

    # Dashboard

    @app.get("/admin/dashboard", response_model=DashboardStats, tags=["Dashboard"])
    async def get_dashboard() -> DashboardStats:
        """Get shop statistics.

        Raises:
            HTTPException: 500 if orders or products could not be read
        """
        stats: DashboardStats | None = await app.state.admin_service.get_dashboard()
        if stats is None:
            raise HTTPException(status_code=500, detail="Failed to load dashboard data")
        return stats

    # Customers

    @app.get("/admin/customers", response_model=CustomerList, tags=["Customers"])
    async def list_customers(
        page: Annotated[int, Query(ge=1)] = 1,
        limit: Annotated[int, Query(ge=1, le=100)] = 20,
        search: str | None = None,
    ) -> CustomerList:
        """List customers with pagination and search."""
        customers, pagination = await app.state.admin_service.list_customers(page=page, limit=limit, search=search)
        return CustomerList(customers=customers, pagination=pagination)

    @app.get("/admin/customers/{phone_number}", response_model=CustomerDetail, tags=["Customers"])
    async def get_customer(phone_number: str) -> CustomerDetail:
        """Get a customer with their orders and totals.

        Raises:
            HTTPException: 404 if the customer does not exist
        """
        detail: CustomerDetail | None = await app.state.admin_service.get_customer_detail(phone_number)
        if detail is None:
            raise HTTPException(status_code=404, detail=f"Customer {phone_number} not found")
        return detail

    @app.put("/admin/customers/{phone_number}", response_model=Customer, tags=["Customers"])
    async def update_customer(phone_number: str, request: CustomerUpdateRequest) -> Customer:
        """Update a customer's name and email."""
        result = await app.state.admin_service.update_customer(phone_number, request.name, request.email)
        customer: Customer = _unwrap(result)
        return customer

    # Orders

    @app.get("/admin/orders", response_model=OrderList, tags=["Orders"])
    async def list_orders(
        status: OrderStatus | None = None,
        search: str | None = None,
        page: Annotated[int, Query(ge=1)] = 1,
        limit: Annotated[int, Query(ge=1, le=100)] = 20,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> OrderList:
        """List orders with filters and pagination.

        Raises:
            HTTPException: 400 for an inverted date range, 500 if orders could not be read
        """
        if start_date and end_date and start_date > end_date:
            raise HTTPException(status_code=400, detail="start_date must not be after end_date")

        listing = await app.state.admin_service.list_orders(
            status=status,
            search=search,
            page=page,
            limit=limit,
            start_date=start_date,
            end_date=end_date,
        )
        if listing is None:
            raise HTTPException(status_code=500, detail="Failed to load orders")
        orders, pagination = listing
        return OrderList(orders=orders, pagination=pagination)

    @app.get("/admin/orders/{order_id}", response_model=Order, tags=["Orders"])
    async def get_order(order_id: str) -> Order:
        """Get an order.

        Raises:
            HTTPException: 404 if the order does not exist
        """
        order: Order | None = await app.state.admin_service.get_order(order_id)
        if order is None:
            raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
        return order

    @app.put("/admin/orders/{order_id}/status", response_model=Order, tags=["Orders"])
    async def update_order_status(order_id: str, request: OrderStatusRequest) -> Order:
        """Change an order's status.

        Raises:
            HTTPException: 404 if the order does not exist, 409 if the change is not allowed
        """
        result = await app.state.admin_service.update_order_status(order_id, request.status, request.notes)
        order: Order = _unwrap(result)
        return order

    @app.put("/admin/orders/{order_id}", response_model=Order, tags=["Orders"])
    async def update_order_details(order_id: str, request: OrderDetailsRequest) -> Order:
        """Update an order's delivery details, payment details or notes."""
        try:
            result = await app.state.admin_service.update_order_details(
                order_id,
                delivery_info=request.delivery_info,
                payment_info=request.payment_info,
                notes=request.notes,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        order: Order = _unwrap(result)
        return order

    # Products

    @app.get("/admin/products", response_model=ProductList, tags=["Products"])
    async def list_products(
        category: ProductCategory | None = None,
        availability: bool | None = None,
        featured: bool | None = None,
        search: str | None = None,
        page: Annotated[int, Query(ge=1)] = 1,
        limit: Annotated[int, Query(ge=1, le=100)] = 20,
    ) -> ProductList:
        """List products with filters and pagination."""
        listing = await app.state.admin_service.list_products(
            category=category,
            availability=availability,
            featured=featured,
            search=search,
            page=page,
            limit=limit,
        )
        if listing is None:
            raise HTTPException(status_code=500, detail="Failed to load products")
        products, pagination = listing
        return ProductList(products=products, pagination=pagination)

    @app.get("/admin/products/{product_id}", response_model=Product, tags=["Products"])
    async def get_product(product_id: str) -> Product:
        """Get a product."""
        product: Product | None = await app.state.admin_service.get_product(product_id)
        if product is None:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
        return product

    @app.post("/admin/products", response_model=Product, status_code=201, tags=["Products"])
    async def create_product(request: ProductInput) -> Product:
        """Create a product."""
        product: Product | None = await app.state.admin_service.create_product(request)
        if product is None:
            raise HTTPException(status_code=500, detail="Failed to save product")
        return product

    @app.put("/admin/products/{product_id}", response_model=Product, tags=["Products"])
    async def update_product(product_id: str, request: ProductUpdate) -> Product:
        """Update a product."""
        product: Product = _unwrap(await app.state.admin_service.update_product(product_id, request))
        return product

    @app.delete("/admin/products/{product_id}", response_model=Product, tags=["Products"])
    async def delete_product(product_id: str) -> Product:
        """Delete a product."""
        product: Product = _unwrap(await app.state.admin_service.delete_product(product_id))
        return product

    return app
