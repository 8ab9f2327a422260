"""Models returned by the admin service."""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from whatsapp_order_bot.models.catalog_models import (
    ProductCategory,
    ProductImage,
    ProductSpecifications,
)
from whatsapp_order_bot.models.customer_models import Customer
from whatsapp_order_bot.models.order_models import Order


class Pagination(BaseModel):
    """Pagination envelope for list endpoints."""

    total: int
    pages: int
    current_page: int
    limit: int


class DashboardCounts(BaseModel):
    customers: int
    orders: int
    orders_by_status: dict[str, int]
    products: int
    available_products: int
    low_stock_products: int


class RevenueSummary(BaseModel):
    """Revenue from non-cancelled orders."""

    total: Decimal
    today: Decimal
    last_7_days: Decimal
    this_month: Decimal


class DailySales(BaseModel):
    day: date
    orders: int
    revenue: Decimal


class TopProduct(BaseModel):
    product_name: str
    quantity: int
    revenue: Decimal


class DashboardStats(BaseModel):
    """Aggregated shop statistics."""

    counts: DashboardCounts
    revenue: RevenueSummary
    recent_orders: list[Order]
    daily_sales: list[DailySales]
    top_products: list[TopProduct]


class CustomerDetail(BaseModel):
    """A customer with their orders and computed totals."""

    customer: Customer
    total_orders: int
    total_spent: Decimal
    orders: list[Order]


class ProductInput(BaseModel):
    """Fields accepted when creating a product."""

    name: str = Field(..., min_length=1)
    category: ProductCategory
    subcategory: str = ""
    description: str = ""
    price: Decimal = Field(..., gt=0)
    original_price: Decimal | None = Field(None, gt=0)
    images: list[ProductImage] = Field(default_factory=list)
    availability: bool = True
    stock: int = Field(default=100, ge=0)
    featured: bool = False
    specifications: ProductSpecifications | None = None
    tags: list[str] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    """Fields accepted when updating a product; unset fields are left unchanged."""

    name: str | None = Field(None, min_length=1)
    category: ProductCategory | None = None
    subcategory: str | None = None
    description: str | None = None
    price: Decimal | None = Field(None, gt=0)
    original_price: Decimal | None = Field(None, gt=0)
    images: list[ProductImage] | None = None
    availability: bool | None = None
    stock: int | None = Field(None, ge=0)
    featured: bool | None = None
    specifications: ProductSpecifications | None = None
    tags: list[str] | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
