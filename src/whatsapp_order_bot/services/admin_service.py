"""Admin service for managing customers, orders and products."""

import logging
import math
import uuid
from collections import Counter, defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from whatsapp_order_bot.models.admin_models import (
    CustomerDetail,
    DailySales,
    DashboardCounts,
    DashboardStats,
    Pagination,
    ProductInput,
    ProductUpdate,
    RevenueSummary,
    TopProduct,
)
from whatsapp_order_bot.models.catalog_models import Product, ProductCategory
from whatsapp_order_bot.models.customer_models import Customer
from whatsapp_order_bot.models.order_models import (
    DeliveryInfo,
    Order,
    OrderStatus,
    PaymentInfo,
)
from whatsapp_order_bot.repositories.store_repositories import (
    CustomerRepository,
    OrderRepository,
    ProductRepository,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOW_STOCK_THRESHOLD = 10
RECENT_ORDERS = 10
TOP_PRODUCTS = 5
ZERO = Decimal("0.00")


class UpdateOutcome(str, Enum):
    """Outcome of an admin update."""

    UPDATED = "updated"
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    STORAGE_FAILED = "storage_failed"


@dataclass
class UpdateResult:
    """Result of an admin update.

    Attributes:
        outcome: What happened
        entity: The updated record when outcome is UPDATED
        error_message: Error message for other outcomes
    """

    outcome: UpdateOutcome
    entity: Any = None
    error_message: str | None = None


def paginate(items: Sequence[T], page: int, limit: int) -> tuple[list[T], Pagination]:
    """Slice one page out of a list.

    Args:
        items: Full, already ordered list
        page: 1-based page number
        limit: Page size

    Returns:
        (page items, pagination envelope)
    """
    page = max(page, 1)
    limit = max(limit, 1)
    start = (page - 1) * limit
    pagination = Pagination(
        total=len(items),
        pages=math.ceil(len(items) / limit),
        current_page=page,
        limit=limit,
    )
    return list(items[start : start + limit]), pagination


def _matches(search: str | None, *fields: str | None) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(field and needle in field.lower() for field in fields)


def _revenue(orders: list[Order], since: Callable[[Order], bool] = lambda _o: True) -> Decimal:
    return sum((o.total_amount for o in orders if since(o)), ZERO)


class AdminService:
    """Service backing the admin API.

    Read operations return None when the underlying store could not be
    read, so the API can tell an empty result from a storage failure.
    """

    def __init__(
        self,
        customer_repository: CustomerRepository,
        product_repository: ProductRepository,
        order_repository: OrderRepository,
    ) -> None:
        """Initialize the AdminService.

        Args:
            customer_repository: Customer store
            product_repository: Catalog store
            order_repository: Order store
        """
        self.customer_repository = customer_repository
        self.product_repository = product_repository
        self.order_repository = order_repository

    # Dashboard

    async def get_dashboard(self, now: datetime | None = None) -> DashboardStats | None:
        """Aggregate shop statistics.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            DashboardStats, or None if orders or products could not be read
        """
        now = now or datetime.now(UTC)
        orders = self.order_repository.list_orders()
        products = self.product_repository.list_products()
        if orders is None or products is None:
            return None
        customers = self.customer_repository.list_customers()

        status_counts = Counter(o.status.value for o in orders)
        counts = DashboardCounts(
            customers=len(customers),
            orders=len(orders),
            orders_by_status={status.value: status_counts.get(status.value, 0) for status in OrderStatus},
            products=len(products),
            available_products=sum(1 for p in products if p.availability),
            low_stock_products=sum(1 for p in products if p.stock < LOW_STOCK_THRESHOLD),
        )

        billable = [o for o in orders if o.status != OrderStatus.CANCELLED]
        today = now.date()
        week_start = today - timedelta(days=6)
        revenue = RevenueSummary(
            total=_revenue(billable),
            today=_revenue(billable, lambda o: o.created_at.date() == today),
            last_7_days=_revenue(billable, lambda o: o.created_at.date() >= week_start),
            this_month=_revenue(
                billable,
                lambda o: (o.created_at.year, o.created_at.month) == (now.year, now.month),
            ),
        )

        return DashboardStats(
            counts=counts,
            revenue=revenue,
            recent_orders=orders[:RECENT_ORDERS],
            daily_sales=self._daily_sales(billable, today),
            top_products=self._top_products(billable),
        )

    @staticmethod
    def _daily_sales(orders: list[Order], today: date) -> list[DailySales]:
        days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
        by_day: dict[date, list[Order]] = defaultdict(list)
        for order in orders:
            by_day[order.created_at.date()].append(order)
        return [DailySales(day=day, orders=len(by_day[day]), revenue=_revenue(by_day[day])) for day in days]

    @staticmethod
    def _top_products(orders: list[Order]) -> list[TopProduct]:
        quantities: Counter[str] = Counter()
        revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for order in orders:
            for item in order.items:
                quantities[item.product_name] += item.quantity
                revenue[item.product_name] += item.line_total
        return [
            TopProduct(product_name=name, quantity=quantity, revenue=revenue[name])
            for name, quantity in quantities.most_common(TOP_PRODUCTS)
        ]

    # Customers

    async def list_customers(
        self, page: int = 1, limit: int = 20, search: str | None = None
    ) -> tuple[list[Customer], Pagination]:
        """List customers newest first, optionally filtered by phone, name or email."""
        customers = [
            c
            for c in self.customer_repository.list_customers()
            if _matches(search, c.phone_number, c.name, c.email)
        ]
        customers.sort(key=lambda c: c.created_at, reverse=True)
        return paginate(customers, page, limit)

    async def get_customer_detail(self, phone_number: str) -> CustomerDetail | None:
        """Get a customer with their orders and totals.

        Args:
            phone_number: Customer phone number

        Returns:
            CustomerDetail, or None if the customer does not exist
        """
        customer = self.customer_repository.get_customer(phone_number)
        if customer is None:
            return None

        orders = self.order_repository.list_orders_for_customer(phone_number)
        return CustomerDetail(
            customer=customer,
            total_orders=len(orders),
            total_spent=_revenue([o for o in orders if o.status != OrderStatus.CANCELLED]),
            orders=orders,
        )

    async def update_customer(self, phone_number: str, name: str | None, email: str | None) -> UpdateResult:
        """Update a customer's name and email.

        Args:
            phone_number: Customer phone number
            name: New name (None leaves it unchanged)
            email: New email (None leaves it unchanged)

        Returns:
            UpdateResult carrying the updated Customer
        """
        customer = self.customer_repository.get_customer(phone_number)
        if customer is None:
            return UpdateResult(UpdateOutcome.NOT_FOUND, error_message=f"Customer {phone_number} not found")

        changes: dict[str, Any] = {"updated_at": datetime.now(UTC)}
        if name is not None:
            changes["name"] = name
        if email is not None:
            changes["email"] = email
        updated = customer.model_copy(update=changes)

        if not self.customer_repository.save_customer(updated):
            return UpdateResult(UpdateOutcome.STORAGE_FAILED, error_message="Failed to save customer")
        return UpdateResult(UpdateOutcome.UPDATED, entity=updated)

    # Orders

    async def list_orders(
        self,
        status: OrderStatus | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> tuple[list[Order], Pagination] | None:
        """List orders newest first with optional filters.

        Args:
            status: Only orders in this status
            search: Substring of order ID, customer phone or delivery address
            page: 1-based page number
            limit: Page size
            start_date: Only orders created on or after this day
            end_date: Only orders created on or before this day

        Returns:
            (orders, pagination), or None if orders could not be read
        """
        orders = self.order_repository.list_orders()
        if orders is None:
            return None

        filtered = [
            o
            for o in orders
            if (status is None or o.status == status)
            and (start_date is None or o.created_at.date() >= start_date)
            and (end_date is None or o.created_at.date() <= end_date)
            and _matches(search, o.order_id, o.customer_phone, o.delivery_info.address)
        ]
        return paginate(filtered, page, limit)

    async def get_order(self, order_id: str) -> Order | None:
        return self.order_repository.get_order(order_id)

    async def update_order_status(self, order_id: str, status: OrderStatus, notes: str | None = None) -> UpdateResult:
        """Move an order along its lifecycle.

        Orders move forward through pending, confirmed, preparing,
        out_for_delivery and delivered, or to cancelled from any
        non-terminal status. Every change appends a timeline entry.

        Args:
            order_id: Order identifier
            status: Target status
            notes: Optional note stored with the timeline entry

        Returns:
            UpdateResult carrying the updated Order
        """
        order = self.order_repository.get_order(order_id)
        if order is None:
            return UpdateResult(UpdateOutcome.NOT_FOUND, error_message=f"Order {order_id} not found")

        if not order.status.can_transition_to(status):
            return UpdateResult(
                UpdateOutcome.INVALID_TRANSITION,
                error_message=f"Cannot change order {order_id} from {order.status.value} to {status.value}",
            )

        updated = order.with_status(status, notes)
        if not self.order_repository.save_order(updated):
            return UpdateResult(UpdateOutcome.STORAGE_FAILED, error_message="Failed to save order")

        logger.info(f"Order {order_id} moved from {order.status.value} to {status.value}")
        return UpdateResult(UpdateOutcome.UPDATED, entity=updated)

    async def update_order_details(
        self,
        order_id: str,
        delivery_info: dict[str, Any] | None = None,
        payment_info: dict[str, Any] | None = None,
        notes: str | None = None,
    ) -> UpdateResult:
        """Update an order's delivery details, payment details or notes.

        Args:
            order_id: Order identifier
            delivery_info: Delivery fields to change
            payment_info: Payment fields to change
            notes: New notes

        Returns:
            UpdateResult carrying the updated Order
        """
        order = self.order_repository.get_order(order_id)
        if order is None:
            return UpdateResult(UpdateOutcome.NOT_FOUND, error_message=f"Order {order_id} not found")

        changes: dict[str, Any] = {"updated_at": datetime.now(UTC)}
        if delivery_info:
            changes["delivery_info"] = DeliveryInfo.model_validate(
                {**order.delivery_info.model_dump(), **delivery_info}
            )
        if payment_info:
            changes["payment_info"] = PaymentInfo.model_validate({**order.payment_info.model_dump(), **payment_info})
        if notes is not None:
            changes["notes"] = notes
        updated = order.model_copy(update=changes)

        if not self.order_repository.save_order(updated):
            return UpdateResult(UpdateOutcome.STORAGE_FAILED, error_message="Failed to save order")
        return UpdateResult(UpdateOutcome.UPDATED, entity=updated)

    # Products

    async def list_products(
        self,
        category: ProductCategory | None = None,
        availability: bool | None = None,
        featured: bool | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Product], Pagination] | None:
        """List products featured-first then newest-first with optional filters.

        Returns:
            (products, pagination), or None if the catalog could not be read
        """
        products = self.product_repository.list_products()
        if products is None:
            return None

        filtered = [
            p
            for p in products
            if (category is None or p.category == category)
            and (availability is None or p.availability == availability)
            and (featured is None or p.featured == featured)
            and _matches(search, p.name, p.description, *p.tags)
        ]
        filtered.sort(key=lambda p: p.created_at, reverse=True)
        filtered.sort(key=lambda p: not p.featured)
        return paginate(filtered, page, limit)

    async def get_product(self, product_id: str) -> Product | None:
        return self.product_repository.get_product(product_id)

    async def create_product(self, data: ProductInput) -> Product | None:
        """Create a product with a generated ID.

        Returns:
            The created Product, or None if it could not be saved
        """
        product = Product(product_id=uuid.uuid4().hex, **data.model_dump())
        if not self.product_repository.save_product(product):
            return None
        logger.info(f"Created product {product.product_id} ({product.name})")
        return product

    async def update_product(self, product_id: str, data: ProductUpdate) -> UpdateResult:
        """Apply a partial update to a product.

        Returns:
            UpdateResult carrying the updated Product
        """
        product = self.product_repository.get_product(product_id)
        if product is None:
            return UpdateResult(UpdateOutcome.NOT_FOUND, error_message=f"Product {product_id} not found")

        updated = Product.model_validate(
            {**product.model_dump(), **data.changes(), "updated_at": datetime.now(UTC)}
        )
        if not self.product_repository.save_product(updated):
            return UpdateResult(UpdateOutcome.STORAGE_FAILED, error_message="Failed to save product")
        return UpdateResult(UpdateOutcome.UPDATED, entity=updated)

    async def delete_product(self, product_id: str) -> UpdateResult:
        """Delete a product.

        Returns:
            UpdateResult carrying the deleted Product
        """
        product = self.product_repository.get_product(product_id)
        if product is None:
            return UpdateResult(UpdateOutcome.NOT_FOUND, error_message=f"Product {product_id} not found")

        if not self.product_repository.delete_product(product_id):
            return UpdateResult(UpdateOutcome.STORAGE_FAILED, error_message="Failed to delete product")
        return UpdateResult(UpdateOutcome.UPDATED, entity=product)
