"""DynamoDB repository classes for customers, products and orders.

Write and list operations use simple return values (False/None/[]) for
expected failures rather than raising exceptions. Reading a single customer
raises StorageError instead, because a failed read must never be mistaken
for a customer that does not exist yet.
"""

import logging
from enum import Enum
from typing import Any

from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from whatsapp_order_bot.models.catalog_models import Product, ProductCategory
from whatsapp_order_bot.models.customer_models import Customer
from whatsapp_order_bot.models.order_models import Order

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a read that must not silently fail cannot be completed."""


class CheckoutWriteResult(str, Enum):
    """Outcome of the order + customer checkout transaction."""

    CREATED = "created"
    DUPLICATE_ORDER_ID = "duplicate_order_id"
    FAILED = "failed"


def _scan_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Scan a table following pagination."""
    items: list[dict[str, Any]] = []
    while True:
        response = table.scan(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


def _query_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Query a table or index following pagination."""
    items: list[dict[str, Any]] = []
    while True:
        response = table.query(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


def sort_featured_then_newest(products: list[Product]) -> list[Product]:
    """Order products featured-first, then newest-first."""
    newest_first = sorted(products, key=lambda p: p.created_at, reverse=True)
    return sorted(newest_first, key=lambda p: not p.featured)


class CustomerRepository:
    """Repository for customer records.

    Manages customers in DynamoDB with phone_number as partition key.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_customer(self, phone_number: str) -> Customer | None:
        """Retrieve a customer by phone number.

        Args:
            phone_number: Customer phone number

        Returns:
            Customer if found, None if no record exists

        Raises:
            StorageError: If DynamoDB could not be read
        """
        try:
            response = self.table.get_item(Key={"phone_number": phone_number})
        except ClientError as e:
            logger.error(f"Failed to get customer {phone_number}: {e}")
            raise StorageError(f"Customer lookup failed for {phone_number}") from e

        if "Item" not in response:
            return None

        return Customer.from_dynamodb_item(response["Item"])

    def save_customer(self, customer: Customer) -> bool:
        """Create or replace a customer record.

        Args:
            customer: Customer to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=customer.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save customer {customer.phone_number}: {e}")
            return False

    def list_customers(self) -> list[Customer]:
        """List all customers.

        Returns:
            list: List of Customer objects (empty list on failure)
        """
        try:
            return [Customer.from_dynamodb_item(item) for item in _scan_all(self.table)]

        except ClientError as e:
            logger.error(f"Failed to list customers: {e}")
            return []


class ProductRepository:
    """Repository for catalog products.

    Manages products in DynamoDB with product_id as partition key and a
    Global Secondary Index on category.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_product(self, product_id: str) -> Product | None:
        """Retrieve a product by ID.

        Args:
            product_id: Product identifier

        Returns:
            Product if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"product_id": product_id})

            if "Item" not in response:
                return None

            return Product.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get product {product_id}: {e}")
            return None

    def find_by_category(
        self,
        category: ProductCategory,
        available_only: bool = True,
        limit: int | None = None,
    ) -> list[Product] | None:
        """Find products in a category, featured-first then newest-first.

        Uses the category-index Global Secondary Index.

        Args:
            category: Category to query
            available_only: Skip products marked unavailable
            limit: Maximum number of products to return

        Returns:
            List of products (empty if none match), or None if the query failed
        """
        try:
            items = _query_all(
                self.table,
                IndexName="category-index",
                KeyConditionExpression="category = :category",
                ExpressionAttributeValues={":category": category.value},
            )
        except ClientError as e:
            logger.error(f"Failed to query products for category {category.value}: {e}")
            return None

        products = [Product.from_dynamodb_item(item) for item in items]
        if available_only:
            products = [p for p in products if p.availability]

        products = sort_featured_then_newest(products)
        return products[:limit] if limit is not None else products

    def find_featured(self, available_only: bool = True, limit: int | None = None) -> list[Product] | None:
        """Find featured products across all categories.

        Args:
            available_only: Skip products marked unavailable
            limit: Maximum number of products to return

        Returns:
            List of products newest-first, or None if the scan failed
        """
        try:
            items = _scan_all(
                self.table,
                FilterExpression="featured = :featured",
                ExpressionAttributeValues={":featured": True},
            )
        except ClientError as e:
            logger.error(f"Failed to scan featured products: {e}")
            return None

        products = [Product.from_dynamodb_item(item) for item in items]
        if available_only:
            products = [p for p in products if p.availability]

        products = sort_featured_then_newest(products)
        return products[:limit] if limit is not None else products

    def list_products(self) -> list[Product] | None:
        """List all products.

        Returns:
            List of products, or None if the scan failed
        """
        try:
            return [Product.from_dynamodb_item(item) for item in _scan_all(self.table)]

        except ClientError as e:
            logger.error(f"Failed to list products: {e}")
            return None

    def save_product(self, product: Product) -> bool:
        """Create or replace a product.

        Args:
            product: Product to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=product.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save product {product.product_id}: {e}")
            return False

    def delete_product(self, product_id: str) -> bool:
        """Delete a product.

        Args:
            product_id: Product identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"product_id": product_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete product {product_id}: {e}")
            return False


class OrderRepository:
    """Repository for orders.

    Manages orders in DynamoDB with order_id as partition key. Checkout
    writes the order and the owning customer record in one transaction.
    """

    def __init__(
        self,
        dynamodb_resource: DynamoDBServiceResource,
        table_name: str,
        customers_table_name: str,
    ) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the orders table
            customers_table_name: Name of the customers table (for checkout transactions)
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.customers_table_name = customers_table_name
        self.table: Table = dynamodb_resource.Table(table_name)
        self._serializer = TypeSerializer()

    def _serialize(self, item: dict[str, Any]) -> dict[str, Any]:
        return {key: self._serializer.serialize(value) for key, value in item.items()}

    def create_order_for_customer(self, order: Order, customer: Customer) -> CheckoutWriteResult:
        """Write a new order and the updated customer record atomically.

        The order put is conditional on the order ID not existing yet.

        Args:
            order: New order
            customer: Customer record after checkout (cart cleared, history appended)

        Returns:
            CheckoutWriteResult describing the outcome
        """
        try:
            self.dynamodb.meta.client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": self._serialize(order.to_dynamodb_item()),
                            "ConditionExpression": "attribute_not_exists(order_id)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.customers_table_name,
                            "Item": self._serialize(customer.to_dynamodb_item()),
                        }
                    },
                ]
            )
            return CheckoutWriteResult.CREATED

        except ClientError as e:
            reasons = e.response.get("CancellationReasons", [])
            if reasons and reasons[0].get("Code") == "ConditionalCheckFailed":
                logger.warning(f"Order ID {order.order_id} already exists")
                return CheckoutWriteResult.DUPLICATE_ORDER_ID

            logger.error(f"Failed to create order {order.order_id}: {e}")
            return CheckoutWriteResult.FAILED

    def get_order(self, order_id: str) -> Order | None:
        """Retrieve an order by ID.

        Args:
            order_id: Order identifier

        Returns:
            Order if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"order_id": order_id})

            if "Item" not in response:
                return None

            return Order.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get order {order_id}: {e}")
            return None

    def save_order(self, order: Order) -> bool:
        """Replace an existing order (used for status and detail updates).

        Args:
            order: Order to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=order.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save order {order.order_id}: {e}")
            return False

    def list_orders(self) -> list[Order] | None:
        """List all orders, newest first.

        Returns:
            List of orders, or None if the scan failed
        """
        try:
            orders = [Order.from_dynamodb_item(item) for item in _scan_all(self.table)]

        except ClientError as e:
            logger.error(f"Failed to list orders: {e}")
            return None

        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def list_orders_for_customer(self, phone_number: str) -> list[Order]:
        """List a customer's orders, newest first.

        Uses a Global Secondary Index on customer_phone.

        Args:
            phone_number: Customer phone number

        Returns:
            list: List of orders (empty list if none found)
        """
        try:
            items = _query_all(
                self.table,
                IndexName="customer_phone-index",
                KeyConditionExpression="customer_phone = :phone",
                ExpressionAttributeValues={":phone": phone_number},
            )

        except ClientError as e:
            logger.error(f"Failed to list orders for {phone_number}: {e}")
            return []

        orders = [Order.from_dynamodb_item(item) for item in items]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)
