"""Headline numbers for the BI dashboard cards."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from insights.db import DataStore, ExternalStoreError

from .aggregation import aggregate_values

logger = logging.getLogger(__name__)

SALES_ORDERS_TABLE = "sales_orders"
INVENTORY_TABLE = "inventory"
CUSTOMERS_TABLE = "customers"
STOCK_TRANSACTIONS_TABLE = "stock_transactions"
CUSTOMER_ISSUES_TABLE = "customer_issues"

COMPLETED_DELIVERY = "complete"


@dataclass
class DashboardMetrics:
    total_revenue: float = 0.0
    active_orders: int = 0
    inventory_items: int = 0
    total_customers: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_revenue": self.total_revenue,
            "active_orders": self.active_orders,
            "inventory_items": self.inventory_items,
            "total_customers": self.total_customers,
            "error": self.error,
        }


@dataclass
class CustomerServiceMetrics:
    total_issues: int = 0
    pending_issues: int = 0
    resolved_issues: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_issues": self.total_issues,
            "pending_issues": self.pending_issues,
            "resolved_issues": self.resolved_issues,
            "error": self.error,
        }


class MetricsService:
    """Counts and totals across modules. Store failures give zeros plus an error."""

    def __init__(self, store: DataStore):
        self.store = store

    def _count(self, table: str, **filters) -> int:
        query = self.store.table(table).select("*", count="exact", head=True)
        for column, value in filters.items():
            query = query.eq(column, value)
        return query.execute().count or 0

    def dashboard_metrics(self) -> DashboardMetrics:
        """Revenue from completed orders plus order, inventory and customer counts."""
        try:
            completed = (
                self.store.table(SALES_ORDERS_TABLE)
                .select("total_amount")
                .eq("delivery_status", COMPLETED_DELIVERY)
                .execute()
            )
            revenue = aggregate_values(row.get("total_amount") for row in completed.data).sum

            metrics = DashboardMetrics(
                total_revenue=revenue,
                active_orders=self._count(SALES_ORDERS_TABLE),
                inventory_items=self._count(INVENTORY_TABLE),
                total_customers=self._count(CUSTOMERS_TABLE),
            )
        except ExternalStoreError as e:
            logger.error(f"Error fetching metrics: {e}")
            return DashboardMetrics(error=str(e))

        logger.debug(f"Metrics fetched: {metrics}")
        return metrics

    def stock_transactions_count(self) -> int:
        try:
            return self._count(STOCK_TRANSACTIONS_TABLE)
        except ExternalStoreError as e:
            logger.error(f"Error fetching stock transactions count: {e}")
            return 0

    def customer_service_metrics(self) -> CustomerServiceMetrics:
        try:
            return CustomerServiceMetrics(
                total_issues=self._count(CUSTOMER_ISSUES_TABLE),
                pending_issues=self._count(CUSTOMER_ISSUES_TABLE, status="pending"),
                resolved_issues=self._count(CUSTOMER_ISSUES_TABLE, status="resolved"),
            )
        except ExternalStoreError as e:
            logger.error(f"Error fetching customer service metrics: {e}")
            return CustomerServiceMetrics(error=str(e))
