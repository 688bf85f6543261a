"""Pydantic models for API responses."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class SubtableInfo(BaseModel):
    name: str
    table: str


class ModuleInfoResponse(BaseModel):
    """Module catalog entry."""
    key: str
    label: str
    description: str
    primary_table: str
    related_tables: List[str]
    display_columns: List[str]
    aggregate_columns: List[str]
    subtables: List[SubtableInfo]
    synthetic: bool


class AggregationResponse(BaseModel):
    """Statistics for one numeric column."""
    sum: float
    avg: float
    min: Optional[float] = None
    max: Optional[float] = None
    count: int


class FetchResponse(BaseModel):
    """One page of module data."""
    module: str
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0
    aggregations: Dict[str, AggregationResponse] = Field(default_factory=dict)
    error: Optional[str] = Field(None, description="Set when the store query failed")


class ActivityRecordResponse(BaseModel):
    id: str
    module: str
    type: str
    status: str
    date: str
    records: int


class ActivityResponse(BaseModel):
    """Recent activity across every module."""
    records: List[ActivityRecordResponse]
    total_available: int
    failed_modules: List[str] = Field(default_factory=list, description="Modules left out of the feed")


class DashboardMetricsResponse(BaseModel):
    total_revenue: float
    active_orders: int
    inventory_items: int
    total_customers: int
    error: Optional[str] = None


class CustomerServiceMetricsResponse(BaseModel):
    total_issues: int
    pending_issues: int
    resolved_issues: int
    error: Optional[str] = None


class MetricsResponse(BaseModel):
    """Headline numbers for the dashboard cards."""
    dashboard: DashboardMetricsResponse
    customer_service: CustomerServiceMetricsResponse
    stock_transactions: int
