"""Reporting services built on the module registry and the store."""

from .aggregation import ColumnAggregate, aggregate_values, compute_aggregations, to_number
from .activity import (
    ActivityFeed,
    ActivityFeedResult,
    ActivityRecord,
    ModuleFetchOutcome,
    constant_status,
    status_from_row,
    today_in,
)
from .fetcher import DataFetcher, FetchOptions, FetchResult
from .export import export_csv, export_filename, format_cell
from .metrics import MetricsService, DashboardMetrics, CustomerServiceMetrics
from .live import LiveModuleView

__all__ = [
    "ColumnAggregate",
    "aggregate_values",
    "compute_aggregations",
    "to_number",
    "ActivityFeed",
    "ActivityFeedResult",
    "ActivityRecord",
    "ModuleFetchOutcome",
    "constant_status",
    "status_from_row",
    "today_in",
    "DataFetcher",
    "FetchOptions",
    "FetchResult",
    "export_csv",
    "export_filename",
    "format_cell",
    "MetricsService",
    "DashboardMetrics",
    "CustomerServiceMetrics",
    "LiveModuleView",
]
