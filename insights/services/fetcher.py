"""Module data fetching with per-column aggregations."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from insights.core import JoinSpec, ModuleDescriptor, ModuleKey, ModuleRegistry, join_hints
from insights.db import DataStore

from .activity import ActivityFeed
from .aggregation import ColumnAggregate, compute_aggregations

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


@dataclass
class FetchOptions:
    """How to page, order and filter one module fetch."""
    limit: int = DEFAULT_LIMIT
    order_by: str = "id"
    ascending: bool = False
    filters: Dict[str, Any] = field(default_factory=dict)
    subtable: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit <= 0:
            raise ValueError(f"limit must be a positive integer, got {self.limit!r}")


@dataclass
class FetchResult:
    """One page of module rows plus aggregations, or an error message."""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    total_count: int = 0
    aggregations: Dict[str, ColumnAggregate] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, message: str) -> "FetchResult":
        return cls(rows=[], total_count=0, error=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": self.rows,
            "total_count": self.total_count,
            "aggregations": {k: v.to_dict() for k, v in self.aggregations.items()},
            "error": self.error,
        }


class DataFetcher:
    """Runs module queries against the store."""

    def __init__(self, store: DataStore, registry: ModuleRegistry, activity_feed: ActivityFeed = None):
        self.store = store
        self.registry = registry
        self.activity_feed = activity_feed or ActivityFeed(store, registry)

    def fetch(self, key: Union[ModuleKey, str], options: FetchOptions = None) -> FetchResult:
        """
        Fetch one page of a module's data.

        Store failures come back in FetchResult.error instead of being raised,
        so one broken module cannot take down a dashboard.

        Args:
            key: Module key
            options: Paging, ordering and filters

        Returns:
            FetchResult

        Raises:
            ModuleNotConfigured: If the key is not registered
        """
        options = options or FetchOptions()
        descriptor = self.registry.get_descriptor(key)

        if descriptor.synthetic:
            return self._fetch_activity(options)

        table, columns, aggregate_columns, joins = self._resolve_target(descriptor, options.subtable)

        query = self.store.table(table).select(
            ", ".join(columns),
            count="exact",
            joins=join_hints(table, joins),
        )
        for column, value in options.filters.items():
            if value is not None:
                query = query.eq(column, value)
        query = query.order(options.order_by, ascending=options.ascending).limit(options.limit)

        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Error fetching {descriptor.key.value} data: {e}")
            return FetchResult.failed(str(e))

        rows = response.data
        logger.debug(f"Fetched {len(rows)} of {response.count} rows from {table}")
        return FetchResult(
            rows=rows,
            total_count=response.count or 0,
            aggregations=compute_aggregations(rows, aggregate_columns),
        )

    def _resolve_target(self, descriptor: ModuleDescriptor,
                        subtable: Optional[str]) -> Tuple[str, Tuple[str, ...], Tuple[str, ...], Tuple[JoinSpec, ...]]:
        if subtable:
            spec = descriptor.get_subtable(subtable)
            if spec is not None:
                return spec.table, spec.display_columns, spec.aggregate_columns, spec.joins
            logger.warning(f"Module {descriptor.key.value} has no subtable {subtable}, using {descriptor.primary_table}")

        return (
            descriptor.primary_table,
            descriptor.display_columns,
            descriptor.aggregate_columns,
            descriptor.joins,
        )

    def _fetch_activity(self, options: FetchOptions) -> FetchResult:
        feed = self.activity_feed.build()
        return FetchResult(
            rows=[record.to_row() for record in feed.records[:options.limit]],
            total_count=feed.total_available,
        )
