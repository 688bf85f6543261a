"""Unified recent-activity feed across all ERP modules."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Union

import pytz

from insights.core import ModuleKey, ModuleRegistry
from insights.db import DataStore

logger = logging.getLogger(__name__)

PER_MODULE_LIMIT = 5
MAX_RECORDS = 20

# Not derived from the row; see status_from_row for a real extractor
PLACEHOLDER_STATUS = "Completed"

StatusExtractor = Callable[[ModuleKey, Dict[str, Any]], str]


@dataclass(frozen=True)
class ActivityRecord:
    """One row of the activity feed."""
    id: str
    module_key: ModuleKey
    module_name: str
    record_type: str
    status: str
    date: date
    total_records_in_module: int

    @property
    def source_id(self) -> str:
        return self.id[len(self.module_key.value) + 1:]

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "module": self.module_name,
            "type": self.record_type,
            "status": self.status,
            "date": self.date.isoformat(),
            "records": self.total_records_in_module,
        }


@dataclass
class ModuleFetchOutcome:
    """What one module contributed to the feed."""
    key: ModuleKey
    rows: List[Dict[str, Any]] = field(default_factory=list)
    total_count: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ActivityFeedResult:
    records: List[ActivityRecord]
    outcomes: List[ModuleFetchOutcome]
    total_available: int = 0

    @property
    def failed_modules(self) -> List[ModuleKey]:
        return [o.key for o in self.outcomes if not o.ok]


def constant_status(key: ModuleKey, row: Dict[str, Any]) -> str:
    return PLACEHOLDER_STATUS


def status_from_row(key: ModuleKey, row: Dict[str, Any]) -> str:
    """Read the first status-like column of a row, capitalized."""
    status = row.get("status") or row.get("delivery_status") or row.get("payment_status") or "Pending"
    status = str(status)
    return status[:1].upper() + status[1:]


def today_in(timezone: str) -> date:
    return datetime.now(pytz.timezone(timezone)).date()


def _id_suffix(record: ActivityRecord) -> Union[int, float]:
    # Exact for ids past 2**53; anything not an integer sorts last
    try:
        return int(record.source_id)
    except ValueError:
        return -math.inf


class ActivityFeed:
    """Merges the most recent rows of every active module into one feed."""

    def __init__(
        self,
        store: DataStore,
        registry: ModuleRegistry,
        per_module_limit: int = PER_MODULE_LIMIT,
        max_records: int = MAX_RECORDS,
        status_extractor: StatusExtractor = None,
        today: Callable[[], date] = None,
        timezone: str = "UTC",
    ):
        if per_module_limit <= 0 or max_records <= 0:
            raise ValueError("per_module_limit and max_records must be positive")
        self.store = store
        self.registry = registry
        self.per_module_limit = per_module_limit
        self.max_records = max_records
        self.status_extractor = status_extractor or constant_status
        self.today = today or (lambda: today_in(timezone))

    def fetch_module(self, key: ModuleKey) -> ModuleFetchOutcome:
        """Fetch the newest rows of one module. Failures are returned, not raised."""
        descriptor = self.registry.get_descriptor(key)
        try:
            response = (
                self.store.table(descriptor.primary_table)
                .select("*", count="exact")
                .order("id", ascending=False)
                .limit(self.per_module_limit)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Skipping {descriptor.key.value} in activity feed: {e}")
            return ModuleFetchOutcome(key=descriptor.key, error=str(e))

        return ModuleFetchOutcome(
            key=descriptor.key,
            rows=response.data,
            total_count=response.count or 0,
        )

    def build(self) -> ActivityFeedResult:
        """
        Build the feed.

        Modules are fetched one after another in registry order. Records are
        ordered by the numeric row id, highest first; equal ids keep registry
        order. At most max_records are returned.
        """
        today = self.today()
        outcomes = []
        records = []

        for key in self.registry.list_active_module_keys():
            outcome = self.fetch_module(key)
            outcomes.append(outcome)
            if not outcome.ok:
                continue

            descriptor = self.registry.get_descriptor(key)
            for row in outcome.rows:
                records.append(ActivityRecord(
                    id=f"{key.value}-{row.get('id')}",
                    module_key=key,
                    module_name=descriptor.label,
                    record_type=f"{descriptor.primary_table} record",
                    status=self.status_extractor(key, row),
                    date=today,
                    total_records_in_module=outcome.total_count,
                ))

        ordered = sorted(records, key=_id_suffix, reverse=True)

        failed = [o.key.value for o in outcomes if not o.ok]
        if failed:
            logger.info(f"Activity feed built without: {', '.join(failed)}")

        return ActivityFeedResult(
            records=ordered[:self.max_records],
            outcomes=outcomes,
            total_available=len(records),
        )
