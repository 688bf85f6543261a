"""Summary statistics over numeric columns of a result page."""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class ColumnAggregate:
    sum: float = 0.0
    avg: float = 0.0
    min: Optional[float] = None
    max: Optional[float] = None
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"sum": self.sum, "avg": self.avg, "min": self.min, "max": self.max, "count": self.count}


def to_number(value: Any) -> Optional[float]:
    """Parse a cell as a finite number, or None if it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def aggregate_values(values: Iterable[Any]) -> ColumnAggregate:
    """Aggregate the parseable values; everything else is skipped."""
    numbers: List[float] = [n for n in (to_number(v) for v in values) if n is not None]
    if not numbers:
        return ColumnAggregate()

    total = math.fsum(numbers)
    return ColumnAggregate(
        sum=total,
        avg=total / len(numbers),
        min=min(numbers),
        max=max(numbers),
        count=len(numbers),
    )


def compute_aggregations(rows: List[Dict[str, Any]], columns: Iterable[str]) -> Dict[str, ColumnAggregate]:
    """
    Compute sum/avg/min/max/count for each column over the rows.

    Every requested column gets an entry, even when no value in it parses.
    """
    return {column: aggregate_values(row.get(column) for row in rows) for column in columns}
