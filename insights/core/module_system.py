"""Module registry: which tables and columns back each ERP module."""

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

_PREDICATE_RE = re.compile(r"^\s*(\w+)\.(\w+)\s*=\s*(\w+)\.(\w+)\s*$")


class ModuleKey(str, enum.Enum):
    INVENTORY = "inventory"
    CUSTOMER_SERVICE = "customer_service"
    PROCUREMENT = "procurement"
    SUPPLY_CHAIN = "supply_chain"
    FINANCE = "finance"
    ECOMMERCE = "ecommerce"
    SALES = "sales"
    PROJECT_MANAGEMENT = "project_management"
    HR = "hr"
    ALL = "all"


class ModuleNotConfigured(KeyError):
    """Requested module key is not in the registry."""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(key)

    def __str__(self):
        key = self.key.value if isinstance(self.key, ModuleKey) else self.key
        return f"Module {key} not found in configuration"


def _tuple(values: Iterable[Any]) -> tuple:
    if isinstance(values, str):
        raise TypeError(f"Expected a list of values, got string {values!r}")
    return tuple(values or ())


@dataclass(frozen=True)
class JoinSpec:
    """A single foreign-key expansion, e.g. inventory.item_id = items.id."""
    foreign_table: str
    predicate: str
    selected_columns: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "selected_columns", _tuple(self.selected_columns))
        if not _PREDICATE_RE.match(self.predicate):
            raise ValueError(f"Invalid join predicate: {self.predicate!r}")

    def column_pair(self, table: str) -> Tuple[str, str]:
        """
        Split the predicate into (local column, foreign column) for a table.

        Args:
            table: The table the join starts from

        Raises:
            ValueError: If the predicate does not connect table and foreign_table
        """
        left_table, left_col, right_table, right_col = _PREDICATE_RE.match(self.predicate).groups()
        if left_table == table and right_table == self.foreign_table:
            return left_col, right_col
        if right_table == table and left_table == self.foreign_table:
            return right_col, left_col
        raise ValueError(
            f"Join predicate {self.predicate!r} does not connect {table} and {self.foreign_table}"
        )


def join_hints(table: str, joins: Iterable[JoinSpec]) -> Dict[str, Tuple[str, str]]:
    """Map each foreign table to the columns joining it to table."""
    hints = {}
    for join in joins:
        try:
            hints[join.foreign_table] = join.column_pair(table)
        except ValueError as e:
            logger.warning(f"Ignoring join hint: {e}")
    return hints


@dataclass(frozen=True)
class SubtableSpec:
    """A secondary table of a module that can be queried instead of the primary."""
    name: str
    table: str
    display_columns: Tuple[str, ...] = ()
    aggregate_columns: Tuple[str, ...] = ()
    joins: Tuple[JoinSpec, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "display_columns", _tuple(self.display_columns))
        object.__setattr__(self, "aggregate_columns", _tuple(self.aggregate_columns))
        object.__setattr__(self, "joins", _tuple(self.joins))
        if not self.display_columns:
            raise ValueError(f"Subtable {self.table} has no display columns")


@dataclass(frozen=True)
class ModuleDescriptor:
    """How to query one module."""
    key: ModuleKey
    label: str
    primary_table: str
    description: str = ""
    related_tables: Tuple[str, ...] = ()
    display_columns: Tuple[str, ...] = ()
    aggregate_columns: Tuple[str, ...] = ()
    joins: Tuple[JoinSpec, ...] = ()
    subtables: Tuple[SubtableSpec, ...] = ()
    synthetic: bool = False  # Aggregate view, never queried directly

    def __post_init__(self):
        object.__setattr__(self, "key", ModuleKey(self.key))
        for name in ("related_tables", "display_columns", "aggregate_columns", "joins", "subtables"):
            object.__setattr__(self, name, _tuple(getattr(self, name)))
        if not self.synthetic:
            if not self.primary_table:
                raise ValueError(f"Module {self.key.value} has no primary table")
            if not self.display_columns:
                raise ValueError(f"Module {self.key.value} has no display columns")

    def get_subtable(self, table: str) -> Optional[SubtableSpec]:
        for subtable in self.subtables:
            if subtable.table == table:
                return subtable
        return None

    def tables(self) -> List[str]:
        """Every table this module reads, primary first, without duplicates."""
        names = [self.primary_table, *self.related_tables]
        names.extend(j.foreign_table for j in self.joins)
        names.extend(s.table for s in self.subtables)
        seen = []
        for name in names:
            if name and name not in seen:
                seen.append(name)
        return seen

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key.value,
            "label": self.label,
            "description": self.description,
            "primary_table": self.primary_table,
            "related_tables": list(self.related_tables),
            "display_columns": list(self.display_columns),
            "aggregate_columns": list(self.aggregate_columns),
            "subtables": [{"name": s.name, "table": s.table} for s in self.subtables],
            "synthetic": self.synthetic,
        }

    def __repr__(self):
        return f"<ModuleDescriptor: {self.key.value} -> {self.primary_table or '-'}>"


class ModuleRegistry:
    """Read-only catalog of module descriptors, kept in declaration order."""

    def __init__(self, descriptors: Iterable[ModuleDescriptor] = ()):
        self._descriptors: Dict[ModuleKey, ModuleDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.key in self._descriptors:
                raise ValueError(f"Module {descriptor.key.value} registered twice")
            self._descriptors[descriptor.key] = descriptor
        logger.debug(f"Module registry built with {len(self._descriptors)} modules")

    def get_descriptor(self, key: Union[ModuleKey, str]) -> ModuleDescriptor:
        """
        Get the descriptor for a module.

        Raises:
            ModuleNotConfigured: If the key is unknown or not registered
        """
        try:
            module_key = ModuleKey(key)
        except ValueError:
            raise ModuleNotConfigured(key) from None

        descriptor = self._descriptors.get(module_key)
        if descriptor is None:
            raise ModuleNotConfigured(module_key)
        return descriptor

    def list_active_module_keys(self) -> List[ModuleKey]:
        """Keys of all queryable modules, in declaration order."""
        return [key for key, d in self._descriptors.items() if not d.synthetic]

    def get_all(self) -> List[ModuleDescriptor]:
        return list(self._descriptors.values())

    def get_module_info(self) -> List[Dict[str, Any]]:
        """Get information about all modules."""
        return [d.to_dict() for d in self._descriptors.values()]

    def __contains__(self, key) -> bool:
        try:
            return ModuleKey(key) in self._descriptors
        except ValueError:
            return False

    def __iter__(self) -> Iterator[ModuleDescriptor]:
        return iter(list(self._descriptors.values()))

    def __len__(self) -> int:
        return len(self._descriptors)

    def __repr__(self):
        return f"<ModuleRegistry: {len(self._descriptors)} modules>"
