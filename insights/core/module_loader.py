"""Module loader for building the module registry from configuration."""

import dataclasses
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml

from .catalog import DEFAULT_DESCRIPTORS
from .module_system import JoinSpec, ModuleDescriptor, ModuleKey, ModuleRegistry, SubtableSpec

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("related_tables", "display_columns", "aggregate_columns")
_SCALAR_FIELDS = ("label", "description", "primary_table")


class ModuleLoader:
    """Builds the module registry from the built-in catalog plus YAML overrides."""

    def __init__(self, config_path: str = "config/modules.yaml",
                 defaults: Iterable[ModuleDescriptor] = DEFAULT_DESCRIPTORS):
        """
        Initialize the module loader.

        Args:
            config_path: Path to modules configuration file
            defaults: Descriptors used when the file does not override them
        """
        self.config_path = Path(config_path)
        self.defaults = list(defaults)
        self.config = {}

    def load_config(self) -> Dict:
        """Load module configuration from YAML file."""
        if not self.config_path.exists():
            logger.warning(f"Module config not found: {self.config_path}, using defaults")
            return {"modules": {}, "module_settings": {}}

        with open(self.config_path, 'r') as f:
            self.config = yaml.safe_load(f) or {}

        logger.info(f"Loaded module configuration from {self.config_path}")
        return self.config

    def load_registry(self) -> ModuleRegistry:
        """
        Build the registry.

        Returns:
            ModuleRegistry with overrides applied, in declaration order

        Raises:
            ValueError: On an invalid entry when module_settings.fail_on_error is set
        """
        config = self.load_config()
        modules_config = config.get('modules') or {}
        module_settings = config.get('module_settings') or {}
        fail_on_error = module_settings.get('fail_on_error', False)

        if not isinstance(modules_config, dict):
            logger.error(f"Invalid modules section in {self.config_path}: expected a mapping")
            if fail_on_error:
                raise ValueError(f"Invalid modules section in {self.config_path}: expected a mapping")
            modules_config = {}

        descriptors: Dict[ModuleKey, ModuleDescriptor] = {d.key: d for d in self.defaults}

        for raw_key, entry in modules_config.items():
            try:
                key = ModuleKey(raw_key)
                if entry is None or entry is True:
                    # Listed without overrides
                    continue
                if entry is False:
                    entry = {'enabled': False}
                if not isinstance(entry, dict):
                    raise TypeError(f"expected a mapping, got {type(entry).__name__}: {entry!r}")
                if not entry.get('enabled', True):
                    logger.info(f"Skipping disabled module: {raw_key}")
                    descriptors.pop(key, None)
                    continue
                descriptors[key] = self._apply(key, descriptors.get(key), entry)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.error(f"Invalid configuration for module {raw_key}: {e}")
                if fail_on_error:
                    raise ValueError(f"Invalid configuration for module {raw_key}: {e}") from e

        registry = ModuleRegistry(descriptors.values())
        logger.info(f"Module registry ready: {len(registry.list_active_module_keys())} active modules")
        return registry

    def _apply(self, key: ModuleKey, base: ModuleDescriptor, entry: Dict[str, Any]) -> ModuleDescriptor:
        changes: Dict[str, Any] = {}
        for name in _SCALAR_FIELDS:
            if name in entry:
                changes[name] = entry[name]
        for name in _LIST_FIELDS:
            if name in entry:
                changes[name] = list(entry[name] or [])
        if 'joins' in entry:
            changes['joins'] = _joins(entry['joins'])
        if 'subtables' in entry:
            changes['subtables'] = [
                SubtableSpec(
                    name=s.get('name', s['table']),
                    table=s['table'],
                    display_columns=s.get('display_columns', []),
                    aggregate_columns=s.get('aggregate_columns', []),
                    joins=_joins(s.get('joins')),
                )
                for s in entry['subtables'] or []
            ]

        if base is not None:
            return dataclasses.replace(base, **changes)

        if 'label' not in changes or 'primary_table' not in changes:
            raise ValueError("new modules need a label and a primary_table")
        return ModuleDescriptor(key=key, **changes)


def _joins(entries) -> List[JoinSpec]:
    return [
        JoinSpec(
            foreign_table=j['foreign_table'],
            predicate=j['predicate'],
            selected_columns=j.get('selected_columns', []),
        )
        for j in entries or []
    ]
