"""Core system functionality."""

from .module_system import (
    JoinSpec,
    ModuleDescriptor,
    ModuleKey,
    ModuleNotConfigured,
    ModuleRegistry,
    SubtableSpec,
    join_hints,
)
from .catalog import DEFAULT_DESCRIPTORS, default_registry
from .module_loader import ModuleLoader

__all__ = [
    "JoinSpec",
    "ModuleDescriptor",
    "ModuleKey",
    "ModuleNotConfigured",
    "ModuleRegistry",
    "SubtableSpec",
    "join_hints",
    "DEFAULT_DESCRIPTORS",
    "default_registry",
    "ModuleLoader",
]
