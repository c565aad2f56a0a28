"""Core functionality: field resolution and hierarchy building."""

from .builder import build_hierarchy
from .exceptions import (
    ConfigError,
    MetadataError,
    RecordSourceError,
    RecordTreeError,
    UnknownNodeError,
)
from .models import ColumnDescriptor, ColumnKind, Hierarchy, MetadataTable, TreeNode
from .resolver import Gap, Resolved, resolve, resolve_field

__all__ = [
    # Exceptions
    "ConfigError",
    "MetadataError",
    "RecordSourceError",
    "RecordTreeError",
    "UnknownNodeError",
    # Models
    "ColumnDescriptor",
    "ColumnKind",
    "Hierarchy",
    "MetadataTable",
    "TreeNode",
    # Building
    "Gap",
    "Resolved",
    "build_hierarchy",
    "resolve",
    "resolve_field",
]
