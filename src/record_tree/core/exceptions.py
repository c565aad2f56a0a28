"""Typed exception hierarchy for record-tree.

Hierarchy
---------
RecordTreeError (base)
├── ConfigError            – configuration file / validation errors
├── MetadataError          – invalid column metadata
├── RecordSourceError      – record fetch failures (HTTP, file, payload shape)
└── UnknownNodeError       – interaction addressed to a node not on screen

Resolution gaps and incomplete configuration are not exceptions: the
resolver and builder degrade to smaller results instead of raising.
"""

from typing import Any


class RecordTreeError(Exception):
    """Base exception for record-tree."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


# ── Configuration layer ─────────────────────────────────────────────────


class ConfigError(RecordTreeError):
    """Configuration / validation errors."""

    pass


class MetadataError(ConfigError):
    """Column metadata could not be interpreted."""

    pass


# ── Source layer ────────────────────────────────────────────────────────


class RecordSourceError(RecordTreeError):
    """Fetching records from a source failed.

    Raised by ``RecordSource.fetch()`` implementations. ``TreeSession``
    catches it and continues with an empty record set.
    """

    pass


# ── Render layer ────────────────────────────────────────────────────────


class UnknownNodeError(RecordTreeError):
    """A node key does not belong to the current render state."""

    pass
