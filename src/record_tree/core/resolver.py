"""Field value resolution.

Turns one record plus one column name into the string shown for that column.
Four shapes are handled:

- direct columns: the raw record value
- non-indexed references: the display field of the expanded sub-object
- indexed references: same as non-indexed (the id field is only requested)
- derived columns (``Base_x003a_Field``): read through the base reference

Every failure is reported as a ``Gap`` value instead of an exception, so the
builder can decide that a gap simply ends a branch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..config.defaults import DERIVED_FIELD_SEPARATOR
from .models import ColumnDescriptor, ColumnKind, MetadataTable, Record


@dataclass(frozen=True)
class Resolved:
    """A non-empty display value."""

    value: str


@dataclass(frozen=True)
class Gap:
    """No value for this column on this record."""

    reason: str


Resolution = Resolved | Gap


def is_derived_column(column: str) -> bool:
    return DERIVED_FIELD_SEPARATOR in column


def _as_display(value: Any) -> str | None:
    """Render a scalar for display; None for empty or nested values."""
    if value is None or isinstance(value, dict | list):
        return None
    if isinstance(value, str):
        return value or None
    return str(value)


def _read_reference(record: Record, column: str, display_field: str) -> Resolution:
    """Read ``column``'s display field, flattened key first, then expansion."""
    flattened = _as_display(record.get(f"{column}/{display_field}"))
    if flattened:
        return Resolved(flattened)

    expanded = record.get(column)
    if not isinstance(expanded, dict):
        return Gap(f"no expanded object for '{column}'")

    value = _as_display(expanded.get(display_field))
    if value is None:
        return Gap(f"'{column}' has no '{display_field}'")
    return Resolved(value)


def _resolve_derived(
    record: Record,
    column: str,
    descriptor: ColumnDescriptor | None,
    metadata: MetadataTable,
) -> Resolution:
    base_name = (
        descriptor.base_column
        if descriptor and descriptor.base_column
        else column.split(DERIVED_FIELD_SEPARATOR)[0]
    )
    base = metadata.get(base_name)
    if base is None or not base.is_reference:
        return Gap(f"base column '{base_name}' of '{column}' is not a known reference")

    display_field = descriptor.display_field if descriptor else base.display_field
    return _read_reference(record, base_name, display_field)


def resolve_field(record: Record, column: str, metadata: MetadataTable) -> Resolution:
    """Resolve one column of one record.

    Args:
        record: Record as returned by the record source
        column: Internal column name
        metadata: Column descriptors

    Returns:
        ``Resolved`` with a non-empty string, or ``Gap`` with the reason
    """
    try:
        descriptor = metadata.get(column)

        if is_derived_column(column) or (
            descriptor is not None and descriptor.kind == ColumnKind.DERIVED
        ):
            return _resolve_derived(record, column, descriptor, metadata)

        if descriptor is not None and descriptor.is_reference:
            return _read_reference(record, column, descriptor.display_field)

        value = _as_display(record.get(column))
        if value is None:
            return Gap(f"no value for '{column}'")
        return Resolved(value)
    except Exception as e:  # malformed records never escape the resolver
        return Gap(f"failed to resolve '{column}': {e}")


def resolve(record: Record, column: str, metadata: MetadataTable) -> str:
    """Resolve a column to its display string, ``""`` when there is none."""
    result = resolve_field(record, column, metadata)
    if isinstance(result, Resolved):
        return result.value
    return ""
