"""Column metadata classification from list field definitions."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterable
from typing import Any

from loguru import logger

from ..config.defaults import DEFAULT_DISPLAY_FIELD, DERIVED_FIELD_SEPARATOR
from ..core.models import ColumnDescriptor, ColumnKind, MetadataTable

LOOKUP_TYPE = "Lookup"


def _schema_attributes(schema_xml: str | None) -> dict[str, str]:
    if not schema_xml:
        return {}
    try:
        return dict(ET.fromstring(schema_xml).attrib)
    except ET.ParseError as e:
        logger.warning(f"Unparseable field schema, using defaults: {e}")
        return {}


def classify_field(
    internal_name: str,
    type_as_string: str,
    schema_xml: str | None = None,
    lookup_list: str | None = None,
    title: str | None = None,
) -> ColumnDescriptor:
    """Classify one list field into a column descriptor.

    Non-lookup fields are direct. Lookup fields are derived when their
    internal name carries the projected-field separator, indexed references
    when the schema says ``Indexed="TRUE"``, and non-indexed references
    otherwise. ``ShowField`` picks the display field (default ``Title``).
    """
    if type_as_string != LOOKUP_TYPE:
        return ColumnDescriptor(name=internal_name, display_name=title)

    attributes = _schema_attributes(schema_xml)
    show_field = attributes.get("ShowField") or DEFAULT_DISPLAY_FIELD

    if DERIVED_FIELD_SEPARATOR in internal_name:
        kind = ColumnKind.DERIVED
    elif attributes.get("Indexed") == "TRUE":
        kind = ColumnKind.REFERENCE_INDEXED
    else:
        kind = ColumnKind.REFERENCE_NON_INDEXED

    logger.debug(f"Lookup field {internal_name}: kind={kind}, show_field={show_field}")
    return ColumnDescriptor(
        name=internal_name,
        kind=kind,
        target_list=lookup_list,
        display_field=show_field,
        display_name=title,
    )


def metadata_from_fields(fields: Iterable[dict[str, Any]]) -> MetadataTable:
    """Build a metadata table from field definitions, skipping hidden ones.

    Each field is a mapping with ``InternalName``, ``TypeAsString`` and
    optionally ``Title``, ``Hidden``, ``LookupList`` and ``SchemaXml``.
    """
    table = MetadataTable()
    for item in fields:
        if item.get("Hidden") or not item.get("InternalName"):
            continue
        descriptor = classify_field(
            item["InternalName"],
            item.get("TypeAsString", ""),
            item.get("SchemaXml"),
            item.get("LookupList"),
            item.get("Title"),
        )
        table.columns[descriptor.name] = descriptor
        if descriptor.display_name:
            table.display_names[descriptor.name] = descriptor.display_name
    return table
