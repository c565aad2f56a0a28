"""Query planning and filter expressions for record sources.

``plan_query`` decides which fields a source must select and which reference
columns it must expand so that every grouping and tooltip column can be
resolved. ``build_filter_expression`` turns the operator-facing filter
settings (one column, comma separated literals, AND/OR) into an OData
``$filter`` string.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from ..config.defaults import DERIVED_FIELD_SEPARATOR, REFERENCE_ID_SUFFIX
from ..core.models import ColumnKind, MetadataTable, Record


@dataclass
class QueryPlan:
    """Fields to select and reference columns to expand."""

    select: list[str] = field(default_factory=list)
    expand: list[str] = field(default_factory=list)

    def _add(self, target: list[str], value: str) -> None:
        if value not in target:
            target.append(value)


def query_columns(
    grouping_columns: Sequence[str],
    tooltip_columns_by_level: Mapping[int, Sequence[str]] | None = None,
) -> list[str]:
    """Grouping columns followed by tooltip columns, de-duplicated in order."""
    ordered: list[str] = []
    for column in grouping_columns:
        if column not in ordered:
            ordered.append(column)
    for level in sorted(tooltip_columns_by_level or {}):
        for column in (tooltip_columns_by_level or {})[level]:
            if column not in ordered:
                ordered.append(column)
    return ordered


def plan_query(columns: Iterable[str], metadata: MetadataTable) -> QueryPlan:
    """Build the select/expand lists for a set of columns.

    Args:
        columns: Columns that will be resolved on every record
        metadata: Column descriptors

    Returns:
        QueryPlan with unique select and expand entries
    """
    plan = QueryPlan()
    for column in columns:
        descriptor = metadata.get(column)

        if DERIVED_FIELD_SEPARATOR in column or (
            descriptor is not None and descriptor.kind == ColumnKind.DERIVED
        ):
            base_name = (
                descriptor.base_column
                if descriptor and descriptor.base_column
                else column.split(DERIVED_FIELD_SEPARATOR)[0]
            )
            base = metadata.get(base_name)
            if base is None or not base.is_reference:
                logger.warning(
                    f"Could not find base reference column '{base_name}' for derived column {column}"
                )
                continue
            display_field = descriptor.display_field if descriptor else base.display_field
            plan._add(plan.select, f"{base_name}/{display_field}")
            plan._add(plan.expand, base_name)
            logger.debug(f"Derived column {column} via {base_name}/{display_field}")
            continue

        if descriptor is not None and descriptor.is_reference:
            plan._add(plan.select, f"{column}/{descriptor.display_field}")
            plan._add(plan.expand, column)
            if descriptor.kind == ColumnKind.REFERENCE_INDEXED:
                plan._add(plan.select, f"{column}{REFERENCE_ID_SUFFIX}")
            logger.debug(f"Reference column {column}/{descriptor.display_field}")
            continue

        plan._add(plan.select, column)

    logger.debug(f"Query plan select={plan.select} expand={plan.expand}")
    return plan


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def build_filter_expression(
    column: str | None, text: str | None, operator: str | None = "OR"
) -> str:
    """Build an equality filter from comma separated values.

    Examples:
        >>> build_filter_expression("Status", "New")
        "Status eq 'New'"
        >>> build_filter_expression("Status", "New, Modified")
        "(Status eq 'New' or Status eq 'Modified')"
        >>> build_filter_expression("Status", "New,Modified", "AND")
        "(Status eq 'New' and Status eq 'Modified')"
    """
    if not column or not text:
        return ""

    values = [value.strip() for value in text.split(",") if value.strip()]
    if not values:
        return ""
    if len(values) == 1:
        return f"{column} eq {_quote(values[0])}"

    joiner = " and " if (operator or "OR").upper() == "AND" else " or "
    conditions = [f"{column} eq {_quote(value)}" for value in values]
    return f"({joiner.join(conditions)})"


_TERM = re.compile(r"(?P<column>[^\s()']+)\s+eq\s+'(?P<value>(?:[^']|'')*)'")
_JOINER = re.compile(r"^\s+(?P<operator>and|or)\s+$")


def parse_filter_expression(expression: str) -> tuple[str, list[tuple[str, str]]]:
    """Parse a filter produced by ``build_filter_expression``.

    Terms are matched as whole quoted literals, so values containing
    ``and``/``or`` are read as values and never as joiners.

    Returns:
        ``(operator, [(column, value), ...])`` where operator is ``"and"`` or
        ``"or"``; an empty term list for an empty expression

    Raises:
        ValueError: If the expression is not an equality combination
    """
    expression = (expression or "").strip()
    if not expression:
        return "or", []
    if expression.startswith("(") and expression.endswith(")"):
        expression = expression[1:-1]

    operators: set[str] = set()
    terms: list[tuple[str, str]] = []
    position = 0
    for match in _TERM.finditer(expression):
        between = expression[position : match.start()]
        if terms:
            joiner = _JOINER.match(between)
            if not joiner:
                raise ValueError(f"Unsupported filter joiner: {between!r}")
            operators.add(joiner["operator"])
        elif between.strip():
            raise ValueError(f"Unsupported filter term: {between.strip()!r}")
        terms.append((match["column"], match["value"].replace("''", "'")))
        position = match.end()

    rest = expression[position:].strip()
    if not terms or rest:
        raise ValueError(f"Unsupported filter term: {(rest or expression)!r}")
    if len(operators) > 1:
        raise ValueError(f"Mixed and/or filters are not supported: {expression!r}")
    return (operators.pop() if operators else "or"), terms


def matches_filter(record: Record, expression: str) -> bool:
    """Evaluate an equality filter against a record's raw values."""
    operator, terms = parse_filter_expression(expression)
    if not terms:
        return True

    def _matches(column: str, value: str) -> bool:
        raw: Any = record.get(column)
        return raw is not None and str(raw) == value

    checks = (_matches(column, value) for column, value in terms)
    return all(checks) if operator == "and" else any(checks)
