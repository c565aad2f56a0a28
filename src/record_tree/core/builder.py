"""Hierarchy construction from flat records.

Each record walks the grouping columns from the root downward. A resolved
value either merges into an existing sibling with the same title or creates
a new node (whose tooltip data is captured once, at creation). The first
empty value ends the walk for that record, which is how ragged trees arise.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from loguru import logger

from .models import Hierarchy, MetadataTable, Record, TreeNode
from .resolver import Resolved, resolve_field


def _tooltip_data(
    record: Record, columns: Sequence[str], metadata: MetadataTable
) -> dict[str, str]:
    data: dict[str, str] = {}
    for column in columns:
        result = resolve_field(record, column, metadata)
        if isinstance(result, Resolved):
            data[column] = result.value
    return data


def build_hierarchy(
    records: Iterable[Record],
    root_value: str,
    grouping_columns: Sequence[str],
    tooltip_columns_by_level: Mapping[int, Sequence[str]] | None = None,
    metadata: MetadataTable | None = None,
) -> Hierarchy:
    """Build the rooted tree for a record set.

    Args:
        records: Records to group
        root_value: Title of the synthetic level-0 root
        grouping_columns: Columns for levels 1..n, in order
        tooltip_columns_by_level: Level -> columns captured as tooltip data
        metadata: Column descriptors used to resolve values

    Returns:
        Hierarchy with a single root keyed by ``root_value``. When there are
        no grouping columns or no root value the root has no children.
    """
    metadata = metadata or MetadataTable()
    tooltip_columns_by_level = tooltip_columns_by_level or {}

    root = TreeNode(title=root_value or "", level=0)
    hierarchy = Hierarchy(roots={root.title: root})

    if not root_value or not grouping_columns:
        logger.debug("Incomplete grouping configuration, returning bare root")
        return hierarchy

    record_count = 0
    truncated = 0
    for record in records:
        record_count += 1
        current = root
        for index, column in enumerate(grouping_columns):
            level = index + 1
            result = resolve_field(record, column, metadata)
            if not isinstance(result, Resolved):
                if truncated < 3:
                    logger.debug(
                        f"Record {record_count - 1} stops at level {level}: {result.reason}"
                    )
                truncated += 1
                break

            child = current.find_child(result.value)
            if child is None:
                child = current.add_child(
                    TreeNode(
                        title=result.value,
                        level=level,
                        tooltip_data=_tooltip_data(
                            record, tooltip_columns_by_level.get(level, ()), metadata
                        ),
                    )
                )
            current = child

    logger.debug(
        f"Built hierarchy '{root_value}': {record_count} records, "
        f"{hierarchy.node_count()} nodes, {truncated} truncated branches"
    )
    return hierarchy
