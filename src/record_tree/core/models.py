"""Data models for record-tree.

Column metadata is validated with pydantic because it arrives from YAML or a
remote field schema. Tree nodes are plain dataclasses: the builder mutates
them heavily while it merges siblings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator

from ..config.defaults import DEFAULT_DISPLAY_FIELD, DERIVED_FIELD_SEPARATOR
from .exceptions import MetadataError

# A record is whatever mapping the record source hands back.
Record = dict[str, Any]


class ColumnKind(StrEnum):
    DIRECT = "direct"
    REFERENCE_INDEXED = "reference_indexed"
    REFERENCE_NON_INDEXED = "reference_non_indexed"
    DERIVED = "derived"


REFERENCE_KINDS = frozenset(
    {ColumnKind.REFERENCE_INDEXED, ColumnKind.REFERENCE_NON_INDEXED}
)


class ColumnDescriptor(BaseModel):
    """How to read one column out of a record."""

    name: str = Field(..., description="Internal column name")
    kind: ColumnKind = ColumnKind.DIRECT
    target_list: str | None = Field(
        default=None, description="List the reference points at"
    )
    display_field: str = Field(
        default=DEFAULT_DISPLAY_FIELD,
        description="Field of the referenced record to display",
    )
    base_column: str | None = Field(
        default=None, description="Reference column a derived column rides on"
    )
    display_name: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _derive_base_column(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("kind") == ColumnKind.DERIVED and not data.get("base_column"):
            name = data.get("name") or ""
            if DERIVED_FIELD_SEPARATOR not in name:
                raise ValueError(
                    f"derived column '{name}' needs a base_column or a "
                    f"'{DERIVED_FIELD_SEPARATOR}' separated name"
                )
            data = {**data, "base_column": name.split(DERIVED_FIELD_SEPARATOR)[0]}
        return data

    @property
    def is_reference(self) -> bool:
        return self.kind in REFERENCE_KINDS


@dataclass
class MetadataTable:
    """Read-only lookup of column descriptors and display names."""

    columns: dict[str, ColumnDescriptor] = field(default_factory=dict)
    display_names: dict[str, str] = field(default_factory=dict)

    def get(self, column: str) -> ColumnDescriptor | None:
        return self.columns.get(column)

    def display_name(self, column: str) -> str:
        """Human-readable label for a column, falling back to its name."""
        if column in self.display_names:
            return self.display_names[column]
        descriptor = self.columns.get(column)
        if descriptor and descriptor.display_name:
            return descriptor.display_name
        return column

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetadataTable:
        """Create a table from ``{column: {kind: ..., ...}}``.

        Args:
            data: Mapping of column name to descriptor fields

        Returns:
            MetadataTable instance

        Raises:
            MetadataError: If a descriptor is invalid
        """
        columns: dict[str, ColumnDescriptor] = {}
        display_names: dict[str, str] = {}
        for name, entry in (data or {}).items():
            entry = dict(entry or {})
            entry.setdefault("name", name)
            try:
                descriptor = ColumnDescriptor(**entry)
            except ValidationError as e:
                raise MetadataError(
                    f"Invalid metadata for column '{name}': {e}",
                    context={"column": name},
                ) from e
            columns[name] = descriptor
            if descriptor.display_name:
                display_names[name] = descriptor.display_name
        return cls(columns=columns, display_names=display_names)

    def to_dict(self) -> dict[str, Any]:
        return {
            name: descriptor.model_dump(mode="json", exclude={"name"}, exclude_none=True)
            for name, descriptor in self.columns.items()
        }


@dataclass
class TreeNode:
    """One labeled node of the hierarchy."""

    title: str
    level: int
    children: list[TreeNode] = field(default_factory=list)
    tooltip_data: dict[str, str] = field(default_factory=dict)
    _by_title: dict[str, TreeNode] = field(
        default_factory=dict, repr=False, compare=False
    )

    def find_child(self, title: str) -> TreeNode | None:
        return self._by_title.get(title)

    def add_child(self, child: TreeNode) -> TreeNode:
        self.children.append(child)
        self._by_title[child.title] = child
        return child

    def walk(self):
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title, "level": self.level}
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        if self.tooltip_data:
            data["tooltipData"] = dict(self.tooltip_data)
        return data


@dataclass
class Hierarchy:
    """Root nodes keyed by root value (currently always exactly one)."""

    roots: dict[str, TreeNode] = field(default_factory=dict)

    @property
    def root(self) -> TreeNode | None:
        return next(iter(self.roots.values()), None)

    def node_count(self) -> int:
        return sum(1 for root in self.roots.values() for _ in root.walk())

    def to_dict(self) -> list[dict[str, Any]]:
        return [root.to_dict() for root in self.roots.values()]
