"""Tree configuration loaded from YAML."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..core.exceptions import ConfigError
from ..core.models import MetadataTable
from ..sources.metadata import metadata_from_fields
from .defaults import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_HEIGHT,
    DEFAULT_IDENTITY,
    DEFAULT_NODE_COLOR,
    DEFAULT_WIDTH,
    DEPTH_SPACING,
    MAX_LEVELS,
    MAX_TOOLTIP_FIELDS,
    NODE_SPACING,
    ROOT_OFFSET_Y,
    SCALE_EXTENT,
    TRANSITION_MS,
)


class FilterConfig(BaseModel):
    """Equality filter applied when fetching records."""

    column: str | None = None
    text: str | None = None
    operator: Literal["AND", "OR"] = "OR"

    @field_validator("operator", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class SourceConfig(BaseModel):
    """Where records come from."""

    type: Literal["file", "odata"] = "file"
    path: Path | None = None
    url: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float = DEFAULT_FETCH_TIMEOUT

    @model_validator(mode="after")
    def _check_location(self) -> SourceConfig:
        if self.type == "file" and self.path is None:
            raise ValueError("file source requires 'path'")
        if self.type == "odata" and not self.url:
            raise ValueError("odata source requires 'url'")
        return self


class RenderSettings(BaseModel):
    """Layout and viewport parameters."""

    node_size: float = NODE_SPACING
    depth_spacing: float = DEPTH_SPACING
    scale_extent: tuple[float, float] = SCALE_EXTENT
    transition_ms: int = TRANSITION_MS
    root_offset_y: float = ROOT_OFFSET_Y
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    identity: Literal["path", "title"] = DEFAULT_IDENTITY

    @field_validator("scale_extent")
    @classmethod
    def _ordered_extent(cls, value: tuple[float, float]) -> tuple[float, float]:
        low, high = value
        if low <= 0 or low > high:
            raise ValueError(f"invalid scale extent {value}")
        return value


class TreeConfig(BaseModel):
    """Complete record-tree configuration."""

    list_name: str = ""
    root_value: str = ""
    grouping_columns: list[str] = Field(default_factory=list)
    tooltip_fields: dict[int, list[str]] = Field(default_factory=dict)
    node_colors: dict[int, str] = Field(default_factory=dict)
    filter: FilterConfig = Field(default_factory=FilterConfig)
    columns: dict[str, dict[str, Any]] = Field(default_factory=dict)
    fields: list[dict[str, Any]] = Field(default_factory=list)
    source: SourceConfig | None = None
    render: RenderSettings = Field(default_factory=RenderSettings)

    @field_validator("grouping_columns")
    @classmethod
    def _limit_levels(cls, value: list[str]) -> list[str]:
        value = [column for column in value if column]
        if len(value) > MAX_LEVELS:
            raise ValueError(f"at most {MAX_LEVELS} grouping columns are supported")
        return value

    @field_validator("tooltip_fields")
    @classmethod
    def _limit_tooltips(cls, value: dict[int, list[str]]) -> dict[int, list[str]]:
        for level, columns in value.items():
            if not 1 <= level <= MAX_LEVELS:
                raise ValueError(f"tooltip level {level} is outside 1..{MAX_LEVELS}")
            if len(columns) > MAX_TOOLTIP_FIELDS:
                raise ValueError(
                    f"level {level} has more than {MAX_TOOLTIP_FIELDS} tooltip fields"
                )
        return {level: [c for c in columns if c] for level, columns in value.items()}

    @property
    def is_complete(self) -> bool:
        """A tree can only be drawn with a root value and grouping columns."""
        return bool(self.root_value and self.grouping_columns)

    def metadata(self) -> MetadataTable:
        """Column descriptors.

        Raw list field definitions under ``fields`` are classified first;
        explicit ``columns`` entries override them.
        """
        table = metadata_from_fields(self.fields)
        declared = MetadataTable.from_dict(self.columns)
        table.columns.update(declared.columns)
        table.display_names.update(declared.display_names)
        return table

    def color_for_level(self, level: int) -> str:
        return self.node_colors.get(level, DEFAULT_NODE_COLOR)

    @classmethod
    def load(cls, path: Path) -> TreeConfig:
        """Load configuration from a YAML file.

        Relative source paths are resolved against the config file's
        directory.

        Args:
            path: Path to YAML configuration file

        Returns:
            TreeConfig instance

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
        """
        if not path.exists():
            raise ConfigError(
                f"Config file not found: {path}", context={"path": str(path)}
            )

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(
                f"Could not read config {path}: {e}", context={"path": str(path)}
            ) from e

        config = cls.from_dict(data)
        if config.source and config.source.path and not config.source.path.is_absolute():
            config.source.path = (path.parent / config.source.path).resolve()
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TreeConfig:
        """Create config from a dictionary.

        Raises:
            ConfigError: If validation fails
            MetadataError: If a column descriptor is invalid
        """
        if not isinstance(data, dict):
            raise ConfigError("Config root must be a mapping")
        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
        # raises MetadataError for bad column descriptors
        config.metadata()
        return config

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def save(self, path: Path) -> None:
        """Save configuration to a YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
