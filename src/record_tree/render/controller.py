"""Interaction controller.

Owns the ``RenderState`` and ``ViewportTransform`` for one drawn tree and is
the only thing that mutates them. Every collapse-state change is followed by
a layout and reconciliation pass; the result is returned as a
``RenderUpdate`` that the front end applies.

A rebuild (new records or new column configuration) goes through
``begin_rebuild`` and ``load``. Between the two the controller is in its
rebuilding phase and ignores toggles; ``load`` swaps in the new state in a
single assignment.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from html import escape
from typing import Any

from loguru import logger

from ..config.defaults import TOOLTIP_OFFSET
from ..config.settings import RenderSettings
from ..core.exceptions import UnknownNodeError
from ..core.models import Hierarchy, MetadataTable
from .layout import compute_layout
from .reconcile import GraphSnapshot, Reconciliation, reconcile, snapshot_reconciliation
from .state import RenderNode, RenderState, ViewportTransform


@dataclass
class Tooltip:
    """Hover tooltip for one node."""

    key: str
    title: str
    fields: list[tuple[str, str]] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0
    visible: bool = True

    @property
    def lines(self) -> list[str]:
        return [self.title] + [f"{label}: {value}" for label, value in self.fields]

    def to_html(self) -> str:
        html = f"<strong>{escape(self.title)}</strong>"
        for label, value in self.fields:
            html += f"<br><strong>{escape(label)}:</strong> {escape(value)}"
        return html

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "fields": [{"label": label, "value": value} for label, value in self.fields],
            "html": self.to_html(),
            "x": self.x,
            "y": self.y,
            "visible": self.visible,
        }


@dataclass
class RenderUpdate:
    """What the front end has to do after one interaction."""

    reconciliation: Reconciliation | None = None
    viewport: ViewportTransform | None = None
    viewport_duration: int = 0
    ignored: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ignored": self.ignored}
        if self.reconciliation is not None:
            data["graph"] = self.reconciliation.to_dict()
        if self.viewport is not None:
            data["viewport"] = {
                **self.viewport.to_dict(),
                "duration": self.viewport_duration,
            }
        return data


class InteractionController:
    """Collapse state, tooltip and viewport for one tree."""

    def __init__(
        self,
        settings: RenderSettings | None = None,
        tooltip_fields: Mapping[int, Sequence[str]] | None = None,
        metadata: MetadataTable | None = None,
        node_colors: Mapping[int, str] | None = None,
    ) -> None:
        self.settings = settings or RenderSettings()
        self.tooltip_fields = dict(tooltip_fields or {})
        self.metadata = metadata or MetadataTable()
        self.node_colors = dict(node_colors or {})

        self.state = RenderState(identity=self.settings.identity)
        self.graph = GraphSnapshot()
        self.width = self.settings.width
        self.height = self.settings.height
        self.viewport = self._canonical_viewport()
        self.tooltip: Tooltip | None = None
        self.rebuilding = False
        self._generation = 0

    # ── rebuild ────────────────────────────────────────────────────────

    def begin_rebuild(self) -> int:
        """Enter the rebuilding phase; toggles are ignored until ``load``.

        Returns:
            Generation number to hand back to ``load`` for this rebuild
        """
        self._generation += 1
        self.rebuilding = True
        logger.debug(f"Rebuild {self._generation} started, interaction paused")
        return self._generation

    def load(self, hierarchy: Hierarchy, generation: int | None = None) -> RenderUpdate:
        """Replace the render state with one built from ``hierarchy``.

        The new tree starts collapsed below the root and the viewport is
        reset to the canonical transform. A ``generation`` older than the
        latest ``begin_rebuild`` is discarded and the controller stays in its
        rebuilding phase until the newest rebuild lands.
        """
        if generation is not None and generation != self._generation:
            logger.debug(f"Discarding rebuild {generation}, superseded by {self._generation}")
            return RenderUpdate(ignored=True)

        new_state = RenderState.from_hierarchy(hierarchy, identity=self.settings.identity)
        self.state = new_state
        self.tooltip = None
        self.rebuilding = False
        self.viewport = self._canonical_viewport()
        update = self._relayout()
        update.viewport = self.viewport
        logger.debug(f"Loaded hierarchy with {hierarchy.node_count()} nodes")
        return update

    def clear(self) -> RenderUpdate:
        """Drop the current tree (incomplete configuration)."""
        return self.load(Hierarchy())

    # ── collapse state ─────────────────────────────────────────────────

    def _require(self, key: str) -> RenderNode:
        render_node = self.state.find(key)
        if render_node is None:
            raise UnknownNodeError(f"No node with key {key!r}", context={"key": key})
        return render_node

    def click(self, key: str) -> RenderUpdate:
        """Toggle the node at ``key`` and re-render."""
        if self.rebuilding:
            logger.warning(f"Ignoring click on {key!r} during rebuild")
            return RenderUpdate(ignored=True)

        render_node = self._require(key)
        render_node.toggle()
        logger.debug(
            f"Toggled {render_node.title!r}: {'expanded' if render_node.is_expanded else 'collapsed'}"
        )
        return self._relayout()

    def expand_all(self) -> RenderUpdate:
        if self.rebuilding:
            logger.warning("Ignoring expand-all during rebuild")
            return RenderUpdate(ignored=True)
        self.state.expand_all()
        return self._relayout_and_reset()

    def collapse_all(self) -> RenderUpdate:
        if self.rebuilding:
            logger.warning("Ignoring collapse-all during rebuild")
            return RenderUpdate(ignored=True)
        self.state.collapse_all()
        return self._relayout_and_reset()

    def _relayout(self) -> RenderUpdate:
        layout = compute_layout(
            self.state,
            node_size=self.settings.node_size,
            depth_spacing=self.settings.depth_spacing,
        )
        reconciliation = reconcile(
            self.graph, layout, self.node_colors, self.settings.transition_ms
        )
        self.graph = reconciliation.graph
        return RenderUpdate(reconciliation=reconciliation)

    def _relayout_and_reset(self) -> RenderUpdate:
        update = self._relayout()
        self.viewport = self._canonical_viewport()
        update.viewport = self.viewport
        update.viewport_duration = self.settings.transition_ms
        return update

    def snapshot(self) -> RenderUpdate:
        """The whole current graph as entering, with the current viewport."""
        return RenderUpdate(
            reconciliation=snapshot_reconciliation(self.graph, self.settings.transition_ms),
            viewport=self.viewport,
        )

    # ── tooltip ────────────────────────────────────────────────────────

    def hover(self, key: str, x: float, y: float) -> Tooltip:
        """Show the tooltip for ``key`` next to the pointer at ``(x, y)``."""
        render_node = self._require(key)
        fields = [
            (self.metadata.display_name(column), render_node.tooltip_data[column])
            for column in self.tooltip_fields.get(render_node.level, ())
            if render_node.tooltip_data.get(column)
        ]
        dx, dy = TOOLTIP_OFFSET
        self.tooltip = Tooltip(
            key=key, title=render_node.title, fields=fields, x=x + dx, y=y + dy
        )
        return self.tooltip

    def move_pointer(self, x: float, y: float) -> Tooltip | None:
        if self.tooltip is None or not self.tooltip.visible:
            return None
        dx, dy = TOOLTIP_OFFSET
        self.tooltip.x, self.tooltip.y = x + dx, y + dy
        return self.tooltip

    def leave(self) -> None:
        if self.tooltip is not None:
            self.tooltip.visible = False

    # ── viewport ───────────────────────────────────────────────────────

    def _canonical_viewport(self) -> ViewportTransform:
        return ViewportTransform.canonical(self.width, self.settings.root_offset_y)

    def zoom(self, transform: ViewportTransform) -> ViewportTransform:
        """Apply a transform reported by a pan/zoom gesture."""
        self.viewport = transform.clamped(self.settings.scale_extent)
        return self.viewport

    def zoom_by(
        self, factor: float, anchor: tuple[float, float] | None = None
    ) -> ViewportTransform:
        """Scale by ``factor`` keeping ``anchor`` (screen coordinates) fixed."""
        current = self.viewport
        ax, ay = anchor if anchor is not None else (self.width / 2, self.height / 2)
        target = ViewportTransform(scale=current.scale * factor).clamped(
            self.settings.scale_extent
        )
        ratio = target.scale / current.scale
        self.viewport = ViewportTransform(
            translate_x=ax - (ax - current.translate_x) * ratio,
            translate_y=ay - (ay - current.translate_y) * ratio,
            scale=target.scale,
        )
        return self.viewport

    def pan(self, dx: float, dy: float) -> ViewportTransform:
        current = self.viewport
        self.viewport = ViewportTransform(
            current.translate_x + dx, current.translate_y + dy, current.scale
        )
        return self.viewport

    def resize(self, width: float, height: float | None = None) -> None:
        """Record a new container size; used by the next canonical reset."""
        self.width = width
        if height is not None:
            self.height = height
        logger.debug(f"Viewport resized to {self.width}x{self.height}")
