"""Persistent render state for one hierarchy.

A ``RenderNode`` mirrors one ``TreeNode`` and carries exactly one tagged
state: ``Expanded(children)`` with its children drawn, or
``Collapsed(hidden)`` with them kept aside. A leaf is ``Expanded([])``.
Collapsing and expanding only move the same list between the two tags, so
the set of known children never changes after a rebuild.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from ..config.defaults import (
    DEFAULT_IDENTITY,
    DEFAULT_WIDTH,
    NODE_KEY_SEPARATOR,
    ROOT_OFFSET_Y,
    SCALE_EXTENT,
)
from ..core.models import Hierarchy, TreeNode


@dataclass
class Expanded:
    children: list[RenderNode] = field(default_factory=list)


@dataclass
class Collapsed:
    hidden: list[RenderNode] = field(default_factory=list)


NodeState = Expanded | Collapsed


def node_key(path: tuple[str, ...], identity: str = DEFAULT_IDENTITY) -> str:
    """Reconciliation key for the node at ``path``.

    ``path`` identity joins every title from the root; ``title`` identity
    uses the node's own title only.
    """
    if identity == "title":
        return path[-1]
    return NODE_KEY_SEPARATOR.join(path)


@dataclass(eq=False)
class RenderNode:
    """One node of the render tree."""

    node: TreeNode
    key: str
    path: tuple[str, ...]
    parent: RenderNode | None = field(default=None, repr=False)
    state: NodeState = field(default_factory=Expanded)
    x: float | None = None
    y: float | None = None

    @property
    def title(self) -> str:
        return self.node.title

    @property
    def level(self) -> int:
        return self.node.level

    @property
    def tooltip_data(self) -> dict[str, str]:
        return self.node.tooltip_data

    @property
    def is_expanded(self) -> bool:
        return isinstance(self.state, Expanded)

    @property
    def all_children(self) -> list[RenderNode]:
        match self.state:
            case Expanded(children=children):
                return children
            case Collapsed(hidden=hidden):
                return hidden

    @property
    def visible_children(self) -> list[RenderNode]:
        return self.state.children if isinstance(self.state, Expanded) else []

    @property
    def has_children(self) -> bool:
        return bool(self.all_children)

    def expand(self) -> None:
        if isinstance(self.state, Collapsed):
            self.state = Expanded(self.state.hidden)

    def collapse(self) -> None:
        if isinstance(self.state, Expanded) and self.state.children:
            self.state = Collapsed(self.state.children)

    def toggle(self) -> None:
        """Flip between expanded and collapsed; leaves stay as they are."""
        if isinstance(self.state, Collapsed):
            self.expand()
        else:
            self.collapse()

    def walk(self) -> Iterator[RenderNode]:
        """Pre-order over every node, hidden ones included."""
        yield self
        for child in self.all_children:
            yield from child.walk()

    def walk_visible(self) -> Iterator[RenderNode]:
        yield self
        for child in self.visible_children:
            yield from child.walk_visible()


@dataclass
class RenderState:
    """Render tree plus a key index, rebuilt from every new hierarchy."""

    root: RenderNode | None = None
    identity: str = DEFAULT_IDENTITY
    _index: dict[str, RenderNode] = field(default_factory=dict, repr=False)

    @classmethod
    def from_hierarchy(
        cls, hierarchy: Hierarchy, identity: str = DEFAULT_IDENTITY
    ) -> RenderState:
        """Wrap the hierarchy's root; everything below the root starts collapsed."""
        tree_root = hierarchy.root
        if tree_root is None:
            return cls(identity=identity)

        def wrap(node: TreeNode, path: tuple[str, ...], parent: RenderNode | None) -> RenderNode:
            render_node = RenderNode(
                node=node, key=node_key(path, identity), path=path, parent=parent
            )
            children = [wrap(child, path + (child.title,), render_node) for child in node.children]
            if parent is None or not children:
                render_node.state = Expanded(children)
            else:
                render_node.state = Collapsed(children)
            return render_node

        state = cls(root=wrap(tree_root, (tree_root.title,), None), identity=identity)
        state._reindex()
        return state

    def _reindex(self) -> None:
        self._index = {}
        if self.root is None:
            return
        for render_node in self.root.walk():
            # title identity: the first node with a title owns the key
            self._index.setdefault(render_node.key, render_node)

    def find(self, key: str) -> RenderNode | None:
        return self._index.get(key)

    def nodes(self) -> Iterator[RenderNode]:
        if self.root is not None:
            yield from self.root.walk()

    def visible_nodes(self) -> Iterator[RenderNode]:
        if self.root is not None:
            yield from self.root.walk_visible()

    def expand_all(self) -> None:
        for render_node in self.nodes():
            render_node.expand()

    def collapse_all(self) -> None:
        """Collapse every node with children, the root included."""
        for render_node in self.nodes():
            render_node.collapse()


@dataclass
class ViewportTransform:
    """Pan/zoom transform applied to the drawing group."""

    translate_x: float = 0.0
    translate_y: float = 0.0
    scale: float = 1.0

    @classmethod
    def canonical(
        cls, width: float = DEFAULT_WIDTH, root_offset_y: float = ROOT_OFFSET_Y
    ) -> ViewportTransform:
        """``translate(width / 2, root_offset_y) scale(1)``."""
        return cls(translate_x=width / 2, translate_y=root_offset_y, scale=1.0)

    def clamped(self, scale_extent: tuple[float, float] = SCALE_EXTENT) -> ViewportTransform:
        low, high = scale_extent
        scale = min(max(self.scale, low), high)
        if scale != self.scale:
            logger.debug(f"Clamped zoom scale {self.scale} to {scale}")
        return ViewportTransform(self.translate_x, self.translate_y, scale)

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.translate_x, "y": self.translate_y, "k": self.scale}

    def to_svg(self) -> str:
        return f"translate({self.translate_x},{self.translate_y}) scale({self.scale})"
