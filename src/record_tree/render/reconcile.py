"""Reconciliation of a new layout against the graph currently on screen.

Given the previous ``GraphSnapshot`` and a fresh ``LayoutResult``, compute
disjoint enter/update/exit sets for nodes and, independently, for links.
Each entry carries the start and end geometry of its transition so the
browser only has to animate:

- entering nodes start at the previous position of their nearest ancestor
  that was already drawn, or at their own target when there is none
- updating nodes move from their previous to their new position
- exiting nodes move to the new position of their nearest ancestor that
  survives, or stay where they were, and are then removed

Links are keyed by the ordered ``(parent key, child key)`` pair and follow
the same rules, degenerating to a point at the start or end of their
transition.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from ..config.defaults import DEFAULT_NODE_COLOR, TRANSITION_MS
from .layout import LayoutResult
from .state import RenderNode

Point = tuple[float, float]
LinkKey = tuple[str, str]


def link_path(source: Point, target: Point) -> str:
    """Vertical cubic Bézier from ``source`` to ``target``."""
    x0, y0 = source
    x1, y1 = target
    ym = (y0 + y1) / 2
    return f"M{x0:g},{y0:g}C{x0:g},{ym:g},{x1:g},{ym:g},{x1:g},{y1:g}"


@dataclass
class NodeView:
    """A drawn node."""

    key: str
    title: str
    level: int
    x: float
    y: float
    color: str
    parent_key: str | None = None
    has_children: bool = False
    expanded: bool = True

    @property
    def position(self) -> Point:
        return self.x, self.y

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "level": self.level,
            "x": self.x,
            "y": self.y,
            "color": self.color,
            "parentKey": self.parent_key,
            "hasChildren": self.has_children,
            "expanded": self.expanded,
        }


@dataclass
class LinkView:
    """A drawn parent-child link."""

    source_key: str
    target_key: str
    source: Point
    target: Point

    @property
    def key(self) -> LinkKey:
        return self.source_key, self.target_key

    @property
    def path(self) -> str:
        return link_path(self.source, self.target)


@dataclass
class GraphSnapshot:
    """Everything currently drawn, keyed for reconciliation."""

    nodes: dict[str, NodeView] = field(default_factory=dict)
    links: dict[LinkKey, LinkView] = field(default_factory=dict)

    def nearest_ancestor(self, key: str, among: Mapping[str, NodeView]) -> NodeView | None:
        """First ancestor of ``key`` (by this snapshot's parentage) present in ``among``."""
        view = self.nodes.get(key)
        parent_key = view.parent_key if view else None
        while parent_key is not None:
            if parent_key in among:
                return among[parent_key]
            parent = self.nodes.get(parent_key)
            parent_key = parent.parent_key if parent else None
        return None


@dataclass
class NodeTransition:
    view: NodeView
    start: Point
    end: Point

    def to_dict(self) -> dict[str, Any]:
        return {**self.view.to_dict(), "from": list(self.start), "to": list(self.end)}


@dataclass
class LinkTransition:
    link: LinkView
    start_path: str
    end_path: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": list(self.link.key),
            "source": self.link.source_key,
            "target": self.link.target_key,
            "from": self.start_path,
            "to": self.end_path,
        }


@dataclass
class Reconciliation:
    """Enter/update/exit sets for one pass plus the resulting graph."""

    graph: GraphSnapshot
    duration: int = TRANSITION_MS
    enter_nodes: list[NodeTransition] = field(default_factory=list)
    update_nodes: list[NodeTransition] = field(default_factory=list)
    exit_nodes: list[NodeTransition] = field(default_factory=list)
    enter_links: list[LinkTransition] = field(default_factory=list)
    update_links: list[LinkTransition] = field(default_factory=list)
    exit_links: list[LinkTransition] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration": self.duration,
            "nodes": {
                "enter": [t.to_dict() for t in self.enter_nodes],
                "update": [t.to_dict() for t in self.update_nodes],
                "exit": [t.to_dict() for t in self.exit_nodes],
            },
            "links": {
                "enter": [t.to_dict() for t in self.enter_links],
                "update": [t.to_dict() for t in self.update_links],
                "exit": [t.to_dict() for t in self.exit_links],
            },
        }


def build_graph(
    layout: LayoutResult, colors: Mapping[int, str] | None = None
) -> GraphSnapshot:
    """Turn a layout into keyed node and link views.

    When two visible nodes share a key (title identity) the first one in
    pre-order is kept and the later ones are left out of the graph together
    with their visible descendants. Links are drawn only between a node and
    its own parent.
    """
    colors = colors or {}
    graph = GraphSnapshot()
    owners: dict[str, RenderNode] = {}
    skipped: set[int] = set()
    dropped: list[str] = []
    for layout_node in layout.nodes:
        render_node = layout_node.node
        parent = render_node.parent
        if layout_node.key in owners or (parent is not None and id(parent) in skipped):
            skipped.add(id(render_node))
            dropped.append(layout_node.key)
            continue
        owners[layout_node.key] = render_node
        graph.nodes[layout_node.key] = NodeView(
            key=layout_node.key,
            title=render_node.title,
            level=render_node.level,
            x=layout_node.x,
            y=layout_node.y,
            color=colors.get(render_node.level, DEFAULT_NODE_COLOR),
            parent_key=layout_node.parent_key,
            has_children=render_node.has_children,
            expanded=render_node.is_expanded,
        )

    if dropped:
        logger.warning(
            f"Duplicate node keys in title identity mode, dropped with their subtrees: {sorted(set(dropped))}"
        )

    for parent, child in layout.links:
        if owners.get(parent.key) is not parent.node or owners.get(child.key) is not child.node:
            continue
        source = graph.nodes[parent.key]
        target = graph.nodes[child.key]
        graph.links[(source.key, target.key)] = LinkView(
            source_key=source.key,
            target_key=target.key,
            source=source.position,
            target=target.position,
        )
    return graph


def reconcile(
    previous: GraphSnapshot | None,
    layout: LayoutResult,
    colors: Mapping[int, str] | None = None,
    duration: int = TRANSITION_MS,
) -> Reconciliation:
    """Diff a new layout against the previously drawn graph.

    Args:
        previous: Graph currently on screen (None or empty on first paint)
        layout: New layout of the visible subtree
        colors: Level -> node colour
        duration: Transition length in milliseconds

    Returns:
        Reconciliation whose ``graph`` becomes the next ``previous``
    """
    previous = previous or GraphSnapshot()
    graph = build_graph(layout, colors)
    result = Reconciliation(graph=graph, duration=duration)

    def enter_origin(key: str) -> Point | None:
        parent_key = graph.nodes[key].parent_key
        while parent_key is not None:
            if parent_key in previous.nodes:
                return previous.nodes[parent_key].position
            parent_key = graph.nodes[parent_key].parent_key if parent_key in graph.nodes else None
        return None

    def exit_target(key: str) -> Point:
        ancestor = previous.nearest_ancestor(key, graph.nodes)
        return ancestor.position if ancestor else previous.nodes[key].position

    for key, view in graph.nodes.items():
        if key in previous.nodes:
            result.update_nodes.append(
                NodeTransition(view, previous.nodes[key].position, view.position)
            )
        else:
            origin = enter_origin(key) or view.position
            result.enter_nodes.append(NodeTransition(view, origin, view.position))

    for key, view in previous.nodes.items():
        if key not in graph.nodes:
            result.exit_nodes.append(NodeTransition(view, view.position, exit_target(key)))

    for link_key, link in graph.links.items():
        if link_key in previous.links:
            result.update_links.append(
                LinkTransition(link, previous.links[link_key].path, link.path)
            )
        else:
            origin = enter_origin(link.target_key) or link.source
            result.enter_links.append(
                LinkTransition(link, link_path(origin, origin), link.path)
            )

    for link_key, link in previous.links.items():
        if link_key not in graph.links:
            # collapse onto the surviving end, or wherever the child goes
            target = (
                graph.nodes[link.source_key].position
                if link.source_key in graph.nodes
                else exit_target(link.target_key)
            )
            result.exit_links.append(
                LinkTransition(link, link.path, link_path(target, target))
            )

    logger.debug(
        f"Reconciled nodes +{len(result.enter_nodes)} ~{len(result.update_nodes)} "
        f"-{len(result.exit_nodes)}, links +{len(result.enter_links)} "
        f"~{len(result.update_links)} -{len(result.exit_links)}"
    )
    return result


def snapshot_reconciliation(
    graph: GraphSnapshot, duration: int = TRANSITION_MS
) -> Reconciliation:
    """Every node and link of ``graph`` as entering in place, for first paint."""
    result = Reconciliation(graph=graph, duration=duration)
    result.enter_nodes = [
        NodeTransition(view, view.position, view.position) for view in graph.nodes.values()
    ]
    result.enter_links = [
        LinkTransition(link, link.path, link.path) for link in graph.links.values()
    ]
    return result
