"""Tidy tree layout for the visible part of a render tree.

Implements the Buchheim, Jünger and Leipert improvement of the
Reingold-Tilford / Walker algorithm in linear time, the same algorithm D3's
``d3.tree()`` uses, so positions computed here match what the browser
would compute itself:

1. First walk (post-order): assign each node a preliminary x relative to its
   left sibling, pushing subtrees apart along their contours (apportion).
2. Second walk (pre-order): accumulate modifiers into final x positions.
3. Scale x by the node size and set y = depth * depth spacing.

Only visible children (those of expanded nodes) take part. The root lands
at (0, 0).
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from loguru import logger

from ..config.defaults import (
    DEPTH_SPACING,
    NODE_SPACING,
    ROOT_SEPARATION,
    SIBLING_SEPARATION,
)
from .state import RenderNode, RenderState

Separation = Callable[[RenderNode, RenderNode], float]


def default_separation(a: RenderNode, b: RenderNode) -> float:
    """Separation factor between two horizontally adjacent nodes."""
    if a.parent is None or b.parent is None:
        return ROOT_SEPARATION
    return SIBLING_SEPARATION


class _Wrapper:
    """Per-node bookkeeping for one layout pass."""

    __slots__ = ("node", "parent", "children", "A", "a", "z", "m", "c", "s", "t", "i")

    def __init__(self, node: RenderNode | None, i: int) -> None:
        self.node = node
        self.parent: _Wrapper | None = None
        self.children: list[_Wrapper] = []
        self.A: _Wrapper | None = None  # default ancestor
        self.a: _Wrapper = self  # ancestor
        self.z = 0.0  # prelim
        self.m = 0.0  # mod
        self.c = 0.0  # change
        self.s = 0.0  # shift
        self.t: _Wrapper | None = None  # thread
        self.i = i  # sibling index


def _wrap(root: RenderNode) -> _Wrapper:
    wrapper = _Wrapper(root, 0)
    stack = [wrapper]
    while stack:
        current = stack.pop()
        for i, child in enumerate(current.node.visible_children):
            child_wrapper = _Wrapper(child, i)
            child_wrapper.parent = current
            current.children.append(child_wrapper)
            stack.append(child_wrapper)

    sentinel = _Wrapper(None, 0)
    sentinel.children = [wrapper]
    wrapper.parent = sentinel
    return wrapper


def _post_order(root: _Wrapper) -> Iterator[_Wrapper]:
    for child in root.children:
        yield from _post_order(child)
    yield root


def _pre_order(root: _Wrapper) -> Iterator[_Wrapper]:
    yield root
    for child in root.children:
        yield from _pre_order(child)


def _next_left(v: _Wrapper) -> _Wrapper | None:
    return v.children[0] if v.children else v.t


def _next_right(v: _Wrapper) -> _Wrapper | None:
    return v.children[-1] if v.children else v.t


def _move_subtree(wm: _Wrapper, wp: _Wrapper, shift: float) -> None:
    change = shift / (wp.i - wm.i)
    wp.c -= change
    wp.s += shift
    wm.c += change
    wp.z += shift
    wp.m += shift


def _execute_shifts(v: _Wrapper) -> None:
    shift = 0.0
    change = 0.0
    for w in reversed(v.children):
        w.z += shift
        w.m += shift
        change += w.c
        shift += w.s + change


def _next_ancestor(vim: _Wrapper, v: _Wrapper, ancestor: _Wrapper) -> _Wrapper:
    return vim.a if vim.a.parent is v.parent else ancestor


def _apportion(
    v: _Wrapper, w: _Wrapper | None, ancestor: _Wrapper, separation: Separation
) -> _Wrapper:
    if w is None:
        return ancestor

    vip: _Wrapper | None = v
    vop: _Wrapper = v
    vim: _Wrapper | None = w
    vom: _Wrapper = v.parent.children[0]
    sip = vip.m
    sop = vop.m
    sim = vim.m
    som = vom.m

    vim = _next_right(vim)
    vip = _next_left(vip)
    while vim is not None and vip is not None:
        vom = _next_left(vom)
        vop = _next_right(vop)
        vop.a = v
        shift = vim.z + sim - vip.z - sip + separation(vim.node, vip.node)
        if shift > 0:
            _move_subtree(_next_ancestor(vim, v, ancestor), v, shift)
            sip += shift
            sop += shift
        sim += vim.m
        sip += vip.m
        som += vom.m
        sop += vop.m
        vim = _next_right(vim)
        vip = _next_left(vip)

    if vim is not None and _next_right(vop) is None:
        vop.t = vim
        vop.m += sim - sop
    if vip is not None and _next_left(vom) is None:
        vom.t = vip
        vom.m += sip - som
        ancestor = v
    return ancestor


def _first_walk(v: _Wrapper, separation: Separation) -> None:
    siblings = v.parent.children
    w = siblings[v.i - 1] if v.i else None
    if v.children:
        _execute_shifts(v)
        midpoint = (v.children[0].z + v.children[-1].z) / 2
        if w is not None:
            v.z = w.z + separation(v.node, w.node)
            v.m = v.z - midpoint
        else:
            v.z = midpoint
    elif w is not None:
        v.z = w.z + separation(v.node, w.node)
    v.parent.A = _apportion(v, w, v.parent.A or siblings[0], separation)


@dataclass
class LayoutNode:
    """A visible node and its computed position."""

    node: RenderNode
    x: float
    y: float
    depth: int

    @property
    def key(self) -> str:
        return self.node.key

    @property
    def parent_key(self) -> str | None:
        return self.node.parent.key if self.node.parent is not None else None


@dataclass
class LayoutResult:
    """Positioned visible nodes (pre-order) and parent-child links."""

    nodes: list[LayoutNode] = field(default_factory=list)
    links: list[tuple[LayoutNode, LayoutNode]] = field(default_factory=list)

    def position(self, key: str) -> tuple[float, float] | None:
        for layout_node in self.nodes:
            if layout_node.key == key:
                return layout_node.x, layout_node.y
        return None


def compute_layout(
    state: RenderState,
    node_size: float = NODE_SPACING,
    depth_spacing: float = DEPTH_SPACING,
    separation: Separation = default_separation,
) -> LayoutResult:
    """Lay out the visible subtree of ``state``.

    Positions are also written back onto each visible ``RenderNode``.

    Args:
        state: Render state whose root and expanded nodes are laid out
        node_size: Horizontal distance for a separation of 1
        depth_spacing: Vertical distance between levels
        separation: Separation factor between adjacent nodes

    Returns:
        LayoutResult; empty when the state has no root
    """
    if state.root is None:
        return LayoutResult()

    root = _wrap(state.root)
    for v in _post_order(root):
        _first_walk(v, separation)
    root.parent.m = -root.z

    result = LayoutResult()
    by_node: dict[int, LayoutNode] = {}
    depths: dict[int, int] = {id(root): 0}
    for v in _pre_order(root):
        x = v.z + v.parent.m
        v.m += v.parent.m
        depth = depths[id(v)]
        for child in v.children:
            depths[id(child)] = depth + 1

        layout_node = LayoutNode(
            node=v.node, x=x * node_size, y=depth * depth_spacing, depth=depth
        )
        v.node.x, v.node.y = layout_node.x, layout_node.y
        by_node[id(v.node)] = layout_node
        result.nodes.append(layout_node)
        if v.node.parent is not None:
            result.links.append((by_node[id(v.node.parent)], layout_node))

    logger.debug(
        f"Laid out {len(result.nodes)} visible nodes and {len(result.links)} links"
    )
    return result
