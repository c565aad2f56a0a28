"""Layout, reconciliation and interaction for the drawn tree."""

from .controller import InteractionController, RenderUpdate, Tooltip
from .layout import LayoutResult, compute_layout
from .reconcile import GraphSnapshot, Reconciliation, reconcile
from .state import Collapsed, Expanded, RenderNode, RenderState, ViewportTransform

__all__ = [
    "Collapsed",
    "Expanded",
    "GraphSnapshot",
    "InteractionController",
    "LayoutResult",
    "Reconciliation",
    "RenderNode",
    "RenderState",
    "RenderUpdate",
    "Tooltip",
    "ViewportTransform",
    "compute_layout",
    "reconcile",
]
