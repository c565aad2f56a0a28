"""record-tree - flat list records grouped into an interactive, collapsible tree."""

__version__ = "0.3.0"

from .core.exceptions import RecordTreeError

__all__ = ["RecordTreeError", "__version__"]
