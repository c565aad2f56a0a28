"""Default configurations for record-tree."""

from pathlib import Path

# Grouping depth and tooltip fan-out offered by the configuration surface
MAX_LEVELS = 7
MAX_TOOLTIP_FIELDS = 3

# Field resolution
DEFAULT_DISPLAY_FIELD = "Title"
DERIVED_FIELD_SEPARATOR = "_x003a_"  # encoded ':' in projected lookup names
REFERENCE_ID_SUFFIX = "Id"

# Record fetching
DEFAULT_PAGE_SIZE = 5000
DEFAULT_FETCH_TIMEOUT = 30.0
FILTER_OPERATORS = ("OR", "AND")

# Node colors (CSS color values)
DEFAULT_NODE_COLOR = "#0078d4"
HOVER_NODE_COLOR = "#68c1e8"
LINK_COLOR = "#ccc"

# Layout
NODE_SPACING = 100  # distance between adjacent siblings (before separation)
DEPTH_SPACING = 200  # distance between consecutive levels
ROOT_SEPARATION = 1  # separation factor when a neighbour is the root
SIBLING_SEPARATION = 2  # separation factor everywhere else
NODE_RADIUS = 12

# Viewport
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600
ROOT_OFFSET_Y = 80  # canonical transform anchors the root this far from the top
SCALE_EXTENT = (0.5, 3.0)
TRANSITION_MS = 750
TOOLTIP_OFFSET = (10, 10)

# Node identity used by reconciliation
IDENTITY_MODES = ("path", "title")
DEFAULT_IDENTITY = "path"
NODE_KEY_SEPARATOR = "\x1f"

# Visualization server
DEFAULT_PORT = 8090
PORT_SEARCH_RANGE = 20

CONFIG_FILENAMES = ("record-tree.yaml", "record-tree.yml")


def find_default_config(directory: Path | None = None) -> Path | None:
    """Return the first default config file found in ``directory``.

    Args:
        directory: Directory to search (defaults to the current directory)

    Returns:
        Path to the config file, or None if none exists
    """
    base = directory or Path.cwd()
    for name in CONFIG_FILENAMES:
        candidate = base / name
        if candidate.exists():
            return candidate
    return None
