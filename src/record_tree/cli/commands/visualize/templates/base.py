"""HTML template generation for the tree page.

This module combines CSS and JavaScript from the other template modules
with the render settings the script needs on the client side.
"""

import json
import time
from html import escape

from .....config.defaults import HOVER_NODE_COLOR, NODE_RADIUS, TOOLTIP_OFFSET
from .....config.settings import RenderSettings
from .scripts import get_all_scripts
from .styles import get_all_styles


def client_config(settings: RenderSettings) -> dict:
    """Settings the browser needs before its first request."""
    return {
        "scaleExtent": list(settings.scale_extent),
        "nodeRadius": NODE_RADIUS,
        "hoverColor": HOVER_NODE_COLOR,
        "tooltipOffset": list(TOOLTIP_OFFSET),
    }


def generate_html_template(title: str, settings: RenderSettings | None = None) -> str:
    """Generate the complete HTML page.

    Args:
        title: Page title (the tree's root value or list name)
        settings: Render settings exposed to the script

    Returns:
        Complete HTML string with embedded CSS and JavaScript
    """
    settings = settings or RenderSettings()
    # Add timestamp for cache busting
    build_timestamp = int(time.time())

    html = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{escape(title)}</title>
    <!-- Build: {build_timestamp} -->
    <script src="https://d3js.org/d3.v7.min.js"></script>
    <style>
{get_all_styles()}
    </style>
</head>
<body>
    <div id="tree-container">
        <svg id="treeSvg" width="{settings.width:g}" height="{settings.height:g}"></svg>
    </div>

    <div id="controls">
        <button class="control-button" id="expand-all-btn" title="Expand All">Expand All</button>
        <button class="control-button" id="collapse-all-btn" title="Collapse All">Collapse All</button>
        <button class="control-button" id="refresh-btn" title="Reload records">Refresh</button>
    </div>

    <div id="tooltip" class="tooltip"></div>
    <div id="status"></div>

    <script>
const CONFIG = {json.dumps(client_config(settings))};
{get_all_scripts()}
    </script>
</body>
</html>"""
    return html
