"""CSS styles for the tree page, one function per section."""

from .....config.defaults import LINK_COLOR


def get_base_styles() -> str:
    """Get base styles for body and core layout.

    Returns:
        CSS string for base styling
    """
    return """
        body {
            margin: 0;
            font-family: "Segoe UI", -apple-system, BlinkMacSystemFont, Roboto, sans-serif;
            background: #ffffff;
            color: #323130;
            overflow: hidden;
        }

        h1 { margin: 0 0 12px 0; font-size: 16px; font-weight: 600; }
    """


def get_controls_styles() -> str:
    """Get styles for the expand/collapse control buttons."""
    return """
        #controls {
            position: absolute;
            top: 10px;
            left: 10px;
            display: flex;
            gap: 8px;
            z-index: 100;
        }

        .control-button {
            padding: 6px 12px;
            background: #ffffff;
            border: 1px solid #8a8886;
            border-radius: 2px;
            color: #323130;
            font-size: 13px;
            cursor: pointer;
        }

        .control-button:hover {
            background: #f3f2f1;
            border-color: #0078d4;
        }

        #status {
            position: absolute;
            bottom: 10px;
            left: 10px;
            font-size: 12px;
            color: #605e5c;
        }
    """


def get_graph_styles() -> str:
    return """
        #tree-container {
            position: fixed;
            left: 0;
            top: 0;
            right: 0;
            bottom: 0;
        }

        #treeSvg {
            width: 100%;
            height: 100%;
        }
    """


def get_node_styles() -> str:
    """Get styles for nodes and their labels."""
    return """
        .node circle {
            cursor: pointer;
            stroke: #ffffff;
            stroke-width: 2px;
        }

        .node.collapsed circle {
            stroke: #323130;
        }

        .node .label {
            font-size: 12px;
            word-wrap: break-word;
            white-space: normal;
            max-width: 180px;
            pointer-events: none;
        }
    """


def get_link_styles() -> str:
    return f"""
        .link {{
            fill: none;
            stroke: {LINK_COLOR};
            stroke-width: 2px;
        }}
    """


def get_tooltip_styles() -> str:
    """Get styles for the hover tooltip."""
    return """
        .tooltip {
            position: fixed;
            top: 10px;
            left: 10px;
            background-color: white;
            border: 1px solid #ccc;
            padding: 10px;
            border-radius: 5px;
            box-shadow: 0 0 10px rgba(0, 0, 0, 0.1);
            font-size: 12px;
            pointer-events: none;
            visibility: hidden;
        }
    """


def get_all_styles() -> str:
    """Get all CSS styles combined.

    Returns:
        Complete CSS string for the page
    """
    return "".join(
        [
            get_base_styles(),
            get_controls_styles(),
            get_graph_styles(),
            get_node_styles(),
            get_link_styles(),
            get_tooltip_styles(),
        ]
    )
