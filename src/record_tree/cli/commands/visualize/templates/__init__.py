"""HTML, CSS and JavaScript for the tree page."""
