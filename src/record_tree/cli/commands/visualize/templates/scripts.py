"""D3.js front end for the record tree.

The page holds no tree state of its own. Every interaction is posted to the
server, which answers with enter/update/exit sets (each entry carrying its
start and end geometry) and, for global expand/collapse, a viewport reset.
The script only draws those transitions:

- nodes and links are joined by key, so entering, updating and exiting
  elements are told apart by D3's data join
- entering elements are placed at ``from`` and animated to ``to``
- exiting elements are animated to their ``to`` and removed

Pan/zoom stays local to D3 for smoothness; the final transform of each
gesture is reported to the server so resets and reloads agree with it.
"""


def get_api_scripts() -> str:
    """Get the small fetch wrapper used for every server call."""
    return """
// ============================================================================
// API
// ============================================================================

async function postJson(url, body) {
    const response = await fetch(url, {
        method: 'POST',
        headers: {'Content-Type': 'application/json'},
        body: JSON.stringify(body || {})
    });
    if (!response.ok) {
        console.warn(`${url} failed with HTTP ${response.status}`);
        return null;
    }
    return response.json();
}
"""


def get_render_scripts() -> str:
    """Get the drawing code that applies one render update.

    Returns:
        JavaScript defining ``applyUpdate`` and its helpers
    """
    return """
// ============================================================================
// RENDERING
// ============================================================================

const svg = d3.select('#treeSvg');
const g = svg.append('g');
const linkLayer = g.append('g').attr('class', 'links');
const nodeLayer = g.append('g').attr('class', 'nodes');
const tooltip = d3.select('#tooltip');

const zoom = d3.zoom()
    .scaleExtent(CONFIG.scaleExtent)
    .on('zoom', (event) => {
        g.attr('transform', event.transform);
    })
    .on('end', (event) => {
        // only user gestures are reported, not programmatic resets
        if (event.sourceEvent) {
            const t = event.transform;
            postJson('/api/viewport', {x: t.x, y: t.y, k: t.k});
        }
    });

svg.call(zoom);

function translate(point) {
    return `translate(${point[0]},${point[1]})`;
}

function linkId(d) {
    return d.key.join('\\u001e');
}

function applyUpdate(update) {
    if (!update || update.ignored) return;
    if (update.graph) applyGraph(update.graph);
    if (update.viewport) applyViewport(update.viewport);
}

function applyViewport(viewport) {
    const transform = d3.zoomIdentity.translate(viewport.x, viewport.y).scale(viewport.k);
    if (viewport.duration) {
        svg.transition().duration(viewport.duration).call(zoom.transform, transform);
    } else {
        svg.call(zoom.transform, transform);
    }
}

function applyGraph(graph) {
    const duration = graph.duration;

    // Links first so nodes are drawn on top
    const linkExitPaths = new Map(graph.links.exit.map(d => [linkId(d), d.to]));
    const links = linkLayer.selectAll('path.link')
        .data(graph.links.enter.concat(graph.links.update), linkId);

    const linkEnter = links.enter()
        .append('path')
        .attr('class', 'link')
        .attr('d', d => d.from);

    linkEnter.merge(links)
        .transition()
        .duration(duration)
        .attr('d', d => d.to);

    links.exit()
        .transition()
        .duration(duration)
        .attr('d', d => linkExitPaths.get(linkId(d)) || d.to)
        .remove();

    const nodeExitTargets = new Map(graph.nodes.exit.map(d => [d.key, d.to]));
    const nodes = nodeLayer.selectAll('g.node')
        .data(graph.nodes.enter.concat(graph.nodes.update), d => d.key);

    const nodeEnter = nodes.enter()
        .append('g')
        .attr('class', 'node')
        .attr('transform', d => translate(d.from))
        .on('click', (event, d) => toggleNode(d.key))
        .on('mouseover', (event, d) => showTooltip(event, d))
        .on('mousemove', (event) => moveTooltip(event))
        .on('mouseout', () => hideTooltip());

    nodeEnter.append('circle')
        .attr('r', CONFIG.nodeRadius)
        .attr('fill', d => d.color)
        .on('mouseover', function () {
            d3.select(this).attr('fill', CONFIG.hoverColor);
        })
        .on('mouseout', function (event, d) {
            d3.select(this).attr('fill', d.color);
        });

    nodeEnter.append('foreignObject')
        .attr('x', 20)
        .attr('y', -10)
        .attr('width', 200)
        .attr('height', 40)
        .append('xhtml:div')
        .attr('class', 'label')
        .text(d => d.title);

    const merged = nodeEnter.merge(nodes);
    merged.classed('collapsed', d => d.hasChildren && !d.expanded);

    merged.transition()
        .duration(duration)
        .attr('transform', d => translate(d.to));

    merged.select('circle')
        .transition()
        .duration(duration)
        .attr('fill', d => d.color);

    nodes.exit()
        .transition()
        .duration(duration)
        .attr('transform', d => translate(nodeExitTargets.get(d.key) || d.to))
        .remove();

    d3.select('#status').text(
        `${graph.nodes.enter.length + graph.nodes.update.length} nodes visible`
    );
}
"""


def get_interaction_scripts() -> str:
    """Get handlers for clicks, hover, buttons and container resizing."""
    return """
// ============================================================================
// INTERACTION
// ============================================================================

async function toggleNode(key) {
    applyUpdate(await postJson('/api/nodes/toggle', {key: key}));
}

async function expandAll() {
    applyUpdate(await postJson('/api/expand-all'));
}

async function collapseAll() {
    applyUpdate(await postJson('/api/collapse-all'));
}

async function refreshTree() {
    applyUpdate(await postJson('/api/refresh'));
}

let hoveredKey = null;

async function showTooltip(event, d) {
    hoveredKey = d.key;
    const tip = await postJson('/api/hover', {
        event: 'enter', key: d.key, x: event.pageX, y: event.pageY
    });
    // the pointer may have left (or moved on) while the request was pending
    if (!tip || hoveredKey !== d.key) return;
    tooltip.style('visibility', 'visible')
        .style('top', `${tip.y}px`)
        .style('left', `${tip.x}px`)
        .html(tip.html);
}

function moveTooltip(event) {
    tooltip.style('top', `${event.pageY + CONFIG.tooltipOffset[1]}px`)
        .style('left', `${event.pageX + CONFIG.tooltipOffset[0]}px`);
}

function hideTooltip() {
    hoveredKey = null;
    tooltip.style('visibility', 'hidden');
    postJson('/api/hover', {event: 'leave'});
}

function observeResize() {
    const container = document.getElementById('tree-container');
    const observer = new ResizeObserver((entries) => {
        for (const entry of entries) {
            const {width, height} = entry.contentRect;
            svg.attr('width', width).attr('height', height);
            postJson('/api/resize', {width: width, height: height});
        }
    });
    observer.observe(container);
}
"""


def get_init_scripts() -> str:
    return """
// ============================================================================
// INITIALIZATION
// ============================================================================

document.addEventListener('DOMContentLoaded', async () => {
    document.getElementById('expand-all-btn').addEventListener('click', expandAll);
    document.getElementById('collapse-all-btn').addEventListener('click', collapseAll);
    document.getElementById('refresh-btn').addEventListener('click', refreshTree);

    observeResize();

    const response = await fetch('/api/graph');
    applyUpdate(await response.json());
});
"""


def get_all_scripts() -> str:
    """Generate all JavaScript for the page.

    Returns:
        Complete JavaScript code as a single string
    """
    return "".join(
        [
            get_api_scripts(),
            get_render_scripts(),
            get_interaction_scripts(),
            get_init_scripts(),
        ]
    )
