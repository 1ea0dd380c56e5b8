#!/usr/bin/env python3
"""
Static preview of a roadmap layout using networkx and matplotlib
"""

import logging
from typing import Dict, Optional

import networkx as nx

from .roadmap_core import COREQUISITE, NODE_HEIGHT, NODE_WIDTH, Layout
from .roadmap_state import DerivedState

logger = logging.getLogger(__name__)

CATEGORY_COLORS = {
    'base': '#60a5fa',
    'specialized': '#fb7185',
    'elective': '#fbbf24',
    'special': '#34d399',
}
DEFAULT_COLOR = '#9ca3af'
COMPLETED_EDGE_COLOR = '#16a34a'
DIMMED_ALPHA = 0.15
FAINT_EDGE_ALPHA = 0.06


def create_graph(roadmap: Layout):
    """
    Create a NetworkX graph from a layout.

    Returns:
        tuple: (G, pos) - directed graph and position dictionary with the
        y axis flipped so the first layer is drawn on top
    """
    G = nx.DiGraph()

    for node in roadmap.nodes:
        G.add_node(
            node.id,
            title=node.name,
            category=node.category,
            credits=node.credits,
            layer=node.layer,
        )

    for edge in roadmap.edges:
        G.add_edge(edge.source, edge.target, id=edge.id, kind=edge.kind)

    pos = {
        node.id: (node.x + NODE_WIDTH / 2, -(node.y + NODE_HEIGHT / 2))
        for node in roadmap.nodes
    }
    return G, pos


def visualize_roadmap(roadmap: Layout,
                      state: Optional[DerivedState] = None,
                      figsize: tuple = (20, 15),
                      title: Optional[str] = None,
                      save_path: Optional[str] = None,
                      show: bool = True) -> tuple:
    """
    Draw a roadmap layout, applying derived state when given.

    Dimmed courses and faint edges are drawn nearly transparent, emphasized
    edges bold, completed courses with a green outline, corequisite edges
    dashed.

    Args:
        roadmap: Layout from roadmap_core.layout()
        state: Optional DerivedState for the same layout
        figsize: Figure size (width, height)
        title: Graph title (department id if None)
        save_path: Path to save figure (e.g., "roadmap.png")
        show: Whether to display the graph

    Returns:
        tuple: (figure, axis, graph, positions)
    """
    import matplotlib.pyplot as plt
    from matplotlib.patches import Patch

    G, pos = create_graph(roadmap)
    fig, ax = plt.subplots(figsize=figsize)

    node_ids = list(G.nodes())
    colors = [CATEGORY_COLORS.get(G.nodes[n]['category'], DEFAULT_COLOR) for n in node_ids]
    alphas = [1.0] * len(node_ids)
    outlines = ['white'] * len(node_ids)
    widths = [1.0] * len(node_ids)
    if state is not None:
        for i, node_id in enumerate(node_ids):
            node_state = state.nodes[node_id]
            if node_state.dimmed:
                alphas[i] = DIMMED_ALPHA
            if node_state.completed:
                outlines[i] = COMPLETED_EDGE_COLOR
                widths[i] = 2.5
            if node_state.highlighted:
                widths[i] = 4.0

    nx.draw_networkx_nodes(
        G, pos, ax=ax,
        nodelist=node_ids,
        node_color=colors,
        node_shape='s',
        node_size=2400,
        alpha=alphas,
        edgecolors=outlines,
        linewidths=widths,
    )
    nx.draw_networkx_labels(
        G, pos, ax=ax,
        labels={n: G.nodes[n]['title'] for n in node_ids},
        font_size=7,
    )

    for edge in roadmap.edges:
        alpha = edge.style.opacity
        width = edge.style.width
        if state is not None:
            edge_state = state.edges[edge.id]
            if not edge_state.visible:
                alpha = FAINT_EDGE_ALPHA
            elif state.connected:
                alpha = 1.0
            if edge_state.emphasized:
                width = 2.5
        nx.draw_networkx_edges(
            G, pos, ax=ax,
            edgelist=[(edge.source, edge.target)],
            edge_color=edge.style.stroke,
            width=width,
            alpha=alpha,
            style='dashed' if edge.kind == COREQUISITE else 'solid',
            arrows=True,
            arrowsize=12,
            node_size=2400,
            node_shape='s',
        )

    legend_elements = [
        Patch(facecolor=color, label=category)
        for category, color in CATEGORY_COLORS.items()
        if any(G.nodes[n]['category'] == category for n in node_ids)
    ]
    if legend_elements:
        ax.legend(handles=legend_elements, loc='upper right')

    ax.set_title(title or f"{roadmap.department_id} - Roadmap", fontsize=16, fontweight='bold')
    ax.axis('off')
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info("Roadmap preview saved to %s", save_path)

    if show:
        plt.show()

    return fig, ax, G, pos


def layer_summary(roadmap: Layout) -> Dict[int, int]:
    """Number of courses placed in each layer"""
    counts: Dict[int, int] = {}
    for node in roadmap.nodes:
        counts[node.layer] = counts.get(node.layer, 0) + 1
    return counts
