#!/usr/bin/env python3
"""
Derived render state for a roadmap layout.

Three filters shape what the renderer shows: the category filter, the
"available to take" filter, and the selection overlay. They are applied in
that order. A later stage can dim more, never less, except that an active
selection replaces availability dimming with its own connectivity result.
Clearing the selection falls back to the category + availability view.
"""

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Collection, FrozenSet, Iterable, Mapping, Optional

from .roadmap_core import (
    CATEGORIES,
    PREREQUISITE,
    Adjacency,
    Layout,
    connected_set,
    prerequisite_closure,
)

logger = logging.getLogger(__name__)

VISIBLE = "visible"
FAINT = "faint"

# ============================================================================
# FILTERS
# ============================================================================


def toggle_category(active: Collection[str], category: str) -> FrozenSet[str]:
    """
    Add or remove one category from the active set.

    Removing the last active category is refused and returns the set
    unchanged, so at least one category always stays visible.

    Raises:
        ValueError: If category is not one of CATEGORIES
    """
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category: {category}")

    current = frozenset(active)
    if category not in current:
        return current | {category}
    if len(current) == 1:
        logger.debug("Refusing to deactivate the last category %s", category)
        return current
    return current - {category}


@dataclass(frozen=True)
class FilterState:
    """UI filters consumed by derive_state(); transitions return new instances"""
    selected_id: Optional[str] = None
    active_categories: FrozenSet[str] = frozenset(CATEGORIES)
    availability_mode: bool = False

    def __post_init__(self):
        categories = frozenset(self.active_categories)
        if not categories:
            raise ValueError("At least one category must be active")
        unknown = categories - set(CATEGORIES)
        if unknown:
            raise ValueError(f"Unknown categories: {', '.join(sorted(unknown))}")
        object.__setattr__(self, "active_categories", categories)

    def select(self, course_id: Optional[str]) -> "FilterState":
        """Select a course; selecting the current selection clears it"""
        if course_id is not None and course_id == self.selected_id:
            course_id = None
        return replace(self, selected_id=course_id)

    def clear_selection(self) -> "FilterState":
        return replace(self, selected_id=None)

    def toggle_category(self, category: str) -> "FilterState":
        return replace(self, active_categories=toggle_category(self.active_categories, category))

    def toggle_availability(self) -> "FilterState":
        return replace(self, availability_mode=not self.availability_mode)


# ============================================================================
# DATA MODELS
# ============================================================================


@dataclass(frozen=True)
class NodeState:
    highlighted: bool = False
    dimmed: bool = False
    completed: bool = False
    available: bool = False


@dataclass(frozen=True)
class EdgeState:
    visible: bool = True
    emphasized: bool = False

    @property
    def opacity_class(self) -> str:
        return VISIBLE if self.visible else FAINT


@dataclass(frozen=True)
class DerivedState:
    nodes: Mapping[str, NodeState]
    edges: Mapping[str, EdgeState]
    connected: FrozenSet[str] = frozenset()
    selected_id: Optional[str] = None

    def dimmed_ids(self) -> FrozenSet[str]:
        return frozenset(cid for cid, state in self.nodes.items() if state.dimmed)

    def emphasized_edges(self) -> FrozenSet[str]:
        return frozenset(eid for eid, state in self.edges.items() if state.emphasized)


# ============================================================================
# AVAILABILITY
# ============================================================================


def is_available(adjacency: Adjacency, course_id: str, completed_ids: Collection[str]) -> bool:
    """Not yet completed, and every in-department prerequisite is completed"""
    if course_id in completed_ids:
        return False
    return all(pid in completed_ids for pid in adjacency.prerequisites(course_id))


def available_courses(adjacency: Adjacency, completed_ids: Iterable[str]) -> FrozenSet[str]:
    """Every course that can be taken next given the completed set"""
    completed = frozenset(completed_ids)
    return frozenset(
        cid for cid in adjacency.prerequisites_of
        if is_available(adjacency, cid, completed)
    )


# ============================================================================
# DERIVED STATE PIPELINE
# ============================================================================


def derive_state(roadmap: Layout,
                 adjacency: Adjacency,
                 filters: FilterState,
                 completed_ids: Iterable[str] = ()) -> DerivedState:
    """
    Compute per-node and per-edge render state for the current filters.

    Args:
        roadmap: Layout from roadmap_core.layout()
        adjacency: Adjacency of the same department
        filters: Current selection, category and availability filters
        completed_ids: Snapshot of the completed course ids

    Returns:
        DerivedState keyed by course id and edge id. A selection that does
        not name a course in the layout is ignored and reported as None.
    """
    completed = frozenset(completed_ids)
    node_map = roadmap.node_map()

    # Category filter
    category_hidden = frozenset(
        node.id for node in roadmap.nodes
        if node.category not in filters.active_categories
    )

    # Availability filter
    available = available_courses(adjacency, completed)
    availability_dimmed: FrozenSet[str] = frozenset()
    if filters.availability_mode:
        availability_dimmed = frozenset(node.id for node in roadmap.nodes if node.id not in available)

    # Selection overlay
    selected = filters.selected_id
    if selected is not None and selected not in node_map:
        logger.debug("Ignoring selection of unknown course %s", selected)
        selected = None

    connected: FrozenSet[str] = frozenset()
    upstream: FrozenSet[str] = frozenset()
    if selected is not None:
        connected = connected_set(adjacency, selected)
        upstream = prerequisite_closure(adjacency, selected) | {selected}

    nodes = {}
    for node in roadmap.nodes:
        if selected is not None:
            dimmed = node.id in category_hidden or node.id not in connected
        else:
            dimmed = node.id in category_hidden or node.id in availability_dimmed
        nodes[node.id] = NodeState(
            highlighted=node.id == selected,
            dimmed=dimmed,
            completed=node.id in completed,
            available=node.id in available,
        )

    edges = {}
    for edge in roadmap.edges:
        visible = edge.source not in category_hidden and edge.target not in category_hidden
        emphasized = False
        if selected is not None:
            visible = visible and edge.source in connected and edge.target in connected
            emphasized = visible and edge.kind == PREREQUISITE and edge.source in upstream
        elif filters.availability_mode:
            visible = visible and edge.source in available and edge.target in available
        edges[edge.id] = EdgeState(visible=visible, emphasized=emphasized)

    return DerivedState(
        nodes=MappingProxyType(nodes),
        edges=MappingProxyType(edges),
        connected=connected,
        selected_id=selected,
    )


__all__ = [
    'FilterState',
    'NodeState',
    'EdgeState',
    'DerivedState',
    'toggle_category',
    'is_available',
    'available_courses',
    'derive_state',
]
