#!/usr/bin/env python3
"""
Department Roadmap Core: course graph model and layered layout
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Collection, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np
import pandas as pd
import icu

logger = logging.getLogger(__name__)

# ============================================================================
# LAYOUT CONSTANTS
# ============================================================================

NODE_WIDTH = 152
NODE_HEIGHT = 48
GAP_X = 18
GAP_Y = 72
SUB_GAP_Y = 28
MAX_COLS = 9

CATEGORIES = ("base", "specialized", "elective", "special")

CATEGORY_ORDER = {
    "base": 0,
    "specialized": 1,
    "elective": 2,
    "special": 3,
}
UNKNOWN_CATEGORY_RANK = 9

# Course names sort by Persian alphabetical order
COLLATION_LOCALE = "fa"

PREREQUISITE = "prerequisite"
COREQUISITE = "corequisite"

# ============================================================================
# DATA MODEL
# ============================================================================


@dataclass(frozen=True)
class Course:
    id: str
    name: str
    credits: int
    category: str
    prerequisites: Tuple[str, ...] = ()
    corequisites: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Department:
    id: str
    name: str
    courses: Tuple[Course, ...] = ()

    def course_map(self) -> Dict[str, Course]:
        return {course.id: course for course in self.courses}


@dataclass(frozen=True)
class Adjacency:
    """Prerequisite relation and its inverse, restricted to in-department ids.

    Derived from the course list by build_adjacency(); never edited by hand.
    """
    prerequisites_of: Mapping[str, FrozenSet[str]]
    dependents_of: Mapping[str, FrozenSet[str]]

    def prerequisites(self, course_id: str) -> FrozenSet[str]:
        return self.prerequisites_of.get(course_id, frozenset())

    def dependents(self, course_id: str) -> FrozenSet[str]:
        return self.dependents_of.get(course_id, frozenset())


@dataclass(frozen=True)
class EdgeStyle:
    stroke: str
    width: float
    opacity: float
    dashed: bool = False


STANDARD_EDGE_STYLE = EdgeStyle(stroke="#94a3b8", width=1.2, opacity=0.25)
ELECTIVE_EDGE_STYLE = EdgeStyle(stroke="#f59e0b", width=0.8, opacity=0.18)
COREQUISITE_EDGE_STYLE = EdgeStyle(stroke="#22c55e", width=1.0, opacity=0.25, dashed=True)


@dataclass(frozen=True)
class LayoutNode:
    id: str
    name: str
    category: str
    credits: int
    layer: int
    x: float
    y: float


@dataclass(frozen=True)
class LayoutEdge:
    id: str
    source: str
    target: str
    kind: str
    style: EdgeStyle


@dataclass(frozen=True)
class Layout:
    department_id: str
    nodes: Tuple[LayoutNode, ...] = ()
    edges: Tuple[LayoutEdge, ...] = ()
    layer_count: int = 0

    def node_map(self) -> Dict[str, LayoutNode]:
        return {node.id: node for node in self.nodes}

    def layers(self) -> List[List[str]]:
        """Course ids per layer, in placement order"""
        grouped: List[List[str]] = [[] for _ in range(self.layer_count)]
        for node in self.nodes:
            grouped[node.layer].append(node.id)
        return grouped


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


@lru_cache(maxsize=1)
def _collator() -> icu.Collator:
    """Shared collator for course names, tailored to the Persian alphabet"""
    return icu.Collator.createInstance(icu.Locale(COLLATION_LOCALE))


def _category_rank(category: str) -> int:
    return CATEGORY_ORDER.get(category, UNKNOWN_CATEGORY_RANK)


def _layer_sort_key(course: Course):
    """Category rank, then natural alphabetical order of the display name"""
    return (_category_rank(course.category), _collator().getSortKey(course.name), course.id)


def _referenced_ids(courses: Iterable[Course]) -> Set[str]:
    """Ids that some course lists as a prerequisite or corequisite"""
    referenced = set()
    for course in courses:
        referenced.update(course.prerequisites)
        referenced.update(course.corequisites)
    return referenced


def _is_isolated(course: Course, referenced: Collection[str]) -> bool:
    if course.prerequisites or course.corequisites:
        return False
    return course.id not in referenced


# ============================================================================
# COURSE GRAPH MODEL
# ============================================================================


def compute_depths(courses: Sequence[Course]) -> Dict[str, int]:
    """
    Compute the layer depth of every course.

    A course's depth is one more than the deepest of its in-department
    prerequisites, or 0 when it has none. A course that lists no
    prerequisites but does list corequisites takes the deepest depth of its
    in-department corequisites, so corequisite pairs share a layer.

    Prerequisite cycles do not recurse forever: a course reached again while
    it is still being resolved counts as depth 0. Depths of cycle members are
    therefore well defined but not meaningful.

    Args:
        courses: Courses of a single department

    Returns:
        Dict mapping course id to depth
    """
    course_map = {course.id: course for course in courses}
    depths: Dict[str, int] = {}

    def resolve(course_id: str, visiting: Set[str]) -> int:
        if course_id in depths:
            return depths[course_id]
        if course_id in visiting:
            logger.debug("Prerequisite cycle reached at %s", course_id)
            return 0
        visiting.add(course_id)

        prereqs = [pid for pid in course_map[course_id].prerequisites if pid in course_map]
        if not prereqs:
            depths[course_id] = 0
            return 0

        depth = max(resolve(pid, visiting) for pid in prereqs) + 1
        depths[course_id] = depth
        return depth

    for course in courses:
        if course.id not in depths:
            resolve(course.id, set())

    # Corequisite-only courses sit beside their partner
    base_depths = dict(depths)
    for course in courses:
        if course.corequisites and not course.prerequisites:
            coreq_depths = [base_depths[cid] for cid in course.corequisites if cid in course_map]
            if coreq_depths:
                depths[course.id] = max(coreq_depths)

    return depths


def build_adjacency(courses: Sequence[Course]) -> Adjacency:
    """
    Build the prerequisite map and its inverse in one pass.

    References to courses outside the department are skipped. Every course
    gets an entry in both maps, empty for roots and leaves.

    Args:
        courses: Courses of a single department

    Returns:
        Immutable Adjacency
    """
    course_ids = {course.id for course in courses}
    prereqs: Dict[str, Set[str]] = {course.id: set() for course in courses}
    dependents: Dict[str, Set[str]] = {course.id: set() for course in courses}

    for course in courses:
        for pid in course.prerequisites:
            if pid in course_ids:
                prereqs[course.id].add(pid)
                dependents[pid].add(course.id)

    return Adjacency(
        prerequisites_of=MappingProxyType({cid: frozenset(ids) for cid, ids in prereqs.items()}),
        dependents_of=MappingProxyType({cid: frozenset(ids) for cid, ids in dependents.items()}),
    )


def is_isolated(course: Course, courses: Sequence[Course]) -> bool:
    """True if the course has no prerequisites, corequisites or dependents"""
    return _is_isolated(course, _referenced_ids(courses))


def _closure(start: str, neighbours: Mapping[str, FrozenSet[str]]) -> Set[str]:
    """Every id reachable from start, excluding start unless it lies on a cycle"""
    seen: Set[str] = set()
    stack = list(neighbours.get(start, ()))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        stack.extend(n for n in neighbours.get(current, ()) if n not in seen)
    return seen


def prerequisite_closure(adjacency: Adjacency, course_id: str) -> FrozenSet[str]:
    """All ancestors of a course along the prerequisite relation"""
    return frozenset(_closure(course_id, adjacency.prerequisites_of))


def dependent_closure(adjacency: Adjacency, course_id: str) -> FrozenSet[str]:
    """All descendants of a course along the prerequisite relation"""
    return frozenset(_closure(course_id, adjacency.dependents_of))


def connected_set(adjacency: Adjacency, course_id: str) -> FrozenSet[str]:
    """The course itself plus its full prerequisite and dependent closures"""
    return (
        frozenset([course_id])
        | prerequisite_closure(adjacency, course_id)
        | dependent_closure(adjacency, course_id)
    )


# ============================================================================
# LAYOUT ENGINE
# ============================================================================


def _build_layers(department: Department, depths: Dict[str, int]) -> List[List[Course]]:
    """Connected courses grouped by depth, isolated courses as a trailing layer"""
    referenced = _referenced_ids(department.courses)
    isolated: List[Course] = []
    connected: List[Course] = []

    for course in department.courses:
        if _is_isolated(course, referenced):
            isolated.append(course)
        else:
            connected.append(course)

    max_depth = max((depths[c.id] for c in connected), default=0)
    layers: List[List[Course]] = [[] for _ in range(max_depth + 1)]
    for course in connected:
        layers[depths[course.id]].append(course)

    for layer in layers:
        layer.sort(key=_layer_sort_key)

    if isolated:
        layers.append(sorted(isolated, key=_layer_sort_key))

    return layers


def _row_width(count: int) -> int:
    return count * NODE_WIDTH + (count - 1) * GAP_X


def _build_edges(department: Department) -> List[LayoutEdge]:
    """Prerequisite and corequisite edges between in-department courses"""
    course_ids = {course.id for course in department.courses}
    edges: List[LayoutEdge] = []
    seen: Set[str] = set()

    for course in department.courses:
        for pid in course.prerequisites:
            edge_id = f"e-{pid}-{course.id}"
            if pid not in course_ids or edge_id in seen:
                continue
            seen.add(edge_id)
            style = ELECTIVE_EDGE_STYLE if course.category == "elective" else STANDARD_EDGE_STYLE
            edges.append(LayoutEdge(edge_id, pid, course.id, PREREQUISITE, style))

        for cid in course.corequisites:
            edge_id = f"e-coreq-{cid}-{course.id}"
            if cid not in course_ids or edge_id in seen:
                continue
            seen.add(edge_id)
            edges.append(LayoutEdge(edge_id, cid, course.id, COREQUISITE, COREQUISITE_EDGE_STYLE))

    return edges


def layout(department: Department) -> Layout:
    """
    Lay out a department as a layered grid.

    Layers follow prerequisite depth; within a layer courses are ordered by
    category and then alphabetically by name. Courses with no relations at
    all are collected into one extra layer at the bottom. Each layer wraps
    into centred sub-rows of at most MAX_COLS nodes.

    Args:
        department: Department to lay out

    Returns:
        Layout with node positions and styled edges; the same department
        always produces an identical Layout
    """
    depths = compute_depths(department.courses)
    layers = _build_layers(department, depths)

    max_row_width = max((_row_width(min(len(layer), MAX_COLS)) for layer in layers), default=0)
    max_row_width = max(max_row_width, 0)

    nodes: List[LayoutNode] = []
    y = 0
    for layer_index, layer in enumerate(layers):
        if not layer:
            continue

        sub_rows = [layer[i:i + MAX_COLS] for i in range(0, len(layer), MAX_COLS)]
        for row_index, row in enumerate(sub_rows):
            offset_x = (max_row_width - _row_width(len(row))) / 2
            for col, course in enumerate(row):
                nodes.append(LayoutNode(
                    id=course.id,
                    name=course.name,
                    category=course.category,
                    credits=course.credits,
                    layer=layer_index,
                    x=offset_x + col * (NODE_WIDTH + GAP_X),
                    y=y,
                ))
            y += NODE_HEIGHT + (SUB_GAP_Y if row_index < len(sub_rows) - 1 else 0)

        y += GAP_Y

    return Layout(
        department_id=department.id,
        nodes=tuple(nodes),
        edges=tuple(_build_edges(department)),
        layer_count=len(layers),
    )


# ============================================================================
# ANALYSIS FUNCTIONS
# ============================================================================


def detect_cycles(department: Department) -> List[List[str]]:
    """
    Detect cycles in the prerequisite graph using NetworkX.

    Args:
        department: Department to check

    Returns:
        List of cycles (each cycle is a list of course IDs), shortest first
    """
    import networkx as nx

    course_ids = {course.id for course in department.courses}
    G = nx.DiGraph()
    G.add_nodes_from(sorted(course_ids))
    for course in department.courses:
        for pid in course.prerequisites:
            if pid in course_ids:
                G.add_edge(pid, course.id)

    cycles = [list(cycle) for cycle in nx.simple_cycles(G)]
    if cycles:
        logger.warning("Department %s has %d prerequisite cycles", department.id, len(cycles))
    return sorted(cycles, key=lambda x: (len(x), x[0]))


def build_adjacency_mat(department: Department) -> pd.DataFrame:
    """
    Build adjacency matrix as a pandas dataframe of prerequisite relationships.
    Rows are prerequisites, columns are the courses that require them.
    """
    adjacency = build_adjacency(department.courses)
    courses = sorted(adjacency.dependents_of)

    #map out courses to an index
    index_map = {c: i for i, c in enumerate(courses)}

    N = len(courses)
    mat = np.zeros((N, N), dtype=int)

    for prereq, dependents in adjacency.dependents_of.items():
        for course in dependents:
            mat[index_map[prereq], index_map[course]] = 1

    return pd.DataFrame(mat, index=courses, columns=courses)


def get_progress_summary(department: Department, completed_ids: Iterable[str]) -> Dict:
    """
    Sum credits per category and overall, split by completion.

    Args:
        department: Department whose courses are counted
        completed_ids: Completed course ids; ids outside the department are ignored

    Returns:
        Dictionary with total/completed credits and course counts, plus a
        per-category breakdown (plain Python ints)
    """
    completed = set(completed_ids)
    df = pd.DataFrame(
        [
            {
                "category": course.category,
                "credits": course.credits,
                "completed": course.id in completed,
            }
            for course in department.courses
        ],
        columns=["category", "credits", "completed"],
    )
    df["completed_credits"] = df["credits"].where(df["completed"], 0)

    by_category = {}
    for category, group in df.groupby("category", sort=False):
        by_category[str(category)] = {
            "total_credits": int(group["credits"].sum()),
            "completed_credits": int(group["completed_credits"].sum()),
            "courses": int(len(group)),
            "completed_courses": int(group["completed"].sum()),
        }
    ordered = dict(sorted(by_category.items(), key=lambda item: (_category_rank(item[0]), item[0])))

    return {
        "department": department.id,
        "total_credits": int(df["credits"].sum()),
        "completed_credits": int(df["completed_credits"].sum()),
        "total_courses": int(len(df)),
        "completed_courses": int(df["completed"].sum()),
        "by_category": ordered,
    }


def get_statistics(department: Department, roadmap: Optional[Layout] = None) -> Dict:
    """
    Get statistics about a department graph.

    Args:
        department: Department to describe
        roadmap: Precomputed layout (computed here when omitted)

    Returns:
        Dictionary of counts
    """
    if roadmap is None:
        roadmap = layout(department)
    depths = compute_depths(department.courses)
    isolated = [c for c in department.courses if is_isolated(c, department.courses)]

    return {
        "total_courses": len(department.courses),
        "total_edges": len(roadmap.edges),
        "prerequisite_edges": sum(1 for e in roadmap.edges if e.kind == PREREQUISITE),
        "corequisite_edges": sum(1 for e in roadmap.edges if e.kind == COREQUISITE),
        "layers": roadmap.layer_count,
        "max_depth": max(depths.values(), default=0),
        "isolated_courses": len(isolated),
        "total_credits": sum(c.credits for c in department.courses),
    }


__all__ = [
    'Course',
    'Department',
    'Adjacency',
    'EdgeStyle',
    'LayoutNode',
    'LayoutEdge',
    'Layout',
    'CATEGORIES',
    'CATEGORY_ORDER',
    'compute_depths',
    'build_adjacency',
    'is_isolated',
    'prerequisite_closure',
    'dependent_closure',
    'connected_set',
    'layout',
    'detect_cycles',
    'build_adjacency_mat',
    'get_progress_summary',
    'get_statistics',
]
