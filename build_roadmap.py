#!/usr/bin/env python3

import argparse
import logging

import pandas as pd

from roadmap.roadmap_core import (
    CATEGORIES,
    build_adjacency,
    build_adjacency_mat,
    detect_cycles,
    get_progress_summary,
    get_statistics,
    layout,
)
from roadmap.roadmap_data import load_department
from roadmap.roadmap_state import FilterState, derive_state
from roadmap.roadmap_viz import layer_summary


def build_roadmap_table(roadmap, state) -> pd.DataFrame:
    """One row per course: position, layer and derived state"""
    rows = []
    for node in roadmap.nodes:
        node_state = state.nodes[node.id]
        rows.append({
            "Course ID": node.id,
            "Course Name": node.name,
            "Category": node.category,
            "Credits": node.credits,
            "Layer": node.layer,
            "X": node.x,
            "Y": node.y,
            "Completed": node_state.completed,
            "Available": node_state.available,
            "Highlighted": node_state.highlighted,
            "Dimmed": node_state.dimmed,
        })
    return pd.DataFrame(rows, columns=[
        "Course ID", "Course Name", "Category", "Credits", "Layer", "X", "Y",
        "Completed", "Available", "Highlighted", "Dimmed",
    ])


def main(argv=None):
    ap = argparse.ArgumentParser(description="Lay out a department roadmap and export it")
    ap.add_argument("--department", required=True, help="Path to a roadmap YAML or CSV file")
    ap.add_argument("--out", required=True, help="Output path for the layout table (CSV)")
    ap.add_argument("--completed", nargs="*", default=[], help="Completed course ids")
    ap.add_argument("--select", help="Course id to highlight with its prerequisite chain")
    ap.add_argument("--categories", nargs="+", choices=CATEGORIES, default=list(CATEGORIES),
                    help="Categories to show")
    ap.add_argument("--available", action="store_true", help="Dim courses that cannot be taken yet")
    ap.add_argument("--plot", help="Save a preview image to this path")
    ap.add_argument("--matrix", help="Write the prerequisite adjacency matrix to this CSV path")
    ap.add_argument("--verbose", action="store_true", help="Print debug logging")

    args = ap.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    department, _ = load_department(args.department)
    print(f"Loaded {department.id}: {len(department.courses)} courses")

    roadmap = layout(department)
    adjacency = build_adjacency(department.courses)
    filters = FilterState(
        selected_id=args.select,
        active_categories=frozenset(args.categories),
        availability_mode=args.available,
    )
    state = derive_state(roadmap, adjacency, filters, args.completed)

    table = build_roadmap_table(roadmap, state)
    table.to_csv(args.out, index=False)
    print(f"Roadmap layout written: {args.out} ({len(table)} rows)")

    if args.matrix:
        build_adjacency_mat(department).to_csv(args.matrix)
        print(f"Adjacency matrix written: {args.matrix}")

    cycles = detect_cycles(department)
    if cycles:
        print(f"Warning: {len(cycles)} prerequisite cycles found:")
        for cycle in cycles[:5]:
            print(f"  {' -> '.join(cycle)}")

    stats = get_statistics(department, roadmap)
    print(f"\nRoadmap Analytics:")
    print(f"Layers: {stats['layers']} (max depth {stats['max_depth']})")
    print(f"Edges: {stats['prerequisite_edges']} prerequisite, {stats['corequisite_edges']} corequisite")
    print(f"Isolated courses: {stats['isolated_courses']}")
    for layer, count in sorted(layer_summary(roadmap).items()):
        print(f"  Layer {layer}: {count} courses")

    progress = get_progress_summary(department, args.completed)
    print(f"Credits completed: {progress['completed_credits']} / {progress['total_credits']}")
    for category, data in progress["by_category"].items():
        print(f"  {category}: {data['completed_credits']} / {data['total_credits']}")

    if args.plot:
        from roadmap.roadmap_viz import visualize_roadmap

        visualize_roadmap(roadmap, state, save_path=args.plot, show=False)
        print(f"Preview saved to: {args.plot}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
