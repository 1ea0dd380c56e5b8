"""
Tests for the course graph model and layout engine
"""

import random

import pytest

from roadmap.roadmap_core import (
    COREQUISITE,
    ELECTIVE_EDGE_STYLE,
    GAP_X,
    GAP_Y,
    MAX_COLS,
    NODE_HEIGHT,
    NODE_WIDTH,
    PREREQUISITE,
    STANDARD_EDGE_STYLE,
    SUB_GAP_Y,
    Department,
    build_adjacency,
    build_adjacency_mat,
    compute_depths,
    connected_set,
    dependent_closure,
    detect_cycles,
    get_progress_summary,
    get_statistics,
    is_isolated,
    layout,
    prerequisite_closure,
)


class TestComputeDepths:
    """Depth resolution over prerequisite chains"""

    def test_chain_depths(self, chain_department):
        depths = compute_depths(chain_department.courses)
        assert depths == {"A": 0, "B": 1, "C": 2, "D": 0}

    def test_depth_is_one_more_than_deepest_prerequisite(self, cs_department):
        depths = compute_depths(cs_department.courses)
        assert depths["ds"] == 2
        assert depths["ml"] == 3  # stats-101 is outside the department

    def test_corequisite_only_course_shares_partner_layer(self, course_factory):
        courses = [
            course_factory("a"),
            course_factory("b", prerequisites=["a"]),
            course_factory("lab", corequisites=["b"]),
        ]
        assert compute_depths(courses)["lab"] == 1

    def test_corequisite_depth_ignores_input_order(self, course_factory):
        courses = [
            course_factory("lab", corequisites=["b"]),
            course_factory("b", prerequisites=["a"]),
            course_factory("a"),
        ]
        assert compute_depths(courses)["lab"] == 1

    def test_cycle_terminates(self, cycle_department):
        depths = compute_depths(cycle_department.courses)
        assert set(depths) == {"A", "B", "C"}
        assert all(d >= 0 for d in depths.values())

    def test_self_reference_terminates(self, course_factory):
        depths = compute_depths([course_factory("x", prerequisites=["x"])])
        assert "x" in depths


class TestAdjacency:
    """Prerequisite/dependent maps and closures"""

    def test_every_course_has_entries(self, chain_department):
        adjacency = build_adjacency(chain_department.courses)
        assert adjacency.dependents("C") == frozenset()
        assert adjacency.prerequisites("A") == frozenset()
        assert set(adjacency.dependents_of) == {"A", "B", "C", "D"}

    def test_dependents_are_inverse_of_prerequisites(self, cs_department):
        adjacency = build_adjacency(cs_department.courses)
        assert adjacency.dependents("math1") == {"math2"}  # corequisite phys1 excluded
        assert adjacency.dependents("prog2") == {"ds"}
        assert adjacency.prerequisites("ds") == {"prog2", "math2"}

    def test_dangling_references_are_dropped(self, cs_department):
        adjacency = build_adjacency(cs_department.courses)
        assert adjacency.prerequisites("ml") == {"ds"}
        assert "stats-101" not in adjacency.dependents_of

    def test_connected_set_for_chain(self, chain_department):
        adjacency = build_adjacency(chain_department.courses)
        assert connected_set(adjacency, "B") == {"A", "B", "C"}
        assert prerequisite_closure(adjacency, "C") == {"A", "B"}
        assert dependent_closure(adjacency, "A") == {"B", "C"}

    def test_closures_terminate_on_cycle(self, cycle_department):
        adjacency = build_adjacency(cycle_department.courses)
        assert prerequisite_closure(adjacency, "A") == {"A", "B", "C"}
        assert connected_set(adjacency, "B") == {"A", "B", "C"}

    def test_is_isolated(self, cs_department):
        courses = cs_department.courses
        by_id = {c.id: c for c in courses}
        assert is_isolated(by_id["lit"], courses)
        assert not is_isolated(by_id["math1"], courses)
        assert not is_isolated(by_id["phys1"], courses)
        assert not is_isolated(by_id["prog1"], courses)


class TestLayout:
    """Layered placement, ordering and edges"""

    def test_chain_positions(self, chain_department):
        roadmap = layout(chain_department)
        positions = {n.id: (n.x, n.y) for n in roadmap.nodes}
        step = NODE_HEIGHT + GAP_Y
        assert positions == {
            "A": (0, 0),
            "B": (0, step),
            "C": (0, 2 * step),
            "D": (0, 3 * step),
        }
        assert roadmap.layer_count == 4

    def test_isolated_courses_get_trailing_layer(self, cs_department):
        roadmap = layout(cs_department)
        layers = roadmap.layers()
        assert layers[-1] == ["lit"]
        assert all("lit" not in layer for layer in layers[:-1])

    def test_trailing_layer_agrees_with_is_isolated(self, cs_department, course_factory):
        courses = cs_department.courses + (course_factory("solo", category="special"),)
        dept = Department("cs", "CS", courses)
        isolated = {c.id for c in courses if is_isolated(c, courses)}
        assert set(layout(dept).layers()[-1]) == isolated == {"lit", "solo"}

    def test_layer_order_category_then_name(self, cs_department):
        layers = layout(cs_department).layers()
        assert layers[0] == ["math1", "phys1", "prog1"]
        assert layers[1] == ["math2", "prog2"]

    def test_names_use_collation_not_code_points(self, course_factory):
        dept = Department("d", "D", (
            course_factory("1", "Banana"),
            course_factory("2", "apple"),
            course_factory("3", "cherry"),
            course_factory("4", "Aardvark", category="elective"),
        ))
        assert layout(dept).layers() == [[], ["2", "1", "3", "4"]]

    def test_persian_letters_follow_alphabet(self, course_factory):
        # peh sorts between beh and teh, unlike its code point
        dept = Department("fa", "Persian", (
            course_factory("teh", "تاریخ"),
            course_factory("peh", "پایگاه داده"),
            course_factory("beh", "برنامه‌سازی"),
        ))
        assert layout(dept).layers()[-1] == ["beh", "peh", "teh"]

    def test_persian_waw_sorts_before_heh(self, course_factory):
        dept = Department("fa", "Persian", (
            course_factory("ai", "هوش مصنوعی"),
            course_factory("sport", "ورزش"),
            course_factory("ya", "یادگیری ماشین"),
        ))
        assert layout(dept).layers()[-1] == ["sport", "ai", "ya"]

    def test_unknown_category_sorts_after_special(self, course_factory):
        dept = Department("d", "D", (
            course_factory("root"),
            course_factory("x", "Aardvark", category="workshop", prerequisites=["root"]),
            course_factory("s", "Zoology", category="special", prerequisites=["root"]),
            course_factory("b", "Zebra", category="base", prerequisites=["root"]),
        ))
        assert layout(dept).layers()[1] == ["b", "s", "x"]

    def test_input_order_does_not_change_layout(self, cs_department):
        shuffled = list(cs_department.courses)
        random.Random(7).shuffle(shuffled)
        other = Department(cs_department.id, cs_department.name, tuple(shuffled))

        first = layout(cs_department)
        second = layout(other)
        assert first.layers() == second.layers()
        assert {n.id: (n.x, n.y) for n in first.nodes} == {n.id: (n.x, n.y) for n in second.nodes}
        assert set(first.edges) == set(second.edges)

    def test_layout_is_deterministic(self, cs_department):
        assert layout(cs_department) == layout(cs_department)

    def test_wide_layer_wraps_into_centered_sub_rows(self, course_factory):
        courses = [course_factory("root")] + [
            course_factory(f"c{i:02d}", prerequisites=["root"]) for i in range(MAX_COLS + 1)
        ]
        roadmap = layout(Department("wide", "Wide", tuple(courses)))
        nodes = roadmap.node_map()
        full_width = MAX_COLS * NODE_WIDTH + (MAX_COLS - 1) * GAP_X
        centered = (full_width - NODE_WIDTH) / 2

        assert nodes["root"].x == centered
        assert nodes["c00"].x == 0
        assert nodes["c08"].x == 8 * (NODE_WIDTH + GAP_X)
        assert nodes["c00"].y == NODE_HEIGHT + GAP_Y
        assert nodes["c09"].x == centered
        assert nodes["c09"].y == nodes["c00"].y + NODE_HEIGHT + SUB_GAP_Y

    def test_edges(self, cs_department):
        edges = {e.id: e for e in layout(cs_department).edges}
        assert set(edges) == {
            "e-math1-math2",
            "e-coreq-math1-phys1",
            "e-prog1-prog2",
            "e-prog2-ds",
            "e-math2-ds",
            "e-ds-ml",
        }
        assert edges["e-ds-ml"].style == ELECTIVE_EDGE_STYLE
        assert edges["e-prog2-ds"].style == STANDARD_EDGE_STYLE
        assert edges["e-coreq-math1-phys1"].kind == COREQUISITE
        assert edges["e-coreq-math1-phys1"].style.dashed
        assert edges["e-math1-math2"].kind == PREREQUISITE

    def test_repeated_prerequisite_yields_one_edge(self, course_factory):
        dept = Department("d", "D", (
            course_factory("a"),
            course_factory("b", prerequisites=["a", "a"]),
        ))
        assert [e.id for e in layout(dept).edges] == ["e-a-b"]

    def test_empty_department(self):
        roadmap = layout(Department("empty", "Empty"))
        assert roadmap.nodes == ()
        assert roadmap.edges == ()

    def test_cyclic_department_still_lays_out(self, cycle_department):
        roadmap = layout(cycle_department)
        assert {n.id for n in roadmap.nodes} == {"A", "B", "C"}


class TestAnalysis:
    """Cycle detection, adjacency matrix, progress and statistics"""

    def test_detect_cycles(self, cycle_department, chain_department):
        cycles = detect_cycles(cycle_department)
        assert len(cycles) == 1
        assert sorted(cycles[0]) == ["A", "B", "C"]
        assert detect_cycles(chain_department) == []

    def test_adjacency_matrix(self, chain_department):
        mat = build_adjacency_mat(chain_department)
        assert list(mat.index) == ["A", "B", "C", "D"]
        assert mat.loc["A", "B"] == 1
        assert mat.loc["B", "C"] == 1
        assert mat.loc["B", "A"] == 0
        assert int(mat.values.sum()) == 2

    def test_progress_summary(self, cs_department):
        progress = get_progress_summary(cs_department, {"math1", "prog1", "unknown"})
        assert progress["total_credits"] == 26
        assert progress["completed_credits"] == 8
        assert progress["completed_courses"] == 2
        assert list(progress["by_category"]) == ["base", "specialized", "elective", "special"]
        assert progress["by_category"]["base"] == {
            "total_credits": 15,
            "completed_credits": 8,
            "courses": 4,
            "completed_courses": 2,
        }

    def test_progress_summary_empty_department(self):
        progress = get_progress_summary(Department("empty", "Empty"), [])
        assert progress["total_credits"] == 0
        assert progress["by_category"] == {}

    def test_statistics(self, cs_department):
        stats = get_statistics(cs_department)
        assert stats["total_courses"] == 8
        assert stats["prerequisite_edges"] == 5
        assert stats["corequisite_edges"] == 1
        assert stats["layers"] == 5
        assert stats["max_depth"] == 3
        assert stats["isolated_courses"] == 1


@pytest.mark.parametrize("missing", ["elsewhere-101", ""])
def test_missing_references_never_raise(course_factory, missing):
    dept = Department("d", "D", (course_factory("a", prerequisites=[missing], corequisites=[missing]),))
    roadmap = layout(dept)
    assert roadmap.edges == ()
    assert [n.id for n in roadmap.nodes] == ["a"]
