"""
Pytest configuration and fixtures for roadmap tests
"""

import matplotlib
import pytest

from roadmap.completion_store import CompletionStore, MemoryStorage
from roadmap.roadmap_core import Course, Department

matplotlib.use("Agg")


def make_course(course_id, name=None, category="base", credits=3, prerequisites=(), corequisites=()):
    return Course(
        id=course_id,
        name=name or course_id,
        credits=credits,
        category=category,
        prerequisites=tuple(prerequisites),
        corequisites=tuple(corequisites),
    )


@pytest.fixture
def chain_department():
    """A -> B -> C prerequisite chain plus an unrelated course D"""
    return Department(
        id="chain",
        name="Chain",
        courses=(
            make_course("A", "Alpha"),
            make_course("B", "Beta", prerequisites=["A"]),
            make_course("C", "Gamma", category="specialized", prerequisites=["B"]),
            make_course("D", "Delta", category="elective"),
        ),
    )


@pytest.fixture
def cycle_department():
    """A requires B, B requires C, C requires A"""
    return Department(
        id="cycle",
        name="Cycle",
        courses=(
            make_course("A", prerequisites=["B"]),
            make_course("B", prerequisites=["C"]),
            make_course("C", prerequisites=["A"]),
        ),
    )


@pytest.fixture
def cs_department():
    """Small department with corequisites, electives and a dangling reference"""
    return Department(
        id="cs",
        name="Computer Science",
        courses=(
            make_course("math1", "Calculus I", credits=4),
            make_course("math2", "Calculus II", credits=4, prerequisites=["math1"]),
            make_course("phys1", "Physics I", corequisites=["math1"]),
            make_course("prog1", "Programming I", credits=4),
            make_course("prog2", "Programming II", category="specialized", prerequisites=["prog1"]),
            make_course("ds", "Data Structures", category="specialized", prerequisites=["prog2", "math2"]),
            make_course("ml", "Machine Learning", category="elective", prerequisites=["ds", "stats-101"]),
            make_course("lit", "Literature", category="special", credits=2),
        ),
    )


@pytest.fixture
def completion_store():
    return CompletionStore(MemoryStorage())


@pytest.fixture
def course_factory():
    return make_course
