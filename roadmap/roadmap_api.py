#!/usr/bin/env python3
"""
Department Roadmap API
"""

import logging
import os
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .completion_store import CompletionStore, JsonFileStorage
from .roadmap_core import (
    CATEGORIES,
    Adjacency,
    Department,
    Layout,
    build_adjacency,
    detect_cycles,
    get_progress_summary,
    get_statistics,
    layout,
)
from .roadmap_data import DepartmentInfo, load_departments
from .roadmap_state import FilterState, derive_state

logger = logging.getLogger(__name__)

DATA_DIR = os.getenv("ROADMAP_DATA_DIR", "data/roadmaps")
STORAGE_PATH = os.getenv("ROADMAP_STORAGE_PATH", ".roadmap-progress.json")

# ============================================================================
# DATA MODELS
# ============================================================================

class DepartmentSummary(BaseModel):
    id: str
    label: str
    pdf: Optional[str] = None
    courses: int

class EdgeStyleModel(BaseModel):
    stroke: str
    width: float
    opacity: float
    dashed: bool

class GraphNode(BaseModel):
    id: str
    label: str
    category: str
    credits: int
    layer: int
    x: float
    y: float

class GraphEdge(BaseModel):
    id: str
    source: str
    target: str
    type: str
    style: EdgeStyleModel

class GraphData(BaseModel):
    department: str
    layers: int
    nodes: List[GraphNode]
    edges: List[GraphEdge]

class FilterRequest(BaseModel):
    selected_id: Optional[str] = None
    active_categories: List[str] = Field(default_factory=lambda: list(CATEGORIES))
    availability_mode: bool = False

class NodeStateModel(BaseModel):
    highlighted: bool
    dimmed: bool
    completed: bool
    available: bool

class EdgeStateModel(BaseModel):
    opacity: str
    emphasized: bool

class DerivedStateResponse(BaseModel):
    department: str
    selected_id: Optional[str]
    connected: List[str]
    nodes: Dict[str, NodeStateModel]
    edges: Dict[str, EdgeStateModel]

class CompletedCourses(BaseModel):
    department: str
    completed: List[str]
    completed_credits: int

class CourseRef(BaseModel):
    id: str
    name: str

class CourseDetail(BaseModel):
    id: str
    name: str
    category: str
    credits: int
    layer: int
    completed: bool
    prerequisites: List[CourseRef]
    dependents: List[CourseRef]
    corequisites: List[CourseRef]

# ============================================================================
# DATA STORAGE CLASS
# ============================================================================

class RoadmapDataStore:
    """Departments plus their layout and adjacency, computed once per department"""

    def __init__(self, completion_store: Optional[CompletionStore] = None):
        self.departments: Dict[str, Department] = {}
        self.infos: Dict[str, DepartmentInfo] = {}
        self.layouts: Dict[str, Layout] = {}
        self.adjacency: Dict[str, Adjacency] = {}
        self.completion = completion_store or CompletionStore()

    def load_data(self, data_dir: str):
        """Load every roadmap file in data_dir"""
        departments, infos = load_departments(data_dir)
        for info in infos:
            self.add_department(departments[info.id], info)
        logger.info("Data loaded: %d departments from %s", len(departments), data_dir)

    def add_department(self, department: Department, info: Optional[DepartmentInfo] = None):
        self.departments[department.id] = department
        self.infos[department.id] = info or DepartmentInfo(id=department.id, label=department.name)
        self.layouts.pop(department.id, None)
        self.adjacency.pop(department.id, None)

        cycles = detect_cycles(department)
        if cycles:
            logger.warning("Prerequisite cycles in %s: %s", department.id,
                           ["->".join(c) for c in cycles[:5]])

    def get_department(self, department_id: str) -> Department:
        if not self.departments:
            raise HTTPException(status_code=503, detail="Data not loaded")
        if department_id not in self.departments:
            raise HTTPException(status_code=404, detail=f"Department {department_id} not found")
        return self.departments[department_id]

    def get_layout(self, department_id: str) -> Layout:
        department = self.get_department(department_id)
        if department_id not in self.layouts:
            self.layouts[department_id] = layout(department)
        return self.layouts[department_id]

    def get_adjacency(self, department_id: str) -> Adjacency:
        department = self.get_department(department_id)
        if department_id not in self.adjacency:
            self.adjacency[department_id] = build_adjacency(department.courses)
        return self.adjacency[department_id]

    def completed_response(self, department_id: str, completed) -> CompletedCourses:
        progress = get_progress_summary(self.get_department(department_id), completed)
        return CompletedCourses(
            department=department_id,
            completed=sorted(completed),
            completed_credits=progress["completed_credits"],
        )

# ============================================================================
# FASTAPI APPLICATION
# ============================================================================

app = FastAPI(
    title="Department Roadmap API",
    description="Layered course roadmaps with prerequisite highlighting and progress tracking",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

data_store = RoadmapDataStore(CompletionStore(JsonFileStorage(STORAGE_PATH)))

# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Load roadmap files on startup"""
    try:
        data_store.load_data(DATA_DIR)
    except (FileNotFoundError, ValueError) as e:
        logger.warning("Could not load data on startup: %s", e)

@app.get("/")
async def root():
    """API health check"""
    return {
        "status": "online",
        "message": "Department Roadmap API",
        "data_loaded": bool(data_store.departments)
    }

@app.get("/departments", response_model=List[DepartmentSummary])
async def get_departments():
    """List available departments"""
    if not data_store.departments:
        raise HTTPException(status_code=503, detail="Data not loaded")

    return [
        DepartmentSummary(
            id=info.id,
            label=info.label,
            pdf=info.pdf,
            courses=len(data_store.departments[info.id].courses),
        )
        for info in data_store.infos.values()
    ]

@app.get("/departments/{department_id}/layout", response_model=GraphData)
async def get_layout(department_id: str):
    """Get node positions and edges for rendering"""
    roadmap = data_store.get_layout(department_id)

    nodes = [
        GraphNode(
            id=node.id,
            label=node.name,
            category=node.category,
            credits=node.credits,
            layer=node.layer,
            x=node.x,
            y=node.y,
        )
        for node in roadmap.nodes
    ]
    edges = [
        GraphEdge(
            id=edge.id,
            source=edge.source,
            target=edge.target,
            type=edge.kind,
            style=EdgeStyleModel(
                stroke=edge.style.stroke,
                width=edge.style.width,
                opacity=edge.style.opacity,
                dashed=edge.style.dashed,
            ),
        )
        for edge in roadmap.edges
    ]

    return GraphData(department=department_id, layers=roadmap.layer_count, nodes=nodes, edges=edges)

@app.post("/departments/{department_id}/state", response_model=DerivedStateResponse)
async def get_derived_state(department_id: str, request: FilterRequest):
    """Compute highlight/dim state for the given filters"""
    roadmap = data_store.get_layout(department_id)
    adjacency = data_store.get_adjacency(department_id)

    try:
        filters = FilterState(
            selected_id=request.selected_id,
            active_categories=frozenset(request.active_categories),
            availability_mode=request.availability_mode,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    completed = data_store.completion.completed(department_id)
    state = derive_state(roadmap, adjacency, filters, completed)

    return DerivedStateResponse(
        department=department_id,
        selected_id=state.selected_id,
        connected=sorted(state.connected),
        nodes={
            cid: NodeStateModel(
                highlighted=s.highlighted,
                dimmed=s.dimmed,
                completed=s.completed,
                available=s.available,
            )
            for cid, s in state.nodes.items()
        },
        edges={
            eid: EdgeStateModel(opacity=s.opacity_class, emphasized=s.emphasized)
            for eid, s in state.edges.items()
        },
    )

@app.get("/departments/{department_id}/courses/{course_id}", response_model=CourseDetail)
async def get_course_relations(department_id: str, course_id: str):
    """Get a course with its direct prerequisites, dependents and corequisites"""
    department = data_store.get_department(department_id)
    course_map = department.course_map()
    if course_id not in course_map:
        raise HTTPException(status_code=404, detail=f"Course {course_id} not found in {department_id}")

    course = course_map[course_id]
    adjacency = data_store.get_adjacency(department_id)
    node = data_store.get_layout(department_id).node_map()[course_id]

    def refs(ids):
        return [CourseRef(id=cid, name=course_map[cid].name) for cid in ids if cid in course_map]

    return CourseDetail(
        id=course.id,
        name=course.name,
        category=course.category,
        credits=course.credits,
        layer=node.layer,
        completed=course_id in data_store.completion.completed(department_id),
        prerequisites=refs(dict.fromkeys(course.prerequisites)),
        dependents=refs(sorted(adjacency.dependents(course_id))),
        corequisites=refs(dict.fromkeys(course.corequisites)),
    )

@app.get("/departments/{department_id}/completed", response_model=CompletedCourses)
async def get_completed(department_id: str):
    """Get completed courses, reloaded from storage"""
    data_store.get_department(department_id)
    completed = data_store.completion.load(department_id)
    return data_store.completed_response(department_id, completed)

@app.post("/departments/{department_id}/completed/{course_id}", response_model=CompletedCourses)
async def toggle_completed(department_id: str, course_id: str):
    """Mark or unmark a course as completed"""
    department = data_store.get_department(department_id)
    if course_id not in department.course_map():
        raise HTTPException(status_code=404, detail=f"Course {course_id} not found in {department_id}")

    completed = data_store.completion.toggle(department_id, course_id)
    return data_store.completed_response(department_id, completed)

@app.delete("/departments/{department_id}/completed", response_model=CompletedCourses)
async def clear_completed(department_id: str):
    """Clear every completed course of a department"""
    data_store.get_department(department_id)
    completed = data_store.completion.clear_all(department_id)
    return data_store.completed_response(department_id, completed)

@app.get("/departments/{department_id}/progress")
async def get_progress(department_id: str):
    """Credit totals per category, completed and overall"""
    department = data_store.get_department(department_id)
    completed = data_store.completion.completed(department_id)
    return get_progress_summary(department, completed)

@app.get("/departments/{department_id}/statistics")
async def get_department_statistics(department_id: str):
    """Course, edge and layer counts"""
    department = data_store.get_department(department_id)
    return get_statistics(department, data_store.get_layout(department_id))

@app.get("/departments/{department_id}/cycles")
async def get_cycles(department_id: str):
    """Prerequisite cycles in the department data"""
    department = data_store.get_department(department_id)
    cycles = detect_cycles(department)
    return {"department": department_id, "count": len(cycles), "cycles": cycles}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
