#!/usr/bin/env python3
"""
Read department roadmap files (YAML or CSV) into Department records.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd
import yaml

from .roadmap_core import CATEGORIES, Course, Department

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".yaml", ".yml", ".csv")
REQUIRED_COURSE_KEYS = ("id", "name", "credits", "category")


@dataclass(frozen=True)
class DepartmentInfo:
    id: str
    label: str
    pdf: Optional[str] = None


def _split_ids(value) -> Tuple[str, ...]:
    """Normalizes a prerequisite cell ("a;b", ["a", "b"], NaN) to a tuple of ids"""
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v).strip() for v in value if str(v).strip())
    if isinstance(value, float) and pd.isna(value):
        return ()
    return tuple(part.strip() for part in str(value).split(";") if part.strip())


def _make_course(raw: dict, source: Path) -> Course:
    missing = [key for key in REQUIRED_COURSE_KEYS if key not in raw or raw[key] is None]
    if missing:
        raise ValueError(f"{source}: course {raw.get('id', '?')} is missing {', '.join(missing)}")

    category = str(raw["category"]).strip()
    if category not in CATEGORIES:
        raise ValueError(f"{source}: course {raw['id']} has unknown category {category!r}")

    return Course(
        id=str(raw["id"]).strip(),
        name=str(raw["name"]).strip(),
        credits=int(raw["credits"]),
        category=category,
        prerequisites=_split_ids(raw.get("prerequisites")),
        corequisites=_split_ids(raw.get("corequisites")),
    )


def read_roadmap_yaml(path: Path) -> Tuple[Department, DepartmentInfo]:
    """Reads a YAML roadmap with id, name, label, optional pdf and a course list"""
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict) or "id" not in raw:
        raise ValueError(f"{path}: roadmap must be a mapping with an 'id'")

    dept_id = str(raw["id"])
    courses = tuple(_make_course(c, path) for c in raw.get("courses") or [])
    department = Department(id=dept_id, name=str(raw.get("name", dept_id)), courses=courses)
    info = DepartmentInfo(id=dept_id, label=str(raw.get("label", department.name)), pdf=raw.get("pdf"))
    return department, info


def read_roadmap_csv(path: Path) -> Tuple[Department, DepartmentInfo]:
    """Reads a CSV course table; the department id is the file stem"""
    df = pd.read_csv(path, dtype={"id": str, "prerequisites": str, "corequisites": str}, encoding="utf-8")

    for col in REQUIRED_COURSE_KEYS:
        if col not in df.columns:
            raise ValueError(f"{path}: missing column {col}")

    courses = tuple(_make_course(row, path) for row in df.to_dict("records"))
    dept_id = path.stem
    department = Department(id=dept_id, name=dept_id, courses=courses)
    return department, DepartmentInfo(id=dept_id, label=dept_id)


def load_department(path: Union[str, Path]) -> Tuple[Department, DepartmentInfo]:
    """
    Load one department roadmap file.

    Args:
        path: Path to a .yaml/.yml or .csv roadmap

    Returns:
        tuple: (Department, DepartmentInfo)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the format is unsupported, a course is incomplete or
            a course category is not one of CATEGORIES
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Roadmap file not found: {path}")

    ext = path.suffix.lower()
    if ext in (".yaml", ".yml"):
        department, info = read_roadmap_yaml(path)
    elif ext == ".csv":
        department, info = read_roadmap_csv(path)
    else:
        raise ValueError(f"Unsupported roadmap format: {ext}")

    logger.info("Loaded %s: %d courses", department.id, len(department.courses))
    return department, info


def load_departments(directory: Union[str, Path]) -> Tuple[Dict[str, Department], List[DepartmentInfo]]:
    """
    Load every roadmap file in a directory, ordered by file name.

    Raises:
        FileNotFoundError: If the directory doesn't exist
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Roadmap directory not found: {directory}")

    departments: Dict[str, Department] = {}
    infos: List[DepartmentInfo] = []
    for path in sorted(directory.iterdir()):
        if path.suffix.lower() not in SUPPORTED_SUFFIXES:
            continue
        department, info = load_department(path)
        if department.id in departments:
            logger.warning("Duplicate department id %s in %s, skipping", department.id, path)
            continue
        departments[department.id] = department
        infos.append(info)

    return departments, infos
