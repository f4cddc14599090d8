"""
Sample catalog loading for development and demos.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from pydantic import TypeAdapter

from repository import CourseRepository
from schemas.api import SeedResult
from schemas.course import CourseCreate

logger = logging.getLogger(__name__)

_COURSE_LIST = TypeAdapter(List[CourseCreate])


def load_sample_courses(path: str | Path) -> List[CourseCreate]:
    """Read and validate the sample catalog JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return _COURSE_LIST.validate_python(raw)


def seed_courses(courses: CourseRepository, sample_path: str | Path, replace: bool = True) -> SeedResult:
    """Load the sample catalog.

    With `replace` the collection is cleared first; otherwise nothing is
    inserted when courses already exist.
    """
    if not replace:
        existing = courses.count()
        if existing > 0:
            return SeedResult(message="Sample data already exists", courses=existing)

    sample = load_sample_courses(sample_path)
    if replace:
        removed = courses.delete_all()
        logger.info("courses_cleared", extra={"total_courses": removed})
    inserted = courses.insert_many(sample)
    logger.info("sample_courses_inserted", extra={"inserted": inserted})
    return SeedResult(message="Sample data added successfully", courses=inserted)
