"""
Course schema definitions.

Design choices:
- `Course.from_document` is the single place where a Mongo document (`_id`, ObjectId) becomes an API model.
- `CourseCreate` mirrors Course without the id so seed data and inserts share validation.
- Unknown document fields are ignored to keep older documents readable.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

CourseLevel = Literal["Beginner", "Intermediate", "Advanced"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CourseModule(BaseModel):
    title: str
    description: Optional[str] = None
    video_url: Optional[str] = None
    duration: Optional[float] = Field(default=None, ge=0, description="Duration in minutes")


class CourseCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    instructor: str = Field(min_length=1)
    category: str = Field(min_length=1)
    subcategory: Optional[str] = None
    level: CourseLevel
    duration: float = Field(ge=0, description="Duration in hours")
    price: float = Field(ge=0)
    rating: float = Field(default=0, ge=0, le=5)
    total_ratings: int = Field(default=0, ge=0)
    enrolled_students: int = Field(default=0, ge=0)
    languages: List[str] = Field(default_factory=list, description="Programming languages covered by the course")
    prerequisites: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    thumbnail: Optional[str] = None
    video_url: Optional[str] = None
    modules: List[CourseModule] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(extra="ignore")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump()


class Course(CourseCreate):
    id: str

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Course":
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)
