"""
User schema definitions.

Enrollment and completion records are embedded in the user document and
reference courses by id. `UserProfile` is the populated view returned to the
owner, with each record carrying its resolved course.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .course import Course, utcnow


class EnrollmentRecord(BaseModel):
    course_id: str
    enrolled_at: datetime = Field(default_factory=utcnow)
    progress: float = Field(default=0, ge=0, le=100, description="Progress percentage")


class CompletionRecord(BaseModel):
    course_id: str
    completed_at: datetime = Field(default_factory=utcnow)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    certificate_id: Optional[str] = None


class SearchEntry(BaseModel):
    query: str
    timestamp: datetime = Field(default_factory=utcnow)


class UserPublic(BaseModel):
    id: str
    username: str
    email: str
    phone: str = ""
    bio: str = ""
    interests: List[str] = Field(default_factory=list)
    known_languages: List[str] = Field(default_factory=list)
    completed_courses: List[CompletionRecord] = Field(default_factory=list)
    enrolled_courses: List[EnrollmentRecord] = Field(default_factory=list)
    profile_picture: str = ""
    created_at: datetime = Field(default_factory=utcnow)


class User(UserPublic):
    password_hash: str
    search_history: List[SearchEntry] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "User":
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)

    def to_public(self) -> UserPublic:
        return UserPublic.model_validate(self.model_dump(exclude={"password_hash", "search_history"}))

    def excluded_course_ids(self) -> List[str]:
        """Ids of every course the user is enrolled in or has completed."""
        ids = [record.course_id for record in self.completed_courses]
        ids.extend(record.course_id for record in self.enrolled_courses)
        return ids

    def is_enrolled(self, course_id: str) -> bool:
        return any(record.course_id == course_id for record in self.enrolled_courses)

    def has_completed(self, course_id: str) -> bool:
        return any(record.course_id == course_id for record in self.completed_courses)


class PopulatedEnrollment(EnrollmentRecord):
    course: Optional[Course] = None


class PopulatedCompletion(CompletionRecord):
    course: Optional[Course] = None


class UserProfile(BaseModel):
    id: str
    username: str
    email: str
    phone: str = ""
    bio: str = ""
    interests: List[str] = Field(default_factory=list)
    known_languages: List[str] = Field(default_factory=list)
    completed_courses: List[PopulatedCompletion] = Field(default_factory=list)
    enrolled_courses: List[PopulatedEnrollment] = Field(default_factory=list)
    search_history: List[SearchEntry] = Field(default_factory=list)
    profile_picture: str = ""
    created_at: datetime
