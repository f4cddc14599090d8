"""
API contract schemas for the REST endpoints.

Notes:
- ApiResponse is a generic wrapper model so every endpoint returns the same envelope while `data` varies.
- Request models normalise free-text lists (interests, languages) so the services can compare them directly.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field, field_validator

from .course import Course
from .user import UserPublic


def _clean_terms(values: List[str]) -> List[str]:
    """Strip blanks and deduplicate case-insensitively while preserving order."""
    seen = set()
    out = []
    for value in values:
        cleaned = value.strip()
        if not cleaned or cleaned.lower() in seen:
            continue
        seen.add(cleaned.lower())
        out.append(cleaned)
    return out


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    phone: str = ""
    bio: str = Field(default="", max_length=1000)
    interests: List[str] = Field(default_factory=list, max_length=50)
    known_languages: List[str] = Field(default_factory=list, max_length=50)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Username cannot be empty")
        return cleaned

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Password cannot be blank")
        return v

    @field_validator("interests", "known_languages")
    @classmethod
    def normalise_terms(cls, v: List[str]) -> List[str]:
        return _clean_terms(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdateRequest(BaseModel):
    interests: List[str] = Field(default_factory=list, max_length=50)
    known_languages: List[str] = Field(default_factory=list, max_length=50)
    phone: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("interests", "known_languages")
    @classmethod
    def normalise_terms(cls, v: List[str]) -> List[str]:
        return _clean_terms(v)


class CompleteCourseRequest(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)


class AuthResult(BaseModel):
    message: str
    token: str
    user: UserPublic


class CourseListResult(BaseModel):
    courses: List[Course]
    total_pages: int
    current_page: int
    total_courses: int


class RecommendationReason(BaseModel):
    interests: List[str] = Field(default_factory=list)
    completed_courses: int = 0
    stage_counts: Dict[str, int] = Field(default_factory=dict, description="Courses contributed by each stage")


class RecommendationResult(BaseModel):
    recommendations: List[Course] = Field(default_factory=list)
    reason: RecommendationReason
    total_recommendations: int


class Certificate(BaseModel):
    certificate_id: str
    username: str
    course_id: str
    course_title: Optional[str] = None
    instructor: Optional[str] = None
    completed_at: datetime
    rating: Optional[int] = None


class SeedResult(BaseModel):
    message: str
    courses: int


class MessageResult(BaseModel):
    message: str


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Generic response wrapper to stabilize external API while allowing inner schema evolution.

    Always return this envelope so clients can rely on `request_id` and `status`, irrespective of changes in `data`.
    """
    request_id: str
    status: str
    data: T
