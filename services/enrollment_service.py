"""
Enrollment, completion and certificates.

A completed course leaves the user's enrollment list and gains a certificate
id. Ratings given on completion are folded into the course's running average.
"""
from __future__ import annotations

import logging
from typing import List, Optional
from uuid import uuid4

from core.exceptions import (
    AlreadyCompletedError,
    AlreadyEnrolledError,
    CertificateNotFoundError,
    NotEnrolledError,
)
from repository import CourseRepository, UserRepository
from schemas.api import Certificate
from schemas.course import Course
from schemas.user import CompletionRecord, EnrollmentRecord, User
from services.auth_service import load_user
from services.catalog_service import get_course

logger = logging.getLogger(__name__)


def _new_certificate_id() -> str:
    return f"CERT-{uuid4().hex[:12].upper()}"


def _certificate(user: User, record: CompletionRecord, course: Optional[Course]) -> Certificate:
    return Certificate(
        certificate_id=record.certificate_id or "",
        username=user.username,
        course_id=record.course_id,
        course_title=course.title if course else None,
        instructor=course.instructor if course else None,
        completed_at=record.completed_at,
        rating=record.rating,
    )


def enroll(user_id: str, course_id: str, users: UserRepository, courses: CourseRepository) -> None:
    get_course(course_id, courses)
    user = load_user(user_id, users)
    if user.has_completed(course_id):
        raise AlreadyCompletedError(course_id)
    if user.is_enrolled(course_id):
        raise AlreadyEnrolledError(course_id)

    # The repository re-checks enrollment atomically in case of concurrent requests
    if not users.add_enrollment(user_id, EnrollmentRecord(course_id=course_id)):
        raise AlreadyEnrolledError(course_id)
    courses.increment_enrollment(course_id)
    logger.info("course_enrolled", extra={"user_id": user_id, "course_id": course_id})


def complete(
    user_id: str,
    course_id: str,
    rating: Optional[int],
    users: UserRepository,
    courses: CourseRepository,
) -> Certificate:
    user = load_user(user_id, users)
    if not user.is_enrolled(course_id):
        raise NotEnrolledError(course_id)

    record = CompletionRecord(course_id=course_id, rating=rating, certificate_id=_new_certificate_id())
    if not users.complete_enrollment(user_id, record):
        raise NotEnrolledError(course_id)
    if rating is not None:
        courses.record_rating(course_id, rating)

    logger.info("course_completed", extra={
        "user_id": user_id,
        "course_id": course_id,
        "certificate_id": record.certificate_id,
    })
    return _certificate(user, record, courses.get(course_id))


def list_certificates(user_id: str, users: UserRepository, courses: CourseRepository) -> List[Certificate]:
    user = load_user(user_id, users)
    records = [record for record in user.completed_courses if record.certificate_id]
    by_id = {course.id: course for course in courses.get_many(r.course_id for r in records)}
    return [_certificate(user, record, by_id.get(record.course_id)) for record in records]


def get_certificate(
    user_id: str, certificate_id: str, users: UserRepository, courses: CourseRepository
) -> Certificate:
    user = load_user(user_id, users)
    for record in user.completed_courses:
        if record.certificate_id == certificate_id:
            return _certificate(user, record, courses.get(record.course_id))
    raise CertificateNotFoundError(certificate_id)
