"""
Account registration, login and profile management.
"""
from __future__ import annotations

import logging

from core.exceptions import InvalidCredentialsError, UserAlreadyExistsError, UserNotFoundError
from core.security import create_access_token, hash_password, verify_password
from repository import CourseRepository, UserRepository
from schemas.api import AuthResult, LoginRequest, ProfileUpdateRequest, RegisterRequest
from schemas.course import utcnow
from schemas.user import PopulatedCompletion, PopulatedEnrollment, User, UserProfile, UserPublic

logger = logging.getLogger(__name__)

PROFILE_SEARCH_HISTORY = 10


def register(request: RegisterRequest, users: UserRepository) -> AuthResult:
    email = str(request.email).lower()
    if users.exists(request.username, email):
        raise UserAlreadyExistsError()

    user = users.create(
        {
            "username": request.username,
            "email": email,
            "password_hash": hash_password(request.password),
            "phone": request.phone,
            "bio": request.bio,
            "interests": request.interests,
            "known_languages": request.known_languages,
            "completed_courses": [],
            "enrolled_courses": [],
            "search_history": [],
            "profile_picture": "",
            "created_at": utcnow(),
        }
    )
    logger.info("user_registered", extra={"user_id": user.id})
    return AuthResult(
        message="User registered successfully",
        token=create_access_token(user.id),
        user=user.to_public(),
    )


def login(request: LoginRequest, users: UserRepository) -> AuthResult:
    user = users.find_by_email(str(request.email).lower())
    # Same error for unknown email and wrong password
    if user is None or not verify_password(request.password, user.password_hash):
        raise InvalidCredentialsError()
    logger.info("user_logged_in", extra={"user_id": user.id})
    return AuthResult(message="Login successful", token=create_access_token(user.id), user=user.to_public())


def load_user(user_id: str, users: UserRepository) -> User:
    user = users.get(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


def get_profile(user_id: str, users: UserRepository, courses: CourseRepository) -> UserProfile:
    """Return the user's profile with enrollment and completion records populated."""
    user = load_user(user_id, users)
    by_id = {course.id: course for course in courses.get_many(user.excluded_course_ids())}

    enrolled = [
        PopulatedEnrollment(**record.model_dump(), course=by_id.get(record.course_id))
        for record in user.enrolled_courses
    ]
    completed = [
        PopulatedCompletion(**record.model_dump(), course=by_id.get(record.course_id))
        for record in user.completed_courses
    ]
    return UserProfile(
        **user.model_dump(
            exclude={"password_hash", "search_history", "enrolled_courses", "completed_courses"}
        ),
        enrolled_courses=enrolled,
        completed_courses=completed,
        search_history=user.search_history[-PROFILE_SEARCH_HISTORY:],
    )


def update_profile(user_id: str, request: ProfileUpdateRequest, users: UserRepository) -> UserPublic:
    changes = {"interests": request.interests, "known_languages": request.known_languages}
    if request.phone is not None:
        changes["phone"] = request.phone
    if request.bio is not None:
        changes["bio"] = request.bio

    user = users.update_profile(user_id, changes)
    if user is None:
        raise UserNotFoundError(user_id)
    logger.info("profile_updated", extra={"user_id": user_id})
    return user.to_public()
