"""
REST routes for the course catalog.

Design choices:
- The router does not hardcode a prefix; main.py mounts it using settings.api_prefix.
- Responses are wrapped in the generic ApiResponse to keep a stable envelope while inner data evolves.
- Domain errors from the services become 4xx responses; anything unexpected is logged and becomes a 500.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.v1.dependencies import (
    get_app_settings,
    get_course_repository,
    get_current_user_id,
    get_optional_user_id,
    get_search_log_repository,
    get_user_repository,
)
from core.config import Settings
from core.exceptions import CourseCatalogError
from core.logging_config import set_request_id
from repository import CourseRepository, SearchLogRepository, UserRepository
from schemas.api import (
    ApiResponse,
    AuthResult,
    Certificate,
    CompleteCourseRequest,
    CourseListResult,
    LoginRequest,
    MessageResult,
    ProfileUpdateRequest,
    RecommendationResult,
    RegisterRequest,
    SeedResult,
)
from schemas.course import Course
from schemas.user import UserProfile, UserPublic
from services import auth_service, catalog_service, enrollment_service, recommendation_service, seed_service

router = APIRouter(tags=["courses"])  # mounted under /api by main.py
logger = logging.getLogger("api")


def _new_request_id() -> str:
    req_id = str(uuid4())
    set_request_id(req_id)
    return req_id


def _client_error(exc: CourseCatalogError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))


def _server_error(event: str, exc: Exception, detail: str, **fields: Any) -> HTTPException:
    logger.error(event, extra={"error": str(exc), "error_type": type(exc).__name__, **fields})
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get("/test", response_model=ApiResponse[Dict[str, str]])
def health_check():
    """Liveness check used by the front end to confirm the API is reachable."""
    req_id = _new_request_id()
    data = {
        "message": "Backend server is running!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": "OK",
    }
    return ApiResponse[Dict[str, str]](request_id=req_id, status="ok", data=data)


# Accounts
@router.post("/register", response_model=ApiResponse[AuthResult], status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, users: UserRepository = Depends(get_user_repository)):
    req_id = _new_request_id()
    try:
        result = auth_service.register(request, users)
        logger.info("register_completed", extra={"user_id": result.user.id})
        return ApiResponse[AuthResult](request_id=req_id, status="ok", data=result)
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error("register_failed", e, "Registration failed")


@router.post("/login", response_model=ApiResponse[AuthResult])
def login(request: LoginRequest, users: UserRepository = Depends(get_user_repository)):
    req_id = _new_request_id()
    try:
        result = auth_service.login(request, users)
        return ApiResponse[AuthResult](request_id=req_id, status="ok", data=result)
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error("login_failed", e, "Login failed")


@router.get("/profile", response_model=ApiResponse[UserProfile])
def get_profile(
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
    courses: CourseRepository = Depends(get_course_repository),
):
    req_id = _new_request_id()
    try:
        profile = auth_service.get_profile(user_id, users, courses)
        return ApiResponse[UserProfile](request_id=req_id, status="ok", data=profile)
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error("get_profile_failed", e, "Failed to load profile", user_id=user_id)


@router.put("/profile", response_model=ApiResponse[UserPublic])
def update_profile(
    request: ProfileUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
):
    req_id = _new_request_id()
    try:
        user = auth_service.update_profile(user_id, request, users)
        return ApiResponse[UserPublic](request_id=req_id, status="ok", data=user)
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error("update_profile_failed", e, "Failed to update profile", user_id=user_id)


# Catalog
@router.get("/courses", response_model=ApiResponse[CourseListResult])
def list_courses(
    category: Optional[str] = Query(None, description="Exact category, or 'all'"),
    level: Optional[str] = Query(None, description="Beginner, Intermediate, Advanced, or 'all'"),
    search: Optional[str] = Query(None, description="Matches title, description, instructor and tags"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    user_id: Optional[str] = Depends(get_optional_user_id),
    courses: CourseRepository = Depends(get_course_repository),
    users: UserRepository = Depends(get_user_repository),
    search_logs: SearchLogRepository = Depends(get_search_log_repository),
    settings: Settings = Depends(get_app_settings),
):
    req_id = _new_request_id()
    limit = limit or settings.default_page_size
    try:
        logger.info("course_list_request", extra={"query": search, "page": page, "limit": limit})
        result = catalog_service.list_courses(
            courses, category=category, level=level, search=search, page=page, limit=limit
        )
        if search and search.strip() and user_id:
            catalog_service.record_search(
                user_id, search.strip(), result.total_courses, users, search_logs, settings
            )
        return ApiResponse[CourseListResult](request_id=req_id, status="ok", data=result)
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error("course_list_failed", e, "Failed to list courses", query=search)


@router.get("/courses/{course_id}", response_model=ApiResponse[Course])
def get_course(course_id: str, courses: CourseRepository = Depends(get_course_repository)):
    req_id = _new_request_id()
    try:
        course = catalog_service.get_course(course_id, courses)
        return ApiResponse[Course](request_id=req_id, status="ok", data=course)
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error("get_course_failed", e, "Failed to retrieve course", course_id=course_id)


@router.post("/courses/{course_id}/enroll", response_model=ApiResponse[MessageResult])
def enroll(
    course_id: str,
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
    courses: CourseRepository = Depends(get_course_repository),
):
    req_id = _new_request_id()
    try:
        enrollment_service.enroll(user_id, course_id, users, courses)
        return ApiResponse[MessageResult](
            request_id=req_id, status="ok", data=MessageResult(message="Successfully enrolled in course")
        )
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error("enroll_failed", e, "Enrollment failed", user_id=user_id, course_id=course_id)


@router.post("/courses/{course_id}/complete", response_model=ApiResponse[Certificate])
def complete(
    course_id: str,
    request: Optional[CompleteCourseRequest] = None,
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
    courses: CourseRepository = Depends(get_course_repository),
):
    req_id = _new_request_id()
    rating = request.rating if request else None
    try:
        certificate = enrollment_service.complete(user_id, course_id, rating, users, courses)
        return ApiResponse[Certificate](request_id=req_id, status="ok", data=certificate)
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error("complete_failed", e, "Failed to complete course", user_id=user_id, course_id=course_id)


@router.get("/categories", response_model=ApiResponse[List[str]])
def list_categories(courses: CourseRepository = Depends(get_course_repository)):
    req_id = _new_request_id()
    try:
        return ApiResponse[List[str]](request_id=req_id, status="ok", data=catalog_service.list_categories(courses))
    except Exception as e:
        raise _server_error("list_categories_failed", e, "Failed to list categories")


# Recommendations
@router.get("/recommendations", response_model=ApiResponse[RecommendationResult])
def get_recommendations(
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
    courses: CourseRepository = Depends(get_course_repository),
    settings: Settings = Depends(get_app_settings),
):
    req_id = _new_request_id()
    try:
        user = auth_service.load_user(user_id, users)
        result = recommendation_service.recommend(user, courses, settings)
        return ApiResponse[RecommendationResult](request_id=req_id, status="ok", data=result)
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error(
            "recommendations_failed", e, "Failed to generate recommendations", user_id=user_id
        )


# Certificates
@router.get("/certificates", response_model=ApiResponse[List[Certificate]])
def list_certificates(
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
    courses: CourseRepository = Depends(get_course_repository),
):
    req_id = _new_request_id()
    try:
        certificates = enrollment_service.list_certificates(user_id, users, courses)
        return ApiResponse[List[Certificate]](request_id=req_id, status="ok", data=certificates)
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error("list_certificates_failed", e, "Failed to list certificates", user_id=user_id)


@router.get("/certificates/{certificate_id}", response_model=ApiResponse[Certificate])
def get_certificate(
    certificate_id: str,
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
    courses: CourseRepository = Depends(get_course_repository),
):
    req_id = _new_request_id()
    try:
        certificate = enrollment_service.get_certificate(user_id, certificate_id, users, courses)
        return ApiResponse[Certificate](request_id=req_id, status="ok", data=certificate)
    except CourseCatalogError as e:
        raise _client_error(e)
    except Exception as e:
        raise _server_error(
            "get_certificate_failed", e, "Failed to retrieve certificate", certificate_id=certificate_id
        )


# Sample data
@router.post("/seed-data", response_model=ApiResponse[SeedResult])
def seed_data(
    courses: CourseRepository = Depends(get_course_repository),
    settings: Settings = Depends(get_app_settings),
):
    """Replace the catalog with the bundled sample courses."""
    req_id = _new_request_id()
    try:
        result = seed_service.seed_courses(courses, settings.sample_courses_json, replace=True)
        return ApiResponse[SeedResult](request_id=req_id, status="ok", data=result)
    except Exception as e:
        raise _server_error("seed_data_failed", e, "Failed to add sample data")


@router.post("/add-sample-data", response_model=ApiResponse[SeedResult])
def add_sample_data(
    courses: CourseRepository = Depends(get_course_repository),
    settings: Settings = Depends(get_app_settings),
):
    """Insert the sample courses only when the catalog is empty."""
    req_id = _new_request_id()
    try:
        result = seed_service.seed_courses(courses, settings.sample_courses_json, replace=False)
        return ApiResponse[SeedResult](request_id=req_id, status="ok", data=result)
    except Exception as e:
        raise _server_error("add_sample_data_failed", e, "Failed to add sample data")
