"""
FastAPI dependencies: repositories, settings and the authenticated user.

Tests replace the repository providers through `app.dependency_overrides`.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database

from core.config import Settings, get_settings
from core.database import COURSES, SEARCH_LOGS, USERS, get_database
from core.security import InvalidTokenError, decode_access_token
from repository import CourseRepository, SearchLogRepository, UserRepository

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings() -> Settings:
    return get_settings()


def get_db() -> Database:
    return get_database()


def get_course_repository(db: Database = Depends(get_db)) -> CourseRepository:
    return CourseRepository(db[COURSES])


def get_user_repository(db: Database = Depends(get_db)) -> UserRepository:
    return UserRepository(db[USERS])


def get_search_log_repository(db: Database = Depends(get_db)) -> SearchLogRepository:
    return SearchLogRepository(db[SEARCH_LOGS])


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Resolve the user id from the bearer token.

    Raises:
        HTTPException: 401 when no token is sent, 403 when it does not verify.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required")
    try:
        payload = decode_access_token(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")
    return payload["sub"]


def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Like get_current_user_id, but anonymous or invalid tokens yield None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return decode_access_token(credentials.credentials)["sub"]
    except InvalidTokenError:
        return None
