"""
Course catalog queries: listing with filters and pagination, detail lookup and categories.

Searches made by a signed-in user are appended to their search history and to
the search log. That bookkeeping never fails the listing itself.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional

from core.config import Settings
from core.exceptions import CourseNotFoundError
from repository import CourseRepository, SearchLogRepository, UserRepository
from schemas.api import CourseListResult
from schemas.course import Course
from schemas.user import SearchEntry

logger = logging.getLogger(__name__)


def list_courses(
    courses: CourseRepository,
    *,
    category: Optional[str] = None,
    level: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 12,
) -> CourseListResult:
    page = max(page, 1)
    search = search.strip() if search else None
    items, total = courses.search(
        category=category,
        level=level,
        search=search,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return CourseListResult(
        courses=items,
        total_pages=math.ceil(total / limit) if limit else 0,
        current_page=page,
        total_courses=total,
    )


def record_search(
    user_id: str,
    query: str,
    results_count: int,
    users: UserRepository,
    search_logs: SearchLogRepository,
    settings: Settings,
) -> None:
    """Append the query to the user's history and the search log; failures are only logged."""
    try:
        users.push_search(user_id, SearchEntry(query=query), keep=settings.search_history_limit)
        search_logs.record(user_id, query, results_count)
    except Exception as e:
        logger.warning("search_logging_failed", extra={
            "user_id": user_id,
            "query": query,
            "error": str(e),
            "error_type": type(e).__name__,
        })


def get_course(course_id: str, courses: CourseRepository) -> Course:
    course = courses.get(course_id)
    if course is None:
        raise CourseNotFoundError(course_id)
    return course


def list_categories(courses: CourseRepository) -> List[str]:
    return courses.categories()
