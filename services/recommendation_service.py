"""
Course recommendations for a signed-in user.

Candidates are gathered in three stages, each skipping courses the user is
already enrolled in or has completed:

1. interests: courses whose category is one of the user's interests, or with a
   tag containing one of them (case-insensitive);
2. completed categories: Intermediate/Advanced courses in the categories of the
   courses the user has completed;
3. popularity: the most enrolled courses, used to top the list up when the
   first two stages found fewer than `recommendation_min_results`.

Results keep stage order, never repeat a course and are capped at
`recommendation_max_results`.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from core.config import Settings
from repository import CourseRepository
from schemas.api import RecommendationReason, RecommendationResult
from schemas.course import Course
from schemas.user import User

logger = logging.getLogger(__name__)

ADVANCED_LEVELS = ("Intermediate", "Advanced")


class _Collector:
    """Ordered, de-duplicating accumulator of recommended courses."""

    def __init__(self, exclude_ids: Iterable[str]):
        self.excluded = set(exclude_ids)
        self.courses: Dict[str, Course] = {}
        self.stage_counts: Dict[str, int] = {}

    def add(self, stage: str, candidates: Iterable[Course]) -> None:
        added = 0
        for course in candidates:
            if course.id in self.excluded or course.id in self.courses:
                continue
            self.courses[course.id] = course
            added += 1
        self.stage_counts[stage] = added

    def seen_ids(self) -> List[str]:
        return [*self.excluded, *self.courses]

    def __len__(self) -> int:
        return len(self.courses)


def recommend(user: User, courses: CourseRepository, settings: Settings) -> RecommendationResult:
    exclude_ids = user.excluded_course_ids()
    collector = _Collector(exclude_ids)

    if user.interests:
        collector.add(
            "interests",
            courses.find_by_interests(user.interests, exclude_ids, settings.recommendation_interest_limit),
        )

    if user.completed_courses:
        completed = courses.get_many(record.course_id for record in user.completed_courses)
        categories = sorted({course.category for course in completed})
        if categories:
            collector.add(
                "completed_categories",
                courses.find_by_categories(
                    categories, ADVANCED_LEVELS, exclude_ids, settings.recommendation_category_limit
                ),
            )

    missing = settings.recommendation_min_results - len(collector)
    if missing > 0:
        collector.add("popular", courses.find_popular(collector.seen_ids(), missing))

    recommendations = list(collector.courses.values())[: settings.recommendation_max_results]
    logger.info("recommendations_built", extra={
        "user_id": user.id,
        "recommended": len(recommendations),
        "stage_counts": collector.stage_counts,
    })
    return RecommendationResult(
        recommendations=recommendations,
        reason=RecommendationReason(
            interests=user.interests,
            completed_courses=len(user.completed_courses),
            stage_counts=collector.stage_counts,
        ),
        total_recommendations=len(recommendations),
    )
