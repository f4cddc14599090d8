"""
MongoDB repositories for users, courses and search logs.

Services talk to these classes only; the filter builders are plain functions
so the query shapes can be checked without a database.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from core.database import COURSES, SEARCH_LOGS, USERS
from core.exceptions import InvalidObjectIdError, UserAlreadyExistsError
from schemas.course import Course, CourseCreate, utcnow
from schemas.user import CompletionRecord, EnrollmentRecord, SearchEntry, User

logger = logging.getLogger(__name__)

NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]
BEST_RATED_FIRST = [("rating", DESCENDING), ("_id", ASCENDING)]
MOST_POPULAR_FIRST = [("enrolled_students", DESCENDING), ("rating", DESCENDING), ("_id", ASCENDING)]


def to_object_id(value: str, kind: str = "course") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise InvalidObjectIdError(kind, value)
    return ObjectId(value)


def _contains(term: str) -> re.Pattern:
    return re.compile(re.escape(term), re.IGNORECASE)


def exclude_ids_filter(ids: Iterable[str]) -> Dict[str, Any]:
    object_ids = [ObjectId(i) for i in ids if ObjectId.is_valid(i)]
    if not object_ids:
        return {}
    return {"_id": {"$nin": object_ids}}


def build_catalog_filter(
    category: Optional[str] = None,
    level: Optional[str] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the listing filter. `all` or an empty value disables a facet."""
    query: Dict[str, Any] = {}
    if category and category != "all":
        query["category"] = category
    if level and level != "all":
        query["level"] = level
    if search:
        pattern = _contains(search)
        query["$or"] = [
            {"title": pattern},
            {"description": pattern},
            {"instructor": pattern},
            {"tags": pattern},
        ]
    return query


def build_interest_filter(interests: Sequence[str], exclude_ids: Iterable[str]) -> Dict[str, Any]:
    query = exclude_ids_filter(exclude_ids)
    query["$or"] = [
        {"category": {"$in": list(interests)}},
        {"tags": {"$in": [_contains(interest) for interest in interests]}},
    ]
    return query


def build_category_filter(
    categories: Sequence[str], levels: Sequence[str], exclude_ids: Iterable[str]
) -> Dict[str, Any]:
    query = exclude_ids_filter(exclude_ids)
    query["category"] = {"$in": list(categories)}
    if levels:
        query["level"] = {"$in": list(levels)}
    return query


def ensure_indexes(db: Database) -> None:
    db[USERS].create_index("username", unique=True)
    db[USERS].create_index("email", unique=True)
    db[COURSES].create_index("category")
    db[COURSES].create_index([("enrolled_students", DESCENDING), ("rating", DESCENDING)])
    db[SEARCH_LOGS].create_index([("user_id", ASCENDING), ("timestamp", DESCENDING)])


class CourseRepository:
    def __init__(self, collection: Collection):
        self.collection = collection

    def _find(self, query: Dict[str, Any], sort, limit: int, skip: int = 0) -> List[Course]:
        if limit <= 0:
            return []
        cursor = self.collection.find(query).sort(sort).skip(skip).limit(limit)
        return [Course.from_document(doc) for doc in cursor]

    def search(
        self,
        category: Optional[str] = None,
        level: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 12,
    ) -> Tuple[List[Course], int]:
        query = build_catalog_filter(category, level, search)
        courses = self._find(query, NEWEST_FIRST, limit, skip)
        return courses, self.collection.count_documents(query)

    def get(self, course_id: str) -> Optional[Course]:
        doc = self.collection.find_one({"_id": to_object_id(course_id)})
        return Course.from_document(doc) if doc else None

    def get_many(self, course_ids: Iterable[str]) -> List[Course]:
        object_ids = [ObjectId(i) for i in course_ids if ObjectId.is_valid(i)]
        if not object_ids:
            return []
        return [Course.from_document(doc) for doc in self.collection.find({"_id": {"$in": object_ids}})]

    def categories(self) -> List[str]:
        return sorted(self.collection.distinct("category"))

    def find_by_interests(self, interests: Sequence[str], exclude_ids: Iterable[str], limit: int) -> List[Course]:
        return self._find(build_interest_filter(interests, exclude_ids), BEST_RATED_FIRST, limit)

    def find_by_categories(
        self, categories: Sequence[str], levels: Sequence[str], exclude_ids: Iterable[str], limit: int
    ) -> List[Course]:
        return self._find(build_category_filter(categories, levels, exclude_ids), BEST_RATED_FIRST, limit)

    def find_popular(self, exclude_ids: Iterable[str], limit: int) -> List[Course]:
        return self._find(exclude_ids_filter(exclude_ids), MOST_POPULAR_FIRST, limit)

    def increment_enrollment(self, course_id: str) -> None:
        self.collection.update_one({"_id": to_object_id(course_id)}, {"$inc": {"enrolled_students": 1}})

    def record_rating(self, course_id: str, rating: int) -> None:
        """Fold `rating` into the running average in a single atomic update."""
        self.collection.update_one(
            {"_id": to_object_id(course_id)},
            [
                {
                    "$set": {
                        "rating": {
                            "$divide": [
                                {"$add": [{"$multiply": [{"$ifNull": ["$rating", 0]}, {"$ifNull": ["$total_ratings", 0]}]}, rating]},
                                {"$add": [{"$ifNull": ["$total_ratings", 0]}, 1]},
                            ]
                        },
                        "total_ratings": {"$add": [{"$ifNull": ["$total_ratings", 0]}, 1]},
                        "last_updated": "$$NOW",
                    }
                }
            ],
        )

    def count(self) -> int:
        return self.collection.count_documents({})

    def insert_many(self, courses: Sequence[CourseCreate]) -> int:
        if not courses:
            return 0
        result = self.collection.insert_many([course.to_document() for course in courses])
        return len(result.inserted_ids)

    def delete_all(self) -> int:
        return self.collection.delete_many({}).deleted_count


class UserRepository:
    def __init__(self, collection: Collection):
        self.collection = collection

    def create(self, document: Dict[str, Any]) -> User:
        try:
            result = self.collection.insert_one(document)
        except DuplicateKeyError as exc:
            logger.info("user_insert_duplicate", extra={"error": str(exc)})
            raise UserAlreadyExistsError() from exc
        return User.from_document({**document, "_id": result.inserted_id})

    def get(self, user_id: str) -> Optional[User]:
        doc = self.collection.find_one({"_id": to_object_id(user_id, "user")})
        return User.from_document(doc) if doc else None

    def find_by_email(self, email: str) -> Optional[User]:
        doc = self.collection.find_one({"email": email})
        return User.from_document(doc) if doc else None

    def exists(self, username: str, email: str) -> bool:
        return self.collection.find_one({"$or": [{"email": email}, {"username": username}]}, {"_id": 1}) is not None

    def update_profile(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        doc = self.collection.find_one_and_update(
            {"_id": to_object_id(user_id, "user")},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        return User.from_document(doc) if doc else None

    def add_enrollment(self, user_id: str, record: EnrollmentRecord) -> bool:
        """Push `record` unless the user is already enrolled in that course."""
        result = self.collection.update_one(
            {"_id": to_object_id(user_id, "user"), "enrolled_courses.course_id": {"$ne": record.course_id}},
            {"$push": {"enrolled_courses": record.model_dump()}},
        )
        return result.modified_count == 1

    def complete_enrollment(self, user_id: str, record: CompletionRecord) -> bool:
        """Move an enrollment to the completed list; False if the user was not enrolled."""
        result = self.collection.update_one(
            {"_id": to_object_id(user_id, "user"), "enrolled_courses.course_id": record.course_id},
            {
                "$pull": {"enrolled_courses": {"course_id": record.course_id}},
                "$push": {"completed_courses": record.model_dump()},
            },
        )
        return result.modified_count == 1

    def push_search(self, user_id: str, entry: SearchEntry, keep: int) -> None:
        self.collection.update_one(
            {"_id": to_object_id(user_id, "user")},
            {"$push": {"search_history": {"$each": [entry.model_dump()], "$slice": -keep}}},
        )


class SearchLogRepository:
    def __init__(self, collection: Collection):
        self.collection = collection

    def record(self, user_id: str, query: str, results_count: int) -> None:
        self.collection.insert_one(
            {
                "user_id": user_id,
                "query": query,
                "results_count": results_count,
                "clicked_courses": [],
                "timestamp": utcnow(),
            }
        )
