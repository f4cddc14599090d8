from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from api.v1.dependencies import get_course_repository, get_search_log_repository, get_user_repository
from core.config import Settings
from core.exceptions import UserAlreadyExistsError
from main import app
from repository import to_object_id
from schemas.course import Course, CourseCreate
from schemas.user import CompletionRecord, EnrollmentRecord, SearchEntry, User


def make_course(**overrides: Any) -> Course:
    data: Dict[str, Any] = {
        "id": str(ObjectId()),
        "title": "Course",
        "description": "A course",
        "instructor": "Instructor",
        "category": "Programming",
        "level": "Beginner",
        "duration": 10,
        "price": 49.0,
    }
    data.update(overrides)
    return Course(**data)


class FakeCourseRepository:
    """In-memory stand-in for CourseRepository."""

    def __init__(self, courses: Iterable[Course] = ()):
        self.courses: Dict[str, Course] = {c.id: c for c in courses}

    def add(self, **overrides: Any) -> Course:
        course = make_course(**overrides)
        self.courses[course.id] = course
        return course

    @staticmethod
    def _best_rated(courses: Iterable[Course]) -> List[Course]:
        return sorted(courses, key=lambda c: (-c.rating, c.id))

    def search(self, category=None, level=None, search=None, skip=0, limit=12) -> Tuple[List[Course], int]:
        matches = []
        for course in self.courses.values():
            if category and category != "all" and course.category != category:
                continue
            if level and level != "all" and course.level != level:
                continue
            if search:
                needle = search.lower()
                haystack = [course.title, course.description, course.instructor, *course.tags]
                if not any(needle in text.lower() for text in haystack):
                    continue
            matches.append(course)
        matches.sort(key=lambda c: (c.created_at, c.id), reverse=True)
        return matches[skip:skip + limit], len(matches)

    def get(self, course_id: str) -> Optional[Course]:
        to_object_id(course_id)
        return self.courses.get(course_id)

    def get_many(self, course_ids: Iterable[str]) -> List[Course]:
        return [self.courses[i] for i in course_ids if i in self.courses]

    def categories(self) -> List[str]:
        return sorted({c.category for c in self.courses.values()})

    def find_by_interests(self, interests: Sequence[str], exclude_ids: Iterable[str], limit: int) -> List[Course]:
        excluded = set(exclude_ids)
        lowered = [i.lower() for i in interests]
        matches = [
            c for c in self.courses.values()
            if c.id not in excluded and (
                c.category in interests
                or any(i in tag.lower() for tag in c.tags for i in lowered)
            )
        ]
        return self._best_rated(matches)[:limit]

    def find_by_categories(self, categories, levels, exclude_ids, limit) -> List[Course]:
        excluded = set(exclude_ids)
        matches = [
            c for c in self.courses.values()
            if c.id not in excluded and c.category in categories and (not levels or c.level in levels)
        ]
        return self._best_rated(matches)[:limit]

    def find_popular(self, exclude_ids: Iterable[str], limit: int) -> List[Course]:
        excluded = set(exclude_ids)
        matches = [c for c in self.courses.values() if c.id not in excluded]
        matches.sort(key=lambda c: (-c.enrolled_students, -c.rating, c.id))
        return matches[:max(limit, 0)]

    def increment_enrollment(self, course_id: str) -> None:
        course = self.courses[course_id]
        self.courses[course_id] = course.model_copy(update={"enrolled_students": course.enrolled_students + 1})

    def record_rating(self, course_id: str, rating: int) -> None:
        course = self.courses[course_id]
        total = course.total_ratings + 1
        average = (course.rating * course.total_ratings + rating) / total
        self.courses[course_id] = course.model_copy(update={"rating": average, "total_ratings": total})

    def count(self) -> int:
        return len(self.courses)

    def insert_many(self, courses: Sequence[CourseCreate]) -> int:
        for course in courses:
            created = Course(id=str(ObjectId()), **course.model_dump())
            self.courses[created.id] = created
        return len(courses)

    def delete_all(self) -> int:
        removed = len(self.courses)
        self.courses.clear()
        return removed


class FakeUserRepository:
    """In-memory stand-in for UserRepository."""

    def __init__(self):
        self.users: Dict[str, User] = {}

    def create(self, document: Dict[str, Any]) -> User:
        if self.exists(document["username"], document["email"]):
            raise UserAlreadyExistsError()
        user = User(id=str(ObjectId()), **document)
        self.users[user.id] = user
        return user.model_copy(deep=True)

    def get(self, user_id: str) -> Optional[User]:
        to_object_id(user_id, "user")
        user = self.users.get(user_id)
        return user.model_copy(deep=True) if user else None

    def find_by_email(self, email: str) -> Optional[User]:
        for user in self.users.values():
            if user.email == email:
                return user.model_copy(deep=True)
        return None

    def exists(self, username: str, email: str) -> bool:
        return any(u.username == username or u.email == email for u in self.users.values())

    def update_profile(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        if user_id not in self.users:
            return None
        self.users[user_id] = self.users[user_id].model_copy(update=changes)
        return self.users[user_id].model_copy(deep=True)

    def add_enrollment(self, user_id: str, record: EnrollmentRecord) -> bool:
        user = self.users[user_id]
        if user.is_enrolled(record.course_id):
            return False
        user.enrolled_courses.append(record)
        return True

    def complete_enrollment(self, user_id: str, record: CompletionRecord) -> bool:
        user = self.users[user_id]
        if not user.is_enrolled(record.course_id):
            return False
        user.enrolled_courses = [r for r in user.enrolled_courses if r.course_id != record.course_id]
        user.completed_courses.append(record)
        return True

    def push_search(self, user_id: str, entry: SearchEntry, keep: int) -> None:
        user = self.users[user_id]
        user.search_history = (user.search_history + [entry])[-keep:]


class FakeSearchLogRepository:
    def __init__(self):
        self.entries: List[Dict[str, Any]] = []

    def record(self, user_id: str, query: str, results_count: int) -> None:
        self.entries.append({"user_id": user_id, "query": query, "results_count": results_count})


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def course_repo() -> FakeCourseRepository:
    return FakeCourseRepository()


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def search_log_repo() -> FakeSearchLogRepository:
    return FakeSearchLogRepository()


@pytest.fixture
def client(course_repo, user_repo, search_log_repo):
    app.dependency_overrides[get_course_repository] = lambda: course_repo
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_search_log_repository] = lambda: search_log_repo
    yield TestClient(app)
    app.dependency_overrides.clear()


def register_user(client: TestClient, username: str = "alice", email: str = "alice@example.com", **extra) -> Dict:
    payload = {"username": username, "email": email, "password": "s3cret-pass", **extra}
    resp = client.post("/api/register", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
