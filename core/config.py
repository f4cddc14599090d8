"""
Core configuration module for environment variables and settings management.

Design choices:
- Uses python-dotenv to load environment variables from a .env file when present.
- Provides a single get_settings() accessor with LRU caching to avoid repeated parsing.
- Recommendation stage limits live here so they can be tuned per deployment without code changes.
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    environment: str = "dev"
    log_level: str = "INFO"

    # MongoDB
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "course_recommendation"

    # Auth
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # HTTP
    cors_allowed_origins: List[str] = ["*"]
    api_prefix: str = "/api"

    # Catalog
    default_page_size: int = 12
    search_history_limit: int = 50
    sample_courses_json: str = str(PROJECT_ROOT / "data" / "sample_courses.json")

    # Recommendation stages
    recommendation_interest_limit: int = 6
    recommendation_category_limit: int = 4
    recommendation_min_results: int = 8
    recommendation_max_results: int = 12


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load environment variables (from .env if present) and build a Settings object.

    This function is cached so app startup and repeated imports are efficient.
    """
    load_dotenv()  # no-op if .env not present
    defaults = Settings()
    return Settings(
        environment=os.getenv("ENVIRONMENT", defaults.environment),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        mongo_url=os.getenv("MONGO_URL", defaults.mongo_url),
        mongo_db_name=os.getenv("MONGO_DB_NAME", defaults.mongo_db_name),
        jwt_secret_key=os.getenv("JWT_SECRET_KEY", defaults.jwt_secret_key),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", defaults.jwt_algorithm),
        access_token_expire_minutes=int(
            os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(defaults.access_token_expire_minutes))
        ),
        cors_allowed_origins=_split_csv(os.getenv("CORS_ALLOWED_ORIGINS", "*")),
        api_prefix=os.getenv("API_PREFIX", defaults.api_prefix),
        default_page_size=int(os.getenv("DEFAULT_PAGE_SIZE", str(defaults.default_page_size))),
        search_history_limit=int(os.getenv("SEARCH_HISTORY_LIMIT", str(defaults.search_history_limit))),
        sample_courses_json=os.getenv("SAMPLE_COURSES_JSON", defaults.sample_courses_json),
        recommendation_interest_limit=int(
            os.getenv("RECOMMENDATION_INTEREST_LIMIT", str(defaults.recommendation_interest_limit))
        ),
        recommendation_category_limit=int(
            os.getenv("RECOMMENDATION_CATEGORY_LIMIT", str(defaults.recommendation_category_limit))
        ),
        recommendation_min_results=int(
            os.getenv("RECOMMENDATION_MIN_RESULTS", str(defaults.recommendation_min_results))
        ),
        recommendation_max_results=int(
            os.getenv("RECOMMENDATION_MAX_RESULTS", str(defaults.recommendation_max_results))
        ),
    )
