"""MongoDB client lifecycle.

The client is created lazily and cached; pymongo connects on first use, so
importing this module never touches the network.
"""
from __future__ import annotations

from functools import lru_cache

from pymongo import MongoClient
from pymongo.database import Database

from core.config import get_settings

USERS = "users"
COURSES = "courses"
SEARCH_LOGS = "search_logs"


@lru_cache(maxsize=1)
def get_client() -> MongoClient:
    settings = get_settings()
    return MongoClient(settings.mongo_url, tz_aware=True)


def get_database() -> Database:
    return get_client()[get_settings().mongo_db_name]


def close_client() -> None:
    if get_client.cache_info().currsize:
        get_client().close()
        get_client.cache_clear()
