"""
Application entry point for the course recommendation backend.

Design choices:
- Mounts the API router using a configurable prefix from core.config Settings.
- Keeps a bare root route for quick health checks.
- Mongo indexes are created on startup; a database that is down is logged, not fatal.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from api.v1.routes import router as api_router
from core.config import get_settings
from core.database import close_client, get_database
from core.logging_config import configure_logging
from middleware import PIIRedactionMiddleware, create_pii_middleware_config
from repository import ensure_indexes

_settings = get_settings()

# Configure structured logging
configure_logging(_settings.log_level)

app = FastAPI(title="Course Recommendation Backend", version="0.1.0")

app.add_middleware(PIIRedactionMiddleware, config=create_pii_middleware_config())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"message": "Server running"}


app.include_router(api_router, prefix=_settings.api_prefix)


@app.on_event("startup")
def startup_event():
    """Create Mongo indexes so uniqueness of usernames and emails is enforced."""
    logger = logging.getLogger("startup")
    try:
        ensure_indexes(get_database())
        logger.info("Database indexes ensured")
    except PyMongoError as e:
        logger.error(f"Database initialization failed: {e}")
        # Don't fail startup; requests will report the database error


@app.on_event("shutdown")
def shutdown_event():
    close_client()


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "5001")))
