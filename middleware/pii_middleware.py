"""
Request logging middleware with PII redaction.

Every request is logged at INFO with its method, path and response status.
JSON bodies of write requests are logged at DEBUG after redaction.
"""

import json
import logging
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from services.pii_redaction import PIIRedactor, create_safe_logging_config

logger = logging.getLogger(__name__)


class PIIRedactionMiddleware(BaseHTTPMiddleware):
    """Middleware that logs API requests with PII redacted."""

    def __init__(self, app, config: Optional[Dict[str, Any]] = None):
        super().__init__(app)
        self.pii_redactor = PIIRedactor(create_safe_logging_config())
        self.config = config or {}
        self.exclude_paths = self.config.get('exclude_paths', [])
        self.log_bodies = self.config.get('log_bodies', True)

    async def dispatch(self, request: Request, call_next):
        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            return await call_next(request)

        if self.log_bodies and logger.isEnabledFor(logging.DEBUG):
            await self._log_body_safely(request)

        response = await call_next(request)
        logger.info("http_request", extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
        })
        return response

    async def _log_body_safely(self, request: Request):
        if request.method not in ("POST", "PUT", "PATCH"):
            return
        body = await request.body()
        if not body:
            return
        try:
            redacted = self.pii_redactor.redact_value(json.loads(body.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError):
            redacted = "[non-JSON body omitted]"
        logger.debug("http_request_body", extra={
            "method": request.method,
            "path": request.url.path,
            "body": redacted,
        })


def create_pii_middleware_config() -> Dict[str, Any]:
    """Create default configuration for PII redaction middleware."""
    return {
        'exclude_paths': [
            '/docs',
            '/redoc',
            '/openapi.json',
        ],
        'log_bodies': True,
    }
