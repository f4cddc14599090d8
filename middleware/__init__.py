"""
Middleware package for the course recommendation backend.

Holds cross-cutting HTTP concerns; currently request logging with PII redaction.
"""

from .pii_middleware import PIIRedactionMiddleware, create_pii_middleware_config

__all__ = [
    'PIIRedactionMiddleware',
    'create_pii_middleware_config'
]
