"""
PII redaction for log output.

Registration and profile payloads carry emails, phone numbers and passwords.
Anything written to the logs goes through PIIRedactor first:
- values under secret keys (password, token, ...) are replaced outright
- email addresses and phone numbers inside any other string are masked
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SECRET_KEYS = ("password", "password_hash", "token", "access_token", "authorization")


@dataclass
class PIIRedactionConfig:
    """Configuration for PII redaction settings."""
    redact_emails: bool = True
    redact_phones: bool = True
    secret_keys: List[str] = field(default_factory=lambda: list(SECRET_KEYS))
    replacement_text: str = "[REDACTED]"


class PIIRedactor:
    """Regex based PII redaction for strings and nested JSON-like data."""

    def __init__(self, config: Optional[PIIRedactionConfig] = None):
        self.config = config or PIIRedactionConfig()
        self._secret_keys = {key.lower() for key in self.config.secret_keys}
        self._compile_patterns()

    def _compile_patterns(self):
        self.patterns = {}

        if self.config.redact_emails:
            self.patterns['email'] = re.compile(
                r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b',
                re.IGNORECASE
            )

        if self.config.redact_phones:
            phone_patterns = [
                r'\+\d{1,3}[-.\s]?\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b',  # +1-123-456-7890
                r'\(\d{3}\)\s*\d{3}[-.]?\d{4}\b',  # (123) 456-7890
                r'\b\d{3}[-.]\d{3}[-.]\d{4}\b',  # 123-456-7890
                r'\b\d{10,11}\b',
            ]
            self.patterns['phone'] = re.compile('|'.join(phone_patterns))

    def redact_text(self, text: str) -> str:
        """Redact PII from a text string."""
        if not text or not isinstance(text, str):
            return text

        redacted_text = text
        for pattern in self.patterns.values():
            redacted_text = pattern.sub(self.config.replacement_text, redacted_text)
        return redacted_text

    def redact_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.redact_text(value)
        if isinstance(value, dict):
            return self.redact_dict(value)
        if isinstance(value, list):
            return [self.redact_value(item) for item in value]
        return value

    def redact_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively redact PII from a dictionary."""
        if not isinstance(data, dict):
            return data

        redacted_data = {}
        for key, value in data.items():
            if str(key).lower() in self._secret_keys:
                redacted_data[key] = self.config.replacement_text
            else:
                redacted_data[key] = self.redact_value(value)
        return redacted_data


def create_safe_logging_config() -> PIIRedactionConfig:
    """Create a configuration optimized for logging scenarios."""
    return PIIRedactionConfig(
        redact_emails=True,
        redact_phones=True,
        replacement_text="[REDACTED]",
    )
