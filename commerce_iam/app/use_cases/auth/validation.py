"""
Credential and profile field rules.

Each check returns a list of ``{field, message}`` dicts; an empty list means
the value is acceptable.
"""

import re
from typing import Dict, List, Optional

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 100
NAME_MAX_LENGTH = 50

_PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$"
)
_NAME_PATTERN = re.compile(r"^[a-zA-Z\s-]+$")

FieldErrors = List[Dict[str, str]]


def validate_password(password: str, field: str = "password") -> FieldErrors:
    if len(password) < PASSWORD_MIN_LENGTH:
        return [{"field": field, "message": f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"}]
    if len(password) > PASSWORD_MAX_LENGTH:
        return [{"field": field, "message": f"Password must be at most {PASSWORD_MAX_LENGTH} characters long"}]
    if not _PASSWORD_PATTERN.match(password):
        return [
            {
                "field": field,
                "message": "Password must contain at least one uppercase letter, one lowercase letter, "
                "one number, and one special character (@$!%*?&)",
            }
        ]
    return []


def validate_name(value: Optional[str], field: str) -> FieldErrors:
    if value is None or not value.strip():
        return [{"field": field, "message": "Name is required"}]
    if len(value) > NAME_MAX_LENGTH:
        return [{"field": field, "message": f"Name must be at most {NAME_MAX_LENGTH} characters long"}]
    if not _NAME_PATTERN.match(value):
        return [{"field": field, "message": "Name can only contain letters, spaces and hyphens"}]
    return []
