# application/services/redactor.py
from __future__ import annotations

from typing import Any, Dict, Optional

SENSITIVE_KEYS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "api_key",
    "apikey",
    "password",
    "secret",
    "token",
    "access_token",
    "refresh_token",
}

MASK = "********"


def mask_value(key: str, value: Any) -> Any:
    if key.lower() in SENSITIVE_KEYS and value is not None:
        return MASK
    return value


def mask_dict(d: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: mask_value(k, v) for k, v in (d or {}).items()}


def mask_body(value: Any) -> Any:
    """Recursively mask sensitive keys inside a JSON-like body."""
    if isinstance(value, dict):
        return {k: mask_value(k, mask_body(v)) for k, v in value.items()}
    if isinstance(value, list):
        return [mask_body(item) for item in value]
    return value
