# application/exceptions.py
from __future__ import annotations

from typing import Any, Optional


class DemoExecutionError(Exception):
    """Base for errors that make a step fail."""


class TransportError(DemoExecutionError):
    def __init__(self, method: str, url: str, reason: str):
        super().__init__(f"{method} {url} failed: {reason}")
        self.method = method
        self.url = url
        self.reason = reason


class PollingError(DemoExecutionError):
    def __init__(self, message: str, attempts: int, last_response: Any = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_response = last_response


class PollingFailedError(PollingError):
    def __init__(self, condition: str, attempts: int, last_response: Any = None):
        super().__init__(
            f"Polling failed: {condition} matched after {attempts} attempts",
            attempts=attempts,
            last_response=last_response,
        )
        self.condition = condition


class PollingTimeoutError(PollingError):
    def __init__(self, max_attempts: int, last_response: Any = None):
        super().__init__(
            f"Polling timed out after {max_attempts} attempts",
            attempts=max_attempts,
            last_response=last_response,
        )
        self.max_attempts = max_attempts


class PollingCancelledError(PollingError):
    def __init__(self, attempts: int, last_response: Optional[Any] = None):
        super().__init__(
            f"Polling cancelled after {attempts} attempts",
            attempts=attempts,
            last_response=last_response,
        )
