# application/services/execution_error_builder.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from application.exceptions import (
    PollingCancelledError,
    PollingError,
    PollingFailedError,
    PollingTimeoutError,
    TransportError,
)


@dataclass(frozen=True)
class ExecutionErrorDetail:
    code: str
    message: str
    step_id: Optional[str]
    attempts: Optional[int] = None


class ExecutionErrorBuilder:
    def build_from_exception(self, error: BaseException, step_id: Optional[str] = None) -> ExecutionErrorDetail:
        attempts = error.attempts if isinstance(error, PollingError) else None
        return ExecutionErrorDetail(
            code=self._code_for(error),
            message=str(error) or type(error).__name__,
            step_id=step_id,
            attempts=attempts,
        )

    def _code_for(self, error: BaseException) -> str:
        if isinstance(error, TransportError):
            return "transport_error"
        if isinstance(error, PollingFailedError):
            return "poll_failed"
        if isinstance(error, PollingTimeoutError):
            return "poll_timeout"
        if isinstance(error, PollingCancelledError):
            return "poll_cancelled"
        return "exception"
