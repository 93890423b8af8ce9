# application/outcome.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ResolvedRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None


@dataclass(frozen=True)
class PollingResult:
    attempts: int
    final_response: Any
    status: Optional[int] = None


@dataclass(frozen=True)
class RestExecutionResult:
    request: ResolvedRequest
    status: int
    body: Any
    polling: Optional[PollingResult] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "request": {
                "method": self.request.method,
                "url": self.request.url,
                "headers": dict(self.request.headers),
                "body": self.request.body,
            },
            "status": self.status,
            "body": self.body,
        }
        if self.polling is not None:
            out["polling_result"] = {
                "attempts": self.polling.attempts,
                "final_response": self.polling.final_response,
            }
        return out
