# domain/steps/rest.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from domain.steps.base import Step


@dataclass(frozen=True)
class FormField:
    name: str
    default: Any = None


@dataclass(frozen=True)
class PollSpec:
    endpoint: str
    success_when: str
    failure_when: Optional[str] = None
    interval_ms: Optional[int] = None
    max_attempts: Optional[int] = None
    save: Optional[Dict[str, str]] = None


@dataclass(frozen=True)
class RestStep(Step):
    """
    REST 呼び出し 1 回分（必要ならポーリング付き）。

    例:
      rest: "POST /orders/$orderId/ship"
      save: {shipmentId: "data.id", code: "_status"}
      poll:
        endpoint: "/shipments/$shipmentId"
        success_when: "status == 'delivered'"
    """
    rest: str = field(default="", kw_only=True)
    headers: Optional[Dict[str, str]] = field(default=None, kw_only=True)
    body: Optional[Any] = field(default=None, kw_only=True)
    form: Optional[List[FormField]] = field(default=None, kw_only=True)
    base_url: Optional[str] = field(default=None, kw_only=True)
    save: Optional[Dict[str, str]] = field(default=None, kw_only=True)
    poll: Optional[PollSpec] = field(default=None, kw_only=True)
