# domain/run_log.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RunLogEntry:
    """One structured event recorded during a demo run."""

    timestamp: datetime
    level: str
    event: str
    fields: Dict[str, Any]

    @property
    def step_id(self) -> Optional[str]:
        return self.fields.get("step_id")

    def matches_step(self, step_id: Optional[str]) -> bool:
        return step_id is None or self.step_id == step_id
