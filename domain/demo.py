# domain/demo.py
"""
Demo domain model
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from domain.steps.rest import RestStep

DEFAULT_POLL_INTERVAL_MS = 2000
DEFAULT_POLL_MAX_ATTEMPTS = 30


@dataclass(frozen=True)
class PollingDefaults:
    interval_ms: Optional[int] = None
    max_attempts: Optional[int] = None


@dataclass(frozen=True)
class DemoSettings:
    base_url: str = ""
    polling: PollingDefaults = field(default_factory=PollingDefaults)


@dataclass(frozen=True)
class Demo:
    """
    Demo aggregate root
    """
    title: str
    steps: List[RestStep]
    settings: DemoSettings = field(default_factory=DemoSettings)
