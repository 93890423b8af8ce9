# application/ports/logger.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

LEVELS = ("debug", "info", "warning", "error")


class LoggerPort(ABC):
    """
    構造化イベントログ。event は "step.start" / "poll.attempt" のような
    ドット区切りの名前、fields はそのイベントの JSON 化可能なペイロード。
    """

    @abstractmethod
    def debug(self, event: str, **fields: Any) -> None:
        ...

    @abstractmethod
    def info(self, event: str, **fields: Any) -> None:
        ...

    @abstractmethod
    def warning(self, event: str, **fields: Any) -> None:
        ...

    @abstractmethod
    def error(self, event: str, **fields: Any) -> None:
        ...

    @abstractmethod
    def bind(self, **fields: Any) -> "LoggerPort":
        """
        Return a logger that will attach given fields to every log event.
        """
        ...

    def log(self, level: str, event: str, **fields: Any) -> None:
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        getattr(self, level)(event, **fields)
