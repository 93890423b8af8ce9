# infrastructure/logging/composite_logger.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from application.ports.logger import LoggerPort


@dataclass(frozen=True)
class CompositeLogger(LoggerPort):
    """
    同じイベントを複数の出力先（コンソールと run ログなど）に流す。
    bind したフィールドは全ての出力先に引き継がれる。
    """

    loggers: List[LoggerPort]

    def bind(self, **fields: Any) -> "CompositeLogger":
        return CompositeLogger([logger.bind(**fields) for logger in self.loggers])

    def debug(self, event: str, **fields: Any) -> None:
        self.log("debug", event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self.log("info", event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.log("warning", event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self.log("error", event, **fields)

    def log(self, level: str, event: str, **fields: Any) -> None:
        for logger in self.loggers:
            logger.log(level, event, **fields)
