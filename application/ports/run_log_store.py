# application/ports/run_log_store.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from domain.run_log import RunLogEntry


class RunLogStorePort(ABC):
    """Run ID ごとのイベントログ置き場"""

    @abstractmethod
    def append(self, run_id: str, entry: RunLogEntry) -> None:
        ...

    @abstractmethod
    def list(self, run_id: str) -> List[RunLogEntry]:
        """Entries of one run in the order they were appended."""
        ...

    @abstractmethod
    def has_run(self, run_id: str) -> bool:
        ...

    @abstractmethod
    def run_ids(self) -> List[str]:
        """Known run ids, oldest first."""
        ...
