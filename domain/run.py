# domain/run.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class RunContext:
    """
    1 回のデモ実行の状態。vars（変数ストア）はこのコンテキストが所有し、
    各ステップには参照として渡される。
    """
    run_id: str = ""

    vars: Dict[str, Any] = field(default_factory=dict)
    results: List[Any] = field(default_factory=list)

    def reset(self) -> None:
        # Restarting a run starts from an empty store; the dict object is kept.
        self.vars.clear()
        self.results.clear()
        self.run_id = ""
