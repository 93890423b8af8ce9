# domain/path.py
from __future__ import annotations

from typing import Any, List, Optional, Union


class _Missing:
    """Sentinel for a path that does not resolve. Distinct from None (JSON null)."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

Segment = Union[str, int]


def _parse_path(path: str) -> Optional[List[Segment]]:
    """
    "data.items[0].id" -> ["data", "items", 0, "id"]
    壊れたパス（閉じ括弧なし、数値でない添字）は None。
    """
    segments: List[Segment] = []
    i = 0
    n = len(path)
    while i < n:
        ch = path[i]
        if ch == "[":
            end = path.find("]", i)
            if end < 0:
                return None
            raw = path[i + 1 : end].strip()
            if not raw.isascii():
                return None
            try:
                segments.append(int(raw))
            except ValueError:
                return None
            i = end + 1
        elif ch == ".":
            i += 1
        else:
            end = i
            while end < n and path[end] not in ".[":
                end += 1
            segments.append(path[i:end])
            i = end
    return segments


def _step(cur: Any, segment: Segment) -> Any:
    if isinstance(segment, int):
        if not isinstance(cur, list):
            return MISSING
        if segment < 0 or segment >= len(cur):
            return MISSING
        return cur[segment]

    if isinstance(cur, dict):
        return cur.get(segment, MISSING)

    # "items.1" 形式の添字
    if isinstance(cur, list) and segment.isascii() and segment.isdigit():
        idx = int(segment)
        return cur[idx] if idx < len(cur) else MISSING

    return MISSING


def extract_value_by_path(document: Any, path: str) -> Any:
    """
    Read a value out of a JSON-like document.

    Supports dotted keys and bracket indices ("data.items[0].id"). Returns
    MISSING instead of raising when any segment does not resolve.
    """
    if not path:
        return document

    segments = _parse_path(path)
    if segments is None:
        return MISSING

    cur = document
    for segment in segments:
        if cur is None or cur is MISSING:
            return MISSING
        cur = _step(cur, segment)
    return cur
