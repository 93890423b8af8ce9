# domain/steps/expr.py
from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional, Tuple

from domain.path import MISSING, extract_value_by_path

_CONDITION_RE = re.compile(r"^(?:response\.)?(.+?)\s*(==|!=)\s*(.+)$", re.S)
_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?([eE][+-]?\d+)?$")


class ConditionResult(str, Enum):
    MATCHED = "matched"
    NOT_MATCHED = "not_matched"
    UNPARSABLE = "unparsable"


def parse_literal(raw: str) -> Any:
    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw == "null":
        return None
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
        return raw[1:-1]
    if _NUMBER_RE.match(raw):
        if "." in raw or "e" in raw or "E" in raw:
            return float(raw)
        return int(raw)
    return raw


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def strict_equals(actual: Any, expected: Any) -> bool:
    # "5" != 5, True != 1, MISSING != None
    if actual is MISSING or expected is MISSING:
        return actual is expected
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    if type(actual) is not type(expected):
        return False
    return actual == expected


class ConditionEvaluator:
    """
    "<path> == <literal>" / "<path> != <literal>" を評価する。
    パースできない式は UNPARSABLE（例外は投げない）。
    """

    def __init__(self, logger: Optional[Any] = None):
        self._logger = logger

    def parse(self, expr: str) -> Optional[Tuple[str, str, Any]]:
        m = _CONDITION_RE.match((expr or "").strip())
        if m is None:
            return None
        path, op, raw = m.group(1).strip(), m.group(2), m.group(3).strip()
        return path, op, parse_literal(raw)

    def evaluate(self, expr: str, document: Any) -> ConditionResult:
        parsed = self.parse(expr)
        if parsed is None:
            return ConditionResult.UNPARSABLE

        path, op, expected = parsed
        actual = extract_value_by_path(document, path)
        equal = strict_equals(actual, expected)
        hit = equal if op == "==" else not equal
        return ConditionResult.MATCHED if hit else ConditionResult.NOT_MATCHED

    def matches(self, expr: str, document: Any, logger: Optional[Any] = None) -> bool:
        result = self.evaluate(expr, document)
        if result is ConditionResult.UNPARSABLE:
            log = logger or self._logger
            if log is not None:
                log.warning("condition.unparsable", expr=expr)
            return False
        return result is ConditionResult.MATCHED


def evaluate_condition(expr: str, document: Any) -> bool:
    return ConditionEvaluator().matches(expr, document)
