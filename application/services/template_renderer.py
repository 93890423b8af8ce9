from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List

VARIABLE_RE = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)")


def stringify(value: Any) -> str:
    """
    変数値を文字列として埋め込むときの表現。
    JSON 由来の値（true/false/null, 2.0 など）は JSON 側の見た目に寄せる。
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def substitute_variables(text: str, variables: Dict[str, Any]) -> str:
    """
    "$name" を variables の値で置換する。未定義の変数はそのまま残す。
    """
    if "$" not in text:
        return text

    def _replace(m: re.Match) -> str:
        name = m.group(1)
        if name in variables:
            return stringify(variables[name])
        return m.group(0)

    return VARIABLE_RE.sub(_replace, text)


def substitute_in_object(value: Any, variables: Dict[str, Any]) -> Any:
    """Deep copy of value with every string leaf substituted. Keys are left alone."""
    if isinstance(value, str):
        return substitute_variables(value, variables)
    if isinstance(value, list):
        return [substitute_in_object(item, variables) for item in value]
    if isinstance(value, tuple):
        return tuple(substitute_in_object(item, variables) for item in value)
    if isinstance(value, dict):
        return {k: substitute_in_object(v, variables) for k, v in value.items()}
    return value


def _unique(names: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for name in names:
        seen.setdefault(name, None)
    return list(seen)


def find_variables_in_string(text: str) -> List[str]:
    return _unique(VARIABLE_RE.findall(text))


def find_variables_in_object(value: Any) -> List[str]:
    if isinstance(value, str):
        return find_variables_in_string(value)
    if isinstance(value, (list, tuple)):
        return _unique(name for item in value for name in find_variables_in_object(item))
    if isinstance(value, dict):
        return _unique(name for v in value.values() for name in find_variables_in_object(v))
    return []


def find_missing_variables(used: Iterable[str], variables: Dict[str, Any]) -> List[str]:
    return [name for name in used if name not in variables]
