# application/services/response_binding.py
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from domain.path import MISSING, extract_value_by_path

STATUS_KEYWORD = "_status"


def parse_json_body(text: Optional[str]) -> Any:
    """JSON としてパースできなければ None（エラーにはしない）。"""
    if not text:
        return None
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None


def apply_save_mapping(
    save: Optional[Dict[str, str]],
    status: int,
    body: Any,
    variables: Dict[str, Any],
) -> Dict[str, Any]:
    """
    save: {変数名: パス}。"_status" は HTTP ステータスを束縛する。
    見つからなかったパスは変数ストアを変更しない。
    戻り値は今回束縛した変数。
    """
    bound: Dict[str, Any] = {}
    for name, path in (save or {}).items():
        if path == STATUS_KEYWORD:
            value: Any = status
        elif body is not None:
            value = extract_value_by_path(body, path)
            if value is MISSING:
                continue
        else:
            continue
        variables[name] = value
        bound[name] = value
    return bound
