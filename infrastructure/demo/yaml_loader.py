# infrastructure/demo/yaml_loader.py
"""
YAML のデモファイルから Demo ドメインオブジェクトを生成
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from domain.demo import Demo, DemoSettings, PollingDefaults
from domain.steps.rest import FormField, PollSpec, RestStep

REST_LINE_RE = re.compile(r"^(GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS)\s+(.+)$", re.I)


class DemoLoadError(Exception):
    pass


def parse_rest_line(rest: str) -> Tuple[str, str]:
    m = REST_LINE_RE.match((rest or "").strip())
    if m is None:
        raise DemoLoadError(f"Invalid REST format: {rest}")
    return m.group(1).upper(), m.group(2)


class YamlDemoLoader:
    """YAMLファイルからDemoをロード"""

    def load_from_file(self, path: str | Path) -> Demo:
        p = Path(path)
        if not p.exists():
            raise DemoLoadError(f"Demo file not found: {path}")

        with p.open("r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise DemoLoadError(f"Demo file is not valid YAML: {path}: {e}") from e

        if data is None:
            raise DemoLoadError(f"Demo file is empty: {path}")

        if not isinstance(data, dict):
            raise DemoLoadError(f"Demo file is invalid: {path}")

        return self.load_from_dict(data)

    def load_from_dict(self, data: Dict[str, Any]) -> Demo:
        """dict からDemoをロード"""
        return Demo(
            title=data.get("title", ""),
            settings=self.load_settings(data.get("settings") or {}),
            steps=self._load_steps(data.get("steps") or []),
        )

    def load_settings(self, data: Dict[str, Any]) -> DemoSettings:
        polling = data.get("polling") or {}
        return DemoSettings(
            base_url=data.get("base_url") or "",
            polling=PollingDefaults(
                interval_ms=_opt_int(polling.get("interval"), "settings.polling.interval"),
                max_attempts=_opt_int(polling.get("max_attempts"), "settings.polling.max_attempts"),
            ),
        )

    def _load_steps(self, steps_data: List[Any]) -> List[RestStep]:
        steps: List[RestStep] = []
        for index, step_data in enumerate(steps_data):
            if not isinstance(step_data, dict):
                raise DemoLoadError(f"Step #{index + 1} must be a mapping")
            # slide / shell など REST 以外のステップは対象外
            if "rest" not in step_data:
                continue
            steps.append(self.load_step(step_data, default_id=f"step-{index + 1}"))
        return steps

    def load_step(self, data: Dict[str, Any], default_id: str = "") -> RestStep:
        rest = data.get("rest", "")
        parse_rest_line(rest)

        form = None
        if data.get("form") is not None:
            form = [self._load_form_field(f) for f in data["form"]]

        return RestStep(
            id=str(data.get("id") or default_id),
            title=data.get("title", ""),
            rest=rest,
            headers=data.get("headers"),
            body=data.get("body"),
            form=form,
            base_url=data.get("base_url"),
            save=data.get("save"),
            poll=self._load_poll(data.get("poll")),
        )

    def _load_form_field(self, data: Any) -> FormField:
        if not isinstance(data, dict) or not data.get("name"):
            raise DemoLoadError(f"Form field must have a name: {data!r}")
        return FormField(name=data["name"], default=data.get("default"))

    def _load_poll(self, data: Optional[Dict[str, Any]]) -> Optional[PollSpec]:
        if not data:
            return None
        if not data.get("endpoint") or not data.get("success_when"):
            raise DemoLoadError("poll requires endpoint and success_when")
        return PollSpec(
            endpoint=data["endpoint"],
            success_when=data["success_when"],
            failure_when=data.get("failure_when"),
            interval_ms=_opt_int(data.get("interval"), "poll.interval"),
            max_attempts=_opt_int(data.get("max_attempts"), "poll.max_attempts"),
            save=data.get("save"),
        )


def _opt_int(value: Any, label: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise DemoLoadError(f"{label} must be an integer: {value!r}")
    return value
