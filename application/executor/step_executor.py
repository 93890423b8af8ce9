# application/executor/step_executor.py
from __future__ import annotations

import json
import time
from typing import Any, Dict, FrozenSet, Optional, Tuple

from application.outcome import RestExecutionResult, ResolvedRequest
from application.ports.http_client import HttpClientPort
from application.ports.logger import LoggerPort
from application.services.poller import CancellationToken, Poller
from application.services.redactor import mask_body, mask_dict
from application.services.response_binding import apply_save_mapping, parse_json_body
from application.services.template_renderer import (
    find_missing_variables,
    find_variables_in_object,
    stringify,
    substitute_in_object,
    substitute_variables,
)
from domain.demo import DemoSettings
from domain.steps.rest import RestStep

# ボディを自動で組み立てるメソッド（GET/HEAD/OPTIONS には付けない）
BODY_METHODS: FrozenSet[str] = frozenset({"POST", "PUT", "PATCH", "DELETE"})

DEFAULT_HEADERS: Dict[str, str] = {"Content-Type": "application/json"}


def method_supports_body(method: str, body_methods: FrozenSet[str] = BODY_METHODS) -> bool:
    return method.upper() in body_methods


def build_headers(step_headers: Optional[Dict[str, Any]], variables: Dict[str, Any]) -> Dict[str, str]:
    """
    既定ヘッダーにステップのヘッダーを重ねる。名前の比較は大文字小文字を区別せず、
    値は置換後に文字列化する（YAML の `X-Api-Version: 2` など）。
    """
    overrides = {
        name: value if isinstance(value, str) else stringify(value)
        for name, value in substitute_in_object(step_headers or {}, variables).items()
    }
    lowered = {name.lower() for name in overrides}
    headers = {k: v for k, v in DEFAULT_HEADERS.items() if k.lower() not in lowered}
    headers.update(overrides)
    return headers


def split_rest_line(rest: str) -> Tuple[str, str]:
    """
    "POST /orders/$id" -> ("POST", "/orders/$id")
    最初の空白の連続で分割する。
    """
    parts = rest.strip().split(None, 1)
    if not parts:
        return "", ""
    method = parts[0].upper()
    endpoint = parts[1] if len(parts) > 1 else ""
    return method, endpoint


class StepExecutor:
    def __init__(
        self,
        http_client: HttpClientPort,
        logger: LoggerPort,
        poller: Optional[Poller] = None,
        body_methods: FrozenSet[str] = BODY_METHODS,
    ):
        self._http = http_client
        self._logger = logger
        self._poller = poller or Poller(http_client, logger)
        self._body_methods = body_methods

    async def execute(
        self,
        step: RestStep,
        settings: DemoSettings,
        variables: Dict[str, Any],
        cancel: Optional[CancellationToken] = None,
        logger: Optional[LoggerPort] = None,
    ) -> RestExecutionResult:
        logger = logger or self._logger
        if step.id:
            logger = logger.bind(step_id=step.id)

        method, endpoint_template = split_rest_line(step.rest)
        self._warn_unresolved(step, variables, logger)

        endpoint = substitute_variables(endpoint_template, variables)
        base_url = substitute_variables(step.base_url or settings.base_url or "", variables)
        url = f"{base_url}{endpoint}"

        headers = build_headers(step.headers, variables)

        body = self._build_body(step, method, variables)
        payload = json.dumps(body, ensure_ascii=False) if body is not None else None

        logger.info(
            "rest.request",
            method=method,
            url=url,
            headers=mask_dict(headers),
            body=mask_body(body),
        )
        t0 = time.perf_counter()

        resp = await self._http.request(method, url, headers=headers, body=payload)
        response_body = parse_json_body(resp.text)

        logger.info(
            "rest.response",
            status=resp.status,
            parsed=response_body is not None,
            elapsed_ms=int((time.perf_counter() - t0) * 1000),
        )

        # ポーリングより前に束縛する（poll.endpoint が $jobId などを参照できるように）
        bound = apply_save_mapping(step.save, resp.status, response_body, variables)
        if bound:
            logger.info("rest.variables_saved", names=sorted(bound))

        result = RestExecutionResult(
            request=ResolvedRequest(method=method, url=url, headers=headers, body=body),
            status=resp.status,
            body=response_body,
        )

        if step.poll is None:
            return result

        polling = await self._poller.poll(
            step.poll,
            base_url=base_url,
            headers=headers,
            variables=variables,
            defaults=settings.polling,
            cancel=cancel,
            logger=logger,
        )
        return RestExecutionResult(
            request=result.request,
            status=result.status,
            body=polling.final_response,
            polling=polling,
        )

    def _build_body(self, step: RestStep, method: str, variables: Dict[str, Any]) -> Any:
        if not method_supports_body(method, self._body_methods):
            return None
        if step.form is not None:
            out: Dict[str, Any] = {}
            for f in step.form:
                value = "" if f.default is None else f.default
                out[f.name] = substitute_variables(value, variables) if isinstance(value, str) else value
            return out
        if step.body is not None:
            return substitute_in_object(step.body, variables)
        return None

    def _warn_unresolved(self, step: RestStep, variables: Dict[str, Any], logger: LoggerPort) -> None:
        used = find_variables_in_object([step.rest, step.headers or {}, step.body, step.base_url or ""])
        missing = find_missing_variables(used, variables)
        if missing:
            logger.warning("rest.unresolved_variables", names=missing)
