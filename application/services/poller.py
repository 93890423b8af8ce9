# application/services/poller.py
from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from application.exceptions import PollingCancelledError, PollingFailedError, PollingTimeoutError
from application.outcome import PollingResult
from application.ports.http_client import HttpClientPort
from application.ports.logger import LoggerPort
from application.services.response_binding import apply_save_mapping, parse_json_body
from application.services.template_renderer import substitute_variables
from domain.demo import DEFAULT_POLL_INTERVAL_MS, DEFAULT_POLL_MAX_ATTEMPTS, PollingDefaults
from domain.steps.expr import ConditionEvaluator
from domain.steps.rest import PollSpec


class CancellationToken:
    """Lets a run context abort a poll, including one that is mid-wait."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


def is_absolute_url(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")


def resolve_poll_url(endpoint: str, base_url: str) -> str:
    if is_absolute_url(endpoint):
        return endpoint
    return f"{base_url}{endpoint}"


class Poller:
    """
    状態: Polling -> Success | Failure | Timeout（いずれも終端）。
    毎回 success_when を先に評価し、その後 failure_when を評価する。
    """

    def __init__(
        self,
        http_client: HttpClientPort,
        logger: LoggerPort,
        evaluator: Optional[ConditionEvaluator] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._http = http_client
        self._logger = logger
        self._evaluator = evaluator or ConditionEvaluator(logger=logger)
        self._sleep = sleep

    async def poll(
        self,
        spec: PollSpec,
        base_url: str,
        headers: Dict[str, str],
        variables: Dict[str, Any],
        defaults: Optional[PollingDefaults] = None,
        cancel: Optional[CancellationToken] = None,
        logger: Optional[LoggerPort] = None,
    ) -> PollingResult:
        # 呼び出し側で run_id / step_id を bind したロガーを優先する
        log = logger or self._logger
        defaults = defaults or PollingDefaults()
        interval_ms = _first_set(spec.interval_ms, defaults.interval_ms, DEFAULT_POLL_INTERVAL_MS)
        max_attempts = _first_set(spec.max_attempts, defaults.max_attempts, DEFAULT_POLL_MAX_ATTEMPTS)

        url = resolve_poll_url(substitute_variables(spec.endpoint, variables), base_url)
        log.info(
            "poll.start",
            url=url,
            interval_ms=interval_ms,
            max_attempts=max_attempts,
            success_when=spec.success_when,
            failure_when=spec.failure_when,
        )

        attempts = 0
        last_response: Any = None
        while attempts < max_attempts:
            if cancel is not None and cancel.cancelled:
                log.info("poll.cancelled", attempts=attempts)
                raise PollingCancelledError(attempts, last_response)

            attempts += 1
            t0 = time.perf_counter()
            resp = await self._http.request("GET", url, headers=headers)
            last_response = parse_json_body(resp.text)

            log.debug(
                "poll.attempt",
                attempt=attempts,
                status=resp.status,
                elapsed_ms=int((time.perf_counter() - t0) * 1000),
            )

            if self._evaluator.matches(spec.success_when, last_response, logger=log):
                log.info("poll.succeeded", attempts=attempts)
                bound = apply_save_mapping(spec.save, resp.status, last_response, variables)
                if bound:
                    log.info("poll.variables_saved", names=sorted(bound))
                return PollingResult(attempts=attempts, final_response=last_response, status=resp.status)

            if spec.failure_when and self._evaluator.matches(spec.failure_when, last_response, logger=log):
                log.error("poll.failed", attempts=attempts, condition=spec.failure_when)
                raise PollingFailedError(spec.failure_when, attempts, last_response)

            if attempts < max_attempts:
                await self._pause(interval_ms / 1000.0, cancel, attempts, last_response, log)

        log.error("poll.timeout", max_attempts=max_attempts)
        raise PollingTimeoutError(max_attempts, last_response)

    async def _pause(
        self,
        seconds: float,
        cancel: Optional[CancellationToken],
        attempts: int,
        last_response: Any,
        log: LoggerPort,
    ) -> None:
        if cancel is None:
            await self._sleep(seconds)
            return
        try:
            await asyncio.wait_for(cancel.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        log.info("poll.cancelled", attempts=attempts)
        raise PollingCancelledError(attempts, last_response)


def _first_set(*values: Optional[int]) -> int:
    for v in values:
        if v is not None:
            return v
    raise ValueError("no value set")
