# application/executor/demo_runner.py
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from application.exceptions import DemoExecutionError
from application.executor.step_executor import StepExecutor
from application.outcome import RestExecutionResult
from application.ports.logger import LoggerPort
from application.services.poller import CancellationToken
from domain.demo import Demo
from domain.run import RunContext


@dataclass(frozen=True)
class RunResult:
    ok: bool
    failed_step_id: Optional[str] = None
    error_message: Optional[str] = None
    error: Optional[DemoExecutionError] = None
    results: List[RestExecutionResult] = field(default_factory=list)


class DemoRunner:
    """
    ステップを 1 つずつ順番に実行する。前のステップ（ポーリング含む）が
    終わるまで次のステップは始めない。
    """

    def __init__(self, step_executor: StepExecutor):
        self._executor = step_executor

    async def run(
        self,
        demo: Demo,
        ctx: RunContext,
        logger: LoggerPort,
        cancel: Optional[CancellationToken] = None,
    ) -> RunResult:
        if not ctx.run_id:
            ctx.run_id = uuid.uuid4().hex

        logger = logger.bind(run_id=ctx.run_id)
        results: List[RestExecutionResult] = []

        for index, step in enumerate(demo.steps):
            step_id = step.id or f"step-{index + 1}"
            logger.info("step.start", step_id=step_id, rest=step.rest)
            t0 = time.perf_counter()

            try:
                result = await self._executor.execute(
                    step, demo.settings, ctx.vars, cancel=cancel, logger=logger
                )
            except DemoExecutionError as e:
                logger.error(
                    "step.failed",
                    step_id=step_id,
                    error=str(e),
                    elapsed_ms=int((time.perf_counter() - t0) * 1000),
                )
                return RunResult(
                    ok=False,
                    failed_step_id=step_id,
                    error_message=str(e),
                    error=e,
                    results=results,
                )

            results.append(result)
            ctx.results.append(result)
            logger.info(
                "step.end",
                step_id=step_id,
                status=result.status,
                elapsed_ms=int((time.perf_counter() - t0) * 1000),
            )

        return RunResult(ok=True, results=results)
