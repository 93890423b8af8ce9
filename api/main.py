"""FastAPI アプリケーション - REST API エンドポイント"""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

import sys

# プロジェクトルートをPythonパスに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from infrastructure.demo.yaml_loader import DemoLoadError, YamlDemoLoader
from infrastructure.logging.composite_logger import CompositeLogger
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.run_log_logger import RunLogLogger
from infrastructure.run.in_memory_run_log_store import InMemoryRunLogStore
from application.exceptions import DemoExecutionError, TransportError
from application.executor.demo_runner import DemoRunner
from application.executor.step_executor import StepExecutor, method_supports_body
from application.ports.requests_client import RequestsSessionHttpClient
from application.services.execution_error_builder import ExecutionErrorBuilder
from application.services.response_binding import parse_json_body
from domain.run import RunContext


class ProxyRequest(BaseModel):
    """RESTプロキシリクエスト"""
    method: Optional[str] = Field(default=None, description="HTTP method")
    url: Optional[str] = Field(default=None, description="Absolute URL or path on this server")
    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")
    body: Any = Field(default=None, description="JSON body (body-capable methods only)")


class ErrorDetailResponse(BaseModel):
    """Structured error detail"""
    code: str = Field(description="Error code")
    message: str = Field(description="Error message")
    step_id: Optional[str] = Field(default=None, description="Failed step id")
    attempts: Optional[int] = Field(default=None, description="Poll attempts when the error fired")


class ExecuteStepRequest(BaseModel):
    """単一ステップ実行リクエスト"""
    step: Dict[str, Any] = Field(description="REST step definition")
    settings: Dict[str, Any] = Field(default_factory=dict, description="Run-level settings")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Current variable store")


class ExecuteStepResponse(BaseModel):
    success: bool = Field(description="実行成功フラグ")
    result: Optional[Dict[str, Any]] = Field(default=None, description="Execution result")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Variable store after the step")
    error: Optional[str] = Field(default=None, description="エラーメッセージ")
    error_detail: Optional[ErrorDetailResponse] = Field(default=None, description="Structured error detail")


class RunDemoRequest(BaseModel):
    """デモ実行リクエスト"""
    demo: Dict[str, Any] = Field(description="Demo document (title, settings, steps)")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Initial variables")


class RunDemoResponse(BaseModel):
    success: bool = Field(description="実行成功フラグ")
    run_id: str = Field(description="Run identifier")
    results: List[Dict[str, Any]] = Field(default_factory=list, description="Per-step results")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Final variable store")
    failed_step_id: Optional[str] = Field(default=None, description="Failed step id")
    error: Optional[str] = Field(default=None, description="エラーメッセージ")
    error_detail: Optional[ErrorDetailResponse] = Field(default=None, description="Structured error detail")


class RunLogEntryResponse(BaseModel):
    """Run log entry"""
    timestamp: datetime = Field(description="Log timestamp")
    level: str = Field(description="Log level")
    event: str = Field(description="Log event name")
    step_id: Optional[str] = Field(default=None, description="Step the event belongs to")
    fields: Dict[str, Any] = Field(description="Log payload")


# FastAPIアプリケーション
app = FastAPI(
    title="Demo Step Runner",
    description="REST デモのステップ実行エンジン",
    version="1.0.0"
)

# 設定
HTTP_CLIENT = RequestsSessionHttpClient()
RUN_LOG_STORE = InMemoryRunLogStore()
LOADER = YamlDemoLoader()


@app.get("/")
def read_root():
    """ヘルスチェック"""
    return {"status": "ok", "service": "demo-runner"}


def _build_logger(run_id: str) -> CompositeLogger:
    return CompositeLogger(
        [
            ConsoleLogger(),
            RunLogLogger(run_id=run_id, log_store=RUN_LOG_STORE),
        ]
    )


@app.post("/api/rest")
async def proxy_rest(http_request: Request, payload: ProxyRequest = Body(...)):
    """
    ブラウザからの REST 呼び出しを中継する。
    相対 URL（"/..."）はこのサーバー自身に向ける。
    """
    if not payload.method or not payload.url:
        return JSONResponse(status_code=400, content={"error": "Missing method or url"})

    url = payload.url
    if url.startswith("/"):
        url = str(http_request.base_url).rstrip("/") + url

    headers = {"Content-Type": "application/json"}
    headers.update(payload.headers)

    body = None
    if payload.body is not None and method_supports_body(payload.method):
        body = json.dumps(payload.body, ensure_ascii=False)

    try:
        resp = await HTTP_CLIENT.request(payload.method.upper(), url, headers=headers, body=body)
    except TransportError as e:
        ConsoleLogger().error("proxy.request_failed", method=payload.method, url=url, error=str(e))
        return JSONResponse(status_code=500, content={"error": str(e)})

    return {"status": resp.status, "data": parse_json_body(resp.text)}


@app.post("/api/steps/execute", response_model=ExecuteStepResponse)
async def execute_step(request: ExecuteStepRequest = Body(...)) -> ExecuteStepResponse:
    """
    1 ステップを実行し、更新後の変数ストアと一緒に結果を返す
    """
    try:
        step = LOADER.load_step(request.step, default_id="step")
        settings = LOADER.load_settings(request.settings)
    except DemoLoadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    variables = dict(request.variables)
    logger = ConsoleLogger().bind(request_id=uuid4().hex)
    executor = StepExecutor(HTTP_CLIENT, logger)

    try:
        result = await executor.execute(step, settings, variables)
    except DemoExecutionError as e:
        detail = ExecutionErrorBuilder().build_from_exception(e, step_id=step.id)
        return ExecuteStepResponse(
            success=False,
            variables=variables,
            error=detail.message,
            error_detail=ErrorDetailResponse(**detail.__dict__),
        )

    return ExecuteStepResponse(success=True, result=result.to_dict(), variables=variables)


@app.post("/api/demos/run", response_model=RunDemoResponse)
async def run_demo(request: RunDemoRequest = Body(...)) -> RunDemoResponse:
    """
    デモ全体を順番に実行する（失敗したステップで停止）
    """
    try:
        demo = LOADER.load_from_dict(request.demo)
    except DemoLoadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    run_id = uuid4().hex
    logger = _build_logger(run_id)
    ctx = RunContext(run_id=run_id, vars=dict(request.variables))
    runner = DemoRunner(StepExecutor(HTTP_CLIENT, logger))

    logger.info("run.start", run_id=run_id, title=demo.title, steps=len(demo.steps))
    outcome = await runner.run(demo, ctx, logger)
    logger.info("run.end", run_id=run_id, ok=outcome.ok)

    response = RunDemoResponse(
        success=outcome.ok,
        run_id=run_id,
        results=[r.to_dict() for r in outcome.results],
        variables=ctx.vars,
        failed_step_id=outcome.failed_step_id,
    )
    if outcome.error is not None:
        detail = ExecutionErrorBuilder().build_from_exception(outcome.error, step_id=outcome.failed_step_id)
        response.error = detail.message
        response.error_detail = ErrorDetailResponse(**detail.__dict__)
    return response


@app.get("/runs", response_model=List[str])
def list_runs() -> List[str]:
    """ログが残っている run の一覧（古い順）"""
    return RUN_LOG_STORE.run_ids()


@app.get("/runs/{run_id}/logs", response_model=List[RunLogEntryResponse])
def get_run_logs(run_id: str, step_id: Optional[str] = None) -> List[RunLogEntryResponse]:
    if not RUN_LOG_STORE.has_run(run_id):
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    return [
        RunLogEntryResponse(
            timestamp=entry.timestamp,
            level=entry.level,
            event=entry.event,
            step_id=entry.step_id,
            fields=entry.fields,
        )
        for entry in RUN_LOG_STORE.list(run_id)
        if entry.matches_step(step_id)
    ]
