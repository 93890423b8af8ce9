#!/usr/bin/env python3
"""
Demo execution script

Usage:
  python scripts/run_demo.py <demo.yaml> [--vars <json>] [--base-url <url>]

Examples:
  python scripts/run_demo.py demos/orders.yaml
  python scripts/run_demo.py demos/orders.yaml --vars '{"customerId":"c-1"}' --base-url http://localhost:3000
"""
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from application.executor.demo_runner import DemoRunner, RunResult
from application.executor.step_executor import StepExecutor
from application.ports.requests_client import RequestsSessionHttpClient
from domain.demo import Demo
from domain.run import RunContext
from infrastructure.demo.yaml_loader import DemoLoadError, YamlDemoLoader
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.log_setup import setup_console_logging


def _parse_json_payload(raw: str, label: str) -> dict:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON for {label}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"{label} must be a JSON object")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the REST steps of a demo file")
    parser.add_argument("demo_file", type=str)
    parser.add_argument("--vars", type=str, help="Initial variables as a JSON object")
    parser.add_argument("--base-url", type=str, help="Override settings.base_url")
    return parser


def _load_demo(path: str, base_url: str | None) -> Demo:
    try:
        demo = YamlDemoLoader().load_from_file(path)
    except DemoLoadError as e:
        raise ValueError(f"Failed to load demo: {e}") from e
    if base_url:
        settings = dataclasses.replace(demo.settings, base_url=base_url)
        demo = dataclasses.replace(demo, settings=settings)
    return demo


async def _run(demo: Demo, ctx: RunContext) -> RunResult:
    http_client = RequestsSessionHttpClient()
    logger = ConsoleLogger()
    try:
        runner = DemoRunner(StepExecutor(http_client, logger))
        return await runner.run(demo, ctx, logger)
    finally:
        http_client.close()


def _run_local(args: argparse.Namespace) -> int:
    base_url = args.base_url or os.getenv("DEMO_BASE_URL")
    demo = _load_demo(args.demo_file, base_url)
    variables = _parse_json_payload(args.vars, "vars") if args.vars else {}

    print(f"Demo: {demo.title or args.demo_file}")
    print(f"Steps: {len(demo.steps)}")

    ctx = RunContext(vars=variables)

    print("\n=== Executing ===\n")
    result = asyncio.run(_run(demo, ctx))

    print("\n=== Result ===")
    print(f"Run ID: {ctx.run_id}")
    for step, step_result in zip(demo.steps, result.results):
        polled = f" (polled {step_result.polling.attempts}x)" if step_result.polling else ""
        print(f"  {step.id}: {step_result.request.method} {step_result.request.url} -> {step_result.status}{polled}")
    print(f"Success: {result.ok}")
    if not result.ok:
        print(f"Failed Step: {result.failed_step_id}")
        print(f"Error: {result.error_message}")

    print(f"Variables: {json.dumps(ctx.vars, indent=2, ensure_ascii=False, default=str)}")
    return 0 if result.ok else 1


def main() -> None:
    load_dotenv()
    setup_console_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:])

    try:
        exit_code = _run_local(args)
    except ValueError as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
