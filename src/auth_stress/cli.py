"""Command-line entry point.

Usage:
    auth-stress run                      # all scenarios
    auth-stress run --scenario login     # one scenario
    auth-stress probe --base-url http://localhost:3001/auth
"""

import argparse
import asyncio
import sys

from pydantic import ValidationError

from auth_stress.client import TargetClient
from auth_stress.config import StressSettings
from auth_stress.exceptions import ConfigurationError
from auth_stress.logging import configure_logging, get_logger
from auth_stress.probe import probe_target
from auth_stress.report import print_report
from auth_stress.runner import ScenarioRunner
from auth_stress.scenarios import SCENARIO_BUILDERS

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="auth-stress", description="Concurrent load harness for auth endpoints"
    )
    parser.add_argument("--log-level", default=None, help="Logging level (overrides STRESS_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run stress scenarios")
    run_parser.add_argument(
        "--scenario",
        action="append",
        choices=sorted(SCENARIO_BUILDERS),
        help="Scenario to run (repeatable, default: all)",
    )
    run_parser.add_argument("--base-url", default=None)
    run_parser.add_argument("--groups", type=int, default=None, help="Concurrent groups")
    run_parser.add_argument("--requests", type=int, default=None, help="Requests per group")
    run_parser.add_argument(
        "--no-pause", action="store_true", help="Do not pause between scenarios"
    )

    probe_parser = subparsers.add_parser("probe", help="Check connectivity to the target")
    probe_parser.add_argument("--base-url", default=None)

    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> StressSettings:
    overrides = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if getattr(args, "base_url", None):
        overrides["base_url"] = args.base_url
    if getattr(args, "groups", None) is not None:
        overrides["concurrent_groups"] = args.groups
    if getattr(args, "requests", None) is not None:
        overrides["requests_per_group"] = args.requests
    if getattr(args, "no_pause", False):
        overrides["pause_between_scenarios_ms"] = 0
    try:
        return StressSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


async def run_scenarios(settings: StressSettings, names: list[str] | None) -> int:
    selected = names or list(SCENARIO_BUILDERS)
    configs = [SCENARIO_BUILDERS[name](settings) for name in selected]

    if settings.startup_wait_ms > 0:
        await asyncio.sleep(settings.startup_wait_ms / 1000.0)

    async with TargetClient(
        base_url=settings.base_url,
        timeout=settings.request_timeout,
        max_connections=settings.max_connections,
    ) as client:
        verdicts = await ScenarioRunner(client).run_all(
            configs, pause_between_ms=settings.pause_between_scenarios_ms
        )

    print_report(verdicts)
    return EXIT_OK if all(v.passed for v in verdicts) else EXIT_FAILED


async def run_probe(settings: StressSettings) -> int:
    async with TargetClient(base_url=settings.base_url, timeout=settings.request_timeout) as client:
        steps = await probe_target(client, settings.root_url)

    for step in steps:
        status = step.status_code if step.status_code is not None else "N/A"
        print(f"[{'OK' if step.ok else 'FAIL'}] {step.name}: status={status} {step.detail}")
    return EXIT_OK if steps and all(step.ok for step in steps) else EXIT_FAILED


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = build_settings(args)
        configure_logging(settings.env, settings.log_level)
        if args.command == "probe":
            return asyncio.run(run_probe(settings))
        return asyncio.run(run_scenarios(settings, args.scenario))
    except ConfigurationError as e:
        logger.error("configuration_error", error=e.message)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
