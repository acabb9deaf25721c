"""Scenario runner.

Runs a scenario through the dispatcher and judges the aggregate against
the scenario's success-rate floor and wall-clock ceiling.
"""

import asyncio
from collections.abc import Iterable

import httpx

from auth_stress.client import TargetClient
from auth_stress.dispatcher import RequestDispatcher
from auth_stress.exceptions import StressHarnessError
from auth_stress.logging import get_logger
from auth_stress.models import (
    AggregateResult,
    ScenarioConfig,
    ScenarioState,
    ScenarioVerdict,
    ThresholdMode,
)

logger = get_logger(__name__)


def evaluate(config: ScenarioConfig, aggregate: AggregateResult) -> ScenarioVerdict:
    """Judge an aggregate against the scenario's thresholds.

    Args:
        config: Scenario that produced the aggregate
        aggregate: Statistics of the finished run

    Returns:
        Verdict with one reason per check, in evaluation order
    """
    reasons: list[str] = []
    passed = True
    rate = aggregate.success_rate_percent

    if config.threshold_mode is ThresholdMode.EXACTLY_ZERO:
        if rate == 0.0 and aggregate.error_count == aggregate.total_requests:
            reasons.append(
                f"success rate 0.00% with {aggregate.error_count}/{aggregate.total_requests} "
                "errors, all requests rejected as expected"
            )
        else:
            passed = False
            reasons.append(
                f"expected every request to fail, but {aggregate.success_count}/"
                f"{aggregate.total_requests} succeeded ({rate:.2f}%)"
            )
    elif rate >= config.success_rate_floor_percent:
        reasons.append(
            f"success rate {rate:.2f}% meets floor {config.success_rate_floor_percent:.2f}%"
        )
    else:
        passed = False
        reasons.append(
            f"success rate {rate:.2f}% below floor {config.success_rate_floor_percent:.2f}%"
        )

    if config.expects_token:
        if aggregate.token_missing_count == 0:
            reasons.append(f"all {aggregate.success_count} successful responses carried a token")
        else:
            passed = False
            reasons.append(
                f"{aggregate.token_missing_count} successful responses lacked "
                f"'{config.token_field}'"
            )

    if aggregate.total_elapsed_ms < config.wall_clock_ceiling_ms:
        reasons.append(
            f"total time {aggregate.total_elapsed_ms}ms under ceiling "
            f"{config.wall_clock_ceiling_ms}ms"
        )
    else:
        passed = False
        reasons.append(
            f"total time {aggregate.total_elapsed_ms}ms exceeds ceiling "
            f"{config.wall_clock_ceiling_ms}ms"
        )

    return ScenarioVerdict(
        scenario=config.name, aggregate=aggregate, passed=passed, reasons=reasons
    )


class ScenarioRun:
    """A single run of one scenario.

    Moves strictly through NOT_STARTED -> DISPATCHING -> AGGREGATING ->
    EVALUATED and cannot be started twice.
    """

    def __init__(self, config: ScenarioConfig, client: TargetClient) -> None:
        self.config = config
        self.client = client
        self.state = ScenarioState.NOT_STARTED
        self.verdict: ScenarioVerdict | None = None

    async def execute(self) -> ScenarioVerdict:
        if self.state is not ScenarioState.NOT_STARTED:
            raise StressHarnessError(
                f"Scenario run '{self.config.name}' already {self.state.value}"
            )

        # config errors surface here, before the precondition touches the target
        dispatcher = RequestDispatcher(self.client)
        payloads = dispatcher.prepare(self.config)

        self.state = ScenarioState.DISPATCHING
        await self._ensure_precondition()
        aggregate = await dispatcher.dispatch(self.config, payloads=payloads)

        self.state = ScenarioState.AGGREGATING
        verdict = evaluate(self.config, aggregate)

        self.state = ScenarioState.EVALUATED
        self.verdict = verdict
        logger.info(
            "scenario_evaluated",
            scenario=self.config.name,
            passed=verdict.passed,
            success_rate=round(aggregate.success_rate_percent, 2),
            total_elapsed_ms=aggregate.total_elapsed_ms,
        )
        return verdict

    async def _ensure_precondition(self) -> None:
        """Issue the scenario's setup call once.

        A rejection (typically "already exists") or an unreachable target is
        logged and treated as the precondition being satisfied.
        """
        precondition = self.config.precondition
        if precondition is None:
            return

        try:
            response = await self.client.post(precondition.path, precondition.payload)
        except httpx.HTTPError as e:
            logger.warning(
                "precondition_unreachable",
                scenario=self.config.name,
                path=precondition.path,
                error=str(e) or type(e).__name__,
            )
            return

        if response.is_success:
            logger.info(
                "precondition_created",
                scenario=self.config.name,
                status_code=response.status_code,
            )
        else:
            logger.info(
                "precondition_skipped",
                scenario=self.config.name,
                status_code=response.status_code,
                reason="account assumed present",
            )


class ScenarioRunner:
    """Runs scenarios against one target.

    Args:
        client: Shared target client
    """

    def __init__(self, client: TargetClient) -> None:
        self.client = client

    async def run(self, config: ScenarioConfig) -> ScenarioVerdict:
        """Run one scenario and judge it.

        Raises:
            ConfigurationError: Invalid scenario parameters
        """
        logger.info("scenario_started", scenario=config.name, total_requests=config.total_requests)
        return await ScenarioRun(config, self.client).execute()

    async def run_all(
        self, configs: Iterable[ScenarioConfig], pause_between_ms: int = 0
    ) -> list[ScenarioVerdict]:
        """Run scenarios one after another, pausing between them."""
        verdicts: list[ScenarioVerdict] = []
        for position, config in enumerate(configs):
            if position > 0 and pause_between_ms > 0:
                await asyncio.sleep(pause_between_ms / 1000.0)
            verdicts.append(await self.run(config))
        return verdicts
