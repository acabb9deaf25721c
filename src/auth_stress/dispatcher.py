"""Request dispatcher.

Fans a scenario's request slots out as concurrent asyncio tasks against the
target service and records exactly one outcome per slot.
"""

import asyncio
import contextlib
import time
from typing import Any

import httpx

from auth_stress.client import TargetClient, response_has_token
from auth_stress.exceptions import ConfigurationError
from auth_stress.logging import get_logger
from auth_stress.models import AggregateResult, RequestOutcome, ScenarioConfig
from auth_stress.recorder import ResultRecorder

logger = get_logger(__name__)


def validate_config(config: ScenarioConfig) -> None:
    """Check a scenario's parameters.

    Raises:
        ConfigurationError: A count, delay or threshold is out of range
    """
    if config.concurrent_groups <= 0:
        raise ConfigurationError(
            f"{config.name}: concurrent_groups must be > 0, got {config.concurrent_groups}"
        )
    if config.requests_per_group <= 0:
        raise ConfigurationError(
            f"{config.name}: requests_per_group must be > 0, got {config.requests_per_group}"
        )
    if config.inter_request_delay_ms < 0:
        raise ConfigurationError(f"{config.name}: inter_request_delay_ms must be >= 0")
    if not 0.0 <= config.success_rate_floor_percent <= 100.0:
        raise ConfigurationError(
            f"{config.name}: success_rate_floor_percent must be within [0, 100]"
        )
    if config.wall_clock_ceiling_ms <= 0:
        raise ConfigurationError(f"{config.name}: wall_clock_ceiling_ms must be > 0")
    if config.max_in_flight is not None and config.max_in_flight <= 0:
        raise ConfigurationError(f"{config.name}: max_in_flight must be > 0")


def build_payloads(config: ScenarioConfig) -> list[dict[str, Any]]:
    """Build the request body of every slot up front.

    Raises:
        ConfigurationError: The payload builder raised for some index
    """
    payloads = []
    for index in range(config.total_requests):
        try:
            payloads.append(config.payload_builder(index))
        except Exception as e:
            raise ConfigurationError(
                f"{config.name}: payload builder failed for index {index}: {e}"
            ) from e
    return payloads


class RequestDispatcher:
    """Issues a scenario's requests concurrently and aggregates the outcomes.

    Args:
        client: Shared target client
    """

    def __init__(self, client: TargetClient) -> None:
        self.client = client

    @staticmethod
    def prepare(config: ScenarioConfig) -> list[dict[str, Any]]:
        """Validate a scenario and build every request body without sending anything.

        Raises:
            ConfigurationError: Invalid parameters or a failing payload builder
        """
        validate_config(config)
        return build_payloads(config)

    async def dispatch(
        self,
        config: ScenarioConfig,
        recorder: ResultRecorder | None = None,
        payloads: list[dict[str, Any]] | None = None,
    ) -> AggregateResult:
        """Run one batch.

        Every slot ends up as exactly one recorded outcome; individual
        failures never abort the batch.

        Args:
            config: Scenario to dispatch
            recorder: Recorder owned by this run (a fresh one when omitted)
            payloads: Bodies from ``prepare`` (built here when omitted)

        Returns:
            Aggregate over all outcomes, read after every request completed

        Raises:
            ConfigurationError: Invalid parameters, raised before any request
        """
        if payloads is None:
            payloads = self.prepare(config)
        elif len(payloads) != config.total_requests:
            raise ConfigurationError(
                f"{config.name}: expected {config.total_requests} payloads, got {len(payloads)}"
            )

        recorder = recorder or ResultRecorder()
        limiter = asyncio.Semaphore(config.max_in_flight) if config.max_in_flight else None
        delay_s = config.inter_request_delay_ms / 1000.0

        logger.info(
            "dispatch_started",
            scenario=config.name,
            path=config.target_path,
            groups=config.concurrent_groups,
            requests_per_group=config.requests_per_group,
            total_requests=config.total_requests,
        )

        recorder.start()
        async with asyncio.TaskGroup() as tg:
            for index, payload in enumerate(payloads):
                if delay_s and index > 0:
                    await asyncio.sleep(delay_s)
                tg.create_task(self._issue(config, index, payload, recorder, limiter))
        recorder.finish()

        aggregate = recorder.snapshot()
        logger.info(
            "dispatch_finished",
            scenario=config.name,
            success_count=aggregate.success_count,
            error_count=aggregate.error_count,
            total_elapsed_ms=aggregate.total_elapsed_ms,
        )
        return aggregate

    async def _issue(
        self,
        config: ScenarioConfig,
        index: int,
        payload: dict[str, Any],
        recorder: ResultRecorder,
        limiter: asyncio.Semaphore | None,
    ) -> None:
        async with limiter if limiter is not None else contextlib.nullcontext():
            started = time.perf_counter()
            try:
                response = await self.client.post(config.target_path, payload)
            except httpx.TimeoutException:
                outcome = self._failure(
                    index, recorder, started, f"timeout of {self.client.timeout}s exceeded"
                )
            except httpx.HTTPError as e:
                outcome = self._failure(index, recorder, started, str(e) or type(e).__name__)
            except Exception as e:
                logger.warning("request_crashed", scenario=config.name, index=index, exc_info=True)
                outcome = self._failure(index, recorder, started, f"{type(e).__name__}: {e}")
            else:
                outcome = self._from_response(config, index, response, recorder, started)

        if not outcome.succeeded:
            logger.debug(
                "request_failed",
                scenario=config.name,
                index=index,
                status_code=outcome.status_code,
                error=outcome.error_message,
            )
        recorder.record(outcome)

    def _from_response(
        self,
        config: ScenarioConfig,
        index: int,
        response: httpx.Response,
        recorder: ResultRecorder,
        started: float,
    ) -> RequestOutcome:
        latency_ms = (time.perf_counter() - started) * 1000
        if response.is_success:
            has_token = None
            if config.expects_token:
                has_token = response_has_token(response, config.token_field)
            return RequestOutcome(
                succeeded=True,
                sequence_index=index,
                elapsed_ms=recorder.elapsed_ms(),
                latency_ms=latency_ms,
                status_code=response.status_code,
                has_token=has_token,
            )
        return RequestOutcome(
            succeeded=False,
            sequence_index=index,
            elapsed_ms=recorder.elapsed_ms(),
            latency_ms=latency_ms,
            status_code=response.status_code,
            error_message=f"Request failed with status code {response.status_code}",
        )

    def _failure(
        self, index: int, recorder: ResultRecorder, started: float, message: str
    ) -> RequestOutcome:
        return RequestOutcome(
            succeeded=False,
            sequence_index=index,
            elapsed_ms=recorder.elapsed_ms(),
            latency_ms=(time.perf_counter() - started) * 1000,
            error_message=message,
        )
