"""Harness data models.

Pydantic models for per-request outcomes, scenario configuration,
aggregate statistics and scenario verdicts.
"""

from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PayloadBuilder = Callable[[int], dict[str, Any]]


class ThresholdMode(StrEnum):
    """How the success rate is compared against the floor."""

    AT_LEAST = "at_least"
    EXACTLY_ZERO = "exactly_zero"


class ScenarioState(StrEnum):
    """Lifecycle of a single scenario run."""

    NOT_STARTED = "not_started"
    DISPATCHING = "dispatching"
    AGGREGATING = "aggregating"
    EVALUATED = "evaluated"


class RequestOutcome(BaseModel):
    """Result of one completed request attempt.

    Attributes:
        succeeded: True for a 2xx response
        sequence_index: Slot index within the batch (0..total-1)
        elapsed_ms: Milliseconds since the batch started, at completion
        latency_ms: Duration of this request alone
        status_code: HTTP status, None on transport failure
        error_message: Failure description, None on success
        has_token: Token presence for token-bearing scenarios, None otherwise
    """

    model_config = ConfigDict(frozen=True)

    succeeded: bool
    sequence_index: int
    elapsed_ms: int
    latency_ms: float = 0.0
    status_code: int | None = None
    error_message: str | None = None
    has_token: bool | None = None


class Precondition(BaseModel):
    """One-time setup call issued before a scenario dispatches."""

    model_config = ConfigDict(frozen=True)

    path: str
    payload: dict[str, Any]


class ScenarioConfig(BaseModel):
    """A named, configured batch of concurrent requests.

    Counts and thresholds are checked by the dispatcher, which raises
    ConfigurationError before anything is sent.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    target_path: str
    concurrent_groups: int
    requests_per_group: int
    payload_builder: PayloadBuilder
    success_rate_floor_percent: float = 0.0
    wall_clock_ceiling_ms: int = 30000
    inter_request_delay_ms: int = 0
    threshold_mode: ThresholdMode = ThresholdMode.AT_LEAST
    expects_token: bool = False
    token_field: str = "token"
    precondition: Precondition | None = None
    max_in_flight: int | None = None

    @property
    def total_requests(self) -> int:
        return self.concurrent_groups * self.requests_per_group


class AggregateResult(BaseModel):
    """Summary statistics over the outcomes of one run."""

    model_config = ConfigDict(frozen=True)

    success_count: int = 0
    error_count: int = 0
    total_elapsed_ms: int = 0
    average_response_time_ms: float = 0.0
    p95_response_time_ms: float = 0.0
    token_missing_count: int = 0
    error_samples: list[RequestOutcome] = Field(default_factory=list)

    @property
    def total_requests(self) -> int:
        return self.success_count + self.error_count

    @property
    def success_rate_percent(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return 100.0 * self.success_count / self.total_requests

    @property
    def requests_per_second(self) -> float:
        if self.total_elapsed_ms <= 0:
            return 0.0
        return self.total_requests / (self.total_elapsed_ms / 1000.0)


class ScenarioVerdict(BaseModel):
    """Pass/fail judgment for one scenario run.

    Attributes:
        scenario: Scenario name
        aggregate: Statistics the judgment was made on
        passed: True when every threshold was met
        reasons: One human-readable line per check, in evaluation order
    """

    model_config = ConfigDict(frozen=True)

    scenario: str
    aggregate: AggregateResult
    passed: bool
    reasons: list[str] = Field(default_factory=list)
