"""auth-stress: concurrent load harness for authentication endpoints.

Fires batches of concurrent register/login requests at an auth service and
judges each batch against a success-rate floor and a wall-clock ceiling.

Main components:
    - ResultRecorder: thread-safe outcome accumulator
    - RequestDispatcher: concurrent fan-out/join of one batch
    - ScenarioRunner: threshold evaluation of a scenario run
    - TargetClient: HTTP client of the service under test
    - StressSettings: environment-driven settings

Example:
    >>> import asyncio
    >>> from auth_stress import ScenarioRunner, StressSettings, TargetClient
    >>> from auth_stress.scenarios import register_flood
    >>>
    >>> async def main():
    ...     settings = StressSettings()
    ...     async with TargetClient(base_url=settings.base_url) as client:
    ...         return await ScenarioRunner(client).run(register_flood(settings))
    >>> verdict = asyncio.run(main())
"""

from auth_stress.client import TargetClient
from auth_stress.config import StressSettings
from auth_stress.dispatcher import RequestDispatcher
from auth_stress.exceptions import ConfigurationError, StressHarnessError, TargetUnavailableError
from auth_stress.models import (
    AggregateResult,
    RequestOutcome,
    ScenarioConfig,
    ScenarioVerdict,
    ThresholdMode,
)
from auth_stress.recorder import ResultRecorder
from auth_stress.runner import ScenarioRunner

__all__ = [
    "AggregateResult",
    "ConfigurationError",
    "RequestDispatcher",
    "RequestOutcome",
    "ResultRecorder",
    "ScenarioConfig",
    "ScenarioRunner",
    "ScenarioVerdict",
    "StressHarnessError",
    "StressSettings",
    "TargetClient",
    "TargetUnavailableError",
    "ThresholdMode",
]
