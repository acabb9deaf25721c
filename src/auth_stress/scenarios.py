"""Named authentication scenarios.

Each builder turns harness settings into a ScenarioConfig; scenario
behavior lives entirely in the payload builder and thresholds.
"""

import time
from collections.abc import Callable
from typing import Any

from auth_stress.config import StressSettings
from auth_stress.models import Precondition, ScenarioConfig, ThresholdMode

TEST_PASSWORD = "TestPass123!"

LOGIN_EMAIL = "logintest@test.com"
LOGIN_FULL_NAME = "Login Test User"


def register_payload(index: int) -> dict[str, Any]:
    """Registration body with an email unique per index and per run."""
    timestamp = int(time.time() * 1000)
    return {
        "email": f"testuser{index}_{timestamp}@test.com",
        "password": TEST_PASSWORD,
        "fullName": f"Test User {index}",
        "roles": "user",
    }


def login_payload(index: int) -> dict[str, Any]:
    return {"email": LOGIN_EMAIL, "password": TEST_PASSWORD}


def invalid_credentials_payload(index: int) -> dict[str, Any]:
    return {"email": "nonexistent@test.com", "password": "WrongPassword123!"}


def malformed_payload(index: int) -> dict[str, Any]:
    # invalid email format and a password below any sane minimum length
    return {"email": "invalid-email", "password": "123"}


def register_flood(settings: StressSettings) -> ScenarioConfig:
    return ScenarioConfig(
        name="register",
        target_path="/register",
        concurrent_groups=settings.concurrent_groups,
        requests_per_group=settings.requests_per_group,
        payload_builder=register_payload,
        inter_request_delay_ms=settings.register_delay_ms,
        success_rate_floor_percent=settings.register_success_floor,
        wall_clock_ceiling_ms=settings.register_ceiling_ms,
    )


def login_flood(settings: StressSettings) -> ScenarioConfig:
    return ScenarioConfig(
        name="login",
        target_path="/login",
        concurrent_groups=settings.concurrent_groups,
        requests_per_group=settings.requests_per_group,
        payload_builder=login_payload,
        inter_request_delay_ms=settings.login_delay_ms,
        success_rate_floor_percent=settings.login_success_floor,
        wall_clock_ceiling_ms=settings.login_ceiling_ms,
        expects_token=True,
        precondition=Precondition(
            path="/register",
            payload={
                "email": LOGIN_EMAIL,
                "password": TEST_PASSWORD,
                "fullName": LOGIN_FULL_NAME,
                "roles": "user",
            },
        ),
    )


def login_invalid_credentials(settings: StressSettings) -> ScenarioConfig:
    return ScenarioConfig(
        name="login-invalid-credentials",
        target_path="/login",
        concurrent_groups=settings.concurrent_groups,
        requests_per_group=settings.requests_per_group,
        payload_builder=invalid_credentials_payload,
        threshold_mode=ThresholdMode.EXACTLY_ZERO,
        wall_clock_ceiling_ms=settings.invalid_credentials_ceiling_ms,
    )


def login_malformed_payload(settings: StressSettings) -> ScenarioConfig:
    return ScenarioConfig(
        name="login-malformed-payload",
        target_path="/login",
        concurrent_groups=settings.concurrent_groups,
        requests_per_group=settings.requests_per_group,
        payload_builder=malformed_payload,
        threshold_mode=ThresholdMode.EXACTLY_ZERO,
        wall_clock_ceiling_ms=settings.malformed_payload_ceiling_ms,
    )


SCENARIO_BUILDERS: dict[str, Callable[[StressSettings], ScenarioConfig]] = {
    "register": register_flood,
    "login": login_flood,
    "login-invalid-credentials": login_invalid_credentials,
    "login-malformed-payload": login_malformed_payload,
}


def default_scenarios(settings: StressSettings) -> list[ScenarioConfig]:
    """Return every named scenario, in run order."""
    return [builder(settings) for builder in SCENARIO_BUILDERS.values()]
