"""Connectivity probe.

Walks the target from the service root down to a register/login round
trip, so a failing scenario can be told apart from an unreachable service.
"""

import httpx
from pydantic import BaseModel

from auth_stress.client import TargetClient, response_has_token
from auth_stress.exceptions import TargetUnavailableError
from auth_stress.logging import get_logger

logger = get_logger(__name__)

GET_TIMEOUT = 5.0
POST_TIMEOUT = 10.0

DEBUG_EMAIL = "debug@test.com"
DEBUG_PASSWORD = "DebugTest123!"


class ProbeStep(BaseModel):
    """Result of one probe step."""

    name: str
    ok: bool
    status_code: int | None = None
    detail: str = ""


def _failed_step(name: str, error: Exception) -> ProbeStep:
    return ProbeStep(name=name, ok=False, detail=str(error) or type(error).__name__)


async def probe_target(client: TargetClient, root_url: str) -> list[ProbeStep]:
    """Run the probe steps in order.

    A refused connection on the first step ends the probe; later steps run
    regardless of earlier failures.

    Args:
        client: Client bound to the auth base URL
        root_url: Service root URL

    Returns:
        One ProbeStep per attempted step
    """
    steps: list[ProbeStep] = []

    try:
        response = await client.get(root_url, timeout=GET_TIMEOUT)
        steps.append(
            ProbeStep(name="root", ok=True, status_code=response.status_code, detail="server responds")
        )
    except httpx.ConnectError as e:
        steps.append(_failed_step("root", e))
        logger.error("probe_connection_refused", url=root_url)
        return steps
    except httpx.HTTPError as e:
        steps.append(_failed_step("root", e))

    try:
        response = await client.get(client.base_url, timeout=GET_TIMEOUT)
        steps.append(
            ProbeStep(
                name="auth-prefix",
                ok=response.is_success,
                status_code=response.status_code,
                detail="auth routes respond",
            )
        )
    except httpx.HTTPError as e:
        steps.append(_failed_step("auth-prefix", e))

    try:
        response = await client.register(
            DEBUG_EMAIL, DEBUG_PASSWORD, "Debug User", timeout=POST_TIMEOUT
        )
        # 409 on repeated probes: the debug account is already there
        already_exists = response.status_code == httpx.codes.CONFLICT
        steps.append(
            ProbeStep(
                name="register",
                ok=response.is_success or already_exists,
                status_code=response.status_code,
                detail="account already exists" if already_exists else response.text[:200],
            )
        )
    except (TargetUnavailableError, httpx.HTTPError) as e:
        steps.append(_failed_step("register", e))

    try:
        response = await client.login(DEBUG_EMAIL, DEBUG_PASSWORD, timeout=POST_TIMEOUT)
        has_token = response.is_success and response_has_token(response)
        steps.append(
            ProbeStep(
                name="login",
                ok=has_token,
                status_code=response.status_code,
                detail=f"token present: {has_token}",
            )
        )
    except (TargetUnavailableError, httpx.HTTPError) as e:
        steps.append(_failed_step("login", e))

    for step in steps:
        logger.info("probe_step", step=step.name, ok=step.ok, status_code=step.status_code)
    return steps
