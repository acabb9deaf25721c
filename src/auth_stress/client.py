"""Target service HTTP client.

Provides the async HTTP client shared by every request of a run, plus the
register/login helpers used by the connectivity probe.
"""

from types import TracebackType
from typing import Any

import httpx

from auth_stress.exceptions import TargetUnavailableError
from auth_stress.logging import get_logger

logger = get_logger(__name__)


class TargetClient:
    """Async HTTP client of the auth service under test.

    Args:
        base_url: Base URL of the auth routes
        timeout: Per-request timeout (seconds, default 10.0)
        max_connections: Connection pool limit
        transport: Optional transport override (used by tests)

    Example:
        >>> async with TargetClient(base_url="http://localhost:3001/auth") as client:
        ...     response = await client.post("/login", {"email": "a@b.c", "password": "x"})
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_connections: int = 100,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_connections = max_connections
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Return the underlying httpx.AsyncClient, creating it on first use."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                limits=httpx.Limits(
                    max_connections=self.max_connections,
                    max_keepalive_connections=self.max_connections,
                ),
                transport=self._transport,
            )
        return self._client

    async def __aenter__(self) -> "TargetClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client connections."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def post(
        self, path: str, payload: dict[str, Any], timeout: float | None = None
    ) -> httpx.Response:
        """POST a JSON body to a path below base_url.

        Transport errors propagate as httpx exceptions; the dispatcher turns
        them into error outcomes.
        """
        if timeout is None:
            return await self.client.post(path, json=payload)
        return await self.client.post(path, json=payload, timeout=timeout)

    async def get(self, url: str, timeout: float | None = None) -> httpx.Response:
        """GET a path below base_url, or an absolute URL."""
        if timeout is None:
            return await self.client.get(url)
        return await self.client.get(url, timeout=timeout)

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        roles: str = "user",
        timeout: float | None = None,
    ) -> httpx.Response:
        """Create an account.

        Args:
            email: Account email
            password: Account password
            full_name: Display name
            roles: Role string stored on the account
            timeout: Timeout override for this call (seconds)

        Returns:
            The raw response; non-2xx statuses are not raised

        Raises:
            TargetUnavailableError: The service could not be reached
        """
        payload = {
            "email": email,
            "password": password,
            "fullName": full_name,
            "roles": roles,
        }
        return await self._send("/register", payload, timeout)

    async def login(
        self, email: str, password: str, timeout: float | None = None
    ) -> httpx.Response:
        """Log in with the given credentials.

        Raises:
            TargetUnavailableError: The service could not be reached
        """
        return await self._send("/login", {"email": email, "password": password}, timeout)

    async def _send(
        self, path: str, payload: dict[str, Any], timeout: float | None = None
    ) -> httpx.Response:
        try:
            return await self.post(path, payload, timeout=timeout)
        except httpx.ConnectError as e:
            raise TargetUnavailableError(f"Cannot connect to {self.base_url}") from e
        except httpx.TimeoutException as e:
            effective = timeout if timeout is not None else self.timeout
            raise TargetUnavailableError(
                f"Request to {self.base_url}{path} timed out after {effective}s"
            ) from e


def extract_field(body: Any, field: str) -> Any:
    """Resolve a dotted field path (e.g. ``data.access_token``) in a JSON body."""
    current = body
    for part in field.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def response_has_token(response: httpx.Response, field: str = "token") -> bool:
    """Return whether a response body carries a truthy token field."""
    try:
        body = response.json()
    except ValueError:
        logger.debug("token_body_not_json", status_code=response.status_code)
        return False
    return bool(extract_field(body, field))
