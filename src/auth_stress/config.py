"""Harness settings.

Loads load-generation settings from environment variables and `.env`.
Every environment variable uses the STRESS_ prefix.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StressSettings(BaseSettings):
    """Stress harness settings.

    Attributes:
        base_url: Base URL of the target auth routes (e.g. http://localhost:3001/auth)
        env: Environment name, selects the log renderer (development/production)
        log_level: Logging level name
        concurrent_groups: Number of request groups per scenario
        requests_per_group: Requests issued by each group
        request_timeout: Per-request timeout in seconds
        max_connections: Connection pool limit of the shared HTTP client

    Example:
        >>> settings = StressSettings(base_url="http://localhost:3001/auth")
        >>> settings.total_requests
        50
    """

    base_url: str = "http://localhost:3001/auth"
    env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = "INFO"

    # Batch shape
    concurrent_groups: int = 10
    requests_per_group: int = 5

    # HTTP client
    request_timeout: float = Field(default=10.0, description="Per-request timeout (seconds)")
    max_connections: int = 100

    # Arrival shaping (milliseconds)
    register_delay_ms: int = 10
    login_delay_ms: int = 5
    pause_between_scenarios_ms: int = 2000
    startup_wait_ms: int = 0

    # Success-rate floors (percent)
    register_success_floor: float = 60.0
    login_success_floor: float = 80.0

    # Wall-clock ceilings (milliseconds)
    register_ceiling_ms: int = 45000
    login_ceiling_ms: int = 30000
    invalid_credentials_ceiling_ms: int = 15000
    malformed_payload_ceiling_ms: int = 10000

    model_config = SettingsConfigDict(
        env_prefix="STRESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_load_shape(self) -> "StressSettings":
        """Reject settings that cannot describe a runnable batch."""
        if self.concurrent_groups <= 0 or self.requests_per_group <= 0:
            raise ValueError("concurrent_groups and requests_per_group must be > 0")

        for name in ("register_success_floor", "login_success_floor"):
            value = getattr(self, name)
            if not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} must be within [0, 100], got {value}")

        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")

        self.base_url = self.base_url.rstrip("/")
        return self

    @property
    def total_requests(self) -> int:
        return self.concurrent_groups * self.requests_per_group

    @property
    def root_url(self) -> str:
        """Service root, i.e. base_url without its last path segment."""
        scheme, sep, rest = self.base_url.partition("://")
        host, _, path = rest.partition("/")
        if not path:
            return self.base_url
        parent = path.rsplit("/", 1)[0] if "/" in path else ""
        root = f"{scheme}{sep}{host}"
        return f"{root}/{parent}" if parent else root
