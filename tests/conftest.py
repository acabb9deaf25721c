"""pytest fixtures."""

import uuid
from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel

# Load test environment variables before building settings
load_dotenv(".env.test", override=True)

from auth_stress.client import TargetClient
from auth_stress.config import StressSettings

BASE_URL = "http://testserver/auth"


class RegisterBody(BaseModel):
    email: str
    password: str
    fullName: str = ""
    roles: str = "user"


class LoginBody(BaseModel):
    email: str
    password: str


def create_auth_app(
    register_success_ratio: int | None = None,
    issue_tokens: bool = True,
) -> FastAPI:
    """In-process stand-in for the auth service.

    Args:
        register_success_ratio: When set, registrations whose "Test User {i}"
            index satisfies ``i % 10 >= ratio`` answer 503 (ratio 7 -> 70% success)
        issue_tokens: Whether successful logins return a token
    """
    app = FastAPI()
    app.state.users = {}

    def _validate(email: str, password: str) -> None:
        if "@" not in email or len(password) < 6:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid payload")

    @app.get("/")
    async def root():
        return {"status": "ok"}

    @app.post("/auth/register", status_code=status.HTTP_201_CREATED)
    async def register(body: RegisterBody):
        _validate(body.email, body.password)
        if register_success_ratio is not None:
            index = int(body.fullName.rsplit(" ", 1)[-1])
            if index % 10 >= register_success_ratio:
                raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        if body.email in app.state.users:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="email already exists")
        app.state.users[body.email] = body.password
        return {"email": body.email, "fullName": body.fullName, "roles": body.roles}

    @app.post("/auth/login")
    async def login(body: LoginBody):
        _validate(body.email, body.password)
        if app.state.users.get(body.email) != body.password:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid credentials")
        if not issue_tokens:
            return {"email": body.email}
        return {"token": uuid.uuid4().hex}

    return app


@pytest.fixture
def settings() -> StressSettings:
    """Settings sized for in-process runs."""
    return StressSettings(
        base_url=BASE_URL,
        concurrent_groups=10,
        requests_per_group=5,
        register_delay_ms=0,
        login_delay_ms=0,
        pause_between_scenarios_ms=0,
    )


@pytest.fixture
def auth_app() -> FastAPI:
    return create_auth_app()


@pytest_asyncio.fixture(scope="function")
async def client(auth_app: FastAPI) -> AsyncGenerator[TargetClient, None]:
    """Target client wired to the in-process auth app."""
    async with TargetClient(
        base_url=BASE_URL,
        timeout=5.0,
        transport=httpx.ASGITransport(app=auth_app),
    ) as target:
        yield target


@pytest.fixture
def make_client() -> Callable[..., TargetClient]:
    """Factory for clients over an arbitrary app or mock transport."""

    def _make(
        app: FastAPI | None = None,
        handler: Callable[[httpx.Request], Any] | None = None,
        timeout: float = 5.0,
    ) -> TargetClient:
        if app is not None:
            transport: httpx.AsyncBaseTransport = httpx.ASGITransport(app=app)
        else:
            transport = httpx.MockTransport(handler)
        return TargetClient(base_url=BASE_URL, timeout=timeout, transport=transport)

    return _make


@pytest.fixture
def auth_app_factory() -> Callable[..., FastAPI]:
    return create_auth_app
