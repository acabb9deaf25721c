"""RequestDispatcher unit tests (mock transport)"""

import asyncio
import json

import httpx
import pytest

from auth_stress.dispatcher import RequestDispatcher, build_payloads, validate_config
from auth_stress.exceptions import ConfigurationError
from auth_stress.models import ScenarioConfig
from auth_stress.recorder import ResultRecorder


def _config(**overrides) -> ScenarioConfig:
    values = {
        "name": "mock",
        "target_path": "/login",
        "concurrent_groups": 4,
        "requests_per_group": 5,
        "payload_builder": lambda index: {"index": index},
    }
    values.update(overrides)
    return ScenarioConfig(**values)


class TestConfigValidation:
    """ConfigurationError before dispatch"""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"concurrent_groups": 0},
            {"requests_per_group": 0},
            {"concurrent_groups": -2},
            {"inter_request_delay_ms": -1},
            {"success_rate_floor_percent": 150.0},
            {"wall_clock_ceiling_ms": 0},
            {"max_in_flight": 0},
        ],
    )
    def test_invalid_parameters(self, overrides):
        with pytest.raises(ConfigurationError):
            validate_config(_config(**overrides))

    def test_payload_builder_failure(self):
        def builder(index: int) -> dict:
            if index == 3:
                raise KeyError("boom")
            return {}

        with pytest.raises(ConfigurationError, match="index 3"):
            build_payloads(_config(payload_builder=builder))


@pytest.mark.asyncio
class TestDispatch:
    """Dispatch over httpx.MockTransport"""

    async def test_config_error_sends_nothing(self, make_client):
        # Arrange
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        def broken(index: int) -> dict:
            raise ValueError("no payload")

        # Act & Assert
        async with make_client(handler=handler) as client:
            with pytest.raises(ConfigurationError):
                await RequestDispatcher(client).dispatch(_config(payload_builder=broken))
        assert calls == []

    async def test_every_slot_recorded_on_mixed_failures(self, make_client):
        # Arrange: even slots refuse the connection, every third odd slot answers 500
        def handler(request: httpx.Request) -> httpx.Response:
            index = json.loads(request.content)["index"]
            if index % 2 == 0:
                raise httpx.ConnectError("Connection refused", request=request)
            if index % 3 == 0:
                return httpx.Response(500)
            return httpx.Response(200, json={"ok": True})

        # Act
        async with make_client(handler=handler) as client:
            aggregate = await RequestDispatcher(client).dispatch(_config())

        # Assert
        assert aggregate.total_requests == 20
        odd = [i for i in range(20) if i % 2 == 1]
        assert aggregate.success_count == len([i for i in odd if i % 3 != 0])
        assert aggregate.error_count == 20 - aggregate.success_count

    async def test_transport_failure_has_no_status(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        async with make_client(handler=handler) as client:
            aggregate = await RequestDispatcher(client).dispatch(_config())

        assert aggregate.success_count == 0
        assert aggregate.error_count == 20
        assert aggregate.success_rate_percent == 0.0
        sample = aggregate.error_samples[0]
        assert sample.status_code is None
        assert sample.error_message == "Connection refused"

    async def test_timeout_recorded_as_failure(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_client(handler=handler, timeout=7.0) as client:
            aggregate = await RequestDispatcher(client).dispatch(
                _config(concurrent_groups=1, requests_per_group=2)
            )

        assert aggregate.error_count == 2
        assert aggregate.error_samples[0].error_message == "timeout of 7.0s exceeded"

    async def test_non_2xx_keeps_status(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"message": "exists"})

        async with make_client(handler=handler) as client:
            aggregate = await RequestDispatcher(client).dispatch(
                _config(concurrent_groups=1, requests_per_group=1)
            )

        sample = aggregate.error_samples[0]
        assert sample.status_code == 409
        assert sample.error_message == "Request failed with status code 409"

    async def test_requests_run_concurrently(self, make_client):
        # Arrange
        in_flight = 0
        peak = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.02)
            in_flight -= 1
            return httpx.Response(200)

        # Act
        async with make_client(handler=handler) as client:
            aggregate = await RequestDispatcher(client).dispatch(_config())

        # Assert
        assert aggregate.success_count == 20
        assert peak > 1

    async def test_max_in_flight_bounds_concurrency(self, make_client):
        in_flight = 0
        peak = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return httpx.Response(200)

        async with make_client(handler=handler) as client:
            aggregate = await RequestDispatcher(client).dispatch(_config(max_in_flight=3))

        assert aggregate.total_requests == 20
        assert peak <= 3

    async def test_token_flag_only_for_token_scenarios(self, make_client):
        # Arrange: successful responses without any token
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"email": "logintest@test.com"})

        token_recorder = ResultRecorder()
        plain_recorder = ResultRecorder()

        # Act
        async with make_client(handler=handler) as client:
            dispatcher = RequestDispatcher(client)
            with_token = await dispatcher.dispatch(_config(expects_token=True), token_recorder)
            without = await dispatcher.dispatch(_config(), plain_recorder)

        # Assert
        assert with_token.success_count == 20
        assert with_token.token_missing_count == 20
        assert all(o.has_token is False for o in token_recorder.outcomes())
        assert without.token_missing_count == 0
        assert all(o.has_token is None for o in plain_recorder.outcomes())

    async def test_token_present_marks_outcome(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"token": "abc"})

        recorder = ResultRecorder()
        async with make_client(handler=handler) as client:
            aggregate = await RequestDispatcher(client).dispatch(
                _config(expects_token=True), recorder
            )

        assert aggregate.token_missing_count == 0
        assert all(o.has_token is True for o in recorder.outcomes())

    async def test_prepared_payloads_are_sent(self, make_client):
        # Arrange
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content)["index"])
            return httpx.Response(200)

        config = _config(concurrent_groups=1, requests_per_group=3)

        # Act
        async with make_client(handler=handler) as client:
            dispatcher = RequestDispatcher(client)
            payloads = dispatcher.prepare(config)
            aggregate = await dispatcher.dispatch(config, payloads=payloads)

        # Assert
        assert payloads == [{"index": 0}, {"index": 1}, {"index": 2}]
        assert sorted(seen) == [0, 1, 2]
        assert aggregate.total_requests == 3

    async def test_payload_count_mismatch_rejected(self, make_client):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        async with make_client(handler=handler) as client:
            with pytest.raises(ConfigurationError, match="expected 20 payloads"):
                await RequestDispatcher(client).dispatch(_config(), payloads=[{}])
        assert calls == []
