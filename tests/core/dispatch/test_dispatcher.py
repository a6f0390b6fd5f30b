"""Tests for the rotating, cooling-down dispatcher.

Tests cover:
- Request contract (URL, headers, two messages)
- Rotation on failure and shared cooldown before the next attempt
- Cursor and cooldown persisting across calls
- Error payloads, HTTP errors, malformed and empty bodies all rotate
- Optional overall deadline
- A payload that cannot be serialized fails before any request
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from pydantic import ValidationError

from chatreview.config import ReviewConfig
from chatreview.core.dispatch import (
    DispatchPayload,
    Dispatcher,
    DispatcherState,
    EndpointConfig,
)
from chatreview.core.errors import TimeBudgetExceededError

ENDPOINTS = [
    EndpointConfig(url="https://one.example/v1/", model="m-one", key="k1"),
    EndpointConfig(url="https://two.example/v1", model="m-two", key="k2"),
    EndpointConfig(url="https://three.example/v1", model="m-three", key="k3"),
]

PAYLOAD = DispatchPayload(system_instructions="Be brief.", content="A: hello")


def completion(text):
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = {"choices": [{"message": {"role": "assistant", "content": text}}]}
    return response


def http_error(status, message="boom"):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = {"error": {"message": message}}
    response.text = message
    return response


def body(data):
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = data
    return response


def mock_client(responses):
    """Patchable httpx.AsyncClient whose post() yields ``responses`` in order."""
    client = AsyncMock()
    client.post = AsyncMock(side_effect=responses)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return client


def posted_urls(client):
    return [call.args[0] for call in client.post.call_args_list]


@pytest.fixture
def dispatcher(fake_clock):
    return Dispatcher(ENDPOINTS, cooldown_seconds=30.0, clock=fake_clock, sleep_func=fake_clock.sleep)


class TestRequestContract:
    @pytest.mark.asyncio
    async def test_posts_to_chat_completions(self, dispatcher):
        client = mock_client([completion("  short  ")])
        with patch("httpx.AsyncClient", return_value=client) as client_class:
            text = await dispatcher.send(PAYLOAD)

        assert text == "short"
        call = client.post.call_args
        # Trailing slash on the base URL is tolerated
        assert call.args[0] == "https://one.example/v1/chat/completions"
        assert call.kwargs["headers"]["Authorization"] == "Bearer k1"
        assert call.kwargs["headers"]["Content-Type"] == "application/json"
        assert call.kwargs["json"] == {
            "model": "m-one",
            "messages": [
                {"role": "system", "content": "Be brief."},
                {"role": "user", "content": "A: hello"},
            ],
        }
        assert client_class.call_args.kwargs["timeout"] == 600.0

    @pytest.mark.asyncio
    async def test_success_does_not_sleep(self, dispatcher, fake_clock):
        with patch("httpx.AsyncClient", return_value=mock_client([completion("ok")])):
            await dispatcher.send(PAYLOAD)

        assert fake_clock.sleeps == []
        assert dispatcher.stats.attempts == 1
        assert dispatcher.stats.successes == 1

    def test_endpoint_repr_hides_key(self):
        assert "k1" not in repr(ENDPOINTS[0])

    @pytest.mark.asyncio
    async def test_unserializable_payload_fails_without_posting(self, dispatcher, fake_clock):
        client = mock_client([completion("ok")])
        with patch("httpx.AsyncClient", return_value=client):
            with pytest.raises(ValidationError):
                await dispatcher.send(DispatchPayload(system_instructions="Be brief.", content=123))

        client.post.assert_not_called()
        assert dispatcher.stats.attempts == 0
        assert fake_clock.sleeps == []


class TestRotation:
    @pytest.mark.asyncio
    async def test_rotates_through_failures_until_success(self, dispatcher, fake_clock):
        """N-1 failures then success: N-1 rotations, a full cooldown before each retry."""
        client = mock_client([http_error(500), http_error(503), completion("third time")])
        with patch("httpx.AsyncClient", return_value=client):
            text = await dispatcher.send(PAYLOAD)

        assert text == "third time"
        assert posted_urls(client) == [e.completions_url for e in ENDPOINTS]
        assert fake_clock.sleeps == [30.0, 30.0]
        assert dispatcher.state.cursor == 2
        assert dispatcher.stats.failures == 2

    @pytest.mark.asyncio
    async def test_wraps_around_the_ring(self, dispatcher, fake_clock):
        client = mock_client([http_error(500)] * 3 + [completion("back at one")])
        with patch("httpx.AsyncClient", return_value=client):
            text = await dispatcher.send(PAYLOAD)

        assert text == "back at one"
        assert posted_urls(client)[-1] == ENDPOINTS[0].completions_url
        assert dispatcher.state.cursor == 0
        assert len(fake_clock.sleeps) == 3

    @pytest.mark.asyncio
    async def test_cursor_persists_across_calls(self, dispatcher, fake_clock):
        client = mock_client([http_error(429), completion("first"), completion("second")])
        with patch("httpx.AsyncClient", return_value=client):
            await dispatcher.send(PAYLOAD)
            # Success clears the cooldown but keeps the cursor
            assert dispatcher.state.not_before == 0.0
            await dispatcher.send(PAYLOAD)

        assert posted_urls(client) == [
            ENDPOINTS[0].completions_url,
            ENDPOINTS[1].completions_url,
            ENDPOINTS[1].completions_url,
        ]
        assert fake_clock.sleeps == [30.0]

    @pytest.mark.asyncio
    async def test_cooldown_applies_to_next_unrelated_call(self, fake_clock):
        state = DispatcherState(len(ENDPOINTS), cursor=1, not_before=fake_clock.now + 12.0)
        dispatcher = Dispatcher(ENDPOINTS, state=state, clock=fake_clock, sleep_func=fake_clock.sleep)

        client = mock_client([completion("ok")])
        with patch("httpx.AsyncClient", return_value=client):
            await dispatcher.send(PAYLOAD)

        assert fake_clock.sleeps == [12.0]
        assert posted_urls(client) == [ENDPOINTS[1].completions_url]

    @pytest.mark.asyncio
    async def test_single_endpoint_retries_itself(self, fake_clock):
        dispatcher = Dispatcher(ENDPOINTS[:1], cooldown_seconds=5.0, clock=fake_clock, sleep_func=fake_clock.sleep)
        client = mock_client([http_error(502), completion("ok")])
        with patch("httpx.AsyncClient", return_value=client):
            assert await dispatcher.send(PAYLOAD) == "ok"

        assert posted_urls(client) == [ENDPOINTS[0].completions_url] * 2
        assert fake_clock.sleeps == [5.0]


class TestFailureKinds:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bad_response",
        [
            body({"error": {"message": "model overloaded"}}),
            body({"choices": []}),
            body({"choices": [{"message": {"role": "assistant", "content": None}}]}),
            body({"choices": [{"message": {"role": "assistant", "content": "   "}}]}),
            body({"choices": "not-a-list"}),
            http_error(401, "bad key"),
        ],
        ids=["error-payload", "no-choices", "null-content", "blank-content", "malformed", "http-401"],
    )
    async def test_bad_response_rotates(self, dispatcher, fake_clock, bad_response):
        client = mock_client([bad_response, completion("recovered")])
        with patch("httpx.AsyncClient", return_value=client):
            assert await dispatcher.send(PAYLOAD) == "recovered"

        assert posted_urls(client)[1] == ENDPOINTS[1].completions_url
        assert fake_clock.sleeps == [30.0]

    @pytest.mark.asyncio
    async def test_transport_error_rotates(self, dispatcher, fake_clock):
        client = mock_client([httpx.ConnectError("refused"), completion("ok")])
        with patch("httpx.AsyncClient", return_value=client):
            assert await dispatcher.send(PAYLOAD) == "ok"
        assert dispatcher.stats.failures == 1

    @pytest.mark.asyncio
    async def test_invalid_json_rotates(self, dispatcher):
        broken = MagicMock()
        broken.status_code = 200
        broken.json.side_effect = ValueError("Expecting value")
        client = mock_client([broken, completion("ok")])
        with patch("httpx.AsyncClient", return_value=client):
            assert await dispatcher.send(PAYLOAD) == "ok"

    @pytest.mark.asyncio
    async def test_failure_is_logged_as_warning(self, dispatcher, caplog):
        client = mock_client([http_error(500, "upstream down"), completion("ok")])
        with caplog.at_level("WARNING", logger="chatreview.core.dispatch.dispatcher"):
            with patch("httpx.AsyncClient", return_value=client):
                await dispatcher.send(PAYLOAD)

        assert any("upstream down" in record.getMessage() for record in caplog.records)


class TestDeadline:
    @pytest.mark.asyncio
    async def test_gives_up_after_deadline(self, dispatcher):
        client = AsyncMock()
        client.post = AsyncMock(return_value=http_error(500))
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=None)

        with patch("httpx.AsyncClient", return_value=client):
            with pytest.raises(TimeBudgetExceededError) as exc_info:
                await dispatcher.send_with_deadline(PAYLOAD, 0.05)

        assert exc_info.value.budget_seconds == 0.05
        assert exc_info.value.operation == "dispatch"

    @pytest.mark.asyncio
    async def test_no_deadline_behaves_like_send(self, dispatcher):
        with patch("httpx.AsyncClient", return_value=mock_client([completion("ok")])):
            assert await dispatcher.send_with_deadline(PAYLOAD, None) == "ok"

    @pytest.mark.asyncio
    async def test_cancellation_aborts_cooldown(self, fake_clock):
        async def never_wake(seconds):
            await asyncio.Event().wait()

        state = DispatcherState(len(ENDPOINTS), not_before=fake_clock.now + 100)
        dispatcher = Dispatcher(ENDPOINTS, state=state, clock=fake_clock, sleep_func=never_wake)

        task = asyncio.create_task(dispatcher.send(PAYLOAD))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert dispatcher.stats.attempts == 0


class TestConstruction:
    def test_requires_endpoints(self):
        with pytest.raises(ValueError, match="at least one endpoint"):
            Dispatcher([])

    def test_state_size_must_match(self):
        with pytest.raises(ValueError, match="does not match"):
            Dispatcher(ENDPOINTS, state=DispatcherState(2))

    def test_from_config(self):
        config = ReviewConfig(endpoints=ENDPOINTS[:2], cooldown_seconds=5.0, request_timeout=60.0)
        dispatcher = Dispatcher.from_config(config)

        assert dispatcher.endpoints == tuple(ENDPOINTS[:2])
        assert dispatcher.cooldown_seconds == 5.0
        assert dispatcher.request_timeout == 60.0
