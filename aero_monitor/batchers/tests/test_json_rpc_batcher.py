"""Tests for the JSON-RPC batch executor."""
import asyncio

import aiohttp
import pytest
from unittest.mock import AsyncMock, patch

from aero_monitor.batchers.base import BatchCall, BatchConfig, CallResult, JsonRpcBatcher
from aero_monitor.batchers.errors import BatchError, NetworkError, RateLimitError
from aero_monitor.batchers.rate_limiter import RateLimiter

RPC_URL = "https://rpc.test"
TOKEN = "0x4200000000000000000000000000000000000006"
HOLDER = "0x1111111111111111111111111111111111111111"


def balance_calls(interface, count):
    return [BatchCall(TOKEN, interface, "balanceOf", [HOLDER]) for _ in range(count)]


class TestCallResult:
    def test_value_is_first_output(self):
        result = CallResult(success=True, data=(7, 8))
        assert result.value == 7
        assert result.failed is False

    def test_value_of_failed_result(self):
        result = CallResult(success=False, error="boom")
        assert result.value is None
        assert result.failed is True


class TestJsonRpcBatcherExecute:
    @pytest.fixture
    def batcher(self):
        return JsonRpcBatcher(RPC_URL, config=BatchConfig(batch_size=100))

    @pytest.mark.asyncio
    async def test_empty_call_list(self, batcher):
        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            assert await batcher.execute([]) == []
        post.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_invalid_chunk_size(self, batcher, token_interface):
        with pytest.raises(ValueError, match="chunk_size"):
            await batcher.execute(balance_calls(token_interface, 1), chunk_size=0)

    @pytest.mark.asyncio
    async def test_chunks_and_preserves_order(self, batcher, token_interface, echo_body):
        calls = balance_calls(token_interface, 250)

        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            post.side_effect = echo_body
            results = await batcher.execute(calls)

        assert post.await_count == 3
        sizes = [len(c.args[0]) for c in post.await_args_list]
        assert sizes == [100, 100, 50]

        assert len(results) == 250
        assert all(r.success for r in results)
        # ids restart per chunk
        assert results[0].value == 0
        assert results[150].value == 50
        assert results[249].value == 49

    @pytest.mark.asyncio
    async def test_payload_shape(self, batcher, token_interface, echo_body):
        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            post.side_effect = echo_body
            await batcher.execute(balance_calls(token_interface, 2))

        payload = post.await_args.args[0]
        assert payload[1] == {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_call",
            "params": [
                {"to": TOKEN, "data": token_interface.encode_call("balanceOf", [HOLDER])},
                "latest",
            ],
        }

    @pytest.mark.asyncio
    async def test_responses_matched_by_id(self, batcher, token_interface, echo_body):
        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            post.side_effect = lambda payload: list(reversed(echo_body(payload)))
            results = await batcher.execute(balance_calls(token_interface, 5))

        assert [r.value for r in results] == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_entry_error_fails_only_that_call(self, batcher, token_interface, echo_body):
        def body(payload):
            entries = echo_body(payload)
            entries[1] = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "execution reverted"}}
            return entries

        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            post.side_effect = body
            results = await batcher.execute(balance_calls(token_interface, 3))

        assert [r.success for r in results] == [True, False, True]
        assert results[1].error == "execution reverted"

    @pytest.mark.asyncio
    async def test_missing_response_entry(self, batcher, token_interface, echo_body):
        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            post.side_effect = lambda payload: echo_body(payload)[:-1]
            results = await batcher.execute(balance_calls(token_interface, 3))

        assert results[2].success is False
        assert results[2].error == "No response for call"
        assert results[0].success and results[1].success

    @pytest.mark.asyncio
    async def test_decode_failure_fails_only_that_call(self, batcher, token_interface, echo_body):
        def body(payload):
            entries = echo_body(payload)
            entries[0]["result"] = "0x"
            return entries

        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            post.side_effect = body
            results = await batcher.execute(balance_calls(token_interface, 2))

        assert results[0].success is False
        assert "Failed to decode" in results[0].error
        assert results[1].value == 1

    @pytest.mark.asyncio
    async def test_encode_failure_is_not_sent(self, batcher, token_interface, echo_body):
        calls = balance_calls(token_interface, 2)
        calls.insert(1, BatchCall(TOKEN, token_interface, "balanceOf", ["not-an-address"]))

        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            post.side_effect = echo_body
            results = await batcher.execute(calls)

        assert len(post.await_args.args[0]) == 2
        assert [r.success for r in results] == [True, False, True]
        assert results[2].value == 2

    @pytest.mark.asyncio
    async def test_transport_failure_fails_only_its_chunk(self, batcher, token_interface, echo_body):
        responses = [echo_body, NetworkError("HTTP 502: Bad Gateway"), echo_body]

        async def post(payload):
            outcome = responses.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome(payload)

        with patch.object(batcher, "_post_payload", side_effect=post):
            results = await batcher.execute(balance_calls(token_interface, 6), chunk_size=2)

        assert [r.success for r in results] == [True, True, False, False, True, True]
        assert results[2].error == "HTTP 502: Bad Gateway"
        assert batcher.transport_failures == 1
        assert batcher.last_transport_error == "HTTP 502: Bad Gateway"

        batcher.reset_stats()
        assert batcher.transport_failures == 0
        assert batcher.last_transport_error is None

    @pytest.mark.asyncio
    async def test_non_list_body_fails_chunk(self, batcher, token_interface):
        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            post.return_value = {"jsonrpc": "2.0", "id": None, "error": {"code": -32600, "message": "batch too large"}}
            results = await batcher.execute(balance_calls(token_interface, 2))

        assert all(r.failed for r in results)
        assert "batch too large" in results[0].error
        assert batcher.transport_failures == 1

    @pytest.mark.asyncio
    async def test_call_returns_data(self, batcher, token_interface, encode_result):
        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            post.return_value = [{"jsonrpc": "2.0", "id": 0, "result": encode_result(99)}]
            assert await batcher.call(TOKEN, token_interface, "balanceOf", [HOLDER]) == (99,)

    @pytest.mark.asyncio
    async def test_call_raises_on_failure(self, batcher, token_interface):
        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post:
            post.return_value = [{"jsonrpc": "2.0", "id": 0, "error": {"message": "execution reverted"}}]
            with pytest.raises(BatchError, match="execution reverted"):
                await batcher.call(TOKEN, token_interface, "balanceOf", [HOLDER])


class TestJsonRpcBatcherRateLimiting:
    @pytest.mark.asyncio
    async def test_rate_limited_chunk_is_retried(self, token_interface, echo_body):
        limiter = RateLimiter(min_delay=0.1, max_retries=3)
        batcher = JsonRpcBatcher(RPC_URL, rate_limiter=limiter)
        attempts = []

        async def post(payload):
            attempts.append(payload)
            if len(attempts) == 1:
                raise RateLimitError("HTTP 429: Too Many Requests")
            return echo_body(payload)

        with patch.object(batcher, "_post_payload", side_effect=post), \
             patch("aero_monitor.batchers.rate_limiter.asyncio.sleep", new_callable=AsyncMock):
            results = await batcher.execute(balance_calls(token_interface, 2))

        assert len(attempts) == 2
        assert all(r.success for r in results)
        assert batcher.transport_failures == 0

    @pytest.mark.asyncio
    async def test_exhausted_retries_fail_chunk(self, token_interface):
        limiter = RateLimiter(min_delay=0.1, max_retries=2)
        batcher = JsonRpcBatcher(RPC_URL, rate_limiter=limiter)

        with patch.object(batcher, "_post_payload", new_callable=AsyncMock) as post, \
             patch("aero_monitor.batchers.rate_limiter.asyncio.sleep", new_callable=AsyncMock):
            post.side_effect = RateLimitError("HTTP 429: Too Many Requests")
            results = await batcher.execute(balance_calls(token_interface, 2))

        assert post.await_count == 3
        assert all(r.failed for r in results)
        assert batcher.transport_failures == 1


class TestPostPayload:
    @pytest.mark.asyncio
    async def test_posts_json_batch(self, make_session):
        session = make_session(json_body=[{"jsonrpc": "2.0", "id": 0, "result": "0x"}])
        batcher = JsonRpcBatcher(RPC_URL, session=session)
        payload = [{"jsonrpc": "2.0", "id": 0, "method": "eth_call", "params": []}]

        body = await batcher._post_payload(payload)

        assert body == [{"jsonrpc": "2.0", "id": 0, "result": "0x"}]
        args, kwargs = session.post.call_args
        assert args == (RPC_URL,)
        assert kwargs["json"] == payload

    @pytest.mark.asyncio
    async def test_http_429_raises_rate_limit(self, make_session):
        batcher = JsonRpcBatcher(RPC_URL, session=make_session(status=429, reason="Too Many Requests"))
        with pytest.raises(RateLimitError):
            await batcher._post_payload([])

    @pytest.mark.asyncio
    async def test_http_error_raises_network_error(self, make_session):
        batcher = JsonRpcBatcher(RPC_URL, session=make_session(status=503, reason="Unavailable"))
        with pytest.raises(NetworkError) as exc_info:
            await batcher._post_payload([])
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_malformed_json(self, make_session):
        session = make_session(json_exc=ValueError("Expecting value"))
        batcher = JsonRpcBatcher(RPC_URL, session=session)
        with pytest.raises(NetworkError, match="Malformed JSON"):
            await batcher._post_payload([])

    @pytest.mark.asyncio
    async def test_connection_error(self, make_session):
        session = make_session(post_exc=aiohttp.ClientConnectionError("refused"))
        batcher = JsonRpcBatcher(RPC_URL, session=session)
        with pytest.raises(NetworkError, match="RPC request failed"):
            await batcher._post_payload([])

    @pytest.mark.asyncio
    async def test_timeout(self, make_session):
        session = make_session(post_exc=asyncio.TimeoutError())
        batcher = JsonRpcBatcher(RPC_URL, session=session)
        with pytest.raises(NetworkError):
            await batcher._post_payload([])

    @pytest.mark.asyncio
    async def test_rate_limit_error_body(self, make_session):
        session = make_session(json_body={"jsonrpc": "2.0", "error": {"code": -32005, "message": "Rate limit exceeded"}})
        batcher = JsonRpcBatcher(RPC_URL, session=session)
        with pytest.raises(RateLimitError, match="Rate limit exceeded"):
            await batcher._post_payload([])

    @pytest.mark.asyncio
    async def test_close_keeps_injected_session(self, make_session):
        session = make_session()
        session.close = AsyncMock()
        async with JsonRpcBatcher(RPC_URL, session=session):
            pass
        session.close.assert_not_awaited()
