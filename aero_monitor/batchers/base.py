"""
JSON-RPC batching for contract reads.

This module turns a list of logical contract calls into chunked JSON-RPC
array requests (one HTTP POST per chunk of ``eth_call`` entries), and
decodes each entry back into a per-call result. Failures are scoped as
narrowly as possible: a bad entry fails only itself, a failed transport
fails only its chunk.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import aiohttp

from .abi import ContractInterface
from .errors import (
    BatchError,
    ErrorHandler,
    NetworkError,
    RateLimitError,
    ValidationError,
    is_rate_limit_error,
)
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class BatchCall:
    """One logical contract call."""

    target: str
    interface: ContractInterface
    method: str
    params: Sequence[Any] = ()


@dataclass
class CallResult:
    """Result of one call inside a batch."""

    success: bool
    data: Optional[Tuple[Any, ...]] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return not self.success

    @property
    def value(self) -> Any:
        """First decoded return value, for single-output functions."""
        if not self.success or not self.data:
            return None
        return self.data[0]


@dataclass
class BatchConfig:
    """Configuration for batch operations."""

    batch_size: int = 100
    timeout: float = 30.0
    block_identifier: Union[int, str] = "latest"


class JsonRpcBatcher:
    """
    Executes contract calls as JSON-RPC 2.0 batch requests over HTTP.

    Each chunk is dispatched through the shared RateLimiter (when given), so
    HTTP 429 responses are retried with backoff before the chunk is failed.
    """

    def __init__(
        self,
        rpc_url: str,
        rate_limiter: Optional[RateLimiter] = None,
        config: Optional[BatchConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.rpc_url = rpc_url
        self.rate_limiter = rate_limiter
        self.config = config or BatchConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)

        self._session = session
        self._owns_session = session is None

        self.transport_failures = 0
        self.last_transport_error: Optional[str] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the HTTP session if this batcher created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def reset_stats(self):
        self.transport_failures = 0
        self.last_transport_error = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout)
            )
            self._owns_session = True
        return self._session

    def _chunk_calls(self, calls: List[BatchCall], chunk_size: int) -> List[List[BatchCall]]:
        """Split calls into chunks of at most chunk_size."""
        return [calls[i : i + chunk_size] for i in range(0, len(calls), chunk_size)]

    async def execute(
        self, calls: Sequence[BatchCall], chunk_size: Optional[int] = None
    ) -> List[CallResult]:
        """
        Execute calls in chunks and return one result per call, in input order.

        Args:
            calls: Logical contract calls
            chunk_size: Max calls per HTTP request (defaults to config.batch_size)

        Returns:
            List of CallResult with the same length and order as ``calls``
        """
        if chunk_size is None:
            chunk_size = self.config.batch_size
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        calls = list(calls)
        chunks = self._chunk_calls(calls, chunk_size)
        results: List[CallResult] = []

        if chunks:
            self.logger.debug(f"Executing {len(calls)} calls in {len(chunks)} chunks")

        for i, chunk in enumerate(chunks):
            self.logger.debug(f"Processing chunk {i + 1}/{len(chunks)} with {len(chunk)} calls")
            results.extend(await self._process_chunk(chunk))

        return results

    async def call(
        self,
        target: str,
        interface: ContractInterface,
        method: str,
        params: Sequence[Any] = (),
    ) -> Tuple[Any, ...]:
        """
        Execute a single call and return its decoded output.

        Raises:
            BatchError: If the call failed for any reason
        """
        [result] = await self.execute([BatchCall(target, interface, method, params)])
        if not result.success:
            raise BatchError(f"{method} call to {target} failed: {result.error}")
        return result.data

    def _build_payload(
        self, chunk: List[BatchCall]
    ) -> Tuple[List[Dict[str, Any]], Dict[int, CallResult]]:
        """
        Encode a chunk into JSON-RPC entries whose ids are the intra-chunk index.

        Calls that fail to encode are left out of the payload and returned as
        failed results keyed by their index.
        """
        payload = []
        failed: Dict[int, CallResult] = {}

        for index, call in enumerate(chunk):
            try:
                data = call.interface.encode_call(call.method, call.params)
            except ValidationError as e:
                failed[index] = CallResult(success=False, error=str(e))
                continue

            payload.append(
                {
                    "jsonrpc": "2.0",
                    "id": index,
                    "method": "eth_call",
                    "params": [
                        {"to": call.target, "data": data},
                        self.config.block_identifier,
                    ],
                }
            )

        return payload, failed

    async def _post_payload(self, payload: List[Dict[str, Any]]) -> Any:
        """
        POST a JSON-RPC batch and return the parsed JSON body.

        Raises:
            RateLimitError: On HTTP 429 or a rate-limit error body
            NetworkError: On transport failure, non-2xx status or malformed JSON
        """
        session = self._get_session()
        try:
            async with session.post(
                self.rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            ) as response:
                if response.status == 429:
                    raise RateLimitError(f"HTTP 429: {response.reason}")
                if response.status < 200 or response.status >= 300:
                    raise NetworkError(
                        f"HTTP {response.status}: {response.reason}",
                        status_code=response.status,
                    )
                try:
                    body = await response.json(content_type=None)
                except ValueError as e:
                    raise NetworkError(f"Malformed JSON response: {e}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"RPC request failed: {e!r}")

        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            if is_rate_limit_error(Exception(message)) or (
                isinstance(error, dict) and error.get("code") == 429
            ):
                raise RateLimitError(message)

        return body

    async def _send(self, payload: List[Dict[str, Any]]) -> Any:
        if self.rate_limiter is None:
            return await self._post_payload(payload)
        return await self.rate_limiter.execute(lambda: self._post_payload(payload))

    def _fail_chunk(self, chunk: List[BatchCall], message: str) -> List[CallResult]:
        return [CallResult(success=False, error=message) for _ in chunk]

    async def _process_chunk(self, chunk: List[BatchCall]) -> List[CallResult]:
        payload, failed = self._build_payload(chunk)
        if not payload:
            return [failed[i] for i in range(len(chunk))]

        try:
            body = await self._send(payload)
        except BatchError as e:
            self.transport_failures += 1
            self.last_transport_error = str(e)
            self.error_handler.log_error(e, {"chunk_size": len(chunk), "rpc_url": self.rpc_url})
            return self._fail_chunk(chunk, str(e))

        if not isinstance(body, list):
            # Whole-batch error object or unexpected shape
            if isinstance(body, dict) and body.get("error"):
                message = f"RPC error: {body['error']}"
            else:
                message = "Invalid batch response format"
            self.transport_failures += 1
            self.last_transport_error = message
            self.logger.warning(f"⚠️ Batch of {len(chunk)} calls rejected: {message}")
            return self._fail_chunk(chunk, message)

        responses = {
            entry.get("id"): entry for entry in body if isinstance(entry, dict)
        }

        results = []
        for index, call in enumerate(chunk):
            if index in failed:
                results.append(failed[index])
                continue

            entry = responses.get(index)
            if entry is None:
                results.append(CallResult(success=False, error="No response for call"))
                continue

            if entry.get("error"):
                error = entry["error"]
                message = error.get("message", "RPC error") if isinstance(error, dict) else str(error)
                results.append(CallResult(success=False, error=message))
                continue

            try:
                decoded = call.interface.decode_result(call.method, entry.get("result"))
            except BatchError as e:
                results.append(CallResult(success=False, error=str(e)))
                continue

            results.append(CallResult(success=True, data=decoded))

        return results
