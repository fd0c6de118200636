"""
Resilient Request Executor

Runs one authenticated JSON POST against the retrieval service, retrying
transient failures with backoff.

Each attempt is classified into an AttemptOutcome:
- SUCCESS          2xx
- SERVICE_FAILURE  429 / 5xx             (retryable)
- NETWORK_FAILURE  transport error, timeout (retryable)
- CLIENT_FAILURE   any other status      (fatal, never retried)

Backoff before retry ``n`` (0-based) is the server's integer ``Retry-After``
in seconds when present, otherwise ``retry_base_ms * 2**n``.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ..common.config import (
    ACE_USER_AGENT,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_RETRY_BASE_MS,
    DEFAULT_RETRY_LIMIT,
)
from ..common.errors import ClientError, NetworkError, RetrievalError, ServiceError
from .session import SessionContext

logger = logging.getLogger("agentlog.retriever.executor")

_RETRY_AFTER_SECONDS = re.compile(r"\s*(\d+)\s*")
_ERROR_BODY_LIMIT = 500

SleepFunc = Callable[[float], Awaitable[Any]]


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    SERVICE_FAILURE = "service_failure"
    NETWORK_FAILURE = "network_failure"
    CLIENT_FAILURE = "client_failure"

    @property
    def retryable(self) -> bool:
        return self in (OutcomeKind.SERVICE_FAILURE, OutcomeKind.NETWORK_FAILURE)


@dataclass
class AttemptOutcome:
    """Classified result of a single network attempt"""
    kind: OutcomeKind
    response: Optional[httpx.Response] = None
    error: Optional[RetrievalError] = None
    retry_after: Optional[int] = None  # seconds, from the Retry-After header


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Whole seconds from a Retry-After header; None for dates or junk."""
    if value is None:
        return None
    match = _RETRY_AFTER_SECONDS.fullmatch(value)
    return int(match.group(1)) if match else None


def classify_response(response: httpx.Response) -> AttemptOutcome:
    status = response.status_code
    if 200 <= status < 300:
        return AttemptOutcome(kind=OutcomeKind.SUCCESS, response=response)

    message = f"Retrieval service request failed ({status}): {response.text[:_ERROR_BODY_LIMIT]}"
    if status == 429 or status >= 500:
        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        return AttemptOutcome(
            kind=OutcomeKind.SERVICE_FAILURE,
            response=response,
            error=ServiceError(message, status_code=status, retry_after=retry_after),
            retry_after=retry_after,
        )
    return AttemptOutcome(
        kind=OutcomeKind.CLIENT_FAILURE,
        response=response,
        error=ClientError(message, status_code=status),
    )


class RequestExecutor:
    """
    Sends authenticated POST requests with per-attempt timeouts and retries.

    Usage:
        executor = RequestExecutor(api_key="...", session=SessionContext())
        response = await executor.execute("https://host/batch-upload", {"blobs": [...]})
        await executor.aclose()

    The executor holds no state between calls apart from its HTTP client;
    retry bookkeeping lives inside ``execute``.
    """

    def __init__(
        self,
        api_key: str,
        session: SessionContext,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS,
        retry_limit: int = DEFAULT_RETRY_LIMIT,
        retry_base_ms: int = DEFAULT_RETRY_BASE_MS,
        user_agent: str = ACE_USER_AGENT,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Args:
            api_key: Bearer token for the retrieval service.
            session: Process-wide session context.
            http_client: Optional pre-built client (tests inject a MockTransport).
            timeout_ms: Hard deadline for each individual attempt.
            retry_limit: Total attempts per logical call, including the first.
            retry_base_ms: Base of the exponential backoff.
            user_agent: Fixed client identifier sent on every request.
            sleep: Awaitable sleep taking seconds.
        """
        if retry_limit < 1:
            raise ValueError("retry_limit must be at least 1")
        self.api_key = api_key
        self.session = session
        self.timeout_ms = timeout_ms
        self.retry_limit = retry_limit
        self.retry_base_ms = retry_base_ms
        self.user_agent = user_agent
        self._sleep = sleep
        self._client = http_client
        self._owns_client = http_client is None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this executor created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "User-Agent": self.user_agent,
            "x-request-session-id": self.session.session_id,
            "x-request-id": self.session.new_request_id(),
        }

    def backoff_ms(self, attempt: int, outcome: AttemptOutcome) -> int:
        if outcome.kind is OutcomeKind.SERVICE_FAILURE and outcome.retry_after is not None:
            return outcome.retry_after * 1000
        return self.retry_base_ms * (2 ** attempt)

    async def _attempt(self, url: str, body: bytes) -> AttemptOutcome:
        timeout_s = self.timeout_ms / 1000
        client = self._ensure_client()
        try:
            response = await asyncio.wait_for(
                client.post(url, content=body, headers=self._headers(), timeout=timeout_s),
                timeout=timeout_s,
            )
        except asyncio.TimeoutError:
            return AttemptOutcome(
                kind=OutcomeKind.NETWORK_FAILURE,
                error=NetworkError(f"Request to {url} timed out after {self.timeout_ms} ms"),
            )
        except httpx.TransportError as e:
            return AttemptOutcome(
                kind=OutcomeKind.NETWORK_FAILURE,
                error=NetworkError(f"Request to {url} failed: {type(e).__name__}: {e}"),
            )
        return classify_response(response)

    async def execute(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        """
        POST ``payload`` as JSON to ``url``.

        Returns:
            The first 2xx response.

        Raises:
            ClientError: On a non-retryable status, after a single attempt.
            ServiceError / NetworkError: The last failure once all attempts
                are used up.
        """
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        last_error: Optional[RetrievalError] = None

        for attempt in range(self.retry_limit):
            outcome = await self._attempt(url, body)

            if outcome.kind is OutcomeKind.SUCCESS:
                return outcome.response

            last_error = outcome.error
            if not outcome.kind.retryable:
                raise outcome.error
            if attempt == self.retry_limit - 1:
                break

            wait_ms = self.backoff_ms(attempt, outcome)
            logger.warning(
                "%s on attempt %d/%d to %s, retrying in %d ms",
                outcome.kind.value, attempt + 1, self.retry_limit, url, wait_ms,
            )
            await self._sleep(wait_ms / 1000)

        logger.error("Giving up on %s after %d attempts: %s", url, self.retry_limit, last_error)
        raise last_error
