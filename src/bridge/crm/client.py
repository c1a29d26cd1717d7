"""Async GraphQL client for the Twenty CRM API.

Every call is a POST of ``{"query", "variables"}`` to a single endpoint with
bearer-token auth. Outcomes are classified by classify_response():

- GraphQL ``errors`` in the body -> GraphQLError (not retried)
- HTTP 5xx -> ServerError (retried)
- HTTP 4xx -> ClientError (not retried)
- anything else -> the ``data`` payload

Connection failures and timeouts are retried as well. Retries use tenacity
with exponential backoff (200ms, 400ms, ...) up to TWENTY_MAX_ATTEMPTS, and
the last error is re-raised once attempts run out.
"""

from __future__ import annotations

import asyncio
import re
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.bridge.config import Settings
from src.bridge.core.monitoring import (
    twenty_request_duration_seconds,
    twenty_requests_total,
    twenty_retries_total,
)
from src.bridge.crm.errors import (
    ClientError,
    ConfigurationError,
    CRMTimeoutError,
    GraphQLError,
    InvalidResponseError,
    NetworkError,
    RetryableError,
    ServerError,
)

logger = structlog.get_logger(__name__)

_OPERATION_NAME_RE = re.compile(r"\b(?:query|mutation)\s+(\w+)")

SleepFn = Callable[[float], Awaitable[None]]


def operation_name(query: str) -> str:
    """Return the declared operation name of a GraphQL document, or 'anonymous'."""
    match = _OPERATION_NAME_RE.search(query)
    return match.group(1) if match else "anonymous"


def classify_response(status_code: int, body: Any) -> dict[str, Any]:
    """Decide the outcome of one attempt from its HTTP status and decoded body.

    Returns the ``data`` payload on success, raises a CRMError subclass
    otherwise. GraphQL errors take precedence over the HTTP status.
    """
    if isinstance(body, dict) and body.get("errors"):
        errors = body["errors"]
        if not isinstance(errors, list):
            errors = [{"message": str(errors)}]
        raise GraphQLError(errors)

    if status_code >= 500:
        raise ServerError(status_code)
    if status_code >= 400:
        raise ClientError(status_code)

    if not isinstance(body, dict):
        raise InvalidResponseError(
            f"Expected a JSON object from Twenty API (Status: {status_code})"
        )
    data = body.get("data")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidResponseError(
            f"Expected a JSON object in Twenty API data (Status: {status_code})"
        )
    return data


class TwentyClient:
    """Retrying GraphQL caller for the Twenty CRM.

    Operation-agnostic: callers pass the query/mutation document and its
    variables. Settings are read once at construction.

    Args:
        settings: Application settings (API URL, token, timeout, retry policy).
        http_client: Optional pre-built httpx.AsyncClient (tests inject one
            backed by httpx.MockTransport).
        sleep: Awaitable sleep used between attempts.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._url = settings.TWENTY_API_URL
        self._token = settings.TWENTY_API_TOKEN
        self._timeout = settings.TWENTY_TIMEOUT
        self._max_attempts = settings.TWENTY_MAX_ATTEMPTS
        self._initial_backoff = settings.TWENTY_INITIAL_BACKOFF_MS / 1000
        self._sleep = sleep
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self._timeout)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def call(self, operation: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute a GraphQL operation and return its ``data`` payload.

        Raises:
            ConfigurationError: API URL or token not configured.
            GraphQLError: Response carried GraphQL errors.
            ClientError: HTTP 4xx.
            ServerError / NetworkError / CRMTimeoutError: Still failing after
                the last allowed attempt.
        """
        if not self._url or not self._token:
            if not self._url:
                logger.error("twenty.config_missing", setting="TWENTY_API_URL")
            if not self._token:
                logger.error("twenty.config_missing", setting="TWENTY_API_TOKEN")
            raise ConfigurationError("Twenty API URL or Token is not configured.")

        name = operation_name(operation)
        body = {"query": operation, "variables": variables or {}}

        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._initial_backoff, exp_base=2),
            retry=retry_if_exception_type(RetryableError),
            before_sleep=self._log_retry(name),
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                return await self._attempt(
                    name, body, attempt.retry_state.attempt_number
                )

        # Unreachable: reraise=True surfaces the last error.
        raise RuntimeError("Twenty API call failed after all retries.")

    async def _attempt(self, name: str, body: dict[str, Any], attempt_number: int) -> dict[str, Any]:
        """Run a single request and classify it."""
        logger.debug(
            "twenty.call",
            operation=name,
            attempt=attempt_number,
            max_attempts=self._max_attempts,
            variables=body["variables"],
        )
        start_time = time.perf_counter()
        status = "error"
        try:
            try:
                response = await self._http.post(
                    self._url,
                    json=body,
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {self._token}",
                    },
                    timeout=self._timeout,
                )
            except httpx.TimeoutException as exc:
                raise CRMTimeoutError(f"Twenty API request timed out: {exc}") from exc
            except httpx.RequestError as exc:
                raise NetworkError(f"Twenty API request failed: {exc}") from exc

            try:
                payload = response.json()
            except ValueError:
                payload = None

            data = classify_response(response.status_code, payload)
            status = "success"
            logger.debug("twenty.call_succeeded", operation=name, attempt=attempt_number)
            return data
        except RetryableError as exc:
            status = "retryable_error"
            logger.warning(
                "twenty.call_failed",
                operation=name,
                attempt=attempt_number,
                error=str(exc),
                retryable=True,
            )
            raise
        except (GraphQLError, ClientError, InvalidResponseError) as exc:
            logger.error(
                "twenty.call_failed",
                operation=name,
                attempt=attempt_number,
                error=str(exc),
                retryable=False,
            )
            raise
        finally:
            twenty_requests_total.labels(operation=name, status=status).inc()
            twenty_request_duration_seconds.labels(operation=name).observe(
                time.perf_counter() - start_time
            )

    @staticmethod
    def _log_retry(name: str) -> Callable[[RetryCallState], None]:
        def before_sleep(retry_state: RetryCallState) -> None:
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            twenty_retries_total.labels(operation=name).inc()
            logger.info(
                "twenty.call_retry",
                operation=name,
                attempt=retry_state.attempt_number,
                delay_ms=round(delay * 1000),
            )

        return before_sleep
