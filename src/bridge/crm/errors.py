"""Exception taxonomy for Twenty CRM calls.

RetryableError subclasses are transient and re-attempted by TwentyClient;
everything else fails the call immediately.
"""

from __future__ import annotations


class CRMError(Exception):
    """Base class for every failure surfaced by the CRM layer."""


class ConfigurationError(CRMError):
    """The Twenty API URL or token is not configured."""


class GraphQLError(CRMError):
    """The response carried application-level GraphQL errors.

    Attributes:
        errors: The raw ``errors`` array from the response body.
    """

    def __init__(self, errors: list[dict]) -> None:
        self.errors = errors
        messages = "; ".join(
            str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors
        )
        super().__init__(f"GraphQL Error: {messages}")


class ClientError(CRMError):
    """HTTP 4xx from the Twenty API."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"API Request Failed: Client Error (Status: {status_code})")


class InvalidResponseError(CRMError):
    """A successful HTTP status with a body that is not a JSON object."""


class RetryableError(CRMError):
    """Transient failure worth re-attempting with backoff."""


class ServerError(RetryableError):
    """HTTP 5xx from the Twenty API."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"API Request Failed with status {status_code}")


class NetworkError(RetryableError):
    """Connection could not be established or was dropped."""


class CRMTimeoutError(NetworkError):
    """The request did not complete within the configured timeout."""
