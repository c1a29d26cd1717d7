"""Twenty CRM integration layer.

Provides:
- TwentyClient: retrying GraphQL caller with error classification
- CRMGateway: abstract record-level interface used by lead processing
- TwentyGateway: CRMGateway implementation over TwentyClient
- CRMError and its subclasses: the failure taxonomy
"""

from src.bridge.crm.client import TwentyClient, classify_response
from src.bridge.crm.errors import (
    ClientError,
    ConfigurationError,
    CRMError,
    CRMTimeoutError,
    GraphQLError,
    InvalidResponseError,
    NetworkError,
    RetryableError,
    ServerError,
)
from src.bridge.crm.gateway import CRMGateway, TwentyGateway

__all__ = [
    "TwentyClient",
    "classify_response",
    "CRMGateway",
    "TwentyGateway",
    "CRMError",
    "ConfigurationError",
    "GraphQLError",
    "ClientError",
    "InvalidResponseError",
    "RetryableError",
    "ServerError",
    "NetworkError",
    "CRMTimeoutError",
]
