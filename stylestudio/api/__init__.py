"""External styling service client."""

from .styling_client import (
    BackgroundIsolationError,
    ClassificationParseError,
    ConfigurationError,
    ServiceRequestError,
    StylingServiceClient,
)

__all__ = [
    "BackgroundIsolationError",
    "ClassificationParseError",
    "ConfigurationError",
    "ServiceRequestError",
    "StylingServiceClient",
]
