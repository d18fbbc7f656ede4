"""Error types.

ProviderError and its subclasses are raised inside a single AI provider call
and converted into a StageResult by the fallback chain; none of them escape
the public entry points. MarketplaceServiceError is raised by the business
service client and turned into an ``error`` field by the intent handlers.
"""
from typing import Optional


class ProviderError(Exception):
    """Base class for failures of an external AI provider."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class MissingCredentialError(ProviderError):
    """No credential resolved for the provider; no request was sent."""


class ProviderUnavailableError(ProviderError):
    """Transport error, timeout, or non-2xx status."""


class UnparsableResponseError(ProviderError):
    """2xx status but the expected text field is absent."""


class MarketplaceServiceError(Exception):
    """The listing/matching service could not complete a call."""

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.status_code = status_code
