"""Domain exception hierarchy.

Transient upstream failures (UpstreamError subclasses) are retried by the
RetryCoordinator; CredentialUnavailable and UpstreamUnavailable are the
only conditions that reach callers of the gateway.
"""

from typing import Optional


class GatewayError(Exception):
    """Base for all dramagate exceptions."""


# --- Credentials ---

class CredentialSourceError(GatewayError):
    """The external credential source could not provide a valid credential."""


class CredentialUnavailable(GatewayError):
    """No credential could be fetched and none is cached. Fatal for the operation."""


# --- Upstream calls ---

class UpstreamError(GatewayError):
    """A single upstream call failed. Retryable."""


class UpstreamTimeout(UpstreamError):
    """The upstream call exceeded its timeout."""


class UpstreamConnectionError(UpstreamError):
    """The upstream could not be reached (DNS, refused connection, reset)."""


class UpstreamProtocolError(UpstreamError):
    """The upstream answered, but the response could not be read (bad encoding, redirect loop)."""


class UpstreamHttpError(UpstreamError):
    """The upstream answered with an HTTP error status."""

    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        message = f"{status_code} HTTP error"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    @property
    def is_auth_failure(self) -> bool:
        """True for statuses that mean the credential was rejected."""
        return self.status_code in (401, 403)


class UpstreamUnavailable(GatewayError):
    """Every attempt of the first required call in a sequence failed."""

    def __init__(self, operation: str, last_error: Optional[BaseException] = None):
        self.operation = operation
        self.last_error = last_error
        super().__init__(f"Upstream unavailable for {operation}: {last_error}")


# --- Response shape ---

class UnexpectedResponseShape(GatewayError, TypeError):
    """The payload is neither a JSON object nor a JSON array.

    Raised only by the catalog extractor; the gateway degrades it to an
    empty result so it never reaches gateway callers.
    """
