"""Domain models describing a single upstream exchange.

Includes the request description handed to the RequestExecutor, the parsed
response it returns, and the outcome produced by the RetryCoordinator.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from .common import UpstreamPath

T = TypeVar("T")


@dataclass(frozen=True)
class UpstreamRequestSpec:
    """Value object describing one upstream call. Constructed per call."""
    target_path: UpstreamPath
    payload: Dict[str, Any] = field(default_factory=dict)
    timeout_ms: int = 15_000
    method: str = "POST"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


@dataclass
class UpstreamResponse:
    """Response from the upstream service.

    `body` holds the decoded JSON, or None when the response was not JSON.
    Interpreting its shape is left to the caller.
    """
    status_code: int
    body: Any = None
    text: str = ""
    elapsed_ms: Optional[float] = None


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Either Success(value) or Failure(error), produced once per retried operation."""
    value: Optional[T] = None
    error: Optional[BaseException] = None
    attempts: int = 0

    @classmethod
    def success(cls, value: T, attempts: int = 1) -> "RetryOutcome[T]":
        return cls(value=value, error=None, attempts=attempts)

    @classmethod
    def failure(cls, error: BaseException, attempts: int = 0) -> "RetryOutcome[T]":
        return cls(value=None, error=error, attempts=attempts)

    @property
    def ok(self) -> bool:
        return self.error is None
