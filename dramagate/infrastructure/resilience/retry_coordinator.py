"""Service for executing upstream calls with bounded retries.

Wraps a RequestExecutor with a fixed inter-attempt backoff and coordinated
credential invalidation: when the upstream answers 401/403 the credential
that was used is invalidated exactly once for that attempt, so the next
attempt fetches a new one.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Mapping, Optional

from dramagate.core.services.credential_provider import CredentialProvider
from dramagate.domain.events.api_events import ApiCallInitiated, ApiCallSucceeded, ApiCallFailed, RetryScheduled
from dramagate.domain.events.dispatcher import EventDispatcher
from dramagate.domain.exceptions import CredentialUnavailable, UpstreamError, UpstreamHttpError
from dramagate.domain.interfaces.request_executor import RequestExecutor
from dramagate.domain.models.common import CredentialPolicy, CACHED_CREDENTIAL
from dramagate.domain.models.credentials import Credential
from dramagate.domain.models.upstream import RetryOutcome, UpstreamRequestSpec, UpstreamResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_BACKOFF_SECONDS = 1.0

SpecBuilder = Callable[[], UpstreamRequestSpec]
HeaderFactory = Callable[[Credential], Mapping[str, str]]
Sleeper = Callable[[float], Awaitable[None]]


class RetryCoordinator:
    """Handles upstream call execution with credential refresh and retries."""

    def __init__(
        self,
        credential_provider: CredentialProvider,
        executor: RequestExecutor,
        header_factory: HeaderFactory,
        dispatcher: Optional[EventDispatcher] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Sleeper = asyncio.sleep,
    ):
        """Initializes the RetryCoordinator.

        Args:
            credential_provider: Source of credentials; invalidated on 401/403.
            executor: Performs the individual upstream calls.
            header_factory: Builds request headers from a credential.
            dispatcher: Receives API call lifecycle events.
            max_retries: Default number of retries after the first attempt.
            backoff_seconds: Fixed delay between attempts.
            sleep: Awaitable used for the backoff (injectable for tests).
        """
        self.credential_provider = credential_provider
        self.executor = executor
        self.header_factory = header_factory
        self.dispatcher = dispatcher or EventDispatcher()
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    async def execute(
        self,
        spec_builder: SpecBuilder,
        credential_policy: CredentialPolicy = CACHED_CREDENTIAL,
        max_retries: Optional[int] = None,
        endpoint_name: Optional[str] = None,
    ) -> RetryOutcome[UpstreamResponse]:
        """Executes one logical upstream operation, retrying transient failures.

        Args:
            spec_builder: Builds the request description for each attempt.
            credential_policy: Whether every attempt forces a credential refresh.
            max_retries: Retries after the first attempt (defaults to the instance setting).
                At most `max_retries + 1` upstream calls are made.
            endpoint_name: Label used in events and logs (defaults to the target path).

        Returns:
            RetryOutcome.success(response) on the first successful attempt, or
            RetryOutcome.failure(last_error) once attempts are exhausted or no
            credential can be obtained. Errors outside the UpstreamError
            hierarchy are not retried and propagate.
        """
        retries = self.max_retries if max_retries is None else max_retries
        endpoint = endpoint_name or "upstream"
        last_error: Optional[BaseException] = None

        for attempt in range(retries + 1):
            attempt_number = attempt + 1

            # 1. Credential (fatal if none can be obtained at all)
            try:
                credential = await self.credential_provider.obtain(force_refresh=credential_policy.force_refresh)
            except CredentialUnavailable as e:
                logger.error(f"No credential for {endpoint} on attempt {attempt_number}: {e}")
                self._dispatch_failed(endpoint, attempt, e)
                return RetryOutcome.failure(e, attempts=attempt)

            # 2. Build and execute the request
            spec = spec_builder()
            endpoint = endpoint_name or spec.target_path
            headers = self.header_factory(credential)
            self.dispatcher.dispatch(ApiCallInitiated(endpoint=endpoint, attempt_number=attempt_number))
            start_time = time.perf_counter()
            try:
                response = await self.executor.execute(spec, headers)
            except UpstreamError as e:
                last_error = e
                if isinstance(e, UpstreamHttpError) and e.is_auth_failure:
                    logger.info(f"{endpoint} rejected the credential ({e.status_code}); invalidating.")
                    await self.credential_provider.invalidate(
                        rejected=credential, endpoint=endpoint, status_code=e.status_code
                    )
                if attempt == retries:
                    logger.error(f"Max retries ({retries}) reached for {endpoint}. Last error: {e}")
                    break
                logger.warning(
                    f"Attempt {attempt_number}/{retries + 1} for {endpoint} failed: {type(e).__name__}: {e}. "
                    f"Waiting {self.backoff_seconds:.2f}s..."
                )
                self.dispatcher.dispatch(RetryScheduled(
                    endpoint=endpoint, attempt_number=attempt_number, delay_seconds=self.backoff_seconds,
                    error_type=type(e).__name__, error_message=str(e),
                ))
                await self._sleep(self.backoff_seconds)
                continue

            # 3. Success
            latency_ms = (time.perf_counter() - start_time) * 1000
            if response.elapsed_ms is None:
                response.elapsed_ms = latency_ms
            self.dispatcher.dispatch(ApiCallSucceeded(endpoint=endpoint, attempt_number=attempt_number, latency_ms=latency_ms))
            return RetryOutcome.success(response, attempts=attempt_number)

        final_error = last_error or UpstreamError(f"{endpoint} failed without an error")
        self._dispatch_failed(endpoint, retries + 1, final_error)
        return RetryOutcome.failure(final_error, attempts=retries + 1)

    def _dispatch_failed(self, endpoint: str, attempts: int, error: BaseException) -> None:
        self.dispatcher.dispatch(ApiCallFailed(
            endpoint=endpoint, attempts=attempts, error_type=type(error).__name__, error_message=str(error),
        ))
