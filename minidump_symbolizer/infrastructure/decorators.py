"""
Infrastructure-specific retry policy for network operations.
"""

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# --- Constants for Retry Logic ---
_RETRY_MIN_WAIT_SECONDS = 1
_RETRY_MAX_WAIT_SECONDS = 10


def _log_before_retry(retry_state):
    """Log the retry attempt with details about the exception and wait time."""
    exception = retry_state.outcome.exception()
    next_attempt_in = retry_state.next_action.sleep
    logger.warning(
        f"Retrying download in {next_attempt_in:.2f}s due to "
        f"{type(exception).__name__} (attempt {retry_state.attempt_number})..."
    )


def retrying_on_network_error(attempts: int) -> AsyncRetrying:
    """
    Builds a retry loop for transient transport failures.

    Only connection failures and timeouts are retried; HTTP status errors
    are answers from the server and are never retried. With attempts=1 the
    wrapped block runs exactly once.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(
            multiplier=1,
            min=_RETRY_MIN_WAIT_SECONDS,
            max=_RETRY_MAX_WAIT_SECONDS,
        ),
        retry=retry_if_exception_type(
            (httpx.ConnectError, httpx.TimeoutException)
        ),
        before_sleep=_log_before_retry,
        reraise=True,
    )
