"""Retry policy for conversion jobs.

Failed deliveries are retried by the queue, not in-process: the handler
asks the queue to redeliver after an exponential backoff (1s, 2s, 4s, ...)
and gives up after a bounded number of attempts. Only transient failures
are retried; everything else fails fast.
"""

import logging

from .errors import TransientError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_MAX_DELAY_SECONDS = 60.0


def backoff_delay(
    attempts: int,
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS,
) -> float:
    """Calculate the redelivery delay after a failed attempt.

    Args:
        attempts: 1-based number of the attempt that just failed
        base_delay: Delay after the first attempt
        max_delay: Upper bound for the delay

    Returns:
        Delay in seconds: base_delay * 2 ** (attempts - 1), capped at max_delay

    Example:
        >>> [backoff_delay(n) for n in (1, 2, 3)]
        [1.0, 2.0, 4.0]
    """
    exponent = max(attempts, 1) - 1
    return float(min(base_delay * 2 ** exponent, max_delay))


def should_retry(
    error: BaseException,
    attempts: int,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> bool:
    """Decide whether a failed attempt gets another delivery.

    Args:
        error: The exception the attempt failed with
        attempts: 1-based number of the attempt that just failed
        max_attempts: Total deliveries allowed per job

    Returns:
        True for a TransientError with attempts left, False otherwise
    """
    if not isinstance(error, TransientError):
        return False

    if attempts >= max_attempts:
        logger.error(f"Transient failure persisted after {attempts} attempt(s), giving up")
        return False

    return True
