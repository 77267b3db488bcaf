"""
Retrying and swap tracing

retry_call is the single retry loop used by the RPC client, the quote
client and the transaction builder. Log lines it emits carry the
correlation ID of the swap they belong to.
"""

import logging
import time
import uuid
import contextvars
from typing import Callable, Optional, TypeVar

from ..errors import SwapAdapterError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def generate_correlation_id() -> str:
    return uuid.uuid4().hex[:12]


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def set_correlation_id(correlation_id: Optional[str]) -> contextvars.Token:
    """Bind ``correlation_id`` to the current context; the token undoes it"""
    return _correlation_id.set(correlation_id)


class CorrelationContext:
    """
    Scope a fresh correlation ID over a block

        with CorrelationContext("swap") as cid:
            logger.info(f"[{cid}] quoting")

    Nested scopes restore the outer ID on exit.
    """

    def __init__(self, prefix: Optional[str] = None):
        cid = generate_correlation_id()
        self.correlation_id = f"{prefix}_{cid}" if prefix else cid
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = set_correlation_id(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _correlation_id.reset(self._token)
            self._token = None


def _log_attempt(level: int, operation_name: str, attempt: int, max_attempts: int, text: str, outcome: str):
    cid = get_correlation_id()
    prefix = f"[{cid}] " if cid else ""
    logger.log(
        level,
        f"{prefix}[{operation_name}] [{attempt}/{max_attempts}] {text}",
        extra={
            "correlation_id": cid,
            "operation": operation_name,
            "attempt": attempt,
            "max_attempts": max_attempts,
            "outcome": outcome,
        },
    )


def is_recoverable(error: Exception) -> bool:
    """Retry adapter errors flagged recoverable; never retry anything else"""
    return isinstance(error, SwapAdapterError) and error.recoverable


def retry_call(
    operation: Callable[[float], T],
    operation_name: str,
    max_attempts: int,
    timeout: float,
    delay: float,
    is_retryable: Callable[[Exception], bool] = is_recoverable,
) -> T:
    """
    Run ``operation(timeout)`` up to ``max_attempts`` times.

    Attempts are separated by a fixed ``delay``; there is no pause after
    the last one. An error rejected by ``is_retryable`` propagates at once,
    otherwise the error of the final attempt is re-raised.

    Args:
        operation: Called with the per-attempt timeout in seconds
        operation_name: Label used in log lines, e.g. "quote(SOL->USDC)"
        max_attempts: Attempt budget; values below 1 count as 1
        timeout: Passed through to every attempt
        delay: Seconds between attempts
        is_retryable: Classifies a raised error

    Example:
        quote = retry_call(lambda t: api.get_quote(params, timeout=t),
                           "quote", max_attempts=3, timeout=10.0, delay=1.0)
    """
    budget = max(1, max_attempts)
    attempt = 0

    while True:
        attempt += 1
        try:
            value = operation(timeout)
        except Exception as e:
            if not is_retryable(e):
                _log_attempt(logging.WARNING, operation_name, attempt, budget, f"not retryable: {e}", "fatal")
                raise
            if attempt >= budget:
                _log_attempt(logging.WARNING, operation_name, attempt, budget, f"giving up: {e}", "exhausted")
                raise
            _log_attempt(logging.WARNING, operation_name, attempt, budget, f"will retry: {e}", "recoverable")
            if delay > 0:
                time.sleep(delay)
            continue

        if attempt > 1:
            _log_attempt(logging.INFO, operation_name, attempt, budget, "succeeded", "ok")
        return value
