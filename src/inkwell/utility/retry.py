"""
Bounded polling for async probes.

The source service paints its interface lazily, so "is it there yet?" checks
are repeated for a short, fixed window before giving up. Polling is the only
retry inkwell does on its own: a whole run is never retried automatically.
"""
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, Union

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_delay,
    wait_fixed,
)

from inkwell.messages import get_logger


class PollTimeout(Exception):
    """Raised when a probe never produced an accepted result in time."""

    def __init__(self, timeout: float, last_result: Any = None):
        super().__init__(f"Probe not satisfied within {timeout:.2f}s")
        self.timeout = timeout
        self.last_result = last_result


async def poll_until(
    probe: Callable[[], Awaitable[Any]],
    accept: Callable[[Any], bool] = bool,
    timeout: float = 2.0,
    interval: float = 0.25,
    exceptions: Union[Type[Exception], Tuple[Type[Exception], ...]] = (),
    logger_name: str = "inkwell.retry",
) -> Any:
    """
    Call an async probe until its result is accepted or the timeout passes.

    Args:
        probe: Zero-argument coroutine function to call repeatedly
        accept: Predicate applied to each result (default: truthiness)
        timeout: Total time budget in seconds
        interval: Delay between attempts in seconds
        exceptions: Exception types treated as "not yet" instead of failing
        logger_name: Name for logging poll attempts

    Example:
        count = await poll_until(locator.count, lambda n: n > 0, timeout=2.0)

    Returns:
        The first accepted probe result

    Raises:
        PollTimeout: If no attempt was accepted within the timeout
        Any exception not listed in exceptions, immediately
    """
    logger = get_logger(logger_name)
    standard_logger = logger.logger if hasattr(logger, "logger") else logger

    retry_condition = retry_if_result(lambda result: not accept(result))
    if exceptions:
        retry_condition = retry_condition | retry_if_exception_type(exceptions)

    last: Optional[Any] = None
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_delay(timeout),
            wait=wait_fixed(interval),
            retry=retry_condition,
            before_sleep=before_sleep_log(standard_logger, logging.DEBUG),
        ):
            with attempt:
                last = await probe()
            if not attempt.retry_state.outcome.failed:
                attempt.retry_state.set_result(last)
    except RetryError as e:
        raise PollTimeout(timeout, last) from e
    return last
