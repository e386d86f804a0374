"""
Exponential backoff and retry for blocking calls.
"""

import random
import time
from typing import Any, Callable, Optional, TypeVar

from shared.logging import get_logger

T = TypeVar("T")


class RetryConfig:
    """Configuration for retry behavior.

    Intervals and elapsed-time budgets are in seconds. ``max_attempts`` counts
    every call made, including the first one.
    """

    def __init__(self,
                 max_attempts: int = 10,
                 initial_interval: float = 0.5,
                 multiplier: float = 1.5,
                 randomization_factor: float = 0.5,
                 max_interval: float = 10.0,
                 max_elapsed_time: float = 30.0):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if not 0 <= randomization_factor < 1:
            raise ValueError("randomization_factor must be in [0, 1)")
        if multiplier < 1:
            raise ValueError("multiplier must be at least 1")
        self.max_attempts = max_attempts
        self.initial_interval = initial_interval
        self.multiplier = multiplier
        self.randomization_factor = randomization_factor
        self.max_interval = max_interval
        self.max_elapsed_time = max_elapsed_time


class ExponentialBackOff:
    """Randomized exponential backoff with an elapsed-time budget.

    Each delay is drawn uniformly from
    ``[interval * (1 - randomization_factor), interval * (1 + randomization_factor)]``
    and the interval then grows by ``multiplier`` up to ``max_interval``.
    ``next_backoff`` returns None once waiting would take the total elapsed
    time past ``max_elapsed_time``, so no attempt ever starts after the budget.
    """

    def __init__(self,
                 config: RetryConfig,
                 clock: Callable[[], float] = time.monotonic,
                 rng: Optional[Callable[[], float]] = None):
        self.config = config
        self._clock = clock
        self._rng = rng or random.random
        self.reset()

    def reset(self) -> None:
        self.current_interval = self.config.initial_interval
        self._start_time = self._clock()

    @property
    def elapsed(self) -> float:
        return self._clock() - self._start_time

    def next_backoff(self) -> Optional[float]:
        elapsed = self.elapsed
        if elapsed >= self.config.max_elapsed_time:
            return None

        delay = self._randomized_interval()
        if elapsed + delay > self.config.max_elapsed_time:
            return None

        self._increment_interval()
        return delay

    def _randomized_interval(self) -> float:
        delta = self.config.randomization_factor * self.current_interval
        low = self.current_interval - delta
        high = self.current_interval + delta
        return low + self._rng() * (high - low)

    def _increment_interval(self) -> None:
        # Guard against overflowing past the cap
        if self.current_interval >= self.config.max_interval / self.config.multiplier:
            self.current_interval = self.config.max_interval
        else:
            self.current_interval *= self.config.multiplier


def call_with_backoff(func: Callable[[], T],
                      config: Optional[RetryConfig] = None,
                      retry_on_result: Optional[Callable[[T], bool]] = None,
                      retry_on_exception: Optional[Callable[[Exception], bool]] = None,
                      sleep: Callable[[float], Any] = time.sleep,
                      clock: Callable[[], float] = time.monotonic,
                      name: Optional[str] = None) -> T:
    """Call ``func`` until it yields an outcome that should not be retried.

    ``retry_on_result`` decides whether a returned value is transient and
    ``retry_on_exception`` whether a raised exception is. Anything else is
    returned or raised straight away. When attempts or the time budget run
    out, the last outcome is surfaced as-is: the last result is returned or
    the last exception re-raised.

    All state lives in this call, so concurrent callers may share one config.
    """
    if config is None:
        config = RetryConfig()

    name = name or getattr(func, "__name__", "call")
    logger = get_logger(f"retry.{name}")
    backoff = ExponentialBackOff(config, clock=clock)

    attempt = 0
    while True:
        attempt += 1
        error: Optional[Exception] = None
        result: Any = None

        try:
            result = func()
        except Exception as e:
            if retry_on_exception is None or not retry_on_exception(e):
                raise
            error = e
        else:
            if retry_on_result is None or not retry_on_result(result):
                if attempt > 1:
                    logger.info("Retry succeeded", attempt=attempt, function=name)
                return result

        outcome = str(error) if error is not None else str(result)

        if attempt >= config.max_attempts:
            logger.error(
                "All retry attempts exhausted",
                attempt=attempt,
                max_attempts=config.max_attempts,
                function=name,
                outcome=outcome
            )
            return _surface(result, error)

        delay = backoff.next_backoff()
        if delay is None:
            logger.error(
                "Retry time budget exhausted",
                attempt=attempt,
                elapsed=backoff.elapsed,
                max_elapsed_time=config.max_elapsed_time,
                function=name,
                outcome=outcome
            )
            return _surface(result, error)

        logger.warning(
            "Retry attempt failed, waiting before next attempt",
            attempt=attempt,
            delay=delay,
            function=name,
            outcome=outcome
        )
        sleep(delay)


def _surface(result: Any, error: Optional[Exception]) -> Any:
    if error is not None:
        raise error
    return result
