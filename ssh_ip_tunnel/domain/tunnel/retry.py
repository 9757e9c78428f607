"""
Exponential backoff retry policy
"""
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Type, TypeVar

from ...core.constants import RETRY_INITIAL_DELAY, RETRY_MULTIPLIER, RETRY_MAX_DELAY
from ...core.exceptions import TimeoutExhausted, TunnelCreationFailed, ValidationFailed
from ...core.logging import get_logger
from .models import AttemptOutcome, RetryState, TunnelConfig

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry a fallible operation with exponentially growing delays.

    An attempt fails when the operation raises one of ``retry_on``; anything
    else propagates untouched. Retrying stops with TimeoutExhausted once the
    deadline or the attempt budget is spent. The policy never sleeps past the
    deadline: if the next delay would cross it, it gives up right away.

    Args:
        max_elapsed: Overall deadline in seconds, measured from the first attempt
        initial_delay: Delay after the first failure
        multiplier: Growth factor between consecutive delays
        max_delay: Cap on a single delay
        max_attempts: Optional cap on the number of attempts
        retry_on: Exception types that count as transient failures
        clock: Monotonic time source
        sleep: Sleep function
    """
    max_elapsed: float
    initial_delay: float = RETRY_INITIAL_DELAY
    multiplier: float = RETRY_MULTIPLIER
    max_delay: float = RETRY_MAX_DELAY
    max_attempts: Optional[int] = None
    retry_on: Tuple[Type[BaseException], ...] = (TunnelCreationFailed, ValidationFailed)
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    def __post_init__(self):
        if self.max_elapsed <= 0:
            raise ValueError(f"max_elapsed must be > 0, got {self.max_elapsed}")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    @classmethod
    def from_config(
        cls,
        config: TunnelConfig,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "RetryPolicy":
        """Deadline from timeout_seconds, budget of max_retries retries after the first try"""
        return cls(
            max_elapsed=float(config.timeout_seconds),
            max_attempts=config.max_retries + 1,
            clock=clock,
            sleep=sleep,
        )

    def delays(self):
        """Yield the backoff schedule: initial_delay, then multiplied up to max_delay"""
        delay = min(self.max_delay, self.initial_delay)
        while True:
            yield delay
            delay = min(self.max_delay, delay * self.multiplier)

    def run(
        self,
        operation: Callable[[], T],
        phase: str,
        state: Optional[RetryState] = None,
        on_failure: Optional[Callable[[RetryState], None]] = None,
    ) -> T:
        """
        Invoke operation until it succeeds or the budget runs out.

        Args:
            operation: Zero-argument callable, one attempt per call
            phase: Name used in logs and in TimeoutExhausted
            state: RetryState to fill in, for callers that want the attempt history
            on_failure: Called with the current RetryState after each failed attempt

        Returns:
            The operation's return value

        Raises:
            TimeoutExhausted: Deadline or attempt budget exhausted
        """
        state = state if state is not None else RetryState()
        started = self.clock()
        schedule = self.delays()

        while True:
            state.attempt_count += 1
            try:
                result = operation()
            except self.retry_on as e:
                state.outcomes.append(AttemptOutcome.failure(e))
                state.elapsed = self.clock() - started
                state.next_delay = next(schedule)

                if on_failure:
                    on_failure(state)

                if self.max_attempts is not None and state.attempt_count >= self.max_attempts:
                    logger.debug(f"{phase}: attempt budget of {self.max_attempts} spent")
                    raise TimeoutExhausted(phase, e, state.attempt_count) from e

                if state.elapsed >= self.max_elapsed or state.elapsed + state.next_delay > self.max_elapsed:
                    logger.debug(
                        f"{phase}: {state.elapsed:.2f}s elapsed, next delay "
                        f"{state.next_delay:.2f}s would pass the {self.max_elapsed:g}s deadline"
                    )
                    raise TimeoutExhausted(phase, e, state.attempt_count) from e

                logger.warning(
                    f"{phase} attempt {state.attempt_count} failed: {e}; "
                    f"retrying in {state.next_delay:.2f}s"
                )
                self.sleep(state.next_delay)
            else:
                state.outcomes.append(AttemptOutcome.success())
                state.elapsed = self.clock() - started
                if state.attempt_count > 1:
                    logger.debug(f"{phase} succeeded after {state.attempt_count} attempts")
                return result
