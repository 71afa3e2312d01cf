'''
retry policies for restguard requests

- `retry_policy` retries a coroutine on connection-level failures and is
used by the default transport.
- `RetryBudget` tracks how many transient HTTP statuses a single request
may still absorb before the error is surfaced.

Raises
------
NoAttemptsLeftError
    _raised from previous exception when all attempts are exhausted_
'''
import asyncio
import dataclasses as dc
import functools
import logging
import random
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

import httpcore
import httpx

from restguard.constants import RETRY_ERROR_CODES
from restguard.errors import NoAttemptsLeftError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionError,
    asyncio.TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.RemoteProtocolError,
    httpx.PoolTimeout,
    httpx.ProxyError,
    httpcore.ConnectError,
)


@dc.dataclass(slots=True)
class RetryBudget:
    '''
    The transient-status retry budget of one request. `None` or zero
    means failures are surfaced on the first attempt.
    '''
    remaining: int | None = None
    codes: frozenset[int] = RETRY_ERROR_CODES

    def consume(self, status_code: int) -> bool:
        '''
        Spend one retry on `status_code` if it is retryable and the
        budget allows it.

        Parameters
        ----------
        status_code : int

        Returns
        -------
        bool
            True when the request should be dispatched again.
        '''
        if not self.remaining or self.remaining <= 0:
            return False
        if status_code not in self.codes:
            return False
        self.remaining -= 1
        return True


class retry_policy:

    def __init__(
        self,
        *,
        attempts: int = 3,
        delay: float = 0.25,
        jitter: float = 0.1,
        retry_on: tuple[type[BaseException], ...] = CONNECTION_ERRORS,
    ) -> None:
        '''
        Parameters
        ----------
        attempts : int, optional
            The maximum number of attempts, by default 3
        delay : float, optional
            The base delay between attempts, by default 0.25
        jitter : float, optional
            The jitter factor to apply to the delay, by default 0.1
        retry_on : tuple[type[BaseException], ...], optional
            The exceptions worth another attempt, by default connection
            and pool failures
        '''
        self.attempts: int = max(1, attempts)
        self.delay: float = delay
        self.jitter: float = jitter
        self.retry_on = retry_on

    def get_timeout(self, attempt_no: int) -> float:
        base = self.delay * attempt_no

        if self.jitter:
            j = base * self.jitter
            base += random.uniform(-j, j)

        return max(0.0, base)

    async def call_with_retries(
        self,
        func: Callable[P, Awaitable[R]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> R:
        for attempt_no in range(1, self.attempts + 1):
            try:
                return await func(*args, **kwargs)
            except self.retry_on as exc:
                if attempt_no == self.attempts:
                    raise NoAttemptsLeftError(
                        f"Failed after {self.attempts} attempts: {exc}"
                    ) from exc
                logger.debug(
                    'Attempt %d/%d failed: %r', attempt_no, self.attempts, exc
                )
                await asyncio.sleep(self.get_timeout(attempt_no))

        raise NoAttemptsLeftError(f"Failed after {self.attempts} attempts")

    def __call__(
        self,
        func: Callable[P, Awaitable[R]],
    ) -> Callable[P, Awaitable[R]]:

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            return await self.call_with_retries(func, *args, **kwargs)

        return wrapper
