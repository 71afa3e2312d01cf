import dataclasses as dc

import httpx

from restguard._utils import parse_int
from restguard.constants import (
    RATELIMIT_LIMIT_HEADER,
    RATELIMIT_REMAINING_HEADER,
    RATELIMIT_RESET_HEADER,
)


@dc.dataclass(slots=True, frozen=True)
class RateLimit:
    '''
    The rate-limit counters of a response. `limit` is the raw header
    text, also readable as `_limit`; `remaining` and `reset` are `nan`
    when their header is missing or malformed.
    '''
    limit: str
    remaining: int | float
    reset: int | float

    @property
    def _limit(self) -> str:
        return self.limit


def parse_ratelimit_headers(headers: httpx.Headers) -> RateLimit | None:
    if RATELIMIT_LIMIT_HEADER not in headers:
        return None

    return RateLimit(
        limit=headers[RATELIMIT_LIMIT_HEADER],
        remaining=parse_int(headers.get(RATELIMIT_REMAINING_HEADER)),
        reset=parse_int(headers.get(RATELIMIT_RESET_HEADER)),
    )
