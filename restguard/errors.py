'''
**restguard.errors**
---------

Exceptions raised by the restguard client.
'''
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from restguard.http._ratelimit import RateLimit
    from restguard.http._response import HTTPResponse


class URLRejectedError(ValueError):
    '''
    Raised when a request URL can't be resolved into an absolute URL.

    Parent: ValueError
    '''


class NoAttemptsLeftError(Exception):
    '''
    Raised by the default transport once every connection attempt failed,
    chained from the last transport exception.
    '''


class RESTError(Exception):
    '''
    A terminal HTTP failure returned by the API.

    Attributes
    ----------
    message : str
        The rendered message, including any structured errors.
    is_http_error : bool
        Always True for errors built from an HTTP response.
    errors : list[dict[str, Any]]
        The structured errors parsed from the response body.
    http_code : int | None
        The response status code.
    response : HTTPResponse | None
        The response that caused the error.
    ratelimit : RateLimit | None
        The rate-limit snapshot of that response, if any.
    '''

    def __init__(
        self,
        message: str,
        is_http_error: bool = False,
        errors: list[dict[str, Any]] | None = None,
        http_code: int | None = None,
        response: HTTPResponse | None = None,
        ratelimit: RateLimit | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.is_http_error = is_http_error
        self.errors = errors or []
        self.http_code = http_code
        self.response = response
        self.ratelimit = ratelimit
