from __future__ import annotations

import dataclasses as dc
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Literal, TypeAlias

import httpx

from restguard.http._body import RequestBody
from restguard.http._parsers import ErrorHandling, ParsedChallenge
from restguard.http._transport import CacheMode

HTTPMethod = Literal['GET', 'POST', 'PATCH', 'PUT', 'DELETE', 'OPTIONS']

ExpectType = Literal[
    'json',
    'json_bigint',
    'text',
    'bytes',
    'formdata',
    'dom',
    'none',
]

ChallengeHandler: TypeAlias = Callable[
    [ParsedChallenge],
    ParsedChallenge | None | Awaitable[ParsedChallenge | None],
]


@dc.dataclass(slots=True, frozen=True, kw_only=True)
class HTTPRequest:
    '''
    A request for `HTTPClient.http_request`.

    Attributes
    ----------
    method : HTTPMethod
        By default GET.
    url : str
        An absolute URL, a `/`-relative path, or a bare host and path.
    search : Mapping[str, Any] | httpx.QueryParams | None
        Query parameters; None values are dropped.
    headers : Mapping[str, Any] | httpx.Headers | None
        Request headers; None values are dropped.
    body : RequestBody | None
    expect : ExpectType | None
        How to decode the response body, JSON when unset.
    include_credentials : bool | None
        Send (True) or withhold (False) credentials; None leaves it to
        the transport. Also selects the per-account CSRF token.
    camelize_response : bool
        Camelize the keys of a JSON response.
    cache : CacheMode | None
    bypass_cors : bool
        Dispatch through the configured CORS bypass fetch.
    account_token : str | int | None
        The account the request is made for; None is the default account.
    override_device_type : str | None
        Impersonate another device class.
    include_csrf : bool | None
        Attach a CSRF token; None means "unless the method is GET".
    retries : int | None
        How many 500/502/503/504 responses to retry.
    error_handling : ErrorHandling
        The error body format, or "none" to return failed responses.
    handle_challenge : ChallengeHandler | None
        Resolves challenges; returning a challenge retries with it.
    '''
    url: str
    method: HTTPMethod = 'GET'
    search: Mapping[str, Any] | httpx.QueryParams | None = None
    headers: Mapping[str, Any] | httpx.Headers | None = None
    body: RequestBody | None = None
    expect: ExpectType | None = None
    include_credentials: bool | None = None
    camelize_response: bool = False
    cache: CacheMode | None = None
    bypass_cors: bool = False
    account_token: str | int | None = None
    override_device_type: str | None = None
    include_csrf: bool | None = None
    retries: int | None = None
    error_handling: ErrorHandling = 'BEDEV1'
    handle_challenge: ChallengeHandler | None = None
