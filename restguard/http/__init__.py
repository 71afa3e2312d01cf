'''
**restguard.http**
---------

The request machinery of restguard: the `HTTPClient` with its CSRF token
cache and retry/challenge loop, the URL/body/header builders it is made
of, and the httpx-backed transport it dispatches through by default.
'''
from restguard.http._body import (
    BodyType,
    EncodedBody,
    FormData,
    FormDataPart,
    RequestBody,
    format_body,
)
from restguard.http._client import HTTPClient
from restguard.http._config import ClientConfig, Domains, HeaderSigner
from restguard.http._csrf import CsrfTokenStore, read_csrf_meta_tag
from restguard.http._headers import handle_request_headers
from restguard.http._parsers import (
    ParsedChallenge,
    parse_bedev1_error,
    parse_bedev2_error,
    parse_challenge_headers,
    render_errors,
)
from restguard.http._ratelimit import RateLimit, parse_ratelimit_headers
from restguard.http._request import ExpectType, HTTPMethod, HTTPRequest
from restguard.http._response import HTTPResponse, ResponseStatus, parse_body
from restguard.http._retry import RetryBudget, retry_policy
from restguard.http._transport import (
    FetchOptions,
    HttpxFetch,
    RestguardTransport,
    browser_like_ssl_context,
    create_default_fetch,
)
from restguard.http._url import format_request_url

__all__ = [
    'BodyType',
    'EncodedBody',
    'FormData',
    'FormDataPart',
    'RequestBody',
    'format_body',
    'HTTPClient',
    'ClientConfig',
    'Domains',
    'HeaderSigner',
    'CsrfTokenStore',
    'read_csrf_meta_tag',
    'handle_request_headers',
    'ParsedChallenge',
    'parse_bedev1_error',
    'parse_bedev2_error',
    'parse_challenge_headers',
    'render_errors',
    'RateLimit',
    'parse_ratelimit_headers',
    'ExpectType',
    'HTTPMethod',
    'HTTPRequest',
    'HTTPResponse',
    'ResponseStatus',
    'parse_body',
    'RetryBudget',
    'retry_policy',
    'FetchOptions',
    'HttpxFetch',
    'RestguardTransport',
    'browser_like_ssl_context',
    'create_default_fetch',
    'format_request_url',
]
