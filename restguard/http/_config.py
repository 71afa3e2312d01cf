from __future__ import annotations

import dataclasses as dc
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol, TypeAlias

import httpx

from restguard.constants import CSRF_TOKEN_HEADER_NAME
from restguard.http._csrf import PageDocument
from restguard.http._parsers import (
    DEFAULT_ERROR_PARSERS,
    ChallengeParser,
    ErrorParser,
    parse_challenge_headers,
)
from restguard.http._transport import Fetch

CamelizeObjectFn: TypeAlias = Callable[..., Any]


class HeaderSigner(Protocol):
    '''
    Produces extra headers (device binding signatures and the like)
    for an outgoing request. May return the mapping directly or an
    awaitable of it.
    '''
    def generate_base_headers(
        self,
        url: str,
        method: str,
        include_credentials: bool | None,
        body: Any,
    ) -> Mapping[str, str] | Awaitable[Mapping[str, str]]:
        ...


@dc.dataclass(slots=True, frozen=True)
class Domains:
    '''
    `main` marks API hosts that need CSRF tokens and can issue
    challenges; `cdn` marks hosts whose URLs are used as given.
    '''
    main: str
    cdn: str


@dc.dataclass(slots=True)
class ClientConfig:
    '''
    Configuration options for the restguard HTTP client.

    Attributes
    ----------
    domains : Domains
        The main API and CDN host markers.
    signer : HeaderSigner | None
        Consulted for extra headers on every request.
    on_website : bool
        The client runs next to a page, enabling the CSRF meta tag fallback.
    page_document : PageDocument | None
        The page to read the CSRF meta tag from when `on_website` is set.
    page_location : str | None
        The page URL that `/`-relative request URLs resolve against.
    fetch / bypass_cors_fetch : Fetch | None
        The transport functions; the default is an httpx-backed fetch.
    camelize_object : CamelizeObjectFn | None
        Called as `camelize_object(body, deep=True, pascal_case=False)`
        on JSON bodies of requests with `camelize_response`.
    override_device_type_header_name : str | None
        The query parameter a device override tag is sent as.
    override_device_type_to_user_agent : Mapping[str, str] | None
        Device override tag -> user agent, used when the tag isn't sent
        as a query parameter.
    tracking_user_agent / tracking_search_param : str | None
        Marks untagged requests with a user agent, or with an empty
        query parameter when that is configured instead.
    account_token_search_param : str | None
        The query parameter a request's account token is sent as.
    is_dev : bool
        Development mode: absolute URLs resolve against the page location
        and https://localhost is downgraded to http.
    '''
    domains: Domains
    signer: HeaderSigner | None = None
    on_website: bool = False
    page_document: PageDocument | None = None
    page_location: str | None = None
    fetch: Fetch | None = None
    bypass_cors_fetch: Fetch | None = None
    camelize_object: CamelizeObjectFn | None = None
    override_device_type_header_name: str | None = None
    override_device_type_to_user_agent: Mapping[str, str] | None = None
    tracking_user_agent: str | None = None
    tracking_search_param: str | None = None
    account_token_search_param: str | None = None
    is_dev: bool = False
    csrf_token_header_name: str = CSRF_TOKEN_HEADER_NAME
    error_parsers: Mapping[str, ErrorParser] = dc.field(
        default_factory=lambda: dict(DEFAULT_ERROR_PARSERS)
    )
    challenge_parser: ChallengeParser = parse_challenge_headers

    # default transport
    timeout: httpx.Timeout | None = None
    limits: httpx.Limits | None = None
    http2: bool = True
    follow_redirects: bool = True
    trust_env: bool = False
    connect_retries: int = 3
