'''
Turns the URL of an `HTTPRequest` into the absolute URL that is fetched.
'''
from __future__ import annotations

import logging

import httpx

from restguard._utils import can_parse_url, filter_mapping
from restguard.constants import REMOVE_PROTOCOL_REGEX
from restguard.errors import URLRejectedError
from restguard.http._config import ClientConfig
from restguard.http._request import HTTPRequest

logger = logging.getLogger(__name__)


def _with_protocol(url: str, protocol: str) -> httpx.URL:
    return httpx.URL(f'{protocol}://{REMOVE_PROTOCOL_REGEX.sub("", url)}')


def _resolve_against_page(url: str, page_location: str | None) -> httpx.URL:
    if can_parse_url(url):
        return httpx.URL(url)

    if not page_location:
        raise URLRejectedError(
            f'Cannot resolve {url!r} without a configured page location'
        )
    return httpx.URL(page_location).join(url)


def build_search_params(
    request: HTTPRequest,
    config: ClientConfig,
) -> httpx.QueryParams:
    '''
    The query parameters of a request, including the account token,
    device override and tracking parameters the client is configured
    to add.

    Parameters
    ----------
    request : HTTPRequest
    config : ClientConfig

    Returns
    -------
    httpx.QueryParams
    '''
    search = request.search
    if search is None:
        params = httpx.QueryParams()
    elif isinstance(search, httpx.QueryParams):
        params = search
    else:
        params = httpx.QueryParams(filter_mapping(search))

    if request.account_token and config.account_token_search_param:
        params = params.set(
            config.account_token_search_param,
            str(request.account_token),
        )

    if request.override_device_type:
        if config.override_device_type_header_name:
            params = params.set(
                config.override_device_type_header_name,
                request.override_device_type,
            )
    elif config.tracking_search_param:
        params = params.set(config.tracking_search_param, '')

    return params


def format_request_url(
    request: HTTPRequest,
    config: ClientConfig,
    protocol: str = 'https',
) -> httpx.URL:
    '''
    Build the absolute URL for a request.

    - CDN URLs are used as given, gaining `protocol` when they have no
    scheme.
    - `/`-relative paths resolve against `config.page_location`, and so do
    absolute URLs in dev mode.
    - Everything else is a bare host and path, any `http(s)://` prefix is
    replaced by `protocol`.

    Parameters
    ----------
    request : HTTPRequest
    config : ClientConfig
    protocol : str, optional
        by default 'https'

    Returns
    -------
    httpx.URL

    Raises
    ------
    URLRejectedError
        If a relative URL has no page location to resolve against.
    '''
    url = request.url
    if config.domains.cdn in url:
        if can_parse_url(url):
            return httpx.URL(url)
        return _with_protocol(url, protocol)

    params = build_search_params(request, config)

    if url.startswith('/') or (
        can_parse_url(url)
        and config.is_dev
        and not url.startswith('localhost:')
    ):
        formatted = _resolve_against_page(url, config.page_location)
    else:
        formatted = _with_protocol(url, protocol)

    if params:
        merged = formatted.params
        for key, value in params.multi_items():
            merged = merged.add(key, value)
        formatted = formatted.copy_with(params=merged)

    if (
        config.is_dev
        and formatted.host == 'localhost'
        and formatted.scheme == 'https'
    ):
        logger.debug('Downgrading %s to http for local development', formatted)
        formatted = formatted.copy_with(scheme='http')

    return formatted
