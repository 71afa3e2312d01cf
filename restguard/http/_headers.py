from __future__ import annotations

import inspect
import logging

import httpx

from restguard._utils import filter_mapping
from restguard.constants import CONTENT_TYPE_HEADER_NAME, USER_AGENT_HEADER_NAME
from restguard.http._body import Payload
from restguard.http._config import ClientConfig
from restguard.http._request import HTTPRequest

logger = logging.getLogger(__name__)


def header_value(value) -> str:
    '''
    Header text for a value; booleans are written in lower case, the
    way `httpx.QueryParams` writes them.
    '''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def seed_headers(headers) -> httpx.Headers:
    '''
    Copy request headers into a fresh `httpx.Headers`, dropping
    entries whose value is None.
    '''
    if headers is None:
        return httpx.Headers()
    if isinstance(headers, httpx.Headers):
        return httpx.Headers(headers)
    return httpx.Headers({
        key: header_value(value)
        for key, value in filter_mapping(headers).items()
    })


async def handle_request_headers(
    request: HTTPRequest,
    config: ClientConfig,
    content_type: str | None = None,
    body: Payload | None = None,
) -> httpx.Headers:
    '''
    Assemble the final headers of a request.

    The caller's headers come first, then the device override or tracking
    user agent, then whatever the signer returns. The content type of the
    encoded body is set last and wins over all of them.

    Parameters
    ----------
    request : HTTPRequest
    config : ClientConfig
    content_type : str | None, optional
        The content type of the encoded body, by default None
    body : Payload | None, optional
        The encoded body, handed to the signer, by default None

    Returns
    -------
    httpx.Headers
    '''
    headers = seed_headers(request.headers)

    if request.override_device_type:
        user_agents = config.override_device_type_to_user_agent
        if user_agents and not config.override_device_type_header_name:
            user_agent = user_agents.get(request.override_device_type)
            if user_agent is not None:
                headers[USER_AGENT_HEADER_NAME] = user_agent
    elif config.tracking_user_agent and not config.tracking_search_param:
        headers[USER_AGENT_HEADER_NAME] = config.tracking_user_agent

    if config.signer is not None:
        signed = config.signer.generate_base_headers(
            str(request.url),
            request.method,
            request.include_credentials,
            body,
        )
        if inspect.isawaitable(signed):
            signed = await signed
        signed = signed or {}
        logger.debug('Signer added headers: %s', ', '.join(signed))
        for key, value in signed.items():
            headers[key] = header_value(value)

    if content_type:
        headers[CONTENT_TYPE_HEADER_NAME] = content_type

    return headers
