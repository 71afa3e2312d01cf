'''
The restguard HTTP client: a single-attempt dispatcher and the request
loop that handles CSRF rotation, challenges, transient failures and
error reporting on top of it.
'''
from __future__ import annotations

import dataclasses as dc
import inspect
import logging
from typing import NoReturn, Self

import httpx

from restguard.constants import (
    CHALLENGE_ID_HEADER,
    CHALLENGE_METADATA_HEADER,
    CHALLENGE_TYPE_HEADER,
    DEFAULT_ACCOUNT_TOKEN,
)
from restguard.errors import RESTError
from restguard.http._body import EncodedBody, Payload, RequestBody, format_body
from restguard.http._config import ClientConfig
from restguard.http._csrf import CsrfToken, CsrfTokenStore, resolve_token
from restguard.http._headers import handle_request_headers, seed_headers
from restguard.http._parsers import ParsedChallenge, render_errors
from restguard.http._ratelimit import RateLimit, parse_ratelimit_headers
from restguard.http._request import HTTPRequest
from restguard.http._response import HTTPResponse
from restguard.http._retry import RetryBudget
from restguard.http._transport import Fetch, FetchOptions, HttpxFetch, create_default_fetch
from restguard.http._url import format_request_url

logger = logging.getLogger(__name__)


class HTTPClient:
    '''
    Client for a CSRF protected, rate limited API family.

    Owns the CSRF token cache for its lifetime and, when no fetch function
    is configured, an httpx client that `aclose()` shuts down.
    '''

    def __init__(self, config: ClientConfig) -> None:
        self._config: ClientConfig = config
        self.csrf_tokens = CsrfTokenStore(
            on_website=config.on_website,
            document=config.page_document,
        )
        self._default_fetch: HttpxFetch | None = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _get_fetch(self, bypass_cors: bool = False) -> Fetch:
        if bypass_cors and self._config.bypass_cors_fetch:
            return self._config.bypass_cors_fetch
        if self._config.fetch:
            return self._config.fetch

        if self._default_fetch is None:
            self._default_fetch = create_default_fetch(
                timeout=self._config.timeout,
                limits=self._config.limits,
                http2=self._config.http2,
                follow_redirects=self._config.follow_redirects,
                trust_env=self._config.trust_env,
                retries=self._config.connect_retries,
            )
        return self._default_fetch

    def get_csrf_token(
        self,
        authorized: bool | None = False,
        account_token: str | int | None = DEFAULT_ACCOUNT_TOKEN,
    ) -> CsrfToken:
        return self.csrf_tokens.get(authorized, account_token)

    def set_csrf_token(
        self,
        value: CsrfToken,
        authorized: bool | None = False,
        account_token: str | int | None = DEFAULT_ACCOUNT_TOKEN,
    ) -> None:
        self.csrf_tokens.set(value, authorized, account_token)

    def format_request_url(
        self,
        request: HTTPRequest,
        protocol: str = 'https',
    ) -> httpx.URL:
        return format_request_url(request, self._config, protocol)

    def format_body(self, body: RequestBody) -> EncodedBody:
        return format_body(body)

    async def handle_request_headers(
        self,
        request: HTTPRequest,
        content_type: str | None = None,
        body: Payload | None = None,
    ) -> httpx.Headers:
        return await handle_request_headers(
            request, self._config, content_type, body
        )

    def parse_ratelimit_headers(self, headers: httpx.Headers) -> RateLimit | None:
        return parse_ratelimit_headers(headers)

    async def _http_request(self, request: HTTPRequest) -> HTTPResponse:
        '''
        Send a request once, without retries or error handling.

        Parameters
        ----------
        request : HTTPRequest

        Returns
        -------
        HTTPResponse
        '''
        url = self.format_request_url(request)

        body: Payload | None = None
        content_type: str | None = None
        if request.body is not None:
            encoded = self.format_body(request.body)
            body = encoded.content
            content_type = encoded.content_type

        headers = await self.handle_request_headers(request, content_type, body)

        options = FetchOptions(
            method=request.method or 'GET',
            headers=headers,
            cache=request.cache,
            body=body,
        )
        if request.include_credentials:
            options.credentials = 'include'
        elif request.include_credentials is False:
            options.credentials = 'omit'

        fetch = self._get_fetch(request.bypass_cors)
        logger.debug(f'Sending request: {options.method} {url}')
        response = await fetch(str(url), options)

        return await HTTPResponse.init(
            request,
            response,
            None,
            self._config.camelize_object,
        )

    def _is_main_api(self, request: HTTPRequest) -> bool:
        return self._config.domains.main in str(request.url)

    def _wants_csrf(self, request: HTTPRequest) -> bool:
        if request.include_csrf is not None:
            return request.include_csrf
        return (request.method or 'GET') != 'GET'

    async def _resolve_challenge(
        self,
        request: HTTPRequest,
        response: HTTPResponse,
    ) -> ParsedChallenge | None:
        challenge = self._config.challenge_parser(response.headers)
        if challenge is None or request.handle_challenge is None:
            return None

        logger.info(
            'Challenge %s (%s) issued for %s',
            challenge.challenge_type,
            challenge.challenge_id,
            response.url,
        )
        resolved = request.handle_challenge(challenge)
        if inspect.isawaitable(resolved):
            resolved = await resolved
        return resolved

    async def _raise_for_errors(
        self,
        request: HTTPRequest,
        response: HTTPResponse,
        ratelimit: RateLimit | None,
    ) -> NoReturn:
        mode = request.error_handling or 'BEDEV1'
        parser = self._config.error_parsers[mode]
        errors = parser(response.raw)
        if inspect.isawaitable(errors):
            errors = await errors

        message = (
            f'HTTP {response.status.code} from '
            f'{request.method or "GET"} {response.url}'
        )
        rendered = render_errors(errors)
        if rendered:
            message += f'\n\n{mode} errors:\n{rendered}'

        raise RESTError(
            message,
            True,
            errors,
            response.status.code,
            response,
            ratelimit,
        )

    async def http_request(self, request: HTTPRequest) -> HTTPResponse:
        '''
        Send a request, handling everything the API may answer with.

        - 403 responses carrying a fresh CSRF token update the token cache
        and are retried with it, as often as the server rotates.
        - Challenges are passed to `request.handle_challenge`; a returned
        challenge is attached to the retried request.
        - 500/502/503/504 responses are retried up to `request.retries` times.
        - Any other failure raises `RESTError`, unless `error_handling` is
        "none", in which case the failed response is returned.

        Parameters
        ----------
        request : HTTPRequest

        Returns
        -------
        HTTPResponse
            The response, its body decoded per `request.expect`.

        Raises
        ------
        RESTError
            On a failed response that is not retried.
        '''
        csrf_header = self._config.csrf_token_header_name
        headers = seed_headers(request.headers)
        is_main_api = self._is_main_api(request)

        if is_main_api and self._wants_csrf(request):
            token = await resolve_token(
                self.get_csrf_token(
                    request.include_credentials,
                    request.account_token,
                )
            )
            if token:
                headers[csrf_header] = token

        budget = RetryBudget(request.retries)
        while True:
            response = await self._http_request(
                dc.replace(request, expect='none', headers=headers)
            )

            if (
                is_main_api
                and response.status.code == 403
                and csrf_header in response.headers
            ):
                token = response.headers[csrf_header]
                logger.info('CSRF token rotated by %s', response.url)
                self.set_csrf_token(
                    token,
                    request.include_credentials,
                    request.account_token,
                )
                headers[csrf_header] = token
                continue

            ratelimit = self.parse_ratelimit_headers(response.headers)

            if (
                is_main_api
                and not response.status.ok
                and request.handle_challenge is not None
            ):
                challenge = await self._resolve_challenge(request, response)
                if challenge is not None:
                    headers[CHALLENGE_TYPE_HEADER] = challenge.challenge_type
                    headers[CHALLENGE_ID_HEADER] = challenge.challenge_id
                    headers[CHALLENGE_METADATA_HEADER] = (
                        challenge.challenge_base64_metadata
                    )
                    continue

            if request.error_handling != 'none' and not response.status.ok:
                if budget.consume(response.status.code):
                    logger.warning(
                        'HTTP %d from %s, retrying (%d left)',
                        response.status.code,
                        response.url,
                        budget.remaining,
                    )
                    continue

                await self._raise_for_errors(request, response, ratelimit)

            return await HTTPResponse.init(
                request,
                response.raw,
                ratelimit,
                self._config.camelize_object,
            )

    async def aclose(self) -> None:
        if self._default_fetch is not None:
            await self._default_fetch.aclose()
            self._default_fetch = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
