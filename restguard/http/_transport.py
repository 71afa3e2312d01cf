'''
The fetch contract the client dispatches through, and the default
httpx-backed implementation of it.
'''
import contextlib
import dataclasses as dc
import socket
import ssl
from collections.abc import Awaitable, Callable
from typing import Literal, TypeAlias

import httpx

from restguard.http._body import FormData, Payload
from restguard.http._retry import retry_policy

CacheMode = Literal[
    'default',
    'no-store',
    'reload',
    'no-cache',
    'force-cache',
    'only-if-cached',
]
CredentialsMode = Literal['include', 'omit']

_CACHE_CONTROL: dict[str, str] = {
    'no-store': 'no-store',
    'reload': 'no-cache',
    'no-cache': 'no-cache',
    'force-cache': 'max-stale',
    'only-if-cached': 'only-if-cached',
}


@dc.dataclass(slots=True)
class FetchOptions:
    '''
    Everything a fetch function needs besides the URL. `None` fields
    are left to the transport's defaults.
    '''
    method: str
    headers: httpx.Headers
    cache: CacheMode | None = None
    body: Payload | None = None
    credentials: CredentialsMode | None = None


Fetch: TypeAlias = Callable[[str, FetchOptions], Awaitable[httpx.Response]]


def _base_limits() -> httpx.Limits:
    return httpx.Limits(
        max_connections=100,
        max_keepalive_connections=20,
        keepalive_expiry=15,
    )


def _base_timeouts() -> httpx.Timeout:
    return httpx.Timeout(
        connect=5.0,
        read=10.0,
        write=10.0,
        pool=5.0,
    )


def default_socket_options() -> list[tuple]:
    '''
    cross platform keepalive socket options for TCP connections

    Returns
    -------
    list[SockOpt]
    '''
    wanted = (
        ('IPPROTO_TCP', 'TCP_NODELAY', 1),
        ('SOL_SOCKET', 'SO_KEEPALIVE', 1),
        ('IPPROTO_TCP', 'TCP_KEEPIDLE', 60),
        ('IPPROTO_TCP', 'TCP_KEEPINTVL', 10),
        ('IPPROTO_TCP', 'TCP_KEEPCNT', 5),
    )
    return [
        (getattr(socket, level), getattr(socket, name), value)
        for level, name, value in wanted
        if hasattr(socket, name)
    ]


TLS_1_3_CIPHERS = [
    "TLS_AES_128_GCM_SHA256",
    "TLS_AES_256_GCM_SHA384",
    "TLS_CHACHA20_POLY1305_SHA256",
]
TLS_1_2_CIPHERS = [
    "ECDHE-ECDSA-AES128-GCM-SHA256",
    "ECDHE-RSA-AES128-GCM-SHA256",
    "ECDHE-ECDSA-CHACHA20-POLY1305",
    "ECDHE-RSA-CHACHA20-POLY1305",
    "ECDHE-ECDSA-AES256-GCM-SHA384",
    "ECDHE-RSA-AES256-GCM-SHA384",
]


def browser_like_ssl_context() -> ssl.SSLContext:
    '''
    TLS 1.2+ context with modern cipher suites, hostname verification
    and h2/http1.1 ALPN, so API traffic looks like a browser's.

    Returns
    -------
    ssl.SSLContext
    '''
    ctx = ssl.create_default_context(purpose=ssl.Purpose.SERVER_AUTH)
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    ctx.options |= ssl.OP_NO_COMPRESSION

    with contextlib.suppress(NotImplementedError):
        ctx.set_alpn_protocols(["h2", "http/1.1"])

    set_ciphersuites = getattr(ctx, "set_ciphersuites", None)
    if callable(set_ciphersuites):
        with contextlib.suppress(ssl.SSLError):
            set_ciphersuites(":".join(TLS_1_3_CIPHERS))

    ctx.set_ciphers(":".join(TLS_1_2_CIPHERS))
    return ctx


class RestguardTransport(httpx.AsyncBaseTransport):
    '''
    httpx transport with a browser-like SSL context and TCP keepalive
    socket options. Connection failures are retried with
    `retry_policy` before surfacing as `NoAttemptsLeftError`.
    '''
    def __init__(
        self,
        *,
        http2: bool = True,
        trust_env: bool = False,
        retries: int = 3,
        limits: httpx.Limits | None = None,
    ) -> None:
        self._inner: httpx.AsyncHTTPTransport = httpx.AsyncHTTPTransport(
            http2=http2,
            limits=limits or _base_limits(),
            socket_options=default_socket_options(),
            verify=browser_like_ssl_context(),
            trust_env=trust_env,
        )
        self._policy = retry_policy(attempts=retries)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._policy.call_with_retries(
            self._inner.handle_async_request, request
        )

    async def aclose(self) -> None:
        await self._inner.aclose()


def _body_kwargs(body: Payload | None) -> dict:
    if body is None:
        return {}
    if isinstance(body, FormData):
        return {'files': dict(body)}
    return {'content': body}


class HttpxFetch:
    '''
    Adapts an `httpx.AsyncClient` to the fetch contract. Response bodies
    are read before returning so they can be decoded more than once.

    Requests with credentials "omit" go through `omit_client`, which
    should share the main client's transport but not its cookie jar, so
    cookies set by those responses never reach the main jar. Without one
    the main client is used, and only outgoing cookies are stripped.
    '''
    def __init__(
        self,
        client: httpx.AsyncClient,
        omit_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client
        self._omit_client = omit_client or client

    @classmethod
    def from_transport(
        cls,
        transport: httpx.AsyncBaseTransport,
        **client_kwargs,
    ) -> 'HttpxFetch':
        '''
        Build a fetch with a main client and a cookie-less client over
        the same transport.

        Parameters
        ----------
        transport : httpx.AsyncBaseTransport
        **client_kwargs
            Passed to both `httpx.AsyncClient`s; `cookies` only seeds
            the main client.

        Returns
        -------
        HttpxFetch
        '''
        omit_kwargs = {
            key: value
            for key, value in client_kwargs.items()
            if key != 'cookies'
        }
        return cls(
            httpx.AsyncClient(transport=transport, **client_kwargs),
            httpx.AsyncClient(transport=transport, **omit_kwargs),
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def __call__(self, url: str, options: FetchOptions) -> httpx.Response:
        headers = httpx.Headers(options.headers)
        cache_control = _CACHE_CONTROL.get(options.cache or 'default')
        if cache_control and 'cache-control' not in headers:
            headers['cache-control'] = cache_control

        if options.credentials == 'omit':
            response = await self._send_without_credentials(
                options.method,
                url,
                headers,
                options.body,
            )
        else:
            request = self._client.build_request(
                options.method,
                url,
                headers=headers,
                **_body_kwargs(options.body),
            )
            response = await self._client.send(request)

        await response.aread()
        return response

    async def _send_without_credentials(
        self,
        method: str,
        url: str,
        headers: httpx.Headers,
        body: Payload | None,
    ) -> httpx.Response:
        '''
        Send a request and follow its redirects by hand, removing the
        cookie header from every hop.
        '''
        client = self._omit_client
        request = client.build_request(
            method,
            url,
            headers=headers,
            **_body_kwargs(body),
        )
        history: list[httpx.Response] = []

        while True:
            request.headers.pop('cookie', None)
            response = await client.send(request, follow_redirects=False)
            if client is not self._client:
                client.cookies.clear()

            next_request = response.next_request
            if next_request is None or not self._client.follow_redirects:
                response.history = history
                return response

            if len(history) >= self._client.max_redirects:
                await response.aclose()
                raise httpx.TooManyRedirects(
                    'Exceeded maximum allowed redirects.',
                    request=next_request,
                )

            await response.aread()
            history.append(response)
            request = next_request

    async def aclose(self) -> None:
        await self._client.aclose()
        if self._omit_client is not self._client:
            await self._omit_client.aclose()


def create_default_fetch(
    *,
    timeout: httpx.Timeout | None = None,
    limits: httpx.Limits | None = None,
    http2: bool = True,
    follow_redirects: bool = True,
    trust_env: bool = False,
    retries: int = 3,
) -> HttpxFetch:
    transport = RestguardTransport(
        http2=http2,
        trust_env=trust_env,
        retries=retries,
        limits=limits,
    )
    return HttpxFetch.from_transport(
        transport,
        timeout=timeout or _base_timeouts(),
        follow_redirects=follow_redirects,
        trust_env=trust_env,
    )
