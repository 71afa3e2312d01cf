"""Shared helpers for the restguard test-suite.

Every test that touches the network goes through `httpx.MockTransport`,
wrapped in the same `HttpxFetch` adapter the client uses by default.
"""

from collections.abc import Callable

import httpx
import pytest

from restguard.http import ClientConfig, Domains, HTTPClient, HttpxFetch

MAIN_DOMAIN = "api.example.com"
CDN_DOMAIN = "cdn.example.net"

Handler = Callable[[httpx.Request], httpx.Response]

_open_fetches: list[HttpxFetch] = []


def make_fetch(handler: Handler, **client_kwargs) -> HttpxFetch:
    fetch = HttpxFetch.from_transport(httpx.MockTransport(handler), **client_kwargs)
    _open_fetches.append(fetch)
    return fetch


@pytest.fixture(autouse=True)
async def close_fetches():
    """Close every fetch created through `make_fetch` once the test ends."""
    yield
    while _open_fetches:
        await _open_fetches.pop().aclose()


def make_config(**overrides) -> ClientConfig:
    overrides.setdefault("domains", Domains(main=MAIN_DOMAIN, cdn=CDN_DOMAIN))
    return ClientConfig(**overrides)


def make_client(handler: Handler, **overrides) -> HTTPClient:
    return HTTPClient(make_config(fetch=make_fetch(handler), **overrides))


class Sequence:
    """Replays a fixed list of responses and records the requests seen."""

    def __init__(self, *responses: httpx.Response) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self._responses)) - 1
        template = self._responses[index]
        # fresh copy per call, a sent response can't be sent again
        return httpx.Response(
            template.status_code,
            headers=template.headers,
            content=template.content,
        )

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def config() -> ClientConfig:
    return make_config()
