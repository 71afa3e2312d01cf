"""Tests for the httpx-backed fetch, the transport and the retry helpers."""

import httpx
import pytest

from restguard import NoAttemptsLeftError
from restguard.http import (
    FetchOptions,
    FormData,
    HTTPClient,
    HttpxFetch,
    RestguardTransport,
    RetryBudget,
    retry_policy,
)
from tests.conftest import Sequence, make_config, make_fetch


class TestHttpxFetch:
    async def test_credentials_omit_drops_cookies(self) -> None:
        seq = Sequence(httpx.Response(200))
        fetch = make_fetch(seq, cookies={"session": "abc"})

        await fetch("https://api.example.com/a", FetchOptions("GET", httpx.Headers()))
        await fetch(
            "https://api.example.com/a",
            FetchOptions("GET", httpx.Headers(), credentials="omit"),
        )

        assert seq.requests[0].headers["cookie"] == "session=abc"
        assert "cookie" not in seq.requests[1].headers

    async def test_credentials_omit_drops_cookies_on_redirects(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("cookie"))
            if request.url.path == "/a":
                return httpx.Response(
                    302,
                    headers={"location": "/b", "set-cookie": "tracker=xyz; Path=/"},
                )
            return httpx.Response(200, text="done")

        fetch = make_fetch(handler, cookies={"session": "abc"}, follow_redirects=True)
        response = await fetch(
            "https://api.example.com/a",
            FetchOptions("GET", httpx.Headers(), credentials="omit"),
        )

        assert response.text == "done"
        assert [hop.status_code for hop in response.history] == [302]
        assert seen == [None, None]
        assert "tracker" not in fetch.client.cookies
        assert fetch.client.cookies["session"] == "abc"

    async def test_credentials_included_on_redirects(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("cookie"))
            if request.url.path == "/a":
                return httpx.Response(302, headers={"location": "/b"})
            return httpx.Response(200)

        fetch = make_fetch(handler, cookies={"session": "abc"}, follow_redirects=True)
        await fetch(
            "https://api.example.com/a",
            FetchOptions("GET", httpx.Headers(), credentials="include"),
        )

        assert seen == ["session=abc", "session=abc"]

    async def test_credentials_omit_respects_redirect_setting(self) -> None:
        seq = Sequence(httpx.Response(302, headers={"location": "/b"}))
        fetch = make_fetch(seq, follow_redirects=False)

        response = await fetch(
            "https://api.example.com/a",
            FetchOptions("GET", httpx.Headers(), credentials="omit"),
        )

        assert response.status_code == 302
        assert seq.calls == 1

    async def test_credentials_omit_redirect_limit(self) -> None:
        seq = Sequence(httpx.Response(302, headers={"location": "/a"}))
        fetch = make_fetch(seq, follow_redirects=True, max_redirects=2)

        with pytest.raises(httpx.TooManyRedirects):
            await fetch(
                "https://api.example.com/a",
                FetchOptions("GET", httpx.Headers(), credentials="omit"),
            )
        assert seq.calls == 3

    async def test_cache_mode_sets_cache_control(self) -> None:
        seq = Sequence(httpx.Response(200))
        fetch = make_fetch(seq)

        await fetch(
            "https://api.example.com/a",
            FetchOptions("GET", httpx.Headers(), cache="no-store"),
        )
        await fetch(
            "https://api.example.com/a",
            FetchOptions(
                "GET",
                httpx.Headers({"cache-control": "max-age=0"}),
                cache="no-cache",
            ),
        )

        assert seq.requests[0].headers["cache-control"] == "no-store"
        assert seq.requests[1].headers["cache-control"] == "max-age=0"

    async def test_form_data_sent_as_multipart(self) -> None:
        seq = Sequence(httpx.Response(200))
        fetch = make_fetch(seq)
        form = FormData()
        form.set("name", "value")
        form.set("file", b"data", "a.txt")

        await fetch(
            "https://api.example.com/upload",
            FetchOptions("POST", httpx.Headers(), body=form),
        )

        sent = seq.requests[0]
        assert sent.headers["content-type"].startswith("multipart/form-data")
        assert b'name="name"' in sent.content
        assert b'filename="a.txt"' in sent.content

    async def test_response_body_is_read(self) -> None:
        seq = Sequence(httpx.Response(200, text="hello"))
        fetch = make_fetch(seq)

        response = await fetch(
            "https://api.example.com/a", FetchOptions("GET", httpx.Headers())
        )
        assert response.is_stream_consumed
        assert response.text == "hello"


class TestRestguardTransport:
    async def test_connection_errors_retried(self) -> None:
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) < 2:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, text="ok")

        transport = RestguardTransport(retries=3)
        transport._inner = httpx.MockTransport(handler)
        transport._policy.delay = 0

        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get("https://api.example.com/")

        assert response.text == "ok"
        assert len(attempts) == 2


class TestDefaultFetch:
    async def test_client_owns_default_fetch(self) -> None:
        async with HTTPClient(make_config()) as client:
            fetch = client._get_fetch()
            assert isinstance(fetch, HttpxFetch)
            assert client._get_fetch() is fetch
        assert client._default_fetch is None
        assert fetch.client.is_closed
        assert fetch._omit_client.is_closed
        assert fetch._omit_client is not fetch.client

    async def test_configured_fetch_preferred(self) -> None:
        fetch = make_fetch(Sequence(httpx.Response(200)))
        client = HTTPClient(make_config(fetch=fetch))
        assert client._get_fetch() is fetch
        assert client._default_fetch is None


class TestRetryPolicy:
    async def test_recovers_from_connection_errors(self) -> None:
        calls = 0

        @retry_policy(attempts=3, delay=0)
        async def flaky() -> str:
            nonlocal calls
            calls += 1
            if calls < 3:
                raise httpx.ConnectError("boom")
            return "ok"

        assert await flaky() == "ok"
        assert calls == 3

    async def test_exhausted_attempts(self) -> None:
        @retry_policy(attempts=2, delay=0)
        async def down() -> None:
            raise httpx.ConnectError("boom")

        with pytest.raises(NoAttemptsLeftError) as exc_info:
            await down()
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    async def test_other_errors_propagate(self) -> None:
        calls = 0

        @retry_policy(attempts=3, delay=0)
        async def broken() -> None:
            nonlocal calls
            calls += 1
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            await broken()
        assert calls == 1

    def test_timeout_grows_with_attempts(self) -> None:
        policy = retry_policy(delay=1.0, jitter=0)
        assert policy.get_timeout(1) == 1.0
        assert policy.get_timeout(3) == 3.0


class TestRetryBudget:
    def test_consumes_retryable_statuses(self) -> None:
        budget = RetryBudget(2)
        assert budget.consume(503) is True
        assert budget.consume(500) is True
        assert budget.consume(502) is False
        assert budget.remaining == 0

    def test_ignores_other_statuses(self) -> None:
        budget = RetryBudget(2)
        assert budget.consume(404) is False
        assert budget.consume(429) is False
        assert budget.remaining == 2

    def test_no_budget(self) -> None:
        assert RetryBudget().consume(503) is False
        assert RetryBudget(0).consume(503) is False
