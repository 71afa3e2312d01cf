"""Tests for request header assembly."""

import httpx

from restguard.http import HTTPRequest, handle_request_headers
from restguard.http._headers import seed_headers
from tests.conftest import make_config


class RecordingSigner:
    """A header signer that records its calls."""

    def __init__(self, headers: dict[str, str]) -> None:
        self.headers = headers
        self.calls: list[tuple] = []

    def generate_base_headers(self, url, method, include_credentials, body):
        self.calls.append((url, method, include_credentials, body))
        return self.headers


class AsyncSigner(RecordingSigner):
    async def generate_base_headers(self, url, method, include_credentials, body):
        return super().generate_base_headers(url, method, include_credentials, body)


async def test_none_headers_dropped() -> None:
    request = HTTPRequest(url="api.example.com", headers={"a": "1", "b": None, "c": 2})
    headers = await handle_request_headers(request, make_config())
    assert dict(headers) == {"a": "1", "c": "2"}


async def test_boolean_headers_lower_cased() -> None:
    request = HTTPRequest(
        url="api.example.com", headers={"x-flag": True, "x-off": False},
    )
    headers = await handle_request_headers(request, make_config())
    assert headers["x-flag"] == "true"
    assert headers["x-off"] == "false"


def test_seed_headers_lower_cases_booleans() -> None:
    assert seed_headers({"x-flag": True})["x-flag"] == "true"


async def test_headers_instance_is_copied() -> None:
    original = httpx.Headers({"a": "1"})
    request = HTTPRequest(url="api.example.com", headers=original)
    headers = await handle_request_headers(request, make_config(), "text/plain")
    assert headers is not original
    assert "content-type" not in original


class TestUserAgent:
    async def test_device_override_maps_user_agent(self) -> None:
        config = make_config(override_device_type_to_user_agent={"phone": "PhoneUA"})
        request = HTTPRequest(url="api.example.com", override_device_type="phone")
        headers = await handle_request_headers(request, config)
        assert headers["user-agent"] == "PhoneUA"

    async def test_device_override_sent_as_param_leaves_user_agent(self) -> None:
        config = make_config(
            override_device_type_to_user_agent={"phone": "PhoneUA"},
            override_device_type_header_name="device",
        )
        request = HTTPRequest(url="api.example.com", override_device_type="phone")
        headers = await handle_request_headers(request, config)
        assert "user-agent" not in headers

    async def test_tracking_user_agent(self) -> None:
        config = make_config(tracking_user_agent="TrackingUA")
        headers = await handle_request_headers(
            HTTPRequest(url="api.example.com"), config
        )
        assert headers["user-agent"] == "TrackingUA"

    async def test_tracking_param_wins_over_tracking_user_agent(self) -> None:
        config = make_config(
            tracking_user_agent="TrackingUA",
            tracking_search_param="track",
        )
        headers = await handle_request_headers(
            HTTPRequest(url="api.example.com"), config
        )
        assert "user-agent" not in headers


class TestSigner:
    async def test_signer_headers_merged_over_caller_headers(self) -> None:
        signer = RecordingSigner({"x-bound-auth-token": "sig", "a": "signed"})
        request = HTTPRequest(
            url="api.example.com/v1",
            method="POST",
            headers={"a": "caller"},
            include_credentials=True,
        )
        headers = await handle_request_headers(
            request, make_config(signer=signer), None, "payload"
        )
        assert headers["x-bound-auth-token"] == "sig"
        assert headers["a"] == "signed"
        assert signer.calls == [("api.example.com/v1", "POST", True, "payload")]

    async def test_async_signer_awaited(self) -> None:
        signer = AsyncSigner({"x-sig": "1"})
        headers = await handle_request_headers(
            HTTPRequest(url="api.example.com"), make_config(signer=signer)
        )
        assert headers["x-sig"] == "1"

    async def test_content_type_wins_over_signer(self) -> None:
        signer = RecordingSigner({"content-type": "text/plain"})
        headers = await handle_request_headers(
            HTTPRequest(url="api.example.com"),
            make_config(signer=signer),
            "application/json",
        )
        assert headers["content-type"] == "application/json"
