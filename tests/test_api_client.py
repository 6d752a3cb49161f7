"""Tests for the client HTTP wrapper."""

import httpx
import pytest

from app.client.api_client import ApiClient, error_from_response
from app.errors import (
    AuthenticationError,
    IdeaSaverError,
    ResourceError,
    TransientError,
    ValidationError,
)


@pytest.mark.parametrize(
    "status,error_type",
    [
        (400, ValidationError),
        (404, ValidationError),
        (413, ValidationError),
        (401, AuthenticationError),
        (403, ResourceError),
        (429, TransientError),
        (500, TransientError),
        (503, TransientError),
        (418, IdeaSaverError),
    ],
)
def test_error_from_response(status: int, error_type: type):
    response = httpx.Response(status, json={"error": "nope", "details": {"field": "x"}})
    error = error_from_response(response)
    assert type(error) is error_type
    assert error.message == "nope"
    assert error.details == {"status": status, "details": {"field": "x"}}


def test_error_from_http_exception_body():
    error = error_from_response(httpx.Response(401, json={"detail": "Not authenticated"}))
    assert isinstance(error, AuthenticationError)
    assert error.message == "Not authenticated"


def test_error_from_non_json_body():
    error = error_from_response(httpx.Response(502, text="<html>bad gateway</html>"))
    assert isinstance(error, TransientError)
    assert error.message == "Bad Gateway"


class TestRequests:
    @pytest.mark.asyncio
    async def test_bearer_token_sent(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"title": "Hello"})

        async with ApiClient(base_url="http://testserver", transport=httpx.MockTransport(handler)) as api:
            api.set_access_token("abc")
            assert await api.generate_title("text") == "Hello"
        assert seen["auth"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_no_retry_by_default(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        async with ApiClient(base_url="http://testserver", transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(TransientError, match="Could not reach the server"):
                await api.generate_title("text")
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_connection_failures_retried_when_enabled(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) < 2:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"newCredits": 7, "success": True})

        transport = httpx.MockTransport(handler)
        async with ApiClient(base_url="http://testserver", retry_attempts=3, transport=transport) as api:
            assert await api.redeem_gift_code("CODE", "user-1") == 7
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_read_timeout_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ReadTimeout("slow", request=request)

        transport = httpx.MockTransport(handler)
        async with ApiClient(base_url="http://testserver", retry_attempts=3, transport=transport) as api:
            with pytest.raises(TransientError, match="took too long"):
                await api.transcribe_audio("data:audio/wav;base64,AAEC", 3, "user-1")
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_profile_envelope_unwrapped(self):
        profile = {"id": "user-1", "email": "a@b.co", "credits": 25}

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True, "profile": profile})

        async with ApiClient(base_url="http://testserver", transport=httpx.MockTransport(handler)) as api:
            assert await api.upsert_profile("user-1", "a@b.co") == profile

    @pytest.mark.asyncio
    async def test_profile_envelope_without_success(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "error": "weird"})

        async with ApiClient(base_url="http://testserver", transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(TransientError, match="weird"):
                await api.upsert_profile("user-1", "a@b.co")
