"""Tests for the shared HTTP client."""

from __future__ import annotations

import httpx
import pytest

from macro_risk.common.http import HttpClient, _is_retryable


def _client_with(handler, **kwargs) -> HttpClient:
    return HttpClient(base_url="https://api.example.test", transport=httpx.MockTransport(handler), **kwargs)


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.example.test/x")
    return httpx.HTTPStatusError("error", request=request, response=httpx.Response(code, request=request))


class TestIsRetryable:
    @pytest.mark.parametrize("code", [429, 500, 502, 503, 504])
    def test_transient_status(self, code):
        assert _is_retryable(_status_error(code))

    @pytest.mark.parametrize("code", [400, 401, 404])
    def test_client_errors_not_retried(self, code):
        assert not _is_retryable(_status_error(code))

    def test_timeouts_and_network_errors(self):
        assert _is_retryable(httpx.ReadTimeout("slow"))
        assert _is_retryable(httpx.ConnectError("refused"))

    def test_other_errors(self):
        assert not _is_retryable(ValueError("bad"))


class TestGetJson:
    @pytest.mark.asyncio
    async def test_decodes_object(self):
        def handler(request):
            assert request.url.params["series_id"] == "DGS10"
            assert request.headers["Accept"] == "application/json"
            return httpx.Response(200, json={"observations": []})

        async with _client_with(handler) as client:
            payload = await client.get_json("/series/observations", params={"series_id": "DGS10"})

        assert payload == {"observations": []}

    @pytest.mark.asyncio
    async def test_default_and_extra_headers(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json={})

        async with _client_with(handler, headers={"X-Trace": "abc"}) as client:
            await client.get_json("/x")

        assert seen["accept"] == "application/json"
        assert seen["user-agent"] == "macro-risk/0.1"
        assert seen["x-trace"] == "abc"

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        async with _client_with(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(ValueError, match="Non-JSON"):
                await client.get_json("/x")

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        async with _client_with(lambda request: httpx.Response(200, json=[1, 2])) as client:
            with pytest.raises(ValueError, match="JSON object"):
                await client.get_json("/x")

    @pytest.mark.asyncio
    async def test_client_error_raised_without_retry(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400, json={"error_message": "Bad Request. The series does not exist."})

        async with _client_with(handler) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.get_json("/x")

        assert len(calls) == 1
