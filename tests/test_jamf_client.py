"""JamfClient against an httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from adapters.jamf_client import JamfClient
from core.config import AppSettings
from core.domain.errors import AuthenticationError, ConfigurationError, RequestFailedError
from core.domain.models import Credential


def _settings(**overrides) -> AppSettings:
    values = {"jss_url": "https://jss.example.com:8443/", "user": "api", "password": "secret"}
    values.update(overrides)
    return AppSettings(**values)


def _client(handler) -> JamfClient:
    client = JamfClient(_settings(), transport=httpx.MockTransport(handler))
    client.use_credential(Credential(token="abc", expires="2099-01-01T00:00:00Z"))
    return client


class TestConstruction:
    def test_missing_configuration(self):
        with pytest.raises(ConfigurationError) as exc:
            JamfClient(AppSettings(jss_url=None, user=None, password=None))
        assert "JAMF_JSS_URL" in str(exc.value)


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_basic_auth_exchange(self):
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["method"] = request.method
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json={"token": "fresh", "expires": "2026-10-18T13:00:00.000Z"})

        async with JamfClient(_settings(), transport=httpx.MockTransport(handler)) as client:
            credential = await client.authenticate()

        assert credential.token == "fresh"
        assert credential.expires is not None
        assert seen["method"] == "POST"
        assert seen["path"] == "/api/v1/auth/token"
        assert seen["auth"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_rejected_exchange(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401)

        async with JamfClient(_settings(), transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(AuthenticationError):
                await client.authenticate()

    @pytest.mark.asyncio
    async def test_requests_need_a_bound_token(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"mobile_device_applications": []})

        async with JamfClient(_settings(), transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(AuthenticationError):
                await client.list_applications()


class TestApplications:
    @pytest.mark.asyncio
    async def test_list_applications(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer abc"
            assert request.headers["Accept"] == "application/json"
            assert request.url.path == "/JSSResource/mobiledeviceapplications"
            return httpx.Response(
                200,
                json={"mobile_device_applications": [{"id": 1, "name": "Pages"}, "junk"]},
            )

        async with _client(handler) as client:
            apps = await client.list_applications()

        assert apps == [{"id": 1, "name": "Pages"}]

    @pytest.mark.asyncio
    async def test_list_without_expected_key_fails(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        async with _client(handler) as client:
            with pytest.raises(RequestFailedError):
                await client.list_applications()

    @pytest.mark.asyncio
    async def test_fetch_vpp(self):
        vpp = {"total_vpp_licenses": 4, "used_vpp_licenses": 1, "remaining_vpp_licenses": 3}

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/JSSResource/mobiledeviceapplications/id/42/subset/VPP"
            return httpx.Response(200, json={"mobile_device_application": {"vpp": vpp}})

        async with _client(handler) as client:
            assert await client.fetch_vpp(42) == vpp

    @pytest.mark.asyncio
    async def test_fetch_vpp_without_vpp_object(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"mobile_device_application": {"general": {}}})

        async with _client(handler) as client:
            assert await client.fetch_vpp(42) is None

    @pytest.mark.asyncio
    async def test_fetch_vpp_server_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        async with _client(handler) as client:
            with pytest.raises(RequestFailedError) as exc:
                await client.fetch_vpp(42)
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    async def test_fetch_vpp_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<xml/>")

        async with _client(handler) as client:
            with pytest.raises(RequestFailedError):
                await client.fetch_vpp(42)

    @pytest.mark.asyncio
    async def test_unauthorized_is_fatal(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401)

        async with _client(handler) as client:
            with pytest.raises(AuthenticationError):
                await client.fetch_vpp(42)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("status", "expected"), [(200, True), (202, False)])
    async def test_delete_confirmation(self, status, expected):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            assert request.url.path == "/JSSResource/mobiledeviceapplications/id/7"
            return httpx.Response(status)

        async with _client(handler) as client:
            assert await client.delete_application(7) is expected

    @pytest.mark.asyncio
    async def test_delete_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, content=json.dumps({"error": "not found"}).encode())

        async with _client(handler) as client:
            with pytest.raises(RequestFailedError):
                await client.delete_application(7)
