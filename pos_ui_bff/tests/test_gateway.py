"""Tests for AuthenticatedGateway - bearer injection and the refresh-and-retry policy."""

import asyncio
import json

import httpx
import pytest
import respx

from conftest import InMemoryCredentialStore
from pos_ui_bff.config import Settings
from pos_ui_bff.errors import BackendUnavailable
from pos_ui_bff.gateway import AuthenticatedGateway, RefreshSingleFlight, build_headers
from pos_ui_bff.session_data import SessionData, TokenBundle, UserInfo

BACKEND = "http://backend.test"
ORDERS_URL = f"{BACKEND}/order/5"
REFRESH_URL = f"{BACKEND}/auth/refresh-token"

REFRESHED = {
    "accessToken": "new-access",
    "refreshToken": "new-refresh",
    "user": {"id": 7, "name": "Ana", "email": "ana@pos.pe", "role": "WAITER", "active": True},
}

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, BACKEND_BASE_URL=BACKEND)


@pytest.fixture
def store() -> InMemoryCredentialStore:
    """A session holding an access token the backend will treat as expired."""
    return InMemoryCredentialStore(
        SessionData(access_token="old-access", refresh_token="old-refresh", user=UserInfo(id=7, name="Ana"))
    )


def make_gateway(client, store, settings, single_flight=None) -> AuthenticatedGateway:
    return AuthenticatedGateway(client, store, settings, single_flight=single_flight)


# =============================================================================
# Header construction
# =============================================================================


class TestBuildHeaders:
    def test_bearer_overrides_caller_authorization(self):
        headers = build_headers({"authorization": "Basic abc", "X-Trace": "1"}, "GET", "tok")

        assert headers == {"X-Trace": "1", "Authorization": "Bearer tok"}

    def test_non_get_defaults_to_json(self):
        assert build_headers(None, "POST", "tok")["Content-Type"] == "application/json"
        assert build_headers(None, "delete", "tok")["Content-Type"] == "application/json"

    def test_get_has_no_default_content_type(self):
        assert "Content-Type" not in build_headers(None, "GET", "tok")

    def test_caller_content_type_is_kept(self):
        headers = build_headers({"content-type": "text/csv"}, "PUT", "tok")

        assert headers["content-type"] == "text/csv"
        assert "Content-Type" not in headers

    def test_missing_access_token_sends_no_authorization(self):
        assert "Authorization" not in build_headers(None, "GET", None)


# =============================================================================
# Refresh-and-retry policy
# =============================================================================


class TestGatewayPassThrough:
    @pytest.mark.asyncio
    @respx.mock
    @pytest.mark.parametrize("status_code", [200, 201, 204, 401, 404, 409, 500])
    async def test_non_auth_statuses_returned_untouched(self, status_code, store, settings):
        """Anything but 400/403 is terminal: no refresh, no session change."""
        order_route = respx.get(ORDERS_URL).mock(return_value=httpx.Response(status_code))
        refresh_route = respx.post(REFRESH_URL).mock(return_value=httpx.Response(200, json=REFRESHED))

        async with httpx.AsyncClient() as client:
            response = await make_gateway(client, store, settings).fetch("/order/5")

        assert response.status_code == status_code
        assert order_route.call_count == 1
        assert refresh_route.call_count == 0
        assert store.writes == 0
        assert order_route.calls.last.request.headers["Authorization"] == "Bearer old-access"

    @pytest.mark.asyncio
    @respx.mock
    async def test_absolute_url_is_not_rebased(self, store, settings):
        route = respx.get("http://reports.test/ping").mock(return_value=httpx.Response(200))

        async with httpx.AsyncClient() as client:
            response = await make_gateway(client, store, settings).fetch("http://reports.test/ping")

        assert response.status_code == 200
        assert route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_raises_backend_unavailable(self, store, settings):
        respx.get(ORDERS_URL).mock(side_effect=httpx.ConnectError)

        async with httpx.AsyncClient() as client:
            with pytest.raises(BackendUnavailable) as exc_info:
                await make_gateway(client, store, settings).fetch("/order/5")

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Error interno"


class TestGatewayRefresh:
    @pytest.mark.asyncio
    @respx.mock
    @pytest.mark.parametrize("status_code", [400, 403])
    async def test_refresh_then_single_retry(self, status_code, store, settings):
        order_route = respx.get(ORDERS_URL).mock(
            side_effect=[
                httpx.Response(status_code),
                httpx.Response(200, json={"id": 5, "status": "PENDING"}),
            ]
        )
        refresh_route = respx.post(REFRESH_URL).mock(return_value=httpx.Response(200, json=REFRESHED))

        async with httpx.AsyncClient() as client:
            response = await make_gateway(client, store, settings).fetch("/order/5")

        assert response.status_code == 200
        assert response.json() == {"id": 5, "status": "PENDING"}
        assert refresh_route.call_count == 1
        assert json.loads(refresh_route.calls.last.request.content) == {"refreshToken": "old-refresh"}
        assert order_route.call_count == 2
        assert order_route.calls[0].request.headers["Authorization"] == "Bearer old-access"
        assert order_route.calls[1].request.headers["Authorization"] == "Bearer new-access"

        assert store.writes == 1
        assert store.access_token == "new-access"
        assert store.refresh_token == "new-refresh"
        assert store.user_info.email == "ana@pos.pe"

    @pytest.mark.asyncio
    @respx.mock
    async def test_retry_result_returned_even_when_it_fails(self, store, settings):
        """There is never a second refresh or a second retry."""
        order_route = respx.get(ORDERS_URL).mock(
            side_effect=[httpx.Response(403), httpx.Response(403, json={"message": "Forbidden"})]
        )
        refresh_route = respx.post(REFRESH_URL).mock(return_value=httpx.Response(200, json=REFRESHED))

        async with httpx.AsyncClient() as client:
            response = await make_gateway(client, store, settings).fetch("/order/5")

        assert response.status_code == 403
        assert response.json() == {"message": "Forbidden"}
        assert order_route.call_count == 2
        assert refresh_route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_method_and_body_preserved_on_retry(self, store, settings):
        route = respx.put(f"{BACKEND}/order/update/5").mock(
            side_effect=[httpx.Response(403), httpx.Response(200)]
        )
        respx.post(REFRESH_URL).mock(return_value=httpx.Response(200, json=REFRESHED))

        async with httpx.AsyncClient() as client:
            await make_gateway(client, store, settings).fetch(
                "/order/update/5",
                method="PUT",
                headers={"X-Request-Id": "abc"},
                json_body={"status": "TO_PAY", "notes": "sin cebolla"},
            )

        first, second = route.calls[0].request, route.calls[1].request
        assert first.method == second.method == "PUT"
        assert first.content == second.content
        assert json.loads(second.content) == {"status": "TO_PAY", "notes": "sin cebolla"}
        assert second.headers["X-Request-Id"] == "abc"
        assert second.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_refresh_token_returns_original(self, settings):
        store = InMemoryCredentialStore(SessionData(access_token="old-access"))
        order_route = respx.get(ORDERS_URL).mock(return_value=httpx.Response(403, json={"message": "expired"}))
        refresh_route = respx.post(REFRESH_URL).mock(return_value=httpx.Response(200, json=REFRESHED))

        async with httpx.AsyncClient() as client:
            response = await make_gateway(client, store, settings).fetch("/order/5")

        assert response.status_code == 403
        assert response.json() == {"message": "expired"}
        assert order_route.call_count == 1
        assert refresh_route.call_count == 0
        assert store.writes == 0

    @pytest.mark.asyncio
    @respx.mock
    @pytest.mark.parametrize(
        "refresh_response",
        [
            httpx.Response(401, json={"message": "refresh token expired"}),
            httpx.Response(500, text="boom"),
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"accessToken": "only-half"}),
        ],
    )
    async def test_failed_refresh_returns_original(self, refresh_response, store, settings):
        order_route = respx.get(ORDERS_URL).mock(return_value=httpx.Response(400, json={"message": "bad token"}))
        refresh_route = respx.post(REFRESH_URL).mock(return_value=refresh_response)

        async with httpx.AsyncClient() as client:
            response = await make_gateway(client, store, settings).fetch("/order/5")

        assert response.status_code == 400
        assert response.json() == {"message": "bad token"}
        assert refresh_route.call_count == 1
        assert order_route.call_count == 1
        assert store.writes == 0
        assert store.access_token == "old-access"

    @pytest.mark.asyncio
    @respx.mock
    async def test_unreachable_refresh_endpoint_returns_original(self, store, settings):
        respx.get(ORDERS_URL).mock(return_value=httpx.Response(403))
        respx.post(REFRESH_URL).mock(side_effect=httpx.ConnectTimeout)

        async with httpx.AsyncClient() as client:
            response = await make_gateway(client, store, settings).fetch("/order/5")

        assert response.status_code == 403
        assert store.writes == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_single_flight_gateway_behaves_like_plain_one(self, store, settings):
        order_route = respx.get(ORDERS_URL).mock(side_effect=[httpx.Response(403), httpx.Response(200)])
        refresh_route = respx.post(REFRESH_URL).mock(return_value=httpx.Response(200, json=REFRESHED))
        single_flight = RefreshSingleFlight()

        async with httpx.AsyncClient() as client:
            response = await make_gateway(client, store, settings, single_flight).fetch("/order/5")

        assert response.status_code == 200
        assert refresh_route.call_count == 1
        assert order_route.call_count == 2
        assert store.access_token == "new-access"
        assert single_flight.inflight == 0


# =============================================================================
# Single-flight refresh
# =============================================================================


class TestRefreshSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self):
        single_flight = RefreshSingleFlight()
        release = asyncio.Event()
        calls = []
        bundle = TokenBundle.model_validate(REFRESHED)

        async def refresh():
            calls.append(1)
            await release.wait()
            return bundle

        first = asyncio.ensure_future(single_flight.run("old-refresh", refresh))
        second = asyncio.ensure_future(single_flight.run("old-refresh", refresh))
        await asyncio.sleep(0)
        assert single_flight.inflight == 1

        release.set()
        results = await asyncio.gather(first, second)

        assert calls == [1]
        assert results[0] is bundle and results[1] is bundle
        assert single_flight.inflight == 0

    @pytest.mark.asyncio
    async def test_different_tokens_refresh_independently(self):
        single_flight = RefreshSingleFlight()
        seen = []

        async def refresh_for(token):
            seen.append(token)
            return None

        await asyncio.gather(
            single_flight.run("a", lambda: refresh_for("a")),
            single_flight.run("b", lambda: refresh_for("b")),
        )

        assert sorted(seen) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_later_call_starts_a_fresh_refresh(self):
        single_flight = RefreshSingleFlight()
        calls = []

        async def refresh():
            calls.append(1)
            return None

        await single_flight.run("tok", refresh)
        await asyncio.sleep(0)
        await single_flight.run("tok", refresh)

        assert len(calls) == 2
