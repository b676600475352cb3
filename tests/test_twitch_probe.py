from unittest.mock import patch

import httpx
import pytest

from services.twitch.api.helix import TwitchAPIError, TwitchHelixAPI
from services.twitch.models.stream import Live, NotFound, Offline, ProbeFailed
from services.twitch.probe import TwitchStreamProbe

USERS = {
    "alice": {"id": "1001", "login": "alice", "display_name": "Alice"},
    "bob": {"id": "1002", "login": "bob", "display_name": "BobTheBuilder"},
}


class FakeTwitch:
    """Scriptable stand-in for id.twitch.tv and the Helix endpoints."""

    def __init__(self, streams=None):
        self.streams = streams or {}
        self.requests = []
        self.token_requests = 0
        self.reject_next_with_401 = False
        self.fail_users_with = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == "id.twitch.tv":
            self.token_requests += 1
            return httpx.Response(
                200,
                json={
                    "access_token": f"token-{self.token_requests}",
                    "expires_in": 3600,
                    "token_type": "bearer",
                },
            )

        if self.reject_next_with_401:
            self.reject_next_with_401 = False
            return httpx.Response(401, json={"message": "Invalid OAuth token"})

        if request.url.path == "/helix/users":
            if self.fail_users_with is not None:
                return httpx.Response(self.fail_users_with, json={})
            user = USERS.get(request.url.params["login"])
            return httpx.Response(200, json={"data": [user] if user else []})

        if request.url.path == "/helix/streams":
            stream = self.streams.get(request.url.params["user_id"])
            return httpx.Response(200, json={"data": [stream] if stream else []})

        return httpx.Response(404, json={})


@pytest.fixture
def twitch():
    return FakeTwitch()


@pytest.fixture
async def api(twitch):
    async with httpx.AsyncClient(transport=httpx.MockTransport(twitch.handler)) as client:
        yield TwitchHelixAPI(client_id="cid", client_secret="secret", http_client=client)


@pytest.mark.asyncio
async def test_unknown_account_is_not_found(api):
    snapshot = await TwitchStreamProbe(api).probe("ghost")

    assert snapshot == NotFound(streamer_id="ghost")


@pytest.mark.asyncio
async def test_account_without_stream_is_offline(api):
    snapshot = await TwitchStreamProbe(api).probe("bob")

    assert snapshot == Offline(streamer_id="bob", display_name="BobTheBuilder")


@pytest.mark.asyncio
async def test_active_stream_is_live_with_title_and_display_name(api, twitch):
    twitch.streams["1001"] = {"user_id": "1001", "type": "live", "title": "Any% glitchless"}

    snapshot = await TwitchStreamProbe(api).probe("alice")

    assert snapshot == Live(streamer_id="alice", display_name="Alice", title="Any% glitchless")


@pytest.mark.asyncio
async def test_live_stream_without_title_keeps_empty_title(api, twitch):
    twitch.streams["1001"] = {"user_id": "1001", "type": "live"}

    snapshot = await TwitchStreamProbe(api).probe("alice")

    assert isinstance(snapshot, Live)
    assert snapshot.title == ""
    assert snapshot.display_title == "(no title)"


@pytest.mark.asyncio
async def test_api_error_status_becomes_probe_failed(api, twitch):
    twitch.fail_users_with = 503

    snapshot = await TwitchStreamProbe(api).probe("alice")

    assert isinstance(snapshot, ProbeFailed)
    assert "503" in snapshot.reason


@pytest.mark.asyncio
async def test_network_error_becomes_probe_failed():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        api = TwitchHelixAPI(client_id="cid", client_secret="secret", http_client=client)
        snapshot = await TwitchStreamProbe(api).probe("alice")

    assert isinstance(snapshot, ProbeFailed)


@pytest.mark.asyncio
async def test_probe_failures_are_logged_as_warnings(api, twitch):
    twitch.fail_users_with = 503

    with patch("services.twitch.probe.log") as log:
        snapshot = await TwitchStreamProbe(api).probe("alice")

    assert isinstance(snapshot, ProbeFailed)
    log.warning.assert_called_once()
    log.error.assert_not_called()


@pytest.mark.asyncio
async def test_requests_carry_client_id_and_bearer_token(api, twitch):
    await api.get_user("alice")

    helix_request = twitch.requests[-1]
    assert helix_request.headers["Client-Id"] == "cid"
    assert helix_request.headers["Authorization"] == "Bearer token-1"


@pytest.mark.asyncio
async def test_app_token_is_reused_between_lookups(api, twitch):
    await api.get_user("alice")
    await api.get_user("bob")

    assert twitch.token_requests == 1


@pytest.mark.asyncio
async def test_rejected_token_is_renewed_once(api, twitch):
    await api.get_user("alice")
    twitch.reject_next_with_401 = True

    user = await api.get_user("bob")

    assert user["display_name"] == "BobTheBuilder"
    assert twitch.token_requests == 2
    assert twitch.requests[-1].headers["Authorization"] == "Bearer token-2"


@pytest.mark.asyncio
async def test_malformed_payload_raises_api_error():
    def handler(request):
        if request.url.host == "id.twitch.tv":
            return httpx.Response(200, json={"access_token": "t", "expires_in": 3600})
        return httpx.Response(200, json={"unexpected": True})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        api = TwitchHelixAPI(client_id="cid", client_secret="secret", http_client=client)
        with pytest.raises(TwitchAPIError):
            await api.get_user("alice")


@pytest.mark.asyncio
async def test_token_failure_raises_api_error():
    def handler(request):
        return httpx.Response(400, json={"message": "invalid client secret"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        api = TwitchHelixAPI(client_id="cid", client_secret="bad", http_client=client)
        with pytest.raises(TwitchAPIError):
            await api.get_stream("1001")


def test_credentials_are_required():
    with pytest.raises(RuntimeError):
        TwitchHelixAPI(client_id="", client_secret="secret")
    with pytest.raises(RuntimeError):
        TwitchHelixAPI(client_id="cid", client_secret="")
