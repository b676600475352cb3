import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from shared.logging.logger import get_logger

log = get_logger("twitch.helix", runtime="twitch")


class TwitchAPIError(RuntimeError):
    """Raised when a Helix request cannot produce a usable answer."""


class TwitchHelixAPI:
    """
    Read-only Twitch Helix client authenticated with an app access token.

    Responsibilities:
    - Obtain and cache an app token (client credentials grant)
    - Resolve an account by login
    - Fetch the active stream session for an account

    Every lookup is a fresh remote query; only the app token is cached.
    A 401 drops the cached token and the request is re-issued once.
    """

    TOKEN_URL = "https://id.twitch.tv/oauth2/token"
    USERS_URL = "https://api.twitch.tv/helix/users"
    STREAMS_URL = "https://api.twitch.tv/helix/streams"

    # Renew this many seconds before the token actually expires
    TOKEN_EXPIRY_MARGIN = 60.0

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
    ):
        if not client_id:
            raise RuntimeError("Twitch client_id is required")
        if not client_secret:
            raise RuntimeError("Twitch client_secret is required")

        self.client_id = client_id
        self._client_secret = client_secret
        self._http_client = http_client
        self._timeout = timeout

        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0
        self._token_lock = asyncio.Lock()

    # ------------------------------------------------------------
    # Public lookups
    # ------------------------------------------------------------

    async def get_user(self, login: str) -> Optional[Dict[str, Any]]:
        """
        Return the Helix user object for `login`, or None if no such account.
        """
        items = await self._get(self.USERS_URL, {"login": login})
        return items[0] if items else None

    async def get_stream(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Return the active stream object for `user_id`, or None when offline.
        """
        items = await self._get(self.STREAMS_URL, {"user_id": user_id})
        return items[0] if items else None

    # ------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def _get(self, url: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        token = await self._ensure_token()
        response = await self._send(url, params, token)

        if response.status_code == 401:
            log.info("Twitch app token rejected; requesting a new one")
            self._invalidate_token()
            token = await self._ensure_token()
            response = await self._send(url, params, token)

        if response.status_code >= 400:
            raise TwitchAPIError(
                f"Helix {url} returned HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TwitchAPIError(f"Helix {url} returned invalid JSON: {e}") from e

        items = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise TwitchAPIError(f"Helix {url} response has no data list")

        return items

    async def _send(
        self,
        url: str,
        params: Dict[str, str],
        token: str,
    ) -> httpx.Response:
        headers = {
            "Client-Id": self.client_id,
            "Authorization": f"Bearer {token}",
        }
        async with self._client() as client:
            try:
                return await client.get(url, params=params, headers=headers)
            except httpx.HTTPError as e:
                raise TwitchAPIError(f"Helix request to {url} failed: {e}") from e

    # ------------------------------------------------------------
    # App token
    # ------------------------------------------------------------

    def _invalidate_token(self) -> None:
        self._token = None
        self._token_expires_at = 0.0

    async def _ensure_token(self) -> str:
        async with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token

            params = {
                "client_id": self.client_id,
                "client_secret": self._client_secret,
                "grant_type": "client_credentials",
            }

            async with self._client() as client:
                try:
                    r = await client.post(self.TOKEN_URL, params=params)
                except httpx.HTTPError as e:
                    raise TwitchAPIError(f"Twitch token request failed: {e}") from e

            if r.status_code >= 400:
                raise TwitchAPIError(
                    f"Twitch token request returned HTTP {r.status_code}"
                )

            try:
                data = r.json()
            except ValueError as e:
                raise TwitchAPIError(f"Twitch token response invalid: {e}") from e

            token = data.get("access_token") if isinstance(data, dict) else None
            if not token:
                raise TwitchAPIError("Twitch token response has no access_token")

            try:
                expires_in = float(data.get("expires_in") or 0)
            except (TypeError, ValueError):
                expires_in = 0.0

            self._token = token
            self._token_expires_at = (
                time.monotonic() + max(expires_in - self.TOKEN_EXPIRY_MARGIN, 0.0)
            )
            log.info("Twitch app token acquired")
            return token
