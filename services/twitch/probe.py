from services.twitch.api.helix import TwitchAPIError, TwitchHelixAPI
from services.twitch.models.stream import (
    Live,
    NotFound,
    Offline,
    ProbeFailed,
    StreamSnapshot,
)
from shared.logging.logger import get_logger

log = get_logger("twitch.probe", runtime="twitch")


class TwitchStreamProbe:
    """
    Observes one streamer's current state on Twitch.

    API faults are returned as ProbeFailed instead of raised, so callers
    can skip the streamer for this cycle and move on.
    """

    def __init__(self, api: TwitchHelixAPI):
        self._api = api

    async def probe(self, streamer_id: str) -> StreamSnapshot:
        try:
            user = await self._api.get_user(streamer_id)
        except TwitchAPIError as e:
            log.warning(f"Twitch API error while fetching user {streamer_id}: {e}")
            return ProbeFailed(streamer_id=streamer_id, reason=str(e))

        if not user:
            log.info(f"Twitch user not found: {streamer_id}")
            return NotFound(streamer_id=streamer_id)

        display_name = user.get("display_name") or user.get("login") or streamer_id
        user_id = user.get("id")
        if not user_id:
            log.warning(f"Twitch user {streamer_id} has no id in response")
            return ProbeFailed(streamer_id=streamer_id, reason="user id missing")

        try:
            stream = await self._api.get_stream(str(user_id))
        except TwitchAPIError as e:
            log.warning(f"Error fetching stream for {streamer_id}: {e}")
            return ProbeFailed(streamer_id=streamer_id, reason=str(e))

        if not stream:
            return Offline(streamer_id=streamer_id, display_name=display_name)

        return Live(
            streamer_id=streamer_id,
            display_name=display_name,
            title=stream.get("title") or "",
        )
