"""
Discord Announcements Module

Handles outbound live-notification delivery to a Discord text channel.

Responsibilities:
- Format the "went live" message for a streamer
- Resolve the destination channel at dispatch time (never cached)
- Deliver the message, logging any failure instead of raising

IMPORTANT CONSTRAINTS:
- This module MUST NOT register commands
- This module MUST NOT own a Discord client (the bot is passed in)
- Offline transitions are never broadcast
"""

from __future__ import annotations

from typing import Any, Optional

import discord

from services.twitch.live_status import Transition
from services.twitch.models.stream import Live
from shared.logging.logger import get_logger

log = get_logger("discord.announcements", runtime="discord")

STREAM_URL_TEMPLATE = "https://twitch.tv/{streamer_id}"


def format_live_message(snapshot: Live) -> str:
    url = STREAM_URL_TEMPLATE.format(streamer_id=snapshot.streamer_id)
    return (
        f"📢 **{snapshot.display_name} is LIVE on Twitch!** \n"
        f"🔗 {url}\n"
        f"**Title:** {snapshot.display_title}"
    )


class DiscordAnnouncementManager:
    """
    Sends live notifications through a connected discord.py bot.
    """

    def __init__(self, bot: discord.Client):
        self._bot = bot

    # --------------------------------------------------
    # Channel resolution
    # --------------------------------------------------

    async def resolve_channel(self, channel_id: int) -> Optional[Any]:
        channel = self._bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self._bot.fetch_channel(channel_id)
            except (discord.NotFound, discord.Forbidden) as e:
                log.error(f"Announce channel {channel_id} unavailable: {e}")
                return None
            except discord.HTTPException as e:
                log.error(f"Failed to fetch announce channel {channel_id}: {e}")
                return None

        if not callable(getattr(channel, "send", None)):
            log.error(f"Announce channel {channel_id} is not a messageable channel")
            return None

        return channel

    # --------------------------------------------------
    # Delivery
    # --------------------------------------------------

    async def announce_live(self, transition: Transition, channel_id: int) -> bool:
        """
        Post a live notification for a BECAME_LIVE transition.

        Returns True when the message was delivered. Failures are logged,
        never raised; cancellation still propagates.
        """
        if not transition.announces or not isinstance(transition.snapshot, Live):
            return False

        snapshot = transition.snapshot
        try:
            channel = await self.resolve_channel(channel_id)
            if channel is None:
                log.error("Announce channel not found or bot lacks send permission")
                return False

            await channel.send(content=format_live_message(snapshot))
        except discord.HTTPException as e:
            log.error(f"Failed to send live announcement for {snapshot.streamer_id}: {e}")
            return False
        except Exception:
            log.exception(f"Failed to send live announcement for {snapshot.streamer_id}")
            return False

        log.info(f"Announced {snapshot.display_name} is live")
        return True
