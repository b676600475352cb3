"""
Discord Announce Command

!announce <text> relays <text> verbatim to the configured announcement
channel of the guild it was issued in.

Only members holding the announcer role may use it. Unauthorized calls are
ignored without a reply.
"""

from __future__ import annotations

from typing import Any, Optional

import discord

from shared.config.bot import ANNOUNCER_ROLE_KEY, BotConfig
from shared.logging.logger import get_logger
from services.discord.logging import DiscordLogAdapter
from services.discord.permissions import DiscordPermissionResolver

log = get_logger("discord.commands.announce", runtime="discord")

ANNOUNCE_TRIGGER = "!announce"

REPLY_EMPTY = "Please include a message to announce."
REPLY_CHANNEL_MISSING = "❌ I can't find the announcements channel. Check config."
REPLY_SEND_FAILED = "❌ Failed to send announcement. Check bot logs."
REPLY_SENT = "✅ Announcement sent to #announcements."


class AnnounceCommandHandler:
    def __init__(
        self,
        *,
        config: BotConfig,
        permissions: DiscordPermissionResolver,
        logger: DiscordLogAdapter,
    ):
        self._config = config
        self._permissions = permissions
        self._logger = logger

    async def cmd_announce(self, message: Any) -> None:
        permission = self._permissions.check_role(message, ANNOUNCER_ROLE_KEY)
        if not permission:
            return

        log.info("!announce command detected")

        text = message.content[len(ANNOUNCE_TRIGGER):].strip()
        if not text:
            log.warning("No announcement text provided")
            await message.reply(REPLY_EMPTY)
            self._log(message, success=False, reason="empty")
            return

        channel_id = self._config.announcement_channel_id
        channel = message.guild.get_channel(channel_id) if channel_id else None
        if channel is None:
            log.error(f"Announcement channel not found (id={channel_id})")
            await message.reply(REPLY_CHANNEL_MISSING)
            self._log(message, success=False, reason="channel_missing")
            return

        try:
            await channel.send(text)
        except discord.HTTPException as e:
            log.error(f"Failed to send announcement: {e}")
            await message.reply(REPLY_SEND_FAILED)
            self._log(message, success=False, reason="send_failed")
            return

        log.info(f"Announcement delivered to channel {channel_id}")
        await message.reply(REPLY_SENT)
        self._log(message, success=True)

    def _log(self, message: Any, *, success: bool, reason: Optional[str] = None) -> None:
        self._logger.log_command(
            command="announce",
            guild_id=getattr(message.guild, "id", None),
            user_id=message.author.id,
            success=success,
            extra={"reason": reason} if reason else None,
        )
