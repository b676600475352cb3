"""
Discord Logging Adapter

Normalizes Discord-originated events (commands, lifecycle) into one
structured log line each, routed to the Discord runtime log file.

IMPORTANT:
- This module MUST NOT send network requests
- This module MUST NOT depend on discord.py objects directly
"""

from __future__ import annotations

from typing import Optional, Dict, Any

from shared.logging.logger import get_logger

log = get_logger("discord.events", runtime="discord")


class DiscordLogAdapter:
    """
    Structured logging for Discord runtime events.
    """

    def log_event(
        self,
        *,
        event: str,
        level: str = "info",
        guild_id: Optional[int] = None,
        user_id: Optional[int] = None,
        channel_id: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        """
        Record a structured Discord event.
        """

        payload = {
            "event": event,
            "guild_id": guild_id,
            "user_id": user_id,
            "channel_id": channel_id,
            "data": data or {},
        }

        if level == "debug":
            log.debug(f"Discord event: {payload}")
        elif level == "warning":
            log.warning(f"Discord event: {payload}")
        elif level == "error":
            log.error(f"Discord event: {payload}")
        else:
            log.info(f"Discord event: {payload}")

    def log_startup(self, *, user: str, guild_count: int):
        self.log_event(
            event="discord_ready",
            data={"user": user, "guilds": guild_count},
        )

    def log_shutdown(self):
        self.log_event(event="discord_shutdown")

    def log_command(
        self,
        *,
        command: str,
        guild_id: Optional[int],
        user_id: Optional[int],
        success: bool,
        extra: Optional[Dict[str, Any]] = None,
    ):
        """Log one handled prefix command."""
        self.log_event(
            event="discord_command",
            level="info" if success else "warning",
            data={
                "command": command,
                "success": success,
                "extra": extra or {},
            },
            guild_id=guild_id,
            user_id=user_id,
        )
