"""
Discord Client

This module owns the Discord connection itself.

Responsibilities:
- connect to Discord
- handle ready / resume / disconnect events
- register the prefix command listener
- start the Twitch live worker once the first ready event arrives
- expose a clean async run() / shutdown() contract

IMPORTANT:
- This client MUST NOT create its own event loop
- A login failure is logged, not raised; the process stays up
"""

from __future__ import annotations

import asyncio
from typing import Optional

import discord
from discord.ext import commands

from shared.config.bot import BotConfig
from shared.logging.logger import get_logger

from services.discord import commands as command_surfaces
from services.discord.announcements import DiscordAnnouncementManager
from services.discord.logging import DiscordLogAdapter
from services.discord.permissions import DiscordPermissionResolver
from services.twitch.api.helix import TwitchHelixAPI
from services.twitch.probe import TwitchStreamProbe
from services.twitch.workers.live_worker import TwitchLiveWorker

log = get_logger("discord.client", runtime="discord")


class DiscordClient:
    """
    Thin wrapper around discord.py Bot.

    This class provides:
    - async run() entrypoint
    - async shutdown()
    - lifecycle event logging
    - command surface and live worker wiring
    """

    def __init__(self, config: BotConfig):
        self._config = config
        self._bot: Optional[commands.Bot] = None

        self.logger = DiscordLogAdapter()
        self.permissions = DiscordPermissionResolver(config.roles)
        self.live_worker: Optional[TwitchLiveWorker] = None
        self._twitch_api: Optional[TwitchHelixAPI] = None

    # --------------------------------------------------

    def _build_bot(self) -> commands.Bot:
        """
        Construct the discord.py Bot instance.
        """

        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True
        intents.messages = True
        intents.message_content = True  # prefix commands read raw text

        bot = commands.Bot(
            command_prefix="!",
            intents=intents,
            help_command=None,
        )

        command_surfaces.setup(
            bot,
            config=self._config,
            permissions=self.permissions,
            logger=self.logger,
        )

        @bot.event
        async def on_ready():
            log.info(
                f"Logged in as {bot.user} "
                f"(id={bot.user.id}) "
                f"guilds={len(bot.guilds)}"
            )
            self.logger.log_startup(user=str(bot.user), guild_count=len(bot.guilds))

            self.start_live_worker(bot)

        @bot.event
        async def on_command_error(ctx, error):
            # prefix commands are routed by the on_message listener, not by
            # discord.ext.commands, so unknown-command lookups are expected
            if isinstance(error, commands.CommandNotFound):
                return
            log.error(f"Command error: {error}")

        @bot.event
        async def on_resumed():
            log.info("Discord connection resumed")

        @bot.event
        async def on_disconnect():
            log.warning("Discord connection lost")

        return bot

    # --------------------------------------------------

    def build_live_worker(self, bot: discord.Client) -> Optional[TwitchLiveWorker]:
        """
        Wire probe, announcer and worker from configuration.

        Returns None (and logs why) when monitoring cannot run.
        """
        config = self._config

        if not config.streamers:
            log.error("TWITCH_STREAMERS is empty; Twitch monitor not started")
            return None

        if not config.twitch_client_id or not config.twitch_client_secret:
            log.error(
                "TWITCH_CLIENT_ID / TWITCH_CLIENT_SECRET missing; "
                "Twitch monitor not started"
            )
            return None

        self._twitch_api = TwitchHelixAPI(
            client_id=config.twitch_client_id,
            client_secret=config.twitch_client_secret,
        )

        return TwitchLiveWorker(
            probe=TwitchStreamProbe(self._twitch_api),
            announcer=DiscordAnnouncementManager(bot),
            streamers=config.streamers,
            channel_id_provider=config.stream_channel_id,
            interval_seconds=config.poll_interval_seconds,
        )

    def start_live_worker(self, bot: discord.Client) -> None:
        # on_ready fires again after reconnects; the worker starts only once
        if self.live_worker is not None:
            return

        self.live_worker = self.build_live_worker(bot)
        if self.live_worker is not None:
            self.live_worker.start()

    # --------------------------------------------------

    async def run(self):
        """
        Start the Discord client and block until the connection ends.
        """
        if self._bot is not None:
            raise RuntimeError("Discord client already running")

        if not self._config.token:
            log.error("Discord bot token not configured; not connecting")
            return

        log.info("Starting bot...")

        self._bot = self._build_bot()

        try:
            await self._bot.start(self._config.token)
        except discord.LoginFailure as e:
            log.error(f"Login failed: {e}")
        except asyncio.CancelledError:
            log.info("Discord client task cancelled")
            raise
        except Exception as e:
            log.error(f"Discord client crashed: {e}")
            raise
        finally:
            log.info("Discord client stopped")

    # --------------------------------------------------

    async def shutdown(self):
        """
        Stop the live worker and close the Discord connection.
        """
        if self.live_worker is not None:
            await self.live_worker.stop()
            self.live_worker = None

        if not self._bot:
            return

        log.info("Closing Discord connection")

        try:
            await self._bot.close()
        except Exception as e:
            log.warning(f"Discord close error ignored: {e}")

        self.logger.log_shutdown()
        self._bot = None

    # --------------------------------------------------

    @property
    def bot(self) -> Optional[commands.Bot]:
        return self._bot
