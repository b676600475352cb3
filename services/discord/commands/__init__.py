"""
Discord Command Package

This package centralizes registration for the prefix command surfaces.

Command categories:
- public    → !help, !decide (anyone)
- announce  → !announce (announcer role only)

Commands are plain text prefixes matched with str.startswith, case
sensitive. A single on_message listener routes each message to every
handler whose trigger it starts with.

IMPORTANT DESIGN RULES:
- No command registration on import
- No Discord client ownership
- Explicit setup() calls only
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Tuple

from discord.ext import commands

from shared.config.bot import BotConfig
from shared.logging.logger import get_logger
from services.discord.logging import DiscordLogAdapter
from services.discord.permissions import DiscordPermissionResolver
from services.discord.commands.announce import ANNOUNCE_TRIGGER, AnnounceCommandHandler
from services.discord.commands.public import (
    DECIDE_TRIGGER,
    HELP_TRIGGER,
    PublicCommandHandler,
)

log = get_logger("discord.commands", runtime="discord")

Handler = Callable[[Any], Awaitable[None]]


class PrefixCommandRouter:
    """
    Routes a message to the handlers whose trigger prefixes it.

    A failing handler is logged and does not stop the others.
    """

    def __init__(self):
        self._routes: List[Tuple[str, Handler]] = []

    def add(self, trigger: str, handler: Handler) -> None:
        self._routes.append((trigger, handler))

    @property
    def triggers(self) -> List[str]:
        return [trigger for trigger, _ in self._routes]

    async def dispatch(self, message: Any) -> int:
        content = message.content or ""
        handled = 0
        for trigger, handler in self._routes:
            if not content.startswith(trigger):
                continue
            handled += 1
            try:
                await handler(message)
            except Exception:
                log.exception(f"Command {trigger} failed")
        return handled


def build_router(
    *,
    config: BotConfig,
    permissions: DiscordPermissionResolver,
    logger: DiscordLogAdapter,
) -> PrefixCommandRouter:
    public = PublicCommandHandler(logger=logger)
    announce = AnnounceCommandHandler(
        config=config,
        permissions=permissions,
        logger=logger,
    )

    router = PrefixCommandRouter()
    router.add(HELP_TRIGGER, public.cmd_help)
    router.add(ANNOUNCE_TRIGGER, announce.cmd_announce)
    router.add(DECIDE_TRIGGER, public.cmd_decide)
    return router


def setup(
    bot: commands.Bot,
    *,
    config: BotConfig,
    permissions: DiscordPermissionResolver,
    logger: DiscordLogAdapter,
) -> PrefixCommandRouter:
    """
    Register the prefix command listener on `bot`.

    This function is called exactly once by the Discord client
    during startup.
    """

    router = build_router(config=config, permissions=permissions, logger=logger)

    async def on_message(message):
        await router.dispatch(message)

    bot.add_listener(on_message, "on_message")

    log.info(f"Discord prefix commands registered: {router.triggers}")
    return router
