"""
Discord Public Commands

User-facing prefix commands that anyone may call.

- !help    one-line usage hint
- !decide  random whimsical answer, optionally echoing the question
"""

from __future__ import annotations

import random
from typing import Any, Optional

from shared.logging.logger import get_logger
from services.discord.logging import DiscordLogAdapter

log = get_logger("discord.commands.public", runtime="discord")

HELP_TRIGGER = "!help"
DECIDE_TRIGGER = "!decide"

HELP_TEXT = "I can help make announcements!: Use '!announce [message]'"

DECIDE_RESPONSES = (
    "Yes! ✨",
    "No... 😔",
    "Maybe? 🤔",
    "Absolutely! 💯",
    "Not a chance! ❌",
    "Ask again later 🕐",
    "Definitely! 🌟",
    "I don't think so 🤷",
    "Without a doubt! ✅",
    "Ummmm 🤫",
)


def build_decide_reply(question: str, rng: Optional[random.Random] = None) -> str:
    response = (rng or random).choice(DECIDE_RESPONSES)
    if question:
        return f"> {question}\n{response}"
    return response


class PublicCommandHandler:
    """
    Handlers for public prefix commands.
    """

    def __init__(
        self,
        *,
        logger: DiscordLogAdapter,
        rng: Optional[random.Random] = None,
    ):
        self._logger = logger
        self._rng = rng

    async def cmd_help(self, message: Any) -> None:
        log.info("!help command detected")
        await message.reply(HELP_TEXT)

        self._logger.log_command(
            command="help",
            guild_id=getattr(message.guild, "id", None),
            user_id=message.author.id,
            success=True,
        )

    async def cmd_decide(self, message: Any) -> None:
        if message.author.bot:
            return

        question = message.content[len(DECIDE_TRIGGER):].strip()
        await message.reply(build_decide_reply(question, self._rng))

        self._logger.log_command(
            command="decide",
            guild_id=getattr(message.guild, "id", None),
            user_id=message.author.id,
            success=True,
            extra={"question": bool(question)},
        )
