"""
Discord Permissions Module

Role-gated authorization for prefix commands.

The check is an ordered decision table: each rule names one reason to deny,
and the first matching rule wins. Denials are silent towards the user; they
are only logged.

IMPORTANT CONSTRAINTS:
- This module MUST NOT register Discord commands
- This module MUST NOT perform Discord API calls
- All Discord objects (Message, Member) are passed in externally
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Tuple

from shared.logging.logger import get_logger

log = get_logger("discord.permissions", runtime="discord")


class PermissionDenial(Enum):
    BOT_AUTHOR = "bot_author"
    DIRECT_MESSAGE = "direct_message"
    ROLE_NOT_CONFIGURED = "role_not_configured"
    MEMBER_MISSING = "member_missing"
    MISSING_ROLE = "missing_role"


class PermissionResult:
    """
    Structured permission check result.

    Truthy when the action is allowed.
    """

    def __init__(
        self,
        allowed: bool,
        *,
        reason: Optional[PermissionDenial] = None,
        role_id: Optional[int] = None,
    ):
        self.allowed = allowed
        self.reason = reason
        self.role_id = role_id

    def __bool__(self) -> bool:
        return self.allowed

    def __repr__(self) -> str:
        return f"PermissionResult(allowed={self.allowed}, reason={self.reason})"


def message_member(message: Any) -> Optional[Any]:
    """Return the guild Member behind a message, or None for plain Users."""
    author = message.author
    return author if hasattr(author, "roles") else None


def member_has_role(member: Any, role_id: int) -> bool:
    return any(getattr(role, "id", None) == role_id for role in getattr(member, "roles", []))


_Rule = Callable[[Any, Optional[int]], bool]

# Evaluated top to bottom; first match denies.
_ROLE_RULES: List[Tuple[PermissionDenial, _Rule]] = [
    (PermissionDenial.BOT_AUTHOR, lambda msg, role_id: bool(msg.author.bot)),
    (PermissionDenial.DIRECT_MESSAGE, lambda msg, role_id: msg.guild is None),
    (PermissionDenial.ROLE_NOT_CONFIGURED, lambda msg, role_id: role_id is None),
    (PermissionDenial.MEMBER_MISSING, lambda msg, role_id: message_member(msg) is None),
    (
        PermissionDenial.MISSING_ROLE,
        lambda msg, role_id: not member_has_role(message_member(msg), role_id),
    ),
]


class DiscordPermissionResolver:
    """
    Central permission resolver for role-gated commands.

    Holds the role-key -> role-id mapping from configuration.
    """

    def __init__(self, role_ids: Optional[Mapping[str, Optional[int]]] = None):
        self._role_ids = dict(role_ids or {})

    def role_id(self, role_key: str) -> Optional[int]:
        return self._role_ids.get(role_key)

    def check_role(self, message: Any, role_key: str) -> PermissionResult:
        """
        Decide whether the author of `message` may use a command gated by
        `role_key`.

        `message` is anything shaped like a discord.Message: it needs
        `author` (a guild Member carries `roles`) and `guild`.
        """
        role_id = self.role_id(role_key)

        for denial, rule in _ROLE_RULES:
            if rule(message, role_id):
                if denial is PermissionDenial.ROLE_NOT_CONFIGURED:
                    log.error(f"Role '{role_key}' is not set in the bot config")
                else:
                    log.debug(f"Permission denied for '{role_key}': {denial.value}")
                return PermissionResult(False, reason=denial, role_id=role_id)

        return PermissionResult(True, role_id=role_id)
