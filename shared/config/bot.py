"""
Bot configuration loader.

Sources, in order of precedence:
- environment variables (populated from .env by python-dotenv at boot)
- the JSON document at BOT_CONFIG_PATH (default: shared/config/bot.json)

Design rules:
- Import-safe (no side effects)
- A missing or broken document is a warning, never a crash
- Values that are needed per-use (channel overrides) are read per-use
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from shared.logging.logger import get_logger

log = get_logger("shared.config.bot")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "bot.json"

ANNOUNCER_ROLE_KEY = "announcer-role"
DEFAULT_POLL_INTERVAL_SECONDS = 60.0

ENV_CONFIG_PATH = "BOT_CONFIG_PATH"
ENV_DISCORD_TOKEN = "DISCORD_BOT_TOKEN"
ENV_TWITCH_CLIENT_ID = "TWITCH_CLIENT_ID"
ENV_TWITCH_CLIENT_SECRET = "TWITCH_CLIENT_SECRET"
ENV_TWITCH_STREAMERS = "TWITCH_STREAMERS"
ENV_TWITCH_ANNOUNCE_CHANNEL = "TWITCH_ANNOUNCE_CHANNEL_ID"
ENV_POLL_INTERVAL = "TWITCH_POLL_INTERVAL_SECONDS"


def normalize_snowflake(value: Any) -> Optional[int]:
    """Return a Discord id as int, or None when absent or malformed."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        raw = value.strip()
        if raw.isdigit():
            return int(raw)
    return None


def parse_streamers(raw: Optional[str]) -> List[str]:
    """
    Split a comma-delimited streamer list.

    Entries are trimmed; empty and whitespace-only entries are skipped.
    Case and order are preserved.
    """
    if not raw:
        return []
    return [entry.strip() for entry in raw.split(",") if entry.strip()]


def _parse_interval(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_POLL_INTERVAL_SECONDS
    try:
        value = float(raw)
    except ValueError:
        log.warning(
            f"{ENV_POLL_INTERVAL}={raw!r} is not a number; "
            f"using {DEFAULT_POLL_INTERVAL_SECONDS}s"
        )
        return DEFAULT_POLL_INTERVAL_SECONDS
    if value <= 0:
        log.warning(
            f"{ENV_POLL_INTERVAL} must be positive; "
            f"using {DEFAULT_POLL_INTERVAL_SECONDS}s"
        )
        return DEFAULT_POLL_INTERVAL_SECONDS
    return value


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        log.warning(f"Bot config not found at {path}; using environment only")
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        log.warning(f"Failed to load bot config ({e}); using environment only")
        return {}

    if not isinstance(data, dict):
        log.warning("Bot config root is not an object; ignoring")
        return {}
    return data


def _collect_roles(data: Dict[str, Any]) -> Dict[str, Optional[int]]:
    roles: Dict[str, Optional[int]] = {}

    nested = data.get("roles")
    if isinstance(nested, dict):
        for key, value in nested.items():
            roles[str(key)] = normalize_snowflake(value)

    for key, value in data.items():
        if isinstance(key, str) and key.endswith("-role"):
            roles[key] = normalize_snowflake(value)

    return roles


@dataclass
class BotConfig:
    token: Optional[str] = None
    roles: Dict[str, Optional[int]] = field(default_factory=dict)
    announcement_channel_id: Optional[int] = None
    twitch_client_id: Optional[str] = None
    twitch_client_secret: Optional[str] = None
    streamers: List[str] = field(default_factory=list)
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    source_path: Optional[Path] = None

    def role_id(self, key: str) -> Optional[int]:
        return self.roles.get(key)

    def stream_channel_id(self) -> Optional[int]:
        """
        Channel for live notifications.

        The environment override is read on every call so the destination
        can be changed without a restart.
        """
        override = normalize_snowflake(os.getenv(ENV_TWITCH_ANNOUNCE_CHANNEL))
        if override is not None:
            return override
        return self.announcement_channel_id

    def credentials_summary(self) -> Dict[str, bool]:
        return {
            "discord_token": bool(self.token),
            "twitch_client_id": bool(self.twitch_client_id),
            "twitch_client_secret": bool(self.twitch_client_secret),
        }


def load_bot_config(path: Optional[Path] = None) -> BotConfig:
    """Load the bot configuration from the JSON document and environment."""
    if path is None:
        env_path = os.getenv(ENV_CONFIG_PATH)
        path = Path(env_path) if env_path else _DEFAULT_CONFIG_PATH

    data = _load_json(Path(path))

    token = os.getenv(ENV_DISCORD_TOKEN) or data.get("token")
    if token is not None and not isinstance(token, str):
        log.warning("Bot config 'token' is not a string; ignoring")
        token = None

    config = BotConfig(
        token=token or None,
        roles=_collect_roles(data),
        announcement_channel_id=normalize_snowflake(data.get("announcementChannel")),
        twitch_client_id=os.getenv(ENV_TWITCH_CLIENT_ID) or None,
        twitch_client_secret=os.getenv(ENV_TWITCH_CLIENT_SECRET) or None,
        streamers=parse_streamers(os.getenv(ENV_TWITCH_STREAMERS)),
        poll_interval_seconds=_parse_interval(os.getenv(ENV_POLL_INTERVAL)),
        source_path=Path(path),
    )

    log.debug(
        f"Bot config loaded from {path}: "
        f"roles={sorted(config.roles)} "
        f"streamers={len(config.streamers)}"
    )
    return config
