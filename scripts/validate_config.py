"""
======================================================================
 Herald Bot Runtime — Version v0.1.0 (Build 2026.10)
======================================================================
"""

from __future__ import annotations

"""
Configuration validation script.

Loads the bot configuration exactly as the runtime does (.env + JSON
document) and reports every setting the bot would be missing at runtime.

Design rules:
- No side effects on import
- No runtime startup, no network calls
- Validation only (no mutation)
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from shared.config.bot import ANNOUNCER_ROLE_KEY, BotConfig, load_bot_config


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------

def _error(msg: str):
    print(f"[CONFIG ERROR] {msg}", file=sys.stderr)


# ------------------------------------------------------------
# Validators
# ------------------------------------------------------------

def collect_problems(config: BotConfig) -> List[str]:
    """
    Return one message per missing or invalid setting.
    """
    problems: List[str] = []

    if not config.token:
        problems.append("Discord token missing ('token' or DISCORD_BOT_TOKEN)")

    if config.role_id(ANNOUNCER_ROLE_KEY) is None:
        problems.append(f"'{ANNOUNCER_ROLE_KEY}' missing or not a numeric id")

    if config.announcement_channel_id is None:
        problems.append("'announcementChannel' missing or not a numeric id")

    if not config.twitch_client_id:
        problems.append("TWITCH_CLIENT_ID missing")

    if not config.twitch_client_secret:
        problems.append("TWITCH_CLIENT_SECRET missing")

    if not config.streamers:
        problems.append("TWITCH_STREAMERS is empty")

    if config.stream_channel_id() is None:
        problems.append(
            "No live-notification channel "
            "(TWITCH_ANNOUNCE_CHANNEL_ID or announcementChannel)"
        )

    return problems


# ------------------------------------------------------------
# Entry point
# ------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate the bot configuration")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the JSON config document (default: BOT_CONFIG_PATH or shared/config/bot.json)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file to load first",
    )
    args = parser.parse_args(argv)

    load_dotenv(dotenv_path=args.env_file)

    problems = collect_problems(load_bot_config(args.config))

    if problems:
        for problem in problems:
            _error(problem)
        print("Configuration validation failed.", file=sys.stderr)
        return 1

    print("Configuration validation passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
