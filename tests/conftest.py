"""
Shared fixtures for the bot test suite.

- Log files go to a throwaway directory
- Environment variables read by the config loader are cleared per test
- Discord messages are SimpleNamespace/AsyncMock fakes shaped like
  discord.Message (content, author, guild, reply)
"""

from __future__ import annotations

import os
import tempfile
from types import SimpleNamespace
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

os.environ.setdefault("BOT_LOG_DIR", tempfile.mkdtemp(prefix="herald-logs-"))
os.environ.setdefault("LOG_LEVEL", "DEBUG")

ANNOUNCER_ROLE_ID = 555000000000000001
ANNOUNCE_CHANNEL_ID = 777000000000000001
GUILD_ID = 111000000000000001

CONFIG_ENV_VARS = (
    "BOT_CONFIG_PATH",
    "DISCORD_BOT_TOKEN",
    "TWITCH_CLIENT_ID",
    "TWITCH_CLIENT_SECRET",
    "TWITCH_STREAMERS",
    "TWITCH_ANNOUNCE_CHANNEL_ID",
    "TWITCH_POLL_INTERVAL_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_channel(send: Optional[AsyncMock] = None) -> SimpleNamespace:
    return SimpleNamespace(id=ANNOUNCE_CHANNEL_ID, send=send or AsyncMock())


def make_guild(channel: Optional[SimpleNamespace] = None) -> SimpleNamespace:
    channels = {ANNOUNCE_CHANNEL_ID: channel} if channel is not None else {}
    return SimpleNamespace(
        id=GUILD_ID,
        get_channel=MagicMock(side_effect=lambda cid: channels.get(cid)),
    )


def make_member(role_ids: List[int], *, bot: bool = False, user_id: int = 42):
    return SimpleNamespace(
        id=user_id,
        bot=bot,
        roles=[SimpleNamespace(id=rid) for rid in role_ids],
    )


def make_message(content: str, *, author=None, guild=None) -> SimpleNamespace:
    return SimpleNamespace(
        content=content,
        author=author if author is not None else make_member([]),
        guild=guild,
        reply=AsyncMock(),
    )


@pytest.fixture
def announce_channel():
    return make_channel()


@pytest.fixture
def guild(announce_channel):
    return make_guild(announce_channel)


@pytest.fixture
def announcer(guild):
    return make_member([ANNOUNCER_ROLE_ID])
