import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from discord.ext import commands

from core.discord_app import main as app_main
from services.discord.client import DiscordClient
from shared.config.bot import BotConfig


def make_config(**overrides):
    values = dict(
        token="token",
        roles={"announcer-role": 1},
        announcement_channel_id=2,
        twitch_client_id="cid",
        twitch_client_secret="secret",
        streamers=["alice", "bob"],
        poll_interval_seconds=60.0,
    )
    values.update(overrides)
    return BotConfig(**values)


def fake_bot():
    return SimpleNamespace(get_channel=MagicMock(return_value=None), fetch_channel=AsyncMock())


def test_live_worker_is_wired_from_config():
    client = DiscordClient(make_config())

    worker = client.build_live_worker(fake_bot())

    assert worker is not None
    assert worker.streamers == ["alice", "bob"]
    assert worker.interval_seconds == 60.0


@pytest.mark.parametrize(
    "overrides",
    [{"streamers": []}, {"twitch_client_id": None}, {"twitch_client_secret": None}],
)
def test_live_worker_not_built_without_requirements(overrides):
    client = DiscordClient(make_config(**overrides))

    assert client.build_live_worker(fake_bot()) is None


@pytest.mark.asyncio
async def test_live_worker_starts_only_once_across_ready_events():
    client = DiscordClient(make_config(poll_interval_seconds=3600.0))
    bot = fake_bot()

    client.start_live_worker(bot)
    first = client.live_worker
    client.start_live_worker(bot)

    assert client.live_worker is first
    assert first.running

    await client.shutdown()
    assert client.live_worker is None


@pytest.mark.asyncio
async def test_run_without_token_does_not_connect():
    client = DiscordClient(make_config(token=None))

    await client.run()

    assert client.bot is None


@pytest.mark.asyncio
async def test_prefix_commands_do_not_log_command_not_found(caplog):
    bot = DiscordClient(make_config())._build_bot()
    ctx = SimpleNamespace(command=None, invoked_with="help")

    with patch("services.discord.client.log") as log:
        await bot.on_command_error(ctx, commands.CommandNotFound('Command "help" is not found'))

    log.error.assert_not_called()
    assert not [r for r in caplog.records if r.levelname == "ERROR"]


@pytest.mark.asyncio
async def test_other_command_errors_are_still_logged():
    bot = DiscordClient(make_config())._build_bot()
    ctx = SimpleNamespace(command=None, invoked_with="help")

    with patch("services.discord.client.log") as log:
        await bot.on_command_error(ctx, commands.CommandError("boom"))

    log.error.assert_called_once()


@pytest.mark.asyncio
async def test_app_main_shuts_client_down_on_stop_signal():
    client = SimpleNamespace(run=AsyncMock(), shutdown=AsyncMock())
    stop_event = asyncio.Event()
    asyncio.get_running_loop().call_later(0.01, stop_event.set)

    await app_main(stop_event, client=client)

    client.run.assert_awaited_once()
    client.shutdown.assert_awaited_once()
