"""
======================================================================
 Herald Bot Runtime — Version v0.1.0 (Build 2026.10)
======================================================================
"""

"""
Bot runtime entrypoint.

This module launches the Discord bot and its Twitch live monitor as one
process. It owns:

- event loop creation
- environment + config loading
- orderly startup and shutdown
- logging scope

IMPORTANT:
- No failure inside the bot ends the process; only a signal does
"""

import asyncio
import signal
import sys
from typing import Optional

from dotenv import load_dotenv

from runtime.version import as_string
from shared.config.bot import load_bot_config
from shared.logging.logger import get_logger
from services.discord.client import DiscordClient

log = get_logger("core.discord_app")


def _log_client_exit(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.error(f"Discord client exited with error: {exc}")
    else:
        log.warning("Discord client is no longer connected; waiting for shutdown signal")


# ----------------------------------------------------------------------
# MAIN ASYNC ENTRYPOINT
# ----------------------------------------------------------------------

async def main(stop_event: asyncio.Event, client: Optional[DiscordClient] = None):
    load_dotenv()

    log.info(f"{as_string()} booting")

    if client is None:
        config = load_bot_config()

        for name, present in config.credentials_summary().items():
            log.info(f"Credential {name} present: {present}")
        log.info(f"Streamers to check: {config.streamers}")
        log.info(f"Poll interval: {config.poll_interval_seconds:g}s")

        client = DiscordClient(config)

    # --------------------------------------------------
    # START DISCORD RUNTIME
    # --------------------------------------------------
    client_task = asyncio.create_task(client.run())
    client_task.add_done_callback(_log_client_exit)

    # --------------------------------------------------
    # BLOCK UNTIL SHUTDOWN SIGNAL
    # --------------------------------------------------
    await stop_event.wait()

    log.info("Shutdown initiated")

    # --------------------------------------------------
    # ORDERLY SHUTDOWN
    # --------------------------------------------------
    try:
        await client.shutdown()
    except Exception as e:
        log.warning(f"Discord client shutdown error ignored: {e}")

    if not client_task.done():
        client_task.cancel()
    await asyncio.gather(client_task, return_exceptions=True)

    log.info("Bot runtime stopped")


# ----------------------------------------------------------------------
# SIGNAL HANDLING (WINDOWS-SAFE)
# ----------------------------------------------------------------------

def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    stop_event: asyncio.Event,
):
    """
    Windows-safe Ctrl+C handler.
    Uses signal.signal + asyncio.Event to unwind cleanly.
    """

    def _handler(signum, frame):
        loop.call_soon_threadsafe(stop_event.set)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            signal.signal(sig, _handler)
        except (ValueError, OSError) as e:
            log.debug(f"Signal handler for {sig} not installed: {e}")


# ----------------------------------------------------------------------
# ENTRYPOINT
# ----------------------------------------------------------------------

def run():
    stop_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    _install_signal_handlers(loop, stop_event)

    try:
        loop.run_until_complete(main(stop_event))

    except KeyboardInterrupt:
        log.info("KeyboardInterrupt received — shutdown initiated")

    finally:
        # --------------------------------------------------
        # CANCEL REMAINING TASKS (CLEANLY)
        # --------------------------------------------------
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()

        if pending:
            loop.run_until_complete(
                asyncio.gather(*pending, return_exceptions=True)
            )

        loop.run_until_complete(loop.shutdown_asyncgens())

        asyncio.set_event_loop(None)
        loop.close()


if __name__ == "__main__":
    run()
    sys.exit(0)
