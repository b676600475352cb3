import asyncio
import time
from typing import Callable, List, Optional, Protocol, Sequence

from services.twitch.live_status import (
    LiveStatusTable,
    Transition,
    TransitionKind,
    detect,
)
from services.twitch.models.stream import StreamSnapshot
from shared.logging.logger import get_logger

log = get_logger("twitch.live_worker", runtime="twitch")


class StreamProbe(Protocol):
    async def probe(self, streamer_id: str) -> StreamSnapshot: ...


class LiveAnnouncer(Protocol):
    async def announce_live(self, transition: Transition, channel_id: int) -> bool: ...


class TwitchLiveWorker:
    """
    Polls the configured streamers and announces new live sessions.

    Responsibilities:
    - Run one poll cycle per interval, forever, until stopped
    - Probe streamers sequentially in configured order
    - Own the live status table (single writer)
    - Survive any failure inside a cycle; the next tick runs normally

    A cycle is awaited before the next one is scheduled, so cycles never
    overlap. A slow cycle delays the next tick instead.
    """

    def __init__(
        self,
        *,
        probe: StreamProbe,
        announcer: LiveAnnouncer,
        streamers: Sequence[str],
        channel_id_provider: Callable[[], Optional[int]],
        interval_seconds: float = 60.0,
        table: Optional[LiveStatusTable] = None,
    ):
        if interval_seconds <= 0:
            raise RuntimeError("Poll interval must be positive")

        self.streamers: List[str] = list(streamers)
        self.interval_seconds = interval_seconds
        self.table = table if table is not None else LiveStatusTable()

        self._probe = probe
        self._announcer = announcer
        self._channel_id_provider = channel_id_provider

        self._task: Optional[asyncio.Task] = None
        self._in_flight = False
        self._cycles = 0

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cycles_completed(self) -> int:
        return self._cycles

    def start(self) -> asyncio.Task:
        if self.running:
            log.warning("Twitch live worker already running — ignoring duplicate start")
            return self._task

        self._task = asyncio.create_task(self.run())
        log.info(
            f"Twitch monitor started ({len(self.streamers)} streamer(s), "
            f"every {self.interval_seconds:g}s)"
        )
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return

        if not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self._task = None
        log.info("Twitch monitor stopped")

    async def run(self) -> None:
        try:
            while True:
                started = time.monotonic()
                try:
                    await self.run_cycle()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    log.exception("Twitch check failed")

                elapsed = time.monotonic() - started
                await asyncio.sleep(max(self.interval_seconds - elapsed, 0.0))
        except asyncio.CancelledError:
            log.info("Twitch live worker cancelled")
            raise

    # ------------------------------------------------------------------ #
    # Poll cycle
    # ------------------------------------------------------------------ #

    async def run_cycle(self) -> List[Transition]:
        """
        Probe every streamer once and return the transitions observed.
        """
        if self._in_flight:
            log.warning("Previous Twitch check still running — skipping this tick")
            return []

        self._in_flight = True
        try:
            return await self._check_streams()
        finally:
            self._in_flight = False
            self._cycles += 1

    async def _check_streams(self) -> List[Transition]:
        log.info(f"Checking streams: {self.streamers}")

        channel_id = self._channel_id_provider()
        if channel_id is None:
            log.error(
                "No announce channel configured "
                "(TWITCH_ANNOUNCE_CHANNEL_ID or announcementChannel). Skipping."
            )
            return []

        transitions: List[Transition] = []
        for streamer_id in self.streamers:
            snapshot = await self._probe.probe(streamer_id)
            transition = detect(streamer_id, snapshot, self.table)
            transitions.append(transition)

            if transition.kind is TransitionKind.BECAME_LIVE:
                log.info(f"{streamer_id} went live")
                await self._announcer.announce_live(transition, channel_id)
            elif transition.kind is TransitionKind.BECAME_OFFLINE:
                log.info(f"{streamer_id} is now offline")
            elif transition.kind is TransitionKind.IGNORED:
                log.debug(f"{streamer_id} skipped this cycle ({type(snapshot).__name__})")

        return transitions
