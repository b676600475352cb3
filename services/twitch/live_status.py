"""
Live status tracking.

The status table holds the last known liveness per streamer. It is owned by
a single live worker and only mutated through `detect`, which is fully
synchronous: no suspension happens between reading and writing an entry.

Detection is edge-triggered. A streamer produces BECAME_LIVE once per live
session, not once per poll.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional

from services.twitch.models.stream import (
    Live,
    NotFound,
    Offline,
    ProbeFailed,
    StreamSnapshot,
)


class LiveStatusTable:
    """
    Streamer id -> last known liveness.

    Absence of an entry means "not live". Entries are created on the first
    successful observation and never deleted.
    """

    def __init__(self, initial: Optional[Dict[str, bool]] = None):
        self._status: Dict[str, bool] = dict(initial or {})

    def is_live(self, streamer_id: str) -> bool:
        return self._status.get(streamer_id, False)

    def set_live(self, streamer_id: str, live: bool) -> None:
        self._status[streamer_id] = live

    def snapshot(self) -> Dict[str, bool]:
        return dict(self._status)

    def __contains__(self, streamer_id: object) -> bool:
        return streamer_id in self._status

    def __iter__(self) -> Iterator[str]:
        return iter(self._status)

    def __len__(self) -> int:
        return len(self._status)


class TransitionKind(Enum):
    BECAME_LIVE = "became_live"
    BECAME_OFFLINE = "became_offline"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Transition:
    kind: TransitionKind
    streamer_id: str
    snapshot: StreamSnapshot

    @property
    def announces(self) -> bool:
        """Only a session start is broadcast."""
        return self.kind is TransitionKind.BECAME_LIVE


def detect(
    streamer_id: str,
    snapshot: StreamSnapshot,
    table: LiveStatusTable,
) -> Transition:
    """Classify `snapshot` against `table` and record the new state."""

    if isinstance(snapshot, (NotFound, ProbeFailed)):
        return Transition(TransitionKind.IGNORED, streamer_id, snapshot)

    was_live = table.is_live(streamer_id)

    if isinstance(snapshot, Live):
        if was_live:
            return Transition(TransitionKind.UNCHANGED, streamer_id, snapshot)
        table.set_live(streamer_id, True)
        return Transition(TransitionKind.BECAME_LIVE, streamer_id, snapshot)

    if isinstance(snapshot, Offline):
        if was_live:
            table.set_live(streamer_id, False)
            return Transition(TransitionKind.BECAME_OFFLINE, streamer_id, snapshot)
        if streamer_id not in table:
            # first offline sighting is recorded so every probed streamer shows
            # up in the table (bob:false after the first alice/bob cycle)
            table.set_live(streamer_id, False)
        return Transition(TransitionKind.UNCHANGED, streamer_id, snapshot)

    raise TypeError(f"Unknown stream snapshot type: {type(snapshot).__name__}")
