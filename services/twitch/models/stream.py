from dataclasses import dataclass
from typing import Union

NO_TITLE = "(no title)"


@dataclass(frozen=True)
class NotFound:
    """The platform has no account with this login."""

    streamer_id: str


@dataclass(frozen=True)
class Offline:
    """The account exists and has no active stream session."""

    streamer_id: str
    display_name: str


@dataclass(frozen=True)
class Live:
    """
    The account is currently streaming.

    `title` may be empty; consumers should use `display_title` when
    rendering.
    """

    streamer_id: str
    display_name: str
    title: str = ""

    @property
    def display_title(self) -> str:
        return self.title.strip() or NO_TITLE


@dataclass(frozen=True)
class ProbeFailed:
    """The lookup could not be completed (network or API fault)."""

    streamer_id: str
    reason: str


# One probe's observation. Consumed immediately, never stored.
StreamSnapshot = Union[NotFound, Offline, Live, ProbeFailed]
