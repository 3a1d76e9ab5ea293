"""Session reduce: messages, datums, windows and the reducer interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Iterator, Sequence

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DROP = "U+005C__DROP__"

KEY_DELIMITER = ":"


@dataclass(frozen=True)
class Message:
    """A value produced by a session reducer."""

    value: bytes
    keys: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def with_keys(self, keys: Sequence[str]) -> Message:
        """Return a copy of this message carrying ``keys``."""
        return replace(self, keys=list(keys))

    def with_tags(self, tags: Sequence[str]) -> Message:
        """Return a copy of this message carrying ``tags`` for conditional forwarding."""
        return replace(self, tags=list(tags))


def message_to_drop() -> Message:
    """A message to be dropped."""
    return Message(value=b"", tags=[DROP])


@dataclass(frozen=True)
class Datum:
    """One incoming message handed to a session reducer."""

    value: bytes
    event_time: datetime = EPOCH
    watermark: datetime = EPOCH
    headers: dict[str, str] = field(default_factory=dict)


class SessionReducer(ABC):
    """Reduces the messages of one keyed session window."""

    @abstractmethod
    def session_reduce(
        self,
        keys: list[str],
        inputs: Iterator[Datum],
        output: Callable[[Message], None],
    ) -> None:
        """Consume ``inputs`` and pass results to ``output``."""

    @abstractmethod
    def accumulator(self) -> bytes:
        """Return the state to hand over when this session is merged into another."""

    @abstractmethod
    def merge_accumulator(self, accumulator: bytes) -> None:
        """Fold the state of a session merged into this one."""


class SessionReducerCreator(ABC):
    """Makes a fresh session reducer for every keyed window."""

    @abstractmethod
    def create(self) -> SessionReducer:
        """Return a new session reducer."""


def _millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - EPOCH) // timedelta(milliseconds=1)


@dataclass(frozen=True)
class KeyedWindow:
    """A session window for a set of keys."""

    start: datetime
    end: datetime
    slot: str = ""
    keys: list[str] = field(default_factory=list)

    def key(self) -> str:
        """Identifier of the window: start and end in milliseconds, then the keys."""
        return (
            f"{_millis(self.start)}:{_millis(self.end)}:"
            f"{KEY_DELIMITER.join(self.keys)}"
        )


@dataclass(frozen=True)
class Payload:
    """The message carried by a session reduce request."""

    value: bytes
    keys: list[str] = field(default_factory=list)
    event_time: datetime = EPOCH
    watermark: datetime = EPOCH
    headers: dict[str, str] = field(default_factory=dict)

    def to_datum(self) -> Datum:
        return Datum(
            value=self.value,
            event_time=self.event_time,
            watermark=self.watermark,
            headers=dict(self.headers),
        )


class WindowEvent(Enum):
    OPEN = 0
    CLOSE = 1
    APPEND = 2
    MERGE = 3
    EXPAND = 4


@dataclass(frozen=True)
class WindowOperation:
    """What to do with the windows named in a request."""

    event: WindowEvent
    keyed_windows: list[KeyedWindow] = field(default_factory=list)


@dataclass(frozen=True)
class SessionReduceRequest:
    """A window operation, optionally with a message for the window."""

    operation: WindowOperation
    payload: Payload | None = None


@dataclass(frozen=True)
class SessionResult:
    """One result emitted by a session reducer."""

    value: bytes
    keys: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SessionReduceResponse:
    """A result for a window, or the end-of-output marker for it."""

    keyed_window: KeyedWindow
    result: SessionResult | None = None
    eof: bool = False