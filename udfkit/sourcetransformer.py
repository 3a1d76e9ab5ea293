"""User-defined source transformer: map a datum and assign new event times."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Sequence

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DROP = "U+005C__DROP__"


@dataclass(frozen=True)
class Datum:
    """One incoming message handed to a source transformer."""

    value: bytes
    event_time: datetime = EPOCH
    watermark: datetime = EPOCH
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Message:
    """A transformed message together with the event time assigned to it."""

    value: bytes
    event_time: datetime
    keys: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def with_keys(self, keys: Sequence[str]) -> Message:
        """Return a copy of this message carrying ``keys``."""
        return replace(self, keys=list(keys))

    def with_tags(self, tags: Sequence[str]) -> Message:
        """Return a copy of this message carrying ``tags`` for conditional forwarding."""
        return replace(self, tags=list(tags))


def message_to_drop(event_time: datetime) -> Message:
    """A message to be dropped.

    The event time is still needed: a dropped message counts as processed,
    so the watermark moves on using it.
    """
    return Message(value=b"", event_time=event_time, tags=[DROP])


class SourceTransformer(ABC):
    """Transforms each message read from a source."""

    @abstractmethod
    def transform(self, keys: list[str], datum: Datum) -> list[Message]:
        """Return the messages produced from ``datum``."""


class SourceTransformFunc(SourceTransformer):
    """Adapts a plain function to a SourceTransformer."""

    def __init__(self, func: Callable[[list[str], Datum], list[Message]]) -> None:
        self._func = func

    def transform(self, keys: list[str], datum: Datum) -> list[Message]:
        return self._func(keys, datum)


@dataclass
class SourceTransformRequest:
    """A transform request as it arrives on the wire."""

    value: bytes
    keys: list[str] = field(default_factory=list)
    event_time: datetime = EPOCH
    watermark: datetime = EPOCH
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TransformResult:
    """One message in a transform reply."""

    event_time: datetime
    value: bytes
    keys: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass
class SourceTransformService:
    """Runs a SourceTransformer over transform requests."""

    transformer: SourceTransformer | None = None

    def is_ready(self) -> bool:
        return True

    def source_transform_fn(self, request: SourceTransformRequest) -> list[TransformResult]:
        """Transform one request and return its results in order."""
        if self.transformer is None:
            raise RuntimeError("no source transformer configured")
        datum = Datum(
            value=request.value,
            event_time=request.event_time,
            watermark=request.watermark,
            headers=dict(request.headers),
        )
        messages = self.transformer.transform(list(request.keys), datum)
        return [
            TransformResult(
                event_time=message.event_time,
                value=message.value,
                keys=list(message.keys),
                tags=list(message.tags),
            )
            for message in messages
        ]