"""User-defined source: reading, acknowledging and reporting on messages."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Callable, Iterable, Sequence

ENV_REPLICA = "NUMAFLOW_REPLICA"


def _default_partition_id() -> int:
    try:
        return int(os.environ.get(ENV_REPLICA, ""))
    except ValueError:
        return 0


@dataclass(frozen=True)
class Offset:
    """Position of a message in a source partition."""

    value: bytes = b""
    partition_id: int = 0


@dataclass(frozen=True)
class Message:
    """A message read from a source."""

    value: bytes
    offset: Offset
    event_time: datetime
    keys: list[str] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)

    def with_keys(self, keys: Sequence[str]) -> Message:
        """Return a copy of this message carrying ``keys``."""
        return replace(self, keys=list(keys))

    def with_headers(self, headers: dict[str, str]) -> Message:
        """Return a copy of this message carrying ``headers``."""
        return replace(self, headers=dict(headers))


def default_partitions() -> list[int]:
    """The single default partition: the replica index of this pod.

    The index comes from NUMAFLOW_REPLICA; it is 0 when unset or not a number.
    """
    return [_default_partition_id()]


def new_offset_with_default_partition_id(value: bytes) -> Offset:
    """An offset in the default partition."""
    return Offset(value=value, partition_id=default_partitions()[0])


@dataclass(frozen=True)
class ReadRequest:
    """How many records to read and how long to try."""

    count: int
    timeout: timedelta


@dataclass(frozen=True)
class AckRequest:
    """Offsets of records to acknowledge."""

    offsets: list[Offset] = field(default_factory=list)


class Sourcer(ABC):
    """A source of messages."""

    @abstractmethod
    def read(self, read_request: ReadRequest, emit: Callable[[Message], None]) -> None:
        """Read up to ``read_request.count`` messages, passing each to ``emit``.

        Returns without reading new data when the timeout passes.
        """

    @abstractmethod
    def ack(self, request: AckRequest) -> None:
        """Acknowledge the offsets in ``request``."""

    @abstractmethod
    def pending(self) -> int:
        """Number of pending messages; negative when not available."""

    @abstractmethod
    def partitions(self) -> list[int]:
        """Partitions the source reads from."""


@dataclass(frozen=True)
class ReadResult:
    """One message in a read reply."""

    payload: bytes
    offset: Offset
    event_time: datetime
    keys: list[str] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class SourceService:
    """Serves read, ack, pending and partition requests with a Sourcer."""

    source: Sourcer | None = None

    def _require_source(self) -> Sourcer:
        if self.source is None:
            raise RuntimeError("no source configured")
        return self.source

    def is_ready(self) -> bool:
        return True

    def pending_fn(self) -> int:
        return self._require_source().pending()

    def read_fn(
        self, num_records: int, timeout_ms: int, send: Callable[[ReadResult], None]
    ) -> None:
        """Read from the source and pass each message to ``send``.

        An error raised by ``send`` stops the read and propagates.
        """
        source = self._require_source()
        request = ReadRequest(count=num_records, timeout=timedelta(milliseconds=timeout_ms))

        def emit(message: Message) -> None:
            send(
                ReadResult(
                    payload=message.value,
                    offset=Offset(message.offset.value, message.offset.partition_id),
                    event_time=message.event_time,
                    keys=list(message.keys),
                    headers=dict(message.headers),
                )
            )

        source.read(request, emit)

    def ack_fn(self, offsets: Iterable[Offset]) -> None:
        request = AckRequest(
            offsets=[Offset(offset.value, offset.partition_id) for offset in offsets]
        )
        self._require_source().ack(request)

    def partitions_fn(self) -> list[int]:
        return list(self._require_source().partitions())