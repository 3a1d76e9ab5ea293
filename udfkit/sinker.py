"""User-defined sink: datums in, per-message responses out."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Iterator

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Datum:
    """One incoming message handed to a sink."""

    id: str
    value: bytes
    keys: list[str] = field(default_factory=list)
    event_time: datetime = EPOCH
    watermark: datetime = EPOCH
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Response:
    """Result of sinking one message."""

    id: str
    success: bool = False
    err: str = ""
    fallback: bool = False


def response_ok(id: str) -> Response:
    """A successful response for the message ``id``."""
    return Response(id=id, success=True)


def response_failure(id: str, err_msg: str) -> Response:
    """A failed response for the message ``id`` carrying ``err_msg``."""
    return Response(id=id, success=False, err=err_msg)


def response_fallback(id: str) -> Response:
    """A response asking for the message ``id`` to go to the fallback sink."""
    return Response(id=id, fallback=True)


class Sinker(ABC):
    """Writes a stream of datums somewhere and reports on each."""

    @abstractmethod
    def sink(self, datums: Iterator[Datum]) -> list[Response]:
        """Consume ``datums`` and return one response per message."""


class SinkerFunc(Sinker):
    """Adapts a plain function to a Sinker."""

    def __init__(self, func: Callable[[Iterator[Datum]], list[Response]]) -> None:
        self._func = func

    def sink(self, datums: Iterator[Datum]) -> list[Response]:
        return self._func(datums)


class Status(Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    FALLBACK = "FALLBACK"


@dataclass
class SinkRequest:
    """A sink request as it arrives on the wire."""

    id: str
    value: bytes
    keys: list[str] = field(default_factory=list)
    event_time: datetime = EPOCH
    watermark: datetime = EPOCH
    headers: dict[str, str] = field(default_factory=dict)

    def to_datum(self) -> Datum:
        return Datum(
            id=self.id,
            value=self.value,
            keys=list(self.keys),
            event_time=self.event_time,
            watermark=self.watermark,
            headers=dict(self.headers),
        )


@dataclass(frozen=True)
class SinkResult:
    """Status of one message in a sink reply."""

    id: str
    status: Status
    err_msg: str = ""


def _to_result(response: Response) -> SinkResult:
    if response.fallback:
        return SinkResult(id=response.id, status=Status.FALLBACK)
    if response.success:
        return SinkResult(id=response.id, status=Status.SUCCESS)
    return SinkResult(id=response.id, status=Status.FAILURE, err_msg=response.err)


@dataclass
class SinkService:
    """Runs a Sinker over a stream of sink requests."""

    sinker: Sinker | None = None

    def is_ready(self) -> bool:
        return True

    def sink_fn(self, requests: Iterable[SinkRequest]) -> list[SinkResult]:
        """Stream ``requests`` to the sinker and collect the results.

        Errors raised while reading ``requests`` propagate to the caller.
        """
        if self.sinker is None:
            raise RuntimeError("no sinker configured")
        datums = (request.to_datum() for request in requests)
        return [_to_result(response) for response in self.sinker.sink(datums)]