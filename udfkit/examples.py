"""Ready-made user-defined functions for each kind of server."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterator

from udfkit import session, sideinput, sinker, sourcer, sourcetransformer

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionCounter(session.SessionReducer):
    """Counts the events in a session."""

    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()

    def session_reduce(
        self,
        keys: list[str],
        inputs: Iterator[session.Datum],
        output: Callable[[session.Message], None],
    ) -> None:
        for _ in inputs:
            with self._lock:
                self._count += 1
        with self._lock:
            count = self._count
        output(session.Message(str(count).encode()).with_keys(keys))

    def accumulator(self) -> bytes:
        with self._lock:
            return str(self._count).encode()

    def merge_accumulator(self, accumulator: bytes) -> None:
        try:
            value = int(accumulator.decode())
        except ValueError as exc:
            log.warning("unable to convert the accumulator value to int: %s", exc)
            return
        with self._lock:
            self._count += value


class SessionCounterCreator(session.SessionReducerCreator):
    """Makes a SessionCounter for every keyed window."""

    def create(self) -> session.SessionReducer:
        return SessionCounter()


class SessionSum(session.SessionReducer):
    """Sums the integer values of the events in a session."""

    def __init__(self) -> None:
        self._sum = 0
        self._lock = threading.Lock()

    def session_reduce(
        self,
        keys: list[str],
        inputs: Iterator[session.Datum],
        output: Callable[[session.Message], None],
    ) -> None:
        for datum in inputs:
            try:
                value = int(datum.value.decode())
            except ValueError as exc:
                raise ValueError(f"unable to convert the value to int: {exc}") from exc
            with self._lock:
                self._sum += value
        with self._lock:
            total = self._sum
        output(session.Message(str(total).encode()).with_keys(keys))

    def accumulator(self) -> bytes:
        with self._lock:
            return str(self._sum).encode()

    def merge_accumulator(self, accumulator: bytes) -> None:
        try:
            value = int(accumulator.decode())
        except ValueError as exc:
            log.warning("unable to convert the accumulator value to int: %s", exc)
            return
        with self._lock:
            self._sum += value


class SessionSumCreator(session.SessionReducerCreator):
    """Makes a SessionSum for every keyed window."""

    def create(self) -> session.SessionReducer:
        return SessionSum()


class TickingSideInput(sideinput.SideInputRetriever):
    """Broadcasts the current time on every other request and drops the rest."""

    def __init__(self, clock: Clock = _utc_now) -> None:
        self._clock = clock
        self._counter = 0

    def retrieve_side_input(self) -> sideinput.SideInputMessage:
        value = f"an example: {self._clock()}"
        self._counter = (self._counter + 1) % 10
        if self._counter % 2 == 0:
            return sideinput.no_broadcast_message()
        return sideinput.broadcast_message(value.encode())


class LogSink(sinker.Sinker):
    """Prints every message to standard output and reports success."""

    def sink(self, datums: Iterator[sinker.Datum]) -> list[sinker.Response]:
        responses = []
        for datum in datums:
            print("User Defined Sink:", datum.value.decode(errors="replace"))
            responses.append(sinker.response_ok(datum.id))
        return responses


class FallbackLogSink(sinker.Sinker):
    """Prints every message and sends it on to the fallback sink."""

    def sink(self, datums: Iterator[sinker.Datum]) -> list[sinker.Response]:
        responses = []
        for datum in datums:
            print(
                "Primary sink under maintenance, writing to fallback sink - ",
                datum.value.decode(errors="replace"),
            )
            responses.append(sinker.response_fallback(datum.id))
        return responses


class AssignEventTime(sourcetransformer.SourceTransformer):
    """Sets the event time of each message to the current time."""

    def __init__(self, clock: Clock = _utc_now) -> None:
        self._clock = clock

    def transform(
        self, keys: list[str], datum: sourcetransformer.Datum
    ) -> list[sourcetransformer.Message]:
        return [sourcetransformer.Message(datum.value, self._clock()).with_keys(keys)]


def _serialize_offset(index: int) -> bytes:
    return str(index).encode()


def _deserialize_offset(value: bytes) -> int:
    try:
        return int(value.decode())
    except ValueError:
        return 0


class SimpleSource(sourcer.Sourcer):
    """A source producing increasing integers, one batch at a time.

    A new batch is read only once the previous one has been acknowledged.
    """

    def __init__(self) -> None:
        self._read_index = 0
        self._to_ack: set[int] = set()
        self._lock = threading.Lock()

    def pending(self) -> int:
        return 0

    def read(
        self,
        read_request: sourcer.ReadRequest,
        emit: Callable[[sourcer.Message], None],
    ) -> None:
        deadline = time.monotonic() + read_request.timeout.total_seconds()
        if self._to_ack:
            return
        for _ in range(read_request.count):
            if time.monotonic() >= deadline:
                return
            with self._lock:
                headers = {"x-txn-id": str(uuid.uuid4())}
                index = self._read_index
                message = sourcer.Message(
                    value=str(index).encode(),
                    offset=sourcer.new_offset_with_default_partition_id(
                        _serialize_offset(index)
                    ),
                    event_time=_utc_now(),
                ).with_headers(headers)
                emit(message)
                self._to_ack.add(index)
                self._read_index += 1

    def ack(self, request: sourcer.AckRequest) -> None:
        for offset in request.offsets:
            self._to_ack.discard(_deserialize_offset(offset.value))

    def partitions(self) -> list[int]:
        return sourcer.default_partitions()


JAN_FIRST_2022 = datetime(2022, 1, 1, tzinfo=timezone.utc)
JAN_FIRST_2023 = datetime(2023, 1, 1, tzinfo=timezone.utc)


def filter_event_time(
    keys: list[str], datum: sourcetransformer.Datum
) -> list[sourcetransformer.Message]:
    """Drop messages from before 2022 and tag the rest by year."""
    if datum.event_time < JAN_FIRST_2022:
        return [sourcetransformer.message_to_drop(datum.event_time)]
    if datum.event_time < JAN_FIRST_2023:
        return [
            sourcetransformer.Message(datum.value, JAN_FIRST_2022).with_tags(
                ["within_year_2022"]
            )
        ]
    return [
        sourcetransformer.Message(datum.value, JAN_FIRST_2023).with_tags(
            ["after_year_2022"]
        )
    ]