from datetime import datetime, timezone

import pytest

from udfkit.sinker import (
    EPOCH,
    Datum,
    Response,
    SinkRequest,
    SinkResult,
    SinkService,
    Sinker,
    SinkerFunc,
    Status,
    response_failure,
    response_fallback,
    response_ok,
)

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _requests(keys, headers_list):
    return [
        SinkRequest(
            id=ident,
            keys=keys,
            value=str(value).encode(),
            event_time=ZERO_TIME,
            watermark=ZERO_TIME,
            headers=headers,
        )
        for ident, value, headers in zip(
            ["one-processed", "two-processed", "three-processed"],
            [10, 20, 30],
            headers_list,
        )
    ]


def _broken_requests():
    yield SinkRequest(id="a", value=b"1")
    raise ConnectionError("stream broken")


def test_sink_fn_success():
    sinker = SinkerFunc(lambda datums: [response_ok(d.id) for d in datums])
    requests = _requests(
        ["sink-test"],
        [{"x-txn-id": "test-txn-1"}, {"x-txn-id": "test-txn-2"}, {"x-txn-id": "test-txn-3"}],
    )
    results = SinkService(sinker=sinker).sink_fn(requests)
    assert results == [
        SinkResult(id="one-processed", status=Status.SUCCESS, err_msg=""),
        SinkResult(id="two-processed", status=Status.SUCCESS, err_msg=""),
        SinkResult(id="three-processed", status=Status.SUCCESS, err_msg=""),
    ]


def test_sink_fn_failure():
    sinker = SinkerFunc(
        lambda datums: [response_failure(d.id, "unknown error") for d in datums]
    )
    requests = _requests(
        ["sink-test-1", "sink-test-2"],
        [{"x-txn-id": "test-txn-1"}, {}, {"x-txn-id": "test-txn-2"}],
    )
    results = SinkService(sinker=sinker).sink_fn(requests)
    assert results == [
        SinkResult(id="one-processed", status=Status.FAILURE, err_msg="unknown error"),
        SinkResult(id="two-processed", status=Status.FAILURE, err_msg="unknown error"),
        SinkResult(id="three-processed", status=Status.FAILURE, err_msg="unknown error"),
    ]


def test_sink_fn_fallback():
    sinker = SinkerFunc(lambda datums: [response_fallback(d.id) for d in datums])
    results = SinkService(sinker=sinker).sink_fn([SinkRequest(id="a", value=b"v")])
    assert results == [SinkResult(id="a", status=Status.FALLBACK)]


def test_sink_receives_datum_fields():
    class Recorder(Sinker):
        def __init__(self):
            self.seen = []

        def sink(self, datums):
            out = []
            for datum in datums:
                self.seen.append(datum)
                out.append(response_ok(datum.id))
            return out

    recorder = Recorder()
    request = SinkRequest(
        id="id-1",
        value=b"10",
        keys=["k"],
        event_time=ZERO_TIME,
        watermark=ZERO_TIME,
        headers={"x-txn-id": "test-txn-1"},
    )
    SinkService(sinker=recorder).sink_fn([request])
    assert recorder.seen == [
        Datum(
            id="id-1",
            value=b"10",
            keys=["k"],
            event_time=ZERO_TIME,
            watermark=ZERO_TIME,
            headers={"x-txn-id": "test-txn-1"},
        )
    ]


def test_missing_times_default_to_epoch():
    datum = SinkRequest(id="x", value=b"").to_datum()
    assert datum.event_time == EPOCH
    assert datum.watermark == EPOCH
    assert datum.event_time == datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_stream_error_propagates():
    sinker = SinkerFunc(lambda datums: [response_ok(d.id) for d in datums])
    with pytest.raises(ConnectionError):
        SinkService(sinker=sinker).sink_fn(_broken_requests())


def test_is_ready():
    assert SinkService().is_ready() is True


def test_response_helpers():
    assert response_ok("a") == Response(id="a", success=True, err="", fallback=False)
    assert response_failure("b", "boom") == Response(id="b", success=False, err="boom")
    assert response_fallback("c") == Response(id="c", success=False, fallback=True)