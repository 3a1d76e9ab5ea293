from datetime import datetime, timedelta, timezone

from udfkit.session import (
    DROP,
    EPOCH,
    Datum,
    KeyedWindow,
    Message,
    Payload,
    message_to_drop,
)


def _window(start_ms, end_ms, keys):
    return KeyedWindow(
        start=EPOCH + timedelta(milliseconds=start_ms),
        end=EPOCH + timedelta(milliseconds=end_ms),
        slot="slot-0",
        keys=list(keys),
    )


def test_drop_constant():
    assert message_to_drop().tags == ["U+005C__DROP__"]


def test_message_to_drop():
    message = message_to_drop()
    assert message.value == b""
    assert message.tags == [DROP]
    assert message.keys == []


def test_with_keys_returns_copy():
    original = Message(b"v")
    keyed = original.with_keys(["a", "b"])
    assert keyed.keys == ["a", "b"]
    assert keyed.value == b"v"
    assert original.keys == []


def test_with_tags_returns_copy():
    original = Message(b"v").with_keys(["k"])
    tagged = original.with_tags(["t"])
    assert tagged.tags == ["t"]
    assert tagged.keys == ["k"]
    assert original.tags == []


def test_window_key():
    assert _window(60000, 120000, ["client"]).key() == "60000:120000:client"


def test_window_key_joins_keys():
    assert _window(60000, 70000, ["a", "b"]).key().endswith(":a:b")


def test_window_key_naive_datetime_is_utc():
    aware = KeyedWindow(
        start=datetime(2021, 1, 1, tzinfo=timezone.utc),
        end=datetime(2021, 1, 2, tzinfo=timezone.utc),
        keys=["x"],
    )
    naive = KeyedWindow(start=datetime(2021, 1, 1), end=datetime(2021, 1, 2), keys=["x"])
    assert aware.key() == naive.key()


def test_windows_with_same_bounds_share_key_regardless_of_slot():
    first = _window(60000, 70000, ["client"])
    second = KeyedWindow(start=first.start, end=first.end, slot="other", keys=["client"])
    assert first.key() == second.key()


def test_payload_to_datum():
    payload = Payload(value=b"10", keys=["client"], headers={"x-txn-id": "test-txn-1"})
    datum = payload.to_datum()
    assert datum == Datum(value=b"10", headers={"x-txn-id": "test-txn-1"})