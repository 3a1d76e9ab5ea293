import pytest

from udfkit.sideinput import (
    RetrieveFunc,
    SideInputMessage,
    SideInputResponse,
    SideInputRetriever,
    SideInputService,
    broadcast_message,
    no_broadcast_message,
)


@pytest.mark.parametrize(
    "func, expected",
    [
        (lambda: broadcast_message(b"test"), SideInputResponse(value=b"test")),
        (
            lambda: no_broadcast_message(),
            SideInputResponse(value=b"", no_broadcast=True),
        ),
    ],
    ids=["sideinput_retrieve_msg", "sideinput_retrieve_drop_msg"],
)
def test_retrieve_side_input(func, expected):
    service = SideInputService(retriever=RetrieveFunc(func))
    assert service.retrieve_side_input() == expected


def test_is_ready():
    assert SideInputService().is_ready() is True


def test_message_constructors():
    assert broadcast_message(b"x") == SideInputMessage(b"x", False)
    assert no_broadcast_message() == SideInputMessage(b"", True)


def test_custom_retriever_subclass():
    class Counter(SideInputRetriever):
        def __init__(self):
            self.calls = 0

        def retrieve_side_input(self):
            self.calls += 1
            return broadcast_message(str(self.calls).encode())

    service = SideInputService(retriever=Counter())
    assert service.retrieve_side_input().value == b"1"
    assert service.retrieve_side_input().value == b"2"


def test_missing_retriever_raises():
    with pytest.raises(RuntimeError):
        SideInputService().retrieve_side_input()