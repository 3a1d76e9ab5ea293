"""User-defined side input retrieval."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

DIR_PATH = "/var/numaflow/side-inputs"


@dataclass(frozen=True)
class SideInputMessage:
    """Value returned by a side input retriever."""

    value: bytes
    no_broadcast: bool = False


def broadcast_message(value: bytes) -> SideInputMessage:
    """A message whose value is broadcast to the side input vertices."""
    return SideInputMessage(value=value, no_broadcast=False)


def no_broadcast_message() -> SideInputMessage:
    """A message that is dropped and not broadcast."""
    return SideInputMessage(value=b"", no_broadcast=True)


class SideInputRetriever(ABC):
    """Produces the current value of a side input."""

    @abstractmethod
    def retrieve_side_input(self) -> SideInputMessage:
        """Return the side input message for one request."""


class RetrieveFunc(SideInputRetriever):
    """Adapts a plain function to a SideInputRetriever."""

    def __init__(self, func: Callable[[], SideInputMessage]) -> None:
        self._func = func

    def retrieve_side_input(self) -> SideInputMessage:
        return self._func()


@dataclass(frozen=True)
class SideInputResponse:
    """Reply to a side input retrieval request."""

    value: bytes
    no_broadcast: bool = False


@dataclass
class SideInputService:
    """Handles side input requests with a retriever."""

    retriever: SideInputRetriever | None = None

    def is_ready(self) -> bool:
        return True

    def retrieve_side_input(self) -> SideInputResponse:
        if self.retriever is None:
            raise RuntimeError("no side input retriever configured")
        message = self.retriever.retrieve_side_input()
        return SideInputResponse(value=message.value, no_broadcast=message.no_broadcast)