"""Service that drives session reduce tasks from a stream of window operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from udfkit.session import (
    SessionReducerCreator,
    SessionReduceRequest,
    SessionReduceResponse,
    WindowEvent,
)
from udfkit.session_tasks import SessionReduceError, TaskManager


@dataclass
class SessionReduceService:
    """Applies a session reducer to a stream of session reduce requests."""

    creator: SessionReducerCreator | None = None

    def is_ready(self) -> bool:
        return True

    def session_reduce_fn(
        self, requests: Iterable[SessionReduceRequest]
    ) -> list[SessionReduceResponse]:
        """Carry out every window operation in ``requests`` and return the responses.

        Once the requests run out, waits for every open task to finish.
        Raises SessionReduceError when an operation fails, when reading
        the requests fails, or when a reducer raises.
        """
        if self.creator is None:
            raise RuntimeError("no session reducer creator configured")
        manager = TaskManager(self.creator)
        handlers: dict[WindowEvent, Callable[[SessionReduceRequest], None]] = {
            WindowEvent.OPEN: manager.create_task,
            WindowEvent.CLOSE: manager.close_task,
            WindowEvent.APPEND: manager.append_to_task,
            WindowEvent.MERGE: manager.merge_tasks,
            WindowEvent.EXPAND: manager.expand_task,
        }

        iterator = iter(requests)
        while True:
            try:
                request = next(iterator)
            except StopIteration:
                break
            except Exception as exc:
                raise SessionReduceError(str(exc)) from exc
            handler = handlers.get(request.operation.event)
            if handler is not None:
                handler(request)

        manager.wait_all()
        return list(manager.responses())