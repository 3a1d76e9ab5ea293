"""Bookkeeping of the running session reduce tasks, one per keyed window."""

from __future__ import annotations

import queue
import threading
from typing import Iterator

from udfkit.session import (
    Datum,
    KeyedWindow,
    Message,
    SessionReducer,
    SessionReducerCreator,
    SessionReduceRequest,
    SessionReduceResponse,
    SessionResult,
    WindowEvent,
    WindowOperation,
)

_CLOSED = object()
_END = object()


class SessionReduceError(Exception):
    """A window operation could not be carried out."""


class _Task:
    """One session reducer running over the messages of one keyed window."""

    def __init__(self, window: KeyedWindow, reducer: SessionReducer) -> None:
        self._window = window
        self._lock = threading.Lock()
        self.reducer = reducer
        self._inputs: queue.Queue = queue.Queue()
        self.merged = threading.Event()
        self.done = threading.Event()

    @property
    def window(self) -> KeyedWindow:
        with self._lock:
            return self._window

    def assign_window(self, window: KeyedWindow) -> None:
        with self._lock:
            self._window = window

    @property
    def key(self) -> str:
        return self.window.key()

    def send(self, datum: Datum) -> None:
        self._inputs.put(datum)

    def close(self) -> None:
        self._inputs.put(_CLOSED)

    def inputs(self) -> Iterator[Datum]:
        while True:
            item = self._inputs.get()
            if item is _CLOSED:
                return
            yield item


class TaskManager:
    """Starts, feeds, merges, expands and closes session reduce tasks."""

    def __init__(self, creator: SessionReducerCreator) -> None:
        self._creator = creator
        self._tasks: dict[str, _Task] = {}
        self._lock = threading.Lock()
        self._responses: queue.Queue = queue.Queue()
        self._errors: list[Exception] = []

    def _lookup(self, window: KeyedWindow) -> _Task | None:
        with self._lock:
            return self._tasks.get(window.key())

    def _run(self, task: _Task) -> None:
        def emit(message: Message) -> None:
            if not task.merged.is_set():
                self._responses.put(
                    SessionReduceResponse(
                        keyed_window=task.window,
                        result=SessionResult(
                            value=message.value,
                            keys=list(message.keys),
                            tags=list(message.tags),
                        ),
                    )
                )

        try:
            task.reducer.session_reduce(list(task.window.keys), task.inputs(), emit)
        except Exception as exc:  # surfaced from wait_all
            with self._lock:
                self._errors.append(exc)
        else:
            if not task.merged.is_set():
                self._responses.put(
                    SessionReduceResponse(keyed_window=task.window, eof=True)
                )
        finally:
            task.done.set()
            with self._lock:
                key = task.key
                if self._tasks.get(key) is task:
                    del self._tasks[key]

    def create_task(self, request: SessionReduceRequest) -> None:
        """Start a task for the single window of ``request`` and feed it the payload."""
        windows = request.operation.keyed_windows
        if len(windows) != 1:
            raise SessionReduceError(
                "create operation error: invalid number of windows in the request"
                f" - {len(windows)}"
            )
        task = _Task(windows[0], self._creator.create())
        with self._lock:
            self._tasks[task.key] = task
        threading.Thread(target=self._run, args=(task,), daemon=True).start()
        if request.payload is not None:
            task.send(request.payload.to_datum())

    def append_to_task(self, request: SessionReduceRequest) -> None:
        """Feed the payload to the window's task, starting the task if there is none."""
        windows = request.operation.keyed_windows
        if len(windows) != 1:
            raise SessionReduceError(
                "append operation error: invalid number of windows in the request"
                f" - {len(windows)}"
            )
        task = self._lookup(windows[0])
        if task is None:
            self.create_task(request)
            return
        if request.payload is not None:
            task.send(request.payload.to_datum())

    def close_task(self, request: SessionReduceRequest) -> None:
        """End the input of every known task among the request's windows."""
        with self._lock:
            tasks = [
                self._tasks[window.key()]
                for window in request.operation.keyed_windows
                if window.key() in self._tasks
            ]
        for task in tasks:
            task.close()

    def merge_tasks(self, request: SessionReduceRequest) -> None:
        """Merge the tasks of the request's windows into one task for the covering window."""
        windows = request.operation.keyed_windows
        if not windows:
            raise SessionReduceError("merge operation error: no windows in the request")
        with self._lock:
            tasks = []
            for window in windows:
                task = self._tasks.get(window.key())
                if task is None:
                    raise SessionReduceError(
                        f"merge operation error: task not found for {window.key()}"
                    )
                tasks.append(task)
            for task in tasks:
                task.merged.set()

        first = windows[0]
        merged_window = KeyedWindow(
            start=min(window.start for window in windows),
            end=max(window.end for window in windows),
            slot=first.slot,
            keys=list(first.keys),
        )

        accumulators = []
        for task in tasks:
            task.close()
            task.done.wait()
            accumulators.append(task.reducer.accumulator())

        self.create_task(
            SessionReduceRequest(
                operation=WindowOperation(
                    event=WindowEvent.OPEN, keyed_windows=[merged_window]
                )
            )
        )
        merged_task = self._lookup(merged_window)
        if merged_task is None:
            raise SessionReduceError(
                f"merge operation error: merged task not found for key {merged_window.key()}"
            )
        for accumulator in accumulators:
            merged_task.reducer.merge_accumulator(accumulator)

    def expand_task(self, request: SessionReduceRequest) -> None:
        """Move the task of the first window to the second, wider window."""
        windows = request.operation.keyed_windows
        if len(windows) != 2:
            raise SessionReduceError("expand operation error: expected exactly two windows")
        old_key = windows[0].key()
        with self._lock:
            task = self._tasks.get(old_key)
            if task is None:
                raise SessionReduceError(
                    f"expand operation error: task not found for key - {old_key}"
                )
            task.assign_window(windows[1])
            del self._tasks[old_key]
            self._tasks[task.key] = task
        if request.payload is not None:
            task.send(request.payload.to_datum())

    def responses(self) -> Iterator[SessionReduceResponse]:
        """Yield responses as tasks produce them, until wait_all has finished."""
        while True:
            item = self._responses.get()
            if item is _END:
                return
            yield item

    def wait_all(self) -> None:
        """Wait for every current task to finish, then end the responses.

        Raises SessionReduceError if a reducer raised.
        """
        with self._lock:
            tasks = list(self._tasks.values())
        for task in tasks:
            task.done.wait()
        self._responses.put(_END)
        with self._lock:
            errors = list(self._errors)
        if errors:
            raise SessionReduceError("session reduce task failed") from errors[0]