# udfkit

`udfkit` holds the building blocks for user-defined functions in a streaming
pipeline:

- **sources** (`udfkit.sourcer`): read records, acknowledge them, report pending
  counts and partitions
- **sinks** (`udfkit.sinker`): consume a stream of data and report a status for
  each record
- **source transformers** (`udfkit.sourcetransformer`): change records and give
  them new event times
- **side inputs** (`udfkit.sideinput`): produce values to broadcast to other
  vertices
- **session reducers** (`udfkit.session`, `udfkit.session_tasks`,
  `udfkit.session_service`): stateful reduction over session windows that
  open, grow, merge and close

Each kind has an interface you implement and a service object that drives it
from request objects and produces response objects. All of it is plain Python
with no runtime dependencies.

## Installation

```
pip install udfkit
```

For running the test suite:

```
pip install "udfkit[test]"
pytest
```

## Server options

`udfkit.options` describes the settings a server of each kind starts with: a
default socket address, a maximum message size of 64 MiB, and a server-info
file path. Options override these:

```python
from udfkit.options import ServerKind, apply_options, with_max_message_size, with_sock_addr

opts = apply_options(
    ServerKind.SINKER,
    with_max_message_size(10 * 1024 * 1024),
    with_sock_addr("/tmp/sink.sock"),
)
```

The kinds are `SESSION_REDUCER`, `SIDE_INPUT`, `SINKER`, `SOURCER` and
`SOURCE_TRANSFORMER`. For `ServerKind.SINKER`, the defaults switch to the
fallback-sink address and info path when the environment variable
`NUMAFLOW_UD_CONTAINER_TYPE` is set to `fb-udsink`.

## Sinks

```python
from udfkit.sinker import SinkerFunc, SinkService, response_ok, response_failure

def handle(datums):
    results = []
    for d in datums:
        if b"err" in d.value:
            results.append(response_failure(d.id, "could not write"))
        else:
            results.append(response_ok(d.id))
    return results

service = SinkService(SinkerFunc(handle))
results = service.sink_fn(requests)  # an iterable of SinkRequest
```

Each `SinkResult` has a `Status` of `SUCCESS`, `FAILURE` (with the error
message) or `FALLBACK`. `response_fallback(id)` sends a record to the fallback
sink instead.

## Source transformers

```python
from udfkit.sourcetransformer import Message, SourceTransformFunc, SourceTransformService, message_to_drop

def transform(keys, datum):
    return [Message(datum.value, datum.event_time).with_keys(keys)]

service = SourceTransformService(SourceTransformFunc(transform))
results = service.source_transform_fn(request)  # a SourceTransformRequest
```

`message_to_drop(event_time)` drops a record but still counts it as processed
at the given event time, so the watermark keeps moving.

## Sources

Implement `Sourcer` with `read(read_request, emit)`, `ack(request)`,
`pending()` and `partitions()`. `SourceService.read_fn(num_records, timeout_ms, send)`
calls your `read` and passes each message to `send` as a `ReadResult`; an
error raised by `send` stops the read and propagates. `ack_fn`, `pending_fn`
and `partitions_fn` forward to the other methods. `default_partitions()` and
`new_offset_with_default_partition_id(value)` take the partition from the
`NUMAFLOW_REPLICA` environment variable, using 0 when it is unset or not a
number.

## Side inputs

```python
from udfkit.sideinput import RetrieveFunc, SideInputService, broadcast_message, no_broadcast_message

service = SideInputService(RetrieveFunc(lambda: broadcast_message(b"config")))
response = service.retrieve_side_input()
```

`no_broadcast_message()` produces an empty value with `no_broadcast` set, so
nothing is broadcast.

## Session reducers

Implement `SessionReducer` (`session_reduce`, `accumulator`,
`merge_accumulator`) and a `SessionReducerCreator` that makes a new reducer for
each keyed window. `SessionReduceService.session_reduce_fn(requests)` works
through a stream of `SessionReduceRequest` objects. Each request carries a
`WindowOperation` whose `WindowEvent` is OPEN, APPEND, EXPAND, MERGE or CLOSE:

- OPEN starts a reducer for one window and feeds it the payload, if any.
- APPEND feeds the payload to the window's reducer, starting one if needed.
- EXPAND takes an old and a new window and moves the reducer to the new one.
- MERGE closes the reducers of all listed windows, starts a reducer for the
  window covering them all, and hands it each closed reducer's accumulator.
- CLOSE ends the input of the listed windows' reducers.

When the requests run out, the service waits for every reducer to finish and
returns the `SessionReduceResponse` objects: the results, plus an end-of-file
marker (`eof=True`) for each window whose reducer finished without being
merged away. A failed operation, or a reducer that raises, ends in
`SessionReduceError`. `TaskManager` in `udfkit.session_tasks` does the
bookkeeping and can be used directly.

## Examples

`udfkit.examples` has working implementations you can use as a starting point:

- `SessionCounter` and `SessionSum`, with `SessionCounterCreator` and
  `SessionSumCreator`
- `TickingSideInput`, which broadcasts the current time on every other request
- `LogSink` and `FallbackLogSink`, which print each record
- `AssignEventTime` and `filter_event_time`
- `SimpleSource`, which reads a new batch only once the previous one is
  acknowledged

## What the package does not do

`udfkit` has no network layer. It does not listen on a socket, speak any wire
protocol, write a server-info file or handle signals; `ServerOptions` only
records the settings. The services take and return plain Python objects, and
connecting them to a transport is left to the caller. There is no command-line
program.