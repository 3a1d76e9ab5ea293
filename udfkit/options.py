"""Server options shared by every kind of user-defined function server."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable

DEFAULT_MAX_MESSAGE_SIZE = 1024 * 1024 * 64

ENV_UD_CONTAINER_TYPE = "NUMAFLOW_UD_CONTAINER_TYPE"
UD_CONTAINER_FALLBACK_SINK = "fb-udsink"

FALLBACK_SINK_ADDRESS = "/var/run/numaflow/fb-sink.sock"
FALLBACK_SINK_SERVER_INFO_FILE_PATH = "/var/run/numaflow/fb-sinker-server-info"


class ServerKind(Enum):
    """The kinds of server, each with its default socket and server-info file."""

    SESSION_REDUCER = (
        "/var/run/numaflow/sessionreduce.sock",
        "/var/run/numaflow/sessionreducer-server-info",
    )
    SIDE_INPUT = (
        "/var/run/numaflow/sideinput.sock",
        "/var/run/numaflow/sideinput-server-info",
    )
    SINKER = (
        "/var/run/numaflow/sink.sock",
        "/var/run/numaflow/sinker-server-info",
    )
    SOURCER = (
        "/var/run/numaflow/source.sock",
        "/var/run/numaflow/sourcer-server-info",
    )
    SOURCE_TRANSFORMER = (
        "/var/run/numaflow/sourcetransform.sock",
        "/var/run/numaflow/sourcetransformer-server-info",
    )

    def __init__(self, address: str, server_info_file_path: str) -> None:
        self.address = address
        self.server_info_file_path = server_info_file_path


@dataclass
class ServerOptions:
    """Settings a server starts with."""

    sock_addr: str
    max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE
    server_info_file_path: str = ""


Option = Callable[[ServerOptions], None]


def default_options(kind: ServerKind) -> ServerOptions:
    """Return the default options for a server of the given kind.

    A sink running as the fallback sink container uses the fallback
    socket and server-info file instead of the regular ones.
    """
    address = kind.address
    info_path = kind.server_info_file_path
    if (
        kind is ServerKind.SINKER
        and os.environ.get(ENV_UD_CONTAINER_TYPE) == UD_CONTAINER_FALLBACK_SINK
    ):
        address = FALLBACK_SINK_ADDRESS
        info_path = FALLBACK_SINK_SERVER_INFO_FILE_PATH
    return ServerOptions(
        sock_addr=address,
        max_message_size=DEFAULT_MAX_MESSAGE_SIZE,
        server_info_file_path=info_path,
    )


def with_max_message_size(size: int) -> Option:
    """Set the maximum size of messages received and sent."""

    def apply(opts: ServerOptions) -> None:
        opts.max_message_size = size

    return apply


def with_sock_addr(addr: str) -> Option:
    """Listen on the given socket address."""

    def apply(opts: ServerOptions) -> None:
        opts.sock_addr = addr

    return apply


def with_server_info_file_path(path: str) -> Option:
    """Write the server info to the given file."""

    def apply(opts: ServerOptions) -> None:
        opts.server_info_file_path = path

    return apply


def apply_options(kind: ServerKind, *args: Option) -> ServerOptions:
    """Build the default options for ``kind`` and apply ``args`` in order."""
    opts = default_options(kind)
    for option in args:
        option(opts)
    return opts