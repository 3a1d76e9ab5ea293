"""Building blocks for user-defined streaming functions: sources, sinks, transformers, side inputs and session reducers."""

__version__ = "0.1.0"

__all__ = [
    "options",
    "sideinput",
    "sinker",
    "sourcetransformer",
    "sourcer",
    "session",
    "session_tasks",
    "session_service",
    "examples",
]