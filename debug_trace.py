"""
debug_trace.py

Debug instrumentation for following gestures through the interaction machine.
Enable by setting INFINICANVAS_TRACE=1 in the environment.
"""

import logging
import os
import traceback

# Set INFINICANVAS_TRACE=1 to enable debug tracing
DEBUG_TRACE = os.environ.get("INFINICANVAS_TRACE", "") not in ("", "0")

# Set INFINICANVAS_TRACE_POINTER=1 to trace pointer moves (very verbose)
TRACE_POINTER = os.environ.get("INFINICANVAS_TRACE_POINTER", "") not in ("", "0")

_log = logging.getLogger("infinicanvas.trace")


def trace(msg: str, category: str = "INFO"):
    """Emit a trace message tagged with a category."""
    if not DEBUG_TRACE:
        return
    if category == "POINTER" and not TRACE_POINTER:
        return
    _log.debug("[%s] %s", category, msg)


def trace_exception(msg: str = "Exception"):
    """Emit the current exception's traceback."""
    if not DEBUG_TRACE:
        return
    trace(f"{msg}: {traceback.format_exc()}", "ERROR")


def configure_trace_logging(level: int = logging.DEBUG) -> None:
    """Attach a timestamped stderr handler to the trace logger."""
    if _log.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(asctime)s.%(msecs)03d] %(message)s", "%H:%M:%S"))
    _log.addHandler(handler)
    _log.setLevel(level)
