"""Debug output that can be redirected to a custom handler."""

import sys
from dataclasses import dataclass
from typing import Callable


def _default_handler(message):
    sys.stderr.write(f"DEBUG: {message}\n")


@dataclass
class _DebugState:
    handler: Callable[[str], None] = _default_handler


_state = _DebugState()


def debug_str(message):
    """Send an already-formatted message to the current debug handler."""
    _state.handler(message)


def debug(fmt, *args, **kwargs):
    """Format a message with ``str.format`` and send it, unless running optimised."""
    if __debug__:
        debug_str(fmt.format(*args, **kwargs))


def set_debug_handler(handler):
    """Route debug messages to ``handler(message)``."""
    _state.handler = handler


def reset_debug_handler():
    """Route debug messages back to standard error."""
    _state.handler = _default_handler