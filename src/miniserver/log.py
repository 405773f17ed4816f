"""
=============================================================================
LOG HOOK
=============================================================================

The server never decides WHERE its diagnostics go. It raises a log event
and whoever embeds it subscribes:

    server code                    LogHook                     subscribers
    ───────────                    ───────                     ───────────
    hook.info(self, "...")  ──►  drop if blank  ──►  for cb in order:
                                                        cb(source, message, level)

    ┌─────────────────────────────────────────────────────────────────────┐
    │  level is one of exactly two values:                                │
    │      LogLevel.INFO   == "Info"                                      │
    │      LogLevel.ERROR  == "Error"                                     │
    │                                                                      │
    │  The default subscriber does nothing, so an embedded server is      │
    │  silent until the host application subscribes.                      │
    └─────────────────────────────────────────────────────────────────────┘

There is one process-wide hook (get_log_hook / set_log_hook). Dispatch is
synchronous and in subscription order; nothing is buffered or persisted.

To route events into the standard logging module:

    get_log_hook().subscribe(logging_subscriber())

=============================================================================
"""

import logging
from enum import Enum
from typing import Any, Callable, List, Optional


class LogLevel(str, Enum):
    """Log levels raised by the server. Compare equal to "Info"/"Error"."""
    INFO = "Info"
    ERROR = "Error"

    def __str__(self) -> str:
        return self.value


# (source, message, level) -> None
LogSubscriber = Callable[[Any, str, LogLevel], None]


def null_subscriber(source: Any, message: str, level: LogLevel) -> None:
    """Default subscriber: swallow every event."""


class LogHook:
    """
    A replaceable multi-subscriber log event.

    Usage:
        hook = LogHook()

        @hook.subscribe
        def on_log(source, message, level):
            print(f"[{level}] {message}")

        hook.info(server, "Listening")
        hook.error(server, "File missing.html not found")
    """

    def __init__(self):
        self._subscribers: List[LogSubscriber] = [null_subscriber]

    def __len__(self) -> int:
        return len(self._subscribers)

    @property
    def subscribers(self) -> List[LogSubscriber]:
        """Snapshot of the current subscribers, in dispatch order."""
        return list(self._subscribers)

    def subscribe(self, subscriber: LogSubscriber) -> LogSubscriber:
        """
        Add a subscriber. Returns it unchanged so this works as a decorator.
        """
        if not callable(subscriber):
            raise TypeError(f"Log subscriber must be callable, got {subscriber!r}")
        self._subscribers.append(subscriber)
        return subscriber

    def unsubscribe(self, subscriber: LogSubscriber) -> bool:
        """Remove a subscriber. Returns False if it was not subscribed."""
        try:
            self._subscribers.remove(subscriber)
        except ValueError:
            return False
        return True

    def clear(self) -> None:
        """Drop every subscriber and go back to the no-op default."""
        self._subscribers = [null_subscriber]

    def emit(self, source: Any, message: Optional[str], level: LogLevel) -> None:
        """
        Raise a log event.

        Blank or whitespace-only messages are dropped before dispatch.
        """
        if not message or not message.strip():
            return

        for subscriber in list(self._subscribers):
            subscriber(source, message, level)

    def info(self, source: Any, message: Optional[str]) -> None:
        self.emit(source, message, LogLevel.INFO)

    def error(self, source: Any, message: Optional[str]) -> None:
        self.emit(source, message, LogLevel.ERROR)


# =============================================================================
# PROCESS-WIDE HOOK
# =============================================================================

_hook = LogHook()


def get_log_hook() -> LogHook:
    """The process-wide log hook."""
    return _hook


def set_log_hook(hook: LogHook) -> LogHook:
    """
    Replace the process-wide log hook.

    Servers created afterwards pick up the new hook. Returns the previous
    one so callers (tests mostly) can put it back.
    """
    global _hook
    previous = _hook
    _hook = hook
    return previous


# =============================================================================
# STANDARD LOGGING BRIDGE
# =============================================================================

# Keyed by the plain string so subscribers fed "Info"/"Error" also map
_LEVELS = {
    LogLevel.INFO.value: logging.INFO,
    LogLevel.ERROR.value: logging.ERROR,
}


def logging_subscriber(logger: Optional[logging.Logger] = None) -> LogSubscriber:
    """
    Build a subscriber that forwards events to a standard library logger.

    Args:
        logger: Target logger. Defaults to the "miniserver" logger.
    """
    target = logger or logging.getLogger("miniserver")

    def forward(source: Any, message: str, level: LogLevel) -> None:
        target.log(_LEVELS.get(str(level), logging.INFO), message)

    return forward
