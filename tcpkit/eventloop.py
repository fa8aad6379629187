"""An event loop that polls file descriptors and runs rule callbacks."""

import errno
import os
import select
import socket
import sys
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from .errors import UnixError
from .file_descriptor import FileDescriptor

_MAX_CATEGORIES = 64
_MAX_ITERATIONS = 128
_ALWAYS_REPORTED = select.POLLERR | select.POLLHUP | select.POLLNVAL


class Direction(Enum):
    """Whether a rule waits for its fd to be readable (IN) or writable (OUT)."""

    IN = "in"
    OUT = "out"


class Result(Enum):
    """What a call to ``EventLoop.wait_next_event`` did."""

    SUCCESS = "success"  # a rule was served
    TIMEOUT = "timeout"  # no rule fired before the timeout
    EXIT = "exit"  # nothing left to poll; stop calling wait_next_event


def _always():
    return True


def _nothing():
    pass


@dataclass(eq=False)
class _Rule:
    category_id: int
    interest: Callable[[], bool]
    callback: Callable[[], None]
    cancel_requested: bool = False


@dataclass(eq=False)
class _FDRule(_Rule):
    fd: FileDescriptor = None
    direction: Direction = Direction.IN
    cancel: Callable[[], None] = field(default=_nothing)
    error: Callable[[], None] = field(default=_nothing)

    def service_count(self):
        """How often the fd has been read or written, by the rule's direction."""
        return self.fd.read_count if self.direction is Direction.IN else self.fd.write_count


class RuleHandle:
    """A weak handle to a rule that can request its cancellation."""

    def __init__(self, rule):
        self._rule = weakref.ref(rule)

    def cancel(self):
        """Ask the loop to drop the rule; its cancel callback is not called."""
        rule = self._rule()
        if rule is not None:
            rule.cancel_requested = True


class EventLoop:
    """Waits for events on file descriptors and runs the matching callbacks."""

    def __init__(self):
        self._categories = []
        self._fd_rules = []
        self._rules = []

    def add_category(self, name):
        """Register a rule category by name; returns its id."""
        if len(self._categories) >= _MAX_CATEGORIES:
            raise RuntimeError("maximum categories reached")
        self._categories.append(name)
        return len(self._categories) - 1

    def _category_id(self, category):
        if isinstance(category, str):
            return self.add_category(category)
        if not 0 <= category < len(self._categories):
            raise IndexError("bad category_id")
        return category

    def _name(self, rule):
        return self._categories[rule.category_id]

    def add_rule(self, category, callback, interest=None):
        """Add a rule without a file descriptor: ``callback`` runs while ``interest()`` holds.

        ``category`` is a category id, or a name that registers a new category.
        """
        rule = _Rule(self._category_id(category), interest or _always, callback)
        self._rules.append(rule)
        return RuleHandle(rule)

    def add_fd_rule(self, category, fd, direction, callback, interest=None, cancel=None, error=None):
        """Add a rule that runs ``callback`` when ``fd`` is ready in ``direction``.

        ``cancel`` runs when the loop drops the rule (EOF, close, hangup);
        ``error`` runs first when the fd reports an error.
        """
        rule = _FDRule(
            self._category_id(category),
            interest or _always,
            callback,
            fd=fd.duplicate(),
            direction=direction,
            cancel=cancel or _nothing,
            error=error or _nothing,
        )
        self._fd_rules.append(rule)
        return RuleHandle(rule)

    def _serve_plain_rules(self):
        for rule in list(self._rules):
            if rule.cancel_requested:
                self._rules.remove(rule)
                continue
            iterations = 0
            while rule.interest():
                if iterations >= _MAX_ITERATIONS:
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        f"is still interested after {iterations + 1} iterations"
                    )
                iterations += 1
                rule.callback()
            if iterations:
                return True
        return False

    def _report_error(self, rule):
        fd = rule.fd.fd_num
        try:
            sock = socket.socket(fileno=fd)
        except OSError as exc:
            if exc.errno == errno.ENOTSOCK:
                sys.stderr.write(
                    f'error on polled file descriptor for rule "{self._name(rule)}"\n'
                )
                return
            raise UnixError("getsockopt", exc.errno) from exc
        try:
            socket_error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as exc:
            raise UnixError("getsockopt", exc.errno) from exc
        finally:
            sock.detach()
        if socket_error:
            sys.stderr.write(
                f'error on polled socket for rule "{self._name(rule)}": '
                f"{os.strerror(socket_error)}\n"
            )

    def wait_next_event(self, timeout_ms):
        """Serve at most one rule, waiting up to ``timeout_ms`` (negative: forever)."""
        if self._serve_plain_rules():
            return Result.SUCCESS

        polled = []
        masks = {}
        something_to_poll = False
        for rule in list(self._fd_rules):
            if rule.cancel_requested:
                self._fd_rules.remove(rule)
                continue
            if rule.direction is Direction.IN and rule.fd.eof:
                rule.cancel()
                self._fd_rules.remove(rule)
                continue
            if rule.fd.closed:
                rule.cancel()
                self._fd_rules.remove(rule)
                continue
            events = 0
            if rule.interest():
                events = select.POLLIN if rule.direction is Direction.IN else select.POLLOUT
                something_to_poll = True
            polled.append((rule, events))
            fd_num = rule.fd.fd_num
            masks[fd_num] = masks.get(fd_num, 0) | events

        if not something_to_poll:
            return Result.EXIT

        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)
        try:
            ready = poller.poll(timeout_ms)
        except OSError as exc:
            raise UnixError("poll", exc.errno) from exc
        if not ready:
            return Result.TIMEOUT
        revents_by_fd = dict(ready)

        for rule, events in polled:
            revents = revents_by_fd.get(rule.fd.fd_num, 0) & (events | _ALWAYS_REPORTED)

            if revents & (select.POLLERR | select.POLLNVAL):
                self._report_error(rule)
                rule.error()
                rule.cancel()
                self._fd_rules.remove(rule)
                continue

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and ((events and not poll_ready) or rule.direction is Direction.OUT):
                rule.cancel()
                self._fd_rules.remove(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if (
                    count_before == rule.service_count()
                    and not rule.fd.closed
                    and rule.interest()
                ):
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        "did not read/write fd and is still interested"
                    )
                return Result.SUCCESS

        return Result.SUCCESS