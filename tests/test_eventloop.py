import os
import socket

import pytest

from tcpkit.eventloop import Direction, EventLoop, Result
from tcpkit.file_descriptor import FileDescriptor


@pytest.fixture
def pair():
    first, second = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    a = FileDescriptor(first.detach())
    b = FileDescriptor(second.detach())
    yield a, b
    for fd in (a, b):
        if not fd.closed:
            fd.close()


def test_categories_are_numbered_in_order():
    loop = EventLoop()
    assert loop.add_category("first") == 0
    assert loop.add_category("second") == 1


def test_category_limit():
    loop = EventLoop()
    for i in range(64):
        loop.add_category(f"c{i}")
    with pytest.raises(RuntimeError, match="maximum categories reached"):
        loop.add_category("one too many")


def test_bad_category_id():
    loop = EventLoop()
    with pytest.raises(IndexError):
        loop.add_rule(0, lambda: None)


def test_plain_rule_runs_while_interested():
    loop = EventLoop()
    remaining = [3]
    calls = []

    def callback():
        calls.append(remaining[0])
        remaining[0] -= 1

    loop.add_rule("count down", callback, lambda: remaining[0] > 0)
    assert loop.wait_next_event(0) is Result.SUCCESS
    assert calls == [3, 2, 1]
    assert loop.wait_next_event(0) is Result.EXIT


def test_plain_rule_busy_wait_detected():
    loop = EventLoop()
    loop.add_rule("spinner", lambda: None)
    with pytest.raises(RuntimeError, match='busy wait detected: rule "spinner"'):
        loop.wait_next_event(0)


def test_cancelled_plain_rule_does_not_run():
    loop = EventLoop()
    calls = []
    handle = loop.add_rule("never", lambda: calls.append(1))
    handle.cancel()
    assert loop.wait_next_event(0) is Result.EXIT
    assert calls == []


def test_fd_rule_reads_available_data(pair):
    a, b = pair
    loop = EventLoop()
    received = []
    loop.add_fd_rule("reader", a, Direction.IN, lambda: received.append(a.read()))
    b.write(b"hello")
    assert loop.wait_next_event(1000) is Result.SUCCESS
    assert received == [b"hello"]
    assert a.read_count == 1


def test_fd_rule_times_out(pair):
    a, _ = pair
    loop = EventLoop()
    loop.add_fd_rule("reader", a, Direction.IN, lambda: a.read())
    assert loop.wait_next_event(10) is Result.TIMEOUT


def test_uninterested_fd_rule_means_exit(pair):
    a, _ = pair
    loop = EventLoop()
    loop.add_fd_rule("reader", a, Direction.IN, lambda: a.read(), lambda: False)
    assert loop.wait_next_event(10) is Result.EXIT


def test_fd_rule_busy_wait_detected(pair):
    a, b = pair
    loop = EventLoop()
    loop.add_fd_rule("lazy", a, Direction.IN, lambda: None)
    b.write(b"x")
    with pytest.raises(RuntimeError, match='rule "lazy" did not read/write fd'):
        loop.wait_next_event(1000)


def test_eof_cancels_rule(pair):
    a, b = pair
    loop = EventLoop()
    cancelled = []
    data = []
    loop.add_fd_rule(
        "reader", a, Direction.IN, lambda: data.append(a.read()), cancel=lambda: cancelled.append(True)
    )
    b.close()
    assert loop.wait_next_event(1000) is Result.SUCCESS
    assert data == [b""]
    assert a.eof
    assert loop.wait_next_event(0) is Result.EXIT
    assert cancelled == [True]


def test_closed_fd_cancels_rule(pair):
    a, _ = pair
    loop = EventLoop()
    cancelled = []
    loop.add_fd_rule(
        "reader", a, Direction.IN, lambda: a.read(), cancel=lambda: cancelled.append(True)
    )
    a.close()
    assert loop.wait_next_event(0) is Result.EXIT
    assert cancelled == [True]


def test_cancelled_fd_rule_skips_cancel_callback(pair):
    a, _ = pair
    loop = EventLoop()
    cancelled = []
    handle = loop.add_fd_rule(
        "reader", a, Direction.IN, lambda: a.read(), cancel=lambda: cancelled.append(True)
    )
    handle.cancel()
    assert loop.wait_next_event(0) is Result.EXIT
    assert cancelled == []


def test_out_rule_writes(pair):
    a, b = pair
    loop = EventLoop()
    pending = [b"payload"]

    def write():
        a.write(pending.pop())

    loop.add_fd_rule("writer", a, Direction.OUT, write, lambda: bool(pending))
    assert loop.wait_next_event(1000) is Result.SUCCESS
    assert pending == []
    assert os.read(b.fd_num, 100) == b"payload"
    assert a.write_count == 1


def test_category_id_reused_for_several_rules(pair):
    a, b = pair
    loop = EventLoop()
    category = loop.add_category("shared")
    first = []
    second = []
    loop.add_fd_rule(category, a, Direction.IN, lambda: first.append(a.read()))
    loop.add_fd_rule(category, b, Direction.IN, lambda: second.append(b.read()))
    a.write(b"to b")
    assert loop.wait_next_event(1000) is Result.SUCCESS
    assert first == []
    assert second == [b"to b"]