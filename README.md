# tcpkit

tcpkit provides building blocks for running TCP in user space on Linux. It covers the wire
formats, checksums, sockets, TUN/TAP devices and the event loop that sit underneath a TCP
implementation. It has no third-party dependencies.

## Modules

- `tcpkit.checksum.InternetChecksum`: the 16-bit one's-complement Internet checksum. `add()`
  takes a bytes-like object or an iterable of them, and `value()` returns the folded checksum.
- `tcpkit.parser`:
  - `Parser` reads big-endian integers (`integer(size)`) and raw bytes (`read_bytes(size)`)
    from a list of byte chunks. Reading past the end does not raise. It sets a sticky error
    flag, which `has_error()` reports.
  - `Serializer` writes integers and buffers and returns the chunks from `finish()`.
  - `parse(obj, buffers, *args)` and `serialize(obj)` work with any object that has
    `parse`/`serialize` methods.
- `tcpkit.ipv4`:
  - `IPv4Header` has `compute_checksum()`, `pseudo_checksum()` and `payload_length()`.
    Parsing verifies the version, the header length and the checksum. Options are skipped.
  - `IPv4Datagram` (also available as `InternetDatagram`) adds `clone()`.
- `tcpkit.tcp_message`: the dataclasses `TCPSenderMessage` (`seqno`, `syn`, `payload`,
  `fin`, `rst`, `sequence_length()`), `TCPReceiverMessage` (`ackno`, `window_size`, `rst`),
  `UserDatagramInfo` and `TCPMessage`. Sequence numbers are raw 32-bit integers.
- `tcpkit.tcp_segment.TCPSegment`: parses and serializes the TCP header, and computes and
  verifies its checksum against an IPv4 pseudo-header sum.
- `tcpkit.tcp_config`:
  - `TCPConfig` holds timeouts, capacities and the initial sequence number.
  - `FdAdapterConfig` holds source and destination `Address`es and loss rates.
  - `FdAdapterBase` holds `config` and `listening` attributes and a `tick()` method.
- `tcpkit.tcp_over_ip.TCPOverIPv4Adapter`: `wrap_tcp_in_ip()` builds an IPv4 datagram from a
  `TCPMessage`. `unwrap_tcp_in_ip()` returns the message, or `None` if the datagram is invalid
  or belongs to another connection. While `listening` is set, the first SYN fixes both
  endpoints.
- `tcpkit.address.Address`: IPv4 addresses and ports.
  - Build one with `Address(ip, port)` (numeric only), `Address.resolve(hostname, service)`
    or `Address.from_ipv4_numeric(n)`.
  - Read it back with `ip_port()`, the `ip` and `port` properties, or `ipv4_numeric()`.
  - `str()` gives `"ip:port"`.
- `tcpkit.file_descriptor.FileDescriptor`: a shared file-descriptor handle.
  - It counts reads and writes and tracks EOF and closing.
  - `duplicate()` returns another handle to the same descriptor.
  - `read_vector()` reads into several buffers at once.
  - It is a context manager that closes the descriptor on exit.
- `tcpkit.sockets`: `UDPSocket`, `TCPSocket` (`listen`, `accept`), `LocalStreamSocket` (with
  `LocalStreamSocket.pair()`), `LocalDatagramSocket` and `PacketSocket` (`set_promiscuous`).
  All of them are `FileDescriptor`s.
- `tcpkit.tun`: `TunFD` and `TapFD` open existing persistent TUN/TAP devices through
  `/dev/net/tun`.
- `tcpkit.eventloop.EventLoop`: a `poll`-based loop built from rules.
  - `add_rule()` adds a rule without a descriptor. `add_fd_rule()` adds one for a readable
    (`Direction.IN`) or writable (`Direction.OUT`) descriptor.
  - `wait_next_event(timeout_ms)` serves at most one rule. It returns `Result.SUCCESS`,
    `Result.TIMEOUT` or `Result.EXIT`.
  - It raises `RuntimeError` on a busy wait, that is, when a rule stays interested without
    making progress.
- `tcpkit.adapters`:
  - `TCPOverIPv4OverTunFdAdapter` reads and writes TCP messages over a TUN device.
  - `LossyFdAdapter` wraps an adapter and drops reads and writes at random, using the
    configured `loss_rate_dn` and `loss_rate_up` (out of 65536).
- `tcpkit.errors`: `TaggedError`, `UnixError`, `check_system_call()` and `notnull()`.
- `tcpkit.debug`: `debug()` and `debug_str()` write to standard error by default. Use
  `set_debug_handler()` and `reset_debug_handler()` to redirect them.
- `tcpkit.helpers`: `pretty_print()` escapes and truncates bytes for display. `concat()` joins
  chunks.
- `tcpkit.rng.get_random_engine()`: a `random.Random` seeded from the OS entropy source.

## Installing

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Example: wrap a TCP message in IPv4 and unwrap it again

```python
from tcpkit.address import Address
from tcpkit.ipv4 import IPv4Datagram
from tcpkit.parser import parse, serialize
from tcpkit.tcp_message import TCPMessage, TCPSenderMessage
from tcpkit.tcp_over_ip import TCPOverIPv4Adapter

client = TCPOverIPv4Adapter()
client.config.source = Address("10.0.0.1", 4000)
client.config.destination = Address("10.0.0.2", 80)

wire = serialize(client.wrap_tcp_in_ip(TCPMessage(sender=TCPSenderMessage(seqno=1000, syn=True))))

server = TCPOverIPv4Adapter()
server.config.source = Address("10.0.0.2", 80)
server.config.destination = Address("10.0.0.1", 4000)

received = IPv4Datagram()
assert parse(received, wire)
message = server.unwrap_tcp_in_ip(received)
assert message.sender.syn and message.sender.seqno == 1000
```

## Example: event loop

```python
from tcpkit.eventloop import EventLoop, Result

loop = EventLoop()
pending = ["a", "b"]
loop.add_rule("drain", lambda: pending.pop(), lambda: bool(pending))
assert loop.wait_next_event(0) is Result.SUCCESS
assert pending == []
```

## What tcpkit does not do

tcpkit does not contain a TCP state machine. It has no sender, no receiver, no reassembler
and no byte stream, and it has no socket that runs a whole TCP connection over a TUN
device. It supplies the parts such an implementation would use. tcpkit has no command-line
tools.

Opening TUN/TAP devices and packet sockets needs Linux and the right permissions. The
devices must already exist.