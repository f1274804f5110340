# udproxy

`udproxy` receives front panel snapshots of an emulated PDP-11 over UDP.
It turns each snapshot into a small JSON document and sends that document
to every connected WebSocket client. A browser page can use these
documents to draw a live console with lamps for address, data, processor
mode and addressing mode.

It also runs a small HTTP server. The server serves a directory of static
files and a `/config.json` endpoint. The endpoint tells a page which
WebSocket port belongs to which proxy.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running

```
udproxy
```

With no options this starts:

- the HTTP server on port **4080**, serving files from `wwwroot` in the
  current directory;
- one proxy named `pdproxy`. It listens for UDP datagrams on port
  **4000** and accepts WebSocket clients on TCP port 4000.

`/config.json` then returns:

```json
{"proxyPorts":{"pdproxy":4000}}
```

Options:

| Option                | Default     | Meaning                                           |
|-----------------------|-------------|---------------------------------------------------|
| `--host`              | `0.0.0.0`   | address that every server listens on              |
| `--web-port PORT`     | `4080`      | HTTP server port                                  |
| `--content-dir DIR`   | `wwwroot`   | directory of static files to serve                |
| `--proxy NAME=PORT`   | `pdproxy=4000` | add a proxy; repeat the option for several proxies |

Ports must be between 1 and 65535. If you give `--proxy`, the default
proxy is replaced, not added to. If the HTTP port cannot be bound, the
command logs an error and exits with status 1. If a proxy's port cannot
be bound, that proxy logs the error and stops, and the other servers keep
running.

Press Ctrl+C to stop all servers.

## What is not included

The package does not ship the panel web page. `--content-dir` must point
to a directory of your own. Until it does, the HTTP server serves only
`/config.json` and whatever files that directory holds. WebSocket clients
only receive data. Any messages they send are read and discarded.

## Packet format

Each UDP datagram is little-endian and packed with no padding. A 6-byte
header comes first, then the 16-byte panel state:

| Field         | Type   | Meaning                                   |
|---------------|--------|-------------------------------------------|
| `byte_count`  | uint16 | size of the panel state payload (16)      |
| `flags`       | uint32 | panel type flags                          |
| `address`     | uint32 | address lamps                             |
| `data`        | uint16 | data lamps                                |
| `psw`         | uint16 | processor status word                     |
| `mser`        | uint16 | memory system error register              |
| `cpu_err`     | uint16 | CPU error register                        |
| `mmr0`        | uint16 | memory management register 0              |
| `mmr3`        | uint16 | memory management register 3              |

A datagram is logged and dropped in any of these cases:

- it is shorter than its header;
- it is shorter than the header plus the declared payload;
- its declared payload size is not 16.

Bytes after the declared payload are ignored.

## JSON sent to clients

The JSON is compact and its keys are sorted:

```json
{"addr16":true,"addr18":false,"addr22":false,"address":0,"address_error":false,"data":0,"kernel_mode":true,"parity_error":false,"super_mode":false,"user_mode":false}
```

- `address` is masked to 22 bits.
- `parity_error` is set when any of MSER bits 4 to 7 is set.
- `address_error` is set when CPU error bit 5 (nonexistent memory) or
  bit 6 (address error) is set.
- The processor mode comes from PSW bits 15 and 14: 0 is kernel, 1 is
  supervisor, 3 is user. Mode 2 sets none of the three mode keys.
- `addr22` is MMR3 bit 4. `addr18` is MMR0 bit 0 when `addr22` is not
  set. `addr16` is set when neither of them is set.

## Using it as a library

`udproxy.packet` encodes and decodes packets:

```python
from udproxy.packet import PanelState, encode_packet, packet_to_json

state = PanelState(address=0o17777707, data=0o123456, psw=0o140000, mmr0=1)
datagram = encode_packet(state, 0)
print(packet_to_json(datagram))
# {"addr16":false,"addr18":true,"addr22":false,"address":4194247,"address_error":false,"data":42798,"kernel_mode":false,"parity_error":false,"super_mode":false,"user_mode":true}
```

- `decode_packet(data)` returns a `(PacketHeader, PanelState)` pair. It
  raises `PacketError`, a subclass of `ValueError`, when the datagram is
  malformed.
- `PacketHeader` and `PanelState` each have `from_bytes` and `to_bytes`.
- `PanelState.to_dict()` returns the lamp values.

`udproxy.proxy.ProxyBase` is the base class for a proxy. It listens for
UDP datagrams and runs a WebSocket server on the same port number:

- `run()` blocks in a new event loop.
- `serve()` is the coroutine form of `run()`. It raises `OSError` when a
  socket cannot be bound.
- `stop()` may be called from any thread.
- The `ready` event is set once both sockets are listening.
- `handle_datagram(data)` converts one datagram and sends it to every
  client. It returns the JSON that was sent, or `None` when the datagram
  was empty or malformed.

For another panel type, subclass `ProxyBase` and override
`udp_packet_to_json`. It should raise `PacketError` for bad input.
`udproxy.proxy.PDProxy` is the PDP-11 proxy. With port 0, the proxy
binds a free port and stores it in `port`.

`udproxy.webserver.WebServer(port, content_dir, host)` serves the static
files and the configuration:

- `add_proxy_port(name, port)` registers a proxy.
- `config_json()` returns the configuration document.
- `start()` binds the socket and returns the port.
- `run()` serves until `stop()` is called from another thread.

`udproxy.log` writes lines of the form
`[YYYY-MM-DD HH:MM:SS] [INF|ERR] [Module] message`, stamped with the
local time:

- informational lines go to standard output and errors go to standard
  error;
- `format_line` builds a line;
- `log_message` writes one;
- the `Loggable` mixin adds `log_info` and `log_error` to a class.