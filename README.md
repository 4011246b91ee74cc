# netprimer

A collection of small, self-contained network programs built on Python's
`socket` module. Each one does a single job and prints what it is doing as it
goes, which makes them handy for poking at a network and for seeing how the
socket API behaves in practice.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Commands

### Local system

| Command | What it does |
| --- | --- |
| `netprimer-sock-init` | Prints `Ready to use socket API.` |
| `netprimer-interfaces` | Lists every IPv4 and IPv6 address of every network interface, one tab-separated line each. With `--grouped` the addresses are printed under an `Adapter name:` heading per interface. |
| `netprimer-time` | Prints the local time. |

### Name resolution

```
netprimer-lookup example.com
```

Resolves a hostname and prints every address it maps to.

```
netprimer-dns example.com aaaa
```

Builds a DNS query by hand and sends it over UDP to a resolver (`8.8.8.8`
port 53 unless `--server` and `--port` say otherwise; `--timeout` sets how
many seconds to wait). It prints a breakdown of the query and of the response:
header flags, counts, questions and answer records, with A, AAAA, MX, TXT and
CNAME data decoded. The record types that can be asked for are `a`, `aaaa`,
`txt`, `mx` and `any`. Compressed names are followed and shown as pointers.

### Servers

All of the servers listen on port 8080 unless `--port` is given.

| Command | What it does |
| --- | --- |
| `netprimer-time-server` | Accepts one HTTP connection and replies with the local time. `--mode` chooses `ipv4` (the default), `ipv6`, or `dual` for an IPv6 socket that also accepts IPv4. |
| `netprimer-chat-server` | A selector-based TCP server that relays whatever one client sends to every other connected client. |
| `netprimer-upper-server` | A selector-based TCP server that echoes each client's data back with ASCII letters upper-cased. |
| `netprimer-upper-fork` | The same upper-casing service, with one worker thread per client. |
| `netprimer-udp-recvfrom` | Waits for one UDP datagram, then prints it and the sender's address and port. |
| `netprimer-udp-upper` | A UDP server that sends every datagram back to its sender upper-cased. It waits on the socket with a selector; `--simple` reads it directly. |
| `netprimer-web-server` | A static-file HTTP server that answers GET requests from the `public` directory, or the one given with `--root`. |

Stop a long-running server with Ctrl-C.

You can try the web server with a browser at `http://127.0.0.1:8080/`.
A request for `/` serves `index.html`. Each response carries a
`Content-Length` and a `Content-Type` chosen from the file's extension
(`application/octet-stream` when the extension is not known), and the
connection is closed after it. The server answers `404 Not Found` when a path
contains `..` or names no regular file. It answers `400 Bad Request` when a
request is not a GET, is malformed, has a path longer than 100 characters, or
fills 2047 bytes without completing its headers.

### Clients

```
netprimer-tcp-client 127.0.0.1 8080
netprimer-udp-client 127.0.0.1 8080
```

These clients connect to a host and port. They send each line you type and
print everything the peer sends back. They stop when the peer closes the
connection or when standard input ends.

```
netprimer-udp-sendto
```

Sends a single `Hello World` datagram to `127.0.0.1:8080`; `--host`,
`--port` and `--message` change the destination and the text.

```
netprimer-web-get http://example.com/
```

Fetches a URL over plain HTTP and prints the request headers, the response
headers and the body. It handles bodies delimited by `Content-Length`, by
chunked transfer encoding, or by the connection closing. It gives up after
`--timeout` seconds (5 by default) or once the response exceeds 32768 bytes.

## Library use

The building blocks behind the commands can also be imported:

```python
from netprimer.dns import build_query, format_message, record_type
from netprimer.web_get import parse_url, build_request
from netprimer.web_server import content_type
from netprimer.tcp_servers import to_upper

query = build_query("example.com", record_type("aaaa"), 0xABCD)
print(format_message(query))

url = parse_url("http://example.com:8080/index.html")
print(build_request(url))

print(content_type("index.html"))   # text/html
print(to_upper(b"hello"))           # b'HELLO'
```

Other pieces:

- `netprimer.sockets`: `create_listener`, `connect_to`, `numeric_address`
  and `numeric_service`. Failures are raised as `OSError`.
- `netprimer.dns`: `read_name` decodes a (possibly compressed) name,
  `exchange` sends a query and returns the reply, and malformed messages
  raise `DnsFormatError`.
- `netprimer.web_get`: `fetch` performs a whole request, and `BodyDecoder`
  decodes a response body fed to it piece by piece. Unsupported URLs,
  timeouts and oversized responses raise `WebGetError`.
- `netprimer.tcp_servers.ChatServer`, `UpperServer` and
  `netprimer.web_server.HttpServer` wrap a listening socket; `poll(timeout)`
  handles one round of ready sockets and `close()` shuts everything down.
- `netprimer.udp`: `receive_one`, `send_message` and `serve_upper`.
- `netprimer.lookup.resolve` and `netprimer.interfaces.list_addresses`.

## What it does not do

These are deliberately small programs. The HTTP client speaks plain `http://`
only, with no TLS and no redirects. The web server answers only GET, serves
one request per connection and has no directory listings. DNS queries go over
UDP only, with no fallback to TCP for truncated replies.