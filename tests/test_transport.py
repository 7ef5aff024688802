import socketserver
import struct
import threading

import pytest

from krill.address import Address
from krill.fetcher import FetchTransportError, fetch
from krill.transport import TransportError, TransportErrorKind, TransportMode, connect

MENU = b"1Hidden\t/hidden\tgopher.onion\t70\r\n.\r\n"


class Socks5Handler(socketserver.StreamRequestHandler):
    """A SOCKS5 proxy that answers CONNECT with `server.reply` and then acts as the gopher server."""

    def read(self, count):
        return self.rfile.read(count)

    def handle(self):
        version, nmethods = self.read(2)
        self.read(nmethods)
        self.wfile.write(b"\x05\x00")

        _, command, _, atyp = self.read(4)
        assert atyp == 3
        name = self.read(self.read(1)[0]).decode("idna")
        (port,) = struct.unpack(">H", self.read(2))
        self.server.targets.append((command, name, port))

        # bound address: a domain name, so the client has to skip a variable length field
        bound = b"proxy.local"
        self.wfile.write(bytes([5, self.server.reply, 0, 3, len(bound)]) + bound + b"\x00\x00")
        if self.server.reply != 0:
            return
        self.server.selectors.append(self.rfile.readline().decode().rstrip("\r\n"))
        self.wfile.write(MENU)


class NotTLSHandler(socketserver.BaseRequestHandler):
    def handle(self):
        self.request.sendall(b"3not a tls server\r\n")


def start(handler, **attrs):
    srv = socketserver.ThreadingTCPServer(("127.0.0.1", 0), handler)
    srv.daemon_threads = True
    for name, value in attrs.items():
        setattr(srv, name, value)
    threading.Thread(target=srv.serve_forever, daemon=True).start()
    return srv


@pytest.fixture
def proxy():
    servers = []

    def make(reply=0):
        srv = start(Socks5Handler, reply=reply, targets=[], selectors=[])
        servers.append(srv)
        return srv

    yield make
    for srv in servers:
        srv.shutdown()
        srv.server_close()


def test_fetch_through_socks_proxy_sends_unresolved_name(proxy) -> None:
    srv = proxy()

    raw = fetch(Address("gopher.onion", 7070, "1", "/hidden"), TransportMode.TOR,
                timeout=2, proxy=srv.server_address)

    assert raw == MENU
    assert srv.targets == [(1, "gopher.onion", 7070)]
    assert srv.selectors == ["/hidden"]


@pytest.mark.parametrize("reply, kind", [
    (5, TransportErrorKind.CONNECTION_REFUSED),
    (4, TransportErrorKind.DNS_FAILURE),
    (1, TransportErrorKind.PROXY_UNREACHABLE),
])
def test_proxy_reply_codes(proxy, reply, kind) -> None:
    srv = proxy(reply)

    with pytest.raises(TransportError) as info:
        connect(Address("gopher.onion"), TransportMode.TOR, timeout=2, proxy=srv.server_address)

    assert info.value.kind is kind


def test_proxy_failure_reaches_fetch_as_transport_error(proxy) -> None:
    srv = proxy(5)

    with pytest.raises(FetchTransportError) as info:
        fetch(Address("gopher.onion"), TransportMode.TOR, timeout=2, proxy=srv.server_address)

    assert info.value.error.kind is TransportErrorKind.CONNECTION_REFUSED


def test_tls_to_plain_server_fails_handshake() -> None:
    srv = start(NotTLSHandler)
    host, port = srv.server_address
    try:
        with pytest.raises(TransportError) as info:
            connect(Address(host, port), TransportMode.TLS, timeout=2, verify=False)
    finally:
        srv.shutdown()
        srv.server_close()

    assert info.value.kind is TransportErrorKind.TLS_HANDSHAKE_FAILED
