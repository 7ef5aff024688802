import socket
import socketserver
import threading
import time

import pytest

from krill.address import Address
from krill.fetcher import (
    FetchCancelled,
    FetchTimeout,
    FetchTransportError,
    FetchWorker,
    fetch,
)
from krill.transport import TransportErrorKind, TransportMode, connect, TransportError

RESPONSES = {
    "/": b"1Home\t/home\tlocalhost\t70\r\n.\r\n",
    "/text": b"hello\r\nworld\r\n",
}


class GopherHandler(socketserver.StreamRequestHandler):
    def handle(self):
        selector = self.rfile.readline().decode().rstrip("\r\n")
        self.server.requests.append(selector)
        if selector == "/hang":
            self.wfile.write(b"partial")
            self.wfile.flush()
            self.server.release.wait(5)
            return
        self.wfile.write(RESPONSES.get(selector, b"3not found\t\terror.host\t1\r\n"))


@pytest.fixture
def server():
    srv = socketserver.ThreadingTCPServer(("127.0.0.1", 0), GopherHandler)
    srv.daemon_threads = True
    srv.requests = []
    srv.release = threading.Event()
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.release.set()
    srv.shutdown()
    srv.server_close()


def address_of(srv, selector: str, item_type: str = "1") -> Address:
    host, port = srv.server_address
    return Address(host, port, item_type, selector)


def closed_port() -> int:
    s = socket.socket()
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


def test_fetch_reads_until_close(server) -> None:
    raw = fetch(address_of(server, "/text", "0"))

    assert raw == b"hello\r\nworld\r\n"
    assert server.requests == ["/text"]


def test_fetch_times_out_and_drops_partial_bytes(server) -> None:
    with pytest.raises(FetchTimeout):
        fetch(address_of(server, "/hang"), timeout=0.5)


def test_fetch_cancel_returns_promptly(server) -> None:
    cancel = threading.Event()
    threading.Timer(0.2, cancel.set).start()
    started = time.monotonic()

    with pytest.raises(FetchCancelled):
        fetch(address_of(server, "/hang"), cancel=cancel, timeout=5)

    assert time.monotonic() - started < 2


def test_connection_refused() -> None:
    with pytest.raises(FetchTransportError) as info:
        fetch(Address("127.0.0.1", closed_port(), "1", ""), timeout=2)

    assert info.value.error.kind is TransportErrorKind.CONNECTION_REFUSED


def test_unreachable_proxy() -> None:
    with pytest.raises(TransportError) as info:
        connect(Address("example.com"), TransportMode.TOR, timeout=2, proxy=("127.0.0.1", closed_port()))

    assert info.value.kind is TransportErrorKind.PROXY_UNREACHABLE


def test_worker_hands_back_bytes(server) -> None:
    worker = FetchWorker(address_of(server, "/"), fetch).start()

    assert worker.wait() == RESPONSES["/"]


def test_cancelled_worker_reports_cancelled_immediately(server) -> None:
    worker = FetchWorker(address_of(server, "/hang"), fetch, timeout=5).start()
    assert worker.poll() is None

    worker.cancel()

    assert isinstance(worker.poll(), FetchCancelled)


def test_worker_wraps_unexpected_errors() -> None:
    def broken(address, cancel=None):
        raise RuntimeError("boom")

    outcome = FetchWorker(Address("example.com"), broken).start().wait()

    assert isinstance(outcome, FetchTransportError)
    assert "boom" in str(outcome)
