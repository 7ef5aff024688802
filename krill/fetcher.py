"""
Fetching gopher resources.

`fetch` sends one selector and reads until the server closes the connection.
`FetchWorker` runs a fetch on its own thread so the curses loop stays responsive:
the loop polls for the one-shot result and can cancel at any time.
"""
from __future__ import annotations

import queue
import socket
import threading
import time

from krill import logger
from krill.transport import (
    DEFAULT_PROXY_HOST,
    DEFAULT_PROXY_PORT,
    TransportError,
    TransportErrorKind,
    TransportMode,
    classify,
    connect,
)

DEFAULT_TIMEOUT = 8.0
# how often a blocked read wakes up to look at the cancel flag
POLL_INTERVAL = 0.1
CHUNK_SIZE = 4096


class FetchError(Exception):
    """Base class for everything that can stop a fetch from producing a page."""


class FetchCancelled(FetchError):
    def __init__(self):
        super().__init__("cancelled")


class FetchTimeout(FetchError):
    def __init__(self, seconds: float):
        super().__init__(f"timed out after {seconds:g}s")
        self.seconds = seconds


class FetchTransportError(FetchError):
    def __init__(self, error: TransportError):
        super().__init__(str(error))
        self.error = error


def fetch(address, mode: TransportMode = TransportMode.PLAIN, cancel: threading.Event | None = None,
          timeout: float = DEFAULT_TIMEOUT, verify: bool = True,
          proxy: tuple = (DEFAULT_PROXY_HOST, DEFAULT_PROXY_PORT)) -> bytes:
    """
    Request `address` and return the complete response.

    Raises FetchCancelled as soon as `cancel` is set, FetchTimeout once `timeout`
    seconds have passed, and FetchTransportError for connection problems. Bytes
    read before any of those are dropped: a response is all or nothing.
    """
    cancel = cancel or threading.Event()
    deadline = time.monotonic() + timeout

    def check():
        if cancel.is_set():
            raise FetchCancelled()
        if time.monotonic() >= deadline:
            raise FetchTimeout(timeout)

    check()
    try:
        sock = connect(address, mode, timeout=timeout, verify=verify, proxy=proxy)
    except TransportError as e:
        check()
        if e.kind is TransportErrorKind.TIMEOUT:
            raise FetchTimeout(timeout) from e
        raise FetchTransportError(e) from e

    chunks = []
    with sock:
        try:
            sock.settimeout(POLL_INTERVAL)
            sock.sendall(address.request())
            while True:
                check()
                try:
                    data = sock.recv(CHUNK_SIZE)
                except socket.timeout:
                    continue
                if not data:
                    break
                chunks.append(data)
        except FetchError:
            chunks.clear()
            raise
        except OSError as e:
            chunks.clear()
            raise FetchTransportError(TransportError(classify(e), str(e))) from e
    return b"".join(chunks)


class FetchWorker:
    """
    One outstanding fetch running on a daemon thread.

    The worker never touches navigation state: it hands back exactly one value,
    either the response bytes or the FetchError, through a one-slot queue.
    """

    def __init__(self, address, fetch_func=fetch, **options):
        self.address = address
        self.cancel_event = threading.Event()
        self.started = time.monotonic()
        self._result = queue.Queue(maxsize=1)
        self._fetch = fetch_func
        self._options = options
        self._thread = threading.Thread(target=self._run, name=f"fetch {address}", daemon=True)

    def start(self) -> "FetchWorker":
        logger.log(f"fetch start: {self.address}")
        self._thread.start()
        return self

    def _run(self):
        try:
            outcome = self._fetch(self.address, cancel=self.cancel_event, **self._options)
        except FetchError as e:
            outcome = e
        except Exception as e:  # anything else still has to reach the owner as a value
            outcome = FetchTransportError(TransportError(TransportErrorKind.IO_ERROR, str(e)))
        self._result.put(outcome)

    def cancel(self):
        self.cancel_event.set()

    def poll(self, wait: float = 0.0):
        """
        Return the finished outcome (bytes or a FetchError) or None while still running.
        A cancelled worker always reports FetchCancelled, whatever it produced.
        """
        if self.cancel_event.is_set():
            return FetchCancelled()
        try:
            outcome = self._result.get(timeout=wait) if wait else self._result.get_nowait()
        except queue.Empty:
            return None
        if self.cancel_event.is_set():
            return FetchCancelled()
        return outcome

    def wait(self):
        """Block until the fetch has an outcome. Used by non-interactive mode."""
        while True:
            outcome = self.poll(wait=POLL_INTERVAL)
            if outcome is not None:
                return outcome
