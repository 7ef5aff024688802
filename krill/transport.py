"""
Transport layer for krill.

Opens a byte stream to a gopher server in one of four modes: plain TCP, TLS over
TCP, through a local SOCKS5 proxy (Tor), or TLS through that proxy. The mode is
taken from configuration, never negotiated with the server.
"""
from __future__ import annotations

import enum
import socket
import ssl
import struct

DEFAULT_PROXY_HOST = "127.0.0.1"
DEFAULT_PROXY_PORT = 9050


class TransportMode(enum.Enum):
    PLAIN = "plain"
    TLS = "tls"
    TOR = "tor"
    TOR_TLS = "tor+tls"

    @classmethod
    def select(cls, tls: bool, tor: bool) -> "TransportMode":
        if tor:
            return cls.TOR_TLS if tls else cls.TOR
        return cls.TLS if tls else cls.PLAIN

    @property
    def encrypted(self) -> bool:
        return self in (TransportMode.TLS, TransportMode.TOR_TLS)

    @property
    def anonymized(self) -> bool:
        return self in (TransportMode.TOR, TransportMode.TOR_TLS)


class TransportErrorKind(enum.Enum):
    DNS_FAILURE = "dns failure"
    CONNECTION_REFUSED = "connection refused"
    TIMEOUT = "timed out"
    TLS_HANDSHAKE_FAILED = "tls handshake failed"
    PROXY_UNREACHABLE = "proxy unreachable"
    IO_ERROR = "i/o error"


class TransportError(Exception):
    def __init__(self, kind: TransportErrorKind, detail: str = ""):
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)
        self.kind = kind
        self.detail = detail


def classify(exc: OSError) -> TransportErrorKind:
    """Map a socket-level exception onto a transport error kind."""
    if isinstance(exc, socket.gaierror):
        return TransportErrorKind.DNS_FAILURE
    if isinstance(exc, (socket.timeout, TimeoutError)):
        return TransportErrorKind.TIMEOUT
    if isinstance(exc, (ssl.SSLError, ssl.CertificateError)):
        return TransportErrorKind.TLS_HANDSHAKE_FAILED
    if isinstance(exc, ConnectionRefusedError):
        return TransportErrorKind.CONNECTION_REFUSED
    return TransportErrorKind.IO_ERROR


def tls_context(verify: bool = True) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _recv_exact(sock: socket.socket, count: int) -> bytes:
    data = b""
    while len(data) < count:
        chunk = sock.recv(count - len(data))
        if not chunk:
            raise ConnectionError("proxy closed the connection")
        data += chunk
    return data


# SOCKS5 CONNECT reply codes we report by name
SOCKS_REPLIES = {
    1: "general failure",
    2: "connection not allowed",
    3: "network unreachable",
    4: "host unreachable",
    5: "connection refused",
    6: "ttl expired",
}


def socks5_connect(sock: socket.socket, host: str, port: int) -> None:
    """
    Ask the SOCKS5 proxy on `sock` to connect to host:port. The host name is sent
    unresolved so DNS lookups happen on the far side of the proxy.
    """
    sock.sendall(b"\x05\x01\x00")
    version, method = _recv_exact(sock, 2)
    if version != 5 or method != 0:
        raise TransportError(TransportErrorKind.PROXY_UNREACHABLE, "proxy refused handshake")

    name = host.encode("idna")
    sock.sendall(b"\x05\x01\x00\x03" + bytes([len(name)]) + name + struct.pack(">H", port))
    version, reply, _, atyp = _recv_exact(sock, 4)
    if reply != 0:
        reason = SOCKS_REPLIES.get(reply, f"reply {reply}")
        if reply == 5:
            raise TransportError(TransportErrorKind.CONNECTION_REFUSED, f"{host}:{port} via proxy")
        if reply == 4:
            raise TransportError(TransportErrorKind.DNS_FAILURE, f"{host} via proxy")
        raise TransportError(TransportErrorKind.PROXY_UNREACHABLE, reason)
    # skip the bound address
    if atyp == 1:
        _recv_exact(sock, 4 + 2)
    elif atyp == 4:
        _recv_exact(sock, 16 + 2)
    else:
        length = _recv_exact(sock, 1)[0]
        _recv_exact(sock, length + 2)


def connect(address, mode: TransportMode, timeout: float = 8.0, verify: bool = True,
            proxy: tuple = (DEFAULT_PROXY_HOST, DEFAULT_PROXY_PORT)) -> socket.socket:
    """
    Open a stream to `address` honoring `mode`. Every failure is raised as a
    TransportError; the returned socket is owned by the caller.
    """
    if mode.anonymized:
        try:
            sock = socket.create_connection(proxy, timeout=timeout)
        except OSError as e:
            raise TransportError(TransportErrorKind.PROXY_UNREACHABLE,
                                 f"{proxy[0]}:{proxy[1]} ({e})") from e
        try:
            socks5_connect(sock, address.host, address.port)
        except TransportError:
            sock.close()
            raise
        except OSError as e:
            sock.close()
            raise TransportError(TransportErrorKind.PROXY_UNREACHABLE, str(e)) from e
    else:
        try:
            sock = socket.create_connection((address.host, address.port), timeout=timeout)
        except OSError as e:
            raise TransportError(classify(e), f"{address.host}:{address.port}") from e

    if mode.encrypted:
        try:
            sock = tls_context(verify).wrap_socket(sock, server_hostname=address.host)
        except OSError as e:
            sock.close()
            kind = classify(e)
            if kind is not TransportErrorKind.TIMEOUT:
                kind = TransportErrorKind.TLS_HANDSHAKE_FAILED
            raise TransportError(kind, f"{address.host}:{address.port} ({e})") from e
    return sock
