"""Socket helpers: every OSError leaves this module as a TransportError."""

import socket
from typing import Tuple

from streamchat.common.errors import TransportError


# ------------- Listener / connector -------------


def parse_port(value) -> int:
    """Parse a TCP port (0-65535) from a string or int; ValueError otherwise."""
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid port: {value!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range 0-65535: {port}")
    return port


def open_listener(host: str, port: int, backlog: int = 1) -> socket.socket:
    """Bind and listen; the caller accepts exactly one peer."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.bind((host, port))
        s.listen(backlog)
    except (OSError, OverflowError) as e:
        s.close()
        raise TransportError(f"cannot listen on {host}:{port}: {e}") from e
    return s


def accept_one(listener: socket.socket) -> Tuple[socket.socket, Tuple[str, int]]:
    try:
        return listener.accept()
    except OSError as e:
        raise TransportError(f"accept failed: {e}") from e


def connect_to(host: str, port: int) -> socket.socket:
    try:
        return socket.create_connection((host, port))
    except (OSError, OverflowError) as e:
        raise TransportError(f"cannot connect to {host}:{port}: {e}") from e


def split_handles(sock: socket.socket) -> Tuple[socket.socket, socket.socket]:
    """
    Duplicate the connection into (reader, writer).

    Both handles refer to the same connection; the reader is only used for
    recv() and the writer only for sendall().
    """
    try:
        reader = sock.dup()
    except OSError as e:
        raise TransportError(f"cannot duplicate connection: {e}") from e
    return reader, sock


# ------------- Byte I/O -------------


def send_all(sock: socket.socket, data: bytes) -> None:
    try:
        sock.sendall(data)
    except OSError as e:
        raise TransportError(f"send failed: {e}") from e


def recv_some(sock: socket.socket, max_bytes: int) -> bytes:
    """
    One recv() call. b"" means the peer closed the connection.
    """
    try:
        return sock.recv(max_bytes)
    except OSError as e:
        raise TransportError(f"recv failed: {e}") from e


def recv_exact(sock: socket.socket, n: int) -> bytes:
    """
    Read until n bytes arrived or the stream closed.
    Returns fewer than n bytes only if the peer closed first.
    """
    buf = bytearray()
    while len(buf) < n:
        chunk = recv_some(sock, n - len(buf))
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)
