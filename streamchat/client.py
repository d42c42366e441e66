"""Connecting peer: dials the listener and waits for it to speak first."""

import argparse
import os
import sys
from typing import Optional, Sequence, Tuple

from dotenv import load_dotenv

from streamchat.common.errors import StreamChatError
from streamchat.common.net import connect_to, parse_port
from streamchat.common.protocol import SessionParams
from streamchat.peer import run_peer
from streamchat.session import Role

load_dotenv()


# ------------------------ Config ------------------------


def load_env() -> str:
    host = os.getenv("CHAT_HOST", "127.0.0.1")
    port = os.getenv("CHAT_PORT", "8080")
    return f"{host}:{port}"


def parse_addr(addr: str) -> Tuple[str, int]:
    """
    Split "host:port"; a bare host keeps the default port.
    """
    host, sep, port = addr.rpartition(":")
    if not sep:
        return addr, parse_port(os.getenv("CHAT_PORT", "8080"))
    if not host:
        raise ValueError(f"missing host in {addr!r}")
    try:
        return host.strip("[]"), parse_port(port)
    except ValueError as e:
        raise ValueError(f"{e} in {addr!r}") from None


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    default_addr = load_env()
    parser = argparse.ArgumentParser(description="Stream cipher chat with Diffie-Hellman key generation (connector)")
    parser.add_argument("addr", nargs="?", default=default_addr, help=f"host:port of the listener (default {default_addr})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print handshake values and cipher traces")
    return parser.parse_args(argv)


# ------------------------ Main client flow ------------------------


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    try:
        host, port = parse_addr(args.addr)
        params = SessionParams.from_env()
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 1

    print(f"[CONFIG] Connecting to {host}:{port}...")
    try:
        with connect_to(host, port) as conn:
            print("[NET] Connected.")
            run_peer(conn, Role.CONNECTOR, params, peer_label="SERVER", verbose=args.verbose)
    except StreamChatError as e:
        print(f"[ERROR] {e}")
        return 1
    except KeyboardInterrupt:
        print("\n[*] Interrupted.")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
