"""Listening peer: accepts one connection and speaks first."""

import argparse
import os
import sys
from typing import Optional, Sequence, Tuple

from dotenv import load_dotenv

from streamchat.common.errors import StreamChatError
from streamchat.common.net import accept_one, open_listener, parse_port
from streamchat.common.protocol import SessionParams
from streamchat.peer import run_peer
from streamchat.session import Role

load_dotenv()


# ------------- Config -------------


def load_env_config() -> Tuple[str, str]:
    host = os.getenv("CHAT_BIND_HOST", "0.0.0.0")
    port = os.getenv("CHAT_PORT", "8080")
    return host, port


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    host, port = load_env_config()
    parser = argparse.ArgumentParser(description="Stream cipher chat with Diffie-Hellman key generation (listener)")
    parser.add_argument("port", nargs="?", default=port, help=f"Port to listen on (default {port})")
    parser.add_argument("--bind", default=host, help=f"Address to bind (default {host})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print handshake values and cipher traces")
    return parser.parse_args(argv)


# ------------- Main server flow -------------


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    try:
        port = parse_port(args.port)
        params = SessionParams.from_env()
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 1

    try:
        with open_listener(args.bind, port) as listener:
            print(f"[SERVER] Listening on {args.bind}:{port}")
            print("[SERVER] Waiting for client...")
            conn, addr = accept_one(listener)

        print(f"[NET] Client connected from {addr[0]}:{addr[1]}")
        with conn:
            run_peer(conn, Role.LISTENER, params, peer_label="CLIENT", verbose=args.verbose)
    except StreamChatError as e:
        print(f"[ERROR] {e}")
        return 1
    except KeyboardInterrupt:
        print("\n[*] Interrupted.")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
