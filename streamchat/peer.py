"""Handshake + chat for one connected peer, with console status output."""

import socket
from typing import Callable, Optional

from streamchat.common.net import split_handles
from streamchat.common.protocol import SessionParams
from streamchat.common.utils import decode_text, hex_bytes, secret_fingerprint
from streamchat.handshake import KeyExchangeResult, exchange_keys
from streamchat.session import ChatSession, Role, SessionSummary, TraceEvent, Turn


# ------------------------ Console output ------------------------


def print_handshake(result: KeyExchangeResult, params: SessionParams, verbose: bool) -> None:
    if verbose:
        print(f"p = {params.dh.p:016X} (public modulus)")
        print(f"g = {params.dh.g} (generator)")
        print(f"-> Send our public: {result.public_key:016X}")
        print(f"<- Receive their public: {result.peer_public_key:016X}")
        print(f"secret = {result.shared_secret:016X}")
    print(f"[VERIFY] Session fingerprint: {secret_fingerprint(result.shared_secret)}")
    print("[VERIFY] Compare it with your peer out of band.")
    lcg = params.lcg
    print(f"[STREAM] LCG (a={lcg.a}, c={lcg.c}, m=2^{lcg.state_bits})")
    if verbose:
        print(f"[STREAM] Seed: {result.seed:08X}")


def print_trace(event: TraceEvent) -> None:
    n = len(event.cipher)
    if event.direction == "encrypt":
        print("[ENCRYPT]")
        print(f'Plain: {list(event.plain)} ("{decode_text(event.plain)}")')
        print(f"Key: {hex_bytes(event.key)}")
        print(f"Cipher: {list(event.cipher)}")
        print(f"[NETWORK] Sending encrypted message ({n} bytes)...")
    else:
        print(f"[NETWORK] Received encrypted message ({n} bytes)")
        print("[DECRYPT]")
        print(f"Cipher: {list(event.cipher)}")
        print(f"Key: {hex_bytes(event.key)}")
        print(f'Plain: {list(event.plain)} -> "{decode_text(event.plain)}"')


# ------------------------ Session flow ------------------------


def run_peer(
    conn: socket.socket,
    role: Role,
    params: SessionParams,
    peer_label: str,
    verbose: bool = False,
    read_line: Optional[Callable[[], str]] = None,
) -> SessionSummary:
    """
    Key exchange on `conn`, then chat until either side stops.

    Takes ownership of `conn`; both of its handles are closed on return.
    """
    print("[DH] Starting key exchange...")
    result = exchange_keys(conn, params.dh)
    print("[DH] Shared secret established.")
    print_handshake(result, params, verbose)

    reader, writer = split_handles(conn)
    try:
        session = ChatSession(
            reader,
            writer,
            result.seed,
            lcg=params.lcg,
            read_line=read_line,
            display=lambda text: print(f"[{peer_label}] {text}"),
            on_trace=print_trace if verbose else None,
        )
    except ValueError:
        reader.close()
        raise

    print("[CHAT] Secure channel established. Type a message, Ctrl-D to leave.")
    if role.first_turn is Turn.RECEIVE:
        print(f"[CHAT] Waiting for {peer_label.lower()} to speak first...")

    with session:
        summary = session.run(role.first_turn)

    print(f"[CHAT] Session ended ({summary.reason}): sent {summary.sent}, received {summary.received}.")
    return summary
