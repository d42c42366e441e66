"""
DH key exchange over a stream socket.

Both roles run the same sequence:

    send own public key (8 bytes, big-endian)
    receive peer public key (exactly 8 bytes)
    shared = peer^private mod p ; seed = shared >> 32

Sending first never deadlocks: the 8 bytes sit in the kernel buffer while
each side blocks on its own receive.
"""

import socket
from dataclasses import dataclass
from typing import Optional

from streamchat.common.errors import IncompleteHandshake
from streamchat.common.net import recv_exact, send_all
from streamchat.common.protocol import PUBLIC_KEY_FRAME_LEN, DhParams, PublicKeyFrame
from streamchat.crypto.dh import (
    compute_public,
    compute_shared,
    derive_seed_from_shared,
    generate_private,
)


@dataclass(frozen=True)
class KeyExchangeResult:
    public_key: int
    peer_public_key: int
    shared_secret: int
    seed: int


def exchange_keys(
    sock: socket.socket,
    params: Optional[DhParams] = None,
    private_key: Optional[int] = None,
) -> KeyExchangeResult:
    """
    Run the handshake on a connected socket.

    :param sock: connected stream socket
    :param params: (p, g); defaults to the compiled-in session values
    :param private_key: fixed exponent for tests; drawn at random otherwise
    :return: public values, shared secret and keystream seed
    :raises IncompleteHandshake: stream closed before 8 bytes arrived
    :raises TransportError: any socket fault
    """
    params = params or DhParams()
    private = generate_private() if private_key is None else private_key

    public = compute_public(params.g, params.p, private)
    send_all(sock, PublicKeyFrame(public_key=public).to_bytes())

    raw = recv_exact(sock, PUBLIC_KEY_FRAME_LEN)
    if len(raw) < PUBLIC_KEY_FRAME_LEN:
        raise IncompleteHandshake(len(raw), PUBLIC_KEY_FRAME_LEN)
    peer_public = PublicKeyFrame.from_bytes(raw).public_key

    shared = compute_shared(peer_public, params.p, private)
    del private

    return KeyExchangeResult(
        public_key=public,
        peer_public_key=peer_public,
        shared_secret=shared,
        seed=derive_seed_from_shared(shared),
    )
