"""
Turn-taking encrypted chat over an already keyed connection.

One routine serves both roles; only the first turn differs:

    listener  (first sender):   send, receive, send, receive, ...
    connector (first receiver): receive, send, receive, send, ...

Each peer owns an independent KeystreamGenerator seeded with the shared
seed. They stay in step only because both sides consume keystream in the
same order, turn by turn. There is no framing: one recv() of up to
CHAT_RECV_BYTES is one message, so a longer or fragmented message breaks
the turn order (known limitation, kept as is).
"""

import socket
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from streamchat.common.net import recv_some, send_all
from streamchat.common.protocol import CHAT_RECV_BYTES, LcgParams
from streamchat.common.utils import decode_text
from streamchat.crypto.keystream import KeystreamGenerator, xor_bytes


class Turn(str, Enum):
    SEND = "send"
    RECEIVE = "receive"


class Role(str, Enum):
    LISTENER = "listener"
    CONNECTOR = "connector"

    @property
    def first_turn(self) -> Turn:
        return Turn.SEND if self is Role.LISTENER else Turn.RECEIVE


PEER_CLOSED = "peer_closed"
INPUT_CLOSED = "input_closed"


@dataclass(frozen=True)
class TraceEvent:
    direction: str   # "encrypt" | "decrypt"
    plain: bytes
    key: bytes
    cipher: bytes


@dataclass
class SessionSummary:
    sent: int = 0
    received: int = 0
    reason: Optional[str] = None


class ChatSession:
    """
    Duplex chat loop on two handles of one connection.

    :param reader: handle used only for recv()
    :param writer: handle used only for sendall()
    :param seed: 32-bit keystream seed from the handshake
    :param read_line: returns one line of local input, "" at end of input
    :param display: receives each decrypted message as text
    :param on_trace: optional hook called with every TraceEvent
    """

    def __init__(
        self,
        reader: socket.socket,
        writer: socket.socket,
        seed: int,
        lcg: Optional[LcgParams] = None,
        read_line: Optional[Callable[[], str]] = None,
        display: Optional[Callable[[str], None]] = None,
        on_trace: Optional[Callable[[TraceEvent], None]] = None,
        recv_size: int = CHAT_RECV_BYTES,
    ):
        self.reader = reader
        self.writer = writer
        self.keystream = KeystreamGenerator(seed, lcg)
        self.read_line = read_line or sys.stdin.readline
        self.display = display or print
        self.on_trace = on_trace
        self.recv_size = recv_size
        self.summary = SessionSummary()

    # ------------- Cipher -------------

    def _xor(self, direction: str, data: bytes) -> bytes:
        key = self.keystream.keystream(len(data))
        out = xor_bytes(data, key)
        if self.on_trace:
            if direction == "encrypt":
                self.on_trace(TraceEvent(direction, plain=data, key=key, cipher=out))
            else:
                self.on_trace(TraceEvent(direction, plain=out, key=key, cipher=data))
        return out

    def encrypt(self, plaintext: bytes) -> bytes:
        return self._xor("encrypt", plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        return self._xor("decrypt", ciphertext)

    # ------------- Turns -------------

    def _next_message(self) -> Optional[bytes]:
        # Blank lines are skipped without touching the keystream or the socket.
        while True:
            line = self.read_line()
            if not line:
                return None
            text = line.rstrip()
            if text:
                return text.encode("utf-8")

    def send_turn(self) -> bool:
        """Read, encrypt and send one message. False once local input is exhausted."""
        msg = self._next_message()
        if msg is None:
            self.summary.reason = INPUT_CLOSED
            return False
        send_all(self.writer, self.encrypt(msg))
        self.summary.sent += 1
        return True

    def receive_turn(self) -> bool:
        """Receive, decrypt and display one message. False once the peer closed."""
        data = recv_some(self.reader, self.recv_size)
        if not data:
            self.summary.reason = PEER_CLOSED
            return False
        self.display(decode_text(self.decrypt(data)))
        self.summary.received += 1
        return True

    def run(self, first: Turn) -> SessionSummary:
        """
        Alternate turns starting with `first` until the peer closes or local
        input ends. Socket faults propagate as TransportError.
        """
        if first is Turn.SEND:
            turns = (self.send_turn, self.receive_turn)
        else:
            turns = (self.receive_turn, self.send_turn)

        while True:
            for turn in turns:
                if not turn():
                    return self.summary

    # ------------- Lifecycle -------------

    def close(self) -> None:
        self.reader.close()
        self.writer.close()

    def __enter__(self) -> "ChatSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
