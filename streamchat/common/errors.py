"""Exception hierarchy shared by the handshake, the session and the entry points."""


class StreamChatError(Exception):
    """Base class for every fatal session error."""


class TransportError(StreamChatError, ConnectionError):
    """bind/listen/accept/connect/send/recv failed."""


class IncompleteHandshake(TransportError):
    """Peer closed the stream before sending its full public key."""

    def __init__(self, received: int, expected: int):
        super().__init__(f"peer closed after {received} of {expected} handshake bytes")
        self.received = received
        self.expected = expected
