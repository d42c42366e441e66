"""LCG keystream generator + XOR stream cipher (encrypt == decrypt)."""

from typing import Optional

from streamchat.common.protocol import LcgParams


class KeystreamGenerator:
    """
    Linear-congruential byte generator:

        state = (a * state + c) mod m
        byte  = top 8 bits of the new state

    Not cryptographically secure; the sequence is fully determined by the seed.
    """

    def __init__(self, seed: int, params: Optional[LcgParams] = None):
        self.params = params or LcgParams()
        if not 0 <= seed < self.params.m:
            raise ValueError("seed does not fit the generator state")
        self.state = seed
        self._shift = self.params.state_bits - 8

    def next_byte(self) -> int:
        p = self.params
        self.state = (p.a * self.state + p.c) % p.m
        return self.state >> self._shift

    def keystream(self, n: int) -> bytes:
        """Return the next n keystream bytes."""
        return bytes(self.next_byte() for _ in range(n))

    def apply(self, data: bytes) -> bytes:
        """
        XOR data with the next len(data) keystream bytes.

        :param data: plaintext or ciphertext
        :return: same-length output
        """
        return xor_bytes(data, self.keystream(len(data)))


def xor_bytes(data: bytes, key: bytes) -> bytes:
    if len(data) != len(key):
        raise ValueError("data and key must have the same length")
    return bytes(d ^ k for d, k in zip(data, key))
