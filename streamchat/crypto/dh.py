"""Classic DH helpers over a 64-bit modulus + top-half seed derivation."""

import os

U64_MAX = (1 << 64) - 1

# These helpers are generic and work with any p, g provided by the caller.
# The session defaults live in streamchat.common.protocol.DhParams.


def _check_u64(name: str, value: int) -> None:
    if not 0 <= value <= U64_MAX:
        raise ValueError(f"{name} must be an unsigned 64-bit integer")


def modexp(base: int, exponent: int, modulus: int) -> int:
    """
    Square-and-multiply modular power: base^exponent mod modulus.

    Python ints never overflow, so base*base and result*base are always
    exact before reduction.

    :param base: u64 base
    :param exponent: u64 exponent
    :param modulus: non-zero u64 modulus
    :return: result in [0, modulus)
    """
    _check_u64("base", base)
    _check_u64("exponent", exponent)
    _check_u64("modulus", modulus)
    if modulus == 0:
        raise ValueError("modulus must be non-zero")

    if modulus == 1:
        return 0

    result = 1
    base %= modulus
    while exponent > 0:
        if exponent & 1:
            result = (result * base) % modulus
        exponent >>= 1
        base = (base * base) % modulus
    return result


def generate_private() -> int:
    """
    Draw a uniformly random 64-bit private exponent.

    :return: private exponent in [0, 2^64)
    """
    return int.from_bytes(os.urandom(8), "big")


def compute_public(g: int, p: int, private: int) -> int:
    """Public key g^private mod p via modexp; all three must fit in u64."""
    return modexp(g, private, p)


def compute_shared(peer_public: int, p: int, private: int) -> int:
    """
    Shared secret from the peer's 8-byte public key and our private exponent.

    A peer public key at or above p is reduced mod p by modexp first.
    """
    return modexp(peer_public, private, p)


def derive_seed_from_shared(shared_int: int) -> int:
    """
    Derive the 32-bit keystream seed from the shared DH integer:

        seed = Ks >> 32

    :param shared_int: Ks = g^(ab) mod p
    :return: high 32 bits of Ks
    """
    _check_u64("shared secret", shared_int)
    return shared_int >> 32
