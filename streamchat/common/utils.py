"""Common utility helpers: fingerprints, hex formatting, lossy text decoding."""

from cryptography.hazmat.primitives import hashes


def sha256_digest(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(data)
    return digest.finalize()


def secret_fingerprint(shared_secret: int, length: int = 8) -> str:
    """
    Short SHA-256 fingerprint of the shared secret, e.g. "1a:2b:...".

    Both peers print it so users can compare out of band; the session
    itself never checks it.
    """
    h = sha256_digest(shared_secret.to_bytes(8, "big"))
    return ":".join(f"{b:02x}" for b in h[:length])


def hex_bytes(data: bytes) -> str:
    """Space-separated uppercase hex, e.g. "0A FF 10"."""
    return " ".join(f"{b:02X}" for b in data)


def decode_text(data: bytes) -> str:
    """
    Decode UTF-8 plaintext; anything that is not valid text shows as "".
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return ""
