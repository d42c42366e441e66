"""
Pydantic models for the streamchat session parameters and handshake frame.
Both peers must agree on every value here out of band.
"""

import os

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


# -------------------------
# Wire constants
# -------------------------

PUBLIC_KEY_FRAME_LEN = 8   # u64, big-endian
CHAT_RECV_BYTES = 1024     # one recv() of at most this many bytes == one message

DEFAULT_P = 0xD87FA3E291B4C7F3
DEFAULT_G = 2

DEFAULT_LCG_A = 1103515245
DEFAULT_LCG_C = 12345
DEFAULT_LCG_M = 1 << 32


# -------------------------
# Diffie–Hellman parameters
# -------------------------

class DhParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    p: int = DEFAULT_P
    g: int = DEFAULT_G

    @field_validator("p")
    @classmethod
    def _p_fits_u64(cls, v: int) -> int:
        if not 2 < v < (1 << 64):
            raise ValueError("p must be in (2, 2^64)")
        return v

    @model_validator(mode="after")
    def _g_below_p(self) -> "DhParams":
        if not 1 < self.g < self.p:
            raise ValueError("g must be in (1, p)")
        return self


# -------------------------
# Keystream (LCG) parameters
# -------------------------

class LcgParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    a: int = DEFAULT_LCG_A
    c: int = DEFAULT_LCG_C
    m: int = DEFAULT_LCG_M

    @field_validator("m")
    @classmethod
    def _m_power_of_two(cls, v: int) -> int:
        if v < (1 << 8) or v > (1 << 64) or v & (v - 1):
            raise ValueError("m must be a power of two between 2^8 and 2^64")
        return v

    @model_validator(mode="after")
    def _a_c_below_m(self) -> "LcgParams":
        if not 0 < self.a < self.m:
            raise ValueError("a must be in (0, m)")
        if not 0 <= self.c < self.m:
            raise ValueError("c must be in [0, m)")
        return self

    @property
    def state_bits(self) -> int:
        return self.m.bit_length() - 1


class SessionParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    dh: DhParams = DhParams()
    lcg: LcgParams = LcgParams()

    @classmethod
    def from_env(cls) -> "SessionParams":
        """
        Build parameters from CHAT_DH_P, CHAT_DH_G, CHAT_LCG_A, CHAT_LCG_C.
        Unset variables keep the defaults; values may be hex (0x...) or decimal.
        """
        dh = {}
        lcg = {}
        for env_name, target, field in (
            ("CHAT_DH_P", dh, "p"),
            ("CHAT_DH_G", dh, "g"),
            ("CHAT_LCG_A", lcg, "a"),
            ("CHAT_LCG_C", lcg, "c"),
        ):
            raw = os.getenv(env_name)
            if raw:
                try:
                    target[field] = int(raw.strip(), 0)
                except ValueError:
                    raise ValueError(f"{env_name} is not an integer: {raw!r}") from None
        return cls(dh=DhParams(**dh), lcg=LcgParams(**lcg))


# -------------------------
# Handshake frame
# -------------------------

class PublicKeyFrame(BaseModel):
    model_config = ConfigDict(frozen=True)

    public_key: int   # g^x mod p

    @field_validator("public_key")
    @classmethod
    def _fits_u64(cls, v: int) -> int:
        if not 0 <= v < (1 << 64):
            raise ValueError("public key must be an unsigned 64-bit integer")
        return v

    def to_bytes(self) -> bytes:
        return self.public_key.to_bytes(PUBLIC_KEY_FRAME_LEN, "big")

    @classmethod
    def from_bytes(cls, data: bytes) -> "PublicKeyFrame":
        if len(data) != PUBLIC_KEY_FRAME_LEN:
            raise ValueError(f"handshake frame must be {PUBLIC_KEY_FRAME_LEN} bytes, got {len(data)}")
        return cls(public_key=int.from_bytes(data, "big"))
