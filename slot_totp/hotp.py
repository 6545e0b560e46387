from __future__ import annotations

import hashlib
import hmac
import struct
import time
from typing import Optional

from .errors import UnsupportedAlgorithm


_MIN_DIGEST_SIZE = 20
_U64_MASK = 0xFFFFFFFFFFFFFFFF


def digest_name(algorithm: str) -> str:
    """Return the hashlib name for ``algorithm`` or raise UnsupportedAlgorithm.

    Dynamic truncation reads up to byte 15 + 3 of the digest, so anything
    shorter than SHA-1 (and the variable-length SHAKE family) is refused.
    """
    raw = str(algorithm or "").strip().lower()
    # "SHA-256" -> sha256, "SHA3-256" -> sha3_256
    for name in (raw.replace("-", ""), raw.replace("-", "_")):
        try:
            size = hashlib.new(name).digest_size
        except (TypeError, ValueError):
            continue
        if size < _MIN_DIGEST_SIZE:
            break
        return name
    raise UnsupportedAlgorithm(algorithm)


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def time_counter(timestamp_ms: Optional[float] = None, *, step: int = 30) -> int:
    if timestamp_ms is None:
        timestamp_ms = now_ms()
    return int(timestamp_ms // 1000 // int(step))


def pack_counter(counter: int) -> bytes:
    # Window arithmetic can go below zero near the epoch; wrap like a u64.
    return struct.pack(">Q", int(counter) & _U64_MASK)


def hmac_digest(*, key: bytes, msg: bytes, algorithm: str = "sha1") -> bytes:
    return hmac.new(key, msg, digest_name(algorithm)).digest()


def hotp(*, key: bytes, counter: int, digits: int = 6, algorithm: str = "sha1") -> str:
    digest = hmac_digest(key=key, msg=pack_counter(counter), algorithm=algorithm)
    off = digest[-1] & 0x0F
    code_int = struct.unpack(">I", digest[off:off + 4])[0] & 0x7FFFFFFF
    mod = 10**digits
    return str(code_int % mod).zfill(digits)
