from __future__ import annotations

import base64
import secrets


ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_VALUES = {ch: i for i, ch in enumerate(ALPHABET)}


def encode_base32(raw: bytes) -> str:
    # RFC 4648 zero-fills the last group, so only the "=" padding has to go.
    return base64.b32encode(bytes(raw)).decode("ascii").rstrip("=")


def decode_base32(encoded: str) -> bytes:
    """Decode Base32 text leniently.

    Whitespace is removed and case is ignored. Characters outside the
    alphabet (including ``=``) are skipped, and leftover bits that do not
    fill a whole byte are dropped.
    """
    s = "".join((encoded or "").split()).upper()

    out = bytearray()
    buf = 0
    bits = 0
    for ch in s:
        v = _VALUES.get(ch)
        if v is None:
            continue
        buf = ((buf << 5) | v) & 0xFFF
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buf >> bits) & 0xFF)
    return bytes(out)


def generate_base32_secret(*, nbytes: int = 20) -> str:
    raw = secrets.token_bytes(nbytes)
    return encode_base32(raw)
