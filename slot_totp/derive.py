from __future__ import annotations

from typing import Optional

from .base32 import decode_base32
from .hotp import hmac_digest


def derive_key(base_key: bytes, param: str, *, algorithm: str = "sha1") -> bytes:
    return hmac_digest(key=base_key, msg=param.encode("utf-8"), algorithm=algorithm)


def composite_key(
    encoded_key: str,
    derivation_param: Optional[str] = None,
    *,
    algorithm: str = "sha1",
) -> bytes:
    """Turn a stored Base32 key into the bytes fed to HOTP.

    Without a derivation parameter this is just the decoded key. With one,
    the decoded key signs the parameter and the raw HMAC output is used, so a
    single stored secret can back any number of per-purpose sub-keys. An
    empty string counts as a parameter; only ``None`` means "absent".
    """
    base_key = decode_base32(encoded_key)
    if derivation_param is None:
        return base_key
    return derive_key(base_key, derivation_param, algorithm=algorithm)
