from __future__ import annotations


class TotpError(Exception):
    pass


class EmptyKey(TotpError, ValueError):
    def __init__(self, slot: str) -> None:
        self.slot = slot
        super().__init__(f"Key for type '{slot}' cannot be empty")


class KeyNotFound(TotpError, LookupError):
    def __init__(self, slot: str) -> None:
        self.slot = slot
        super().__init__(f"Key not found for type '{slot}'")


class UnsupportedAlgorithm(TotpError, ValueError):
    def __init__(self, algorithm: str) -> None:
        self.algorithm = algorithm
        super().__init__(f"unsupported hash algorithm: {algorithm!r}")
