from __future__ import annotations

import dataclasses
import hmac
import threading
from typing import Any, Callable, Mapping, Optional

from .base32 import generate_base32_secret
from .derive import composite_key
from .hotp import hotp, time_counter
from .keystore import KeyStore
from .settings import EngineSettings


EventHook = Callable[[str, Mapping[str, Any]], None]


class Totp:
    """RFC 6238 codes over a table of named key slots.

    Each slot ("register", "recover", ...) holds its own Base32 secret. A
    derivation parameter, when given, turns the slot secret into a
    per-purpose sub-key for that one call. Configuration is per instance;
    nothing is shared between engines.
    """

    def __init__(
        self,
        *,
        window: int = 10,
        step: int = 30,
        length: int = 6,
        algorithm: str = "sha1",
        on_event: Optional[EventHook] = None,
    ) -> None:
        self._settings = EngineSettings(
            window=int(window),
            step=int(step),
            length=int(length),
            algorithm=str(algorithm),
        )
        self._lock = threading.Lock()
        self._keys = KeyStore()
        self._on_event = on_event

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        *,
        on_event: Optional[EventHook] = None,
    ) -> "Totp":
        return cls(
            window=settings.window,
            step=settings.step,
            length=settings.length,
            algorithm=settings.algorithm,
            on_event=on_event,
        )

    @property
    def settings(self) -> EngineSettings:
        with self._lock:
            return self._settings

    @property
    def window(self) -> int:
        return self.settings.window

    @property
    def step(self) -> int:
        return self.settings.step

    @property
    def length(self) -> int:
        return self.settings.length

    @property
    def algorithm(self) -> str:
        return self.settings.algorithm

    @property
    def keys(self) -> KeyStore:
        return self._keys

    def _update(self, **changes) -> None:
        with self._lock:
            self._settings = dataclasses.replace(self._settings, **changes)

    def set_window(self, window: int) -> None:
        self._update(window=int(window))

    def set_step(self, step: int) -> None:
        self._update(step=int(step))

    def set_length(self, length: int) -> None:
        self._update(length=int(length))

    def get_length(self) -> int:
        return self.length

    def set_algorithm(self, algorithm: str) -> None:
        self._update(algorithm=str(algorithm))

    def set_key(self, slot: str, key: str) -> None:
        self._keys.set_key(slot, key)
        self._emit("SETKEY", slot=slot)

    def generate_key(self) -> str:
        return generate_base32_secret(nbytes=20)

    def counter(self, timestamp_ms: Optional[float] = None) -> int:
        return time_counter(timestamp_ms, step=self.step)

    def _composite_key(
        self,
        slot: str,
        derivation_param: Optional[str],
        algorithm: str,
    ) -> bytes:
        encoded = self._keys.get_key(slot)
        return composite_key(encoded, derivation_param, algorithm=algorithm)

    def generate(
        self,
        slot: str,
        derivation_param: Optional[str] = None,
        *,
        timestamp_ms: Optional[float] = None,
    ) -> str:
        cfg = self.settings
        key = self._composite_key(slot, derivation_param, cfg.algorithm)
        counter = time_counter(timestamp_ms, step=cfg.step)
        code = hotp(key=key, counter=counter, digits=cfg.length, algorithm=cfg.algorithm)
        self._emit("GEN", slot=slot, derived=derivation_param is not None)
        return code

    def match_offset(
        self,
        slot: str,
        token: str,
        derivation_param: Optional[str] = None,
        *,
        timestamp_ms: Optional[float] = None,
    ) -> Optional[int]:
        """Return the step offset at which ``token`` matches, or None.

        Offsets run from ``-window`` to ``+window``; the first hit wins.
        Callers that need replay protection can add the offset to
        ``counter()`` and remember the consumed counter themselves.
        """
        cfg = self.settings
        key = self._composite_key(slot, derivation_param, cfg.algorithm)
        current = time_counter(timestamp_ms, step=cfg.step)
        candidate = str(token).encode("utf-8")

        found: Optional[int] = None
        for off in range(-cfg.window, cfg.window + 1):
            code = hotp(
                key=key,
                counter=current + off,
                digits=cfg.length,
                algorithm=cfg.algorithm,
            )
            if hmac.compare_digest(code.encode("ascii"), candidate):
                found = off
                break

        self._emit(
            "CHECK",
            slot=slot,
            derived=derivation_param is not None,
            ok=found is not None,
            off=found,
        )
        return found

    def validate(
        self,
        slot: str,
        token: str,
        derivation_param: Optional[str] = None,
        *,
        timestamp_ms: Optional[float] = None,
    ) -> bool:
        found = self.match_offset(
            slot,
            token,
            derivation_param,
            timestamp_ms=timestamp_ms,
        )
        return found is not None

    def _emit(self, name: str, **fields: Any) -> None:
        if self._on_event is not None:
            self._on_event(name, fields)
