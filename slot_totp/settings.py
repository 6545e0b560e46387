from __future__ import annotations

from dataclasses import dataclass
import os


ENV_PREFIX = "SLOT_TOTP_"


@dataclass(frozen=True)
class EngineSettings:
    window: int = 10
    step: int = 30
    length: int = 6
    algorithm: str = "sha1"


DEFAULTS = {
    "window": "10",
    "step": "30",
    "length": "6",
    "algorithm": "sha1",
    "data_dir": "",
}


def get_setting(key: str) -> str:
    value = os.environ.get(ENV_PREFIX + key.upper())
    if value is None:
        return DEFAULTS.get(key, "")
    return value


def _int_setting(key: str) -> int:
    raw = get_setting(key).strip() or DEFAULTS[key]
    try:
        return int(raw)
    except ValueError:
        return int(DEFAULTS[key])


def load_engine_settings() -> EngineSettings:
    return EngineSettings(
        window=_int_setting("window"),
        step=_int_setting("step"),
        length=_int_setting("length"),
        algorithm=get_setting("algorithm").strip().lower() or DEFAULTS["algorithm"],
    )


def data_dir() -> str:
    base_dir = get_setting("data_dir").strip()
    if not base_dir:
        base_dir = os.path.join(os.getcwd(), "data")
    os.makedirs(base_dir, exist_ok=True)
    return base_dir
