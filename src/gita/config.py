"""Runtime settings read from the environment (and a local .env file)."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    api_base_url: str = 'https://vedicscriptures.github.io'
    speech_base_url: str = 'https://api.murf.ai'
    murf_api_key: str | None = None
    relay_proxy_url: str | None = None
    relay_target_url: str | None = None
    native_rate: float = 1.0
    native_pitch: float = 1.0
    # variant key -> preferred streaming voice id
    preferred_voices: dict = field(default_factory=lambda: {
        'hindi': 'en-US-naomi',
        'english': 'bn-IN-ishani',
        'sivananda': 'bn-IN-ishani',
    })

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            api_base_url=_env('GITA_API_BASE_URL', cls.api_base_url),
            speech_base_url=_env('GITA_SPEECH_BASE_URL', cls.speech_base_url),
            murf_api_key=_env('MURF_API_KEY'),
            relay_proxy_url=_env('GITA_RELAY_PROXY_URL'),
            relay_target_url=_env('GITA_RELAY_TARGET_URL'),
            native_rate=_env_float('GITA_NATIVE_RATE', 1.0),
            native_pitch=_env_float('GITA_NATIVE_PITCH', 1.0),
        )
