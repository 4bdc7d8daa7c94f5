"""Runtime settings from the environment (and .env via python-dotenv)."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

DEFAULT_DATA = "./data"
DEFAULT_STATE = "~/.ceilidh/state.json"


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    data: str = DEFAULT_DATA  # directory or http(s) base URL
    state: str | None = DEFAULT_STATE  # None: keep state in memory only
    role_set: str | None = None
    timeout: float = 10.0
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            data=os.environ.get("CEILIDH_DATA", DEFAULT_DATA),
            state=os.environ.get("CEILIDH_STATE", DEFAULT_STATE) or None,
            role_set=os.environ.get("CEILIDH_ROLE_SET") or None,
            timeout=_float_env("CEILIDH_TIMEOUT", 10.0),
            log_level=os.environ.get("CEILIDH_LOG_LEVEL", "WARNING").upper(),
        )

    def override(self, **kwargs) -> Settings:
        """Copy with the non-None keyword values applied."""
        return replace(self, **{k: v for k, v in kwargs.items() if v is not None})

    def make_store(self):
        from .storage import JsonFileStore, MemoryStore

        if not self.state:
            return MemoryStore()
        return JsonFileStore(self.state)
