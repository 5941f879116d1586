from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    output_dir: Path = Path("output")
    cache_results: bool = True


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return Settings(
        output_dir=Path(os.getenv("ROWSEARCH_OUTPUT_DIR", "output")),
        cache_results=_env_flag("ROWSEARCH_CACHE_RESULTS", True),
    )
