"""Runtime settings read from ``WORDSPLIT_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_WORDS_FILE = DATA_DIR / "words.txt"
DEFAULT_CACHE_FILE = Path.home() / ".cache" / "wordsplit" / "words.json"


@dataclass(frozen=True)
class RoundConfig:
    words_per_round: int = 6
    round_time: int = 30  # seconds

    def __post_init__(self) -> None:
        if self.words_per_round < 1:
            raise ValueError("words_per_round must be >= 1")
        if self.round_time < 1:
            raise ValueError("round_time must be >= 1")


@dataclass(frozen=True)
class Settings:
    host: str = "127.0.0.1"
    port: int = 8000
    words_file: Path = DEFAULT_WORDS_FILE
    # None disables the on-disk word cache
    cache_file: Optional[Path] = DEFAULT_CACHE_FILE
    word_length: int = 8
    round_config: RoundConfig = field(default_factory=RoundConfig)
    pool_baseline: int = 500
    pool_increment: int = 500
    max_pool_size: int = 10000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(f"WORDSPLIT_{name}", default)

        cache = get("CACHE_FILE", str(DEFAULT_CACHE_FILE))
        return cls(
            host=get("HOST", cls.host),
            port=int(get("PORT", str(cls.port))),
            words_file=Path(get("WORDS_FILE", str(DEFAULT_WORDS_FILE))),
            cache_file=Path(cache) if cache else None,
            word_length=int(get("WORD_LENGTH", str(cls.word_length))),
            round_config=RoundConfig(
                words_per_round=int(get("WORDS_PER_ROUND", "6")),
                round_time=int(get("ROUND_TIME", "30")),
            ),
            pool_baseline=int(get("POOL_BASELINE", str(cls.pool_baseline))),
            pool_increment=int(get("POOL_INCREMENT", str(cls.pool_increment))),
            max_pool_size=int(get("MAX_POOL_SIZE", str(cls.max_pool_size))),
            log_level=get("LOG_LEVEL", cls.log_level).upper(),
        )
