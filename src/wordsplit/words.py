"""Canonical word pool, text loader and the versioned JSON word-list cache."""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_WORD_LENGTH = 8
CACHE_VERSION = "words-v1"


class WordListError(RuntimeError):
    """The word source could not be loaded and no usable cache exists."""


@dataclass(frozen=True)
class WordPool:
    """Ordered, read-only list of equal-length words.

    The leading entries are the "easy" ones: difficulty is expressed as how
    many of them are eligible for a round.
    """

    words: Tuple[str, ...]
    word_length: int = DEFAULT_WORD_LENGTH

    def __post_init__(self) -> None:
        if self.word_length < 2 or self.word_length % 2:
            raise ValueError("word_length must be an even number >= 2")
        object.__setattr__(self, "words", tuple(self.words))
        for index, word in enumerate(self.words):
            if len(word) != self.word_length:
                raise ValueError(
                    f"Word at index {index} {word!r} is not "
                    f"{self.word_length} characters long"
                )

    @classmethod
    def from_lines(
        cls, lines: Iterable[str], word_length: int = DEFAULT_WORD_LENGTH
    ) -> "WordPool":
        """Build a pool from raw lines, keeping only words of ``word_length``.

        Blank lines and repeats are dropped; the first occurrence keeps its
        position.
        """
        seen = set()
        words: List[str] = []
        for line in lines:
            word = line.strip()
            if len(word) != word_length or word in seen:
                continue
            seen.add(word)
            words.append(word)
        return cls(words=tuple(words), word_length=word_length)

    def __len__(self) -> int:
        return len(self.words)

    def eligible(self, pool_size: int) -> Sequence[str]:
        return self.words[: max(0, min(pool_size, len(self.words)))]

    def sample(
        self, n: int, pool_size: int, rng: Optional[random.Random] = None
    ) -> List[str]:
        """Draw up to ``n`` distinct words from the first ``pool_size`` entries.

        Each draw is uniform over the words not picked yet. When the eligible
        prefix is shorter than ``n`` all of it is returned.
        """
        rng = rng or random.Random()
        remaining = list(self.eligible(pool_size))
        chosen: List[str] = []
        while len(chosen) < n and remaining:
            chosen.append(remaining.pop(rng.randrange(len(remaining))))
        return chosen


class WordListCache:
    """Single-entry JSON cache of a loaded word list.

    Anything unexpected on read (missing file, bad JSON, other version,
    other source) is a miss; write failures are logged and dropped.
    """

    def __init__(self, path: Path | str, version: str = CACHE_VERSION) -> None:
        self.path = Path(path)
        self.version = version

    def read(self, source: str, word_length: int) -> Optional[List[str]]:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.debug("Word cache miss: %s does not exist", self.path)
            return None
        except (OSError, ValueError) as exc:
            logger.debug("Word cache unreadable at %s: %s", self.path, exc)
            return None

        if not isinstance(payload, dict):
            return None
        if payload.get("version") != self.version:
            logger.debug("Word cache version mismatch: %r", payload.get("version"))
            return None
        if payload.get("source") != source or payload.get("wordLength") != word_length:
            return None
        words = payload.get("words")
        if not isinstance(words, list) or not all(isinstance(w, str) for w in words):
            return None
        return words

    def write(self, source: str, word_length: int, words: Sequence[str]) -> None:
        payload = {
            "version": self.version,
            "source": source,
            "wordLength": word_length,
            "words": list(words),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write word cache %s: %s", self.path, exc)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove word cache %s: %s", self.path, exc)


def load_word_pool(
    source: Path | str,
    word_length: int = DEFAULT_WORD_LENGTH,
    cache: Optional[WordListCache] = None,
) -> WordPool:
    """Load the canonical pool, consulting ``cache`` before the source file.

    Raises:
        WordListError: the source is unreadable or holds no usable words.
    """
    source_path = Path(source)
    source_key = str(source_path.resolve())

    if cache is not None:
        cached = cache.read(source_key, word_length)
        if cached is not None:
            try:
                pool = WordPool.from_lines(cached, word_length)
            except ValueError as exc:
                logger.debug("Discarding corrupt word cache: %s", exc)
            else:
                if len(pool):
                    logger.info("Loaded %s words from cache %s", len(pool), cache.path)
                    return pool

    try:
        text = source_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise WordListError(f"Couldn't read word list {source_path}: {exc}") from exc

    pool = WordPool.from_lines(text.splitlines(), word_length)
    if not len(pool):
        raise WordListError(
            f"Word list {source_path} has no {word_length}-letter words"
        )
    logger.info("Loaded %s %s-letter words from %s", len(pool), word_length, source_path)

    if cache is not None:
        cache.write(source_key, word_length, pool.words)
    return pool
