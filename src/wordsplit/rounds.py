"""Tile generation and pair validation for a single round."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Collection, FrozenSet, Iterable, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Tile:
    # Tiles are addressed by position: two words may share a half.
    index: int
    text: str


@dataclass(frozen=True)
class RoundLayout:
    words: FrozenSet[str]
    tiles: Tuple[Tile, ...]

    def texts(self) -> List[str]:
        return [tile.text for tile in self.tiles]


def split_word(word: str) -> Tuple[str, str]:
    """Split ``word`` at its midpoint; the first half gets ``len // 2`` chars."""
    mid = len(word) // 2
    return word[:mid], word[mid:]


def shuffle_tiles(
    halves: Sequence[str], rng: Optional[random.Random] = None
) -> List[str]:
    """Return a uniformly shuffled copy of ``halves``."""
    rng = rng or random.Random()
    shuffled = list(halves)
    rng.shuffle(shuffled)
    return shuffled


def build_round(
    words: Iterable[str], rng: Optional[random.Random] = None
) -> RoundLayout:
    word_set = frozenset(words)
    halves: List[str] = []
    for word in sorted(word_set):
        halves.extend(split_word(word))
    tiles = tuple(
        Tile(index=i, text=text) for i, text in enumerate(shuffle_tiles(halves, rng))
    )
    return RoundLayout(words=word_set, tiles=tiles)


def is_match(first: str, second: str, words: Collection[str]) -> bool:
    """True if ``first + second`` (in pick order) is one of ``words``."""
    return first + second in words
