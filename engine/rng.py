from __future__ import annotations

from dataclasses import dataclass

MASK32 = 0xFFFFFFFF
GOLDEN_GAMMA = 0x9E3779B9


@dataclass(frozen=True, slots=True)
class RngState:
    """Plain-data state of the xorshift128 generator."""

    seed: int
    words: tuple[int, int, int, int]

    def to_dict(self) -> dict:
        return {"seed": self.seed, "state": list(self.words)}

    @staticmethod
    def from_dict(data: dict) -> "RngState":
        words = tuple(int(w) & MASK32 for w in data["state"])
        if len(words) != 4:
            raise ValueError(f"expected 4 state words, got {len(words)}")
        return RngState(seed=int(data["seed"]), words=words)


def _splitmix32(value: int) -> tuple[int, int]:
    value = (value + GOLDEN_GAMMA) & MASK32
    z = value
    z = ((z ^ (z >> 16)) * 0x85EBCA6B) & MASK32
    z = ((z ^ (z >> 13)) * 0xC2B2AE35) & MASK32
    z ^= z >> 16
    return z, value


def seed_rng(seed: int) -> RngState:
    if isinstance(seed, bool) or not isinstance(seed, int) or seed <= 0:
        raise ValueError(f"seed must be a positive integer, got {seed!r}")

    words = []
    cursor = (seed ^ (seed >> 32)) & MASK32
    for _ in range(4):
        word, cursor = _splitmix32(cursor)
        words.append(word)
    if not any(words):
        # xorshift never leaves the all-zero state.
        words[0] = GOLDEN_GAMMA
    return RngState(seed=seed, words=(words[0], words[1], words[2], words[3]))


def next_u32(state: RngState) -> tuple[int, RngState]:
    x, y, z, w = state.words
    t = (x ^ (x << 11)) & MASK32
    new_w = (w ^ (w >> 19) ^ t ^ (t >> 8)) & MASK32
    return new_w, RngState(seed=state.seed, words=(y, z, w, new_w))
