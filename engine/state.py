from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from engine.cards import Card, SUIT_COUNT, decode_pile, encode_pile
from engine.rng import RngState

if TYPE_CHECKING:
    from engine.moves import Move

TABLEAU_PILES = 8
FOUNDATION_PILES = SUIT_COUNT

PackedPiles = tuple[bytes, ...]
StateKey = tuple[tuple[bytes, ...], tuple[bytes, ...]]


def _empty_piles(count: int) -> list[list[Card]]:
    return [[] for _ in range(count)]


def _pack_pile(pile: list[Card]) -> bytes:
    return bytes(card.id * 2 + (1 if card.face_up else 0) for card in pile)


@dataclass
class GameState:
    """
    Live game position.

    tableau/foundations are mutated in place by the move executor; every other
    consumer should work on ``clone()``.
    """

    seed: int
    rng_state: RngState
    tableau: list[list[Card]] = field(default_factory=lambda: _empty_piles(TABLEAU_PILES))
    foundations: list[list[Card]] = field(default_factory=lambda: _empty_piles(FOUNDATION_PILES))
    move_history: list["Move"] = field(default_factory=list)
    last_move: Optional["Move"] = None

    def clone(self) -> "GameState":
        return GameState(
            seed=self.seed,
            rng_state=self.rng_state,
            tableau=[[card.copy() for card in pile] for pile in self.tableau],
            foundations=[[card.copy() for card in pile] for pile in self.foundations],
            move_history=list(self.move_history),
            last_move=self.last_move,
        )

    def card_ids(self) -> list[int]:
        ids = [card.id for pile in self.tableau for card in pile]
        ids.extend(card.id for pile in self.foundations for card in pile)
        return sorted(ids)

    def foundation_count(self) -> int:
        return sum(len(pile) for pile in self.foundations)

    def hidden_count(self) -> int:
        return sum(1 for pile in self.tableau for card in pile if not card.face_up)

    def pack(self) -> PackedPiles:
        """Compact pile contents: one byte per card, ``id * 2 + face_up``."""
        return tuple(_pack_pile(pile) for pile in self.tableau) + tuple(
            _pack_pile(pile) for pile in self.foundations
        )

    @staticmethod
    def unpack(packed: PackedPiles, seed: int, rng_state: RngState) -> "GameState":
        piles = [[Card.from_id(b >> 1, face_up=bool(b & 1)) for b in pile] for pile in packed]
        return GameState(
            seed=seed,
            rng_state=rng_state,
            tableau=piles[:TABLEAU_PILES],
            foundations=piles[TABLEAU_PILES:],
        )

    def fingerprint(self) -> StateKey:
        """
        Dedup key for search:
        - serialized pile contents, face flags included
        - piles sorted to collapse permutation symmetry of equivalent piles
        """
        packed = self.pack()
        return tuple(sorted(packed[:TABLEAU_PILES])), tuple(sorted(packed[TABLEAU_PILES:]))

    def save_lines(self) -> list[str]:
        lines = [str(self.seed), " ".join(str(w) for w in self.rng_state.words)]
        lines.extend(encode_pile(pile) for pile in self.tableau)
        lines.extend(encode_pile(pile) for pile in self.foundations)
        return lines

    @staticmethod
    def from_lines(lines: list[str]) -> "GameState":
        def line_filter(s: str):
            return len(s.strip()) > 0 and not s.lstrip().startswith("#")

        lines = [line.strip() for line in lines if line_filter(line)]
        expected = 2 + TABLEAU_PILES + FOUNDATION_PILES
        if len(lines) != expected:
            raise ValueError(f"expected {expected} lines, got {len(lines)}")
        seed = int(lines[0])
        words = tuple(int(w) for w in lines[1].split())
        rng_state = RngState.from_dict({"seed": seed, "state": list(words)})
        tableau = [decode_pile(line) for line in lines[2:2 + TABLEAU_PILES]]
        foundations = [decode_pile(line) for line in lines[2 + TABLEAU_PILES:]]
        return GameState(seed=seed, rng_state=rng_state, tableau=tableau, foundations=foundations)
