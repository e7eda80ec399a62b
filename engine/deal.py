from __future__ import annotations

import random
from typing import Optional

from engine.cards import DECK_SIZE, Card
from engine.rng import RngState, next_u32, seed_rng
from engine.state import TABLEAU_PILES, GameState

# Cards per tableau pile, left to right. Sums to the full deck.
TABLEAU_COUNTS = (3, 4, 5, 6, 7, 8, 9, 10)
MAX_SEED = 2_147_483_647

assert len(TABLEAU_COUNTS) == TABLEAU_PILES
assert sum(TABLEAU_COUNTS) == DECK_SIZE


def build_deck() -> list[Card]:
    return [Card.from_id(card_id) for card_id in range(DECK_SIZE)]


def shuffle_deck(deck: list[Card], rng_state: RngState) -> RngState:
    """Fisher-Yates over the whole deck, in place. Returns the advanced rng state."""
    for i in range(len(deck) - 1, 0, -1):
        value, rng_state = next_u32(rng_state)
        j = value % (i + 1)
        deck[i], deck[j] = deck[j], deck[i]
    return rng_state


def deal(seed: int) -> GameState:
    rng_state = seed_rng(seed)
    deck = build_deck()
    rng_state = shuffle_deck(deck, rng_state)

    state = GameState(seed=seed, rng_state=rng_state)
    pos = 0
    for row in range(max(TABLEAU_COUNTS)):
        for pile_idx, count in enumerate(TABLEAU_COUNTS):
            if row >= count:
                continue
            state.tableau[pile_idx].append(deck[pos])
            pos += 1
    for pile in state.tableau:
        pile[-1].face_up = True
    return state


def random_seed() -> int:
    return random.SystemRandom().randrange(1, MAX_SEED)


def new_game(seed: Optional[int] = None) -> GameState:
    if seed is None:
        seed = random_seed()
    return deal(seed)
