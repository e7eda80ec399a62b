from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

NUM_PER_SUIT = 13
SUIT_COUNT = 4
DECK_SIZE = NUM_PER_SUIT * SUIT_COUNT

ACE = 0
KING = NUM_PER_SUIT - 1

SUIT_SYMBOLS = "♠♥♣♦"
RANK_NAMES = ("A ", "2 ", "3 ", "4 ", "5 ", "6 ", "7 ", "8 ", "9 ", "10", "J ", "Q ", "K ")


class Color(IntEnum):
    BLACK = 0
    RED = 1


class Suit(IntEnum):
    SPADES = 0
    HEARTS = 1
    CLUBS = 2
    DIAMONDS = 3

    @property
    def color(self) -> Color:
        return Color.BLACK if self % 2 == 0 else Color.RED

    @property
    def symbol(self) -> str:
        return SUIT_SYMBOLS[self]


@dataclass(slots=True)
class Card:
    """A playing card. Only ``face_up`` ever changes after creation."""

    id: int
    suit: Suit
    rank: int
    face_up: bool = False

    @staticmethod
    def from_id(card_id: int, face_up: bool = False) -> "Card":
        if card_id < 0 or card_id >= DECK_SIZE:
            raise ValueError(f"card id out of range: {card_id}")
        return Card(card_id, Suit(card_id // NUM_PER_SUIT), card_id % NUM_PER_SUIT, face_up)

    @staticmethod
    def of(suit: int, rank: int, face_up: bool = False) -> "Card":
        return Card.from_id(int(suit) * NUM_PER_SUIT + rank, face_up)

    @property
    def color(self) -> Color:
        return self.suit.color

    def copy(self) -> "Card":
        return Card(self.id, self.suit, self.rank, self.face_up)

    def game_str(self) -> str:
        if not self.face_up:
            return "---"
        return self.suit.symbol + RANK_NAMES[self.rank]

    def __str__(self):
        if self.face_up:
            return str(self.id)
        return str(self.id) + "H"


def encode_pile(pile: list[Card]) -> str:
    if len(pile) == 0:
        return "empty"

    def encode_card(card: Card):
        if card.face_up:
            return f"{card.id} 0"
        return f"{card.id} 1"

    return ",".join(map(encode_card, pile))


def decode_pile(code: str) -> list[Card]:
    code = code.strip()
    if code.startswith("empty"):
        return []

    def decode_card(s: str) -> Card:
        data = s.split()
        if len(data) != 2 or data[1] not in ("0", "1"):
            raise ValueError(f"malformed card entry: {s!r}")
        return Card.from_id(int(data[0]), face_up=data[1] == "0")

    return [decode_card(s) for s in code.split(",")]
