from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Union

from engine.cards import ACE, DECK_SIZE, KING, Card
from engine.state import GameState


@dataclass(frozen=True, slots=True)
class TableauToTableau:
    from_pile: int
    to_pile: int
    card_index: int
    # Filled in on the recorded copy only.
    moved_count: Optional[int] = field(default=None, compare=False)
    auto_flipped: bool = field(default=False, compare=False)

    def to_notation(self) -> str:
        return f"MOVE(T{self.from_pile}:{self.card_index}->T{self.to_pile})"


@dataclass(frozen=True, slots=True)
class TableauToFoundation:
    from_pile: int
    to_foundation: int
    auto_flipped: bool = field(default=False, compare=False)

    def to_notation(self) -> str:
        return f"UP(T{self.from_pile}->F{self.to_foundation})"


@dataclass(frozen=True, slots=True)
class FoundationToTableau:
    from_foundation: int
    to_pile: int

    def to_notation(self) -> str:
        return f"DOWN(F{self.from_foundation}->T{self.to_pile})"


@dataclass(frozen=True, slots=True)
class Flip:
    pile: int

    def to_notation(self) -> str:
        return f"FLIP(T{self.pile})"


Move = Union[TableauToTableau, TableauToFoundation, FoundationToTableau, Flip]


def _top(pile: list[Card]) -> Optional[Card]:
    if len(pile) == 0:
        return None
    return pile[-1]


def _valid_index(piles: list, idx: int) -> bool:
    return 0 <= idx < len(piles)


def can_drop_on_tableau(stack: list[Card], target_pile: list[Card]) -> bool:
    if len(stack) == 0:
        return False
    base = stack[0]
    top = _top(target_pile)
    if top is None:
        return base.rank == KING
    return base.rank == top.rank - 1 and base.color != top.color


def can_drop_on_foundation(card: Card, foundation_pile: list[Card]) -> bool:
    top = _top(foundation_pile)
    if top is None:
        return card.rank == ACE
    return card.suit == top.suit and card.rank == top.rank + 1


def get_movable_stack(state: GameState, pile_index: int, card_index: int) -> Optional[list[Card]]:
    if not _valid_index(state.tableau, pile_index):
        return None
    pile = state.tableau[pile_index]
    if card_index < 0 or card_index >= len(pile):
        return None
    stack = pile[card_index:]
    if not all(card.face_up for card in stack):
        return None
    return stack


def _reveal_top(pile: list[Card]) -> bool:
    top = _top(pile)
    if top is None or top.face_up:
        return False
    top.face_up = True
    return True


def _record(state: GameState, move: Move) -> None:
    state.move_history.append(move)
    state.last_move = move


def _apply_tableau_to_tableau(state: GameState, move: TableauToTableau) -> Optional[Move]:
    if move.from_pile == move.to_pile or not _valid_index(state.tableau, move.to_pile):
        return None
    stack = get_movable_stack(state, move.from_pile, move.card_index)
    if stack is None:
        return None
    dest = state.tableau[move.to_pile]
    if not can_drop_on_tableau(stack, dest):
        return None

    src = state.tableau[move.from_pile]
    del src[move.card_index:]
    dest.extend(stack)
    flipped = _reveal_top(src)
    return replace(move, moved_count=len(stack), auto_flipped=flipped)


def _apply_tableau_to_foundation(state: GameState, move: TableauToFoundation) -> Optional[Move]:
    if not _valid_index(state.tableau, move.from_pile) or not _valid_index(state.foundations, move.to_foundation):
        return None
    src = state.tableau[move.from_pile]
    card = _top(src)
    if card is None or not card.face_up:
        return None
    foundation = state.foundations[move.to_foundation]
    if not can_drop_on_foundation(card, foundation):
        return None

    foundation.append(src.pop())
    flipped = _reveal_top(src)
    return replace(move, auto_flipped=flipped)


def _apply_foundation_to_tableau(state: GameState, move: FoundationToTableau) -> Optional[Move]:
    if not _valid_index(state.foundations, move.from_foundation) or not _valid_index(state.tableau, move.to_pile):
        return None
    foundation = state.foundations[move.from_foundation]
    card = _top(foundation)
    if card is None:
        return None
    dest = state.tableau[move.to_pile]
    if not can_drop_on_tableau([card], dest):
        return None

    dest.append(foundation.pop())
    return move


def _apply_flip(state: GameState, move: Flip) -> Optional[Move]:
    if not _valid_index(state.tableau, move.pile):
        return None
    if not _reveal_top(state.tableau[move.pile]):
        return None
    return move


def apply_move(state: GameState, move: Move) -> bool:
    """Validate and apply ``move``. On failure the state is left untouched."""
    if isinstance(move, TableauToTableau):
        recorded = _apply_tableau_to_tableau(state, move)
    elif isinstance(move, TableauToFoundation):
        recorded = _apply_tableau_to_foundation(state, move)
    elif isinstance(move, FoundationToTableau):
        recorded = _apply_foundation_to_tableau(state, move)
    elif isinstance(move, Flip):
        recorded = _apply_flip(state, move)
    else:
        raise TypeError(f"unknown move type: {type(move).__name__}")

    if recorded is None:
        return False
    _record(state, recorded)
    return True


def _undo_tableau_to_tableau(state: GameState, move: TableauToTableau) -> bool:
    if not _valid_index(state.tableau, move.from_pile) or not _valid_index(state.tableau, move.to_pile):
        return False
    count = move.moved_count
    src = state.tableau[move.from_pile]
    dest = state.tableau[move.to_pile]
    if count is None or count <= 0 or len(dest) < count:
        return False
    if len(src) != move.card_index:
        return False
    if move.auto_flipped:
        top = _top(src)
        if top is None or not top.face_up:
            return False
        top.face_up = False

    stack = dest[len(dest) - count:]
    del dest[len(dest) - count:]
    src.extend(stack)
    return True


def _undo_tableau_to_foundation(state: GameState, move: TableauToFoundation) -> bool:
    if not _valid_index(state.tableau, move.from_pile) or not _valid_index(state.foundations, move.to_foundation):
        return False
    foundation = state.foundations[move.to_foundation]
    src = state.tableau[move.from_pile]
    if len(foundation) == 0:
        return False
    if move.auto_flipped:
        top = _top(src)
        if top is None or not top.face_up:
            return False
        top.face_up = False
    src.append(foundation.pop())
    return True


def _undo_foundation_to_tableau(state: GameState, move: FoundationToTableau) -> bool:
    if not _valid_index(state.foundations, move.from_foundation) or not _valid_index(state.tableau, move.to_pile):
        return False
    dest = state.tableau[move.to_pile]
    if len(dest) == 0:
        return False
    state.foundations[move.from_foundation].append(dest.pop())
    return True


def _undo_flip(state: GameState, move: Flip) -> bool:
    if not _valid_index(state.tableau, move.pile):
        return False
    top = _top(state.tableau[move.pile])
    if top is None or not top.face_up:
        return False
    top.face_up = False
    return True


def undo(state: GameState) -> bool:
    """Reverse ``state.last_move`` in place. Only the most recent move can be undone."""
    move = state.last_move
    if move is None:
        return False

    if isinstance(move, TableauToTableau):
        ok = _undo_tableau_to_tableau(state, move)
    elif isinstance(move, TableauToFoundation):
        ok = _undo_tableau_to_foundation(state, move)
    elif isinstance(move, FoundationToTableau):
        ok = _undo_foundation_to_tableau(state, move)
    elif isinstance(move, Flip):
        ok = _undo_flip(state, move)
    else:
        raise TypeError(f"unknown move type: {type(move).__name__}")

    if not ok:
        return False
    if state.move_history:
        state.move_history.pop()
    state.last_move = None
    return True


def is_win(state: GameState) -> bool:
    return state.foundation_count() == DECK_SIZE


def foundation_target(state: GameState, card: Card) -> Optional[int]:
    """Lowest foundation index accepting ``card``, if any."""
    for f_idx, foundation in enumerate(state.foundations):
        if can_drop_on_foundation(card, foundation):
            return f_idx
    return None


def finish(state: GameState) -> list[Move]:
    """Greedily play every available tableau card to the foundations."""
    applied: list[Move] = []
    progress = True
    while progress:
        progress = False
        for p_idx, pile in enumerate(state.tableau):
            card = _top(pile)
            if card is None or not card.face_up:
                continue
            f_idx = foundation_target(state, card)
            if f_idx is None:
                continue
            move = TableauToFoundation(p_idx, f_idx)
            if apply_move(state, move):
                applied.append(state.last_move)
                progress = True
                break
    return applied
