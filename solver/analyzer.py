from __future__ import annotations

import argparse
import heapq
import json
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from engine.cards import Card
from engine.deal import deal
from engine.moves import (
    Flip,
    FoundationToTableau,
    Move,
    TableauToFoundation,
    TableauToTableau,
    apply_move,
    can_drop_on_tableau,
    foundation_target,
    is_win,
)
from engine.state import GameState, PackedPiles, StateKey

DEFAULT_MOVE_BUDGET = 200


@dataclass(frozen=True, slots=True)
class SearchLimits:
    max_nodes: int = DEFAULT_MOVE_BUDGET
    # Wall clock limit; None keeps results reproducible.
    max_seconds: Optional[float] = None
    max_frontier: int = 500_000


SOLVABLE_LIMITS = SearchLimits(max_nodes=20_000)


@dataclass(frozen=True, slots=True)
class SearchPolicy:
    # A card already resting on a valid parent is only moved to another parent
    # when the card below it can then go to a foundation.
    skip_parent_swaps: bool = True
    allow_foundation_to_tableau: bool = True


DEFAULT_POLICY = SearchPolicy()
COMPLETE_POLICY = SearchPolicy(skip_parent_swaps=False, allow_foundation_to_tableau=True)


@dataclass(slots=True)
class SolveResult:
    status: str
    stop_reason: str
    solution: tuple[Move, ...]
    partial: tuple[Move, ...]
    expanded_nodes: int
    generated_nodes: int
    unique_states: int
    max_frontier: int
    dead_end_nodes: int
    duplicate_states_skipped: int
    avg_branching: float
    elapsed_ms: float
    max_depth: int
    best_foundation_count: int

    @property
    def moves(self) -> tuple[Move, ...]:
        """Winning line when solved, otherwise the best partial line."""
        if self.status == "solved":
            return self.solution
        return self.partial


@dataclass(slots=True)
class AnalyzeResult:
    seed: int
    status: str
    solvable: Optional[bool]
    proven: bool
    metrics: dict
    solution: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "seed": self.seed,
            "status": self.status,
            "solvable": self.solvable,
            "proven": self.proven,
            "metrics": self.metrics,
            "solution": list(self.solution),
        }


@dataclass(frozen=True, slots=True)
class _Transition:
    move: Move
    state: GameState
    priority: int


def _policy_is_complete(policy: SearchPolicy) -> bool:
    return not policy.skip_parent_swaps and policy.allow_foundation_to_tableau


def _face_up_start(pile: list[Card]) -> int:
    idx = len(pile)
    while idx > 0 and pile[idx - 1].face_up:
        idx -= 1
    return idx


def _state_potential(state: GameState) -> int:
    empty_piles = sum(1 for pile in state.tableau if not pile)
    return state.foundation_count() * 20 - state.hidden_count() * 8 + empty_piles * 3


def _candidate_moves(state: GameState, policy: SearchPolicy) -> list[tuple[int, Move]]:
    """
    Every move worth searching, with a priority score.
    Generated in a fixed order, lowest pile index first.
    """
    out: list[tuple[int, Move]] = []
    tableau = state.tableau

    for p_idx, pile in enumerate(tableau):
        if pile and not pile[-1].face_up:
            out.append((200, Flip(p_idx)))

    for p_idx, pile in enumerate(tableau):
        if not pile or not pile[-1].face_up:
            continue
        f_idx = foundation_target(state, pile[-1])
        if f_idx is None:
            continue
        score = 100
        if len(pile) == 1:
            score += 10
        elif not pile[-2].face_up:
            score += 20
        out.append((score, TableauToFoundation(p_idx, f_idx)))

    for p_idx, pile in enumerate(tableau):
        run_start = _face_up_start(pile)
        for start in range(run_start, len(pile)):
            stack = pile[start:]
            frees_below = False
            if start > 0 and pile[start - 1].face_up:
                frees_below = foundation_target(state, pile[start - 1]) is not None
                if policy.skip_parent_swaps and not frees_below:
                    continue
            used_empty = False
            for d_idx, dest in enumerate(tableau):
                if d_idx == p_idx or not can_drop_on_tableau(stack, dest):
                    continue
                if not dest:
                    # Empty piles are interchangeable; a whole pile moved to one changes nothing.
                    if start == 0 or used_empty:
                        continue
                    used_empty = True
                score = 40
                if start > 0 and not pile[start - 1].face_up:
                    score += 30
                if start == 0:
                    score += 15
                if frees_below:
                    score += 25
                if not dest:
                    score -= 15
                out.append((score, TableauToTableau(p_idx, d_idx, start)))

    if policy.allow_foundation_to_tableau:
        for f_idx, foundation in enumerate(state.foundations):
            if not foundation:
                continue
            used_empty = False
            for d_idx, dest in enumerate(tableau):
                if not can_drop_on_tableau(foundation[-1:], dest):
                    continue
                if not dest:
                    if used_empty:
                        continue
                    used_empty = True
                out.append((5, FoundationToTableau(f_idx, d_idx)))

    return out


def legal_moves(state: GameState, policy: SearchPolicy = DEFAULT_POLICY) -> list[Move]:
    """Candidate moves ordered by priority; ties keep generation order."""
    candidates = _candidate_moves(state, policy)
    candidates.sort(key=lambda c: c[0], reverse=True)
    return [move for _, move in candidates]


def _iter_transitions(state: GameState, policy: SearchPolicy = DEFAULT_POLICY) -> list[_Transition]:
    transitions: list[_Transition] = []
    for priority, move in _candidate_moves(state, policy):
        branch = state.clone()
        if not apply_move(branch, move):
            continue
        transitions.append(_Transition(move=move, state=branch, priority=priority))
    transitions.sort(key=lambda t: t.priority, reverse=True)
    return transitions


def _reconstruct(node_id: int, parents: list[int], moves: dict[int, Move]) -> tuple[Move, ...]:
    path: list[Move] = []
    cur = node_id
    while parents[cur] >= 0:
        path.append(moves[cur])
        cur = parents[cur]
    path.reverse()
    return tuple(path)


def solve_state(
    initial_state: GameState,
    limits: SearchLimits = SearchLimits(),
    policy: SearchPolicy = DEFAULT_POLICY,
) -> SolveResult:
    """Best-first search on private copies with duplicate-state elimination."""

    start = time.perf_counter()
    seed = initial_state.seed
    rng_state = initial_state.rng_state
    root = GameState.unpack(initial_state.pack(), seed, rng_state)

    def result(status: str, stop_reason: str, solution: tuple[Move, ...], partial: tuple[Move, ...]) -> SolveResult:
        return SolveResult(
            status=status,
            stop_reason=stop_reason,
            solution=solution,
            partial=partial,
            expanded_nodes=expanded,
            generated_nodes=len(parents),
            unique_states=len(seen_keys),
            max_frontier=max_frontier,
            dead_end_nodes=dead_end,
            duplicate_states_skipped=duplicates,
            avg_branching=(total_branching / expanded) if expanded > 0 else 0.0,
            elapsed_ms=(time.perf_counter() - start) * 1000.0,
            max_depth=max_depth,
            best_foundation_count=best_foundation_count,
        )

    parents: list[int] = [-1]
    moves: dict[int, Move] = {}
    seen_keys: set[StateKey] = {root.fingerprint()}
    expanded = 0
    max_frontier = 1
    dead_end = 0
    duplicates = 0
    max_depth = 0
    total_branching = 0
    best_foundation_count = root.foundation_count()

    if is_win(root):
        return result("solved", "goal_reached", (), ())

    best_id = 0
    best_score = (_state_potential(root), 0)
    counter = 0
    frontier: list[tuple[int, int, int, int, PackedPiles]] = []
    heapq.heappush(frontier, (-best_score[0], counter, 0, 0, root.pack()))
    hit_limits = False

    while frontier:
        if expanded >= limits.max_nodes:
            hit_limits = True
            break
        if limits.max_seconds is not None and (time.perf_counter() - start) >= limits.max_seconds:
            hit_limits = True
            break
        if len(frontier) > limits.max_frontier:
            hit_limits = True
            break

        _, _, depth, node_id, packed = heapq.heappop(frontier)
        state = GameState.unpack(packed, seed, rng_state)
        transitions = _iter_transitions(state, policy=policy)
        expanded += 1
        total_branching += len(transitions)

        if not transitions:
            dead_end += 1
            continue

        for tr in transitions:
            key = tr.state.fingerprint()
            if key in seen_keys:
                duplicates += 1
                continue
            seen_keys.add(key)

            child_id = len(parents)
            parents.append(node_id)
            moves[child_id] = tr.move
            next_depth = depth + 1
            max_depth = max(max_depth, next_depth)
            best_foundation_count = max(best_foundation_count, tr.state.foundation_count())

            if is_win(tr.state):
                solution = _reconstruct(child_id, parents, moves)
                return result("solved", "goal_reached", solution, solution)

            potential = _state_potential(tr.state)
            if (potential, -next_depth) > best_score:
                best_score = (potential, -next_depth)
                best_id = child_id

            counter += 1
            prio = next_depth * 2 - potential - tr.priority
            heapq.heappush(frontier, (prio, counter, next_depth, child_id, tr.state.pack()))

        if len(frontier) > max_frontier:
            max_frontier = len(frontier)

    partial = _reconstruct(best_id, parents, moves)
    if hit_limits:
        return result("unknown", "limits_reached", (), partial)
    if _policy_is_complete(policy):
        return result("proven_unsolvable", "search_space_exhausted", (), partial)
    return result("unknown", "policy_space_exhausted", (), partial)


def solve(state: GameState, move_budget: int = DEFAULT_MOVE_BUDGET) -> list[Move]:
    """
    Moves that win from ``state`` or, when the budget runs out first, the moves
    reaching the most promising position found. The caller's state is not touched.
    """
    if move_budget <= 0:
        return []
    result = solve_state(state, limits=SearchLimits(max_nodes=move_budget))
    return list(result.moves)


def is_solvable(seed: int, limits: SearchLimits = SOLVABLE_LIMITS, policy: SearchPolicy = DEFAULT_POLICY) -> bool:
    return solve_state(deal(seed), limits=limits, policy=policy).status == "solved"


def is_solvable_seed(seed: int, limits: SearchLimits = SOLVABLE_LIMITS) -> bool:
    return is_solvable(seed, limits=limits)


def analyze_state(
    initial_state: GameState,
    limits: SearchLimits = SOLVABLE_LIMITS,
    policy: SearchPolicy = DEFAULT_POLICY,
) -> AnalyzeResult:
    solved = solve_state(initial_state, limits, policy=policy)
    metrics = {
        "expanded_nodes": solved.expanded_nodes,
        "generated_nodes": solved.generated_nodes,
        "unique_states": solved.unique_states,
        "duplicate_states_skipped": solved.duplicate_states_skipped,
        "max_frontier": solved.max_frontier,
        "dead_end_nodes": solved.dead_end_nodes,
        "avg_branching": round(solved.avg_branching, 4),
        "elapsed_ms": round(solved.elapsed_ms, 3),
        "max_depth": solved.max_depth,
        "best_foundation_count": solved.best_foundation_count,
    }

    if solved.status == "solved":
        metrics["solution_len"] = len(solved.solution)
        return AnalyzeResult(
            seed=initial_state.seed,
            status="solved",
            solvable=True,
            proven=False,
            metrics=metrics,
            solution=tuple(move.to_notation() for move in solved.solution),
        )

    metrics["reason"] = solved.stop_reason
    if solved.status == "proven_unsolvable":
        return AnalyzeResult(
            seed=initial_state.seed,
            status="proven_unsolvable",
            solvable=False,
            proven=True,
            metrics=metrics,
        )
    return AnalyzeResult(
        seed=initial_state.seed,
        status="unknown",
        solvable=None,
        proven=False,
        metrics=metrics,
    )


def analyze_seed(
    seed: int,
    limits: SearchLimits = SOLVABLE_LIMITS,
    policy: SearchPolicy = DEFAULT_POLICY,
) -> AnalyzeResult:
    return analyze_state(deal(seed), limits=limits, policy=policy)


def analyze_seeds(
    seeds: Iterable[int],
    limits: SearchLimits = SOLVABLE_LIMITS,
    policy: SearchPolicy = DEFAULT_POLICY,
) -> list[AnalyzeResult]:
    return [analyze_seed(seed=seed, limits=limits, policy=policy) for seed in seeds]


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyze Klondike seed solvability.")
    parser.add_argument("--seed", type=int, action="append", required=True, help="Seed to analyze; can be repeated.")
    parser.add_argument("--max-nodes", type=int, default=SOLVABLE_LIMITS.max_nodes, help="Search node limit.")
    parser.add_argument("--max-seconds", type=float, default=None, help="Optional search time limit in seconds.")
    parser.add_argument("--max-frontier", type=int, default=500_000, help="Search frontier size limit.")
    parser.add_argument("--complete", action="store_true", help="Disable pruning so exhaustion proves unsolvable.")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print json output.")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    limits = SearchLimits(max_nodes=args.max_nodes, max_seconds=args.max_seconds, max_frontier=args.max_frontier)
    policy = COMPLETE_POLICY if args.complete else DEFAULT_POLICY
    results = analyze_seeds(args.seed, limits=limits, policy=policy)

    payload = [result.to_dict() for result in results]
    if len(payload) == 1:
        payload = payload[0]

    if args.pretty:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(json.dumps(payload, ensure_ascii=False))


if __name__ == "__main__":
    main()
