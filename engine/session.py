from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

from engine import moves as rules
from engine.deal import deal, random_seed
from engine.moves import Move
from engine.settings_store import load_settings
from engine.state import GameState
from solver import analyzer
from solver.seed_pool_store import choose_solvable_seed


class GameSession:
    """
    Holds the live game and forwards every change to the registered interface.

    start / retry / move / undo / finish / solve : should be called by the front-end.
    """

    def __init__(self, settings: Optional[dict] = None):
        self.interface = None
        self.settings = settings if settings is not None else load_settings()
        self.state: Optional[GameState] = None
        self.gameEnded = False

    def registerInterface(self, interface):
        self.interface = interface
        interface.session = self

    def _require_interface(self):
        if self.interface is None:
            raise Exception("interface is null")

    def _pool_path(self) -> Optional[Path]:
        raw = str(self.settings.get("seed_pool_path", "")).strip()
        return Path(raw) if raw else None

    def _pick_seed(self) -> int:
        if self.settings.get("seed_source") == "pool":
            seed = choose_solvable_seed(self._pool_path())
            if seed is not None:
                return seed
        return random_seed()

    def _move_budget(self, move_budget: Optional[int]) -> int:
        if move_budget is not None:
            return move_budget
        return int(self.settings.get("move_budget", analyzer.DEFAULT_MOVE_BUDGET))

    @property
    def seed(self) -> Optional[int]:
        if self.state is None:
            return None
        return self.state.seed

    def start(self, seed: Optional[int] = None):
        self._require_interface()
        if seed is None:
            seed = self._pick_seed()
        self.state = deal(seed)
        self.gameEnded = False
        self.interface.onStart()
        self.interface.notifyRedraw()

    def retry(self):
        if self.state is None:
            return self.start()
        return self.start(self.state.seed)

    def resume(self):
        if self.state is None:
            raise Exception("no game loaded")
        self._require_interface()
        self.interface.onStart()
        self.interface.notifyRedraw()

    def checkWin(self) -> bool:
        if self.gameEnded or not rules.is_win(self.state):
            return False
        self.gameEnded = True
        self.interface.onWin()
        return True

    def move(self, move: Move) -> bool:
        self._require_interface()
        if self.state is None or not rules.apply_move(self.state, move):
            return False
        self.interface.onEvent(self.state.last_move)
        self.checkWin()
        return True

    def undo(self) -> bool:
        self._require_interface()
        if self.state is None:
            return False
        move = self.state.last_move
        if not rules.undo(self.state):
            return False
        self.interface.onUndoEvent(move)
        return True

    def finish(self) -> list[Move]:
        self._require_interface()
        if self.state is None:
            return []
        applied = rules.finish(self.state)
        for move in applied:
            self.interface.onEvent(move)
        self.checkWin()
        return applied

    def solve(self, move_budget: Optional[int] = None) -> list[Move]:
        if self.state is None:
            return []
        return analyzer.solve(self.state, self._move_budget(move_budget))

    def auto_solve(self, move_budget: Optional[int] = None) -> int:
        applied = 0
        for move in self.solve(move_budget):
            if not self.move(move):
                break
            applied += 1
        return applied

    def is_solvable(self) -> bool:
        if self.state is None:
            return False
        limits = analyzer.SearchLimits(max_nodes=int(self.settings.get("solvable_max_nodes", 20_000)))
        return analyzer.is_solvable(self.state.seed, limits=limits)

    def saveGameAsLines(self) -> list[str]:
        return self.state.save_lines()

    def loadGameFromLines(self, lines):
        self.state = GameState.from_lines(lines)
        self.gameEnded = rules.is_win(self.state)


def saveGameToFile(session: GameSession, path):
    with open(path, "w+", encoding="utf-8") as f:
        dateInfo = "# date: " + time.strftime("%Y-%m-%d %H:%M:%S", time.localtime()) + "\n"
        f.write(dateInfo)
        f.writelines([x + "\n" for x in session.saveGameAsLines()])


def loadGameFromFile(path) -> GameSession:
    with open(path, "r", encoding="utf-8") as f:
        lines = f.readlines()
    session = GameSession(settings=dict())
    session.loadGameFromLines(lines)
    return session
