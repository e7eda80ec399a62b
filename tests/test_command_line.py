import contextlib
import io
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from engine import command_line, settings_store
from engine.deal import deal
from engine.moves import Flip, FoundationToTableau, TableauToFoundation, TableauToTableau
from engine.session import GameSession


def run_cli(commands, argv=("--seed", "7")):
    buf = io.StringIO()
    with tempfile.TemporaryDirectory() as td:
        with patch.object(settings_store, "SETTINGS_PATH", Path(td) / "settings.ini"):
            with patch("builtins.input", side_effect=list(commands) + [EOFError()]):
                with contextlib.redirect_stdout(buf):
                    command_line.main(list(argv))
    return buf.getvalue()


class CommandLineTestCase(unittest.TestCase):
    def make_session(self, seed=7):
        session = GameSession(settings={})
        session.registerInterface(command_line.CommandLineInterface())
        with contextlib.redirect_stdout(io.StringIO()):
            session.start(seed)
        return session

    def test_start_prints_board(self):
        out = run_cli([])
        self.assertIn("Game started!", out)
        self.assertIn("Seed: 7", out)
        self.assertIn("----0----1----2----3----4----5----6----7---", out)

    def test_feedback_messages(self):
        out = run_cli(["bogus", "undo", "mv 0 0", "mv x 1", "", "quit", "undo"])
        self.assertIn("Invalid command!", out)
        self.assertIn("Cannot undo!", out)
        self.assertIn("Cannot move!", out)
        self.assertIn("Invalid index!", out)
        self.assertEqual(1, out.count("Cannot undo!"))

    def test_new_and_retry(self):
        out = run_cli(["new 12", "retry", "new zero"])
        self.assertIn("Seed: 12", out)
        self.assertEqual(3, out.count("Game started!"))
        self.assertIn("Invalid seed!", out)

    def test_parse_move(self):
        session = self.make_session()
        pile = session.state.tableau[2]
        self.assertEqual(TableauToTableau(2, 5, len(pile) - 1), command_line.parse_move(session, ["mv", "2", "5"]))
        self.assertEqual(TableauToTableau(2, 5, 0), command_line.parse_move(session, ["mv", "2", "5", "0"]))
        self.assertEqual(TableauToFoundation(1, 3), command_line.parse_move(session, ["up", "1", "3"]))
        self.assertEqual(FoundationToTableau(0, 4), command_line.parse_move(session, ["down", "0", "4"]))
        self.assertEqual(Flip(6), command_line.parse_move(session, ["flip", "6"]))
        with self.assertRaises(ValueError):
            command_line.parse_move(session, ["flip", "a"])
        with self.assertRaises(IndexError):
            command_line.parse_move(session, ["down", "0"])

    def test_printed_rows_follow_longest_pile(self):
        session = self.make_session(seed=3)
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            session.interface.printAll()
        rows = [line for line in buf.getvalue().splitlines() if line[:3].strip().rstrip(":").isdigit()]
        self.assertEqual(max(len(p) for p in deal(3).tableau), len(rows))


if __name__ == "__main__":
    unittest.main()
