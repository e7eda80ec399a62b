import argparse

from engine.interface import Interface
from engine.moves import Flip, FoundationToTableau, TableauToFoundation, TableauToTableau, foundation_target
from engine.session import GameSession

HELP = (
    "Commands:\n"
    "  mv <src> <dest> [index]   move the face-up run (or from index) of pile src onto pile dest\n"
    "  up <pile> [foundation]    move the top card of a pile to a foundation\n"
    "  down <foundation> <pile>  move a foundation card back to a pile\n"
    "  flip <pile>               turn the top card of a pile face-up\n"
    "  undo | finish | solve | new [seed] | retry | quit"
)


class CommandLineInterface(Interface):

    def printAll(self):
        state = self.session.state
        foundations = "  ".join(pile[-1].game_str() if pile else "[ ]" for pile in state.foundations)
        print(f"Seed: {state.seed}        Foundations: {foundations}")
        print("----0----1----2----3----4----5----6----7---")
        i = 0
        while True:
            has = False
            line = str(i).rjust(2) + ": "
            for pile in state.tableau:
                if len(pile) <= i:
                    line += "     "
                    continue
                has = True
                line += pile[i].game_str()
                line += "  "
            if not has:
                break
            print(line)
            i += 1
        print()

    def onStart(self):
        print("Game started!")

    def notifyRedraw(self):
        self.printAll()

    def onWin(self):
        print("You win!")


def _face_up_start(pile) -> int:
    idx = len(pile)
    while idx > 0 and pile[idx - 1].face_up:
        idx -= 1
    return idx


def parse_move(session: GameSession, parts: list[str]):
    """Turns a split command into a move; raises ValueError/IndexError on bad input."""
    name = parts[0]
    args = [int(x) for x in parts[1:]]
    if name == "mv":
        src, dest = args[0], args[1]
        if len(args) > 2:
            index = args[2]
        else:
            index = _face_up_start(session.state.tableau[src])
        return TableauToTableau(src, dest, index)
    if name == "up":
        src = args[0]
        if len(args) > 1:
            return TableauToFoundation(src, args[1])
        pile = session.state.tableau[src]
        target = foundation_target(session.state, pile[-1]) if pile else None
        return TableauToFoundation(src, 0 if target is None else target)
    if name == "down":
        return FoundationToTableau(args[0], args[1])
    if name == "flip":
        return Flip(args[0])
    raise ValueError(name)


def run(session: GameSession):
    while True:
        try:
            command = input()
        except EOFError:
            break
        parts = command.split()
        if not parts:
            continue
        name = parts[0]
        if name in ("mv", "up", "down", "flip"):
            try:
                move = parse_move(session, parts)
            except (ValueError, IndexError):
                print("Invalid index!")
                continue
            if not session.move(move):
                print("Cannot move!")
        elif name == "undo":
            if not session.undo():
                print("Cannot undo!")
        elif name == "finish":
            if not session.finish():
                print("Cannot move!")
        elif name == "solve":
            applied = session.auto_solve()
            print(f"Solver applied {applied} moves.")
        elif name == "new":
            try:
                seed = int(parts[1]) if len(parts) > 1 else None
                session.start(seed)
            except ValueError:
                print("Invalid seed!")
        elif name == "retry":
            session.retry()
        elif name == "help":
            print(HELP)
        elif name == "quit":
            break
        else:
            print("Invalid command!")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Play Klondike in the terminal.")
    parser.add_argument("--seed", type=int, default=None, help="Deal a specific seed.")
    args = parser.parse_args(argv)

    interface = CommandLineInterface()
    session = GameSession()
    session.registerInterface(interface)
    try:
        session.start(args.seed)
    except ValueError:
        parser.error("seed must be a positive integer")
    print(HELP)
    run(session)


if __name__ == '__main__':
    main()
