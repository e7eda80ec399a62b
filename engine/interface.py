from engine.moves import Move


class Interface:

    def __init__(self):
        self.session = None

    def onStart(self):
        pass

    def onEvent(self, move: Move):
        """
        Invoked when a move is applied to the live game.
        :param move: the recorded move
        :return:
        """
        self.notifyRedraw()

    def onUndoEvent(self, move: Move):
        """
        Invoked when a move is undone.
        :param move:
        :return:
        """
        self.notifyRedraw()

    def notifyRedraw(self):
        pass

    def onWin(self):
        pass
