"""
Keeps track of the connected boards so that several extensions can share one board.
"""
import asyncio
import logging

from arduinolink.board.connection import Board, BoardConnectionLostEvent, BoardReleasedEvent
from arduinolink.errors import UnexpectedDisconnect
from arduinolink.host import PeripheralConnectionLostEvent, PeripheralDisconnectedEvent, PeripheralHost
from arduinolink.support.events import EventSource

logger = logging.getLogger(__name__)

connection_lost_message = 'lost connection to %s: %s'


class RegistryEvent:
    def __init__(self, board):
        self.board = board


class BoardAddedEvent(RegistryEvent):
    """ A board was added to the registry. """


class BoardRemovedEvent(RegistryEvent):
    """ A board was removed from the registry. """


class BoardRegistry:
    """
    Holds the boards of a session in the order they were added.

    :param host: the PeripheralHost told about disconnections and lost connections
    :param board_factory: callable returning a new, disconnected Board
    :param port_filters: PortFilter instances passed to Board.connect()
    """

    def __init__(self, host: PeripheralHost, board_factory, port_filters=None):
        self.host = host
        self.boards = []
        self.events = EventSource()
        self.port_filters = list(port_filters or [])
        self._board_factory = board_factory
        self._acquiring = None

    def find(self, port_filters=None) -> Board:
        """
        Finds a board.
        :param port_filters: PortFilter instances. When given, the first connected board
            matching any filter is returned. Otherwise the first board added.
        :return: the board or None
        """
        if not self.boards:
            return None
        if not port_filters:
            return self.boards[0]
        return next((b for b in self.boards
                     if b.connected and b.descriptor is not None and b.descriptor.matches_any(port_filters)), None)

    def add(self, board: Board):
        self.boards.append(board)
        self.events.fire(BoardAddedEvent(board))

    def remove(self, board: Board):
        if board not in self.boards:
            return
        self.boards.remove(board)
        self.events.fire(BoardRemovedEvent(board))

    async def acquire(self, owner_id) -> Board:
        """
        Returns a board for the owner, sharing a board already in the registry or else
        connecting a new one. Concurrent calls share one connect attempt.
        :raises ConnectorError: the new board could not be connected. Nothing is added.
        """
        board = self.find()
        if board is not None:
            return board
        if self._acquiring is None:
            self._acquiring = asyncio.ensure_future(self._connect_board(owner_id))
        task = self._acquiring
        try:
            return await task
        finally:
            if self._acquiring is task and task.done():
                self._acquiring = None

    async def _connect_board(self, owner_id):
        board = self._board_factory()
        board.owner_id = owner_id
        # the link can be lost during the handshake, before the board is added
        board.events.add(self._forward_connection_lost)
        added = False
        try:
            await board.connect(self.port_filters)
            if not board.connected:
                raise UnexpectedDisconnect("%s was released while connecting" % board.name)
            self.add(board)
            board.events.add(self._board_listener(board))
            added = True
            return board
        finally:
            if not added:
                board.events.remove(self._forward_connection_lost)

    def _forward_connection_lost(self, event):
        if isinstance(event, BoardConnectionLostEvent):
            self.host.emit(PeripheralConnectionLostEvent(
                connection_lost_message % (event.board.name, event.message), event.owner_id))

    def _board_listener(self, board):
        def on_board_event(event):
            if isinstance(event, BoardReleasedEvent):
                board.events.remove(on_board_event)
                board.events.remove(self._forward_connection_lost)
                self.remove(board)
                self.host.emit(PeripheralDisconnectedEvent(board.name, board.descriptor))
        return on_board_event

    def disconnect_all(self):
        for board in list(self.boards):
            board.disconnect()
