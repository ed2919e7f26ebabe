import logging

from arduinolink.board.connection import Board
from arduinolink.config.settings import Settings, load_settings
from arduinolink.extension import ArduinoExtension
from arduinolink.host import PeripheralHost
from arduinolink.registry import BoardRegistry
from arduinolink.transport.base import parse_filters
from arduinolink.transport.serial_transport import SerialTransport

logger = logging.getLogger(__name__)


class Session:
    """
    The top-level context for a host session. Owns the host, the board registry and the
    extensions, and disconnects all boards when closed.

    :param protocol_factory: callable taking an opened Transport and returning a ProtocolClient
    :param settings: Settings, defaults to the built-in values
    :param transport_factory: callable returning a new Transport, defaults to a SerialTransport
        built from the serial settings
    """

    def __init__(self, protocol_factory, settings: Settings=None, transport_factory=None, host=None):
        self.settings = settings or Settings()
        self.host = host or PeripheralHost()
        self._protocol_factory = protocol_factory
        self._transport_factory = transport_factory or self._serial_transport
        self.registry = BoardRegistry(self.host, self.new_board, parse_filters(self.settings.serial.filters))
        self.extensions = {}

    @classmethod
    def from_config(cls, protocol_factory, directory=None, **kwargs):
        """ creates a session using the settings in the arduinolink configuration files """
        return cls(protocol_factory, load_settings(directory), **kwargs)

    def _serial_transport(self):
        return SerialTransport.from_settings(self.settings.serial)

    def new_board(self) -> Board:
        return Board(self._transport_factory, self._protocol_factory, self.settings.board)

    def extension(self, extension_id=ArduinoExtension.EXTENSION_ID) -> ArduinoExtension:
        """ retrieves the extension with the given id, creating it on first use """
        extension = self.extensions.get(extension_id)
        if extension is None:
            extension = self.extensions[extension_id] = ArduinoExtension(self.registry, self.host, extension_id)
        return extension

    def close(self):
        logger.info("closing session with %d boards", len(self.registry.boards))
        self.registry.disconnect_all()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
