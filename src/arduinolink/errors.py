"""
Errors raised by board connections and pin operations.
"""


class ConnectorError(Exception):
    """ Indicates an error condition with a board connection. """


class BoardConnectionError(ConnectorError, ConnectionError):
    """ The serial port could not be chosen, was denied, or failed to open. """


class HandshakeTimeout(ConnectorError, TimeoutError):
    """ The protocol client did not report 'ready' within the handshake timeout. """


class ReadTimeout(ConnectorError, TimeoutError):
    """ No sample arrived for a pin within the read timeout. """


class UnsupportedEnvironment(ConnectorError):
    """ Serial ports cannot be enumerated or opened on this host. """


class UnexpectedDisconnect(ConnectorError):
    """ The device dropped the link. """


class NotConnectedError(ConnectorError):
    """ Indicates a board is in the disconnected state when a connection is required. """
