"""
The host runtime boundary. The host registers peripheral extensions and is told when
peripherals connect, disconnect or lose their connection.
"""
import logging

from arduinolink.support.events import EventSource
from arduinolink.support.mixins import CommonEqualityMixin, StringerMixin

logger = logging.getLogger(__name__)


class PeripheralEvent(CommonEqualityMixin, StringerMixin):
    """ base class for peripheral notifications sent to the host. """


class PeripheralConnectedEvent(PeripheralEvent):
    def __init__(self, name, path):
        self.name = name
        self.path = path


class PeripheralDisconnectedEvent(PeripheralEvent):
    def __init__(self, name, path):
        self.name = name
        self.path = path


class PeripheralConnectionLostEvent(PeripheralEvent):
    def __init__(self, message, extension_id):
        self.message = message
        self.extension_id = extension_id


class PeripheralHost:
    """
    Receives peripheral notifications. Listeners added to `events` are called with
    each PeripheralEvent.
    """

    def __init__(self):
        self.events = EventSource()
        self.peripheral_extensions = {}

    def register_peripheral_extension(self, extension_id, extension):
        """ registers the extension that is asked to scan() and disconnect() for the peripheral """
        self.peripheral_extensions[extension_id] = extension

    def emit(self, event: PeripheralEvent):
        logger.debug("peripheral event %s", event)
        self.events.fire(event)
