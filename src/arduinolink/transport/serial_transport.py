"""
Implements a transport over a serial port.
"""

import asyncio
import logging

import serial
from serial.tools import list_ports

from arduinolink.errors import BoardConnectionError, UnsupportedEnvironment
from arduinolink.transport.base import PortDescriptor, Transport

logger = logging.getLogger(__name__)

default_baud_rate = 57600   # default baud rate for firmata

arduino_devices = {
    (0x2341, 0x0043): "Arduino Uno",
    (0x2341, 0x0010): "Arduino Mega2560",
    (0x2341, 0x8036): "Arduino Leonardo",
}

akadako_devices = {
    (0x04D8, 0xE83A): "AkaDako",
    (0x04D8, 0x000A): "AkaDako development board",
}

known_devices = dict((k, v) for d in [arduino_devices, akadako_devices] for k, v in d.items())


def serial_port_info():
    """
    :return: a tuple of ListPortInfo for the serial ports on this host.
    """
    try:
        return tuple(list_ports.comports())
    except (OSError, NotImplementedError) as e:
        raise UnsupportedEnvironment("serial ports cannot be listed on this host") from e


def port_descriptor(port) -> PortDescriptor:
    return PortDescriptor(port.vid, port.pid, port.device)


def is_recognised_device(port):
    return (port.vid, port.pid) in known_devices


def choose_port(ports, filters=None, path='auto'):
    """
    Chooses a port from the listed ports.
    - an explicit path selects that device
    - otherwise the first port matching any filter
    - with no filters, the first known device, or failing that the first USB device.
    :return: the chosen ListPortInfo or None
    """
    if path and path != 'auto':
        return next((p for p in ports if p.device == path), None)
    if filters:
        return next((p for p in ports if port_descriptor(p).matches_any(filters)), None)
    recognised = [p for p in ports if is_recognised_device(p)]
    if recognised:
        return recognised[0]
    return next((p for p in ports if p.vid is not None), None)


def close_abandoned(ser, opened):
    """ closes a serial port whose open completed after the caller gave up on it """
    if opened.cancelled() or opened.exception() is not None:
        return
    logger.info("closing abandoned serial port %s", ser.port)
    ser.close()


class SerialTransport(Transport):
    """
    A transport that provides comms via a serial port.
    """

    def __init__(self, port='auto', baud_rate=default_baud_rate, serial_factory=serial.Serial,
                 list_ports=serial_port_info):
        """
        :param port: the device path to open, or 'auto' to choose one when the port is requested
        :param serial_factory: creates the unopened serial instance
        :param list_ports: returns the ListPortInfo for the available ports
        """
        self.port = port
        self.baud_rate = baud_rate
        self._serial_factory = serial_factory
        self._list_ports = list_ports
        self._descriptor = None
        self._serial = None
        self._closed = False

    @classmethod
    def from_settings(cls, settings):
        """ creates a transport from SerialSettings """
        return cls(settings.port, settings.baud_rate)

    async def request_port(self, filters=None) -> PortDescriptor:
        ports = await asyncio.to_thread(self._list_ports)
        port = choose_port(ports, filters, self.port)
        if port is None:
            raise BoardConnectionError("no serial port matches %s among %s" %
                                       (self._request_text(filters), [p.device for p in ports]))
        self._descriptor = port_descriptor(port)
        logger.info("requested serial port %s", self._descriptor)
        return self._descriptor

    def _request_text(self, filters):
        if self.port and self.port != 'auto':
            return self.port
        return ', '.join(str(f) for f in filters) if filters else 'known devices'

    async def open(self):
        if self._descriptor is None:
            raise BoardConnectionError("no serial port was requested")
        ser = self._serial_factory()
        ser.port = self._descriptor.path
        ser.baudrate = self.baud_rate
        opening = asyncio.ensure_future(asyncio.to_thread(ser.open))
        try:
            await asyncio.shield(opening)
        except asyncio.CancelledError:
            # the worker thread cannot be stopped, so close the port once it has opened
            opening.add_done_callback(lambda f: close_abandoned(ser, f))
            raise
        except serial.SerialException as e:
            logger.warning("error opening serial port %s: %s", self._descriptor.path, e)
            raise BoardConnectionError("unable to open %s" % self._descriptor.path) from e
        if self._closed:
            # closed while the port was opening
            ser.close()
            raise BoardConnectionError("serial port %s was closed while opening" % self._descriptor.path)
        # patch flushing since this causes a lockup if the serial is disconnected during the flush.
        ser.flush = self._no_flush
        self._serial = ser
        logger.info("opened serial port %s at %d baud", self._descriptor.path, self.baud_rate)

    def _no_flush(self, *args, **kwargs):
        pass

    def close(self):
        self._closed = True
        ser = self._serial
        self._serial = None
        if ser is not None:
            ser.close()
            logger.info("closed serial port %s", self._descriptor.path)

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    @property
    def descriptor(self) -> PortDescriptor:
        return self._descriptor

    @property
    def input(self):
        return self._serial

    @property
    def output(self):
        return self._serial
