"""
The boundary to a Firmata protocol client.

A protocol client encodes Firmata over a Transport's streams. This package does not
implement the wire protocol; an application supplies a ProtocolClient subclass via the
protocol factory given to a Board. The client reports lifecycle and per-pin sample
signals through `signals`, always on the event loop thread.
"""
from abc import abstractmethod
from enum import Enum, IntEnum

from arduinolink.support.events import SignalSource
from arduinolink.transport.base import Transport

OPEN = 'open'
CLOSE = 'close'
ERROR = 'error'
DISCONNECT = 'disconnect'
READY = 'ready'

lifecycle_signals = (OPEN, CLOSE, ERROR, DISCONNECT, READY)


def digital_read_signal(pin):
    return 'digital-read-%d' % pin


def analog_read_signal(channel):
    return 'analog-read-%d' % channel


class PinMode(IntEnum):
    INPUT = 0x00
    OUTPUT = 0x01
    ANALOG = 0x02
    PWM = 0x03
    SERVO = 0x04
    SHIFT = 0x05
    I2C = 0x06
    ONEWIRE = 0x07
    STEPPER = 0x08
    SERIAL = 0x0A
    PULLUP = 0x0B
    UNKNOWN = 0x10
    PING_READ = 0x75
    IGNORE = 0x7F


class InputBias(Enum):
    NONE = PinMode.INPUT
    PULL_UP = PinMode.PULLUP

    @property
    def mode(self):
        return self.value


class PinInfo:
    """ A pin as reported by the capability query. """

    def __init__(self, supported_modes=(), mode=None, value=0, analog_channel=None):
        self.supported_modes = tuple(supported_modes)
        self.mode = mode
        self.value = value
        self.analog_channel = analog_channel


class FirmwareInfo:
    def __init__(self, name, major, minor):
        self.name = name
        self.major = major
        self.minor = minor

    def __str__(self):
        return '%s-%d.%d' % (self.name, self.major, self.minor)


class ProtocolClient:
    """
    Drives a board through the Firmata protocol over a transport.

    Signals emitted: 'open', 'close', 'error' (cause), 'disconnect' (cause), 'ready',
    'digital-read-<pin>' (value) and 'analog-read-<channel>' (value).

    pins and analog_pins are populated by the time 'ready' is emitted.
    """
    MODES = PinMode
    HIGH = 1
    LOW = 0
    RESOLUTION = {'ADC': 1023, 'DAC': 0, 'PWM': 255}

    def __init__(self, transport: Transport):
        self.transport = transport
        self.signals = SignalSource()
        self.pins = []          # list of PinInfo indexed by pin number
        self.analog_pins = []   # pin number of each analog channel
        self.firmware = None    # FirmwareInfo

    @property
    def is_open(self):
        return self.transport.is_open

    @abstractmethod
    def start(self):
        """ begins reading the transport and the handshake that leads to 'ready'. """
        raise NotImplementedError

    @abstractmethod
    def set_pin_mode(self, pin, mode):
        raise NotImplementedError

    @abstractmethod
    def digital_write(self, pin, value, enqueue=False):
        """
        :param enqueue: when True, the local port state is updated but the command is not sent
        """
        raise NotImplementedError

    @abstractmethod
    def pwm_write(self, pin, value):
        raise NotImplementedError

    @abstractmethod
    def servo_write(self, pin, value):
        raise NotImplementedError

    @abstractmethod
    def report_digital_pin(self, pin, enable):
        raise NotImplementedError

    @abstractmethod
    def report_analog_pin(self, channel, enable):
        raise NotImplementedError

    @abstractmethod
    def i2c_config(self):
        raise NotImplementedError

    @abstractmethod
    def reset(self):
        """ sends a system reset to the device """
        raise NotImplementedError
