import asyncio
import unittest
from unittest.mock import Mock

from hamcrest import assert_that, calling, equal_to, is_, raises

from arduinolink.protocol.client import FirmwareInfo, InputBias, PinInfo, PinMode, ProtocolClient, READY, \
    analog_read_signal, digital_read_signal, lifecycle_signals
from arduinolink.transport.base import PortDescriptor, Transport

akadako = PortDescriptor(0x04D8, 0xE83A, '/dev/ttyACM0')

pwm_pins = (3, 5, 6, 9, 10, 11)


def uno_topology():
    """ pins as reported by StandardFirmata on an Uno """
    pins = [PinInfo(), PinInfo()]  # serial rx/tx
    for index in range(2, 14):
        modes = [PinMode.INPUT, PinMode.OUTPUT, PinMode.PULLUP, PinMode.SERVO]
        if index in pwm_pins:
            modes.append(PinMode.PWM)
        pins.append(PinInfo(modes))
    for channel in range(6):
        pins.append(PinInfo([PinMode.INPUT, PinMode.OUTPUT, PinMode.ANALOG, PinMode.PULLUP],
                            analog_channel=channel))
    return pins


class FakeTransport(Transport):
    """ a transport that opens immediately, without any port """

    def __init__(self, descriptor=akadako, open_error=None, open_delay=0):
        self._descriptor = descriptor
        self.open_error = open_error
        self.open_delay = open_delay
        self.close_count = 0
        self._open = False

    async def request_port(self, filters=None):
        return self._descriptor

    async def open(self):
        if self.open_delay:
            await asyncio.sleep(self.open_delay)
        if self.open_error is not None:
            raise self.open_error
        self._open = True

    def close(self):
        self._open = False
        self.close_count += 1

    @property
    def is_open(self):
        return self._open

    @property
    def descriptor(self):
        return self._descriptor

    @property
    def input(self):
        return None

    @property
    def output(self):
        return None


class FakeProtocolClient(ProtocolClient):
    """
    Records the commands sent in `calls` and answers from canned values.
    Reporting a pin listed in digital_values/analog_values emits one sample on the next loop iteration.
    """

    def __init__(self, transport, handshake=True, digital_values=None, analog_values=None):
        super().__init__(transport)
        self.calls = Mock()
        self.handshake_on_start = handshake
        self.digital_values = digital_values if digital_values is not None else {}
        self.analog_values = analog_values if analog_values is not None else {}

    def start(self):
        self.calls.start()
        if self.handshake_on_start:
            asyncio.get_running_loop().call_soon(self.handshake)

    def handshake(self):
        self.pins = uno_topology()
        self.analog_pins = [index for index, pin in enumerate(self.pins) if pin.analog_channel is not None]
        self.firmware = FirmwareInfo('StandardFirmata.ino', 2, 5)
        self.signals.emit('open')
        self.signals.emit(READY)

    def set_pin_mode(self, pin, mode):
        self.calls.set_pin_mode(pin, mode)

    def digital_write(self, pin, value, enqueue=False):
        self.calls.digital_write(pin, value, enqueue)

    def pwm_write(self, pin, value):
        self.calls.pwm_write(pin, value)

    def servo_write(self, pin, value):
        self.calls.servo_write(pin, value)

    def report_digital_pin(self, pin, enable):
        self.calls.report_digital_pin(pin, enable)
        if enable and pin in self.digital_values:
            asyncio.get_running_loop().call_soon(self.signals.emit, digital_read_signal(pin),
                                                 self.digital_values[pin])

    def report_analog_pin(self, channel, enable):
        self.calls.report_analog_pin(channel, enable)
        if enable and channel in self.analog_values:
            asyncio.get_running_loop().call_soon(self.signals.emit, analog_read_signal(channel),
                                                 self.analog_values[channel])

    def i2c_config(self):
        self.calls.i2c_config()

    def reset(self):
        self.calls.reset()


class ProtocolClientTest(unittest.TestCase):

    def test_abstract_methods(self):
        sut = ProtocolClient(Mock())
        assert_that(calling(sut.start), raises(NotImplementedError))
        assert_that(calling(sut.set_pin_mode).with_args(1, PinMode.OUTPUT), raises(NotImplementedError))
        assert_that(calling(sut.digital_write).with_args(1, 1), raises(NotImplementedError))
        assert_that(calling(sut.pwm_write).with_args(1, 1), raises(NotImplementedError))
        assert_that(calling(sut.servo_write).with_args(1, 1), raises(NotImplementedError))
        assert_that(calling(sut.report_digital_pin).with_args(1, True), raises(NotImplementedError))
        assert_that(calling(sut.report_analog_pin).with_args(1, True), raises(NotImplementedError))
        assert_that(calling(sut.i2c_config), raises(NotImplementedError))
        assert_that(calling(sut.reset), raises(NotImplementedError))

    def test_is_open_follows_transport(self):
        transport = Mock()
        transport.is_open = False
        assert_that(ProtocolClient(transport).is_open, is_(False))
        transport.is_open = True
        assert_that(ProtocolClient(transport).is_open, is_(True))

    def test_constants(self):
        assert_that(ProtocolClient.HIGH, is_(1))
        assert_that(ProtocolClient.LOW, is_(0))
        assert_that(ProtocolClient.RESOLUTION['PWM'], is_(255))
        assert_that(ProtocolClient.MODES.PULLUP, is_(0x0B))

    def test_signal_names(self):
        assert_that(digital_read_signal(13), is_('digital-read-13'))
        assert_that(analog_read_signal(0), is_('analog-read-0'))
        assert_that(lifecycle_signals, is_(('open', 'close', 'error', 'disconnect', 'ready')))

    def test_input_bias_modes(self):
        assert_that(InputBias.NONE.mode, is_(PinMode.INPUT))
        assert_that(InputBias.PULL_UP.mode, is_(PinMode.PULLUP))

    def test_firmware_str(self):
        assert_that(str(FirmwareInfo('StandardFirmata.ino', 2, 5)), is_(equal_to('StandardFirmata.ino-2.5')))

    def test_uno_topology(self):
        pins = uno_topology()
        assert_that(len(pins), is_(20))
        assert_that(pins[14].analog_channel, is_(0))
