import asyncio
import unittest
from unittest.mock import Mock, patch

import serial
from hamcrest import assert_that, calling, equal_to, is_, raises
from serial.tools.list_ports_common import ListPortInfo

from arduinolink.errors import BoardConnectionError, UnsupportedEnvironment
from arduinolink.transport.base import PortDescriptor, PortFilter
from arduinolink.transport.serial_transport import SerialTransport, choose_port, close_abandoned, \
    is_recognised_device, serial_port_info


def port_info(device, vid=None, pid=None):
    info = ListPortInfo(device)
    info.vid = vid
    info.pid = pid
    return info


bluetooth = port_info('/dev/ttyS0')
uno = port_info('/dev/ttyACM0', 0x2341, 0x0043)
akadako = port_info('/dev/ttyACM1', 0x04D8, 0xE83A)
other_usb = port_info('/dev/ttyUSB0', 0x1A86, 0x7523)


class ChoosePortTest(unittest.TestCase):

    def test_explicit_path(self):
        assert_that(choose_port([uno, akadako], path='/dev/ttyACM1'), is_(akadako))
        assert_that(choose_port([uno], path='/dev/ttyACM9'), is_(None))

    def test_filter_match(self):
        filters = [PortFilter(0x04D8, 0xE83A)]
        assert_that(choose_port([bluetooth, uno, akadako], filters), is_(akadako))
        assert_that(choose_port([bluetooth, uno], filters), is_(None))

    def test_known_device_preferred(self):
        assert_that(choose_port([bluetooth, other_usb, uno]), is_(uno))

    def test_first_usb_device(self):
        assert_that(choose_port([bluetooth, other_usb]), is_(other_usb))
        assert_that(choose_port([bluetooth]), is_(None))
        assert_that(choose_port([]), is_(None))

    def test_is_recognised_device(self):
        assert_that(is_recognised_device(akadako), is_(True))
        assert_that(is_recognised_device(other_usb), is_(False))


class SerialPortInfoTest(unittest.TestCase):

    @patch('serial.tools.list_ports.comports', return_value=[uno])
    def test_serial_port_info(self, comports):
        assert_that(serial_port_info(), is_((uno,)))
        comports.assert_called_once()

    @patch('serial.tools.list_ports.comports', side_effect=OSError("no sysfs"))
    def test_unsupported(self, comports):
        assert_that(calling(serial_port_info), raises(UnsupportedEnvironment))


class CloseAbandonedTest(unittest.TestCase):

    def setUp(self):
        self.loop = asyncio.new_event_loop()
        self.addCleanup(self.loop.close)

    def test_closes_opened_port(self):
        ser = Mock()
        opened = self.loop.create_future()
        opened.set_result(None)
        close_abandoned(ser, opened)
        ser.close.assert_called_once()

    def test_ignores_failed_open(self):
        ser = Mock()
        opened = self.loop.create_future()
        opened.set_exception(serial.SerialException("denied"))
        close_abandoned(ser, opened)
        ser.close.assert_not_called()


class SerialTransportTest(unittest.IsolatedAsyncioTestCase):

    def create(self, ports=(uno, akadako), port='auto'):
        self.ser = Mock()
        self.ser.is_open = True
        factory = Mock(return_value=self.ser)
        return SerialTransport(port, 57600, serial_factory=factory, list_ports=Mock(return_value=tuple(ports)))

    async def test_request_port_with_filter(self):
        sut = self.create()
        descriptor = await sut.request_port([PortFilter(0x04D8, 0xE83A)])
        assert_that(descriptor, is_(equal_to(PortDescriptor(0x04D8, 0xE83A, '/dev/ttyACM1'))))
        assert_that(sut.descriptor, is_(descriptor))

    async def test_request_port_without_match(self):
        sut = self.create(ports=[uno])
        with self.assertRaisesRegex(BoardConnectionError, "no serial port matches"):
            await sut.request_port([PortFilter.parse('04D8:E83A')])

    async def test_open_before_request(self):
        sut = self.create()
        with self.assertRaises(BoardConnectionError):
            await sut.open()

    async def test_open_and_close(self):
        sut = self.create(port='/dev/ttyACM0')
        await sut.request_port()
        await sut.open()
        assert_that(self.ser.port, is_('/dev/ttyACM0'))
        assert_that(self.ser.baudrate, is_(57600))
        self.ser.open.assert_called_once()
        assert_that(sut.is_open, is_(True))
        assert_that(sut.input, is_(self.ser))
        assert_that(sut.output, is_(self.ser))
        assert_that(self.ser.flush, is_(sut._no_flush))
        sut.close()
        self.ser.close.assert_called_once()
        assert_that(sut.is_open, is_(False))
        assert_that(sut.input, is_(None))

    async def test_open_denied(self):
        sut = self.create()
        await sut.request_port()
        self.ser.open.side_effect = serial.SerialException("access denied")
        with self.assertRaisesRegex(BoardConnectionError, "/dev/ttyACM0"):
            await sut.open()
        assert_that(sut.is_open, is_(False))

    async def test_closed_while_opening(self):
        sut = self.create()
        await sut.request_port()
        self.ser.open.side_effect = lambda: sut.close()
        with self.assertRaises(BoardConnectionError):
            await sut.open()
        self.ser.close.assert_called_once()
        assert_that(sut.is_open, is_(False))

    def test_from_settings(self):
        settings = Mock(port='COM3', baud_rate=115200)
        sut = SerialTransport.from_settings(settings)
        assert_that(sut.port, is_('COM3'))
        assert_that(sut.baud_rate, is_(115200))


if __name__ == '__main__':  # pragma no cover
    unittest.main()
