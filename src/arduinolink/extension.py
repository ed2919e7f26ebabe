"""
The commands a visual-programming extension runs against a shared board.

Commands never raise to the end user. A board that is not ready gives "not connected"
(or False/0 for readers), an unassigned pin gives "pin not assigned" (or False/0), and
failed reads degrade to False/0.
"""
import logging
import math

from arduinolink.errors import ConnectorError
from arduinolink.host import PeripheralConnectedEvent, PeripheralHost
from arduinolink.protocol.client import PinMode
from arduinolink.registry import BoardRegistry

logger = logging.getLogger(__name__)

NOT_CONNECTED = 'not connected'
PIN_NOT_ASSIGNED = 'pin not assigned'


def is_unassigned(pin):
    return pin is None or pin == ''


def to_number(value):
    """
    Converts a block argument to a number; anything unparseable or not finite is 0.
    >>> to_number('12')
    12.0
    >>> to_number('abc')
    0
    >>> to_number(True)
    1
    """
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return value if isinstance(value, int) or math.isfinite(value) else 0
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0
    return number if math.isfinite(number) else 0


def to_boolean(value):
    """
    >>> to_boolean('false'), to_boolean('0'), to_boolean(''), to_boolean('high')
    (False, False, False, True)
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    text = str(value).strip().lower()
    return text not in ('', '0', 'false')


def round_half_up(value):
    return math.floor(value + 0.5)


def to_pin(pin):
    return int(to_number(pin))


class ArduinoExtension:
    """
    The command surface for one extension. Boards are obtained from the registry, which
    shares them with other extensions of the same session.
    """
    EXTENSION_ID = 'xcxArduino'

    def __init__(self, registry: BoardRegistry, host: PeripheralHost, extension_id=EXTENSION_ID):
        self.registry = registry
        self.host = host
        self.extension_id = extension_id
        self.board = None   # the board in use, shared through the registry
        registry.events.add(self._registry_events)
        host.register_peripheral_extension(extension_id, self)

    def _registry_events(self, event):
        self.update_board()

    def update_board(self):
        """ switches to a board from the registry when the current board is no longer connected """
        if self.board is not None and self.board.connected:
            return
        self.board = self.registry.find()

    async def scan(self):
        """ Called by the host when the user asks to connect. """
        return await self.connect_board()

    def disconnect(self):
        """ Called by the host when the user disconnects or cancels scanning. """
        self.disconnect_board()

    def is_connected(self):
        return self.board is not None and self.board.connected

    def is_ready(self):
        return self.board is not None and self.board.ready

    async def connect_board(self):
        """
        Connects a board, sharing one already connected.
        :return: a description of the connection, or None when no board could be connected
        """
        if self.is_connected():
            return None
        try:
            board = await self.registry.acquire(self.extension_id)
        except ConnectorError as e:
            logger.warning("fail to connect Arduino board: %s", e)
            return None
        self.board = board
        self.host.emit(PeripheralConnectedEvent(board.name, board.descriptor))
        return 'connected to %s' % board.descriptor

    def disconnect_board(self):
        if self.board is None:
            return
        self.board.disconnect()

    def digital_pin_indexes(self):
        return self.board.digital_pin_indexes() if self.is_ready() else []

    def pwm_pin_indexes(self):
        return self.board.pwm_pin_indexes() if self.is_ready() else []

    def servo_pin_indexes(self):
        return self.board.servo_pin_indexes() if self.is_ready() else []

    async def get_analog_level(self, channel):
        """
        :return: level of the analog input in percent, with one decimal place
        """
        if not self.is_ready() or is_unassigned(channel):
            return 0
        channel = to_pin(channel)
        try:
            raw = await self.board.read_analog(channel)
        except (ConnectorError, LookupError) as e:
            logger.info("analog read of %d was rejected: %s", channel, e)
            return 0
        return round_half_up((raw / self.board.RESOLUTION['ADC']) * 1000) / 10

    async def get_digital_level(self, pin):
        if not self.is_ready() or is_unassigned(pin):
            return False
        pin = to_pin(pin)
        try:
            value = await self.board.read_digital(pin)
        except (ConnectorError, LookupError) as e:
            logger.info("digital read of %d was rejected: %s", pin, e)
            return False
        return value != 0

    async def set_digital_level(self, pin, level):
        """ sets the pin as a digital output at the level """
        if not self.is_ready():
            return NOT_CONNECTED
        if is_unassigned(pin):
            return PIN_NOT_ASSIGNED
        pin = to_pin(pin)
        text = str(level).strip().lower()
        high = text in ('high', 'h') or \
            (text not in ('low', 'l') and (to_boolean(level) or to_number(level) > 0))
        value = self.board.HIGH if high else self.board.LOW
        await self._write(self.board.write_digital, pin, PinMode.OUTPUT, value)

    async def set_analog_level(self, pin, percent):
        """ sets the pin as a PWM output at the duty cycle in percent """
        if not self.is_ready():
            return NOT_CONNECTED
        if is_unassigned(pin):
            return PIN_NOT_ASSIGNED
        pin = to_pin(pin)
        percent = min(max(to_number(percent), 0), 100)
        value = round_half_up(self.board.RESOLUTION['PWM'] * (percent / 100))
        await self._write(self.board.write_pwm, pin, PinMode.PWM, value)

    async def set_input_bias(self, pin, bias):
        """
        :param bias: 'pullUp' or 'none'
        """
        if not self.is_ready():
            return NOT_CONNECTED
        if is_unassigned(pin):
            return PIN_NOT_ASSIGNED
        pin = to_pin(pin)
        try:
            await self.board.set_input_bias(pin, bias == 'pullUp')
        except (ConnectorError, LookupError) as e:
            logger.info("input bias of %d was rejected: %s", pin, e)

    async def servo_turn(self, pin, angle):
        """ turns the servo to the angle in degrees, -90 to 90 """
        if not self.is_ready():
            return NOT_CONNECTED
        if is_unassigned(pin):
            return PIN_NOT_ASSIGNED
        pin = to_pin(pin)
        value = min(180, max(0, 90 - to_number(angle)))  # = 180 - (angle + 90)
        await self._write(self.board.write_servo, pin, PinMode.SERVO, value)

    async def _write(self, write, pin, mode, value):
        try:
            self.board.set_pin_mode(pin, mode)
            await write(pin, value)
        except (ConnectorError, LookupError) as e:
            logger.info("%s to %d was rejected: %s", write.__name__, pin, e)
