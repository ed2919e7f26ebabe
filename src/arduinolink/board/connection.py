"""
The connection to one board and the pin I/O performed over it.

A Board moves through DISCONNECTED -> REQUESTING -> CONNECTED -> READY and back to
DISCONNECTED when released. Every transport installed by connect() gets a new generation;
signal handlers and pending samples remember the generation they were bound under, and
anything arriving from an older generation is discarded without touching board or pin state.

Reads return cached samples while they are fresh, and otherwise ask the device for a new
sample, racing it against a deadline. Writes are paced: they return after the sending
interval, without waiting for the device.
"""
import asyncio
import logging
import time
from enum import Enum

from arduinolink.board.pins import PinStateTable
from arduinolink.config.settings import BoardSettings
from arduinolink.errors import BoardConnectionError, HandshakeTimeout, NotConnectedError, ReadTimeout, \
    UnexpectedDisconnect
from arduinolink.protocol import client as protocol
from arduinolink.protocol.client import PinMode, ProtocolClient
from arduinolink.support.deadline import Deadline
from arduinolink.support.events import EventSource

logger = logging.getLogger(__name__)

default_disconnect_message = 'Firmata was disconnected by device'


class BoardState(Enum):
    DISCONNECTED = 'disconnected'
    REQUESTING = 'requesting'
    CONNECTED = 'connected'
    READY = 'ready'


class BoardEvent:
    """ base class for board events. """
    def __init__(self, board):
        self.board = board


class BoardReleasedEvent(BoardEvent):
    """ The board released its transport and is disconnected. """


class BoardConnectionLostEvent(BoardEvent):
    """ The device dropped the link. Fired before the board is released. """
    def __init__(self, board, owner_id, message):
        super().__init__(board)
        self.owner_id = owner_id
        self.message = message


class Board:
    """
    Manages the connection to one physical board.

    :param transport_factory: callable returning a new, unopened Transport
    :param protocol_factory: callable taking the opened Transport and returning a ProtocolClient
    :param settings: BoardSettings with the pacing and timeout values
    :param clock: monotonic clock used to age cached samples
    """

    def __init__(self, transport_factory, protocol_factory, settings: BoardSettings=None,
                 clock=time.monotonic, name='ArduinoBoard'):
        self.name = name
        self.settings = settings or BoardSettings()
        self.events = EventSource()
        self.state = BoardState.DISCONNECTED
        self.owner_id = None        # id of the extension that opened the port
        self.descriptor = None      # PortDescriptor of the chosen port
        self.pins = PinStateTable(clock)
        self.generation = 0
        self._transport_factory = transport_factory
        self._protocol_factory = protocol_factory
        self._transport = None
        self._client = None
        self._ready = None          # future settled by the 'ready' signal
        self._connecting = None     # task for the connect attempt in flight

    def __str__(self):
        return '%s(%s, %s)' % (self.name, self.state.value, self.descriptor)

    def _set_state(self, state):
        if state is not self.state:
            logger.debug("%s: %s -> %s", self.name, self.state.value, state.value)
            self.state = state

    @property
    def connected(self) -> bool:
        return self.state in (BoardState.CONNECTED, BoardState.READY)

    @property
    def ready(self) -> bool:
        return self.state is BoardState.READY

    def is_connected(self):
        return self.connected

    def is_ready(self):
        return self.ready

    @property
    def firmware(self):
        return self._client.firmware if self._client is not None else None

    async def connect(self, port_filters=None):
        """
        Opens a port and waits until the protocol client is ready.
        If the board is already connected, this returns the board. A connect attempt that is
        already in flight is shared.
        :param port_filters: PortFilter instances the port must match
        :return: this board
        :raises BoardConnectionError: the port could not be chosen or opened in time
        :raises HandshakeTimeout: the client was not ready in time
        """
        if self.connected:
            return self
        if self._connecting is None:
            self._connecting = asyncio.ensure_future(self._connect(port_filters))
        task = self._connecting
        try:
            return await task
        finally:
            if self._connecting is task and task.done():
                self._connecting = None

    async def _connect(self, port_filters):
        self._set_state(BoardState.REQUESTING)
        self.generation += 1
        generation = self.generation
        connected = False
        try:
            transport = self._transport = self._transport_factory()
            opening = Deadline(self.settings.connect_timeout,
                               lambda: BoardConnectionError("timed out opening a port after %ss" %
                                                            self.settings.connect_timeout))
            await opening.wait(self._open(transport, port_filters))
            if generation != self.generation:
                transport.close()
                raise BoardConnectionError("the connect attempt was abandoned")
            self.descriptor = transport.descriptor
            client = self._client = self._protocol_factory(transport)
            ready = self._ready = asyncio.get_running_loop().create_future()
            self._bind(client, generation)
            client.start()
            handshake = Deadline(self.settings.handshake_timeout,
                                 lambda: HandshakeTimeout("%s was not ready within %ss" %
                                                          (self.descriptor.path, self.settings.handshake_timeout)))
            await handshake.wait(ready)
            connected = True
            logger.info("device connected: %s", self.descriptor)
            return self
        finally:
            if not connected and generation == self.generation:
                self.release()

    async def _open(self, transport, port_filters):
        await transport.request_port(port_filters)
        await transport.open()

    def _bind(self, client, generation):
        signals = client.signals
        signals.once(protocol.OPEN, self._guard(generation, self._on_open))
        signals.once(protocol.READY, self._guard(generation, self._on_ready))
        signals.once(protocol.CLOSE, self._guard(generation, self._on_close))
        signals.once(protocol.DISCONNECT, self._guard(generation, self.handle_disconnect_error))
        signals.once(protocol.ERROR, self._guard(generation, self.handle_disconnect_error))

    def _guard(self, generation, handler):
        def guarded(*args):
            if generation != self.generation:
                logger.debug("%s: discarded %s from a released transport", self.name, handler.__name__)
                return
            return handler(*args)
        return guarded

    def _on_open(self):
        if self.state is BoardState.REQUESTING:
            self._set_state(BoardState.CONNECTED)

    def _on_ready(self):
        self._on_open()
        if self.state is not BoardState.CONNECTED:
            return
        client = self._client
        try:
            client.i2c_config()
            self.pins.load(client.pins)
        except Exception as e:
            logger.exception("%s: unable to configure the board", self.name)
            Deadline.fail(self._ready, BoardConnectionError("unable to configure %s: %s" % (self.descriptor, e)))
            return
        logger.info("%s on: %s", client.firmware, self.descriptor)
        self._set_state(BoardState.READY)
        Deadline.settle(self._ready, self)

    def _on_close(self):
        self.release()

    def release(self):
        """
        Releases the transport and fires BoardReleasedEvent. Only the first call after
        the board left DISCONNECTED has any effect.
        """
        if self.state is BoardState.DISCONNECTED:
            return
        self._set_state(BoardState.DISCONNECTED)
        self.generation += 1
        client, transport = self._client, self._transport
        self._client = self._transport = None
        try:
            if transport is not None and transport.is_open:
                transport.close()
            if client is not None:
                client.signals.remove_all()
        except Exception:
            logger.exception("%s: error releasing the transport", self.name)
        self.owner_id = None
        self.pins.clear()
        ready, self._ready = self._ready, None
        if ready is not None:
            Deadline.fail(ready, UnexpectedDisconnect("%s was released before it was ready" % self.name))
        logger.info("device disconnected: %s", self.descriptor)
        self.events.fire(BoardReleasedEvent(self))

    def disconnect(self):
        """ Notifies the device and releases the board. """
        if self.state is BoardState.DISCONNECTED:
            return
        client = self._client
        if client is not None:
            try:
                client.reset()  # notify disconnection to board
            except Exception:
                logger.warning("%s: unable to send reset", self.name, exc_info=True)
        self.release()

    def handle_disconnect_error(self, cause=None):
        """
        Handles the loss of the link, such as the cable being unplugged or the board
        powered down. Reports the loss and disconnects.
        """
        if self.state is BoardState.DISCONNECTED:
            return
        message = str(cause) if cause else default_disconnect_message
        logger.error("%s: %s", self.name, message)
        self.events.fire(BoardConnectionLostEvent(self, self.owner_id, message))
        self.disconnect()

    # Pin access

    def _require_ready(self) -> ProtocolClient:
        client = self._client
        if client is None or not self.ready:
            raise NotConnectedError("%s is not ready" % self.name)
        return client

    @property
    def MODES(self):
        return (self._client or ProtocolClient).MODES

    @property
    def HIGH(self):
        return (self._client or ProtocolClient).HIGH

    @property
    def LOW(self):
        return (self._client or ProtocolClient).LOW

    @property
    def RESOLUTION(self):
        return (self._client or ProtocolClient).RESOLUTION

    def all_pin_indexes(self):
        return self.pins.indexes()

    def digital_pin_indexes(self):
        return self.pins.digital_indexes()

    def pwm_pin_indexes(self):
        return self.pins.indexes_supporting(PinMode.PWM)

    def servo_pin_indexes(self):
        return self.pins.indexes_supporting(PinMode.SERVO)

    def set_pin_mode(self, pin, mode):
        client = self._require_ready()
        self._set_pin_mode(client, pin, mode)

    def _set_pin_mode(self, client, pin, mode):
        entry = self.pins[pin]
        client.set_pin_mode(pin, mode)
        entry.mode = mode

    async def read_digital(self, pin):
        """
        Reads the level of a digital input. The cached value is returned when the pin is
        not in an input mode, when a read is already in flight, or when the last sample
        is younger than the digital read interval.
        :raises ReadTimeout: no sample arrived in time. The cached value is reset to 0.
        """
        client = self._require_ready()
        entry = self.pins[pin]
        if not entry.is_readable_input() or not self.pins.should_sample(entry, self.settings.digital_read_interval):
            return entry.value
        generation = self.generation
        with self.pins.sampling(entry):
            self._set_pin_mode(client, pin, entry.input_bias.mode)
            value = await self._sample(client, generation, protocol.digital_read_signal(pin),
                                       lambda: client.report_digital_pin(pin, True),
                                       self.settings.digital_read_timeout, 'digital pin %d' % pin)
            if generation == self.generation:
                self.pins.record(entry, value)
                client.report_digital_pin(pin, False)
        return value

    async def read_analog(self, channel):
        """
        Reads the level of an analog input channel, with the same caching as read_digital().
        :param channel: analog channel number, mapped to its pin through the client's analog pins
        """
        client = self._require_ready()
        if not 0 <= channel < len(client.analog_pins):
            raise IndexError("no analog channel %d" % channel)
        pin = client.analog_pins[channel]
        entry = self.pins[pin]
        if not self.pins.should_sample(entry, self.settings.analog_read_interval):
            return entry.value
        generation = self.generation
        with self.pins.sampling(entry):
            self._set_pin_mode(client, pin, PinMode.ANALOG)
            value = await self._sample(client, generation, protocol.analog_read_signal(channel),
                                       lambda: client.report_analog_pin(channel, True),
                                       self.settings.analog_read_timeout, 'analog channel %d' % channel)
            if generation == self.generation:
                self.pins.record(entry, value)
                client.report_analog_pin(channel, False)
        return value

    async def _sample(self, client, generation, signal, request, timeout, source):
        """ listens for the next sample signal, issues the request and waits for the sample or the deadline """
        sample = asyncio.get_running_loop().create_future()

        def on_sample(value):
            if generation == self.generation:
                Deadline.settle(sample, value)

        handler = client.signals.once(signal, on_sample)
        try:
            request()
            deadline = Deadline(timeout, lambda: ReadTimeout("no sample from %s within %ss" % (source, timeout)))
            return await deadline.wait(sample)
        finally:
            client.signals.off(signal, handler)

    async def set_input_bias(self, pin, pull_up):
        """ Sets the pin to INPUT or PULLUP. Resolves after the sending interval. """
        client = self._require_ready()
        entry = self.pins[pin]
        bias = self.pins.set_input_bias(entry, pull_up)
        entry.mode = bias.mode
        await self._send(client.set_pin_mode, pin, bias.mode)

    async def write_digital(self, pin, value, enqueue=False):
        client = self._require_ready()
        await self._send(client.digital_write, pin, value, enqueue)

    async def write_pwm(self, pin, value):
        client = self._require_ready()
        await self._send(client.pwm_write, pin, value)

    async def write_servo(self, pin, value):
        client = self._require_ready()
        await self._send(client.servo_write, pin, value)

    async def _send(self, command, *args):
        """
        Issues the command and waits for the sending interval. The device does not acknowledge
        writes, so failures are logged and not raised.
        """
        try:
            command(*args)
        except Exception:
            logger.exception("%s: %s%s failed", self.name, command.__name__, args)
        await asyncio.sleep(self.settings.sending_interval)
