"""
Cached pin state for a board.

Each Pin remembers the last sample read from the device, when it was read, and whether a
read is in flight. The table decides when a cached sample is fresh enough to be returned
without asking the device again. The Board drives the protocol; the table only keeps the books.
"""
import logging
import time
from contextlib import contextmanager

from arduinolink.protocol.client import InputBias, PinMode

logger = logging.getLogger(__name__)

readable_input_modes = (PinMode.INPUT, PinMode.PULLUP)


class Pin:

    def __init__(self, index, supported_modes=(), mode=None, value=0, analog_channel=None):
        self.index = index
        self.supported_modes = tuple(supported_modes)
        self.mode = mode
        self.value = value
        self.analog_channel = analog_channel
        self.last_update_time = None
        self.updating = False
        self.input_bias = InputBias.NONE

    def is_readable_input(self):
        """ a pin without a configured mode is readable """
        return self.mode is None or self.mode in readable_input_modes

    def supports(self, mode):
        return mode in self.supported_modes

    def __repr__(self):
        return 'Pin(%d, mode=%s, value=%s)' % (self.index, self.mode, self.value)


class PinStateTable:

    def __init__(self, clock=time.monotonic):
        """
        :param clock: returns the current monotonic time in seconds
        """
        self.clock = clock
        self._pins = []

    def load(self, topology):
        """
        Replaces the pins with those reported by the protocol client.
        :param topology: iterable of PinInfo, indexed by pin number
        """
        self._pins = [Pin(index, info.supported_modes, info.mode, info.value, info.analog_channel)
                      for index, info in enumerate(topology)]
        logger.debug("loaded %d pins", len(self._pins))

    def clear(self):
        self._pins = []

    def __getitem__(self, index) -> Pin:
        if index < 0:
            raise IndexError("no pin %d" % index)
        return self._pins[index]

    def __len__(self):
        return len(self._pins)

    def __iter__(self):
        return iter(self._pins)

    def is_fresh(self, pin: Pin, interval):
        """ Determines if the cached sample is younger than interval seconds. """
        return pin.last_update_time is not None and (self.clock() - pin.last_update_time) < interval

    def should_sample(self, pin: Pin, interval):
        return not pin.updating and not self.is_fresh(pin, interval)

    @contextmanager
    def sampling(self, pin: Pin):
        """
        Marks the pin as being read for the duration of the block.
        A failed read leaves the cached value at 0. The in-flight flag is cleared on every exit.
        """
        pin.updating = True
        try:
            yield pin
        except Exception:
            pin.value = 0
            raise
        finally:
            pin.updating = False

    def record(self, pin: Pin, value):
        pin.value = value
        pin.last_update_time = self.clock()

    def set_input_bias(self, pin: Pin, pull_up):
        pin.input_bias = InputBias.PULL_UP if pull_up else InputBias.NONE
        return pin.input_bias

    def indexes(self):
        return [pin.index for pin in self._pins]

    def digital_indexes(self):
        """ pins with any capability, excluding analog inputs """
        return [pin.index for pin in self._pins
                if pin.supported_modes and not pin.supports(PinMode.ANALOG)]

    def indexes_supporting(self, mode):
        """ pins supporting the mode, excluding analog inputs """
        return [pin.index for pin in self._pins
                if pin.supports(mode) and not pin.supports(PinMode.ANALOG)]
