from abc import abstractmethod

from arduinolink.support.mixins import CommonEqualityMixin, StringerMixin


class PortFilter(CommonEqualityMixin, StringerMixin):
    """ An acceptable USB vendor/product id pair. """

    def __init__(self, usb_vendor_id, usb_product_id):
        self.usb_vendor_id = usb_vendor_id
        self.usb_product_id = usb_product_id

    @classmethod
    def parse(cls, text):
        """
        Parses a 'VID:PID' pair of hex numbers.
        >>> PortFilter.parse('04D8:E83A').usb_product_id == 0xE83A
        True
        """
        try:
            vid, pid = text.split(':')
            return cls(int(vid, 16), int(pid, 16))
        except ValueError:
            raise ValueError("port filter should be VID:PID in hex, not %r" % text)

    def matches(self, descriptor):
        return descriptor is not None and \
            self.usb_vendor_id == descriptor.usb_vendor_id and \
            self.usb_product_id == descriptor.usb_product_id


class PortDescriptor(CommonEqualityMixin, StringerMixin):
    """ The identity of an opened port. """

    def __init__(self, usb_vendor_id=None, usb_product_id=None, path=None):
        self.usb_vendor_id = usb_vendor_id
        self.usb_product_id = usb_product_id
        self.path = path

    def matches_any(self, filters):
        return any(f.matches(self) for f in filters)


class Transport:
    """
    A byte-stream link to a board. The port is chosen by request_port() and then opened.
    input and output provide file-like streams for the protocol client.
    """

    @abstractmethod
    async def request_port(self, filters=None) -> PortDescriptor:
        """
        Chooses the port to open.
        :param filters: iterable of PortFilter. When given, only matching ports are chosen.
        """
        raise NotImplementedError

    @abstractmethod
    async def open(self):
        raise NotImplementedError

    @abstractmethod
    def close(self):
        raise NotImplementedError

    @property
    @abstractmethod
    def is_open(self) -> bool:
        raise NotImplementedError

    @property
    @abstractmethod
    def descriptor(self) -> PortDescriptor:
        raise NotImplementedError

    @property
    @abstractmethod
    def input(self):
        raise NotImplementedError

    @property
    @abstractmethod
    def output(self):
        raise NotImplementedError


def parse_filters(texts):
    """ parses an iterable of 'VID:PID' strings into PortFilter instances """
    return [PortFilter.parse(t) for t in texts]
