import unittest

from hamcrest import assert_that, calling, equal_to, is_, raises

from arduinolink.transport.base import PortDescriptor, PortFilter, Transport, parse_filters


class PortFilterTest(unittest.TestCase):

    def test_parse(self):
        sut = PortFilter.parse('04D8:E83A')
        assert_that(sut, is_(equal_to(PortFilter(0x04D8, 0xE83A))))

    def test_parse_lowercase(self):
        assert_that(PortFilter.parse('2341:8036'), is_(equal_to(PortFilter(0x2341, 0x8036))))
        assert_that(PortFilter.parse('04d8:e83a').usb_product_id, is_(0xE83A))

    def test_parse_invalid(self):
        assert_that(calling(PortFilter.parse).with_args('04D8'), raises(ValueError, "VID:PID"))
        assert_that(calling(PortFilter.parse).with_args('zz:yy'), raises(ValueError, "'zz:yy'"))

    def test_matches(self):
        sut = PortFilter(0x04D8, 0xE83A)
        assert_that(sut.matches(PortDescriptor(0x04D8, 0xE83A, 'COM3')), is_(True))
        assert_that(sut.matches(PortDescriptor(0x04D8, 0x000A, 'COM3')), is_(False))
        assert_that(sut.matches(PortDescriptor(None, None, 'COM3')), is_(False))
        assert_that(sut.matches(None), is_(False))

    def test_parse_filters(self):
        assert_that(parse_filters(['04D8:E83A', '2341:0043']),
                    is_([PortFilter(0x04D8, 0xE83A), PortFilter(0x2341, 0x0043)]))
        assert_that(parse_filters([]), is_([]))


class PortDescriptorTest(unittest.TestCase):

    def test_matches_any(self):
        sut = PortDescriptor(0x2341, 0x0043, '/dev/ttyACM0')
        assert_that(sut.matches_any([PortFilter(0x04D8, 0xE83A), PortFilter(0x2341, 0x0043)]), is_(True))
        assert_that(sut.matches_any([PortFilter(0x04D8, 0xE83A)]), is_(False))
        assert_that(sut.matches_any([]), is_(False))

    def test_equality(self):
        assert_that(PortDescriptor(1, 2, 'a'), is_(equal_to(PortDescriptor(1, 2, 'a'))))
        assert_that(PortDescriptor(1, 2, 'a') != PortDescriptor(1, 2, 'b'), is_(True))


class TransportTest(unittest.TestCase):

    def test_abstract_methods(self):
        sut = Transport()
        assert_that(calling(sut.close), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'is_open'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'descriptor'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'input'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'output'), raises(NotImplementedError))


if __name__ == '__main__':  # pragma no cover
    unittest.main()
