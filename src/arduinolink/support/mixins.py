"""
Value-object behaviour for port descriptors, port filters and peripheral events.
"""


def quote(val):
    return "None" if val is None else "'%s'" % val


class StringerMixin:

    def __str__(self):
        """ the class name and the attributes in key order """
        items = ", ".join("'%s': %s" % (key, quote(val)) for key, val in sorted(vars(self).items()))
        return '%s:{%s}' % (type(self).__name__, items)


class CommonEqualityMixin:
    """ equality and hashing over the attributes of a value object. """

    def __eq__(self, other):
        return isinstance(other, type(self)) and vars(self) == vars(other)

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(tuple(sorted(vars(self).items())))
