#! /usr/bin/env python
"""Closed sets of named constants"""

import logging


class EnumMetaClass(type):

    """Metaclass for :class:`Enumeration`

    Initialises the Enumeration immediately after the class is
    defined."""

    def __init__(self, name, bases, dct):
        super(EnumMetaClass, self).__init__(name, bases, dct)
        # self is a class here!
        self._init_enum()


class Enumeration(object, metaclass=EnumMetaClass):

    """Abstract class for defining enumerations

    The class is not designed to be instantiated but to act as a method
    of defining constants to represent the values of an enumeration and
    for converting between those constants and the appropriate string
    representations.

    Derived classes define a single class member called 'decode' which
    is a mapping from canonical strings to simple integers.  Once
    defined, the class is automatically populated with a reverse
    mapping dictionary (called encode) and the enumeration strings are
    added as attributes of the class itself.  For example::

        class PayloadKind(Enumeration):
            decode = {
                'Feed': 1,
                'Entry': 2}

        PayloadKind.Feed == 1    # True thanks to metaclass

    A second dictionary called aliases maps additional names onto the
    equivalent canonical string.  The special key None in the aliases
    dictionary defines the value of the DEFAULT attribute::

        class MetadataAmount(Enumeration):
            decode = {
                'none': 0,
                'minimal': 1,
                'full': 2}

            aliases = {
                None: 'minimal'}

        MetadataAmount.DEFAULT == 1        # True thanks to metaclass"""

    DEFAULT = None
    """The DEFAULT value of the enumeration defaults to None"""

    @classmethod
    def _init_enum(cls):
        if 'decode' not in cls.__dict__:
            # Skip initialisation for Enumeration itself
            return
        cls.encode = dict((v, k) for k, v in cls.decode.items())
        for k, v in cls.__dict__.get('aliases', {}).items():
            if k is None:
                cls.DEFAULT = cls.decode[v]
            else:
                cls.decode[k] = cls.decode[v]
        for k, v in cls.decode.items():
            if hasattr(cls, k):
                logging.error("Illegal name for Enumeration: %s" % repr(k))
            else:
                setattr(cls, k, v)

    @classmethod
    def from_str_lower(cls, src):
        """Decodes a case-insensitive string

        Leading and trailing white space is ignored.  Raises ValueError
        if *src* does not name a value of this enumeration."""
        value = cls.decode.get(src.strip().lower(), None)
        if value is None:
            raise ValueError(
                "%s is not a %s value" % (repr(src), cls.__name__))
        return value

    @classmethod
    def to_str(cls, value):
        """Encodes one of the enumeration constants returning a string.

        If value is None then the encoded default value is returned (if
        defined) or None."""
        return cls.encode.get(value, cls.encode.get(cls.DEFAULT, None))
