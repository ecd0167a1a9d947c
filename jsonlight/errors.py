#! /usr/bin/env python


class JSONLightError(Exception):

    """Base error for jsonlight exceptions"""
    pass


class FormatError(JSONLightError):

    """Raised when a formatting error is encountered in a header value
    or payload."""
    pass


class UnclassifiedFragment(JSONLightError):

    """Raised when a context URL fragment cannot be classified

    segment
        The offending segment of the fragment

    offset
        The character offset of the segment within the fragment

    Only raised by the resolver when it is operating in strict mode, in
    lenient mode the condition is logged and a partially populated
    result is returned instead."""

    def __init__(self, segment, offset):
        super(UnclassifiedFragment, self).__init__(
            "Unrecognized context URL segment %s at offset %i" %
            (repr(segment), offset))
        self.segment = segment
        self.offset = offset


class SchemaMismatch(JSONLightError):

    """Raised when a type or property is missing from the model

    name
        The name of the missing type or property

    Like :class:`UnclassifiedFragment`, this error is only raised in
    strict mode."""

    def __init__(self, name, message=None):
        if message is None:
            message = "%s is not declared in the model" % repr(name)
        super(SchemaMismatch, self).__init__(message)
        self.name = name
