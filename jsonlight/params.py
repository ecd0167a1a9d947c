#! /usr/bin/env python
"""Content-type values for the JSON handler"""

from . import errors


SEPARATORS = set('()<>@,;:\\"/[]?={} \t')


def is_token(src):
    """Returns True if *src* is a non-empty HTTP token"""
    if not src:
        return False
    for c in src:
        if c in SEPARATORS or ord(c) < 0x21 or ord(c) > 0x7e:
            return False
    return True


def quote_string(src):
    """Returns *src* as a token or, if necessary, a quoted-string"""
    if is_token(src):
        return src
    return '"%s"' % src.replace('\\', '\\\\').replace('"', '\\"')


class ParameterParser(object):

    """Parses the parameter list that follows a media type

    source
        The text following the type/subtype, for example
        ``;odata.metadata=minimal;charset=utf-8``"""

    def __init__(self, source):
        self.source = source
        self.pos = 0

    def parse_sp(self):
        while self.pos < len(self.source) and self.source[self.pos] in " \t":
            self.pos += 1

    def require_token(self, production):
        start = self.pos
        while (self.pos < len(self.source) and
               self.source[self.pos] not in SEPARATORS):
            self.pos += 1
        if start == self.pos:
            raise errors.FormatError(
                "Expected %s at [%i] in %s" %
                (production, start, repr(self.source)))
        return self.source[start:self.pos]

    def require_quoted_string(self):
        # we're positioned on the opening quote
        self.pos += 1
        result = []
        while self.pos < len(self.source):
            c = self.source[self.pos]
            if c == '"':
                self.pos += 1
                return ''.join(result)
            elif c == '\\' and self.pos + 1 < len(self.source):
                self.pos += 1
                c = self.source[self.pos]
            result.append(c)
            self.pos += 1
        raise errors.FormatError(
            "Unterminated quoted-string in %s" % repr(self.source))

    def require_parameters(self):
        """Returns a dictionary of parameters

        The dictionary maps lower-cased parameter names on to tuples of
        (name, value) where name is the parameter name as it appeared in
        the source.  A trailing semicolon is tolerated."""
        parameters = {}
        while True:
            self.parse_sp()
            if self.pos >= len(self.source):
                break
            if self.source[self.pos] != ';':
                raise errors.FormatError(
                    "Expected ; at [%i] in %s" % (self.pos, repr(self.source)))
            self.pos += 1
            self.parse_sp()
            if self.pos >= len(self.source):
                break
            name = self.require_token("parameter name")
            if self.pos >= len(self.source) or self.source[self.pos] != '=':
                raise errors.FormatError(
                    "Expected = after %s in %s" % (name, repr(self.source)))
            self.pos += 1
            if self.pos < len(self.source) and self.source[self.pos] == '"':
                value = self.require_quoted_string()
            else:
                value = self.require_token("parameter value")
            parameters[name.lower()] = (name, value)
        return parameters


class MediaType(object):

    """Represents an HTTP media-type.

    The built-in str function can be used to format instances.

    type
        The type code string, defaults to 'application'

    subtype
        The sub-type code, defaults to 'octet-stream'

    parameters
        A dictionary mapping lower-case parameter names on to tuples of
        (name, value), as returned by
        :meth:`ParameterParser.require_parameters`.

    Instances support parameter value access by lower-case key,
    returning the corresponding value or raising KeyError.  E.g.,
    mtype['charset'].  Media-types compare by (lower case) type, subtype
    and parameters."""

    def __init__(self, type="application", subtype="octet-stream",
                 parameters=None):
        self.type = type
        self.subtype = subtype
        if parameters:
            self.parameters = dict(parameters)
        else:
            self.parameters = {}

    @classmethod
    def from_str(cls, source):
        """Creates a media-type from a *source* string.

        The source may be either characters or bytes.  Linear white
        space is not allowed between the type and subtype."""
        if isinstance(source, bytes):
            source = source.decode('iso-8859-1')
        source = source.strip()
        p = ParameterParser(source)
        mtype = p.require_token("media-type")
        if p.pos >= len(source) or source[p.pos] != '/':
            raise errors.FormatError(
                "Expected type/subtype: %s" % repr(source))
        p.pos += 1
        msubtype = p.require_token("media-subtype")
        return cls(mtype, msubtype, p.require_parameters())

    def match_media_type(self, other):
        """Returns True if *other* has the same type and subtype

        Parameters are ignored in the comparison."""
        return (self.type.lower() == other.type.lower() and
                self.subtype.lower() == other.subtype.lower())

    def __str__(self):
        result = ["%s/%s" % (self.type, self.subtype)]
        for key in sorted(self.parameters):
            name, value = self.parameters[key]
            result.append("%s=%s" % (name, quote_string(value)))
        return "; ".join(result)

    def __repr__(self):
        return "MediaType(%s, %s, %s)" % (repr(self.type),
                                          repr(self.subtype),
                                          repr(self.parameters))

    def __getitem__(self, key):
        if key in self.parameters:
            return self.parameters[key][1]
        else:
            raise KeyError("MediaType instance has no parameter %s" %
                           repr(key))

    def __contains__(self, key):
        return key in self.parameters

    def sortkey(self):
        return (self.type.lower(), self.subtype.lower(),
                sorted((k, v[1]) for k, v in self.parameters.items()))

    def __eq__(self, other):
        if isinstance(other, str):
            other = MediaType.from_str(other)
        if not isinstance(other, MediaType):
            return NotImplemented
        return self.sortkey() == other.sortkey()

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash(str(self.sortkey()))


#: A predefined constant for application/json
APPLICATION_JSON = MediaType('application', 'json')
