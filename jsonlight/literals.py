#! /usr/bin/env python
"""URI literal formatting used to build entity keys"""

import base64
import binascii
import datetime
import decimal
from urllib.parse import quote

from . import dates


# the characters that encodeURIComponent leaves alone in addition to
# the letters, digits and "-_.~" that quote never escapes
URI_COMPONENT_SAFE = "!*'()"


def value_to_str(value):
    """Converts a JSON value to the text used in a literal

    Booleans and null use their JSON spellings and floats with no
    fractional part are formatted as integers, matching the way the
    value would appear in the JSON payload."""
    if value is None:
        return "null"
    elif value is True:
        return "true"
    elif value is False:
        return "false"
    elif isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    elif isinstance(value, decimal.Decimal):
        return str(value)
    elif isinstance(value, datetime.datetime):
        return dates.format_datetime_offset(value)
    elif isinstance(value, datetime.timedelta):
        return dates.format_duration(value)
    else:
        return str(value)


def binary_to_hex(value):
    """Returns an upper-case hex string for a binary value

    value
        Either a bytes-like object or a base64 encoded string, as binary
        data is transmitted in JSON.  Both the URL-safe alphabet and
        the standard one are accepted, padding is optional.

    Raises ValueError if a string value is not valid base64."""
    if isinstance(value, str):
        value = value.replace('+', '-').replace('/', '_')
        value = value + "=" * (-len(value) % 4)
        try:
            value = base64.urlsafe_b64decode(value)
        except binascii.Error as err:
            raise ValueError("Bad base64 binary value: %s" % str(err))
    return binascii.hexlify(bytes(value)).decode('ascii').upper()


def format_row_literal(value, type_name):
    """Applies the type-specific transform that precedes formatting

    Only binary values are transformed, other values are returned
    unchanged."""
    if type_name == "Edm.Binary" and value is not None:
        return binary_to_hex(value)
    return value


def format_literal(value, type_name):
    """Returns a URI-literal-formatted value as a character string.

    For example, "42L" or "'Paddy%20O''brian'".  Single quotes are
    doubled up *before* the result is percent-encoded."""
    result = value_to_str(format_row_literal(value, type_name))
    result = quote("''".join(result.split("'")), safe=URI_COMPONENT_SAFE)
    if type_name == "Edm.Binary":
        return "X'%s'" % result
    elif type_name == "Edm.DateTime":
        return "datetime'%s'" % result
    elif type_name == "Edm.DateTimeOffset":
        return "datetimeoffset'%s'" % result
    elif type_name == "Edm.Decimal":
        return result + "M"
    elif type_name == "Edm.Guid":
        return "guid'%s'" % result
    elif type_name == "Edm.Int64":
        return result + "L"
    elif type_name == "Edm.Float":
        return result + "f"
    elif type_name == "Edm.Double":
        return result + "D"
    elif type_name == "Edm.Geography":
        return "geography'%s'" % result
    elif type_name == "Edm.Geometry":
        return "geometry'%s'" % result
    elif type_name == "Edm.Time":
        return "time'%s'" % result
    elif type_name == "Edm.String":
        return "'%s'" % result
    else:
        return result


def format_key(data, key_type, model):
    """Returns the entity-instance key string for an entity

    data
        The JSON object representing the entity

    key_type
        The EntityType that *defines* the key (see
        :meth:`edm.EntityModel.effective_key_type`)

    model
        The EntityModel used to look up the key property types

    For example, (42) or (Category='Food',ID=1).  With a composite key
    the properties appear in the order in which they are declared in
    the key."""
    keys = key_type.key
    if len(keys) == 1:
        return "(%s)" % format_literal(
            data.get(keys[0]), _key_property_type(key_type, keys[0], model))
    key_str = []
    for name in keys:
        key_str.append("%s=%s" % (name, format_literal(
            data.get(name), _key_property_type(key_type, name, model))))
    return "(%s)" % ",".join(key_str)


def _key_property_type(key_type, name, model):
    p = model.effective_property(key_type, name)
    if p is None:
        return None
    return p.type
