#! /usr/bin/env python
"""Date and time values in JSON payloads

JSON has no native date type, OData payloads represent date/time values
as ISO 8601 strings.  Older services use a marker form instead, a string
such as "/Date(1356998400000+60)/" carrying the number of milliseconds
since the Unix epoch and an optional time zone offset in minutes.  On
the wire the slashes are escaped as "\\/" but the JSON decoder removes
the escapes before we see the values.

Parsed values are returned as :class:`DateTimeValue` instances, these
are ordinary timezone-aware (UTC) datetimes that are also tagged with
the EDM type they were parsed as and the offset they were expressed
in."""

import datetime
import re


UTC = datetime.timezone.utc

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=UTC)

JSON_DATE_RE = re.compile(r"^/Date\((-?\d+)(\+|-)?(\d+)?\)/$")

DATETIME_RE = re.compile(
    r"^(-?\d{4,})-(\d{2})-(\d{2})T(\d{2}):(\d{2})"
    r"(?::(\d{2}))?(?:\.(\d+))?(.*)$")

OFFSET_RE = re.compile(r"^([+-])(\d{2}):(\d{2})$")


class DateTimeValue(datetime.datetime):

    """A datetime tagged with EDM information

    edm_type
        The name of the EDM type, e.g., "Edm.DateTimeOffset", or None
        if the value was not tagged.

    offset
        The canonical time zone offset of the original representation,
        either "Z" or a string of the form "+hh:mm"/"-hh:mm".  The
        datetime value itself is always in UTC."""

    edm_type = None
    offset = None

    @classmethod
    def from_datetime(cls, src, edm_type=None, offset=None):
        result = cls(src.year, src.month, src.day, src.hour, src.minute,
                     src.second, src.microsecond, tzinfo=src.tzinfo)
        result.edm_type = edm_type
        result.offset = offset
        return result


def minutes_to_offset(minutes):
    """Formats *minutes* as a time zone offset

    For example, -60 returns "-01:00" and 330 returns "+05:30"."""
    if minutes < 0:
        sign = "-"
        minutes = -minutes
    else:
        sign = "+"
    hours = minutes // 60
    minutes = minutes - 60 * hours
    return "%s%02i:%02i" % (sign, hours, minutes)


def offset_to_minutes(offset):
    """The reverse of :func:`minutes_to_offset`

    Returns the offset in minutes, "Z" returns 0.  Raises ValueError if
    offset is not a valid offset string."""
    if offset == "Z":
        return 0
    match = OFFSET_RE.match(offset)
    if match is None:
        raise ValueError("Bad time zone offset: %s" % repr(offset))
    minutes = int(match.group(2)) * 60 + int(match.group(3))
    if match.group(1) == "-":
        minutes = -minutes
    return minutes


def canonical_offset(offset):
    """Returns the canonical form of a time zone offset string

    An empty (or missing) offset and the zero offsets "+00:00" and
    "-00:00" are all represented by "Z"."""
    if not offset or offset in ("Z", "+00:00", "-00:00"):
        return "Z"
    return offset


def parse_json_date(text):
    """Parses the marker form of a JSON date

    Returns a :class:`DateTimeValue` or None if *text* is not in the
    marker form or represents a date that is out of range.  When an
    offset is present it is subtracted from the time to recover UTC and
    the result is tagged as an Edm.DateTimeOffset."""
    match = JSON_DATE_RE.match(text) if text else None
    if match is None:
        return None
    try:
        result = EPOCH + datetime.timedelta(milliseconds=int(match.group(1)))
        edm_type = offset = None
        if match.group(2):
            if match.group(3) is None:
                return None
            minutes = int(match.group(3))
            if match.group(2) == "-":
                minutes = -minutes
            result = result - datetime.timedelta(minutes=minutes)
            edm_type = "Edm.DateTimeOffset"
            offset = minutes_to_offset(minutes)
    except OverflowError:
        return None
    return DateTimeValue.from_datetime(result, edm_type, offset)


def parse_datetime_offset(text):
    """Parses an ISO 8601 date time with an optional offset

    The format is yyyy-mm-ddThh:mm[:ss[.fffffff]][Z|+hh:mm|-hh:mm], a
    missing offset is treated as UTC.  Returns a :class:`DateTimeValue`
    tagged as Edm.DateTimeOffset or None if *text* cannot be parsed.
    Fractional digits beyond the microsecond are discarded."""
    if not isinstance(text, str):
        return None
    match = DATETIME_RE.match(text)
    if match is None:
        return None
    offset = canonical_offset(match.group(8))
    try:
        minutes = offset_to_minutes(offset)
        fraction = match.group(7) or ""
        microsecond = int((fraction + "000000")[:6])
        result = datetime.datetime(
            int(match.group(1)), int(match.group(2)), int(match.group(3)),
            int(match.group(4)), int(match.group(5)),
            int(match.group(6) or 0), microsecond, tzinfo=UTC)
        result = result - datetime.timedelta(minutes=minutes)
    except (ValueError, OverflowError):
        return None
    return DateTimeValue.from_datetime(result, "Edm.DateTimeOffset", offset)


def _format_fraction(microsecond):
    if not microsecond:
        return ""
    result = "%06i" % microsecond
    if microsecond % 1000 == 0:
        result = result[:3]
    return "." + result


def format_datetime_offset(value):
    """Formats a datetime in ISO 8601 form

    Values tagged with an offset (see :class:`DateTimeValue`) are
    formatted in their original time zone, other timezone-aware values
    are formatted in UTC with a "Z" suffix.  Naive values have no
    suffix."""
    offset = getattr(value, 'offset', None)
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
        if offset is None:
            offset = "Z"
    if offset and offset != "Z":
        value = value + datetime.timedelta(minutes=offset_to_minutes(offset))
    return "%04i-%02i-%02iT%02i:%02i:%02i%s%s" % (
        value.year, value.month, value.day, value.hour, value.minute,
        value.second, _format_fraction(value.microsecond), offset or "")


def format_duration(value):
    """Formats a timedelta as an xsd:duration

    For example, a duration of one day, two hours and 3.5 seconds is
    formatted as "P01DT02H00M03.500S"."""
    us = value // datetime.timedelta(microseconds=1)
    sign = ""
    if us < 0:
        sign = "-"
        us = -us
    seconds, us = divmod(us, 1000000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    return "%sP%02iDT%02iH%02iM%02i%sS" % (
        sign, days, hours, minutes, seconds, _format_fraction(us))
