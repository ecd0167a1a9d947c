#! /usr/bin/env python
"""Reading and writing OData JSON payloads"""

import copy
import datetime
import json
import logging

from . import annotate
from . import context as ctx
from . import dates
from . import edm
from . import errors
from . import params as http
from .enumeration import Enumeration


#: The highest protocol version this handler supports
MAX_DATA_SERVICE_VERSION = "4.0"

#: annotations that are retained when a payload is written
SERIALIZABLE_ANNOTATIONS = ("@odata.id", "@odata.type")


class MetadataAmount(Enumeration):

    """An enumeration used to represent odata.metadata control.
    ::

            MetadataAmount.none
            MetadataAmount.DEFAULT == MetadataAmount.minimal

    For more methods see :py:class:`~jsonlight.enumeration.Enumeration`"""

    decode = {
        "none": 0,
        "minimal": 1,
        "full": 2,
        }

    aliases = {
        None: 'minimal'
        }


def max_version(v1, v2):
    """Returns the greater of two dotted version strings

    The comparison is numeric so "4.01" is greater than "4.0"."""
    if _explode(v1) >= _explode(v2):
        return v1
    else:
        return v2


def _explode(version):
    result = []
    for part in version.split('.'):
        try:
            result.append(int(part))
        except ValueError:
            result.append(-1)
    return result


class JSONLightEncoder(json.JSONEncoder):

    """Encodes the values created when reading payloads

    Durations (timedelta instances) are written in their canonical
    xsd:duration form and datetimes in ISO 8601 form."""

    def default(self, obj):
        if isinstance(obj, datetime.timedelta):
            return dates.format_duration(obj)
        elif isinstance(obj, datetime.datetime):
            return dates.format_datetime_offset(obj)
        return super(JSONLightEncoder, self).default(obj)


def is_serializable_property(name):
    """Returns True if a property should be written

    Properties that are not OData control annotations are always
    written, of the control annotations only @odata.id and @odata.type
    (including property annotations such as Name@odata.type) are
    retained."""
    if not name:
        return False
    i = name.find("@odata.")
    if i < 0:
        return True
    return name[i:] in SERIALIZABLE_ANNOTATIONS


def format_request_payload(data):
    """Returns a copy of *data* suitable for sending to a service

    Objects are copied recursively omitting any annotations that the
    service would not expect to receive, the order of arrays is
    preserved and primitive values are returned unchanged."""
    if isinstance(data, list):
        return [format_request_payload(item) for item in data]
    elif isinstance(data, dict):
        new_data = {}
        for name, value in data.items():
            if is_serializable_property(name):
                new_data[name] = format_request_payload(value)
        return new_data
    else:
        return data


class Payload(object):

    """A class to represent payload options and context information

    model
        The :class:`edm.EntityModel` describing the service.  The JSON
        representation of a model (a list of schema dictionaries) is
        also accepted.  Without a model minimal metadata payloads are
        returned unchanged."""

    def __init__(self, model=None):
        if not model:
            model = None
        elif not isinstance(model, edm.EntityModel):
            model = edm.EntityModel.from_json(model)
        self.model = model
        #: a :class:`MetadataAmount` value, None if the content type
        #: requested an amount of metadata we don't recognize
        self.metadata = MetadataAmount.minimal
        #: convert date-typed strings in full metadata payloads
        self.recognize_dates = False
        #: raise errors for unclassifiable context URLs and names
        #: that are missing from the model
        self.strict = False
        self.charset = "utf-8"

    def get_media_type(self):
        parameters = {}
        if self.metadata is not None:
            parameters['odata.metadata'] = (
                'odata.metadata', MetadataAmount.to_str(self.metadata))
        if self.charset != 'utf-8':
            parameters['charset'] = ('charset', self.charset.upper())
        return http.MediaType('application', 'json', parameters)

    def set_media_type(self, content_type):
        """Sets the payload options from a content type

        content_type
            A :class:`params.MediaType` instance or a string that is
            parsed as one."""
        if not isinstance(content_type, http.MediaType):
            content_type = http.MediaType.from_str(content_type)
        if "odata.metadata" in content_type:
            try:
                self.metadata = MetadataAmount.from_str_lower(
                    content_type["odata.metadata"])
            except ValueError:
                logging.warning("Unrecognized odata.metadata value: %s",
                                content_type["odata.metadata"])
                self.metadata = None
        else:
            self.metadata = MetadataAmount.DEFAULT
        if "charset" in content_type:
            self.charset = content_type["charset"].lower()
        else:
            self.charset = "utf-8"

    def read(self, src):
        """Reads a payload

        src
            The payload as a bytes or character string, or an object
            that has already been decoded from JSON.  Decoded objects
            are copied before they are annotated.

        Returns the annotated object.  If the payload cannot be
        decoded then ValueError is raised, payloads that cannot be
        interpreted are returned unchanged."""
        if isinstance(src, bytes):
            data = json.loads(src.decode(self.charset))
        elif isinstance(src, str):
            data = json.loads(src)
        else:
            data = src
        if self.metadata not in (MetadataAmount.minimal, MetadataAmount.full):
            # none, or an amount of metadata we don't recognize
            return data
        if data is src and isinstance(src, (dict, list)):
            # annotate a copy, the caller retains ownership of src
            data = copy.deepcopy(src)
        if self.metadata == MetadataAmount.minimal:
            return self.read_minimal(data)
        else:
            return self.read_full(data)

    def read_minimal(self, data):
        if self.model is None or not isinstance(data, dict):
            return data
        info = ctx.payload_info(data, self.model, self.strict)
        if info is None:
            logging.debug("Payload has no context URL")
            return data
        logging.debug("Reading minimal metadata payload: %s", repr(info))
        annotator = annotate.MinimalAnnotator(self.model, self.strict)
        return annotator.annotate(
            data, info, data[ctx.CONTEXT_ANNOTATION])

    def read_full(self, data):
        normalizer = annotate.FullNormalizer(self.recognize_dates)
        return normalizer.normalize(data)

    def write(self, data):
        """Returns the JSON text for *data*

        Annotations that a service would not expect to receive are
        removed first, see :func:`format_request_payload`."""
        return json.dumps(format_request_payload(data), cls=JSONLightEncoder)


def _context_get(context, name, default=None):
    if isinstance(context, dict):
        value = context.get(name, None)
    else:
        value = getattr(context, name, None)
    if value is None:
        return default
    return value


def json_parser(text, context):
    """Parses a JSON OData payload

    text
        The payload text, or an object that has already been decoded.

    context
        A dictionary (or object with the same attributes) that provides
        the model as 'metadata' together with optional values for
        'content_type', 'recognize_dates' and 'strict'.

    Returns the annotated object.  A content type that cannot be
    parsed is logged and ignored, the default amount of metadata is
    then assumed.  Unless strict is set only a failure to decode *text*
    as JSON raises an error."""
    p = Payload(_context_get(context, 'metadata'))
    content_type = _context_get(context, 'content_type')
    if content_type is not None:
        try:
            p.set_media_type(content_type)
        except errors.FormatError as err:
            logging.warning("Ignoring bad content type %s: %s",
                            repr(content_type), str(err))
    p.recognize_dates = _context_get(context, 'recognize_dates', False)
    p.strict = _context_get(context, 'strict', False)
    return p.read(text)


def json_serializer(data, context):
    """Serializes *data* to a JSON string

    context
        A dictionary that may provide 'content_type' (defaults to
        application/json) and 'data_service_version'.  On success the
        context's content type is set and its data service version is
        raised to at least 4.0.

    Returns None if the content type is not JSON, signalling that the
    data must be serialized by another handler."""
    content_type = context.get('content_type', None)
    if content_type is None:
        content_type = http.APPLICATION_JSON
        context['content_type'] = content_type
    elif not isinstance(content_type, http.MediaType):
        content_type = http.MediaType.from_str(content_type)
    if not content_type.match_media_type(http.APPLICATION_JSON):
        return None
    context['data_service_version'] = max_version(
        context.get('data_service_version', None) or
        MAX_DATA_SERVICE_VERSION,
        MAX_DATA_SERVICE_VERSION)
    if data is None:
        return None
    p = Payload()
    return p.write(data)
