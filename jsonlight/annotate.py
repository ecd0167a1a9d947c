#! /usr/bin/env python
"""Type and identity annotation of decoded JSON payloads

Payloads requested with odata.metadata=minimal omit the annotations
that a client can calculate from the model.  The
:class:`MinimalAnnotator` restores the type, id and edit link
annotations of entities and the type annotations of their properties so
that consumers see the same information as a full metadata response.

Payloads requested with odata.metadata=full already carry most
annotations, the :class:`FullNormalizer` fills in any type annotations
that the service chose to omit."""

import logging

from . import context as ctx
from . import dates
from . import edm
from . import errors
from . import literals


TYPE_ANNOTATION = "@odata.type"
ID_ANNOTATION = "@odata.id"
EDIT_LINK_ANNOTATION = "@odata.editLink"


def is_annotation(name):
    """Returns True if *name* is an annotation, not a property

    Annotations of the payload itself start with @, annotations of a
    property are of the form <property>@<annotation>."""
    return '@' in name


def type_fragment(odata_type):
    """Returns the type name from an @odata.type value

    Values are relative URLs such as "#ODataDemo.Product", the leading
    hash is removed."""
    return odata_type[odata_type.rfind('#') + 1:]


class MinimalAnnotator(object):

    """Annotates payloads received with minimal metadata

    model
        The :class:`edm.EntityModel` that describes the service

    strict
        If True, properties and types missing from the model raise
        :class:`errors.SchemaMismatch`, otherwise the affected values
        are left without annotations.

    Each method mutates only the JSON object passed to it, callers that
    need to preserve their input should pass a copy."""

    def __init__(self, model, strict=False):
        self.model = model
        self.strict = strict

    def mismatch(self, name, message):
        if self.strict:
            raise errors.SchemaMismatch(name, message)
        logging.warning(message)

    def annotate(self, data, info, context_url):
        """Annotates a payload

        data
            The decoded payload, a dictionary

        info
            The :class:`context.PayloadInfo` describing the payload

        context_url
            The value of the payload's @odata.context annotation

        Only feeds and entries are annotated, other payloads are
        returned unchanged."""
        if info.kind == ctx.PayloadKind.Feed:
            return self.annotate_feed(data, info, context_url)
        elif info.kind == ctx.PayloadKind.Entry:
            return self.annotate_entry(data, info, context_url)
        else:
            logging.debug("No minimal metadata processing for %s payload",
                          ctx.PayloadKind.to_str(info.kind))
            return data

    def annotate_feed(self, data, info, context_url):
        entries = []
        for item in data.get("value", ()):
            if not isinstance(item, dict):
                entries.append(item)
                continue
            odata_type = item.get(TYPE_ANNOTATION, None)
            if odata_type is not None:
                # mixed feed, this entity is of a derived type
                type_name = type_fragment(odata_type)
                type_def = edm.lookup_entity_type(type_name, self.model)
                if type_def is None:
                    self.mismatch(
                        type_name, "Undeclared entity type: %s" % type_name)
                entry_info = info.override(type_name, type_def)
            else:
                entry_info = info
            entries.append(self.annotate_entry(item, entry_info, context_url))
        data["value"] = entries
        return data

    def annotate_entry(self, data, info, context_url):
        data[TYPE_ANNOTATION] = "#" + info.type_name
        if info.type_def is None:
            self.mismatch(
                info.type_name, "Undeclared entity type: %s" % info.type_name)
            return data
        key_type = self.model.effective_key_type(info.type_def)
        if key_type is None:
            self.mismatch(
                info.type_name, "Entity type %s has no key" % info.type_name)
        else:
            try:
                id_segment = info.name + literals.format_key(
                    data, key_type, self.model)
                data[ID_ANNOTATION] = (ctx.service_root(context_url) +
                                       id_segment)
                data[EDIT_LINK_ANNOTATION] = id_segment
            except ValueError as err:
                self.mismatch(
                    info.type_name, "Can't format key of %s entity: %s" %
                    (info.type_name, str(err)))
        self.annotate_properties(data, info.type_def)
        return data

    def annotate_properties(self, data, type_def):
        """Annotates the properties of a structured value

        type_def
            The EntityType or ComplexType of *data*

        Type annotations that are already present on a property are
        left unchanged."""
        for name in list(data.keys()):
            if is_annotation(name):
                continue
            p = self.model.effective_property(type_def, name)
            if p is None:
                self.mismatch(
                    name, "%s is not a property of %s" %
                    (repr(name), type_def.qname))
                continue
            value = data[name]
            if isinstance(value, list):
                data.setdefault(name + TYPE_ANNOTATION, "#" + p.type)
                for item in value:
                    if isinstance(item, dict):
                        self.annotate_complex(item, p)
            elif isinstance(value, dict):
                self.annotate_complex(value, p)
            else:
                data.setdefault(name + TYPE_ANNOTATION, "#" + p.type)

    def annotate_complex(self, data, p):
        """Annotates a complex value

        p
            The property declaration the value belongs to, for a
            collection-valued property *data* is one item of the
            collection."""
        type_name = edm.item_type_name(p.type)
        data[TYPE_ANNOTATION] = "#" + type_name
        type_def = edm.lookup_complex_type(type_name, self.model)
        if type_def is None:
            # e.g., spatial values, there is nothing more to annotate
            logging.debug("Not annotating properties of %s", type_name)
            return
        self.annotate_properties(data, type_def)


class FullNormalizer(object):

    """Normalizes payloads received with full metadata

    recognize_dates
        If True, string values annotated as DateTime or DateTimeOffset
        are converted to :class:`dates.DateTimeValue` instances.

    Missing property type annotations are guessed from the JSON value
    alone, strings are annotated #String, booleans #Bool and numbers
    either #Integer or #Decimal.  The model is not consulted so the
    annotations are only an approximation of the declared types."""

    def __init__(self, recognize_dates=False):
        self.recognize_dates = recognize_dates

    def normalize(self, data):
        if not isinstance(data, dict):
            return data
        for name in list(data.keys()):
            if is_annotation(name):
                continue
            value = data[name]
            if isinstance(value, list):
                for item in value:
                    self.normalize(item)
            elif isinstance(value, dict):
                self.normalize(value)
            elif value is not None:
                self.normalize_property(data, name, value)
        return data

    def normalize_property(self, data, name, value):
        aname = name + TYPE_ANNOTATION
        odata_type = data.get(aname, None)
        if odata_type is None:
            odata_type = self.guess_type(value)
            if odata_type is not None:
                data[aname] = odata_type
        elif self.recognize_dates and self.is_date_type(odata_type):
            new_value = dates.parse_datetime_offset(value)
            if new_value is None:
                logging.warning("Can't parse %s as %s", repr(value),
                                odata_type)
            else:
                data[name] = new_value

    @staticmethod
    def guess_type(value):
        if isinstance(value, str):
            return "#String"
        elif isinstance(value, bool):
            return "#Bool"
        elif isinstance(value, int):
            return "#Integer"
        elif isinstance(value, float):
            if value.is_integer():
                return "#Integer"
            return "#Decimal"
        else:
            return None

    @staticmethod
    def is_date_type(odata_type):
        type_name = type_fragment(odata_type)
        if type_name.startswith("Edm."):
            type_name = type_name[4:]
        return type_name in ("DateTime", "DateTimeOffset")
