#! /usr/bin/env python
"""Context URL interpretation

The @odata.context annotation of a JSON payload is a URL of the form
<service root>$metadata#<fragment>.  The fragment describes the shape
of the payload relative to the model, for example::

    #Customers                  a feed of Customer entities
    #Customers/$entity          a single Customer entity
    #Customers(Name,Address)    a feed projected to two properties
    #Customers/Model.VIP        a feed of a derived type
    #Customers/Address          the Address property of a Customer
    #Collection(Edm.String)     a collection of strings
    #Customers/$delta           a delta response

This module classifies payloads by parsing the fragment."""

import copy
import logging

from . import edm
from . import errors
from .enumeration import Enumeration


class PayloadKind(Enumeration):

    """The shape of a JSON payload
    ::

            PayloadKind.Feed
            PayloadKind.DEFAULT == None

    For more methods see :py:class:`~jsonlight.enumeration.Enumeration`"""

    decode = {
        "ServiceDocument": 1,
        "Feed": 2,
        "Entry": 3,
        "Property": 4,
        "Collection": 5,
        "Value": 6,
        "EntityRefLink": 7,
        "EntityRefLinks": 8,
        "Delta": 9,
        }


class DeltaKind(Enumeration):

    """The kind of delta information described by a context URL"""

    decode = {
        "Feed": 1,
        "DeletedEntry": 2,
        "Link": 3,
        "DeletedLink": 4,
        }


CONTEXT_ANNOTATION = "@odata.context"

DELTA_MARKERS = {
    "$delta": DeltaKind.Feed,
    "$deletedEntity": DeltaKind.DeletedEntry,
    "$link": DeltaKind.Link,
    "$deletedLink": DeltaKind.DeletedLink,
    }


class PayloadInfo(object):

    """Information about a payload derived from its context URL

    kind
        A :class:`PayloadKind` value (or None if the fragment could not
        be classified)

    type_name
        The qualified name of the payload's type

    type_def
        The EntityType or ComplexType named by type_name, or None if
        type_name names a primitive type (or is not declared)."""

    def __init__(self, kind=None, type_name=None, type_def=None):
        self.kind = kind
        #: a :class:`DeltaKind` value or None
        self.delta_kind = None
        self.type_name = type_name
        self.type_def = type_def
        #: the name of the entity set, singleton or property
        self.name = None
        #: the raw text of any select/expand clause
        self.projection = None
        self.is_null_property = False

    def override(self, type_name, type_def):
        """Returns a copy of this information with a different type

        Used for the elements of a mixed feed which declare their own
        (derived) type.  The original instance is not changed."""
        result = copy.copy(self)
        result.type_name = type_name
        result.type_def = type_def
        return result

    def __repr__(self):
        return "PayloadInfo(%s, %s, name=%s)" % (
            PayloadKind.to_str(self.kind), repr(self.type_name),
            repr(self.name))


def split_parenthesis(segment):
    """Splits a segment with a trailing parenthesised clause

    Returns a tuple of (prefix, clause) where clause is the text inside
    the outermost parentheses that close the segment.  The matching
    open parenthesis is found by scanning backwards so that nested
    clauses, e.g., "Customers(Name,Orders(ID))", are handled correctly.
    Returns None if the segment does not end with a balanced clause."""
    if not segment.endswith(")"):
        return None
    depth = 0
    i = len(segment) - 1
    while i >= 0:
        c = segment[i]
        if c == ')':
            depth += 1
        elif c == '(':
            depth -= 1
            if depth == 0:
                return segment[:i], segment[i + 1:-1]
        i -= 1
    return None


class FragmentResolver(object):

    """Resolves context URL fragments against a model

    model
        The :class:`edm.EntityModel` to resolve names against

    strict
        If True, fragments that cannot be classified raise
        :class:`errors.UnclassifiedFragment` and names missing from the
        model raise :class:`errors.SchemaMismatch`.  By default these
        conditions are logged and a partially populated result is
        returned."""

    def __init__(self, model, strict=False):
        self.model = model
        self.strict = strict

    def unclassified(self, segment, offset):
        if self.strict:
            raise errors.UnclassifiedFragment(segment, offset)
        logging.warning(
            "Unrecognized context URL segment %s at offset %i",
            repr(segment), offset)

    def mismatch(self, name, message=None):
        if self.strict:
            raise errors.SchemaMismatch(name, message)
        logging.warning(
            "Context URL names %s which is not declared", repr(name))

    def resolve(self, fragment):
        info = PayloadInfo()
        if '/' not in fragment:
            if not fragment:
                info.kind = PayloadKind.ServiceDocument
                return info
            elif fragment == 'Edm.Null':
                info.kind = PayloadKind.Value
                info.is_null_property = True
                return info
            elif fragment == 'Collection($ref)':
                info.kind = PayloadKind.EntityRefLinks
                return info
            elif fragment == '$ref':
                info.kind = PayloadKind.EntityRefLink
                return info
        offset = 0
        for segment in fragment.split('/'):
            if info.type_name is None:
                self.resolve_first(info, segment, offset)
            else:
                self.resolve_next(info, segment, offset)
            offset += len(segment) + 1
        return info

    def resolve_first(self, info, segment, offset):
        if '(' in segment:
            split = split_parenthesis(segment)
            if split is None:
                self.unclassified(segment, offset)
                return
            segment, clause = split
            if segment == 'Collection':
                info.kind = PayloadKind.Collection
                info.type_name = clause
                # None for collections of primitives
                info.type_def = self.model.lookup_structured_type(clause)
                return
            info.projection = clause
        container = edm.lookup_default_entity_container(self.model)
        if container is not None:
            entity_set = edm.lookup_entity_set(container.entity_sets, segment)
            if entity_set is not None:
                self.set_binding(info, entity_set, PayloadKind.Feed)
                return
            singleton = edm.lookup_singleton(container.singletons, segment)
            if singleton is not None:
                self.set_binding(info, singleton, PayloadKind.Entry)
                return
        if edm.is_primitive_type(segment):
            info.kind = PayloadKind.Value
            info.type_name = segment
            info.type_def = None
            return
        self.unclassified(segment, offset)

    def set_binding(self, info, binding, kind):
        info.kind = kind
        info.type_name = binding.entity_type
        info.type_def = edm.lookup_entity_type(binding.entity_type, self.model)
        info.name = binding.name
        if info.type_def is None:
            self.mismatch(
                binding.entity_type, "%s has undeclared type %s" %
                (binding.name, binding.entity_type))

    def resolve_next(self, info, segment, offset):
        if segment.endswith('$entity') and info.kind == PayloadKind.Feed:
            info.kind = PayloadKind.Entry
            return
        delta_kind = DELTA_MARKERS.get(segment, None)
        if delta_kind is not None:
            info.delta_kind = delta_kind
            return
        if '.' in segment:
            # a type cast to a derived type
            type_def = self.model.lookup_structured_type(segment)
            if type_def is None:
                self.mismatch(segment)
            info.type_name = segment
            info.type_def = type_def
            return
        if info.kind in (PayloadKind.Feed, PayloadKind.Entry):
            p = self.model.effective_property(info.type_def, segment)
            if p is None:
                self.mismatch(
                    segment, "%s is not a property of %s" %
                    (repr(segment), info.type_name))
                return
            info.kind = PayloadKind.Property
            info.type_name = p.type
            info.type_def = edm.lookup_complex_type(
                edm.item_type_name(p.type), self.model)
            info.name = segment
            return
        self.unclassified(segment, offset)


def parse_context_fragment(fragment, model, strict=False):
    """Parses a context URL fragment into a :class:`PayloadInfo`"""
    return FragmentResolver(model, strict).resolve(fragment)


def payload_info(data, model, strict=False):
    """Classifies a decoded JSON payload

    data
        A dictionary, the decoded JSON payload

    Returns None if the payload has no context URL annotation."""
    context_url = data.get(CONTEXT_ANNOTATION, None)
    if not context_url or not isinstance(context_url, str):
        return None
    i = context_url.rfind('#')
    if i < 0:
        return PayloadInfo(PayloadKind.ServiceDocument)
    return parse_context_fragment(context_url[i + 1:], model, strict)


def service_root(context_url):
    """Returns the service root URL for a context URL

    The context URL is truncated immediately before its trailing
    $metadata segment, e.g., http://host/service/$metadata#Customers
    returns http://host/service/.  If there is no $metadata segment
    the URL is truncated at the fragment instead."""
    i = context_url.rfind('$metadata')
    if i < 0:
        i = context_url.find('#')
        if i < 0:
            return context_url
    return context_url[:i]
