#! /usr/bin/env python
"""The entity data model consumed by the JSON handler

The model is read-only once loaded.  It is normally created from the
JSON representation of a CSDL document, a list of schema dictionaries::

    [{"namespace": "ODataDemo",
      "entityType": [
        {"name": "Product",
         "key": [{"propertyRef": [{"name": "ID"}]}],
         "property": [{"name": "ID", "type": "Edm.Int32"}, ...]}],
      "entityContainer": {
        "name": "DemoService",
        "entitySet": [{"name": "Products",
                       "entityType": "ODataDemo.Product"}]}}]

The module-level lookup functions never raise, they return None if the
requested definition cannot be found."""

import json
import logging


#: The names of the primitive types that may appear as the first
#: segment of a context URL fragment
PRIMITIVE_TYPES = frozenset((
    "Edm.Binary",
    "Edm.Boolean",
    "Edm.Byte",
    "Edm.Date",
    "Edm.DateTime",
    "Edm.DateTimeOffset",
    "Edm.Decimal",
    "Edm.Double",
    "Edm.Duration",
    "Edm.Guid",
    "Edm.Int16",
    "Edm.Int32",
    "Edm.Int64",
    "Edm.SByte",
    "Edm.Single",
    "Edm.Stream",
    "Edm.String",
    "Edm.Time",
    "Edm.TimeOfDay",
    "Edm.Geography",
    "Edm.GeographyPoint",
    "Edm.GeographyLineString",
    "Edm.GeographyPolygon",
    "Edm.GeographyCollection",
    "Edm.GeographyMultiPolygon",
    "Edm.GeographyMultiLineString",
    "Edm.GeographyMultiPoint",
    "Edm.Geometry",
    "Edm.GeometryPoint",
    "Edm.GeometryLineString",
    "Edm.GeometryPolygon",
    "Edm.GeometryCollection",
    "Edm.GeometryMultiPolygon",
    "Edm.GeometryMultiLineString",
    "Edm.GeometryMultiPoint",
    ))


def is_primitive_type(type_name):
    return type_name in PRIMITIVE_TYPES


def is_collection_type(type_name):
    """Returns True if *type_name* has the form Collection(...)"""
    return (type_name is not None and type_name.startswith("Collection(") and
            type_name.endswith(")"))


def item_type_name(type_name):
    """Strips any Collection(...) wrapper from *type_name*"""
    if is_collection_type(type_name):
        return type_name[11:-1]
    return type_name


def split_qname(qname):
    """Splits a qualified name into (namespace, name)

    The namespace is everything up to the last dot.  If there is no dot
    the namespace is None."""
    if qname is None:
        return None, None
    i = qname.rfind('.')
    if i < 0:
        return None, qname
    return qname[:i], qname[i + 1:]


class Property(object):

    """A structural property declaration"""

    def __init__(self, name, type):
        #: the name of the property
        self.name = name
        #: the declared type name, e.g., "Edm.String" or
        #: "Collection(ODataDemo.Address)"
        self.type = type

    @classmethod
    def from_json(cls, jdict):
        return cls(jdict["name"], jdict["type"])

    def is_collection(self):
        return is_collection_type(self.type)

    def __repr__(self):
        return "Property(%s, %s)" % (repr(self.name), repr(self.type))


class StructuredType(object):

    """Abstract class for entity and complex types

    base_type is the qualified *name* of the base type (or None), it is
    resolved against the model on demand."""

    def __init__(self, name, namespace=None, properties=(), base_type=None):
        self.name = name
        self.namespace = namespace
        #: the list of :class:`Property` instances declared by this
        #: type (inherited properties are *not* included)
        self.properties = list(properties)
        self.base_type = base_type

    @property
    def qname(self):
        if self.namespace:
            return "%s.%s" % (self.namespace, self.name)
        return self.name

    @classmethod
    def from_json(cls, jdict, namespace=None):
        return cls(jdict["name"], namespace,
                   [Property.from_json(p) for p in jdict.get("property", ())],
                   jdict.get("baseType", None))

    def __repr__(self):
        return "%s(%s)" % (self.__class__.__name__, repr(self.qname))


class ComplexType(StructuredType):

    """A ComplexType declaration"""
    pass


class EntityType(StructuredType):

    """An EntityType declaration

    key
        The ordered list of key property names.  This is only set if
        the key is defined by this entity type itself, keys can also be
        inherited from a base type."""

    def __init__(self, name, namespace=None, properties=(), base_type=None,
                 key=()):
        super(EntityType, self).__init__(
            name, namespace, properties, base_type)
        self.key = list(key)

    @classmethod
    def from_json(cls, jdict, namespace=None):
        result = super(EntityType, cls).from_json(jdict, namespace)
        result.key = _key_from_json(jdict.get("key", None))
        return result


def _json_bool(value):
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def _key_from_json(jkey):
    # accepts ["ID"], [{"name": "ID"}], {"propertyRef": [...]} and the
    # [{"propertyRef": [...]}] form produced by metadata readers
    if not jkey:
        return []
    if isinstance(jkey, dict):
        jkey = [jkey]
    names = []
    for item in jkey:
        if isinstance(item, str):
            names.append(item)
        elif "propertyRef" in item:
            for ref in item["propertyRef"]:
                names.append(ref["name"])
        else:
            names.append(item["name"])
    return names


class EntityBinding(object):

    """Abstract class for entity sets and singletons"""

    def __init__(self, name, entity_type):
        self.name = name
        #: the qualified name of the entity type
        self.entity_type = entity_type

    @classmethod
    def from_json(cls, jdict):
        return cls(jdict["name"], jdict.get("entityType", jdict.get("type")))

    def __repr__(self):
        return "%s(%s, %s)" % (self.__class__.__name__, repr(self.name),
                               repr(self.entity_type))


class EntitySet(EntityBinding):
    pass


class Singleton(EntityBinding):
    pass


class EntityContainer(object):

    """An EntityContainer declaration"""

    def __init__(self, name, entity_sets=(), singletons=(), is_default=False):
        self.name = name
        self.entity_sets = list(entity_sets)
        self.singletons = list(singletons)
        self.is_default = is_default

    @classmethod
    def from_json(cls, jdict):
        entity_sets = [EntitySet.from_json(s)
                       for s in jdict.get("entitySet", ())]
        singletons = [Singleton.from_json(s)
                      for s in jdict.get("singleton", ())]
        return cls(jdict.get("name", None), entity_sets, singletons,
                   _json_bool(jdict.get("isDefaultEntityContainer", False)))


class Schema(object):

    """A Schema declaration

    Schemas are identified by namespace and, optionally, an alias that
    can be used in place of the namespace in qualified names."""

    def __init__(self, namespace, alias=None):
        self.namespace = namespace
        self.alias = alias
        self.entity_types = []
        self.complex_types = []
        self.entity_containers = []

    @classmethod
    def from_json(cls, jdict):
        schema = cls(jdict["namespace"], jdict.get("alias", None))
        for t in jdict.get("entityType", ()):
            schema.entity_types.append(
                EntityType.from_json(t, schema.namespace))
        for t in jdict.get("complexType", ()):
            schema.complex_types.append(
                ComplexType.from_json(t, schema.namespace))
        containers = jdict.get("entityContainer", ())
        if isinstance(containers, dict):
            containers = [containers]
        for c in containers:
            schema.entity_containers.append(EntityContainer.from_json(c))
        return schema

    def matches(self, namespace):
        return namespace is not None and (
            namespace == self.namespace or namespace == self.alias)


class EntityModel(object):

    """An EntityModel is the starting point for the JSON handler

    schemas
        A list of :class:`Schema` instances."""

    def __init__(self, schemas=()):
        self.schemas = list(schemas)

    @classmethod
    def from_json(cls, src):
        """Creates a model from its JSON representation

        src
            Either a list of schema dictionaries or a dictionary with a
            "schema" member (optionally nested inside "dataServices")
            containing that list.  A single schema dictionary is also
            accepted."""
        if isinstance(src, dict):
            if "dataServices" in src:
                src = src["dataServices"]
            if "schema" in src:
                src = src["schema"]
            else:
                src = [src]
        return cls([Schema.from_json(s) for s in src])

    @classmethod
    def from_file(cls, path, encoding='utf-8'):
        with open(path, 'r', encoding=encoding) as f:
            return cls.from_json(json.load(f))

    def _lookup(self, qname, attr):
        namespace, name = split_qname(qname)
        for schema in self.schemas:
            if schema.matches(namespace):
                for item in getattr(schema, attr):
                    if item.name == name:
                        return item
        return None

    def lookup_entity_type(self, qname):
        return self._lookup(qname, "entity_types")

    def lookup_complex_type(self, qname):
        return self._lookup(qname, "complex_types")

    def lookup_structured_type(self, qname):
        """Returns the EntityType or ComplexType called *qname*"""
        result = self.lookup_entity_type(qname)
        if result is None:
            result = self.lookup_complex_type(qname)
        return result

    def get_default_container(self):
        """Returns the default entity container

        If more than one container is declared the one marked as the
        default is returned, otherwise the first container found."""
        first = None
        for schema in self.schemas:
            for container in schema.entity_containers:
                if container.is_default:
                    return container
                elif first is None:
                    first = container
        return first

    def base_types(self, type_def):
        """Generates *type_def* followed by each of its base types

        The generator stops at the first base type that cannot be
        resolved and also if an inheritance cycle is detected."""
        seen = set()
        while type_def is not None and id(type_def) not in seen:
            seen.add(id(type_def))
            yield type_def
            if type_def.base_type is None:
                break
            base = self.lookup_structured_type(type_def.base_type)
            if base is None:
                logging.warning("Base type %s of %s is not declared",
                                type_def.base_type, type_def.qname)
            type_def = base

    def effective_key_type(self, type_def):
        """Returns the type that defines the key of *type_def*

        Walks the base type chain upward until a type with a non-empty
        key is found.  Returns None if no key is defined."""
        for t in self.base_types(type_def):
            if getattr(t, 'key', None):
                return t
        return None

    def effective_property(self, type_def, name):
        """Returns the property *name* declared on *type_def*

        If the property is not declared on *type_def* itself the base
        type chain is searched.  Returns None if there is no such
        property."""
        for t in self.base_types(type_def):
            p = lookup_property(t.properties, name)
            if p is not None:
                return p
        return None


def lookup_entity_type(name, model):
    if model is None or name is None:
        return None
    return model.lookup_entity_type(name)


def lookup_complex_type(name, model):
    if model is None or name is None:
        return None
    return model.lookup_complex_type(name)


def lookup_property(properties, name):
    for p in properties or ():
        if p.name == name:
            return p
    return None


def lookup_entity_set(entity_sets, name):
    for s in entity_sets or ():
        if s.name == name:
            return s
    return None


def lookup_singleton(singletons, name):
    for s in singletons or ():
        if s.name == name:
            return s
    return None


def lookup_default_entity_container(model):
    if model is None:
        return None
    return model.get_default_container()
