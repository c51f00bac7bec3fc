"""
EXT_feature_metadata types.

Document level: ModelFeatureMetadata -> Schema -> Class -> ClassProperty,
plus FeatureTable -> FeatureTableProperty (buffer view index per column).
Primitive level: PrimitiveFeatureMetadata -> FeatureIDAttribute.

Each extension class serializes to and from the glTF JSON shape of the
extension; both are registered by name in the gltf extension registry.
"""

from .gltf import OWNER_MODEL, OWNER_PRIMITIVE, register_extension

EXTENSION_NAME = "EXT_feature_metadata"

TYPE_INT8 = "INT8"
TYPE_UINT8 = "UINT8"
TYPE_INT16 = "INT16"
TYPE_UINT16 = "UINT16"
TYPE_INT32 = "INT32"
TYPE_UINT32 = "UINT32"
TYPE_INT64 = "INT64"
TYPE_UINT64 = "UINT64"
TYPE_FLOAT32 = "FLOAT32"
TYPE_FLOAT64 = "FLOAT64"
TYPE_BOOLEAN = "BOOLEAN"
TYPE_STRING = "STRING"

NUMERIC_TYPES = (
    TYPE_INT8,
    TYPE_UINT8,
    TYPE_INT16,
    TYPE_UINT16,
    TYPE_INT32,
    TYPE_UINT32,
    TYPE_INT64,
    TYPE_UINT64,
    TYPE_FLOAT32,
    TYPE_FLOAT64,
)


class ClassProperty(object):
    """Schema-level descriptor of one property. `type` is None until resolved."""

    def __init__(self, name=None, type=None, description=None):
        self.name = name
        self.type = type
        self.description = description

    @classmethod
    def from_dict(cls, obj):
        return cls(name=obj.get("name"), type=obj.get("type"), description=obj.get("description"))

    def to_dict(self):
        out = {}
        if self.name is not None:
            out["name"] = self.name
        if self.description is not None:
            out["description"] = self.description
        if self.type is not None:
            out["type"] = self.type
        return out


class Class(object):
    def __init__(self, name=None):
        self.name = name
        self.properties = {}

    @classmethod
    def from_dict(cls, obj):
        c = cls(name=obj.get("name"))
        for key, value in (obj.get("properties") or {}).items():
            c.properties[key] = ClassProperty.from_dict(value)
        return c

    def to_dict(self):
        out = {}
        if self.name is not None:
            out["name"] = self.name
        if self.properties:
            out["properties"] = dict((k, v.to_dict()) for k, v in self.properties.items())
        return out


class Schema(object):
    def __init__(self):
        self.classes = {}

    @classmethod
    def from_dict(cls, obj):
        s = cls()
        for key, value in (obj.get("classes") or {}).items():
            s.classes[key] = Class.from_dict(value)
        return s

    def to_dict(self):
        out = {}
        if self.classes:
            out["classes"] = dict((k, v.to_dict()) for k, v in self.classes.items())
        return out


class FeatureTableProperty(object):
    def __init__(self, buffer_view=None):
        self.buffer_view = buffer_view

    @classmethod
    def from_dict(cls, obj):
        return cls(buffer_view=obj.get("bufferView"))

    def to_dict(self):
        out = {}
        if self.buffer_view is not None:
            out["bufferView"] = self.buffer_view
        return out


class FeatureTable(object):
    """Binds a class's property names to buffer-view-backed columns.

    `count` is the number of features (rows) and is fixed at creation.
    """

    def __init__(self, count=0, class_property=None):
        self.count = int(count)
        self.class_property = class_property
        self.properties = {}

    @classmethod
    def from_dict(cls, obj):
        t = cls(count=obj.get("count", 0), class_property=obj.get("class"))
        for key, value in (obj.get("properties") or {}).items():
            t.properties[key] = FeatureTableProperty.from_dict(value)
        return t

    def to_dict(self):
        out = {"count": self.count}
        if self.class_property is not None:
            out["class"] = self.class_property
        if self.properties:
            out["properties"] = dict((k, v.to_dict()) for k, v in self.properties.items())
        return out


@register_extension(OWNER_MODEL)
class ModelFeatureMetadata(object):
    """Document-level EXT_feature_metadata."""

    EXTENSION_NAME = EXTENSION_NAME

    def __init__(self):
        self.schema = None
        self.feature_tables = {}

    def ensure_schema(self):
        if self.schema is None:
            self.schema = Schema()
        return self.schema

    @classmethod
    def from_dict(cls, obj):
        ext = cls()
        if "schema" in obj:
            ext.schema = Schema.from_dict(obj["schema"])
        for key, value in (obj.get("featureTables") or {}).items():
            ext.feature_tables[key] = FeatureTable.from_dict(value)
        return ext

    def to_dict(self):
        out = {}
        if self.schema is not None:
            out["schema"] = self.schema.to_dict()
        if self.feature_tables:
            out["featureTables"] = dict((k, v.to_dict()) for k, v in self.feature_tables.items())
        return out


class FeatureIDAttribute(object):
    """Per-vertex feature ids: feature table name + vertex attribute name."""

    def __init__(self, feature_table=None, attribute=None):
        self.feature_table = feature_table
        self.attribute = attribute

    @classmethod
    def from_dict(cls, obj):
        feature_ids = obj.get("featureIds") or {}
        return cls(feature_table=obj.get("featureTable"), attribute=feature_ids.get("attribute"))

    def to_dict(self):
        out = {}
        if self.feature_table is not None:
            out["featureTable"] = self.feature_table
        if self.attribute is not None:
            out["featureIds"] = {"attribute": self.attribute}
        return out


@register_extension(OWNER_PRIMITIVE)
class PrimitiveFeatureMetadata(object):
    """Primitive-level EXT_feature_metadata."""

    EXTENSION_NAME = EXTENSION_NAME

    def __init__(self):
        self.feature_id_attributes = []

    @classmethod
    def from_dict(cls, obj):
        ext = cls()
        for value in obj.get("featureIdAttributes") or []:
            ext.feature_id_attributes.append(FeatureIDAttribute.from_dict(value))
        return ext

    def to_dict(self):
        out = {}
        if self.feature_id_attributes:
            out["featureIdAttributes"] = [a.to_dict() for a in self.feature_id_attributes]
        return out
