"""
Upgrade of a legacy b3dm batch table to EXT_feature_metadata.

Pipeline (one call, synchronous):

1. read_feature_count      BATCH_LENGTH gate (WARN + abort when missing/invalid)
2. parse_batch_table_json  JSON gate (ERROR + abort on parse failure)
3. embed_binary_blob       batch table binary body -> verbatim buffer
4. build_schema            schema, class "default", feature table "default"
5. upgrade_property        one pass over the batch table properties
6. rewrite_primitives      one pass over all primitives: _BATCHID -> _FEATURE_ID_0

Steps 1 and 2 run before any mutation, so an abort leaves the model exactly
as it was. After that every step mutates unconditionally; there is no
rollback. Callers needing atomicity must copy the model first.

Unsupported property shapes (string, boolean and binary-encoded columns) are
not errors: the class property exists without a type, no feature table
property or buffer is produced, and a DEBUG event records why.
"""

import json

from .buffer_packer import embed_binary_blob, pack_numeric_property
from .feature_metadata import (
    EXTENSION_NAME,
    NUMERIC_TYPES,
    Class,
    ClassProperty,
    FeatureIDAttribute,
    FeatureTable,
    FeatureTableProperty,
    ModelFeatureMetadata,
    PrimitiveFeatureMetadata,
    TYPE_BOOLEAN,
)
from .type_inference import INT64_MAX, INT64_MIN, find_compatible_types, select_type

BATCH_LENGTH = "BATCH_LENGTH"
DEFAULT_NAME = "default"
LEGACY_FEATURE_ID_ATTRIBUTE = "_BATCHID"
FEATURE_ID_ATTRIBUTE = "_FEATURE_ID_0"

PHASE = "batch_table"

# Reasons recorded for properties that produce no buffer.
REASON_STRING = "string"
REASON_BOOLEAN = "boolean"
REASON_BINARY = "binary"
REASON_LENGTH = "length_mismatch"


class UpgradeResult(object):
    """Summary of a completed upgrade (None is returned for aborted ones)."""

    def __init__(self, feature_count, binary_buffer_index=None):
        self.feature_count = feature_count
        self.binary_buffer_index = binary_buffer_index
        self.upgraded = {}  # property name -> type name
        self.unsupported = {}  # property name -> reason
        self.primitives_rewritten = 0

    def to_dict(self):
        return {
            "feature_count": self.feature_count,
            "binary_buffer_index": self.binary_buffer_index,
            "upgraded": dict(self.upgraded),
            "unsupported": dict(self.unsupported),
            "primitives_rewritten": self.primitives_rewritten,
        }


def read_feature_count(diag, feature_table_json):
    """Return BATCH_LENGTH as an int, or None after a WARN diagnostic.

    Booleans and floats are rejected even when integral (3.0 is not an
    integer), as are values outside the signed 64-bit range and negatives.
    """
    value = None
    if isinstance(feature_table_json, dict):
        value = feature_table_json.get(BATCH_LENGTH)

    valid = (
        isinstance(value, int)
        and not isinstance(value, bool)
        and INT64_MIN <= value <= INT64_MAX
        and value >= 0
    )
    if not valid:
        if diag is not None:
            diag.warn(
                phase=PHASE,
                callsite="read_feature_count",
                message=(
                    "The B3DM has a batch table, but it is being ignored because there is "
                    "no BATCH_LENGTH semantic in the feature table or it is not an integer."
                ),
                extra={"batch_length": repr(value)},
            )
        return None
    return value


def _reject_constant(name):
    raise ValueError("Invalid value {0}".format(name))


def parse_batch_table_json(diag, data):
    """Parse batch table JSON bytes into a dict, or None after an ERROR.

    The ERROR event carries the parser error code (its message) and the byte
    offset of the failure in `extra`.
    """
    if isinstance(data, str):
        text = data
    else:
        try:
            text = bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            _report_parse_error(diag, "Invalid encoding in string", e.start, e)
            return None

    try:
        document = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        offset = len(text[:e.pos].encode("utf-8"))
        _report_parse_error(diag, e.msg, offset, e)
        return None
    except ValueError as e:
        _report_parse_error(diag, str(e), None, e)
        return None

    if not isinstance(document, dict):
        _report_parse_error(diag, "Batch table JSON is not an object", 0, None)
        return None
    return document


def _report_parse_error(diag, code, offset, exc):
    if diag is None:
        return
    diag.error(
        phase=PHASE,
        callsite="parse_batch_table_json",
        message="Error when parsing batch table JSON, error code {0} at byte offset {1}".format(code, offset),
        exc=exc,
        extra={"code": code, "offset": offset},
    )


def build_schema(model, feature_count):
    """Create (or fetch) the schema, class and feature table named "default".

    Returns:
        (class_definition, feature_table)
    """
    extension = model.add_extension(ModelFeatureMetadata)
    model.add_extension_used(EXTENSION_NAME)

    schema = extension.ensure_schema()
    class_definition = schema.classes.get(DEFAULT_NAME)
    if class_definition is None:
        class_definition = schema.classes[DEFAULT_NAME] = Class()

    feature_table = extension.feature_tables.get(DEFAULT_NAME)
    if feature_table is None:
        feature_table = extension.feature_tables[DEFAULT_NAME] = FeatureTable(
            count=feature_count, class_property=DEFAULT_NAME
        )
    return class_definition, feature_table


def _unsupported(diag, name, reason, result, extra=None):
    if result is not None:
        result.unsupported[name] = reason
    if diag is not None:
        diag.debug(
            phase=PHASE,
            callsite="upgrade_property",
            message="Property not upgraded ({0}); class property left without a type".format(reason),
            prop=name,
            extra=extra,
        )


def _is_string_like(value):
    return value is None or isinstance(value, (str, list, dict))


def upgrade_property(diag, model, class_definition, feature_table, name, value, config=None, result=None):
    """Upgrade one batch table property into class + feature table entries.

    Always creates the ClassProperty. Only numeric JSON arrays additionally
    get a type, a packed buffer and a FeatureTableProperty.

    Returns:
        The resolved type name, or None for unsupported shapes.
    """
    class_property = class_definition.properties.get(name)
    if class_property is None:
        class_property = class_definition.properties[name] = ClassProperty(name=name)

    if not isinstance(value, list):
        # {"byteOffset": ..., "componentType": ..., "type": ...} in the binary body
        _unsupported(diag, name, REASON_BINARY, result)
        return None

    count = feature_table.count
    if not value or len(value) < count:
        _unsupported(diag, name, REASON_STRING, result, {"length": len(value), "count": count})
        return None

    if _is_string_like(value[0]):
        _unsupported(diag, name, REASON_STRING, result)
        return None

    strict = config.strict_array_length if config is not None else True
    if len(value) > count:
        if strict:
            if diag is not None:
                diag.warn(
                    phase=PHASE,
                    callsite="upgrade_property",
                    message="Property array is longer than BATCH_LENGTH; property not upgraded",
                    prop=name,
                    extra={"length": len(value), "count": count},
                )
            if result is not None:
                result.unsupported[name] = REASON_LENGTH
            return None
        value = value[:count]

    type_name = select_type(find_compatible_types(value))
    if type_name == TYPE_BOOLEAN:
        _unsupported(diag, name, REASON_BOOLEAN, result)
        return None
    if type_name not in NUMERIC_TYPES:
        _unsupported(diag, name, REASON_STRING, result)
        return None

    class_property.type = type_name
    buffer_view_index = pack_numeric_property(model, type_name, value, count)
    feature_table.properties[name] = FeatureTableProperty(buffer_view=buffer_view_index)

    if result is not None:
        result.upgraded[name] = type_name
    return type_name


def rewrite_primitives(model):
    """Rename _BATCHID to _FEATURE_ID_0 and attach feature id extensions.

    Primitives without _BATCHID are left untouched.

    Returns:
        Number of primitives rewritten.
    """
    rewritten = 0
    for primitive in model.iter_primitives():
        if LEGACY_FEATURE_ID_ATTRIBUTE not in primitive.attributes:
            continue

        primitive.attributes[FEATURE_ID_ATTRIBUTE] = primitive.attributes.pop(LEGACY_FEATURE_ID_ATTRIBUTE)

        extension = primitive.add_extension(PrimitiveFeatureMetadata)
        extension.feature_id_attributes.append(
            FeatureIDAttribute(feature_table=DEFAULT_NAME, attribute=FEATURE_ID_ATTRIBUTE)
        )
        rewritten += 1
    return rewritten


def upgrade_batch_table_to_feature_metadata(
    diag,
    model,
    feature_table_json,
    batch_table_json_data,
    batch_table_binary_data=b"",
    config=None,
):
    """Convert a b3dm batch table into EXT_feature_metadata on `model`.

    Args:
        diag: Diagnostics sink (may be None)
        model: gltf.Model, mutated in place
        feature_table_json: parsed feature table JSON (dict)
        batch_table_json_data: batch table JSON text (bytes or str)
        batch_table_binary_data: batch table binary body (may be empty)
        config: Config (optional)

    Returns:
        UpgradeResult, or None if a gate check aborted the upgrade.
    """
    feature_count = read_feature_count(diag, feature_table_json)
    if feature_count is None:
        return None

    document = parse_batch_table_json(diag, batch_table_json_data)
    if document is None:
        return None

    result = UpgradeResult(feature_count, embed_binary_blob(model, batch_table_binary_data))

    class_definition, feature_table = build_schema(model, feature_count)

    for name, value in document.items():
        upgrade_property(diag, model, class_definition, feature_table, name, value, config, result)

    result.primitives_rewritten = rewrite_primitives(model)

    if diag is not None:
        diag.info(
            phase=PHASE,
            callsite="upgrade_batch_table_to_feature_metadata",
            message="Batch table upgraded",
            extra=result.to_dict(),
        )
    return result
