"""
Core data structures and algorithms for the batch table upgrade.

Modules:
- diagnostics: bounded structured event recorder (the diagnostics sink)
- gltf: Model, Buffer, BufferView, Mesh, MeshPrimitive and the extension registry
- feature_metadata: EXT_feature_metadata schema, class and feature table types
- type_inference: compatibility flags and type selection for JSON arrays
- buffer_packer: per-property buffer + buffer view allocation and packing
- upgrade: the batch table -> feature metadata pipeline
"""

from .diagnostics import Diagnostics
from .gltf import Buffer, BufferView, Mesh, MeshPrimitive, Model
from .type_inference import CompatibleTypes, find_compatible_types, select_type
from .upgrade import UpgradeResult, upgrade_batch_table_to_feature_metadata

__all__ = [
    "Diagnostics",
    "Buffer",
    "BufferView",
    "Mesh",
    "MeshPrimitive",
    "Model",
    "CompatibleTypes",
    "find_compatible_types",
    "select_type",
    "UpgradeResult",
    "upgrade_batch_table_to_feature_metadata",
]
