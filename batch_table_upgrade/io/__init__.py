"""
Containers around the upgrade: glTF JSON, GLB and b3dm.

Modules:
- gltf_json: Model <-> glTF JSON dict, .gltf/.glb read and write
- glb: GLB chunk container
- b3dm: b3dm header/section parsing and upgrade_b3dm()
"""

from .b3dm import B3dm, B3dmFormatError, parse_b3dm, upgrade_b3dm
from .glb import GlbFormatError, build_glb, parse_glb
from .gltf_json import model_from_dict, model_to_dict, read_gltf, write_glb, write_gltf

__all__ = [
    "B3dm",
    "B3dmFormatError",
    "parse_b3dm",
    "upgrade_b3dm",
    "GlbFormatError",
    "build_glb",
    "parse_glb",
    "model_from_dict",
    "model_to_dict",
    "read_gltf",
    "write_glb",
    "write_gltf",
]
