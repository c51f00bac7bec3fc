"""
In-memory glTF scene-graph document used by the batch table upgrade.

Only the parts of glTF the upgrade reads or mutates are modelled as classes
(buffers, buffer views, meshes, primitives, extensions). Everything else is
carried through untouched in `passthrough` so a read/write cycle preserves it.

Buffers, buffer views and accessors are addressed by integer index into the
document's lists. Indices are append-only: nothing here removes or reorders
entries, so an index handed out once stays valid for the document lifetime.

Extensions are objects keyed by extension name. A small registry maps
(owner kind, extension name) to the class that implements it; the JSON
reader uses it to dispatch by name, and unknown extensions stay raw dicts.
"""

OWNER_MODEL = "model"
OWNER_PRIMITIVE = "primitive"

_EXTENSION_REGISTRY = {}


def register_extension(owner):
    """Class decorator registering an extension type for an owner kind.

    The class must define EXTENSION_NAME, from_dict(obj) and to_dict().
    """

    def _register(cls):
        name = getattr(cls, "EXTENSION_NAME", None)
        if not name:
            raise ValueError("{0} has no EXTENSION_NAME".format(cls.__name__))
        _EXTENSION_REGISTRY[(owner, name)] = cls
        return cls

    return _register


def lookup_extension(owner, name):
    """Return the registered class for (owner, name), or None."""
    return _EXTENSION_REGISTRY.get((owner, name))


class ExtensibleObject(object):
    """Base for glTF objects that may carry `extensions` and `extras`."""

    def __init__(self):
        self.extensions = {}
        self.extras = None

    def add_extension(self, cls):
        """Return the extension of type cls, creating it if absent."""
        ext = self.extensions.get(cls.EXTENSION_NAME)
        if not isinstance(ext, cls):
            ext = cls()
            self.extensions[cls.EXTENSION_NAME] = ext
        return ext

    def get_extension(self, cls):
        ext = self.extensions.get(cls.EXTENSION_NAME)
        return ext if isinstance(ext, cls) else None


class Buffer(ExtensibleObject):
    """A contiguous byte store. `data` holds the bytes once resolved."""

    def __init__(self, data=None, byte_length=None, uri=None, name=None):
        super().__init__()
        self.data = bytearray(data) if data is not None else bytearray()
        self.byte_length = int(byte_length) if byte_length is not None else len(self.data)
        self.uri = uri
        self.name = name

    def __repr__(self):
        return "Buffer(byte_length={0})".format(self.byte_length)


class BufferView(ExtensibleObject):
    """A window into a buffer: buffer index, offset, length and stride."""

    def __init__(self, buffer, byte_length, byte_offset=0, byte_stride=None, target=None, name=None):
        super().__init__()
        self.buffer = int(buffer)
        self.byte_offset = int(byte_offset)
        self.byte_length = int(byte_length)
        self.byte_stride = int(byte_stride) if byte_stride is not None else None
        self.target = target
        self.name = name

    def __repr__(self):
        return "BufferView(buffer={0}, byte_offset={1}, byte_length={2}, byte_stride={3})".format(
            self.buffer, self.byte_offset, self.byte_length, self.byte_stride
        )


class MeshPrimitive(ExtensibleObject):
    """A mesh primitive: vertex attribute name -> accessor index."""

    def __init__(self, attributes=None, indices=None, material=None, mode=None):
        super().__init__()
        self.attributes = dict(attributes or {})
        self.indices = indices
        self.material = material
        self.mode = mode
        self.passthrough = {}


class Mesh(ExtensibleObject):
    def __init__(self, primitives=None, name=None):
        super().__init__()
        self.primitives = list(primitives or [])
        self.name = name
        self.passthrough = {}


class Model(ExtensibleObject):
    """Top-level glTF document.

    Attributes:
        asset: glTF asset dict (default {"version": "2.0"})
        buffers: list of Buffer
        buffer_views: list of BufferView
        accessors: list of raw accessor dicts (not mutated by the upgrade)
        meshes: list of Mesh
        extensions_used: ordered list of extension names
        passthrough: other top-level members (nodes, scenes, materials, ...)
    """

    def __init__(self):
        super().__init__()
        self.asset = {"version": "2.0"}
        self.buffers = []
        self.buffer_views = []
        self.accessors = []
        self.meshes = []
        self.extensions_used = []
        self.extensions_required = []
        self.passthrough = {}

    def append_buffer(self, buffer):
        """Append a Buffer and return its index."""
        self.buffers.append(buffer)
        return len(self.buffers) - 1

    def append_buffer_view(self, buffer_view):
        """Append a BufferView and return its index."""
        self.buffer_views.append(buffer_view)
        return len(self.buffer_views) - 1

    def add_extension_used(self, name):
        if name not in self.extensions_used:
            self.extensions_used.append(name)

    def iter_primitives(self):
        for mesh in self.meshes:
            for primitive in mesh.primitives:
                yield primitive

    def buffer_view_bytes(self, index):
        """Return the bytes covered by buffer view `index`."""
        view = self.buffer_views[index]
        data = self.buffers[view.buffer].data
        return bytes(data[view.byte_offset:view.byte_offset + view.byte_length])
