"""Python representations of asset container sections."""


class AssetChunk:
    """One indexed binary section of an asset.

    The data buffer is writable; serializers append to it or replace it.
    """

    __slots__ = ('index', 'data')

    def __init__(self, index, data=None):
        self.index = index
        self.data = bytearray(data or b'')

    def copy_from(self, buf):
        """Replace the chunk contents with a copy of buf."""
        self.data = bytearray(buf)

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        return f"AssetChunk({self.index}, size={len(self.data)})"


class LoadedAsset:
    """A previously written asset, decoded far enough for re-import.

    Attributes:
        type_name: asset type name string
        serialized_version: asset serialized version
        metadata: raw metadata bytes (JSON)
        chunks: dict of chunk index -> bytes
        material_slots: list of MaterialSlot (Model / SkinnedModel only)
    """

    __slots__ = ('type_name', 'serialized_version', 'metadata', 'chunks',
                 'material_slots')

    def __init__(self, type_name, serialized_version, metadata=b'', chunks=None):
        self.type_name = type_name
        self.serialized_version = serialized_version
        self.metadata = metadata
        self.chunks = chunks or {}
        self.material_slots = []

    def __repr__(self):
        return (
            f"LoadedAsset({self.type_name!r}, v{self.serialized_version}, "
            f"chunks={sorted(self.chunks)}, slots={len(self.material_slots)})"
        )
