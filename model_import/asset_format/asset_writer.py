"""Low-level asset container serializer.

Writes an asset file from in-memory chunks. This is the raw serializer:
it doesn't know about models or animations, it just lays out the header,
type name, chunk table, metadata and chunk data in order.

This is the exact inverse of asset_reader.py.
"""

import struct
from .asset_constants import (
    HEADER_SIZE, MAX_CHUNKS, CHUNK_TABLE_ENTRY_SIZE,
    H_SERIALIZED_VERSION, H_TYPE_NAME_SIZE, H_CHUNK_COUNT,
    H_CHUNK_TABLE_SIZE, H_METADATA_SIZE, H_DATA_SIZE,
)
from .asset_header import AssetHeader
from .asset_objects import AssetChunk


class ChunkAllocationError(ValueError):
    """Raised when a chunk slot cannot be allocated."""


class AssetWriter:
    """Collects the sections of one asset and writes them to disk.

    Usage:
        writer = AssetWriter()
        writer.type_name = "Model"
        writer.serialized_version = 25
        chunk = writer.allocate_chunk(0)
        chunk.copy_from(header_bytes)
        writer.metadata = b'{...}'
        writer.write("output.asset")
    """

    def __init__(self):
        self.type_name = ""
        self.serialized_version = 0
        self.metadata = b''
        self.chunks = {}  # index -> AssetChunk

    def allocate_chunk(self, index):
        """Allocate the chunk slot at index.

        Raises:
            ChunkAllocationError: if the index is outside [0, MAX_CHUNKS)
                or the slot is already allocated
        """
        if index < 0 or index >= MAX_CHUNKS:
            raise ChunkAllocationError(
                f"Chunk index {index} out of range [0, {MAX_CHUNKS})")
        if index in self.chunks:
            raise ChunkAllocationError(f"Chunk {index} is already allocated")
        chunk = AssetChunk(index)
        self.chunks[index] = chunk
        return chunk

    def get_chunk(self, index):
        return self.chunks.get(index)

    def to_bytes(self):
        """Serialize the complete asset to bytes."""
        type_buf = self._serialize_type_name()
        ordered = [self.chunks[i] for i in sorted(self.chunks)]

        table = bytearray()
        data = bytearray()
        for chunk in ordered:
            table.extend(struct.pack("<III", chunk.index, len(data), len(chunk.data)))
            data.extend(chunk.data)

        header = AssetHeader()
        header.fields[H_SERIALIZED_VERSION] = self.serialized_version
        header.fields[H_TYPE_NAME_SIZE] = len(type_buf)
        header.fields[H_CHUNK_COUNT] = len(ordered)
        header.fields[H_CHUNK_TABLE_SIZE] = len(ordered) * CHUNK_TABLE_ENTRY_SIZE
        header.fields[H_METADATA_SIZE] = len(self.metadata)
        header.fields[H_DATA_SIZE] = len(data)

        buf = bytearray(header.write())
        assert len(buf) == HEADER_SIZE
        buf.extend(type_buf)      # 2. Type name
        buf.extend(table)         # 3. Chunk table
        buf.extend(self.metadata) # 4. Metadata
        buf.extend(data)          # 5. Chunk data
        return bytes(buf)

    def write(self, filepath):
        """Serialize and write the asset file to disk.

        Args:
            filepath: output file path
        """
        with open(filepath, "wb") as f:
            f.write(self.to_bytes())

    def _serialize_type_name(self):
        """Type name: utf-8 bytes, null terminated, padded to 4 bytes."""
        name_bytes = self.type_name.encode('utf-8') + b'\x00'
        padded = (len(name_bytes) + 3) & ~3
        return name_bytes + b'\x00' * (padded - len(name_bytes))
