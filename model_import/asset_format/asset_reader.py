"""Asset container reader.

Reads an asset file written by AssetWriter and exposes its header, type
name, metadata and chunks.
"""

import struct
from .asset_constants import HEADER_SIZE, CHUNK_TABLE_ENTRY_SIZE
from .asset_header import AssetHeader, AssetFormatError


class AssetReader:
    """Reads and parses a complete asset file.

    Usage:
        reader = AssetReader("path/to/file.asset")
        reader.read()
        # Access parsed data:
        #   reader.header - AssetHeader
        #   reader.type_name - asset type name
        #   reader.metadata - raw metadata bytes
        #   reader.chunks - dict of chunk index -> bytes
    """

    def __init__(self, filepath=None, data=None):
        self.filepath = filepath
        self.data = data
        self.header = None
        self.type_name = ""
        self.metadata = b''
        self.chunks = {}

    def read(self, header_only=False):
        """Read and parse the asset file.

        Args:
            header_only: stop after the type name and metadata
        """
        if self.data is None:
            with open(self.filepath, "rb") as f:
                self.data = f.read()

        file_size = len(self.data)
        if file_size < HEADER_SIZE:
            raise AssetFormatError(f"File too small: {file_size} bytes")

        self.header = AssetHeader.read(self.data[:HEADER_SIZE])
        header = self.header

        expected = (HEADER_SIZE + header.type_name_size + header.chunk_table_size +
                    header.metadata_size + header.data_size)
        if file_size < expected:
            raise AssetFormatError(
                f"Truncated asset file: {file_size} bytes, expected {expected} bytes")

        pos = HEADER_SIZE

        # Type name
        raw_name = self.data[pos:pos + header.type_name_size]
        self.type_name = bytes(raw_name).split(b'\x00', 1)[0].decode('utf-8')
        pos += header.type_name_size

        # Chunk table
        table_pos = pos
        pos += header.chunk_table_size

        # Metadata
        self.metadata = bytes(self.data[pos:pos + header.metadata_size])
        pos += header.metadata_size

        if header_only:
            return self

        data_start = pos
        for i in range(header.chunk_count):
            index, offset, size = struct.unpack_from(
                "<III", self.data, table_pos + i * CHUNK_TABLE_ENTRY_SIZE)
            if offset + size > header.data_size:
                raise AssetFormatError(
                    f"Chunk {index} overruns the data section ({offset}+{size} > {header.data_size})")
            start = data_start + offset
            self.chunks[index] = bytes(self.data[start:start + size])

        return self
