"""Asset container header parser and writer.

The container is little-endian throughout, like the chunk payloads.
"""

import struct
from .asset_constants import (
    HEADER_SIZE, HEADER_FIELD_COUNT, ASSET_MAGIC_COOKIE, CONTAINER_VERSION,
    H_MAGIC_COOKIE, H_CONTAINER_VERSION, H_SERIALIZED_VERSION,
    H_TYPE_NAME_SIZE, H_CHUNK_COUNT, H_CHUNK_TABLE_SIZE,
    H_METADATA_SIZE, H_DATA_SIZE,
)

_HEADER_FORMAT = "<" + "I" * HEADER_FIELD_COUNT


class AssetFormatError(ValueError):
    """Raised when an asset file is truncated or malformed."""


class AssetHeader:
    """Represents the 32-byte asset container header."""

    def __init__(self):
        self.fields = [0] * HEADER_FIELD_COUNT
        self.fields[H_MAGIC_COOKIE] = ASSET_MAGIC_COOKIE
        self.fields[H_CONTAINER_VERSION] = CONTAINER_VERSION

    @property
    def container_version(self):
        return self.fields[H_CONTAINER_VERSION]

    @property
    def serialized_version(self):
        return self.fields[H_SERIALIZED_VERSION]

    @property
    def type_name_size(self):
        return self.fields[H_TYPE_NAME_SIZE]

    @property
    def chunk_count(self):
        return self.fields[H_CHUNK_COUNT]

    @property
    def chunk_table_size(self):
        return self.fields[H_CHUNK_TABLE_SIZE]

    @property
    def metadata_size(self):
        return self.fields[H_METADATA_SIZE]

    @property
    def data_size(self):
        return self.fields[H_DATA_SIZE]

    @classmethod
    def read(cls, data):
        """Read and parse a 32-byte header from raw data.

        Args:
            data: bytes or memoryview of at least HEADER_SIZE bytes

        Returns:
            AssetHeader instance

        Raises:
            AssetFormatError: if data is too small, the magic cookie is
                invalid or the container version is newer than supported
        """
        if len(data) < HEADER_SIZE:
            raise AssetFormatError(
                f"Data too small for asset header: {len(data)} < {HEADER_SIZE}")

        header = cls()
        header.fields = list(struct.unpack_from(_HEADER_FORMAT, data, 0))
        if header.fields[H_MAGIC_COOKIE] != ASSET_MAGIC_COOKIE:
            raise AssetFormatError(
                f"Invalid asset magic cookie: 0x{header.fields[H_MAGIC_COOKIE]:08x}")

        if header.container_version > CONTAINER_VERSION:
            raise AssetFormatError(
                f"Unsupported container version: {header.container_version} "
                f"(max {CONTAINER_VERSION})")

        return header

    def write(self):
        """Serialize the header to 32 bytes."""
        return struct.pack(_HEADER_FORMAT, *self.fields)

    def __repr__(self):
        return (
            f"AssetHeader(container={self.container_version}, "
            f"serialized={self.serialized_version}, "
            f"chunks={self.chunk_count}, metadata={self.metadata_size}, "
            f"data={self.data_size})"
        )
