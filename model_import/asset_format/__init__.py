"""Chunked binary asset container: header, chunk table, metadata, chunks."""

from .asset_header import AssetHeader, AssetFormatError
from .asset_objects import AssetChunk, LoadedAsset
from .asset_reader import AssetReader
from .asset_writer import AssetWriter, ChunkAllocationError
from .asset_storage import AssetStorage
