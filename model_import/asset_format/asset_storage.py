"""File-backed asset storage.

Loads the header/metadata of existing assets (for restoring import
options) and decodes previously written models far enough to read their
material slots (for restoring materials on re-import).
"""

import os
import logging

from .asset_constants import TYPE_MODEL, TYPE_SKINNED_MODEL
from .asset_header import AssetFormatError
from .asset_objects import LoadedAsset
from .asset_reader import AssetReader

_log = logging.getLogger("model_import.storage")


class AssetStorage:
    """Reads and writes asset files on the local file system."""

    def exists(self, path):
        return os.path.isfile(path)

    def load_header(self, path):
        """Load the type name, serialized version and metadata of an asset.

        Returns:
            (type_name, serialized_version, metadata_bytes) tuple

        Raises:
            OSError: if the file cannot be read
            AssetFormatError: if the file is not a valid asset
        """
        reader = AssetReader(path).read(header_only=True)
        return reader.type_name, reader.header.serialized_version, reader.metadata

    def load_asset(self, path):
        """Load a complete asset.

        Model and SkinnedModel assets get their material slots decoded from
        the header chunk.

        Returns:
            LoadedAsset instance, or None if the file is missing or unreadable
        """
        if not self.exists(path):
            return None
        try:
            reader = AssetReader(path).read()
        except (OSError, AssetFormatError) as e:
            _log.debug("Cannot load asset %s: %s", path, e)
            return None

        asset = LoadedAsset(reader.type_name, reader.header.serialized_version,
                            reader.metadata, reader.chunks)

        if asset.type_name in (TYPE_MODEL, TYPE_SKINNED_MODEL) and 0 in asset.chunks:
            from ..importer.chunk_packer import unpack_model_header
            try:
                header = unpack_model_header(asset.chunks[0])
            except (ValueError, UnicodeDecodeError) as e:
                _log.debug("Cannot decode model header of %s: %s", path, e)
                return None
            asset.material_slots = header.materials

        return asset

    def save(self, writer, path):
        """Write an AssetWriter's contents to path, creating folders as needed."""
        folder = os.path.dirname(path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        writer.write(path)
