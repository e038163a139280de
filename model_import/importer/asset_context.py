"""State shared by the stages of one asset import."""

import getpass
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..asset_format.asset_constants import SERIALIZED_VERSIONS
from ..asset_format.asset_writer import AssetWriter

_log = logging.getLogger("model_import.context")


class CreateAssetResult(Enum):
    OK = "Ok"
    ERROR = "Error"
    CANNOT_ALLOCATE_CHUNK = "CannotAllocateChunk"
    INVALID_TYPE_ID = "InvalidTypeID"


@dataclass
class ImportDiagnostics:
    """Best-effort outcomes callers may want to inspect.

    Attributes:
        material_restore: RESTORE_* status, None when not attempted
        lightmap_atlas: AtlasPackResult, None when not attempted
        sdf_generated: True/False when requested, None otherwise
        split_jobs: output paths of the extraction jobs planned by this import
        released_meshes: meshes dropped by object selection
    """
    material_restore: Optional[str] = None
    lightmap_atlas: Optional[object] = None
    sdf_generated: Optional[bool] = None
    split_jobs: List[str] = field(default_factory=list)
    released_meshes: int = 0


class CreateAssetContext:
    """Inputs and outputs of one asset creation.

    Attributes:
        input_path: source file path
        target_asset_path: asset file being created
        custom_arg: ImportOptions from the caller, or None to restore/default
        storage: AssetStorage used for restore lookups (optional)
        writer: AssetWriter receiving chunks and metadata
        diagnostics: ImportDiagnostics
    """

    def __init__(self, input_path, target_asset_path, custom_arg=None, storage=None):
        self.input_path = input_path
        self.target_asset_path = target_asset_path
        self.custom_arg = custom_arg
        self.storage = storage
        self.writer = AssetWriter()
        self.diagnostics = ImportDiagnostics()

    def set_asset_type(self, type_name):
        """Set the asset type name and its current serialized version."""
        self.writer.type_name = type_name
        self.writer.serialized_version = SERIALIZED_VERSIONS[type_name]

    def allocate_chunk(self, index):
        """Allocate a chunk slot (raises ChunkAllocationError on failure)."""
        return self.writer.allocate_chunk(index)

    def add_meta(self, meta):
        """Add the import context entries to a metadata dict."""
        meta["ImportPath"] = self.input_path
        try:
            meta["ImportUsername"] = getpass.getuser()
        except (KeyError, OSError) as e:
            _log.debug("Cannot resolve import username: %s", e)
            meta["ImportUsername"] = ""

    def set_metadata(self, meta):
        self.writer.metadata = json.dumps(meta, separators=(',', ':')).encode('utf-8')
