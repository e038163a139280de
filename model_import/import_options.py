"""Import options for model, skinned model and animation assets.

ImportOptions is persisted as JSON metadata inside every asset written by
the importer, so a later re-import of the same source can recover the
exact settings used the first time (see try_get_import_options).

Presets bundle common option sets. They are registered in a global dict
and can be listed for a UI dropdown or fetched by id.

Adding a new preset:
    1. Build an ImportOptions with the desired settings
    2. Wrap it in an ImportPreset with an id, display name and notes
    3. Call register_preset() to add it to the registry
"""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional, Tuple

from .asset_format.asset_constants import (
    TYPE_MODEL, TYPE_SKINNED_MODEL, TYPE_ANIMATION, MIN_RESTORABLE_VERSIONS,
)
from .asset_format.asset_header import AssetFormatError

_log = logging.getLogger("model_import.options")

# Object types an import can produce
MODEL_TYPES = (TYPE_MODEL, TYPE_SKINNED_MODEL, TYPE_ANIMATION)

# Lightmap UV sources
LIGHTMAP_UVS_DISABLE = "Disable"
LIGHTMAP_UVS_GENERATE = "Generate"
LIGHTMAP_UVS_CHANNELS = ("Channel0", "Channel1", "Channel2", "Channel3")
LIGHTMAP_UVS_SOURCES = (LIGHTMAP_UVS_DISABLE, LIGHTMAP_UVS_GENERATE) + LIGHTMAP_UVS_CHANNELS


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass
class ImportOptions:
    """Settings for one model/animation import.

    Everything except `cached` is written to the asset metadata.
    """

    # Asset type to create: "Model", "SkinnedModel" or "Animation".
    type: str = TYPE_MODEL

    # Split a multi-object source into one asset per mesh group
    # (models) or per animation clip (animations).
    split_objects: bool = False

    # Object (mesh group / clip) to import, -1 = all.
    object_index: int = -1

    # Carry material slots over from the asset being replaced.
    restore_materials_on_reimport: bool = True

    # Lightmap UV source; "Generate" also packs per-mesh charts into one atlas.
    lightmap_uvs_source: str = LIGHTMAP_UVS_DISABLE

    # Signed distance field generation (Model only).
    generate_sdf: bool = False
    sdf_resolution: float = 1.0

    # Folder (next to the asset) for sub-assets the parser creates
    # (textures, materials). Empty = source file name.
    sub_asset_folder: str = ""

    # Parser-facing settings, persisted so re-imports match.
    scale: float = 1.0
    import_lods: bool = True
    import_materials: bool = True
    import_textures: bool = True
    calculate_normals: bool = False

    # Shared parsed data for split extraction jobs. Never persisted.
    cached: Optional[Any] = field(default=None, repr=False, compare=False)

    def validate(self):
        """Raise ValueError for wrong-typed values or values outside their allowed sets."""
        for f in fields(self):
            if f.name == "cached":
                continue
            value = getattr(self, f.name)
            expected = type(f.default)
            if expected is float:
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
            elif expected is int:
                ok = isinstance(value, int) and not isinstance(value, bool)
            else:
                ok = isinstance(value, expected)
            if not ok:
                raise ValueError(
                    f"Option '{f.name}' must be {expected.__name__}, got {type(value).__name__}")
        if self.lightmap_uvs_source not in LIGHTMAP_UVS_SOURCES:
            raise ValueError(f"Unknown lightmap UVs source: {self.lightmap_uvs_source!r}")
        if self.sdf_resolution <= 0.0:
            raise ValueError(f"SDF resolution must be positive, got {self.sdf_resolution}")
        if self.object_index < -1:
            raise ValueError(f"Invalid object index: {self.object_index}")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "cached"}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportOptions":
        """Build options from a metadata dict; unknown keys are ignored."""
        known = {f.name for f in fields(cls) if f.name != "cached"}
        return cls(**{k: v for k, v in data.items() if k in known})

    def copy_for_split(self, object_index: int, cached) -> "ImportOptions":
        """Options for a split extraction job: one object, no further split."""
        return replace(self, split_objects=False, object_index=object_index, cached=cached)


@dataclass
class ImportPreset:
    """A named option set shown in preset dropdowns."""
    preset_id: str
    name: str
    options: ImportOptions
    notes: str = ""


# ---------------------------------------------------------------------------
# Preset registry
# ---------------------------------------------------------------------------

IMPORT_PRESETS: Dict[str, ImportPreset] = {}


def register_preset(preset: ImportPreset) -> None:
    """Register a preset in the global registry."""
    IMPORT_PRESETS[preset.preset_id] = preset


def get_preset(preset_id: str) -> Optional[ImportOptions]:
    """Return a fresh copy of the preset's options, or None if unknown."""
    preset = IMPORT_PRESETS.get(preset_id)
    if preset is None:
        return None
    return replace(preset.options)


def get_preset_items() -> List[Tuple[str, str, str]]:
    """Return (identifier, name, description) tuples for a dropdown."""
    return [(pid, p.name, p.notes) for pid, p in IMPORT_PRESETS.items()]


register_preset(ImportPreset(
    preset_id="static_model",
    name="Static Model",
    options=ImportOptions(type=TYPE_MODEL),
    notes="Single static model with all meshes",
))

register_preset(ImportPreset(
    preset_id="level_props",
    name="Level Props",
    options=ImportOptions(
        type=TYPE_MODEL,
        split_objects=True,
        lightmap_uvs_source=LIGHTMAP_UVS_GENERATE,
        generate_sdf=True,
    ),
    notes="One model per object with packed lightmap UVs and SDF",
))

register_preset(ImportPreset(
    preset_id="skinned_character",
    name="Skinned Character",
    options=ImportOptions(type=TYPE_SKINNED_MODEL),
    notes="Skinned model with skeleton",
))

register_preset(ImportPreset(
    preset_id="animation_clips",
    name="Animation Clips",
    options=ImportOptions(type=TYPE_ANIMATION, split_objects=True),
    notes="One animation asset per clip",
))


# ---------------------------------------------------------------------------
# Restoring options from previously imported assets
# ---------------------------------------------------------------------------

def try_get_import_options(path, storage) -> Optional[ImportOptions]:
    """Recover the options stored in an existing asset's metadata.

    Only Model (serialized version >= 4), SkinnedModel (>= 1) and
    Animation (>= 1) assets with valid JSON metadata qualify.

    Args:
        path: asset file path
        storage: AssetStorage (anything with exists/load_header)

    Returns:
        ImportOptions, or None if nothing can be restored.
    """
    if not storage.exists(path):
        return None
    try:
        type_name, version, metadata = storage.load_header(path)
    except (OSError, AssetFormatError) as e:
        _log.debug("Cannot read asset header %s: %s", path, e)
        return None

    min_version = MIN_RESTORABLE_VERSIONS.get(type_name)
    if min_version is None or version < min_version:
        return None

    try:
        meta = json.loads(metadata.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(meta, dict):
        return None

    try:
        options = ImportOptions.from_dict(meta)
        options.validate()
    except (TypeError, ValueError) as e:
        _log.debug("Cannot restore import options from %s: %s", path, e)
        return None
    return options


def resolve_import_options(context) -> ImportOptions:
    """Options for an import: the caller's, the previous import's, or defaults.

    Args:
        context: CreateAssetContext (custom_arg, target_asset_path, storage)
    """
    if context.custom_arg is not None:
        return replace(context.custom_arg)

    options = None
    if context.storage is not None:
        options = try_get_import_options(context.target_asset_path, context.storage)
    if options is None:
        _log.warning("Missing model import options. Using default values.")
        options = ImportOptions()
    return options
