"""Constants for the chunked asset container format."""

# Magic cookie, stored little-endian like every other header field
ASSET_MAGIC_COOKIE = 0x0A55E7C0

# Container layout version (not the asset's serialized version)
CONTAINER_VERSION = 1

# Header field indices (8 uint32 fields, 32 bytes total)
H_MAGIC_COOKIE = 0
H_CONTAINER_VERSION = 1
H_SERIALIZED_VERSION = 2
H_TYPE_NAME_SIZE = 3
H_CHUNK_COUNT = 4
H_CHUNK_TABLE_SIZE = 5
H_METADATA_SIZE = 6
H_DATA_SIZE = 7

HEADER_FIELD_COUNT = 8

# Header size in bytes
HEADER_SIZE = 0x20  # 32 bytes = 8 * 4

# Chunk table entry: index:u32, offset:u32, size:u32
CHUNK_TABLE_ENTRY_SIZE = 12

# Chunk slots per asset
MAX_CHUNKS = 16

# Chunk slot holding the model signed distance field
SDF_CHUNK_INDEX = 15

# Default file extension for written assets
ASSET_EXTENSION = ".asset"

# Asset type names
TYPE_MODEL = "Model"
TYPE_SKINNED_MODEL = "SkinnedModel"
TYPE_ANIMATION = "Animation"

# Current serialized version per asset type
SERIALIZED_VERSIONS = {
    TYPE_MODEL: 25,
    TYPE_SKINNED_MODEL: 5,
    TYPE_ANIMATION: 1,
}

# Oldest serialized version whose import metadata can be reused
MIN_RESTORABLE_VERSIONS = {
    TYPE_MODEL: 4,
    TYPE_SKINNED_MODEL: 1,
    TYPE_ANIMATION: 1,
}

# Version byte written at the start of every skinned LOD chunk
SKINNED_MESH_DATA_VERSION = 1

# Model header layout version (chunk 0)
MODEL_HEADER_VERSION = 2

# Animation header layout version (chunk 0)
ANIMATION_HEADER_VERSION = 100

# Mesh flags (one byte per mesh record)
MESH_FLAG_HAS_NORMALS = 0x01
MESH_FLAG_HAS_UVS = 0x02
MESH_FLAG_HAS_LIGHTMAP_UVS = 0x04
MESH_FLAG_HAS_COLORS = 0x08
MESH_FLAG_INDEX_32 = 0x10

# Largest vertex count that still uses 16-bit indices
MAX_INDEX_16_VERTICES = 0xFFFF

# Most LODs a model header can describe
MODEL_MAX_LODS = 6
