"""Project-wide constants (chunk sizes, naming conventions, default paths)."""

DEFAULT_CHUNK_SIZE_BYTES: int = 5 * 1024 * 1024  # 5 MiB client-side default
STREAM_PIECE_SIZE_BYTES: int = 64 * 1024

DEFAULT_DATA_DIR: str = "./data"
DEFAULT_DATABASE_PATH: str = f"{DEFAULT_DATA_DIR}/metadata.db"
DEFAULT_UPLOAD_DIR: str = f"{DEFAULT_DATA_DIR}/uploads"
DEFAULT_CHUNK_STORAGE_PATH: str = f"{DEFAULT_DATA_DIR}/chunks"

# Stored chunk name is "<chunk_hash>-<index>"; the sidecar adds this suffix.
CHUNK_NAME_SEPARATOR: str = "-"
CHUNK_SIDECAR_SUFFIX: str = ".json"
CHUNK_TEMP_SUFFIX: str = ".part"

MAX_KEY_LENGTH: int = 128

DEFAULT_SERVER_PORT: int = 3000
