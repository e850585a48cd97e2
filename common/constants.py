"""Project-wide constants shared by the relay server and the CLI."""

CHUNK_SIZE_BYTES: int = 10 * 1024 * 1024  # 10 MiB per uploaded chunk

RETENTION_WINDOW_SECONDS: int = 60 * 60

CODE_LENGTH: int = 8

STREAM_PIECE_SIZE: int = 64 * 1024

DEFAULT_RELAY_HOST: str = "0.0.0.0"
DEFAULT_RELAY_PORT: int = 8000
DEFAULT_DATA_DIR: str = "./data"

CHUNK_KEY_SEPARATOR: str = "_chunk-"
