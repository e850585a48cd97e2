"""Configuration settings for the relay server."""

import os
from pathlib import Path

from common.constants import DEFAULT_DATA_DIR, DEFAULT_RELAY_HOST, DEFAULT_RELAY_PORT


DATA_DIR = Path(os.environ.get("RELAY_DATA_DIR", DEFAULT_DATA_DIR))

CHUNKS_DIR_NAME = "chunks"

ARTIFACTS_DIR_NAME = "artifacts"

REGISTRY_FILE_NAME = "code_map.json"

RELAY_HOST = os.environ.get("RELAY_HOST", DEFAULT_RELAY_HOST)

RELAY_PORT = int(os.environ.get("RELAY_PORT", str(DEFAULT_RELAY_PORT)))

# 0 disables the background sweep; the /api/cleanup trigger always works
SWEEP_INTERVAL_SECONDS = int(os.environ.get("RELAY_SWEEP_INTERVAL_SECONDS", "600"))

MAX_FILE_NAME_BYTES = 255
