from __future__ import annotations

ACK = b"ACK"

NAME_LEN_FORMAT = "!I"  # filename length prefix
PAYLOAD_LEN_FORMAT = "!Q"  # upload / download length prefix

# Upper bound accepted for a download length prefix.
MAX_ARTIFACT_SIZE = 4 * 1024 * 1024 * 1024

ALLOWED_EXTENSIONS = frozenset({"png", "jpg", "jpeg"})

DEFAULT_SOURCE_DIR = "./images"
DEFAULT_OUTPUT_DIR = "./encoded_images"
DEFAULT_TIMEOUT_S = 10.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_CHUNK_SIZE = 64 * 1024

# Leading artifact bytes needed to recognise its image format.
SNIFF_LEN = 12
