from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from .constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SOURCE_DIR,
    DEFAULT_TIMEOUT_S,
)
from .model import ServerEndpoint


@dataclass(frozen=True, slots=True)
class TransferConfig:
    """Run-wide settings, shared read-only by every session."""

    servers: Tuple[ServerEndpoint, ...]
    source_dir: Path = Path(DEFAULT_SOURCE_DIR)
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    timeout_s: float = DEFAULT_TIMEOUT_S
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_backoff_s: float = 0.0
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_concurrency: int = 0
    progress: bool = False

    def __post_init__(self) -> None:
        if not self.servers:
            raise ValueError("at least one server endpoint is required")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got {self.timeout_s}")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be > 0, got {self.chunk_size}")
        if self.max_concurrency < 0:
            raise ValueError(f"max_concurrency must be >= 0, got {self.max_concurrency}")
        if self.retry_backoff_s < 0:
            raise ValueError(f"retry_backoff_s must be >= 0, got {self.retry_backoff_s}")
