from __future__ import annotations

import enum
import time
from dataclasses import dataclass
from pathlib import Path

from .constants import ALLOWED_EXTENSIONS
from .errors import FailureKind

# (magic prefix, extension); WEBP is checked separately because its tag sits at offset 8.
_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "png"),
    (b"\xff\xd8\xff", "jpg"),
    (b"GIF87a", "gif"),
    (b"GIF89a", "gif"),
    (b"BM", "bmp"),
    (b"II*\x00", "tiff"),
    (b"MM\x00*", "tiff"),
)


@dataclass(frozen=True, slots=True)
class ImageFile:
    path: Path
    name: str
    extension: str

    @classmethod
    def from_path(cls, path: Path) -> "ImageFile":
        return cls(path=path, name=path.name, extension=path.suffix.lstrip(".").lower())

    @property
    def eligible(self) -> bool:
        return self.extension in ALLOWED_EXTENSIONS


@dataclass(frozen=True, slots=True)
class ServerEndpoint:
    host: str
    port: int

    @classmethod
    def parse(cls, address: str) -> "ServerEndpoint":
        host, sep, port = address.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError(f"expected host:port, got {address!r}")
        number = int(port)
        if not 0 < number < 65536:
            raise ValueError(f"port out of range in {address!r}")
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
        return cls(host=host, port=number)

    @property
    def address(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"

    def __str__(self) -> str:
        return self.address


def sniff_extension(head: bytes) -> str | None:
    for magic, ext in _SIGNATURES:
        if head.startswith(magic):
            return ext
    if len(head) >= 12 and head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "webp"
    return None


def encoded_stem(image: ImageFile, server: ServerEndpoint) -> str:
    return f"{image.name}_encoded_{server.address.replace(':', '_')}"


def output_path(output_dir: Path, image: ImageFile, server: ServerEndpoint, head: bytes = b"") -> Path:
    ext = sniff_extension(head) or image.extension
    return output_dir / f"{encoded_stem(image, server)}.{ext}"


@dataclass(slots=True)
class TransferTask:
    image: ImageFile
    server: ServerEndpoint
    attempts: int = 0
    started_at: float | None = None

    def mark_started(self) -> None:
        if self.started_at is None:
            self.started_at = time.monotonic()

    @property
    def elapsed_s(self) -> float:
        if self.started_at is None:
            return 0.0
        return max(0.0, time.monotonic() - self.started_at)

    @property
    def label(self) -> str:
        return f"{self.image.name} -> {self.server}"


class Status(enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class TransferOutcome:
    image: ImageFile
    server: ServerEndpoint
    status: Status
    elapsed_s: float
    attempts: int
    output_path: Path | None = None
    kind: FailureKind | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS

    def describe(self) -> str:
        if self.ok:
            return (
                f"OK   {self.image.name} via {self.server} -> {self.output_path} "
                f"({self.elapsed_s:.3f}s, attempts={self.attempts})"
            )
        return (
            f"FAIL {self.image.name} via {self.server}: {self.kind.value if self.kind else 'unknown'} "
            f"after {self.attempts} attempt(s) ({self.elapsed_s:.3f}s): {self.error}"
        )

    def to_dict(self) -> dict:
        return {
            "image": str(self.image.path),
            "server": self.server.address,
            "status": self.status.value,
            "elapsed_s": round(self.elapsed_s, 6),
            "attempts": self.attempts,
            "output_path": str(self.output_path) if self.output_path else None,
            "kind": self.kind.value if self.kind else None,
            "error": self.error,
        }
