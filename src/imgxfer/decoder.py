"""Local decode utility for encoded artifacts.

The hidden payload is carried in the alpha channel, one byte per pixel in
row-major order.
"""
from __future__ import annotations

import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import DecodeError

log = logging.getLogger(__name__)


def decode_artifact(data: bytes) -> bytes:
    try:
        with Image.open(io.BytesIO(data)) as img:
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"not a decodable image: {e}") from e
    return rgba.getchannel("A").tobytes()


def decoded_path(artifact: Path) -> Path:
    return artifact.with_name(f"decrypted_{artifact.name}")


def decode_file(artifact: Path) -> Path:
    try:
        data = artifact.read_bytes()
    except OSError as e:
        raise DecodeError(f"cannot read {artifact}: {e}") from e
    payload = decode_artifact(data)
    out = decoded_path(artifact)
    try:
        out.write_bytes(payload)
    except OSError as e:
        raise DecodeError(f"cannot write {out}: {e}") from e
    log.info("extracted %d byte(s) from %s into %s", len(payload), artifact, out)
    return out
