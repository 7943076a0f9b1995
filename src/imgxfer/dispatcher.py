from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Sequence

from tqdm.asyncio import tqdm

from .config import TransferConfig
from .errors import DiscoveryError
from .model import ImageFile, ServerEndpoint, TransferOutcome, TransferTask
from .session import TransferSession

log = logging.getLogger(__name__)


def discover_images(source_dir: Path) -> List[ImageFile]:
    """Eligible images directly inside ``source_dir`` (non-recursive), sorted by name."""
    try:
        entries = list(source_dir.iterdir())
    except OSError as e:
        raise DiscoveryError(f"cannot read source directory {source_dir}: {e}") from e

    images = []
    for entry in entries:
        if not entry.is_file():
            continue
        image = ImageFile.from_path(entry)
        if image.eligible:
            images.append(image)
        else:
            log.debug("skipping %s (extension not allowed)", entry)
    images.sort(key=lambda im: im.name)
    return images


def build_tasks(images: Iterable[ImageFile], servers: Sequence[ServerEndpoint]) -> List[TransferTask]:
    return [TransferTask(image=image, server=server) for image in images for server in servers]


async def dispatch(tasks: Sequence[TransferTask], config: TransferConfig) -> List[TransferOutcome]:
    """Launch one session per task and wait for all of them to finish."""
    if not tasks:
        return []
    limiter = asyncio.Semaphore(config.max_concurrency) if config.max_concurrency else None
    sessions = [
        asyncio.create_task(TransferSession(task, config, limiter).run())
        for task in tasks
    ]
    log.info("launched %d session(s)", len(sessions))
    return list(
        await tqdm.gather(
            *sessions,
            desc="Transferring",
            unit="task",
            disable=not config.progress,
        )
    )


def run(config: TransferConfig) -> List[TransferOutcome]:
    """Prepare the output directory, discover images, and run every (image, server) pair."""
    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DiscoveryError(f"cannot create output directory {config.output_dir}: {e}") from e
    images = discover_images(config.source_dir)
    tasks = build_tasks(images, config.servers)
    log.info(
        "%d image(s) x %d server(s) = %d task(s)",
        len(images), len(config.servers), len(tasks),
    )
    return asyncio.run(dispatch(tasks, config))
