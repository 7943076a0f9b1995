from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import List

from .config import TransferConfig
from .constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SOURCE_DIR,
    DEFAULT_TIMEOUT_S,
)
from .decoder import decode_file
from .dispatcher import run
from .errors import DecodeError, DiscoveryError
from .metrics import RunSummary
from .model import ServerEndpoint

log = logging.getLogger(__name__)


def split_positionals(values, parser: argparse.ArgumentParser):
    """Split ``[SOURCE [OUTPUT]] HOST:PORT ...`` into directories and endpoints.

    Leading values that are not ``host:port`` are directories, at most two.
    """
    dirs: List[str] = []
    servers: List[ServerEndpoint] = []
    for value in values:
        try:
            servers.append(ServerEndpoint.parse(value))
        except ValueError as e:
            if servers or len(dirs) == 2:
                parser.error(f"argument HOST:PORT: {e}")
            dirs.append(value)
    return dirs, servers


def write_report(path: Path, config: TransferConfig, summary: RunSummary, outcomes) -> None:
    report = {
        "inputs": {
            "source_dir": str(config.source_dir),
            "output_dir": str(config.output_dir),
            "servers": [s.address for s in config.servers],
            "timeout_s": config.timeout_s,
            "max_retries": config.max_retries,
            "max_concurrency": config.max_concurrency,
        },
        "summary": summary.to_dict(),
        "outcomes": [o.to_dict() for o in outcomes],
        "timestamp_local": time.strftime("%Y-%m-%d %H:%M:%S", time.localtime()),
    }
    path.write_text(json.dumps(report, indent=2), encoding="utf-8")


def cmd_send(args: argparse.Namespace) -> int:
    dirs, servers = split_positionals(args.targets, args.parser)
    if not servers:
        args.parser.print_usage()
        return 0
    source = dirs[0] if dirs else args.source
    output = dirs[1] if len(dirs) > 1 else args.output

    try:
        config = TransferConfig(
            servers=tuple(servers),
            source_dir=Path(source),
            output_dir=Path(output),
            timeout_s=args.timeout,
            max_retries=args.max_retries,
            retry_backoff_s=args.retry_backoff,
            chunk_size=args.chunk_size,
            max_concurrency=args.max_concurrency,
            progress=args.progress,
        )
    except ValueError as e:
        args.parser.error(str(e))

    try:
        outcomes = run(config)
    except DiscoveryError as e:
        log.error("%s", e)
        return 1

    summary = RunSummary.from_outcomes(outcomes)
    if summary.attempted == 0:
        log.info("no images were processed")
    else:
        log.info(
            "average round-trip time: %.3fs over %d task(s)",
            summary.average_duration_s, summary.attempted,
        )

    if args.report:
        write_report(Path(args.report), config, summary, outcomes)

    payload = {"role": "send", **summary.to_dict()}
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0


def cmd_decode(args: argparse.Namespace) -> int:
    status = 0
    for artifact in args.artifacts:
        try:
            out = decode_file(Path(artifact))
        except DecodeError as e:
            log.error("%s: %s", artifact, e)
            status = 1
            continue
        print(f"hidden data extracted and saved to {out}")
    return status


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="imgxfer",
        description="Send images to transform servers and collect the encoded results.",
    )
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    send = sub.add_parser("send", help="upload every image to every server")
    send.add_argument(
        "targets",
        nargs="*",
        metavar="TARGET",
        help="[SOURCE [OUTPUT]] HOST:PORT [HOST:PORT ...]",
    )
    send.add_argument("--source", default=DEFAULT_SOURCE_DIR, help="directory of images to send")
    send.add_argument("--output", default=DEFAULT_OUTPUT_DIR, help="directory for encoded artifacts")
    send.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_S, help="per-operation timeout (s)")
    send.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES, help="attempts per task")
    send.add_argument("--retry-backoff", type=float, default=0.0, help="delay between retries (s)")
    send.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
    send.add_argument("--max-concurrency", type=int, default=0, help="0 = unbounded")
    send.add_argument("--progress", action="store_true")
    send.add_argument("--report", help="write a JSON run report to this path")
    send.add_argument("--json", action="store_true")
    send.set_defaults(func=cmd_send, parser=send)

    decode = sub.add_parser("decode", help="extract hidden data from encoded artifacts")
    decode.add_argument("artifacts", nargs="+")
    decode.set_defaults(func=cmd_decode)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
