from __future__ import annotations

import asyncio

import pytest

from stubs import close_immediately, echo
from imgxfer.config import TransferConfig
from imgxfer.dispatcher import build_tasks, discover_images, dispatch, run
from imgxfer.errors import DiscoveryError, FailureKind
from imgxfer.metrics import RunSummary
from imgxfer.model import ServerEndpoint


def test_discovery_filters_and_is_non_recursive(image_dir):
    names = [im.name for im in discover_images(image_dir)]
    assert names == ["a.png", "b.JPG", "c.jpeg"]


def test_discovery_of_missing_directory_is_fatal(tmp_path):
    with pytest.raises(DiscoveryError):
        discover_images(tmp_path / "nope")


def test_cross_product_of_files_and_servers(image_dir):
    images = discover_images(image_dir)
    servers = [ServerEndpoint.parse(f"127.0.0.1:{p}") for p in (9001, 9002)]
    tasks = build_tasks(images, servers)
    assert len(tasks) == 6
    assert {(t.image.name, t.server.port) for t in tasks} == {
        (im.name, s.port) for im in images for s in servers
    }
    assert all(t.attempts == 0 and t.started_at is None for t in tasks)


def test_run_executes_n_times_m_sessions(image_dir, tmp_path, stub_server):
    servers = [stub_server(echo), stub_server(echo)]
    config = TransferConfig(
        servers=tuple(s.endpoint for s in servers),
        source_dir=image_dir,
        output_dir=tmp_path / "encoded",
        timeout_s=2.0,
    )
    outcomes = run(config)

    assert len(outcomes) == 6
    assert all(o.ok for o in outcomes)
    assert [s.connections for s in servers] == [3, 3]
    written = sorted(p.name for p in (tmp_path / "encoded").iterdir())
    assert len(written) == 6
    assert len({o.output_path for o in outcomes}) == 6

    summary = RunSummary.from_outcomes(outcomes)
    assert summary.attempted == 6
    assert summary.average_duration_s == pytest.approx(summary.total_duration_s / 6)


def test_one_bad_server_does_not_abort_the_run(image_dir, tmp_path, stub_server):
    good, bad = stub_server(echo), stub_server(close_immediately)
    config = TransferConfig(
        servers=(good.endpoint, bad.endpoint),
        source_dir=image_dir,
        output_dir=tmp_path / "encoded",
        timeout_s=2.0,
        max_retries=2,
    )
    outcomes = run(config)
    summary = RunSummary.from_outcomes(outcomes)
    assert summary.succeeded == 3
    assert summary.failed == 3
    assert summary.failures_by_kind == {FailureKind.TRANSIENT.value: 3}
    assert bad.connections == 6


def test_zero_eligible_files(tmp_path):
    src = tmp_path / "empty"
    src.mkdir()
    (src / "readme.md").write_text("nothing to send")
    config = TransferConfig(
        servers=(ServerEndpoint.parse("127.0.0.1:1"),),
        source_dir=src,
        output_dir=tmp_path / "encoded",
    )
    outcomes = run(config)
    assert outcomes == []
    assert (tmp_path / "encoded").is_dir()
    assert RunSummary.from_outcomes(outcomes).average_duration_s == 0.0


def test_bounded_concurrency_still_runs_everything(image_dir, tmp_path, stub_server):
    srv = stub_server(echo)
    config = TransferConfig(
        servers=(srv.endpoint,),
        source_dir=image_dir,
        output_dir=tmp_path / "encoded",
        timeout_s=2.0,
        max_concurrency=1,
    )
    (tmp_path / "encoded").mkdir()
    tasks = build_tasks(discover_images(image_dir), config.servers)
    outcomes = asyncio.run(dispatch(tasks, config))
    assert [o.image.name for o in outcomes] == ["a.png", "b.JPG", "c.jpeg"]
    assert all(o.ok for o in outcomes)
