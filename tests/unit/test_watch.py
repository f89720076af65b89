"""Tests for watch-and-rebuild."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

from pressroom.build import BuildReport
from pressroom.errors import BuildCancelled
from pressroom.watch import Rebuilder, changed_paths, snapshot, watch


def _staging_dirs(cfg):
    return [p for p in cfg.source_dir.iterdir() if p.name.startswith(".")]


# ------------------------------------------------------------------
# snapshot / changed_paths
# ------------------------------------------------------------------


def test_snapshot_lists_sources_but_not_output(site_config):
    site_config.output_path.mkdir()
    (site_config.output_path / "index.html").write_text("x", encoding="utf-8")
    (site_config.source_dir / ".git").mkdir()
    (site_config.source_dir / ".git" / "HEAD").write_text("x", encoding="utf-8")

    keys = set(snapshot(site_config))
    assert "pressroom.yaml" in keys
    assert "_posts/2025-01-01-first.md" in keys
    assert not any(k.startswith(("_site", ".git")) for k in keys)


def test_changed_paths_added_removed_modified():
    before = {"a": (1, 1), "b": (1, 1), "c": (1, 1)}
    after = {"a": (1, 1), "b": (2, 1), "d": (1, 1)}
    assert changed_paths(before, after) == ["b", "c", "d"]


def test_changed_paths_none():
    assert changed_paths({"a": (1, 1)}, {"a": (1, 1)}) == []


# ------------------------------------------------------------------
# Rebuilder
# ------------------------------------------------------------------


def test_rebuilder_commits_complete_build(site_config):
    reports: list[BuildReport] = []
    rebuilder = Rebuilder(site_config, on_report=reports.append)

    rebuilder.trigger()
    rebuilder.wait(timeout=30)

    assert (site_config.output_path / "index.html").exists()
    assert len(reports) == 1 and reports[0].posts == 2
    assert _staging_dirs(site_config) == []


def test_rebuilder_discards_cancelled_build(site_config):
    reports: list[BuildReport] = []
    with patch("pressroom.watch.build_site", side_effect=BuildCancelled("cancelled")):
        rebuilder = Rebuilder(site_config, on_report=reports.append)
        rebuilder.trigger()
        rebuilder.wait(timeout=30)

    assert not site_config.output_path.exists()
    assert reports == []
    assert _staging_dirs(site_config) == []


def test_rebuilder_discards_aborted_build(site_config):
    def aborted_build(config, sink, *, cancel):
        sink.write("index.html", "partial")
        return BuildReport(aborted=True)

    with patch("pressroom.watch.build_site", side_effect=aborted_build):
        rebuilder = Rebuilder(site_config)
        rebuilder.trigger()
        rebuilder.wait(timeout=30)

    assert not site_config.output_path.exists()
    assert _staging_dirs(site_config) == []


def test_new_trigger_cancels_build_in_flight(site_config):
    started = threading.Event()
    calls: list[threading.Event] = []

    def fake_build(config, sink, *, cancel):
        calls.append(cancel)
        if len(calls) == 1:
            started.set()
            if cancel.wait(10):
                raise BuildCancelled("superseded")
        sink.write("index.html", f"build {len(calls)}")
        return BuildReport()

    reports: list[BuildReport] = []
    with patch("pressroom.watch.build_site", side_effect=fake_build):
        rebuilder = Rebuilder(site_config, on_report=reports.append)
        first = rebuilder.trigger()
        assert started.wait(10)
        rebuilder.trigger()
        first.join(10)
        rebuilder.wait(timeout=10)

    assert calls[0].is_set()
    assert not calls[1].is_set()
    assert (site_config.output_path / "index.html").read_text(encoding="utf-8") == "build 2"
    assert len(reports) == 1
    assert rebuilder.generation == 2


def test_rebuilder_survives_crashing_build(site_config):
    with patch("pressroom.watch.build_site", side_effect=RuntimeError("boom")):
        rebuilder = Rebuilder(site_config)
        rebuilder.trigger()
        rebuilder.wait(timeout=30)
    assert _staging_dirs(site_config) == []


# ------------------------------------------------------------------
# watch loop
# ------------------------------------------------------------------


def test_watch_triggers_on_change_and_stops(site_config):
    rebuilder = MagicMock(spec=Rebuilder)
    stop = threading.Event()
    ticks = []

    def fake_sleep(_interval):
        ticks.append(_interval)
        if len(ticks) == 1:
            (site_config.posts_path / "2025-04-01-new.md").write_text("x", encoding="utf-8")
        else:
            stop.set()

    watch(site_config, interval=0.5, rebuilder=rebuilder, stop=stop, sleep=fake_sleep)

    assert ticks == [0.5, 0.5]
    rebuilder.trigger.assert_called_once()
    rebuilder.cancel.assert_called_once()
    rebuilder.wait.assert_called_once()


def test_watch_no_changes_no_rebuild(site_config):
    rebuilder = MagicMock(spec=Rebuilder)
    stop = threading.Event()

    watch(site_config, rebuilder=rebuilder, stop=stop, sleep=lambda _s: stop.set())

    rebuilder.trigger.assert_not_called()
