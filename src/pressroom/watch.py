"""Watch-and-rebuild.

Every change triggers an independent full rebuild into its own staging
directory. Starting a rebuild cancels the one in flight; a cancelled build's
partial output is discarded, never merged. Commits are serialised, so the
output directory always holds one complete build (last writer wins).
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from pressroom.build import BuildReport, build_site
from pressroom.config import PressroomConfig
from pressroom.errors import BuildCancelled
from pressroom.site.sink import StagedDirectorySink

logger = logging.getLogger(__name__)

Snapshot = dict[str, tuple[int, int]]
ReportCallback = Callable[[BuildReport], None]


def snapshot(config: PressroomConfig) -> Snapshot:
    """Map every watched file to ``(mtime_ns, size)``.

    Watches the whole source tree except the output directory and dot-prefixed
    paths (staging directories live there).
    """
    output = config.output_path.resolve()
    state: Snapshot = {}
    for path in config.source_dir.rglob("*"):
        relative = path.relative_to(config.source_dir)
        if any(part.startswith(".") for part in relative.parts):
            continue
        resolved = path.resolve()
        if resolved == output or output in resolved.parents:
            continue
        try:
            st = path.stat()
        except OSError:
            continue  # removed between listing and stat
        if path.is_file():
            state[str(relative)] = (st.st_mtime_ns, st.st_size)
    return state


def changed_paths(before: Snapshot, after: Snapshot) -> list[str]:
    """Paths added, removed or modified between two snapshots."""
    keys = before.keys() | after.keys()
    return sorted(k for k in keys if before.get(k) != after.get(k))


class Rebuilder:
    """Runs rebuilds on background threads, one live build at a time."""

    def __init__(self, config: PressroomConfig, on_report: ReportCallback | None = None) -> None:
        self.config = config
        self.on_report = on_report
        self._lock = threading.Lock()  # guards _current
        self._commit_lock = threading.Lock()
        self._current: tuple[threading.Thread, threading.Event] | None = None
        self.generation = 0

    def trigger(self) -> threading.Thread:
        """Cancel any in-flight build and start a new one."""
        with self._lock:
            if self._current is not None:
                self._current[1].set()
            self.generation += 1
            cancel = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(cancel, self.generation),
                name=f"pressroom-build-{self.generation}",
                daemon=True,
            )
            self._current = (thread, cancel)
            thread.start()
            return thread

    def wait(self, timeout: float | None = None) -> None:
        """Block until the most recently triggered build finishes."""
        with self._lock:
            current = self._current
        if current is not None:
            current[0].join(timeout)

    def cancel(self) -> None:
        with self._lock:
            if self._current is not None:
                self._current[1].set()

    def _run(self, cancel: threading.Event, generation: int) -> None:
        sink = StagedDirectorySink(self.config.output_path)
        try:
            report = build_site(self.config, sink, cancel=cancel)
        except BuildCancelled:
            sink.discard()
            logger.debug("Rebuild %d cancelled; staged output discarded", generation)
            return
        except Exception:
            sink.discard()
            logger.exception("Rebuild %d crashed", generation)
            return

        with self._commit_lock:
            if cancel.is_set() or report.aborted:
                sink.discard()
            else:
                sink.commit()
                logger.info("Rebuild %d committed to %s", generation, self.config.output_path)

        if not cancel.is_set() and self.on_report is not None:
            self.on_report(report)


def watch(
    config: PressroomConfig,
    *,
    interval: float = 1.0,
    rebuilder: Rebuilder | None = None,
    stop: threading.Event | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll the source tree every *interval* seconds and rebuild on change.

    Runs until *stop* is set; the in-flight build is cancelled on the way out.
    """
    rebuilder = rebuilder or Rebuilder(config)
    stop = stop or threading.Event()
    previous = snapshot(config)

    try:
        while not stop.is_set():
            sleep(interval)
            current = snapshot(config)
            changes = changed_paths(previous, current)
            if changes:
                logger.info("Change detected: %s", ", ".join(changes[:5]))
                rebuilder.trigger()
            previous = current
    finally:
        rebuilder.cancel()
        rebuilder.wait()

