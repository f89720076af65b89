"""Output sinks: where assembled documents are written.

Responsibilities:
  1. Give the assembler a single ``write(path, data)`` seam.
  2. Validate output paths: confine them to the sink's root.
     Path traversal (../../etc/passwd) → hard fail.
  3. Write each document atomically (temp file → rename).
  4. Staged builds: write a whole site next to the destination and swap it
     into place on commit, so readers never see a half-written rebuild.
"""

from __future__ import annotations

import os
import shutil
import tempfile
import uuid
from pathlib import Path, PurePosixPath
from typing import Protocol


class OutputSink(Protocol):
    """Anything the assembler can hand finished documents to."""

    def write(self, path: str, data: str | bytes) -> None: ...


# ------------------------------------------------------------------
# Path validation (security — path traversal prevention)
# ------------------------------------------------------------------


def validate_output_path(path: str, root: Path) -> Path:
    """Resolve site-relative *path* under *root*.

    Raises:
        ValueError: If *path* is absolute or resolves outside *root*.
    """
    rel = PurePosixPath(path)
    if rel.is_absolute() or not path.strip():
        raise ValueError(f"Output path '{path}' must be a non-empty relative path.")

    root = root.resolve()
    resolved = (root / Path(*rel.parts)).resolve()

    try:
        resolved.relative_to(root)
    except ValueError:
        raise ValueError(
            f"Output path '{path}' resolves outside the output directory "
            f"('{root}'). Path traversal is not permitted."
        )

    return resolved


# ------------------------------------------------------------------
# Atomic write
# ------------------------------------------------------------------


def write_atomic(path: Path, data: str | bytes) -> None:
    """Write *data* to *path* atomically (temp → rename).

    Creates parent directories if needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        if isinstance(data, bytes):
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        else:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(data)
        os.replace(tmp_path, path)
    except Exception:
        # Clean up temp file on error
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


# ------------------------------------------------------------------
# Sinks
# ------------------------------------------------------------------


class MemorySink:
    """Collects documents in a dict keyed by site-relative path."""

    def __init__(self) -> None:
        self.documents: dict[str, str | bytes] = {}

    def write(self, path: str, data: str | bytes) -> None:
        self.documents[str(PurePosixPath(path))] = data

    def text(self, path: str) -> str:
        data = self.documents[path]
        return data.decode("utf-8") if isinstance(data, bytes) else data


class DirectorySink:
    """Writes documents under a root directory, one atomic write each."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.written: list[str] = []

    def write(self, path: str, data: str | bytes) -> None:
        target = validate_output_path(path, self.root)
        write_atomic(target, data)
        self.written.append(path)


class StagedDirectorySink(DirectorySink):
    """Builds a full site in a sibling staging directory.

    ``commit()`` replaces *destination* with the staged tree; ``discard()``
    deletes it. Exactly one of the two should be called per sink.
    """

    def __init__(self, destination: Path) -> None:
        self.destination = destination.resolve()
        staging = self.destination.parent / f".{self.destination.name}.staging-{uuid.uuid4().hex[:8]}"
        super().__init__(staging)
        self.root.mkdir(parents=True, exist_ok=True)

    def commit(self) -> Path:
        """Swap the staged tree into place and return the destination path."""
        old: Path | None = None
        if self.destination.exists():
            old = self.destination.parent / f".{self.destination.name}.old-{uuid.uuid4().hex[:8]}"
            os.replace(self.destination, old)
        os.replace(self.root, self.destination)
        if old is not None:
            shutil.rmtree(old, ignore_errors=True)
        return self.destination

    def discard(self) -> None:
        shutil.rmtree(self.root, ignore_errors=True)
