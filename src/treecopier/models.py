from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from treecopier.errors import ErrorSummary


@dataclass(frozen=True, slots=True)
class CopyJob:
    source: Path
    destination: Path


@dataclass(frozen=True, slots=True)
class FileCopyUnit:
    source: Path
    destination: Path


@dataclass(frozen=True, slots=True)
class RunReport:
    source_root: Path
    destination_root: Path
    delete_source: bool
    submitted: int
    executed: int
    discarded: int
    peak_concurrency: int
    errors: ErrorSummary

    @property
    def ok(self) -> bool:
        return self.errors.count == 0

    @property
    def mode(self) -> str:
        return "move" if self.delete_source else "copy"


def resolve_destination(source_root: Path, destination_root: Path, path: Path) -> Path:
    """Map ``path`` under ``source_root`` to the same relative spot under ``destination_root``."""
    try:
        relative = path.relative_to(source_root)
    except ValueError as exc:
        raise ValueError(f"Path is outside the source root {source_root}: {path}") from exc
    return destination_root / relative
