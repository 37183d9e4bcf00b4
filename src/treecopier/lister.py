from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path

from treecopier.errors import DiscoveryError


@dataclass(frozen=True, slots=True)
class UnsupportedEntry:
    path: Path
    reason: str


@dataclass(slots=True)
class DirectoryListing:
    files: list[Path] = field(default_factory=list)
    directories: list[Path] = field(default_factory=list)
    unsupported: list[UnsupportedEntry] = field(default_factory=list)


def _describe_special(entry: os.DirEntry) -> str:
    if entry.is_symlink():
        return "unsupported entry type: symbolic link"
    return "unsupported entry type: special file"


def list_directory(path: Path) -> DirectoryListing:
    """List the immediate children of ``path`` without recursing.

    Symlinks are never followed; they, and device files, sockets and fifos,
    are reported as unsupported entries so the caller can record them.
    Raises ``DiscoveryError`` when ``path`` cannot be listed.
    """
    listing = DirectoryListing()
    try:
        with os.scandir(path) as entries:
            for entry in sorted(entries, key=lambda item: item.name):
                entry_path = path / entry.name
                try:
                    if entry.is_dir(follow_symlinks=False):
                        listing.directories.append(entry_path)
                    elif entry.is_file(follow_symlinks=False):
                        listing.files.append(entry_path)
                    else:
                        listing.unsupported.append(UnsupportedEntry(entry_path, _describe_special(entry)))
                except OSError as exc:
                    listing.unsupported.append(
                        UnsupportedEntry(entry_path, f"cannot determine entry type: {exc.strerror or exc}")
                    )
    except OSError as exc:
        raise DiscoveryError.from_os_error(path, exc) from exc
    return listing
