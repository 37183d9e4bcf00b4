from __future__ import annotations

import errno
import logging
import os
from pathlib import Path
import secrets
import shutil
from typing import Callable

from treecopier.errors import CopyError, DeleteError, DirectoryCreateError, DiscoveryError, ErrorKind, ErrorRecord
from treecopier.lister import DirectoryListing, list_directory
from treecopier.models import CopyJob, FileCopyUnit, resolve_destination
from treecopier.state import RunState


log = logging.getLogger("treecopier.worker")

CopyFileFn = Callable[[Path, Path], None]
ListDirectoryFn = Callable[[Path], DirectoryListing]
SubmitFn = Callable[[CopyJob], None]

COPY_CHUNK_SIZE = 1024 * 1024
TEMP_PREFIX = ".tc-"
TEMP_SUFFIX = ".part"
TEMP_ATTEMPTS = 100


def _open_temp(directory: Path) -> tuple[int, Path]:
    # Fixed length, independent of the destination name.
    flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)
    for _ in range(TEMP_ATTEMPTS):
        candidate = directory / f"{TEMP_PREFIX}{secrets.token_hex(4)}{TEMP_SUFFIX}"
        try:
            return os.open(candidate, flags, 0o666), candidate
        except FileExistsError:
            continue
    raise FileExistsError(errno.EEXIST, "No usable temporary file name", str(directory))


def _fsync_directory(directory: Path) -> None:
    if os.name == "nt":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def safe_copy(source_file: Path, destination_file: Path) -> None:
    """Copy the bytes of ``source_file`` over ``destination_file``.

    The data goes to a temporary sibling that is fsynced and closed before it
    replaces the destination; the directory is fsynced after the rename, so a
    returned call means the copy is durable.
    """
    fd, tmp_path = _open_temp(destination_file.parent)
    try:
        with os.fdopen(fd, "wb") as writer, source_file.open("rb") as reader:
            shutil.copyfileobj(reader, writer, COPY_CHUNK_SIZE)
            writer.flush()
            os.fsync(writer.fileno())
        tmp_path.replace(destination_file)
        _fsync_directory(destination_file.parent)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


class CopyWorker:
    """Replicates one directory: its files, then one child job per subdirectory."""

    def __init__(
        self,
        state: RunState,
        copy_file: CopyFileFn = safe_copy,
        lister: ListDirectoryFn = list_directory,
    ) -> None:
        self._state = state
        self._copy_file = copy_file
        self._lister = lister

    def process(self, job: CopyJob, submit: SubmitFn) -> None:
        log.info("Processing dir: %s", job.source)
        try:
            self._ensure_destination(job.destination)
            listing = self._lister(job.source)
        except (DirectoryCreateError, DiscoveryError) as exc:
            self._state.record_error(exc.to_record())
            return

        for entry in listing.unsupported:
            self._state.record_error(ErrorRecord(path=entry.path, kind=ErrorKind.COPY, cause=entry.reason))

        for source_file in listing.files:
            self.replicate_file(self._unit_for(source_file))

        for directory in listing.directories:
            submit(CopyJob(source=directory, destination=self._destination_for(directory)))

    def replicate_file(self, unit: FileCopyUnit) -> bool:
        try:
            self._copy_file(unit.source, unit.destination)
        except OSError as exc:
            self._state.record_error(CopyError.from_os_error(unit.source, exc).to_record())
            return False
        log.debug("Copy: %s to %s", unit.source, unit.destination)

        if not self._state.delete_source:
            return True
        try:
            unit.source.unlink()
        except OSError as exc:
            self._state.record_error(DeleteError.from_os_error(unit.source, exc).to_record())
            return False
        return True

    def _ensure_destination(self, destination: Path) -> None:
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryCreateError.from_os_error(destination, exc) from exc

    def _destination_for(self, path: Path) -> Path:
        return resolve_destination(self._state.source_root, self._state.destination_root, path)

    def _unit_for(self, source_file: Path) -> FileCopyUnit:
        return FileCopyUnit(source=source_file, destination=self._destination_for(source_file))
