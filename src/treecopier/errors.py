from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import threading


class ErrorKind(Enum):
    DISCOVERY = "discovery"
    COPY = "copy"
    DELETE = "delete"
    DIRECTORY_CREATE = "directory-create"
    INTERNAL = "internal"


# Kinds that stop the run when fail-fast is enabled.
FATAL_KINDS = frozenset({ErrorKind.DISCOVERY, ErrorKind.DIRECTORY_CREATE})


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    path: Path
    kind: ErrorKind
    cause: str


@dataclass(frozen=True, slots=True)
class ErrorSummary:
    records: tuple[ErrorRecord, ...]

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def failed_paths(self) -> list[Path]:
        return [record.path for record in self.records]


class ReplicationError(Exception):
    kind = ErrorKind.INTERNAL

    def __init__(self, path: Path, cause: str) -> None:
        super().__init__(f"{path}: {cause}")
        self.path = path
        self.cause = cause

    @classmethod
    def from_os_error(cls, path: Path, exc: OSError) -> "ReplicationError":
        return cls(path, exc.strerror or str(exc))

    def to_record(self) -> ErrorRecord:
        return ErrorRecord(path=self.path, kind=self.kind, cause=self.cause)


class DiscoveryError(ReplicationError):
    kind = ErrorKind.DISCOVERY


class CopyError(ReplicationError):
    kind = ErrorKind.COPY


class DeleteError(ReplicationError):
    kind = ErrorKind.DELETE


class DirectoryCreateError(ReplicationError):
    kind = ErrorKind.DIRECTORY_CREATE


class ErrorCollector:
    """Append-only, thread-safe store of the failures seen during one run.

    The lock only guards the list append, never any I/O, so workers
    reporting errors do not serialize each other's copies.
    """

    def __init__(self) -> None:
        self._records: list[ErrorRecord] = []
        self._lock = threading.Lock()

    def record(self, record: ErrorRecord) -> None:
        with self._lock:
            self._records.append(record)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def summary(self) -> ErrorSummary:
        with self._lock:
            return ErrorSummary(records=tuple(self._records))
