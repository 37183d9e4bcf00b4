from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import threading

from treecopier.config import CopyConfig
from treecopier.errors import FATAL_KINDS, ErrorCollector, ErrorRecord
from treecopier.permits import PermitPool
from treecopier.tracker import WorkTracker


log = logging.getLogger("treecopier.state")


@dataclass(slots=True)
class RunState:
    """Everything shared by the workers of one run.

    Only the permit pool, the tracker and the error collector are mutated
    concurrently; the rest is fixed at construction.
    """

    source_root: Path
    destination_root: Path
    concurrency: int
    delete_source: bool = False
    fail_fast: bool = False
    permits: PermitPool = field(init=False)
    tracker: WorkTracker = field(default_factory=WorkTracker)
    errors: ErrorCollector = field(default_factory=ErrorCollector)
    halted: threading.Event = field(default_factory=threading.Event)

    def __post_init__(self) -> None:
        self.permits = PermitPool(self.concurrency)

    @classmethod
    def from_config(cls, config: CopyConfig) -> "RunState":
        return cls(
            source_root=config.source,
            destination_root=config.destination,
            concurrency=config.concurrency,
            delete_source=config.delete_source,
            fail_fast=config.fail_fast,
        )

    def record_error(self, record: ErrorRecord) -> None:
        log.error("%s error on %s: %s", record.kind.value, record.path, record.cause)
        self.errors.record(record)
        if self.fail_fast and record.kind in FATAL_KINDS and not self.halted.is_set():
            log.warning("Fail-fast: no further directories will be started after the error on %s", record.path)
            self.halted.set()
