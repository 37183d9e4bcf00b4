from pathlib import Path
import threading
import time

from treecopier.errors import ErrorKind, ErrorRecord
from treecopier.models import CopyJob
from treecopier.scheduler import Scheduler
from treecopier.state import RunState


ROOT = Path("root")
DEST = Path("dest")


def _fan_out_tree(width: int, depth: int) -> dict[Path, list[Path]]:
    tree: dict[Path, list[Path]] = {}
    level = [ROOT]
    for _ in range(depth):
        next_level: list[Path] = []
        for parent in level:
            children = [parent / f"d{index}" for index in range(width)]
            tree[parent] = children
            next_level.extend(children)
        level = next_level
    return tree


class _TreeWorker:
    def __init__(self, state: RunState, tree: dict[Path, list[Path]], delay: float = 0.0) -> None:
        self.state = state
        self.tree = tree
        self.delay = delay
        self.seen: list[Path] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def process(self, job: CopyJob, submit) -> None:
        with self._lock:
            self.seen.append(job.source)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            for child in self.tree.get(job.source, []):
                submit(CopyJob(child, DEST / child.relative_to(ROOT)))
        finally:
            with self._lock:
                self.active -= 1


def _run(tree: dict[Path, list[Path]], concurrency: int, delay: float = 0.0, fail_fast: bool = False):
    state = RunState(source_root=ROOT, destination_root=DEST, concurrency=concurrency, fail_fast=fail_fast)
    worker = _TreeWorker(state, tree, delay=delay)
    report = Scheduler(state, worker).run_to_completion(CopyJob(ROOT, DEST))
    return state, worker, report


def test_every_discovered_directory_runs_exactly_once() -> None:
    tree = _fan_out_tree(width=5, depth=3)

    state, worker, report = _run(tree, concurrency=4)

    assert len(worker.seen) == 1 + 5 + 25 + 125
    assert len(set(worker.seen)) == len(worker.seen)
    assert report.submitted == len(worker.seen)
    assert report.executed == len(worker.seen)
    assert report.discarded == 0
    assert report.ok
    assert state.tracker.outstanding == 0
    assert state.permits.held == 0


def test_execution_width_never_exceeds_the_permit_limit() -> None:
    tree = _fan_out_tree(width=6, depth=2)

    _, worker, report = _run(tree, concurrency=3, delay=0.01)

    assert worker.max_active <= 3
    assert report.peak_concurrency <= 3


def test_single_permit_runs_a_deep_chain_to_completion() -> None:
    tree = _fan_out_tree(width=1, depth=200)

    _, worker, report = _run(tree, concurrency=1)

    assert len(worker.seen) == 201
    assert worker.max_active == 1
    assert report.peak_concurrency == 1


def test_unexpected_worker_failure_is_recorded_and_settled() -> None:
    tree = _fan_out_tree(width=3, depth=2)

    class _Crashing(_TreeWorker):
        def process(self, job: CopyJob, submit) -> None:
            if job.source == ROOT / "d1":
                raise RuntimeError("worker exploded")
            super().process(job, submit)

    state = RunState(source_root=ROOT, destination_root=DEST, concurrency=2)
    worker = _Crashing(state, tree)
    report = Scheduler(state, worker).run_to_completion(CopyJob(ROOT, DEST))

    assert [(record.path, record.kind) for record in report.errors.records] == [(ROOT / "d1", ErrorKind.INTERNAL)]
    assert ROOT / "d0" / "d2" in worker.seen
    assert ROOT / "d1" / "d0" not in worker.seen
    assert state.permits.held == 0
    assert state.tracker.outstanding == 0


def test_fail_fast_discards_backlog_after_a_fatal_error() -> None:
    tree = {ROOT: [ROOT / "a", ROOT / "b", ROOT / "c"], ROOT / "b": [ROOT / "b" / "x"]}

    class _FailsOnA(_TreeWorker):
        def process(self, job: CopyJob, submit) -> None:
            if job.source == ROOT / "a":
                self.state.record_error(ErrorRecord(job.source, ErrorKind.DISCOVERY, "unreadable"))
                return
            super().process(job, submit)

    state = RunState(source_root=ROOT, destination_root=DEST, concurrency=1, fail_fast=True)
    worker = _FailsOnA(state, tree)
    report = Scheduler(state, worker).run_to_completion(CopyJob(ROOT, DEST))

    assert worker.seen == [ROOT]
    assert report.discarded == 2
    assert report.executed == 2
    assert report.errors.count == 1
    assert state.halted.is_set()


def test_without_fail_fast_the_run_continues_past_errors() -> None:
    tree = {ROOT: [ROOT / "a", ROOT / "b", ROOT / "c"], ROOT / "b": [ROOT / "b" / "x"]}

    class _FailsOnA(_TreeWorker):
        def process(self, job: CopyJob, submit) -> None:
            if job.source == ROOT / "a":
                self.state.record_error(ErrorRecord(job.source, ErrorKind.DISCOVERY, "unreadable"))
                return
            super().process(job, submit)

    state = RunState(source_root=ROOT, destination_root=DEST, concurrency=1)
    worker = _FailsOnA(state, tree)
    report = Scheduler(state, worker).run_to_completion(CopyJob(ROOT, DEST))

    assert sorted(worker.seen) == [ROOT, ROOT / "b", ROOT / "b" / "x", ROOT / "c"]
    assert report.discarded == 0
    assert report.errors.count == 1
    assert not state.halted.is_set()
