from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
import queue
import threading
from typing import Protocol

from treecopier.errors import ErrorKind, ErrorRecord
from treecopier.models import CopyJob, RunReport
from treecopier.state import RunState


log = logging.getLogger("treecopier.scheduler")


class JobWorker(Protocol):
    def process(self, job: CopyJob, submit) -> None: ...


class Scheduler:
    """Runs an unknown, growing number of directory jobs with bounded width.

    Submitted jobs wait in an unbounded backlog. A dispatcher thread takes
    them one at a time, acquires a permit and only then hands them to the
    executor, so at most ``concurrency`` jobs run while the backlog may grow
    freely. The run is over when the work tracker drains to zero.
    """

    def __init__(self, state: RunState, worker: JobWorker) -> None:
        self._state = state
        self._worker = worker
        self._backlog: queue.SimpleQueue[CopyJob | None] = queue.SimpleQueue()
        self._discarded = 0

    def submit(self, job: CopyJob) -> None:
        self._state.tracker.increment()
        self._backlog.put(job)

    def run_to_completion(self, root_job: CopyJob) -> RunReport:
        executor = ThreadPoolExecutor(
            max_workers=self._state.concurrency,
            thread_name_prefix="treecopier-worker",
        )
        dispatcher = threading.Thread(
            target=self._dispatch_loop,
            args=(executor,),
            name="treecopier-dispatcher",
            daemon=True,
        )
        dispatcher.start()
        try:
            self.submit(root_job)
            self._state.tracker.wait_drained()
        finally:
            self._backlog.put(None)
            dispatcher.join()
            executor.shutdown(wait=True)
        return self._build_report()

    def _dispatch_loop(self, executor: ThreadPoolExecutor) -> None:
        tracker = self._state.tracker
        permits = self._state.permits
        while True:
            job = self._backlog.get()
            if job is None:
                return

            # Checked after the permit so a halt raised by the job we waited on is seen.
            permits.acquire()
            if self._state.halted.is_set():
                permits.release()
                self._discard(job)
                continue

            try:
                executor.submit(self._execute, job)
            except RuntimeError as exc:
                permits.release()
                self._state.record_error(
                    ErrorRecord(path=job.source, kind=ErrorKind.INTERNAL, cause=f"cannot dispatch job: {exc}")
                )
                tracker.decrement()

    def _execute(self, job: CopyJob) -> None:
        try:
            self._worker.process(job, self.submit)
        except Exception as exc:
            log.exception("Worker failed unexpectedly on %s", job.source)
            self._state.record_error(
                ErrorRecord(path=job.source, kind=ErrorKind.INTERNAL, cause=f"unexpected worker failure: {exc!r}")
            )
        finally:
            self._state.tracker.decrement()
            self._state.permits.release()

    def _discard(self, job: CopyJob) -> None:
        # Only the dispatcher thread touches the discard count.
        self._discarded += 1
        log.warning("Skipping %s: run halted by fail-fast", job.source)
        self._state.tracker.decrement()

    def _build_report(self) -> RunReport:
        tracker = self._state.tracker
        return RunReport(
            source_root=self._state.source_root,
            destination_root=self._state.destination_root,
            delete_source=self._state.delete_source,
            submitted=tracker.submitted,
            executed=tracker.completed - self._discarded,
            discarded=self._discarded,
            peak_concurrency=self._state.permits.peak,
            errors=self._state.errors.summary(),
        )
