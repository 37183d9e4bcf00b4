from __future__ import annotations

from dataclasses import replace
import errno
import logging
import os
from pathlib import Path

from treecopier.config import CopyConfig, validate_config
from treecopier.copy_worker import CopyFileFn, CopyWorker, ListDirectoryFn, safe_copy
from treecopier.errors import DeleteError
from treecopier.lister import list_directory
from treecopier.models import CopyJob, RunReport
from treecopier.scheduler import Scheduler
from treecopier.state import RunState


log = logging.getLogger("treecopier.engine")


def prune_empty_dirs(root: Path, state: RunState) -> int:
    """Remove empty directories under ``root`` (and ``root`` itself) bottom-up.

    Directories that still hold anything are left alone; any other failure
    is recorded as a delete error. Returns the number of directories removed.
    """
    removed = 0
    for dir_str, _, _ in os.walk(root, topdown=False):
        directory = Path(dir_str)
        try:
            directory.rmdir()
        except OSError as exc:
            if exc.errno in {errno.ENOTEMPTY, errno.EEXIST}:
                continue
            state.record_error(DeleteError.from_os_error(directory, exc).to_record())
            continue
        removed += 1
        log.debug("Removed empty source dir: %s", directory)
    return removed


def replicate_tree(
    config: CopyConfig,
    copy_file: CopyFileFn = safe_copy,
    lister: ListDirectoryFn = list_directory,
) -> RunReport:
    validate_config(config)

    state = RunState.from_config(config)
    worker = CopyWorker(state, copy_file=copy_file, lister=lister)
    scheduler = Scheduler(state, worker)

    if config.delete_source:
        log.info("Source files will be deleted once copied")
    log.info("The concurrency is set to %s", config.concurrency)

    report = scheduler.run_to_completion(CopyJob(source=config.source, destination=config.destination))

    if config.prune_source_dirs and config.delete_source:
        if report.ok:
            removed = prune_empty_dirs(config.source, state)
            log.info("Removed %s empty source dir(s)", removed)
            report = replace(report, errors=state.errors.summary())
        else:
            log.warning("Keeping source directories: the run recorded %s error(s)", report.errors.count)

    log.info("All done")
    return report
