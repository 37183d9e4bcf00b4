from __future__ import annotations

import logging

from treecopier.config import CopyConfig
from treecopier.copy_worker import CopyFileFn, ListDirectoryFn, safe_copy
from treecopier.engine import replicate_tree
from treecopier.lister import list_directory
from treecopier.models import RunReport


EXIT_SUCCESS = 0
EXIT_RUNTIME_OR_CONFIG_ERROR = 1
EXIT_PARTIAL_FAILURES = 2
EXIT_INVALID_CONFIG = 3


def run_copy(
    config: CopyConfig,
    logger: logging.Logger | None = None,
    copy_file: CopyFileFn = safe_copy,
    lister: ListDirectoryFn = list_directory,
) -> tuple[int, RunReport | None]:
    log = logger or logging.getLogger("treecopier.run")

    try:
        report = replicate_tree(config, copy_file=copy_file, lister=lister)
    except ValueError as exc:
        log.error("Invalid config: %s", exc)
        return EXIT_INVALID_CONFIG, None
    except Exception as exc:
        log.error("Runtime error for source %s: %s", config.source, exc)
        return EXIT_RUNTIME_OR_CONFIG_ERROR, None

    log.info(
        "[%s] %s -> %s | directories=%s discarded=%s failed=%s",
        report.mode,
        report.source_root,
        report.destination_root,
        report.executed,
        report.discarded,
        report.errors.count,
    )
    exit_code = EXIT_SUCCESS if report.ok else EXIT_PARTIAL_FAILURES
    return exit_code, report
