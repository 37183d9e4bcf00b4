from __future__ import annotations

import argparse
from pathlib import Path
import sys

from treecopier.config import CopyConfig, apply_overrides, load_config, validate_config
from treecopier.logging_setup import configure_logging
from treecopier.models import RunReport
from treecopier.run_service import (
    EXIT_INVALID_CONFIG,
    EXIT_PARTIAL_FAILURES,
    EXIT_RUNTIME_OR_CONFIG_ERROR,
    EXIT_SUCCESS,
    run_copy,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treecopier",
        description="Copy or move a directory tree with many small files, one job per directory",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Replicate a source tree into a destination")
    run_parser.add_argument("--config", type=Path, help="YAML/JSON file providing defaults")
    run_parser.add_argument("--source", type=Path)
    run_parser.add_argument("--destination", type=Path)
    run_parser.add_argument(
        "--delete-source",
        action="store_true",
        default=None,
        help="Move: delete each source file once its copy is written",
    )
    run_parser.add_argument("--concurrency", type=int, help="Maximum directories processed at once")
    run_parser.add_argument(
        "--fail-fast",
        action="store_true",
        default=None,
        help="Stop starting new directories after the first listing or mkdir failure",
    )
    run_parser.add_argument(
        "--prune-source-dirs",
        action="store_true",
        default=None,
        help="After a clean move, remove the emptied source directories",
    )
    run_parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    run_parser.add_argument("--log-file", type=Path)

    validate_parser = subparsers.add_parser("validate-config", help="Validate config")
    validate_parser.add_argument("--config", required=True, type=Path)

    return parser


def _print_report(report: RunReport) -> None:
    print(
        f"[{report.mode}] {report.source_root} -> {report.destination_root} | "
        f"directories={report.executed} discarded={report.discarded} failed={report.errors.count}"
    )
    if report.ok:
        return
    print(f"{report.errors.count} failure(s):", file=sys.stderr)
    for record in report.errors.records:
        print(f"  - {record.path} [{record.kind.value}] {record.cause}", file=sys.stderr)


def cmd_validate(config_path: Path) -> int:
    try:
        config = load_config(config_path)
        validate_config(config)
    except Exception as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    print(f"Valid config: {config_path}")
    print(
        f"  - source={config.source} "
        f"destination={config.destination} "
        f"deleteSource={str(config.delete_source).lower()} "
        f"concurrency={config.concurrency} "
        f"failFast={str(config.fail_fast).lower()}"
    )
    return EXIT_SUCCESS


def cmd_run(args: argparse.Namespace) -> int:
    try:
        base: CopyConfig | None = load_config(args.config) if args.config else None
        config = apply_overrides(
            base,
            source=args.source,
            destination=args.destination,
            delete_source=args.delete_source,
            concurrency=args.concurrency,
            fail_fast=args.fail_fast,
            prune_source_dirs=args.prune_source_dirs,
            log_level=args.log_level,
            log_file=args.log_file,
        )
        validate_config(config)
        configure_logging(config.log_level, config.log_file)
    except Exception as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    exit_code, report = run_copy(config)
    if report is None:
        print(f"Run failed for source {config.source}; see log for details", file=sys.stderr)
        return exit_code

    _print_report(report)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "validate-config":
        return cmd_validate(args.config)
    if args.command == "run":
        return cmd_run(args)

    parser.print_help()
    return EXIT_RUNTIME_OR_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
