"""CLI log inspector: list, read, search and filter stored log files."""

import argparse
import os
import sys

from applog.config import load_config
from applog.errors import FolderUnavailable
from applog.folder import resolve_log_folder
from applog.viewer import (
    LogFilter,
    active_log_file,
    describe_log_files,
    format_size,
    load_log_lines,
    read_file,
    search_files,
)


def _default_log_dir() -> str | None:
    config = load_config()
    if config.log_dir:
        return config.log_dir
    try:
        return str(resolve_log_folder(config.app_identity, config.group_id))
    except FolderUnavailable:
        return None


def _show_files(log_dir: str, args) -> int:
    infos = describe_log_files(log_dir)
    if not infos:
        print("No log files found.")
    for info in infos:
        kind = "archive" if info.archived else "active"
        print(f"  {info.name}  ({format_size(info.size)}, {kind})")
    return 0


def _show_file(log_dir: str, args) -> int:
    sys.stdout.write(read_file(log_dir, args.read))
    return 0


def _show_matches(log_dir: str, args) -> int:
    results = search_files(log_dir, args.search)
    if not results:
        print(f"No matches found for '{args.search}'.")
    for filename, line_num, line in results:
        print(f"  [{filename}:{line_num}] {line}")
    return 0


def _show_filtered(log_dir: str, args) -> int:
    mode, text = args.filter
    try:
        log_filter = LogFilter(mode)
    except ValueError:
        print(f"Error: unknown filter mode '{mode}'", file=sys.stderr)
        return 2
    filename = args.file or active_log_file(log_dir)
    if filename is None:
        print("No log files found.")
        return 0
    for line in load_log_lines(os.path.join(log_dir, filename), log_filter, text, args.tail):
        print(line.text)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Inspect stored log files")
    parser.add_argument("--log-dir", default=None,
                        help="Directory containing log files (default: resolved app log folder)")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--list", action="store_true", help="List all log files")
    group.add_argument("--read", metavar="FILENAME", help="Read a specific log file")
    group.add_argument("--search", metavar="TEXT", help="Search text across all log files")
    group.add_argument("--filter", nargs=2, metavar=("MODE", "TEXT"),
                       help="Filter the active log: includes, excludes or prefix")
    parser.add_argument("--file", default=None, help="Log file for --filter (default: newest .log)")
    parser.add_argument("--tail", type=int, default=None, help="Show only the last N matching lines")
    args = parser.parse_args(argv)

    log_dir = args.log_dir or _default_log_dir()
    if not log_dir or not os.path.isdir(log_dir):
        print(f"Error: log directory not found: {log_dir}", file=sys.stderr)
        sys.exit(1)

    if args.list:
        command = _show_files
    elif args.read:
        command = _show_file
    elif args.search:
        command = _show_matches
    else:
        command = _show_filtered

    try:
        code = command(log_dir, args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 1
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
