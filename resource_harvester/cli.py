# ==============================================================================
# RESOURCE HARVESTER - COMMAND LINE INTERFACE
# ==============================================================================
# Command-line front end for conversions, indexes and tuning rewrites.
#
# This provides a command-line interface with the following commands:
#   - convert: Convert a folder of packages/loose files into a project
#   - list: List the entries of a package
#   - index: Build a grouped index of a package (txt/json/csv)
#   - rename: Rename a tuning file (and its SimData)
#   - clone: Clone a tuning file (and its SimData) under a new name
#   - override: Write a TGI override comment into a tuning file
#   - history: Show recorded conversion runs
#   - paths: Show where settings and history are stored
#
# Usage:
#   python -m resource_harvester.cli convert "E:\Mods" "E:\Project"
#   python -m resource_harvester.cli index Mod.package --format json -o Mod.json
#   python -m resource_harvester.cli rename "Buff\buff_Fun.xml" --name creator:buff_Joy
#   python -m resource_harvester.cli override buff_Fun.xml --group 80000000
#
# ==============================================================================

import os
import sys
import argparse
from typing import List, Optional

from . import __version__
from .core.config import Config, INDEX_FORMATS
from .core.errors import HarvesterError
from .core.keys import format_hex, format_resource_key, parse_hex
from .core.paths import Paths
from .core.prompts import AutoPrompter, ConsolePrompter, YES
from .core.session import HarvestSession


# ==============================================================================
# COLOR HELPERS FOR TERMINAL OUTPUT
# ==============================================================================
class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    UNDERLINE = '\033[4m'
    END = '\033[0m'

    @classmethod
    def disable(cls):
        """Disable colors (for non-supporting terminals)."""
        cls.HEADER = ''
        cls.BLUE = ''
        cls.CYAN = ''
        cls.GREEN = ''
        cls.YELLOW = ''
        cls.RED = ''
        cls.BOLD = ''
        cls.UNDERLINE = ''
        cls.END = ''


def print_header(text: str):
    """Print a header."""
    print(f"\n{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}  {text}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}\n")


def print_success(text: str):
    """Print a success message."""
    print(f"{Colors.GREEN}✓ {text}{Colors.END}")


def print_error(text: str):
    """Print an error message."""
    print(f"{Colors.RED}✗ {text}{Colors.END}")


def print_info(text: str):
    """Print an info message."""
    print(f"{Colors.BLUE}ℹ {text}{Colors.END}")


def print_warning(text: str):
    """Print a warning message."""
    print(f"{Colors.YELLOW}⚠ {text}{Colors.END}")


def progress_callback(current: int, total: int, filename: str):
    """Progress callback for long operations."""
    percent = (current / total) * 100 if total > 0 else 0
    bar_length = 30
    filled = int(bar_length * current / total) if total > 0 else 0
    bar = '█' * filled + '░' * (bar_length - filled)

    # Truncate filename if too long
    max_name_len = 40
    if len(filename) > max_name_len:
        filename = '...' + filename[-(max_name_len-3):]

    print(f"\r[{bar}] {percent:5.1f}% | {current}/{total} | {filename}", end='', flush=True)

    if current >= total:
        print()  # New line when complete


# ==============================================================================
# SESSION SETUP
# ==============================================================================
def get_config(args) -> Config:
    """Load the configuration (from --config, or the default location)."""
    config = Config(getattr(args, 'config', None))
    config.load()
    if getattr(args, 'history', False):
        config.record_history = True
    if getattr(args, 'debug', False):
        config.debug_mode = True
    return config


def get_session(args) -> HarvestSession:
    """
    Build the session for a command.

    --yes answers every confirmation with "Yes"; --name answers the name
    prompt. Without them, questions are asked on the terminal.
    """
    name = getattr(args, 'name', None)
    if getattr(args, 'yes', False) or name:
        prompter = AutoPrompter(text=name or "", choice=YES if getattr(args, 'yes', False) else None)
    else:
        prompter = ConsolePrompter()
    return HarvestSession(get_config(args), prompter=prompter)


# ==============================================================================
# CONVERT COMMAND
# ==============================================================================
def cmd_convert(args) -> int:
    """Convert a folder of packages and loose files into a project."""
    print_header("Converting Folder to Project")

    from .core.reclassifier import FolderReclassifier

    print_info(f"Source:      {args.source}")
    print_info(f"Destination: {args.destination}")
    print()

    with get_session(args) as session:
        report = FolderReclassifier(session).materialize(
            args.source, args.destination,
            confirm_non_empty=False if args.force else None,
            progress_callback=None if args.quiet else progress_callback,
        )

    if report.cancelled:
        print_warning("Conversion cancelled")
        return 1

    print()
    print_success(f"Wrote {len(report.written)} file(s) from {len(report.sources)} source(s)")
    if report.skipped:
        print_info(f"Skipped {len(report.skipped)} file(s)")

    for path, messages in report.file_warnings().items():
        print_warning(path)
        for message in messages:
            print(f"    {message}")

    if args.report is not None:
        report.save(args.report or Paths.new_report_path())

    return 0


# ==============================================================================
# LIST / INDEX COMMANDS
# ==============================================================================
def cmd_list(args) -> int:
    """List the entries of a package."""
    print_header("Package Contents")

    if not os.path.isfile(args.package):
        print_error(f"Package not found: {args.package}")
        return 1

    from .extractors import DBPFExtractor
    from .core.taxonomy import classify, type_name

    try:
        package = DBPFExtractor(args.package)
    except (HarvesterError, OSError) as e:
        print_error(f"Could not read package: {e}")
        return 1

    with package:
        entries = package.list_entries()

        print(f"Package: {args.package}")
        print(f"Entries: {len(entries)}")
        print()

        if args.verbose:
            print(f"{'Key':<36} {'Type':<20} {'Size':<12} {'Stored':<12}")
            print("-" * 82)

            for entry in entries[:args.limit]:
                name = type_name(entry.key.type) or classify(entry.key).kind.value
                print(f"{format_resource_key(entry.key, '-'):<36} {name:<20} "
                      f"{entry.decompressed_size:<12} {entry.size:<12}")

            if len(entries) > args.limit:
                print(f"\n... and {len(entries) - args.limit} more entries")

        total_size = sum(e.decompressed_size for e in entries)
        total_stored = sum(e.size for e in entries)

        print(f"\nTotal size: {total_size / (1024*1024):.2f} MB")
        print(f"Stored:     {total_stored / (1024*1024):.2f} MB")

    return 0


def cmd_index(args) -> int:
    """Build a grouped index of a package."""
    print_header("Package Index")

    if not os.path.isfile(args.package):
        print_error(f"Package not found: {args.package}")
        return 1

    from .core.cataloger import PackageCataloger

    cataloger = PackageCataloger()
    try:
        index = cataloger.index_package(args.package)
    except (HarvesterError, OSError) as e:
        print_error(f"Could not read package: {e}")
        return 1

    print(f"{Colors.BOLD}By Group:{Colors.END}")
    for group in index.groups:
        warned = sum(1 for entry in group.entries if entry.warnings)
        suffix = f" ({warned} with warnings)" if warned else ""
        print(f"  {group.category}: {len(group.entries)}{suffix}")

    if args.output:
        index_format = args.format or get_config(args).index_format
        cataloger.save_index(index, args.output, format=index_format)
        print_success(f"Saved index to {args.output}")
    else:
        print()
        print(cataloger.generate_report(index))

    return 0


# ==============================================================================
# RENAME / CLONE / OVERRIDE COMMANDS
# ==============================================================================
def _run_rewrite(args, mode: str) -> int:
    from .core.rewrite import RewriteStatus, rename_or_clone

    with get_session(args) as session:
        result = rename_or_clone(args.path, mode, session)

    if result.succeeded:
        print_success(f"{result.source_path} -> {result.target_path}")
        print_info(f"New instance: {format_hex(result.new_instance, 16)}")
        if result.companion_target:
            print_success(f"{result.companion_source} -> {result.companion_target}")
        return 0

    if result.status == RewriteStatus.PARTIAL:
        print_success(f"Wrote {result.error.succeeded}")
        print_warning(f"Could not write {result.error.failed}: {result.error.context['reason']}")
        return 2

    if result.status == RewriteStatus.CANCELLED:
        print_warning(result.error.message if result.error else "Cancelled")
        return 1

    print_error(result.error.message if result.error else f"Could not read {args.path}")
    return 1


def cmd_rename(args) -> int:
    """Rename a tuning file and its SimData."""
    print_header("Rename Tuning")
    return _run_rewrite(args, "rename")


def cmd_clone(args) -> int:
    """Clone a tuning file and its SimData under a new name."""
    print_header("Clone Tuning")
    return _run_rewrite(args, "clone")


def cmd_override(args) -> int:
    """Write a TGI override comment into a tuning file."""
    from .core.rewrite import override_key

    if not os.path.isfile(args.path):
        print_error(f"File not found: {args.path}")
        return 1

    fields = [(kind, getattr(args, kind)) for kind in ("type", "group", "instance")
              if getattr(args, kind) is not None]
    if not fields:
        print_error("Give at least one of --type, --group, --instance")
        return 1

    for kind, value in fields:
        if not override_key(args.path, kind, value):
            print_error(f"{args.path} has no root element to annotate")
            return 1
        print_success(f"{kind.capitalize()} override: {format_hex(value, 16 if kind == 'instance' else 8)}")

    return 0


# ==============================================================================
# HISTORY / PATHS COMMANDS
# ==============================================================================
def cmd_history(args) -> int:
    """Show recorded conversion runs."""
    print_header("Conversion History")

    from .core.database import Database

    config = get_config(args)
    db = Database(config.database_path)
    try:
        if args.key:
            resources = db.find_resources_by_key(args.key)
            if not resources:
                print_info(f"No conversions wrote {args.key.upper()}")
            for res in resources:
                print(f"  run {res.run_id}: {res.destination_path}")
            return 0

        runs = db.get_recent_runs(args.limit)
        if not runs:
            print_info("No conversions recorded yet")
            print_info("Enable with --history or 'record_history' in the config file")
            return 0

        for run in runs:
            status_color = Colors.GREEN if run.status == 'completed' else Colors.YELLOW
            print(f"{Colors.BOLD}#{run.id}{Colors.END} "
                  f"{status_color}{run.status}{Colors.END} "
                  f"{run.started_at:%Y-%m-%d %H:%M}")
            print(f"    {run.source_pattern} -> {run.destination}")
            print(f"    {run.resources_written} written, {run.skipped_sources} skipped, "
                  f"{run.warning_count} warning(s)")

        stats = db.get_stats()
        print()
        print(f"Runs recorded:      {stats['runs']}")
        print(f"Resources written:  {stats['resources']}")
    finally:
        db.close()

    return 0


def cmd_paths(args) -> int:
    """Show where settings and history are stored."""
    print_header("Resource Harvester Paths")

    config = get_config(args)
    print(f"User data:  {Paths.get_user_data_dir()}")
    print(f"Config:     {config.config_path}")
    print(f"Database:   {config.database_path}")
    print(f"Reports:    {Paths.get_reports_dir()}")
    return 0


# ==============================================================================
# MAIN ARGUMENT PARSER
# ==============================================================================
def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        prog="resource-harvester",
        description="Resource Harvester - Sims 4 package to project converter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s convert Mods Project             Convert packages into a project
  %(prog)s index Mod.package                Show a grouped index of a package
  %(prog)s rename buff_Fun.xml              Rename a tuning file (and SimData)
  %(prog)s override buff_Fun.xml --group 0  Add a TGI override comment
        """
    )
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.add_argument('--config', help='Path to config.json')
    parser.add_argument('--debug', action='store_true', help='Print debug output')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # -------------------------------------------------------------------------
    # CONVERT command
    # -------------------------------------------------------------------------
    convert_parser = subparsers.add_parser('convert', help='Convert a folder into a project')
    convert_parser.add_argument('source', help='Folder or glob pattern (** allowed)')
    convert_parser.add_argument('destination', help='Project folder')
    convert_parser.add_argument('--yes', '-y', action='store_true', help='Answer yes to confirmations')
    convert_parser.add_argument('--force', action='store_true', help='Do not ask about a non-empty destination')
    convert_parser.add_argument('--history', action='store_true', help='Record this run in the history')
    convert_parser.add_argument('--report', nargs='?', const='',
                                help='Save a JSON report of the run (default: reports folder)')
    convert_parser.add_argument('--quiet', '-q', action='store_true', help='No progress bar')
    convert_parser.set_defaults(func=cmd_convert)

    # -------------------------------------------------------------------------
    # LIST / INDEX commands
    # -------------------------------------------------------------------------
    list_parser = subparsers.add_parser('list', help='List package entries')
    list_parser.add_argument('package', help='Package file')
    list_parser.add_argument('--verbose', '-v', action='store_true', help='Show detailed list')
    list_parser.add_argument('--limit', type=int, default=100, help='Max entries to show')
    list_parser.set_defaults(func=cmd_list)

    index_parser = subparsers.add_parser('index', help='Build a grouped package index')
    index_parser.add_argument('package', help='Package file')
    index_parser.add_argument('--output', '-o', help='Output file for the index')
    index_parser.add_argument('--format', choices=list(INDEX_FORMATS), help='Index file format')
    index_parser.set_defaults(func=cmd_index)

    # -------------------------------------------------------------------------
    # TUNING commands
    # -------------------------------------------------------------------------
    for command, func, text in (('rename', cmd_rename, 'Rename a tuning file'),
                                ('clone', cmd_clone, 'Clone a tuning file')):
        sub = subparsers.add_parser(command, help=text)
        sub.add_argument('path', help='Tuning .xml file')
        sub.add_argument('--name', help='New name (skips the prompt)')
        sub.add_argument('--yes', '-y', action='store_true', help='Overwrite without asking')
        sub.set_defaults(func=func)

    override_parser = subparsers.add_parser('override', help='Add a TGI override comment')
    override_parser.add_argument('path', help='Tuning .xml file')
    override_parser.add_argument('--type', type=parse_hex, help='Type (hex)')
    override_parser.add_argument('--group', type=parse_hex, help='Group (hex)')
    override_parser.add_argument('--instance', type=parse_hex, help='Instance (hex)')
    override_parser.set_defaults(func=cmd_override)

    # -------------------------------------------------------------------------
    # HISTORY / PATHS commands
    # -------------------------------------------------------------------------
    history_parser = subparsers.add_parser('history', help='Show conversion history')
    history_parser.add_argument('--limit', type=int, default=20, help='Max runs to show')
    history_parser.add_argument('--key', help='Find conversions that wrote this key')
    history_parser.set_defaults(func=cmd_history)

    paths_parser = subparsers.add_parser('paths', help='Show data locations')
    paths_parser.set_defaults(func=cmd_paths)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    # Check if colors are supported
    if sys.platform == 'win32':
        # Enable ANSI colors on Windows
        try:
            import ctypes
            kernel32 = ctypes.windll.kernel32
            kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
        except (AttributeError, OSError):
            Colors.disable()
    elif not sys.stdout.isatty():
        Colors.disable()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        return args.func(args) or 0
    except HarvesterError as e:
        print_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
