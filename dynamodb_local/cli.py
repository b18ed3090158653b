"""
Command-line interface for the DynamoDB Local emulator.

Provides:
- Installing the emulator jar
- Showing install locations
- Running a server in the foreground
"""

import sys
import argparse
import logging
import json
import shutil
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Optional, List

from .config import DynamoDBLocalConfig, DEFAULT_CONFIG, DEFAULT_PORT
from .downloader import LocalLibDownloader
from .errors import DynamoDBLocalError
from .ports import normalize_port
from .server import start


logger = logging.getLogger(__name__)


class ExitCode(int, Enum):
    """CLI exit codes"""
    SUCCESS = 0
    ERROR = 1
    INVALID_ARGS = 2


class OutputFormat(str, Enum):
    """Output format options"""
    TEXT = "text"
    JSON = "json"


def setup_logging(verbose: int) -> None:
    """
    Setup logging based on verbosity level.

    Args:
        verbose: Verbosity count (0=WARNING, 1=INFO, 2+=DEBUG)
    """
    if verbose == 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


def build_config(args) -> DynamoDBLocalConfig:
    """
    Derive emulator configuration from parsed arguments.

    Args:
        args: Parsed command arguments

    Returns:
        Configuration with CLI overrides applied
    """
    overrides = {}
    if args.install_dir:
        overrides["install_dir"] = Path(args.install_dir)
    if args.java:
        overrides["java_executable"] = args.java

    if getattr(args, "no_in_memory", False):
        overrides["in_memory"] = False
    if getattr(args, "db_path", None):
        overrides["in_memory"] = False
        overrides["db_path"] = Path(args.db_path)
    if getattr(args, "timeout", None) is not None:
        overrides["startup_timeout"] = args.timeout

    return replace(DEFAULT_CONFIG, **overrides)


def cmd_install(args) -> int:
    """
    Download and extract the emulator if missing.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code
    """
    config = build_config(args)
    try:
        jar_path = LocalLibDownloader(config).ensure_installed()
    except DynamoDBLocalError as e:
        logger.error(f"Install failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.ERROR.value

    print(jar_path)
    return ExitCode.SUCCESS.value


def cmd_info(args) -> int:
    """
    Display install locations and status.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code
    """
    config = build_config(args)
    downloader = LocalLibDownloader(config)
    java_path = shutil.which(config.java_executable)

    info = {
        "install_dir": str(config.install_dir),
        "jar_path": str(config.jar_path),
        "zip_path": str(config.zip_path),
        "installed": downloader.is_installed(),
        "download_url": config.download_url,
        "java": java_path,
    }

    if args.format == OutputFormat.JSON.value:
        print(json.dumps(info, indent=2))
    else:
        print("=== DynamoDB Local ===\n")
        print(f"Install dir: {info['install_dir']}")
        print(f"Jar:         {info['jar_path']}")
        print(f"Archive:     {info['zip_path']}")
        print(f"Installed:   {'yes' if info['installed'] else 'no'}")
        print(f"Java:        {java_path or 'not found on PATH'}")

    return ExitCode.SUCCESS.value


def cmd_run(args) -> int:
    """
    Run a server in the foreground until interrupted.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code
    """
    config = build_config(args)
    try:
        server = start(args.port, config)
    except DynamoDBLocalError as e:
        logger.error(f"Failed to start DynamoDB Local: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.ERROR.value

    print(f"DynamoDB Local listening at {server.endpoint_url} (pid {server.pid})")
    print("Press Ctrl+C to stop")

    try:
        while not server.wait(timeout=0.5):
            pass
        logger.warning(f"DynamoDB Local exited (exit code: {server.exit_code})")
        return ExitCode.ERROR.value
    except KeyboardInterrupt:
        print("\nStopping...")
        return ExitCode.SUCCESS.value
    finally:
        server.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        prog="dynamodb-local",
        description="Local DynamoDB emulator for tests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s install                 # Download DynamoDBLocal.jar
  %(prog)s --format json info      # Show install locations
  %(prog)s run --port 8000         # Run in the foreground
        """
    )

    # Global options
    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (can be repeated: -v, -vv)'
    )
    parser.add_argument(
        '--format',
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.TEXT.value,
        help='Output format'
    )
    parser.add_argument(
        '--install-dir',
        help='Directory holding the downloaded emulator'
    )
    parser.add_argument(
        '--java',
        help='Java executable (default: java on PATH)'
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    subparsers.add_parser(
        'install',
        help='Download and extract DynamoDB Local if missing'
    )

    info_parser = subparsers.add_parser(
        'info',
        help='Show install locations and status'
    )
    # Also accepted after the subcommand; SUPPRESS keeps the global value
    info_parser.add_argument(
        '--format',
        choices=[f.value for f in OutputFormat],
        default=argparse.SUPPRESS,
        help='Output format'
    )

    run_parser = subparsers.add_parser(
        'run',
        help='Run DynamoDB Local in the foreground'
    )
    run_parser.add_argument(
        '--port',
        type=normalize_port,
        default=DEFAULT_PORT,
        help=f'Port to listen on (default: {DEFAULT_PORT})'
    )
    run_parser.add_argument(
        '--no-in-memory',
        action='store_true',
        help='Keep tables on disk, in --db-path or the emulator directory'
    )
    run_parser.add_argument(
        '--db-path',
        help='Persist tables under this directory instead of in memory'
    )
    run_parser.add_argument(
        '--timeout',
        type=float,
        help='Seconds to wait for the server to become ready'
    )

    # Parse arguments
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.verbose)

    # Route to command handler
    if not args.command:
        parser.print_help()
        return ExitCode.SUCCESS.value

    if args.command == 'install':
        return cmd_install(args)
    elif args.command == 'info':
        return cmd_info(args)
    elif args.command == 'run':
        return cmd_run(args)
    else:
        print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
        return ExitCode.INVALID_ARGS.value


if __name__ == '__main__':
    sys.exit(main())
