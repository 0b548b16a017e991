import argparse
import logging
import sys
from typing import Callable, List, Optional

from rich.console import Console
from rich.table import Table

from . import __version__
from .config import Settings
from .core.exceptions import (
    RootPreparationFailedError,
    ServiceUnavailableError,
    UnsupportedPlatformError,
)
from .logging_config import setup_logging
from .models import DiscoveryStrategy, MountSummary
from .services.vss_mount_service import VssMountService
from .utils.host_checks import (
    drive_is_ready,
    is_administrator,
    is_windows,
    normalize_drive_letter,
)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2
EXIT_PARTIAL = 3

HEADER = f"VSCMount version {__version__}"

FOOTER = (
    "Examples: vscmount --dl C --mp C:\\VssRoot --ud --debug\n\n"
    "Mount root is <mp>_<drive letter>, e.g. C:\\VssRoot_C"
)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vscmount",
        description=HEADER,
        epilog=FOOTER,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--dl",
        help="Source drive to look for Volume Shadow Copies (C, D:, or F:\\ for example)",
    )
    parser.add_argument(
        "--mp",
        help="The base directory where you want VSCs mapped to",
    )
    parser.add_argument(
        "--ud",
        action=argparse.BooleanOptionalAction,
        default=settings.use_timestamp_suffix,
        help="Use VSC creation timestamps (yyyyMMddTHHmmss) in symbolic link names",
    )
    parser.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in DiscoveryStrategy],
        default=settings.discovery_strategy.value,
        help="How to query the shadow copy service (default: %(default)s)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show debug information during processing",
    )
    return parser


def render_summary(console: Console, summary: MountSummary) -> None:
    """Print a table with one row per mount attempt."""
    table = Table(title=f"VSCs on {summary.volume_letter}: -> {summary.target_root}")
    table.add_column("Link", style="cyan")
    table.add_column("Shadow Copy ID")
    table.add_column("Created (UTC)")
    table.add_column("Status")

    for outcome in summary.outcomes:
        status = "[green]OK[/]" if outcome.success else f"[red]FAILED[/] {outcome.error_message or ''}"
        table.add_row(
            outcome.link_name,
            outcome.record.snapshot_id,
            f"{outcome.record.created_at:%Y/%m/%d %H:%M:%S}",
            status,
        )

    console.print(table)
    console.print(
        f"Mounted [bold]{summary.succeeded}[/] of [bold]{len(summary.outcomes)}[/] VSCs"
        + (
            f", skipped [yellow]{summary.discovery.defect_count}[/] unreadable record(s)"
            if summary.discovery.defect_count
            else ""
        )
    )


def run(
    args: argparse.Namespace,
    settings: Settings,
    parser: argparse.ArgumentParser,
    console: Optional[Console] = None,
    service_factory: Callable[..., VssMountService] = VssMountService,
) -> int:
    console = console or Console()

    if not args.dl:
        parser.print_help()
        logging.warning("dl is required. Exiting")
        return EXIT_USAGE

    if not args.mp:
        parser.print_help()
        logging.warning("mp is required. Exiting")
        return EXIT_USAGE

    if not is_administrator():
        logging.critical("Administrator privileges not found! Exiting!!")
        return EXIT_FATAL

    if not is_windows():
        logging.error("Mounting VSCs only supported on Windows. Exiting")
        return EXIT_FATAL

    try:
        drive_letter = normalize_drive_letter(args.dl)
    except ValueError as e:
        logging.error(f"{e}. Exiting")
        return EXIT_USAGE

    if not drive_is_ready(drive_letter):
        logging.error(f"'{drive_letter}' is not ready. Exiting")
        return EXIT_FATAL

    logging.info(HEADER)
    logging.info(f"Command line: {' '.join(sys.argv[1:])}")

    target_root = settings.build_mount_root(args.mp, drive_letter)
    logging.info(f"Mounting VSCs to '{target_root}'")

    try:
        service = service_factory(settings, strategy=DiscoveryStrategy(args.strategy))
        summary = service.mount_volume(drive_letter, target_root, args.ud)
    except UnsupportedPlatformError as e:
        logging.error(f"{e}. Exiting")
        return EXIT_FATAL
    except ServiceUnavailableError as e:
        logging.error(f"Unable to list VSCs on {drive_letter}: {e}")
        return EXIT_FATAL
    except RootPreparationFailedError as e:
        logging.critical(f"{e}. Does the drive exist? Exiting")
        return EXIT_FATAL

    render_summary(console, summary)

    logging.info(f"Mounting complete. Navigate VSCs via symbolic links in '{target_root}'")
    logging.warning(
        "To remove VSC access, delete individual VSC directories or the main mountpoint directory"
    )

    return EXIT_OK if summary.all_succeeded else EXIT_PARTIAL


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    setup_logging(settings, debug=args.debug)

    return run(args, settings, parser)


if __name__ == "__main__":
    sys.exit(main())
