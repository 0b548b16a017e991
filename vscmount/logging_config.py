import logging
import logging.handlers
from rich.logging import RichHandler
from rich.console import Console

from .config import Settings


def setup_logging(settings: Settings, debug: bool = False) -> None:
    level = "DEBUG" if debug else settings.log_level

    # Rich console handler - VSCMount er et interaktivt værktøj, så kun beskeden vises
    console = Console(width=120)
    rich_handler = RichHandler(
        console=console,
        show_time=debug,
        show_level=debug,
        show_path=debug,
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
    )
    rich_handler.setLevel(level)

    # Configure root logger (catches everything)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(rich_handler)

    log_file = settings.log_file
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        # File handler with detailed format for debugging
        file_format = (
            "%(asctime)s - %(levelname)s - "
            "%(filename)s:%(lineno)d in %(funcName)s() - "
            "%(message)s"
        )

        file_handler = logging.handlers.TimedRotatingFileHandler(
            filename=str(log_file),
            when="midnight",
            interval=1,
            backupCount=settings.log_retention_days,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(file_format))
        root_logger.addHandler(file_handler)

    logging.debug(
        f"[bold green]Logging initialized[/] - "
        f"File: [cyan]{log_file or '(console only)'}[/], "
        f"Level: [yellow]{level}[/], "
        f"Retention: [blue]{settings.log_retention_days}[/] days"
    )
