"""Logging setup for the kasboek CLI, ledger and document stores.

Log lines always go to stderr. Command results (transaction lists, reports,
``kasboek tx export -o -``) are printed to stdout and stay pipeable.
"""

import logging
import os
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any


@dataclass
class LoggingConfig:
    """Console and optional file logging options.

    File logging stays off unless ``KASBOEK_LOG_TO_FILE=true``.
    """

    level: str = "INFO"
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    cli_format_string: str = "%(message)s"
    log_to_file: bool = False
    log_file_path: Path = Path("logs/kasboek.log")
    max_file_size_mb: int = 10
    backup_count: int = 5
    force_reconfigure: bool = False

    @classmethod
    def from_environment(cls) -> "LoggingConfig":
        """Read ``KASBOEK_LOG_LEVEL``, ``KASBOEK_LOG_TO_FILE``, ``KASBOEK_LOG_FILE_PATH``,
        ``KASBOEK_LOG_MAX_FILE_SIZE_MB`` and ``KASBOEK_LOG_BACKUP_COUNT``.
        """
        return cls(
            level=os.getenv("KASBOEK_LOG_LEVEL", "INFO").upper(),
            log_to_file=os.getenv("KASBOEK_LOG_TO_FILE", "false").lower() == "true",
            log_file_path=Path(os.getenv("KASBOEK_LOG_FILE_PATH", "logs/kasboek.log")),
            max_file_size_mb=int(os.getenv("KASBOEK_LOG_MAX_FILE_SIZE_MB", "10")),
            backup_count=int(os.getenv("KASBOEK_LOG_BACKUP_COUNT", "5")),
        )


def setup_logging(
    config: LoggingConfig | None = None,
    cli_mode: bool = False,
    verbose: bool = False,
) -> None:
    """Configure the root logger once per process.

    Called from the ``kasboek`` root callback before any command runs.

    Args:
        config: Logging options; read from ``KASBOEK_LOG_*`` variables when None
        cli_mode: Print bare messages (``✅ Imported 12 transaction(s)``)
        verbose: Force DEBUG, e.g. to see which document store was picked
    """
    if config is None:
        config = LoggingConfig.from_environment()

    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, config.level, logging.INFO)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        logging.Formatter(config.cli_format_string if cli_mode else config.format_string)
    )
    handlers: list[logging.Handler] = [console_handler]

    if config.log_to_file:
        config.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.log_file_path,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        file_handler.setFormatter(logging.Formatter(config.format_string))
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=config.force_reconfigure)

    # One INFO line per gateway request drowns out command output
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_log_config_summary() -> dict[str, Any]:
    """Describe the active root logger and the ``KASBOEK_LOG_*`` file settings."""
    config = LoggingConfig.from_environment()
    root_logger = logging.getLogger()

    return {
        "level": logging.getLevelName(root_logger.level),
        "handlers": [type(h).__name__ for h in root_logger.handlers],
        "log_to_file": config.log_to_file,
        "log_file_path": str(config.log_file_path),
        "format_string": config.format_string,
    }
