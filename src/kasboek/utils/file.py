"""File utilities for kasboek.

Handles archiving imported bank exports into the profile's raw data directory.
"""

import hashlib
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def copy_to_raw(
    source_file: Path | str,
    file_type: str,
    base_data_path: Path | str = Path("data/raw"),
) -> Path:
    """Copy a file to the raw data directory (idempotent).

    Args:
        source_file: Path to the source file to copy
        file_type: File type for directory organization (e.g., 'csv', 'json')
        base_data_path: Base path for raw data storage

    Returns:
        Path: Path to the copied file in the raw data directory

    Raises:
        FileNotFoundError: If source file doesn't exist

    Examples:
        >>> copy_to_raw("~/Downloads/ing_2025.csv", "csv")
        Path('data/raw/csv/ing_2025.csv')
    """
    source_path = Path(source_file).expanduser().resolve()
    base_path = Path(base_data_path)

    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {source_path}")

    # Bank exports come as .csv or .txt with the same layout
    normalized_type = file_type.lower()
    if normalized_type in ("csv", "txt"):
        target_dir = base_path / "csv"
    else:
        target_dir = base_path / normalized_type

    target_dir.mkdir(parents=True, exist_ok=True)
    target_path = target_dir / source_path.name

    if target_path.exists():
        if _files_are_identical(source_path, target_path):
            logger.info(f"File already archived with identical content: {target_path}")
            return target_path
        logger.info(f"Overwriting archived file with new content: {target_path}")

    shutil.copy2(source_path, target_path)
    logger.info(f"Archived {source_path} to {target_path}")

    return target_path


def _files_are_identical(file1: Path, file2: Path) -> bool:
    """Check if two files have identical content.

    Uses file size for quick check, then SHA-256 hash for verification.
    """
    if file1.stat().st_size != file2.stat().st_size:
        return False

    hash1 = hashlib.sha256(file1.read_bytes()).hexdigest()
    hash2 = hashlib.sha256(file2.read_bytes()).hexdigest()

    return hash1 == hash2


def read_text_file(file_path: Path | str) -> str:
    """Read a bank export as text.

    Tries UTF-8 (with or without BOM) first and falls back to cp1252, which
    many Dutch banks still use for their CSV exports.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(file_path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    raw = path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug(f"{path} is not UTF-8, decoding as cp1252")
        return raw.decode("cp1252", errors="replace")
