"""Utility modules for kasboek.

This package provides user-level configuration handling and file helpers.
"""

from .file import copy_to_raw, read_text_file
from .user_config import (
    ApiConnection,
    UserConfig,
    load_user_config,
    normalize_profile_name,
    save_user_config,
)

__all__ = [
    "ApiConnection",
    "UserConfig",
    "copy_to_raw",
    "load_user_config",
    "normalize_profile_name",
    "read_text_file",
    "save_user_config",
]
