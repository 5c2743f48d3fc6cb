# src/enrichmeta/utils/__init__.py
"""
enrichmeta utilities package.
"""

from enrichmeta.utils.io_utils import (
    load_json,
    requests_retry_session,
    save_json,
)
from enrichmeta.utils.path_utils import (
    initialize_dir,
    path_exists,
)

__all__ = [
    # File I/O and downloads
    "load_json",
    "requests_retry_session",
    "save_json",
    # Path utilities
    "initialize_dir",
    "path_exists",
]
