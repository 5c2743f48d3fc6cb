"""
Utilities for path and URI operations.

Public Functions
----------------
initialize_dir(output_dir_path: str, overwrite: bool = False) -> None:
    Create a directory (local or remote) if it does not already exist.
path_exists(path: str) -> bool:
    Check if a path or URI exists.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import fsspec

logger = logging.getLogger(__name__)


def initialize_dir(output_dir_path: Union[str, Path], overwrite: bool = False) -> None:
    """
    Initializes a filesystem directory

    Parameters
    ----------
    output_dir_path : str
        Path or URI of the directory
    overwrite : bool
        If True, an existing directory is deleted and recreated.
    """
    fs, path = fsspec.core.url_to_fs(str(output_dir_path))
    if fs.exists(path):
        if not overwrite:
            return None
        logger.info(f"Removing existing directory {output_dir_path}")
        fs.rm(path, recursive=True)

    logger.info(f"Creating directory {output_dir_path}")
    fs.makedirs(path, exist_ok=True)

    return None


def path_exists(path: Union[str, Path]) -> bool:
    """

    Parameters
    ----------
    path : str
        Path/URI to check

    Returns
    -------
    bool
        Exists?
    """
    try:
        fs, fs_path = fsspec.core.url_to_fs(str(path))
        return fs.exists(fs_path)
    except (OSError, ValueError):
        return False
