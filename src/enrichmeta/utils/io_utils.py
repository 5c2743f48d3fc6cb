"""
Utilities for input and output operations.

Public Functions
----------------
load_json(uri: str) -> Any:
    Read JSON from URI.
requests_retry_session(retries: int = 5, backoff_factor: float = 0.3, status_forcelist: tuple = (500, 502, 503, 504), session: requests.Session | None = None, **kwargs) -> requests.Session:
    Create a requests session with retry logic.
save_json(uri: str, obj: Any) -> None:
    Write object to JSON file at URI.
"""

from __future__ import annotations

import json
import logging
import posixpath
from pathlib import Path
from typing import Any, Union

import fsspec
import requests
from requests.adapters import HTTPAdapter, Retry

logger = logging.getLogger(__name__)


def load_json(uri: Union[str, Path]) -> Any:
    """Read JSON from a URI.

    Parameters
    ----------
    uri : str
        Path or URI to the JSON file (e.g., '/local/path.json', 'gs://bucket/file.json').

    Returns
    -------
    Any
        The parsed JSON object (dict, list, etc.).

    Examples
    --------
    >>> data = load_json('/tmp/kegg_cache/kegg_pathways_hsa.json')
    """
    logger.info("Read json from %s", uri)
    with fsspec.open(str(uri), "r") as f:
        return json.load(f)


def requests_retry_session(
    retries=5,
    backoff_factor=0.3,
    status_forcelist=(500, 502, 503, 504),
    session: requests.Session | None = None,
    **kwargs,
) -> requests.Session:
    """
    Requests session with retry logic

    The KEGG REST API is occasionally flaky and rate limits bursts of
    requests, so every call into it goes through one of these sessions.

    Parameters
    ----------
    retries : int
        Number of retries. Defaults to 5.
    backoff_factor : float
        Backoff factor. Defaults to 0.3.
    status_forcelist : tuple
        Errors to retry. Defaults to (500, 502, 503, 504).
    session : requests.Session | None
        Existing session. Defaults to None.

    Returns
    -------
    requests.Session
    """
    session = session or requests.Session()
    retry = Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        **kwargs,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def save_json(uri: Union[str, Path], obj: Any) -> None:
    """
    Write object to JSON file at URI.

    Missing parent directories are created.

    Parameters
    ----------
    uri : str
        Path or URI to the JSON file (e.g., '/local/path.json', 'gs://bucket/file.json').
    obj : Any
        Object to serialize to JSON.

    Returns
    -------
    None

    Examples
    --------
    >>> save_json('/tmp/config.json', {'key': 'value'})
    """
    uri = str(uri)
    fs, path = fsspec.core.url_to_fs(uri)
    parent = posixpath.dirname(path)
    if parent:
        fs.makedirs(parent, exist_ok=True)

    with fsspec.open(uri, "w") as f:
        json.dump(obj, f)
