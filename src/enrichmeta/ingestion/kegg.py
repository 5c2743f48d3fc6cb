"""
Retrieve and cache KEGG pathway data.

Public Functions
----------------
fetch_kegg_catalog(species, session=None, progress_callback=None, include_compound_names=True, request_delay=KEGG_REQUEST_DELAY) -> PathwayCatalog:
    Build a pathway catalog from the KEGG REST API.
get_kegg_data(species, cache_dir, overwrite=False, ..., cache_incomplete=False) -> PathwayCatalog:
    Load a species' pathway catalog from cache, fetching it from KEGG if needed.
get_pathway_compounds(pathway_id, session) -> List[str]:
    List the compounds in a KEGG pathway.
list_compounds(session) -> Dict[str, str]:
    List all KEGG compounds and their names.
list_pathways(species, session) -> Dict[str, str]:
    List the KEGG pathways of a species.
"""

from __future__ import annotations

import logging
import os
import re
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

import requests

from enrichmeta.catalog import PathwayCatalog, _strip_prefix
from enrichmeta.constants import (
    KEGG_CACHE_FILENAME_TEMPLATE,
    KEGG_FLAT_FILE_KEY_WIDTH,
    KEGG_FLAT_FILE_SECTIONS,
    KEGG_PREFIXES,
    KEGG_REQUEST_DELAY,
    KEGG_REST_OPERATIONS,
    KEGG_REST_URL,
)
from enrichmeta.exceptions import ConfigurationError
from enrichmeta.utils.io_utils import load_json, requests_retry_session, save_json
from enrichmeta.utils.path_utils import initialize_dir, path_exists

logger = logging.getLogger(__name__)


def get_kegg_data(
    species: str,
    cache_dir: Union[str, Path],
    overwrite: bool = False,
    session: Optional[requests.Session] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
    include_compound_names: bool = True,
    request_delay: float = KEGG_REQUEST_DELAY,
    cache_incomplete: bool = False,
) -> PathwayCatalog:
    """
    Load a species' pathway catalog from cache, fetching it from KEGG if needed.

    Parameters
    ----------
    species : str
        KEGG organism code (e.g., "hsa" for Homo sapiens, "dre" for zebrafish)
    cache_dir : Union[str, Path]
        Directory (or URI) holding cached catalogs. Created if missing.
    overwrite : bool
        If True, ignore an existing cache and fetch from KEGG again.
    session : Optional[requests.Session]
        Session used for KEGG requests. Defaults to a retrying session.
    progress_callback : Optional[Callable[[int, int], None]]
        Called as progress_callback(n_done, n_total) as pathways are fetched.
    include_compound_names : bool
        If True, also fetch the compound name table.
    request_delay : float
        Seconds to wait between per-pathway requests.
    cache_incomplete : bool
        If True, cache the catalog even when some pathways could not be retrieved.
        Otherwise an incomplete catalog is returned but not cached, so the next
        call fetches it again.

    Returns
    -------
    PathwayCatalog

    Raises
    ------
    ConfigurationError
        If the species code is malformed or KEGG has no pathway compounds for it.
    requests.RequestException
        If the pathway list or every pathway entry cannot be retrieved.

    Notes
    -----
    Fetching a species with several hundred pathways makes one request per pathway
    and can take a few minutes.
    """

    _validate_species(species)
    cache_uri = os.path.join(
        str(cache_dir), KEGG_CACHE_FILENAME_TEMPLATE.format(species=species)
    )

    if not overwrite and path_exists(cache_uri):
        logger.info(f"Loading cached pathway data from {cache_uri}")
        catalog = PathwayCatalog.from_dict(load_json(cache_uri))
        logger.info(
            f"Loaded {len(catalog)} pathways and {len(catalog.compound_names)} compounds"
        )
        return catalog

    initialize_dir(cache_dir)

    logger.info(
        f"Fetching pathway data for {species} from KEGG (the first download can take a while)"
    )
    catalog, failed_ids = _fetch_kegg_catalog(
        species,
        session=session,
        progress_callback=progress_callback,
        include_compound_names=include_compound_names,
        request_delay=request_delay,
    )

    if failed_ids and not cache_incomplete:
        logger.warning(
            f"{len(failed_ids)} pathway(s) could not be retrieved so the catalog was not cached: "
            f"{failed_ids}. Fetch again or pass cache_incomplete=True to cache it anyway"
        )
        return catalog

    save_json(cache_uri, catalog.to_dict())
    logger.info(
        f"Cached {len(catalog)} pathways and {len(catalog.compound_names)} compounds to {cache_uri}"
    )

    return catalog


def fetch_kegg_catalog(
    species: str,
    session: Optional[requests.Session] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
    include_compound_names: bool = True,
    request_delay: float = KEGG_REQUEST_DELAY,
) -> PathwayCatalog:
    """
    Build a pathway catalog from the KEGG REST API.

    Parameters
    ----------
    species : str
        KEGG organism code
    session : Optional[requests.Session]
        Session used for KEGG requests. Defaults to a retrying session.
    progress_callback : Optional[Callable[[int, int], None]]
        Called as progress_callback(n_done, n_total) after each pathway.
    include_compound_names : bool
        If True, add names for every compound found in a pathway.
    request_delay : float
        Seconds to wait between per-pathway requests.

    Returns
    -------
    PathwayCatalog
        Pathways without any compounds keep their name but have no members.
        Pathways which could not be retrieved are logged and treated the same way.

    Raises
    ------
    ConfigurationError
        If KEGG knows no pathways for the species or none of them list compounds.
    requests.RequestException
        If the pathway list or every pathway entry cannot be retrieved.
    """

    catalog, _ = _fetch_kegg_catalog(
        species,
        session=session,
        progress_callback=progress_callback,
        include_compound_names=include_compound_names,
        request_delay=request_delay,
    )
    return catalog


def _fetch_kegg_catalog(
    species: str,
    session: Optional[requests.Session] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
    include_compound_names: bool = True,
    request_delay: float = KEGG_REQUEST_DELAY,
) -> Tuple[PathwayCatalog, List[str]]:
    """Build a pathway catalog, also returning the pathways which could not be retrieved."""

    _validate_species(species)
    session = session or requests_retry_session()

    pathway_names = list_pathways(species, session)
    if len(pathway_names) == 0:
        raise ConfigurationError(f"KEGG returned no pathways for species {species!r}")

    pathway_compounds = {}
    failed_ids = []
    last_error = None
    n_pathways = len(pathway_names)
    for i, pathway_id in enumerate(pathway_names, start=1):
        if request_delay > 0:
            time.sleep(request_delay)
        try:
            compounds = get_pathway_compounds(pathway_id, session)
        except requests.RequestException as e:
            logger.warning(f"Failed to retrieve {pathway_id} from KEGG: {e}")
            failed_ids.append(pathway_id)
            last_error = e
            compounds = []

        if len(compounds) > 0:
            pathway_compounds[pathway_id] = compounds
        if progress_callback is not None:
            progress_callback(i, n_pathways)

    if len(failed_ids) == n_pathways:
        raise requests.RequestException(
            f"Failed to retrieve all {n_pathways} {species} pathways from KEGG"
        ) from last_error

    logger.info(
        f"Retrieved {len(pathway_compounds)} of {n_pathways} pathways with compounds"
        + (f" ({len(failed_ids)} failed)" if failed_ids else "")
    )

    compound_names = {}
    if include_compound_names:
        all_compounds = {c for members in pathway_compounds.values() for c in members}
        compound_names = {
            cid: name
            for cid, name in list_compounds(session).items()
            if cid in all_compounds
        }
        # compounds missing from the listing are named by their ID
        for cid in sorted(all_compounds - compound_names.keys()):
            compound_names[cid] = cid

    catalog = PathwayCatalog(
        pathway_names=pathway_names,
        pathway_compounds=pathway_compounds,
        compound_names=compound_names,
    )
    return catalog, failed_ids


def get_pathway_compounds(pathway_id: str, session: requests.Session) -> List[str]:
    """
    List the compounds in a KEGG pathway.

    Parameters
    ----------
    pathway_id : str
        KEGG pathway ID (e.g., "hsa00010")
    session : requests.Session
        Session used for the request

    Returns
    -------
    List[str]
        Compound IDs from the pathway's COMPOUND section, without the "cpd:" prefix.
    """
    text = _kegg_get(session, KEGG_REST_OPERATIONS.GET, pathway_id)
    section = _extract_flat_file_section(text, KEGG_FLAT_FILE_SECTIONS.COMPOUND)

    compounds = []
    for line in section:
        fields = line.split()
        if len(fields) > 0:
            compounds.append(_strip_prefix(fields[0], KEGG_PREFIXES.COMPOUND))

    return list(dict.fromkeys(compounds))


def list_compounds(session: requests.Session) -> Dict[str, str]:
    """
    List all KEGG compounds and their names.

    Parameters
    ----------
    session : requests.Session
        Session used for the request

    Returns
    -------
    Dict[str, str]
        Compound ID -> "; " separated synonyms (e.g., {"C00022": "Pyruvate; Pyruvic acid"})
    """
    text = _kegg_get(session, KEGG_REST_OPERATIONS.LIST, "compound")
    return {
        _strip_prefix(k, KEGG_PREFIXES.COMPOUND): v
        for k, v in _parse_tab_delimited_list(text).items()
    }


def list_pathways(species: str, session: requests.Session) -> Dict[str, str]:
    """
    List the KEGG pathways of a species.

    Parameters
    ----------
    species : str
        KEGG organism code
    session : requests.Session
        Session used for the request

    Returns
    -------
    Dict[str, str]
        Pathway ID -> pathway name, in KEGG's order, without the "path:" prefix.
    """
    text = _kegg_get(session, KEGG_REST_OPERATIONS.LIST, "pathway", species)
    return {
        _strip_prefix(k, KEGG_PREFIXES.PATHWAY): v
        for k, v in _parse_tab_delimited_list(text).items()
    }


def _extract_flat_file_section(text: str, section: str) -> List[str]:
    """
    Extract the value lines of one section of a KEGG flat file entry.

    Section names occupy the first 12 characters of a line; continuation lines
    leave that column blank.
    """

    lines = []
    current_section = None
    for line in text.splitlines():
        if line.startswith(KEGG_FLAT_FILE_SECTIONS.END):
            break
        key = line[:KEGG_FLAT_FILE_KEY_WIDTH].strip()
        if key:
            current_section = key
        if current_section == section:
            lines.append(line[KEGG_FLAT_FILE_KEY_WIDTH:])

    return lines


def _kegg_get(session: requests.Session, *path_parts: str) -> str:
    url = "/".join([KEGG_REST_URL, *path_parts])
    logger.debug(f"GET {url}")
    r = session.get(url, timeout=30)
    r.raise_for_status()
    return r.text


def _parse_tab_delimited_list(text: str) -> Dict[str, str]:
    """Parse the two column "<id>\\t<description>" output of the KEGG list operation."""

    out = {}
    for line in text.strip().split("\n"):
        if not line or "\t" not in line:
            continue
        entry_id, description = line.split("\t", 1)
        out[entry_id.strip()] = description.strip()
    return out


def _validate_species(species: str) -> None:
    if not isinstance(species, str) or not re.match(
        r"^([a-z]{2,4}|T\d{5})$", species
    ):
        raise ConfigurationError(
            f"species must be a KEGG organism code such as 'hsa' or 'map', got {species!r}"
        )
