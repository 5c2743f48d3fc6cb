"""
Lookups between KEGG pathways, compounds and their names.

Public Functions
----------------
find_compound_names(compound_ids, catalog) -> pd.DataFrame:
    Map compound IDs to compound names.
find_compound_pathways(compound_ids, catalog, include_names=True) -> pd.DataFrame:
    Find the pathways which contain each compound.
find_pathway_compounds(pathway_ids, catalog) -> pd.DataFrame:
    List the compounds in each pathway.
find_pathway_names(pathway_ids, catalog) -> pd.DataFrame:
    Map pathway IDs to pathway names.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Union

import pandas as pd

from enrichmeta.catalog import PathwayCatalog
from enrichmeta.constants import LOOKUP_DEFS, NOT_FOUND

logger = logging.getLogger(__name__)


def find_compound_names(
    compound_ids: Iterable[str],
    catalog: Union[PathwayCatalog, Mapping[str, Any]],
) -> pd.DataFrame:
    """
    Map compound IDs to compound names.

    Parameters
    ----------
    compound_ids : Iterable[str]
        KEGG compound IDs (e.g., ["C00031", "C00022"])
    catalog : Union[PathwayCatalog, Mapping[str, Any]]
        A catalog carrying compound names

    Returns
    -------
    pd.DataFrame
        Columns kegg_id and name, in input order. Unknown compounds are named "Not found".
    """
    compound_ids = _validate_ids(compound_ids, "compound_ids")
    catalog = PathwayCatalog.ensure(catalog)

    if len(catalog.compound_names) == 0:
        logger.warning(
            "The pathway catalog does not contain compound names; fetch it with get_kegg_data to add them"
        )

    return pd.DataFrame(
        {
            LOOKUP_DEFS.KEGG_ID: compound_ids,
            LOOKUP_DEFS.NAME: [
                catalog.compound_names.get(cid, NOT_FOUND) for cid in compound_ids
            ],
        },
        columns=[LOOKUP_DEFS.KEGG_ID, LOOKUP_DEFS.NAME],
    )


def find_compound_pathways(
    compound_ids: Iterable[str],
    catalog: Union[PathwayCatalog, Mapping[str, Any]],
    include_names: bool = True,
) -> pd.DataFrame:
    """
    Find the pathways which contain each compound.

    Parameters
    ----------
    compound_ids : Iterable[str]
        KEGG compound IDs (e.g., ["C00031", "C00221"])
    catalog : Union[PathwayCatalog, Mapping[str, Any]]
        The pathway catalog
    include_names : bool
        If True, add the pathway name as a description column.

    Returns
    -------
    pd.DataFrame
        One row per compound-pathway membership with columns kegg_id, pathway_id and
        (optionally) description, sorted by kegg_id then pathway_id. Compounds which
        are not in any pathway are omitted.
    """
    compound_ids = _validate_ids(compound_ids, "compound_ids")
    catalog = PathwayCatalog.ensure(catalog)

    columns = [LOOKUP_DEFS.KEGG_ID, LOOKUP_DEFS.PATHWAY_ID]
    if include_names:
        columns.append(LOOKUP_DEFS.DESCRIPTION)

    rows = []
    for cid in dict.fromkeys(compound_ids):
        for pathway_id, members in catalog.pathway_compounds.items():
            if cid in members:
                row = {LOOKUP_DEFS.KEGG_ID: cid, LOOKUP_DEFS.PATHWAY_ID: pathway_id}
                if include_names:
                    row[LOOKUP_DEFS.DESCRIPTION] = catalog.get_name(pathway_id)
                rows.append(row)

    if len(rows) == 0:
        logger.info("None of the provided compounds were found in any pathways.")
        return pd.DataFrame(columns=columns)

    return (
        pd.DataFrame(rows, columns=columns)
        .sort_values([LOOKUP_DEFS.KEGG_ID, LOOKUP_DEFS.PATHWAY_ID])
        .reset_index(drop=True)
    )


def find_pathway_compounds(
    pathway_ids: Iterable[str],
    catalog: Union[PathwayCatalog, Mapping[str, Any]],
) -> pd.DataFrame:
    """
    List the compounds in each pathway.

    Parameters
    ----------
    pathway_ids : Iterable[str]
        KEGG pathway IDs (e.g., ["hsa00010", "hsa00020"])
    catalog : Union[PathwayCatalog, Mapping[str, Any]]
        The pathway catalog

    Returns
    -------
    pd.DataFrame
        Long table with columns pathway_id and kegg_id; one row per compound in
        each pathway. Pathways missing from the catalog are logged and skipped.
    """
    pathway_ids = _validate_ids(pathway_ids, "pathway_ids")
    catalog = PathwayCatalog.ensure(catalog)

    missing = [pid for pid in pathway_ids if pid not in catalog]
    for pid in missing:
        logger.warning(f"Pathway '{pid}' not found in the pathway catalog")

    rows = [
        {LOOKUP_DEFS.PATHWAY_ID: pid, LOOKUP_DEFS.KEGG_ID: cid}
        for pid in pathway_ids
        if pid in catalog
        for cid in sorted(catalog.pathway_compounds[pid])
    ]

    return pd.DataFrame(rows, columns=[LOOKUP_DEFS.PATHWAY_ID, LOOKUP_DEFS.KEGG_ID])


def find_pathway_names(
    pathway_ids: Iterable[str],
    catalog: Union[PathwayCatalog, Mapping[str, Any]],
) -> pd.DataFrame:
    """
    Map pathway IDs to pathway names.

    Parameters
    ----------
    pathway_ids : Iterable[str]
        KEGG pathway IDs (e.g., ["hsa00010", "hsa00020"])
    catalog : Union[PathwayCatalog, Mapping[str, Any]]
        The pathway catalog

    Returns
    -------
    pd.DataFrame
        Columns pathway_id and description, in input order. Unknown pathways are
        described as "Not found".
    """
    pathway_ids = _validate_ids(pathway_ids, "pathway_ids")
    catalog = PathwayCatalog.ensure(catalog)

    return pd.DataFrame(
        {
            LOOKUP_DEFS.PATHWAY_ID: pathway_ids,
            LOOKUP_DEFS.DESCRIPTION: [
                catalog.pathway_names.get(pid, NOT_FOUND) for pid in pathway_ids
            ],
        },
        columns=[LOOKUP_DEFS.PATHWAY_ID, LOOKUP_DEFS.DESCRIPTION],
    )


def _validate_ids(ids: Iterable[str], arg_name: str) -> List[str]:
    """Coerce a single ID or an iterable of IDs to a list, rejecting non-string IDs."""

    if isinstance(ids, str):
        return [ids]
    if not isinstance(ids, Iterable):
        raise TypeError(f"{arg_name} must be a string or an iterable of strings")

    ids = list(ids)
    if not all(isinstance(x, str) for x in ids):
        raise TypeError(f"{arg_name} must only contain strings")

    return ids
