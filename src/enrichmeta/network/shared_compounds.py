"""
Compounds shared between pairs of pathways.

Public Functions
----------------
find_shared_compounds(catalog, pathway_ids=None, min_shared=1, verbose=False) -> pd.DataFrame:
    Count and list the compounds shared by every pair of pathways.
"""

from __future__ import annotations

import logging
from numbers import Integral
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from enrichmeta.catalog import PathwayCatalog, _filter_known_pathways
from enrichmeta.constants import (
    SHARED_COMPOUNDS_DEFS,
    SHARED_COMPOUNDS_DTYPES,
    SHARED_COMPOUNDS_SEP,
)
from enrichmeta.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def find_shared_compounds(
    catalog: Union[PathwayCatalog, Mapping[str, Any]],
    pathway_ids: Optional[Iterable[str]] = None,
    min_shared: int = 1,
    verbose: bool = False,
) -> pd.DataFrame:
    """
    Count and list the compounds shared by every pair of pathways.

    Each unordered pair of distinct pathways is visited exactly once; the
    pathway which comes first in `pathway_ids` is reported as `from`.

    Parameters
    ----------
    catalog : Union[PathwayCatalog, Mapping[str, Any]]
        The pathway catalog, or a pathway_data dict accepted by `PathwayCatalog.from_dict`.
    pathway_ids : Optional[Iterable[str]]
        Pathways to compare, typically a handful of enriched pathways. If None,
        all pathways in the catalog are compared. Duplicates are dropped and IDs
        missing from the catalog are logged and ignored.
    min_shared : int
        Minimum number of shared compounds for a pair to be reported (>= 1).
    verbose : bool
        If True, log a summary of the comparison.

    Returns
    -------
    pd.DataFrame
        One row per qualifying pathway pair with columns:
        - from: first pathway ID
        - to: second pathway ID
        - shared_count: number of shared compounds
        - kegg_ids: sorted shared compound IDs joined by ";"
        An empty table with the same columns is returned if fewer than two valid
        pathways remain or no pair reaches min_shared.

    Raises
    ------
    ConfigurationError
        If the catalog is malformed or min_shared is not a positive integer.

    Examples
    --------
    >>> catalog = PathwayCatalog(
    ...     pathway_names={"P1": "Pathway 1", "P2": "Pathway 2"},
    ...     pathway_compounds={"P1": ["C1", "C2", "C3"], "P2": ["C2", "C3", "C4"]},
    ... )
    >>> find_shared_compounds(catalog, min_shared=2)
      from  to  shared_count kegg_ids
    0   P1  P2             2    C2;C3
    """

    _validate_min_shared(min_shared)
    catalog = PathwayCatalog.ensure(catalog)
    valid_ids = _resolve_pathway_ids(catalog, pathway_ids)

    if len(valid_ids) < 2:
        logger.info(
            f"At least two valid pathways are required to find shared compounds; found {len(valid_ids)}"
        )
        return _empty_shared_compounds_table()

    shared_pairs = _compare_pathway_pairs(catalog, valid_ids, min_shared)

    _log_shared_compounds(verbose, valid_ids, shared_pairs, min_shared)

    if len(shared_pairs) == 0:
        logger.info(
            f"No pair of pathways shares at least {min_shared} compound(s)"
        )
        return _empty_shared_compounds_table()

    return pd.DataFrame(shared_pairs).astype(SHARED_COMPOUNDS_DTYPES)


def _compare_pathway_pairs(
    catalog: PathwayCatalog, pathway_ids: List[str], min_shared: int
) -> List[Dict[str, Any]]:
    """Intersect the members of each pathway pair (i < j) and keep pairs with enough overlap."""

    shared_pairs = []
    for i, pathway_i in enumerate(pathway_ids[:-1]):
        members_i = catalog.pathway_compounds[pathway_i]
        for pathway_j in pathway_ids[i + 1 :]:
            shared = members_i & catalog.pathway_compounds[pathway_j]
            if len(shared) >= min_shared:
                shared_pairs.append(
                    {
                        SHARED_COMPOUNDS_DEFS.FROM: pathway_i,
                        SHARED_COMPOUNDS_DEFS.TO: pathway_j,
                        SHARED_COMPOUNDS_DEFS.SHARED_COUNT: len(shared),
                        SHARED_COMPOUNDS_DEFS.KEGG_IDS: SHARED_COMPOUNDS_SEP.join(
                            sorted(shared)
                        ),
                    }
                )

    return shared_pairs


def _empty_shared_compounds_table() -> pd.DataFrame:
    return pd.DataFrame(
        {col: pd.Series(dtype=dtype) for col, dtype in SHARED_COMPOUNDS_DTYPES.items()}
    )


def _resolve_pathway_ids(
    catalog: PathwayCatalog, pathway_ids: Optional[Iterable[str]]
) -> List[str]:
    """Use all catalog pathways when none are given; otherwise de-duplicate and drop unknown IDs."""

    if pathway_ids is None:
        return catalog.pathway_ids
    if isinstance(pathway_ids, str):
        pathway_ids = [pathway_ids]

    return _filter_known_pathways(pathway_ids, catalog)


def _validate_min_shared(min_shared: int) -> None:
    if (
        isinstance(min_shared, bool)
        or not isinstance(min_shared, Integral)
        or min_shared < 1
    ):
        raise ConfigurationError(
            f"min_shared must be a positive integer, got {min_shared!r}"
        )


def _log_shared_compounds(
    verbose: bool,
    pathway_ids: List[str],
    shared_pairs: List[Dict[str, Any]],
    min_shared: int,
):
    if verbose:
        n_pathways = len(pathway_ids)
        n_pairs = n_pathways * (n_pathways - 1) // 2
        logger.info("Calculating shared compounds between pathways...")
        logger.info(f"  Pathways: {n_pathways} ({n_pairs} pairs)")
        logger.info(
            f"  Pairs sharing at least {min_shared} compound(s): {len(shared_pairs)}"
        )
