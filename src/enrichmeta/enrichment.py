"""
KEGG pathway-based metabolite set enrichment analysis.

Public Functions
----------------
keggenrich(query, catalog, adjust_method="BH", verbose=False, progress_callback=None) -> pd.DataFrame:
    Test every pathway in a catalog for over-representation of a set of query compounds.
enrich:
    Alias of `keggenrich`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from enrichmeta.catalog import PathwayCatalog
from enrichmeta.constants import (
    DEFAULT_P_ADJUST_METHOD,
    ENRICHMENT_COLUMNS,
    ENRICHMENT_DEFS,
    ENRICHMENT_DTYPES,
    OVERLAP_SEP,
)
from enrichmeta.statistics.hypothesis_testing import (
    enrichment_ratio,
    hypergeometric_enrichment_test,
)
from enrichmeta.statistics.multiple_testing import (
    adjust_pvalues,
    validate_p_adjust_method,
)

logger = logging.getLogger(__name__)


def keggenrich(
    query: Iterable[str],
    catalog: Union[PathwayCatalog, Mapping[str, Any]],
    adjust_method: str = DEFAULT_P_ADJUST_METHOD,
    verbose: bool = False,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> pd.DataFrame:
    """
    Test every pathway in a catalog for over-representation of a set of query compounds.

    For each pathway the overlap with the query is scored with a one-tailed
    hypergeometric test using the union of all catalog compounds as the
    background. Pathways without any overlap are not reported. P-values are
    then adjusted across all reported pathways.

    Parameters
    ----------
    query : Iterable[str]
        KEGG compound IDs of interest (e.g., ["C00022", "C00031"]) without a "cpd:" prefix.
        The number of entries, including any duplicates, is used as the number of draws
        so pass a de-duplicated list.
    catalog : Union[PathwayCatalog, Mapping[str, Any]]
        The pathway catalog, or a pathway_data dict accepted by `PathwayCatalog.from_dict`.
    adjust_method : str
        Multiple testing correction: "bonferroni", "holm", "hochberg", "hommel",
        "BH" (default), "fdr", "BY" or "none".
    verbose : bool
        If True, log summaries of the background and the results.
    progress_callback : Optional[Callable[[int, int], None]]
        Called as progress_callback(n_done, n_total) after each pathway is scanned.

    Returns
    -------
    pd.DataFrame
        One row per pathway with a non-zero overlap, sorted by p_adjust (ties keep
        catalog order), with columns:
        - pathway_id: KEGG pathway ID
        - description: pathway name (the pathway ID if the name is unknown)
        - meta_ratio: "k/N", overlap over query size
        - bg_ratio: "n/M", pathway size over background size
        - p_value: hypergeometric upper-tail p-value
        - p_adjust: adjusted p-value
        - enrichment_ratio: (k/n) / (N/M)
        - count: k, the number of overlapping compounds
        - pathway_size: n, the number of compounds in the pathway
        - kegg_ids: overlapping compound IDs, in query order, joined by "; "
        If no pathway overlaps the query an empty table with the same columns is returned.
        If the query is larger than the background (N > M) the hypergeometric test is
        undefined: a warning is logged and p_value and p_adjust are NaN for every row.

    Raises
    ------
    ConfigurationError
        If the catalog is malformed or adjust_method is not supported.

    Examples
    --------
    >>> catalog = PathwayCatalog(
    ...     pathway_names={"P1": "Pathway 1"},
    ...     pathway_compounds={"P1": ["C1", "C2"], "P2": ["C3", "C4"]},
    ... )
    >>> keggenrich(["C1", "C2"], catalog)[["pathway_id", "count"]]
      pathway_id  count
    0         P1      2
    """

    validate_p_adjust_method(adjust_method)
    catalog = PathwayCatalog.ensure(catalog)
    query = _format_query(query)

    background_size = len(catalog.background)
    query_size = len(query)

    _log_enrichment_input(verbose, catalog, query, background_size)

    if query_size > background_size:
        logger.warning(
            f"The query ({query_size} compounds) is larger than the background "
            f"({background_size} compounds); p-values are undefined and will be NaN"
        )

    overlaps = _find_pathway_overlaps(query, catalog, progress_callback)

    if len(overlaps) == 0:
        logger.info("No significant enrichment found.")
        return _empty_enrichment_table()

    results = pd.DataFrame(overlaps)
    counts = results[ENRICHMENT_DEFS.COUNT].to_numpy()
    sizes = results[ENRICHMENT_DEFS.PATHWAY_SIZE].to_numpy()

    results[ENRICHMENT_DEFS.META_RATIO] = [f"{k}/{query_size}" for k in counts]
    results[ENRICHMENT_DEFS.BG_RATIO] = [f"{n}/{background_size}" for n in sizes]
    results[ENRICHMENT_DEFS.P_VALUE] = np.atleast_1d(
        hypergeometric_enrichment_test(counts, background_size, sizes, query_size)
    )
    results[ENRICHMENT_DEFS.ENRICHMENT_RATIO] = np.atleast_1d(
        enrichment_ratio(counts, sizes, query_size, background_size)
    )
    results[ENRICHMENT_DEFS.P_ADJUST] = adjust_pvalues(
        results[ENRICHMENT_DEFS.P_VALUE].to_numpy(), method=adjust_method
    )

    # mergesort is stable so ties keep catalog order
    results = (
        results[ENRICHMENT_COLUMNS]
        .sort_values(ENRICHMENT_DEFS.P_ADJUST, kind="mergesort")
        .reset_index(drop=True)
        .astype(ENRICHMENT_DTYPES)
    )

    _log_enrichment_results(verbose, results)

    return results


enrich = keggenrich


def _empty_enrichment_table() -> pd.DataFrame:
    """An enrichment table with no rows but the standard columns and dtypes."""

    return pd.DataFrame(
        {col: pd.Series(dtype=dtype) for col, dtype in ENRICHMENT_DTYPES.items()}
    )


def _find_pathway_overlaps(
    query: List[str],
    catalog: PathwayCatalog,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> List[Dict[str, Any]]:
    """
    Find the query compounds in each pathway.

    Parameters
    ----------
    query : List[str]
        Query compound IDs
    catalog : PathwayCatalog
        Pathway catalog
    progress_callback : Optional[Callable[[int, int], None]]
        Progress reporter

    Returns
    -------
    List[Dict[str, Any]]
        One record per pathway with at least one query compound, in catalog order.
    """

    unique_query = list(dict.fromkeys(query))
    n_pathways = len(catalog)

    overlaps = []
    for i, (pathway_id, members) in enumerate(
        catalog.pathway_compounds.items(), start=1
    ):
        overlap = [c for c in unique_query if c in members]
        if len(overlap) > 0:
            overlaps.append(
                {
                    ENRICHMENT_DEFS.PATHWAY_ID: pathway_id,
                    ENRICHMENT_DEFS.DESCRIPTION: catalog.get_name(pathway_id),
                    ENRICHMENT_DEFS.COUNT: len(overlap),
                    ENRICHMENT_DEFS.PATHWAY_SIZE: len(members),
                    ENRICHMENT_DEFS.KEGG_IDS: OVERLAP_SEP.join(overlap),
                }
            )
        if progress_callback is not None:
            progress_callback(i, n_pathways)

    return overlaps


def _format_query(query: Iterable[str]) -> List[str]:
    """Convert the query to a list of compound IDs."""

    if isinstance(query, str):
        query = [query]
    elif isinstance(query, (pd.Series, pd.Index, np.ndarray)):
        query = query.tolist()
    elif not isinstance(query, Iterable):
        raise TypeError(
            f"query must be an iterable of compound IDs, got {type(query).__name__}"
        )

    query = list(query)
    invalid = [x for x in query if not isinstance(x, str)]
    if invalid:
        raise TypeError(
            f"query must only contain string compound IDs; found {invalid[:5]}"
        )

    return query


def _log_enrichment_input(
    verbose: bool, catalog: PathwayCatalog, query: List[str], background_size: int
):
    if verbose:
        n_unique = len(set(query))
        n_in_background = len(set(query) & catalog.background)
        logger.info("Performing enrichment analysis...")
        logger.info(f"  Pathways: {len(catalog)}")
        logger.info(f"  Background compounds (M): {background_size}")
        logger.info(f"  Query compounds (N): {len(query)} ({n_unique} unique)")
        logger.info(f"  Query compounds in background: {n_in_background}")
        if n_unique < len(query):
            logger.warning(
                "The query contains duplicated compound IDs; duplicates still count towards N"
            )


def _log_enrichment_results(verbose: bool, results: pd.DataFrame):
    if verbose:
        n_sig_05 = (results[ENRICHMENT_DEFS.P_ADJUST] < 0.05).sum()
        logger.info(f"  Pathways with at least one query compound: {len(results)}")
        logger.info(f"  Significant pathways (p_adjust < 0.05): {n_sig_05}")
        if n_sig_05 > 0:
            logger.info(
                f"  Top enrichment: {results[ENRICHMENT_DEFS.DESCRIPTION].iloc[0]}"
            )
