"""
Hypothesis tests.

Public Functions
----------------
enrichment_ratio(overlap_counts, pathway_sizes, query_size, background_size)
    Fold over-representation of a pathway's compounds in a query.
hypergeometric_enrichment_test(overlap_counts, background_size, pathway_sizes, query_size)
    One-tailed (over-representation) hypergeometric test.
"""

from __future__ import annotations

from typing import Union

import numpy as np
from scipy.stats import hypergeom


def enrichment_ratio(
    overlap_counts: Union[int, list[int], np.ndarray],
    pathway_sizes: Union[int, list[int], np.ndarray],
    query_size: int,
    background_size: int,
) -> Union[float, np.ndarray]:
    """
    Fold over-representation of a pathway's compounds in a query.

    Computes (k / n) / (N / M): the fraction of the pathway hit by the query
    relative to the fraction of the background covered by the query.

    Parameters
    ----------
    overlap_counts : array-like
        k, the number of query compounds in each pathway
    pathway_sizes : array-like
        n, the number of compounds in each pathway
    query_size : int
        N, the number of query compounds
    background_size : int
        M, the number of compounds in the background universe

    Returns
    -------
    float or numpy array
        Enrichment ratios; nan where the pathway or the query is empty.
    """
    k = np.asarray(overlap_counts, dtype=float)
    n = np.asarray(pathway_sizes, dtype=float)

    denominator = n * query_size
    ratios = np.divide(
        k * background_size,
        denominator,
        out=np.full(np.broadcast(k, n).shape, np.nan, dtype=float),
        where=denominator != 0,
    )

    if ratios.ndim == 0:
        return float(ratios)
    return ratios


def hypergeometric_enrichment_test(
    overlap_counts: Union[int, list[int], np.ndarray],
    background_size: int,
    pathway_sizes: Union[int, list[int], np.ndarray],
    query_size: int,
) -> Union[float, np.ndarray]:
    """
    One-tailed hypergeometric test for over-representation.

    Returns P(X >= k) for X ~ Hypergeometric(M, n, N), i.e. the probability of
    drawing at least k pathway members when sampling N compounds without
    replacement from a background of M compounds of which n belong to the
    pathway. Under-representation is not tested.

    Parameters
    ----------
    overlap_counts : array-like
        k, observed number of query compounds in each pathway
    background_size : int
        M, number of compounds in the background universe
    pathway_sizes : array-like
        n, number of compounds in each pathway
    query_size : int
        N, number of query compounds

    Returns
    -------
    float or numpy array
        Upper-tail p-values. Follows scipy and returns nan for impossible
        configurations (e.g., a query larger than the background).

    Raises
    ------
    ValueError
        If any count is negative.

    Examples
    --------
    >>> round(hypergeometric_enrichment_test(2, 10, 4, 3), 4)
    0.3333
    """
    k = np.asarray(overlap_counts)
    n = np.asarray(pathway_sizes)

    if np.any(k < 0) or np.any(n < 0) or query_size < 0 or background_size < 0:
        raise ValueError("All counts must be non-negative")

    # sf is P(X > x) so shift by one to include k itself
    p_values = hypergeom.sf(k - 1, background_size, n, query_size)

    if np.ndim(p_values) == 0:
        return float(p_values)
    return np.asarray(p_values, dtype=float)
