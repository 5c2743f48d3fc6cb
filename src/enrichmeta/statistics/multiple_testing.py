"""
Multiple testing correction.

Public Functions
----------------
adjust_pvalues(p_values, method="BH")
    Adjust p-values for multiple comparisons.
validate_p_adjust_method(method)
    Resolve a p-value adjustment method name to its statsmodels equivalent.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np
from statsmodels.stats.multitest import multipletests

from enrichmeta.constants import (
    DEFAULT_P_ADJUST_METHOD,
    P_ADJUST_TO_STATSMODELS,
    VALID_P_ADJUST_METHODS,
)
from enrichmeta.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def adjust_pvalues(
    p_values: Union[list[float], np.ndarray],
    method: str = DEFAULT_P_ADJUST_METHOD,
) -> np.ndarray:
    """
    Adjust p-values for multiple comparisons.

    Parameters
    ----------
    p_values : array-like
        Raw p-values, one per test.
    method : str
        Correction method. One of "bonferroni", "holm", "hochberg", "hommel",
        "BH" (or "fdr"), "BY" or "none" (case-insensitive). The statsmodels
        spellings "fdr_bh", "fdr_by" and "simes-hochberg" are accepted too.

    Returns
    -------
    np.ndarray
        Adjusted p-values in the same order as the input.

    Raises
    ------
    ConfigurationError
        If the method is not supported.

    Examples
    --------
    >>> adjust_pvalues([0.01, 0.02, 0.03], method="bonferroni")
    array([0.03, 0.06, 0.09])
    """
    statsmodels_method = validate_p_adjust_method(method)

    p_values = np.asarray(p_values, dtype=float)
    if p_values.size == 0:
        return p_values

    if statsmodels_method is None:
        return p_values.copy()

    _, adjusted, _, _ = multipletests(p_values, method=statsmodels_method)

    return adjusted


def validate_p_adjust_method(method: str) -> Optional[str]:
    """
    Resolve a p-value adjustment method name to its statsmodels equivalent.

    Parameters
    ----------
    method : str
        Method name (see `adjust_pvalues`)

    Returns
    -------
    Optional[str]
        The statsmodels method name, or None for "none".

    Raises
    ------
    ConfigurationError
        If the method is not supported.
    """
    if not isinstance(method, str) or method.lower() not in P_ADJUST_TO_STATSMODELS:
        raise ConfigurationError(
            f"Unsupported p-value adjustment method: {method!r}. "
            f"Supported methods are: {VALID_P_ADJUST_METHODS}"
        )

    return P_ADJUST_TO_STATSMODELS[method.lower()]
