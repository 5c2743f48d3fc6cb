"""Tests for KEGG pathway enrichment."""

from __future__ import annotations

import logging
from unittest.mock import Mock

import numpy as np
import pandas as pd
import pytest

from enrichmeta.constants import ENRICHMENT_COLUMNS, ENRICHMENT_DEFS, ENRICHMENT_DTYPES
from enrichmeta.enrichment import enrich, keggenrich
from enrichmeta.exceptions import ConfigurationError


def test_keggenrich_reference_values(ten_compound_catalog):
    results = keggenrich(["C1", "C2", "C5"], ten_compound_catalog)

    assert list(results.columns) == ENRICHMENT_COLUMNS
    assert results[ENRICHMENT_DEFS.PATHWAY_ID].tolist() == ["P1", "P2"]

    top = results.iloc[0]
    assert top[ENRICHMENT_DEFS.DESCRIPTION] == "Pathway 1"
    assert top[ENRICHMENT_DEFS.COUNT] == 2
    assert top[ENRICHMENT_DEFS.PATHWAY_SIZE] == 4
    assert top[ENRICHMENT_DEFS.META_RATIO] == "2/3"
    assert top[ENRICHMENT_DEFS.BG_RATIO] == "4/10"
    assert top[ENRICHMENT_DEFS.P_VALUE] == pytest.approx(1 / 3)
    assert top[ENRICHMENT_DEFS.ENRICHMENT_RATIO] == pytest.approx(5 / 3)
    assert top[ENRICHMENT_DEFS.KEGG_IDS] == "C1; C2"

    second = results.iloc[1]
    assert second[ENRICHMENT_DEFS.P_VALUE] == pytest.approx(116 / 120)
    assert second[ENRICHMENT_DEFS.KEGG_IDS] == "C5"

    # BH over two tests
    np.testing.assert_allclose(
        results[ENRICHMENT_DEFS.P_ADJUST], [2 / 3, 116 / 120]
    )


def test_keggenrich_ratio_is_one_without_enrichment(ten_compound_catalog):
    # each pathway holds the same share of the query as of the background
    results = keggenrich(["C1", "C2", "C5", "C6", "C7"], ten_compound_catalog)

    assert results[ENRICHMENT_DEFS.ENRICHMENT_RATIO].tolist() == [1.0, 1.0]
    assert results.set_index(ENRICHMENT_DEFS.PATHWAY_ID)[
        ENRICHMENT_DEFS.META_RATIO
    ].to_dict() == {"P1": "2/5", "P2": "3/5"}


def test_keggenrich_ties_keep_catalog_order(two_pathway_catalog):
    results = keggenrich(["C2", "C3"], two_pathway_catalog)

    assert results[ENRICHMENT_DEFS.PATHWAY_ID].tolist() == ["P1", "P2"]
    np.testing.assert_allclose(results[ENRICHMENT_DEFS.P_VALUE], [0.5, 0.5])
    np.testing.assert_allclose(results[ENRICHMENT_DEFS.ENRICHMENT_RATIO], [4 / 3, 4 / 3])
    assert results[ENRICHMENT_DEFS.KEGG_IDS].tolist() == ["C2; C3", "C2; C3"]


def test_keggenrich_overlap_follows_query_order(two_pathway_catalog):
    results = keggenrich(["C3", "C2"], two_pathway_catalog)
    assert results[ENRICHMENT_DEFS.KEGG_IDS].tolist() == ["C3; C2", "C3; C2"]


def test_keggenrich_sorted_by_adjusted_pvalue(kegg_like_catalog):
    results = keggenrich(["C00022", "C00024", "C00036", "C00158"], kegg_like_catalog)

    assert results[ENRICHMENT_DEFS.P_ADJUST].is_monotonic_increasing
    assert results.index.tolist() == list(range(results.shape[0]))
    # oxidative phosphorylation shares nothing with the query
    assert "hsa00190" not in results[ENRICHMENT_DEFS.PATHWAY_ID].tolist()
    assert results[ENRICHMENT_DEFS.PATHWAY_ID].iloc[0] == "hsa00020"
    assert (results[ENRICHMENT_DEFS.P_ADJUST] >= results[ENRICHMENT_DEFS.P_VALUE]).all()


def test_keggenrich_dtypes(ten_compound_catalog):
    results = keggenrich(["C1", "C2", "C5"], ten_compound_catalog)
    for col, dtype in ENRICHMENT_DTYPES.items():
        assert results[col].dtype == np.dtype(dtype), col


@pytest.mark.parametrize("query", [[], ["C99", "C100"]])
def test_keggenrich_empty_results(two_pathway_catalog, query, caplog):
    with caplog.at_level(logging.INFO):
        results = keggenrich(query, two_pathway_catalog)

    assert isinstance(results, pd.DataFrame)
    assert results.shape[0] == 0
    assert list(results.columns) == ENRICHMENT_COLUMNS
    for col, dtype in ENRICHMENT_DTYPES.items():
        assert results[col].dtype == np.dtype(dtype), col
    assert "No significant enrichment found." in caplog.text


def test_keggenrich_invalid_method_raises_before_scanning(two_pathway_catalog):
    with pytest.raises(ConfigurationError, match="not_a_method"):
        keggenrich([], two_pathway_catalog, adjust_method="not_a_method")


def test_keggenrich_duplicates_count_towards_query_size(ten_compound_catalog):
    results = keggenrich(["C1", "C1", "C2"], ten_compound_catalog)

    assert results.shape[0] == 1
    row = results.iloc[0]
    assert row[ENRICHMENT_DEFS.COUNT] == 2
    assert row[ENRICHMENT_DEFS.META_RATIO] == "2/3"
    assert row[ENRICHMENT_DEFS.KEGG_IDS] == "C1; C2"
    assert row[ENRICHMENT_DEFS.P_VALUE] == pytest.approx(1 / 3)


def test_keggenrich_query_larger_than_background(two_pathway_catalog, caplog):
    with caplog.at_level(logging.WARNING):
        results = keggenrich(["C1", "C2", "C3", "C4", "C5"], two_pathway_catalog)

    assert "larger than the background" in caplog.text
    assert results.shape[0] == 2
    # p-values are undefined rather than an error
    assert results[ENRICHMENT_DEFS.P_VALUE].isna().all()
    assert results[ENRICHMENT_DEFS.P_ADJUST].isna().all()
    assert results[ENRICHMENT_DEFS.ENRICHMENT_RATIO].notna().all()


def test_keggenrich_is_deterministic(kegg_like_catalog):
    query = ["C00022", "C00031", "C00186"]
    pd.testing.assert_frame_equal(
        keggenrich(query, kegg_like_catalog), keggenrich(query, kegg_like_catalog)
    )


def test_keggenrich_accepts_dicts_and_series(two_pathway_catalog):
    catalog_dict = {
        "pathways": {"P1": "Pathway 1", "P2": "Pathway 2"},
        "pathscpds": {"P1": ["C1", "C2", "C3"], "P2": ["C2", "C3", "C4"]},
    }
    from_dict = keggenrich(pd.Series(["C2", "C3"]), catalog_dict)
    pd.testing.assert_frame_equal(
        from_dict, keggenrich(["C2", "C3"], two_pathway_catalog)
    )

    single = keggenrich("C1", two_pathway_catalog)
    assert single[ENRICHMENT_DEFS.PATHWAY_ID].tolist() == ["P1"]

    assert enrich is keggenrich


def test_keggenrich_rejects_non_string_ids(two_pathway_catalog):
    with pytest.raises(TypeError):
        keggenrich([1, 2], two_pathway_catalog)
    with pytest.raises(TypeError):
        keggenrich(5, two_pathway_catalog)


def test_keggenrich_progress_and_verbose(kegg_like_catalog, caplog):
    progress = Mock()
    with caplog.at_level(logging.INFO):
        keggenrich(
            ["C00022"], kegg_like_catalog, verbose=True, progress_callback=progress
        )

    assert progress.call_count == len(kegg_like_catalog)
    progress.assert_called_with(4, 4)
    assert "Background compounds (M): 9" in caplog.text


def test_keggenrich_no_adjustment(ten_compound_catalog):
    results = keggenrich(["C1", "C2", "C5"], ten_compound_catalog, adjust_method="none")
    np.testing.assert_allclose(
        results[ENRICHMENT_DEFS.P_ADJUST], results[ENRICHMENT_DEFS.P_VALUE]
    )
