from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np
import pytest
from matplotlib.figure import Figure

from enrichmeta.enrichment import keggenrich
from enrichmeta.network.pathway_graph import create_pathway_graph
from enrichmeta.plotting import (
    _layout_pathway_graph,
    plot_enrichment_bar,
    plot_enrichment_dot,
    plot_pathway_network,
)


@pytest.fixture
def enrichment_results(kegg_like_catalog):
    return keggenrich(["C00022", "C00024", "C00036", "C00158"], kegg_like_catalog)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


def test_plot_enrichment_bar(enrichment_results):
    fig = plot_enrichment_bar(enrichment_results)

    assert isinstance(fig, Figure)
    ax = fig.axes[0]
    assert len(ax.patches) == enrichment_results.shape[0]
    assert ax.get_xlabel() == "Enrichment Ratio"
    assert ax.get_title() == "Overview of Enriched Metabolite Sets"
    # the most significant pathway is drawn at the top
    labels = dict(
        zip(ax.get_yticks(), [t.get_text() for t in ax.get_yticklabels()])
    )
    assert labels[max(labels)].startswith("Citrate cycle")


def test_plot_enrichment_bar_top_and_ax(enrichment_results):
    fig, ax = plt.subplots()
    returned = plot_enrichment_bar(enrichment_results, top=1, show_ratio=False, ax=ax)

    assert returned is fig
    assert len(ax.patches) == 1
    assert len(ax.texts) == 0


def test_plot_enrichment_bar_wraps_labels(enrichment_results):
    fig = plot_enrichment_bar(enrichment_results, wrap_width=10)
    labels = [t.get_text() for t in fig.axes[0].get_yticklabels()]
    assert all("\n" in label for label in labels)


def test_plot_enrichment_dot(enrichment_results):
    fig = plot_enrichment_dot(enrichment_results)

    ax = fig.axes[0]
    offsets = ax.collections[0].get_offsets()
    assert offsets.shape[0] == enrichment_results.shape[0]
    # x positions are -log10(p)
    np.testing.assert_allclose(
        sorted(offsets[:, 0]),
        sorted(-np.log10(enrichment_results["p_value"].to_numpy())),
    )
    assert ax.get_legend().get_title().get_text() == "Enrichment Ratio"


def test_plot_enrichment_dot_single_row(enrichment_results):
    fig = plot_enrichment_dot(enrichment_results.head(1))
    assert isinstance(fig, Figure)


def test_plots_with_undefined_pvalues(two_pathway_catalog, caplog):
    # a query larger than the background has NaN p-values
    results = keggenrich(["C1", "C2", "C3", "C4", "C5"], two_pathway_catalog)
    assert results["p_value"].isna().all()

    with caplog.at_level(logging.WARNING):
        dot = plot_enrichment_dot(results)
    assert isinstance(dot, Figure)
    assert np.all(np.isfinite(dot.axes[0].get_xlim()))
    assert "undefined p-values" in caplog.text

    bar = plot_enrichment_bar(results)
    assert isinstance(bar, Figure)
    assert np.all(np.isfinite(bar.axes[0].get_xlim()))


@pytest.mark.parametrize("plot_fxn", [plot_enrichment_bar, plot_enrichment_dot])
def test_plots_reject_empty_results(enrichment_results, plot_fxn):
    with pytest.raises(ValueError, match="No enrichment results to plot"):
        plot_fxn(enrichment_results.iloc[0:0])
    with pytest.raises(ValueError, match="missing the required columns"):
        plot_fxn(enrichment_results.drop(columns=["p_adjust"]))


@pytest.mark.parametrize("layout", ["circle", "fr", "kk", "dh"])
def test_plot_pathway_network_layouts(kegg_like_catalog, layout):
    graph = create_pathway_graph(kegg_like_catalog)
    fig = plot_pathway_network(graph, layout=layout, seed=1, subtitle="Min shared: 1")

    ax = fig.axes[0]
    # one line per edge
    assert len(ax.lines) == graph.ecount()
    assert ax.collections[0].get_offsets().shape[0] == graph.vcount()
    texts = [t.get_text() for t in ax.texts]
    assert "Min shared: 1" in texts
    assert ax.get_legend() is not None


def test_plot_pathway_network_unknown_layout(kegg_like_catalog, caplog):
    graph = create_pathway_graph(kegg_like_catalog)
    with caplog.at_level(logging.WARNING):
        coords = _layout_pathway_graph(graph, "spring", seed=1)

    assert coords.shape == (4, 2)
    assert "Unknown layout" in caplog.text


def test_plot_pathway_network_seed_is_reproducible(kegg_like_catalog):
    graph = create_pathway_graph(kegg_like_catalog)
    np.testing.assert_allclose(
        _layout_pathway_graph(graph, "fr", seed=42),
        _layout_pathway_graph(graph, "fr", seed=42),
    )


def test_plot_pathway_network_without_edges(two_pathway_catalog, caplog):
    graph = create_pathway_graph(two_pathway_catalog, min_shared=5)
    with caplog.at_level(logging.WARNING):
        fig = plot_pathway_network(graph, show_legend=False)

    assert len(fig.axes[0].lines) == 0
    assert fig.axes[0].get_legend() is None
    assert "only vertices will be drawn" in caplog.text


def test_plot_pathway_network_single_vertex(two_pathway_catalog):
    graph = create_pathway_graph(two_pathway_catalog, ["P1"])
    fig = plot_pathway_network(graph)
    assert fig.axes[0].collections[0].get_offsets().shape[0] == 1


def test_plot_pathway_network_empty_graph(two_pathway_catalog):
    graph = create_pathway_graph(two_pathway_catalog, [])
    with pytest.raises(ValueError, match="no vertices"):
        plot_pathway_network(graph)
