"""
Plots of enrichment results and pathway networks.

Public Functions
----------------
plot_enrichment_bar(results, top=25, ...) -> Figure:
    Bar chart of enrichment ratios coloured by p-value.
plot_enrichment_dot(results, top=25, ...) -> Figure:
    Dot chart of -log10(p-value) sized by enrichment ratio.
plot_pathway_network(graph, layout="fr", ...) -> Figure:
    Draw a pathway graph with vertices sized by pathway size and edges weighted by shared compounds.
"""

from __future__ import annotations

import logging
import random
import textwrap
from typing import Optional, Tuple

import igraph as ig
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.cm import ScalarMappable
from matplotlib.colors import LinearSegmentedColormap, Normalize, to_rgba
from matplotlib.figure import Figure
from matplotlib.lines import Line2D

from enrichmeta.constants import (
    ENRICHMENT_DEFS,
    NETWORK_LAYOUTS,
    PATHWAY_GRAPH_DEFS,
    VALID_NETWORK_LAYOUTS,
)

logger = logging.getLogger(__name__)


def plot_enrichment_bar(
    results: pd.DataFrame,
    top: int = 25,
    title: str = "Overview of Enriched Metabolite Sets",
    low_color: str = "#FF0000",
    high_color: str = "#FFFF00",
    bar_height: float = 0.8,
    base_size: int = 12,
    wrap_width: int = 40,
    show_ratio: bool = True,
    color_limits: Tuple[float, float] = (0, 0.2),
    ax: Optional[plt.Axes] = None,
) -> Figure:
    """
    Bar chart of enrichment ratios coloured by p-value.

    Parameters
    ----------
    results : pd.DataFrame
        Output of `enrichmeta.enrichment.keggenrich`
    top : int
        Number of pathways with the smallest adjusted p-values to show
    title : str
        Plot title
    low_color, high_color : str
        Colours for p-values at the lower and upper color_limits
    bar_height : float
        Height of each bar
    base_size : int
        Base font size
    wrap_width : int
        Pathway descriptions are wrapped at this many characters
    show_ratio : bool
        If True, annotate each bar with its enrichment ratio
    color_limits : Tuple[float, float]
        P-value range of the colour scale; values outside are clipped
    ax : Optional[plt.Axes]
        Axes to draw on. A new figure is created if None.

    Returns
    -------
    Figure
    """

    top_results = _select_top_results(results, top)
    n_rows = len(top_results)

    fig, ax = _get_fig_ax(ax, figsize=(10, max(3, 0.45 * n_rows + 1.5)))
    cmap = _pvalue_cmap(low_color, high_color)
    norm = Normalize(vmin=color_limits[0], vmax=color_limits[1], clip=True)

    # most significant pathway on top
    y = np.arange(n_rows)[::-1]
    ratios = top_results[ENRICHMENT_DEFS.ENRICHMENT_RATIO].to_numpy()
    colors = cmap(norm(top_results[ENRICHMENT_DEFS.P_VALUE].to_numpy()))

    ax.barh(y, ratios, height=bar_height, color=colors)
    ax.set_yticks(y)
    ax.set_yticklabels(
        _wrap_labels(top_results[ENRICHMENT_DEFS.DESCRIPTION], wrap_width),
        fontsize=base_size - 2,
        fontweight="bold",
    )
    ax.set_xlabel("Enrichment Ratio", fontsize=base_size, fontweight="bold")
    ax.set_title(title, fontsize=base_size + 4, fontweight="bold")
    ax.set_xlim(0, _axis_upper_limit(ratios, scale=1.3))
    ax.tick_params(axis="x", labelsize=base_size - 2)
    ax.grid(axis="x", color="grey", alpha=0.2)
    ax.set_axisbelow(True)

    if show_ratio:
        for yi, ratio in zip(y, ratios):
            ax.text(
                ratio,
                yi,
                f" {ratio:.1f}",
                va="center",
                ha="left",
                fontsize=base_size - 3,
                fontweight="bold",
            )

    _add_pvalue_colorbar(fig, ax, cmap, norm, color_limits, base_size)
    fig.tight_layout()

    return fig


def plot_enrichment_dot(
    results: pd.DataFrame,
    top: int = 25,
    title: str = "Enriched Metabolic Pathways",
    low_color: str = "#FF0000",
    high_color: str = "#FFFF00",
    size_range: Tuple[float, float] = (30, 200),
    point_alpha: float = 0.8,
    base_size: int = 12,
    wrap_width: int = 40,
    color_limits: Tuple[float, float] = (0, 0.2),
    show_grid: bool = True,
    ax: Optional[plt.Axes] = None,
) -> Figure:
    """
    Dot chart of -log10(p-value) sized by enrichment ratio.

    Parameters
    ----------
    results : pd.DataFrame
        Output of `enrichmeta.enrichment.keggenrich`
    top : int
        Number of pathways with the smallest adjusted p-values to show
    title : str
        Plot title
    low_color, high_color : str
        Colours for p-values at the lower and upper color_limits
    size_range : Tuple[float, float]
        Marker areas (points^2) of the smallest and largest enrichment ratio
    point_alpha : float
        Marker transparency
    base_size : int
        Base font size
    wrap_width : int
        Pathway descriptions are wrapped at this many characters
    color_limits : Tuple[float, float]
        P-value range of the colour scale; values outside are clipped
    show_grid : bool
        If True, draw horizontal grid lines
    ax : Optional[plt.Axes]
        Axes to draw on. A new figure is created if None.

    Returns
    -------
    Figure
    """

    top_results = _select_top_results(results, top)
    n_rows = len(top_results)

    fig, ax = _get_fig_ax(ax, figsize=(10, max(3, 0.45 * n_rows + 1.5)))
    cmap = _pvalue_cmap(low_color, high_color)
    norm = Normalize(vmin=color_limits[0], vmax=color_limits[1], clip=True)

    p_values = top_results[ENRICHMENT_DEFS.P_VALUE].to_numpy()
    ratios = top_results[ENRICHMENT_DEFS.ENRICHMENT_RATIO].to_numpy()
    neg_log_p = -np.log10(np.clip(p_values, np.finfo(float).tiny, 1))
    if np.isnan(p_values).any():
        logger.warning(
            f"{np.isnan(p_values).sum()} pathway(s) have undefined p-values and are not drawn"
        )
    y = np.arange(n_rows)[::-1]

    ratio_min, ratio_max = np.nanmin(ratios), np.nanmax(ratios)
    ratio_span = ratio_max - ratio_min

    def _ratio_to_size(r):
        if ratio_span == 0:
            return np.full_like(np.asarray(r, dtype=float), np.mean(size_range))
        return size_range[0] + (np.asarray(r) - ratio_min) / ratio_span * (
            size_range[1] - size_range[0]
        )

    def _size_to_ratio(s):
        if ratio_span == 0:
            return np.full_like(np.asarray(s, dtype=float), ratio_min)
        return ratio_min + (np.asarray(s) - size_range[0]) / (
            size_range[1] - size_range[0]
        ) * ratio_span

    scatter = ax.scatter(
        neg_log_p,
        y,
        s=_ratio_to_size(ratios),
        c=cmap(norm(p_values)),
        alpha=point_alpha,
        edgecolors="none",
    )

    ax.set_yticks(y)
    ax.set_yticklabels(
        _wrap_labels(top_results[ENRICHMENT_DEFS.DESCRIPTION], wrap_width),
        fontsize=base_size - 2,
        fontweight="bold",
    )
    ax.set_xlabel(r"$-\log_{10}$(P-value)", fontsize=base_size, fontweight="bold")
    ax.set_title(title, fontsize=base_size + 4, fontweight="bold")
    ax.set_xlim(0, _axis_upper_limit(neg_log_p, scale=1.2, offset=0.3))
    ax.set_ylim(-1, n_rows)
    ax.tick_params(axis="x", labelsize=base_size - 2)
    if show_grid:
        ax.grid(axis="y", color="grey", alpha=0.2)
        ax.set_axisbelow(True)

    handles, labels = scatter.legend_elements(
        prop="sizes",
        num=min(4, max(1, n_rows)),
        func=_size_to_ratio,
        fmt="{x:.1f}",
        alpha=point_alpha,
    )
    ax.legend(
        handles,
        labels,
        title="Enrichment Ratio",
        loc="upper left",
        bbox_to_anchor=(1.02, 0.45),
        frameon=False,
        fontsize=base_size - 3,
        title_fontsize=base_size - 2,
    )

    _add_pvalue_colorbar(fig, ax, cmap, norm, color_limits, base_size)
    fig.tight_layout()

    return fig


def plot_pathway_network(
    graph: ig.Graph,
    layout: str = NETWORK_LAYOUTS.FR,
    point_size: float = 3,
    label_size: float = 8,
    edge_width: float = 0.5,
    vertex_color: str = "#8DA0CB",
    vertex_alpha: float = 0.7,
    edge_color: str = "#666666",
    edge_alpha: float = 0.5,
    title: str = "KEGG Pathway Network",
    subtitle: Optional[str] = None,
    show_legend: bool = True,
    seed: Optional[int] = None,
    ax: Optional[plt.Axes] = None,
) -> Figure:
    """
    Draw a pathway graph.

    Vertices are sized by the number of compounds in each pathway and edges
    are drawn with a width proportional to the number of shared compounds.

    Parameters
    ----------
    graph : ig.Graph
        A graph created by `enrichmeta.network.pathway_graph.create_pathway_graph`
    layout : str
        One of "circle", "fr" (Fruchterman-Reingold), "kk" (Kamada-Kawai) or
        "dh" (Davidson-Harel). Unknown layouts fall back to "fr".
    point_size : float
        Multiplier applied to the vertex size attribute
    label_size : float
        Font size of vertex labels
    edge_width : float
        Multiplier applied to edge weights
    vertex_color, edge_color : str
        Vertex and edge colours
    vertex_alpha, edge_alpha : float
        Vertex and edge transparency
    title : str
        Plot title
    subtitle : Optional[str]
        Text shown below the network (e.g., "Min shared: 2")
    show_legend : bool
        If True, add a legend explaining vertex and edge encodings
    seed : Optional[int]
        Random seed for stochastic layouts
    ax : Optional[plt.Axes]
        Axes to draw on. A new figure is created if None.

    Returns
    -------
    Figure

    Raises
    ------
    ValueError
        If the graph has no vertices.
    """

    if graph.vcount() == 0:
        raise ValueError("The pathway graph has no vertices to plot")
    if graph.ecount() == 0:
        logger.warning(
            "No shared compounds between pathways or all pairs are below the threshold; only vertices will be drawn"
        )

    coords = _layout_pathway_graph(graph, layout, seed)
    fig, ax = _get_fig_ax(ax, figsize=(10, 10))

    for edge in graph.es:
        (x1, y1), (x2, y2) = coords[edge.source], coords[edge.target]
        ax.plot(
            [x1, x2],
            [y1, y2],
            color=to_rgba(edge_color, edge_alpha),
            linewidth=edge[PATHWAY_GRAPH_DEFS.WEIGHT] * edge_width,
            zorder=1,
        )

    sizes = np.asarray(graph.vs[PATHWAY_GRAPH_DEFS.SIZE], dtype=float)
    ax.scatter(
        coords[:, 0],
        coords[:, 1],
        s=(sizes * point_size + 3) ** 2,
        color=to_rgba(vertex_color, vertex_alpha),
        edgecolors="none",
        zorder=2,
    )

    for (x, y), label in zip(coords, graph.vs[PATHWAY_GRAPH_DEFS.LABEL]):
        ax.text(x, y, label, fontsize=label_size, ha="center", va="center", zorder=3)

    ax.set_title(title, fontsize=14, fontweight="bold")
    if subtitle is not None:
        ax.text(
            0.5, -0.02, subtitle, transform=ax.transAxes, ha="center", va="top"
        )

    if show_legend:
        legend_handles = [
            Line2D(
                [0],
                [0],
                marker="o",
                color="none",
                markerfacecolor=to_rgba(vertex_color, vertex_alpha),
                markersize=10,
                label="Node: Pathway compounds",
            ),
            Line2D(
                [0],
                [0],
                color=to_rgba(edge_color, edge_alpha),
                linewidth=2,
                label="Edge: Shared compounds",
            ),
        ]
        ax.legend(handles=legend_handles, loc="lower right", frameon=False, fontsize=8)

    ax.set_axis_off()
    ax.margins(0.1)
    fig.tight_layout()

    return fig


def _add_pvalue_colorbar(fig, ax, cmap, norm, color_limits, base_size):
    sm = ScalarMappable(norm=norm, cmap=cmap)
    sm.set_array([])
    cbar = fig.colorbar(
        sm, ax=ax, ticks=np.linspace(color_limits[0], color_limits[1], 5), shrink=0.5
    )
    cbar.ax.set_yticklabels(
        [f"{x:.2f}" for x in np.linspace(color_limits[0], color_limits[1], 5)]
    )
    cbar.set_label("P-value", fontsize=base_size - 2, fontweight="bold")
    return cbar


def _axis_upper_limit(
    values: np.ndarray, scale: float, offset: float = 0.0, default: float = 1.0
) -> float:
    """Upper axis limit from the largest finite value, or default if there are none."""
    finite = np.asarray(values, dtype=float)
    finite = finite[np.isfinite(finite)]
    if finite.size == 0:
        return default
    return float(finite.max()) * scale + offset


def _get_fig_ax(ax: Optional[plt.Axes], figsize: Tuple[float, float]):
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure
    return fig, ax


def _layout_pathway_graph(
    graph: ig.Graph, layout: str, seed: Optional[int] = None
) -> np.ndarray:
    """Compute vertex coordinates with one of igraph's layout algorithms."""

    if layout not in VALID_NETWORK_LAYOUTS:
        logger.warning(
            f"Unknown layout {layout!r}; valid layouts are {VALID_NETWORK_LAYOUTS}. Using {NETWORK_LAYOUTS.FR!r}"
        )
        layout = NETWORK_LAYOUTS.FR

    if seed is not None:
        # igraph draws layout seeds from python's random module
        random.seed(seed)

    if graph.vcount() == 1:
        return np.zeros((1, 2))

    weights = PATHWAY_GRAPH_DEFS.WEIGHT if graph.ecount() > 0 else None
    if layout == NETWORK_LAYOUTS.CIRCLE:
        coords = graph.layout_circle()
    elif layout == NETWORK_LAYOUTS.KK:
        coords = graph.layout_kamada_kawai()
    elif layout == NETWORK_LAYOUTS.DH:
        coords = graph.layout_davidson_harel()
    else:
        coords = graph.layout_fruchterman_reingold(weights=weights)

    return np.asarray(coords.coords, dtype=float)


def _pvalue_cmap(low_color: str, high_color: str) -> LinearSegmentedColormap:
    return LinearSegmentedColormap.from_list("enrichmeta_pvalue", [low_color, high_color])


def _select_top_results(results: pd.DataFrame, top: int) -> pd.DataFrame:
    """Validate an enrichment table and keep the `top` rows with the smallest adjusted p-values."""

    if not isinstance(results, pd.DataFrame):
        raise TypeError(f"results must be a pd.DataFrame, got {type(results).__name__}")

    required = [
        ENRICHMENT_DEFS.DESCRIPTION,
        ENRICHMENT_DEFS.ENRICHMENT_RATIO,
        ENRICHMENT_DEFS.P_VALUE,
        ENRICHMENT_DEFS.P_ADJUST,
    ]
    missing = [c for c in required if c not in results.columns]
    if missing:
        raise ValueError(f"results is missing the required columns: {missing}")

    if results.shape[0] == 0:
        raise ValueError("No enrichment results to plot")

    if top < 1:
        raise ValueError(f"top must be a positive integer, got {top}")

    return results.sort_values(ENRICHMENT_DEFS.P_ADJUST, kind="mergesort").head(top)


def _wrap_labels(labels: pd.Series, width: int) -> list[str]:
    return [textwrap.fill(str(label), width=width) for label in labels]
