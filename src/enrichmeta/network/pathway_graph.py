"""
Pathway similarity networks.

Pathways become vertices and pairs of pathways sharing compounds become
weighted, undirected edges. Layout and rendering live in `enrichmeta.plotting`.

Public Functions
----------------
create_pathway_graph(catalog, pathway_ids=None, min_shared=1, shared_compounds=None) -> ig.Graph:
    Create a weighted, undirected pathway graph.
pathway_graph_to_edgelist(graph) -> pd.DataFrame:
    Tabulate the edges of a pathway graph.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Union

import igraph as ig
import numpy as np
import pandas as pd

from enrichmeta.catalog import PathwayCatalog
from enrichmeta.constants import PATHWAY_GRAPH_DEFS, SHARED_COMPOUNDS_DEFS
from enrichmeta.network.shared_compounds import (
    _resolve_pathway_ids,
    _validate_min_shared,
    find_shared_compounds,
)

logger = logging.getLogger(__name__)


def create_pathway_graph(
    catalog: Union[PathwayCatalog, Mapping[str, Any]],
    pathway_ids: Optional[Iterable[str]] = None,
    min_shared: int = 1,
    shared_compounds: Optional[pd.DataFrame] = None,
) -> ig.Graph:
    """
    Create a weighted, undirected pathway graph.

    Every valid pathway becomes a vertex, including pathways without any
    qualifying edge, so isolated pathways remain visible.

    Parameters
    ----------
    catalog : Union[PathwayCatalog, Mapping[str, Any]]
        The pathway catalog, or a pathway_data dict accepted by `PathwayCatalog.from_dict`.
    pathway_ids : Optional[Iterable[str]]
        Pathways to include. If None, all catalog pathways are used.
    min_shared : int
        Minimum number of shared compounds for an edge.
    shared_compounds : Optional[pd.DataFrame]
        A table produced by `find_shared_compounds`. If None it is computed.
        Rows below min_shared or referencing pathways outside of pathway_ids
        are dropped.

    Returns
    -------
    ig.Graph
        Undirected graph with vertex attributes:
        - name: pathway ID
        - label: pathway name
        - n_compounds: number of compounds in the pathway
        - size: sqrt(n_compounds)
        and edge attributes:
        - weight: number of shared compounds
        - kegg_ids: shared compound IDs

    Examples
    --------
    >>> graph = create_pathway_graph(catalog, ["hsa00010", "hsa00020"], min_shared=2)
    >>> graph.vs["label"]
    ['Glycolysis / Gluconeogenesis', 'Citrate cycle (TCA cycle)']
    """

    _validate_min_shared(min_shared)
    catalog = PathwayCatalog.ensure(catalog)
    valid_ids = _resolve_pathway_ids(catalog, pathway_ids)

    if shared_compounds is None:
        shared_compounds = find_shared_compounds(catalog, valid_ids, min_shared)
    else:
        shared_compounds = _filter_shared_compounds(
            shared_compounds, valid_ids, min_shared
        )

    vertex_index = {pid: i for i, pid in enumerate(valid_ids)}
    n_compounds = [len(catalog.pathway_compounds[pid]) for pid in valid_ids]

    edges = [
        (vertex_index[f], vertex_index[t])
        for f, t in zip(
            shared_compounds[SHARED_COMPOUNDS_DEFS.FROM],
            shared_compounds[SHARED_COMPOUNDS_DEFS.TO],
        )
    ]

    graph = ig.Graph(
        n=len(valid_ids),
        edges=edges,
        directed=False,
        vertex_attrs={
            PATHWAY_GRAPH_DEFS.NAME: list(valid_ids),
            PATHWAY_GRAPH_DEFS.LABEL: [catalog.get_name(pid) for pid in valid_ids],
            PATHWAY_GRAPH_DEFS.N_COMPOUNDS: n_compounds,
            PATHWAY_GRAPH_DEFS.SIZE: np.sqrt(n_compounds).tolist(),
        },
        edge_attrs={
            PATHWAY_GRAPH_DEFS.WEIGHT: shared_compounds[
                SHARED_COMPOUNDS_DEFS.SHARED_COUNT
            ].tolist(),
            PATHWAY_GRAPH_DEFS.KEGG_IDS: shared_compounds[
                SHARED_COMPOUNDS_DEFS.KEGG_IDS
            ].tolist(),
        },
    )

    n_isolated = sum(1 for d in graph.degree() if d == 0)
    logger.debug(
        f"Created a pathway graph with {graph.vcount()} vertices ({n_isolated} isolated) and {graph.ecount()} edges"
    )

    return graph


def pathway_graph_to_edgelist(graph: ig.Graph) -> pd.DataFrame:
    """
    Tabulate the edges of a pathway graph.

    Parameters
    ----------
    graph : ig.Graph
        A graph created by `create_pathway_graph`

    Returns
    -------
    pd.DataFrame
        Columns: from, to (pathway IDs) and weight (shared compounds)
    """

    names = graph.vs[PATHWAY_GRAPH_DEFS.NAME] if graph.vcount() > 0 else []
    rows = [
        {
            SHARED_COMPOUNDS_DEFS.FROM: names[e.source],
            SHARED_COMPOUNDS_DEFS.TO: names[e.target],
            PATHWAY_GRAPH_DEFS.WEIGHT: e[PATHWAY_GRAPH_DEFS.WEIGHT],
        }
        for e in graph.es
    ]

    return pd.DataFrame(
        rows,
        columns=[
            SHARED_COMPOUNDS_DEFS.FROM,
            SHARED_COMPOUNDS_DEFS.TO,
            PATHWAY_GRAPH_DEFS.WEIGHT,
        ],
    )


def _filter_shared_compounds(
    shared_compounds: pd.DataFrame, pathway_ids: list[str], min_shared: int
) -> pd.DataFrame:
    """Restrict a shared compounds table to the graph's pathways and threshold."""

    required = [
        SHARED_COMPOUNDS_DEFS.FROM,
        SHARED_COMPOUNDS_DEFS.TO,
        SHARED_COMPOUNDS_DEFS.SHARED_COUNT,
        SHARED_COMPOUNDS_DEFS.KEGG_IDS,
    ]
    missing = set(required) - set(shared_compounds.columns)
    if missing:
        raise ValueError(
            f"shared_compounds is missing the required columns: {sorted(missing)}"
        )

    valid = set(pathway_ids)
    in_graph = shared_compounds[SHARED_COMPOUNDS_DEFS.FROM].isin(
        valid
    ) & shared_compounds[SHARED_COMPOUNDS_DEFS.TO].isin(valid)
    if not in_graph.all():
        logger.warning(
            f"Dropping {(~in_graph).sum()} shared compound pair(s) involving pathways which are not in the graph"
        )

    above_threshold = shared_compounds[SHARED_COMPOUNDS_DEFS.SHARED_COUNT] >= min_shared

    return shared_compounds[in_graph & above_threshold]
