"""
enrichmeta: KEGG pathway enrichment analysis for metabolomics.
"""

from enrichmeta.catalog import PathwayCatalog
from enrichmeta.enrichment import enrich, keggenrich
from enrichmeta.exceptions import ConfigurationError
from enrichmeta.ingestion.kegg import get_kegg_data
from enrichmeta.network.pathway_graph import create_pathway_graph
from enrichmeta.network.shared_compounds import find_shared_compounds

__version__ = "0.3.0"

__all__ = [
    "ConfigurationError",
    "PathwayCatalog",
    "create_pathway_graph",
    "enrich",
    "find_shared_compounds",
    "get_kegg_data",
    "keggenrich",
]
