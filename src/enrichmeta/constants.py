"""Module to contain all constants used by enrichmeta."""

from __future__ import annotations

from types import SimpleNamespace

# pathway catalog

CATALOG_DEFS = SimpleNamespace(
    PATHWAY_NAMES="pathway_names",
    PATHWAY_COMPOUNDS="pathway_compounds",
    COMPOUND_NAMES="compound_names",
)

# loosely-typed pathway_data structures accepted by PathwayCatalog.from_dict
CATALOG_LEGACY_KEYS = {
    CATALOG_DEFS.PATHWAY_NAMES: ["pathway_names", "pathways"],
    CATALOG_DEFS.PATHWAY_COMPOUNDS: [
        "pathway_compounds",
        "pathway2compound",
        "pathscpds",
        "path_cpd_map",
    ],
    CATALOG_DEFS.COMPOUND_NAMES: ["compound_names", "compounds"],
}

KEGG_PREFIXES = SimpleNamespace(
    PATHWAY="path:",
    COMPOUND="cpd:",
)

NOT_FOUND = "Not found"

# enrichment results

ENRICHMENT_DEFS = SimpleNamespace(
    PATHWAY_ID="pathway_id",
    DESCRIPTION="description",
    META_RATIO="meta_ratio",
    BG_RATIO="bg_ratio",
    P_VALUE="p_value",
    P_ADJUST="p_adjust",
    ENRICHMENT_RATIO="enrichment_ratio",
    COUNT="count",
    PATHWAY_SIZE="pathway_size",
    KEGG_IDS="kegg_ids",
)

ENRICHMENT_DTYPES = {
    ENRICHMENT_DEFS.PATHWAY_ID: "object",
    ENRICHMENT_DEFS.DESCRIPTION: "object",
    ENRICHMENT_DEFS.META_RATIO: "object",
    ENRICHMENT_DEFS.BG_RATIO: "object",
    ENRICHMENT_DEFS.P_VALUE: "float64",
    ENRICHMENT_DEFS.P_ADJUST: "float64",
    ENRICHMENT_DEFS.ENRICHMENT_RATIO: "float64",
    ENRICHMENT_DEFS.COUNT: "int64",
    ENRICHMENT_DEFS.PATHWAY_SIZE: "int64",
    ENRICHMENT_DEFS.KEGG_IDS: "object",
}

ENRICHMENT_COLUMNS = list(ENRICHMENT_DTYPES.keys())

OVERLAP_SEP = "; "

# multiple testing

P_ADJUST_METHODS = SimpleNamespace(
    BONFERRONI="bonferroni",
    HOLM="holm",
    HOCHBERG="hochberg",
    HOMMEL="hommel",
    BH="BH",
    FDR="fdr",
    BY="BY",
    NONE="none",
)

DEFAULT_P_ADJUST_METHOD = P_ADJUST_METHODS.BH

# lower-cased method name -> statsmodels.stats.multitest method (None = no correction)
P_ADJUST_TO_STATSMODELS = {
    P_ADJUST_METHODS.BONFERRONI: "bonferroni",
    P_ADJUST_METHODS.HOLM: "holm",
    P_ADJUST_METHODS.HOCHBERG: "simes-hochberg",
    "simes-hochberg": "simes-hochberg",
    P_ADJUST_METHODS.HOMMEL: "hommel",
    P_ADJUST_METHODS.BH.lower(): "fdr_bh",
    P_ADJUST_METHODS.FDR: "fdr_bh",
    "fdr_bh": "fdr_bh",
    P_ADJUST_METHODS.BY.lower(): "fdr_by",
    "fdr_by": "fdr_by",
    P_ADJUST_METHODS.NONE: None,
}

VALID_P_ADJUST_METHODS = list(P_ADJUST_METHODS.__dict__.values())

# shared compounds / pathway networks

SHARED_COMPOUNDS_DEFS = SimpleNamespace(
    FROM="from",
    TO="to",
    SHARED_COUNT="shared_count",
    KEGG_IDS="kegg_ids",
)

SHARED_COMPOUNDS_DTYPES = {
    SHARED_COMPOUNDS_DEFS.FROM: "object",
    SHARED_COMPOUNDS_DEFS.TO: "object",
    SHARED_COMPOUNDS_DEFS.SHARED_COUNT: "int64",
    SHARED_COMPOUNDS_DEFS.KEGG_IDS: "object",
}

SHARED_COMPOUNDS_SEP = ";"

PATHWAY_GRAPH_DEFS = SimpleNamespace(
    NAME="name",
    LABEL="label",
    N_COMPOUNDS="n_compounds",
    SIZE="size",
    WEIGHT="weight",
    KEGG_IDS="kegg_ids",
)

NETWORK_LAYOUTS = SimpleNamespace(
    CIRCLE="circle",
    FR="fr",
    KK="kk",
    DH="dh",
)

VALID_NETWORK_LAYOUTS = list(NETWORK_LAYOUTS.__dict__.values())

# lookups

LOOKUP_DEFS = SimpleNamespace(
    PATHWAY_ID=ENRICHMENT_DEFS.PATHWAY_ID,
    DESCRIPTION=ENRICHMENT_DEFS.DESCRIPTION,
    KEGG_ID="kegg_id",
    NAME="name",
)

# KEGG REST

KEGG_REST_URL = "https://rest.kegg.jp"

KEGG_REST_OPERATIONS = SimpleNamespace(
    LIST="list",
    GET="get",
)

KEGG_FLAT_FILE_SECTIONS = SimpleNamespace(
    COMPOUND="COMPOUND",
    END="///",
)

# width of the section-name column in KEGG flat files
KEGG_FLAT_FILE_KEY_WIDTH = 12

# seconds between KEGG REST calls (KEGG allows roughly three per second)
KEGG_REQUEST_DELAY = 0.35

KEGG_GENERIC_ORGANISMS = ["map", "ko", "ec", "rn"]

KEGG_CACHE_FILENAME_TEMPLATE = "kegg_pathways_{species}.json"

# CLI

ENRICHMETA_ENV_VARS = SimpleNamespace(
    CACHE_DIR="ENRICHMETA_CACHE_DIR",
)

DEFAULT_CACHE_DIR = "./kegg_cache"
