from __future__ import annotations

import logging
import sys

import fsspec
import matplotlib
import pytest
from pytest import fixture

from enrichmeta.catalog import PathwayCatalog

matplotlib.use("Agg")


@fixture
def two_pathway_catalog():
    """Two overlapping pathways sharing C2 and C3"""
    return PathwayCatalog(
        pathway_names={"P1": "Pathway 1", "P2": "Pathway 2"},
        pathway_compounds={"P1": ["C1", "C2", "C3"], "P2": ["C2", "C3", "C4"]},
    )


@fixture
def ten_compound_catalog():
    """A 10 compound background with one 4 compound pathway"""
    return PathwayCatalog(
        pathway_names={"P1": "Pathway 1", "P2": "Pathway 2"},
        pathway_compounds={
            "P1": ["C1", "C2", "C3", "C4"],
            "P2": ["C5", "C6", "C7", "C8", "C9", "C10"],
        },
    )


@fixture
def kegg_like_catalog():
    """A small catalog with KEGG-style IDs and compound names"""
    return PathwayCatalog(
        pathway_names={
            "hsa00010": "Glycolysis / Gluconeogenesis - Homo sapiens (human)",
            "hsa00020": "Citrate cycle (TCA cycle) - Homo sapiens (human)",
            "hsa00620": "Pyruvate metabolism - Homo sapiens (human)",
            "hsa00190": "Oxidative phosphorylation - Homo sapiens (human)",
        },
        pathway_compounds={
            "hsa00010": ["C00022", "C00024", "C00031", "C00036", "C00186"],
            "hsa00020": ["C00022", "C00024", "C00036", "C00158", "C00311"],
            "hsa00620": ["C00022", "C00024", "C00036", "C00186"],
            "hsa00190": ["C00008", "C00009"],
        },
        compound_names={
            "C00008": "ADP; Adenosine 5'-diphosphate",
            "C00009": "Orthophosphate; Phosphate",
            "C00022": "Pyruvate; Pyruvic acid",
            "C00024": "Acetyl-CoA; Acetyl coenzyme A",
            "C00031": "D-Glucose; Grape sugar",
            "C00036": "Oxaloacetate; Oxalacetic acid",
            "C00158": "Citrate; Citric acid",
            "C00186": "(S)-Lactate; L-Lactate",
            "C00311": "Isocitrate",
        },
    )


@fixture(autouse=True)
def propagate_enrichmeta_logs():
    """Let caplog see package logs after the CLI installs its own handler"""
    logger = logging.getLogger("enrichmeta")
    propagate = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = propagate


@fixture
def tmp_new_subdir(tmp_path):
    """An empty temporary directory"""
    return tmp_path / "test_dir"


@fixture
def mock_bucket_uri(tmp_path):
    """A directory on fsspec's in-memory filesystem"""
    fs = fsspec.filesystem("memory")
    bucket_name = f"testbucket-{tmp_path.name}"
    fs.mkdir(bucket_name)
    yield f"memory://{bucket_name}"
    fs.rm(bucket_name, recursive=True)


@fixture
def mock_bucket_subdir_uri(mock_bucket_uri):
    return f"{mock_bucket_uri}/testdir"


def pytest_collection_modifyitems(config, items):
    if sys.platform != "win32":
        return None

    skip_windows = pytest.mark.skip(reason="not supported on Windows")
    for item in items:
        if "unix_only" in item.keywords or "skip_on_windows" in item.keywords:
            item.add_marker(skip_windows)
