from __future__ import annotations

import json
from unittest.mock import patch

import pandas as pd
import pytest
from click.testing import CliRunner

from enrichmeta.__main__ import cli
from enrichmeta.constants import ENRICHMENT_COLUMNS, ENRICHMETA_ENV_VARS

QUERY = ["C00022", "C00024", "C00036", "C00158"]


@pytest.fixture
def cache_dir(tmp_path, kegg_like_catalog):
    """A KEGG cache directory holding the hsa catalog"""
    cache_dir = tmp_path / "kegg_cache"
    cache_dir.mkdir()
    with open(cache_dir / "kegg_pathways_hsa.json", "w") as f:
        json.dump(kegg_like_catalog.to_dict(), f)
    return cache_dir


@pytest.fixture
def runner():
    return CliRunner()


def test_enrich_prints_table(runner, cache_dir):
    result = runner.invoke(cli, ["enrich", *QUERY, "--cache-dir", str(cache_dir)])

    assert result.exit_code == 0, result.output
    assert "hsa00020" in result.output
    assert "enrichment_ratio" in result.output


def test_enrich_from_file_with_outputs(runner, cache_dir, tmp_path):
    ids_file = tmp_path / "ids.txt"
    ids_file.write_text("# compounds of interest\n" + "\n".join(QUERY) + "\n\n")
    output = tmp_path / "results.tsv"
    bar_plot = tmp_path / "bar.png"
    dot_plot = tmp_path / "dot.png"

    result = runner.invoke(
        cli,
        [
            "enrich",
            "--ids",
            str(ids_file),
            "--cache-dir",
            str(cache_dir),
            "--adjust-method",
            "bonferroni",
            "--output",
            str(output),
            "--bar-plot",
            str(bar_plot),
            "--dot-plot",
            str(dot_plot),
        ],
    )

    assert result.exit_code == 0, result.output
    results = pd.read_csv(output, sep="\t")
    assert list(results.columns) == ENRICHMENT_COLUMNS
    assert results["meta_ratio"].iloc[0] == "4/4"
    assert bar_plot.exists()
    assert dot_plot.exists()


def test_enrich_without_ids(runner, cache_dir):
    result = runner.invoke(cli, ["enrich", "--cache-dir", str(cache_dir)])
    assert result.exit_code == 2
    assert "No compound IDs provided" in result.output


def test_enrich_unsupported_method(runner, cache_dir):
    result = runner.invoke(
        cli,
        ["enrich", *QUERY, "--cache-dir", str(cache_dir), "--adjust-method", "bogus"],
    )
    assert result.exit_code == 1
    assert "bogus" in result.output


def test_enrich_no_overlap(runner, cache_dir):
    result = runner.invoke(cli, ["enrich", "C99999", "--cache-dir", str(cache_dir)])
    assert result.exit_code == 0
    assert "No significant enrichment found." in result.output


def test_enrich_cache_dir_from_env(runner, cache_dir):
    result = runner.invoke(
        cli, ["enrich", *QUERY], env={ENRICHMETA_ENV_VARS.CACHE_DIR: str(cache_dir)}
    )
    assert result.exit_code == 0, result.output
    assert "hsa00020" in result.output


def test_shared_with_network_plot(runner, cache_dir, tmp_path):
    network_plot = tmp_path / "network.png"
    result = runner.invoke(
        cli,
        [
            "shared",
            "--pathway",
            "hsa00010",
            "--pathway",
            "hsa00620",
            "--pathway",
            "hsa00190",
            "--min-shared",
            "2",
            "--cache-dir",
            str(cache_dir),
            "--network-plot",
            str(network_plot),
            "--layout",
            "circle",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "C00022;C00024;C00036;C00186" in result.output
    assert network_plot.exists()


def test_shared_all_pathways_to_file(runner, cache_dir, tmp_path):
    output = tmp_path / "shared.tsv"
    result = runner.invoke(
        cli, ["shared", "--cache-dir", str(cache_dir), "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    shared = pd.read_csv(output, sep="\t")
    assert shared.shape[0] == 3
    assert list(shared.columns) == ["from", "to", "shared_count", "kegg_ids"]


def test_shared_invalid_min_shared(runner, cache_dir):
    result = runner.invoke(
        cli, ["shared", "--min-shared", "0", "--cache-dir", str(cache_dir)]
    )
    assert result.exit_code == 1
    assert "min_shared" in result.output


def test_names_commands(runner, cache_dir):
    result = runner.invoke(
        cli, ["names", "pathways", "hsa00620", "hsa99999", "--cache-dir", str(cache_dir)]
    )
    assert result.exit_code == 0, result.output
    assert "Pyruvate metabolism" in result.output
    assert "Not found" in result.output

    result = runner.invoke(
        cli, ["names", "compounds", "C00158", "--cache-dir", str(cache_dir)]
    )
    assert result.exit_code == 0, result.output
    assert "Citrate; Citric acid" in result.output

    result = runner.invoke(
        cli, ["names", "compound-pathways", "C00031", "--cache-dir", str(cache_dir)]
    )
    assert result.exit_code == 0, result.output
    assert "hsa00010" in result.output

    result = runner.invoke(
        cli, ["names", "compound-pathways", "C99999", "--cache-dir", str(cache_dir)]
    )
    assert result.exit_code == 0
    assert "None of the provided compounds" in result.output


def test_names_pathway_compounds(runner, cache_dir):
    result = runner.invoke(
        cli, ["names", "pathway-compounds", "hsa00190", "--cache-dir", str(cache_dir)]
    )
    assert result.exit_code == 0, result.output
    assert "C00008" in result.output
    assert "C00009" in result.output
    assert "C00022" not in result.output

    output = cache_dir.parent / "members.tsv"
    result = runner.invoke(
        cli,
        [
            "names",
            "pathway-compounds",
            "hsa00620",
            "hsa00190",
            "--cache-dir",
            str(cache_dir),
            "--output",
            str(output),
        ],
    )
    assert result.exit_code == 0, result.output
    members = pd.read_csv(output, sep="\t")
    assert list(members.columns) == ["pathway_id", "kegg_id"]
    assert members.shape[0] == 6
    assert members["pathway_id"].tolist()[:4] == ["hsa00620"] * 4

    result = runner.invoke(
        cli, ["names", "pathway-compounds", "hsa99999", "--cache-dir", str(cache_dir)]
    )
    assert result.exit_code == 0
    assert "None of the provided pathways" in result.output


def test_fetch_uses_cache(runner, cache_dir):
    result = runner.invoke(cli, ["fetch", "--cache-dir", str(cache_dir)])
    assert result.exit_code == 0, result.output
    assert "hsa: 4 pathways and 9 compounds" in result.output


def test_fetch_reports_progress(runner, tmp_path, kegg_like_catalog):
    def _fake_get_kegg_data(
        species, cache_dir, overwrite=False, progress_callback=None, cache_incomplete=False
    ):
        for i in range(1, 5):
            progress_callback(i, 4)
        return kegg_like_catalog

    with patch(
        "enrichmeta.__main__.get_kegg_data", side_effect=_fake_get_kegg_data
    ) as mock_get:
        result = runner.invoke(
            cli,
            [
                "fetch",
                "--species",
                "mmu",
                "--cache-dir",
                str(tmp_path),
                "--overwrite",
                "--cache-incomplete",
            ],
        )

    assert result.exit_code == 0, result.output
    assert mock_get.call_args.kwargs["overwrite"] is True
    assert mock_get.call_args.kwargs["cache_incomplete"] is True
    assert "mmu: 4 pathways" in result.output


def test_fetch_invalid_species(runner, tmp_path):
    result = runner.invoke(
        cli, ["fetch", "--species", "Homo sapiens", "--cache-dir", str(tmp_path)]
    )
    assert result.exit_code == 1
    assert "species" in result.output
