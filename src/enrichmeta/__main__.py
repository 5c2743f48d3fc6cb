# src/enrichmeta/__main__.py
"""
KEGG pathway enrichment CLI for enrichmeta.
"""

from contextlib import contextmanager
import logging
import sys

import click
import click_logging
import matplotlib.pyplot as plt
import pandas as pd

import enrichmeta
from enrichmeta.constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_P_ADJUST_METHOD,
    ENRICHMETA_ENV_VARS,
    NETWORK_LAYOUTS,
)
from enrichmeta.enrichment import keggenrich
from enrichmeta.exceptions import ConfigurationError
from enrichmeta.ingestion.kegg import get_kegg_data
from enrichmeta.lookups import (
    find_compound_names,
    find_compound_pathways,
    find_pathway_compounds,
    find_pathway_names,
)
from enrichmeta.network.pathway_graph import create_pathway_graph
from enrichmeta.network.shared_compounds import find_shared_compounds
from enrichmeta.plotting import (
    plot_enrichment_bar,
    plot_enrichment_dot,
    plot_pathway_network,
)

logger = logging.getLogger(enrichmeta.__name__)
click_logging.basic_config(logger)

species_option = click.option(
    "--species",
    type=str,
    default="hsa",
    show_default=True,
    help="KEGG organism code (e.g., hsa, mmu, dre)",
)
cache_dir_option = click.option(
    "--cache-dir",
    type=str,
    envvar=ENRICHMETA_ENV_VARS.CACHE_DIR,
    default=DEFAULT_CACHE_DIR,
    show_default=True,
    help=f"Directory holding cached KEGG data (env: {ENRICHMETA_ENV_VARS.CACHE_DIR})",
)
output_option = click.option(
    "--output",
    "-o",
    type=str,
    default=None,
    help="Write the table as TSV to this path instead of printing it",
)


@click.group()
@click.version_option(version=enrichmeta.__version__)
def cli():
    """The enrichmeta KEGG pathway enrichment CLI"""
    pass


@click.command()
@species_option
@cache_dir_option
@click.option("--overwrite", is_flag=True, help="Fetch from KEGG even if cached data exists")
@click.option(
    "--cache-incomplete",
    is_flag=True,
    help="Cache the pathways even if some of them could not be retrieved",
)
@click_logging.simple_verbosity_option(logger)
def fetch(species, cache_dir, overwrite, cache_incomplete):
    """Download and cache the KEGG pathways of a species."""
    catalog = _load_catalog(
        species, cache_dir, overwrite=overwrite, cache_incomplete=cache_incomplete
    )
    click.echo(
        f"{species}: {len(catalog)} pathways and {len(catalog.background)} compounds available in {cache_dir}"
    )


@click.command()
@click.argument("compound_ids", nargs=-1)
@click.option(
    "--ids",
    "ids_file",
    type=click.File("r"),
    default=None,
    help="File with one KEGG compound ID per line ('-' reads stdin)",
)
@species_option
@cache_dir_option
@click.option(
    "--adjust-method",
    type=str,
    default=DEFAULT_P_ADJUST_METHOD,
    show_default=True,
    help="Multiple testing correction (bonferroni, holm, hochberg, hommel, BH, fdr, BY, none)",
)
@output_option
@click.option("--bar-plot", type=str, default=None, help="Save a bar chart to this path")
@click.option("--dot-plot", type=str, default=None, help="Save a dot chart to this path")
@click.option("--top", type=int, default=25, show_default=True, help="Pathways shown in plots")
@click_logging.simple_verbosity_option(logger)
def enrich(
    compound_ids,
    ids_file,
    species,
    cache_dir,
    adjust_method,
    output,
    bar_plot,
    dot_plot,
    top,
):
    """Test KEGG pathways for over-representation of COMPOUND_IDS."""
    query = _read_compound_ids(compound_ids, ids_file)
    catalog = _load_catalog(species, cache_dir)

    with _configuration_errors_as_click():
        results = keggenrich(query, catalog, adjust_method=adjust_method)

    if results.shape[0] == 0:
        click.echo("No significant enrichment found.")
        return None

    _write_table(results, output)

    if bar_plot is not None:
        _save_figure(plot_enrichment_bar(results, top=top), bar_plot)
    if dot_plot is not None:
        _save_figure(plot_enrichment_dot(results, top=top), dot_plot)


@click.command()
@click.option(
    "--pathway",
    "pathway_ids",
    type=str,
    multiple=True,
    help="Pathway to compare (repeatable). All pathways are compared if omitted.",
)
@species_option
@cache_dir_option
@click.option("--min-shared", type=int, default=1, show_default=True)
@output_option
@click.option("--network-plot", type=str, default=None, help="Save a network plot to this path")
@click.option(
    "--layout",
    type=click.Choice(list(NETWORK_LAYOUTS.__dict__.values())),
    default=NETWORK_LAYOUTS.FR,
    show_default=True,
)
@click_logging.simple_verbosity_option(logger)
def shared(pathway_ids, species, cache_dir, min_shared, output, network_plot, layout):
    """Find compounds shared between pairs of pathways."""
    catalog = _load_catalog(species, cache_dir)
    pathway_ids = list(pathway_ids) if len(pathway_ids) > 0 else None

    with _configuration_errors_as_click():
        shared_compounds = find_shared_compounds(
            catalog, pathway_ids, min_shared=min_shared
        )

    if shared_compounds.shape[0] == 0:
        click.echo(f"No pathway pairs share at least {min_shared} compound(s).")
    else:
        _write_table(shared_compounds, output)

    if network_plot is not None:
        graph = create_pathway_graph(
            catalog, pathway_ids, min_shared=min_shared, shared_compounds=shared_compounds
        )
        if graph.vcount() == 0:
            click.echo("No valid pathways to plot.")
            return None
        fig = plot_pathway_network(
            graph, layout=layout, subtitle=f"Min shared: {min_shared}"
        )
        _save_figure(fig, network_plot)


@click.group()
def names():
    """Look up pathway and compound names."""
    pass


@names.command(name="pathways")
@click.argument("pathway_ids", nargs=-1, required=True)
@species_option
@cache_dir_option
@output_option
@click_logging.simple_verbosity_option(logger)
def pathway_names(pathway_ids, species, cache_dir, output):
    """Names of PATHWAY_IDS."""
    catalog = _load_catalog(species, cache_dir)
    _write_table(find_pathway_names(list(pathway_ids), catalog), output)


@names.command(name="compounds")
@click.argument("compound_ids", nargs=-1, required=True)
@species_option
@cache_dir_option
@output_option
@click_logging.simple_verbosity_option(logger)
def compound_names(compound_ids, species, cache_dir, output):
    """Names of COMPOUND_IDS."""
    catalog = _load_catalog(species, cache_dir)
    _write_table(find_compound_names(list(compound_ids), catalog), output)


@names.command(name="pathway-compounds")
@click.argument("pathway_ids", nargs=-1, required=True)
@species_option
@cache_dir_option
@output_option
@click_logging.simple_verbosity_option(logger)
def pathway_compounds(pathway_ids, species, cache_dir, output):
    """Compounds in each of PATHWAY_IDS."""
    catalog = _load_catalog(species, cache_dir)
    results = find_pathway_compounds(list(pathway_ids), catalog)
    if results.shape[0] == 0:
        click.echo("None of the provided pathways were found in the pathway catalog.")
        return None
    _write_table(results, output)


@names.command(name="compound-pathways")
@click.argument("compound_ids", nargs=-1, required=True)
@species_option
@cache_dir_option
@output_option
@click_logging.simple_verbosity_option(logger)
def compound_pathways(compound_ids, species, cache_dir, output):
    """Pathways containing each of COMPOUND_IDS."""
    catalog = _load_catalog(species, cache_dir)
    results = find_compound_pathways(list(compound_ids), catalog)
    if results.shape[0] == 0:
        click.echo("None of the provided compounds were found in any pathways.")
        return None
    _write_table(results, output)


@contextmanager
def _configuration_errors_as_click():
    try:
        yield
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


def _load_catalog(species, cache_dir, overwrite=False, cache_incomplete=False):
    """Load cached KEGG data, fetching it with a progress bar if needed."""
    bars = []

    def _progress(n_done, n_total):
        if len(bars) == 0:
            bars.append(
                click.progressbar(
                    length=n_total, label="Fetching KEGG pathways", file=sys.stderr
                )
            )
        bars[0].update(1)

    try:
        with _configuration_errors_as_click():
            return get_kegg_data(
                species,
                cache_dir,
                overwrite=overwrite,
                progress_callback=_progress,
                cache_incomplete=cache_incomplete,
            )
    finally:
        for bar in bars:
            bar.render_finish()


def _read_compound_ids(compound_ids, ids_file):
    """Combine IDs passed as arguments with IDs read from a file, skipping blanks and # comments."""
    query = list(compound_ids)
    if ids_file is not None:
        for line in ids_file:
            line = line.strip()
            if line and not line.startswith("#"):
                query.append(line)

    if len(query) == 0:
        raise click.UsageError("No compound IDs provided; pass them as arguments or with --ids")

    return query


def _save_figure(fig, path):
    fig.savefig(path, dpi=300, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved plot to {path}")


def _write_table(df: pd.DataFrame, output):
    if output is None:
        click.echo(df.to_string(index=False))
    else:
        df.to_csv(output, sep="\t", index=False)
        logger.info(f"Wrote {df.shape[0]} rows to {output}")


# Add commands to the CLI
cli.add_command(fetch)
cli.add_command(enrich)
cli.add_command(shared)
cli.add_command(names)


if __name__ == "__main__":
    cli()
