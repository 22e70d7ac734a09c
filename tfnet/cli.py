"""
Command-line interface for building and perturbing tfnet networks
"""

import click
import logging
import sys
from pathlib import Path

from .builder import build_network
from .config import BuilderConfig
from .export import EXPORT_FORMATS, NetworkExporter, summarize
from .network import NetworkFormatError, format_network, read_network
from .perturb import PerturbationError, describe_operators, get_operator, make_rng

# Setup logging; standard output carries the network text
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr
)
logger = logging.getLogger(__name__)

_DIRECTORY = click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path)
_FILE = click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path)


def _load_network(path: Path):
    try:
        return read_network(path)
    except NetworkFormatError as e:
        click.echo(f"Invalid network file {path}: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose):
    """Transcription factor network builder and perturber"""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
@click.option('--basetram', required=True, type=_DIRECTORY,
              help='Location of BaSeTraM output directory')
@click.option('--genbank', required=True, type=_DIRECTORY,
              help='Directory containing GenBank files')
@click.option('--hgnc', required=True, type=_FILE,
              help='File containing the HGNC names database')
@click.option('--matrices', required=True, type=_FILE,
              help='File containing the TRANSFAC matrices database')
@click.option('--upstream-zone', default=200, show_default=True, type=click.IntRange(min=0),
              help='Bases upstream of a gene searched for binding sites')
@click.option('--downstream-zone', default=50, show_default=True, type=click.IntRange(min=0),
              help='Bases downstream of a gene start searched for binding sites')
@click.option('--min-probability', default=0.0, show_default=True,
              type=click.FloatRange(0.0, 1.0), help='Discard binding sites below this probability')
@click.option('--min-regulation', default=1, show_default=True, type=click.IntRange(min=1),
              help='Minimum number of regulations for a regulated vertex to be kept')
@click.option('--max-regulated', default=None, type=click.IntRange(min=1),
              help='Maximum number of distinct regulated vertices')
@click.option('--suffix', default='.gbk', show_default=True,
              help='Extension of the annotation files to process')
def build(basetram, genbank, hgnc, matrices, upstream_zone, downstream_zone,
          min_probability, min_regulation, max_regulated, suffix):
    """Build a network from annotations and binding site predictions"""
    config = BuilderConfig.default()
    config.upstream_zone = upstream_zone
    config.downstream_zone = downstream_zone
    config.min_probability = min_probability
    config.min_regulation = min_regulation
    config.max_regulated = max_regulated
    config.annotation_suffix = suffix

    network = build_network(genbank, basetram, hgnc, matrices, config)
    for line in format_network(network):
        click.echo(line)


@cli.command()
@click.option('--model', type=_FILE, default=None, help='TF net model to perturb')
@click.option('--operator', required=True, help="Perturbation operator, or 'help' to list them")
@click.option('--parameters', default='', help='Operator parameters')
@click.option('--seed', type=int, default=None, help='Random seed (default: current time)')
def perturb(model, operator, parameters, seed):
    """Write a randomly perturbed copy of a network to standard output"""
    if operator == 'help':
        click.echo("Available operators:")
        for line in describe_operators():
            click.echo(f"  {line}")
        return

    if model is None:
        raise click.UsageError("Missing option '--model'")

    try:
        op = get_operator(operator)
        parameter = op.parse_parameters(parameters)
    except PerturbationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    network = _load_network(model)
    logger.info(f"Applying {op.name} ({parameter:g}) to {model}")
    for line in op.perturb(network, parameter, make_rng(seed)):
        click.echo(line)


@cli.command()
@click.argument('model', type=_FILE)
@click.option('--format', 'formats', multiple=True, type=click.Choice(EXPORT_FORMATS),
              help='Export format (repeatable, default: all)')
@click.option('--output', '-o', default='outputs', type=click.Path(file_okay=False, path_type=Path),
              help='Output directory')
@click.option('--prefix', default=None, help='Output file name prefix (default: model file stem)')
def export(model, formats, output, prefix):
    """Export a network as JSON, GraphML or CSV"""
    network = _load_network(model)
    exporter = NetworkExporter(output)
    files = exporter.export_network(network, list(formats or EXPORT_FORMATS),
                                    filename_prefix=prefix or model.stem)
    for kind, path in files.items():
        click.echo(f"{kind}: {path}")


@cli.command()
@click.argument('model', type=_FILE)
@click.option('--top', default=10, show_default=True, help='Number of top regulators to list')
def summary(model, top):
    """Show network size and degree statistics"""
    stats = summarize(_load_network(model), top=top)

    click.echo("=== Network Summary ===")
    click.echo(f"Vertices: {stats['num_vertices']:,}")
    click.echo(f"  - Regulators: {stats['num_regulators']:,}")
    click.echo(f"  - Regulated: {stats['num_regulated']:,}")
    click.echo(f"  - Isolated: {stats['num_isolated']:,}")
    click.echo(f"Edges: {stats['num_edges']:,}")
    click.echo(f"Self-loops: {stats['self_loops']:,}")

    if stats['top_regulators']:
        click.echo("\nTop regulators:")
        for hgnc_id, name, degree in stats['top_regulators']:
            click.echo(f"  - {name or hgnc_id} ({hgnc_id}): {degree} targets")


if __name__ == '__main__':
    cli()
