"""Command line interface for cres."""
import logging

import click
from eliot import to_file
from multiprocessing_logging import install_mp_handler

from cres import __version__

from cres.configuration import Configuration, ConfigurationError
from cres.io.jsonl import JSONLinesReader, JSONLinesWriter
from cres.io.reader import EventReadError
from cres.partition import PartitionDescriptor, PartitionError
from cres.resampling.seeds import SeedStrategy
from cres.resampling.search import SEARCH_TYPES
from cres.resampling.resamplers.resampler import ResamplerError
from cres.resampling.distances.distance import NonFiniteDistanceError
from cres.reporter.summary import SummaryReporter
from cres.reporter.cells import CellCollector
from cres.work_mapper.mapper import TaskException

CLI_ERRORS = (ConfigurationError,
              EventReadError,
              PartitionError,
              ResamplerError,
              NonFiniteDistanceError,
              TaskException,
              OSError,)
"""Errors that are reported to the user instead of raised."""

SEED_STRATEGY_CHOICES = [strategy.value for strategy in SeedStrategy] + ['any']

def set_loglevel(loglevel):
    """Set the level of the root logger.

    \b
    Parameters
    ----------
    loglevel : str or int
        Name of a logging level or its number.

    """

    # try to cast the loglevel as an integer. If that fails interpret
    # it as a string.
    try:
        loglevel_num = int(loglevel)
    except ValueError:
        loglevel_num = getattr(logging, loglevel.upper(), None)

    # if no such log level exists in logging the string was invalid
    if not isinstance(loglevel_num, int):
        raise click.BadParameter("invalid log level given: {}".format(loglevel))

    logging.basicConfig(level=loglevel_num)
    logging.getLogger().setLevel(loglevel_num)

def read_events(path):

    with JSONLinesReader(path) as reader:
        events = reader.read()

    logging.info("Read {} events from {}".format(len(events), path))

    return events

def write_events(path, events):

    with JSONLinesWriter(path) as writer:
        writer.write_all(events)

    logging.info("Wrote {} events to {}".format(len(events), path))

@click.group()
@click.option('--log', default="WARNING",
              help="Log level, name or number.")
@click.option('--eliot-log', default=None, type=click.Path(dir_okay=False, writable=True),
              help="File to write structured eliot action logs to.")
@click.version_option(version=__version__)
def cli(log, eliot_log):
    """Cell resampling of weighted event samples.

    \b
    Events are read from and written to JSON lines files with one
    event per line, e.g.:

    \b
    {"weights": [-1.5], "particles": [[11, 50.0, 10.0, 20.0, 43.0]]}

    """

    set_loglevel(log)

    if eliot_log is not None:
        to_file(open(eliot_log, 'a'))

@cli.command()
@click.option('--ptweight', default=0., type=click.FLOAT, show_default=True,
              help="Scale of transverse momentum differences in the distance.")
@click.option('--max-cell-size', default=None, type=click.FLOAT,
              help="Maximum distance of cell members from the seed.")
@click.option('--num-partitions', default=1, type=click.INT, show_default=True,
              help="Number of partitions to learn, a power of two.")
@click.option('--partition', 'partition_path', default=None, type=click.Path(exists=True),
              help="Stored partition to use instead of learning one.")
@click.option('--seed-strategy', default=SeedStrategy.MOST_NEGATIVE.value,
              type=click.Choice(SEED_STRATEGY_CHOICES), show_default=True)
@click.option('--minweight', default=None, type=click.FLOAT,
              help="Unweight events with smaller absolute weights.")
@click.option('--rng-seed', default=None, type=click.INT)
@click.option('--multiweight/--no-multiweight', default=False, show_default=True,
              help="Resample all weights and not only the primary one.")
@click.option('--num-workers', default=None, type=click.INT,
              help="Number of worker processes for the partitions.")
@click.option('--search', default='tree', type=click.Choice(list(SEARCH_TYPES.keys())),
              show_default=True)
@click.option('--discard-weightless', is_flag=True, default=False,
              help="Drop events with zero weight from the output.")
@click.option('--summary', 'summary_path', default=None, type=click.Path(dir_okay=False),
              help="File to write a text summary of the run to.")
@click.option('--dump-cells', 'cells_path', default=None, type=click.Path(dir_okay=False),
              help="File to write a selection of cells to, as JSON.")
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_path', type=click.Path(dir_okay=False))
def resample(ptweight, max_cell_size, num_partitions, partition_path, seed_strategy,
             minweight, rng_seed, multiweight, num_workers, search, discard_weightless,
             summary_path, cells_path,
             input_path, output_path):
    """Resample the events in INPUT_PATH and write them to OUTPUT_PATH."""

    try:
        config = Configuration(ptweight=ptweight,
                               max_cell_size=max_cell_size,
                               num_partitions=num_partitions,
                               seed_strategy=seed_strategy,
                               minweight=minweight,
                               rng_seed=rng_seed,
                               multiweight=multiweight,
                               num_workers=num_workers,
                               search=search,
                               discard_weightless=discard_weightless,
                               partition_path=partition_path)

        if config.parallel:
            install_mp_handler()

        events = read_events(input_path)

        reporters = [SummaryReporter(file_path=summary_path, mode='w')]
        if cells_path is not None:
            reporters.append(CellCollector(rng_seed=rng_seed, file_path=cells_path))

        manager = config.make_manager(events=events, reporters=reporters)

        events, summary = manager.run(events)

        write_events(output_path, events)

    except CLI_ERRORS as err:
        raise click.ClickException("{}: {}".format(type(err).__name__, err))

    click.echo("negative weight fraction: {:.6f} -> {:.6f}".format(
        summary['initial_negative_fraction'], summary['final_negative_fraction']))
    click.echo("cells: {} (negative: {}, capped: {})".format(
        summary['n_cells'], summary['n_negative_cells'], summary['n_capped_cells']))
    click.echo("events in capped cells: {}".format(summary['n_capped_events']))

@cli.command('make-partition')
@click.option('--num-partitions', default=2, type=click.INT, show_default=True,
              help="Number of partitions, a power of two.")
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_path', type=click.Path(dir_okay=False))
def make_partition(num_partitions, input_path, output_path):
    """Learn a partition from the events in INPUT_PATH and store it in
    OUTPUT_PATH."""

    try:
        events = read_events(input_path)

        descriptor = PartitionDescriptor.learn(events, num_partitions)

        descriptor.dump(output_path)

    except CLI_ERRORS as err:
        raise click.ClickException("{}: {}".format(type(err).__name__, err))

    click.echo("Wrote partition with {} parts to {}".format(
        descriptor.num_partitions, output_path))

@cli.command()
@click.argument('partition_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
def classify(partition_path, input_path):
    """Print the partition index of every event in INPUT_PATH according
    to the partition stored in PARTITION_PATH.

    One line with the event index and the partition index is printed
    for each event.

    """

    try:
        descriptor = PartitionDescriptor.load(partition_path)

        with JSONLinesReader(input_path) as reader:
            for event in reader:
                click.echo("{} {}".format(event.id, descriptor.classify(event)))

    except CLI_ERRORS as err:
        raise click.ClickException("{}: {}".format(type(err).__name__, err))

@cli.command()
@click.option('--minweight', required=True, type=click.FLOAT,
              help="Unweight events with smaller absolute weights.")
@click.option('--rng-seed', default=None, type=click.INT)
@click.option('--discard-weightless', is_flag=True, default=False,
              help="Drop events with zero weight from the output.")
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_path', type=click.Path(dir_okay=False))
def unweight(minweight, rng_seed, discard_weightless, input_path, output_path):
    """Unweight the events in INPUT_PATH without resampling and write
    them to OUTPUT_PATH."""

    try:
        config = Configuration(minweight=minweight,
                               rng_seed=rng_seed,
                               discard_weightless=discard_weightless)

        events = read_events(input_path)

        events = config.make_unweighter().unweight(events)

        if config.discard_weightless:
            events = [event for event in events if event.weight != 0.]

        write_events(output_path, events)

    except CLI_ERRORS as err:
        raise click.ClickException("{}: {}".format(type(err).__name__, err))

    click.echo("Wrote {} events".format(len(events)))

if __name__ == "__main__":

    cli()
