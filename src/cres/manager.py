"""Module for the main run management class.

All component class interfaces are set by how the manager interacts
with them.

Managers implement a three phase protocol for running:

- init
- run_events
- cleanup

The separate `init` method is different than the constructor
`__init__` method and instead calls the special `init` method on the
components that need it (work mapper and reporters) at runtime.

This allows for things that need to be done at runtime before a run
begins, e.g. opening files or spawning processes, that you don't want
done at construction time.

The `cleanup` method should be called either when the run ends
normally as well as when it ends abnormally.

A run goes through the following steps:

1. the events are assigned to partitions by the partition descriptor
   (a single partition if there is none)
2. each partition is resampled independently, possibly in parallel,
   by mapping `resample_partition` with the work mapper
3. the new weights are written back into the events
4. the events are unweighted
5. events with zero weight are dropped if requested
6. the reporters receive the results

"""
import time
import logging

from eliot import start_action, log_call

from cres.work_mapper.mapper import Mapper
from cres.resampling.resamplers.resampler import NoResampler
from cres.unweighting import NoUnweighter
from cres.partition import split_events
from cres.util import primary_weights, weight_statistics, median

def resample_partition(resampler, events):
    """Resample the events of one partition.

    This is the function mapped over the partitions, it must be
    picklable so it lives at module level.

    Returns
    -------
    weights : list of numpy.ndarray
        The new weights of the events, in order.

    cell_records : list of dict

    summary : dict

    """

    events, cell_records, summary = resampler.resample(events)

    return [event.weights for event in events], cell_records, summary

class Manager(object):
    """The class that coordinates cres runs."""

    REPORT_ITEM_KEYS = ('events',
                        'cell_records',
                        'partition_summaries',
                        'summary',
                        'partition_sizes',
                        'task_times',
                        'resampling_time',
                        'unweighting_time',
    )
    """Keys of values that will be passed to reporters."""

    def __init__(self,
                 resampler=None,
                 unweighter=None,
                 partition=None,
                 work_mapper=None,
                 reporters=None,
                 discard_weightless=False,
    ):
        """Constructor for Manager.

        Arguments
        ---------

        resampler : object implementing the Resampler interface
            The resampler applied to each partition.

        unweighter : object implementing the Unweighter interface, optional
            Applied to all events after resampling.

        partition : PartitionDescriptor, optional
            Divides the events into independently resampled parts.

        work_mapper : object implementing the Mapper interface
            Maps the resampling over the partitions.

        reporters : list of objects implementing the Reporter interface, optional

        discard_weightless : bool
            Drop events with a primary weight of zero from the output.

        """

        if resampler is None:
            resampler = NoResampler()
        self.resampler = resampler

        if unweighter is None:
            unweighter = NoUnweighter()
        self.unweighter = unweighter

        self.partition = partition

        if work_mapper is None:
            self.work_mapper = Mapper()
        else:
            self.work_mapper = work_mapper

        if reporters is None:
            self.reporters = []
        else:
            self.reporters = reporters

        self.discard_weightless = discard_weightless

        self._last_report = None

    @property
    def last_report(self):
        """The values passed to the reporters in the last run."""
        return self._last_report

    @log_call(include_args=[],
              include_result=False)
    def init(self):
        """Perform initialization of the components at runtime."""

        logging.info("Starting run")

        self.work_mapper.init(func=resample_partition)

        for reporter in self.reporters:
            reporter.init(resampler=self.resampler,
                          unweighter=self.unweighter,
                          work_mapper=self.work_mapper,
                          partition=self.partition)

    @log_call(include_args=[],
              include_result=False)
    def cleanup(self):
        """Perform cleanup actions for the components."""

        self.work_mapper.cleanup()

        for reporter in self.reporters:
            reporter.cleanup()

        logging.info("Ending run")

    def resample_partitions(self, events):
        """Resample all partitions of the events.

        The weights of `events` are updated in place.

        Returns
        -------
        cell_records : list of dict

        partition_summaries : list of dict

        partition_sizes : list of int

        """

        partitions = split_events(events, self.partition)
        partition_sizes = [len(positions) for positions in partitions]

        logging.info("Partition sizes: {}".format(partition_sizes))

        results = self.work_mapper.map(
            (self.resampler for _ in partitions),
            ([events[pos] for pos in positions] for positions in partitions),
        )

        cell_records = []
        partition_summaries = []
        for positions, (weights, records, summary) in zip(partitions, results):

            # the workers may have operated on copies
            for pos, new_weights in zip(positions, weights):
                events[pos].weights = new_weights

            cell_records.extend(records)
            partition_summaries.append(summary)

        return cell_records, partition_summaries, partition_sizes

    def combine_summaries(self, partition_summaries, cell_records, initial_stats, final_stats):
        """Summary of a whole run from the summaries of the partitions."""

        summary = {}
        for key in ('n_events', 'n_passthrough', 'n_cells',
                    'n_negative_cells', 'n_capped_cells', 'n_capped_events'):
            summary[key] = sum(part[key] for part in partition_summaries)

        summary['median_radius'] = median([record['radius'] for record in cell_records])

        for prefix, stats in (('initial', initial_stats), ('final', final_stats)):
            summary[prefix + '_sum'] = stats['sum']
            summary[prefix + '_error'] = stats['error']
            summary[prefix + '_negative_fraction'] = stats['negative_fraction']

        return summary

    def run_events(self, events):
        """Run the resampling pipeline on events.

        The `init` method should have been called before this.

        Parameters
        ----------
        events : list of Event

        Returns
        -------
        events : list of Event
            The processed events in input order, without the zero
            weight ones if `discard_weightless` is set.

        summary : dict of str : value

        """

        try:
            return self._run_events(events)
        except Exception as exception:
            self.cleanup()
            raise exception

    def _run_events(self, events):

        events = list(events)

        initial_stats = weight_statistics(primary_weights(events))

        with start_action(action_type="cres.Manager.run_events", n_events=len(events)):

            logging.info("Starting resampling")
            start = time.time()
            cell_records, partition_summaries, partition_sizes = \
                self.resample_partitions(events)
            resampling_time = time.time() - start

            logging.info("Starting unweighting")
            start = time.time()
            self.unweighter.unweight(events)
            unweighting_time = time.time() - start

        final_stats = weight_statistics(primary_weights(events))

        summary = self.combine_summaries(partition_summaries, cell_records,
                                         initial_stats, final_stats)

        if self.discard_weightless:
            n_before = len(events)
            events = [event for event in events if event.weight != 0.]
            logging.info("Discarded {} events with zero weight".format(n_before - len(events)))

        report = {'events' : events,
                  'cell_records' : cell_records,
                  'partition_summaries' : partition_summaries,
                  'summary' : summary,
                  'partition_sizes' : partition_sizes,
                  'task_times' : list(self.work_mapper.task_times),
                  'resampling_time' : resampling_time,
                  'unweighting_time' : unweighting_time,
        }

        self._last_report = report

        assert all([True if rep_key in report else False
                    for rep_key in self.REPORT_ITEM_KEYS])

        logging.info("Starting reporting")
        for reporter in self.reporters:
            reporter.report(**report)

        return events, summary

    def run(self, events):
        """Run the whole protocol, init, run_events and cleanup, on
        events.

        Returns
        -------
        events : list of Event

        summary : dict of str : value

        """

        self.init()

        events, summary = self.run_events(events)

        self.cleanup()

        return events, summary
