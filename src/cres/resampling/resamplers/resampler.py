import logging
from warnings import warn

from eliot import log_call

from cres.util import primary_weights, weight_statistics

class ResamplerError(Exception):
    """Error raised when some constraint on resampling properties is
    violated."""
    pass

class Resampler():
    """Abstract base class for implementing resamplers.

    All subclasses of Resampler must implement the 'resample' method.

    A resampler receives a sequence of events, changes their weights
    in place and returns:

    - the events
    - a list of records, one for each group of events whose weights
      were redistributed together (a cell)
    - a single summary record with statistics of the resampling

    The names of the fields of both kinds of records are given by the
    class constants CELL_FIELDS and SUMMARY_FIELDS, these are what
    reporters can rely on.

    To check the common constraints on the input the '_resample_init'
    method should be called at the beginning of the 'resample' method
    and the '_resample_cleanup' should be called at the end of the
    'resample' method.

    """

    CELL_FIELDS = ('seed_id', 'member_ids', 'n_members', 'radius',
                   'weight_sum', 'capped',)
    """Fields of the records produced for each cell."""

    SUMMARY_FIELDS = ('n_events', 'n_passthrough', 'n_cells',
                      'n_negative_cells', 'n_capped_cells', 'n_capped_events',
                      'median_radius',
                      'initial_sum', 'initial_error', 'initial_negative_fraction',
                      'final_sum', 'final_error', 'final_negative_fraction',)
    """Fields of the summary record of one resampling."""

    # valid debug modes
    DEBUG_MODES = (True, False,)

    def __init__(self, debug_mode=False, **kwargs):
        """Constructor for Resampler class

        Parameters
        ----------

        debug_mode : bool
            Log every cell at the debug level and check the weight sum
            after every cell.

        """

        # the number of events given to the current resampling, None
        # when no resampling is taking place
        self._resampling_num_events = None

        self._debug_mode = False

        self.set_debug_mode(debug_mode)

    @property
    def is_debug_on(self):
        """ """
        return self._debug_mode

    def set_debug_mode(self, mode):

        if mode not in self.DEBUG_MODES:
            raise ValueError("debug mode, {}, not valid".format(mode))

        self._debug_mode = mode

    def debug_on(self):
        """ """
        if self.is_debug_on:
            warn("Debug mode is already on")

        self.set_debug_mode(True)

    def debug_off(self):
        """ """
        if not self.is_debug_on:
            warn("Debug mode is already off")

        self.set_debug_mode(False)

    def _resample_init(self, events, **kwargs):
        """Common initialization stuff for resamplers.

        Parameters
        ----------
        events : list of Event objects

        """

        if self._resampling_num_events is not None:
            raise ResamplerError("A resampling is already taking place")

        self._resampling_num_events = len(events)

    def _resample_cleanup(self, **kwargs):
        """Common cleanup stuff for resamplers."""

        self._resampling_num_events = None

    @log_call(include_args=[],
              include_result=False)
    def resample(self, events):
        """Redistribute the weights of the events.

        Parameters
        ----------
        events : list of Event objects
            The events to resample, their weights are changed in place.

        Returns
        -------

        events : list of Event objects
            The same events.

        cell_records : list of dict of str: value
            A record for each cell.

        summary : dict of str: value
            Statistics of this resampling.

        """

        raise NotImplementedError


class NoResampler(Resampler):
    """The resampler which does nothing."""

    @log_call(include_args=[],
              include_result=False)
    def resample(self, events):

        self._resample_init(events)

        stats = weight_statistics(primary_weights(events))

        summary = {
            'n_events' : len(events),
            'n_passthrough' : len(events),
            'n_cells' : 0,
            'n_negative_cells' : 0,
            'n_capped_cells' : 0,
            'n_capped_events' : 0,
            'median_radius' : float('nan'),
            'initial_sum' : stats['sum'],
            'initial_error' : stats['error'],
            'initial_negative_fraction' : stats['negative_fraction'],
            'final_sum' : stats['sum'],
            'final_error' : stats['error'],
            'final_negative_fraction' : stats['negative_fraction'],
        }

        logging.info("No resampling performed on {} events".format(len(events)))

        self._resample_cleanup()

        return events, [], summary
