"""Validated configuration of a cres run.

A Configuration holds all user settings and generates the components
of a run (resampler, unweighter, work mapper, partition and manager)
from them.

"""
import math
import logging

from cres.resampling.resamplers.cell import CellResampler
from cres.resampling.search import SEARCH_TYPES
from cres.resampling.seeds import SeedStrategy
from cres.unweighting import Unweighter, NoUnweighter
from cres.work_mapper.mapper import Mapper, PoolMapper
from cres.partition import PartitionDescriptor, PartitionDescriptorError
from cres.manager import Manager
from cres.util import is_power_of_two

class ConfigurationError(Exception):
    """Error raised for invalid configuration values."""
    pass

def _is_real(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)

def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)

class Configuration():
    """ """

    DEFAULT_SEED_STRATEGY = SeedStrategy.MOST_NEGATIVE
    DEFAULT_SEARCH = 'tree'

    FIELDS = ('ptweight', 'max_cell_size', 'num_partitions', 'seed_strategy',
              'minweight', 'rng_seed', 'multiweight', 'num_workers', 'search',
              'discard_weightless', 'partition_path', 'proc_start_method',
              'rebuild_fraction',)

    def __init__(self,
                 ptweight=0.,
                 max_cell_size=None,
                 num_partitions=1,
                 seed_strategy=None,
                 minweight=None,
                 rng_seed=None,
                 multiweight=False,
                 num_workers=None,
                 search=None,
                 discard_weightless=False,
                 partition_path=None,
                 proc_start_method=None,
                 rebuild_fraction=None,
    ):
        """Constructor for Configuration.

        Parameters
        ----------

        ptweight : float
            Non-negative scale for transverse momentum differences in
            the distance.

        max_cell_size : float or None
            Positive maximum distance of cell members from the seed,
            None for no limit.

        num_partitions : int
            Power of two, the number of partitions to learn.

        seed_strategy : SeedStrategy or str

        minweight : float or None
            Positive weight below which events are unweighted, None
            disables unweighting.

        rng_seed : int or None
            Seed for all random number generators.

        multiweight : bool
            Resample all weight slots, not only the primary one.

        num_workers : int or None
            Number of worker processes, None or 1 for serial
            processing.

        search : str
            'tree' or 'naive'.

        discard_weightless : bool
            Drop events with zero weight from the output.

        partition_path : str or None
            Path to a stored partition descriptor to use instead of
            learning one.

        proc_start_method : str or None
            Multiprocessing start method for the worker processes.

        rebuild_fraction : float or None
            Dead fraction of the search tree which triggers a rebuild.

        Raises
        ------

        ConfigurationError : if any value is invalid

        """

        if not _is_real(ptweight) or not math.isfinite(ptweight) or ptweight < 0:
            raise ConfigurationError("ptweight must be a finite non-negative number, got {}".format(
                ptweight))
        self._ptweight = float(ptweight)

        if max_cell_size is not None:
            if not _is_real(max_cell_size) or math.isnan(max_cell_size) or max_cell_size <= 0:
                raise ConfigurationError("max_cell_size must be positive, got {}".format(
                    max_cell_size))
            max_cell_size = float(max_cell_size)
        self._max_cell_size = max_cell_size

        if not is_power_of_two(num_partitions):
            raise ConfigurationError("num_partitions must be a power of two, got {}".format(
                num_partitions))
        self._num_partitions = int(num_partitions)

        if seed_strategy is None:
            seed_strategy = self.DEFAULT_SEED_STRATEGY
        try:
            self._seed_strategy = SeedStrategy.parse(seed_strategy)
        except ValueError as err:
            raise ConfigurationError(str(err)) from err

        if minweight is not None:
            if not _is_real(minweight) or not math.isfinite(minweight) or minweight <= 0:
                raise ConfigurationError("minweight must be positive, got {}".format(minweight))
            minweight = float(minweight)
        self._minweight = minweight

        if rng_seed is not None and (not _is_int(rng_seed) or rng_seed < 0):
            raise ConfigurationError("rng_seed must be a non-negative integer, got {}".format(
                rng_seed))
        self._rng_seed = rng_seed

        if not isinstance(multiweight, bool):
            raise ConfigurationError("multiweight must be a boolean, got {}".format(multiweight))
        self._multiweight = multiweight

        if num_workers is not None and (not _is_int(num_workers) or num_workers < 1):
            raise ConfigurationError("num_workers must be a positive integer, got {}".format(
                num_workers))
        self._num_workers = num_workers

        if search is None:
            search = self.DEFAULT_SEARCH
        if search not in SEARCH_TYPES:
            raise ConfigurationError("search must be one of {}, got {}".format(
                list(SEARCH_TYPES.keys()), search))
        self._search = search

        if not isinstance(discard_weightless, bool):
            raise ConfigurationError("discard_weightless must be a boolean, got {}".format(
                discard_weightless))
        self._discard_weightless = discard_weightless

        self._partition_path = partition_path
        self._proc_start_method = proc_start_method

        if rebuild_fraction is not None and \
           (not _is_real(rebuild_fraction) or not 0 < rebuild_fraction <= 1):
            raise ConfigurationError("rebuild_fraction must be in (0, 1], got {}".format(
                rebuild_fraction))
        self._rebuild_fraction = rebuild_fraction

    @classmethod
    def from_dict(cls, d):
        """Construct from a dictionary, unknown keys are an error."""

        unknown = set(d.keys()) - set(cls.FIELDS)
        if len(unknown) > 0:
            raise ConfigurationError("Unknown configuration options: {}".format(sorted(unknown)))

        return cls(**d)

    def to_dict(self):

        d = {field : getattr(self, field) for field in self.FIELDS}
        d['seed_strategy'] = self._seed_strategy.value

        return d

    @property
    def ptweight(self):
        return self._ptweight

    @property
    def max_cell_size(self):
        return self._max_cell_size

    @property
    def num_partitions(self):
        return self._num_partitions

    @property
    def seed_strategy(self):
        return self._seed_strategy

    @property
    def minweight(self):
        return self._minweight

    @property
    def rng_seed(self):
        return self._rng_seed

    @property
    def multiweight(self):
        return self._multiweight

    @property
    def num_workers(self):
        return self._num_workers

    @property
    def search(self):
        return self._search

    @property
    def discard_weightless(self):
        return self._discard_weightless

    @property
    def partition_path(self):
        return self._partition_path

    @property
    def proc_start_method(self):
        return self._proc_start_method

    @property
    def rebuild_fraction(self):
        return self._rebuild_fraction

    @property
    def parallel(self):
        """Whether partitions are processed by worker processes."""
        return self._num_workers is not None and self._num_workers > 1

    def make_resampler(self, cell_collector=None):

        return CellResampler(ptweight=self._ptweight,
                             seed_strategy=self._seed_strategy,
                             max_cell_size=self._max_cell_size,
                             multiweight=self._multiweight,
                             search=self._search,
                             rng_seed=self._rng_seed,
                             cell_collector=cell_collector,
                             rebuild_fraction=self._rebuild_fraction)

    def make_unweighter(self):

        if self._minweight is None:
            return NoUnweighter()

        return Unweighter(self._minweight, rng_seed=self._rng_seed)

    def make_work_mapper(self):

        if self.parallel:
            return PoolMapper(num_workers=self._num_workers,
                              proc_start_method=self._proc_start_method)

        return Mapper()

    def make_partition(self, events=None):
        """The partition descriptor for a run.

        Loaded from `partition_path` if given, otherwise learned from
        `events` if more than one partition is requested, and None
        otherwise.

        Raises
        ------
        ConfigurationError
            If the stored descriptor can't be read or has a different
            number of partitions than requested.

        """

        if self._partition_path is not None:

            try:
                descriptor = PartitionDescriptor.load(self._partition_path)
            except (OSError, PartitionDescriptorError) as err:
                raise ConfigurationError("Can't read partition from {}: {}".format(
                    self._partition_path, err)) from err

            if self._num_partitions != 1 and descriptor.num_partitions != self._num_partitions:
                raise ConfigurationError(
                    "Partition in {} has {} partitions but {} were requested".format(
                        self._partition_path, descriptor.num_partitions, self._num_partitions))

            logging.info("Loaded partition with {} parts from {}".format(
                descriptor.num_partitions, self._partition_path))

            return descriptor

        if self._num_partitions == 1:
            return None

        if events is None:
            raise ConfigurationError("Events are needed to learn a partition")

        return PartitionDescriptor.learn(events, self._num_partitions)

    def make_manager(self, events=None, reporters=None):
        """Generate a Manager with all components of this configuration."""

        return Manager(resampler=self.make_resampler(),
                       unweighter=self.make_unweighter(),
                       partition=self.make_partition(events),
                       work_mapper=self.make_work_mapper(),
                       reporters=reporters,
                       discard_weightless=self._discard_weightless)
