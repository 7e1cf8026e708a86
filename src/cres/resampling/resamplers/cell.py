"""Resampler eliminating negative weights by averaging over cells.

The cell resampler is the core of cres. Given a sample of weighted
events it repeatedly:

1. takes the next seed, an event with negative primary weight that
   has not yet been used in any cell, according to the seed strategy

2. grows a cell around it by adding the nearest unused events (in
   the metric of the distance object) until the sum of the primary
   weights in the cell is no longer negative, there are no further
   events, or the next one would be farther away than the maximum
   cell size

3. replaces the weights of all events in the cell by their mean

Every event ends up in at most one cell and events without any
outgoing particles are never touched. The sum of weights is preserved
up to floating point rounding.

"""
import logging
import math

import numpy as np

from eliot import start_action, log_call

from cres.resampling.resamplers.resampler import Resampler, ResamplerError
from cres.resampling.distances.distance import EuclWithScaledPt
from cres.resampling.search import SEARCH_TYPES
from cres.resampling.seeds import select_seeds, SeedStrategy, DEFAULT_SEED_STRATEGY
from cres.resampling.cell import Cell
from cres.util import primary_weights, weight_statistics, median

class CellResampler(Resampler):
    """Resampler that redistributes weights within cells of nearby
    events."""

    DEFAULT_SEARCH = 'tree'

    def __init__(self,
                 distance=None,
                 ptweight=0.,
                 seed_strategy=DEFAULT_SEED_STRATEGY,
                 max_cell_size=None,
                 multiweight=False,
                 search=None,
                 rng_seed=None,
                 cell_collector=None,
                 rebuild_fraction=None,
                 **kwargs):
        """Constructor for the CellResampler.

        Parameters
        ----------

        distance : Distance object, optional
            The distance metric between events. If not given an
            EuclWithScaledPt distance with `ptweight` is used.

        ptweight : float
            Scale of transverse momentum differences for the default
            distance. Ignored if `distance` is given.

        seed_strategy : SeedStrategy or str or callable
            Order in which seeds are taken.

        max_cell_size : float or None
            Maximum distance of cell members to the seed.

        multiweight : bool
            If True all weight slots are averaged, otherwise only the
            primary weight.

        search : str or NeighbourSearch subclass
            The search structure, either a key of SEARCH_TYPES
            ('tree' or 'naive') or a class.

        rng_seed : int, optional
            Seed for the random seed strategy. Every call to `resample`
            starts from a generator with this seed.

        cell_collector : CellCollector, optional
            Receives the record of every finished cell.

        rebuild_fraction : float, optional
            Passed on to the search structure if it supports it.

        """

        super().__init__(**kwargs)

        if distance is None:
            distance = EuclWithScaledPt(ptweight=ptweight)
        self._distance = distance

        if not callable(seed_strategy) or isinstance(seed_strategy, SeedStrategy):
            seed_strategy = SeedStrategy.parse(seed_strategy)
        self._seed_strategy = seed_strategy

        if max_cell_size is not None:
            max_cell_size = float(max_cell_size)
            if not max_cell_size > 0.:
                raise ValueError("max_cell_size must be positive, got {}".format(
                    max_cell_size))
        self._max_cell_size = max_cell_size

        self._multiweight = bool(multiweight)

        if search is None:
            search = self.DEFAULT_SEARCH
        if isinstance(search, str):
            try:
                search = SEARCH_TYPES[search]
            except KeyError:
                raise ValueError("Unknown search type {}, choose from {}".format(
                    search, list(SEARCH_TYPES.keys())))
        self._search_type = search

        self._rng_seed = rng_seed

        self._cell_collector = cell_collector
        self._rebuild_fraction = rebuild_fraction

    @property
    def distance(self):
        """The distance object used for growing cells."""
        return self._distance

    @property
    def seed_strategy(self):
        return self._seed_strategy

    @property
    def max_cell_size(self):
        return self._max_cell_size

    @property
    def multiweight(self):
        return self._multiweight

    @property
    def cell_collector(self):
        return self._cell_collector

    def _make_search(self, images, items):

        # only structures with lazy deletion have a rebuild fraction
        if self._rebuild_fraction is not None and \
           hasattr(self._search_type, 'DEFAULT_REBUILD_FRACTION'):
            return self._search_type(images, self._distance, items=items,
                                     rebuild_fraction=self._rebuild_fraction)

        return self._search_type(images, self._distance, items=items)

    def _num_slots(self, events, positions):
        """Number of weight slots to average over."""

        if not self._multiweight:
            return 1

        n_weights = {events[pos].n_weights for pos in positions}

        if len(n_weights) > 1:
            raise ResamplerError(
                "Events have differing numbers of weights {}, can't average all of them".format(
                    sorted(n_weights)))

        if len(n_weights) == 0:
            return 1

        return n_weights.pop()

    def _check_cell_sum(self, cell, events, before):

        after = math.fsum(events[member].weight for member in cell.members)

        if not math.isclose(before, after, rel_tol=1e-9, abs_tol=1e-12):
            raise ResamplerError(
                "Weight sum of cell seeded by {} changed from {} to {}".format(
                    events[cell.seed].id, before, after))

    @log_call(include_args=[],
              include_result=False)
    def resample(self, events):
        """Resample the events by growing and averaging cells.

        Parameters
        ----------
        events : list of Event
            The weights are changed in place.

        Returns
        -------
        events : list of Event

        cell_records : list of dict of str: value
            One record per cell with the fields in CELL_FIELDS.

        summary : dict of str: value
            Statistics with the fields in SUMMARY_FIELDS.

        """

        self._resample_init(events)

        initial_stats = weight_statistics(primary_weights(events))

        # empty events are never part of any cell
        positions = [pos for pos, event in enumerate(events) if not event.is_empty]
        n_passthrough = len(events) - len(positions)

        n_slots = self._num_slots(events, positions)

        logging.info("Resampling {} events, {} without outgoing particles pass through".format(
            len(events), n_passthrough))

        cells = []
        with start_action(action_type="cres.CellResampler.resample",
                          n_events=len(events),
                          n_seeded=len(positions)):

            images = [None for _ in events]
            for pos in positions:
                images[pos] = self._distance.image(events[pos])

            with start_action(action_type="cres.CellResampler.build_search"):
                search = self._make_search(images, positions)

            # a fresh generator for every call so the seed order of a
            # partition does not depend on the partitions before it
            rng = np.random.default_rng(self._rng_seed)

            seed_weights = np.array([events[pos].weight for pos in positions])
            seeds = [positions[idx] for idx in
                     select_seeds(seed_weights, strategy=self._seed_strategy, rng=rng)]

            logging.info("{} negative weight seeds".format(len(seeds)))

            for seed in seeds:

                # consumed by an earlier cell
                if seed not in search:
                    continue

                cell = Cell.grow(seed, events, images, search,
                                 max_cell_size=self._max_cell_size,
                                 n_slots=n_slots)

                if self.is_debug_on:
                    before = math.fsum(events[member].weight for member in cell.members)

                cell.resample(events)

                if self.is_debug_on:
                    self._check_cell_sum(cell, events, before)

                record = cell.record(events)
                cells.append(record)

                logging.debug("cell seeded by event {} with {} members, radius {}, weight sum {:e}".format(
                    record['seed_id'], record['n_members'], record['radius'], record['weight_sum']))

                if self._cell_collector is not None:
                    self._cell_collector.collect(record)

        final_stats = weight_statistics(primary_weights(events))

        summary = {
            'n_events' : len(events),
            'n_passthrough' : n_passthrough,
            'n_cells' : len(cells),
            'n_negative_cells' : sum(1 for rec in cells if rec['weight_sum'] < 0.),
            'n_capped_cells' : sum(1 for rec in cells if rec['capped']),
            'n_capped_events' : sum(rec['n_members'] for rec in cells if rec['capped']),
            'median_radius' : median([rec['radius'] for rec in cells]),
            'initial_sum' : initial_stats['sum'],
            'initial_error' : initial_stats['error'],
            'initial_negative_fraction' : initial_stats['negative_fraction'],
            'final_sum' : final_stats['sum'],
            'final_error' : final_stats['error'],
            'final_negative_fraction' : final_stats['negative_fraction'],
        }

        logging.info("Created {} cells, {} with negative weight and {} capped by the maximum size ({} events)".format(
            summary['n_cells'], summary['n_negative_cells'], summary['n_capped_cells'],
            summary['n_capped_events']))
        logging.info("Median cell radius: {}".format(summary['median_radius']))
        logging.info("Negative weight fraction: {:.4f} -> {:.4f}".format(
            summary['initial_negative_fraction'], summary['final_negative_fraction']))

        self._resample_cleanup()

        return events, cells, summary
