"""Collection of cells of interest for inspection.

Looking at all cells of a large sample is impractical, but some cells
are interesting for understanding the quality of the resampling: the
largest ones, and a few typical ones. The CellCollector keeps, out of
all cells it receives:

- the first N cells
- the N cells with the largest radius
- the N cells with the most members
- the N cells with the largest accumulated weight
- N cells drawn uniformly at random (reservoir sampling)

"""
import heapq
import json
import logging

import numpy as np

from cres.reporter.reporter import Reporter

class CellCollector(Reporter):
    """Keeps a bounded selection of the cells of a run."""

    DEFAULT_N_CELLS = 10

    CATEGORIES = ('first', 'largest_by_radius', 'largest_by_members',
                  'largest_by_weight', 'random',)

    def __init__(self, n_cells=None, rng_seed=None, file_path=None, **kwargs):
        """Constructor for the CellCollector.

        Parameters
        ----------
        n_cells : int
            Number of cells to keep in each category.

        rng_seed : int, optional
            Seed for the random selection.

        file_path : str, optional
            If given the collected cells are written there as JSON
            when reporting.

        """

        super().__init__(**kwargs)

        if n_cells is None:
            n_cells = self.DEFAULT_N_CELLS

        if n_cells < 1:
            raise ValueError("Number of cells must be positive, got {}".format(n_cells))

        self._n_cells = n_cells
        self._rng = np.random.default_rng(rng_seed)
        self._file_path = file_path

        self._count = 0
        self._first = []
        self._random = []

        # min heaps of (key, cell index, record)
        self._by_radius = []
        self._by_members = []
        self._by_weight = []

    @property
    def count(self):
        """Number of cells seen so far."""
        return self._count

    def _keep_largest(self, heap, key, record):

        entry = (key, self._count, record)

        if len(heap) < self._n_cells:
            heapq.heappush(heap, entry)
        elif entry[:2] > heap[0][:2]:
            heapq.heapreplace(heap, entry)

    def collect(self, record):
        """Consider a cell record for the collection."""

        record = dict(record, cell_idx=self._count)

        if self._count < self._n_cells:
            self._first.append(record)
            self._random.append(record)
        else:
            idx = int(self._rng.integers(0, self._count + 1))
            if idx < self._n_cells:
                self._random[idx] = record

        self._keep_largest(self._by_radius, record['radius'], record)
        self._keep_largest(self._by_members, record['n_members'], record)
        self._keep_largest(self._by_weight, record['weight_sum'], record)

        self._count += 1

    def _largest(self, heap):
        return [record for _, _, record in sorted(heap, key=lambda entry: entry[:2], reverse=True)]

    def cells(self):
        """The collected cells for each category.

        Returns
        -------
        cells : dict of str : list of dict
            Cell records for each of the categories in CATEGORIES,
            the 'largest' ones in descending order.

        """

        return {
            'first' : list(self._first),
            'largest_by_radius' : self._largest(self._by_radius),
            'largest_by_members' : self._largest(self._by_members),
            'largest_by_weight' : self._largest(self._by_weight),
            'random' : list(self._random),
        }

    def event_cells(self):
        """Map event ids to the indices of the collected cells containing
        them."""

        event_cells = {}
        for records in self.cells().values():
            for record in records:
                for event_id in record['member_ids']:
                    cells = event_cells.setdefault(event_id, [])
                    if record['cell_idx'] not in cells:
                        cells.append(record['cell_idx'])

        return event_cells

    def dump_info(self):
        """Log a summary of the collected cells."""

        cells = self.cells()

        logging.info("Cells by creation order:")
        for record in cells['first']:
            logging.info("Cell {} with {} events".format(record['cell_idx'], record['n_members']))

        logging.info("Largest cells by radius:")
        for record in cells['largest_by_radius']:
            logging.info("Cell {} with {} events and radius {}".format(
                record['cell_idx'], record['n_members'], record['radius']))

        logging.info("Largest cells by number of events:")
        for record in cells['largest_by_members']:
            logging.info("Cell {} with {} events".format(record['cell_idx'], record['n_members']))

        logging.info("Cells with largest accumulated weights:")
        for record in cells['largest_by_weight']:
            logging.info("Cell {} with {} events and weight {:e}".format(
                record['cell_idx'], record['n_members'], record['weight_sum']))

        logging.info("Randomly selected cells:")
        for record in cells['random']:
            logging.info("Cell {} with {} events".format(record['cell_idx'], record['n_members']))

    def report(self, cell_records=None, **kwargs):

        if cell_records is not None:
            for record in cell_records:
                self.collect(record)

        self.dump_info()

        if self._file_path is not None:
            with open(self._file_path, 'w') as wf:
                json.dump(self.cells(), wf, indent=2)
