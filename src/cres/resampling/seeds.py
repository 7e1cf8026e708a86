"""Strategies for choosing the order in which cells are seeded.

Every event with a negative primary weight is a potential cell
seed. The order in which seeds are taken affects the sizes of the
cells and the run time, but which order is best is not obvious, so
the choice is left to the user:

- MOST_NEGATIVE : the lowest weights first (the default)
- LEAST_NEGATIVE : the negative weights closest to zero first
- NEXT : in the order the events were given
- RANDOM : a random order drawn from a seeded generator

Ties are always broken by the position of the event.

Besides these a plain callable taking the array of primary weights
and returning the seed positions in order can be used as a custom
strategy.

"""
from enum import Enum

import numpy as np

class SeedStrategy(Enum):
    """Enumeration of seed selection strategies."""

    MOST_NEGATIVE = 'most_negative'
    LEAST_NEGATIVE = 'least_negative'
    NEXT = 'next'
    RANDOM = 'random'

    @classmethod
    def parse(cls, value):
        """Get a strategy from a member, its name, or its value.

        'any' is accepted as an alias for NEXT.
        """

        if isinstance(value, cls):
            return value

        key = str(value).strip().lower().replace('-', '_')

        if key == 'any':
            return cls.NEXT

        for strategy in cls:
            if key == strategy.value:
                return strategy

        raise ValueError("Unknown seed strategy: {}".format(value))

DEFAULT_SEED_STRATEGY = SeedStrategy.MOST_NEGATIVE

def select_seeds(weights, strategy=DEFAULT_SEED_STRATEGY, rng=None):
    """Choose the seeds and their order.

    Parameters
    ----------
    weights : arraylike of float
        The primary weights of the candidate events.

    strategy : SeedStrategy or str or callable

    rng : numpy.random.Generator, optional
        Only used by the RANDOM strategy, a generator with seed 0 is
        used if not given.

    Returns
    -------
    seeds : list of int
        Positions into `weights` of the negative weight events.

    """

    weights = np.asarray(weights, dtype=float)

    if callable(strategy) and not isinstance(strategy, SeedStrategy):
        return [int(idx) for idx in strategy(weights)]

    strategy = SeedStrategy.parse(strategy)

    neg_idxs = np.flatnonzero(weights < 0.)

    if strategy is SeedStrategy.NEXT:
        order = neg_idxs

    elif strategy is SeedStrategy.MOST_NEGATIVE:
        # lexsort sorts by the last key first
        order = neg_idxs[np.lexsort((neg_idxs, weights[neg_idxs]))]

    elif strategy is SeedStrategy.LEAST_NEGATIVE:
        order = neg_idxs[np.lexsort((neg_idxs, -weights[neg_idxs]))]

    elif strategy is SeedStrategy.RANDOM:
        if rng is None:
            rng = np.random.default_rng(0)
        order = rng.permutation(neg_idxs)

    return [int(idx) for idx in order]
