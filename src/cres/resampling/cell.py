"""Cells: groups of nearby events whose weights get averaged.

A cell starts from a seed event with negative weight and grows by
repeatedly adding the nearest still available event until the sum of
the primary weights is no longer negative. Growth also stops when no
further neighbour exists, or when the nearest one is farther from the
seed than the maximum cell size.

Once grown, the weights of all members are replaced by the mean over
the cell. This preserves the sum of weights and, if the cell sum is
non-negative, leaves no negative weights behind. Cells that could not
reach a non-negative sum keep a negative mean.

"""
import logging
import math

import numpy as np

logger = logging.getLogger(__name__)

class Cell(object):
    """A seed event and the events gathered around it.

    Members are positions into the sequence of events being
    resampled, the seed is always the first member.

    """

    def __init__(self, seed, seed_weights):
        """Start a cell containing only the seed.

        Parameters
        ----------
        seed : int
            Position of the seed event.

        seed_weights : arraylike of float
            The weight slots of the seed that take part in the
            averaging.

        """

        self.seed = seed
        self.members = [seed]
        self.distances = [0.]
        self.weight_sums = np.array(seed_weights, dtype=float, copy=True)

        # whether growth ended because of the maximum cell size
        self.capped = False

    def add(self, member, member_weights, dist):
        """Add an event at the given distance from the seed."""

        self.members.append(member)
        self.distances.append(dist)
        self.weight_sums += member_weights

    @property
    def n_members(self):
        return len(self.members)

    @property
    def weight_sum(self):
        """Sum of the primary weights of the members."""
        return float(self.weight_sums[0])

    @property
    def radius(self):
        """Largest distance from the seed to any member."""
        return max(self.distances)

    @classmethod
    def grow(cls, seed, events, images, search, max_cell_size=None, n_slots=1):
        """Grow a cell around a seed.

        The seed and every added member are removed from `search`, so
        they can not end up in any later cell.

        Parameters
        ----------
        seed : int
            Position of the seed in `events`, it must still be
            available in `search`.

        events : sequence of Event

        images : sequence of images
            The distance images of `events`.

        search : NeighbourSearch
            Search structure over the available events.

        max_cell_size : float or None
            Upper limit on the distance of members to the seed. None
            means no limit.

        n_slots : int
            Number of leading weight slots to accumulate.

        Returns
        -------
        cell : Cell

        """

        cell = cls(seed, events[seed].weights[:n_slots])
        search.remove(seed)

        max_dist = math.inf if max_cell_size is None else max_cell_size
        seed_image = images[seed]

        while cell.weight_sum < 0.:

            nearest = search.nearest(seed_image, max_dist=max_dist)

            if nearest is None:

                # distinguish running out of neighbours from hitting
                # the size limit
                if max_cell_size is not None and \
                   search.nearest(seed_image) is not None:
                    cell.capped = True

                break

            member, dist = nearest
            search.remove(member)

            logger.debug("adding event {} with distance {} and weight {:e} to cell".format(
                events[member].id, dist, events[member].weight))

            cell.add(member, events[member].weights[:n_slots], dist)

        return cell

    def mean_weights(self, events):
        """Mean of each accumulated weight slot over the members.

        The sums are recomputed with `math.fsum` to avoid accumulating
        rounding errors from the growth.
        """

        n_slots = self.weight_sums.shape[0]

        member_weights = np.array([events[member].weights[:n_slots]
                                   for member in self.members])

        return np.array([math.fsum(member_weights[:, slot_idx])
                         for slot_idx in range(n_slots)]) / self.n_members

    def resample(self, events):
        """Replace the weights of all members with the cell mean.

        Only the accumulated slots are changed.

        Parameters
        ----------
        events : sequence of Event

        """

        mean = self.mean_weights(events)
        n_slots = mean.shape[0]

        for member in self.members:
            events[member].weights[:n_slots] = mean

    def record(self, events):
        """A summary record of the cell."""

        return {
            'seed_id' : events[self.seed].id,
            'member_ids' : [events[member].id for member in self.members],
            'n_members' : self.n_members,
            'radius' : self.radius,
            'weight_sum' : self.weight_sum,
            'capped' : self.capped,
        }
