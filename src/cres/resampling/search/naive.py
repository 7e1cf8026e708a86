"""Brute force neighbour search.

Every query computes the distance to every available item. This is
only practical for small samples but has no build cost and is useful
as a reference for the tree search.

"""
import math

from cres.resampling.search.search import NeighbourSearch

class NaiveSearch(NeighbourSearch):
    """Linear scan over all available items."""

    def __init__(self, images, distance, items=None):

        super().__init__(images, distance, items=items)

        self._available = set(self._items)

    def _scan(self, image, max_dist):

        for item in sorted(self._available):
            dist = self.image_distance(image, item)
            if math.isfinite(dist) and dist <= max_dist:
                yield dist, item

    def nearest(self, image, max_dist=math.inf):

        best = min(self._scan(image, max_dist), default=None)

        if best is None:
            return None

        dist, item = best
        return item, dist

    def within(self, image, radius):

        return [(item, dist) for dist, item in sorted(self._scan(image, radius))]

    def remove(self, item):
        self._available.remove(item)

    def __len__(self):
        return len(self._available)

    def __contains__(self, item):
        return item in self._available
