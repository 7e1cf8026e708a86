"""Vantage point tree for nearest neighbour search in a metric space.

Construction
------------

Each node holds a vantage point (the pivot) and splits the remaining
items of its subtree into two halves by their distance to the pivot:
the closer half goes into the 'inside' child and the rest into the
'outside' child. The threshold is the smallest distance in the outside
half.

The pivot of the root is the item farthest away from the first item,
so it lies in some corner of the space. Below that, the pivot of each
subtree is the item of the subtree farthest away from the parent
pivot.

For each child the node also stores the range [lo, hi] of the
distances of its members to the pivot. By the triangle inequality a
query point at distance d from the pivot is at least

    lo - d  if d < lo
    d - hi  if d > hi
    0       otherwise

away from any member of the child. This form never subtracts two
infinities so infinite distances between incompatible events do not
produce NaN bounds.

Removal
-------

Items are removed lazily: a removed item is marked dead and never
returned again, but it keeps routing queries as a pivot since the
stored ranges are distances and stay valid. Every node counts the
alive items in its subtree so that subtrees without any are skipped
entirely. Once the fraction of dead items exceeds `rebuild_fraction`
the tree is rebuilt from the alive items.

"""
import logging
import math

from eliot import log_call

from cres.resampling.search.search import NeighbourSearch

logger = logging.getLogger(__name__)

class VPNode(object):
    """A node in a vantage point tree."""

    __slots__ = ('pivot', 'parent', 'threshold',
                 'inside', 'outside',
                 'inside_range', 'outside_range',
                 'n_alive')

    def __init__(self, pivot, parent=None):

        self.pivot = pivot
        self.parent = parent

        self.threshold = None

        self.inside = None
        self.outside = None
        self.inside_range = None
        self.outside_range = None

        self.n_alive = 1

def lower_bound(dist, dist_range):
    """Smallest possible distance to any member of a child given the
    distance to the pivot and the child's [lo, hi] pivot distances."""

    lo, hi = dist_range

    if dist < lo:
        return lo - dist
    elif dist > hi:
        return dist - hi
    else:
        return 0.

class VPTree(NeighbourSearch):
    """Vantage point tree with lazy deletion."""

    DEFAULT_REBUILD_FRACTION = 0.5
    """Dead fraction of items above which the tree is rebuilt."""

    def __init__(self, images, distance, items=None, rebuild_fraction=None):
        """Build the tree.

        Parameters
        ----------
        images : sequence of images
            The images of all events, indexed by item.

        distance : Distance

        items : iterable of int, optional
            The items to index, by default all positions in `images`.

        rebuild_fraction : float, optional
            Rebuild once more than this fraction of the items in the
            tree are dead. Must be in (0, 1].

        """

        super().__init__(images, distance, items=items)

        if rebuild_fraction is None:
            rebuild_fraction = self.DEFAULT_REBUILD_FRACTION

        if not (0. < rebuild_fraction <= 1.):
            raise ValueError("rebuild_fraction must be in (0, 1], got {}".format(
                rebuild_fraction))

        self._rebuild_fraction = rebuild_fraction
        self._n_rebuilds = 0

        self._build(self._items)

    @property
    def n_rebuilds(self):
        """Number of times the tree has been rebuilt after removals."""
        return self._n_rebuilds

    def _item_distance(self, item_a, item_b):
        return self._distance.image_distance(self._images[item_a],
                                             self._images[item_b])

    @log_call(include_args=[], include_result=False)
    def _build(self, items):

        self._alive = {item : True for item in items}
        self._node_of = {}
        self._n_built = len(items)
        self._n_dead = 0

        if len(items) == 0:
            self._root = None
            return

        # distances to an arbitrary point, the last one after sorting
        # is in a corner of the space and becomes the root pivot
        first = items[0]
        entries = sorted((self._item_distance(first, item), item) for item in items)

        self._root = self._build_subtree(entries, None)

    def _build_subtree(self, entries, parent):
        """Build the subtree for entries of (distance to parent pivot, item)
        sorted in ascending order."""

        if len(entries) == 0:
            return None

        # the point furthest from the parent is the best candidate for
        # the next vantage point
        _, pivot = entries[-1]
        node = VPNode(pivot, parent=parent)
        self._node_of[pivot] = node

        rest = [item for _, item in entries[:-1]]
        if len(rest) == 0:
            return node

        dists = sorted((self._item_distance(pivot, item), item) for item in rest)

        median_idx = len(dists) // 2
        inside, outside = dists[:median_idx], dists[median_idx:]

        node.threshold = outside[0][0]
        node.outside_range = (outside[0][0], outside[-1][0])
        node.outside = self._build_subtree(outside, node)

        if len(inside) > 0:
            node.inside_range = (inside[0][0], inside[-1][0])
            node.inside = self._build_subtree(inside, node)

        node.n_alive += len(rest)

        return node

    def _children(self, node, dist):
        """The non-empty children of a node with their distance ranges,
        the more promising one first."""

        children = []
        if node.inside is not None and node.inside.n_alive > 0:
            children.append((node.inside, node.inside_range))
        if node.outside is not None and node.outside.n_alive > 0:
            children.append((node.outside, node.outside_range))

        if node.threshold is not None and dist >= node.threshold:
            children.reverse()

        return children

    def _search_nearest(self, node, image, best):

        dist = self.image_distance(image, node.pivot)

        if self._alive[node.pivot] and math.isfinite(dist):
            best_dist, best_item = best
            if (best_item is None and dist <= best_dist) or \
               (best_item is not None and (dist, node.pivot) < (best_dist, best_item)):
                best[0], best[1] = dist, node.pivot

        for child, dist_range in self._children(node, dist):

            bound = lower_bound(dist, dist_range)

            # a bound equal to the best distance can still hide a tie
            # with a smaller item, so only strictly larger ones prune
            if math.isinf(bound) or bound > best[0]:
                continue

            self._search_nearest(child, image, best)

    def nearest(self, image, max_dist=math.inf):

        if self._root is None or self._root.n_alive == 0:
            return None

        best = [max_dist, None]
        self._search_nearest(self._root, image, best)

        if best[1] is None:
            return None

        return best[1], best[0]

    def _search_within(self, node, image, radius, found):

        dist = self.image_distance(image, node.pivot)

        if self._alive[node.pivot] and math.isfinite(dist) and dist <= radius:
            found.append((dist, node.pivot))

        for child, dist_range in self._children(node, dist):

            bound = lower_bound(dist, dist_range)
            if math.isinf(bound) or bound > radius:
                continue

            self._search_within(child, image, radius, found)

    def within(self, image, radius):

        if self._root is None or self._root.n_alive == 0:
            return []

        found = []
        self._search_within(self._root, image, radius, found)

        return [(item, dist) for dist, item in sorted(found)]

    def remove(self, item):

        if not self._alive.get(item, False):
            raise KeyError(item)

        self._alive[item] = False
        self._n_dead += 1

        node = self._node_of[item]
        while node is not None:
            node.n_alive -= 1
            node = node.parent

        if self._n_dead > self._rebuild_fraction * self._n_built:
            self._rebuild()

    def _rebuild(self):

        alive_items = sorted(item for item, alive in self._alive.items() if alive)

        logger.debug("Rebuilding vantage point tree with {} of {} items".format(
            len(alive_items), self._n_built))

        self._build(alive_items)
        self._n_rebuilds += 1

    def __len__(self):
        return self._n_built - self._n_dead

    def __contains__(self, item):
        return self._alive.get(item, False)
