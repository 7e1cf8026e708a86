"""Abstract base class for nearest neighbour search structures.

A search structure is built once over a fixed collection of items,
which are the integer positions of event images in a sequence, and
afterwards only ever shrinks: items are removed as they are consumed
by cells and a removed item is never returned by any later query.

Queries are made with an image (as produced by `Distance.image`) and
not with an item, so any event can be used as a query point.

Only items at a finite distance from the query are ever returned,
items at infinite distance (incompatible events) are not neighbours.

"""
import math

class NeighbourSearch(object):
    """Abstract base class for neighbour search structures."""

    def __init__(self, images, distance, items=None):
        """Construct the search structure.

        Parameters
        ----------
        images : sequence of images
            The images of all events, indexed by item.

        distance : Distance
            The distance object whose `image_distance` is used.

        items : iterable of int, optional
            The items to index, by default all positions in `images`.

        """

        self._images = images
        self._distance = distance

        if items is None:
            items = range(len(images))

        self._items = sorted(items)

    @property
    def distance(self):
        """The Distance object of this search structure."""
        return self._distance

    def image_distance(self, image, item):
        """Distance between a query image and an indexed item."""
        return self._distance.image_distance(image, self._images[item])

    def nearest(self, image, max_dist=math.inf):
        """Find the nearest available item.

        Ties are broken in favour of the smallest item.

        Parameters
        ----------
        image : object produced by Distance.image

        max_dist : float
            Only items at a distance of at most this are considered.

        Returns
        -------
        nearest : tuple of (int, float) or None
            The item and its distance, or None if there is none.

        """
        raise NotImplementedError

    def within(self, image, radius):
        """All available items within a radius.

        Parameters
        ----------
        image : object produced by Distance.image

        radius : float

        Returns
        -------
        neighbours : list of tuple of (int, float)
            Items and distances sorted by distance and then item.

        """
        raise NotImplementedError

    def remove(self, item):
        """Permanently remove an item.

        Raises
        ------
        KeyError
            If the item is not available.

        """
        raise NotImplementedError

    def __len__(self):
        raise NotImplementedError

    def __contains__(self, item):
        raise NotImplementedError
