"""Modular component for defining distance metrics between events.

This module contains an abstract base class for Distance classes and
the standard event distance.

The suggested implementation method is to leave the 'distance' method
as is, and override the 'image' and 'image_distance' methods
instead. Because the default 'distance' method calls these
transparently. The resamplers and search structures will use the
'image' and 'image_distance' calls because this allows performance
optimizations.

For the standard distance the image of an event holds the momenta of
each particle group as a numpy array together with the transverse
momenta, so converting the momenta is done once per event and not
once per distance evaluation (which happens many times when growing
cells).

"""
import math

import numpy as np

from cres.resampling.distances.matching import pair_cost_matrix, optimal_group_cost

class NonFiniteDistanceError(ArithmeticError):
    """Raised when the distance between two compatible events is not a
    finite number.

    Search structures rely on distances never being NaN, so this is
    never recovered from.
    """
    pass

class Distance(object):
    """Abstract Base class for Distance classes."""

    def __init__(self):
        """Constructor for Distance class."""
        pass

    def image(self, event):
        """Compute the 'image' of an event which should be some
        transformation of the event that is more convenient for
        distance computations.

        The abstract implementation is naive and just returns the
        event itself, thus it is the identity function.

        Parameters
        ----------
        event : Event

        Returns
        -------
        image : Event
            The same event that was given as an argument.

        """

        return event

    def image_distance(self, image_a, image_b):
        """Compute the distance between two images of events.

        Parameters
        ----------

        image_a : object produced by Distance.image

        image_b : object produced by Distance.image

        Returns
        -------

        distance : float
            The distance between the two images

        Raises
        ------

        NotImplementedError : always because this is abstract

        """
        raise NotImplementedError

    def distance(self, event_a, event_b):
        """Compute the distance between two events.

        Parameters
        ----------

        event_a : Event

        event_b : Event

        Returns
        -------

        distance : float
            The distance between the two events

        """

        return self.image_distance(self.image(event_a),
                                   self.image(event_b))


class EuclWithScaledPt(Distance):
    """Euclidean momentum distance with optimal particle pairing and an
    extra weight on transverse momentum differences.

    Two events are only comparable if they contain the same particle
    types with the same multiplicities, otherwise the distance is
    infinite.

    For comparable events the particles of each type are paired one to
    one such that the sum of the squared pair distances

        d(p, q)**2 = ptweight**2 * (pt(p) - pt(q))**2 + sum_k (p_k - q_k)**2

    is minimal, where k runs over the four momentum components. The
    event distance is the square root of the sum of these minimal
    costs over all types.

    """

    def __init__(self, ptweight=0., matching_method=None):
        """Construct the distance.

        Parameters
        ----------

        ptweight : float
            Non-negative scale factor for transverse momentum differences.

        matching_method : str or None
            Force a particle matching method, see
            `cres.resampling.distances.matching.optimal_group_cost`.

        """

        super().__init__()

        ptweight = float(ptweight)
        if not (math.isfinite(ptweight) and ptweight >= 0.):
            raise ValueError("ptweight must be a finite non-negative number, got {}".format(
                ptweight))

        self._ptweight = ptweight
        self._matching_method = matching_method

    @property
    def ptweight(self):
        """The scale factor for transverse momentum differences."""
        return self._ptweight

    def image(self, event):
        """Tuple of (type_id, momenta array, pt array) for each group."""

        image = []
        for type_id, momenta in event.outgoing_groups:
            p = np.array(momenta, dtype=float).reshape((-1, 4))
            pt = np.sqrt(p[:, 1]**2 + p[:, 2]**2)
            image.append((type_id, p, pt))

        return tuple(image)

    def image_distance(self, image_a, image_b):

        # different sets of particle types can't be paired
        if len(image_a) != len(image_b):
            return math.inf

        group_costs = []
        for (type_a, p_a, pt_a), (type_b, p_b, pt_b) in zip(image_a, image_b):

            if type_a != type_b or p_a.shape[0] != p_b.shape[0]:
                return math.inf

            cost = pair_cost_matrix(p_a, p_b, pt_a, pt_b, self._ptweight)

            if not np.all(np.isfinite(cost)):
                raise NonFiniteDistanceError(
                    "Non-finite momentum distance for particle type {}".format(type_a))

            group_costs.append(optimal_group_cost(cost, method=self._matching_method))

        dist = math.sqrt(math.fsum(group_costs))

        if not math.isfinite(dist):
            raise NonFiniteDistanceError("Non-finite event distance {}".format(dist))

        return dist
