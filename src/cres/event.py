"""Reference implementation of the event model used throughout cres.

An event is a collection of outgoing particles grouped by their type
identifier (e.g. the PDG Monte Carlo id) together with one or more
signed weights.

The particle content of an event never changes once it is built. The
only mutable part is the weight vector:

- `weights` : numpy array of float, the first slot is the primary
  (central) weight and any further slots are auxiliary weights,
  e.g. scale or PDF variations.

Groups are kept sorted by their type identifier and the particles
inside a group keep the order in which they were given. Both orders
are significant for the distance computations, which pair particles
group by group.

Events with no outgoing particles at all are valid but are never
resampled, they pass through unmodified.

"""

import math
from collections import namedtuple

import numpy as np

class Particle(namedtuple('Particle', ['type_id', 'e', 'px', 'py', 'pz'])):
    """An outgoing particle: type identifier and four-momentum.

    Components are (energy, px, py, pz).

    """

    __slots__ = ()

    @property
    def momentum(self):
        """The four-momentum as a tuple (E, px, py, pz)."""
        return (self.e, self.px, self.py, self.pz)

    @property
    def pt(self):
        """Transverse momentum."""
        return math.sqrt(self.px**2 + self.py**2)


class Event(object):
    """A Monte Carlo scattering event.

    A container for:

    - groups of outgoing particle momenta by type identifier
    - weights
    - id : int, intrinsic ordering used to break ties

    Optionally the raw input record can be attached as `record` so
    that writers can reproduce everything except the weights.

    """

    def __init__(self, groups, weights, id=0, record=None):
        """Constructor for Event.

        Parameters
        ----------
        groups : dict of int : sequence of 4-sequences of float
            Outgoing momenta (E, px, py, pz) for each particle type.

        weights : float or sequence of float
            The event weights, the first being the primary weight.

        id : int
            Intrinsic ordering of the event, e.g. its position in the
            input.

        record : object, optional
            Raw input record.

        """

        outgoing = []
        for type_id in sorted(groups):
            momenta = tuple(tuple(float(c) for c in p) for p in groups[type_id])

            # empty groups carry no information and would make two
            # otherwise identical events incompatible
            if len(momenta) == 0:
                continue

            for p in momenta:
                if len(p) != 4:
                    raise ValueError(
                        "Momenta must have 4 components, got {}".format(len(p)))

            outgoing.append((int(type_id), momenta))

        self._outgoing = tuple(outgoing)

        weights = np.array(weights, dtype=float, ndmin=1)
        if weights.ndim != 1 or weights.shape[0] < 1:
            raise ValueError("An event needs at least one weight")

        self.weights = weights
        self.id = id
        self.record = record

    def __repr__(self):
        return "Event(id={}, weights={}, types={})".format(
            self.id, list(self.weights), self.type_ids)

    @property
    def outgoing_groups(self):
        """Tuple of (type_id, tuple of momenta) sorted by type_id."""
        return self._outgoing

    @property
    def type_ids(self):
        """The particle types present in the event."""
        return tuple(type_id for type_id, _ in self._outgoing)

    def outgoing(self, type_id):
        """The momenta of all outgoing particles of the given type."""
        for group_type, momenta in self._outgoing:
            if group_type == type_id:
                return momenta
        return ()

    def particles(self):
        """Iterate over all outgoing particles as Particle objects."""
        for type_id, momenta in self._outgoing:
            for p in momenta:
                yield Particle(type_id, *p)

    @property
    def n_particles(self):
        return sum(len(momenta) for _, momenta in self._outgoing)

    @property
    def is_empty(self):
        """Whether the event has no outgoing particles."""
        return len(self._outgoing) == 0

    @property
    def weight(self):
        """The primary weight."""
        return float(self.weights[0])

    @property
    def n_weights(self):
        return self.weights.shape[0]

    def rescale_weights(self, factor):
        """Multiply all weight slots by a factor."""
        self.weights *= factor


class EventBuilder(object):
    """Incrementally collect the particles and weights of an event."""

    def __init__(self):
        self._outgoing = []
        self._weights = []

    def add_outgoing(self, type_id, momentum):
        """Add an outgoing particle.

        Parameters
        ----------
        type_id : int

        momentum : 4-sequence of float
            (E, px, py, pz)

        """
        self._outgoing.append((type_id, momentum))
        return self

    def add_weight(self, weight):
        self._weights.append(weight)
        return self

    def build(self, id=0, record=None):
        """Construct the Event."""

        groups = {}
        for type_id, p in self._outgoing:
            groups.setdefault(type_id, []).append(p)

        return Event(groups, self._weights, id=id, record=record)
