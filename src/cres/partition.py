"""Partitioning of event samples into independently resampled parts.

Growing cells over a large sample is expensive, and inherently
sequential within one sample. A partition descriptor divides the
space of events into `num_partitions = 2**k` regions so that each
region can be resampled on its own, e.g. by different worker
processes.

A descriptor is learned from a (sub)sample of events and then applied
to any number of events. Events are first projected to a small
feature vector by a `MomentumProjector`. Learning splits the sample
recursively: at each node the feature with the largest variance is
chosen and the sample is split at the median of that feature. Events
with a feature value less than or equal to the threshold go to the
first child, all others to the second.

The splits are stored as a complete binary tree in heap order, the
children of node `n` are `2n + 1` and `2n + 2`. The leaves are not
stored, the partition index of an event is the index of the leaf it
ends up in minus the number of inner nodes `2**k - 1`.

Descriptors are serialized to a versioned JSON document:

    {"format": "cres-partition",
     "version": 1,
     "features": ["pt_sum", "energy", "abs_pz_sum", "multiplicity"],
     "num_partitions": 4,
     "nodes": [[0, 102.5], [1, 311.0], [1, 80.2]]}

where each node is the index of its feature in 'features' and the
threshold.

"""
import json
import logging
import math

import numpy as np

from eliot import log_call

from cres.util import is_power_of_two

PARTITION_FORMAT = 'cres-partition'
PARTITION_FORMAT_VERSION = 1

class PartitionError(Exception):
    """Error raised for invalid partitioning parameters."""
    pass

class PartitionDescriptorError(PartitionError):
    """Error raised for malformed serialized partition descriptors."""
    pass

def _pt_sum(event):
    return math.fsum(particle.pt for particle in event.particles())

def _energy(event):
    return math.fsum(particle.e for particle in event.particles())

def _abs_pz_sum(event):
    return math.fsum(abs(particle.pz) for particle in event.particles())

def _multiplicity(event):
    return float(event.n_particles)

class MomentumProjector(object):
    """Projects events onto a vector of scalar features.

    Available features are:

    - pt_sum : scalar sum of the transverse momenta
    - energy : sum of the energies
    - abs_pz_sum : sum of the absolute longitudinal momenta
    - multiplicity : number of outgoing particles

    """

    FEATURES = {
        'pt_sum' : _pt_sum,
        'energy' : _energy,
        'abs_pz_sum' : _abs_pz_sum,
        'multiplicity' : _multiplicity,
    }

    DEFAULT_FEATURES = ('pt_sum', 'energy', 'abs_pz_sum', 'multiplicity')

    def __init__(self, features=None):

        if features is None:
            features = self.DEFAULT_FEATURES

        features = tuple(features)

        if len(features) == 0:
            raise PartitionError("At least one feature is needed")

        unknown = [feature for feature in features if feature not in self.FEATURES]
        if len(unknown) > 0:
            raise PartitionError("Unknown features {}, choose from {}".format(
                unknown, list(self.FEATURES.keys())))

        if len(set(features)) != len(features):
            raise PartitionError("Duplicate features in {}".format(features))

        self._features = features

    @property
    def features(self):
        """Names of the projected features."""
        return self._features

    @property
    def n_features(self):
        return len(self._features)

    def project(self, event):
        """Feature vector of a single event."""
        return np.array([self.FEATURES[feature](event) for feature in self._features])

    def project_all(self, events):
        """Feature matrix of shape (n_events, n_features)."""

        features = np.zeros((len(events), self.n_features))
        for idx, event in enumerate(events):
            features[idx] = self.project(event)

        return features

class PartitionDescriptor(object):
    """A recursive splitting rule assigning events to partitions."""

    def __init__(self, nodes, num_partitions, projector=None):
        """Constructor for PartitionDescriptor.

        Use `learn` to construct a descriptor from events.

        Parameters
        ----------
        nodes : list of tuple of (int, float)
            Feature index and threshold for each inner node in heap
            order.

        num_partitions : int
            A power of two.

        projector : MomentumProjector, optional

        """

        if not is_power_of_two(num_partitions):
            raise PartitionError("Number of partitions must be a power of two, got {}".format(
                num_partitions))

        if projector is None:
            projector = MomentumProjector()

        nodes = [(int(feature), float(threshold)) for feature, threshold in nodes]

        if len(nodes) != num_partitions - 1:
            raise PartitionError("Expected {} nodes for {} partitions, got {}".format(
                num_partitions - 1, num_partitions, len(nodes)))

        for feature, threshold in nodes:
            if not 0 <= feature < projector.n_features:
                raise PartitionError("Feature index {} out of range".format(feature))

        self._nodes = nodes
        self._num_partitions = int(num_partitions)
        self._projector = projector

    @property
    def num_partitions(self):
        return self._num_partitions

    @property
    def depth(self):
        """Number of splits between the root and any partition."""
        return self._num_partitions.bit_length() - 1

    @property
    def nodes(self):
        return list(self._nodes)

    @property
    def projector(self):
        return self._projector

    @classmethod
    @log_call(include_args=[],
              include_result=False)
    def learn(cls, events, num_partitions, projector=None):
        """Learn a partition from a sample of events.

        Parameters
        ----------
        events : sequence of Event

        num_partitions : int
            A power of two.

        projector : MomentumProjector, optional

        Returns
        -------
        descriptor : PartitionDescriptor

        """

        if not is_power_of_two(num_partitions):
            raise PartitionError("Number of partitions must be a power of two, got {}".format(
                num_partitions))

        if projector is None:
            projector = MomentumProjector()

        logging.info("Learning {} partitions from {} events".format(
            num_partitions, len(events)))

        features = projector.project_all(events)

        nodes = [None for _ in range(num_partitions - 1)]

        # breadth first over the inner nodes with the rows that reach
        # each of them
        pending = [(0, np.arange(features.shape[0]), (0, 0.))]
        while len(pending) > 0:

            node_idx, rows, parent_split = pending.pop(0)

            if node_idx >= len(nodes):
                continue

            if rows.shape[0] == 0:
                split = parent_split
            else:
                sub = features[rows]
                feature = int(np.argmax(np.var(sub, axis=0)))
                threshold = float(np.median(sub[:, feature]))
                split = (feature, threshold)

            nodes[node_idx] = split

            feature, threshold = split
            first = rows[features[rows, feature] <= threshold]
            second = rows[~(features[rows, feature] <= threshold)]

            pending.append((2 * node_idx + 1, first, split))
            pending.append((2 * node_idx + 2, second, split))

        return cls(nodes, num_partitions, projector=projector)

    def classify_features(self, features):
        """Partition index for a feature vector."""

        node_idx = 0
        for _ in range(self.depth):
            feature, threshold = self._nodes[node_idx]

            if features[feature] <= threshold:
                node_idx = 2 * node_idx + 1
            else:
                node_idx = 2 * node_idx + 2

        return node_idx - (self._num_partitions - 1)

    def classify(self, event):
        """Partition index of an event, in [0, num_partitions)."""
        return self.classify_features(self._projector.project(event))

    def classify_all(self, events):
        return [self.classify(event) for event in events]

    def to_dict(self):

        return {
            'format' : PARTITION_FORMAT,
            'version' : PARTITION_FORMAT_VERSION,
            'features' : list(self._projector.features),
            'num_partitions' : self._num_partitions,
            'nodes' : [[feature, threshold] for feature, threshold in self._nodes],
        }

    @classmethod
    def from_dict(cls, d):
        """Construct a descriptor from its dictionary form, validating it
        strictly.

        Raises
        ------
        PartitionDescriptorError
            On any missing, extra or malformed entry.

        """

        if not isinstance(d, dict):
            raise PartitionDescriptorError("Partition descriptor must be a JSON object")

        expected_keys = {'format', 'version', 'features', 'num_partitions', 'nodes'}
        if set(d.keys()) != expected_keys:
            raise PartitionDescriptorError(
                "Partition descriptor must have exactly the keys {}, got {}".format(
                    sorted(expected_keys), sorted(d.keys())))

        if d['format'] != PARTITION_FORMAT:
            raise PartitionDescriptorError("Unknown partition format {}".format(d['format']))

        if d['version'] != PARTITION_FORMAT_VERSION or isinstance(d['version'], bool):
            raise PartitionDescriptorError("Unsupported partition format version {}".format(
                d['version']))

        features = d['features']
        if not isinstance(features, list) or \
           not all(isinstance(feature, str) for feature in features):
            raise PartitionDescriptorError("Features must be a list of names")

        num_partitions = d['num_partitions']
        if not is_power_of_two(num_partitions):
            raise PartitionDescriptorError(
                "Number of partitions must be a power of two, got {}".format(num_partitions))

        nodes = d['nodes']
        if not isinstance(nodes, list):
            raise PartitionDescriptorError("Nodes must be a list")

        for node in nodes:
            if not (isinstance(node, list) and len(node) == 2):
                raise PartitionDescriptorError("Malformed node {}".format(node))

            feature, threshold = node
            if isinstance(feature, bool) or not isinstance(feature, int):
                raise PartitionDescriptorError("Malformed feature index in node {}".format(node))

            if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or \
               not math.isfinite(threshold):
                raise PartitionDescriptorError("Malformed threshold in node {}".format(node))

        try:
            projector = MomentumProjector(features)
            return cls(nodes, num_partitions, projector=projector)
        except PartitionError as err:
            raise PartitionDescriptorError(str(err)) from err

    def dumps(self):
        """Serialize to a JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def loads(cls, s):
        """Deserialize from a JSON string."""

        try:
            d = json.loads(s)
        except ValueError as err:
            raise PartitionDescriptorError("Partition descriptor is not valid JSON: {}".format(
                err)) from err

        return cls.from_dict(d)

    def dump(self, path):
        with open(path, 'w') as wf:
            wf.write(self.dumps())
            wf.write('\n')

    @classmethod
    def load(cls, path):
        with open(path, 'r') as rf:
            return cls.loads(rf.read())

    def __eq__(self, other):

        if not isinstance(other, PartitionDescriptor):
            return NotImplemented

        return self.to_dict() == other.to_dict()

def split_events(events, descriptor=None):
    """Split events into their partitions.

    Parameters
    ----------
    events : sequence of Event

    descriptor : PartitionDescriptor or None
        If None all events are in a single partition.

    Returns
    -------
    partitions : list of list of int
        For each partition the positions in `events` of its members,
        in input order.

    """

    if descriptor is None:
        return [list(range(len(events)))]

    partitions = [[] for _ in range(descriptor.num_partitions)]
    for pos, event in enumerate(events):
        partitions[descriptor.classify(event)].append(pos)

    return partitions
