"""A simple JSON lines event format.

Every non-blank line holds one event as a JSON object:

    {"weights": [1.2, 1.1, 1.3],
     "particles": [[11, 50.0, 10.0, 20.0, 43.0], [-11, 50.0, -10.0, -20.0, -43.0]]}

Each particle is given as [type_id, E, px, py, pz]. 'weights' may
also be a single number. Any further entries of the object are kept
and written back unchanged.

"""
import json
import math

from cres.event import Event
from cres.io.reader import EventReader, EventReadError
from cres.io.writer import EventWriter

def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)

def event_from_record(record, id=0):
    """Construct an Event from a decoded JSON object.

    Raises
    ------
    EventReadError
        If the record is malformed.

    """

    if not isinstance(record, dict):
        raise EventReadError("Event must be a JSON object")

    try:
        weights = record['weights']
        particles = record['particles']
    except KeyError as err:
        raise EventReadError("Event is missing the entry {}".format(err)) from err

    if _is_number(weights):
        weights = [weights]

    if not isinstance(weights, list) or len(weights) == 0 or \
       not all(_is_number(w) for w in weights):
        raise EventReadError("Weights must be a number or a non-empty list of numbers")

    if not all(math.isfinite(w) for w in weights):
        raise EventReadError("Weights must be finite")

    if not isinstance(particles, list):
        raise EventReadError("Particles must be a list")

    groups = {}
    for particle in particles:

        if not (isinstance(particle, list) and len(particle) == 5 and
                all(_is_number(c) for c in particle)):
            raise EventReadError("Malformed particle {}, expected [type_id, E, px, py, pz]".format(
                particle))

        type_id = particle[0]
        if isinstance(type_id, float):
            if not type_id.is_integer():
                raise EventReadError("Particle type id must be an integer, got {}".format(type_id))
            type_id = int(type_id)

        groups.setdefault(type_id, []).append(particle[1:])

    return Event(groups, weights, id=id, record=record)

def event_to_record(event):
    """The JSON object for an event, the input record with updated
    weights if there is one."""

    if isinstance(event.record, dict):
        record = dict(event.record)
    else:
        record = {
            'particles' : [[type_id, *p] for type_id, momenta in event.outgoing_groups
                           for p in momenta],
        }

    record['weights'] = [float(w) for w in event.weights]

    return record

class JSONLinesReader(EventReader):
    """Reads events from a JSON lines file."""

    def __init__(self, path, start_id=0):
        """Constructor for JSONLinesReader.

        Parameters
        ----------
        path : str
            The file to read.

        start_id : int
            Id of the first event.

        """

        self._path = path
        self._start_id = start_id
        self._file = None

    @property
    def path(self):
        return self._path

    def __iter__(self):

        event_id = self._start_id

        self._file = open(self._path, 'r')
        try:
            for line_idx, line in enumerate(self._file):

                if len(line.strip()) == 0:
                    continue

                try:
                    record = json.loads(line)
                    event = event_from_record(record, id=event_id)
                except ValueError as err:
                    raise EventReadError("{}:{}: {}".format(self._path, line_idx + 1, err)) from err
                except EventReadError as err:
                    raise EventReadError("{}:{}: {}".format(self._path, line_idx + 1, err)) from err

                event_id += 1

                yield event
        finally:
            self.close()

    def close(self):

        if self._file is not None:
            self._file.close()
            self._file = None

class JSONLinesWriter(EventWriter):
    """Writes events to a JSON lines file."""

    def __init__(self, path, mode='w'):

        self._path = path
        self._file = open(path, mode)

    @property
    def path(self):
        return self._path

    def write(self, event):
        self._file.write(json.dumps(event_to_record(event)))
        self._file.write('\n')

    def close(self):

        if not self._file.closed:
            self._file.close()
