"""Abstract base class for event readers."""

class EventReadError(Exception):
    """Error raised for malformed event input."""
    pass

class EventReader(object):
    """Abstract base class for readers of event samples.

    A reader is an iterable over Event objects. The ids of the events
    are assigned by the reader as their running index in the input, so
    that the order of the events can be restored after processing.

    Readers are also context managers which close any underlying
    files.

    """

    def __iter__(self):
        raise NotImplementedError

    def read(self):
        """Read all events into a list."""
        return list(self)

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_tb):
        self.close()
