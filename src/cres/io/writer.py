"""Abstract base class for event writers."""

class EventWriter(object):
    """Abstract base class for writers of event samples.

    Writers are context managers, events are written in the order of
    the calls to `write`.

    """

    def write(self, event):
        raise NotImplementedError

    def write_all(self, events):
        for event in events:
            self.write(event)

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_tb):
        self.close()
