# Standard Library
import json

# Third Party Library
import pytest

# First Party Library
from cres.event import Event
from cres.io import EventReadError, JSONLinesReader, JSONLinesWriter
from cres.io.jsonl import event_from_record, event_to_record


class TestEventFromRecord:
    def test_record(self):
        record = {
            "weights": [1.5, 2.0],
            "particles": [[11, 50.0, 10.0, 20.0, 43.0], [-11, 50.0, -10.0, -20.0, -43.0]],
        }

        event = event_from_record(record, id=4)

        assert event.id == 4
        assert list(event.weights) == [1.5, 2.0]
        assert event.type_ids == (-11, 11)
        assert event.outgoing(11) == ((50.0, 10.0, 20.0, 43.0),)

    def test_scalar_weight(self):
        event = event_from_record({"weights": -2, "particles": []})

        assert event.weight == -2.0
        assert event.is_empty

    def test_integral_float_type(self):
        event = event_from_record({"weights": [1.0], "particles": [[22.0, 1.0, 0.0, 0.0, 1.0]]})

        assert event.type_ids == (22,)

    @pytest.mark.parametrize(
        "record",
        [
            [1.0],
            {"particles": []},
            {"weights": [1.0]},
            {"weights": [], "particles": []},
            {"weights": ["1.0"], "particles": []},
            {"weights": [True], "particles": []},
            {"weights": [float("nan")], "particles": []},
            {"weights": [1.0], "particles": {}},
            {"weights": [1.0], "particles": [[11, 1.0, 0.0, 0.0]]},
            {"weights": [1.0], "particles": [[11, 1.0, 0.0, 0.0, "1"]]},
            {"weights": [1.0], "particles": [[11.5, 1.0, 0.0, 0.0, 1.0]]},
        ],
    )
    def test_malformed(self, record):
        with pytest.raises(EventReadError):
            event_from_record(record)


class TestEventToRecord:
    def test_extra_entries_kept(self):
        record = {"weights": [1.0], "particles": [[1, 2.0, 0.0, 0.0, 2.0]], "run": 7}

        event = event_from_record(record)
        event.weights[0] = 0.25

        out = event_to_record(event)

        assert out["run"] == 7
        assert out["weights"] == [0.25]
        # the input record is not modified
        assert record["weights"] == [1.0]

    def test_no_record(self):
        event = Event({2: [(3.0, 1.0, 0.0, 0.0)], 1: [(1.0, 0.0, 0.0, 1.0)]}, [0.5])

        out = event_to_record(event)

        assert out == {
            "particles": [[1, 1.0, 0.0, 0.0, 1.0], [2, 3.0, 1.0, 0.0, 0.0]],
            "weights": [0.5],
        }


class TestJSONLines:
    def test_read(self, sample_path):
        with JSONLinesReader(str(sample_path)) as reader:
            events = reader.read()

        assert len(events) == 60
        assert [event.id for event in events] == list(range(60))

    def test_start_id(self, sample_path):
        events = JSONLinesReader(str(sample_path), start_id=100).read()

        assert events[0].id == 100

    def test_write(self, sample_path, tmp_path):
        events = JSONLinesReader(str(sample_path)).read()
        for event in events:
            event.rescale_weights(2.0)

        out_path = tmp_path / "out.jsonl"
        with JSONLinesWriter(str(out_path)) as writer:
            writer.write_all(events)

        written = JSONLinesReader(str(out_path)).read()

        assert [event.weight for event in written] == [event.weight for event in events]
        assert [event.outgoing_groups for event in written] == [
            event.outgoing_groups for event in events
        ]

    def test_blank_lines(self, tmp_path):
        path = tmp_path / "events.jsonl"
        path.write_text(
            '{"weights": 1.0, "particles": []}\n'
            "\n"
            '{"weights": 2.0, "particles": []}\n'
        )

        events = JSONLinesReader(str(path)).read()

        assert [event.weight for event in events] == [1.0, 2.0]
        assert [event.id for event in events] == [0, 1]

    def test_malformed_line(self, tmp_path):
        path = tmp_path / "events.jsonl"
        path.write_text('{"weights": 1.0, "particles": []}\n{"weights": \n')

        with pytest.raises(EventReadError) as excinfo:
            JSONLinesReader(str(path)).read()

        assert ":2:" in str(excinfo.value)

    def test_invalid_event(self, tmp_path):
        path = tmp_path / "events.jsonl"
        path.write_text(json.dumps({"weights": []}) + "\n")

        with pytest.raises(EventReadError) as excinfo:
            JSONLinesReader(str(path)).read()

        assert ":1:" in str(excinfo.value)
