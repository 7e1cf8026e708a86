# Third Party Library
import numpy as np
import pytest

# First Party Library
from cres.resampling.cell import Cell
from cres.resampling.distances import EuclWithScaledPt
from cres.resampling.search import NaiveSearch, VPTree


def setup_search(events, search_type=VPTree):
    distance = EuclWithScaledPt()
    images = [distance.image(event) for event in events]
    return images, search_type(images, distance)


class TestCell:
    def test_grow(self, three_events):
        images, search = setup_search(three_events)

        cell = Cell.grow(0, three_events, images, search)

        assert cell.members == [0, 1, 2]
        assert cell.weight_sum == pytest.approx(1.0)
        assert cell.radius == pytest.approx(2.0)
        assert not cell.capped
        assert len(search) == 0

    def test_resample(self, three_events):
        images, search = setup_search(three_events)

        cell = Cell.grow(0, three_events, images, search)
        cell.resample(three_events)

        for event in three_events:
            assert event.weight == pytest.approx(1.0 / 3.0)

    def test_stops_when_non_negative(self, three_events):
        three_events[0].weights[0] = -2.0
        images, search = setup_search(three_events)

        cell = Cell.grow(0, three_events, images, search)

        assert cell.members == [0, 1]
        assert 2 in search

    @pytest.mark.parametrize("search_type", [VPTree, NaiveSearch])
    def test_capped(self, three_events, search_type):
        images, search = setup_search(three_events, search_type)

        cell = Cell.grow(0, three_events, images, search, max_cell_size=0.5)
        cell.resample(three_events)

        assert cell.members == [0]
        assert cell.capped
        assert three_events[0].weight == -5.0
        assert three_events[1].weight == 3.0

    def test_exhausted_not_capped(self, three_events):
        three_events[0].weights[0] = -10.0
        images, search = setup_search(three_events)

        cell = Cell.grow(0, three_events, images, search, max_cell_size=100.0)

        assert cell.n_members == 3
        assert cell.weight_sum == pytest.approx(-4.0)
        assert not cell.capped

    def test_record(self, three_events):
        images, search = setup_search(three_events)

        cell = Cell.grow(0, three_events, images, search)
        record = cell.record(three_events)

        assert record["seed_id"] == 0
        assert record["member_ids"] == [0, 1, 2]
        assert record["n_members"] == 3
        assert record["radius"] == pytest.approx(2.0)
        assert record["weight_sum"] == pytest.approx(1.0)
        assert record["capped"] is False

    def test_multiple_slots(self, three_events):
        for event, aux in zip(three_events, (1.0, 2.0, 6.0)):
            event.weights = np.array([event.weight, aux])

        images, search = setup_search(three_events)

        cell = Cell.grow(0, three_events, images, search, n_slots=2)
        cell.resample(three_events)

        for event in three_events:
            assert event.weights[0] == pytest.approx(1.0 / 3.0)
            assert event.weights[1] == pytest.approx(3.0)
