# Standard Library
import math

# Third Party Library
import numpy as np
import pytest

# First Party Library
from cres.event import Event
from cres.unweighting import NoUnweighter, Unweighter


def make_events(weights):
    return [Event({1: [(1.0, 0.0, 0.0, 1.0)]}, [w, 2 * w], id=idx) for idx, w in enumerate(weights)]


class TestUnweighter:
    def test_sum_preserved(self):
        rng = np.random.default_rng(0)
        weights = rng.uniform(-0.2, 1.0, size=500)
        events = make_events(weights)

        Unweighter(0.5, rng_seed=1).unweight(events)

        assert math.fsum(event.weight for event in events) == pytest.approx(math.fsum(weights))

    def test_small_weights_raised_or_zeroed(self):
        rng = np.random.default_rng(0)
        weights = rng.uniform(0.01, 1.0, size=500)
        events = make_events(weights)

        minweight = 0.5
        Unweighter(minweight, rng_seed=1).unweight(events)

        # the largest weight is above minweight so only the global rescaling
        # applies to it
        large_idx = int(np.argmax(weights))
        factor = events[large_idx].weight / weights[large_idx]

        for event in events:
            if event.weight != 0.0:
                assert abs(event.weight) / factor >= minweight * (1 - 1e-9)

    def test_large_weights_scaled_uniformly(self):
        weights = [5.0, 0.1, 0.2, 7.0]
        events = make_events(weights)

        Unweighter(1.0, rng_seed=3).unweight(events)

        assert events[3].weight / events[0].weight == pytest.approx(7.0 / 5.0)

    def test_all_slots_scaled(self):
        events = make_events([0.1, 0.3, 2.0])

        Unweighter(1.0, rng_seed=0).unweight(events)

        for event in events:
            assert event.weights[1] == pytest.approx(2 * event.weights[0])

    def test_zero_weights_untouched(self):
        events = make_events([0.0, 2.0])

        Unweighter(1.0, rng_seed=0).unweight(events)

        assert events[0].weight == 0.0
        assert events[1].weight == pytest.approx(2.0)

    def test_reproducible(self):
        weights = np.random.default_rng(2).uniform(0.0, 1.0, size=100)

        events_a = make_events(weights)
        events_b = make_events(weights)

        Unweighter(0.7, rng_seed=11).unweight(events_a)
        Unweighter(0.7, rng_seed=11).unweight(events_b)

        assert [event.weight for event in events_a] == [event.weight for event in events_b]

    def test_zero_final_sum(self, caplog):
        # a single tiny weight that is dropped with probability close to 1
        events = make_events([1e-12])

        Unweighter(1.0, rng_seed=0).unweight(events)

        assert events[0].weight == 0.0
        assert "Sum of weights is 0" in caplog.text

    def test_empty(self):
        assert Unweighter(1.0).unweight([]) == []

    def test_invalid_minweight(self):
        for minweight in (0.0, -1.0, math.nan):
            with pytest.raises(ValueError):
                Unweighter(minweight)


class TestNoUnweighter:
    def test_nothing(self):
        events = make_events([0.1, 0.2])

        NoUnweighter().unweight(events)

        assert [event.weight for event in events] == [0.1, 0.2]
