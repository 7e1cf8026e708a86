# Third Party Library
import numpy as np
import pytest

# First Party Library
from cres.resampling.seeds import SeedStrategy, select_seeds

WEIGHTS = [1.0, -2.0, -0.5, 3.0, -2.0, -1.0, 0.0]


class TestSeedStrategy:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("most_negative", SeedStrategy.MOST_NEGATIVE),
            ("least-negative", SeedStrategy.LEAST_NEGATIVE),
            ("NEXT", SeedStrategy.NEXT),
            ("any", SeedStrategy.NEXT),
            ("random", SeedStrategy.RANDOM),
            (SeedStrategy.RANDOM, SeedStrategy.RANDOM),
        ],
    )
    def test_parse(self, value, expected):
        assert SeedStrategy.parse(value) is expected

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            SeedStrategy.parse("largest")


class TestSelectSeeds:
    def test_most_negative(self):
        assert select_seeds(WEIGHTS, SeedStrategy.MOST_NEGATIVE) == [1, 4, 5, 2]

    def test_least_negative(self):
        assert select_seeds(WEIGHTS, SeedStrategy.LEAST_NEGATIVE) == [2, 5, 1, 4]

    def test_next(self):
        assert select_seeds(WEIGHTS, "next") == [1, 2, 4, 5]

    def test_random(self):
        seeds = select_seeds(WEIGHTS, "random", rng=np.random.default_rng(42))

        assert sorted(seeds) == [1, 2, 4, 5]
        assert seeds == select_seeds(WEIGHTS, "random", rng=np.random.default_rng(42))

    def test_no_negative(self):
        assert select_seeds([1.0, 0.0, 2.0]) == []

    def test_custom(self):
        def reverse(weights):
            return [idx for idx in range(len(weights) - 1, -1, -1) if weights[idx] < 0]

        assert select_seeds(WEIGHTS, reverse) == [5, 4, 2, 1]
