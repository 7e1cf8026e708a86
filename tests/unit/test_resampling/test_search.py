# Standard Library
import math

# Third Party Library
import numpy as np
import pytest

# First Party Library
from cres.resampling.distances import EuclWithScaledPt
from cres.resampling.search import SEARCH_TYPES, NaiveSearch, VPTree
from cres_testing import random_sample, single_particle_event


def build(search_type, events, **kwargs):
    distance = EuclWithScaledPt(ptweight=1.0)
    images = [distance.image(event) for event in events]
    return images, search_type(images, distance, **kwargs)


@pytest.fixture
def events():
    return random_sample(80, seed=5)


class TestSearch:
    @pytest.mark.parametrize("search_type", [VPTree, NaiveSearch])
    def test_empty(self, search_type):
        images, search = build(search_type, [])

        assert len(search) == 0
        assert search.nearest(()) is None
        assert search.within((), 10.0) == []

    @pytest.mark.parametrize("search_type", [VPTree, NaiveSearch])
    def test_nearest_single(self, search_type):
        events = [
            single_particle_event(1.0, (10.0, 0.0, 0.0, 0.0), id=0),
            single_particle_event(1.0, (14.0, 0.0, 0.0, 0.0), id=1),
            single_particle_event(1.0, (11.0, 0.0, 0.0, 0.0), id=2),
        ]
        images, search = build(search_type, events)

        assert search.nearest(images[0]) == (0, 0.0)

        search.remove(0)

        item, dist = search.nearest(images[0])
        assert item == 2
        assert dist == pytest.approx(1.0)

        assert search.nearest(images[0], max_dist=0.5) is None

    @pytest.mark.parametrize("search_type", [VPTree, NaiveSearch])
    def test_remove(self, search_type, events):
        images, search = build(search_type, events)

        assert len(search) == len(events)
        assert 3 in search

        search.remove(3)

        assert 3 not in search
        assert len(search) == len(events) - 1

        with pytest.raises(KeyError):
            search.remove(3)

        with pytest.raises(KeyError):
            search.remove(len(events) + 10)

    def test_tree_matches_naive(self, events):
        images, tree = build(VPTree, events)
        _, naive = build(NaiveSearch, events)

        rng = np.random.default_rng(0)
        order = rng.permutation(len(events))

        for removed in order:
            for query in range(0, len(events), 7):
                assert tree.nearest(images[query]) == naive.nearest(images[query])
                assert tree.nearest(images[query], max_dist=20.0) == naive.nearest(
                    images[query], max_dist=20.0
                )

            assert tree.within(images[removed], 30.0) == naive.within(images[removed], 30.0)

            tree.remove(int(removed))
            naive.remove(int(removed))

            assert len(tree) == len(naive)

        assert tree.nearest(images[0]) is None
        assert tree.n_rebuilds > 0

    def test_no_rebuild(self, events):
        images, tree = build(VPTree, events, rebuild_fraction=1.0)

        for item in range(len(events)):
            tree.remove(item)

        assert tree.n_rebuilds == 0
        assert len(tree) == 0
        assert tree.nearest(images[0]) is None

    def test_invalid_rebuild_fraction(self, events):
        with pytest.raises(ValueError):
            build(VPTree, events, rebuild_fraction=0.0)

    @pytest.mark.parametrize("search_type", [VPTree, NaiveSearch])
    def test_ties_smallest_item(self, search_type):
        events = [
            single_particle_event(1.0, (10.0, 0.0, 0.0, 0.0), id=0),
            single_particle_event(1.0, (12.0, 0.0, 0.0, 0.0), id=1),
            single_particle_event(1.0, (8.0, 0.0, 0.0, 0.0), id=2),
            single_particle_event(1.0, (12.0, 0.0, 0.0, 0.0), id=3),
        ]
        images, search = build(search_type, events)

        search.remove(0)

        assert search.nearest(images[0]) == (1, 2.0)

    @pytest.mark.parametrize("search_type", [VPTree, NaiveSearch])
    def test_incompatible_not_neighbours(self, search_type):
        events = [
            single_particle_event(1.0, (10.0, 0.0, 0.0, 0.0), type_id=1, id=0),
            single_particle_event(1.0, (10.0, 0.0, 0.0, 0.0), type_id=2, id=1),
            single_particle_event(1.0, (50.0, 0.0, 0.0, 0.0), type_id=1, id=2),
        ]
        images, search = build(search_type, events)

        search.remove(0)

        assert search.nearest(images[0]) == (2, 40.0)

        search.remove(2)

        assert search.nearest(images[0]) is None
        assert search.within(images[0], math.inf) == []

    @pytest.mark.parametrize("search_type", [VPTree, NaiveSearch])
    def test_within_sorted(self, search_type, events):
        images, search = build(search_type, events)

        found = search.within(images[0], 40.0)

        assert found[0] == (0, 0.0)
        assert [dist for _, dist in found] == sorted(dist for _, dist in found)
        assert all(dist <= 40.0 for _, dist in found)

    @pytest.mark.parametrize("search_type", [VPTree, NaiveSearch])
    def test_items_subset(self, search_type, events):
        images, search = build(search_type, events, items=[4, 2, 9])

        assert len(search) == 3
        assert 5 not in search
        assert search.nearest(images[4]) == (4, 0.0)
        assert all(item in (2, 4, 9) for item, _ in search.within(images[4], math.inf))

    def test_search_types(self):
        assert SEARCH_TYPES["tree"] is VPTree
        assert SEARCH_TYPES["naive"] is NaiveSearch
