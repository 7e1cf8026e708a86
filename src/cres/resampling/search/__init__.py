"""Nearest neighbour search over a shrinking set of events."""

from cres.resampling.search.search import NeighbourSearch
from cres.resampling.search.vptree import VPTree
from cres.resampling.search.naive import NaiveSearch

SEARCH_TYPES = {
    'tree' : VPTree,
    'naive' : NaiveSearch,
}
"""Search structures selectable by name."""
