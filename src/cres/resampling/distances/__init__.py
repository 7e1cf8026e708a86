"""Distance metrics between events."""

from cres.resampling.distances.distance import (
    Distance,
    EuclWithScaledPt,
    NonFiniteDistanceError,
)
