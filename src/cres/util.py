"""Miscellaneous functions needed by cres."""

import math

import numpy as np

def primary_weights(events):
    """Array of the primary weights of events."""
    return np.array([event.weight for event in events], dtype=float)

def weight_sum(weights):
    """Accurate sum of weights."""
    return math.fsum(weights)

def weight_error(weights):
    """Statistical error of a sum of weights, sqrt(sum w^2)."""
    return math.sqrt(math.fsum(w * w for w in weights))

def negative_weight_fraction(weights):
    """The fraction of the total absolute weight carried by negative
    weights.

    Zero for an empty or all zero collection of weights.
    """

    abs_sum = math.fsum(abs(w) for w in weights)

    if abs_sum == 0.:
        return 0.

    neg_sum = math.fsum(w for w in weights if w < 0.)

    return -neg_sum / abs_sum

def weight_statistics(weights):
    """Summary statistics for a collection of weights.

    Returns
    -------
    stats : dict of str : value
        With keys 'n_events', 'n_negative', 'sum', 'error', and
        'negative_fraction'.

    """

    weights = np.asarray(weights, dtype=float)

    return {
        'n_events' : int(weights.shape[0]),
        'n_negative' : int(np.count_nonzero(weights < 0.)),
        'sum' : weight_sum(weights),
        'error' : weight_error(weights),
        'negative_fraction' : negative_weight_fraction(weights),
    }

def median(values):
    """Median of values, NaN if there are none."""

    if len(values) == 0:
        return math.nan

    return float(np.median(values))

def is_power_of_two(n):

    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        return False

    n = int(n)
    return n >= 1 and (n & (n - 1)) == 0
