"""Optimal one-to-one matching of particles within a type group.

Given the matrix of pairwise costs between the particles of one group
in two events, the cost of the group is the minimum over all
one-to-one assignments of the sum of the matched costs.

Two interchangeable solvers are provided:

- 'permutation' : exhaustive search over all permutations, only
  sensible for very small groups.

- 'assignment' : the Hungarian-type solver from
  `scipy.optimize.linear_sum_assignment`.

Both produce the same optimal value, they only differ in how fast they
get there. The matched costs are summed with `math.fsum` so that the
result does not depend on the order in which pairs are visited.

"""
import itertools as it
import math

import numpy as np
from scipy.optimize import linear_sum_assignment

PERMUTATION_MAX_SIZE = 3
"""Largest group size for which the exhaustive search is the default."""

MATCHING_METHODS = ('permutation', 'assignment')

def pair_cost_matrix(momenta_a, momenta_b, pt_a, pt_b, ptweight):
    """Squared pair distances between two sets of momenta.

    The entry (i, j) is

        ptweight**2 * (pt_a[i] - pt_b[j])**2 + sum_k (p_a[i,k] - p_b[j,k])**2

    where k runs over the four momentum components.

    Parameters
    ----------
    momenta_a : arraylike of shape (n, 4)

    momenta_b : arraylike of shape (m, 4)

    pt_a : arraylike of shape (n,)

    pt_b : arraylike of shape (m,)

    ptweight : float

    Returns
    -------
    cost : numpy.ndarray of shape (n, m)

    """

    diff = momenta_a[:, np.newaxis, :] - momenta_b[np.newaxis, :, :]
    cost = np.sum(diff * diff, axis=-1)

    if ptweight != 0.:
        dpt = ptweight * (pt_a[:, np.newaxis] - pt_b[np.newaxis, :])
        cost = cost + dpt * dpt

    return cost

def permutation_min_cost(cost):
    """Minimal assignment cost by trying every permutation."""

    n = cost.shape[0]
    rows = range(n)

    min_cost = math.inf
    for perm in it.permutations(range(n)):
        perm_cost = math.fsum(cost[row, col] for row, col in zip(rows, perm))
        if perm_cost < min_cost:
            min_cost = perm_cost

    return min_cost

def assignment_min_cost(cost):
    """Minimal assignment cost from the linear sum assignment solver."""

    row_idxs, col_idxs = linear_sum_assignment(cost)

    return math.fsum(cost[row_idxs, col_idxs])

def optimal_group_cost(cost, method=None):
    """Minimal sum of matched costs for a square cost matrix.

    Parameters
    ----------
    cost : numpy.ndarray of shape (n, n)
        Finite, non-negative pair costs.

    method : str or None
        One of MATCHING_METHODS, if None the exhaustive search is used
        for groups of at most PERMUTATION_MAX_SIZE particles and the
        assignment solver otherwise.

    Returns
    -------
    min_cost : float

    """

    n = cost.shape[0]
    if cost.shape != (n, n):
        raise ValueError("Cost matrix must be square, got shape {}".format(cost.shape))

    # trivial cases do not need any solver
    if n == 0:
        return 0.
    elif n == 1:
        return float(cost[0, 0])

    if method is None:
        method = 'permutation' if n <= PERMUTATION_MAX_SIZE else 'assignment'

    if method == 'permutation':
        return permutation_min_cost(cost)
    elif method == 'assignment':
        return assignment_min_cost(cost)
    else:
        raise ValueError("Unknown matching method: {}".format(method))
