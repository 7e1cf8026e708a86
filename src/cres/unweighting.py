"""Unweighting of events with small weights.

After resampling many events typically end up with small, but
non-zero, weights. The unweighter reduces the number of events that
have to be kept by a probabilistic selection: every event with
absolute weight below `minweight` survives with a probability of
|w|/minweight, in which case all of its weights are scaled up such
that |w| = minweight. Otherwise all of its weights are set to zero.

Finally the weights of all events are rescaled by a common factor
such that the sum of weights is preserved exactly.

"""
import logging
import math

import numpy as np

from eliot import log_call

class Unweighter(object):
    """Probabilistic unweighting of events with small weights."""

    def __init__(self, minweight, rng=None, rng_seed=None):
        """Constructor for the Unweighter.

        Parameters
        ----------
        minweight : float
            Events with 0 < |w| < minweight are unweighted. Must be
            positive.

        rng : numpy.random.Generator, optional
            The source of randomness, if not given one is created from
            `rng_seed`.

        rng_seed : int, optional

        """

        minweight = float(minweight)
        if not (math.isfinite(minweight) and minweight > 0.):
            raise ValueError("minweight must be a positive number, got {}".format(minweight))

        self._minweight = minweight

        if rng is None:
            rng = np.random.default_rng(rng_seed)

        self._rng = rng

    @property
    def minweight(self):
        return self._minweight

    @log_call(include_args=[],
              include_result=False)
    def unweight(self, events):
        """Unweight the events in place.

        Parameters
        ----------
        events : sequence of Event

        Returns
        -------
        events : sequence of Event

        """

        if len(events) == 0:
            return events

        orig_sum = math.fsum(event.weight for event in events)

        n_kept = 0
        n_dropped = 0
        for event in events:

            awt = abs(event.weight)
            if awt >= self._minweight or awt == 0.:
                continue

            if self._rng.uniform(0., self._minweight) < awt:
                event.rescale_weights(self._minweight / awt)
                n_kept += 1
            else:
                event.rescale_weights(0.)
                n_dropped += 1

        logging.info("Unweighting kept {} and discarded {} events below weight {:e}".format(
            n_kept, n_dropped, self._minweight))

        final_sum = math.fsum(event.weight for event in events)

        if final_sum == 0.:
            logging.warning("Sum of weights is 0 after unweighting")
        else:
            factor = orig_sum / final_sum
            for event in events:
                event.rescale_weights(factor)

        return events

class NoUnweighter(object):
    """The unweighter which does nothing."""

    def unweight(self, events):
        return events
