"""Resampling functionality for weighted event samples.

Role of Resampling
------------------

Event generators at higher orders in perturbation theory produce
samples in which a fraction of the events carry negative weights.
These cancel against positive weights in the same region of phase
space, but they degrade the statistical power of the sample: every
negative weight has to be compensated by additional positive ones.

A resampler changes the weights of the events, without changing the
events themselves, such that the sum of weights in any region of
phase space that is large compared to the typical distance between
events is (approximately) unchanged, while as many negative weights
as possible are removed.

Outline of the resampling sub-package
-------------------------------------

The only strict requirement on a resampler is a method "resample"
that receives a list of events, redistributes their weights and
returns the events along with records of the resampling process.

Distances
=========

Resampling relies on a notion of closeness of events. A Distance
class is simply a class with a method 'distance'. To allow for basic
performance requirements it also has the 'image' and 'image_distance'
methods. An image is a transformation of an event to a form that is
cheap to compare. The 'image_distance' method should produce the same
results as the 'distance' method for the same events.

Search
======

Growing cells requires the repeated lookup of the nearest event that
has not been used yet. The search sub-package provides structures for
these queries over a shrinking set of events.

Cells
=====

Groups of nearby events whose weights are averaged, see the 'cell'
module.

"""
