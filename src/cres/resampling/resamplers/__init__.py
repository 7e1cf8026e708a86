"""Resampler framework and library.

This sub-package provides an interface for implementing new resamplers
that are able to reuse existing distance metrics and search
structures.

Resamplers minimally must implement a single method 'resample'.

"""
from cres.resampling.resamplers.resampler import Resampler, NoResampler, ResamplerError
from cres.resampling.resamplers.cell import CellResampler
