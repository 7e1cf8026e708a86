"""Cell resampling for eliminating negative weights in Monte Carlo
event samples.

"""

__version__ = "0.1.0"
