"""Reporters receiving the results of a resampling run."""

from cres.reporter.reporter import Reporter, FileReporter, ReporterError
from cres.reporter.cells import CellCollector
from cres.reporter.summary import SummaryReporter
