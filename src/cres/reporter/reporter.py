import os.path as osp
import logging

class ReporterError(Exception):
    """ """
    pass

class Reporter(object):
    """Abstract base class for cres reporters.

    All reporters must customize and override minimally the 'report'
    method. Optionally the 'init' and 'cleanup' can be overriden.

    See Also
    --------

    cres.manager : details of calls to reporter methods.

    """

    def __init__(self, **kwargs):
        """Construct a reporter.

        Void constructor for the Reporter base class.

        Parameters
        ----------

        **kwargs : key-value pairs
            Ignored kwargs, but accepts them from subclass calls for
            compatibility.

        """
        pass

    def init(self, **kwargs):
        """Initialization routines for the reporter at runtime.

        Void method for reporter base class.

        Reporters can expect to have the following key word arguments
        passed to them by the manager in this call.

        Parameters
        ----------

        resampler : Resampler object
            The resampler that will be used.

        unweighter : Unweighter object
            The unweighter that will be used.

        work_mapper : Mapper object
            The work mapper that will be used.

        partition : PartitionDescriptor or None
            The partition of the events.

        """

        method_name = 'init'
        assert not hasattr(super(), method_name), \
            "Superclass with method {} is masked".format(method_name)

    def report(self, **kwargs):
        """Given the results of a run, perform I/O operations to persist
        them.

        Void method for reporter base class.

        Reporters can expect to have the following key word arguments
        passed to them by the manager.

        Parameters
        ----------

        events : list of Event objects
            The events after resampling and unweighting.

        cell_records : list of dict of str : value
            The records of all cells, in the order of the partitions.

        partition_summaries : list of dict of str : value
            The resampling summary of each partition.

        summary : dict of str : value
            The summary of the whole run.

        partition_sizes : list of int
            The number of events in each partition.

        task_times : list of float
            Time in seconds the resampling of each partition took.

        resampling_time : float
            Total time of the resampling step.

        unweighting_time : float
            Total time of the unweighting step.

        """

        method_name = 'report'
        assert not hasattr(super(), method_name), \
            "Superclass with method {} is masked".format(method_name)

    def cleanup(self, **kwargs):
        """Teardown routines for the reporter at the end of the run.

        Use to cleanly and safely close I/O connections or other
        cleanup I/O.

        """

        method_name = 'cleanup'
        assert not hasattr(super(), method_name), \
            "Superclass with method {} is masked".format(method_name)


class FileReporter(Reporter):
    """Abstract reporter that handles specifying the file path for a
    reporter.

    This abstract class doesn't perform any operations that involve
    actually opening file descriptors, but only the validation of the
    path and mode.

    """

    MODES = ('x', 'w', 'a',)
    """Valid modes accepted for files."""

    DEFAULT_MODE = 'x'
    """The default mode to set for opening files if none is specified
    (create if doesn't exist, fail if it does.)"""

    def __init__(self, file_path=None, mode=None, **kwargs):
        """Constructor for FileReporter.

        Parameters
        ----------

        file_path : str or None
            The file path to write to.

        mode : str
            The mode for that file.

        """

        super().__init__(**kwargs)

        if mode is None:
            mode = self.DEFAULT_MODE

        if mode not in self.MODES:
            raise ReporterError("Invalid mode {}, choose from {}".format(mode, self.MODES))

        if file_path is not None:
            file_path = osp.realpath(osp.expanduser(file_path))

        self._file_path = file_path
        self._mode = mode

    @property
    def file_path(self):
        """The file path of this reporter."""
        return self._file_path

    @property
    def mode(self):
        """The mode the file is opened with."""
        return self._mode

    def init(self, **kwargs):

        if self._file_path is None:
            return

        if self._mode == 'x' and osp.exists(self._file_path):
            raise FileExistsError("File exists: '{}'".format(self._file_path))

        logging.debug("{} will write to {}".format(type(self).__name__, self._file_path))

    def report(self, **kwargs):
        pass

    def cleanup(self, **kwargs):
        pass
