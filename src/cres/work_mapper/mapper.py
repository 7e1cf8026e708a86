"""Reference implementation, abstract base class, and a process pool
mapper for mapping the resampling of partitions to workers.

"""
import sys
import multiprocessing as mp
import traceback
import time
from concurrent.futures import ProcessPoolExecutor

import logging
from eliot import start_action, log_call

class ABCMapper(object):
    """Abstract base class for a Mapper."""

    def __init__(self, func=None, **kwargs):
        """Constructor for the Mapper class. No arguments are required.

        Parameters
        ----------
        func : callable, optional
            Set a default function to map. Typically set at runtime.

        """

        self._func = func

        self._attributes = kwargs

    @property
    def attributes(self):
        return self._attributes

    @log_call(include_args=[],
              include_result=False)
    def init(self, func=None, **kwargs):
        """Runtime initialization and setting of function to map.

        Parameters
        ----------
        func : callable

        """

        if self.func is not None and func is not None:
            logging.info("overriding default func {} with {}".format(self._func, func))
            self._func = func

        elif self.func is None and func is None:
            raise ValueError("func must be given since no default specified")

        elif self.func is None and func is not None:
            self._func = func

    @property
    def func(self):
        """The function that will be called for new data in the `map` method."""
        return self._func

    @log_call(include_args=[],
              include_result=False)
    def cleanup(self, **kwargs):
        """Runtime post-run tasks.

        This is run either at the end of a successful run or upon an
        error in the main process of the manager.

        The Mapper class performs no actions here and all arguments
        are ignored.

        """

        # nothing to do
        pass

    @log_call(include_args=[],
              include_result=False)
    def map(self, *args, **kwargs):
        raise NotImplementedError

    @property
    def task_times(self):
        """The run times in seconds for each task of the last `map` call,
        in the order of the tasks."""
        return self._task_times


def _task_exception(task_exception, tb):
    """Log an exception caught in a task and wrap it in a TaskException."""

    msg = "Exception '{}({})' caught in a task.".format(
        type(task_exception).__name__, task_exception)
    traceback_log_msg = \
        """Traceback:
--------------------------------------------------------------------------------
{}
--------------------------------------------------------------------------------
        """.format(''.join(traceback.format_exception(
            type(task_exception), task_exception, tb)),
        )

    logging.critical(msg + '\n' + traceback_log_msg)

    # raise a TaskException to distinguish it from errors in the
    # mapper itself with the metadata about the original exception
    return TaskException("Error occured during task execution, recovery not possible.",
                         wrapped_exception=task_exception,
                         tb=tb)


class Mapper(ABCMapper):
    """Basic non-parallel reference implementation of a mapper."""

    def __init__(self, func=None, **kwargs):

        super().__init__(func=func, **kwargs)

        self._task_times = []

    @log_call(include_args=[],
              include_result=False)
    def map(self, *args, **kwargs):
        """Map the 'func' to args.

        Parameters
        ----------
        *args : list of list
            Each element is the argument to one call of 'func'.

        Returns
        -------
        results : list
            The results of each call to 'func' in the same order as input.

        Examples
        --------

        >>> Mapper(func=sum).map([(0,1,2), (3,4,5)])
        [3, 12]

        """

        # expand the generators for the args and kwargs
        args = [list(arg) for arg in args]
        kwargs = {key : list(kwarg) for key, kwarg in kwargs.items()}

        n_tasks = len(args[0]) if len(args) > 0 else 0

        task_times = []
        results = []
        for arg_idx in range(n_tasks):
            start = time.time()

            # get just the args for this call to func
            call_args = [arg[arg_idx] for arg in args]
            call_kwargs = {key : value[arg_idx] for key, value in kwargs.items()}

            try:

                result = self._func(*call_args, **call_kwargs)

            except Exception as task_exception:

                raise _task_exception(task_exception, sys.exc_info()[2])

            task_times.append(time.time() - start)

            results.append(result)

        self._task_times = task_times

        return results


class Task(object):
    """Class that composes a function and arguments."""

    def __init__(self, func, *args, **kwargs):
        """Constructor for Task.

        Parameters
        ----------
        func : callable
            Function to be called on the arguments.

        *args
            The arguments to pass to func

        """
        self.args = args
        self.kwargs = kwargs
        self.func = func

    def __call__(self):
        """Makes the Task itself callable.

        Returns
        -------
        result : object
            The result of the function.

        task_time : float
            Run time in seconds.

        """

        start = time.time()

        try:
            result = self.func(*self.args, **self.kwargs)
        except Exception as task_exception:
            raise _task_exception(task_exception, sys.exc_info()[2])

        return result, time.time() - start

class WrapperException(Exception):
    """Exception used for wrapping another exception.

    Since tracebacks can't be pickled we format it and save that
    instead.

    """

    def __init__(self, message,
                 # must be kwargs so we can pickle it
                 wrapped_exception=None,
                 tb=None):
        super().__init__(message)

        # save the exception with the traceback
        self.wrapped_exception = wrapped_exception
        self.formatted_tb = traceback.format_tb(tb)


class TaskException(WrapperException):
    pass


def _run_task(task):
    # module level so it can be sent to worker processes
    return task()

class PoolMapper(ABCMapper):
    """Mapper using a pool of worker processes.

    Each call to 'func' is run as a task in a
    `concurrent.futures.ProcessPoolExecutor`. Both the function and
    the arguments must be picklable.

    """

    def __init__(self,
                 num_workers=None,
                 func=None,
                 proc_start_method=None,
                 **kwargs):
        """Constructor for PoolMapper.

        Parameters
        ----------
        num_workers : int
            The number of worker processes to spawn.

        func : callable, optional
            Set a default func. Typically set at runtime.

        proc_start_method : str or None
            A string indicating the type of process start method to
            use from python multiprocessing typically 'fork', 'spawn',
            or 'forkserver', or the platform default for None. See
            documentation. Generates a context with the method
            multiprocessing.get_context(proc_start_method) on `init`.

        """

        super().__init__(func=func, **kwargs)

        self._proc_start_method = proc_start_method
        self._num_workers = num_workers
        self._mp_ctx = None
        self._task_times = []

    def init(self, num_workers=None, func=None, **kwargs):
        """Runtime initialization and setting of function to map.

        Parameters
        ----------
        num_workers : int
            The number of worker processes to spawn

        func : callable

        """

        super().init(func=func)

        # create the multiprocessing context to use for spawning
        # processes here
        self._mp_ctx = mp.get_context(method=self._proc_start_method)

        # the number of workers must be given here or set as an object attribute
        if num_workers is None and self.num_workers is None:
            raise ValueError("The number of workers must be given, received {}".format(num_workers))

        elif num_workers is not None:
            self._num_workers = num_workers

        if self._num_workers < 1:
            raise ValueError("The number of workers must be at least 1, received {}".format(
                self._num_workers))

    def cleanup(self, **kwargs):

        self._mp_ctx = None

    @property
    def num_workers(self):
        """The number of worker processes."""
        return self._num_workers

    def _make_task(self, *args, **kwargs):
        """Generate a task from 'func' attribute.

        Returns
        -------
        task : Task object

        """
        return Task(self._func, *args, **kwargs)

    def map(self, *args, **kwargs):
        """Map the 'func' to args using the worker processes.

        Parameters
        ----------
        *args : list of list
            Each element is the argument to one call of 'func'.

        Returns
        -------
        results : list
            The results of each call to 'func' in the same order as input.

        """

        if self._mp_ctx is None:
            raise RuntimeError("The PoolMapper must be initialized with 'init' before mapping")

        args = [list(arg) for arg in args]
        kwargs = {key : list(kwarg) for key, kwarg in kwargs.items()}

        n_tasks = len(args[0]) if len(args) > 0 else 0

        tasks = [self._make_task(*[arg[idx] for arg in args],
                                 **{key : value[idx] for key, value in kwargs.items()})
                 for idx in range(n_tasks)]

        with start_action(action_type="cres.PoolMapper.map",
                          n_tasks=n_tasks,
                          num_workers=self.num_workers):

            with ProcessPoolExecutor(max_workers=self.num_workers,
                                     mp_context=self._mp_ctx) as executor:

                # results come back in the order of the tasks
                outputs = list(executor.map(_run_task, tasks))

        self._task_times = [task_time for _, task_time in outputs]

        return [result for result, _ in outputs]
