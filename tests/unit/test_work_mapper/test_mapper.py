# Standard Library
import math
import operator
import pickle

# Third Party Library
import pytest

# First Party Library
from cres.work_mapper.mapper import Mapper, PoolMapper, Task, TaskException


class TestMapper:
    def test_map(self):
        mapper = Mapper()
        mapper.init(func=operator.add)

        results = mapper.map([1, 2, 3], [10, 20, 30])

        assert results == [11, 22, 33]
        assert len(mapper.task_times) == 3

    def test_generators(self):
        mapper = Mapper(func=sum)
        mapper.init()

        assert mapper.map((range(n) for n in (2, 3, 4))) == [1, 3, 6]

    def test_no_func(self):
        with pytest.raises(ValueError):
            Mapper().init()

    def test_task_exception(self):
        mapper = Mapper(func=math.sqrt)
        mapper.init()

        with pytest.raises(TaskException) as excinfo:
            mapper.map([4.0, -1.0])

        assert isinstance(excinfo.value.wrapped_exception, ValueError)
        assert len(excinfo.value.formatted_tb) > 0


class TestTask:
    def test_call(self):
        result, task_time = Task(operator.mul, 3, 4)()

        assert result == 12
        assert task_time >= 0.0

    def test_exception(self):
        with pytest.raises(TaskException):
            Task(math.sqrt, -1.0)()

    def test_exception_pickles(self):
        with pytest.raises(TaskException) as excinfo:
            Task(math.sqrt, -1.0)()

        exception = pickle.loads(pickle.dumps(excinfo.value))

        assert isinstance(exception.wrapped_exception, ValueError)
        assert exception.formatted_tb == excinfo.value.formatted_tb


class TestPoolMapper:
    def test_map(self):
        mapper = PoolMapper(num_workers=2)
        mapper.init(func=operator.add)

        results = mapper.map([1, 2, 3, 4], [10, 20, 30, 40])
        mapper.cleanup()

        assert results == [11, 22, 33, 44]
        assert len(mapper.task_times) == 4

    def test_task_exception(self):
        mapper = PoolMapper(num_workers=2, func=math.sqrt)
        mapper.init()

        with pytest.raises(TaskException) as excinfo:
            mapper.map([4.0, -1.0])

        mapper.cleanup()

        assert isinstance(excinfo.value.wrapped_exception, ValueError)

    def test_not_initialized(self):
        with pytest.raises(RuntimeError):
            PoolMapper(num_workers=2, func=sum).map([[1, 2]])

    def test_num_workers(self):
        with pytest.raises(ValueError):
            PoolMapper(func=sum).init()

        with pytest.raises(ValueError):
            PoolMapper(num_workers=0, func=sum).init()

        mapper = PoolMapper(func=sum)
        mapper.init(num_workers=3)

        assert mapper.num_workers == 3
