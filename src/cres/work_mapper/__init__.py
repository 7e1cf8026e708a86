"""Mappers for running the resampling of partitions serially or in
parallel worker processes."""

from cres.work_mapper.mapper import Mapper, PoolMapper, Task, TaskException
