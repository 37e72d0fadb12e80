"""Dataflow stages, links and pipelines."""

from rowflow.dataflow.channel import Channel
from rowflow.dataflow.destinations import (
    DEFAULT_BATCH_SIZE,
    CustomDestination,
    DataFlowDestination,
    DbDestination,
    MemoryDestination,
)
from rowflow.dataflow.lookup import Lookup
from rowflow.dataflow.pipeline import Pipeline
from rowflow.dataflow.readers import CsvRowReader, IterableRowReader, QueryRowReader, RowReader
from rowflow.dataflow.rows import NamedRowAdapter, PositionalRowAdapter, RowAdapter
from rowflow.dataflow.sources import CsvSource, DataFlowSource, DbSource, MemorySource, ReaderSource
from rowflow.dataflow.stage import DEFAULT_BUFFER_SIZE, DataFlowStage, Link, StageState, TargetStage
from rowflow.dataflow.transformations import RowMultiplication, RowTransformation

__all__ = [
    "Channel",
    "CsvRowReader",
    "CsvSource",
    "CustomDestination",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_BUFFER_SIZE",
    "DataFlowDestination",
    "DataFlowSource",
    "DataFlowStage",
    "DbDestination",
    "DbSource",
    "IterableRowReader",
    "Link",
    "Lookup",
    "MemoryDestination",
    "MemorySource",
    "NamedRowAdapter",
    "Pipeline",
    "PositionalRowAdapter",
    "QueryRowReader",
    "ReaderSource",
    "RowAdapter",
    "RowMultiplication",
    "RowReader",
    "RowTransformation",
    "StageState",
    "TargetStage",
]
