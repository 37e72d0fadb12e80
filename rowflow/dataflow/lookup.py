"""Lookup transformation: enrich rows from a second, fully loaded source."""

from typing import Any, Callable, Dict, List, Optional, Union

from rowflow.dataflow.sources import DataFlowSource
from rowflow.dataflow.transformations import RowTransformation
from rowflow.exceptions import SourceReadError
from rowflow.logging import get_logger

logger = get_logger(__name__)

LookupTable = Union[Dict[Any, Any], List[Any]]


class Lookup(RowTransformation):
    """Calls ``func(row, lookup_table)`` for every input row.

    The lookup source is read completely on the worker thread before the first
    input row is taken. With ``key`` the table is a dict keyed by ``key(row)``,
    later rows replacing earlier ones with the same key; without it the table is
    the list of rows.

    Example:
        >>> lookup = Lookup(
        ...     lambda order, customers: {**order, "name": customers[order["customer_id"]]["name"]},
        ...     DbSource(cm, "customers"),
        ...     key=lambda c: c["id"],
        ... )
    """

    def __init__(
        self,
        func: Callable[[Any, LookupTable], Any],
        lookup_source: DataFlowSource,
        key: Optional[Callable[[Any], Any]] = None,
        **kwargs,
    ):
        super().__init__(self._transform, **kwargs)
        self.lookup_func = func
        self.lookup_source = lookup_source
        self.key = key
        self.lookup_table: Optional[LookupTable] = None

    def _on_start(self) -> None:
        self.load_lookup_table()

    def load_lookup_table(self) -> LookupTable:
        try:
            rows = list(self.lookup_source.iter_rows())
        except SourceReadError as e:
            raise SourceReadError(e.message, self.name) from e
        except Exception as e:
            raise SourceReadError(
                f"Reading lookup source {self.lookup_source.name} failed: {e}", self.name
            ) from e
        if self.key is None:
            self.lookup_table = rows
        else:
            self.lookup_table = {self.key(row): row for row in rows}
        logger.debug("%s: loaded %d lookup rows", self.name, len(rows))
        return self.lookup_table

    def _transform(self, row: Any) -> Any:
        return self.lookup_func(row, self.lookup_table)
