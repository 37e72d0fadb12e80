"""Row-by-row transformations."""

from typing import Any, Callable, Iterable, Optional

from rowflow.dataflow.stage import DEFAULT_BUFFER_SIZE, TargetStage


class RowTransformation(TargetStage):
    """Applies ``func`` to every row and forwards the result.

    Args:
        func: Maps one input row to one output row
        init_action: Called once before the first row is transformed
    """

    def __init__(
        self,
        func: Callable[[Any], Any],
        init_action: Optional[Callable[[], None]] = None,
        name: Optional[str] = None,
        buffer_size: Optional[int] = DEFAULT_BUFFER_SIZE,
        logging_threshold_rows: Optional[int] = None,
        disable_logging: bool = False,
    ):
        super().__init__(name, buffer_size, logging_threshold_rows, disable_logging)
        self.func = func
        self.init_action = init_action
        self._initialized = False

    def _init_once(self) -> None:
        if not self._initialized:
            self._initialized = True
            if self.init_action is not None:
                self.init_action()

    def _process(self, row: Any) -> None:
        self._init_once()
        self._emit(self.func(row))
        self.log_progress(1)


class RowMultiplication(RowTransformation):
    """Maps every row to zero or more output rows."""

    def __init__(self, func: Callable[[Any], Iterable[Any]], **kwargs):
        super().__init__(func, **kwargs)

    def _process(self, row: Any) -> None:
        self._init_once()
        for out in self.func(row) or ():
            self._emit(out)
        self.log_progress(1)
