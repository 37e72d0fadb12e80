"""Stage and link primitives shared by sources, transformations and destinations."""

import itertools
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, List, Optional

from rowflow.dataflow.channel import END_OF_DATA, Channel, ChannelFault
from rowflow.exceptions import UpstreamFaultedError
from rowflow.logging import get_logger
from rowflow.tasks.base import Loggable

logger = get_logger(__name__)

DEFAULT_BUFFER_SIZE = 1000

Predicate = Callable[[Any], bool]

_stage_ids = itertools.count(1)


class StageState(Enum):
    """Lifecycle of a stage."""

    IDLE = auto()
    RUNNING = auto()
    COMPLETING = auto()
    COMPLETED = auto()
    FAULTED = auto()


@dataclass
class Link:
    """Directed edge between two stages."""

    source: "DataFlowStage"
    target: "TargetStage"
    predicate: Optional[Predicate] = None
    propagate_completion: bool = True

    def accepts(self, row: Any) -> bool:
        return self.predicate is None or bool(self.predicate(row))

    def __repr__(self) -> str:
        return f"Link({self.source.name} -> {self.target.name})"


class DataFlowStage(Loggable):
    """Base class for every stage of a dataflow.

    A stage forwards each row it emits to every outgoing link whose predicate
    accepts it. Rows accepted by no link are discarded.
    """

    accepts_input = False
    produces_output = True

    def __init__(
        self,
        name: Optional[str] = None,
        logging_threshold_rows: Optional[int] = None,
        disable_logging: bool = False,
    ):
        self.name = name or f"{type(self).__name__}_{next(_stage_ids)}"
        self._init_logging(self.name, disable_logging, logging_threshold_rows)
        self.state = StageState.IDLE
        self.error: Optional[BaseException] = None
        self.links: List[Link] = []
        self.incoming: List[Link] = []
        self.discarded_rows = 0
        self._done = threading.Event()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, state={self.state.name})"

    @property
    def successors(self) -> List["TargetStage"]:
        return [link.target for link in self.links]

    @property
    def predecessors(self) -> List["DataFlowStage"]:
        return [link.source for link in self.incoming]

    def link_to(
        self,
        target: "TargetStage",
        predicate: Optional[Predicate] = None,
        propagate_completion: bool = True,
    ) -> "TargetStage":
        """Connect this stage to ``target`` and return ``target`` for chaining.

        Args:
            target: Stage receiving the rows
            predicate: Only rows for which it returns True are forwarded
            propagate_completion: Whether completing this stage counts toward
                completing ``target``

        Raises:
            ValueError: If this stage has no output or ``target`` no input
        """
        if not self.produces_output:
            raise ValueError(f"{self.name} does not produce output and cannot be linked")
        if not getattr(target, "accepts_input", False):
            raise ValueError(f"{getattr(target, 'name', target)} does not accept input")
        link = Link(self, target, predicate, propagate_completion)
        self.links.append(link)
        target.incoming.append(link)
        target.input.register_producer(propagate_completion)
        logger.debug("Linked %s -> %s", self.name, target.name)
        return target

    def downstream_stages(self) -> List["TargetStage"]:
        """Every stage reachable from this one, in breadth-first order."""
        seen: List[TargetStage] = []
        queue = list(self.successors)
        while queue:
            stage = queue.pop(0)
            if stage in seen:
                continue
            seen.append(stage)
            queue.extend(stage.successors)
        return seen

    def _emit(self, row: Any) -> None:
        accepted = False
        for link in self.links:
            if link.accepts(row):
                accepted = True
                link.target.input.put(row)
        if self.links and not accepted:
            self.discarded_rows += 1
            logger.debug("%s: row accepted by no link, discarded", self.name)

    def _propagate_completion(self) -> None:
        for link in self.links:
            if link.propagate_completion:
                link.target.input.complete_one()

    def _propagate_fault(self, error: BaseException) -> None:
        origin = self.name
        if isinstance(error, UpstreamFaultedError):
            origin = error.origin_stage
            error = error.cause
        for link in self.links:
            link.target.input.fault(origin, error)

    def _fault(self, error: BaseException) -> None:
        self.state = StageState.FAULTED
        self.error = error
        if isinstance(error, UpstreamFaultedError):
            logger.debug("%s faulted: %s", self.name, error)
        else:
            logger.error("%s faulted: %s", self.name, error)
        self._propagate_fault(error)

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the stage completed or faulted.

        Raises:
            TimeoutError: If the stage is still running after ``timeout``
            Exception: The error the stage faulted with
        """
        if not self._done.wait(timeout):
            raise TimeoutError(f"{self.name} did not complete within {timeout} seconds")
        if self.error is not None:
            raise self.error


class TargetStage(DataFlowStage):
    """A stage with an input channel consumed by its own worker thread."""

    accepts_input = True

    def __init__(
        self,
        name: Optional[str] = None,
        buffer_size: Optional[int] = DEFAULT_BUFFER_SIZE,
        logging_threshold_rows: Optional[int] = None,
        disable_logging: bool = False,
    ):
        super().__init__(name, logging_threshold_rows, disable_logging)
        self.input = Channel(buffer_size, owner=self.name)
        self._thread: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()

    def start(self) -> None:
        """Start the worker thread; calling it again has no effect."""
        with self._start_lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._run, name=f"rowflow-{self.name}", daemon=True
            )
            self._thread.start()

    def post(self, row: Any) -> bool:
        """Feed a row directly into this stage."""
        self.start()
        return self.input.put(row)

    def complete(self) -> None:
        """Complete the input manually, e.g. when no link propagates completion."""
        self.input.complete()

    def _run(self) -> None:
        self.state = StageState.RUNNING
        self.log_start()
        try:
            self._on_start()
            while True:
                item = self.input.get()
                if item is END_OF_DATA:
                    break
                if isinstance(item, ChannelFault):
                    raise UpstreamFaultedError(self.name, item.origin_stage, item.error)
                self._process(item)
            self.state = StageState.COMPLETING
            self._on_complete()
            self._propagate_completion()
            self.state = StageState.COMPLETED
            self.log_finish()
        except Exception as e:
            self.input.close()
            self._fault(e)
        finally:
            try:
                self._on_finish()
            except Exception as e:
                logger.warning("%s: error releasing resources: %s", self.name, e)
            self._done.set()

    def _on_start(self) -> None:
        """Hook run on the worker thread before the first row."""

    def _process(self, row: Any) -> None:
        raise NotImplementedError

    def _on_complete(self) -> None:
        """Hook run after the input drained, before completion propagates."""

    def _on_finish(self) -> None:
        """Hook run after completion or fault to release resources."""
