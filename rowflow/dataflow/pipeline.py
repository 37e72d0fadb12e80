"""Pipeline: runs a linked network of stages as one unit.

The network is captured as a ``networkx.DiGraph`` of stages and validated
before any thread starts.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Dict, Iterable, List, Optional, Tuple

import networkx as nx

from rowflow.dataflow.sources import DataFlowSource
from rowflow.dataflow.stage import DataFlowStage, TargetStage
from rowflow.exceptions import PipelineError, UpstreamFaultedError
from rowflow.logging import get_logger

logger = get_logger(__name__)


class Pipeline:
    """All stages reachable from ``sources``.

    Example:
        >>> source = CsvSource("orders.csv")
        >>> source.link_to(RowTransformation(clean)).link_to(DbDestination(cm, "orders"))
        >>> Pipeline([source]).run()
    """

    def __init__(self, sources: Iterable[DataFlowSource], name: str = "pipeline"):
        self.sources: List[DataFlowSource] = list(sources)
        if not self.sources:
            raise ValueError("A pipeline needs at least one source")
        self.name = name
        self.graph = self._build_graph()

    def _build_graph(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        pending: List[DataFlowStage] = list(self.sources)
        while pending:
            stage = pending.pop()
            if stage in graph and graph.nodes[stage].get("visited"):
                continue
            graph.add_node(stage, name=stage.name, kind=type(stage).__name__, visited=True)
            for link in stage.links:
                graph.add_edge(stage, link.target, predicate=link.predicate is not None)
                pending.append(link.target)
            for predecessor in stage.predecessors:
                if predecessor not in graph:
                    pending.append(predecessor)
        return graph

    @property
    def stages(self) -> List[DataFlowStage]:
        """Stages in topological order."""
        return list(nx.topological_sort(self.graph))

    @property
    def terminal_stages(self) -> List[DataFlowStage]:
        return [stage for stage in self.graph.nodes if self.graph.out_degree(stage) == 0]

    def validate(self) -> None:
        """Check the graph shape.

        Raises:
            ValueError: If the graph has a cycle, a source with inputs or a
                destination with outputs
        """
        if not nx.is_directed_acyclic_graph(self.graph):
            cycle = nx.find_cycle(self.graph)
            names = " -> ".join(edge[0].name for edge in cycle)
            raise ValueError(f"Pipeline {self.name} contains a cycle: {names}")
        for stage in self.graph.nodes:
            if isinstance(stage, DataFlowSource) and self.graph.in_degree(stage) > 0:
                raise ValueError(f"Source {stage.name} cannot have inputs")
            if not stage.produces_output and self.graph.out_degree(stage) > 0:
                raise ValueError(f"Destination {stage.name} cannot have outputs")
        unreachable = [
            stage.name
            for stage in self.graph.nodes
            if not isinstance(stage, DataFlowSource) and self.graph.in_degree(stage) == 0
        ]
        if unreachable:
            raise ValueError(f"Stages without input: {', '.join(unreachable)}")
        sources = [s for s in self.graph.nodes if isinstance(s, DataFlowSource)]
        missing = [s.name for s in sources if s not in self.sources]
        if missing:
            raise ValueError(f"Sources linked into the pipeline but not run: {', '.join(missing)}")

    def run(self, timeout: Optional[float] = None) -> None:
        """Run every source and wait for every terminal stage.

        Raises:
            PipelineError: Naming the first stage that faulted and its cause
            TimeoutError: If the sources or terminal stages are still running
                after ``timeout`` seconds
        """
        self.validate()
        order = self.stages
        logger.info(
            "Running pipeline %s with %d stages from %d sources",
            self.name,
            len(order),
            len(self.sources),
        )
        for stage in order:
            if isinstance(stage, TargetStage):
                stage.start()

        deadline = None if timeout is None else time.monotonic() + timeout
        errors: Dict[DataFlowStage, BaseException] = {}
        executor = ThreadPoolExecutor(
            max_workers=len(self.sources), thread_name_prefix=f"rowflow-{self.name}"
        )
        try:
            futures = [(source, executor.submit(source.execute)) for source in self.sources]
            for source, future in futures:
                try:
                    error = future.exception(timeout=self._remaining(deadline))
                except FutureTimeoutError:
                    raise TimeoutError(
                        f"Pipeline {self.name}: source {source.name} did not finish "
                        f"within {timeout} seconds"
                    ) from None
                if error is not None:
                    errors[source] = error
        finally:
            # A stalled source keeps its thread; do not block on it
            executor.shutdown(wait=False)

        for stage in self.terminal_stages:
            try:
                stage.wait(self._remaining(deadline))
            except TimeoutError:
                raise
            except Exception as e:
                errors[stage] = e

        if errors:
            stage_name, cause = self._first_failure(order, errors)
            logger.error("Pipeline %s failed in %s: %s", self.name, stage_name, cause)
            raise PipelineError(stage_name, cause) from cause
        logger.info("Pipeline %s completed", self.name)

    @staticmethod
    def _first_failure(
        order: List[DataFlowStage], errors: Dict[DataFlowStage, BaseException]
    ) -> Tuple[str, BaseException]:
        faulted = [stage for stage in order if stage.error is not None]
        for stage in faulted:
            if not isinstance(stage.error, UpstreamFaultedError):
                return stage.name, stage.error
        for stage in order:
            error = errors.get(stage)
            if isinstance(error, UpstreamFaultedError):
                return error.origin_stage, error.cause
            if error is not None:
                return stage.name, error
        stage = faulted[0]
        return stage.name, stage.error

    @staticmethod
    def _remaining(deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())
