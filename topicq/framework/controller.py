"""This module contains the controller which runs the workloads through producer and consumer pools.

For one workload the controller

1. optionally generates a random input file,
2. subscribes the configured number of consumers to the workload topic,
3. starts the configured number of producers sharing the input file,
4. waits until producers and consumers finished and closes the result file.

The producers of a workload share one :py:class:`~topicq.framework.broker.ProducerGroup`,
so the topic is stopped only after the last producer read its last item.
"""

# pylint: disable=logging-fstring-interpolation
import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, TextIO

from attrs import define, field

from topicq.framework.broker import Broker, ProducerGroup, Subscription, Topic
from topicq.framework.worker import Producer, SharedSource
from topicq.util.configuration import Configuration, WorkloadConfig
from topicq.workload import coordinates, graph
from topicq.workload.sink import ResultWriter

logger = logging.getLogger("Controller")

COORDINATES_TOPIC: Topic[coordinates.CoordinateTask] = Topic("coordinates")
GRAPHS_TOPIC: Topic[graph.Graph] = Topic("graphs")


@define(kw_only=True)
class PipelineReport:
    """Summary of one workload run."""

    workload: str
    published: int = 0
    """Items accepted by the topic queue."""
    dropped: int = 0
    """Items refused because the topic was already stopped."""
    delivered: int = 0
    """Items handled by consumers."""
    written: int = 0
    """Results written to the output file."""
    rejected: int = 0
    """Items a consumer handled without writing a result, like invalid graphs."""
    failed_workers: List[str] = field(factory=list)
    """Names of producers and consumers that terminated with an error."""

    @property
    def success(self) -> bool:
        """True if no worker failed and nothing was dropped."""
        return not self.failed_workers and self.dropped == 0


@define(frozen=True)
class _Workload:
    name: str
    topic: Topic
    read: Callable[[TextIO, int], Iterator]
    handler: Callable[[ResultWriter], Callable]
    generate: Callable[..., Path]


WORKLOADS = {
    "coordinates": _Workload(
        name="coordinates",
        topic=COORDINATES_TOPIC,
        read=coordinates.read_tasks,
        handler=coordinates.CoordinatesHandler,
        generate=lambda config: coordinates.populate_coordinates(
            config.input, config.item_count, config.block_size, config.seed
        ),
    ),
    "graphs": _Workload(
        name="graphs",
        topic=GRAPHS_TOPIC,
        read=graph.read_graphs,
        handler=graph.GraphHandler,
        generate=lambda config: graph.generate_adjacency_lists(
            config.input, config.item_count, config.block_size, config.seed
        ),
    ),
}


class PipelineController:
    """Run the configured workloads.

    Parameters
    ----------
    configuration : Configuration
        The topicq configuration.
    broker_factory : Callable[[], Broker], optional
        Creates the broker of one workload run. Topics are never recreated within a
        broker, so every run gets a fresh one. Defaults to a :code:`Broker` with the
        configured queue capacity.
    """

    def __init__(
        self,
        configuration: Configuration,
        broker_factory: Optional[Callable[[], Broker]] = None,
    ) -> None:
        self._configuration = configuration
        self._broker_factory = broker_factory or (
            lambda: Broker(default_capacity=configuration.queue_capacity)
        )
        self.broker: Optional[Broker] = None

    def run(self, workloads: Optional[Iterable[str]] = None) -> List[PipelineReport]:
        """Run the given workloads, all enabled ones if none are given."""
        enabled = self._configuration.workloads()
        names: Sequence[str] = list(workloads) if workloads is not None else list(enabled)
        reports = []
        for name in names:
            workload_config = getattr(self._configuration, name)
            reports.append(self._run_workload(WORKLOADS[name], workload_config))
        return reports

    def run_coordinates(self) -> PipelineReport:
        """Run the nearest point workload."""
        return self._run_workload(WORKLOADS["coordinates"], self._configuration.coordinates)

    def run_graphs(self) -> PipelineReport:
        """Run the graph filter workload."""
        return self._run_workload(WORKLOADS["graphs"], self._configuration.graphs)

    def stop(self) -> None:
        """Stop every topic of the running workload so that all workers return."""
        if self.broker is not None:
            self.broker.shut_down()

    def _run_workload(self, workload: _Workload, config: WorkloadConfig) -> PipelineReport:
        if config.generate_input:
            workload.generate(config)
        logger.info(
            f"Starting workload '{workload.name}' with {config.producers} producers "
            f"and {config.consumers} consumers"
        )
        broker = self._broker_factory()
        self.broker = broker
        report = PipelineReport(workload=workload.name)
        with open(config.input, encoding="utf-8") as stream, ResultWriter.open(
            config.output
        ) as sink:
            source = SharedSource(workload.read(stream, config.block_size))
            handlers = [workload.handler(sink) for _ in range(config.consumers)]
            subscriptions = [
                broker.subscribe(
                    workload.topic,
                    handler,
                    name=f"{workload.name}-consumer-{number}",
                )
                for number, handler in enumerate(handlers, start=1)
            ]
            group = ProducerGroup(broker, workload.topic, config.producers)
            producers = [
                Producer(
                    broker,
                    workload.topic,
                    source,
                    group,
                    name=f"{workload.name}-producer-{number}",
                )
                for number in range(1, config.producers + 1)
            ]
            for producer in producers:
                producer.start()
            try:
                self._wait(broker, workload.topic, producers, subscriptions)
            except KeyboardInterrupt:
                logger.warning(f"Interrupted, stopping workload '{workload.name}'")
                broker.shut_down()
                for worker in [*producers, *subscriptions]:
                    worker.join()
                raise
        report.published = sum(producer.published for producer in producers)
        report.dropped = sum(producer.dropped for producer in producers)
        report.delivered = sum(subscription.delivered for subscription in subscriptions)
        report.written = sink.blocks_written
        report.rejected = sum(getattr(handler, "rejected", 0) for handler in handlers)
        report.failed_workers = [
            worker.name for worker in [*producers, *subscriptions] if worker.error is not None
        ]
        logger.info(
            f"Finished workload '{workload.name}': published {report.published}, "
            f"delivered {report.delivered}, written {report.written}, "
            f"rejected {report.rejected}, dropped {report.dropped}"
        )
        if report.failed_workers:
            logger.error(f"Failed workers: {', '.join(report.failed_workers)}")
        return report

    def _wait(
        self,
        broker: Broker,
        topic: Topic,
        producers: List[Producer],
        subscriptions: List[Subscription],
    ) -> None:
        workers = [*producers, *subscriptions]
        while True:
            alive = [worker for worker in workers if worker.is_alive()]
            if not alive:
                return
            alive[0].join(self._configuration.timeout)
            consumers_alive = any(subscription.is_alive() for subscription in subscriptions)
            if not consumers_alive and not broker.has_stopped_publishing(topic):
                logger.error(f"All consumers of topic '{topic}' terminated, stopping producers")
                broker.stop_publishing(topic)
