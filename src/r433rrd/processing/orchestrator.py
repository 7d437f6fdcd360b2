# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Ingestion orchestrator.

Takes a parsed sample through its RRD lifecycle:
- create the store if rrdtool cannot read it
- append the sample
- render the scheduled graphs once the sensor's graph deadline has passed
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from ..errors import RRDToolError
from .parser import ParsedSample
from .rrdtool.gateway import RRDBackend
from .rrdtool.schema import create_args, graph_args, graph_output_path
from .schedule import GraphSchedule

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """What happened to one sample."""

    label: str
    created: bool = False
    rendered: bool = False


class IngestionOrchestrator:
    """
    Writes samples to their RRD files and throttles graph rendering.

    A sensor seen for the first time is scheduled for its first render one
    interval later. After each successful render the deadline moves to the
    render time plus the interval; a failed render leaves it alone so the
    next sample retries.
    """

    def __init__(
        self,
        backend: RRDBackend,
        schedule: GraphSchedule,
        graph_path: str,
        graph_schedule: Sequence[str],
        graph_interval: float,
    ):
        """
        Initialize orchestrator.

        Args:
            backend: rrdtool backend
            schedule: Graph deadlines, owned by this orchestrator
            graph_path: Directory prefix for graph images
            graph_schedule: Schedule tokens ("day", "week", ...), one graph each
            graph_interval: Minimum seconds between render passes per sensor
        """
        self.backend = backend
        self.schedule = schedule
        self.graph_path = graph_path
        self.graph_schedule = list(graph_schedule)
        self.graph_interval = graph_interval

    @classmethod
    def from_config(cls, config, backend: RRDBackend, schedule: GraphSchedule) -> "IngestionOrchestrator":
        return cls(
            backend=backend,
            schedule=schedule,
            graph_path=config.graph_path,
            graph_schedule=config.graph_schedule,
            graph_interval=config.graph_interval,
        )

    def ingest(self, sample: ParsedSample) -> IngestResult:
        """
        Store one sample and render graphs if they are due.

        Raises:
            CreateFailed, UpdateFailed, RenderFailed
        """
        result = IngestResult(label=sample.label)
        result.created = self.ensure_store(sample)

        self.backend.update(sample.store_path, sample.values)

        result.rendered = self.maybe_render(sample)
        return result

    def ensure_store(self, sample: ParsedSample) -> bool:
        """Create the store if it does not exist. Returns True if created."""
        logger.debug(f"Calling rrdtool info on {sample.store_path}")
        try:
            if self.backend.exists(sample.store_path):
                return False
            logger.debug(f"RRD file for {sample.label} does not exist, creating")
        except RRDToolError as e:
            logger.debug(f"RRD file for {sample.label} did not exist, creating: {e}")

        self.backend.create(sample.store_path, create_args())
        logger.info(f"Created RRD file {sample.store_path}")
        return True

    def maybe_render(self, sample: ParsedSample) -> bool:
        """Render graphs if the sensor's deadline has passed. Returns True if rendered."""
        now = self.schedule.now()
        deadline = self.schedule.get(sample.label)

        if deadline is None:
            self.schedule.set(sample.label, now + self.graph_interval)
            logger.debug(f"First sample from {sample.label}, first graph in {self.graph_interval}s")
            return False

        if now < deadline:
            logger.debug(f"Skipping graph for {sample.store_path}")
            return False

        self.render_graphs(sample.label, sample.store_path)
        self.schedule.set(sample.label, now + self.graph_interval)
        return True

    def render_graphs(self, label: str, store_path: str) -> None:
        """
        Render one graph per schedule token.

        Stops at the first failure; graphs already written are kept.
        """
        logger.info(f"Generating graphs for {label}")
        for token in self.graph_schedule:
            output_path = graph_output_path(self.graph_path, token, label)
            self.backend.render(output_path, graph_args(store_path, label, token))
            logger.debug(f"Rendered graph {output_path}")
