# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Shared fixtures: a recording rrdtool backend and a controllable clock.
"""

from typing import List, Optional, Sequence, Set, Tuple

import pytest

from r433rrd.errors import CreateFailed, InfoFailed, RenderFailed, UpdateFailed
from r433rrd.processing.orchestrator import IngestionOrchestrator
from r433rrd.processing.rrdtool.gateway import RRDBackend
from r433rrd.processing.schedule import GraphSchedule


class FakeBackend(RRDBackend):
    """In-memory RRDBackend that records every call."""

    def __init__(self, existing: Optional[Set[str]] = None):
        self.stores: Set[str] = set(existing or ())
        self.calls: List[Tuple[str, str, list]] = []
        self.fail_create = False
        self.fail_update = False
        self.fail_render_on: Optional[str] = None
        self.missing_raises = True

    def exists(self, store_path: str) -> bool:
        self.calls.append(("exists", store_path, []))
        if store_path not in self.stores:
            if not self.missing_raises:
                return False
            raise InfoFailed(store_path, returncode=1, stderr="No such file or directory")
        return True

    def create(self, store_path: str, args: Sequence[str]) -> None:
        self.calls.append(("create", store_path, list(args)))
        if self.fail_create:
            raise CreateFailed(store_path, returncode=1, stderr="permission denied")
        self.stores.add(store_path)

    def update(self, store_path: str, values: Sequence[str]) -> None:
        self.calls.append(("update", store_path, list(values)))
        if self.fail_update:
            raise UpdateFailed(store_path, returncode=1, stderr="illegal attempt to update")

    def render(self, output_path: str, args: Sequence[str]) -> None:
        self.calls.append(("render", output_path, list(args)))
        if self.fail_render_on and self.fail_render_on in output_path:
            raise RenderFailed(output_path, returncode=1, stderr="cannot open font")

    def ops(self) -> List[str]:
        return [op for op, _, _ in self.calls]

    def calls_for(self, op: str) -> List[Tuple[str, str, list]]:
        return [call for call in self.calls if call[0] == op]


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def schedule(clock) -> GraphSchedule:
    return GraphSchedule(clock=clock)


@pytest.fixture
def orchestrator(backend, schedule) -> IngestionOrchestrator:
    return IngestionOrchestrator(
        backend=backend,
        schedule=schedule,
        graph_path="/graphs/",
        graph_schedule=["day", "week", "month"],
        graph_interval=300,
    )


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Run with no R433RRD_* variables and an empty working directory."""
    for var in ("R433RRD_CONFIG", "R433RRD_LISTEN_ADDR", "R433RRD_RRD_PATH",
                "R433RRD_GRAPH_PATH", "R433RRD_LOG_LEVEL", "R433RRD_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
