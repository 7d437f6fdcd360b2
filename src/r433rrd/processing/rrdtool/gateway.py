# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Gateway to the rrdtool command line tool.

RRDBackend is the interface the orchestrator talks to; RRDToolGateway runs
the real ``rrdtool`` binary. Tests substitute their own backend.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Type

from ...errors import (
    CreateFailed,
    InfoFailed,
    RenderFailed,
    RRDToolError,
    UpdateFailed,
)
from .schema import update_value

logger = logging.getLogger(__name__)


class RRDBackend(ABC):
    """The four rrdtool operations used by the relay."""

    @abstractmethod
    def exists(self, store_path: str) -> bool:
        """
        Check that the store exists and is readable.

        Raises:
            InfoFailed: If the store is missing or unreadable
        """

    @abstractmethod
    def create(self, store_path: str, args: Sequence[str]) -> None:
        """Create a new store. Raises CreateFailed."""

    @abstractmethod
    def update(self, store_path: str, values: Sequence[str]) -> None:
        """Append one sample at the current time. Raises UpdateFailed."""

    @abstractmethod
    def render(self, output_path: str, args: Sequence[str]) -> None:
        """Render one graph image. Raises RenderFailed."""


class RRDToolGateway(RRDBackend):
    """
    Runs rrdtool as a subprocess for every operation.

    Calls block until rrdtool exits. Nothing is retried; a non-zero exit is
    raised once with the captured output.
    """

    def __init__(self, binary: str = "rrdtool", timeout: Optional[float] = None):
        """
        Initialize gateway.

        Args:
            binary: rrdtool executable name or path
            timeout: Seconds to wait for each call (None = wait forever)
        """
        self.binary = binary
        self.timeout = timeout

    def _run(
        self,
        subcommand: str,
        target: str,
        args: Sequence[str],
        error_cls: Type[RRDToolError],
    ) -> str:
        command: List[str] = [self.binary, subcommand, target, *args]
        logger.debug(f"Running: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise error_cls(
                target,
                command=command,
                stdout=_as_text(e.stdout),
                stderr=f"timed out after {self.timeout}s",
            ) from e
        except OSError as e:
            raise error_cls(target, command=command, stderr=str(e)) from e

        if result.returncode != 0:
            logger.debug(f"rrdtool {subcommand} returned {result.returncode} for {target}")
            raise error_cls(
                target,
                command=command,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        return result.stdout

    def info(self, store_path: str) -> str:
        """Return ``rrdtool info`` output for a store."""
        return self._run("info", store_path, [], InfoFailed)

    def exists(self, store_path: str) -> bool:
        self.info(store_path)
        logger.debug(f"rrdtool info succeeded for {store_path}")
        return True

    def create(self, store_path: str, args: Sequence[str]) -> None:
        self._run("create", store_path, args, CreateFailed)
        logger.debug(f"Created file: {store_path}")

    def update(self, store_path: str, values: Sequence[str]) -> None:
        self._run("update", store_path, [update_value(list(values))], UpdateFailed)
        logger.debug(f"Updated file: {store_path}")

    def render(self, output_path: str, args: Sequence[str]) -> None:
        self._run("graph", output_path, args, RenderFailed)
        logger.debug(f"Created graph: {output_path}")

    def version(self) -> Optional[str]:
        """Banner line printed by rrdtool when run without arguments, or None."""
        try:
            result = subprocess.run(
                [self.binary],
                capture_output=True,
                text=True,
                timeout=5,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Could not run {self.binary}: {e}")
            return None

        lines = result.stdout.strip().splitlines()
        return lines[0] if lines else None


def _as_text(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
