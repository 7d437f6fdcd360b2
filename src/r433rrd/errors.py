# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Exception hierarchy for the relay.

Parse errors and rrdtool errors are per-datagram: the server logs them and
moves on to the next datagram. Only configuration and socket errors stop the
process.
"""

from typing import Optional, Sequence


class R433Error(Exception):
    """Base class for all relay errors."""


class ConfigError(R433Error):
    """Configuration file is unreadable or has invalid values."""


# =============================================================================
# PARSE STAGE
# =============================================================================

class ParseError(R433Error):
    """A datagram could not be turned into a sample."""


class MalformedFrame(ParseError):
    """The line is not syslog framed or has no payload field."""


class InvalidPayload(ParseError):
    """The payload is not valid JSON or does not match the sensor schema."""


class UnsupportedSensorType(ParseError):
    """The sensor reports a type that is never recorded (TPMS)."""


class MissingTemperature(ParseError):
    """The payload carries no temperature_C value."""


# =============================================================================
# RRDTOOL STAGE
# =============================================================================

class RRDToolError(R433Error):
    """
    An rrdtool invocation exited non-zero or could not be run.

    Carries the captured output so the failure can be diagnosed from the log.
    """

    action = "run rrdtool"

    def __init__(
        self,
        target: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        self.target = target
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return (
            f"Failed to {self.action} {self.target} (exit {self.returncode}):\n"
            f"stdout: {self.stdout}\nstderr: {self.stderr}"
        )


class InfoFailed(RRDToolError):
    action = "read info for"


class CreateFailed(RRDToolError):
    action = "create"


class UpdateFailed(RRDToolError):
    action = "update"


class RenderFailed(RRDToolError):
    action = "render graph"
