# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Configuration management for the relay.

Values come from built-in defaults, then the YAML config file, then
R433RRD_* environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..errors import ConfigError

DEFAULT_CONFIG_FILE = "r433rrd.yaml"
SCHEDULE_BACKENDS = ("memory", "redis")


def _default_schedule() -> List[str]:
    return ["day", "week", "month"]


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Nested config section, or {} if missing or not a mapping."""
    value = data.get(name)
    return value if isinstance(value, dict) else {}


@dataclass
class Config:
    """Relay configuration container."""

    # Listener settings
    listen_addr: str = "0.0.0.0:5514"
    recv_buffer_size: int = 1024
    queue_size: int = 256

    # Storage settings
    rrd_path: str = "/var/lib/r433rrd/"
    graph_path: str = "/var/lib/r433rrd/graphs/"

    # Graph settings
    graph_interval: int = 300  # seconds
    graph_schedule: List[str] = field(default_factory=_default_schedule)

    # rrdtool settings
    rrdtool_binary: str = "rrdtool"
    rrdtool_timeout: Optional[float] = None

    # Schedule persistence
    schedule_backend: str = "memory"  # memory, redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_key: str = "r433rrd:graph_schedule"

    # Logging
    log_level: str = "INFO"

    # Config file path
    config_path: Optional[Path] = None

    def __post_init__(self):
        """Load the config file and environment overrides."""
        if self.config_path is None:
            env_path = os.environ.get("R433RRD_CONFIG")
            self.config_path = Path(env_path) if env_path else Path(DEFAULT_CONFIG_FILE)
        else:
            self.config_path = Path(self.config_path)

        if self.config_path.exists():
            self.load_from_file()

        self.load_from_env()

    def load_from_file(self):
        """Load configuration from YAML file."""
        try:
            with open(self.config_path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not load config file {self.config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {self.config_path} must contain a mapping")

        try:
            self._apply(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value in config file {self.config_path}: {e}") from e

    def _apply(self, data: Dict[str, Any]):
        self.listen_addr = str(data.get("listen_addr", self.listen_addr))
        self.recv_buffer_size = int(data.get("recv_buffer_size", self.recv_buffer_size))
        self.rrd_path = str(data.get("rrd_path", self.rrd_path))
        self.graph_path = str(data.get("graph_path", self.graph_path))
        self.graph_interval = int(data.get("graph_interval", self.graph_interval))
        self.log_level = str(data.get("log_level", self.log_level))

        schedule = data.get("graph_schedule", self.graph_schedule)
        if isinstance(schedule, str):
            schedule = [schedule]
        self.graph_schedule = [str(token) for token in schedule]

        # rrdtool settings
        rrdtool = _section(data, "rrdtool")
        self.rrdtool_binary = rrdtool.get("binary", self.rrdtool_binary)
        timeout = rrdtool.get("timeout", self.rrdtool_timeout)
        self.rrdtool_timeout = float(timeout) if timeout is not None else None

        # Server settings
        server = _section(data, "server")
        self.queue_size = int(server.get("queue_size", self.queue_size))

        # Schedule settings
        schedule_section = _section(data, "schedule")
        self.schedule_backend = schedule_section.get("backend", self.schedule_backend)

        # Redis settings
        redis_section = _section(data, "redis")
        self.redis_host = redis_section.get("host", self.redis_host)
        self.redis_port = int(redis_section.get("port", self.redis_port))
        self.redis_db = int(redis_section.get("db", self.redis_db))
        self.redis_key = redis_section.get("key", self.redis_key)

    def load_from_env(self):
        """Load configuration from environment variables."""
        if env_addr := os.environ.get("R433RRD_LISTEN_ADDR"):
            self.listen_addr = env_addr

        if env_rrd := os.environ.get("R433RRD_RRD_PATH"):
            self.rrd_path = env_rrd

        if env_graph := os.environ.get("R433RRD_GRAPH_PATH"):
            self.graph_path = env_graph

        if env_level := os.environ.get("R433RRD_LOG_LEVEL"):
            self.log_level = env_level

    @property
    def listen_address(self) -> Tuple[str, int]:
        """The listen address as a (host, port) tuple."""
        host, sep, port = self.listen_addr.rpartition(":")
        if not sep or not host:
            raise ConfigError(f"listen_addr must be host:port, got {self.listen_addr!r}")
        try:
            return host.strip("[]"), int(port)
        except ValueError as e:
            raise ConfigError(f"Invalid port in listen_addr {self.listen_addr!r}") from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to the YAML file layout."""
        return {
            "listen_addr": self.listen_addr,
            "rrd_path": self.rrd_path,
            "graph_path": self.graph_path,
            "graph_interval": self.graph_interval,
            "graph_schedule": list(self.graph_schedule),
            "recv_buffer_size": self.recv_buffer_size,
            "log_level": self.log_level,
            "rrdtool": {
                "binary": self.rrdtool_binary,
                "timeout": self.rrdtool_timeout,
            },
            "server": {
                "queue_size": self.queue_size,
            },
            "schedule": {
                "backend": self.schedule_backend,
            },
            "redis": {
                "host": self.redis_host,
                "port": self.redis_port,
                "db": self.redis_db,
                "key": self.redis_key,
            },
        }

    def validate(self) -> List[str]:
        """Validate configuration values, returning a list of problems."""
        errors = []

        try:
            _, port = self.listen_address
            if not 0 <= port <= 65535:
                errors.append("listen_addr port must be between 0 and 65535")
        except ConfigError as e:
            errors.append(str(e))

        if self.graph_interval <= 0:
            errors.append("graph_interval must be positive")

        if not self.graph_schedule:
            errors.append("graph_schedule must contain at least one entry")
        elif any(not token for token in self.graph_schedule):
            errors.append("graph_schedule entries must not be empty")

        if self.recv_buffer_size <= 0:
            errors.append("recv_buffer_size must be positive")

        if self.queue_size <= 0:
            errors.append("server.queue_size must be positive")

        if self.rrdtool_timeout is not None and self.rrdtool_timeout <= 0:
            errors.append("rrdtool.timeout must be positive when set")

        if self.schedule_backend not in SCHEDULE_BACKENDS:
            errors.append(
                f"schedule.backend must be one of {', '.join(SCHEDULE_BACKENDS)}"
            )

        return errors
