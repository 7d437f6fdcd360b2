# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Graph schedule: the next time each sensor's graphs may be rendered.

The schedule maps a sensor label to a deadline in seconds. Entries are added
the first time a label is seen and pushed forward after every render; they
are never removed, so the map holds one entry per sensor ever observed.

GraphSchedule keeps deadlines in process memory on the monotonic clock.
RedisGraphSchedule keeps them in a Redis hash on the wall clock so throttling
survives a restart.
"""

import logging
import time
from typing import Callable, Dict, Iterator, Optional, Set, Tuple

import redis

logger = logging.getLogger(__name__)


class GraphSchedule:
    """In-memory label -> deadline map."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize schedule.

        Args:
            clock: Returns the current time in seconds
        """
        self.clock = clock
        self._deadlines: Dict[str, float] = {}

    def now(self) -> float:
        return self.clock()

    def get(self, label: str) -> Optional[float]:
        """Deadline for a label, or None if the label has never been seen."""
        return self._deadlines.get(label)

    def set(self, label: str, deadline: float) -> None:
        self._deadlines[label] = deadline

    def items(self) -> Iterator[Tuple[str, float]]:
        return iter(list(self._deadlines.items()))

    def __contains__(self, label: str) -> bool:
        return self.get(label) is not None

    def __len__(self) -> int:
        return len(self._deadlines)


class RedisGraphSchedule(GraphSchedule):
    """
    Label -> deadline map persisted in a Redis hash.

    Deadlines are epoch seconds. Values are cached locally; if Redis is
    unavailable the schedule keeps working from the cache and logs a warning.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        key: str = "r433rrd:graph_schedule",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize Redis-backed schedule.

        Args:
            redis_client: Redis client instance
            key: Hash holding the deadlines
            clock: Returns the current epoch time in seconds
        """
        super().__init__(clock=clock)
        self.redis = redis_client
        self.key = key
        # Labels looked up while Redis was unreadable
        self._unread: Set[str] = set()

    def get(self, label: str) -> Optional[float]:
        if label in self._deadlines:
            return self._deadlines[label]

        try:
            value = self.redis.hget(self.key, label)
        except redis.RedisError as e:
            logger.warning(f"Failed to read graph schedule for {label}: {e}")
            self._unread.add(label)
            return None

        self._unread.discard(label)
        if value is None:
            return None

        try:
            deadline = float(value.decode("utf-8") if isinstance(value, bytes) else value)
        except ValueError:
            logger.warning(f"Ignoring invalid graph deadline for {label}: {value!r}")
            return None

        self._deadlines[label] = deadline
        return deadline

    def set(self, label: str, deadline: float) -> None:
        self._deadlines[label] = deadline
        try:
            if label in self._unread:
                # Never overwrite a deadline Redis may already hold for this label
                if not self.redis.hsetnx(self.key, label, repr(deadline)):
                    del self._deadlines[label]
                    logger.info(f"Keeping persisted graph schedule for {label}")
            else:
                self.redis.hset(self.key, label, repr(deadline))
            self._unread.discard(label)
        except redis.RedisError as e:
            logger.warning(f"Failed to persist graph schedule for {label}: {e}")

    def load(self) -> int:
        """
        Load every stored deadline into the local cache.

        Returns:
            Number of entries loaded
        """
        try:
            stored = self.redis.hgetall(self.key)
        except redis.RedisError as e:
            logger.warning(f"Failed to load graph schedule from {self.key}: {e}")
            return 0

        loaded = 0
        for raw_label, raw_value in stored.items():
            label = raw_label.decode("utf-8") if isinstance(raw_label, bytes) else raw_label
            try:
                value = raw_value.decode("utf-8") if isinstance(raw_value, bytes) else raw_value
                self._deadlines[label] = float(value)
                loaded += 1
            except ValueError:
                logger.warning(f"Ignoring invalid graph deadline for {label}: {raw_value!r}")

        logger.info(f"Loaded {loaded} graph schedule entries from Redis")
        return loaded


def create_schedule(config) -> GraphSchedule:
    """Build the schedule selected by ``schedule.backend`` in the config."""
    if config.schedule_backend == "redis":
        client = redis.Redis(
            host=config.redis_host,
            port=config.redis_port,
            db=config.redis_db,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
        schedule = RedisGraphSchedule(client, key=config.redis_key)
        schedule.load()
        return schedule

    return GraphSchedule()
