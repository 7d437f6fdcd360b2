# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Ingestion pipeline for rtl_433 readings.

Provides:
- Syslog/JSON parsing into per-sensor samples
- rrdtool gateway (create, info, update, graph)
- Graph schedule with optional Redis persistence
- Ingestion orchestrator and UDP relay server
"""

from .orchestrator import IngestionOrchestrator, IngestResult
from .parser import ParsedSample, RawSample, parse_line
from .schedule import GraphSchedule, RedisGraphSchedule

__all__ = [
    'IngestionOrchestrator',
    'IngestResult',
    'ParsedSample',
    'RawSample',
    'parse_line',
    'GraphSchedule',
    'RedisGraphSchedule',
]
