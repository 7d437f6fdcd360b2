# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""Command modules for the CLI."""

from . import config
from . import graph
from . import parse

__all__ = ["config", "graph", "parse"]
