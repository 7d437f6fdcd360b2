# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Shared components used by the server and the CLI.
"""

from .config import Config

__all__ = ["Config"]
