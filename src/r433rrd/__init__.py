"""
r433rrd

Relay rtl_433 sensor readings from syslog/UDP into rrdtool databases and graphs.
"""

# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only

__version__ = "0.1.0"
__author__ = "Sierra Labs"
__email__ = "support@blueplane.ai"

__all__ = ["__version__", "__author__", "__email__"]
