# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
RRD file layout and graph definitions.

Every sensor store has the same layout: two gauge data sources sampled every
30 minutes, with AVERAGE and MAX archives at four resolutions.
"""

from typing import List

STEP_SECONDS = 1800
HEARTBEAT_SECONDS = 2000

DATA_SOURCES = ("temperature", "humidity")

# (steps per row, rows)
AVERAGE_ARCHIVES = ((1, 600), (6, 700), (24, 775), (288, 797))
MAX_ARCHIVES = ((1, 600), (6, 700), (24, 775), (444, 797))

GRAPH_WIDTH = 800
GRAPH_HEIGHT = 200


def create_args() -> List[str]:
    """Arguments for ``rrdtool create`` after the file name."""
    args = ["--step", str(STEP_SECONDS), "--start", "0"]
    args += [f"DS:{ds}:GAUGE:{HEARTBEAT_SECONDS}:U:U" for ds in DATA_SOURCES]
    args += [f"RRA:AVERAGE:0.5:{steps}:{rows}" for steps, rows in AVERAGE_ARCHIVES]
    args += [f"RRA:MAX:0.5:{steps}:{rows}" for steps, rows in MAX_ARCHIVES]
    return args


def update_value(values: List[str]) -> str:
    """The ``N:<t>:<h>`` argument for ``rrdtool update``."""
    return "N:" + ":".join(values)


def graph_output_path(graph_path: str, token: str, label: str) -> str:
    """Image file for one schedule token, e.g. ``<dir>metrics-day.Foo.ID1.rrd.png``."""
    return f"{graph_path}metrics-{token}.{label}.png"


def graph_args(store_path: str, label: str, token: str) -> List[str]:
    """
    Arguments for ``rrdtool graph`` after the output file name.

    The window reaches one unit back, taken from the first character of the
    token ("day" -> -1d, "week" -> -1w).
    """
    return [
        "--start", f"-1{token[0]}",
        "--title", label,
        "--vertical-label=C",
        "--right-axis-label=%",
        "-w", str(GRAPH_WIDTH),
        "-h", str(GRAPH_HEIGHT),
        f"DEF:t={store_path}:temperature:AVERAGE",
        f"DEF:h={store_path}:humidity:AVERAGE",
        r"LINE1:t#00FF00:Temperature\t\t",
        r"LINE2:h#0000FF:Humidity\n",
        r"GPRINT:t:AVERAGE:T avg %5.1lf C\t\t",
        r"GPRINT:h:AVERAGE:H avg %5.0lf\n",
        r"GPRINT:t:MAX:T max %5.1lf C\t\t",
        r"GPRINT:h:MAX:H max %5.0lf\n",
    ]
