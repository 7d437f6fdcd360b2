# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""rrdtool invocation and RRD layout."""

from .gateway import RRDBackend, RRDToolGateway

__all__ = ["RRDBackend", "RRDToolGateway"]
