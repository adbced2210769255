# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Startup banner printed to the pod log before code-server takes over."""

from __future__ import annotations

import os
from datetime import UTC, datetime

from workbench.config import LaunchConfig
from workbench.home import RuntimeLayout


TITLE = "==== OpenShift AI VS Code Workbench ===="


def group_ids() -> list[int]:
    """Return the effective GID followed by supplementary groups.

    Same order as ``id -G``.
    """
    egid = os.getegid()
    return [egid] + [g for g in os.getgroups() if g != egid]


def format_banner(
    config: LaunchConfig,
    layout: RuntimeLayout,
    now: datetime | None = None,
) -> str:
    """Build the banner text.

    Args:
        config: Resolved launch config (bind address and port).
        layout: Prepared layout (runtime home and workspace).
        now: Timestamp to show; defaults to the current UTC time.
    """
    if now is None:
        now = datetime.now(UTC)

    gids = " ".join(str(g) for g in group_ids())
    lines = [
        TITLE,
        f"Timestamp: {now.strftime('%a %b %d %H:%M:%S %Z %Y')}",
        f"Running as UID: {os.geteuid()} / GID(s): {gids}",
        f"HOME={layout.runtime_home}",
        f"Workspace (PVC mount point) => {layout.workspace_dir}",
        f"code-server bind {config.bind_endpoint}",
        "=" * len(TITLE),
    ]
    return "\n".join(lines)


def print_banner(config: LaunchConfig, layout: RuntimeLayout) -> None:
    print(format_banner(config, layout), flush=True)
