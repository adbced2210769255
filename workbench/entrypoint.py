# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Workbench container entrypoint.

Decides where code-server keeps its state, prepares the directories it
needs, prints a banner and hands the process over to code-server:

1. Load the launch config (environment, optionally a YAML file).
2. Use ``HOME`` if it is writable, otherwise ``/tmp/home`` (mode 0700).
3. Create the workspace mount point and the code-server data directories.
   All of these are best-effort.
4. Print the banner.
5. Exec code-server, or run it supervised.

Only configuration errors and launch failures are fatal.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

from workbench.banner import print_banner
from workbench.config import ConfigError, LaunchConfig, load_config
from workbench.home import (
    FALLBACK_HOME,
    WORKSPACE_DIR,
    RuntimeLayout,
    StepResult,
    choose_runtime_home,
    prepare_layout,
)
from workbench.launch import (
    LaunchError,
    build_child_env,
    build_command,
    exec_child,
    run_supervised,
)


logger = logging.getLogger(__name__)

#: Exit status for an unusable config file.
EXIT_CONFIG_ERROR = 1


@dataclass(frozen=True)
class LaunchPlan:
    """Everything needed to start code-server.

    Attributes:
        config: Resolved launch config.
        layout: Runtime home and derived directories.
        argv: code-server command line.
        env: Environment for the child process.
    """

    config: LaunchConfig
    layout: RuntimeLayout
    argv: list[str]
    env: dict[str, str]


def plan_launch(
    env: Mapping[str, str],
    *,
    fallback_home: Path = FALLBACK_HOME,
    workspace_dir: Path = WORKSPACE_DIR,
) -> LaunchPlan:
    """Resolve the launch plan without modifying the filesystem.

    Args:
        env: Environment to read settings from and pass to the child.
        fallback_home: Home used when the primary home is not writable.
        workspace_dir: Workspace mount point.

    Raises:
        ConfigError: If a config file is selected but unusable.
    """
    config = load_config(env)
    decision = choose_runtime_home(config.primary_home, fallback_home)
    layout = RuntimeLayout.derive(decision, workspace_dir)
    return LaunchPlan(
        config=config,
        layout=layout,
        argv=build_command(config, layout),
        env=build_child_env(env, layout),
    )


def prepare(
    env: Mapping[str, str],
    *,
    fallback_home: Path = FALLBACK_HOME,
    workspace_dir: Path = WORKSPACE_DIR,
) -> tuple[LaunchPlan, list[StepResult]]:
    """Resolve the plan and create its directories.

    Safe to run repeatedly; directories that already exist are left as
    they are.

    Returns:
        The plan and the results of the best-effort directory steps.

    Raises:
        ConfigError: If a config file is selected but unusable.
    """
    plan = plan_launch(
        env, fallback_home=fallback_home, workspace_dir=workspace_dir
    )
    results = prepare_layout(plan.layout)
    return plan, results


def resolve_and_launch(
    env: Mapping[str, str] | None = None,
    *,
    supervise: bool = False,
    fallback_home: Path = FALLBACK_HOME,
    workspace_dir: Path = WORKSPACE_DIR,
) -> NoReturn:
    """Run the whole entrypoint and never return.

    On success the process becomes code-server (or, with *supervise*,
    exits with code-server's status).  Failures exit non-zero.

    Args:
        env: Environment to use; defaults to ``os.environ``.
        supervise: Spawn code-server and wait instead of exec.
        fallback_home: Home used when the primary home is not writable.
        workspace_dir: Workspace mount point.
    """
    if env is None:
        env = dict(os.environ)

    try:
        plan, _ = prepare(
            env, fallback_home=fallback_home, workspace_dir=workspace_dir
        )
    except ConfigError as e:
        logger.critical("Configuration error: %s", e)
        sys.exit(EXIT_CONFIG_ERROR)

    print_banner(plan.config, plan.layout)

    try:
        if supervise:
            sys.exit(run_supervised(plan.argv, plan.env))
        exec_child(plan.argv, plan.env)
    except LaunchError as e:
        logger.critical("%s", e)
        sys.exit(e.exit_code)
