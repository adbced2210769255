# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Workbench CLI — multi-command entry point.

Provides ``workbench <command>``.  Running ``workbench`` with no arguments
starts code-server, so the image can use the bare command as its CMD.

Subcommands:

* ``run``           — prepare directories and launch code-server
* ``check``         — show the resolved launch plan without side effects
* ``print-command`` — print the code-server command line
"""

from __future__ import annotations

import argparse
import logging
import os
import shlex
import shutil
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import NoReturn

from workbench.config import ConfigError
from workbench.entrypoint import plan_launch, resolve_and_launch
from workbench.logging import configure_logging, level_from_env


_DISTRIBUTION = "codeserver-workbench"

_USAGE = """\
usage: workbench [<command>] [args]

commands:
  run            Prepare directories and launch code-server (default)
  check          Show the resolved launch plan without side effects
  print-command  Print the code-server command line

Run 'workbench <command> --help' for command-specific help.\
"""


def _get_version() -> str:
    try:
        return version(_DISTRIBUTION)
    except PackageNotFoundError:
        return "dev"


# ── Terminal colors ─────────────────────────────────────────────────


def _use_color() -> bool:
    """Determine whether to use ANSI color codes in output.

    Returns True when stdout is a TTY and the ``NO_COLOR`` environment
    variable is not set.  ``TERM=dumb`` also disables color.
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return sys.stdout.isatty()


class _Style:
    """ANSI escape helpers.  All methods return plain text when color is off."""

    def __init__(self, color: bool) -> None:
        self._on = color

    def _wrap(self, code: str, text: str) -> str:
        if not self._on:
            return text
        return f"\033[{code}m{text}\033[0m"

    def bold(self, text: str) -> str:
        return self._wrap("1", text)

    def green(self, text: str) -> str:
        return self._wrap("32", text)

    def red(self, text: str) -> str:
        return self._wrap("31", text)

    def yellow(self, text: str) -> str:
        return self._wrap("33", text)

    def dim(self, text: str) -> str:
        return self._wrap("2", text)


# ── run subcommand ──────────────────────────────────────────────────


def cmd_run(argv: list[str]) -> NoReturn:
    """Prepare directories and hand the process over to code-server.

    Args:
        argv: ``--debug`` and ``--supervise`` flags.
    """
    parser = argparse.ArgumentParser(
        prog="workbench run",
        description="Launch code-server for an OpenShift AI workbench.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--supervise",
        action="store_true",
        help=(
            "Run code-server as a child process and forward signals "
            "instead of replacing this process."
        ),
    )
    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.debug else level_from_env()
    )
    resolve_and_launch(supervise=args.supervise)


# ── check subcommand ────────────────────────────────────────────────


def cmd_check(argv: list[str]) -> int:
    """Print the launch plan and whether code-server can be started.

    Nothing is created or launched.

    Args:
        argv: Command arguments (only ``--help``).

    Returns:
        0 if code-server is launchable, 1 otherwise.
    """
    parser = argparse.ArgumentParser(
        prog="workbench check",
        description=(
            "Show the resolved launch plan and whether code-server can be "
            "started, without creating anything."
        ),
    )
    parser.parse_args(argv)

    s = _Style(_use_color())
    print(s.bold(f"Workbench {_get_version()}"))
    print()

    try:
        plan = plan_launch(os.environ)
    except ConfigError as e:
        print(f"  Config:  {s.red('error')} — {e}")
        return 1

    config = plan.config
    layout = plan.layout
    all_ok = True

    print(s.bold("Configuration"))
    source = str(config.source) if config.source else "environment"
    print(f"  Source:  {s.dim(source)}")
    if config.port_is_valid:
        print(f"  Bind:    {config.bind_endpoint}")
    else:
        print(
            f"  Bind:    {config.bind_endpoint}  "
            f"{s.yellow('(port is not a valid TCP port)')}"
        )
    print()

    print(s.bold("Home"))
    print(f"  Primary: {config.primary_home}")
    if layout.home.fallback:
        print(
            f"  Runtime: {layout.runtime_home}  "
            f"{s.yellow('(primary not writable)')}"
        )
    else:
        print(f"  Runtime: {layout.runtime_home}  {s.green('ok')}")
    print(f"  Workspace:      {layout.workspace_dir}")
    print(f"  User data:      {layout.user_data_dir}")
    print(f"  Extensions:     {layout.extensions_dir}")
    print()

    print(s.bold("Binary"))
    found = shutil.which(config.binary, path=plan.env.get("PATH"))
    if found:
        print(f"  {s.green('✓')} {config.binary}: {found}")
    else:
        print(f"  {s.red('✗')} {config.binary}: not found")
        all_ok = False
    print()

    if all_ok:
        print(s.green("Ready to launch."))
    else:
        print(s.red("code-server cannot be launched."))
    return 0 if all_ok else 1


# ── print-command subcommand ────────────────────────────────────────


def cmd_print_command(argv: list[str]) -> int:
    """Print the shell-quoted code-server command line.

    Args:
        argv: Command arguments (only ``--help``).

    Returns:
        0 on success, 1 on a configuration error.
    """
    parser = argparse.ArgumentParser(
        prog="workbench print-command",
        description="Print the code-server command line without launching.",
    )
    parser.parse_args(argv)

    try:
        plan = plan_launch(os.environ)
    except ConfigError as e:
        print(f"workbench: {e}", file=sys.stderr)
        return 1
    print(shlex.join(plan.argv))
    return 0


# ── CLI plumbing ────────────────────────────────────────────────────


_DISPATCH: dict[str, str] = {
    "run": "cmd_run",
    "check": "cmd_check",
    "print-command": "cmd_print_command",
}


def _print_info() -> None:
    """Print version information and available commands."""
    s = _Style(_use_color())
    print(s.bold(f"Workbench {_get_version()}"))
    print()
    print(_USAGE)


def cli() -> None:
    """Entry point for ``workbench``.

    With no arguments, or only options, runs the ``run`` subcommand.
    """
    argv = sys.argv[1:]

    if argv and argv[0] == "--help":
        _print_info()
        sys.exit(0)

    if not argv or argv[0].startswith("-"):
        command = "run"
        rest = argv
    elif argv[0] in _DISPATCH:
        command = argv[0]
        rest = argv[1:]
    else:
        print(f"workbench: unknown command '{argv[0]}'", file=sys.stderr)
        print(_USAGE, file=sys.stderr)
        sys.exit(2)

    # Look up handler by name so tests can mock individual commands.
    import workbench.cli as _self

    handler = getattr(_self, _DISPATCH[command])
    sys.exit(handler(rest))
