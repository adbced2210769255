# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""code-server command construction and process hand-off.

The entrypoint runs as PID 1 under tini and normally replaces itself with
code-server (:func:`exec_child`), so signals from the kubelet reach the
editor directly.  :func:`run_supervised` is the spawn-and-wait variant for
environments where exec is not wanted; it forwards termination signals and
propagates the child's exit status.

The argument list is a fixed contract:

    code-server --bind-addr <addr>:<port> --auth none
                --user-data-dir <dir> --extensions-dir <dir>
                --app-name "OpenShift AI VS Code"

``--auth none`` is deliberate: OpenShift AI fronts the workbench with
oauth-proxy.
"""

from __future__ import annotations

import errno
import logging
import os
import signal
import subprocess
import sys
from collections.abc import Mapping, Sequence
from types import FrameType
from typing import NoReturn

from workbench.config import LaunchConfig
from workbench.home import RuntimeLayout


logger = logging.getLogger(__name__)

APP_NAME = "OpenShift AI VS Code"

#: Signals relayed to the child in supervised mode.
FORWARDED_SIGNALS = (
    signal.SIGTERM,
    signal.SIGINT,
    signal.SIGHUP,
    signal.SIGQUIT,
    signal.SIGUSR1,
    signal.SIGUSR2,
)

# Shell conventions for "command not found" / "not executable".
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126
EXIT_LAUNCH_FAILED = 1


class LaunchError(Exception):
    """Raised when code-server cannot be started.

    Attributes:
        exit_code: Status the entrypoint should exit with.
    """

    def __init__(
        self, message: str, exit_code: int = EXIT_LAUNCH_FAILED
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def build_command(config: LaunchConfig, layout: RuntimeLayout) -> list[str]:
    """Build the code-server argument vector."""
    return [
        config.binary,
        "--bind-addr",
        config.bind_endpoint,
        "--auth",
        "none",
        "--user-data-dir",
        str(layout.user_data_dir),
        "--extensions-dir",
        str(layout.extensions_dir),
        "--app-name",
        APP_NAME,
    ]


def build_child_env(
    base_env: Mapping[str, str], layout: RuntimeLayout
) -> dict[str, str]:
    """Build the child's environment.

    ``HOME`` is overridden only when the fallback home is in use; otherwise
    the base environment passes through unchanged.
    """
    env = dict(base_env)
    if layout.home.fallback:
        env["HOME"] = str(layout.runtime_home)
    return env


def _exit_code_for(error: OSError) -> int:
    if error.errno == errno.ENOENT:
        return EXIT_NOT_FOUND
    if error.errno in (errno.EACCES, errno.EPERM, errno.ENOEXEC):
        return EXIT_NOT_EXECUTABLE
    return EXIT_LAUNCH_FAILED


def _merge_stderr() -> None:
    """Point file descriptor 2 at stdout so the child logs to one stream."""
    os.dup2(sys.stdout.fileno(), sys.stderr.fileno())


def exec_child(argv: Sequence[str], env: Mapping[str, str]) -> NoReturn:
    """Replace the current process with *argv*.

    Raises:
        LaunchError: If exec fails (binary missing, not executable, or an
            argument the OS rejects).
    """
    logger.info("Executing: %s", " ".join(argv))
    sys.stdout.flush()
    sys.stderr.flush()
    _merge_stderr()

    try:
        os.execvpe(argv[0], list(argv), dict(env))
    except OSError as e:
        raise LaunchError(
            f"Cannot execute {argv[0]}: {e.strerror or e}",
            exit_code=_exit_code_for(e),
        ) from e
    except ValueError as e:
        raise LaunchError(f"Invalid command line for {argv[0]}: {e}") from e


def run_supervised(
    argv: Sequence[str],
    env: Mapping[str, str],
    signals: Sequence[signal.Signals] = FORWARDED_SIGNALS,
) -> int:
    """Run *argv* as a child, relaying signals until it exits.

    Handlers are installed before the child is spawned.  A signal that
    arrives while ``Popen`` is still starting the child is held and
    delivered once the child exists.

    Returns:
        The child's exit status, or ``128 + N`` if it died from signal N.

    Raises:
        LaunchError: If the child cannot be started.
    """
    process: subprocess.Popen[bytes] | None = None
    pending: list[int] = []

    def forward(signum: int, frame: FrameType | None) -> None:
        if process is None:
            pending.append(signum)
            return
        if process.poll() is None:
            logger.debug("Forwarding signal %d to pid %d", signum, process.pid)
            process.send_signal(signum)

    previous = {sig: signal.signal(sig, forward) for sig in signals}
    try:
        logger.info("Starting: %s", " ".join(argv))
        try:
            process = subprocess.Popen(
                list(argv),
                env=dict(env),
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            raise LaunchError(
                f"Cannot execute {argv[0]}: {e.strerror or e}",
                exit_code=_exit_code_for(e),
            ) from e
        except ValueError as e:
            raise LaunchError(
                f"Invalid command line for {argv[0]}: {e}"
            ) from e

        for signum in pending:
            forward(signum, None)
        returncode = process.wait()
    finally:
        for sig, handler in previous.items():
            if handler is not None:
                signal.signal(sig, handler)

    if returncode < 0:
        logger.info("code-server terminated by signal %d", -returncode)
        return 128 - returncode
    logger.info("code-server exited with status %d", returncode)
    return returncode
