# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Runtime home selection and directory preparation.

OpenShift runs the workbench under an arbitrary UID with GID 0, and the
image's home directory may sit on a root-squashed volume.  The entrypoint
therefore probes the primary home and falls back to a private directory
under ``/tmp`` when it cannot write there.

The decision is made once (:func:`choose_runtime_home`) and the result is
threaded explicitly through everything that follows; nothing here reads or
writes ``os.environ``.

Directory creation is best-effort.  Each step returns a :class:`StepResult`
instead of raising, so the caller can log it and carry on.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


logger = logging.getLogger(__name__)

#: Home used when the primary home is not writable.
FALLBACK_HOME = Path("/tmp/home")

#: Mode applied to the fallback home.
FALLBACK_HOME_MODE = 0o700

#: Intended mount point for the workbench PVC.
WORKSPACE_DIR = Path("/opt/app-root/workspace")

#: code-server state directory, relative to the runtime home.
USER_DATA_SUBDIR = Path(".local") / "share" / "code-server"

#: Whether os.access can check the effective rather than the real IDs.
_EFFECTIVE_IDS = os.access in os.supports_effective_ids


def is_writable_dir(path: Path) -> bool:
    """Return True if *path* is a directory the process can create files in.

    Creating an entry needs both write and search permission on the
    directory.  The check uses the effective UID/GID where the platform
    supports it.  Missing paths, non-directories and permission errors all
    count as not writable.
    """
    try:
        if not path.is_dir():
            return False
    except OSError:
        return False
    return os.access(path, os.W_OK | os.X_OK, effective_ids=_EFFECTIVE_IDS)


@dataclass(frozen=True)
class HomeDecision:
    """Outcome of the runtime home probe.

    Attributes:
        primary: The candidate home from configuration.
        runtime: The home actually used.
        fallback: True when *runtime* is the fallback home.
    """

    primary: Path
    runtime: Path
    fallback: bool


def choose_runtime_home(
    primary: Path, fallback: Path = FALLBACK_HOME
) -> HomeDecision:
    """Pick the runtime home without touching the filesystem.

    Args:
        primary: Candidate home directory.
        fallback: Directory to use when *primary* is not writable.

    Returns:
        The decision; the fallback directory is not created here.
    """
    if is_writable_dir(primary):
        logger.debug("Primary home %s is writable", primary)
        return HomeDecision(primary=primary, runtime=primary, fallback=False)

    logger.info(
        "Primary home %s is not writable, falling back to %s",
        primary,
        fallback,
    )
    return HomeDecision(primary=primary, runtime=fallback, fallback=True)


@dataclass(frozen=True)
class RuntimeLayout:
    """Directories the entrypoint prepares for code-server.

    All paths are derived from the runtime home once and never recomputed.
    """

    home: HomeDecision
    workspace_dir: Path
    user_data_dir: Path
    extensions_dir: Path

    @property
    def runtime_home(self) -> Path:
        return self.home.runtime

    @classmethod
    def derive(
        cls, home: HomeDecision, workspace_dir: Path = WORKSPACE_DIR
    ) -> RuntimeLayout:
        """Derive the data directories from a home decision."""
        user_data_dir = home.runtime / USER_DATA_SUBDIR
        return cls(
            home=home,
            workspace_dir=workspace_dir,
            user_data_dir=user_data_dir,
            extensions_dir=user_data_dir / "extensions",
        )


# ---------------------------------------------------------------------------
# Best-effort steps
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepResult:
    """Result of one preparation step.

    Attributes:
        name: Short step name for logs.
        path: Path the step operated on.
        error: The failure, or None on success.
        log_level: Level used when reporting a failure.  Workspace
            creation failures are expected (read-only or pre-populated
            mounts) and are logged at DEBUG; the rest at WARNING.
    """

    name: str
    path: Path
    error: OSError | None = None
    log_level: int = logging.WARNING

    @property
    def ok(self) -> bool:
        return self.error is None

    def log(self) -> None:
        """Report the result on the module logger."""
        if self.ok:
            logger.debug("%s: %s ok", self.name, self.path)
        else:
            logger.log(
                self.log_level,
                "%s: %s failed (continuing): %s",
                self.name,
                self.path,
                self.error,
            )


def ensure_directory(
    name: str,
    path: Path,
    mode: int = 0o777,
    log_level: int = logging.WARNING,
) -> StepResult:
    """Create *path* and its parents if missing.

    Existing directories are left alone, so repeated runs are no-ops.
    """
    try:
        path.mkdir(mode=mode, parents=True, exist_ok=True)
    except OSError as e:
        return StepResult(name, path, e, log_level)
    return StepResult(name, path, log_level=log_level)


def restrict_mode(name: str, path: Path, mode: int) -> StepResult:
    """Apply *mode* to *path*.

    Fails on root-squashed or foreign-owned directories; callers treat
    that as a warning.
    """
    try:
        path.chmod(mode)
    except OSError as e:
        return StepResult(name, path, e)
    return StepResult(name, path)


def prepare_layout(layout: RuntimeLayout) -> list[StepResult]:
    """Create every directory in *layout*.

    Every step runs regardless of earlier failures.  Each result is logged
    before being returned.

    Returns:
        One result per step, in execution order.
    """
    results: list[StepResult] = []

    if layout.home.fallback:
        results.append(
            ensure_directory(
                "create fallback home",
                layout.runtime_home,
                mode=FALLBACK_HOME_MODE,
            )
        )
        results.append(
            restrict_mode(
                "restrict fallback home",
                layout.runtime_home,
                FALLBACK_HOME_MODE,
            )
        )

    results.append(
        ensure_directory(
            "create workspace",
            layout.workspace_dir,
            log_level=logging.DEBUG,
        )
    )
    results.append(
        ensure_directory("create user data dir", layout.user_data_dir)
    )
    results.append(
        ensure_directory("create extensions dir", layout.extensions_dir)
    )

    for result in results:
        result.log()
    return results
