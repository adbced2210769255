# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures used across multiple test modules."""

from dataclasses import dataclass
from pathlib import Path

import pytest


@dataclass
class WorkbenchDirs:
    """Filesystem locations used by the entrypoint under test.

    Attributes:
        primary: Candidate home (``HOME``).
        fallback: Stand-in for ``/tmp/home``.
        workspace: Stand-in for ``/opt/app-root/workspace``.
    """

    primary: Path
    fallback: Path
    workspace: Path


@pytest.fixture(autouse=True)
def no_default_config_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep tests independent of a config file on the host."""
    monkeypatch.setattr(
        "workbench.config.DEFAULT_CONFIG_PATH",
        tmp_path / "no-such-config.yaml",
    )
    monkeypatch.delenv("WORKBENCH_CONFIG", raising=False)


@pytest.fixture
def dirs(tmp_path: Path) -> WorkbenchDirs:
    """Create a writable primary home; fallback and workspace are absent.

    Returns:
        Paths for the primary home, fallback home and workspace.
    """
    primary = tmp_path / "opt" / "app-root" / "src"
    primary.mkdir(parents=True)
    return WorkbenchDirs(
        primary=primary,
        fallback=tmp_path / "tmp" / "home",
        workspace=tmp_path / "opt" / "app-root" / "workspace",
    )
