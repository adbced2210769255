# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for workbench/banner.py."""

from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from workbench.banner import TITLE, format_banner, group_ids, print_banner
from workbench.config import LaunchConfig
from workbench.home import HomeDecision, RuntimeLayout


def _layout(home: str) -> RuntimeLayout:
    return RuntimeLayout.derive(
        HomeDecision(Path("/opt/app-root/src"), Path(home), fallback=True)
    )


class TestGroupIds:
    def test_effective_gid_first(self) -> None:
        with (
            patch("workbench.banner.os.getegid", return_value=0),
            patch("workbench.banner.os.getgroups", return_value=[5, 0, 7]),
        ):
            assert group_ids() == [0, 5, 7]


class TestFormatBanner:
    def test_lines(self) -> None:
        now = datetime(2026, 3, 1, 12, 30, 45, tzinfo=UTC)
        with (
            patch("workbench.banner.os.geteuid", return_value=1000680000),
            patch("workbench.banner.group_ids", return_value=[0, 1000680000]),
        ):
            text = format_banner(
                LaunchConfig(code_port="8888", bind_addr="0.0.0.0"),
                _layout("/tmp/home"),
                now=now,
            )

        lines = text.splitlines()
        assert lines[0] == TITLE
        assert lines[1] == "Timestamp: Sun Mar 01 12:30:45 UTC 2026"
        assert lines[2] == "Running as UID: 1000680000 / GID(s): 0 1000680000"
        assert lines[3] == "HOME=/tmp/home"
        assert lines[4] == (
            "Workspace (PVC mount point) => /opt/app-root/workspace"
        )
        assert lines[5] == "code-server bind 0.0.0.0:8888"
        assert lines[6] == "=" * len(TITLE)

    def test_defaults_to_current_time(self) -> None:
        text = format_banner(LaunchConfig(), _layout("/h"))
        assert f"{datetime.now(UTC).year}" in text.splitlines()[1]


def test_print_banner_writes_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    print_banner(LaunchConfig(), _layout("/tmp/home"))
    out = capsys.readouterr().out
    assert out.startswith(TITLE)
    assert "HOME=/tmp/home" in out
