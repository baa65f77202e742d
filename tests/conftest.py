"""
Shared fixtures for the ugconv test suite.
"""

from __future__ import annotations

import os
import shutil
import stat
import sys
from pathlib import Path

import pytest

from helpers import FAKE_FFMPEG, FAKE_UNZIP, FakeFetcher
from ugconv.config import ConverterConfig


def _write_tool(path: Path, source: str) -> Path:
    path.write_text(f"#!{sys.executable}\n{source}")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture(scope="session")
def has_unzip() -> bool:
    return shutil.which("unzip") is not None


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def tool_dir(tmp_path, monkeypatch) -> Path:
    """A bin/ directory holding fake ``unzip`` and ``ffmpeg`` executables."""
    if os.name == "nt":
        pytest.skip("fake tools rely on POSIX shebang scripts")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    _write_tool(bin_dir / "unzip", FAKE_UNZIP)
    _write_tool(bin_dir / "ffmpeg", FAKE_FFMPEG)
    monkeypatch.setenv("UGCONV_TEST_LOG", str(tmp_path / "ffmpeg_log"))
    return bin_dir


@pytest.fixture
def ffmpeg_log(tool_dir, tmp_path) -> Path:
    """Directory where the fake ffmpeg records what it was given."""
    return tmp_path / "ffmpeg_log"


@pytest.fixture
def temp_root(tmp_path) -> Path:
    """Stands in for the system temp directory."""
    root = tmp_path / "systemp"
    root.mkdir()
    return root


@pytest.fixture
def config(tool_dir, temp_root) -> ConverterConfig:
    return ConverterConfig(
        temp_root=temp_root,
        ffmpeg=str(tool_dir / "ffmpeg"),
        unzip=str(tool_dir / "unzip"),
        timeout_s=60,
    )
