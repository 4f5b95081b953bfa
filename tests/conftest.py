"""
Pytest configuration and fixtures for gradecord tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory (and this directory, for the shared fakes) to the path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))
sys.path.insert(0, str(Path(__file__).parent))

from directory_fakes import FakeClock, FakeRemoteDirectory, build_guild  # noqa: E402


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def remote() -> FakeRemoteDirectory:
    return FakeRemoteDirectory(build_guild(), users=[101, 102, 103, 104])
