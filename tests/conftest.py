"""Shared pytest fixtures for all tests."""

import pytest

from cli.config import Config
from relay.service_locator import build_services, set_services


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Clock that only moves when a test advances it."""
    return FakeClock()


@pytest.fixture
def data_dir(tmp_path):
    """
    Create temporary relay data directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to the data directory
    """
    path = tmp_path / 'data'
    path.mkdir()
    return path


@pytest.fixture
def services(data_dir, clock):
    """
    Relay services wired to a temporary data directory and fake clock.

    Installed as the global services instance for the duration of the test.
    """
    bundle = build_services(data_dir, clock=clock)
    bundle.ensure_directories()
    set_services(bundle)
    yield bundle
    set_services(None)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .relaydrop directory
    """
    config_dir = tmp_path / '.relaydrop'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir, tmp_path):
    """
    Create temporary config instance.

    Downloads go to a directory under tmp_path.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    config = Config(temp_config_dir / 'config.json')
    config.data['download_dir'] = str(tmp_path / 'downloads')
    return config


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path
