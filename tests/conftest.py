"""Shared fixtures for siemforward tests."""
from datetime import datetime

import pytest

from siemforward.core.models import EndpointIdentity
from siemforward.services.block_manager import BlockManager

FIXED_NOW = datetime(2024, 5, 17, 9, 30, 0)


@pytest.fixture
def config_dir(tmp_path):
    directory = tmp_path / "rsyslog.d"
    directory.mkdir()
    return directory


@pytest.fixture
def config_path(config_dir):
    return config_dir / "60-siem.conf"


@pytest.fixture
def manager(config_path):
    return BlockManager(config_path, clock=lambda: FIXED_NOW)


@pytest.fixture
def endpoint_a():
    return EndpointIdentity("10.0.0.5", 514)


@pytest.fixture
def endpoint_b():
    return EndpointIdentity("10.0.0.9", 514)


def block_text(identity, prefix="@", selectors=("S1", "S2")):
    """Expected text of a block, without trailing newline."""
    lines = [f"# BEGIN SIEM CONFIG FOR {identity}"]
    lines += [f"{s} {prefix}{identity}" for s in selectors]
    lines.append(f"# END SIEM CONFIG FOR {identity}")
    return "\n".join(lines)


def backups(directory):
    return sorted(p.name for p in directory.iterdir() if ".bak_" in p.name)
