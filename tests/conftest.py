# type: ignore
import logging
import os

import pytest

import spdxgraph.log


def init_testsuite_env():
    """Initialize testsuite environment."""
    # Activate full debug logs
    spdxgraph.log.activate(level=logging.DEBUG, spdx_debug=True)

    # Force UTC timezone
    os.environ["TZ"] = "UTC"
    os.environ["SPDXGRAPH_CONFIG"] = "/dev/null"


init_testsuite_env()


@pytest.fixture(autouse=True)
def run_in_tmp_dir(tmp_path, monkeypatch):
    """Run each test in its own temporary directory."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Start each test with an empty configuration."""
    from spdxgraph.config import Config

    monkeypatch.setattr(Config, "data", {})
