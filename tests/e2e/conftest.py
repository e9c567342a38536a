"""E2E test fixtures - starts the app at http://127.0.0.1:8000 against a temp store."""

import os
import subprocess
import sys
import time
import urllib.request

import pytest

BASE_URL = "http://127.0.0.1:8000"


@pytest.fixture(scope="session")
def app_server(tmp_path_factory):
    """Start uvicorn with a fresh file store for the session."""
    data_file = tmp_path_factory.mktemp("store") / "data.json"
    env = {
        **os.environ,
        "DASH_STORE_URL": data_file.as_uri(),
        "DASH_STORE_ANON_KEY": "e2e-anon-key",
    }
    proc = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "main:app", "--host", "127.0.0.1", "--port", "8000"],
        cwd=".",
        env=env,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    deadline = time.monotonic() + 10
    while time.monotonic() < deadline:
        try:
            urllib.request.urlopen(f"{BASE_URL}/api/projects", timeout=1)
            break
        except OSError:
            time.sleep(0.2)
    try:
        yield BASE_URL
    finally:
        proc.terminate()
        proc.wait(timeout=5)


@pytest.fixture
def page_with_base(page, app_server):
    """Page fixture with timeouts set."""
    page.set_default_navigation_timeout(15000)
    page.set_default_timeout(10000)
    return page
