"""Pytest configuration and fixtures for jss_client tests."""

import os
from unittest.mock import MagicMock, patch

import httpx
import pytest
from dotenv import load_dotenv

from jss_client import config as config_module
from jss_client import connection_context
from jss_client.api_connection import APIConnection
from jss_client.config import JSSConfig
from jss_client.managed_client import ManagedClient

from .helpers import JSSUSER_PAYLOAD, ok_response

# Load .env file for tests
load_dotenv()

JSS_SERVER = os.getenv("JSS_SERVER")
JSS_USER = os.getenv("JSS_USER")
JSS_PASSWORD = os.getenv("JSS_PASSWORD")
JSS_SERVER_AVAILABLE = bool(JSS_SERVER and JSS_USER and JSS_PASSWORD)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as requiring a reachable JSS"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless JSS credentials are configured."""
    if JSS_SERVER_AVAILABLE:
        return
    skip_jss = pytest.mark.skip(
        reason="JSS_SERVER, JSS_USER and JSS_PASSWORD must be set for integration tests"
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_jss)


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch):
    """Keep tests away from real configuration and the shared registry."""
    for field in JSSConfig.model_fields:
        monkeypatch.delenv(f"{config_module.ENV_PREFIX}{field.upper()}", raising=False)
    monkeypatch.setattr(config_module, "_config", JSSConfig())

    def unconfigured_connection(**kwargs):
        return APIConnection(
            config=JSSConfig(),
            client=ManagedClient("/nonexistent/jamf.plist", "/nonexistent/jamf"),
            **kwargs,
        )

    monkeypatch.setattr(
        connection_context,
        "default_registry",
        connection_context.ConnectionRegistry(connection_factory=unconfigured_connection),
    )
    yield


@pytest.fixture
def jss_config():
    """Empty persisted configuration."""
    return JSSConfig()


@pytest.fixture
def no_agent(tmp_path):
    """A management agent that is not installed."""
    return ManagedClient(plist_path=tmp_path / "missing.plist", binary_path=tmp_path / "jamf")


@pytest.fixture
def mock_http():
    """Mocked httpx.Client that answers the connect-time version check."""
    client = MagicMock(spec=httpx.Client)
    client.get.return_value = ok_response(JSSUSER_PAYLOAD)
    client.put.return_value = ok_response(text="")
    client.post.return_value = ok_response(text="")
    client.delete.return_value = ok_response(text="")
    return client


@pytest.fixture
def connection(jss_config, no_agent, mock_http):
    """A connected APIConnection backed by ``mock_http``."""
    with patch("httpx.Client", return_value=mock_http):
        conn = APIConnection(
            server="jss.example.com",
            user="apiuser",
            pw="secret",
            config=jss_config,
            client=no_agent,
        )
    mock_http.get.reset_mock()
    return conn


@pytest.fixture
def live_connection():
    """Connection to the JSS named by JSS_SERVER / JSS_USER / JSS_PASSWORD."""
    if not JSS_SERVER_AVAILABLE:
        pytest.skip("JSS credentials not configured. Please configure .env file.")
    conn = APIConnection(
        server=JSS_SERVER,
        user=JSS_USER,
        pw=JSS_PASSWORD,
        port=int(os.getenv("JSS_PORT")) if os.getenv("JSS_PORT") else None,
        verify_cert=os.getenv("JSS_VERIFY_CERT", "true").lower() != "false",
    )
    yield conn
    conn.disconnect()
