"""
Shared pytest configuration for avpauthz tests.

This module configures pytest and imports all fixtures for use in tests.
"""

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Import all fixtures from avpauthz.testing
from avpauthz.testing import (
    avp_engine,
    fake_avp_client,
    mock_authorization_engine,
    sample_request,
)

from avpauthz.context import set_current_context

# Re-export fixtures so they're available to all tests
__all__ = [
    "avp_engine",
    "fake_avp_client",
    "mock_authorization_engine",
    "sample_request",
]


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires AWS credentials)"
    )
    config.addinivalue_line(
        "markers",
        "unit: mark test as unit test"
    )


@pytest.fixture(autouse=True)
def clear_request_context():
    """Each test starts without a request context."""
    set_current_context(None)
    yield
    set_current_context(None)


@pytest.fixture
def aws_test_env(monkeypatch):
    """
    Dummy AWS environment so boto3 clients can be built offline.

    Returns:
        Region name configured for the test
    """
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    return "us-east-1"


@pytest.fixture
def sample_config(tmp_path):
    """
    Write a minimal engine configuration file.

    Returns:
        Path to the YAML file
    """
    config_file = tmp_path / "avpauthz.yaml"
    config_file.write_text(
        "authorizer:\n"
        "  policy_store_id: ps-test\n"
        "  call_type: isAuthorized\n"
        "  region_name: us-east-1\n"
    )
    return config_file


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against Verified Permissions",
    )


def pytest_runtest_setup(item):
    """Skip integration tests unless --run-integration is passed."""
    if "integration" in item.keywords and not item.config.getoption("--run-integration"):
        pytest.skip("integration tests not enabled (use --run-integration)")
