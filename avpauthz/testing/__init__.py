"""
avpauthz - Testing Utilities

This module provides testing utilities, mocks, and fixtures for code that
makes authorization decisions with avpauthz.

Export all public testing utilities for easy import:
    from avpauthz.testing import FakeVerifiedPermissionsClient, fake_avp_client

"""

from .mocks import (
    FakeVerifiedPermissionsClient,
    MockAuthorizationEngine,
)

from .fixtures import (
    avp_engine,
    fake_avp_client,
    mock_authorization_engine,
    sample_request,
)

from .polling import wait_for_decision

__all__ = [
    # Mocks
    "FakeVerifiedPermissionsClient",
    "MockAuthorizationEngine",

    # Fixtures
    "avp_engine",
    "fake_avp_client",
    "mock_authorization_engine",
    "sample_request",

    # Helpers
    "wait_for_decision",
]
