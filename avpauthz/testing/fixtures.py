"""
Pytest fixtures for avpauthz testing.

Import these fixtures in your conftest.py or test files.
"""

import pytest

from avpauthz.authz.avp import AVPAuthorizationEngine
from avpauthz.authz.base import AuthorizationRequest, EntityRef
from .mocks import FakeVerifiedPermissionsClient, MockAuthorizationEngine


@pytest.fixture
def fake_avp_client():
    """
    Provides a fake Verified Permissions client that denies by default.

    Example:
        def test_allow(fake_avp_client):
            fake_avp_client.queue_response({"decision": "ALLOW"})
    """
    return FakeVerifiedPermissionsClient()


@pytest.fixture
def avp_engine(fake_avp_client):
    """Direct-entity engine wired to ``fake_avp_client``."""
    return AVPAuthorizationEngine(
        policy_store_id="ps-test",
        call_type="isAuthorized",
        client=fake_avp_client,
    )


@pytest.fixture
def mock_authorization_engine():
    """
    Provides a mock authorization engine with default deny.

    Example:
        async def test_handler(mock_authorization_engine):
            mock_authorization_engine.default_allow = True
    """
    return MockAuthorizationEngine(default_allow=False)


@pytest.fixture
def sample_request():
    """The request used throughout the engine tests."""
    return AuthorizationRequest(
        principal=EntityRef(type="User", id="bob"),
        action=EntityRef(type="Action", id="read"),
        resource=EntityRef(type="Document", id="doc456"),
        context={},
    )
