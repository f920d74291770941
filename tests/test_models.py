"""
Tests for the authorization data model.

Tests entity references, requests, entities and the result shapes.
"""

from dataclasses import FrozenInstanceError

import pytest

from avpauthz.authz.base import (
    AllowResult,
    AuthorizationRequest,
    AuthorizerInfo,
    DenyResult,
    Entity,
    EntityRef,
    ErrorResult,
    entity_to_dict,
    optional_ref,
)


class TestEntityRef:
    """Test EntityRef parsing and rendering."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("User::bob", EntityRef("User", "bob")),
            ('User::"bob"', EntityRef("User", "bob")),
            ("NotebooksApp::Notebook::nb-1", EntityRef("NotebooksApp::Notebook", "nb-1")),
            ('NotebooksApp::User::"a b"', EntityRef("NotebooksApp::User", "a b")),
        ],
    )
    def test_parse(self, value, expected):
        assert EntityRef.parse(value) == expected

    @pytest.mark.parametrize("value", ["bob", "User::", "::bob", ""])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError, match="Type::id"):
            EntityRef.parse(value)

    def test_str(self):
        assert str(EntityRef("Action", "read")) == 'Action::"read"'

    def test_frozen(self):
        ref = EntityRef("User", "bob")
        with pytest.raises(FrozenInstanceError):
            ref.id = "alice"

    def test_hashable(self):
        assert len({EntityRef("User", "bob"), EntityRef("User", "bob")}) == 1


class TestAuthorizationRequest:
    """Test AuthorizationRequest construction."""

    def test_context_defaults_empty(self):
        request = AuthorizationRequest(
            principal=EntityRef("User", "bob"),
            action=EntityRef("Action", "read"),
            resource=EntityRef("Document", "doc456"),
        )
        assert request.context == {}

    def test_context_is_copied(self):
        context = {"ip": "10.0.0.1"}
        request = AuthorizationRequest(
            principal=EntityRef("User", "bob"),
            action=EntityRef("Action", "read"),
            resource=EntityRef("Document", "doc456"),
            context=context,
        )

        context["ip"] = "changed"

        assert request.context == {"ip": "10.0.0.1"}


class TestEntity:
    """Test Entity serialization."""

    def test_to_dict(self):
        entity = Entity(
            uid=EntityRef("NotebooksApp::Notebook", "nb-1"),
            attrs={"owner": "alice", "public": False},
            parents=[EntityRef("NotebooksApp::Folder", "f-1")],
        )

        assert entity.to_dict() == {
            "uid": {"type": "NotebooksApp::Notebook", "id": "nb-1"},
            "attrs": {"owner": "alice", "public": False},
            "parents": [{"type": "NotebooksApp::Folder", "id": "f-1"}],
        }

    def test_defaults(self):
        assert Entity(uid=EntityRef("User", "bob")).to_dict() == {
            "uid": {"type": "User", "id": "bob"},
            "attrs": {},
            "parents": [],
        }

    def test_mapping_passthrough(self):
        raw = {"uid": {"type": "User", "id": "bob"}, "attrs": {"x": 1}, "parents": []}
        assert entity_to_dict(raw) is raw


class TestResults:
    """Test the closed result shapes."""

    def test_allow(self):
        result = AllowResult(
            authorizer_info=AuthorizerInfo(
                principal_uid=EntityRef("User", "bob"),
                determining_policies=("p1",),
            )
        )

        assert result.type == "allow"
        assert result.to_dict() == {
            "type": "allow",
            "authorizerInfo": {
                "principalUid": {"type": "User", "id": "bob"},
                "determiningPolicies": ["p1"],
            },
        }

    def test_deny(self):
        assert DenyResult().type == "deny"
        assert DenyResult().to_dict() == {"type": "deny"}

    def test_error(self):
        result = ErrorResult(message="boom")
        assert result.type == "error"
        assert result.to_dict() == {"type": "error", "message": "boom"}


class TestOptionalRef:
    """Test reading AVP entity identifiers."""

    def test_complete(self):
        assert optional_ref({"entityType": "User", "entityId": "bob"}) == EntityRef("User", "bob")

    @pytest.mark.parametrize(
        "data",
        [None, {}, {"entityType": "User"}, {"entityId": "bob"}, {"entityType": None, "entityId": "bob"}],
    )
    def test_incomplete(self, data):
        assert optional_ref(data) is None
