"""
Mock clients and engines for testing code built on avpauthz.

This module provides a stand-in for the boto3 Verified Permissions client
and an in-memory authorization engine.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Sequence, Union

from avpauthz.authz.base import (
    AllowResult,
    AuthorizationEngine,
    AuthorizationRequest,
    AuthorizationResult,
    AuthorizerInfo,
    DenyResult,
    EntityInput,
)


@dataclass
class RecordedCall:
    """Record of a call made against the fake client."""

    operation: str
    params: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class FakeVerifiedPermissionsClient:
    """
    Fake boto3 ``verifiedpermissions`` client.

    Features:
    - Records every call with its keyword arguments
    - Returns queued responses in order, or a default response
    - Raises queued exceptions to simulate service failures
    - No AWS connection required

    Example:
        >>> client = FakeVerifiedPermissionsClient()
        >>> client.queue_response({"decision": "ALLOW", "determiningPolicies": []})
        >>> engine = AVPAuthorizationEngine(
        ...     policy_store_id="ps-test", call_type="isAuthorized", client=client
        ... )
    """

    def __init__(self, default_response: Optional[Dict[str, Any]] = None):
        self.default_response = default_response or {
            "decision": "DENY",
            "determiningPolicies": [],
            "errors": [],
        }
        self._outcomes: Deque[Union[Dict[str, Any], BaseException]] = deque()
        self._calls: List[RecordedCall] = []
        self.closed = False

    def queue_response(self, response: Dict[str, Any]) -> None:
        """Queue a response for the next decision call."""
        self._outcomes.append(response)

    def queue_error(self, error: BaseException) -> None:
        """Queue an exception to raise from the next call."""
        self._outcomes.append(error)

    def _next(self, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        self._calls.append(RecordedCall(operation=operation, params=params))
        if not self._outcomes:
            return self.default_response
        outcome = self._outcomes.popleft()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def is_authorized(self, **params) -> Dict[str, Any]:
        return self._next("IsAuthorized", params)

    def is_authorized_with_token(self, **params) -> Dict[str, Any]:
        return self._next("IsAuthorizedWithToken", params)

    def get_policy_store(self, **params) -> Dict[str, Any]:
        return self._next("GetPolicyStore", params)

    def close(self) -> None:
        self.closed = True

    def get_calls(self) -> List[RecordedCall]:
        """Get all recorded calls."""
        return self._calls.copy()

    def clear_calls(self) -> None:
        self._calls.clear()


@dataclass
class DecisionCheck:
    """Record of a decision made by the mock engine."""

    request: AuthorizationRequest
    entities: List[EntityInput]
    result: AuthorizationResult
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MockAuthorizationEngine(AuthorizationEngine):
    """
    In-memory authorization engine for testing callers.

    Decisions come from explicit rules keyed by action and resource, falling
    back to allow or deny. Every check is recorded.

    Example:
        >>> engine = MockAuthorizationEngine(default_allow=False)
        >>> engine.add_rule(EntityRef("Action", "read"), EntityRef("Document", "d1"), DenyResult())
        >>> result = await engine.is_authorized(request, [])
    """

    def __init__(
        self,
        default_allow: bool = False,
        determining_policies: Sequence[str] = ("mock-policy",),
        healthy: bool = True,
    ):
        self.default_allow = default_allow
        self.determining_policies = tuple(determining_policies)
        self.healthy = healthy
        self._rules: Dict[tuple, AuthorizationResult] = {}
        self._checks: List[DecisionCheck] = []

    def add_rule(self, action, resource, result: AuthorizationResult) -> None:
        """Return ``result`` for this action/resource pair."""
        self._rules[(action, resource)] = result

    def remove_rule(self, action, resource) -> None:
        self._rules.pop((action, resource), None)

    async def is_authorized(
        self,
        request: AuthorizationRequest,
        entities: Sequence[EntityInput],
    ) -> AuthorizationResult:
        result = self._rules.get((request.action, request.resource))
        if result is None:
            if self.default_allow:
                result = AllowResult(
                    authorizer_info=AuthorizerInfo(
                        principal_uid=request.principal,
                        determining_policies=self.determining_policies,
                    )
                )
            else:
                result = DenyResult()

        self._checks.append(
            DecisionCheck(request=request, entities=list(entities), result=result)
        )
        return result

    async def health_check(self) -> bool:
        return self.healthy

    def get_checks(self) -> List[DecisionCheck]:
        """Get all recorded decisions."""
        return self._checks.copy()

    def clear_checks(self) -> None:
        self._checks.clear()
