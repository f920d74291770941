"""
avpauthz

Cedar-style authorization decisions backed by Amazon Verified Permissions.

An engine takes a principal/action/resource/context request plus entity
records, calls Verified Permissions, and always settles to one of three
results:
- allow: with the resolved principal and the determining policy ids
- deny: no further detail
- error: the decision call failed; callers should fail closed

Example:
    from avpauthz import AVPAuthorizationEngine, AuthorizationRequest, EntityRef

    engine = AVPAuthorizationEngine(
        policy_store_id="PSEXAMPLEabcdefg111111",
        call_type="isAuthorized",
    )
    result = await engine.is_authorized(
        AuthorizationRequest(
            principal=EntityRef("User", "bob"),
            action=EntityRef("Action", "read"),
            resource=EntityRef("Document", "doc456"),
        ),
        entities=[],
    )
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

from avpauthz.authz import (
    AllowResult,
    AuthorizationEngine,
    AuthorizationRequest,
    AuthorizationResult,
    AuthorizerInfo,
    AVPAuthorizationEngine,
    DenyResult,
    Entity,
    EntityRef,
    ErrorResult,
)
from avpauthz.config import AVPAuthorizerProps, AWSCredentials, CallType
from avpauthz.context import RequestContext, get_current_context, set_current_context
from avpauthz.decorators import requires_authorization, audit_log

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Engine and data model
    "AVPAuthorizationEngine",
    "AuthorizationEngine",
    "AuthorizationRequest",
    "AuthorizationResult",
    "AuthorizerInfo",
    "AllowResult",
    "DenyResult",
    "ErrorResult",
    "Entity",
    "EntityRef",
    # Configuration
    "AVPAuthorizerProps",
    "AWSCredentials",
    "CallType",
    # Caller-side enforcement
    "RequestContext",
    "get_current_context",
    "set_current_context",
    "requires_authorization",
    "audit_log",
]
