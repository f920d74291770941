"""
avpauthz - Authorization Layer

Request, entity and result types plus the Verified Permissions engine.
"""

from avpauthz.authz.base import (
    AllowResult,
    AuthorizationEngine,
    AuthorizationRequest,
    AuthorizationResult,
    AuthorizerInfo,
    DenyResult,
    Entity,
    EntityRef,
    ErrorResult,
)
from avpauthz.authz.avp import AVPAuthorizationEngine

__all__ = [
    "AllowResult",
    "AuthorizationEngine",
    "AuthorizationRequest",
    "AuthorizationResult",
    "AuthorizerInfo",
    "AVPAuthorizationEngine",
    "DenyResult",
    "Entity",
    "EntityRef",
    "ErrorResult",
]
