"""
Request context management for caller-side enforcement.

This module provides context propagation for the principal, the Cedar
context attributes and the entity records of the request being handled,
across async calls.
"""

from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
import uuid

from avpauthz.authz.base import AuthorizerInfo, EntityInput, EntityRef


@dataclass
class RequestContext:
    """
    Context information for a request awaiting authorization.

    Attributes:
        principal: Who is acting (in token modes the id is the token)
        request_id: Unique identifier for this request
        timestamp: When the request was received
        attributes: Cedar context attributes for the decision
        entities: Entity records loaded for the decision
        authorizer_info: Filled in once a decision allowed the request
    """
    principal: EntityRef
    request_id: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    attributes: dict[str, Any] = field(default_factory=dict)
    entities: list[EntityInput] = field(default_factory=list)
    authorizer_info: Optional[AuthorizerInfo] = None

    @classmethod
    def create(
        cls,
        principal: EntityRef,
        attributes: Optional[dict[str, Any]] = None,
        entities: Optional[list[EntityInput]] = None,
    ) -> "RequestContext":
        """Create a new request context with generated request ID."""
        return cls(
            principal=principal,
            request_id=str(uuid.uuid4()),
            attributes=attributes or {},
            entities=list(entities or []),
        )


# ContextVar for async context propagation
_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context",
    default=None
)


def get_current_context() -> Optional[RequestContext]:
    """
    Get the current request context.

    Returns:
        The current RequestContext if one is set, None otherwise.
    """
    return _request_context.get()


def set_current_context(context: Optional[RequestContext]) -> None:
    """
    Set the current request context.

    Args:
        context: The RequestContext to set, or None to clear.
    """
    _request_context.set(context)
