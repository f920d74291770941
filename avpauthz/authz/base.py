"""
Base authorization engine interface for avpauthz.

Defines the request, entity and result types shared by every engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional, Sequence, Union


@dataclass(frozen=True)
class EntityRef:
    """
    Typed reference to a Cedar entity or action.

    Attributes:
        type: Entity type, e.g. "User" or "NotebooksApp::Notebook"
        id: Entity identifier within its type
    """
    type: str
    id: str

    @classmethod
    def parse(cls, value: str) -> "EntityRef":
        """
        Parse a ``Type::id`` string.

        The id is everything after the last ``::`` and may be quoted, so
        ``NotebooksApp::User::"alice"`` parses to type ``NotebooksApp::User``
        and id ``alice``.

        Raises:
            ValueError: If the value has no ``::`` separator
        """
        entity_type, sep, entity_id = value.rpartition("::")
        if not sep or not entity_type or not entity_id:
            raise ValueError(f"Expected 'Type::id', got: {value!r}")
        if len(entity_id) >= 2 and entity_id.startswith('"') and entity_id.endswith('"'):
            entity_id = entity_id[1:-1]
        return cls(type=entity_type, id=entity_id)

    def to_dict(self) -> dict:
        return {"type": self.type, "id": self.id}

    def __str__(self) -> str:
        return f'{self.type}::"{self.id}"'


@dataclass(frozen=True)
class AuthorizationRequest:
    """
    A single authorization question.

    Attributes:
        principal: Who is acting. In token call modes the id holds the token.
        action: What is being attempted
        resource: What the action targets
        context: Extra attributes, passed to the policy evaluator as-is
    """
    principal: EntityRef
    action: EntityRef
    resource: EntityRef
    context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Detach from the caller's mapping
        object.__setattr__(self, "context", dict(self.context))


@dataclass(frozen=True)
class Entity:
    """
    Entity record supplied alongside a request.

    The engine never looks inside; it only serializes the Cedar JSON shape.
    """
    uid: EntityRef
    attrs: Mapping[str, Any] = field(default_factory=dict)
    parents: Sequence[EntityRef] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "uid": self.uid.to_dict(),
            "attrs": dict(self.attrs),
            "parents": [parent.to_dict() for parent in self.parents],
        }


@dataclass(frozen=True)
class AuthorizerInfo:
    """
    Details attached to an allow decision.

    Attributes:
        principal_uid: The principal the decision was made for
        determining_policies: Ids of the policies that produced the decision
    """
    principal_uid: EntityRef
    determining_policies: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "principalUid": self.principal_uid.to_dict(),
            "determiningPolicies": list(self.determining_policies),
        }


@dataclass(frozen=True)
class AllowResult:
    authorizer_info: AuthorizerInfo
    type: Literal["allow"] = "allow"

    def to_dict(self) -> dict:
        return {"type": self.type, "authorizerInfo": self.authorizer_info.to_dict()}


@dataclass(frozen=True)
class DenyResult:
    type: Literal["deny"] = "deny"

    def to_dict(self) -> dict:
        return {"type": self.type}


@dataclass(frozen=True)
class ErrorResult:
    message: str
    type: Literal["error"] = "error"

    def to_dict(self) -> dict:
        return {"type": self.type, "message": self.message}


AuthorizationResult = Union[AllowResult, DenyResult, ErrorResult]

EntityInput = Union[Entity, Mapping[str, Any]]


class AuthorizationEngine(ABC):
    """
    Abstract base class for authorization engines.

    Implementations answer principal/action/resource/context questions and
    always settle to one of the three result shapes.
    """

    @abstractmethod
    async def is_authorized(
        self,
        request: AuthorizationRequest,
        entities: Sequence[EntityInput],
    ) -> AuthorizationResult:
        """
        Decide whether a request is permitted.

        Args:
            request: The principal/action/resource/context to evaluate
            entities: Entity records available to the policies

        Returns:
            AllowResult, DenyResult or ErrorResult. Never raises for
            remote failures.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the engine's backing service is reachable.

        Returns:
            True if healthy, False otherwise
        """
        pass


def entity_to_dict(entity: EntityInput) -> Any:
    """Cedar JSON form of an entity; plain mappings pass through."""
    if isinstance(entity, Entity):
        return entity.to_dict()
    return entity


def optional_ref(data: Optional[Mapping[str, Any]]) -> Optional[EntityRef]:
    """Build an EntityRef from an AVP ``{entityType, entityId}`` mapping."""
    if not data or data.get("entityType") is None or data.get("entityId") is None:
        return None
    return EntityRef(type=str(data["entityType"]), id=str(data["entityId"]))
