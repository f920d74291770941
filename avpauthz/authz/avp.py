"""
Amazon Verified Permissions authorization engine.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import NoRegionError
from pydantic import ValidationError

from avpauthz import __version__
from avpauthz.authz.base import (
    AllowResult,
    AuthorizationEngine,
    AuthorizationRequest,
    AuthorizationResult,
    AuthorizerInfo,
    DenyResult,
    Entity,
    EntityInput,
    EntityRef,
    ErrorResult,
    entity_to_dict,
    optional_ref,
)
from avpauthz.config import AVPAuthorizerProps, AWSCredentials, CallType
from avpauthz.exceptions import ConfigurationError, UnreachableCallTypeError
from avpauthz.observability.metrics import MetricsCollector


logger = logging.getLogger(__name__)

USER_AGENT_EXTRA = f"avp-integrations; avpauthz/{__version__}"

# Decision value Verified Permissions returns for a permitted request
DECISION_ALLOW = "ALLOW"


def _json_default(value: Any) -> Any:
    if isinstance(value, (Entity, EntityRef)):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _cedar_json(value: Any) -> dict:
    return {"cedarJson": json.dumps(value, default=_json_default)}


def _shared_params(
    policy_store_id: str,
    request: AuthorizationRequest,
    entities: Optional[Sequence[EntityInput]],
) -> dict:
    """Fields common to IsAuthorized and IsAuthorizedWithToken."""
    return {
        "policyStoreId": policy_store_id,
        "action": {
            "actionType": request.action.type,
            "actionId": request.action.id,
        },
        "resource": {
            "entityType": request.resource.type,
            "entityId": request.resource.id,
        },
        "context": _cedar_json(dict(request.context)),
        "entities": _cedar_json([entity_to_dict(entity) for entity in entities or []]),
    }


def determining_policy_ids(response: Mapping[str, Any]) -> tuple[str, ...]:
    """Policy ids from a decision response, nulls dropped, order kept."""
    return tuple(
        item["policyId"]
        for item in response.get("determiningPolicies") or []
        if item and item.get("policyId") is not None
    )


class CallStrategy(ABC):
    """One of the decision call shapes."""

    operation: str

    @abstractmethod
    def build_params(
        self,
        policy_store_id: str,
        request: AuthorizationRequest,
        entities: Optional[Sequence[EntityInput]],
    ) -> dict:
        """Build the boto3 keyword arguments for the decision call."""

    @abstractmethod
    def send(self, client: Any, params: dict) -> Mapping[str, Any]:
        """Invoke the decision operation (blocking)."""

    @abstractmethod
    def resolve_principal(
        self,
        request: AuthorizationRequest,
        response: Mapping[str, Any],
    ) -> EntityRef:
        """The principal an allow decision is reported for."""


class DirectEntityCall(CallStrategy):
    """IsAuthorized with the principal sent as an entity reference."""

    operation = "IsAuthorized"

    def build_params(self, policy_store_id, request, entities) -> dict:
        params = _shared_params(policy_store_id, request, entities)
        params["principal"] = {
            "entityType": request.principal.type,
            "entityId": request.principal.id,
        }
        return params

    def send(self, client, params):
        return client.is_authorized(**params)

    def resolve_principal(self, request, response) -> EntityRef:
        return request.principal


class TokenCall(CallStrategy):
    """
    IsAuthorizedWithToken.

    The principal id of the request carries the token; the service resolves
    it and reports the principal back in the response.
    """

    operation = "IsAuthorizedWithToken"

    @abstractmethod
    def token_params(self, token: str) -> dict:
        """The single field carrying the token."""

    def build_params(self, policy_store_id, request, entities) -> dict:
        params = _shared_params(policy_store_id, request, entities)
        params.update(self.token_params(request.principal.id))
        return params

    def send(self, client, params):
        return client.is_authorized_with_token(**params)

    def resolve_principal(self, request, response) -> EntityRef:
        principal = optional_ref(response.get("principal"))
        if principal is None:
            raise ValueError(
                f"{self.operation} response did not include the resolved principal"
            )
        return principal


class AccessTokenCall(TokenCall):
    def token_params(self, token: str) -> dict:
        return {"accessToken": token}


class IdentityTokenCall(TokenCall):
    def token_params(self, token: str) -> dict:
        return {"identityToken": token}


def strategy_for(call_type: CallType) -> CallStrategy:
    """
    Select the call strategy for a call type.

    Raises:
        UnreachableCallTypeError: If the call type has no strategy
    """
    if call_type is CallType.IS_AUTHORIZED:
        return DirectEntityCall()
    if call_type is CallType.ACCESS_TOKEN:
        return AccessTokenCall()
    if call_type is CallType.IDENTITY_TOKEN:
        return IdentityTokenCall()
    raise UnreachableCallTypeError(
        "Statement should be unreachable",
        details={"call_type": call_type},
    )


def create_client(
    props: AVPAuthorizerProps,
    session: Optional[boto3.session.Session] = None,
) -> Any:
    """
    Create a Verified Permissions client.

    Static credentials from ``props`` take precedence; otherwise the session
    (or boto3's default chain) resolves them.

    Raises:
        ConfigurationError: If no AWS region can be determined
    """
    session = session or boto3.session.Session()

    client_kwargs: dict[str, Any] = {}
    if props.credentials is not None:
        client_kwargs.update(props.credentials.to_client_kwargs())

    try:
        return session.client(
            "verifiedpermissions",
            region_name=props.region_name,
            endpoint_url=props.endpoint_url,
            config=Config(user_agent_extra=USER_AGENT_EXTRA),
            **client_kwargs,
        )
    except NoRegionError as e:
        raise ConfigurationError(
            "AWS region must be configured (region_name or AWS_DEFAULT_REGION)",
            details={"policy_store_id": props.policy_store_id},
        ) from e


class AVPAuthorizationEngine(AuthorizationEngine):
    """
    Authorization engine backed by Amazon Verified Permissions.

    Features:
    - Three call shapes: isAuthorized, accessToken, identityToken
    - Every outcome settles to allow, deny or error; remote failures never raise
    - One outbound call per decision, no retries or caching
    - Immutable after construction, safe to share between concurrent callers

    Example:
        engine = AVPAuthorizationEngine(
            policy_store_id="PSEXAMPLEabcdefg111111",
            call_type="isAuthorized",
        )
        result = await engine.is_authorized(request, entities=[])
        if result.type == "allow":
            ...
    """

    def __init__(
        self,
        policy_store_id: Optional[str] = None,
        call_type: CallType | str | None = None,
        credentials: AWSCredentials | Mapping[str, Any] | None = None,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        session: Optional[boto3.session.Session] = None,
        client: Any = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize the engine.

        Args:
            policy_store_id: Verified Permissions policy store id
            call_type: accessToken, identityToken or isAuthorized
            credentials: Static AWS credentials
            region_name: AWS region for the client
            endpoint_url: Endpoint override for the client
            session: boto3 session used to resolve credentials
            client: Pre-built Verified Permissions client (skips client creation)
            metrics: Collector to record decisions into

        Raises:
            ConfigurationError: If the store id is missing or the call type is invalid
        """
        try:
            props = AVPAuthorizerProps(
                policy_store_id=policy_store_id,
                call_type=call_type,
                credentials=credentials,
                region_name=region_name,
                endpoint_url=endpoint_url,
            )
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid authorizer configuration: {e}",
                details={"error": str(e)},
            ) from e

        self._props = props
        self._strategy = strategy_for(props.call_type)
        self._client = client if client is not None else create_client(props, session)
        self._metrics = metrics

        logger.info(
            f"Verified Permissions engine initialized: policy_store_id={props.policy_store_id}, "
            f"call_type={props.call_type.value}"
        )

    @classmethod
    def from_props(cls, props: AVPAuthorizerProps, **kwargs) -> "AVPAuthorizationEngine":
        """Build an engine from a loaded configuration."""
        return cls(
            policy_store_id=props.policy_store_id,
            call_type=props.call_type,
            credentials=props.credentials,
            region_name=props.region_name,
            endpoint_url=props.endpoint_url,
            **kwargs,
        )

    @property
    def policy_store_id(self) -> str:
        return self._props.policy_store_id

    @property
    def call_type(self) -> CallType:
        return self._props.call_type

    async def is_authorized(
        self,
        request: AuthorizationRequest,
        entities: Sequence[EntityInput],
    ) -> AuthorizationResult:
        """
        Ask Verified Permissions for a decision.

        Args:
            request: Principal, action, resource and context. In token call
                modes ``request.principal.id`` is the token.
            entities: Entity records, serialized as Cedar JSON

        Returns:
            AllowResult with the principal and determining policies,
            DenyResult for any non-ALLOW decision, or ErrorResult if the
            call or the response handling failed.
        """
        operation = self._strategy.operation

        try:
            params = self._strategy.build_params(self.policy_store_id, request, entities)
            response = await asyncio.to_thread(self._send, params)
            result = self._to_result(request, response)
            logger.debug(
                f"{operation}: action={request.action} resource={request.resource} "
                f"decision={result.type}"
            )
        except Exception as e:
            logger.warning(f"{operation} call failed: {e}")
            result = ErrorResult(message=str(e) or type(e).__name__)

        if self._metrics is not None:
            self._metrics.record_decision(self.call_type.value, result.type)

        return result

    def _send(self, params: dict) -> Mapping[str, Any]:
        if self._metrics is None:
            return self._strategy.send(self._client, params)
        with self._metrics.time_decision(self.call_type.value):
            return self._strategy.send(self._client, params)

    def _to_result(
        self,
        request: AuthorizationRequest,
        response: Mapping[str, Any],
    ) -> AuthorizationResult:
        if response.get("decision") != DECISION_ALLOW:
            return DenyResult()

        return AllowResult(
            authorizer_info=AuthorizerInfo(
                principal_uid=self._strategy.resolve_principal(request, response),
                determining_policies=determining_policy_ids(response),
            )
        )

    async def health_check(self) -> bool:
        """
        Check that the policy store is reachable.

        Returns:
            True if GetPolicyStore succeeds, False otherwise
        """
        try:
            await asyncio.to_thread(
                self._client.get_policy_store,
                policyStoreId=self.policy_store_id,
            )
            return True
        except Exception as e:
            logger.warning(f"Verified Permissions health check failed: {e}")
            return False

    def close(self) -> None:
        """Close the underlying client."""
        self._client.close()
