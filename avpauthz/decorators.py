"""
Enforcement decorators for async request handlers.

This module turns engine decisions into control flow: an ``allow`` lets the
handler run, while ``deny`` and ``error`` both stop it (fail closed).
"""

import functools
import inspect
import logging
import time
from dataclasses import replace
from typing import Any, Callable, Optional, Union

from avpauthz.authz.base import AuthorizationRequest, Entity, EntityRef, ErrorResult
from avpauthz.context import get_current_context, set_current_context
from avpauthz.exceptions import AuthorizationDeniedError, ConfigurationError


logger = logging.getLogger(__name__)

ResourceProvider = Callable[..., Any]


def _as_ref(value: Union[EntityRef, str], default_type: str) -> EntityRef:
    if isinstance(value, EntityRef):
        return value
    if "::" in value:
        return EntityRef.parse(value)
    return EntityRef(type=default_type, id=value)


async def _resolve_resource(
    provider: ResourceProvider,
    instance: Any,
    args: tuple,
    kwargs: dict,
) -> tuple[EntityRef, list[Entity]]:
    resolved = provider(instance, *args, **kwargs)
    if inspect.isawaitable(resolved):
        resolved = await resolved

    # A full entity record also feeds the policy evaluation
    if isinstance(resolved, Entity):
        return resolved.uid, [resolved]
    return _as_ref(resolved, "Resource"), []


def requires_authorization(
    action: Union[EntityRef, str],
    resource: Union[EntityRef, str, None] = None,
    resource_provider: Optional[ResourceProvider] = None,
):
    """
    Decorator that asks the owning object's engine before running a handler.

    The decorated method's object must expose ``_authorization_engine``; an
    ``_audit_logger`` attribute, when present, receives one audit event per
    decision. The principal, context attributes and entities come from the
    current RequestContext.

    Args:
        action: Action reference; a bare name becomes ``Action::<name>``
        resource: Fixed resource reference
        resource_provider: Called with the handler's arguments to produce the
            resource, either an EntityRef or an Entity (sync or async)

    Raises:
        AuthorizationDeniedError: On deny, on error, or without a request context
        ConfigurationError: If the object has no authorization engine

    Example:
        class NotebookHandlers:
            def __init__(self, engine):
                self._authorization_engine = engine

            @requires_authorization(
                "getNotebook",
                resource_provider=lambda self, notebook_id: EntityRef(
                    "NotebooksApp::Notebook", notebook_id
                ),
            )
            async def get_notebook(self, notebook_id: str) -> dict:
                ...
    """
    if resource is None and resource_provider is None:
        raise ValueError("Either resource or resource_provider must be given")

    action_ref = _as_ref(action, "Action")
    fixed_resource = _as_ref(resource, "Resource") if resource is not None else None

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            context = get_current_context()
            if context is None:
                logger.error(f"Authorization for '{action_ref}' failed: no request context")
                raise AuthorizationDeniedError(
                    "No request context available for authorization"
                )

            engine = getattr(self, "_authorization_engine", None)
            if engine is None:
                raise ConfigurationError(
                    f"{type(self).__name__} has no _authorization_engine",
                    details={"handler": func.__name__},
                )

            if fixed_resource is not None:
                resource_ref, extra_entities = fixed_resource, []
            else:
                resource_ref, extra_entities = await _resolve_resource(
                    resource_provider, self, args, kwargs
                )

            request = AuthorizationRequest(
                principal=context.principal,
                action=action_ref,
                resource=resource_ref,
                context=context.attributes,
            )

            started = time.perf_counter()
            result = await engine.is_authorized(
                request, [*context.entities, *extra_entities]
            )
            duration = time.perf_counter() - started

            if isinstance(result, ErrorResult):
                reason = result.message
            elif result.type == "allow":
                reason = ", ".join(result.authorizer_info.determining_policies)
            else:
                reason = "denied by policy"

            audit_logger = getattr(self, "_audit_logger", None)
            if audit_logger is not None:
                audit_logger.audit_decision(
                    principal=str(context.principal),
                    action=str(action_ref),
                    resource=str(resource_ref),
                    decision=result.type,
                    duration=duration,
                    reason=reason,
                    context={"request_id": context.request_id},
                )

            if result.type != "allow":
                logger.error(
                    f"Authorization {result.type} for {action_ref} on {resource_ref} "
                    f"(request_id: {context.request_id}): {reason}"
                )
                raise AuthorizationDeniedError(
                    f"Not authorized to perform {action_ref} on {resource_ref}: {reason}",
                    result=result,
                    details={"request_id": context.request_id},
                )

            logger.info(
                f"Authorization granted for {action_ref} on {resource_ref} "
                f"(request_id: {context.request_id})"
            )
            set_current_context(replace(context, authorizer_info=result.authorizer_info))

            return await func(self, *args, **kwargs)

        return wrapper

    return decorator


_AUDIT_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def audit_log(level: str = "info"):
    """
    Log every call of an async handler method, successful or not.

    The entry holds the request id and principal of the current context, the
    handler name, whether it returned, its wall time and, on failure, the
    error text. Exceptions are re-raised unchanged.

    Example:
        @audit_log(level="warning")
        @requires_authorization("deleteNotebook", resource_provider=notebook_ref)
        async def delete_notebook(self, notebook_id: str) -> None:
            ...
    """
    log_level = _AUDIT_LEVELS.get(level.lower())
    if log_level is None:
        raise ValueError(f"Invalid log level: {level}. Must be one of {sorted(_AUDIT_LEVELS)}")

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            context = get_current_context()
            entry: dict[str, Any] = {
                "request_id": context.request_id if context else "no-request-id",
                "principal": str(context.principal) if context else "unknown",
                "handler": func.__name__,
                "success": False,
            }
            started = time.perf_counter()

            try:
                result = await func(self, *args, **kwargs)
            except Exception as e:
                entry["error"] = str(e) or type(e).__name__
                raise
            else:
                entry["success"] = True
                return result
            finally:
                entry["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
                logger.log(log_level, f"AUDIT: {entry}")

        return wrapper

    return decorator
