"""
avpauthz - CLI Main Entry Point
"""

import sys
import asyncio
from typing import Optional

import click

from avpauthz import __version__
from avpauthz.authz.avp import AVPAuthorizationEngine
from avpauthz.authz.base import AuthorizationRequest
from avpauthz.config import AVPAuthorizerProps, CallType, LoggingConfig
from avpauthz.exceptions import ConfigurationError
from avpauthz.observability.logging import setup_logging
from avpauthz.cli.utils import (
    ENTITY_REF,
    console,
    success,
    error,
    warning,
    info,
    print_json,
    print_key_value,
    load_json_option,
)


# Exit codes for `check`
EXIT_ALLOW = 0
EXIT_DENY = 1
EXIT_ERROR = 2


def build_engine(props: AVPAuthorizerProps) -> AVPAuthorizationEngine:
    """Engine factory used by the commands."""
    return AVPAuthorizationEngine.from_props(props)


def load_props(
    config_file: Optional[str],
    policy_store_id: Optional[str],
    call_type: Optional[str],
    region: Optional[str],
) -> AVPAuthorizerProps:
    """Props from a config file, with command line values taking precedence."""
    base = AVPAuthorizerProps.from_file(config_file).model_dump() if config_file else {}

    overrides = {
        "policy_store_id": policy_store_id,
        "call_type": call_type,
        "region_name": region,
    }
    base.update({key: value for key, value in overrides.items() if value is not None})
    return AVPAuthorizerProps(**base)


@click.group()
@click.version_option(version=__version__, prog_name="avpauthz")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Log level for avpauthz loggers (default: WARNING)",
)
@click.option("--json-logs", is_flag=True, default=False, help="Emit log lines as JSON")
def cli(log_level, json_logs):
    """
    avpauthz - Command Line Interface

    Validate engine configuration and run authorization decisions
    against Amazon Verified Permissions.
    """
    setup_logging(
        service_name="avpauthz-cli",
        config=LoggingConfig(level=log_level.upper(), json_format=json_logs),
    )


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
@click.option(
    "--check-store",
    is_flag=True,
    default=False,
    help="Also check that the policy store is reachable",
)
def validate(config_file, check_store):
    """
    Validate engine configuration file.

    Checks:
    - YAML syntax
    - Policy store id present
    - Call type is one of accessToken, identityToken, isAuthorized
    - Optionally, that the policy store can be reached
    """
    info(f"Validating configuration: {config_file}")

    try:
        props = AVPAuthorizerProps.from_file(config_file)
    except ConfigurationError as e:
        error(str(e))
        sys.exit(1)

    if props.credentials is not None:
        warning("Static credentials found in configuration file")

    if check_store:
        try:
            engine = build_engine(props)
        except ConfigurationError as e:
            error(str(e))
            sys.exit(1)

        try:
            reachable = asyncio.run(engine.health_check())
        finally:
            engine.close()

        if reachable:
            success(f"Policy store reachable: {props.policy_store_id}")
        else:
            error(f"Policy store not reachable: {props.policy_store_id}")
            sys.exit(1)

    console.print()
    success("Configuration validation passed")

    print_key_value(props.summary(), title="Configuration Summary")


@cli.command()
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True),
    help="Engine configuration file",
)
@click.option("--policy-store-id", help="Policy store id (overrides config)")
@click.option(
    "--call-type",
    type=click.Choice(CallType.values()),
    help="Call type (overrides config)",
)
@click.option("--region", help="AWS region (overrides config)")
@click.option(
    "--principal",
    required=True,
    type=ENTITY_REF,
    help="Principal as Type::id (in token modes the id is the token)",
)
@click.option("--action", required=True, type=ENTITY_REF, help="Action as Type::id")
@click.option("--resource", required=True, type=ENTITY_REF, help="Resource as Type::id")
@click.option("--context", "context_json", help="Context attributes as JSON, or @file")
@click.option("--entities", "entities_json", help="Entity list as JSON, or @file")
def check(
    config_file,
    policy_store_id,
    call_type,
    region,
    principal,
    action,
    resource,
    context_json,
    entities_json,
):
    """
    Run one authorization decision.

    Exit code is 0 for allow, 1 for deny and 2 for error.

    Example:
        avpauthz check --policy-store-id PSEXAMPLEabcdefg111111 \\
          --call-type isAuthorized \\
          --principal User::bob --action Action::read --resource Document::doc456
    """
    context = load_json_option(context_json, "context") or {}
    entities = load_json_option(entities_json, "entities") or []

    if not isinstance(context, dict):
        raise click.BadParameter("Context must be a JSON object")
    if not isinstance(entities, list):
        raise click.BadParameter("Entities must be a JSON list")

    try:
        props = load_props(config_file, policy_store_id, call_type, region)
        engine = build_engine(props)
    except ConfigurationError as e:
        error(str(e))
        sys.exit(EXIT_ERROR)

    request = AuthorizationRequest(
        principal=principal,
        action=action,
        resource=resource,
        context=context,
    )

    info(f"Querying {props.policy_store_id} ({props.call_type.value})")
    try:
        result = asyncio.run(engine.is_authorized(request, entities))
    finally:
        engine.close()

    console.print()
    if result.type == "allow":
        success("ALLOWED")
    elif result.type == "deny":
        error("DENIED")
    else:
        error(f"ERROR: {result.message}")

    print_json(result.to_dict(), title="Result")

    if result.type == "allow":
        sys.exit(EXIT_ALLOW)
    if result.type == "deny":
        sys.exit(EXIT_DENY)
    sys.exit(EXIT_ERROR)


if __name__ == "__main__":
    cli()
