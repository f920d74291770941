"""
Engine configuration for avpauthz.

``AVPAuthorizerProps`` is validated once, when an engine is built, and is
immutable afterwards. A bad policy store id or call type is rejected with
``ConfigurationError`` before any AWS client exists.

Sources, in the order most deployments use them:

- a YAML file, at top level or under an ``authorizer`` key
- ``AVPAUTHZ_*`` environment variables
- keyword arguments
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Literal, Optional, Self

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)

from avpauthz.exceptions import ConfigurationError


class CallType(str, Enum):
    """How the principal is presented to Verified Permissions."""

    ACCESS_TOKEN = "accessToken"
    IDENTITY_TOKEN = "identityToken"
    IS_AUTHORIZED = "isAuthorized"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


def invalid_call_type_error(value: Any) -> ConfigurationError:
    return ConfigurationError(
        f"Call type must be one of: {', '.join(CallType.values())}",
        details={"call_type": value},
    )


def missing_policy_store_error() -> ConfigurationError:
    return ConfigurationError("PolicyStoreId must be specified")


_ENV_SETTINGS = ("policy_store_id", "call_type", "region_name", "endpoint_url")
_ENV_CREDENTIALS = ("access_key_id", "secret_access_key", "session_token")


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    """Parse a YAML file that must hold a mapping."""
    details = {"path": str(path)}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {path}", details=details) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file: {e}",
            details={**details, "error": str(e)},
        ) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file: {e}", details=details) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must contain a YAML dictionary", details=details)
    return data


class AWSCredentials(BaseModel):
    """
    Static AWS credential material.

    When omitted from the engine configuration, boto3's default credential
    chain is used instead.
    """

    model_config = ConfigDict(frozen=True)

    access_key_id: str = Field(..., description="AWS access key id")
    secret_access_key: SecretStr = Field(..., description="AWS secret access key")
    session_token: Optional[SecretStr] = Field(
        default=None, description="Session token for temporary credentials"
    )

    def to_client_kwargs(self) -> dict[str, str]:
        """Keyword arguments accepted by ``boto3.session.Session.client``."""
        kwargs = {
            "aws_access_key_id": self.access_key_id,
            "aws_secret_access_key": self.secret_access_key.get_secret_value(),
        }
        if self.session_token is not None:
            kwargs["aws_session_token"] = self.session_token.get_secret_value()
        return kwargs


class AVPAuthorizerProps(BaseModel):
    """
    Verified Permissions engine configuration.

    Fixed for the lifetime of an engine. Both snake_case and the camelCase
    names (``policyStoreId``, ``callType``) are accepted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    policy_store_id: Optional[str] = Field(
        default=None, alias="policyStoreId", description="Verified Permissions policy store id"
    )
    call_type: Optional[CallType] = Field(
        default=None, alias="callType", description="Decision call strategy"
    )
    credentials: Optional[AWSCredentials] = Field(
        default=None, description="Static credentials (default credential chain if omitted)"
    )
    region_name: Optional[str] = Field(default=None, description="AWS region")
    endpoint_url: Optional[str] = Field(
        default=None, description="Override the Verified Permissions endpoint"
    )

    @field_validator("call_type", mode="before")
    @classmethod
    def validate_call_type(cls, v: Any) -> Any:
        """Reject anything outside the three call types."""
        if isinstance(v, CallType):
            return v
        if v not in CallType.values():
            raise invalid_call_type_error(v)
        return CallType(v)

    @model_validator(mode="after")
    def validate_required(self) -> Self:
        """Both the store id and the call type are mandatory."""
        if not self.policy_store_id:
            raise missing_policy_store_error()
        if self.call_type is None:
            raise invalid_call_type_error(None)
        return self

    @classmethod
    def from_file(cls, path: str | Path) -> "AVPAuthorizerProps":
        """
        Load configuration from a YAML file.

        Args:
            path: YAML file with the engine settings at top level or under
                an ``authorizer`` key

        Raises:
            ConfigurationError: If the file is missing, unparsable or invalid

        Example:
            props = AVPAuthorizerProps.from_file("avpauthz.yaml")
        """
        data = _read_yaml_mapping(Path(path))
        section = data.get("authorizer")
        if isinstance(section, dict):
            data = section

        try:
            return cls(**data)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load configuration: {e}",
                details={"path": str(path), "error": str(e)},
            ) from e

    @classmethod
    def from_env(cls, prefix: str = "AVPAUTHZ_") -> "AVPAuthorizerProps":
        """
        Load configuration from environment variables.

        Examples:
            AVPAUTHZ_POLICY_STORE_ID=PSEXAMPLEabcdefg111111
            AVPAUTHZ_CALL_TYPE=identityToken
            AVPAUTHZ_REGION_NAME=us-east-1
            AVPAUTHZ_ACCESS_KEY_ID=AKIA...
            AVPAUTHZ_SECRET_ACCESS_KEY=...

        Raises:
            ConfigurationError: If required variables are missing or invalid
        """
        def collect(names: tuple[str, ...]) -> dict[str, str]:
            found = {}
            for name in names:
                value = os.environ.get(f"{prefix}{name.upper()}")
                if value:
                    found[name] = value
            return found

        settings: dict[str, Any] = collect(_ENV_SETTINGS)
        missing = [
            f"{prefix}{name.upper()}"
            for name in ("policy_store_id", "call_type")
            if name not in settings
        ]
        if missing:
            raise ConfigurationError(
                "Required environment variables missing",
                details={"required": missing},
            )

        credentials = collect(_ENV_CREDENTIALS)
        if credentials:
            settings["credentials"] = credentials

        try:
            return cls(**settings)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load configuration from environment: {e}",
                details={"error": str(e)},
            ) from e

    def summary(self) -> dict[str, Any]:
        """Sanitized view of the configuration (no secrets)."""
        return {
            "policy_store_id": self.policy_store_id,
            "call_type": self.call_type.value if self.call_type else None,
            "region_name": self.region_name,
            "endpoint_url": self.endpoint_url,
            "credentials": "static" if self.credentials else "default chain",
        }


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Log level"
    )
    json_format: bool = Field(default=True, description="Emit JSON log lines")
