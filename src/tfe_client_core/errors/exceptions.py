"""Structured exceptions for client configuration failures."""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class ErrorKind(str, Enum):
    """Closed set of fatal failure kinds surfaced by client configuration."""

    MISSING_AUTH_TOKEN = "missing_auth_token"
    INVALID_HOSTNAME = "invalid_hostname"
    DISCOVERY_FAILED = "discovery_failed"
    CONSTRAINT_VIOLATION = "constraint_violation"
    INVALID_SETTING = "invalid_setting"


class ClientConfigurationError(Exception):
    """Base exception for fatal client configuration errors."""

    kind: ErrorKind = ErrorKind.DISCOVERY_FAILED

    def __init__(self, message: str, remediation: str | None = None):
        super().__init__(message)
        self.remediation = remediation


class MissingAuthTokenError(ClientConfigurationError):
    """No token could be resolved from any source."""

    kind = ErrorKind.MISSING_AUTH_TOKEN

    DEFAULT_MESSAGE = (
        "required token could not be found. Please set the token using an input variable "
        "in the provider configuration block or by using the TFE_TOKEN environment variable"
    )

    def __init__(self, message: str | None = None, hostname: str | None = None):
        super().__init__(
            message or self.DEFAULT_MESSAGE,
            remediation="Set the token explicitly, export TFE_TOKEN, or run `terraform login`",
        )
        self.hostname = hostname


class InvalidHostnameError(ClientConfigurationError):
    """Hostname could not be normalized for comparison."""

    kind = ErrorKind.INVALID_HOSTNAME

    def __init__(self, message: str, hostname: str):
        super().__init__(message)
        self.hostname = hostname


class InvalidSettingError(ClientConfigurationError):
    """An environment setting holds a value that cannot be parsed."""

    kind = ErrorKind.INVALID_SETTING

    def __init__(self, message: str, env_var_name: str | None = None):
        super().__init__(message)
        self.env_var_name = env_var_name


class DiscoveryError(ClientConfigurationError):
    """Service discovery failed for a host."""

    kind = ErrorKind.DISCOVERY_FAILED

    def __init__(
        self,
        message: str,
        hostname: str | None = None,
        status_code: int | None = None,
        response: "httpx.Response | None" = None,
    ):
        super().__init__(message)
        self.hostname = hostname
        self.status_code = status_code
        self.response = response


class VersionNotSupportedError(DiscoveryError):
    """The host advertises the service, but not at the requested version."""

    def __init__(self, message: str, hostname: str, service_id: str, supported: list[str] | None = None):
        super().__init__(message, hostname=hostname)
        self.service_id = service_id
        self.supported = supported if supported is not None else []


class ServiceNotProvidedError(DiscoveryError):
    """The host does not advertise the service at any version."""

    def __init__(self, message: str, hostname: str, service_id: str):
        super().__init__(message, hostname=hostname)
        self.service_id = service_id


class ConstraintViolationError(ClientConfigurationError):
    """The running version is outside the remote-declared constraints."""

    kind = ErrorKind.CONSTRAINT_VIOLATION

    def __init__(
        self,
        summary: str,
        detail: str,
        remediation: str | None = None,
        current_version: str | None = None,
    ):
        super().__init__(f"{summary}\n\n{detail}", remediation=remediation)
        self.summary = summary
        self.detail = detail
        self.current_version = current_version


class ConstraintsUnavailableError(Exception):
    """Version constraints could not be fetched. Advisory only."""

    pass


class ConstraintCheckError(Exception):
    """Version constraints could not be evaluated. Advisory only."""

    pass
