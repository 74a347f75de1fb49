"""Error taxonomy for client configuration and discovery."""

from tfe_client_core.errors.exceptions import (
    ClientConfigurationError,
    ConstraintCheckError,
    ConstraintsUnavailableError,
    ConstraintViolationError,
    DiscoveryError,
    ErrorKind,
    InvalidHostnameError,
    InvalidSettingError,
    MissingAuthTokenError,
    ServiceNotProvidedError,
    VersionNotSupportedError,
)
from tfe_client_core.errors.handler import raise_for_status

__all__ = [
    "ClientConfigurationError",
    "ConstraintCheckError",
    "ConstraintViolationError",
    "ConstraintsUnavailableError",
    "DiscoveryError",
    "ErrorKind",
    "InvalidHostnameError",
    "InvalidSettingError",
    "MissingAuthTokenError",
    "ServiceNotProvidedError",
    "VersionNotSupportedError",
    "raise_for_status",
]
