"""Service discovery, hostname normalization and version constraints."""

from tfe_client_core.discovery.constraints import VersionConstraints, check_constraints
from tfe_client_core.discovery.disco import (
    TFE_SERVICE_IDS,
    Discovery,
    Host,
    ServiceID,
    resolve_service,
)
from tfe_client_core.discovery.hostname import normalize_hostname

__all__ = [
    "TFE_SERVICE_IDS",
    "Discovery",
    "Host",
    "ServiceID",
    "VersionConstraints",
    "check_constraints",
    "normalize_hostname",
    "resolve_service",
]
