"""Tests for the client configuration error taxonomy."""

import pytest

from tfe_client_core.errors import (
    ClientConfigurationError,
    ConstraintViolationError,
    DiscoveryError,
    ErrorKind,
    InvalidHostnameError,
    InvalidSettingError,
    MissingAuthTokenError,
    ServiceNotProvidedError,
    VersionNotSupportedError,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (MissingAuthTokenError(), ErrorKind.MISSING_AUTH_TOKEN),
        (InvalidHostnameError("bad", hostname="bad host"), ErrorKind.INVALID_HOSTNAME),
        (DiscoveryError("boom"), ErrorKind.DISCOVERY_FAILED),
        (VersionNotSupportedError("old", hostname="h", service_id="tfe.v2.2"), ErrorKind.DISCOVERY_FAILED),
        (ServiceNotProvidedError("none", hostname="h", service_id="tfe.v2.2"), ErrorKind.DISCOVERY_FAILED),
        (ConstraintViolationError("summary", "detail"), ErrorKind.CONSTRAINT_VIOLATION),
        (InvalidSettingError("bad flag", env_var_name="TFE_SSL_SKIP_VERIFY"), ErrorKind.INVALID_SETTING),
    ],
)
def test_every_fatal_error_has_a_kind(error, kind):
    """Test that each fatal error is classified and shares the base class."""
    assert isinstance(error, ClientConfigurationError)
    assert error.kind is kind


@pytest.mark.unit
def test_missing_auth_token_carries_guidance():
    """Test that the missing token error tells the user how to fix it."""
    error = MissingAuthTokenError(hostname="app.terraform.io")

    assert "TFE_TOKEN" in str(error)
    assert error.remediation
    assert error.hostname == "app.terraform.io"


@pytest.mark.unit
def test_missing_auth_token_instances_are_independent():
    """Test that each raise gets its own error object."""
    first = MissingAuthTokenError(hostname="a.example.com")
    second = MissingAuthTokenError(hostname="b.example.com")

    assert first is not second
    assert first.hostname != second.hostname


@pytest.mark.unit
def test_constraint_violation_fields():
    error = ConstraintViolationError(
        "Please upgrade tfe-client-core to >= 2.0.0",
        "The configured backend is compatible with versions >= 2.0.0.",
        remediation="upgrade to >= 2.0.0",
        current_version="1.5.0",
    )

    assert str(error) == (
        "Please upgrade tfe-client-core to >= 2.0.0\n\nThe configured backend is compatible with versions >= 2.0.0."
    )
    assert error.remediation == "upgrade to >= 2.0.0"
    assert error.current_version == "1.5.0"


@pytest.mark.unit
def test_version_not_supported_is_discovery_error():
    error = VersionNotSupportedError("old", hostname="h", service_id="tfe.v2.2", supported=["v2"])

    assert isinstance(error, DiscoveryError)
    assert error.supported == ["v2"]
