"""Authentication components for the TFE client.

This module provides:
- Multi-source value resolution (value → env → .env → default)
- Host-specific token variables (TF_TOKEN_<host>)
- Terraform CLI config and credentials file loading

Example:
    ```python
    from tfe_client_core.auth import CredentialResolver, load_cli_config

    resolver = CredentialResolver()
    token = resolver.resolve(env_var_name="TFE_TOKEN")
    if token is None:
        token = load_cli_config().credentials_source().for_host("app.terraform.io")
    ```
"""

from tfe_client_core.auth.cli_config import (
    CLIConfig,
    HostCredentials,
    StaticCredentialsSource,
    credentials_file,
    load_cli_config,
    locate_config_file,
)
from tfe_client_core.auth.credentials import CredentialResolver
from tfe_client_core.auth.exceptions import CredentialError, CredentialFileError

__all__ = [
    "CLIConfig",
    "CredentialError",
    "CredentialFileError",
    "CredentialResolver",
    "HostCredentials",
    "StaticCredentialsSource",
    "credentials_file",
    "load_cli_config",
    "locate_config_file",
]
