"""Terraform CLI configuration and credentials file loading.

Two optional files can provide credentials:

- The main CLI config file (``~/.terraformrc`` by default, or the path in
  ``TF_CLI_CONFIG_FILE`` / ``TERRAFORM_CONFIG``). It may contain manually
  entered ``credentials`` blocks and ``host`` blocks that pin service URLs.
- The credentials file written by ``terraform login``
  (``~/.terraform.d/credentials.tfrc.json``). Its location is not
  configurable.

Loading is best-effort: a missing, unreadable or malformed file is logged,
recorded in ``CLIConfig.diagnostics`` and treated as empty.

Example:
    ```python
    from tfe_client_core.auth import load_cli_config

    config = load_cli_config()
    creds = config.credentials_source().for_host("app.terraform.io")
    if creds is not None:
        print("found a token")
    ```
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import hcl

from tfe_client_core.auth.exceptions import CredentialFileError
from tfe_client_core.discovery.hostname import normalize_hostname
from tfe_client_core.errors import InvalidHostnameError

logger = logging.getLogger(__name__)

CLI_CONFIG_FILE_ENV = "TF_CLI_CONFIG_FILE"
LEGACY_CONFIG_FILE_ENV = "TERRAFORM_CONFIG"

CredentialTable = dict[str, dict[str, Any]]
HostServiceConfig = dict[str, dict[str, Any]]


@dataclass(frozen=True)
class HostCredentials:
    """Credentials for a single host."""

    hostname: str
    token: str


class StaticCredentialsSource:
    """Credentials source backed by a fixed table of normalized hostnames."""

    def __init__(self, table: CredentialTable | None = None):
        self._table = dict(table or {})

    def for_host(self, hostname: str) -> HostCredentials | None:
        """Return credentials for a normalized hostname, or None."""
        record = self._table.get(hostname)
        if not record:
            return None
        token = record.get("token")
        if not isinstance(token, str) or not token:
            return None
        return HostCredentials(hostname=hostname, token=token)

    def __len__(self) -> int:
        return len(self._table)


@dataclass
class CLIConfig:
    """Merged view of the CLI config and credentials files.

    Attributes:
        credentials: Normalized hostname to credential record.
        hosts: Normalized hostname to pinned service map.
        diagnostics: Problems encountered while loading, for reporting.
    """

    credentials: CredentialTable = field(default_factory=dict)
    hosts: HostServiceConfig = field(default_factory=dict)
    diagnostics: list[CredentialFileError] = field(default_factory=list)

    def credentials_source(self) -> StaticCredentialsSource:
        return StaticCredentialsSource(self.credentials)


def default_config_dir() -> Path:
    """Per-user directory holding Terraform CLI files."""
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", Path.home()))
    return Path.home()


def config_file() -> str:
    """Default location of the main CLI config file."""
    if sys.platform == "win32":
        return str(default_config_dir() / "terraform.rc")
    return str(default_config_dir() / ".terraformrc")


def credentials_file() -> str:
    """Fixed location of the credentials file written by `terraform login`."""
    if sys.platform == "win32":
        return str(default_config_dir() / "terraform.d" / "credentials.tfrc.json")
    return str(default_config_dir() / ".terraform.d" / "credentials.tfrc.json")


def locate_config_file() -> str:
    """Find the main CLI config file path.

    Tries TF_CLI_CONFIG_FILE, then TERRAFORM_CONFIG, then the default
    location. Override values are returned unexpanded.
    """
    for env_var_name in (CLI_CONFIG_FILE_ENV, LEGACY_CONFIG_FILE_ENV):
        path = os.environ.get(env_var_name)
        if path:
            return path
    return config_file()


def read_cli_config_file(file_path: str) -> tuple[dict[str, Any], CredentialFileError | None]:
    """Read and parse a CLI config or credentials file.

    Never raises: any failure is logged and returned alongside an empty
    result.

    Returns:
        Tuple of (decoded document, error or None).
    """
    path = Path(os.path.expanduser(os.path.expandvars(file_path)))

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug(f"CLI config or credentials file not found: {path}")
        return {}, None
    except OSError as e:
        message = f"Unable to read CLI config or credentials file {path}: {e}"
        logger.warning(message)
        return {}, CredentialFileError(message, file_path=str(path))
    except UnicodeDecodeError as e:
        message = f"Unable to decode CLI config or credentials file {path}: {e}"
        logger.warning(message)
        return {}, CredentialFileError(message, file_path=str(path))

    try:
        document = hcl.loads(content)
    except Exception as e:
        message = f"Unable to parse CLI config or credentials file {path}: {e}"
        logger.warning(message)
        return {}, CredentialFileError(message, file_path=str(path))

    if not isinstance(document, dict):
        message = f"Unable to decode CLI config or credentials file {path}: expected an object"
        logger.warning(message)
        return {}, CredentialFileError(message, file_path=str(path))

    return document, None


def _normalized_blocks(document: dict[str, Any], block: str, file_path: str) -> dict[str, dict[str, Any]]:
    """Extract labelled blocks keyed by normalized hostname.

    Invalid hostnames and non-object bodies are skipped.
    """
    raw = document.get(block) or {}
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring malformed {block!r} blocks in {file_path}")
        return {}

    result: dict[str, dict[str, Any]] = {}
    for user_host, body in raw.items():
        if not isinstance(body, dict):
            logger.warning(f"Ignoring malformed {block!r} block for {user_host!r} in {file_path}")
            continue
        try:
            hostname = normalize_hostname(user_host)
        except InvalidHostnameError:
            logger.debug(f"Ignoring {block!r} block with invalid hostname {user_host!r} in {file_path}")
            continue
        result[hostname] = body
    return result


def load_cli_config() -> CLIConfig:
    """Load and merge the CLI config file and the credentials file.

    The main config file's credentials replace the credentials file's
    record wholesale for any host present in both. Host service overrides
    come only from the main config file.
    """
    diagnostics: list[CredentialFileError] = []

    main_path = locate_config_file()
    main_document, error = read_cli_config_file(main_path)
    if error is not None:
        diagnostics.append(error)

    creds_path = credentials_file()
    creds_document, error = read_cli_config_file(creds_path)
    if error is not None:
        diagnostics.append(error)

    credentials = _normalized_blocks(creds_document, "credentials", creds_path)
    credentials.update(_normalized_blocks(main_document, "credentials", main_path))

    hosts: HostServiceConfig = {}
    for hostname, body in _normalized_blocks(main_document, "host", main_path).items():
        services = body.get("services")
        if isinstance(services, dict):
            hosts[hostname] = services

    logger.debug(f"Loaded CLI configuration: {len(credentials)} credential(s), {len(hosts)} host override(s)")

    return CLIConfig(credentials=credentials, hosts=hosts, diagnostics=diagnostics)
