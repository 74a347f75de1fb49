"""Multi-source value resolution for client configuration.

This module resolves configuration values (hostname, token, TLS settings)
from multiple sources with priority ordering and fallbacks.

Resolution order (highest to lowest priority):
1. Explicitly provided value
2. Environment variable
3. .env file (python-dotenv)
4. Default value

Example:
    ```python
    from tfe_client_core.auth import CredentialResolver

    resolver = CredentialResolver()

    # Explicit value wins, then TFE_HOSTNAME, then the default
    hostname = resolver.resolve(
        value=None,
        env_var_name="TFE_HOSTNAME",
        default="app.terraform.io",
        mask_in_logs=False,
    )

    # Host-specific token variables (TF_TOKEN_app_terraform_io)
    token = resolver.resolve_host_token("app.terraform.io")
    ```

Security Considerations:
    - Credentials are never logged in full (masked with ***)
    - Only source information is logged (env var name, file path, etc.)
    - Thread-safe dotenv loading with lock
"""

import logging
import os
from threading import Lock

from dotenv import load_dotenv

from tfe_client_core.discovery.hostname import hostname_from_env_suffix
from tfe_client_core.errors import InvalidHostnameError, InvalidSettingError

logger = logging.getLogger(__name__)

HOST_TOKEN_ENV_PREFIX = "TF_TOKEN_"

# Accepted spellings for boolean settings, matching Go's strconv.ParseBool.
_TRUE_VALUES = frozenset(["1", "t", "T", "TRUE", "true", "True"])
_FALSE_VALUES = frozenset(["0", "f", "F", "FALSE", "false", "False"])


class CredentialResolver:
    """Resolve configuration values from multiple sources with priority ordering.

    Empty strings are treated the same as absent values in every source, so
    an exported-but-empty environment variable falls through to the next
    source.

    Attributes:
        _dotenv_loaded: Whether .env file has been loaded.
        _dotenv_lock: Thread lock for safe dotenv loading.
    """

    def __init__(self, dotenv_path: str | None = None, load_dotenv: bool = True):
        """Initialize resolver.

        Args:
            dotenv_path: Path to .env file. If None, searches parent directories
                for .env file (default behavior of python-dotenv).
            load_dotenv: Whether to load .env file. Set to False to skip
                .env file loading (useful for testing).
        """
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()
        self._dotenv_path = dotenv_path
        self._load_dotenv_enabled = load_dotenv

        if self._load_dotenv_enabled:
            self._ensure_dotenv_loaded()

    def _ensure_dotenv_loaded(self) -> None:
        """Ensure .env file is loaded once (thread-safe)."""
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return

            try:
                load_dotenv(dotenv_path=self._dotenv_path)
                logger.debug("Loaded .env file for credential resolution")
            except Exception as e:
                logger.warning(f"Failed to load .env file: {e}")
            self._dotenv_loaded = True

    def _mask_credential(self, value: str | None) -> str:
        """Mask a credential value for safe logging."""
        if value is None:
            return "None"
        return "***"

    def resolve(
        self,
        *,
        value: str | None = None,
        env_var_name: str | None = None,
        default: str | None = None,
        mask_in_logs: bool = True,
    ) -> str | None:
        """Resolve a value from multiple sources.

        Resolution order (first non-empty match wins):
        1. Explicitly provided `value` parameter
        2. Environment variable (if `env_var_name` provided)
        3. Default value (if `default` provided)

        Args:
            value: Explicitly provided value (highest priority).
            env_var_name: Environment variable name to check.
                Checks both os.environ and loaded .env file.
            default: Default value if not found elsewhere.
            mask_in_logs: If True (default), masks values in log messages.
                Disable for non-sensitive values.

        Returns:
            Resolved value, or None if not found.
        """
        result = None
        source = None

        if value:
            result = value
            source = "explicit parameter"

        elif env_var_name and os.environ.get(env_var_name):
            result = os.environ[env_var_name]
            source = f"environment variable '{env_var_name}'"

        elif default is not None:
            result = default
            source = "default value"

        if result is not None:
            shown = self._mask_credential(result) if mask_in_logs else result
            logger.debug(f"Resolved value from {source}: {shown}")

        return result

    def resolve_flag(self, *, value: bool, env_var_name: str) -> bool:
        """Resolve a boolean flag that the environment may only switch on.

        An explicit True is returned as is. An explicit False may be
        overridden by the environment variable, because a False value cannot
        be told apart from an unset one.

        Raises:
            InvalidSettingError: If the environment variable is not a boolean.
        """
        if value:
            return True

        raw = os.environ.get(env_var_name, "")
        if not raw:
            return False

        if raw in _TRUE_VALUES:
            logger.debug(f"Resolved flag from environment variable '{env_var_name}': True")
            return True
        if raw in _FALSE_VALUES:
            return False

        raise InvalidSettingError(
            f"invalid boolean value {raw!r} for environment variable {env_var_name}",
            env_var_name=env_var_name,
        )

    def resolve_host_token(self, hostname: str) -> str | None:
        """Resolve a token from host-specific TF_TOKEN_* environment variables.

        Args:
            hostname: Normalized hostname to look up.

        Returns:
            The token, or None if no variable names this host.
        """
        tokens = self.collect_host_tokens()
        token = tokens.get(hostname)
        if token:
            logger.debug(f"{HOST_TOKEN_ENV_PREFIX}... used for token value for host {hostname}")
        return token or None

    def collect_host_tokens(self) -> dict[str, str]:
        """Collect all TF_TOKEN_* variables keyed by normalized hostname.

        Variables whose suffix is not a valid hostname are ignored.
        """
        tokens: dict[str, str] = {}
        for name, value in os.environ.items():
            if not name.startswith(HOST_TOKEN_ENV_PREFIX):
                continue
            suffix = name[len(HOST_TOKEN_ENV_PREFIX) :]
            try:
                hostname = hostname_from_env_suffix(suffix)
            except InvalidHostnameError:
                logger.debug(f"Ignoring {name}: not a valid hostname")
                continue
            tokens[hostname] = value
        return tokens
