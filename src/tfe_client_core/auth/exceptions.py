"""Custom exceptions for credential resolution.

These exceptions describe problems with local credential sources. They are
advisory: the CLI configuration loader records them as diagnostics instead of
raising, so that resolution can continue with the remaining sources.

Example:
    ```python
    from tfe_client_core.auth import load_cli_config

    config = load_cli_config()
    for problem in config.diagnostics:
        print(f"Ignored {problem.file_path}: {problem}")
    ```
"""


class CredentialError(Exception):
    """Base exception for credential-related errors.

    All credential-specific exceptions inherit from this class,
    making it easy to catch any credential-related error.
    """

    pass


class CredentialFileError(CredentialError):
    """Raised when a CLI configuration or credentials file cannot be used.

    This covers files that cannot be read, cannot be parsed, or decode to
    an unexpected shape.

    Attributes:
        file_path: The file that was being loaded (if known).
    """

    def __init__(self, message: str, file_path: str | None = None):
        """Initialize CredentialFileError.

        Args:
            message: Error message describing what went wrong.
            file_path: Optional path of the offending file.
        """
        super().__init__(message)
        self.file_path = file_path
