"""Version of the running library, used in the user agent and constraint checks."""

__version__ = "0.1.0"

# Development builds skip remote version constraint checks.
DEV_VERSION = "dev"

USER_AGENT = f"tfe-client-core/{__version__}"
