"""Exceptions raised while bootstrapping a guild.

Every error is fatal to a run. Entities created before the error stay in
place and are recognized as existing by the next run.
"""


class BootstrapError(Exception):
    """Base class for all errors of the guild bootstrap tool."""


class ConfigurationError(BootstrapError):
    """Exception raised for a missing or malformed configuration or template."""


class AuthenticationError(BootstrapError):
    """Exception raised if no session with the guild can be established."""


class RemoteOperationError(BootstrapError):
    """Exception raised if a list or create call against the guild fails."""
