"""Exceptions raised by the credential hand-off phases."""


class CacheCredentialsError(Exception):
    """Base class for all hand-off errors."""

    pass


class UnknownEnvironmentError(CacheCredentialsError):
    """Raised when the ``environment`` input names no configured identity pool."""

    pass


class MissingInputError(CacheCredentialsError):
    """Raised when a required action input was not supplied."""

    def __init__(self, name: str):
        super().__init__(f"Input required and not supplied: {name}")
        self.name = name


class IdentityTokenError(CacheCredentialsError):
    """Raised when the workflow OIDC token cannot be obtained."""

    pass


class IdentityExchangeError(CacheCredentialsError):
    """Raised when Cognito does not return an identity or a complete credential set."""

    pass


class FileCommandError(CacheCredentialsError):
    """Raised when a value cannot be written to a runner file command."""

    pass
