"""Error taxonomy for api_stack."""


class ApiStackError(Exception):
    """Base class for api_stack errors."""

    pass


class ConfigurationError(ApiStackError):
    """Raised when a service configuration is invalid or inconsistent.

    Always fatal; never retried.
    """

    pass


class ToolchainError(ApiStackError):
    """Raised when a toolchain availability check fails."""

    pass


class ParseError(ApiStackError):
    """Raised when serialized configuration input is malformed."""

    pass
