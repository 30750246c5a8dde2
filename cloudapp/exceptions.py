"""Exception hierarchy shared by every execution context."""

from __future__ import annotations

from collections.abc import Sequence


class CloudAppError(Exception):
    """Base class for framework errors."""


class ConfigurationError(CloudAppError):
    """Startup configuration is missing or inconsistent."""


class BindingError(CloudAppError):
    """Request data could not be bound to the request shape (HTTP 400)."""


class NotFoundError(CloudAppError, LookupError):
    """Raised by handlers when the requested item does not exist (HTTP 404)."""


class TableConfigurationError(CloudAppError):
    """A storage entity is missing key markers or a usable table name."""


class FunctionInvocationError(CloudAppError):
    def __init__(self, function_name: str, message: str):
        super().__init__(message)
        self.function_name = function_name


class DeploymentError(CloudAppError):
    """A deploy pipeline step failed; ``stage`` names the step."""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        return f"[{self.stage}] {super().__str__()}"


class DependencyValidationError(CloudAppError):
    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        lines = "\n".join(f"  - {entry}" for entry in self.missing)
        super().__init__(f"Missing service registrations:\n{lines}")
