"""
Domain exceptions for Conduit.

All application errors inherit from ConduitError. Only InvalidDefinition
stops a run from starting; everything else raised inside a run is caught
by the stage executor and recorded as data on the StageResult.
"""

from typing import Iterable, List, Optional


class ConduitError(Exception):
    """Base class for all Conduit exceptions."""

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.context = context or {}


class InvalidDefinition(ConduitError):
    """Raised when a pipeline definition is structurally invalid."""

    def __init__(self, problems: Iterable[str], context: Optional[dict] = None):
        self.problems: List[str] = list(problems)
        message = "Invalid pipeline definition: " + "; ".join(self.problems)
        super().__init__(message, context)


class CredentialError(ConduitError):
    """Base class for credential store and resolution failures."""

    pass


class DuplicateIdentifier(CredentialError):
    """Raised when registering a credential whose identifier already exists."""

    def __init__(self, identifier: str):
        super().__init__(f"Credential already registered: {identifier}", {"identifier": identifier})
        self.identifier = identifier


class CredentialNotFound(CredentialError):
    """Raised when resolving an identifier that was never registered."""

    def __init__(self, identifier: str):
        super().__init__(f"Credential not found: {identifier}", {"identifier": identifier})
        self.identifier = identifier


class PlaceholderError(CredentialError):
    """Raised when a credential placeholder cannot be expanded."""

    pass


class LaunchError(ConduitError):
    """Raised when an external process cannot be started."""

    pass


class ConfigurationError(ConduitError):
    """Raised when configuration is invalid or corrupt."""

    pass
