"""
Construct errors
Raised while validating configuration and declaring construct resources
"""

from typing import Any, Optional


class ConstructError(Exception):
    """Base class for every error raised while declaring constructs"""


class ValidationError(ConstructError):
    """Configuration does not satisfy the construct schema"""

    def __init__(self, field: str, constraint: str, message: str):
        self.field = field
        self.constraint = constraint
        super().__init__(f"Invalid configuration for '{field}' ({constraint}): {message}")


class MissingDependencyError(ConstructError):
    """A construct needs a collaborator that was never registered"""

    def __init__(self, dependency: str, construct_id: Optional[str] = None):
        self.dependency = dependency
        self.construct_id = construct_id
        if construct_id:
            message = f"Construct '{construct_id}' requires {dependency}, which is not available"
        else:
            message = f"{dependency} is not registered"
        super().__init__(message)


class UnsupportedValueError(ConstructError):
    """A value reached a lookup table that has no entry for it"""

    def __init__(self, kind: str, value: Any):
        self.kind = kind
        self.value = value
        super().__init__(f"Unsupported {kind}: {value!r}")


class NetworkConflictError(ConstructError):
    """A second network tried to register itself on the same provider"""
