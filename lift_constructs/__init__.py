"""
Declarative constructs for Pulumi programs
Each construct turns a small validated configuration block into AWS resources
"""

from .database import (
    Database,
    DatabaseConfig,
    DatabaseDescriptor,
    Engine,
    describe_database,
    engine_version,
    safe_name,
)
from .errors import (
    ConstructError,
    MissingDependencyError,
    NetworkConflictError,
    UnsupportedValueError,
    ValidationError,
)
from .network import ALLOW_ALL_EGRESS, EgressRule, NetworkContext, Vpc, VpcConfig
from .provider import CONSTRUCT_TYPES, Provider
from .references import ReferenceHandle, ReferenceRegistry
from .schema import ConstructConfig, validate

__all__ = [
    "ALLOW_ALL_EGRESS",
    "CONSTRUCT_TYPES",
    "ConstructConfig",
    "ConstructError",
    "Database",
    "DatabaseConfig",
    "DatabaseDescriptor",
    "EgressRule",
    "Engine",
    "MissingDependencyError",
    "NetworkConflictError",
    "NetworkContext",
    "Provider",
    "ReferenceHandle",
    "ReferenceRegistry",
    "UnsupportedValueError",
    "ValidationError",
    "Vpc",
    "VpcConfig",
    "describe_database",
    "engine_version",
    "safe_name",
    "validate",
]
