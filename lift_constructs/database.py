"""
Database Construct
RDS instance placed in the private subnets of the provider network
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Literal, Optional, Tuple

import pulumi
import pulumi_aws as aws
from pydantic import Field

from .errors import MissingDependencyError, UnsupportedValueError
from .references import ReferenceHandle
from .schema import ConstructConfig, validate


class Engine(str, Enum):
    MYSQL = "mysql"
    MARIADB = "mariadb"
    POSTGRES = "postgres"


# Pinned (full version, major version) per engine
ENGINE_VERSIONS = {
    Engine.MYSQL: ("8.0.23", "8.0"),
    Engine.MARIADB: ("10.5.8", "10.5"),
    Engine.POSTGRES: ("13.2", "13"),
}


def check_engine_versions(table: Dict[Engine, Tuple[str, str]]) -> None:
    unmapped = [engine.value for engine in Engine if engine not in table]
    if unmapped:
        raise RuntimeError(f"Engines without a pinned version: {', '.join(unmapped)}")


check_engine_versions(ENGINE_VERSIONS)

LOG_EXPORTS = {
    Engine.MYSQL: ("error", "slowquery"),
    Engine.MARIADB: ("error", "slowquery"),
    Engine.POSTGRES: ("postgresql",),
}

# ASCII only, anchored on the whole value
NAME_PATTERN = r"^[A-Za-z0-9_-]*$"


class DatabaseConfig(ConstructConfig):
    """Configuration block of a database construct"""

    type: Optional[Literal["database"]] = None
    name: Optional[str] = Field(default=None, pattern=NAME_PATTERN, strict=True)
    password: str = Field(min_length=8, strict=True)
    engine: Engine = Engine.MYSQL
    instance_type: str = Field(default="t3.micro", alias="instanceType", strict=True)
    # 20 is the minimum, much cheaper than the platform default of 100
    storage_size: int = Field(default=20, alias="storageSize", ge=20, strict=True)


ADMIN_USERNAME = "admin"
BACKUP_RETENTION_DAYS = 7
LOG_RETENTION_DAYS = 7


def safe_name(name: str) -> str:
    """Database names cannot contain separators"""
    return name.replace("-", "").replace("_", "")


def engine_version(engine: Any) -> Tuple[str, str]:
    """
    Pinned (full, major) version of an engine

    Raises:
        UnsupportedValueError: the engine has no row in ENGINE_VERSIONS
    """
    try:
        return ENGINE_VERSIONS[Engine(engine)]
    except (ValueError, KeyError):
        raise UnsupportedValueError("database engine", engine) from None


@dataclass(frozen=True)
class DatabaseDescriptor:
    instance_identifier: str
    database_name: str
    engine: str
    engine_version: str
    major_version: str
    instance_type: str
    allocated_storage: int
    username: str = ADMIN_USERNAME
    subnet_type: str = "private"
    backup_retention_days: int = BACKUP_RETENTION_DAYS
    log_retention_days: int = LOG_RETENTION_DAYS
    log_exports: Tuple[str, ...] = ()

    @property
    def instance_class(self) -> str:
        return f"db.{self.instance_type}"


def describe_database(configuration: Dict[str, Any], stack_name: str, construct_id: str) -> DatabaseDescriptor:
    """
    Resolve a database configuration into the instance it declares

    Args:
        configuration: Validated configuration, defaults already applied
        stack_name: Name of the deployed stack
        construct_id: Id of the construct in the constructs block

    Returns:
        DatabaseDescriptor with every field resolved
    """
    identifier = configuration.get("name") or f"{stack_name}-{construct_id}"
    engine = configuration.get("engine", Engine.MYSQL.value)
    full_version, major_version = engine_version(engine)

    return DatabaseDescriptor(
        instance_identifier=identifier,
        database_name=safe_name(identifier),
        engine=engine,
        engine_version=full_version,
        major_version=major_version,
        instance_type=configuration.get("instanceType", "t3.micro"),
        allocated_storage=configuration.get("storageSize", 20),
        log_exports=LOG_EXPORTS[Engine(engine)],
    )


class PlaintextCredentials:
    """Master password taken from the construct configuration"""

    name = "plaintext"

    def __init__(self, password: str, username: str = ADMIN_USERNAME):
        self.username = username
        self.password = password

    def instance_args(self) -> Dict[str, Any]:
        return {"username": self.username, "password": self.password}

    def secret_outputs(self):
        return ["password"]


class ManagedSecretCredentials:
    """Master password generated and rotated by RDS in Secrets Manager"""

    name = "managed-secret"

    def __init__(self, username: str = ADMIN_USERNAME):
        self.username = username

    def instance_args(self) -> Dict[str, Any]:
        return {"username": self.username, "manage_master_user_password": True}

    def secret_outputs(self):
        return []


def credentials_for(strategy: str, configuration: Dict[str, Any]):
    if strategy == PlaintextCredentials.name:
        return PlaintextCredentials(configuration["password"])
    if strategy == ManagedSecretCredentials.name:
        return ManagedSecretCredentials()
    raise UnsupportedValueError("credentials strategy", strategy)


class Database:
    """Database construct"""

    type = "database"
    schema = DatabaseConfig
    provides_network = False

    def __init__(self, construct_id: str, configuration: Dict[str, Any], provider,
                 network=None, credentials=None):
        self.construct_id = construct_id
        self.provider = provider
        self.configuration = validate(configuration, DatabaseConfig, construct_id)

        if network is None:
            raise MissingDependencyError("a VPC", construct_id)

        self.descriptor = describe_database(self.configuration, provider.stack_name, construct_id)
        self.credentials = credentials or credentials_for(provider.credentials, self.configuration)
        descriptor = self.descriptor
        tags = {**provider.tags, "Name": descriptor.instance_identifier, "Construct": construct_id}

        # Put the instance in the private subnets
        self.subnet_group = aws.rds.SubnetGroup(
            f"{construct_id}-subnet-group",
            subnet_ids=network.private_subnet_ids,
            description=f"Private subnets of {descriptor.instance_identifier}",
            tags=tags
        )

        # RDS only creates log groups on first write, declare them to own the retention
        self.log_groups = [
            aws.cloudwatch.LogGroup(
                f"{construct_id}-log-{log_type}",
                name=f"/aws/rds/instance/{descriptor.instance_identifier}/{log_type}",
                retention_in_days=descriptor.log_retention_days,
                tags=tags
            )
            for log_type in descriptor.log_exports
        ]

        self.instance = aws.rds.Instance(
            f"{construct_id}-instance",
            identifier=descriptor.instance_identifier,
            db_name=descriptor.database_name,
            engine=descriptor.engine,
            engine_version=descriptor.engine_version,
            instance_class=descriptor.instance_class,
            allocated_storage=descriptor.allocated_storage,
            db_subnet_group_name=self.subnet_group.name,
            vpc_security_group_ids=network.security_group_ids,
            publicly_accessible=False,
            backup_retention_period=descriptor.backup_retention_days,
            enabled_cloudwatch_logs_exports=list(descriptor.log_exports),
            skip_final_snapshot=True,
            tags=tags,
            **self.credentials.instance_args(),
            opts=pulumi.ResourceOptions(
                depends_on=self.log_groups,
                additional_secret_outputs=self.credentials.secret_outputs()
            )
        )

        self.host_output_key = f"{construct_id}-host"
        pulumi.export(self.host_output_key, self.instance.address)

        pulumi.log.info(
            f"Database {descriptor.instance_identifier} declared "
            f"({descriptor.engine} {descriptor.engine_version}, {descriptor.instance_class}, "
            f"{descriptor.allocated_storage} GB, {self.credentials.name} credentials)"
        )

    def commands(self) -> Dict[str, Any]:
        return {}

    def outputs(self) -> Dict[str, ReferenceHandle]:
        return {
            "host": ReferenceHandle(self.construct_id, "host", self.host_output_key, self.provider.output_source),
        }

    def references(self) -> Dict[str, Any]:
        return {
            "host": self.instance.address,
            "port": self.instance.port,
        }
