"""
Provider
Builds constructs from the constructs block and holds the state they share
"""

from typing import Any, Dict, List, Optional, Tuple

import pulumi
import pulumi_aws as aws

from .database import Database
from .errors import ConstructError, NetworkConflictError, ValidationError
from .network import NetworkContext, Vpc
from .references import OutputSource, ReferenceRegistry

CONSTRUCT_TYPES = {
    Database.type: Database,
    Vpc.type: Vpc,
}


def construct_type(block: Any) -> Optional[str]:
    """Type of a construct block, None when the block carries no usable type"""
    if isinstance(block, dict) and isinstance(block.get("type"), str):
        return block["type"]
    return None


class Provider:
    """Shared state of one deployment: stack name, network and references"""

    def __init__(self, stack_name: str, output_source: Optional[OutputSource] = None,
                 credentials: str = "plaintext", tags: Optional[Dict[str, str]] = None):
        self.stack_name = stack_name
        self.output_source = output_source
        self.credentials = credentials
        self.tags = tags or {}
        self.registry = ReferenceRegistry()
        self.errors: List[Tuple[str, ConstructError]] = []
        self._network: Optional[NetworkContext] = None

    @property
    def network_context(self) -> Optional[NetworkContext]:
        return self._network

    def set_vpc_config(self, context: NetworkContext) -> None:
        """Registration hook used by the network construct"""
        if self._network is not None:
            raise NetworkConflictError("A VPC is already registered for this stack")
        self._network = context

    def create_construct(self, construct_id: str, configuration: Dict[str, Any]):
        if not isinstance(configuration, dict):
            raise ValidationError(construct_id, "type", "expected object")
        construct_class = CONSTRUCT_TYPES.get(construct_type(configuration))
        if construct_class is None:
            allowed = ", ".join(sorted(CONSTRUCT_TYPES))
            raise ValidationError(f"{construct_id}.type", "enum", f"must be one of: {allowed}")

        if construct_class.provides_network:
            construct = construct_class(construct_id, configuration, self)
        else:
            construct = construct_class(construct_id, configuration, self, network=self.network_context)
        self.registry.register(construct_id, construct)
        return construct

    def create_constructs(self, constructs: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Create every construct of a constructs block

        Networks are created first so the others can be placed in them.
        A failing construct is recorded in self.errors and skipped, the
        others are still declared.

        Args:
            constructs: Construct id to configuration block (with its type)

        Returns:
            Dict of construct id to created construct
        """
        def network_first(item):
            construct_class = CONSTRUCT_TYPES.get(construct_type(item[1]))
            return 0 if construct_class is not None and construct_class.provides_network else 1

        created = {}
        for construct_id, configuration in sorted(constructs.items(), key=network_first):
            try:
                created[construct_id] = self.create_construct(construct_id, configuration)
            except ConstructError as e:
                pulumi.log.error(f"Skipping construct {construct_id}: {e}")
                self.errors.append((construct_id, e))
        return created

    def function_vpc_config(self) -> Optional[aws.lambda_.FunctionVpcConfigArgs]:
        """VPC settings for Lambda functions, None without a registered network"""
        if self._network is None:
            return None
        return aws.lambda_.FunctionVpcConfigArgs(
            security_group_ids=self._network.security_group_ids,
            subnet_ids=self._network.private_subnet_ids,
        )

    def resolve(self, path: str) -> Any:
        return self.registry.resolve(path)
