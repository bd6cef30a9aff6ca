"""
Configuration management for the constructs stack
"""

import pulumi
from typing import Dict, Any


class Config:
    """Centralized configuration of the Pulumi program"""

    def __init__(self):
        self.config = pulumi.Config()

        # Construct id -> {"type": ..., construct fields}
        self.constructs = self.config.get_object("constructs") or {}

        # plaintext | managed-secret
        self.credentials = self.config.get("credentials") or "plaintext"

        self.stack_name = self.config.get("stack_name") or f"{pulumi.get_project()}-{pulumi.get_stack()}"

        # Additional tags
        self.additional_tags = self.config.get_object("tags") or {}

    @property
    def common_tags(self) -> Dict[str, str]:
        """Get common tags for all resources"""
        base_tags = {
            "Stack": self.stack_name,
            "ManagedBy": "pulumi",
        }
        base_tags.update(self.additional_tags)
        return base_tags

    @property
    def construct_types(self) -> Dict[str, Any]:
        return {
            construct_id: block.get("type") if isinstance(block, dict) else None
            for construct_id, block in self.constructs.items()
        }


def get_config() -> Config:
    """Get the configuration of the current stack"""
    return Config()
