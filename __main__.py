"""
Constructs stack
Declares every construct of the `constructs` config block
"""
import pulumi
from lift_constructs.config import get_config
from lift_constructs.provider import Provider

config = get_config()

provider = Provider(
    config.stack_name,
    credentials=config.credentials,
    tags=config.common_tags,
)

constructs = provider.create_constructs(config.constructs)
pulumi.log.info(f"Declared {len(constructs)} construct(s) for {config.stack_name}")

if provider.errors:
    details = "; ".join(f"{construct_id}: {error}" for construct_id, error in provider.errors)
    raise pulumi.RunError(f"{len(provider.errors)} construct(s) failed: {details}")

# Exports
pulumi.export("constructs", config.construct_types)
