"""
Construct references
In-program references between constructs and post-deployment stack outputs
"""

import asyncio
import re
from typing import Any, Callable, Dict, Optional

import pulumi
from pulumi import automation as auto

from .errors import MissingDependencyError

OutputSource = Callable[[], Dict[str, Any]]

VARIABLE_PATTERN = re.compile(r"^\$\{construct:([\w-]+)\.([\w-]+)\}$")


def static_output_source(outputs: Dict[str, Any]) -> OutputSource:
    """Output source over an already known mapping of stack outputs"""
    return lambda: dict(outputs)


def automation_output_source(stack_name: str, work_dir: str = ".") -> OutputSource:
    """
    Output source reading the outputs of a deployed stack with the Automation API

    Args:
        stack_name: Fully qualified or short Pulumi stack name
        work_dir: Directory holding the Pulumi project

    Returns:
        Callable returning the stack outputs as plain values
    """
    def read_outputs() -> Dict[str, Any]:
        stack = auto.select_stack(stack_name=stack_name, work_dir=work_dir)
        return {key: output.value for key, output in stack.outputs().items()}

    return read_outputs


class ReferenceHandle:
    """Named pointer to a stack output that only exists after deployment"""

    def __init__(self, construct_id: str, name: str, output_key: str, source: Optional[OutputSource]):
        self.construct_id = construct_id
        self.name = name
        self.output_key = output_key
        self._source = source

    async def resolve(self) -> Optional[str]:
        """Look the output up once; None means not deployed yet"""
        if self._source is None:
            return None
        loop = asyncio.get_running_loop()
        outputs = await loop.run_in_executor(None, self._source)
        value = outputs.get(self.output_key)
        if value is None:
            pulumi.log.info(f"Output {self.output_key} of {self.construct_id} is not available yet")
            return None
        return str(value)

    def __repr__(self) -> str:
        return f"ReferenceHandle({self.construct_id}.{self.name} -> {self.output_key})"


class ReferenceRegistry:
    """Constructs by id, so references can be resolved by name"""

    def __init__(self):
        self._constructs: Dict[str, Any] = {}

    def register(self, construct_id: str, construct: Any) -> None:
        self._constructs[construct_id] = construct

    def __contains__(self, construct_id: str) -> bool:
        return construct_id in self._constructs

    def get(self, construct_id: str) -> Any:
        try:
            return self._constructs[construct_id]
        except KeyError:
            raise MissingDependencyError(f"construct '{construct_id}'") from None

    def references(self, construct_id: str) -> Dict[str, Any]:
        return self.get(construct_id).references()

    def outputs(self, construct_id: str) -> Dict[str, ReferenceHandle]:
        return self.get(construct_id).outputs()

    def resolve(self, path: str) -> Any:
        """
        Resolve a reference written as "<construct id>.<reference name>"

        Raises:
            MissingDependencyError: unknown construct or reference name
        """
        construct_id, _, name = path.partition(".")
        references = self.references(construct_id)
        if name not in references:
            raise MissingDependencyError(f"reference '{name}'", construct_id)
        return references[name]

    def resolve_variables(self, value: Any) -> Any:
        """Replace ${construct:<id>.<name>} strings anywhere in a nested value"""
        if isinstance(value, dict):
            return {key: self.resolve_variables(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.resolve_variables(item) for item in value]
        if isinstance(value, str):
            match = VARIABLE_PATTERN.match(value)
            if match:
                return self.resolve(f"{match.group(1)}.{match.group(2)}")
        return value
