"""JSON Schema helpers for deriving graph ports from tool shapes."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PORT_DATA_TYPES = ("string", "number", "boolean", "object", "array", "unknown")

EMPTY_OBJECT_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}}


@dataclass(frozen=True)
class Port:
    """A named input or output slot on a tool node.

    Attributes:
        key: Property name in the tool's input/output shape
        label: Display label
        data_type: One of PORT_DATA_TYPES
        required: Whether the shape marks the property required
        description: Optional property description
        schema: Raw JSON Schema of the property
    """

    key: str
    label: str
    data_type: str
    required: bool = False
    description: Optional[str] = None
    schema: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


def schema_type_to_port_type(prop: Dict[str, Any]) -> str:
    """Map a JSON Schema property to a port data type.

    Optional fields generated by pydantic appear as ``anyOf`` with a null
    branch; the first non-null branch decides the type.
    """
    prop_type = prop.get("type")
    if prop_type is None and "anyOf" in prop:
        branches = [b for b in prop["anyOf"] if b.get("type") != "null"]
        if len(branches) == 1:
            return schema_type_to_port_type(branches[0])
        return "unknown"

    if prop_type == "string":
        return "string"
    if prop_type in ("number", "integer"):
        return "number"
    if prop_type == "boolean":
        return "boolean"
    if prop_type == "object":
        return "object"
    if prop_type == "array":
        return "array"
    return "unknown"


def get_ports(schema: Optional[Dict[str, Any]]) -> List[Port]:
    """Derive ports from an object schema's properties, in declaration order."""
    schema = schema or EMPTY_OBJECT_SCHEMA
    properties = schema.get("properties") or {}
    required = set(schema.get("required") or [])

    return [
        Port(
            key=key,
            label=prop.get("title") or key,
            data_type=schema_type_to_port_type(prop),
            required=key in required,
            description=prop.get("description"),
            schema=prop,
        )
        for key, prop in properties.items()
    ]
