"""Expression resolution for pipeline step inputs.

Step input values may embed GitHub Actions-style references:

    ${{ steps.0.output }}          - entire output of step 0
    ${{ steps.0.output.platform }} - dot-path into step 0's output
    ${{ variables.my-var }}        - named variable

When the entire string is a single expression the resolved value keeps its
native type. When expressions are embedded in a larger string each one is
stringified and substituted in place.

Resolution never raises: an unresolvable reference yields ``ABSENT`` and is
left for input validation to reject when the field is required.
"""

import copy
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from toolflow.core.state import ExecutionContext


class _Absent:
    """Marker for a reference that could not be resolved."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


ABSENT = _Absent()

FULL_EXPR_RE = re.compile(r"^\$\{\{\s*([^}]+?)\s*\}\}$")
INLINE_EXPR_RE = re.compile(r"\$\{\{\s*([^}]+?)\s*\}\}")
EXPR_OPEN = "${{"

_STEP_REF_RE = re.compile(r"^\$\{\{\s*steps\.(\d+)\.output\.(.+?)\s*\}\}$")
_VARIABLE_REF_RE = re.compile(r"^\$\{\{\s*variables\.(.+?)\s*\}\}$")


@dataclass(frozen=True)
class StepReference:
    """Parsed ``${{ steps.<step_index>.output.<field> }}``."""

    step_index: int
    field: str


@dataclass(frozen=True)
class VariableReference:
    """Parsed ``${{ variables.<name> }}``."""

    name: str


def is_expression(value: Any) -> bool:
    """True if ``value`` is a string containing at least one ``${{``."""
    return isinstance(value, str) and EXPR_OPEN in value


def step_reference(step_index: int, field: str) -> str:
    """Build the full-expression string referencing a step output field."""
    return f"${{{{ steps.{step_index}.output.{field} }}}}"


def parse_reference(value: Any) -> Optional[Union[StepReference, VariableReference]]:
    """Parse a full step-output-field or variable reference.

    Only whole-string references are recognised; inline interpolation and
    whole-output references (``steps.N.output`` with no field) return None.
    """
    if not isinstance(value, str):
        return None

    match = _STEP_REF_RE.match(value)
    if match:
        return StepReference(step_index=int(match.group(1)), field=match.group(2))

    match = _VARIABLE_REF_RE.match(value)
    if match:
        return VariableReference(name=match.group(1))

    return None


def get_nested_field(obj: Any, path: Optional[str]) -> Any:
    """Get nested value using dot notation.

    Only mapping keys and non-negative list indexes are followed. Attribute
    names and negative indexes resolve to ABSENT.

    Args:
        obj: Object to extract from
        path: Dot-separated path (e.g., "user.name")

    Returns:
        Value at path, or ABSENT if a traversed segment is None or missing
    """
    if not path:
        return obj

    current = obj
    for key in path.split("."):
        if current is None or current is ABSENT:
            return ABSENT

        if isinstance(current, Mapping):
            if key not in current:
                return ABSENT
            current = current[key]
        elif isinstance(current, (list, tuple)):
            if not key.isdecimal() or int(key) >= len(current):
                return ABSENT
            current = current[int(key)]
        else:
            return ABSENT

    return current


def resolve_expression(expr: str, context: ExecutionContext) -> Any:
    """Evaluate the body of a single ``${{ ... }}`` expression.

    Args:
        expr: Expression body without the delimiters
        context: Context with step outputs and variables accumulated so far

    Returns:
        Resolved value or ABSENT
    """
    expr = expr.strip()

    if expr.startswith("steps."):
        parts = expr.split(".", 3)
        if len(parts) < 3 or not parts[1].isdecimal() or parts[2] != "output":
            return ABSENT

        step_index = int(parts[1])
        if not context.has_step_output(step_index):
            return ABSENT

        output = context.get_step_output(step_index)
        if len(parts) == 3:
            return output
        return get_nested_field(output, parts[3])

    if expr.startswith("variables."):
        name = expr[len("variables."):]
        return context.variables.get(name, ABSENT)

    return ABSENT


def stringify(value: Any) -> str:
    """Coerce a resolved value to the text substituted inline."""
    if value is None or value is ABSENT:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def resolve_expressions(value: Any, context: ExecutionContext) -> Any:
    """Recursively resolve ``${{ ... }}`` expressions in a value tree.

    Container structure is preserved. Dict entries that resolve to ABSENT are
    dropped; list items that resolve to ABSENT become None.
    """
    if isinstance(value, str):
        full_match = FULL_EXPR_RE.match(value)
        if full_match is not None:
            # Copy so a tool mutating its input cannot rewrite history
            return copy.deepcopy(resolve_expression(full_match.group(1), context))

        if EXPR_OPEN in value:
            return INLINE_EXPR_RE.sub(
                lambda match: stringify(resolve_expression(match.group(1), context)),
                value,
            )

        return value

    if isinstance(value, dict):
        resolved = {}
        for key, item in value.items():
            item = resolve_expressions(item, context)
            if item is not ABSENT:
                resolved[key] = item
        return resolved

    if isinstance(value, (list, tuple)):
        items = [resolve_expressions(item, context) for item in value]
        items = [None if item is ABSENT else item for item in items]
        return type(value)(items) if isinstance(value, tuple) else items

    return value


class ExpressionResolver:
    """Resolve ``${{ ... }}`` references against one run's context.

    Example:
        >>> resolver = ExpressionResolver(context)
        >>> resolver.resolve({"svg": "${{ steps.0.output.svg }}"})
        {'svg': '<svg/>'}
    """

    def __init__(self, context: ExecutionContext):
        """Initialize resolver with execution context.

        Args:
            context: ExecutionContext containing step outputs and variables
        """
        self.context = context

    def resolve(self, value: Any) -> Any:
        """Resolve every string leaf of ``value``."""
        return resolve_expressions(value, self.context)

    def resolve_single(self, expr: str) -> Any:
        """Resolve one expression body, e.g. ``"steps.0.output.count"``."""
        return resolve_expression(expr, self.context)

    def resolve_mapping(self, from_step: int, field: Optional[str]) -> Any:
        """Resolve a legacy ``{fromStep, field}`` input mapping.

        Returns:
            The referenced value, or ABSENT when the step has no output
        """
        if not self.context.has_step_output(from_step):
            return ABSENT
        output = self.context.get_step_output(from_step)
        if field is None:
            return copy.deepcopy(output)
        return copy.deepcopy(get_nested_field(output, field))
