"""
Declarative value extraction ("reflection").

A mapping binds each output field to one of:
  - a path expression string evaluated against the source ("$['body']['email']", "$.path")
  - a nested mapping (reflected recursively)
  - a callable receiving the whole source
Any other leaf value is copied as a literal.
"""

import re
from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any, Tuple, Union

from ..models.context import RequestContext
from ..models.route import RouteConfig

PathPart = Union[str, int]

# .name | ['name'] | ["name"] | [0]
_SEGMENT = re.compile(r"""\.([^.\[\]]+)|\[\s*(?:'([^']*)'|"([^"]*)"|(-?\d+))\s*\]""")


@lru_cache(maxsize=512)
def compile_path(expression: str) -> Tuple[PathPart, ...]:
    """
    Split a path expression into its segments.

    Example: "$['body']['items'][0]" → ("body", "items", 0)
    """
    if not expression.startswith("$"):
        raise ValueError(f"Path expression must start with '$': {expression!r}")

    parts = []
    pos = 1
    while pos < len(expression):
        match = _SEGMENT.match(expression, pos)
        if not match:
            raise ValueError(f"Invalid path expression {expression!r} at offset {pos}")
        name, single, double, index = match.groups()
        if index is not None:
            parts.append(int(index))
        else:
            parts.append(next(p for p in (name, single, double) if p is not None))
        pos = match.end()
    return tuple(parts)


def evaluate_path(expression: str, source: Any) -> Any:
    """Evaluate a path expression; a missing segment yields None."""
    current = source
    for part in compile_path(expression):
        if isinstance(current, Mapping):
            if part not in current:
                return None
            current = current[part]
        elif isinstance(part, int) and isinstance(current, Sequence) and not isinstance(current, str):
            if not -len(current) <= part < len(current):
                return None
            current = current[part]
        else:
            return None
    return current


def reflect(mapping: Any, source: Any) -> Any:
    """Build a value from a declarative mapping over source."""
    if isinstance(mapping, Mapping):
        return {key: reflect(value, source) for key, value in mapping.items()}
    if isinstance(mapping, str):
        return evaluate_path(mapping, source) if mapping.startswith("$") else mapping
    if isinstance(mapping, (list, tuple)):
        return [reflect(item, source) for item in mapping]
    if callable(mapping):
        return mapping(source)
    return mapping


def apply_initial_body_reflector(route_config: RouteConfig, context: RequestContext) -> None:
    """Reshape context.body in place when a body reflector is configured."""
    if route_config.initial_body_reflector and context.body is not None:
        context.body = reflect(route_config.initial_body_reflector, context.body)


def build_initial_query(route_config: RouteConfig, context: RequestContext) -> Any:
    """Initial query for the handler chain; an empty dict without a query reflector."""
    if not route_config.initial_query_reflector:
        return {}
    return reflect(route_config.initial_query_reflector, context.to_reflection_source())
