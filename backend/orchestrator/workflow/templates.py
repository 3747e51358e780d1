# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Templates

Step params are compiled once, at registration, into a small binding tree:

    LiteralValue     passed through unchanged (numbers, lists, plain strings)
    Reference        a "{{path}}" string, replaced wholesale by the value it names
    MappingTemplate  a nested object whose fields are bindings themselves

A string containing "{{" is a reference to the first "{{...}}" it holds;
any surrounding text is dropped. Lists are never descended into.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Collection, Dict, Iterator, Optional, Tuple, Union

from pydantic import BaseModel

from orchestrator.core.logging import get_service_logger
from orchestrator.workflow.exceptions import UnresolvedReferenceError, WorkflowValidationError

logger = get_service_logger("workflow.templates")

_TEMPLATE_RE = re.compile(r"\{\{(.+?)\}\}")
_SEGMENT_RE = re.compile(r"^([^\[\]]+)((?:\[\d+\])*)$")
_INDEX_RE = re.compile(r"\[(\d+)\]")


class _Unresolved:
    def __repr__(self) -> str:
        return "<unresolved>"


UNRESOLVED = _Unresolved()


@dataclass(frozen=True)
class PathSegment:
    key: str
    indices: Tuple[int, ...] = ()


@dataclass(frozen=True)
class Reference:
    expression: str
    segments: Tuple[PathSegment, ...]

    @property
    def head(self) -> str:
        return self.segments[0].key


@dataclass(frozen=True)
class LiteralValue:
    value: Any


@dataclass(frozen=True)
class MappingTemplate:
    fields: Tuple[Tuple[str, "Binding"], ...]


Binding = Union[LiteralValue, Reference, MappingTemplate]


# ============================================================================
# Compilation
# ============================================================================

def parse_reference(expression: str) -> Reference:
    """
    Parse "step.field[0].other" into path segments.

    Raises:
        WorkflowValidationError: If the expression is empty or malformed
    """
    expression = expression.strip()
    if not expression:
        raise WorkflowValidationError(
            "Empty template expression {{}}",
            hint="Template expressions must name a parameter or step result.",
            field="params",
        )

    segments = []
    for part in expression.split("."):
        match = _SEGMENT_RE.match(part.strip())
        if not match:
            raise WorkflowValidationError(
                f'Malformed template expression "{{{{{expression}}}}}"',
                hint="Use dotted paths with optional [index] suffixes, e.g. {{search.data.results[0].title}}.",
                field="params",
            )
        key, index_part = match.groups()
        segments.append(PathSegment(key.strip(), tuple(int(i) for i in _INDEX_RE.findall(index_part))))

    return Reference(expression, tuple(segments))


def compile_value(value: Any) -> Binding:
    if isinstance(value, str):
        match = _TEMPLATE_RE.search(value)
        if match:
            return parse_reference(match.group(1))
        return LiteralValue(value)
    if isinstance(value, Mapping):
        return MappingTemplate(tuple((key, compile_value(item)) for key, item in value.items()))
    return LiteralValue(value)


def compile_params(params: Optional[Mapping[str, Any]]) -> MappingTemplate:
    """Compile a step's params object into a binding tree."""
    return MappingTemplate(tuple((key, compile_value(value)) for key, value in (params or {}).items()))


def iter_references(binding: Binding) -> Iterator[Reference]:
    if isinstance(binding, Reference):
        yield binding
    elif isinstance(binding, MappingTemplate):
        for _, child in binding.fields:
            yield from iter_references(child)


# ============================================================================
# Resolution
# ============================================================================

def _child(value: Any, key: str) -> Any:
    if isinstance(value, Mapping):
        return value[key] if key in value else UNRESOLVED

    if isinstance(value, BaseModel):
        fields = type(value).model_fields
        if key in fields:
            return getattr(value, key)
        for name, info in fields.items():
            if info.alias == key:
                return getattr(value, name)
        extra = value.model_extra or {}
        if key in extra:
            return extra[key]

    return UNRESOLVED


def _index(value: Any, indices: Tuple[int, ...]) -> Any:
    for i in indices:
        if not isinstance(value, (list, tuple)) or i >= len(value):
            return UNRESOLVED
        value = value[i]
    return value


def lookup(
    reference: Reference,
    initial_params: Mapping[str, Any],
    step_results: Mapping[str, Any],
) -> Any:
    """
    Find the value a reference names, or UNRESOLVED.

    Order: the whole expression as an initial param key, then a step result
    by head segment, then an initial param by head segment.
    """
    if reference.expression in initial_params:
        return initial_params[reference.expression]

    head = reference.segments[0]
    if head.key in step_results:
        current = step_results[head.key]
    elif head.key in initial_params:
        current = initial_params[head.key]
    else:
        return UNRESOLVED

    current = _index(current, head.indices)
    for segment in reference.segments[1:]:
        if current is UNRESOLVED:
            break
        current = _index(_child(current, segment.key), segment.indices)
    return current


def resolve_binding(
    binding: Binding,
    initial_params: Mapping[str, Any],
    step_results: Mapping[str, Any],
    strict_steps: Collection[str] = (),
) -> Any:
    """
    Evaluate a binding tree.

    Unresolved references become None with a warning, except references
    headed by one of strict_steps, which raise.

    Raises:
        UnresolvedReferenceError: Reference into a strict step's result has no value
    """
    if isinstance(binding, LiteralValue):
        return binding.value

    if isinstance(binding, MappingTemplate):
        return {
            key: resolve_binding(child, initial_params, step_results, strict_steps)
            for key, child in binding.fields
        }

    value = lookup(binding, initial_params, step_results)
    if value is not UNRESOLVED:
        return value

    if binding.head in strict_steps:
        raise UnresolvedReferenceError(binding.expression, sorted(step_results))

    logger.warning(
        "Template variable not found",
        extra={
            "variable": binding.expression,
            "available_initial_params": sorted(initial_params),
            "available_step_results": sorted(step_results),
        },
    )
    return None


def resolve_template_variables(
    params: Optional[Mapping[str, Any]],
    initial_params: Optional[Mapping[str, Any]] = None,
    step_results: Optional[Mapping[str, Any]] = None,
    strict_steps: Collection[str] = (),
) -> Dict[str, Any]:
    """Compile and resolve a params object in one go."""
    return resolve_binding(compile_params(params), initial_params or {}, step_results or {}, strict_steps)


def resolve_variable(
    path: str,
    initial_params: Optional[Mapping[str, Any]] = None,
    step_results: Optional[Mapping[str, Any]] = None,
) -> Any:
    """Resolve a bare path (no braces). Returns None when nothing is found."""
    value = lookup(parse_reference(path), initial_params or {}, step_results or {})
    return None if value is UNRESOLVED else value
