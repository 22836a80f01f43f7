"""Synthesize representative example values from schema nodes."""
from __future__ import annotations

import json
from collections import deque
from typing import Any, Dict, Mapping, Sequence, Set

from .refs import ResolutionContext, Schema
from .types import TypeTag, infer_type, is_required
from .utils.errors import MalformedCompositionError, UnrepresentableSchemaError
from .utils.logging import increment_counter

UUID_SAMPLE = "c3073b9d-edd0-49f2-a28d-b7ded8ff9a8b"
DATE_TIME_SAMPLE = "2022-12-29T18:02:01Z"

_FORMAT_SAMPLES = {
    "uuid": UUID_SAMPLE,
    "date-time": DATE_TIME_SAMPLE,
}


class _Omitted:
    """Marker for a property left out of the sample; distinct from JSON ``null``."""

    _instance = None

    def __new__(cls) -> "_Omitted":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "OMITTED"


OMITTED = _Omitted()


def _is_usable(node: Schema) -> bool:
    if infer_type(node) not in (TypeTag.ONE_OF, TypeTag.UNKNOWN):
        return True
    return bool(node.get("properties"))


def find_non_null_one_of_element(schema: Schema, context: ResolutionContext) -> Schema:
    """Pick the first branch with a shape, searching nested ``oneOf`` breadth-first."""

    if _is_usable(schema):
        return context.merge(schema)

    queue = deque(schema.get("oneOf") or ())
    seen: Set[int] = {id(schema)}
    while queue:
        branch = queue.popleft()
        if not isinstance(branch, Mapping):
            continue
        merged = context.merge(branch)
        if id(merged) in seen:
            continue
        seen.add(id(merged))
        if _is_usable(merged):
            return merged
        queue.extend(merged.get("oneOf") or ())

    raise UnrepresentableSchemaError(
        f"Unable to create sample element:\n{json.dumps(schema, indent=2, default=str)}"
    )


def prepare_sample_object(
    schema: Schema, context: ResolutionContext, callstack: Sequence[str] = ()
) -> Any:
    """Build an example value for *schema*.

    ``callstack`` holds the identities of the schemas being expanded on the
    current path; optional properties pointing back at one of them are left
    out so self-referencing schemas produce finite samples.
    """

    if isinstance(schema, Mapping) and "example" in schema:
        return schema["example"]

    canonical = context.merge(schema)
    if "example" in canonical:
        return canonical["example"]

    chosen = canonical
    if infer_type(canonical) is TypeTag.ONE_OF:
        chosen = find_non_null_one_of_element(canonical, context)
        if "example" in chosen:
            return chosen["example"]

    if infer_type(chosen) is not TypeTag.OBJECT and not chosen.get("properties"):
        value = prepare_sample_element("", chosen, True, context, callstack)
        return {} if value is OMITTED else value

    visited = tuple(callstack)
    for node in (canonical, chosen):
        identity = context.identify(node)
        if identity not in visited:
            visited += (identity,)

    result: Dict[str, Any] = {}
    for key, value in (chosen.get("properties") or {}).items():
        possible_value = prepare_sample_element(
            key, value, is_required(key, chosen), context, visited
        )
        if possible_value is not OMITTED:
            result[key] = possible_value
    return result


def prepare_sample_element(
    key: str,
    node: Any,
    required: bool,
    context: ResolutionContext,
    callstack: Sequence[str] = (),
) -> Any:
    """Example value for one property; :data:`OMITTED` when it should be left out."""

    value = context.merge(node)
    if "example" in value:
        return value["example"]
    if value.get("enum"):
        return value["enum"][0]
    if "default" in value:
        return value["default"]

    identity = context.identify(value)
    if identity in callstack:
        if not required:
            # stop recursive cyclic links
            increment_counter("sample.cycle_omitted")
            return OMITTED
        context.warn("sample.required_cycle", property=key, identity=identity)
        return [] if infer_type(value) is TypeTag.ARRAY else {}

    return _sample_value(key, value, required, context, (*callstack, identity))


def _sample_value(
    key: str,
    value: Schema,
    required: bool,
    context: ResolutionContext,
    callstack: Sequence[str],
) -> Any:
    tag = infer_type(value)

    if tag is TypeTag.ONE_OF:
        branch = find_non_null_one_of_element(value, context)
        return prepare_sample_element(key, branch, required, context, callstack)
    if tag is TypeTag.OBJECT:
        return prepare_sample_object(value, context, callstack)
    if tag is TypeTag.ARRAY:
        items = value.get("items")
        if not isinstance(items, Mapping):
            raise MalformedCompositionError(f"Unsupported array items for {key}")
        element = prepare_sample_element(key, items, required, context, callstack)
        return [] if element is OMITTED else [element]
    if tag is TypeTag.STRING:
        return _FORMAT_SAMPLES.get(value.get("format"), "string")
    if tag in (TypeTag.NUMBER, TypeTag.INTEGER):
        return 0
    if tag is TypeTag.BOOLEAN:
        return False

    if value.get("properties"):
        # no usable "type" declared
        return prepare_sample_object(value, context, callstack)

    return OMITTED


__all__ = [
    "DATE_TIME_SAMPLE",
    "OMITTED",
    "UUID_SAMPLE",
    "find_non_null_one_of_element",
    "prepare_sample_element",
    "prepare_sample_object",
]
