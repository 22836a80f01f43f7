"""Classify canonical schema nodes and render their type labels."""
from __future__ import annotations

from enum import Enum
from typing import Any, List, Mapping, Optional, Set

from .markdown import anchor
from .refs import ResolutionContext, Schema


class TypeTag(str, Enum):
    """Closed set of shapes a canonical schema node can denote."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    ONE_OF = "oneOf"
    UNKNOWN = "unknown"


# bool before int: isinstance(True, int) holds.
_LITERAL_TAGS = (
    (bool, TypeTag.BOOLEAN),
    (int, TypeTag.INTEGER),
    (float, TypeTag.NUMBER),
    (str, TypeTag.STRING),
    (Mapping, TypeTag.OBJECT),
    (list, TypeTag.ARRAY),
)


def normalize_schema_type(type_value: Any) -> str | None:
    """Return the first non-null schema type as a string."""
    if isinstance(type_value, list):
        filtered = [value for value in type_value if value != "null"]
        if filtered:
            type_value = filtered[0]
        elif type_value:
            # Only explicit null entries remain.
            type_value = type_value[0]
        else:
            return None
    if isinstance(type_value, str):
        return type_value
    return None


def _literal_tag(value: Any) -> Optional[TypeTag]:
    for python_type, tag in _LITERAL_TAGS:
        if isinstance(value, python_type):
            return tag
    return None


def infer_type(node: Schema) -> TypeTag:
    declared = normalize_schema_type(node.get("type"))
    if declared is not None:
        try:
            return TypeTag(declared)
        except ValueError:
            return TypeTag.UNKNOWN
    if "properties" in node:
        return TypeTag.OBJECT
    if "items" in node:
        return TypeTag.ARRAY
    if node.get("oneOf"):
        return TypeTag.ONE_OF
    enum = node.get("enum")
    if enum:
        return _literal_tag(enum[0]) or TypeTag.UNKNOWN
    if node.get("default") is not None:
        return _literal_tag(node["default"]) or TypeTag.UNKNOWN
    return TypeTag.UNKNOWN


def type_to_text(tag: TypeTag) -> str:
    if tag is TypeTag.UNKNOWN:
        return "any"
    return tag.value


def format_suffix(node: Schema) -> str:
    fmt = node.get("format")
    if fmt is None:
        return ""
    return f"&lt;{fmt}&gt;"


def is_required(key: str, node: Schema) -> bool:
    return key in (node.get("required") or ())


def extract_ref_from_type(node: Schema, context: ResolutionContext) -> Optional[str]:
    """Identity of a named node that gets a table of its own, else ``None``.

    Named scalars without an ``enum`` are rendered inline: their table would be empty.
    """

    ref = context.find(node)
    if ref is None:
        return None
    if node.get("properties") or node.get("enum") or node.get("oneOf"):
        return ref
    if infer_type(node) is TypeTag.OBJECT:
        return ref
    return None


def extract_one_of_elements(
    schema: Schema, context: ResolutionContext, _seen: Optional[Set[int]] = None
) -> List[Schema]:
    """Canonical ``oneOf`` branches of *schema*, nested shapeless ``oneOf`` flattened in order."""

    seen = _seen if _seen is not None else {id(schema)}
    elements: List[Schema] = []
    for branch in schema.get("oneOf") or ():
        if isinstance(branch, bool):
            continue
        merged = context.merge(branch)
        if id(merged) in seen:
            continue
        seen.add(id(merged))
        if infer_type(merged) is TypeTag.ONE_OF and not merged.get("properties"):
            elements.extend(extract_one_of_elements(merged, context, seen))
        else:
            elements.append(merged)
    return elements


def description_for_one_of_element(
    schema: Schema, context: ResolutionContext, is_rest: bool = False
) -> str:
    labels: List[str] = []
    for element in extract_one_of_elements(schema, context):
        ref = extract_ref_from_type(element, context)
        if ref is not None:
            labels.append(anchor(ref))
        else:
            labels.append(type_to_text(infer_type(element)) + format_suffix(element))
    if not labels:
        return ""
    prefix = "Or value from" if is_rest else "One of"
    return f"{prefix}: {', '.join(labels)}"


__all__ = [
    "TypeTag",
    "description_for_one_of_element",
    "extract_one_of_elements",
    "extract_ref_from_type",
    "format_suffix",
    "infer_type",
    "is_required",
    "normalize_schema_type",
    "type_to_text",
]
