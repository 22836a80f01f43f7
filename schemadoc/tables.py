"""Build Markdown property tables from canonical schema nodes."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from .markdown import EOL, anchor, concat_new_line, table, table_parameter_name, title
from .refs import ResolutionContext, Schema
from .types import (
    TypeTag,
    description_for_one_of_element,
    extract_one_of_elements,
    extract_ref_from_type,
    format_suffix,
    infer_type,
    is_required,
    type_to_text,
)
from .utils.errors import MalformedCompositionError
from .utils.logging import increment_counter

TableRow = Tuple[str, str, str]
TableRef = str


@dataclass(slots=True)
class TableFromSchemaResult:
    content: str
    table_refs: List[TableRef] = field(default_factory=list)
    one_of_refs: Optional[List[TableRef]] = None


@dataclass(slots=True)
class TableRowData:
    type: str
    description: str
    ref: Optional[TableRef] = None
    # Inline object promoted to its own table; rendered later under this identity.
    runtime_ref: Optional[TableRef] = None


def _table_ref(schema: Schema, context: ResolutionContext) -> Optional[TableRef]:
    ref = context.find(schema)
    if ref is None and isinstance(schema.get("$ref"), str):
        ref = context.ref_identity(schema["$ref"])
    return ref


def table_from_schema(schema: Schema, context: ResolutionContext) -> TableFromSchemaResult:
    """Render the property table of *schema* and collect the schemas it links to."""

    merged = context.merge(schema, False)

    if merged.get("enum") and not merged.get("properties"):
        # enum values go to the description column
        description = prepare_complex_description("", merged)
        content = table(
            [
                ["Type", "Description"],
                [type_to_text(infer_type(merged)) + format_suffix(merged), description],
            ]
        )
        return TableFromSchemaResult(content=content)

    table_ref = _table_ref(schema, context)

    if infer_type(merged) is TypeTag.ARRAY:
        row = prepare_table_row_data(merged, context, "items" if table_ref else None, table_ref)
        content = table([["Type", "Description"], [row.type, row.description]])
        refs = [ref for ref in (row.ref, row.runtime_ref) if ref]
        return TableFromSchemaResult(content=content, table_refs=refs)

    if merged.get("oneOf") and table_ref and context.is_runtime_allowed():
        _promote_one_of_elements(merged, table_ref, context)

    rows, refs = _prepare_object_schema_table(merged, table_ref, context)
    content = table([["Name", "Type", "Description"], *rows]) if rows else ""

    if merged.get("oneOf"):
        one_of_refs = [
            ref
            for ref in (
                extract_ref_from_type(element, context)
                for element in extract_one_of_elements(merged, context)
            )
            if ref
        ]
        content += EOL + title(4)("Or value from:") + EOL
        refs.extend(one_of_refs)
        return TableFromSchemaResult(content=content, table_refs=refs, one_of_refs=one_of_refs)

    return TableFromSchemaResult(content=content, table_refs=refs)


def _promote_one_of_elements(
    merged: Schema, table_ref: TableRef, context: ResolutionContext
) -> None:
    for index, element in enumerate(extract_one_of_elements(merged, context), start=1):
        if context.find(element) is None and element.get("properties"):
            context.runtime(f"{table_ref}-option{index}", element)


def _prepare_object_schema_table(
    merged: Schema, table_ref: Optional[TableRef], context: ResolutionContext
) -> Tuple[List[TableRow], List[TableRef]]:
    rows: List[TableRow] = []
    refs: List[TableRef] = []

    for key, raw in (merged.get("properties") or {}).items():
        value = context.merge(raw)
        name = table_parameter_name(key, is_required(key, merged))
        row = prepare_table_row_data(value, context, key, table_ref)

        rows.append((name, row.type, row.description))

        if row.ref:
            refs.append(row.ref)
        if row.runtime_ref:
            refs.append(row.runtime_ref)

        for element in value.get("oneOf") or ():
            if isinstance(element, bool):
                continue
            inner = prepare_table_row_data(context.merge(element), context)
            if inner.ref:
                refs.append(inner.ref)

    if merged.get("oneOf"):
        rows.append(("...rest", "oneOf", description_for_one_of_element(merged, context, True)))

    return rows, refs


def prepare_table_row_data(
    value: Schema,
    context: ResolutionContext,
    key: Optional[str] = None,
    parent_ref: Optional[TableRef] = None,
) -> TableRowData:
    description = value.get("description") or ""
    property_ref = f"{parent_ref}-{key}" if parent_ref and key else None
    tag = infer_type(value)

    if tag is TypeTag.ARRAY:
        items = value.get("items")
        if not isinstance(items, Mapping):
            raise MalformedCompositionError(f"Unsupported array items for {key}")

        item_schema = context.merge(items)
        inner = prepare_table_row_data(item_schema, context, key, parent_ref)
        # a referenced element is described in its own table
        inner_description = (
            description if inner.ref else concat_new_line(description, inner.description)
        )

        if context.is_runtime_allowed() and inner.runtime_ref:
            context.runtime(inner.runtime_ref, item_schema)
            return TableRowData(
                type=f"{anchor(inner.runtime_ref, key)}[]",
                description=inner_description,
                runtime_ref=inner.runtime_ref,
            )

        return TableRowData(type=f"{inner.type}[]", description=inner_description, ref=inner.ref)

    ref = extract_ref_from_type(value, context)
    if ref is not None:
        return TableRowData(
            type=anchor(ref, key if ref == property_ref else None),
            description=prepare_complex_description(description, value),
            ref=ref,
        )

    if context.is_runtime_allowed() and property_ref and tag is TypeTag.OBJECT:
        context.runtime(property_ref, value)
        increment_counter("tables.runtime_rows")
        return TableRowData(
            type=anchor(property_ref, key),
            description=prepare_complex_description(description, value),
            runtime_ref=property_ref,
        )

    if tag is TypeTag.ONE_OF:
        description = concat_new_line(description, description_for_one_of_element(value, context))

    return TableRowData(
        type=type_to_text(tag) + format_suffix(value),
        description=prepare_complex_description(description, value),
    )


def _literal(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True)


def prepare_complex_description(base_description: str, value: Schema) -> str:
    """Append enum values, default and example to *base_description*, in that order."""

    description = base_description
    enum_values = ", ".join(f"`{_literal(item)}`" for item in value.get("enum") or ())
    if enum_values:
        description = concat_new_line(
            description, f'<span style="color:gray;">Enum</span>: {enum_values}'
        )
    if "default" in value:
        description = concat_new_line(
            description, f'<span style="color:gray;">Default</span>: `{_literal(value["default"])}`'
        )
    if "example" in value:
        description = concat_new_line(
            description, f'<span style="color:gray;">Example</span>: `{_literal(value["example"])}`'
        )
    return description


__all__ = [
    "TableFromSchemaResult",
    "TableRow",
    "TableRowData",
    "prepare_complex_description",
    "prepare_table_row_data",
    "table_from_schema",
]
