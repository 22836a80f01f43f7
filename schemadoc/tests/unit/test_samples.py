from __future__ import annotations

import logging

import pytest

from schemadoc.refs import ResolutionContext
from schemadoc.samples import (
    DATE_TIME_SAMPLE,
    OMITTED,
    UUID_SAMPLE,
    find_non_null_one_of_element,
    prepare_sample_element,
    prepare_sample_object,
)
from schemadoc.utils.errors import MalformedCompositionError, UnrepresentableSchemaError


def _ref(name: str) -> dict:
    return {"$ref": f"#/components/schemas/{name}"}


def test_scenario_object_with_uuid_and_enum() -> None:
    schema = {
        "type": "object",
        "required": ["id"],
        "properties": {
            "id": {"type": "string", "format": "uuid"},
            "tag": {"type": "string", "enum": ["a", "b"]},
        },
    }

    assert prepare_sample_object(schema, ResolutionContext({})) == {"id": UUID_SAMPLE, "tag": "a"}


def test_scalar_one_of_branch_is_sampled_directly() -> None:
    schema = {"oneOf": [{"type": "string"}, {"type": "object"}]}

    assert prepare_sample_object(schema, ResolutionContext({})) == "string"


def test_named_schema_sample(context, petstore) -> None:
    sample = prepare_sample_object(petstore["components"]["schemas"]["Pet"], context)

    assert sample == {
        "id": UUID_SAMPLE,
        "name": "Rex",
        "status": "available",
        "owner": {"email": "string", "since": DATE_TIME_SAMPLE},
        "tags": [{"label": "string", "weight": 1.5}],
    }


def test_all_of_sample_merges_members(context) -> None:
    assert prepare_sample_object(_ref("NewPet"), context) == {
        "label": "string",
        "weight": 1.5,
        "nickname": "string",
    }


def test_optional_cycles_are_cut(context, petstore) -> None:
    sample = prepare_sample_object(petstore["components"]["schemas"]["Node"], context)

    assert sample == {"name": "string", "children": []}
    assert context.warnings == []


def test_required_cycle_gets_placeholder_and_warning(caplog) -> None:
    document = {
        "components": {
            "schemas": {
                "Loop": {
                    "type": "object",
                    "required": ["self", "many"],
                    "properties": {
                        "self": _ref("Loop"),
                        "many": {"type": "array", "items": _ref("Loop")},
                    },
                }
            }
        }
    }
    context = ResolutionContext(document)

    with caplog.at_level(logging.WARNING, logger="schemadoc.refs"):
        sample = prepare_sample_object(document["components"]["schemas"]["Loop"], context)

    assert sample == {"self": {}, "many": [{}]}
    assert context.warnings == ["sample.required_cycle", "sample.required_cycle"]
    assert "sample.required_cycle" in caplog.text


def test_literal_precedence() -> None:
    context = ResolutionContext({})
    node = {"type": "string", "enum": ["a"], "default": "b", "example": "z"}

    assert prepare_sample_element("k", node, False, context) == "z"
    assert prepare_sample_element("k", {"type": "string", "enum": ["a"], "default": "b"}, False, context) == "a"
    assert prepare_sample_element("k", {"type": "integer", "default": 0}, False, context) == 0


def test_falsy_example_is_kept() -> None:
    context = ResolutionContext({})

    assert prepare_sample_element("flag", {"type": "boolean", "example": False}, True, context) is False
    assert prepare_sample_object({"type": "object", "example": {}}, context) == {}


def test_primitive_defaults() -> None:
    schema = {
        "type": "object",
        "properties": {
            "n": {"type": "number"},
            "i": {"type": "integer"},
            "b": {"type": "boolean"},
            "s": {"type": "string", "format": "email"},
            "when": {"type": "string", "format": "date-time"},
            "anything": {},
        },
    }

    assert prepare_sample_object(schema, ResolutionContext({})) == {
        "n": 0,
        "i": 0,
        "b": False,
        "s": "string",
        "when": DATE_TIME_SAMPLE,
    }


def test_untyped_node_is_omitted() -> None:
    assert prepare_sample_element("x", {}, False, ResolutionContext({})) is OMITTED
    assert prepare_sample_object({}, ResolutionContext({})) == {}


def test_property_one_of_samples_first_usable_branch(context) -> None:
    schema = {
        "type": "object",
        "properties": {"either": {"oneOf": [{"description": "opaque"}, _ref("Tag")]}},
    }

    assert prepare_sample_object(schema, context) == {
        "either": {"label": "string", "weight": 1.5}
    }


def test_nested_one_of_is_searched_breadth_first() -> None:
    context = ResolutionContext({})
    schema = {"oneOf": [{"oneOf": [{"type": "integer"}]}, {"description": "opaque"}]}

    assert find_non_null_one_of_element(schema, context) == {"type": "integer"}
    assert prepare_sample_object(schema, context) == 0


def test_unrepresentable_one_of_raises() -> None:
    schema = {"oneOf": [{"description": "opaque"}, {"oneOf": []}]}

    with pytest.raises(UnrepresentableSchemaError, match="Unable to create sample element"):
        prepare_sample_object(schema, ResolutionContext({}))


@pytest.mark.parametrize("items", [True, None, [{"type": "string"}]])
def test_unsupported_array_items_raise(items) -> None:
    schema = {"type": "object", "properties": {"xs": {"type": "array", "items": items}}}

    with pytest.raises(MalformedCompositionError):
        prepare_sample_object(schema, ResolutionContext({}))
