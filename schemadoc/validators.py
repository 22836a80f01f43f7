"""JSON schema validation of synthesized samples against their document."""
from __future__ import annotations

from typing import Any, List, Mapping, Tuple

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError as JSONSchemaError
from referencing import Registry, Resource
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT202012

DOCUMENT_URI = "urn:schemadoc:document"


def _absolute_refs(node: Any) -> Any:
    # Local pointers of the validated fragment must resolve against the whole document.
    if isinstance(node, Mapping):
        rewritten = {key: _absolute_refs(value) for key, value in node.items()}
        ref = rewritten.get("$ref")
        if isinstance(ref, str) and ref.startswith("#"):
            rewritten["$ref"] = f"{DOCUMENT_URI}{ref}"
        return rewritten
    if isinstance(node, list):
        return [_absolute_refs(item) for item in node]
    return node


class SampleValidator:
    """Validates samples with a ``referencing`` registry built once per document."""

    def __init__(self, document: Mapping[str, Any]) -> None:
        resource = Resource.from_contents(dict(document), default_specification=DRAFT202012)
        self._registry: Registry = Registry().with_resource(DOCUMENT_URI, resource)

    def validate(self, schema: Mapping[str, Any], sample: Any) -> Tuple[bool, List[str]]:
        validator = Draft202012Validator(_absolute_refs(schema), registry=self._registry)
        errors: List[str] = []
        try:
            for error in validator.iter_errors(sample):
                errors.append(error.message)
        except (JSONSchemaError, Unresolvable) as exc:
            errors.append(f"schema not checkable: {exc}")
        return not errors, errors


def validate_sample(
    document: Mapping[str, Any], schema: Mapping[str, Any], sample: Any
) -> Tuple[bool, List[str]]:
    return SampleValidator(document).validate(schema, sample)


__all__ = ["DOCUMENT_URI", "SampleValidator", "validate_sample"]
