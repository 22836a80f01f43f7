"""Error codes and exceptions raised while resolving and rendering schemas."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence


class SchemaErrorCode(str, Enum):
    """Stable codes for the failures a single schema can produce."""

    MALFORMED_COMPOSITION = "MALFORMED_COMPOSITION"
    DANGLING_REFERENCE = "DANGLING_REFERENCE"
    UNREPRESENTABLE_SCHEMA = "UNREPRESENTABLE_SCHEMA"


@dataclass(frozen=True)
class ErrorTemplate:
    """Default message and recovery hints for an error code."""

    message: str
    recovery: Sequence[str] = ()


_TEMPLATES: Mapping[SchemaErrorCode, ErrorTemplate] = {
    SchemaErrorCode.MALFORMED_COMPOSITION: ErrorTemplate(
        message="Schema composition is not supported.",
        recovery=(
            "Give arrays a single object schema in `items`.",
            "Make sure `allOf` members and `$ref` targets are schema objects.",
        ),
    ),
    SchemaErrorCode.DANGLING_REFERENCE: ErrorTemplate(
        message="Reference does not resolve within the document.",
        recovery=(
            "Check the `$ref` pointer against `components.schemas`.",
        ),
    ),
    SchemaErrorCode.UNREPRESENTABLE_SCHEMA: ErrorTemplate(
        message="Schema has no representable shape.",
        recovery=(
            "Add a `type` or `properties` to at least one `oneOf` branch.",
        ),
    ),
}


class SchemaError(ValueError):
    """Base class for unrecoverable failures of a single schema."""

    code: SchemaErrorCode = SchemaErrorCode.MALFORMED_COMPOSITION

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or _TEMPLATES[self.code].message)


class MalformedCompositionError(SchemaError):
    """Tuple or boolean array items, boolean members, or looping ``$ref`` chains."""

    code = SchemaErrorCode.MALFORMED_COMPOSITION


class DanglingReferenceError(SchemaError):
    """A ``$ref`` whose target is missing from the document."""

    code = SchemaErrorCode.DANGLING_REFERENCE

    def __init__(self, ref: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Unable to resolve reference {ref!r}")
        self.ref = ref


class UnrepresentableSchemaError(SchemaError):
    """No ``oneOf`` branch offers a shape a sample can be built from."""

    code = SchemaErrorCode.UNREPRESENTABLE_SCHEMA


def _resolve_template(code: SchemaErrorCode) -> ErrorTemplate:
    try:
        return _TEMPLATES[code]
    except KeyError:  # pragma: no cover - every code has a template
        raise ValueError(f"No error template registered for {code!s}") from None


def make_error(
    code: SchemaErrorCode,
    message: Optional[str] = None,
    *,
    recovery: Optional[Iterable[str]] = None,
) -> Dict[str, object]:
    """Create a JSON-serialisable diagnostic for a schema failure."""

    template = _resolve_template(code)
    resolved_recovery: List[str] = (
        list(recovery) if recovery is not None else list(template.recovery)
    )
    return {
        "code": code.value,
        "message": message if message is not None else template.message,
        "recovery": resolved_recovery,
    }


def error_from_exception(exc: SchemaError) -> Dict[str, object]:
    """Diagnostic payload for a raised :class:`SchemaError`."""

    return make_error(exc.code, str(exc))


__all__ = [
    "DanglingReferenceError",
    "ErrorTemplate",
    "MalformedCompositionError",
    "SchemaError",
    "SchemaErrorCode",
    "UnrepresentableSchemaError",
    "error_from_exception",
    "make_error",
]
