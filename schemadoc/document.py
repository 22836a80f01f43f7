"""Render an OpenAPI document as a Markdown reference of tables and samples."""
from __future__ import annotations

import json
import logging
from collections import deque
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple
from urllib.parse import urlparse

import httpx
import yaml

from .markdown import anchor_id, concat_new_line, table, table_parameter_name, title
from .refs import ResolutionContext, Schema
from .samples import prepare_sample_object
from .tables import TableRef, prepare_table_row_data, table_from_schema
from .types import TypeTag, infer_type
from .utils import config
from .utils.errors import MalformedCompositionError, SchemaError, error_from_exception
from .utils.logging import document_scope, increment_counter, scoped_timer
from .validators import SampleValidator

logger = logging.getLogger("schemadoc.document")

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
JSON_MEDIA_TYPES = ("application/json", "application/problem+json")

Operation = Tuple[str, str, Mapping[str, Any]]


def _parse_text(text: str, name: str) -> Mapping[str, Any]:
    if name.lower().endswith((".yaml", ".yml")):
        data = yaml.safe_load(text)
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            data = yaml.safe_load(text)
    if not isinstance(data, Mapping):
        raise ValueError(f"OpenAPI document {name!r} is not a mapping")
    return data


def load_openapi(
    source: str,
    *,
    client: Optional[httpx.Client] = None,
    timeout: Optional[float] = None,
) -> Mapping[str, Any]:
    """Load an OpenAPI JSON or YAML document from an HTTP(S) URL or filesystem path."""
    parsed = urlparse(source)
    if parsed.scheme in {"http", "https"}:
        owns_client = client is None
        http = client or httpx.Client(
            timeout=timeout if timeout is not None else config.HTTP_TIMEOUT_SECONDS,
            follow_redirects=True,
        )
        try:
            with scoped_timer(logger, "load_openapi.fetch", extra={"source": source}):
                response = http.get(source)
            response.raise_for_status()
            return _parse_text(response.text, parsed.path)
        finally:
            if owns_client:
                http.close()
    if parsed.scheme and parsed.scheme != "file":
        raise ValueError(f"Unsupported URL scheme: {parsed.scheme}")
    path = parsed.path if parsed.scheme else source
    with open(path, "r", encoding="utf-8") as fh:
        return _parse_text(fh.read(), path)


def _resolve(node: Any, context: ResolutionContext) -> Any:
    # Parameters, request bodies and responses may be $ref'd from components.
    seen: Set[str] = set()
    while isinstance(node, Mapping) and isinstance(node.get("$ref"), str):
        ref = node["$ref"]
        if ref in seen:
            raise MalformedCompositionError(f"Circular reference {ref!r}")
        seen.add(ref)
        node = context.resolve_pointer(ref)
    return node


def _parameter_key(parameter: Mapping[str, Any], context: ResolutionContext) -> Tuple[str, str]:
    try:
        resolved = _resolve(parameter, context)
    except SchemaError:
        # kept unresolved; rendering the parameter table reports it
        return "$ref", str(parameter.get("$ref"))
    return str(resolved.get("name", "")), str(resolved.get("in", ""))


def collect_operations(
    document: Mapping[str, Any], context: Optional[ResolutionContext] = None
) -> List[Operation]:
    """Return ``(path, method, operation)`` sorted by path then method.

    Path-level parameters are merged into each operation; an operation-level
    parameter with the same ``name`` and ``in`` wins. Parameters given by
    ``$ref`` are merged by their target; the raw parameter is kept.
    """

    context = context or ResolutionContext(document)
    paths = document.get("paths") or {}
    operations: List[Operation] = []
    for path in sorted(paths):
        path_item = paths[path]
        if not isinstance(path_item, Mapping):
            continue
        shared = [item for item in path_item.get("parameters") or () if isinstance(item, Mapping)]
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, Mapping):
                continue
            merged: Dict[Tuple[str, str], Mapping[str, Any]] = {}
            for item in [*shared, *(operation.get("parameters") or ())]:
                if isinstance(item, Mapping):
                    merged[_parameter_key(item, context)] = item
            operations.append((path, method, {**operation, "parameters": list(merged.values())}))
    return operations


def _pick_media_schema(content: Any) -> Optional[Schema]:
    if not isinstance(content, Mapping) or not content:
        return None
    for mimetype in JSON_MEDIA_TYPES:
        media = content.get(mimetype)
        if isinstance(media, Mapping) and isinstance(media.get("schema"), Mapping):
            return media["schema"]
    for media in content.values():
        if isinstance(media, Mapping) and isinstance(media.get("schema"), Mapping):
            return media["schema"]
    return None


def _status_order(code: str) -> Tuple[bool, str]:
    return (code == "default", code)


class DocumentRenderer:
    """Renders one document; every referenced table is written exactly once."""

    def __init__(
        self,
        document: Mapping[str, Any],
        *,
        runtime_refs: Optional[bool] = None,
        strict: Optional[bool] = None,
        validate_samples: Optional[bool] = None,
    ) -> None:
        self.document = document
        self.context = ResolutionContext(document, runtime_refs=runtime_refs)
        self.strict = config.STRICT if strict is None else strict
        validate = config.VALIDATE_SAMPLES if validate_samples is None else validate_samples
        self._validator = SampleValidator(document) if validate else None
        self.rendered: Set[TableRef] = set()
        self.errors: List[Dict[str, object]] = []

    def _guarded(self, where: str, render: Callable[[], List[str]]) -> List[str]:
        committed = set(self.rendered)
        try:
            return render()
        except SchemaError as exc:
            if self.strict:
                raise
            # tables written by the failed call are dropped with its lines
            self.rendered = committed
            diagnostic = error_from_exception(exc)
            self.errors.append({"location": where, **diagnostic})
            logger.warning(
                "schema.error",
                extra={"location": where, "code": diagnostic["code"], "detail": diagnostic["message"]},
            )
            return ["", f"> **Schema error** (`{diagnostic['code']}`) in {where}: {str(exc).splitlines()[0]}"]

    def _render_refs(self, refs: Iterable[TableRef]) -> List[str]:
        lines: List[str] = []
        queue = deque(refs)
        while queue:
            ref = queue.popleft()
            if ref in self.rendered:
                continue
            self.rendered.add(ref)
            node = self.context.lookup(ref)
            result = table_from_schema(node, self.context)
            increment_counter("tables.rendered")
            lines.extend(["", f'<a id="{anchor_id(ref)}"></a>', "", title(5)(ref)])
            description = self.context.merge(node).get("description")
            if description:
                lines.extend(["", str(description)])
            if result.content:
                lines.append("")
                lines.extend(result.content.splitlines())
            queue.extend(result.table_refs)
        return lines

    def render_schema(self, schema: Schema, identity: Optional[str] = None) -> List[str]:
        """Entry table, linked tables and a JSON sample for *schema*."""

        context = self.context
        canonical = context.merge(schema)
        if (
            identity
            and context.find(schema) is None
            and "$ref" not in schema
            and context.is_runtime_allowed()
            and infer_type(canonical) in (TypeTag.OBJECT, TypeTag.ARRAY)
        ):
            # anonymous bodies still need an identity for their nested tables
            context.runtime(identity, schema)
            self.rendered.add(identity)

        lines: List[str] = []
        description = canonical.get("description")
        if description:
            lines.extend(["", str(description)])

        result = table_from_schema(schema, context)
        increment_counter("tables.rendered")
        if result.content:
            lines.append("")
            lines.extend(result.content.splitlines())
        lines.extend(self._render_refs(result.table_refs))

        sample = prepare_sample_object(schema, context)
        increment_counter("samples.rendered")
        if self._validator is not None:
            ok, errors = self._validator.validate(schema, sample)
            if not ok:
                logger.warning("sample.invalid", extra={"identity": identity, "errors": errors})
        lines.extend(["", "```json"])
        lines.extend(json.dumps(sample, indent=2, default=str).splitlines())
        lines.append("```")
        return lines

    def render_parameters(self, parameters: Iterable[Mapping[str, Any]]) -> List[str]:
        rows: List[List[str]] = []
        refs: List[TableRef] = []
        for raw in parameters:
            parameter = _resolve(raw, self.context)
            if not isinstance(parameter, Mapping):
                continue
            schema = parameter.get("schema")
            if not isinstance(schema, Mapping):
                schema = _pick_media_schema(parameter.get("content")) or {}
            row = prepare_table_row_data(self.context.merge(schema), self.context)
            description = concat_new_line(
                str(parameter.get("description") or ""), f"In: `{parameter.get('in', '')}`"
            )
            rows.append(
                [
                    table_parameter_name(str(parameter.get("name", "")), bool(parameter.get("required"))),
                    row.type,
                    concat_new_line(description, row.description),
                ]
            )
            if row.ref:
                refs.append(row.ref)
        if not rows:
            return []
        lines = ["", title(4)("Parameters"), ""]
        lines.extend(table([["Name", "Type", "Description"], *rows]).splitlines())
        lines.extend(self._render_refs(refs))
        return lines

    def render_request_body(self, raw: Any, identity: str) -> List[str]:
        request_body = _resolve(raw, self.context)
        if not isinstance(request_body, Mapping):
            return []
        schema = _pick_media_schema(request_body.get("content"))
        if schema is None:
            return []
        lines = ["", title(4)("Request body")]
        if request_body.get("description"):
            lines.extend(["", str(request_body["description"])])
        lines.extend(self.render_schema(schema, identity))
        return lines

    def render_response(self, status: str, raw: Any, identity: str) -> List[str]:
        response = _resolve(raw, self.context)
        if not isinstance(response, Mapping):
            return []
        heading = f"`{status}`"
        if response.get("description"):
            heading = f"{heading} {response['description']}"
        lines = ["", title(5)(heading)]
        schema = _pick_media_schema(response.get("content"))
        if schema is not None:
            lines.extend(self.render_schema(schema, identity))
        return lines

    def render_operation(self, path: str, method: str, spec: Mapping[str, Any]) -> List[str]:
        where = f"{method.upper()} {path}"
        operation_id = str(spec.get("operationId") or f"{method}{path}".replace("/", "-"))
        lines: List[str] = [title(3)(method.upper())]
        summary = spec.get("summary")
        if summary:
            lines.extend(["", f"**Summary:** {summary}"])
        description = spec.get("description")
        if description:
            lines.extend(["", str(description)])

        parameters = spec.get("parameters") or []
        if parameters:
            lines.extend(self._guarded(f"{where} parameters", lambda: self.render_parameters(parameters)))

        if spec.get("requestBody") is not None:
            lines.extend(
                self._guarded(
                    f"{where} request body",
                    lambda: self.render_request_body(spec["requestBody"], f"{operation_id}-request"),
                )
            )

        responses = spec.get("responses") or {}
        if responses:
            lines.extend(["", title(4)("Responses")])
        for status in sorted(responses, key=lambda code: _status_order(str(code))):
            lines.extend(
                self._guarded(
                    f"{where} response {status}",
                    lambda status=status: self.render_response(
                        str(status), responses[status], f"{operation_id}-response-{status}"
                    ),
                )
            )
        return lines

    def render(self, source: str) -> str:
        info = self.document.get("info") or {}
        doc_title = info.get("title", "OpenAPI document")
        version = info.get("version", "")
        parts: List[str] = [title(1)(f"{doc_title} API reference"), ""]
        parts.append(f"_Source: {source}, version {version}_")
        parts.append("")
        with document_scope(doc_title, source) as scope:
            current_path = None
            for path, method, operation in collect_operations(self.document, self.context):
                if path != current_path:
                    parts.extend([title(2)(f"`{path}`"), ""])
                    current_path = path
                parts.extend(self.render_operation(path, method, operation))
                parts.append("")
                scope.increment("operations.rendered")
            if self.context.warnings:
                scope.log(logging.WARNING, "document.warnings", warnings=list(self.context.warnings))
        return "\n".join(parts)


def render_api(
    document: Mapping[str, Any],
    source: str,
    *,
    runtime_refs: Optional[bool] = None,
    strict: Optional[bool] = None,
    validate_samples: Optional[bool] = None,
) -> str:
    """Render *document*; a fresh resolution context is used for every call."""

    renderer = DocumentRenderer(
        document,
        runtime_refs=runtime_refs,
        strict=strict,
        validate_samples=validate_samples,
    )
    return renderer.render(source)


__all__ = [
    "DocumentRenderer",
    "collect_operations",
    "load_openapi",
    "render_api",
]
