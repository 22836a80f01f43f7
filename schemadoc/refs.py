"""Reference resolution and ``allOf`` flattening for OpenAPI schema nodes.

A :class:`ResolutionContext` is created for every document that gets rendered.
It knows the named ``components.schemas`` entries, turns raw schema nodes into
their canonical form (``$ref`` followed, ``allOf`` flattened) and keeps the
registry of *runtime* references: inline schemas that were promoted to their
own table while the document was traversed.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from .utils import config
from .utils.errors import DanglingReferenceError, MalformedCompositionError
from .utils.logging import increment_counter

logger = logging.getLogger("schemadoc.refs")

Schema = Mapping[str, Any]

COMPONENTS_PREFIX = "#/components/schemas/"

_UNION_KEYS = ("required", "enum")


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _merge_into(target: Dict[str, Any], part: Schema) -> None:
    for key, value in part.items():
        current = target.get(key)
        if key in _UNION_KEYS and isinstance(current, list) and isinstance(value, list):
            target[key] = current + [item for item in value if item not in current]
        elif isinstance(current, Mapping) and isinstance(value, Mapping):
            target[key] = {**current, **value}
        else:
            target[key] = value


def _combine(parts: List[Schema]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for part in parts:
        _merge_into(merged, part)
    return merged


class ResolutionContext:
    """Per-document schema resolver and reference registry."""

    def __init__(
        self,
        document: Optional[Mapping[str, Any]] = None,
        *,
        runtime_refs: Optional[bool] = None,
    ) -> None:
        self._document: Mapping[str, Any] = document or {}
        self._runtime_allowed = config.RUNTIME_REFS if runtime_refs is None else runtime_refs
        # Keyed by id(); the node is kept alongside so the id cannot be reused.
        self._identities: Dict[int, Tuple[Schema, str]] = {}
        self._merged: Dict[int, Tuple[Schema, Schema]] = {}
        self._anonymous: Dict[int, Tuple[Schema, str]] = {}
        self._resolving: Set[int] = set()
        self._named: Dict[str, Schema] = {}
        self._runtime: Dict[str, Schema] = {}
        self.warnings: List[str] = []

        components = self._document.get("components") or {}
        schemas = (components.get("schemas") or {}) if isinstance(components, Mapping) else {}
        for name, schema in schemas.items():
            if isinstance(schema, Mapping):
                self._named[name] = schema
                self._bind(schema, name)

    @property
    def document(self) -> Mapping[str, Any]:
        return self._document

    def _bind(self, node: Schema, identity: str) -> None:
        self._identities.setdefault(id(node), (node, identity))

    def find(self, node: Any) -> Optional[str]:
        """Return the reference identity registered for *node*, if any."""

        if not isinstance(node, Mapping):
            return None
        entry = self._identities.get(id(node))
        return entry[1] if entry is not None else None

    def ref_identity(self, ref: str) -> str:
        """Identity used for a ``$ref`` pointer: the component name or the pointer itself."""

        if ref.startswith(COMPONENTS_PREFIX):
            name = ref[len(COMPONENTS_PREFIX):]
            if "/" not in name:
                return _unescape(name)
        if ref.startswith("#"):
            return ref
        raise DanglingReferenceError(ref, f"External reference {ref!r} is not supported")

    def resolve_pointer(self, ref: str) -> Schema:
        if not isinstance(ref, str) or not ref.startswith("#"):
            raise DanglingReferenceError(str(ref), f"External reference {ref!r} is not supported")
        node: Any = self._document
        path = ref[1:].lstrip("/")
        for raw_token in path.split("/") if path else ():
            token = _unescape(raw_token)
            if isinstance(node, Mapping) and token in node:
                node = node[token]
            elif isinstance(node, list) and token.isdigit() and int(token) < len(node):
                node = node[int(token)]
            else:
                raise DanglingReferenceError(ref)
        if not isinstance(node, Mapping):
            raise MalformedCompositionError(f"Reference {ref!r} does not point to a schema object")
        return node

    def merge(self, node: Any, allow_runtime_ref_resolution: bool = True) -> Schema:
        """Return the canonical form of *node*: ``$ref`` followed and ``allOf`` flattened.

        The result is memoised per source node, so merging the same node twice
        yields the very same object. With ``allow_runtime_ref_resolution`` the
        canonical node inherits the identity of the node or reference it came
        from, which lets :meth:`find` answer for it.
        """

        if isinstance(node, bool) or not isinstance(node, Mapping):
            raise MalformedCompositionError(f"Expected a schema object, got {node!r}")
        if "$ref" not in node and "allOf" not in node:
            return node

        key = id(node)
        cached = self._merged.get(key)
        if cached is not None:
            merged = cached[1]
        else:
            if key in self._resolving:
                raise MalformedCompositionError(
                    f"Circular composition while resolving {node.get('$ref', 'allOf')!r}"
                )
            self._resolving.add(key)
            try:
                merged = self._canonicalize(node, allow_runtime_ref_resolution)
            finally:
                self._resolving.discard(key)
            self._merged[key] = (node, merged)

        if allow_runtime_ref_resolution:
            identity = self.find(node)
            if identity is None and isinstance(node.get("$ref"), str):
                identity = self.ref_identity(node["$ref"])
            if identity is not None:
                self._bind(merged, identity)
        return merged

    def _canonicalize(self, node: Schema, allow: bool) -> Schema:
        ref = node.get("$ref")
        if ref is not None:
            if not isinstance(ref, str):
                raise MalformedCompositionError(f"$ref must be a string, got {ref!r}")
            base = self.merge(self.resolve_pointer(ref), allow)
            siblings = {key: value for key, value in node.items() if key != "$ref"}
            if not siblings:
                return base
            return _combine([base, self._flatten(siblings, allow)])
        return self._flatten(node, allow)

    def _flatten(self, node: Schema, allow: bool) -> Schema:
        members = node.get("allOf")
        if members is None:
            return node
        if not isinstance(members, list):
            raise MalformedCompositionError("allOf must be a list of schemas")
        parts: List[Schema] = [self.merge(member, allow) for member in members]
        parts.append({key: value for key, value in node.items() if key != "allOf"})
        return _combine(parts)

    def identify(self, node: Schema) -> str:
        """Stable identity of *node* for cycle detection.

        Named and runtime schemas use their reference identity, raw ``$ref``
        nodes use the identity of their target and anything else gets a
        context-local synthetic key.
        """

        identity = self.find(node)
        if identity is not None:
            return identity
        ref = node.get("$ref") if isinstance(node, Mapping) else None
        if isinstance(ref, str):
            return self.ref_identity(ref)
        entry = self._anonymous.get(id(node))
        if entry is None:
            entry = (node, f"~anonymous-{len(self._anonymous) + 1}")
            self._anonymous[id(node)] = entry
        return entry[1]

    def is_runtime_allowed(self) -> bool:
        return self._runtime_allowed

    def runtime(self, identity: str, node: Schema) -> None:
        """Register an inline *node* under *identity*; the first registration wins."""

        if identity in self._runtime or identity in self._named:
            return
        self._runtime[identity] = node
        self._bind(node, identity)
        increment_counter("refs.runtime")
        logger.debug("refs.runtime", extra={"identity": identity})

    @property
    def runtime_refs(self) -> List[str]:
        return list(self._runtime)

    def lookup(self, identity: str) -> Schema:
        """Return the schema registered under a named or runtime *identity*."""

        if identity in self._named:
            return self._named[identity]
        if identity in self._runtime:
            return self._runtime[identity]
        if identity.startswith("#"):
            return self.resolve_pointer(identity)
        raise DanglingReferenceError(identity, f"Unknown schema reference {identity!r}")

    def warn(self, message: str, **extra: object) -> None:
        self.warnings.append(message)
        logger.warning(message, extra=extra)


__all__ = ["COMPONENTS_PREFIX", "ResolutionContext", "Schema"]
