"""Logging helpers scoped to the rendering of a single OpenAPI document."""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import monotonic
from typing import Dict, Iterator, Optional

import contextvars


_DOCUMENT: contextvars.ContextVar["DocumentContext | None"] = contextvars.ContextVar(
    "schemadoc_document", default=None
)


def configure_root(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


@contextmanager
def scoped_timer(
    logger: logging.Logger, message: str, *, extra: Optional[Dict[str, object]] = None
) -> Iterator[None]:
    start = monotonic()
    try:
        yield
    finally:
        logger.debug("%s", message, extra={"duration_s": monotonic() - start, **(extra or {})})


@dataclass(slots=True)
class DocumentContext:
    """Counters of one rendering pass; every record it logs names the document."""

    title: str
    source: str
    document_id: str
    logger: logging.Logger
    counters: Dict[str, int] = field(default_factory=dict)
    started: float = field(default_factory=monotonic)

    def fields(self, **values: object) -> Dict[str, object]:
        return {
            "document_id": self.document_id,
            "document": self.title,
            "source": self.source,
            **values,
        }

    def log(self, level: int, message: str, **values: object) -> None:
        self.logger.log(level, message, extra=self.fields(**values))

    def increment(self, counter: str, amount: int = 1) -> int:
        self.counters[counter] = self.counters.get(counter, 0) + amount
        return self.counters[counter]


@contextmanager
def document_scope(
    title: str, source: str = "", *, logger: Optional[logging.Logger] = None
) -> Iterator[DocumentContext]:
    """Make a :class:`DocumentContext` current while one document is rendered.

    ``document.start`` and ``document.finish`` are logged at INFO; the finish
    record carries the elapsed time and a copy of the counters.
    """

    context = DocumentContext(
        title=title,
        source=source,
        document_id=uuid.uuid4().hex[:12],
        logger=logger or logging.getLogger("schemadoc.document"),
    )
    token = _DOCUMENT.set(context)
    context.log(logging.INFO, "document.start")
    try:
        yield context
    except Exception:
        context.logger.exception("document.error", extra=context.fields())
        raise
    finally:
        context.log(
            logging.INFO,
            "document.finish",
            duration_s=monotonic() - context.started,
            counters=dict(context.counters),
        )
        _DOCUMENT.reset(token)


def current_document() -> Optional[DocumentContext]:
    return _DOCUMENT.get()


def increment_counter(name: str, amount: int = 1) -> None:
    """Bump *name* on the document being rendered; a no-op outside a scope."""

    context = _DOCUMENT.get()
    if context is not None:
        context.increment(name, amount)


__all__ = [
    "DocumentContext",
    "configure_root",
    "current_document",
    "document_scope",
    "increment_counter",
    "scoped_timer",
]
