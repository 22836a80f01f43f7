"""Command line entry point: OpenAPI document in, Markdown reference out."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import httpx
import yaml

from .document import load_openapi, render_api
from .utils import config
from .utils.errors import SchemaError
from .utils.logging import configure_root

logger = logging.getLogger("schemadoc.cli")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ``schemadoc`` command."""
    parser = argparse.ArgumentParser(
        description="Render OpenAPI schemas as Markdown property tables and sample payloads"
    )
    parser.add_argument("source", help="OpenAPI document: HTTP(S) URL or path to .json/.yaml")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write Markdown to this file instead of stdout",
    )
    parser.add_argument(
        "--no-runtime-refs",
        dest="runtime_refs",
        action="store_false",
        default=config.RUNTIME_REFS,
        help="Keep inline objects inline instead of giving them their own linked table",
    )
    parser.add_argument(
        "--lenient",
        dest="strict",
        action="store_false",
        default=config.STRICT,
        help="Report broken schemas inline instead of aborting",
    )
    parser.add_argument(
        "--validate-samples",
        action="store_true",
        default=config.VALIDATE_SAMPLES,
        help="Validate generated samples against their schema",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_root(logging.DEBUG if args.debug else logging.WARNING)

    try:
        document = load_openapi(args.source)
    except (OSError, ValueError, yaml.YAMLError, httpx.HTTPError) as exc:
        logger.error("Unable to load %s: %s", args.source, exc)
        return 1

    try:
        markdown = render_api(
            document,
            args.source,
            runtime_refs=args.runtime_refs,
            strict=args.strict,
            validate_samples=args.validate_samples,
        )
    except SchemaError as exc:
        logger.error("[%s] %s", exc.code.value, exc)
        return 1

    if not markdown.endswith("\n"):
        markdown += "\n"
    if args.output is not None:
        args.output.write_text(markdown, encoding="utf-8")
        logger.info("Wrote %s", args.output)
    else:
        sys.stdout.write(markdown)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
