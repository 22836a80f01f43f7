from __future__ import annotations

import json

from schemadoc.cli import build_parser, main


def _write(tmp_path, document) -> str:
    path = tmp_path / "openapi.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return str(path)


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["openapi.yaml"])

    assert args.source == "openapi.yaml"
    assert args.output is None
    assert args.runtime_refs is True
    assert args.strict is True
    assert args.validate_samples is False


def test_main_writes_output_file(tmp_path, petstore) -> None:
    source = _write(tmp_path, petstore)
    output = tmp_path / "api.md"

    assert main([source, "-o", str(output)]) == 0
    text = output.read_text(encoding="utf-8")
    assert text.startswith("# Petstore API reference\n")
    assert text.endswith("\n")


def test_main_prints_to_stdout(tmp_path, petstore, capsys) -> None:
    source = _write(tmp_path, petstore)

    assert main([source, "--no-runtime-refs"]) == 0
    out = capsys.readouterr().out
    assert "| owner | object |  |" in out


def test_main_missing_file(tmp_path) -> None:
    assert main([str(tmp_path / "missing.json")]) == 1


def test_main_strict_and_lenient(tmp_path) -> None:
    document = {
        "openapi": "3.0.2",
        "info": {"title": "Broken", "version": "1"},
        "paths": {
            "/x": {
                "get": {
                    "responses": {
                        "200": {
                            "description": "ok",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/Gone"}
                                }
                            },
                        }
                    }
                }
            }
        },
    }
    source = _write(tmp_path, document)

    assert main([source, "-o", str(tmp_path / "strict.md")]) == 1
    assert main([source, "--lenient", "-o", str(tmp_path / "lenient.md")]) == 0
    assert "DANGLING_REFERENCE" in (tmp_path / "lenient.md").read_text(encoding="utf-8")
