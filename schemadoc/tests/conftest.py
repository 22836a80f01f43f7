"""Shared fixtures; also puts the repository root on ``sys.path``."""
from __future__ import annotations

import copy
import sys
from pathlib import Path
from typing import Any, Dict

import pytest


ROOT = Path(__file__).resolve().parents[1]
REPO_ROOT = ROOT.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from schemadoc.refs import ResolutionContext  # noqa: E402


def ref(name: str) -> Dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


PETSTORE: Dict[str, Any] = {
    "openapi": "3.0.2",
    "info": {"title": "Petstore", "version": "v1"},
    "paths": {
        "/pets": {
            "parameters": [
                {"name": "limit", "in": "query", "schema": {"type": "integer"}},
            ],
            "get": {
                "operationId": "listPets",
                "summary": "List pets",
                "parameters": [
                    {
                        "name": "limit",
                        "in": "query",
                        "required": True,
                        "description": "Page size",
                        "schema": {"type": "integer", "format": "int32"},
                    },
                ],
                "responses": {
                    "200": {
                        "description": "A page of pets",
                        "content": {
                            "application/json": {
                                "schema": {"type": "array", "items": ref("Pet")},
                            }
                        },
                    },
                },
            },
            "post": {
                "operationId": "createPet",
                "requestBody": {
                    "description": "Pet to add",
                    "content": {"application/json": {"schema": ref("NewPet")}},
                },
                "responses": {
                    "201": {
                        "description": "Created",
                        "content": {"application/json": {"schema": ref("Pet")}},
                    },
                    "default": {"$ref": "#/components/responses/Error"},
                },
            },
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "description": "A pet in the store",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "string", "format": "uuid"},
                    "name": {"type": "string", "example": "Rex"},
                    "status": ref("Status"),
                    "owner": {
                        "type": "object",
                        "properties": {
                            "email": {"type": "string"},
                            "since": {"type": "string", "format": "date-time"},
                        },
                    },
                    "tags": {"type": "array", "items": ref("Tag")},
                },
            },
            "NewPet": {
                "allOf": [
                    ref("Tag"),
                    {
                        "required": ["nickname"],
                        "properties": {"nickname": {"type": "string"}},
                    },
                ],
            },
            "Tag": {
                "type": "object",
                "required": ["label"],
                "properties": {
                    "label": {"type": "string"},
                    "weight": {"type": "number", "default": 1.5},
                },
            },
            "Status": {"type": "string", "enum": ["available", "sold"]},
            "Error": {
                "type": "object",
                "properties": {"code": {"type": "integer"}, "message": {"type": "string"}},
            },
            "Node": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "child": ref("Node"),
                    "children": {"type": "array", "items": ref("Node")},
                },
            },
        },
        "responses": {
            "Error": {
                "description": "Unexpected error",
                "content": {"application/json": {"schema": ref("Error")}},
            },
        },
    },
}


@pytest.fixture
def petstore() -> Dict[str, Any]:
    return copy.deepcopy(PETSTORE)


@pytest.fixture
def context(petstore: Dict[str, Any]) -> ResolutionContext:
    return ResolutionContext(petstore, runtime_refs=True)
