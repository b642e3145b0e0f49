"""Schema Generators

Publish DTO field metadata as OpenAPI components and JSON Schema documents.
Each DTO's schema is assembled from its descriptors' metadata fragments, so
what is documented is exactly what is validated.

Features:
- OpenAPI 3.1 components with nested translation types hoisted
- JSON Schema draft 2020-12
- Installation into a FastAPI application's OpenAPI document
"""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from fastapi import FastAPI

from .schema import Dto

OPENAPI_REF_TEMPLATE = "#/components/schemas/{name}"


class SchemaGenerator(ABC):
    """Base class for schema generators."""

    @abstractmethod
    def generate(self, schema: type[Dto]) -> str:
        """Generate schema representation."""

    def generate_all(self, *schemas: type[Dto], separator: str = "\n\n") -> str:
        return separator.join(self.generate(s) for s in schemas)


def _strip_examples(node: Any) -> Any:
    if isinstance(node, dict):
        return {k: _strip_examples(v) for k, v in node.items() if k != "example"}
    if isinstance(node, list):
        return [_strip_examples(v) for v in node]
    return node


class OpenAPIGenerator(SchemaGenerator):
    """Generate OpenAPI 3.1 compatible schemas."""

    def __init__(self, include_examples: bool = True): self.include_examples = include_examples

    def _schema(self, schema: type[Dto]) -> dict[str, Any]:
        openapi_schema = schema.json_schema(ref_template=OPENAPI_REF_TEMPLATE)
        if schema.__doc__: openapi_schema["description"] = schema.__doc__.strip()
        return openapi_schema if self.include_examples else _strip_examples(openapi_schema)

    def generate(self, schema: type[Dto]) -> str:
        """Generate OpenAPI schema JSON."""
        return json.dumps(self._schema(schema), indent=2)

    def generate_components(self, *schemas: type[Dto]) -> dict[str, Any]:
        """Generate OpenAPI components/schemas section."""
        components: dict[str, Any] = {"schemas": {}}

        for schema in schemas:
            schema_def = self._schema(schema)

            # Extract definitions
            if "$defs" in schema_def:
                for name, definition in schema_def["$defs"].items():
                    if name not in components["schemas"]:
                        components["schemas"][name] = definition
                del schema_def["$defs"]

            components["schemas"][schema.__name__] = schema_def

        return components


class JSONSchemaGenerator(SchemaGenerator):
    """Generate JSON Schema (draft 2020-12)."""

    def generate(self, schema: type[Dto]) -> str:
        """Generate JSON Schema."""
        json_schema = schema.json_schema()
        json_schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
        return json.dumps(json_schema, indent=2)


def install_openapi_components(app: FastAPI, *dtos: type[Dto], generator: OpenAPIGenerator | None = None) -> None:
    """Merge the DTOs' component schemas into the app's OpenAPI document.

    Components already published by the app under the same name are kept.
    """
    generator = generator or OpenAPIGenerator()
    base_openapi = app.openapi

    def openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        document = base_openapi()
        published = document.setdefault("components", {}).setdefault("schemas", {})
        for name, definition in generator.generate_components(*dtos)["schemas"].items():
            published.setdefault(name, definition)
        app.openapi_schema = document
        return document

    app.openapi = openapi
