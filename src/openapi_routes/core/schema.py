"""Structural validation of Swagger 2.0 API documents.

:data:`SWAGGER_20` is the complete Swagger 2.0 JSON Schema (draft 4),
covering the envelope, path items, operations, every parameter location
with its primitive type constraints, responses, headers, schema objects in
``definitions``, security schemes and tags.

The JSON Schema keyword constraints the official schema borrows from the
draft 4 meta-schema (``minLength``, ``enum``, ``type`` ...) are declared
locally, so validation never needs to resolve a remote reference.

Vendor extensions (``x-...``) are accepted wherever Swagger allows them,
and their values are not inspected, so middleware callables in an
original document do not fail validation.
"""

from __future__ import annotations

import logging
from typing import Any

import jsonschema

logger = logging.getLogger(__name__)

_EXTENSIONS = {"^x-": {"$ref": "#/definitions/vendorExtension"}}

_PRIMITIVE_TYPES = ["string", "number", "integer", "boolean", "array"]
_SIMPLE_TYPES = ["array", "boolean", "integer", "null", "number", "object", "string"]

_COUNT = {"type": "integer", "minimum": 0}
_STRING_ARRAY = {"type": "array", "items": {"type": "string"}, "minItems": 1, "uniqueItems": True}

# Value constraints shared by parameters, headers, items and schema objects.
_VALUE_CONSTRAINTS: dict[str, Any] = {
    "default": {},
    "maximum": {"type": "number"},
    "exclusiveMaximum": {"type": "boolean"},
    "minimum": {"type": "number"},
    "exclusiveMinimum": {"type": "boolean"},
    "maxLength": _COUNT,
    "minLength": _COUNT,
    "pattern": {"type": "string"},
    "maxItems": _COUNT,
    "minItems": _COUNT,
    "uniqueItems": {"type": "boolean"},
    "enum": {"type": "array", "minItems": 1, "uniqueItems": True},
    "multipleOf": {"type": "number", "minimum": 0, "exclusiveMinimum": True},
}


def _strict_object(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    """An object allowing only *properties* plus vendor extensions."""
    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "patternProperties": _EXTENSIONS,
        "additionalProperties": False,
    }
    if required:
        schema["required"] = required
    return schema


def _primitive(types: list[str], collection_format: str = "collectionFormat") -> dict[str, Any]:
    """Properties of a primitive (non-body) value description."""
    return {
        "type": {"type": "string", "enum": types},
        "format": {"type": "string"},
        "items": {"$ref": "#/definitions/primitivesItems"},
        "collectionFormat": {"$ref": f"#/definitions/{collection_format}"},
        **_VALUE_CONSTRAINTS,
    }


def _non_body_parameter(location: str, types: list[str] = _PRIMITIVE_TYPES) -> dict[str, Any]:
    properties: dict[str, Any] = {
        "name": {"type": "string"},
        "in": {"type": "string", "enum": [location]},
        "description": {"type": "string"},
        "required": {"type": "boolean"},
    }
    if location in ("query", "formData"):
        properties["allowEmptyValue"] = {"type": "boolean"}
        properties.update(_primitive(types, "collectionFormatWithMulti"))
    else:
        properties.update(_primitive(types))

    if location == "path":
        properties["required"] = {"type": "boolean", "enum": [True]}
        return _strict_object(properties, required=["required"])
    return _strict_object(properties)


def _security_scheme(scheme_type: str, required: list[str], **properties: Any) -> dict[str, Any]:
    return _strict_object(
        {
            "type": {"type": "string", "enum": [scheme_type]},
            "description": {"type": "string"},
            **properties,
        },
        required=["type", *required],
    )


def _oauth2_flow(flow: str, *urls: str) -> dict[str, Any]:
    return _security_scheme(
        "oauth2",
        ["flow", *urls],
        flow={"type": "string", "enum": [flow]},
        scopes={"$ref": "#/definitions/oauth2Scopes"},
        **{url: {"type": "string", "format": "uri"} for url in urls},
    )


_OPERATION = _strict_object(
    {
        "tags": {"type": "array", "items": {"type": "string"}, "uniqueItems": True},
        "summary": {"type": "string"},
        "description": {"type": "string"},
        "externalDocs": {"$ref": "#/definitions/externalDocs"},
        "operationId": {"type": "string"},
        "produces": {"$ref": "#/definitions/mediaTypeList"},
        "consumes": {"$ref": "#/definitions/mediaTypeList"},
        "parameters": {"$ref": "#/definitions/parametersList"},
        "responses": {"$ref": "#/definitions/responses"},
        "schemes": {"$ref": "#/definitions/schemesList"},
        "deprecated": {"type": "boolean"},
        "security": {"$ref": "#/definitions/security"},
    },
    required=["responses"],
)

_SCHEMA_OBJECT = _strict_object(
    {
        "$ref": {"type": "string"},
        "format": {"type": "string"},
        "title": {"type": "string"},
        "description": {"type": "string"},
        **_VALUE_CONSTRAINTS,
        "maxProperties": _COUNT,
        "minProperties": _COUNT,
        "required": _STRING_ARRAY,
        "additionalProperties": {"anyOf": [{"$ref": "#/definitions/schema"}, {"type": "boolean"}]},
        "type": {
            "anyOf": [
                {"enum": _SIMPLE_TYPES},
                {"type": "array", "items": {"enum": _SIMPLE_TYPES}, "minItems": 1, "uniqueItems": True},
            ]
        },
        "items": {
            "anyOf": [
                {"$ref": "#/definitions/schema"},
                {"type": "array", "minItems": 1, "items": {"$ref": "#/definitions/schema"}},
            ]
        },
        "allOf": {"type": "array", "minItems": 1, "items": {"$ref": "#/definitions/schema"}},
        "properties": {"type": "object", "additionalProperties": {"$ref": "#/definitions/schema"}},
        "discriminator": {"type": "string"},
        "readOnly": {"type": "boolean"},
        "xml": {"$ref": "#/definitions/xml"},
        "externalDocs": {"$ref": "#/definitions/externalDocs"},
        "example": {},
    }
)

SWAGGER_20: dict[str, Any] = {
    **_strict_object(
        {
            "swagger": {"type": "string", "enum": ["2.0"]},
            "info": {"$ref": "#/definitions/info"},
            "host": {"type": "string", "pattern": "^[^{}/ :\\\\]+(?::\\d+)?$"},
            "basePath": {"type": "string", "pattern": "^/"},
            "schemes": {"$ref": "#/definitions/schemesList"},
            "consumes": {"$ref": "#/definitions/mediaTypeList"},
            "produces": {"$ref": "#/definitions/mediaTypeList"},
            "paths": {"$ref": "#/definitions/paths"},
            "definitions": {"type": "object", "additionalProperties": {"$ref": "#/definitions/schema"}},
            "parameters": {"type": "object", "additionalProperties": {"$ref": "#/definitions/parameter"}},
            "responses": {"type": "object", "additionalProperties": {"$ref": "#/definitions/response"}},
            "security": {"$ref": "#/definitions/security"},
            "securityDefinitions": {"$ref": "#/definitions/securityDefinitions"},
            "tags": {"type": "array", "items": {"$ref": "#/definitions/tag"}, "uniqueItems": True},
            "externalDocs": {"$ref": "#/definitions/externalDocs"},
        },
        required=["swagger", "info", "paths"],
    ),
    "definitions": {
        "vendorExtension": {},
        "info": _strict_object(
            {
                "title": {"type": "string"},
                "version": {"type": "string"},
                "description": {"type": "string"},
                "termsOfService": {"type": "string"},
                "contact": {"$ref": "#/definitions/contact"},
                "license": {"$ref": "#/definitions/license"},
            },
            required=["version", "title"],
        ),
        "contact": _strict_object(
            {
                "name": {"type": "string"},
                "url": {"type": "string", "format": "uri"},
                "email": {"type": "string", "format": "email"},
            }
        ),
        "license": _strict_object(
            {"name": {"type": "string"}, "url": {"type": "string", "format": "uri"}},
            required=["name"],
        ),
        "externalDocs": _strict_object(
            {"description": {"type": "string"}, "url": {"type": "string", "format": "uri"}},
            required=["url"],
        ),
        "paths": {
            "type": "object",
            "patternProperties": {**_EXTENSIONS, "^/": {"$ref": "#/definitions/pathItem"}},
            "additionalProperties": False,
        },
        "pathItem": _strict_object(
            {
                "$ref": {"type": "string"},
                "get": {"$ref": "#/definitions/operation"},
                "put": {"$ref": "#/definitions/operation"},
                "post": {"$ref": "#/definitions/operation"},
                "delete": {"$ref": "#/definitions/operation"},
                "options": {"$ref": "#/definitions/operation"},
                "head": {"$ref": "#/definitions/operation"},
                "patch": {"$ref": "#/definitions/operation"},
                "parameters": {"$ref": "#/definitions/parametersList"},
            }
        ),
        "operation": _OPERATION,
        "parametersList": {
            "type": "array",
            "items": {"oneOf": [{"$ref": "#/definitions/parameter"}, {"$ref": "#/definitions/jsonReference"}]},
            "uniqueItems": True,
        },
        "parameter": {
            "oneOf": [{"$ref": "#/definitions/bodyParameter"}, {"$ref": "#/definitions/nonBodyParameter"}]
        },
        "bodyParameter": _strict_object(
            {
                "name": {"type": "string"},
                "in": {"type": "string", "enum": ["body"]},
                "description": {"type": "string"},
                "required": {"type": "boolean"},
                "schema": {"$ref": "#/definitions/schema"},
            },
            required=["name", "in", "schema"],
        ),
        "nonBodyParameter": {
            "type": "object",
            "required": ["name", "in", "type"],
            "oneOf": [
                {"$ref": "#/definitions/headerParameterSubSchema"},
                {"$ref": "#/definitions/formDataParameterSubSchema"},
                {"$ref": "#/definitions/queryParameterSubSchema"},
                {"$ref": "#/definitions/pathParameterSubSchema"},
            ],
        },
        "headerParameterSubSchema": _non_body_parameter("header"),
        "queryParameterSubSchema": _non_body_parameter("query"),
        "formDataParameterSubSchema": _non_body_parameter("formData", [*_PRIMITIVE_TYPES, "file"]),
        "pathParameterSubSchema": _non_body_parameter("path"),
        "primitivesItems": _strict_object(_primitive(_PRIMITIVE_TYPES)),
        "responses": {
            "type": "object",
            "minProperties": 1,
            "patternProperties": {
                "^([0-9]{3})$|^(default)$": {
                    "oneOf": [{"$ref": "#/definitions/response"}, {"$ref": "#/definitions/jsonReference"}]
                },
                **_EXTENSIONS,
            },
            "additionalProperties": False,
            # At least one entry must be a real response, not only extensions.
            "not": {"type": "object", "patternProperties": _EXTENSIONS, "additionalProperties": False},
        },
        "response": _strict_object(
            {
                "description": {"type": "string"},
                "schema": {"oneOf": [{"$ref": "#/definitions/schema"}, {"$ref": "#/definitions/fileSchema"}]},
                "headers": {"type": "object", "additionalProperties": {"$ref": "#/definitions/header"}},
                "examples": {"type": "object"},
            },
            required=["description"],
        ),
        "header": _strict_object(
            {**_primitive(_PRIMITIVE_TYPES), "description": {"type": "string"}},
            required=["type"],
        ),
        "schema": _SCHEMA_OBJECT,
        "fileSchema": _strict_object(
            {
                "format": {"type": "string"},
                "title": {"type": "string"},
                "description": {"type": "string"},
                "default": {},
                "required": _STRING_ARRAY,
                "type": {"type": "string", "enum": ["file"]},
                "readOnly": {"type": "boolean"},
                "externalDocs": {"$ref": "#/definitions/externalDocs"},
                "example": {},
            },
            required=["type"],
        ),
        "xml": _strict_object(
            {
                "name": {"type": "string"},
                "namespace": {"type": "string"},
                "prefix": {"type": "string"},
                "attribute": {"type": "boolean"},
                "wrapped": {"type": "boolean"},
            }
        ),
        "tag": _strict_object(
            {
                "name": {"type": "string"},
                "description": {"type": "string"},
                "externalDocs": {"$ref": "#/definitions/externalDocs"},
            },
            required=["name"],
        ),
        "security": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": {"type": "array", "items": {"type": "string"}, "uniqueItems": True},
            },
            "uniqueItems": True,
        },
        "securityDefinitions": {
            "type": "object",
            "additionalProperties": {
                "oneOf": [
                    _security_scheme("basic", []),
                    _security_scheme(
                        "apiKey",
                        ["name", "in"],
                        name={"type": "string"},
                        **{"in": {"type": "string", "enum": ["header", "query"]}},
                    ),
                    _oauth2_flow("implicit", "authorizationUrl"),
                    _oauth2_flow("password", "tokenUrl"),
                    _oauth2_flow("application", "tokenUrl"),
                    _oauth2_flow("accessCode", "authorizationUrl", "tokenUrl"),
                ]
            },
        },
        "oauth2Scopes": {"type": "object", "additionalProperties": {"type": "string"}},
        "mediaTypeList": {"type": "array", "items": {"type": "string"}, "uniqueItems": True},
        "schemesList": {
            "type": "array",
            "items": {"type": "string", "enum": ["http", "https", "ws", "wss"]},
            "uniqueItems": True,
        },
        "collectionFormat": {"type": "string", "enum": ["csv", "ssv", "tsv", "pipes"]},
        "collectionFormatWithMulti": {"type": "string", "enum": ["csv", "ssv", "tsv", "pipes", "multi"]},
        "jsonReference": {
            "type": "object",
            "required": ["$ref"],
            "properties": {"$ref": {"type": "string"}},
            "additionalProperties": False,
        },
    },
}

_validator = jsonschema.Draft4Validator(SWAGGER_20)


def validate_api_doc(api_doc: Any) -> list[dict]:
    """Validate *api_doc* against the Swagger 2.0 structure.

    Args:
        api_doc: The document to check.

    Returns:
        One dict per failure with ``path`` (JSON pointer into the document),
        ``message`` and ``validator`` keys; empty when the document is valid.
    """
    errors = []
    for error in sorted(_validator.iter_errors(api_doc), key=lambda e: [str(p) for p in e.absolute_path]):
        errors.append(
            {
                "path": "/" + "/".join(str(part) for part in error.absolute_path),
                "message": error.message,
                "validator": error.validator,
            }
        )
    return errors
