from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Iterable, Optional

import structlog

from restgraph.domain.models import Endpoint, ParameterSpec
from restgraph.errors import LoaderError
from restgraph.schema.nodes import parse_schema

logger = structlog.get_logger(__name__)

_HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")
_PARAM_LOCATIONS = ("path", "query", "header", "body", "formData", "cookie")
_SAFE = re.compile(r"[^a-zA-Z0-9_]+")
# parameter keys that describe the parameter rather than its value's schema
_PARAM_META_KEYS = {"name", "in", "required", "description", "allowEmptyValue", "collectionFormat"}


def load_document(path: Path) -> dict[str, Any]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise LoaderError(f"Cannot read API description {path}: {e}") from e
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise LoaderError(f"API description {path} is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise LoaderError(f"API description {path} must be a JSON object")
    logger.info("document_loaded", path=str(path), paths=len(doc.get("paths") or {}))
    return doc


# ----------------------------
# Titles
# ----------------------------


def _named_definitions(document: dict[str, Any]) -> dict[str, Any]:
    if "definitions" in document:
        return document.get("definitions") or {}
    return (document.get("components") or {}).get("schemas") or {}


def assign_titles(document: dict[str, Any]) -> dict[str, Any]:
    """
    Give every named definition a title (its key) unless it has one.

    Run before dereferencing so every place a definition is used carries the
    same title, which is what the type mapper deduplicates on.
    """
    for name, schema in _named_definitions(document).items():
        if isinstance(schema, dict) and not schema.get("title"):
            schema["title"] = name
    return document


# ----------------------------
# $ref resolution
# ----------------------------


def _decode_pointer_token(token: str) -> str:
    # RFC 6901
    return token.replace("~1", "/").replace("~0", "~")


def _pointer_get(document: Any, pointer: str) -> Any:
    if pointer == "":
        return document
    if not pointer.startswith("/"):
        raise LoaderError(f"Unsupported JSON pointer '#{pointer}'")
    cur = document
    for raw_token in pointer[1:].split("/"):
        token = _decode_pointer_token(raw_token)
        if isinstance(cur, list):
            try:
                cur = cur[int(token)]
            except (ValueError, IndexError) as e:
                raise LoaderError(f"Unresolvable reference '#{pointer}'") from e
        elif isinstance(cur, dict) and token in cur:
            cur = cur[token]
        else:
            raise LoaderError(f"Unresolvable reference '#{pointer}'")
    return cur


def dereference(document: dict[str, Any]) -> dict[str, Any]:
    """
    Replace local `$ref`s with the objects they point at.

    Every use of one reference shares a single resolved object. A reference
    that is reached again while its target is still being resolved gets that
    same object, so recursive schemas become cyclic dicts.
    """
    resolved: dict[str, Any] = {}
    in_progress: set[str] = set()

    def walk(node: Any) -> Any:
        if isinstance(node, dict):
            ref = node.get("$ref")
            if isinstance(ref, str):
                return resolve(ref)
            return {k: walk(v) for k, v in node.items()}
        if isinstance(node, list):
            return [walk(x) for x in node]
        return node

    def resolve(ref: str) -> Any:
        if not ref.startswith("#"):
            raise LoaderError(f"Only local references are supported, got '{ref}'")
        if ref in resolved:
            return resolved[ref]
        if ref in in_progress:
            raise LoaderError(f"Reference '{ref}' only refers to itself")

        target = _pointer_get(document, ref[1:])
        if isinstance(target, dict) and not isinstance(target.get("$ref"), str):
            out: dict[str, Any] = {}
            resolved[ref] = out
            for k, v in target.items():
                out[k] = walk(v)
            return out

        in_progress.add(ref)
        value = walk(target)
        in_progress.discard(ref)
        resolved[ref] = value
        return value

    return walk(document)


# ----------------------------
# Endpoints
# ----------------------------


def _fallback_operation_id(method: str, path: str) -> str:
    # GET /users/{id} -> get_users_by_id
    tokens = []
    for seg in path.strip("/").split("/"):
        if not seg:
            continue
        if seg.startswith("{") and seg.endswith("}"):
            tokens.append(f"by_{seg[1:-1]}")
        else:
            tokens.append(seg)
    base = "_".join(tokens) if tokens else "root"
    base = _SAFE.sub("_", base).strip("_")
    return f"{method.lower()}_{base}"


def _base_url(document: dict[str, Any]) -> str:
    if "swagger" in document:
        host = document.get("host")
        base_path = document.get("basePath") or ""
        if not host:
            return base_path
        schemes = document.get("schemes") or ["http"]
        return f"{schemes[0]}://{host}{base_path}"
    servers = document.get("servers") or []
    if servers and isinstance(servers[0], dict):
        return servers[0].get("url") or ""
    return ""


def _parameter_schema(param: dict[str, Any]) -> Any:
    if isinstance(param.get("schema"), dict):
        return param["schema"]
    # Swagger 2 non-body parameters describe their type inline
    return {k: v for k, v in param.items() if k not in _PARAM_META_KEYS}


def _parameter(param: dict[str, Any]) -> ParameterSpec:
    location = param.get("in")
    name = param.get("name")
    if location not in _PARAM_LOCATIONS or not name:
        raise LoaderError(f"Invalid parameter definition: {param!r}")
    return ParameterSpec(
        name=name,
        location=location,
        schema=parse_schema(_parameter_schema(param)),
        required=bool(param.get("required")) or location == "path",
        description=param.get("description") or "",
    )


def _merge_parameters(path_level: Iterable[Any], op_level: Iterable[Any]) -> list[dict[str, Any]]:
    # operation-level parameters override path-level ones with the same name + location
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for p in list(path_level) + list(op_level):
        if isinstance(p, dict):
            merged[(str(p.get("name")), str(p.get("in")))] = p
    return list(merged.values())


def _first_content_schema(content: Any) -> Optional[Any]:
    if not isinstance(content, dict) or not content:
        return None
    media = content.get("application/json")
    if media is None:
        media = next(iter(content.values()))
    if isinstance(media, dict):
        return media.get("schema")
    return None


def _response_schema(operation: dict[str, Any]) -> Optional[Any]:
    responses = operation.get("responses") or {}
    codes = sorted(str(c) for c in responses if str(c).startswith("2"))
    if not codes and "default" in responses:
        codes = ["default"]
    for code in codes:
        response = responses.get(code)
        if response is None:
            response = responses.get(int(code)) if code.isdigit() else None
        if not isinstance(response, dict):
            continue
        if "schema" in response:
            return response["schema"]
        schema = _first_content_schema(response.get("content"))
        if schema is not None:
            return schema
    return None


def _request_body_parameter(operation: dict[str, Any]) -> Optional[ParameterSpec]:
    body = operation.get("requestBody")
    if not isinstance(body, dict):
        return None
    schema = _first_content_schema(body.get("content"))
    if schema is None:
        return None
    return ParameterSpec(
        name="body",
        location="body",
        schema=parse_schema(schema),
        required=bool(body.get("required")),
        description=body.get("description") or "",
    )


def extract_endpoints(
    document: dict[str, Any],
    base_url: Optional[str] = None,
) -> dict[str, Endpoint]:
    """
    Collect endpoints from a dereferenced, titled Swagger 2 / OpenAPI 3 document.

    Non-GET operations are mutations. Operation ids must be unique.
    """
    if base_url is None:
        base_url = _base_url(document)

    endpoints: dict[str, Endpoint] = {}
    for path, path_item in (document.get("paths") or {}).items():
        if not isinstance(path_item, dict):
            continue
        path_params = path_item.get("parameters") or []

        for method in _HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue

            operation_id = operation.get("operationId") or _fallback_operation_id(method, path)
            if operation_id in endpoints:
                raise LoaderError(f"Duplicate operationId '{operation_id}' ({method.upper()} {path})")

            parameters = [
                _parameter(p) for p in _merge_parameters(path_params, operation.get("parameters") or [])
            ]
            body_param = _request_body_parameter(operation)
            if body_param is not None:
                parameters.append(body_param)

            raw_response = _response_schema(operation)
            endpoints[operation_id] = Endpoint(
                operation_id=operation_id,
                method=method,
                path=path,
                mutation=method != "get",
                description=operation.get("description") or operation.get("summary") or "",
                response=parse_schema(raw_response) if raw_response is not None else None,
                parameters=tuple(parameters),
                base_url=base_url,
            )
            logger.debug(
                "endpoint_extracted",
                operation_id=operation_id,
                method=method.upper(),
                path=path,
                parameters=len(parameters),
            )

    return endpoints
