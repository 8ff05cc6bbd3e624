from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Optional
from urllib.parse import quote

from pydantic import BaseModel, Field

from restgraph.schema.nodes import ObjectNode, SchemaNode

HttpMethod = Literal["get", "put", "post", "delete", "options", "head", "patch"]
ParamLocation = Literal["path", "query", "header", "body", "formData", "cookie"]

_INVALID_NAME_CHARS = re.compile(r"[^_0-9A-Za-z]")


def graphql_name(text: str) -> str:
    # GraphQL names: [_A-Za-z][_0-9A-Za-z]*
    name = _INVALID_NAME_CHARS.sub("_", text or "")
    if not name or name[0].isdigit():
        name = "_" + name
    return name


def _header_text(value: Any) -> str:
    # booleans go out the way JSON writes them
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class RequestOptions(BaseModel):
    """Transport instructions for one backend call, derived from field arguments."""

    method: HttpMethod
    base_url: str = ""
    path: str
    query: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    body_type: Literal["json", "form"] = "json"

    @property
    def url(self) -> str:
        return self.base_url.rstrip("/") + self.path


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    location: ParamLocation
    schema: SchemaNode
    required: bool = False
    description: str = ""

    @property
    def arg_name(self) -> str:
        return graphql_name(self.name)

    @property
    def is_body(self) -> bool:
        return self.location == "body"


@dataclass(frozen=True)
class Endpoint:
    """
    One callable backend operation.

    `path` is a template with `{param}` placeholders; `build_request` fills it
    from resolved field arguments (keyed by argument name).
    """

    operation_id: str
    method: HttpMethod
    path: str
    mutation: bool = False
    description: str = ""
    response: Optional[SchemaNode] = None
    parameters: tuple[ParameterSpec, ...] = ()
    base_url: str = ""

    @property
    def response_schema(self) -> SchemaNode:
        return self.response if self.response is not None else ObjectNode()

    def build_request(self, args: Mapping[str, Any]) -> RequestOptions:
        path = self.path
        query: dict[str, Any] = {}
        headers: dict[str, str] = {}
        form: dict[str, Any] = {}
        body: Any = None

        for p in self.parameters:
            value = args.get(p.arg_name)
            if value is None:
                continue
            if p.location == "path":
                path = path.replace("{" + p.name + "}", quote(str(value), safe=""))
            elif p.location == "query":
                query[p.name] = value
            elif p.location == "header":
                headers[p.name] = _header_text(value)
            elif p.location == "cookie":
                cookie = f"{p.name}={_header_text(value)}"
                headers["Cookie"] = f"{headers['Cookie']}; {cookie}" if "Cookie" in headers else cookie
            elif p.location == "formData":
                form[p.name] = value
            else:
                body = value

        if form:
            return RequestOptions(
                method=self.method,
                base_url=self.base_url,
                path=path,
                query=query,
                headers=headers,
                body=form,
                body_type="form",
            )
        return RequestOptions(
            method=self.method,
            base_url=self.base_url,
            path=path,
            query=query,
            headers=headers,
            body=body,
        )


# operation id -> Endpoint; iterated in sorted key order when building fields
EndpointSet = Mapping[str, Endpoint]
