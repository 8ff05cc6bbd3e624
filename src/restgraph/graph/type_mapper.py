"""
JSON-Schema node -> GraphQL type.

Named types (objects, input objects, enums) are memoized in the TypeCache by
(namespace, title, role). Object types are registered before their properties
are mapped and their field map is filled afterwards, so a property that leads
back to an object currently being built resolves to the same type object.
"""

from __future__ import annotations

from typing import Any, Union

import structlog
from graphql import (
    GraphQLBoolean,
    GraphQLEnumType,
    GraphQLEnumValue,
    GraphQLField,
    GraphQLFloat,
    GraphQLInputField,
    GraphQLInputObjectType,
    GraphQLInputType,
    GraphQLInt,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLOutputType,
    GraphQLScalarType,
    GraphQLString,
)
from graphql.utilities import value_from_ast_untyped

from restgraph.domain.models import graphql_name
from restgraph.graph.type_cache import TypeCache
from restgraph.schema.nodes import AnyNode, ArrayNode, EnumNode, ObjectNode, ScalarNode, SchemaNode

logger = structlog.get_logger(__name__)

GraphQLType = Union[GraphQLInputType, GraphQLOutputType]


def _identity(value: Any) -> Any:
    return value


JSONScalar = GraphQLScalarType(
    name="JSON",
    description="Arbitrary JSON value without a declared shape.",
    serialize=_identity,
    parse_value=_identity,
    parse_literal=value_from_ast_untyped,
)

_SCALARS = {
    "string": GraphQLString,
    "integer": GraphQLInt,
    "number": GraphQLFloat,
    "boolean": GraphQLBoolean,
}

_RESERVED_ENUM_NAMES = {"true", "false", "null"}


def enum_member_names(values: tuple[Any, ...]) -> dict[str, Any]:
    """
    Sanitized, unique member name -> original literal.

    Repeated literals collapse into one member; distinct literals that sanitize
    to the same name get numeric suffixes.
    """
    members: dict[str, Any] = {}
    seen_values: list[Any] = []
    for value in values:
        if value in seen_values:
            continue
        seen_values.append(value)

        base = graphql_name(str(value))
        if base in _RESERVED_ENUM_NAMES:
            base = f"{base}_"
        name = base
        n = 1
        while name in members:
            n += 1
            name = f"{base}_{n}"
        members[name] = value
    return members


def map_type(
    node: SchemaNode,
    path_hint: str,
    *,
    is_input: bool,
    cache: TypeCache,
    required: bool = False,
) -> GraphQLType:
    """
    Map one schema node to a GraphQL type.

    `path_hint` names the type when the node carries no title. `required`
    wraps the result in GraphQLNonNull; nested property nullability comes from
    the enclosing object's `required` list. Never fails: shapes GraphQL cannot
    express degrade to the JSON scalar.
    """
    gql_type = _map_nullable(node, path_hint, is_input=is_input, cache=cache)
    if required:
        return GraphQLNonNull(gql_type)
    return gql_type


def _map_nullable(node: SchemaNode, path_hint: str, *, is_input: bool, cache: TypeCache) -> GraphQLType:
    if isinstance(node, ScalarNode):
        return _SCALARS[node.kind]

    if isinstance(node, EnumNode):
        return _map_enum(node, path_hint, cache)

    if isinstance(node, ArrayNode):
        if node.items is None:
            return GraphQLList(JSONScalar)
        item_type = _map_nullable(node.items, f"{path_hint}_items", is_input=is_input, cache=cache)
        return GraphQLList(item_type)

    if isinstance(node, ObjectNode):
        return _map_object(node, path_hint, is_input=is_input, cache=cache)

    if isinstance(node, AnyNode):
        logger.debug("schema_shape_degraded", path=path_hint, reason=node.reason)
        return JSONScalar

    raise TypeError(f"Unknown schema node: {node!r}")


def _map_enum(node: EnumNode, path_hint: str, cache: TypeCache) -> GraphQLType:
    if not node.is_textual:
        if all(isinstance(v, int) for v in node.values):
            return GraphQLInt
        if all(isinstance(v, (int, float)) for v in node.values):
            return GraphQLFloat
        # text mixed with numbers: no single scalar holds both
        logger.debug("schema_shape_degraded", path=path_hint, reason="mixed-enum")
        return JSONScalar

    title = cache.title_for(node, path_hint)
    key = cache.key(title, "enum")
    existing = cache.get(key)
    if existing is not None:
        return existing

    members = enum_member_names(node.values)
    enum_type = GraphQLEnumType(
        name=cache.type_name(title, "enum"),
        values={name: GraphQLEnumValue(value=value) for name, value in members.items()},
        description=node.description or None,
    )
    return cache.register(key, enum_type)


def _map_object(node: ObjectNode, path_hint: str, *, is_input: bool, cache: TypeCache) -> GraphQLType:
    if not node.properties:
        # GraphQL forbids object and input types without fields
        logger.debug("schema_shape_degraded", path=path_hint, reason="empty-object")
        return JSONScalar

    title = cache.title_for(node, path_hint)
    role = "input" if is_input else "output"
    key = cache.key(title, role)
    existing = cache.get(key)
    if existing is not None:
        return existing

    type_name = cache.type_name(title, role)
    fields: dict[str, Any] = {}
    gql_type: Union[GraphQLObjectType, GraphQLInputObjectType]
    if is_input:
        gql_type = GraphQLInputObjectType(
            name=type_name, fields=lambda: fields, description=node.description or None
        )
    else:
        gql_type = GraphQLObjectType(
            name=type_name, fields=lambda: fields, description=node.description or None
        )
    cache.register(key, gql_type)

    for prop_name, prop_node in node.properties.items():
        field_name = graphql_name(prop_name)
        prop_type = map_type(
            prop_node,
            f"{title}_{field_name}",
            is_input=is_input,
            cache=cache,
            required=prop_name in node.required,
        )
        description = getattr(prop_node, "description", "") or None
        if is_input:
            fields[field_name] = GraphQLInputField(prop_type, description=description, out_name=prop_name)
        else:
            fields[field_name] = GraphQLField(
                prop_type, description=description, resolve=_property_resolver(prop_name)
            )
    return gql_type


def _property_resolver(prop_name: str):
    def resolve(source: Any, _info: Any) -> Any:
        if isinstance(source, dict):
            return source.get(prop_name)
        return getattr(source, prop_name, None)

    return resolve
