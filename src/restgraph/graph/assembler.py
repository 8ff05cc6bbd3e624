from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import structlog
from graphql import GraphQLField, GraphQLObjectType, GraphQLSchema, specified_scalar_types

from restgraph.domain.models import EndpointSet, graphql_name
from restgraph.errors import ConstructionError
from restgraph.graph.fields import CallBackend, build_fields
from restgraph.graph.type_cache import TypeCache
from restgraph.graph.type_mapper import JSONScalar

logger = structlog.get_logger(__name__)

NAMESPACE_PLACEHOLDER = "namespace"


@dataclass(frozen=True)
class AssembledFields:
    query: dict[str, GraphQLField]
    mutation: dict[str, GraphQLField]


def assemble(
    endpoints: EndpointSet,
    call_backend: CallBackend,
    cache: Optional[TypeCache] = None,
) -> AssembledFields:
    """
    Partition endpoints into query and mutation fields.

    Raises ConstructionError when no query field remains: GraphQL requires a
    non-empty Query root.
    """
    if cache is None:
        cache = TypeCache()

    query = build_fields(endpoints, False, cache, call_backend)
    if not query:
        where = f" in namespace '{cache.namespace}'" if cache.namespace else ""
        raise ConstructionError(f"Did not find any query (GET) endpoints{where}")

    return AssembledFields(
        query=query,
        mutation=build_fields(endpoints, True, cache, call_backend),
    )


def _root_schema(query: dict[str, GraphQLField], mutation: dict[str, GraphQLField]) -> GraphQLSchema:
    return GraphQLSchema(
        query=GraphQLObjectType("Query", fields=query),
        mutation=GraphQLObjectType("Mutation", fields=mutation) if mutation else None,
    )


def schema_from_endpoints(endpoints: EndpointSet, call_backend: CallBackend) -> GraphQLSchema:
    cache = TypeCache()
    fields = assemble(endpoints, call_backend, cache)
    schema = _root_schema(fields.query, fields.mutation)
    logger.info(
        "schema_assembled",
        query_fields=len(fields.query),
        mutation_fields=len(fields.mutation),
        named_types=len(cache),
    )
    return schema


def _reserved_type_names() -> dict[str, str]:
    owners = {"Query": "the query root", "Mutation": "the mutation root", JSONScalar.name: "the JSON scalar"}
    for scalar in specified_scalar_types.values():
        owners[scalar.name] = "a built-in scalar"
    return owners


def _namespace_resolver(_source: Any, _info: Any) -> str:
    # non-null placeholder so the engine descends into the namespace's fields
    return NAMESPACE_PLACEHOLDER


def join_schemas(
    namespaces: Mapping[str, EndpointSet],
    call_backend: CallBackend,
) -> GraphQLSchema:
    """
    Merge independently assembled endpoint sets under one root.

    Each namespace is built with its own TypeCache tagged with the namespace,
    then exposed as a single field `<namespace>` on Query (and on Mutation when
    it has mutation endpoints).
    """
    if not namespaces:
        raise ConstructionError("No namespaces to join")

    query: dict[str, GraphQLField] = {}
    mutation: dict[str, GraphQLField] = {}
    # type name -> what owns it; every namespace type must be unique schema-wide
    owners = _reserved_type_names()

    for namespace in sorted(namespaces):
        name = graphql_name(namespace)
        if name in query:
            raise ConstructionError(f"Namespaces collide on field name '{name}'")

        cache = TypeCache(namespace=namespace)
        fields = assemble(namespaces[namespace], call_backend, cache)

        type_names = [name]
        if fields.mutation:
            type_names.append(f"{name}_mutation")
        type_names.extend(sorted(cache.type_names()))
        for type_name in type_names:
            if type_name in owners:
                raise ConstructionError(
                    f"Namespace '{namespace}' type '{type_name}' collides with {owners[type_name]}"
                )
            owners[type_name] = f"namespace '{namespace}'"

        query[name] = GraphQLField(
            GraphQLObjectType(name, fields=fields.query),
            resolve=_namespace_resolver,
        )
        if fields.mutation:
            mutation[name] = GraphQLField(
                GraphQLObjectType(f"{name}_mutation", fields=fields.mutation),
                resolve=_namespace_resolver,
            )
        logger.info(
            "namespace_joined",
            namespace=namespace,
            query_fields=len(fields.query),
            mutation_fields=len(fields.mutation),
            named_types=len(cache),
        )

    return _root_schema(query, mutation)
