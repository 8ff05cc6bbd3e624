from __future__ import annotations

from typing import Iterable

from graphql import GraphQLArgument

from restgraph.domain.models import ParameterSpec
from restgraph.errors import DuplicateArgumentError
from restgraph.graph.type_cache import TypeCache
from restgraph.graph.type_mapper import map_type


def map_parameters(
    parameters: Iterable[ParameterSpec],
    operation_id: str,
    cache: TypeCache,
) -> dict[str, GraphQLArgument]:
    """
    Endpoint parameters -> GraphQL argument map.

    Every parameter becomes exactly one argument; an object body stays grouped
    as a single input-object argument. Two parameters that end up with the
    same argument name (e.g. `id` in both path and query) are rejected.
    """
    args: dict[str, GraphQLArgument] = {}
    for p in parameters:
        name = p.arg_name
        if name in args:
            raise DuplicateArgumentError(operation_id, name)

        arg_type = map_type(
            p.schema,
            f"{operation_id}_{name}",
            is_input=True,
            cache=cache,
            required=p.required,
        )
        args[name] = GraphQLArgument(arg_type, description=p.description or None)
    return args
