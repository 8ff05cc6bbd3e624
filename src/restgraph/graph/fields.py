from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

import structlog
from graphql import GraphQLField, GraphQLOutputType, GraphQLResolveInfo

from restgraph.domain.models import Endpoint, EndpointSet, RequestOptions, graphql_name
from restgraph.errors import ConstructionError
from restgraph.graph.coercion import coerce_response
from restgraph.graph.parameters import map_parameters
from restgraph.graph.type_cache import TypeCache
from restgraph.graph.type_mapper import map_type

logger = structlog.get_logger(__name__)

CallBackend = Callable[[Any, RequestOptions], Awaitable[Any]]


@dataclass(frozen=True)
class EndpointResolver:
    """
    Resolver for one endpoint field.

    Builds the request from the field arguments, awaits the caller-supplied
    backend function (the only suspension point) and coerces the result to
    the declared field type. Backend failures propagate unchanged.
    """

    endpoint: Endpoint
    call_backend: CallBackend

    async def resolve(
        self,
        args: Mapping[str, Any],
        context: Any,
        return_type: GraphQLOutputType,
    ) -> Any:
        request_options = self.endpoint.build_request(args)
        try:
            raw = await self.call_backend(context, request_options)
        except Exception as exc:
            logger.warning(
                "backend_call_failed",
                operation_id=self.endpoint.operation_id,
                method=request_options.method,
                path=request_options.path,
                error=repr(exc),
            )
            raise
        return coerce_response(raw, return_type)

    async def __call__(self, _source: Any, info: GraphQLResolveInfo, /, **args: Any) -> Any:
        return await self.resolve(args, info.context, info.return_type)


def synthesize_field(
    endpoint: Endpoint,
    cache: TypeCache,
    call_backend: CallBackend,
) -> GraphQLField:
    operation_id = endpoint.operation_id
    field_type = map_type(
        endpoint.response_schema,
        f"{operation_id}_response",
        is_input=False,
        cache=cache,
        required=True,
    )
    return GraphQLField(
        field_type,
        args=map_parameters(endpoint.parameters, operation_id, cache),
        resolve=EndpointResolver(endpoint, call_backend),
        description=endpoint.description or None,
    )


def build_fields(
    endpoints: EndpointSet,
    mutation: bool,
    cache: TypeCache,
    call_backend: CallBackend,
) -> dict[str, GraphQLField]:
    """Fields for the query (mutation=False) or mutation partition, ordered by operation id."""
    fields: dict[str, GraphQLField] = {}
    for operation_id in sorted(endpoints):
        endpoint = endpoints[operation_id]
        if bool(endpoint.mutation) != mutation:
            continue
        field_name = graphql_name(operation_id)
        if field_name in fields:
            raise ConstructionError(
                f"Operations '{operation_id}' and another operation both map to field '{field_name}'"
            )
        fields[field_name] = synthesize_field(endpoint, cache, call_backend)
    return fields
