"""
Entry points: API description document(s) -> executable GraphQL schema.

    schema = create_schema("petstore.json", call_backend)
    result = await graphql(schema, "{ getPetById(petId: 1) { name } }")

`call_backend(context, request_options)` is awaited by every field resolver;
it owns transport, retries and timeouts.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from graphql import GraphQLSchema

from restgraph.domain.models import Endpoint
from restgraph.graph.assembler import join_schemas, schema_from_endpoints
from restgraph.graph.fields import CallBackend
from restgraph.loader.swagger import assign_titles, dereference, extract_endpoints, load_document
from restgraph.settings import get_settings

DocumentSource = Union[str, Path, Mapping[str, Any]]


def endpoints_from_document(
    source: DocumentSource,
    base_url: Optional[str] = None,
) -> dict[str, Endpoint]:
    """Load, title, dereference and extract endpoints from one document."""
    if isinstance(source, Mapping):
        document = copy.deepcopy(dict(source))
    else:
        document = load_document(Path(source))

    document = dereference(assign_titles(document))
    if base_url is None:
        base_url = get_settings().base_url
    return extract_endpoints(document, base_url=base_url)


def create_schema(source: DocumentSource, call_backend: CallBackend) -> GraphQLSchema:
    return schema_from_endpoints(endpoints_from_document(source), call_backend)


def join_n_create_schema(
    namespaces: Mapping[str, DocumentSource],
    call_backend: CallBackend,
) -> GraphQLSchema:
    """One schema whose root fields are the given namespaces, each backed by its own document."""
    endpoint_sets = {
        namespace: endpoints_from_document(source) for namespace, source in namespaces.items()
    }
    return join_schemas(endpoint_sets, call_backend)
