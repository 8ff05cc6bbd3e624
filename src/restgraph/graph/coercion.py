from __future__ import annotations

import json
from typing import Any

from graphql import GraphQLList, GraphQLNonNull, GraphQLObjectType, GraphQLOutputType


def coerce_response(raw: Any, declared_type: GraphQLOutputType) -> Any:
    """
    Normalize a backend result for the field's declared type.

    Objects and lists pass through (the engine resolves them field by field).
    A String field receiving anything but text gets its JSON encoding; None
    stays None, and a value JSON cannot encode falls back to its str().
    Other mismatches pass through untouched and are left to the engine's own
    serialization.
    """
    nullable = declared_type.of_type if isinstance(declared_type, GraphQLNonNull) else declared_type

    if isinstance(nullable, (GraphQLObjectType, GraphQLList)):
        return raw

    if getattr(nullable, "name", None) == "String" and raw is not None and not isinstance(raw, str):
        try:
            return json.dumps(raw, default=str)
        except (TypeError, ValueError):
            # non-text keys or a self-referencing structure
            return str(raw)

    return raw
