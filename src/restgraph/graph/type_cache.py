from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from graphql import GraphQLNamedType

from restgraph.domain.models import graphql_name

TypeRole = Literal["output", "input", "enum"]


@dataclass(frozen=True)
class TypeKey:
    namespace: Optional[str]
    title: str
    role: TypeRole


@dataclass
class TypeCache:
    """
    Per-build registry of named GraphQL types.

    One cache is shared by every mapping call of a single schema build; in
    join mode each namespace gets its own cache tagged with the namespace, and
    every type name it hands out is prefixed so namespaces cannot collide.
    Entries are registered before their fields are known (see map_type).
    """

    namespace: Optional[str] = None
    _types: dict[TypeKey, GraphQLNamedType] = field(default_factory=dict)
    # untitled node -> name it was first mapped under (node kept alive for a stable id)
    _untitled: dict[int, tuple[Any, str]] = field(default_factory=dict)
    # every title handed out so far, titled or derived from a path hint
    _titles: set[str] = field(default_factory=set)

    def title_for(self, node: Any, path_hint: str) -> str:
        """
        Title a node is cached under.

        Titled nodes keep their title, so equal titles share one type. An
        untitled node is named after its path hint the first time it is seen;
        when that name already belongs to another node it gets a `_2`, `_3`
        suffix instead of silently merging with it.
        """
        title = getattr(node, "title", None)
        if title:
            self._titles.add(title)
            return title

        entry = self._untitled.get(id(node))
        if entry is not None:
            return entry[1]

        name = path_hint
        n = 1
        while name in self._titles:
            n += 1
            name = f"{path_hint}_{n}"
        self._titles.add(name)
        self._untitled[id(node)] = (node, name)
        return name

    def key(self, title: str, role: TypeRole) -> TypeKey:
        return TypeKey(namespace=self.namespace, title=title, role=role)

    def get(self, key: TypeKey) -> Optional[GraphQLNamedType]:
        return self._types.get(key)

    def register(self, key: TypeKey, gql_type: GraphQLNamedType) -> GraphQLNamedType:
        self._types.setdefault(key, gql_type)
        return self._types[key]

    def type_name(self, title: str, role: TypeRole) -> str:
        base = graphql_name(title)
        if role == "input":
            base = f"{base}Input"
        if self.namespace:
            return f"{graphql_name(self.namespace)}_{base}"
        return base

    def type_names(self) -> set[str]:
        return {gql_type.name for gql_type in self._types.values()}

    def __len__(self) -> int:
        return len(self._types)
