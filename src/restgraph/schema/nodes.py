from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional, Union

ScalarKind = Literal["string", "integer", "number", "boolean"]

_SCALAR_KINDS = ("string", "integer", "number", "boolean")


@dataclass(frozen=True)
class ScalarNode:
    kind: ScalarKind
    title: Optional[str] = None
    description: str = ""


@dataclass(frozen=True)
class EnumNode:
    values: tuple[Any, ...]
    kind: Optional[ScalarKind] = None
    title: Optional[str] = None
    description: str = ""

    @property
    def is_textual(self) -> bool:
        return all(isinstance(v, str) for v in self.values)


@dataclass(frozen=True)
class ArrayNode:
    items: Optional["SchemaNode"]
    title: Optional[str] = None
    description: str = ""


@dataclass(frozen=True, eq=False)
class ObjectNode:
    """
    Object schema. `properties` is filled after the node is created so that
    self-referential documents parse to a cyclic node graph; compare by identity.
    """

    title: Optional[str] = None
    description: str = ""
    properties: dict[str, "SchemaNode"] = field(default_factory=dict)
    required: frozenset[str] = frozenset()


@dataclass(frozen=True)
class AnyNode:
    """Missing or unrecognized `type`; maps to the unconstrained JSON scalar."""

    title: Optional[str] = None
    description: str = ""
    reason: str = "untyped"


SchemaNode = Union[ObjectNode, ArrayNode, ScalarNode, EnumNode, AnyNode]


def _type_tag(raw: Mapping[str, Any]) -> Optional[str]:
    t = raw.get("type")
    if isinstance(t, list):
        # ["string", "null"] style nullable unions
        non_null = [x for x in t if x != "null"]
        return non_null[0] if len(non_null) == 1 else None
    if t is None and "properties" in raw:
        return "object"
    if t is None and "items" in raw:
        return "array"
    return t


def parse_schema(raw: Any, _seen: Optional[dict[int, SchemaNode]] = None) -> SchemaNode:
    """
    Convert a dereferenced JSON-Schema mapping into a tagged node tree.

    Shared sub-mappings map to the same node object, and a mapping that
    (transitively) contains itself yields a cyclic ObjectNode graph.
    """
    if _seen is None:
        _seen = {}
    if not isinstance(raw, Mapping):
        return AnyNode(reason="not-a-mapping")

    cached = _seen.get(id(raw))
    if cached is not None:
        return cached

    title = raw.get("title") or None
    description = raw.get("description") or ""
    tag = _type_tag(raw)

    enum_values = raw.get("enum")
    if isinstance(enum_values, list) and enum_values:
        values = tuple(v for v in enum_values if v is not None)
        if values and all(isinstance(v, (str, int, float)) and not isinstance(v, bool) for v in values):
            kind = tag if tag in _SCALAR_KINDS else None
            node: SchemaNode = EnumNode(values=values, kind=kind, title=title, description=description)
            _seen[id(raw)] = node
            return node

    if tag == "object":
        required = raw.get("required") if isinstance(raw.get("required"), list) else ()
        obj = ObjectNode(
            title=title,
            description=description,
            required=frozenset(r for r in required if isinstance(r, str)),
        )
        # register before recursing: properties may point back at this mapping
        _seen[id(raw)] = obj
        for name, prop in (raw.get("properties") or {}).items():
            obj.properties[name] = parse_schema(prop, _seen)
        return obj

    if tag == "array":
        items = raw.get("items")
        arr = ArrayNode(
            items=parse_schema(items, _seen) if isinstance(items, Mapping) else None,
            title=title,
            description=description,
        )
        _seen[id(raw)] = arr
        return arr

    if tag in _SCALAR_KINDS:
        node = ScalarNode(kind=tag, title=title, description=description)
    else:
        node = AnyNode(title=title, description=description, reason=f"type={tag!r}")
    _seen[id(raw)] = node
    return node
