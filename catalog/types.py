"""Portable type descriptions produced by the type materializer."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


PRIMITIVE_NAMES = {"string", "integer", "number", "boolean", "null", "bytes", "any"}


class TypeDescription:
    """Base class for all structural type descriptions."""

    kind = ""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class PrimitiveType(TypeDescription):
    name: str
    kind = "primitive"

    def __post_init__(self):
        if self.name not in PRIMITIVE_NAMES:
            raise ValueError(f"unknown primitive type: {self.name}")

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "name": self.name}


@dataclass(frozen=True)
class ArrayType(TypeDescription):
    element_type: TypeDescription
    kind = "array"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "elementType": self.element_type.to_dict()}


@dataclass(frozen=True)
class MapType(TypeDescription):
    key_type: TypeDescription
    value_type: TypeDescription
    kind = "map"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "keyType": self.key_type.to_dict(),
            "valueType": self.value_type.to_dict(),
        }


@dataclass(frozen=True)
class UnionType(TypeDescription):
    types: tuple
    kind = "union"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "types": [t.to_dict() for t in self.types]}


@dataclass
class ObjectType(TypeDescription):
    """Inline object shape: an ordered mapping of field name to type."""

    fields: Dict[str, TypeDescription] = field(default_factory=dict)
    name: Optional[str] = None
    kind = "object"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind}
        if self.name:
            data["name"] = self.name
        data["fields"] = {key: value.to_dict() for key, value in self.fields.items()}
        return data


@dataclass
class EnumType(TypeDescription):
    members: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None
    kind = "enum"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind}
        if self.name:
            data["name"] = self.name
        data["members"] = dict(self.members)
        return data


@dataclass(frozen=True)
class ReferenceType(TypeDescription):
    """Points at a named entry of a module's type catalog."""

    id: str
    name: str
    kind = "reference"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "id": self.id, "name": self.name}


def render(description: TypeDescription) -> str:
    """Short human readable rendering, used by the console exporter."""
    if isinstance(description, PrimitiveType):
        return description.name
    if isinstance(description, ArrayType):
        return f"{render(description.element_type)}[]"
    if isinstance(description, MapType):
        return f"map<{render(description.key_type)}, {render(description.value_type)}>"
    if isinstance(description, UnionType):
        return " | ".join(render(t) for t in description.types)
    if isinstance(description, ReferenceType):
        return description.name
    if isinstance(description, (ObjectType, EnumType)):
        if description.name:
            return description.name
        if isinstance(description, ObjectType):
            inner = ", ".join(f"{k}: {render(v)}" for k, v in description.fields.items())
            return "{" + inner + "}"
    return description.kind
