"""Catalog data model for describing a service's public surface."""

from .model import (
    Module,
    ModuleRegistry,
    UserCommand,
    Parameter,
    Message,
    TypeDefinition,
)
from .types import (
    TypeDescription,
    PrimitiveType,
    ArrayType,
    MapType,
    UnionType,
    ObjectType,
    EnumType,
    ReferenceType,
)

__all__ = [
    "Module",
    "ModuleRegistry",
    "UserCommand",
    "Parameter",
    "Message",
    "TypeDefinition",
    "TypeDescription",
    "PrimitiveType",
    "ArrayType",
    "MapType",
    "UnionType",
    "ObjectType",
    "EnumType",
    "ReferenceType",
]
