"""Conversion of opaque type handles into portable type descriptions."""

import logging
from typing import List

from catalog.model import Module, TypeDefinition
from catalog.types import (
    ArrayType,
    EnumType,
    MapType,
    ObjectType,
    PrimitiveType,
    ReferenceType,
    TypeDescription,
    UnionType,
)
from .errors import TypeExtractionFailure
from .symbols import (
    ANY,
    GenericHandle,
    InstanceHandle,
    ObjectLiteralHandle,
    PrimitiveHandle,
    TypeHandle,
    TypeVarHandle,
    UnionHandle,
    make_union,
)


logger = logging.getLogger(__name__)

PORTABLE_PRIMITIVES = {
    "str": "string",
    "int": "integer",
    "float": "number",
    "bool": "boolean",
    "None": "null",
    "bytes": "bytes",
    "Any": "any",
}

ARRAY_CONTAINERS = {"list", "set", "tuple"}


class TypeMaterializer:
    """
    Materializes type handles into a module's type catalog.

    Named types (in-context classes and enums) are registered in
    ``Module.types`` once per identity key and referenced elsewhere. The
    catalog entry is registered as a placeholder before its fields are
    materialized, so a type reaching itself again through its fields gets a
    reference to the pending entry instead of recursing.
    """

    def __init__(self, context):
        self.context = context
        self._expanding: List[str] = []

    def materialize(self, module: Module, t: TypeHandle) -> TypeDescription:
        if isinstance(t, PrimitiveHandle):
            return PrimitiveType(PORTABLE_PRIMITIVES.get(t.name, "any"))

        if isinstance(t, TypeVarHandle):
            return PrimitiveType("any")

        if isinstance(t, GenericHandle):
            if self.context.is_deferred(t):
                return self.materialize(module, t.args[-1] if t.args else ANY)
            if t.name in ARRAY_CONTAINERS:
                return ArrayType(self.materialize(module, make_union(t.args)))
            if t.name == "dict":
                key, value = (tuple(t.args) + (ANY, ANY))[:2]
                return MapType(self.materialize(module, key), self.materialize(module, value))

        if isinstance(t, UnionHandle):
            return UnionType(tuple(self.materialize(module, member) for member in t.members))

        if isinstance(t, ObjectLiteralHandle):
            return ObjectType(fields={name: self.materialize(module, value) for name, value in t.fields})

        if isinstance(t, InstanceHandle):
            return self._reference(module, t)

        raise TypeExtractionFailure(
            f"cannot describe type {self.context.type_to_string(t)}",
            module.name,
        )

    def materialize_structure(self, module: Module, t: TypeHandle) -> TypeDescription:
        """
        Describe an object-shaped type inline, field by field.

        Enums are described inline by their members.
        Dependent types of the fields are still registered in the catalog.
        Types that are not object-shaped are materialized as usual.
        """
        if isinstance(t, InstanceHandle):
            name = self.context.type_to_string(t)
            members = self.context.enum_members(t)
            if members is not None:
                return EnumType(members=members, name=name)
        elif isinstance(t, ObjectLiteralHandle):
            name = None
        else:
            return self.materialize(module, t)

        fields = {
            field: self.materialize(module, field_type)
            for field, field_type in self.context.properties_of_type(t).items()
        }
        return ObjectType(fields=fields, name=name)

    def _reference(self, module: Module, t: InstanceHandle) -> ReferenceType:
        if t.args and module.get_type(t.key) is None and t.cls.qualified_name in self._expanding:
            # a class re-entered with new arguments; fall back to its
            # unparameterised form so expanding generics terminate
            logger.debug("Generic %s re-entered with new arguments", t.cls.qualified_name)
            t = InstanceHandle(t.cls)

        key = t.key
        name = self.context.type_to_string(t)

        if module.get_type(key) is None:
            members = self.context.enum_members(t)
            if members is not None:
                module.add_type(TypeDefinition(id=key, name=name, kind="enum", members=members, resolved=True))
            else:
                definition = module.add_type(TypeDefinition(id=key, name=name, kind="object"))
                self._expanding.append(t.cls.qualified_name)
                try:
                    for field, field_type in self.context.properties_of_type(t).items():
                        definition.fields[field] = self.materialize(module, field_type)
                finally:
                    self._expanding.pop()
                definition.resolved = True
            logger.debug("Registered type %s in module %s", key, module.name)

        return ReferenceType(key, name)
