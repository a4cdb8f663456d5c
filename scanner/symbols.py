"""Symbols, type handles and signatures exposed by the resolution context."""

import ast
import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


class SymbolKind(enum.Enum):
    MODULE = "module"
    CLASS = "class"
    FUNCTION = "function"
    VARIABLE = "variable"
    PARAMETER = "parameter"
    PROPERTY = "property"
    ALIAS = "alias"


class Symbol:
    """
    A named declaration in the resolution context.

    ``origin`` is the qualified origin path of the declaration, computed once
    from the declaring parent: ``("mage", "core", "IState", "emit")``.
    Alias symbols stand for imported names; ``target`` holds the
    ``(module, attribute)`` pair they were imported from.
    """

    def __init__(
        self,
        name: str,
        kind: SymbolKind,
        node: Optional[ast.AST] = None,
        parent: Optional["Symbol"] = None,
        source=None,
        module_name: Optional[str] = None,
    ):
        self.name = name
        self.kind = kind
        self.node = node
        self.parent = parent
        self.source = source
        self.module_name = module_name
        self.members: Dict[str, "Symbol"] = {}
        self.annotation: Optional[ast.expr] = None
        self.value: Optional[ast.expr] = None
        self.iterated = False
        self.variadic = ""
        self.overloads: List[ast.AST] = []
        self.target: Optional[Tuple[str, Optional[str]]] = None

        if kind is SymbolKind.MODULE and module_name:
            self.origin: Tuple[str, ...] = tuple(module_name.split("."))
        elif parent is not None:
            self.origin = parent.origin + (name,)
        else:
            self.origin = (name,)

    @property
    def qualified_name(self) -> str:
        return ".".join(self.origin)

    @property
    def value_declaration(self) -> Optional[ast.AST]:
        return self.node

    def __repr__(self) -> str:
        return f"Symbol({self.kind.value} {self.qualified_name})"


class TypeHandle:
    """Opaque handle on a type known to the resolution context."""

    @property
    def key(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class PrimitiveHandle(TypeHandle):
    name: str

    @property
    def key(self) -> str:
        return self.name


@dataclass(frozen=True)
class GenericHandle(TypeHandle):
    """Builtin container or deferred wrapper: list, tuple, set, dict, Awaitable..."""

    name: str
    args: tuple = ()

    @property
    def key(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}[{','.join(a.key for a in self.args)}]"


@dataclass(frozen=True)
class InstanceHandle(TypeHandle):
    """Instance of an in-context class, with optional generic arguments."""

    cls: Symbol
    args: tuple = ()

    @property
    def key(self) -> str:
        if not self.args:
            return self.cls.qualified_name
        return f"{self.cls.qualified_name}[{','.join(a.key for a in self.args)}]"


@dataclass(frozen=True)
class ObjectLiteralHandle(TypeHandle):
    """Anonymous object shape, inferred from a dict display with string keys."""

    fields: Tuple[Tuple[str, TypeHandle], ...] = ()

    @property
    def key(self) -> str:
        return "{" + ",".join(f"{name}:{t.key}" for name, t in self.fields) + "}"


@dataclass(frozen=True)
class UnionHandle(TypeHandle):
    members: tuple = ()

    @property
    def key(self) -> str:
        return "|".join(m.key for m in self.members)


@dataclass(frozen=True)
class TypeVarHandle(TypeHandle):
    name: str

    @property
    def key(self) -> str:
        return f"~{self.name}"


@dataclass(frozen=True)
class CallableHandle(TypeHandle):
    symbol: Symbol
    bound: bool = False
    owner: Optional[InstanceHandle] = None

    @property
    def key(self) -> str:
        return f"def {self.symbol.qualified_name}"


@dataclass(frozen=True)
class ClassObjectHandle(TypeHandle):
    cls: Symbol

    @property
    def key(self) -> str:
        return f"type[{self.cls.qualified_name}]"


@dataclass(frozen=True)
class ModuleHandle(TypeHandle):
    module: Symbol

    @property
    def key(self) -> str:
        return f"module {self.module.qualified_name}"


ANY = PrimitiveHandle("Any")
NONE = PrimitiveHandle("None")


def make_union(members) -> TypeHandle:
    """Flatten and deduplicate union members by key."""
    flat: List[TypeHandle] = []
    seen = set()
    for member in members:
        parts = member.members if isinstance(member, UnionHandle) else (member,)
        for part in parts:
            if part.key not in seen:
                seen.add(part.key)
                flat.append(part)
    if not flat:
        return ANY
    if len(flat) == 1:
        return flat[0]
    return UnionHandle(tuple(flat))


@dataclass
class Signature:
    """A resolved call signature and the symbol that declares it."""

    declaration: Optional[Symbol]
    parameters: List[Symbol] = field(default_factory=list)
    return_type: TypeHandle = ANY
    node: Optional[ast.AST] = None
