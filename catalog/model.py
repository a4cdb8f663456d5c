"""Catalog data model: modules, their commands, messages and types."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .types import TypeDescription


@dataclass
class Parameter:
    """A client-visible parameter of a user command."""

    name: str
    type: TypeDescription

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type.to_dict()}


@dataclass
class UserCommand:
    """A remotely invocable command endpoint."""

    name: str
    parameters: List[Parameter] = field(default_factory=list)
    return_type: Optional[TypeDescription] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "parameters": [p.to_dict() for p in self.parameters],
            "returnType": self.return_type.to_dict() if self.return_type else None,
        }


@dataclass
class Message:
    """
    An event emitted through the state object.

    ``id`` is the statically resolved event identifier (an enum member name
    or the literal text) and ``value`` the constant it evaluates to.
    """

    id: str
    value: Any
    type: TypeDescription

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "value": self.value, "type": self.type.to_dict()}


@dataclass
class TypeDefinition:
    """
    A named entry of a module's type catalog.

    Definitions are registered as placeholders (``resolved`` is False) before
    their fields are materialized so self-referencing types terminate.
    """

    id: str
    name: str
    kind: str
    fields: Dict[str, TypeDescription] = field(default_factory=dict)
    members: Dict[str, Any] = field(default_factory=dict)
    resolved: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "name": self.name, "kind": self.kind}
        if self.kind == "enum":
            data["members"] = dict(self.members)
        else:
            data["fields"] = {key: value.to_dict() for key, value in self.fields.items()}
        return data


class Module:
    """
    A named grouping of commands, messages and the types they reference.

    The three lists are append-only; types are indexed by their identity key
    so that each one is registered exactly once.
    """

    def __init__(self, name: str):
        self.name = name
        self.types: List[TypeDefinition] = []
        self.usercommands: List[UserCommand] = []
        self.messages: List[Message] = []
        self._type_index: Dict[str, TypeDefinition] = {}

    def get_type(self, type_id: str) -> Optional[TypeDefinition]:
        """Get a catalog entry by identity key."""
        return self._type_index.get(type_id)

    def add_type(self, definition: TypeDefinition) -> TypeDefinition:
        """Register a type definition unless one with the same id exists."""
        existing = self._type_index.get(definition.id)
        if existing is not None:
            return existing
        self._type_index[definition.id] = definition
        self.types.append(definition)
        return definition

    def add_usercommand(self, command: UserCommand) -> None:
        self.usercommands.append(command)

    def add_message(self, message: Message) -> None:
        self.messages.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "types": [t.to_dict() for t in self.types],
            "usercommands": [c.to_dict() for c in self.usercommands],
            "messages": [m.to_dict() for m in self.messages],
        }

    def __repr__(self) -> str:
        return (
            f"Module(name={self.name!r}, types={len(self.types)}, "
            f"usercommands={len(self.usercommands)}, messages={len(self.messages)})"
        )


class ModuleRegistry:
    """
    Get-or-create map from module name to Module, preserving first-seen order.

    A registry belongs to a single parse session and is not thread-safe.
    """

    def __init__(self):
        self._modules: Dict[str, Module] = {}
        self._order: List[Module] = []

    @property
    def modules(self) -> List[Module]:
        """Return modules in first-discovered order."""
        return list(self._order)

    def get_or_create(self, name: str) -> Module:
        """Return the module called ``name``, creating it on first reference."""
        module = self._modules.get(name)
        if module is None:
            module = Module(name)
            self._modules[name] = module
            self._order.append(module)
        return module

    def get(self, name: str) -> Optional[Module]:
        return self._modules.get(name)

    def to_list(self) -> List[Dict[str, Any]]:
        return [module.to_dict() for module in self._order]

    def __iter__(self) -> Iterator[Module]:
        return iter(list(self._order))

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, name: str) -> bool:
        return name in self._modules

    def __repr__(self) -> str:
        commands = sum(len(m.usercommands) for m in self._order)
        messages = sum(len(m.messages) for m in self._order)
        return f"ModuleRegistry(modules={len(self._order)}, usercommands={commands}, messages={messages})"
