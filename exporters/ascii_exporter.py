"""ASCII tree-style exporter for module catalogs (console format)."""

from typing import List, Sequence, Tuple

from catalog.model import Module
from catalog.types import render


# Unicode tree characters
UNICODE_BRANCH = "├── "
UNICODE_LAST = "└── "
UNICODE_VERTICAL = "│   "
UNICODE_SPACE = "    "

# ASCII fallback characters
ASCII_BRANCH = "|-- "
ASCII_LAST = "\\-- "
ASCII_VERTICAL = "|   "
ASCII_SPACE = "    "

TreeNode = Tuple[str, list]


def to_ascii(modules: Sequence[Module], style: str = "tree") -> str:
    """
    Convert a module catalog to an ASCII tree.

    Each module lists its user commands, messages and types; empty
    sections are left out.

    Args:
        modules: Modules in discovery order.
        style: Output style - "tree" (Unicode) or "ascii" (pure ASCII).

    Returns:
        ASCII tree string.
    """
    if style == "ascii":
        chars = (ASCII_BRANCH, ASCII_LAST, ASCII_VERTICAL, ASCII_SPACE)
    else:
        chars = (UNICODE_BRANCH, UNICODE_LAST, UNICODE_VERTICAL, UNICODE_SPACE)

    lines: List[str] = []

    for i, module in enumerate(modules):
        lines.append(module.name)
        sections = _module_sections(module)
        for j, section in enumerate(sections):
            _render_node(section, "", j == len(sections) - 1, chars, lines)

        # Add blank line between modules (except after last)
        if i < len(modules) - 1:
            lines.append("")

    return "\n".join(lines)


def _module_sections(module: Module) -> List[TreeNode]:
    sections: List[TreeNode] = []

    if module.usercommands:
        commands = []
        for command in module.usercommands:
            parameters = ", ".join(f"{p.name}: {render(p.type)}" for p in command.parameters)
            returns = render(command.return_type) if command.return_type else "None"
            commands.append((f"{command.name}({parameters}) -> {returns}", []))
        sections.append(("usercommands", commands))

    if module.messages:
        messages = []
        for message in module.messages:
            label = message.id if str(message.value) == message.id else f"{message.id} = {message.value!r}"
            messages.append((f"{label}: {render(message.type)}", []))
        sections.append(("messages", messages))

    if module.types:
        types = []
        for definition in module.types:
            if definition.kind == "enum":
                children = [(f"{name} = {value!r}", []) for name, value in definition.members.items()]
            else:
                children = [(f"{name}: {render(t)}", []) for name, t in definition.fields.items()]
            types.append((f"{definition.name} ({definition.kind})", children))
        sections.append(("types", types))

    return sections


def _render_node(
    node: TreeNode,
    prefix: str,
    is_last: bool,
    chars: Tuple[str, str, str, str],
    lines: List[str],
) -> None:
    """
    Recursively render a node and its children.

    Args:
        node: Label and children of the current node.
        prefix: Current line prefix for indentation.
        is_last: Whether this is the last child of its parent.
        chars: Character set (branch, last, vertical, space).
        lines: Output lines list (modified in place).
    """
    branch, last, vertical, space = chars
    label, children = node

    connector = last if is_last else branch
    lines.append(f"{prefix}{connector}{label}")

    new_prefix = prefix + (space if is_last else vertical)
    for index, child in enumerate(children):
        _render_node(child, new_prefix, index == len(children) - 1, chars, lines)
