"""Extraction of event messages emitted through the framework's state object."""

import ast
import logging
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from catalog.model import Message, Module
from .context import SourceFile, iter_calls
from .errors import UnresolvableEventName
from .symbols import NONE, Signature, Symbol

if TYPE_CHECKING:
    from .builder import ParseSession


logger = logging.getLogger(__name__)

EMIT_METHODS = ("emit", "broadcast")

EVENT_NAME_ERROR = "eventName must be either a string literal, number literal or a constant enum value"


def scan_messages(session: "ParseSession", module: Module, source: SourceFile) -> None:
    """
    Collect every ``state.emit`` and ``state.broadcast`` call of a file.

    Every call expression is visited, including calls nested in the
    arguments of other calls. Calls whose declaration cannot be resolved, or
    that do not belong to the framework's state interface, are skipped.

    Raises:
        UnresolvableEventName: If an event name is not statically resolvable.
    """
    context = session.context

    for call in iter_calls(source.tree):
        signature = context.resolve_signature(call, source)
        if signature is None or signature.declaration is None:
            continue

        declaration = signature.declaration
        if not is_state_member(session, declaration):
            continue
        if declaration.name not in EMIT_METHODS:
            continue

        args = bind_arguments(call, signature)

        # The actor id of emit() is not part of the message
        if declaration.name == "emit":
            args = args[1:]

        event = args[0] if args else None
        event_id, event_value = resolve_event_name(session, module, call, event, source)

        payload = args[1] if len(args) > 1 else None
        payload_type = context.contextual_type(payload, source) if payload is not None else NONE

        logger.debug(
            "%s: %s %s(%s) %s",
            module.name,
            context.signature_to_string(signature),
            declaration.name,
            event_id,
            context.type_to_string(payload_type),
        )

        message_type = session.materializer.materialize(module, payload_type)
        module.add_message(Message(id=event_id, value=event_value, type=message_type))


def is_state_member(session: "ParseSession", declaration: Symbol) -> bool:
    """
    Check that a declaration is a member of the framework's state interface.

    The declaring parent must be named after the state interface and the
    declaration's origin must lie inside the framework's root package, which
    tells framework calls apart from same-named local functions.
    """
    parent = declaration.parent
    if parent is None or parent.name != session.config.state_interface:
        return False
    origin = session.context.origin_path(declaration)
    return bool(origin) and origin[0] == session.config.framework_root


def bind_arguments(call: ast.Call, signature: Signature) -> List[Optional[ast.expr]]:
    """Order a call's arguments by parameter position, keywords included."""
    args: List[Optional[ast.expr]] = [a for a in call.args if not isinstance(a, ast.Starred)]
    keywords = {kw.arg: kw.value for kw in call.keywords if kw.arg}

    for parameter in signature.parameters[len(args):]:
        if parameter.name not in keywords:
            break
        args.append(keywords[parameter.name])

    return args


def resolve_event_name(
    session: "ParseSession",
    module: Module,
    call: ast.Call,
    event: Optional[ast.expr],
    source: SourceFile,
) -> Tuple[str, Any]:
    """
    Resolve an event name argument to its identifier and constant value.

    Returns:
        ``(member name, constant value)`` for constant attributes such as
        enum members, ``(text, text)`` for string and numeric literals.
    """
    context = session.context

    if isinstance(event, ast.Attribute):
        value = context.constant_value(event, source)
        if value is not None:
            return event.attr, value

    elif isinstance(event, ast.Constant) and not isinstance(event.value, bool):
        if isinstance(event.value, str):
            return event.value, event.value
        if isinstance(event.value, (int, float)):
            text = context.node_text(event, source)
            return text, text

    elif isinstance(event, ast.UnaryOp) and context.constant_value(event, source) is not None:
        text = context.node_text(event, source)
        return text, text

    raise UnresolvableEventName(
        EVENT_NAME_ERROR,
        module_name=module.name,
        source_text=context.node_text(call, source),
    )
