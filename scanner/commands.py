"""Extraction of user command endpoints from command files."""

import ast
import logging
from typing import TYPE_CHECKING, Iterator, Optional, Sequence

from catalog.model import Module, Parameter, UserCommand
from .context import SourceFile
from .errors import (
    HandlerNotExported,
    MissingReturnTypeArgument,
    NotAModuleFile,
    OverloadedHandler,
)
from .symbols import Symbol, SymbolKind

if TYPE_CHECKING:
    from .builder import ParseSession


logger = logging.getLogger(__name__)


class HandlerResolver:
    """Strategy locating a command file's exported handler."""

    def try_resolve_handler(self, session: "ParseSession", source: SourceFile) -> Optional[Symbol]:
        raise NotImplementedError


class ModuleExportResolver(HandlerResolver):
    """
    Handler exported as a top-level binding of the command file::

        async def execute(state: mage.core.IState, a: str) -> A:
            ...
    """

    def try_resolve_handler(self, session: "ParseSession", source: SourceFile) -> Optional[Symbol]:
        context = session.context
        if not context.is_value_module(source.symbol):
            raise NotAModuleFile("user command file does not appear to be a module file")
        return context.get_export(source.symbol, session.config.handler_name)


class AssignmentExportResolver(HandlerResolver):
    """
    Handler exported inside an object literal assigned to the export name::

        export = mage.core.IUserCommand(
            acl=["*"],
            execute=run,
        )

    The first property assignment named after the handler, depth first,
    wins. Dict entries with a string key and keyword arguments both count as
    property assignments.
    """

    def try_resolve_handler(self, session: "ParseSession", source: SourceFile) -> Optional[Symbol]:
        export = source.symbol.members.get(session.config.export_name)
        if export is None or export.kind is not SymbolKind.VARIABLE or export.value is None:
            return None

        name = session.config.handler_name
        for key, value in _property_assignments(export.value):
            if key == name:
                handler = Symbol(name, SymbolKind.PROPERTY, node=value, parent=export, source=source)
                handler.value = value
                return handler
        return None


HANDLER_RESOLVERS: Sequence[HandlerResolver] = (
    ModuleExportResolver(),
    AssignmentExportResolver(),
)


def _property_assignments(node: ast.AST) -> Iterator[tuple]:
    """Yield ``(name, value)`` property assignments below a node, depth first."""
    if isinstance(node, ast.Dict):
        for key, value in zip(node.keys, node.values):
            if isinstance(key, ast.Constant) and isinstance(key.value, str):
                yield key.value, value
            yield from _property_assignments(value)
        return

    if isinstance(node, ast.Call):
        for arg in node.args:
            yield from _property_assignments(arg)
        for keyword in node.keywords:
            if keyword.arg:
                yield keyword.arg, keyword.value
            yield from _property_assignments(keyword.value)
        return

    for child in ast.iter_child_nodes(node):
        yield from _property_assignments(child)


def find_handler(session: "ParseSession", module: Module, source: SourceFile) -> Symbol:
    """
    Locate the handler of a command file, trying each export convention in turn.

    Raises:
        NotAModuleFile: If the file does not export runtime values.
        HandlerNotExported: If no convention yields a handler.
    """
    for resolver in HANDLER_RESOLVERS:
        try:
            handler = resolver.try_resolve_handler(session, source)
        except NotAModuleFile as error:
            error.module_name = module.name
            raise
        if handler is not None:
            return handler

    raise HandlerNotExported(
        f"usercommand.{session.config.handler_name} method does not seem to be exported",
        module_name=module.name,
    )


def extract_command(session: "ParseSession", module: Module, command_name: str, source: SourceFile) -> UserCommand:
    """
    Extract the name, parameters and return type of a user command.

    Raises:
        HandlerNotExported: If the handler is missing or not callable.
        OverloadedHandler: If the handler has more than one call signature.
        MissingReturnTypeArgument: If the handler does not return ``Awaitable[T]``.
    """
    context = session.context
    materializer = session.materializer
    handler = find_handler(session, module, source)

    signatures = context.call_signatures(context.type_of_symbol(handler))
    if not signatures:
        raise HandlerNotExported(
            f"usercommand.{handler.name} is not a function",
            module_name=module.name,
            source_text=context.node_text(handler.node, handler.source) if handler.node is not None else None,
        )
    if len(signatures) > 1:
        raise OverloadedHandler(
            f"user command {handler.name} methods cannot have more than one function signature",
            module_name=module.name,
        )

    signature = signatures[0]

    # The return type must be Awaitable[T]; T is the command's result
    return_type = signature.return_type
    type_arguments = context.type_arguments(return_type)
    if not context.is_deferred(return_type) or len(type_arguments) != 1:
        raise MissingReturnTypeArgument(
            f"user command {handler.name} method must specify its return type "
            f"(as Awaitable[T] where T is an explicit type), got {context.type_to_string(return_type)}",
            module_name=module.name,
        )
    result_type = type_arguments[0]

    parameters = []
    for parameter in signature.parameters:
        if parameter.value_declaration is None:
            continue
        parameter_type = context.type_of_symbol(parameter)
        parameters.append(Parameter(parameter.name, materializer.materialize(module, parameter_type)))

    if session.config.skip_context_parameter:
        parameters = parameters[1:]

    logger.debug(
        "%s.%s%s",
        module.name,
        command_name,
        context.signature_to_string(signature),
    )

    command = UserCommand(
        name=command_name,
        parameters=parameters,
        return_type=materializer.materialize_structure(module, result_type),
    )
    module.add_usercommand(command)
    return command
