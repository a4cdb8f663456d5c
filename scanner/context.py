"""
Type-resolution context over a closed set of Python source files.

The context answers the symbol, signature and type queries the catalog
extraction needs. It is built once from the command files of a project and
transitively pulls in every in-project file they import; imports that do not
resolve to a file on the search paths (stdlib, third-party packages) are
external and only their imported names are known.
"""

import ast
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from .errors import ContextBuildError
from .resolver import (
    module_name_for_path,
    parent_packages,
    resolve_module,
    resolve_relative_import,
)
from .symbols import (
    ANY,
    NONE,
    CallableHandle,
    ClassObjectHandle,
    GenericHandle,
    InstanceHandle,
    ModuleHandle,
    ObjectLiteralHandle,
    PrimitiveHandle,
    Signature,
    Symbol,
    SymbolKind,
    TypeHandle,
    TypeVarHandle,
    UnionHandle,
    make_union,
)


logger = logging.getLogger(__name__)

PRIMITIVE_NAMES = {
    "str": "str",
    "int": "int",
    "float": "float",
    "complex": "float",
    "bool": "bool",
    "bytes": "bytes",
    "bytearray": "bytes",
    "None": "None",
    "NoneType": "None",
    "Any": "Any",
    "object": "Any",
}

SEQUENCE_NAMES = {
    "list": "list", "List": "list", "Sequence": "list", "MutableSequence": "list",
    "Iterable": "list", "Iterator": "list", "Collection": "list",
    "Deque": "list", "deque": "list",
    "set": "set", "Set": "set", "frozenset": "set", "FrozenSet": "set",
    "AbstractSet": "set", "MutableSet": "set",
    "tuple": "tuple", "Tuple": "tuple",
}

MAPPING_NAMES = {
    "dict": "dict", "Dict": "dict", "Mapping": "dict", "MutableMapping": "dict",
    "DefaultDict": "dict", "defaultdict": "dict", "OrderedDict": "dict",
}

DEFERRED_NAMES = {"Awaitable", "Coroutine", "Future", "Task"}

WRAPPER_NAMES = {"Annotated", "Final", "ClassVar", "Required", "NotRequired", "ReadOnly"}

ENUM_BASES = {"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"}

SCOPE_NODES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda, ast.ClassDef)
FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda)


class SourceFile:
    """A parsed file of the context, with its module symbol and parent links."""

    def __init__(self, path: Path, module_name: str, is_package: bool, text: str, tree: ast.Module):
        self.path = path
        self.module_name = module_name
        self.is_package = is_package
        self.text = text
        self.tree = tree
        self.symbol = Symbol(
            module_name.rsplit(".", 1)[-1],
            SymbolKind.MODULE,
            node=tree,
            source=self,
            module_name=module_name,
        )
        self.parents: Dict[ast.AST, ast.AST] = {}
        for parent in ast.walk(tree):
            for child in ast.iter_child_nodes(parent):
                self.parents[child] = parent

    @property
    def file_name(self) -> str:
        return str(self.path)

    def parent_of(self, node: ast.AST) -> Optional[ast.AST]:
        return self.parents.get(node)

    def text_of(self, node: ast.AST) -> str:
        segment = ast.get_source_segment(self.text, node)
        return segment if segment is not None else ast.unparse(node)

    def __repr__(self) -> str:
        return f"SourceFile({self.module_name!r})"


class SourceContext:
    """
    Closed resolution context built from a set of root files.

    Args:
        root_files: Files the context is built from (the command files).
        search_paths: Import roots, highest priority first.
        feature_version: Optional ``(major, minor)`` passed to ``ast.parse``.
    """

    def __init__(
        self,
        root_files: Sequence[Path],
        search_paths: Sequence[Path],
        feature_version: Optional[Tuple[int, int]] = None,
    ):
        self.search_paths = [Path(p).resolve() for p in search_paths]
        self.feature_version = feature_version
        self.root_files = [Path(p).resolve() for p in root_files]

        self._files: List[SourceFile] = []
        self._by_path: Dict[Path, SourceFile] = {}
        self._by_module: Dict[str, SourceFile] = {}
        self._loading: Set[Path] = set()
        self._node_symbols: Dict[ast.AST, Symbol] = {}
        self._scopes: Dict[ast.AST, Dict[str, Symbol]] = {}
        self._enum_values: Dict[Symbol, Dict[str, Any]] = {}
        self._inferring: Set[int] = set()

        for path in self.root_files:
            name, is_package = module_name_for_path(path, self.search_paths)
            self._load(path, name, is_package)

        logger.debug("Resolution context holds %d files", len(self._files))

    # ------------------------------------------------------------------
    # Program construction
    # ------------------------------------------------------------------

    @property
    def files(self) -> List[SourceFile]:
        """All files of the context, dependencies before their dependents."""
        return list(self._files)

    def get_file(self, path: Path) -> Optional[SourceFile]:
        return self._by_path.get(Path(path).resolve())

    def get_module(self, name: str) -> Optional[Symbol]:
        source = self._by_module.get(name)
        return source.symbol if source is not None else None

    def _load(self, path: Path, module_name: str, is_package: bool) -> None:
        if path in self._by_path or path in self._loading:
            return
        self._loading.add(path)

        source = self._parse(path, module_name, is_package)
        self._by_module.setdefault(module_name, source)

        for name in self._imported_names(source):
            dependency = resolve_module(name, self.search_paths)
            if dependency is not None:
                self._load(dependency, name, dependency.name == "__init__.py")

        self._loading.discard(path)
        self._by_path[path] = source
        self._files.append(source)

    def _parse(self, path: Path, module_name: str, is_package: bool) -> SourceFile:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ContextBuildError(f"cannot read {path}: {e}")
        try:
            tree = ast.parse(text, filename=str(path), feature_version=self.feature_version)
        except SyntaxError as e:
            raise ContextBuildError(f"cannot parse {path}: {e.msg} (line {e.lineno})")

        source = SourceFile(path, module_name, is_package, text, tree)
        self._bind_block(tree.body, source.symbol, source, source.symbol.members)
        return source

    def _imported_names(self, source: SourceFile) -> List[str]:
        """Dotted names a file depends on, in import order, parents first."""
        names: List[str] = list(parent_packages(source.module_name))

        for node in ast.walk(source.tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    names.extend(parent_packages(alias.name))
                    names.append(alias.name)
            elif isinstance(node, ast.ImportFrom):
                base = resolve_relative_import(
                    source.module_name, source.is_package, node.level, node.module
                )
                if base is None:
                    continue
                names.extend(parent_packages(base))
                names.append(base)
                for alias in node.names:
                    if alias.name != "*":
                        names.append(f"{base}.{alias.name}")

        unique: List[str] = []
        for name in names:
            if name not in unique and name != source.module_name:
                unique.append(name)
        return unique

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def _bind_block(self, body: List[ast.stmt], owner: Symbol, source: SourceFile, members: Dict[str, Symbol]) -> None:
        member_kind = SymbolKind.PROPERTY if owner.kind is SymbolKind.CLASS else SymbolKind.VARIABLE

        for stmt in body:
            if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
                self._bind_function(stmt, owner, source, members)

            elif isinstance(stmt, ast.ClassDef):
                self._bind_class(stmt, owner, source, members)

            elif isinstance(stmt, ast.Assign):
                for target in stmt.targets:
                    if isinstance(target, ast.Name):
                        symbol = Symbol(target.id, member_kind, node=stmt, parent=owner, source=source)
                        symbol.value = stmt.value
                        members.setdefault(target.id, symbol)

            elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                symbol = Symbol(stmt.target.id, member_kind, node=stmt, parent=owner, source=source)
                symbol.annotation = stmt.annotation
                symbol.value = stmt.value
                members[stmt.target.id] = symbol

            elif isinstance(stmt, ast.Import):
                for alias in stmt.names:
                    if alias.asname:
                        symbol = Symbol(alias.asname, SymbolKind.ALIAS, node=stmt, parent=owner, source=source)
                        symbol.target = (alias.name, None)
                    else:
                        head = alias.name.split(".")[0]
                        symbol = Symbol(head, SymbolKind.ALIAS, node=stmt, parent=owner, source=source)
                        symbol.target = (head, None)
                    members[symbol.name] = symbol

            elif isinstance(stmt, ast.ImportFrom):
                base = resolve_relative_import(source.module_name, source.is_package, stmt.level, stmt.module)
                if base is None:
                    continue
                for alias in stmt.names:
                    if alias.name == "*":
                        continue
                    symbol = Symbol(alias.asname or alias.name, SymbolKind.ALIAS, node=stmt, parent=owner, source=source)
                    symbol.target = (base, alias.name)
                    members[symbol.name] = symbol

            elif isinstance(stmt, (ast.For, ast.AsyncFor)):
                if isinstance(stmt.target, ast.Name) and owner.kind is not SymbolKind.CLASS:
                    symbol = Symbol(stmt.target.id, member_kind, node=stmt, parent=owner, source=source)
                    symbol.value = stmt.iter
                    symbol.iterated = True
                    members.setdefault(stmt.target.id, symbol)
                self._bind_block(stmt.body + stmt.orelse, owner, source, members)

            elif isinstance(stmt, (ast.With, ast.AsyncWith)):
                for item in stmt.items:
                    if isinstance(item.optional_vars, ast.Name):
                        symbol = Symbol(item.optional_vars.id, member_kind, node=stmt, parent=owner, source=source)
                        symbol.value = item.context_expr
                        members.setdefault(symbol.name, symbol)
                self._bind_block(stmt.body, owner, source, members)

            elif isinstance(stmt, (ast.If, ast.While)):
                self._bind_block(stmt.body + stmt.orelse, owner, source, members)

            elif isinstance(stmt, ast.Try):
                blocks = stmt.body + stmt.orelse + stmt.finalbody
                for handler in stmt.handlers:
                    blocks = blocks + handler.body
                self._bind_block(blocks, owner, source, members)

    def _bind_function(self, stmt, owner: Symbol, source: SourceFile, members: Dict[str, Symbol]) -> Symbol:
        existing = members.get(stmt.name)
        symbol = Symbol(stmt.name, SymbolKind.FUNCTION, node=stmt, parent=owner, source=source)

        if existing is not None and existing.kind is SymbolKind.FUNCTION:
            symbol.overloads = list(existing.overloads)
        if "overload" in _decorator_names(stmt):
            symbol.overloads.append(stmt)

        for node in symbol.overloads:
            self._node_symbols[node] = symbol
        self._node_symbols[stmt] = symbol
        members[stmt.name] = symbol
        return symbol

    def _bind_class(self, stmt: ast.ClassDef, owner: Symbol, source: SourceFile, members: Dict[str, Symbol]) -> Symbol:
        symbol = Symbol(stmt.name, SymbolKind.CLASS, node=stmt, parent=owner, source=source)
        self._node_symbols[stmt] = symbol
        members[stmt.name] = symbol

        self._bind_block(stmt.body, symbol, source, symbol.members)

        # Instance attributes assigned through ``self`` in __init__
        init = symbol.members.get("__init__")
        if init is not None and init.kind is SymbolKind.FUNCTION:
            init_node = init.node
            arguments = init_node.args.posonlyargs + init_node.args.args
            if arguments:
                self_name = arguments[0].arg
                for node in ast.walk(init_node):
                    if isinstance(node, ast.Assign):
                        targets = node.targets
                        annotation = None
                    elif isinstance(node, ast.AnnAssign):
                        targets = [node.target]
                        annotation = node.annotation
                    else:
                        continue
                    for target in targets:
                        if (
                            isinstance(target, ast.Attribute)
                            and isinstance(target.value, ast.Name)
                            and target.value.id == self_name
                            and target.attr not in symbol.members
                        ):
                            attribute = Symbol(target.attr, SymbolKind.PROPERTY, node=node, parent=symbol, source=source)
                            attribute.annotation = annotation
                            attribute.value = node.value
                            symbol.members[target.attr] = attribute

        return symbol

    def _function_scope(self, node: ast.AST, source: SourceFile) -> Dict[str, Symbol]:
        """Parameters and local bindings of a function or lambda."""
        scope = self._scopes.get(node)
        if scope is not None:
            return scope

        owner = self._node_symbols.get(node)
        if owner is None:
            owner = self._symbol_for_function(node, source)

        scope = {}
        self._scopes[node] = scope

        args = node.args
        positional = args.posonlyargs + args.args
        defaults: List[Optional[ast.expr]] = [None] * (len(positional) - len(args.defaults)) + list(args.defaults)

        ordered: List[Tuple[ast.arg, Optional[ast.expr], str]] = []
        ordered.extend((arg, default, "") for arg, default in zip(positional, defaults))
        if args.vararg is not None:
            ordered.append((args.vararg, None, "*"))
        ordered.extend((arg, default, "") for arg, default in zip(args.kwonlyargs, args.kw_defaults))
        if args.kwarg is not None:
            ordered.append((args.kwarg, None, "**"))

        for arg, default, variadic in ordered:
            parameter = Symbol(arg.arg, SymbolKind.PARAMETER, node=arg, parent=owner, source=source)
            parameter.annotation = arg.annotation
            parameter.value = default
            parameter.variadic = variadic
            scope[arg.arg] = parameter

        if not isinstance(node, ast.Lambda):
            self._bind_block(node.body, owner, source, scope)

        return scope

    def _symbol_for_function(self, node: ast.AST, source: SourceFile) -> Symbol:
        """Symbol of a function or lambda that was not bound at module or class level."""
        symbol = self._node_symbols.get(node)
        if symbol is not None:
            return symbol

        enclosing = self._enclosing_scope(node, source)
        if enclosing is None:
            parent = source.symbol
        elif isinstance(enclosing, ast.ClassDef):
            parent = self._node_symbols.get(enclosing, source.symbol)
        else:
            parent = self._symbol_for_function(enclosing, source)

        name = node.name if not isinstance(node, ast.Lambda) else "<lambda>"
        symbol = Symbol(name, SymbolKind.FUNCTION, node=node, parent=parent, source=source)
        self._node_symbols[node] = symbol
        return symbol

    # ------------------------------------------------------------------
    # Name and symbol resolution
    # ------------------------------------------------------------------

    def _enclosing_scope(self, node: ast.AST, source: SourceFile) -> Optional[ast.AST]:
        current = source.parent_of(node)
        while current is not None and not isinstance(current, SCOPE_NODES):
            current = source.parent_of(current)
        return current

    def lookup_name(self, name: str, node: ast.AST, source: SourceFile) -> Optional[Symbol]:
        """Resolve a name as seen from ``node``, following imports."""
        scope_node = self._enclosing_scope(node, source)
        first = True

        while scope_node is not None:
            if isinstance(scope_node, FUNCTION_NODES):
                symbol = self._function_scope(scope_node, source).get(name)
                if symbol is not None:
                    return self.resolve_alias(symbol)
            elif first:
                # Class bodies are only visible to their direct statements
                owner = self._node_symbols.get(scope_node)
                if owner is not None and name in owner.members:
                    return self.resolve_alias(owner.members[name])
            first = False
            scope_node = self._enclosing_scope(scope_node, source)

        return self.resolve_alias(source.symbol.members.get(name))

    def resolve_alias(self, symbol: Optional[Symbol]) -> Optional[Symbol]:
        """
        Follow import aliases to the declaration they name.

        Aliases of names from external modules resolve to themselves.
        """
        seen: Set[int] = set()
        while symbol is not None and symbol.kind is SymbolKind.ALIAS:
            if id(symbol) in seen:
                return None
            seen.add(id(symbol))

            module_name, attribute = symbol.target
            module = self.get_module(module_name)
            if module is None:
                return symbol
            if attribute is None:
                return module

            member = module.members.get(attribute)
            if member is None or member is symbol:
                return self.get_module(f"{module_name}.{attribute}")
            symbol = member
        return symbol

    def module_member(self, module: Symbol, name: str) -> Optional[Symbol]:
        member = self.resolve_alias(module.members.get(name))
        if member is None:
            member = self.get_module(f"{module.module_name}.{name}")
        return member

    def class_member(self, cls: Symbol, name: str) -> Optional[Symbol]:
        """Look a member up on a class and its in-context base classes."""
        for klass in self.class_mro(cls):
            if name in klass.members:
                return self.resolve_alias(klass.members[name])
        return None

    def class_bases(self, cls: Symbol) -> List[Symbol]:
        bases: List[Symbol] = []
        for base in cls.node.bases:
            if isinstance(base, ast.Subscript):
                base = base.value
            symbol = self.resolve_expression_symbol(base, cls.source)
            if symbol is not None and symbol.kind is SymbolKind.CLASS:
                bases.append(symbol)
        return bases

    def class_mro(self, cls: Symbol) -> List[Symbol]:
        """Depth-first linearisation of a class and its in-context bases."""
        order: List[Symbol] = []

        def _visit(klass: Symbol) -> None:
            if klass in order:
                return
            order.append(klass)
            for base in self.class_bases(klass):
                _visit(base)

        _visit(cls)
        return order

    def resolve_expression_symbol(self, expr: ast.expr, source: SourceFile) -> Optional[Symbol]:
        """Resolve a name or dotted attribute chain to a symbol."""
        if isinstance(expr, ast.Name):
            return self.lookup_name(expr.id, expr, source)
        if isinstance(expr, ast.Attribute):
            owner = self.resolve_expression_symbol(expr.value, source)
            if owner is None:
                return None
            if owner.kind is SymbolKind.MODULE:
                return self.module_member(owner, expr.attr)
            if owner.kind is SymbolKind.CLASS:
                return self.class_member(owner, expr.attr)
        return None

    def external_name(self, expr: ast.expr, source: SourceFile) -> Optional[str]:
        """
        Name of a construct that lives outside the context.

        ``typing.List``, ``List`` imported from typing, and unbound builtins
        such as ``str`` all yield their plain name.
        """
        if isinstance(expr, ast.Name):
            symbol = self.lookup_name(expr.id, expr, source)
            if symbol is None:
                return expr.id
            if symbol.kind is SymbolKind.ALIAS:
                module_name, attribute = symbol.target
                return attribute or module_name.rsplit(".", 1)[-1]
            return None
        if isinstance(expr, ast.Attribute):
            if self.external_name(expr.value, source) is not None:
                return expr.attr
        return None

    # ------------------------------------------------------------------
    # Oracle queries
    # ------------------------------------------------------------------

    def origin_path(self, symbol: Symbol) -> Tuple[str, ...]:
        """Qualified origin path of a declaration."""
        return symbol.origin

    def is_value_module(self, symbol: Optional[Symbol]) -> bool:
        """Check whether a module binds at least one runtime value."""
        if symbol is None or symbol.kind is not SymbolKind.MODULE:
            return False
        for member in symbol.members.values():
            if member.kind in (SymbolKind.FUNCTION, SymbolKind.CLASS):
                return True
            if member.kind is SymbolKind.VARIABLE and member.value is not None:
                return True
        return False

    def get_export(self, module: Symbol, name: str) -> Optional[Symbol]:
        """Look up a named export of a module symbol."""
        member = self.resolve_alias(module.members.get(name))
        if member is not None and member.kind is SymbolKind.ALIAS:
            return None
        return member

    def resolve_signature(self, call: ast.Call, source: SourceFile) -> Optional[Signature]:
        """Resolve the signature a call expression binds to."""
        callee = self.contextual_type(call.func, source)
        signatures = self.call_signatures(callee)
        return signatures[0] if signatures else None

    def constant_value(self, expr: ast.expr, source: SourceFile) -> Any:
        """
        Evaluate an expression as a compile-time constant.

        Supports string and numeric literals, enum members and ``Final``
        attributes. Returns None when the expression is not constant.
        """
        if isinstance(expr, ast.Constant) and not isinstance(expr.value, bool):
            if isinstance(expr.value, (str, int, float)):
                return expr.value
            return None

        if (
            isinstance(expr, ast.UnaryOp)
            and isinstance(expr.op, ast.USub)
            and isinstance(expr.operand, ast.Constant)
            and isinstance(expr.operand.value, (int, float))
            and not isinstance(expr.operand.value, bool)
        ):
            return -expr.operand.value

        if not isinstance(expr, ast.Attribute):
            return None

        owner = self.resolve_expression_symbol(expr.value, source)
        if owner is None:
            return None

        if owner.kind is SymbolKind.CLASS:
            if self.is_enum_class(owner):
                return self.enum_values(owner).get(expr.attr)
            member = self.class_member(owner, expr.attr)
        elif owner.kind is SymbolKind.MODULE:
            member = self.module_member(owner, expr.attr)
        else:
            return None

        if member is None or member.annotation is None or member.value is None:
            return None
        if self._annotation_wrapper(member.annotation, member.source) != "Final":
            return None
        return self.constant_value(member.value, member.source)

    def contextual_type(self, expr: ast.expr, source: SourceFile) -> TypeHandle:
        """Infer the type of an expression at its location."""
        if isinstance(expr, ast.Constant):
            value = expr.value
            if value is None:
                return NONE
            if value is Ellipsis:
                return ANY
            return PrimitiveHandle(PRIMITIVE_NAMES.get(type(value).__name__, "Any"))

        if isinstance(expr, ast.JoinedStr):
            return PrimitiveHandle("str")

        if isinstance(expr, (ast.List, ast.Set, ast.Tuple)):
            kind = {ast.List: "list", ast.Set: "set", ast.Tuple: "tuple"}[type(expr)]
            elements = [self.contextual_type(e, source) for e in expr.elts if not isinstance(e, ast.Starred)]
            if not elements:
                return GenericHandle(kind, (ANY,))
            return GenericHandle(kind, (make_union(elements),))

        if isinstance(expr, ast.Dict):
            keys_are_names = all(
                isinstance(k, ast.Constant) and isinstance(k.value, str) for k in expr.keys
            )
            if keys_are_names and expr.keys:
                return ObjectLiteralHandle(tuple(
                    (k.value, self.contextual_type(v, source)) for k, v in zip(expr.keys, expr.values)
                ))
            keys = [self.contextual_type(k, source) for k in expr.keys if k is not None]
            values = [self.contextual_type(v, source) for v in expr.values]
            return GenericHandle("dict", (make_union(keys), make_union(values)))

        if isinstance(expr, (ast.ListComp, ast.SetComp, ast.GeneratorExp)):
            return GenericHandle("set" if isinstance(expr, ast.SetComp) else "list", (ANY,))

        if isinstance(expr, ast.Name):
            symbol = self.lookup_name(expr.id, expr, source)
            if symbol is None:
                return ANY
            return self.type_of_symbol(symbol)

        if isinstance(expr, ast.Attribute):
            return self._member_type(self.contextual_type(expr.value, source), expr.attr)

        if isinstance(expr, ast.Call):
            signature = self.resolve_signature(expr, source)
            return signature.return_type if signature is not None else ANY

        if isinstance(expr, ast.Await):
            awaited = self.contextual_type(expr.value, source)
            if self.is_deferred(awaited) and awaited.args:
                return awaited.args[-1]
            return ANY

        if isinstance(expr, ast.Subscript):
            container = self.contextual_type(expr.value, source)
            if isinstance(container, GenericHandle) and container.args:
                if container.name == "dict" and len(container.args) == 2:
                    return container.args[1]
                if container.name in ("list", "tuple"):
                    return container.args[0]
            if isinstance(container, ObjectLiteralHandle) and isinstance(expr.slice, ast.Constant):
                return dict(container.fields).get(expr.slice.value, ANY)
            return ANY

        if isinstance(expr, ast.IfExp):
            return make_union([self.contextual_type(expr.body, source), self.contextual_type(expr.orelse, source)])

        if isinstance(expr, (ast.Compare, ast.BoolOp)) or (
            isinstance(expr, ast.UnaryOp) and isinstance(expr.op, ast.Not)
        ):
            return PrimitiveHandle("bool")

        if isinstance(expr, ast.UnaryOp):
            return self.contextual_type(expr.operand, source)

        if isinstance(expr, ast.BinOp):
            left = self.contextual_type(expr.left, source)
            right = self.contextual_type(expr.right, source)
            if left.key == right.key:
                return left
            if {left.key, right.key} == {"int", "float"}:
                return PrimitiveHandle("float")
            return ANY

        if isinstance(expr, ast.Lambda):
            return CallableHandle(self._symbol_for_function(expr, source))

        return ANY

    def type_of_symbol(self, symbol: Optional[Symbol]) -> TypeHandle:
        """Type of a declared symbol."""
        symbol = self.resolve_alias(symbol)
        if symbol is None or symbol.kind is SymbolKind.ALIAS:
            return ANY
        if symbol.kind is SymbolKind.MODULE:
            return ModuleHandle(symbol)
        if symbol.kind is SymbolKind.CLASS:
            return ClassObjectHandle(symbol)
        if symbol.kind is SymbolKind.FUNCTION:
            return CallableHandle(symbol)

        if symbol.kind is SymbolKind.PROPERTY and self._is_enum_member(symbol):
            return InstanceHandle(symbol.parent)

        marker = id(symbol)
        if marker in self._inferring:
            return ANY
        self._inferring.add(marker)
        try:
            return self._declared_type(symbol)
        finally:
            self._inferring.discard(marker)

    def _declared_type(self, symbol: Symbol) -> TypeHandle:
        source = symbol.source
        if symbol.annotation is not None and self._annotation_wrapper(symbol.annotation, source) != "Final":
            declared = self.type_from_annotation(symbol.annotation, source)
        elif symbol.value is not None:
            declared = self.contextual_type(symbol.value, source)
            if symbol.iterated:
                declared = self._element_type(declared)
        else:
            declared = ANY

        if symbol.variadic == "*":
            return GenericHandle("tuple", (declared,))
        if symbol.variadic == "**":
            return GenericHandle("dict", (PrimitiveHandle("str"), declared))
        return declared

    def call_signatures(self, callee: TypeHandle) -> List[Signature]:
        """All call signatures of a callable type (one per overload)."""
        if isinstance(callee, CallableHandle):
            symbol = callee.symbol
            nodes = symbol.overloads or [symbol.node]
            return [self._signature(symbol, node, callee.bound, callee.owner) for node in nodes]

        if isinstance(callee, ClassObjectHandle):
            instance = InstanceHandle(callee.cls)
            init = self.class_member(callee.cls, "__init__")
            if init is None or init.kind is not SymbolKind.FUNCTION:
                return [Signature(declaration=callee.cls, return_type=instance, node=callee.cls.node)]
            nodes = init.overloads or [init.node]
            signatures = []
            for node in nodes:
                signature = self._signature(init, node, True, instance)
                signature.return_type = instance
                signatures.append(signature)
            return signatures

        if isinstance(callee, InstanceHandle):
            call = self.class_member(callee.cls, "__call__")
            if call is not None and call.kind is SymbolKind.FUNCTION:
                return self.call_signatures(CallableHandle(call, True, callee))

        return []

    def _signature(self, symbol: Symbol, node: ast.AST, bound: bool, owner: Optional[InstanceHandle]) -> Signature:
        source = symbol.source
        scope = self._function_scope(node, source)
        arguments = node.args
        names = [a.arg for a in arguments.posonlyargs + arguments.args]
        if arguments.vararg is not None:
            names.append(arguments.vararg.arg)
        names.extend(a.arg for a in arguments.kwonlyargs)
        if arguments.kwarg is not None:
            names.append(arguments.kwarg.arg)

        parameters = [scope[name] for name in names]
        decorators = _decorator_names(node) if not isinstance(node, ast.Lambda) else set()
        if bound and parameters and "staticmethod" not in decorators:
            parameters = parameters[1:]

        if isinstance(node, ast.Lambda):
            return_type = self.contextual_type(node.body, source)
        elif node.returns is not None:
            return_type = self.type_from_annotation(node.returns, source)
            if isinstance(node, ast.AsyncFunctionDef):
                return_type = GenericHandle("Awaitable", (return_type,))
        elif isinstance(node, ast.AsyncFunctionDef):
            return_type = GenericHandle("Awaitable", ())
        else:
            return_type = ANY

        if owner is not None and owner.args:
            return_type = self.substitute(return_type, self.type_parameter_map(owner))

        return Signature(declaration=symbol, parameters=parameters, return_type=return_type, node=node)

    def type_arguments(self, t: TypeHandle) -> tuple:
        if isinstance(t, (GenericHandle, InstanceHandle)):
            return t.args
        return ()

    def is_deferred(self, t: TypeHandle) -> bool:
        """Check whether a type is a deferred-result wrapper (Awaitable[T] and co)."""
        return isinstance(t, GenericHandle) and t.name in DEFERRED_NAMES

    def properties_of_type(self, t: TypeHandle) -> Dict[str, TypeHandle]:
        """
        Public data members of an object-shaped type, in declaration order.

        Base class members come first. Methods, ``ClassVar`` attributes,
        unannotated class attributes and names starting with ``_`` are
        left out; ``@property`` methods are included.
        """
        if isinstance(t, ObjectLiteralHandle):
            return dict(t.fields)
        if not isinstance(t, InstanceHandle) or self.is_enum_class(t.cls):
            return {}

        mapping = self.type_parameter_map(t)
        properties: Dict[str, TypeHandle] = {}

        for klass in reversed(self.class_mro(t.cls)):
            for name, member in klass.members.items():
                if name.startswith("_"):
                    continue
                if member.kind is SymbolKind.FUNCTION:
                    if "property" not in _decorator_names(member.node):
                        continue
                    if member.node.returns is None:
                        member_type = ANY
                    else:
                        member_type = self.type_from_annotation(member.node.returns, member.source)
                elif member.kind is SymbolKind.PROPERTY and self._is_data_member(klass, member):
                    member_type = self.type_of_symbol(member)
                else:
                    continue
                properties[name] = self.substitute(member_type, mapping)

        return properties

    def _is_data_member(self, klass: Symbol, member: Symbol) -> bool:
        if member.annotation is not None:
            return self._annotation_wrapper(member.annotation, member.source) != "ClassVar"
        # unannotated assignments directly in the class body are class attributes
        return self._enclosing_scope(member.node, member.source) is not klass.node

    def is_enum_class(self, cls: Symbol) -> bool:
        for klass in self.class_mro(cls):
            for base in klass.node.bases:
                if self.external_name(base, klass.source) in ENUM_BASES:
                    return True
        return False

    def enum_members(self, t: TypeHandle) -> Optional[Dict[str, Any]]:
        """Member name to constant value for an enum type, None for other types."""
        if isinstance(t, InstanceHandle) and self.is_enum_class(t.cls):
            return dict(self.enum_values(t.cls))
        return None

    def enum_values(self, cls: Symbol) -> Dict[str, Any]:
        """Evaluate the member values of an enum class, including ``auto()``."""
        cached = self._enum_values.get(cls)
        if cached is not None:
            return cached

        string_enum = any(
            self.external_name(base, cls.source) == "StrEnum" for base in cls.node.bases
        )
        values: Dict[str, Any] = {}
        previous: Any = 0

        for name, member in cls.members.items():
            if member.kind is not SymbolKind.PROPERTY or not self._is_enum_member(member):
                continue
            value_node = member.value
            if isinstance(value_node, ast.Call) and self.external_name(value_node.func, cls.source) == "auto":
                if string_enum:
                    value = name.lower()
                else:
                    value = previous + 1 if isinstance(previous, int) else 1
            else:
                value = self.constant_value(value_node, cls.source)
                if value is None:
                    value = cls.source.text_of(value_node)
            values[name] = value
            previous = value

        self._enum_values[cls] = values
        return values

    def _is_enum_member(self, symbol: Symbol) -> bool:
        return (
            symbol.parent is not None
            and symbol.parent.kind is SymbolKind.CLASS
            and not symbol.name.startswith("_")
            and symbol.value is not None
            and isinstance(symbol.node, (ast.Assign, ast.AnnAssign))
            and self._enclosing_scope(symbol.node, symbol.source) is symbol.parent.node
            and self.is_enum_class(symbol.parent)
        )

    def type_to_string(self, t: TypeHandle) -> str:
        """Render a type for diagnostics."""
        if isinstance(t, PrimitiveHandle):
            return t.name
        if isinstance(t, GenericHandle):
            if not t.args:
                return t.name
            return f"{t.name}[{', '.join(self.type_to_string(a) for a in t.args)}]"
        if isinstance(t, InstanceHandle):
            if not t.args:
                return t.cls.name
            return f"{t.cls.name}[{', '.join(self.type_to_string(a) for a in t.args)}]"
        if isinstance(t, ObjectLiteralHandle):
            return "{" + ", ".join(f"{n}: {self.type_to_string(v)}" for n, v in t.fields) + "}"
        if isinstance(t, UnionHandle):
            return " | ".join(self.type_to_string(m) for m in t.members)
        if isinstance(t, TypeVarHandle):
            return t.name
        if isinstance(t, CallableHandle):
            signatures = self.call_signatures(t)
            if not signatures:
                return t.symbol.name
            return self.signature_to_string(signatures[0])
        if isinstance(t, ClassObjectHandle):
            return f"type[{t.cls.name}]"
        if isinstance(t, ModuleHandle):
            return f"module {t.module.qualified_name}"
        return t.key

    def signature_to_string(self, signature: Signature) -> str:
        parameters = ", ".join(
            f"{p.name}: {self.type_to_string(self.type_of_symbol(p))}" for p in signature.parameters
        )
        return f"({parameters}) -> {self.type_to_string(signature.return_type)}"

    def node_text(self, node: ast.AST, source: SourceFile) -> str:
        """Exact source text of a node."""
        return source.text_of(node)

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def type_from_annotation(self, expr: Optional[ast.expr], source: SourceFile) -> TypeHandle:
        """Turn an annotation expression into a type handle."""
        if expr is None:
            return ANY

        if isinstance(expr, ast.Constant):
            if expr.value is None:
                return NONE
            if isinstance(expr.value, str):
                try:
                    parsed = ast.parse(expr.value, mode="eval").body
                except SyntaxError:
                    return ANY
                source.parents[parsed] = source.parent_of(expr) or source.tree
                for parent in ast.walk(parsed):
                    for child in ast.iter_child_nodes(parent):
                        source.parents[child] = parent
                return self.type_from_annotation(parsed, source)
            return ANY

        if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
            return make_union([
                self.type_from_annotation(expr.left, source),
                self.type_from_annotation(expr.right, source),
            ])

        if isinstance(expr, (ast.Name, ast.Attribute)):
            symbol = self.resolve_expression_symbol(expr, source)
            if symbol is not None and symbol.kind is SymbolKind.CLASS:
                return InstanceHandle(symbol)
            if symbol is not None and symbol.kind in (SymbolKind.VARIABLE, SymbolKind.PROPERTY):
                return self._alias_type(symbol)
            return self._builtin_type(self.external_name(expr, source), ())

        if isinstance(expr, ast.Subscript):
            elements = expr.slice.elts if isinstance(expr.slice, ast.Tuple) else [expr.slice]

            symbol = self.resolve_expression_symbol(expr.value, source)
            if symbol is not None and symbol.kind is SymbolKind.CLASS:
                return InstanceHandle(symbol, tuple(self.type_from_annotation(e, source) for e in elements))

            name = self.external_name(expr.value, source)
            if name in WRAPPER_NAMES:
                return self.type_from_annotation(elements[0], source)
            if name == "Optional":
                return make_union([self.type_from_annotation(elements[0], source), NONE])
            if name == "Union":
                return make_union([self.type_from_annotation(e, source) for e in elements])
            if name == "Literal":
                return make_union([self.contextual_type(e, source) for e in elements])

            args = tuple(
                self.type_from_annotation(e, source)
                for e in elements
                if not (isinstance(e, ast.Constant) and e.value is Ellipsis)
            )
            return self._builtin_type(name, args)

        return ANY

    def _alias_type(self, symbol: Symbol) -> TypeHandle:
        """Type named by a module-level alias or ``TypeVar`` declaration."""
        value = symbol.value
        if value is None:
            return ANY
        if isinstance(value, ast.Call) and self.external_name(value.func, symbol.source) == "TypeVar":
            return TypeVarHandle(symbol.name)

        marker = id(symbol)
        if marker in self._inferring:
            return ANY
        self._inferring.add(marker)
        try:
            return self.type_from_annotation(value, symbol.source)
        finally:
            self._inferring.discard(marker)

    def _annotation_wrapper(self, expr: ast.expr, source: SourceFile) -> Optional[str]:
        """Return ``Final``/``ClassVar``/... when an annotation uses such a qualifier."""
        target = expr.value if isinstance(expr, ast.Subscript) else expr
        name = self.external_name(target, source)
        return name if name in WRAPPER_NAMES else None

    def _builtin_type(self, name: Optional[str], args: tuple) -> TypeHandle:
        if name is None:
            return ANY
        if name in PRIMITIVE_NAMES:
            return PrimitiveHandle(PRIMITIVE_NAMES[name])
        if name in SEQUENCE_NAMES:
            return GenericHandle(SEQUENCE_NAMES[name], args)
        if name in MAPPING_NAMES:
            return GenericHandle("dict", args)
        if name in DEFERRED_NAMES:
            return GenericHandle(name, args)
        return ANY

    # ------------------------------------------------------------------
    # Generics
    # ------------------------------------------------------------------

    def type_parameters(self, cls: Symbol) -> List[str]:
        """Names of the type variables a generic class is parameterised by."""
        declared: List[str] = []
        inherited: List[str] = []
        for base in cls.node.bases:
            if not isinstance(base, ast.Subscript):
                continue
            elements = base.slice.elts if isinstance(base.slice, ast.Tuple) else [base.slice]
            names = [
                t.name for t in (self.type_from_annotation(e, cls.source) for e in elements)
                if isinstance(t, TypeVarHandle)
            ]
            if self.external_name(base.value, cls.source) in ("Generic", "Protocol"):
                declared.extend(names)
            else:
                inherited.extend(n for n in names if n not in inherited)
        return declared or inherited

    def type_parameter_map(self, t: InstanceHandle) -> Dict[str, TypeHandle]:
        mapping: Dict[str, TypeHandle] = {}
        for klass in self.class_mro(t.cls):
            for name in self.type_parameters(klass):
                mapping.setdefault(name, ANY)
        for name, argument in zip(self.type_parameters(t.cls), t.args):
            mapping[name] = argument
        return mapping

    def substitute(self, t: TypeHandle, mapping: Dict[str, TypeHandle]) -> TypeHandle:
        """Replace type variables by their bound arguments."""
        if not mapping:
            return t
        if isinstance(t, TypeVarHandle):
            return mapping.get(t.name, t)
        if isinstance(t, GenericHandle):
            return GenericHandle(t.name, tuple(self.substitute(a, mapping) for a in t.args))
        if isinstance(t, InstanceHandle) and t.args:
            return InstanceHandle(t.cls, tuple(self.substitute(a, mapping) for a in t.args))
        if isinstance(t, UnionHandle):
            return make_union([self.substitute(m, mapping) for m in t.members])
        if isinstance(t, ObjectLiteralHandle):
            return ObjectLiteralHandle(tuple((n, self.substitute(v, mapping)) for n, v in t.fields))
        return t

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _member_type(self, base: TypeHandle, name: str) -> TypeHandle:
        if isinstance(base, ModuleHandle):
            return self.type_of_symbol(self.module_member(base.module, name))

        if isinstance(base, ClassObjectHandle):
            member = self.class_member(base.cls, name)
            if member is None:
                return ANY
            if member.kind is SymbolKind.FUNCTION and "classmethod" in _decorator_names(member.node):
                return CallableHandle(member, True)
            return self.type_of_symbol(member)

        if isinstance(base, InstanceHandle):
            member = self.class_member(base.cls, name)
            if member is None:
                return ANY
            if member.kind is SymbolKind.FUNCTION:
                if "property" in _decorator_names(member.node):
                    returns = self.type_from_annotation(member.node.returns, member.source)
                    return self.substitute(returns, self.type_parameter_map(base))
                return CallableHandle(member, True, base)
            return self.substitute(self.type_of_symbol(member), self.type_parameter_map(base))

        if isinstance(base, UnionHandle):
            return make_union([self._member_type(m, name) for m in base.members if m.key != "None"])

        return ANY

    def _element_type(self, container: TypeHandle) -> TypeHandle:
        if isinstance(container, GenericHandle) and container.args:
            return container.args[0]
        return ANY


def _decorator_names(node: ast.AST) -> Set[str]:
    names: Set[str] = set()
    for decorator in getattr(node, "decorator_list", []):
        if isinstance(decorator, ast.Call):
            decorator = decorator.func
        if isinstance(decorator, ast.Name):
            names.add(decorator.id)
        elif isinstance(decorator, ast.Attribute):
            names.add(decorator.attr)
    return names


def iter_calls(node: ast.AST) -> Iterator[ast.Call]:
    """Depth-first, pre-order iteration over every call expression below ``node``."""
    if isinstance(node, ast.Call):
        yield node
    for child in ast.iter_child_nodes(node):
        yield from iter_calls(child)
