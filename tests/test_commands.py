"""Tests for user command extraction."""

import pytest

from catalog.types import ObjectType, PrimitiveType, ReferenceType
from scanner.builder import build_catalog
from scanner.config import AnalyzerConfig
from scanner.errors import (
    HandlerNotExported,
    MissingReturnTypeArgument,
    NotAModuleFile,
    OverloadedHandler,
)


def command_project(make_project, source):
    return make_project({"modules/chat/commands/say.py": source})


class TestFakeProjectCommands:
    """Tests against the bundled fake project."""

    def test_commands(self, fake_project):
        """Test that both commands of module ``test`` are extracted in order."""
        modules = build_catalog(fake_project)

        assert [m.name for m in modules] == ["test"]
        assert [c.name for c in modules[0].usercommands] == ["play", "wait"]

    def test_module_export(self, fake_project):
        """Test the handler exported as a top-level function."""
        play = build_catalog(fake_project)[0].usercommands[0]

        assert [(p.name, p.type) for p in play.parameters] == [
            ("state", ReferenceType("mage.core.IState", "IState")),
            ("a", PrimitiveType("string")),
        ]
        assert play.return_type == ObjectType(
            fields={
                "name": PrimitiveType("string"),
                "password": PrimitiveType("string"),
                "count": PrimitiveType("integer"),
            },
            name="A",
        )

    def test_assignment_export(self, fake_project):
        """Test the handler exported inside the export object."""
        wait = build_catalog(fake_project)[0].usercommands[1]

        assert [(p.name, p.type) for p in wait.parameters] == [("state", PrimitiveType("any"))]
        assert wait.return_type == ObjectType(fields={"name": PrimitiveType("string")}, name="B")

    def test_skip_context_parameter(self, fake_project):
        """Test leaving the state parameter out."""
        config = AnalyzerConfig(skip_context_parameter=True)
        play = build_catalog(fake_project, config)[0].usercommands[0]

        assert [p.name for p in play.parameters] == ["a"]


class TestExportConventions:
    """Tests that both export conventions describe a handler identically."""

    HANDLER = """
        from typing import List, Optional

        import mage


        class Reply:
            text: str
            tags: List[str]
            reply_to: Optional[int]


        async def {name}(state: mage.core.IState, text: str, limit: int = 10) -> Reply:
            return Reply()
    """

    def test_export_style_transparency(self, make_project):
        """Test that module export and export object give the same command."""
        module_export = command_project(make_project, self.HANDLER.format(name="execute"))
        object_export = command_project(make_project, self.HANDLER.format(name="handle") + """
        export = {"acl": ["*"], "execute": handle}
        """)

        first = build_catalog(module_export)[0]
        second = build_catalog(object_export)[0]

        assert first.usercommands[0].to_dict() == second.usercommands[0].to_dict()
        assert [t.to_dict() for t in first.types] == [t.to_dict() for t in second.types]

    def test_export_constructor_keywords(self, make_project):
        """Test a handler passed as a keyword to the export constructor."""
        root = command_project(make_project, """
            import mage


            async def handle(state) -> int:
                return 1


            export = mage.core.IUserCommand(
                acl=["*"],
                execute=handle,
            )
        """)

        command = build_catalog(root)[0].usercommands[0]

        assert command.return_type == PrimitiveType("integer")

    def test_depth_first_match(self, make_project):
        """Test that the first handler found depth first wins."""
        root = command_project(make_project, """
            async def first(state) -> int:
                return 1


            async def second(state) -> str:
                return "x"


            export = {"meta": {"execute": first}, "execute": second}
        """)

        command = build_catalog(root)[0].usercommands[0]

        assert command.return_type == PrimitiveType("integer")

    def test_export_dict_entry(self, make_project):
        """Test a handler nested inside the export dict."""
        root = command_project(make_project, """
            from typing import Awaitable


            def handle(state, count: int) -> Awaitable[int]:
                ...


            export = {"acl": ["*"], "options": {"execute": handle}}
        """)

        command = build_catalog(root)[0].usercommands[0]

        assert [p.name for p in command.parameters] == ["state", "count"]
        assert command.return_type == PrimitiveType("integer")

    def test_command_name_from_file(self, make_project):
        """Test that the command name is the file name, not the handler name."""
        root = command_project(make_project, """
            async def run(state) -> str:
                return ""


            export = {"execute": run}
        """)

        assert build_catalog(root)[0].usercommands[0].name == "say"


class TestHandlerErrors:
    """Tests for fatal handler errors."""

    def test_not_a_module_file(self, make_project):
        """Test a command file that exports no runtime value."""
        root = command_project(make_project, """
            \"\"\"Nothing to see here.\"\"\"
            from typing import Any

            handler: Any
        """)

        with pytest.raises(NotAModuleFile) as excinfo:
            build_catalog(root)

        assert excinfo.value.module_name == "chat"
        assert excinfo.value.file_path == "modules/chat/commands/say.py"

    def test_handler_not_exported(self, make_project):
        """Test a command file without an execute handler."""
        root = command_project(make_project, """
            async def run(state) -> str:
                return ""
        """)

        with pytest.raises(HandlerNotExported) as excinfo:
            build_catalog(root)

        assert "does not seem to be exported" in str(excinfo.value)

    def test_handler_not_callable(self, make_project):
        """Test an execute export that is not a function."""
        root = command_project(make_project, """
            execute = 5
        """)

        with pytest.raises(HandlerNotExported) as excinfo:
            build_catalog(root)

        assert "is not a function" in str(excinfo.value)

    def test_overloaded_handler(self, make_project):
        """Test that a handler with two signatures is rejected."""
        root = command_project(make_project, """
            from typing import overload

            import mage


            @overload
            async def execute(state: mage.core.IState, value: str) -> str: ...
            @overload
            async def execute(state: mage.core.IState, value: int) -> int: ...
            async def execute(state, value):
                return value
        """)

        with pytest.raises(OverloadedHandler):
            build_catalog(root)

    def test_missing_return_annotation(self, make_project):
        """Test that an async handler without return annotation is rejected."""
        root = command_project(make_project, """
            async def execute(state):
                return 1
        """)

        with pytest.raises(MissingReturnTypeArgument) as excinfo:
            build_catalog(root)

        assert excinfo.value.module_name == "chat"

    def test_bare_awaitable(self, make_project):
        """Test that a deferred result without type argument is rejected."""
        root = command_project(make_project, """
            from typing import Awaitable


            def execute(state) -> Awaitable:
                ...
        """)

        with pytest.raises(MissingReturnTypeArgument):
            build_catalog(root)

    def test_two_type_arguments(self, make_project):
        """Test that a deferred result with two type arguments is rejected."""
        root = command_project(make_project, """
            from typing import Any, Coroutine


            def execute(state) -> Coroutine[Any, str]:
                ...
        """)

        with pytest.raises(MissingReturnTypeArgument):
            build_catalog(root)

    def test_not_deferred(self, make_project):
        """Test that a synchronous handler is rejected."""
        root = command_project(make_project, """
            def execute(state) -> str:
                return ""
        """)

        with pytest.raises(MissingReturnTypeArgument):
            build_catalog(root)
