"""Tests for message extraction from emit and broadcast calls."""

import pytest

from catalog.types import ArrayType, PrimitiveType
from scanner.builder import build_catalog
from scanner.errors import UnresolvableEventName


COMMAND = """
    import mage

    async def execute(state: mage.core.IState) -> str:
        return "ok"
"""


def messages_of(make_project, module_source):
    root = make_project({
        "modules/chat/__init__.py": module_source,
        "modules/chat/commands/say.py": COMMAND,
    })
    modules = build_catalog(root)
    return modules[0].messages


class TestFakeProjectMessages:
    """Tests against the bundled fake project."""

    def test_messages(self, fake_project):
        """Test the enum and literal events of module ``test``."""
        modules = build_catalog(fake_project)
        messages = modules[0].messages

        assert [(m.id, m.value) for m in messages] == [
            ("SUCCESS", 5000),
            ("TESTEVENT", "TESTEVENT"),
        ]
        assert messages[0].type == PrimitiveType("integer")
        assert messages[1].type == PrimitiveType("string")


class TestEventNames:
    """Tests for event name resolution."""

    def test_enum_member(self, make_project):
        """Test that an enum member resolves to its name and value."""
        messages = messages_of(make_project, """
            from enum import Enum

            import mage


            class Topic(str, Enum):
                JOINED = "user-joined"


            def joined(state: mage.core.IState, user: str):
                state.broadcast(Topic.JOINED, {"user": user})
        """)

        assert len(messages) == 1
        assert messages[0].id == "JOINED"
        assert messages[0].value == "user-joined"
        assert messages[0].type.to_dict() == {
            "kind": "object",
            "fields": {"user": {"kind": "primitive", "name": "string"}},
        }

    def test_final_constant(self, make_project):
        """Test that a Final class attribute is a constant event name."""
        messages = messages_of(make_project, """
            from typing import Final

            import mage


            class Topics:
                READY: Final = "ready"


            def ready(state: mage.core.IState):
                state.broadcast(Topics.READY)
        """)

        assert (messages[0].id, messages[0].value) == ("READY", "ready")
        assert messages[0].type == PrimitiveType("null")

    def test_numeric_literals(self, make_project):
        """Test that numeric literals use their source text."""
        messages = messages_of(make_project, """
            import mage


            def codes(state: mage.core.IState):
                state.broadcast(42, None)
                state.emit("actor", -1, [1, 2])
        """)

        assert [(m.id, m.value) for m in messages] == [("42", "42"), ("-1", "-1")]
        assert messages[1].type == ArrayType(PrimitiveType("integer"))

    def test_keyword_arguments(self, make_project):
        """Test that keyword arguments are bound by parameter name."""
        messages = messages_of(make_project, """
            import mage


            def ready(state: mage.core.IState):
                state.emit("actor", data=True, event="READY")
        """)

        assert (messages[0].id, messages[0].type) == ("READY", PrimitiveType("boolean"))

    def test_nested_call(self, make_project):
        """Test that emit calls nested in other calls are found."""
        messages = messages_of(make_project, """
            import mage


            def wrap(value):
                return value


            def ready(state: mage.core.IState):
                wrap(state.broadcast("READY", 1))
        """)

        assert [m.id for m in messages] == ["READY"]

    def test_duplicates_are_kept(self, make_project):
        """Test that the same event emitted twice yields two messages."""
        messages = messages_of(make_project, """
            import mage


            def twice(state: mage.core.IState):
                state.broadcast("READY", 1)
                state.broadcast("READY", 2)
        """)

        assert [m.id for m in messages] == ["READY", "READY"]

    def test_variable_event_name(self, make_project):
        """Test that a variable event name aborts the parse."""
        root = make_project({
            "modules/chat/__init__.py": """
                import mage


                def announce(state: mage.core.IState, name: str):
                    state.broadcast(name, {"text": "hi"})
            """,
            "modules/chat/commands/say.py": COMMAND,
        })

        with pytest.raises(UnresolvableEventName) as excinfo:
            build_catalog(root)

        error = excinfo.value
        assert error.module_name == "chat"
        assert error.source_text == 'state.broadcast(name, {"text": "hi"})'
        assert error.file_path == "modules/chat/__init__.py"
        assert "chat" in str(error)
        assert 'state.broadcast(name, {"text": "hi"})' in str(error)

    def test_non_constant_attribute(self, make_project):
        """Test that a plain attribute is not a constant event name."""
        root = make_project({
            "modules/chat/__init__.py": """
                import mage


                class Settings:
                    topic = "ready"


                def ready(state: mage.core.IState):
                    state.broadcast(Settings.topic)
            """,
            "modules/chat/commands/say.py": COMMAND,
        })

        with pytest.raises(UnresolvableEventName):
            build_catalog(root)


class TestLookalikes:
    """Tests that only framework calls are collected."""

    def test_local_function_named_emit(self, make_project):
        """Test that a module-level emit function is ignored."""
        messages = messages_of(make_project, """
            def emit(actor, event, data=None):
                pass


            def run(name):
                emit("actor", name)
        """)

        assert messages == []

    def test_local_state_interface(self, make_project):
        """Test that a local class named like the state interface is ignored."""
        messages = messages_of(make_project, """
            class IState:
                def broadcast(self, event, data=None):
                    pass


            def run(bus: IState, name):
                bus.broadcast(name)
        """)

        assert messages == []

    def test_other_framework_method(self, make_project):
        """Test that other framework calls are ignored."""
        messages = messages_of(make_project, """
            import mage


            def login(state: mage.core.IState):
                mage.auth.login_anonymous(state, {"acl": ["user"]})
        """)

        assert messages == []

    def test_messages_in_command_files(self, make_project):
        """Test that command files are scanned for messages too."""
        root = make_project({
            "modules/chat/commands/say.py": """
                import mage


                async def execute(state: mage.core.IState, text: str) -> str:
                    state.broadcast("SAID", text)
                    return text
            """,
        })

        modules = build_catalog(root)

        assert [m.id for m in modules[0].messages] == ["SAID"]
        assert modules[0].messages[0].type == PrimitiveType("string")
