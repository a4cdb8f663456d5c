"""Tests for exporters."""

import json

import pytest
import yaml

from catalog.model import Message, Module, Parameter, TypeDefinition, UserCommand
from catalog.types import ArrayType, ObjectType, PrimitiveType, ReferenceType
from exporters.ascii_exporter import to_ascii
from exporters.json_exporter import to_json
from exporters.yaml_exporter import to_yaml


@pytest.fixture
def modules():
    chat = Module("chat")
    chat.add_type(TypeDefinition(
        id="modules.chat.User",
        name="User",
        kind="object",
        fields={"name": PrimitiveType("string")},
        resolved=True,
    ))
    chat.add_type(TypeDefinition(
        id="modules.chat.Color",
        name="Color",
        kind="enum",
        members={"RED": "red"},
        resolved=True,
    ))
    chat.add_usercommand(UserCommand(
        name="say",
        parameters=[
            Parameter("state", ReferenceType("mage.core.IState", "IState")),
            Parameter("text", PrimitiveType("string")),
        ],
        return_type=ObjectType(fields={"users": ArrayType(ReferenceType("modules.chat.User", "User"))}),
    ))
    chat.add_message(Message("SUCCESS", 5000, PrimitiveType("integer")))
    chat.add_message(Message("TESTEVENT", "TESTEVENT", PrimitiveType("string")))

    empty = Module("empty")
    return [chat, empty]


class TestJSONExporter:
    """Tests for JSON exporter."""

    def test_empty_catalog(self):
        """Test exporting no modules."""
        assert json.loads(to_json([])) == {"modules": []}

    def test_catalog(self, modules):
        """Test the exported document."""
        data = json.loads(to_json(modules))

        assert [m["name"] for m in data["modules"]] == ["chat", "empty"]
        chat = data["modules"][0]
        assert list(chat) == ["name", "types", "usercommands", "messages"]
        assert chat["usercommands"][0]["returnType"]["fields"]["users"] == {
            "kind": "array",
            "elementType": {"kind": "reference", "id": "modules.chat.User", "name": "User"},
        }
        assert chat["messages"][0] == {
            "id": "SUCCESS",
            "value": 5000,
            "type": {"kind": "primitive", "name": "integer"},
        }

    def test_indent(self, modules):
        """Test compact output."""
        assert "\n" not in to_json(modules, indent=None)


class TestYAMLExporter:
    """Tests for YAML exporter."""

    def test_same_document_as_json(self, modules):
        """Test that YAML carries the same data as JSON."""
        assert yaml.safe_load(to_yaml(modules)) == json.loads(to_json(modules))

    def test_key_order(self, modules):
        """Test that record keys keep their order."""
        output = to_yaml(modules)

        assert output.index("types:") < output.index("usercommands:") < output.index("messages:")


class TestASCIIExporter:
    """Tests for ASCII exporter."""

    def test_empty_catalog(self):
        """Test exporting no modules."""
        assert to_ascii([]) == ""

    def test_tree(self, modules):
        """Test the rendered sections."""
        output = to_ascii(modules)

        assert output.splitlines()[0] == "chat"
        assert "say(state: IState, text: string) -> {users: User[]}" in output
        assert "SUCCESS = 5000: integer" in output
        assert "TESTEVENT: string" in output
        assert "User (object)" in output
        assert "name: string" in output
        assert "RED = 'red'" in output
        assert output.splitlines()[-1] == "empty"

    def test_unicode_style(self, modules):
        """Test Unicode tree characters."""
        output = to_ascii(modules, style="tree")

        assert "├──" in output
        assert "└──" in output

    def test_ascii_style(self, modules):
        """Test pure ASCII characters."""
        output = to_ascii(modules, style="ascii")

        assert "|--" in output
        assert "\\--" in output
        assert "├" not in output
        assert "└" not in output
