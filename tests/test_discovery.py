"""Tests for source discovery, path conventions and import resolution."""

import logging
import tempfile
from pathlib import Path

from scanner.discovery import SourceLayout, find_command_files, iter_files
from scanner.resolver import (
    _is_within_repo,
    module_name_for_path,
    parent_packages,
    resolve_module,
    resolve_relative_import,
)


class TestSourceLayout:
    """Tests for module and command file classification."""

    def test_module_files(self, fake_project):
        """Test that any file below a module directory belongs to it."""
        layout = SourceLayout(fake_project)

        assert layout.is_module_file(fake_project / "modules" / "test" / "__init__.py")
        assert layout.is_module_file(fake_project / "modules" / "test" / "commands" / "play.py")
        assert not layout.is_module_file(fake_project / "mage" / "core.py")
        assert not layout.is_module_file(fake_project / "modules" / "setup.py")

    def test_module_name(self, fake_project):
        """Test that the module name is the segment below the module root."""
        layout = SourceLayout(fake_project)

        assert layout.module_name(fake_project / "modules" / "test" / "__init__.py") == "test"
        assert layout.module_name(fake_project / "modules" / "test" / "commands" / "wait.py") == "test"

    def test_command_files(self, fake_project):
        """Test command file detection."""
        layout = SourceLayout(fake_project)
        commands = fake_project / "modules" / "test" / "commands"

        assert layout.is_command_file(commands / "play.py")
        assert not layout.is_command_file(commands / "__init__.py")
        assert not layout.is_command_file(commands / "nested" / "deep.py")
        assert not layout.is_command_file(commands / "notes.txt")
        assert not layout.is_command_file(fake_project / "modules" / "test" / "helpers" / "util.py")

    def test_command_name_from_path(self, fake_project):
        """Test that the command name comes from the file name."""
        layout = SourceLayout(fake_project)

        assert layout.command_name(fake_project / "modules" / "test" / "commands" / "play.py") == "play"

    def test_nested_module_root(self):
        """Test a module root more than one directory deep."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            layout = SourceLayout(root, module_root="lib/modules", commands_dir="usercommands")
            command = root / "lib" / "modules" / "chat" / "usercommands" / "say.py"

            assert layout.is_command_file(command)
            assert layout.module_name(command) == "chat"
            assert layout.command_name(command) == "say"
            assert layout.relative(command) == "lib/modules/chat/usercommands/say.py"
            assert not layout.is_command_file(root / "modules" / "chat" / "commands" / "say.py")


class TestFindCommandFiles:
    """Tests for command file discovery."""

    def test_fake_project(self, fake_project):
        """Test discovery on the bundled project, in sorted order."""
        files = find_command_files(SourceLayout(fake_project))

        assert [f.name for f in files] == ["play.py", "wait.py"]

    def test_missing_module_root_warns(self, caplog):
        """Test that a project without module root yields nothing and warns."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with caplog.at_level(logging.WARNING):
                files = find_command_files(SourceLayout(Path(tmpdir)))

        assert files == []
        assert "does not exist" in caplog.text

    def test_empty_module_root_warns(self, caplog):
        """Test that a module root without command files warns."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "modules" / "chat").mkdir(parents=True)
            (root / "modules" / "chat" / "__init__.py").write_text("")

            with caplog.at_level(logging.WARNING):
                files = find_command_files(SourceLayout(root))

        assert files == []
        assert "No command files" in caplog.text

    def test_module_named_like_build_output(self):
        """Test that module names shared with build or virtualenv directories are found."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            for name in ("build", "env", "venv", "dist"):
                (root / "modules" / name / "commands").mkdir(parents=True)
                (root / "modules" / name / "commands" / "start.py").write_text("")
            (root / "modules" / "chat" / "commands" / "__pycache__").mkdir(parents=True)
            (root / "modules" / "chat" / "commands" / "__pycache__" / "say.py").write_text("")

            layout = SourceLayout(root)
            files = find_command_files(layout)

            assert [layout.module_name(f) for f in files] == ["build", "dist", "env", "venv"]

    def test_iter_files_skips_excluded_dirs(self):
        """Test that cache and VCS directories are not scanned."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "__pycache__").mkdir()
            (root / "__pycache__" / "a.py").write_text("")
            (root / "b.py").write_text("")
            (root / "c.txt").write_text("")

            files = [f.name for f in iter_files(root)]

        assert files == ["b.py"]


class TestResolver:
    """Tests for module name resolution."""

    def test_resolve_module(self, fake_project):
        """Test resolving modules and packages on a search path."""
        assert resolve_module("mage.core", [fake_project]) == (fake_project / "mage" / "core.py").resolve()
        assert resolve_module("mage", [fake_project]) == (fake_project / "mage" / "__init__.py").resolve()
        assert resolve_module("typing", [fake_project]) is None
        assert resolve_module("not-a-name", [fake_project]) is None

    def test_module_name_for_path(self, fake_project):
        """Test computing dotted names from file paths."""
        play = fake_project / "modules" / "test" / "commands" / "play.py"
        package = fake_project / "modules" / "test" / "__init__.py"

        assert module_name_for_path(play, [fake_project]) == ("modules.test.commands.play", False)
        assert module_name_for_path(package, [fake_project]) == ("modules.test", True)

    def test_resolve_relative_import(self):
        """Test turning relative imports into absolute names."""
        assert resolve_relative_import("modules.test.commands.wait", False, 2, None) == "modules.test"
        assert resolve_relative_import("modules.test", True, 1, "helpers") == "modules.test.helpers"
        assert resolve_relative_import("mage.core", False, 1, None) == "mage"
        assert resolve_relative_import("mage.core", False, 0, "typing") == "typing"
        assert resolve_relative_import("top", False, 2, None) is None

    def test_parent_packages(self):
        """Test enumerating enclosing packages."""
        assert parent_packages("a.b.c") == ["a", "a.b"]
        assert parent_packages("a") == []

    def test_is_within_repo(self):
        """Test repository boundary checking."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "sub").mkdir()

            assert _is_within_repo(root / "sub", root)
            assert not _is_within_repo(root.parent, root)
